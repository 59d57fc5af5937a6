import pytest

from conftest import make_settings
from menu_extractor.db import create_db_engine
from menu_extractor.db.target import is_loopback, resolve_database_target
from menu_extractor.errors import ConfigurationError

DISCRETE = {
    "pghost": "db.example.com",
    "pguser": "menus",
    "pgpassword": "s3cret",
    "pgdatabase": "menus",
    "pgport": 6543,
}


def test_discrete_variables_take_priority():
    settings = make_settings(database_url="postgresql://other:pw@127.0.0.1/other", **DISCRETE)

    target = resolve_database_target(settings)

    assert target.url.drivername == "postgresql+psycopg"
    assert target.url.host == "db.example.com"
    assert target.url.port == 6543
    assert target.url.username == "menus"
    assert target.url.password == "s3cret"
    assert target.url.database == "menus"
    assert target.ssl is True


def test_incomplete_discrete_set_falls_back_to_url():
    partial = dict(DISCRETE, pgpassword=None)
    settings = make_settings(database_url="postgres://app:pw@localhost:5432/menus", **partial)

    target = resolve_database_target(settings)

    assert target.url.drivername == "postgresql+psycopg"
    assert target.url.host == "localhost"
    assert target.ssl is False


@pytest.mark.parametrize(
    "url, ssl",
    [
        ("postgresql://u:p@127.0.0.1:5432/menus", False),
        ("postgresql://u:p@[::1]:5432/menus", False),
        ("postgresql://u:p@db.supabase.co:5432/postgres", True),
        ("postgresql+psycopg://u:p@10.0.0.5/menus", True),
    ],
)
def test_ssl_defaults_to_host_locality(url, ssl):
    assert resolve_database_target(make_settings(database_url=url)).ssl is ssl


@pytest.mark.parametrize("forced", [True, False])
def test_ssl_flag_overrides_default(forced):
    remote = make_settings(database_url="postgresql://u:p@db.example.com/menus", db_ssl=forced)
    local = make_settings(database_url="postgresql://u:p@localhost/menus", db_ssl=forced)

    assert resolve_database_target(remote).ssl is forced
    assert resolve_database_target(local).ssl is forced


def test_resolution_is_repeatable():
    settings = make_settings(**DISCRETE)

    assert resolve_database_target(settings) == resolve_database_target(settings)


def test_missing_target_is_configuration_error():
    with pytest.raises(ConfigurationError):
        resolve_database_target(make_settings())


def test_unparseable_url_is_configuration_error():
    with pytest.raises(ConfigurationError):
        resolve_database_target(make_settings(database_url="not a url"))


@pytest.mark.parametrize(
    "host, expected",
    [(None, True), ("localhost", True), ("127.0.0.2", True), ("::1", True), ("example.com", False), ("192.168.1.10", False)],
)
def test_is_loopback(host, expected):
    assert is_loopback(host) is expected


def test_postgres_engine_gets_bounded_pool_and_sslmode():
    engine = create_db_engine(make_settings(database_url="postgresql://u:p@db.example.com/menus", db_pool_size=3))

    assert engine.pool.size() == 3
    assert engine.dialect.driver == "psycopg"
    engine.dispose()
