"""Resolution of the database connection target from settings.

Pure function of the settings object: no connections are opened here.
"""
import ipaddress
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from ..errors import ConfigurationError
from ..settings import Settings

PSYCOPG_DRIVER = "postgresql+psycopg"


@dataclass(frozen=True)
class DatabaseTarget:
    url: URL
    ssl: bool

    @property
    def is_postgres(self) -> bool:
        return self.url.get_backend_name() == "postgresql"


def is_loopback(host: str | None) -> bool:
    if not host:
        return True
    if host.lower() == "localhost":
        return True
    try:
        return ipaddress.ip_address(host.strip("[]")).is_loopback
    except ValueError:
        return False


def _normalise_scheme(url: str) -> str:
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return PSYCOPG_DRIVER + "://" + url[len(prefix):]
    return url


def resolve_database_target(settings: Settings) -> DatabaseTarget:
    discrete = (settings.pghost, settings.pguser, settings.pgpassword, settings.pgdatabase, settings.pgport)
    if all(value not in (None, "") for value in discrete):
        url = URL.create(
            PSYCOPG_DRIVER,
            username=settings.pguser,
            password=settings.pgpassword,
            host=settings.pghost,
            port=settings.pgport,
            database=settings.pgdatabase,
        )
    elif settings.database_url:
        try:
            url = make_url(_normalise_scheme(settings.database_url.strip()))
        except ArgumentError as e:
            raise ConfigurationError(f"DATABASE_URL could not be parsed: {e}") from e
    else:
        raise ConfigurationError(
            "Postgres connection target not set. Define DATABASE_URL or "
            "PGHOST/PGUSER/PGPASSWORD/PGDATABASE/PGPORT."
        )

    if settings.db_ssl is not None:
        ssl = settings.db_ssl
    else:
        ssl = not is_loopback(url.host)
    return DatabaseTarget(url=url, ssl=ssl)
