import logging

from sqlalchemy import Engine
from sqlmodel import create_engine

from ..settings import Settings
from .menu import MenuModel
from .target import DatabaseTarget, resolve_database_target

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings) -> Engine:
    target = resolve_database_target(settings)
    kwargs = {"pool_pre_ping": True}
    if target.is_postgres:
        # Small bounded pool: the app is usually deployed with several workers
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=0,
            connect_args={"sslmode": "require" if target.ssl else "disable"},
        )
    logger.info(f"Creating database engine for {target.url.render_as_string(hide_password=True)} (ssl={target.ssl})")
    return create_engine(target.url, **kwargs)


__all__ = ["MenuModel", "DatabaseTarget", "resolve_database_target", "create_db_engine"]
