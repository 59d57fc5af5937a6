import logging
import threading
from datetime import datetime, timezone

from sqlalchemy import Engine, inspect, insert
from sqlalchemy.exc import IntegrityError, ProgrammingError
from sqlmodel import Session, SQLModel, desc, select

from ..schemas.menu import Menu, StoredMenu, StoredMenuSummary
from ..settings import Settings
from . import create_db_engine
from .menu import MAX_MENU_ID, MenuModel

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive UTC timestamps; Postgres timestamptz is already aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MenuStore:
    """Storage for extracted menus.

    The engine (and its connection pool) is created on first use and then
    shared by every request. Construct one store per process and hand it to
    the handlers; each operation borrows a connection through a ``Session``
    block, so the connection goes back to the pool on success and on error.
    """

    def __init__(self, settings: Settings | None = None, *, engine: Engine | None = None):
        if settings is None and engine is None:
            raise ValueError("MenuStore needs either settings or an engine")
        self.settings = settings
        self._engine = engine
        self._lock = threading.Lock()
        self._schema_ready = False

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    self._engine = create_db_engine(self.settings)
        return self._engine

    def ensure_schema(self) -> None:
        if self._schema_ready:
            return
        try:
            SQLModel.metadata.create_all(self.engine, tables=[MenuModel.__table__])
        except (ProgrammingError, IntegrityError):
            # Another worker created the table between the existence check and CREATE TABLE
            if not inspect(self.engine).has_table(MenuModel.__tablename__):
                raise
            logger.info("Menus table was created concurrently, continuing")
        self._schema_ready = True

    def insert_menu(self, menu: Menu) -> int:
        stmt = (
            insert(MenuModel)
            .values(vendor=menu.vendor, currency=menu.currency, items=menu.items_payload())
            .returning(MenuModel.id)
        )
        # begin() commits on success and rolls back on error before releasing the connection
        with self.engine.begin() as conn:
            menu_id = conn.execute(stmt).scalar_one()
        logger.info(f"Stored menu {menu_id} with {len(menu.items)} items")
        return menu_id

    def list_menus(self, limit: int = 20) -> list[StoredMenuSummary]:
        stmt = (
            select(MenuModel.id, MenuModel.vendor, MenuModel.currency, MenuModel.created_at)
            .order_by(desc(MenuModel.created_at), desc(MenuModel.id))
            .limit(limit)
        )
        with Session(self.engine) as session:
            rows = session.exec(stmt).all()
        return [
            StoredMenuSummary(id=row.id, vendor=row.vendor, currency=row.currency, created_at=_aware(row.created_at))
            for row in rows
        ]

    def get_menu(self, menu_id: int) -> StoredMenu | None:
        if not 0 < menu_id <= MAX_MENU_ID:
            return None
        with Session(self.engine) as session:
            row = session.get(MenuModel, menu_id)
            if row is None:
                return None
            return StoredMenu(
                id=row.id,
                vendor=row.vendor,
                currency=row.currency,
                items=row.items or [],
                created_at=_aware(row.created_at),
            )

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
