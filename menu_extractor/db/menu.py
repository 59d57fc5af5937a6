from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.sqlite import TEXT
from sqlalchemy.sql.schema import Index
from sqlmodel import Field, SQLModel

# ids are SERIAL (int4) on Postgres
MAX_MENU_ID = 2**31 - 1


class MenuModel(SQLModel, table=True):
    id: int | None = Field(primary_key=True, default=None)
    vendor: str | None = Field(sa_column=Column(TEXT, nullable=True), default=None)
    currency: str | None = Field(sa_column=Column(TEXT, nullable=True), default=None)
    # JSONB on Postgres, plain JSON on other dialects (SQLite in tests)
    items: list[dict] = Field(sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False))
    created_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
        default=None,
    )

    __tablename__ = "menus"
    __table_args__ = (
        Index(
            "menus_created_at_idx",
            "created_at",
            unique=False
        ),
    )
