"""ORM table definitions for the inventory store."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all inventory tables."""


class Item(Base):
    """A furniture item offered by the store.

    Nested documents (address, prices, reviews) are kept as JSON columns; the
    store never queries into them.
    """

    __tablename__ = "items"

    item_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    brand: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    manufacturer_address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    prices: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    user_reviews: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    embedding_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), nullable=False)
