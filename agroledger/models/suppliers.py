"""Supplier and ProductPurchase ORM models."""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from agroledger.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Supplier(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A vendor of farm inputs.  Deleting only clears ``active``."""

    __tablename__ = "suppliers"
    __table_args__ = (Index("ix_suppliers_owner_active", "owner_id", "active"),)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(
        default=True,
        server_default=text("true"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r} active={self.active}>"


class ProductPurchase(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A recorded purchase of a product from a supplier.

    ``total_cost`` is derived from ``quantity * price_per_unit`` by the
    purchase service.  When ``inventory_item_id`` is set the purchase was also
    received into stock through an ``add`` movement.
    """

    __tablename__ = "product_purchases"
    __table_args__ = (
        Index("ix_product_purchases_owner_product", "owner_id", "product_name"),
        Index("ix_product_purchases_owner_supplier", "owner_id", "supplier"),
        Index("ix_product_purchases_owner_date", "owner_id", "purchase_date"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str] = mapped_column(String(255), nullable=False)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False)
    purchase_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    price_per_unit: Mapped[float] = mapped_column(Float, nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    total_cost: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    inventory_item_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ProductPurchase id={self.id} product={self.product_name!r} "
            f"total={self.total_cost}>"
        )
