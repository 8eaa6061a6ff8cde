"""ProductPrice ORM model: an owner's catalog of priced inputs."""

from __future__ import annotations

import uuid

from sqlalchemy import Enum, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from agroledger.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from agroledger.models.enums import ProductTypeEnum


class ProductPrice(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A fertilizer, water source or phytosanitary product with its unit price.

    Inventory items may point at a catalog product through
    ``InventoryItem.product_id``.  Deleting only clears ``active``.
    """

    __tablename__ = "product_prices"
    __table_args__ = (
        Index("ix_product_prices_owner_type", "owner_id", "type"),
        Index("ix_product_prices_owner_active", "owner_id", "active"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ProductTypeEnum] = mapped_column(
        Enum(
            ProductTypeEnum,
            name="product_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    price_per_unit: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(
        default=True,
        server_default=text("true"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ProductPrice id={self.id} name={self.name!r} type={self.type}>"
