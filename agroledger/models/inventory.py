"""InventoryItem, InventoryMovement, InventoryAlert ORM models.

``InventoryItem.quantity`` is the mutable running balance.  It is only ever
changed by the ledger (``services.ledger``) through a compare-and-set on
``version``, and every change appends one ``InventoryMovement`` whose
``balance_after`` equals the quantity right after the change.  Replaying the
movements of an item in ``id`` order reconstructs its quantity history.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from agroledger.models.base import (
    Base,
    LedgerEntryMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from agroledger.models.enums import (
    AlertKindEnum,
    AlertSeverityEnum,
    InventoryCategoryEnum,
    MovementModuleEnum,
    MovementOperationEnum,
    StockUnitEnum,
)

# ═══════════════════════════════════════════════════════════════════════════
# InventoryItem
# ═══════════════════════════════════════════════════════════════════════════


class InventoryItem(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A stocked product with a non-negative running balance."""

    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
        Index("ix_inventory_items_owner_active", "owner_id", "active"),
        Index("ix_inventory_items_owner_category", "owner_id", "category"),
        Index("ix_inventory_items_owner_product", "owner_id", "product_id"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("product_prices.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[InventoryCategoryEnum] = mapped_column(
        Enum(
            InventoryCategoryEnum,
            name="inventory_category",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    quantity: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    unit: Mapped[StockUnitEnum] = mapped_column(
        Enum(
            StockUnitEnum,
            name="stock_unit",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    min_stock: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    critical_stock: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    price_per_unit: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expiry_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(
        default=True,
        server_default=text("true"),
        nullable=False,
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    last_updated: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryItem id={self.id} name={self.name!r} "
            f"quantity={self.quantity} {self.unit}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# InventoryMovement
# ═══════════════════════════════════════════════════════════════════════════


class InventoryMovement(Base, LedgerEntryMixin):
    """Immutable ledger entry for one add/subtract against an item."""

    __tablename__ = "inventory_movements"
    __table_args__ = (
        Index("ix_inventory_movements_item_seq", "item_id", "id"),
        Index(
            "ix_inventory_movements_owner_activity_module_day",
            "owner_id",
            "activity_id",
            "module",
            "day_index",
        ),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    operation: Mapped[MovementOperationEnum] = mapped_column(
        Enum(
            MovementOperationEnum,
            name="movement_operation",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    amount_in_item_unit: Mapped[float] = mapped_column(Float, nullable=False)
    balance_after: Mapped[float] = mapped_column(Float, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    activity_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    module: Mapped[MovementModuleEnum | None] = mapped_column(
        Enum(
            MovementModuleEnum,
            name="movement_module",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    day_index: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<InventoryMovement id={self.id} item={self.item_id} "
            f"{self.operation} {self.amount_in_item_unit} -> {self.balance_after}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# InventoryAlert
# ═══════════════════════════════════════════════════════════════════════════


class InventoryAlert(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Stock / expiry warning derived from an item's current state."""

    __tablename__ = "inventory_alerts"
    __table_args__ = (
        Index("ix_inventory_alerts_owner_read", "owner_id", "read"),
        Index("ix_inventory_alerts_item", "item_id"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[AlertKindEnum] = mapped_column(
        Enum(
            AlertKindEnum,
            name="alert_kind",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    severity: Mapped[AlertSeverityEnum] = mapped_column(
        Enum(
            AlertSeverityEnum,
            name="alert_severity",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(String(512), nullable=False)
    read: Mapped[bool] = mapped_column(
        default=False,
        server_default=text("false"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<InventoryAlert id={self.id} item={self.item_id} kind={self.kind}>"
