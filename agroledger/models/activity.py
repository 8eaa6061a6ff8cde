"""Activity ORM model: one crop-cycle / operation entry for an owner.

Line items are document-shaped and never addressed on their own, so they are
stored as JSONB arrays:

    products    = [{"name", "dose", "price_per_unit", "unit", "category",
                    "inventory_item_id"}, ...]
    fertigation = [{"date", "products": [...], "observations", "cost"}, ...]

``total_cost`` and ``cost_per_hectare`` are derived columns written by the
activity service from ``services.costing`` on every create/update; nothing
else assigns them.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any

from geoalchemy2 import Geography
from sqlalchemy import Date, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from agroledger.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from agroledger.models.enums import AreaUnitEnum


class Activity(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A logged farming activity with derived cost totals."""

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_owner_date", "owner_id", "date"),
        Index("ix_activities_owner_crop_type", "owner_id", "crop_type"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    crop_type: Mapped[str] = mapped_column(String(100), nullable=False)
    variety: Mapped[str] = mapped_column(String(100), nullable=False)
    transplant_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    plants_count: Mapped[int] = mapped_column(Integer, nullable=False)
    surface_area: Mapped[float] = mapped_column(Float, nullable=False)
    area_unit: Mapped[AreaUnitEnum] = mapped_column(
        Enum(
            AreaUnitEnum,
            name="area_unit",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=AreaUnitEnum.ha,
        server_default=AreaUnitEnum.ha.value,
    )
    water_used: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    location: Mapped[Any] = mapped_column(
        Geography(geometry_type="POINT", srid=4326),
        nullable=True,
    )
    products: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    fertigation: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    sigpac: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Derived ──────────────────────────────────────────────────────────
    total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    cost_per_hectare: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )

    def __repr__(self) -> str:
        return (
            f"<Activity id={self.id} name={self.name!r} "
            f"crop={self.crop_type!r} total={self.total_cost}>"
        )
