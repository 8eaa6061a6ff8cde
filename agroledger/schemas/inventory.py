"""Pydantic request/response schemas for inventory items, movements and alerts."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from agroledger.models.enums import (
	AlertKindEnum,
	AlertSeverityEnum,
	InventoryCategoryEnum,
	MovementModuleEnum,
	MovementOperationEnum,
	StockUnitEnum,
)


class InventoryItemCreate(BaseModel):
	model_config = ConfigDict(allow_inf_nan=False)

	name: str = Field(min_length=1, max_length=255)
	category: InventoryCategoryEnum
	product_id: uuid.UUID | None = None
	quantity: float = Field(default=0.0, ge=0)
	unit: StockUnitEnum
	min_stock: float = Field(default=0.0, ge=0)
	critical_stock: float | None = Field(default=None, ge=0)
	price_per_unit: float = Field(default=0.0, ge=0)
	supplier: str | None = Field(default=None, max_length=255)
	location: str | None = Field(default=None, max_length=255)
	expiry_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class InventoryItemUpdate(BaseModel):
	"""Partial update of descriptive fields; the balance only moves through movements."""

	model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

	name: str | None = Field(default=None, min_length=1, max_length=255)
	category: InventoryCategoryEnum | None = None
	product_id: uuid.UUID | None = None
	min_stock: float | None = Field(default=None, ge=0)
	critical_stock: float | None = Field(default=None, ge=0)
	price_per_unit: float | None = Field(default=None, ge=0)
	supplier: str | None = Field(default=None, max_length=255)
	location: str | None = Field(default=None, max_length=255)
	expiry_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class InventoryItemRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	owner_id: uuid.UUID
	name: str
	category: InventoryCategoryEnum
	product_id: uuid.UUID | None = None
	quantity: float
	unit: StockUnitEnum
	min_stock: float
	critical_stock: float
	price_per_unit: float
	supplier: str | None = None
	location: str | None = None
	expiry_date: date | None = None
	notes: str | None = None
	active: bool
	version: int
	last_updated: datetime
	created_at: datetime
	updated_at: datetime


class InventoryItemListRead(BaseModel):
	items: list[InventoryItemRead]


class MovementCreate(BaseModel):
	model_config = ConfigDict(allow_inf_nan=False)

	operation: MovementOperationEnum
	amount: float = Field(gt=0)
	unit: str | None = Field(default=None, min_length=1, max_length=16)
	reason: str | None = Field(default=None, max_length=255)
	activity_id: uuid.UUID | None = None
	module: MovementModuleEnum | None = None
	day_index: int | None = Field(default=None, ge=0)


class BatchMovementEntry(MovementCreate):
	item_id: uuid.UUID


class BatchMovementCreate(BaseModel):
	movements: list[BatchMovementEntry] = Field(min_length=1, max_length=200)


class MovementRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	item_id: uuid.UUID
	item_name: str
	operation: MovementOperationEnum
	amount: float
	unit: str
	amount_in_item_unit: float
	balance_after: float
	reason: str | None = None
	activity_id: uuid.UUID | None = None
	module: MovementModuleEnum | None = None
	day_index: int | None = None
	recorded_at: datetime


class MovementListRead(BaseModel):
	items: list[MovementRead]


class ReplayBreakRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	movement_id: int
	expected_balance: float
	recorded_balance: float


class ReconcileRead(BaseModel):
	item_id: uuid.UUID
	unit: StockUnitEnum
	opening_balance: float
	closing_balance: float
	current_quantity: float
	movement_count: int
	consistent: bool
	breaks: list[ReplayBreakRead] = Field(default_factory=list)


class AlertRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	item_id: uuid.UUID
	item_name: str
	kind: AlertKindEnum
	severity: AlertSeverityEnum
	message: str
	read: bool
	created_at: datetime


class AlertListRead(BaseModel):
	items: list[AlertRead]
