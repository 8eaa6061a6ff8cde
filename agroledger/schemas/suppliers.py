"""Pydantic request/response schemas for suppliers and product purchases."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agroledger.schemas.common import blank_to_none, normalize_email


class SupplierCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	contact_person: str | None = Field(default=None, max_length=255)
	phone: str | None = Field(default=None, max_length=64)
	email: str | None = Field(default=None, max_length=320)
	address: str | None = Field(default=None, max_length=512)
	website: str | None = Field(default=None, max_length=512)
	rating: int | None = Field(default=None, ge=1, le=5)
	notes: str | None = Field(default=None, max_length=1000)

	@field_validator("email")
	@classmethod
	def _email(cls, value: str | None) -> str | None:
		value = blank_to_none(value)
		return None if value is None else normalize_email(value)


class SupplierUpdate(SupplierCreate):
	name: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]


class SupplierRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	owner_id: uuid.UUID
	name: str
	contact_person: str | None = None
	phone: str | None = None
	email: str | None = None
	address: str | None = None
	website: str | None = None
	rating: int | None = None
	notes: str | None = None
	active: bool
	created_at: datetime
	updated_at: datetime


class SupplierListRead(BaseModel):
	items: list[SupplierRead]


class PurchaseCreate(BaseModel):
	product_name: str = Field(min_length=1, max_length=255)
	brand: str = Field(min_length=1, max_length=255)
	supplier: str = Field(min_length=1, max_length=255)
	purchase_date: date
	price_per_unit: float = Field(ge=0)
	quantity: float = Field(ge=0)
	unit: str = Field(min_length=1, max_length=16)
	notes: str | None = Field(default=None, max_length=1000)
	inventory_item_id: uuid.UUID | None = None


class PurchaseUpdate(BaseModel):
	"""Corrects a purchase record; stock already received is not re-applied."""

	model_config = ConfigDict(extra="forbid")

	product_name: str | None = Field(default=None, min_length=1, max_length=255)
	brand: str | None = Field(default=None, min_length=1, max_length=255)
	supplier: str | None = Field(default=None, min_length=1, max_length=255)
	purchase_date: date | None = None
	price_per_unit: float | None = Field(default=None, ge=0)
	quantity: float | None = Field(default=None, ge=0)
	unit: str | None = Field(default=None, min_length=1, max_length=16)
	notes: str | None = Field(default=None, max_length=1000)


class PurchaseRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	owner_id: uuid.UUID
	product_name: str
	brand: str
	supplier: str
	purchase_date: date
	price_per_unit: float
	quantity: float
	unit: str
	total_cost: float
	notes: str | None = None
	inventory_item_id: uuid.UUID | None = None
	created_at: datetime
	updated_at: datetime


class PurchaseListRead(BaseModel):
	items: list[PurchaseRead]
	total_spent: float
