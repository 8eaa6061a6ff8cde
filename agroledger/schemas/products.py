"""Pydantic request/response schemas for the product price catalog."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from agroledger.models.enums import ProductTypeEnum


class ProductCreate(BaseModel):
	model_config = ConfigDict(allow_inf_nan=False)

	name: str = Field(min_length=1, max_length=255)
	type: ProductTypeEnum
	price_per_unit: float = Field(ge=0)
	unit: str = Field(min_length=1, max_length=16)
	category: str | None = Field(default=None, max_length=100)
	description: str | None = Field(default=None, max_length=1000)


class ProductUpdate(BaseModel):
	model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

	name: str | None = Field(default=None, min_length=1, max_length=255)
	type: ProductTypeEnum | None = None
	price_per_unit: float | None = Field(default=None, ge=0)
	unit: str | None = Field(default=None, min_length=1, max_length=16)
	category: str | None = Field(default=None, max_length=100)
	description: str | None = Field(default=None, max_length=1000)


class ProductRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	owner_id: uuid.UUID
	name: str
	type: ProductTypeEnum
	price_per_unit: float
	unit: str
	category: str | None = None
	description: str | None = None
	active: bool
	created_at: datetime
	updated_at: datetime


class ProductListRead(BaseModel):
	items: list[ProductRead]
