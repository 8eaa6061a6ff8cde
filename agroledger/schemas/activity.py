"""Pydantic request/response schemas for activities and their embedded line items."""

from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel, ConfigDict, Field

from agroledger.models.enums import AreaUnitEnum, ProductCategoryEnum, UsageUnitEnum
from agroledger.schemas.inventory import MovementRead


class ProductUsage(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	dose: float = Field(ge=0)
	price_per_unit: float = Field(default=0.0, ge=0)
	unit: UsageUnitEnum
	category: ProductCategoryEnum = ProductCategoryEnum.other
	inventory_item_id: uuid.UUID | None = None
	product_id: uuid.UUID | None = None


class FertigationDay(BaseModel):
	date: dt.date
	products: list[ProductUsage] = Field(default_factory=list)
	observations: str = Field(default="", max_length=500)
	cost: float | None = Field(default=None, ge=0)


class FertigationDayCreate(FertigationDay):
	consume_inventory: bool = False


class SigpacReference(BaseModel):
	ref_catastral: str | None = Field(default=None, max_length=50)
	poligono: str | None = Field(default=None, max_length=20)
	parcela: str | None = Field(default=None, max_length=20)
	recinto: str | None = Field(default=None, max_length=20)


class ActivityCreate(BaseModel):
	date: dt.date
	name: str = Field(min_length=1, max_length=100)
	crop_type: str = Field(min_length=1, max_length=100)
	variety: str = Field(min_length=1, max_length=100)
	transplant_date: dt.date
	plants_count: int = Field(ge=1)
	surface_area: float = Field(gt=0)
	area_unit: AreaUnitEnum = AreaUnitEnum.ha
	water_used: float = Field(default=0.0, ge=0)
	latitude: float = Field(ge=-90, le=90)
	longitude: float = Field(ge=-180, le=180)
	products: list[ProductUsage] = Field(default_factory=list)
	fertigation: list[FertigationDay] = Field(default_factory=list)
	sigpac: SigpacReference | None = None
	notes: str | None = Field(default=None, max_length=1000)


class ActivityUpdate(ActivityCreate):
	"""Full replacement (PUT); derived costs are recomputed, never accepted."""


class ActivityRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	owner_id: uuid.UUID
	date: dt.date
	name: str
	crop_type: str
	variety: str
	transplant_date: dt.date
	plants_count: int
	surface_area: float
	area_unit: AreaUnitEnum
	water_used: float
	latitude: float
	longitude: float
	products: list[ProductUsage] = Field(default_factory=list)
	fertigation: list[FertigationDay] = Field(default_factory=list)
	sigpac: SigpacReference | None = None
	notes: str | None = None
	total_cost: float
	cost_per_hectare: float
	created_at: dt.datetime
	updated_at: dt.datetime


class ActivityListRead(BaseModel):
	items: list[ActivityRead]
	total: int
	page: int
	limit: int
	pages: int


class CostBreakdownRead(BaseModel):
	activity_id: uuid.UUID
	surface_area_ha: float
	products_cost: float
	fertigation_cost: float
	total_cost: float
	cost_per_hectare: float


class FertigationDayRead(BaseModel):
	activity: ActivityRead
	day_index: int
	movements: list[MovementRead] = Field(default_factory=list)
