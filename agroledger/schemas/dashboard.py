"""Dashboard aggregate responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from agroledger.schemas.activity import ActivityRead
from agroledger.schemas.inventory import InventoryItemRead


class DashboardStats(BaseModel):
	total_expenses: float
	monthly_expenses: float
	activities_count: int
	products_count: int
	low_stock_alerts: int


class DashboardStatsRead(BaseModel):
	stats: DashboardStats
	recent_activities: list[ActivityRead] = Field(default_factory=list)
	low_stock_products: list[InventoryItemRead] = Field(default_factory=list)


class ExpenseBucket(BaseModel):
	key: str
	amount: float
	percentage: float


class ExpensesRead(BaseModel):
	by_crop_type: list[ExpenseBucket]
	by_month: list[ExpenseBucket]
