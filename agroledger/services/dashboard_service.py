"""Owner dashboard aggregates over activities and inventory."""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.models.activity import Activity
from agroledger.models.inventory import InventoryItem

RECENT_ACTIVITY_LIMIT = 10
MONTHLY_WINDOW_DAYS = 30


@dataclass(slots=True)
class DashboardSnapshot:
	total_expenses: float
	monthly_expenses: float
	activities_count: int
	products_count: int
	recent_activities: list[Activity]
	low_stock_products: list[InventoryItem]


@dataclass(frozen=True, slots=True)
class ExpenseShare:
	key: str
	amount: float
	percentage: float


def expense_shares(totals: dict[str, float], sort_by_amount: bool = True) -> list[ExpenseShare]:
	grand_total = sum(totals.values())
	shares = [
		ExpenseShare(
			key=key,
			amount=amount,
			percentage=round(amount / grand_total * 100.0, 2) if grand_total > 0 else 0.0,
		)
		for key, amount in totals.items()
	]
	if sort_by_amount:
		return sorted(shares, key=lambda share: (-share.amount, share.key))
	return sorted(shares, key=lambda share: share.key)


def group_costs_by_crop(activities: Iterable[Activity]) -> dict[str, float]:
	totals: dict[str, float] = defaultdict(float)
	for activity in activities:
		totals[activity.crop_type or "other"] += activity.total_cost or 0.0
	return dict(totals)


def group_costs_by_month(activities: Iterable[Activity]) -> dict[str, float]:
	totals: dict[str, float] = defaultdict(float)
	for activity in activities:
		activity_date: date = activity.date
		totals[f"{activity_date.year:04d}-{activity_date.month:02d}"] += activity.total_cost or 0.0
	return dict(totals)


class DashboardService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def get_stats(self, owner_id: uuid.UUID, today: date | None = None) -> DashboardSnapshot:
		today = today or datetime.now(UTC).date()
		since = today - timedelta(days=MONTHLY_WINDOW_DAYS)

		total_expenses = await self.db.scalar(
			select(func.coalesce(func.sum(Activity.total_cost), 0.0)).where(Activity.owner_id == owner_id)
		)
		monthly_expenses = await self.db.scalar(
			select(func.coalesce(func.sum(Activity.total_cost), 0.0)).where(
				Activity.owner_id == owner_id,
				Activity.date >= since,
			)
		)
		activities_count = await self.db.scalar(
			select(func.count()).select_from(Activity).where(Activity.owner_id == owner_id)
		)
		products_count = await self.db.scalar(
			select(func.count())
			.select_from(InventoryItem)
			.where(InventoryItem.owner_id == owner_id, InventoryItem.active.is_(True))
		)

		recent_rows = await self.db.execute(
			select(Activity)
			.where(Activity.owner_id == owner_id)
			.order_by(Activity.date.desc(), Activity.created_at.desc())
			.limit(RECENT_ACTIVITY_LIMIT)
		)
		low_stock_rows = await self.db.execute(
			select(InventoryItem)
			.where(
				InventoryItem.owner_id == owner_id,
				InventoryItem.active.is_(True),
				InventoryItem.quantity <= InventoryItem.min_stock,
			)
			.order_by(InventoryItem.quantity.asc())
		)

		return DashboardSnapshot(
			total_expenses=float(total_expenses or 0.0),
			monthly_expenses=float(monthly_expenses or 0.0),
			activities_count=int(activities_count or 0),
			products_count=int(products_count or 0),
			recent_activities=list(recent_rows.scalars().all()),
			low_stock_products=list(low_stock_rows.scalars().all()),
		)

	async def get_expenses(self, owner_id: uuid.UUID) -> tuple[list[ExpenseShare], list[ExpenseShare]]:
		rows = await self.db.execute(select(Activity).where(Activity.owner_id == owner_id))
		activities = list(rows.scalars().all())
		by_crop = expense_shares(group_costs_by_crop(activities))
		by_month = expense_shares(group_costs_by_month(activities), sort_by_amount=False)
		return by_crop, by_month
