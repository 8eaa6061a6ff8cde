"""Activity CRUD, fertigation day logging and cost breakdowns."""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from geoalchemy2 import WKTElement
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.errors import NotFoundError
from agroledger.models.activity import Activity
from agroledger.models.enums import MovementModuleEnum, MovementOperationEnum
from agroledger.models.inventory import InventoryMovement
from agroledger.schemas.activity import (
	ActivityCreate,
	ActivityUpdate,
	FertigationDay,
	FertigationDayCreate,
	ProductUsage,
)
from agroledger.services.costing import CostBreakdown, compute_activity_costs, fertigation_entry_cost
from agroledger.services.inventory_service import InventoryService
from agroledger.services.ledger import MovementContext, MovementRequest
from agroledger.services.units import to_hectares

logger = structlog.get_logger("agroledger.activities")


def location_point(latitude: float, longitude: float) -> WKTElement:
	# WKT is (x y) = (lng lat)
	return WKTElement(f"POINT({longitude} {latitude})", srid=4326)


def settle_fertigation_days(days: list[FertigationDay]) -> list[FertigationDay]:
	"""Fill in the cost of days submitted without one."""
	return [day.model_copy(update={"cost": fertigation_entry_cost(day)}) for day in days]


def stored_products(raw: list[dict[str, Any]] | None) -> list[ProductUsage]:
	return [ProductUsage.model_validate(item) for item in raw or []]


def stored_fertigation(raw: list[dict[str, Any]] | None) -> list[FertigationDay]:
	return [FertigationDay.model_validate(item) for item in raw or []]


def recompute_costs(activity: Activity) -> CostBreakdown:
	"""Recalculate and assign the derived cost columns from the stored line items."""
	breakdown = compute_activity_costs(
		stored_products(activity.products),
		stored_fertigation(activity.fertigation),
		activity.surface_area,
		activity.area_unit,
	)
	activity.total_cost = breakdown.total_cost
	activity.cost_per_hectare = breakdown.cost_per_hectare
	return breakdown


class ActivityService:
	"""Owner-scoped activity records; derived costs are recomputed on every write."""

	def __init__(self, db: AsyncSession):
		self.db = db

	@staticmethod
	def _apply_payload(activity: Activity, payload: ActivityCreate) -> None:
		activity.date = payload.date
		activity.name = payload.name
		activity.crop_type = payload.crop_type
		activity.variety = payload.variety
		activity.transplant_date = payload.transplant_date
		activity.plants_count = payload.plants_count
		activity.surface_area = payload.surface_area
		activity.area_unit = payload.area_unit
		activity.water_used = payload.water_used
		activity.latitude = payload.latitude
		activity.longitude = payload.longitude
		activity.location = location_point(payload.latitude, payload.longitude)
		activity.products = [item.model_dump(mode="json") for item in payload.products]
		activity.fertigation = [
			day.model_dump(mode="json") for day in settle_fertigation_days(payload.fertigation)
		]
		activity.sigpac = payload.sigpac.model_dump(mode="json") if payload.sigpac is not None else None
		activity.notes = payload.notes

	async def list_activities(
		self,
		owner_id: uuid.UUID,
		page: int = 1,
		limit: int = 10,
		crop_type: str | None = None,
	) -> tuple[list[Activity], int]:
		filters = [Activity.owner_id == owner_id]
		if crop_type:
			filters.append(Activity.crop_type == crop_type)

		total = await self.db.scalar(select(func.count()).select_from(Activity).where(*filters))
		stmt = (
			select(Activity)
			.where(*filters)
			.order_by(Activity.date.desc(), Activity.created_at.desc())
			.offset((page - 1) * limit)
			.limit(limit)
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all()), int(total or 0)

	async def get_activity(self, owner_id: uuid.UUID, activity_id: uuid.UUID) -> Activity:
		stmt = select(Activity).where(Activity.id == activity_id, Activity.owner_id == owner_id)
		row = await self.db.execute(stmt)
		activity = row.scalar_one_or_none()
		if activity is None:
			raise NotFoundError(f"Activity {activity_id} not found")
		return activity

	async def create_activity(self, owner_id: uuid.UUID, payload: ActivityCreate) -> Activity:
		activity = Activity(owner_id=owner_id)
		self._apply_payload(activity, payload)
		breakdown = recompute_costs(activity)
		self.db.add(activity)
		await self.db.flush()
		await self.db.refresh(activity)
		logger.info(
			"activity_created",
			activity_id=str(activity.id),
			total_cost=breakdown.total_cost,
			cost_per_hectare=breakdown.cost_per_hectare,
		)
		return activity

	async def update_activity(
		self,
		owner_id: uuid.UUID,
		activity_id: uuid.UUID,
		payload: ActivityUpdate,
	) -> Activity:
		activity = await self.get_activity(owner_id, activity_id)
		self._apply_payload(activity, payload)
		recompute_costs(activity)
		await self.db.flush()
		await self.db.refresh(activity)
		return activity

	async def delete_activity(self, owner_id: uuid.UUID, activity_id: uuid.UUID) -> None:
		activity = await self.get_activity(owner_id, activity_id)
		await self.db.delete(activity)
		await self.db.flush()

	async def append_fertigation_day(
		self,
		owner_id: uuid.UUID,
		activity_id: uuid.UUID,
		payload: FertigationDayCreate,
		inventory: InventoryService | None = None,
	) -> tuple[Activity, int, list[InventoryMovement]]:
		"""Append one fertigation day and optionally draw its products from stock.

		Stock consumption runs in the same transaction as the activity write:
		an insufficient item fails the whole request.
		"""
		activity = await self.get_activity(owner_id, activity_id)
		day = FertigationDay.model_validate(payload.model_dump(exclude={"consume_inventory"}))
		day = settle_fertigation_days([day])[0]

		day_index = len(activity.fertigation or [])
		# JSONB columns are not mutation-tracked; assign a new list
		activity.fertigation = [*(activity.fertigation or []), day.model_dump(mode="json")]
		recompute_costs(activity)

		movements: list[InventoryMovement] = []
		if payload.consume_inventory:
			context = MovementContext(
				activity_id=activity.id,
				module=MovementModuleEnum.fertigation,
				day_index=day_index,
			)
			inventory = inventory or InventoryService(self.db)
			requests: list[MovementRequest] = []
			for product in day.products:
				if product.dose <= 0:
					continue
				item_id = product.inventory_item_id
				if item_id is None and product.product_id is not None:
					item_id = (await inventory.get_item_by_product(owner_id, product.product_id)).id
				if item_id is None:
					continue
				requests.append(
					MovementRequest(
						item_id=item_id,
						operation=MovementOperationEnum.subtract,
						amount=product.dose,
						unit=str(product.unit),
						reason=f"fertigation {day.date.isoformat()}: {product.name}",
						context=context,
					)
				)
			if requests:
				movements = await inventory.ledger.record_batch(owner_id, requests)
				await inventory.refresh_alerts_for(owner_id, {m.item_id for m in movements})

		await self.db.flush()
		await self.db.refresh(activity)
		logger.info(
			"fertigation_day_appended",
			activity_id=str(activity.id),
			day_index=day_index,
			movements=len(movements),
		)
		return activity, day_index, movements

	async def cost_breakdown(self, owner_id: uuid.UUID, activity_id: uuid.UUID) -> tuple[Activity, CostBreakdown, float]:
		activity = await self.get_activity(owner_id, activity_id)
		breakdown = compute_activity_costs(
			stored_products(activity.products),
			stored_fertigation(activity.fertigation),
			activity.surface_area,
			activity.area_unit,
		)
		return activity, breakdown, to_hectares(activity.surface_area, activity.area_unit)
