"""Inventory items, movement ledger access, reconciliation and stock alerts."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.config import get_settings
from agroledger.errors import NotFoundError
from agroledger.models.enums import AlertKindEnum, AlertSeverityEnum, MovementOperationEnum
from agroledger.models.inventory import InventoryAlert, InventoryItem, InventoryMovement
from agroledger.schemas.inventory import (
	BatchMovementCreate,
	InventoryItemCreate,
	InventoryItemUpdate,
	MovementCreate,
)
from agroledger.services.ledger import (
	InventoryLedger,
	LedgerReplay,
	MovementContext,
	MovementRequest,
	SqlLedgerStore,
	replay_movements,
)
from agroledger.services.product_service import ProductService

EXPIRY_WARNING_DAYS = 30

# NOT NULL columns; an explicit null in an update leaves them as they are.
REQUIRED_ITEM_FIELDS = frozenset({"name", "category", "min_stock", "critical_stock", "price_per_unit"})

logger = structlog.get_logger("agroledger.inventory")


@dataclass(frozen=True, slots=True)
class AlertSpec:
	kind: AlertKindEnum
	severity: AlertSeverityEnum
	message: str


def default_critical_stock(min_stock: float) -> float:
	return float(math.floor(min_stock / 2))


def evaluate_item_alerts(item: InventoryItem, today: date | None = None) -> list[AlertSpec]:
	"""Alerts an item should currently carry.

	Critical wins over low stock; expiry is independent and fires when the
	expiry date is 1..30 days ahead.
	"""
	today = today or datetime.now(UTC).date()
	specs: list[AlertSpec] = []
	if item.quantity <= item.critical_stock:
		specs.append(
			AlertSpec(
				kind=AlertKindEnum.critical_stock,
				severity=AlertSeverityEnum.critical,
				message=f"Critical stock: {item.name} - only {item.quantity} {item.unit} left",
			)
		)
	elif item.quantity <= item.min_stock:
		specs.append(
			AlertSpec(
				kind=AlertKindEnum.low_stock,
				severity=AlertSeverityEnum.warning,
				message=f"Low stock: {item.name} - {item.quantity} {item.unit} left",
			)
		)

	if item.expiry_date is not None:
		days_left = (item.expiry_date - today).days
		if 0 < days_left <= EXPIRY_WARNING_DAYS:
			specs.append(
				AlertSpec(
					kind=AlertKindEnum.expiry_warning,
					severity=AlertSeverityEnum.warning,
					message=f"Expiring soon: {item.name} - expires in {days_left} days",
				)
			)
	return specs


def movement_request(item_id: uuid.UUID, payload: MovementCreate) -> MovementRequest:
	context = None
	if payload.activity_id is not None or payload.module is not None or payload.day_index is not None:
		context = MovementContext(
			activity_id=payload.activity_id,
			module=payload.module,
			day_index=payload.day_index,
		)
	return MovementRequest(
		item_id=item_id,
		operation=payload.operation,
		amount=payload.amount,
		unit=payload.unit,
		reason=payload.reason,
		context=context,
	)


class InventoryService:
	"""Owner-scoped inventory operations; every balance change goes through the ledger."""

	def __init__(self, db: AsyncSession, ledger: InventoryLedger | None = None):
		self.db = db
		self.ledger = ledger or InventoryLedger(
			SqlLedgerStore(db),
			max_retries=get_settings().ledger_max_retries,
		)

	# ── Items ──────────────────────────────────────────────────────────────

	async def list_items(self, owner_id: uuid.UUID) -> list[InventoryItem]:
		stmt = (
			select(InventoryItem)
			.where(InventoryItem.owner_id == owner_id, InventoryItem.active.is_(True))
			.order_by(InventoryItem.name.asc())
			.execution_options(populate_existing=True)
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_item(
		self,
		owner_id: uuid.UUID,
		item_id: uuid.UUID,
		include_inactive: bool = False,
	) -> InventoryItem:
		stmt = select(InventoryItem).where(
			InventoryItem.id == item_id,
			InventoryItem.owner_id == owner_id,
		)
		if not include_inactive:
			stmt = stmt.where(InventoryItem.active.is_(True))
		# quantity may have been changed by a Core UPDATE in this session
		row = await self.db.execute(stmt.execution_options(populate_existing=True))
		item = row.scalar_one_or_none()
		if item is None:
			raise NotFoundError(f"Inventory item {item_id} not found")
		return item

	async def get_item_by_product(self, owner_id: uuid.UUID, product_id: uuid.UUID) -> InventoryItem:
		"""The active item stocking a catalog product.

		An unlinked item with the product's exact name is adopted and linked
		on first lookup.
		"""
		stmt = (
			select(InventoryItem)
			.where(
				InventoryItem.owner_id == owner_id,
				InventoryItem.product_id == product_id,
				InventoryItem.active.is_(True),
			)
			.order_by(InventoryItem.created_at.asc())
			.limit(1)
			.execution_options(populate_existing=True)
		)
		item = (await self.db.execute(stmt)).scalar_one_or_none()
		if item is not None:
			return item

		product = await ProductService(self.db).get_product(owner_id, product_id, include_inactive=True)
		stmt = (
			select(InventoryItem)
			.where(
				InventoryItem.owner_id == owner_id,
				InventoryItem.product_id.is_(None),
				InventoryItem.name == product.name,
				InventoryItem.active.is_(True),
			)
			.order_by(InventoryItem.created_at.asc())
			.limit(1)
		)
		item = (await self.db.execute(stmt)).scalar_one_or_none()
		if item is None:
			raise NotFoundError(f"No inventory item stocks product {product_id}")
		item.product_id = product.id
		item.last_updated = datetime.now(UTC)
		await self.db.flush()
		logger.info("inventory_item_linked_to_product", item_id=str(item.id), product_id=str(product.id))
		return item

	async def create_item(self, owner_id: uuid.UUID, payload: InventoryItemCreate) -> InventoryItem:
		critical_stock = (
			payload.critical_stock
			if payload.critical_stock is not None
			else default_critical_stock(payload.min_stock)
		)
		if payload.product_id is not None:
			await ProductService(self.db).get_product(owner_id, payload.product_id)
		item = InventoryItem(
			owner_id=owner_id,
			product_id=payload.product_id,
			name=payload.name,
			category=payload.category,
			quantity=0.0,
			unit=payload.unit,
			min_stock=payload.min_stock,
			critical_stock=critical_stock,
			price_per_unit=payload.price_per_unit,
			supplier=payload.supplier,
			location=payload.location,
			expiry_date=payload.expiry_date,
			notes=payload.notes,
			active=True,
			version=0,
			last_updated=datetime.now(UTC),
		)
		self.db.add(item)
		await self.db.flush()
		await self.db.refresh(item)

		if payload.quantity > 0:
			await self.ledger.record_movement(
				owner_id,
				MovementRequest(
					item_id=item.id,
					operation=MovementOperationEnum.add,
					amount=payload.quantity,
					unit=str(payload.unit),
					reason="opening balance",
				),
			)
			item = await self.get_item(owner_id, item.id)

		await self.refresh_alerts(item)
		logger.info("inventory_item_created", item_id=str(item.id), quantity=item.quantity, unit=str(item.unit))
		return item

	async def update_item(
		self,
		owner_id: uuid.UUID,
		item_id: uuid.UUID,
		payload: InventoryItemUpdate,
	) -> InventoryItem:
		item = await self.get_item(owner_id, item_id)
		changes = {
			field: value
			for field, value in payload.model_dump(exclude_unset=True).items()
			if value is not None or field not in REQUIRED_ITEM_FIELDS
		}
		if changes.get("product_id") is not None:
			await ProductService(self.db).get_product(owner_id, changes["product_id"])
		for field, value in changes.items():
			setattr(item, field, value)
		if "min_stock" in changes and "critical_stock" not in changes:
			item.critical_stock = min(item.critical_stock, item.min_stock)
		item.last_updated = datetime.now(UTC)
		await self.db.flush()
		await self.db.refresh(item)
		await self.refresh_alerts(item)
		return item

	async def delete_item(self, owner_id: uuid.UUID, item_id: uuid.UUID) -> None:
		item = await self.get_item(owner_id, item_id)
		item.active = False
		item.last_updated = datetime.now(UTC)
		await self.db.execute(delete(InventoryAlert).where(InventoryAlert.item_id == item.id))
		await self.db.flush()

	# ── Movements ──────────────────────────────────────────────────────────

	async def record_movement(
		self,
		owner_id: uuid.UUID,
		item_id: uuid.UUID,
		payload: MovementCreate,
	) -> InventoryMovement:
		movement = await self.ledger.record_movement(owner_id, movement_request(item_id, payload))
		await self.refresh_alerts(await self.get_item(owner_id, item_id))
		return movement

	async def record_batch(self, owner_id: uuid.UUID, payload: BatchMovementCreate) -> list[InventoryMovement]:
		requests = [movement_request(entry.item_id, entry) for entry in payload.movements]
		movements = await self.ledger.record_batch(owner_id, requests)
		await self.refresh_alerts_for(owner_id, {movement.item_id for movement in movements})
		return movements

	async def list_movements(self, owner_id: uuid.UUID, item_id: uuid.UUID) -> list[InventoryMovement]:
		await self.get_item(owner_id, item_id, include_inactive=True)
		stmt = (
			select(InventoryMovement)
			.where(InventoryMovement.owner_id == owner_id, InventoryMovement.item_id == item_id)
			.order_by(InventoryMovement.id.asc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def reconcile(self, owner_id: uuid.UUID, item_id: uuid.UUID) -> tuple[InventoryItem, LedgerReplay]:
		item = await self.get_item(owner_id, item_id, include_inactive=True)
		movements = await self.list_movements(owner_id, item_id)
		replay = replay_movements(movements, item.quantity)
		if not replay.consistent:
			logger.warning(
				"inventory_ledger_inconsistent",
				item_id=str(item_id),
				breaks=len(replay.breaks),
				closing_balance=replay.closing_balance,
				current_quantity=item.quantity,
			)
		return item, replay

	# ── Alerts ─────────────────────────────────────────────────────────────

	async def refresh_alerts(self, item: InventoryItem) -> list[InventoryAlert]:
		await self.db.execute(delete(InventoryAlert).where(InventoryAlert.item_id == item.id))
		alerts = [
			InventoryAlert(
				owner_id=item.owner_id,
				item_id=item.id,
				item_name=item.name,
				kind=spec.kind,
				severity=spec.severity,
				message=spec.message,
				read=False,
			)
			for spec in evaluate_item_alerts(item)
		]
		if alerts:
			self.db.add_all(alerts)
			await self.db.flush()
		return alerts

	async def refresh_alerts_for(self, owner_id: uuid.UUID, item_ids: set[uuid.UUID]) -> None:
		for item_id in sorted(item_ids, key=str):
			await self.refresh_alerts(await self.get_item(owner_id, item_id))

	async def list_alerts(self, owner_id: uuid.UUID) -> list[InventoryAlert]:
		stmt = (
			select(InventoryAlert)
			.where(InventoryAlert.owner_id == owner_id, InventoryAlert.read.is_(False))
			.order_by(InventoryAlert.created_at.desc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def mark_alert_read(self, owner_id: uuid.UUID, alert_id: uuid.UUID) -> InventoryAlert:
		stmt = (
			update(InventoryAlert)
			.where(InventoryAlert.id == alert_id, InventoryAlert.owner_id == owner_id)
			.values(read=True)
			.returning(InventoryAlert)
			.execution_options(synchronize_session=False)
		)
		row = await self.db.execute(stmt)
		alert = row.scalar_one_or_none()
		if alert is None:
			raise NotFoundError(f"Alert {alert_id} not found")
		return alert
