"""Inventory items, movement ledger, reconciliation and alert routes.

Static paths (``/alerts``, ``/movements/batch``, ``/product/{id}``) are
declared before the ``/{item_id}`` routes so they are not captured as item ids.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import get_current_user
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.user import User
from agroledger.schemas.inventory import (
	AlertListRead,
	AlertRead,
	BatchMovementCreate,
	InventoryItemCreate,
	InventoryItemListRead,
	InventoryItemRead,
	InventoryItemUpdate,
	MovementCreate,
	MovementListRead,
	MovementRead,
	ReconcileRead,
	ReplayBreakRead,
)
from agroledger.services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected inventory service failure")


# ── Alerts ──────────────────────────────────────────────────────────────────


@router.get("/alerts", response_model=AlertListRead)
async def list_alerts(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> AlertListRead:
	service = InventoryService(db)
	try:
		alerts = await service.list_alerts(current_user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return AlertListRead(items=[AlertRead.model_validate(alert) for alert in alerts])


@router.post("/alerts/{alert_id}/read", response_model=AlertRead)
async def mark_alert_read(
	alert_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> AlertRead:
	service = InventoryService(db)
	try:
		alert = await service.mark_alert_read(current_user.id, alert_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return AlertRead.model_validate(alert)


# ── Batch movements ─────────────────────────────────────────────────────────


@router.post(
	"/movements/batch",
	response_model=MovementListRead,
	status_code=status.HTTP_201_CREATED,
)
async def record_batch(
	payload: BatchMovementCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> MovementListRead:
	service = InventoryService(db)
	try:
		movements = await service.record_batch(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MovementListRead(items=[MovementRead.model_validate(movement) for movement in movements])


# ── Items ───────────────────────────────────────────────────────────────────


@router.get("", response_model=InventoryItemListRead)
async def list_items(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> InventoryItemListRead:
	service = InventoryService(db)
	try:
		items = await service.list_items(current_user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return InventoryItemListRead(items=[InventoryItemRead.model_validate(item) for item in items])


@router.post("", response_model=InventoryItemRead, status_code=status.HTTP_201_CREATED)
async def create_item(
	payload: InventoryItemCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> InventoryItemRead:
	service = InventoryService(db)
	try:
		item = await service.create_item(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return InventoryItemRead.model_validate(item)


@router.get("/product/{product_id}", response_model=InventoryItemRead)
async def get_item_by_product(
	product_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> InventoryItemRead:
	service = InventoryService(db)
	try:
		item = await service.get_item_by_product(current_user.id, product_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return InventoryItemRead.model_validate(item)


@router.get("/{item_id}", response_model=InventoryItemRead)
async def get_item(
	item_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> InventoryItemRead:
	service = InventoryService(db)
	try:
		item = await service.get_item(current_user.id, item_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return InventoryItemRead.model_validate(item)


@router.put("/{item_id}", response_model=InventoryItemRead)
async def update_item(
	item_id: uuid.UUID,
	payload: InventoryItemUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> InventoryItemRead:
	service = InventoryService(db)
	try:
		item = await service.update_item(current_user.id, item_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return InventoryItemRead.model_validate(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
	item_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> Response:
	service = InventoryService(db)
	try:
		await service.delete_item(current_user.id, item_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Per-item ledger ─────────────────────────────────────────────────────────


@router.post(
	"/{item_id}/movements",
	response_model=MovementRead,
	status_code=status.HTTP_201_CREATED,
)
async def record_movement(
	item_id: uuid.UUID,
	payload: MovementCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> MovementRead:
	service = InventoryService(db)
	try:
		movement = await service.record_movement(current_user.id, item_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MovementRead.model_validate(movement)


@router.get("/{item_id}/movements", response_model=MovementListRead)
async def list_movements(
	item_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> MovementListRead:
	service = InventoryService(db)
	try:
		movements = await service.list_movements(current_user.id, item_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MovementListRead(items=[MovementRead.model_validate(movement) for movement in movements])


@router.get("/{item_id}/reconcile", response_model=ReconcileRead)
async def reconcile_item(
	item_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ReconcileRead:
	service = InventoryService(db)
	try:
		item, replay = await service.reconcile(current_user.id, item_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ReconcileRead(
		item_id=item.id,
		unit=item.unit,
		opening_balance=replay.opening_balance,
		closing_balance=replay.closing_balance,
		current_quantity=replay.current_quantity,
		movement_count=replay.movement_count,
		consistent=replay.consistent,
		breaks=[ReplayBreakRead.model_validate(entry) for entry in replay.breaks],
	)
