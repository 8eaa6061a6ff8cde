"""Supplier directory and purchase ledger routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import get_current_user
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.user import User
from agroledger.schemas.suppliers import (
	PurchaseCreate,
	PurchaseListRead,
	PurchaseRead,
	PurchaseUpdate,
	SupplierCreate,
	SupplierListRead,
	SupplierRead,
	SupplierUpdate,
)
from agroledger.services.supplier_service import PurchaseService, SupplierService

router = APIRouter(prefix="/suppliers", tags=["suppliers"])
purchases_router = APIRouter(prefix="/purchases", tags=["purchases"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected supplier service failure")


@router.get("", response_model=SupplierListRead)
async def list_suppliers(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> SupplierListRead:
	service = SupplierService(db)
	try:
		suppliers = await service.list_suppliers(current_user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SupplierListRead(items=[SupplierRead.model_validate(supplier) for supplier in suppliers])


@router.post("", response_model=SupplierRead, status_code=status.HTTP_201_CREATED)
async def create_supplier(
	payload: SupplierCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> SupplierRead:
	service = SupplierService(db)
	try:
		supplier = await service.create_supplier(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SupplierRead.model_validate(supplier)


@router.get("/{supplier_id}", response_model=SupplierRead)
async def get_supplier(
	supplier_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> SupplierRead:
	service = SupplierService(db)
	try:
		supplier = await service.get_supplier(current_user.id, supplier_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SupplierRead.model_validate(supplier)


@router.put("/{supplier_id}", response_model=SupplierRead)
async def update_supplier(
	supplier_id: uuid.UUID,
	payload: SupplierUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> SupplierRead:
	service = SupplierService(db)
	try:
		supplier = await service.update_supplier(current_user.id, supplier_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SupplierRead.model_validate(supplier)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
	supplier_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> Response:
	service = SupplierService(db)
	try:
		await service.delete_supplier(current_user.id, supplier_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Purchases ───────────────────────────────────────────────────────────────


@purchases_router.get("", response_model=PurchaseListRead)
async def list_purchases(
	supplier: str | None = Query(default=None, max_length=255),
	product_name: str | None = Query(default=None, max_length=255),
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> PurchaseListRead:
	service = PurchaseService(db)
	try:
		purchases = await service.list_purchases(current_user.id, supplier, product_name)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PurchaseListRead(
		items=[PurchaseRead.model_validate(purchase) for purchase in purchases],
		total_spent=sum((purchase.total_cost for purchase in purchases), 0.0),
	)


@purchases_router.post("", response_model=PurchaseRead, status_code=status.HTTP_201_CREATED)
async def create_purchase(
	payload: PurchaseCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> PurchaseRead:
	service = PurchaseService(db)
	try:
		purchase = await service.create_purchase(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PurchaseRead.model_validate(purchase)


@purchases_router.get("/{purchase_id}", response_model=PurchaseRead)
async def get_purchase(
	purchase_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> PurchaseRead:
	service = PurchaseService(db)
	try:
		purchase = await service.get_purchase(current_user.id, purchase_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PurchaseRead.model_validate(purchase)


@purchases_router.put("/{purchase_id}", response_model=PurchaseRead)
async def update_purchase(
	purchase_id: uuid.UUID,
	payload: PurchaseUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> PurchaseRead:
	service = PurchaseService(db)
	try:
		purchase = await service.update_purchase(current_user.id, purchase_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PurchaseRead.model_validate(purchase)


@purchases_router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_purchase(
	purchase_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> Response:
	service = PurchaseService(db)
	try:
		await service.delete_purchase(current_user.id, purchase_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
