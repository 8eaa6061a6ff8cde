"""Product price catalog routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import get_current_user
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.enums import ProductTypeEnum
from agroledger.models.user import User
from agroledger.schemas.products import ProductCreate, ProductListRead, ProductRead, ProductUpdate
from agroledger.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected product service failure")


@router.get("", response_model=ProductListRead)
async def list_products(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ProductListRead:
	service = ProductService(db)
	try:
		products = await service.list_products(current_user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ProductListRead(items=[ProductRead.model_validate(product) for product in products])


@router.get("/type/{product_type}", response_model=ProductListRead)
async def list_products_by_type(
	product_type: ProductTypeEnum,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ProductListRead:
	service = ProductService(db)
	try:
		products = await service.list_products(current_user.id, product_type)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ProductListRead(items=[ProductRead.model_validate(product) for product in products])


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
	payload: ProductCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ProductRead:
	service = ProductService(db)
	try:
		product = await service.create_product(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ProductRead.model_validate(product)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(
	product_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ProductRead:
	service = ProductService(db)
	try:
		product = await service.get_product(current_user.id, product_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ProductRead.model_validate(product)


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
	product_id: uuid.UUID,
	payload: ProductUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ProductRead:
	service = ProductService(db)
	try:
		product = await service.update_product(current_user.id, product_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ProductRead.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
	product_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> Response:
	service = ProductService(db)
	try:
		await service.delete_product(current_user.id, product_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
