"""Owner-scoped product price catalog."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.errors import NotFoundError
from agroledger.models.enums import ProductTypeEnum
from agroledger.models.products import ProductPrice
from agroledger.schemas.products import ProductCreate, ProductUpdate

# Columns that cannot hold NULL; an explicit null in an update leaves them as they are.
REQUIRED_PRODUCT_FIELDS = frozenset({"name", "type", "price_per_unit", "unit"})

logger = structlog.get_logger("agroledger.products")


class ProductService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_products(
		self,
		owner_id: uuid.UUID,
		product_type: ProductTypeEnum | None = None,
	) -> list[ProductPrice]:
		stmt = select(ProductPrice).where(
			ProductPrice.owner_id == owner_id,
			ProductPrice.active.is_(True),
		)
		if product_type is not None:
			stmt = stmt.where(ProductPrice.type == product_type)
		rows = await self.db.execute(stmt.order_by(ProductPrice.name.asc()))
		return list(rows.scalars().all())

	async def get_product(
		self,
		owner_id: uuid.UUID,
		product_id: uuid.UUID,
		include_inactive: bool = False,
	) -> ProductPrice:
		stmt = select(ProductPrice).where(
			ProductPrice.id == product_id,
			ProductPrice.owner_id == owner_id,
		)
		if not include_inactive:
			stmt = stmt.where(ProductPrice.active.is_(True))
		row = await self.db.execute(stmt)
		product = row.scalar_one_or_none()
		if product is None:
			raise NotFoundError(f"Product {product_id} not found")
		return product

	async def create_product(self, owner_id: uuid.UUID, payload: ProductCreate) -> ProductPrice:
		product = ProductPrice(owner_id=owner_id, active=True, **payload.model_dump())
		self.db.add(product)
		await self.db.flush()
		await self.db.refresh(product)
		logger.info("product_created", product_id=str(product.id), type=str(product.type))
		return product

	async def update_product(
		self,
		owner_id: uuid.UUID,
		product_id: uuid.UUID,
		payload: ProductUpdate,
	) -> ProductPrice:
		product = await self.get_product(owner_id, product_id)
		for field, value in payload.model_dump(exclude_unset=True).items():
			if value is None and field in REQUIRED_PRODUCT_FIELDS:
				continue
			setattr(product, field, value)
		await self.db.flush()
		await self.db.refresh(product)
		return product

	async def delete_product(self, owner_id: uuid.UUID, product_id: uuid.UUID) -> None:
		product = await self.get_product(owner_id, product_id)
		product.active = False
		await self.db.flush()
