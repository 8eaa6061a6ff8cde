"""Supplier directory and product purchase ledger."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.errors import NotFoundError
from agroledger.models.enums import MovementOperationEnum
from agroledger.models.suppliers import ProductPurchase, Supplier
from agroledger.schemas.suppliers import PurchaseCreate, PurchaseUpdate, SupplierCreate, SupplierUpdate
from agroledger.services.inventory_service import InventoryService
from agroledger.services.ledger import MovementRequest

logger = structlog.get_logger("agroledger.suppliers")


def purchase_total(quantity: float, price_per_unit: float) -> float:
	return float(quantity) * float(price_per_unit)


class SupplierService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_suppliers(self, owner_id: uuid.UUID) -> list[Supplier]:
		stmt = (
			select(Supplier)
			.where(Supplier.owner_id == owner_id, Supplier.active.is_(True))
			.order_by(Supplier.name.asc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_supplier(self, owner_id: uuid.UUID, supplier_id: uuid.UUID) -> Supplier:
		stmt = select(Supplier).where(
			Supplier.id == supplier_id,
			Supplier.owner_id == owner_id,
			Supplier.active.is_(True),
		)
		row = await self.db.execute(stmt)
		supplier = row.scalar_one_or_none()
		if supplier is None:
			raise NotFoundError(f"Supplier {supplier_id} not found")
		return supplier

	async def create_supplier(self, owner_id: uuid.UUID, payload: SupplierCreate) -> Supplier:
		supplier = Supplier(owner_id=owner_id, active=True, **payload.model_dump())
		self.db.add(supplier)
		await self.db.flush()
		await self.db.refresh(supplier)
		return supplier

	async def update_supplier(
		self,
		owner_id: uuid.UUID,
		supplier_id: uuid.UUID,
		payload: SupplierUpdate,
	) -> Supplier:
		supplier = await self.get_supplier(owner_id, supplier_id)
		for field, value in payload.model_dump(exclude_unset=True).items():
			if field == "name" and value is None:
				continue
			setattr(supplier, field, value)
		await self.db.flush()
		await self.db.refresh(supplier)
		return supplier

	async def delete_supplier(self, owner_id: uuid.UUID, supplier_id: uuid.UUID) -> None:
		supplier = await self.get_supplier(owner_id, supplier_id)
		supplier.active = False
		await self.db.flush()


class PurchaseService:
	"""Purchase records; a purchase linked to an item is received into stock."""

	def __init__(self, db: AsyncSession, inventory: InventoryService | None = None):
		self.db = db
		self.inventory = inventory or InventoryService(db)

	async def list_purchases(
		self,
		owner_id: uuid.UUID,
		supplier: str | None = None,
		product_name: str | None = None,
	) -> list[ProductPurchase]:
		stmt = select(ProductPurchase).where(ProductPurchase.owner_id == owner_id)
		if supplier:
			stmt = stmt.where(ProductPurchase.supplier.ilike(f"%{supplier}%"))
		if product_name:
			stmt = stmt.where(ProductPurchase.product_name.ilike(f"%{product_name}%"))
		stmt = stmt.order_by(ProductPurchase.purchase_date.desc(), ProductPurchase.created_at.desc())
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_purchase(self, owner_id: uuid.UUID, purchase_id: uuid.UUID) -> ProductPurchase:
		stmt = select(ProductPurchase).where(
			ProductPurchase.id == purchase_id,
			ProductPurchase.owner_id == owner_id,
		)
		row = await self.db.execute(stmt)
		purchase = row.scalar_one_or_none()
		if purchase is None:
			raise NotFoundError(f"Purchase {purchase_id} not found")
		return purchase

	async def create_purchase(self, owner_id: uuid.UUID, payload: PurchaseCreate) -> ProductPurchase:
		purchase = ProductPurchase(
			owner_id=owner_id,
			total_cost=purchase_total(payload.quantity, payload.price_per_unit),
			**payload.model_dump(),
		)
		self.db.add(purchase)
		await self.db.flush()
		await self.db.refresh(purchase)

		if purchase.inventory_item_id is not None and purchase.quantity > 0:
			await self.inventory.ledger.record_movement(
				owner_id,
				MovementRequest(
					item_id=purchase.inventory_item_id,
					operation=MovementOperationEnum.add,
					amount=purchase.quantity,
					unit=purchase.unit,
					reason=f"purchase {purchase.id} from {purchase.supplier}"[:255],
				),
			)
			await self.inventory.refresh_alerts_for(owner_id, {purchase.inventory_item_id})
			logger.info(
				"purchase_received_into_stock",
				purchase_id=str(purchase.id),
				item_id=str(purchase.inventory_item_id),
				quantity=purchase.quantity,
				unit=purchase.unit,
			)
		return purchase

	async def update_purchase(
		self,
		owner_id: uuid.UUID,
		purchase_id: uuid.UUID,
		payload: PurchaseUpdate,
	) -> ProductPurchase:
		purchase = await self.get_purchase(owner_id, purchase_id)
		for field, value in payload.model_dump(exclude_unset=True).items():
			if value is None and field != "notes":
				continue
			setattr(purchase, field, value)
		purchase.total_cost = purchase_total(purchase.quantity, purchase.price_per_unit)
		await self.db.flush()
		await self.db.refresh(purchase)
		return purchase

	async def delete_purchase(self, owner_id: uuid.UUID, purchase_id: uuid.UUID) -> None:
		purchase = await self.get_purchase(owner_id, purchase_id)
		await self.db.delete(purchase)
		await self.db.flush()
