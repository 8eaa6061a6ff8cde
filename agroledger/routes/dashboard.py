"""Dashboard aggregate routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import get_current_user
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.user import User
from agroledger.schemas.activity import ActivityRead
from agroledger.schemas.dashboard import DashboardStats, DashboardStatsRead, ExpenseBucket, ExpensesRead
from agroledger.schemas.inventory import InventoryItemRead
from agroledger.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected dashboard failure")


@router.get("/stats", response_model=DashboardStatsRead)
async def get_stats(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> DashboardStatsRead:
	service = DashboardService(db)
	try:
		snapshot = await service.get_stats(current_user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return DashboardStatsRead(
		stats=DashboardStats(
			total_expenses=snapshot.total_expenses,
			monthly_expenses=snapshot.monthly_expenses,
			activities_count=snapshot.activities_count,
			products_count=snapshot.products_count,
			low_stock_alerts=len(snapshot.low_stock_products),
		),
		recent_activities=[ActivityRead.model_validate(activity) for activity in snapshot.recent_activities],
		low_stock_products=[InventoryItemRead.model_validate(item) for item in snapshot.low_stock_products],
	)


@router.get("/expenses", response_model=ExpensesRead)
async def get_expenses(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ExpensesRead:
	service = DashboardService(db)
	try:
		by_crop, by_month = await service.get_expenses(current_user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ExpensesRead(
		by_crop_type=[ExpenseBucket(key=s.key, amount=s.amount, percentage=s.percentage) for s in by_crop],
		by_month=[ExpenseBucket(key=s.key, amount=s.amount, percentage=s.percentage) for s in by_month],
	)
