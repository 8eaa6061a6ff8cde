"""Activity CRUD, fertigation days and cost breakdown routes."""

from __future__ import annotations

import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import get_current_user
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.user import User
from agroledger.schemas.activity import (
	ActivityCreate,
	ActivityListRead,
	ActivityRead,
	ActivityUpdate,
	CostBreakdownRead,
	FertigationDayCreate,
	FertigationDayRead,
)
from agroledger.schemas.inventory import MovementRead
from agroledger.services.activity_service import ActivityService

router = APIRouter(prefix="/activities", tags=["activities"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected activity service failure")


@router.get("", response_model=ActivityListRead)
async def list_activities(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=10, ge=1, le=100),
	crop_type: str | None = Query(default=None, max_length=100),
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ActivityListRead:
	service = ActivityService(db)
	try:
		activities, total = await service.list_activities(current_user.id, page, limit, crop_type)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityListRead(
		items=[ActivityRead.model_validate(activity) for activity in activities],
		total=total,
		page=page,
		limit=limit,
		pages=math.ceil(total / limit) if total else 0,
	)


@router.post("", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
async def create_activity(
	payload: ActivityCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ActivityRead:
	service = ActivityService(db)
	try:
		activity = await service.create_activity(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityRead.model_validate(activity)


@router.get("/{activity_id}", response_model=ActivityRead)
async def get_activity(
	activity_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ActivityRead:
	service = ActivityService(db)
	try:
		activity = await service.get_activity(current_user.id, activity_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityRead.model_validate(activity)


@router.put("/{activity_id}", response_model=ActivityRead)
async def update_activity(
	activity_id: uuid.UUID,
	payload: ActivityUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> ActivityRead:
	service = ActivityService(db)
	try:
		activity = await service.update_activity(current_user.id, activity_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityRead.model_validate(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
	activity_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> Response:
	service = ActivityService(db)
	try:
		await service.delete_activity(current_user.id, activity_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
	"/{activity_id}/fertigation",
	response_model=FertigationDayRead,
	status_code=status.HTTP_201_CREATED,
)
async def append_fertigation_day(
	activity_id: uuid.UUID,
	payload: FertigationDayCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> FertigationDayRead:
	service = ActivityService(db)
	try:
		activity, day_index, movements = await service.append_fertigation_day(
			current_user.id,
			activity_id,
			payload,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FertigationDayRead(
		activity=ActivityRead.model_validate(activity),
		day_index=day_index,
		movements=[MovementRead.model_validate(movement) for movement in movements],
	)


@router.get("/{activity_id}/costs", response_model=CostBreakdownRead)
async def get_activity_costs(
	activity_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> CostBreakdownRead:
	service = ActivityService(db)
	try:
		activity, breakdown, hectares = await service.cost_breakdown(current_user.id, activity_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CostBreakdownRead(
		activity_id=activity.id,
		surface_area_ha=hectares,
		products_cost=breakdown.products_cost,
		fertigation_cost=breakdown.fertigation_cost,
		total_cost=breakdown.total_cost,
		cost_per_hectare=breakdown.cost_per_hectare,
	)
