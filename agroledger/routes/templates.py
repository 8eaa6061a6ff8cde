"""Template routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import get_current_user
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.enums import TemplateKindEnum
from agroledger.models.user import User
from agroledger.schemas.templates import TemplateCreate, TemplateListRead, TemplateRead, TemplateUpdate
from agroledger.services.template_service import TemplateService

router = APIRouter(prefix="/templates", tags=["templates"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected template service failure")


@router.get("", response_model=TemplateListRead)
async def list_templates(
	kind: TemplateKindEnum | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> TemplateListRead:
	service = TemplateService(db)
	try:
		templates = await service.list_templates(current_user.id, kind)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TemplateListRead(items=[TemplateRead.model_validate(template) for template in templates])


@router.post("", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(
	payload: TemplateCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> TemplateRead:
	service = TemplateService(db)
	try:
		template = await service.create_template(current_user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TemplateRead.model_validate(template)


@router.put("/{template_id}", response_model=TemplateRead)
async def update_template(
	template_id: uuid.UUID,
	payload: TemplateUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> TemplateRead:
	service = TemplateService(db)
	try:
		template = await service.update_template(current_user.id, template_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TemplateRead.model_validate(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
	template_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> Response:
	service = TemplateService(db)
	try:
		await service.delete_template(current_user.id, template_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
