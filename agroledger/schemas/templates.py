"""Pydantic schemas for reusable day-record templates."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agroledger.models.enums import TemplateKindEnum


class TemplateCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	kind: TemplateKindEnum
	payload: dict[str, Any] = Field(default_factory=dict)


class TemplateUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	payload: dict[str, Any] | None = None


class TemplateRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	owner_id: uuid.UUID
	name: str
	kind: TemplateKindEnum
	payload: dict[str, Any]
	created_at: datetime
	updated_at: datetime


class TemplateListRead(BaseModel):
	items: list[TemplateRead]
