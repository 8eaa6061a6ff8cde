"""Reusable fertigation / phytosanitary templates, unique per (owner, name, kind)."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.errors import DuplicateRecordError, NotFoundError
from agroledger.models.enums import TemplateKindEnum
from agroledger.models.templates import Template
from agroledger.schemas.templates import TemplateCreate, TemplateUpdate


class TemplateService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_templates(self, owner_id: uuid.UUID, kind: TemplateKindEnum | None = None) -> list[Template]:
		stmt = select(Template).where(Template.owner_id == owner_id)
		if kind is not None:
			stmt = stmt.where(Template.kind == kind)
		rows = await self.db.execute(stmt.order_by(Template.updated_at.desc()))
		return list(rows.scalars().all())

	async def get_template(self, owner_id: uuid.UUID, template_id: uuid.UUID) -> Template:
		stmt = select(Template).where(Template.id == template_id, Template.owner_id == owner_id)
		row = await self.db.execute(stmt)
		template = row.scalar_one_or_none()
		if template is None:
			raise NotFoundError(f"Template {template_id} not found")
		return template

	async def _ensure_unique(
		self,
		owner_id: uuid.UUID,
		name: str,
		kind: TemplateKindEnum,
		exclude_id: uuid.UUID | None = None,
	) -> None:
		stmt = select(Template.id).where(
			Template.owner_id == owner_id,
			Template.name == name,
			Template.kind == kind,
		)
		if exclude_id is not None:
			stmt = stmt.where(Template.id != exclude_id)
		if (await self.db.execute(stmt)).first() is not None:
			raise DuplicateRecordError(f"A {kind} template named {name!r} already exists")

	async def _flush_unique(self, name: str, kind: TemplateKindEnum) -> None:
		# Concurrent inserts race past the pre-check; the unique index decides.
		try:
			async with self.db.begin_nested():
				await self.db.flush()
		except IntegrityError as exc:
			raise DuplicateRecordError(f"A {kind} template named {name!r} already exists") from exc

	async def create_template(self, owner_id: uuid.UUID, payload: TemplateCreate) -> Template:
		await self._ensure_unique(owner_id, payload.name, payload.kind)
		template = Template(
			owner_id=owner_id,
			name=payload.name,
			kind=payload.kind,
			payload=payload.payload,
		)
		self.db.add(template)
		await self._flush_unique(payload.name, payload.kind)
		await self.db.refresh(template)
		return template

	async def update_template(
		self,
		owner_id: uuid.UUID,
		template_id: uuid.UUID,
		payload: TemplateUpdate,
	) -> Template:
		template = await self.get_template(owner_id, template_id)
		if payload.name is not None and payload.name != template.name:
			await self._ensure_unique(owner_id, payload.name, template.kind, exclude_id=template.id)
			template.name = payload.name
		if payload.payload is not None:
			template.payload = payload.payload
		await self._flush_unique(template.name, template.kind)
		await self.db.refresh(template)
		return template

	async def delete_template(self, owner_id: uuid.UUID, template_id: uuid.UUID) -> None:
		template = await self.get_template(owner_id, template_id)
		await self.db.delete(template)
		await self.db.flush()
