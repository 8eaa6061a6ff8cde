"""Template ORM model: reusable pre-filled day records."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from agroledger.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from agroledger.models.enums import TemplateKindEnum


class Template(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Named fertigation/phytosanitary payload, unique per (owner, name, kind)."""

    __tablename__ = "templates"
    __table_args__ = (
        UniqueConstraint(
            "owner_id", "name", "kind", name="uq_templates_owner_name_kind"
        ),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[TemplateKindEnum] = mapped_column(
        Enum(
            TemplateKindEnum,
            name="template_kind",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    def __repr__(self) -> str:
        return f"<Template id={self.id} name={self.name!r} kind={self.kind}>"
