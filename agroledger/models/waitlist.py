"""WaitlistEntry ORM model: public sign-ups from the landing page."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from agroledger.models.base import Base, UUIDPrimaryKeyMixin
from agroledger.models.enums import WaitlistLanguageEnum


class WaitlistEntry(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "waitlist_entries"

    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    source: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="landing_page",
        server_default=text("'landing_page'"),
    )
    language: Mapped[WaitlistLanguageEnum] = mapped_column(
        Enum(
            WaitlistLanguageEnum,
            name="waitlist_language",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=WaitlistLanguageEnum.es,
        server_default=WaitlistLanguageEnum.es.value,
    )
    ip: Mapped[str] = mapped_column(String(64), nullable=False, default="unknown")
    user_agent: Mapped[str] = mapped_column(
        String(512), nullable=False, default="unknown"
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="active",
        server_default=text("'active'"),
    )
    subscribed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WaitlistEntry id={self.id} email={self.email!r}>"
