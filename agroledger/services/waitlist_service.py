"""Public waitlist sign-ups and admin statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.errors import DuplicateRecordError
from agroledger.models.enums import WaitlistLanguageEnum
from agroledger.models.waitlist import WaitlistEntry
from agroledger.schemas.waitlist import WaitlistSignup

ACTIVE_STATUS = "active"

_THANK_YOU = {
	WaitlistLanguageEnum.es: "¡Gracias! Te hemos añadido a la lista de espera. Te contactaremos pronto.",
	WaitlistLanguageEnum.en: "Thank you! We have added you to the waitlist. We will contact you soon.",
}

logger = structlog.get_logger("agroledger.waitlist")


@dataclass(frozen=True, slots=True)
class WaitlistStats:
	total: int
	by_language: dict[str, int]
	by_source: dict[str, int]


def thank_you_message(language: WaitlistLanguageEnum) -> str:
	return _THANK_YOU[WaitlistLanguageEnum(language)]


class WaitlistService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def signup(self, payload: WaitlistSignup, ip: str, user_agent: str) -> WaitlistEntry:
		existing = await self.db.execute(select(WaitlistEntry.id).where(WaitlistEntry.email == payload.email))
		if existing.first() is not None:
			raise DuplicateRecordError("This email is already on the waitlist")

		entry = WaitlistEntry(
			email=payload.email,
			source=payload.source,
			language=payload.language,
			ip=ip,
			user_agent=user_agent or "unknown",
			status=ACTIVE_STATUS,
			subscribed_at=datetime.now(UTC),
		)
		self.db.add(entry)
		try:
			async with self.db.begin_nested():
				await self.db.flush()
		except IntegrityError as exc:
			raise DuplicateRecordError("This email is already on the waitlist") from exc
		await self.db.refresh(entry)
		logger.info("waitlist_signup", entry_id=str(entry.id), language=str(entry.language), source=entry.source)
		return entry

	async def stats(self) -> WaitlistStats:
		active = WaitlistEntry.status == ACTIVE_STATUS
		total = await self.db.scalar(select(func.count()).select_from(WaitlistEntry).where(active))
		language_rows = await self.db.execute(
			select(WaitlistEntry.language, func.count()).where(active).group_by(WaitlistEntry.language)
		)
		source_rows = await self.db.execute(
			select(WaitlistEntry.source, func.count()).where(active).group_by(WaitlistEntry.source)
		)
		return WaitlistStats(
			total=int(total or 0),
			by_language={str(language): int(count) for language, count in language_rows.all()},
			by_source={str(source): int(count) for source, count in source_rows.all()},
		)
