"""Pydantic schemas for the public waitlist."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from agroledger.models.enums import WaitlistLanguageEnum
from agroledger.schemas.common import normalize_email


class WaitlistSignup(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	source: str = Field(default="landing_page", min_length=1, max_length=64)
	language: WaitlistLanguageEnum = WaitlistLanguageEnum.es

	@field_validator("email")
	@classmethod
	def _email(cls, value: str) -> str:
		return normalize_email(value)


class WaitlistSignupRead(BaseModel):
	id: uuid.UUID
	email: str
	language: WaitlistLanguageEnum
	subscribed_at: datetime
	message: str


class WaitlistStatsRead(BaseModel):
	total: int
	by_language: dict[str, int]
	by_source: dict[str, int]
