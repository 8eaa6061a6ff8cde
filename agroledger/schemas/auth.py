"""Pydantic schemas for registration, login and token exchange."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agroledger.models.enums import UserRoleEnum
from agroledger.schemas.common import normalize_email


class RegisterRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	name: str = Field(min_length=1, max_length=120)
	password: str = Field(min_length=8, max_length=128)

	@field_validator("email")
	@classmethod
	def _email(cls, value: str) -> str:
		return normalize_email(value)


class LoginRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	password: str = Field(min_length=1, max_length=128)

	@field_validator("email")
	@classmethod
	def _email(cls, value: str) -> str:
		return value.strip().lower()


class RefreshRequest(BaseModel):
	refresh_token: str = Field(min_length=1)


class TokenPairRead(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"
	expires_in: int


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	email: str
	name: str
	role: UserRoleEnum
	is_active: bool
