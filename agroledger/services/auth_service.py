"""User registration, password login and refresh-token exchange."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import hash_password, verify_password
from agroledger.auth.jwt import AuthError, TokenPair, decode_token, issue_token_pair, subject_user_id
from agroledger.errors import DuplicateRecordError
from agroledger.models.enums import UserRoleEnum
from agroledger.models.user import User
from agroledger.schemas.auth import LoginRequest, RegisterRequest

logger = structlog.get_logger("agroledger.auth")


class AuthService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def _find_by_email(self, email: str) -> User | None:
		row = await self.db.execute(select(User).where(User.email == email))
		return row.scalar_one_or_none()

	async def register(self, payload: RegisterRequest) -> tuple[User, TokenPair]:
		if await self._find_by_email(payload.email) is not None:
			raise DuplicateRecordError("An account with this email already exists")

		user = User(
			email=payload.email,
			name=payload.name,
			hashed_password=hash_password(payload.password),
			role=UserRoleEnum.farmer,
			is_active=True,
		)
		self.db.add(user)
		try:
			async with self.db.begin_nested():
				await self.db.flush()
		except IntegrityError as exc:
			raise DuplicateRecordError("An account with this email already exists") from exc
		await self.db.refresh(user)
		logger.info("user_registered", user_id=str(user.id))
		return user, issue_token_pair(user.id)

	async def login(self, payload: LoginRequest) -> tuple[User, TokenPair]:
		user = await self._find_by_email(payload.email)
		if user is None or not verify_password(payload.password, user.hashed_password):
			raise AuthError(code="invalid_credentials", detail="Invalid email or password")
		if not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")
		return user, issue_token_pair(user.id)

	async def refresh(self, refresh_token: str) -> TokenPair:
		payload = decode_token(refresh_token, expected_type="refresh")
		user_id = subject_user_id(payload)
		row = await self.db.execute(select(User).where(User.id == user_id))
		user = row.scalar_one_or_none()
		if user is None or not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")
		return issue_token_pair(user.id)
