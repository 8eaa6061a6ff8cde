"""Registration, login, token refresh and current-user routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import auth_http_error, get_current_user
from agroledger.auth.jwt import AuthError, TokenPair
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.models.user import User
from agroledger.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenPairRead, UserRead
from agroledger.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, AuthError):
		return auth_http_error(exc)
	return map_service_error(exc, "Unexpected authentication failure")


def _to_token_read(pair: TokenPair) -> TokenPairRead:
	return TokenPairRead(
		access_token=pair.access_token,
		refresh_token=pair.refresh_token,
		token_type=pair.token_type,
		expires_in=pair.expires_in,
	)


@router.post("/register", response_model=TokenPairRead, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)) -> TokenPairRead:
	service = AuthService(db)
	try:
		_user, pair = await service.register(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_token_read(pair)


@router.post("/login", response_model=TokenPairRead)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenPairRead:
	service = AuthService(db)
	try:
		_user, pair = await service.login(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_token_read(pair)


@router.post("/refresh", response_model=TokenPairRead)
async def refresh(payload: RefreshRequest, db: AsyncSession = Depends(get_db)) -> TokenPairRead:
	service = AuthService(db)
	try:
		pair = await service.refresh(payload.refresh_token)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_token_read(pair)


@router.get("/me", response_model=UserRead)
async def me(current_user: User = Depends(get_current_user)) -> UserRead:
	return UserRead.model_validate(current_user)
