"""Public waitlist sign-up and admin statistics routes."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.auth.dependencies import client_ip, require_role
from agroledger.database import get_db
from agroledger.errors import map_service_error
from agroledger.middleware.rate_limit import limit_waitlist_signups
from agroledger.models.enums import UserRoleEnum
from agroledger.models.user import User
from agroledger.schemas.waitlist import WaitlistSignup, WaitlistSignupRead, WaitlistStatsRead
from agroledger.services.email_service import notify_waitlist_signup
from agroledger.services.waitlist_service import WaitlistService, thank_you_message

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected waitlist failure")


@router.post(
	"",
	response_model=WaitlistSignupRead,
	status_code=status.HTTP_201_CREATED,
	dependencies=[Depends(limit_waitlist_signups)],
)
async def join_waitlist(
	payload: WaitlistSignup,
	request: Request,
	background_tasks: BackgroundTasks,
	db: AsyncSession = Depends(get_db),
) -> WaitlistSignupRead:
	service = WaitlistService(db)
	try:
		entry = await service.signup(
			payload,
			ip=client_ip(request),
			user_agent=request.headers.get("user-agent", "unknown")[:512],
		)
	except Exception as exc:
		raise _map_error(exc) from exc

	background_tasks.add_task(
		notify_waitlist_signup,
		entry.email,
		str(entry.language),
		entry.source,
		entry.ip,
		entry.subscribed_at,
	)
	return WaitlistSignupRead(
		id=entry.id,
		email=entry.email,
		language=entry.language,
		subscribed_at=entry.subscribed_at,
		message=thank_you_message(entry.language),
	)


@router.get("/stats", response_model=WaitlistStatsRead)
async def waitlist_stats(
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_role(UserRoleEnum.admin)),
) -> WaitlistStatsRead:
	service = WaitlistService(db)
	try:
		stats = await service.stats()
	except Exception as exc:
		raise _map_error(exc) from exc
	return WaitlistStatsRead(total=stats.total, by_language=stats.by_language, by_source=stats.by_source)
