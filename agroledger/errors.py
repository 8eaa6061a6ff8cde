"""Domain errors raised by services and mapped to HTTP responses at the edge."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class NotFoundError(LookupError):
	"""Referenced record is absent for the requesting owner."""

	code = "not_found"


class UnitMismatchError(ValueError):
	"""Requested conversion between incompatible (or unknown) units."""

	code = "unit_mismatch"


class DuplicateRecordError(ValueError):
	"""A uniqueness constraint (per owner or global) would be violated."""

	code = "duplicate"


class InsufficientStockError(ValueError):
	"""A subtract movement would drive an item balance below zero."""

	code = "insufficient_stock"

	def __init__(self, item_id: Any, available: float, requested: float, unit: str):
		self.item_id = item_id
		self.available = available
		self.requested = requested
		self.unit = unit
		super().__init__(
			f"Insufficient stock for item {item_id}: available {available} {unit}, requested {requested} {unit}"
		)


class ConcurrentUpdateError(RuntimeError):
	"""Compare-and-set retries were exhausted under contention."""

	code = "concurrent_update"


def _detail(exc: Exception, code: str, **extra: Any) -> dict[str, Any]:
	return {"error": code, "message": str(exc), **extra}


def map_service_error(exc: Exception, fallback: str) -> HTTPException:
	"""Translate a service exception into an ``HTTPException``."""
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, InsufficientStockError):
		return HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail=_detail(
				exc,
				exc.code,
				item_id=str(exc.item_id),
				available=exc.available,
				requested=exc.requested,
				unit=exc.unit,
			),
		)
	if isinstance(exc, (DuplicateRecordError, ConcurrentUpdateError)):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_detail(exc, exc.code))
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_detail(exc, NotFoundError.code))
	if isinstance(exc, UnitMismatchError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_detail(exc, exc.code))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_detail(exc, "invalid_request"))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail={"error": "internal_error", "message": fallback},
	)
