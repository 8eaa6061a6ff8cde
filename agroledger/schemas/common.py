"""Field helpers shared by several request schemas."""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value: str) -> str:
	email = value.strip().lower()
	if not _EMAIL_RE.match(email):
		raise ValueError("invalid email address")
	return email


def blank_to_none(value: str | None) -> str | None:
	if value is None:
		return None
	stripped = value.strip()
	return stripped or None
