"""Best-effort transactional e-mail through the SendGrid v3 HTTP API.

Delivery is fire-and-forget: callers schedule ``notify_waitlist_signup`` as a
background task and never see a failure.  Errors (including a missing API key)
are logged and dropped.
"""

from __future__ import annotations

import html
from datetime import datetime
from email.utils import parseaddr
from typing import Any

import httpx
import structlog

from agroledger.config import Settings, get_settings

logger = structlog.get_logger("agroledger.email")

_LANGUAGE_LABELS = {"es": "Español", "en": "English"}


class EmailService:
	def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
		self.settings = settings or get_settings()
		self.transport = transport

	def _sender(self) -> dict[str, str]:
		name, address = parseaddr(self.settings.email_from)
		sender = {"email": address or self.settings.email_from}
		if name:
			sender["name"] = name
		return sender

	def build_payload(self, to: str, subject: str, html_body: str) -> dict[str, Any]:
		return {
			"personalizations": [{"to": [{"email": to}]}],
			"from": self._sender(),
			"subject": subject,
			"content": [{"type": "text/html", "value": html_body}],
		}

	async def send(self, to: str, subject: str, html_body: str) -> bool:
		if not self.settings.sendgrid_api_key:
			logger.warning("email_skipped", reason="sendgrid_api_key_missing", to=to, subject=subject)
			return False

		headers = {
			"authorization": f"Bearer {self.settings.sendgrid_api_key}",
			"content-type": "application/json",
		}
		try:
			async with httpx.AsyncClient(
				timeout=self.settings.sendgrid_timeout_seconds,
				transport=self.transport,
			) as client:
				response = await client.post(
					self.settings.sendgrid_base_url,
					headers=headers,
					json=self.build_payload(to, subject, html_body),
				)
				response.raise_for_status()
		except httpx.HTTPError as exc:
			logger.error("email_send_failed", to=to, subject=subject, error=str(exc))
			return False

		logger.info(
			"email_sent",
			to=to,
			subject=subject,
			message_id=response.headers.get("x-message-id"),
		)
		return True


def waitlist_notification_html(email: str, language: str, source: str, ip: str, subscribed_at: datetime) -> str:
	return (
		"<h2>New waitlist sign-up</h2>"
		f"<p><strong>Email:</strong> {html.escape(email)}</p>"
		f"<p><strong>Language:</strong> {_LANGUAGE_LABELS.get(language, language)}</p>"
		f"<p><strong>Source:</strong> {html.escape(source)}</p>"
		f"<p><strong>Date:</strong> {subscribed_at.isoformat()}</p>"
		f"<p><strong>IP:</strong> {html.escape(ip)}</p>"
	)


async def notify_waitlist_signup(
	email: str,
	language: str,
	source: str,
	ip: str,
	subscribed_at: datetime,
	service: EmailService | None = None,
) -> None:
	"""Background task body; never raises."""
	service = service or EmailService()
	try:
		await service.send(
			service.settings.waitlist_notify_to,
			"New waitlist subscription",
			waitlist_notification_html(email, language, source, ip, subscribed_at),
		)
	except Exception as exc:  # noqa: BLE001
		logger.exception("waitlist_notification_failed", email=email, error=str(exc))
