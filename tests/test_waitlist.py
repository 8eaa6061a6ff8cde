from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from httpx import AsyncClient

from agroledger.config import Settings
from agroledger.errors import DuplicateRecordError
from agroledger.main import app
from agroledger.models.enums import WaitlistLanguageEnum
from agroledger.schemas.waitlist import WaitlistSignup
from agroledger.services.email_service import EmailService, notify_waitlist_signup
from agroledger.services.waitlist_service import WaitlistService, WaitlistStats
from tests.fakes import FakeAsyncSession, FakeRedis


def _entry(payload: WaitlistSignup, ip: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        email=payload.email,
        source=payload.source,
        language=payload.language,
        ip=ip,
        subscribed_at=datetime.now(UTC),
    )


@pytest.fixture
def sent_notifications(monkeypatch: pytest.MonkeyPatch) -> list[tuple[Any, ...]]:
    calls: list[tuple[Any, ...]] = []

    async def fake_notify(*args: Any) -> None:
        calls.append(args)

    monkeypatch.setattr("agroledger.routes.waitlist.notify_waitlist_signup", fake_notify)
    return calls


@pytest.mark.asyncio
async def test_signup_schedules_notification(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
    sent_notifications: list[tuple[Any, ...]],
) -> None:
    async def fake_signup(self: WaitlistService, payload: WaitlistSignup, ip: str, user_agent: str) -> object:
        assert user_agent == "pytest-agent"
        return _entry(payload, ip)

    monkeypatch.setattr(WaitlistService, "signup", fake_signup)

    response = await client.post(
        "/api/v1/waitlist",
        json={"email": " Grower@Example.COM ", "language": "en"},
        headers={"user-agent": "pytest-agent", "x-forwarded-for": "203.0.113.9, 10.0.0.1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "grower@example.com"
    assert body["message"].startswith("Thank you!")
    assert len(sent_notifications) == 1
    email, language, source, ip, _subscribed_at = sent_notifications[0]
    assert (email, language, source, ip) == ("grower@example.com", "en", "landing_page", "203.0.113.9")


@pytest.mark.asyncio
async def test_signup_defaults_to_spanish(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
    sent_notifications: list[tuple[Any, ...]],
) -> None:
    async def fake_signup(self: WaitlistService, payload: WaitlistSignup, ip: str, user_agent: str) -> object:
        return _entry(payload, ip)

    monkeypatch.setattr(WaitlistService, "signup", fake_signup)

    response = await client.post("/api/v1/waitlist", json={"email": "agricultor@example.es"})

    assert response.status_code == 201
    assert response.json()["language"] == "es"
    assert response.json()["message"].startswith("¡Gracias!")


@pytest.mark.asyncio
async def test_duplicate_signup_is_409_without_email(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
    sent_notifications: list[tuple[Any, ...]],
) -> None:
    async def fake_signup(self: WaitlistService, payload: WaitlistSignup, ip: str, user_agent: str) -> object:
        raise DuplicateRecordError("This email is already on the waitlist")

    monkeypatch.setattr(WaitlistService, "signup", fake_signup)

    response = await client.post("/api/v1/waitlist", json={"email": "grower@example.com"})

    assert response.status_code == 409
    assert sent_notifications == []


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["not-an-email", "a@b", "two@@example.com"])
async def test_signup_rejects_invalid_email(client: AsyncClient, email: str) -> None:
    response = await client.post("/api/v1/waitlist", json={"email": email})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_signup_attempts_are_rate_limited_per_ip(
    client: AsyncClient,
    fake_redis: FakeRedis,
    monkeypatch: pytest.MonkeyPatch,
    sent_notifications: list[tuple[Any, ...]],
) -> None:
    stub_settings = SimpleNamespace(
        waitlist_max_attempts=2,
        waitlist_window_seconds=900,
        rate_limit_user_per_minute=1000,
        rate_limit_anonymous_per_minute=1000,
    )
    monkeypatch.setattr("agroledger.middleware.rate_limit.get_settings", lambda: stub_settings)

    async def fake_signup(self: WaitlistService, payload: WaitlistSignup, ip: str, user_agent: str) -> object:
        return _entry(payload, ip)

    monkeypatch.setattr(WaitlistService, "signup", fake_signup)
    app.state.redis = fake_redis

    statuses = []
    for index in range(3):
        response = await client.post("/api/v1/waitlist", json={"email": f"user{index}@example.com"})
        statuses.append(response.status_code)

    assert statuses == [201, 201, 429]
    assert response.json()["detail"]["error"] == "rate_limited"
    assert int(response.headers["retry-after"]) >= 1
    assert len(sent_notifications) == 2


@pytest.mark.asyncio
async def test_waitlist_stats_requires_admin(client: AsyncClient) -> None:
    response = await client.get("/api/v1/waitlist/stats")

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "forbidden"


@pytest.mark.asyncio
async def test_waitlist_stats_for_admin(admin_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_stats(self: WaitlistService) -> WaitlistStats:
        return WaitlistStats(total=3, by_language={"es": 2, "en": 1}, by_source={"landing_page": 3})

    monkeypatch.setattr(WaitlistService, "stats", fake_stats)

    response = await admin_client.get("/api/v1/waitlist/stats")

    assert response.status_code == 200
    assert response.json() == {"total": 3, "by_language": {"es": 2, "en": 1}, "by_source": {"landing_page": 3}}


# ── Service level ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_signup_rejects_known_email(fake_db_session: FakeAsyncSession) -> None:
    result = MagicMock()
    result.first.return_value = (uuid.uuid4(),)
    fake_db_session.execute.return_value = result
    service = WaitlistService(fake_db_session)  # type: ignore[arg-type]

    with pytest.raises(DuplicateRecordError):
        await service.signup(WaitlistSignup(email="grower@example.com"), ip="127.0.0.1", user_agent="ua")

    fake_db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_signup_stores_active_entry(fake_db_session: FakeAsyncSession) -> None:
    result = MagicMock()
    result.first.return_value = None
    fake_db_session.execute.return_value = result
    service = WaitlistService(fake_db_session)  # type: ignore[arg-type]

    entry = await service.signup(
        WaitlistSignup(email="Grower@Example.com", language=WaitlistLanguageEnum.en),
        ip="127.0.0.1",
        user_agent="",
    )

    assert entry.email == "grower@example.com"
    assert entry.status == "active"
    assert entry.user_agent == "unknown"
    assert entry.subscribed_at.tzinfo is not None


# ── E-mail delivery ─────────────────────────────────────────────────────────


def _email_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "sendgrid_api_key": "SG.test-key",
        "sendgrid_base_url": "https://sendgrid.test/v3/mail/send",
        "email_from": "AgroLedger <no-reply@agroledger.local>",
        "waitlist_notify_to": "team@agroledger.local",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_email_send_posts_sendgrid_payload() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(202, headers={"x-message-id": "msg-1"})

    service = EmailService(_email_settings(), transport=httpx.MockTransport(handler))

    assert await service.send("team@agroledger.local", "Hello", "<p>hi</p>") is True

    request = captured[0]
    assert request.headers["authorization"] == "Bearer SG.test-key"
    body = json.loads(request.content)
    assert body["from"] == {"email": "no-reply@agroledger.local", "name": "AgroLedger"}
    assert body["personalizations"] == [{"to": [{"email": "team@agroledger.local"}]}]
    assert body["content"][0]["type"] == "text/html"


@pytest.mark.asyncio
async def test_email_send_without_api_key_is_skipped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    service = EmailService(_email_settings(sendgrid_api_key=""), transport=httpx.MockTransport(handler))

    assert await service.send("team@agroledger.local", "Hello", "<p>hi</p>") is False


@pytest.mark.asyncio
async def test_email_provider_errors_are_swallowed() -> None:
    def rejecting(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"errors": [{"message": "boom"}]})

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    for handler in (rejecting, unreachable):
        service = EmailService(_email_settings(), transport=httpx.MockTransport(handler))
        assert await service.send("team@agroledger.local", "Hello", "<p>hi</p>") is False


@pytest.mark.asyncio
async def test_waitlist_notification_never_raises() -> None:
    class ExplodingService(EmailService):
        async def send(self, to: str, subject: str, html_body: str) -> bool:
            raise RuntimeError("template crashed")

    await notify_waitlist_signup(
        "grower@example.com",
        "es",
        "landing_page",
        "127.0.0.1",
        datetime.now(UTC),
        service=ExplodingService(_email_settings()),
    )


@pytest.mark.asyncio
async def test_waitlist_notification_escapes_html() -> None:
    captured: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        return httpx.Response(202)

    service = EmailService(_email_settings(), transport=httpx.MockTransport(handler))

    await notify_waitlist_signup(
        "<b>x</b>@example.com",
        "es",
        "landing_page",
        "127.0.0.1",
        datetime(2024, 5, 1, tzinfo=UTC),
        service=service,
    )

    html_body = captured[0]["content"][0]["value"]
    assert "&lt;b&gt;" in html_body
    assert "Español" in html_body
    assert captured[0]["personalizations"][0]["to"][0]["email"] == "team@agroledger.local"
