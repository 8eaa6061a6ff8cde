from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from agroledger.errors import DuplicateRecordError
from agroledger.models.enums import TemplateKindEnum
from agroledger.schemas.templates import TemplateCreate, TemplateUpdate
from agroledger.services.template_service import TemplateService
from tests.factories import make_template
from tests.fakes import FakeAsyncSession


def _first_returns(fake_db_session: FakeAsyncSession, row: object) -> None:
    result = MagicMock()
    result.first.return_value = row
    result.scalar_one_or_none.return_value = row
    fake_db_session.execute.return_value = result


@pytest.mark.asyncio
async def test_create_template(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(self: TemplateService, owner_id: uuid.UUID, payload: TemplateCreate) -> object:
        return make_template(owner_id, name=payload.name, kind=payload.kind, payload=payload.payload)

    monkeypatch.setattr(TemplateService, "create_template", fake_create)

    response = await client.post(
        "/api/v1/templates",
        json={"name": "Copper spray", "kind": "phytosanitary", "payload": {"products": []}},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["kind"] == "phytosanitary"
    assert body["payload"] == {"products": []}


@pytest.mark.asyncio
async def test_duplicate_template_is_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(self: TemplateService, owner_id: uuid.UUID, payload: TemplateCreate) -> object:
        raise DuplicateRecordError("A fertigation template named 'Weekly feed' already exists")

    monkeypatch.setattr(TemplateService, "create_template", fake_create)

    response = await client.post("/api/v1/templates", json={"name": "Weekly feed", "kind": "fertigation"})

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "duplicate"


@pytest.mark.asyncio
async def test_list_templates_filters_by_kind(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[object] = []

    async def fake_list(self: TemplateService, owner_id: uuid.UUID, kind: TemplateKindEnum | None) -> list[object]:
        captured.append(kind)
        return [make_template(owner_id)]

    monkeypatch.setattr(TemplateService, "list_templates", fake_list)

    response = await client.get("/api/v1/templates", params={"kind": "fertigation"})

    assert response.status_code == 200
    assert captured == [TemplateKindEnum.fertigation]
    assert len(response.json()["items"]) == 1


@pytest.mark.asyncio
async def test_list_templates_rejects_unknown_kind(client: AsyncClient) -> None:
    response = await client.get("/api/v1/templates", params={"kind": "harvest"})

    assert response.status_code == 422


# ── Service level ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_rejects_existing_name(fake_db_session: FakeAsyncSession) -> None:
    _first_returns(fake_db_session, (uuid.uuid4(),))
    service = TemplateService(fake_db_session)  # type: ignore[arg-type]

    with pytest.raises(DuplicateRecordError):
        await service.create_template(
            uuid.uuid4(),
            TemplateCreate(name="Weekly feed", kind=TemplateKindEnum.fertigation),
        )

    fake_db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_maps_unique_violation_race(fake_db_session: FakeAsyncSession) -> None:
    _first_returns(fake_db_session, None)
    fake_db_session.flush.side_effect = IntegrityError("INSERT INTO templates", {}, Exception("duplicate key"))
    service = TemplateService(fake_db_session)  # type: ignore[arg-type]

    with pytest.raises(DuplicateRecordError):
        await service.create_template(
            uuid.uuid4(),
            TemplateCreate(name="Weekly feed", kind=TemplateKindEnum.fertigation),
        )


@pytest.mark.asyncio
async def test_same_name_different_kind_is_allowed(fake_db_session: FakeAsyncSession) -> None:
    _first_returns(fake_db_session, None)
    service = TemplateService(fake_db_session)  # type: ignore[arg-type]

    template = await service.create_template(
        uuid.uuid4(),
        TemplateCreate(name="Weekly feed", kind=TemplateKindEnum.phytosanitary, payload={"a": 1}),
    )

    assert template.kind == TemplateKindEnum.phytosanitary
    assert template.payload == {"a": 1}
    fake_db_session.begin_nested.assert_called_once()


@pytest.mark.asyncio
async def test_update_keeps_name_when_omitted(fake_db_session: FakeAsyncSession) -> None:
    template = make_template()
    _first_returns(fake_db_session, template)
    service = TemplateService(fake_db_session)  # type: ignore[arg-type]

    updated = await service.update_template(template.owner_id, template.id, TemplateUpdate(payload={"b": 2}))

    assert updated.name == "Weekly feed"
    assert updated.payload == {"b": 2}
