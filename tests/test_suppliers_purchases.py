from __future__ import annotations

import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from agroledger.errors import InsufficientStockError, NotFoundError, UnitMismatchError
from agroledger.schemas.suppliers import PurchaseCreate, PurchaseUpdate, SupplierCreate
from agroledger.services.ledger import InventoryLedger
from agroledger.services.supplier_service import PurchaseService, SupplierService, purchase_total
from tests.factories import make_purchase, make_supplier
from tests.fakes import FakeAsyncSession, InMemoryLedgerStore


@pytest.mark.asyncio
async def test_create_supplier_normalises_email(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def fake_create(self: SupplierService, owner_id: uuid.UUID, payload: SupplierCreate) -> object:
        captured["email"] = payload.email
        return make_supplier(owner_id, email=payload.email)

    monkeypatch.setattr(SupplierService, "create_supplier", fake_create)

    response = await client.post("/api/v1/suppliers", json={"name": "AgroSur", "email": "Ventas@AgroSur.ES", "rating": 5})

    assert response.status_code == 201
    assert captured["email"] == "ventas@agrosur.es"
    assert response.json()["email"] == "ventas@agrosur.es"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"name": "A", "email": "not-an-email"}, {"name": "A", "rating": 6}, {"name": ""}])
async def test_create_supplier_validation(client: AsyncClient, payload: dict[str, object]) -> None:
    response = await client.post("/api/v1/suppliers", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_suppliers(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_list(self: SupplierService, owner_id: uuid.UUID) -> list[object]:
        return [make_supplier(owner_id), make_supplier(owner_id, name="Fitosan")]

    monkeypatch.setattr(SupplierService, "list_suppliers", fake_list)

    response = await client.get("/api/v1/suppliers")

    assert response.status_code == 200
    assert [s["name"] for s in response.json()["items"]] == ["AgroSur", "Fitosan"]


@pytest.mark.asyncio
async def test_delete_missing_supplier_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_delete(self: SupplierService, owner_id: uuid.UUID, supplier_id: uuid.UUID) -> None:
        raise NotFoundError(f"Supplier {supplier_id} not found")

    monkeypatch.setattr(SupplierService, "delete_supplier", fake_delete)

    response = await client.delete(f"/api/v1/suppliers/{uuid.uuid4()}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_purchases_reports_total_spent(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def fake_list(
        self: PurchaseService,
        owner_id: uuid.UUID,
        supplier: str | None,
        product_name: str | None,
    ) -> list[object]:
        captured.update(supplier=supplier, product_name=product_name)
        return [make_purchase(owner_id, total_cost=100.0), make_purchase(owner_id, total_cost=42.5)]

    monkeypatch.setattr(PurchaseService, "list_purchases", fake_list)

    response = await client.get("/api/v1/purchases", params={"supplier": "agro"})

    assert response.status_code == 200
    body = response.json()
    assert body["total_spent"] == 142.5
    assert len(body["items"]) == 2
    assert captured == {"supplier": "agro", "product_name": None}


@pytest.mark.asyncio
async def test_create_purchase_route(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(self: PurchaseService, owner_id: uuid.UUID, payload: PurchaseCreate) -> object:
        return make_purchase(owner_id, quantity=payload.quantity, total_cost=purchase_total(payload.quantity, payload.price_per_unit))

    monkeypatch.setattr(PurchaseService, "create_purchase", fake_create)

    response = await client.post(
        "/api/v1/purchases",
        json={
            "product_name": "NPK 15-15-15",
            "brand": "Fertiberia",
            "supplier": "AgroSur",
            "purchase_date": "2024-03-01",
            "price_per_unit": 2.5,
            "quantity": 40,
            "unit": "kg",
        },
    )

    assert response.status_code == 201
    assert response.json()["total_cost"] == 100.0


@pytest.mark.asyncio
async def test_create_purchase_with_incompatible_unit_is_400(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(self: PurchaseService, owner_id: uuid.UUID, payload: PurchaseCreate) -> object:
        raise UnitMismatchError("cannot convert L (volume) to kg (mass)")

    monkeypatch.setattr(PurchaseService, "create_purchase", fake_create)

    response = await client.post(
        "/api/v1/purchases",
        json={
            "product_name": "NPK",
            "brand": "X",
            "supplier": "Y",
            "purchase_date": "2024-03-01",
            "price_per_unit": 1,
            "quantity": 5,
            "unit": "L",
            "inventory_item_id": str(uuid.uuid4()),
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "unit_mismatch"


@pytest.mark.asyncio
async def test_update_purchase_rejects_stock_link_change(client: AsyncClient) -> None:
    response = await client.put(
        f"/api/v1/purchases/{uuid.uuid4()}",
        json={"inventory_item_id": str(uuid.uuid4())},
    )

    assert response.status_code == 422


# ── Service level ───────────────────────────────────────────────────────────


def _purchase_payload(**overrides: object) -> PurchaseCreate:
    values: dict[str, object] = {
        "product_name": "NPK 15-15-15",
        "brand": "Fertiberia",
        "supplier": "AgroSur",
        "purchase_date": date(2024, 3, 1),
        "price_per_unit": 300.0,
        "quantity": 2,
        "unit": "t",
    }
    values.update(overrides)
    return PurchaseCreate.model_validate(values)


@pytest.mark.asyncio
async def test_linked_purchase_is_received_into_stock(
    fake_db_session: FakeAsyncSession,
    ledger_store: InMemoryLedgerStore,
    ledger: InventoryLedger,
    owner_id: uuid.UUID,
) -> None:
    stock = ledger_store.add_item(owner_id, quantity=150, unit="kg")
    inventory = SimpleNamespace(ledger=ledger, refresh_alerts_for=AsyncMock())
    service = PurchaseService(fake_db_session, inventory=inventory)  # type: ignore[arg-type]

    purchase = await service.create_purchase(owner_id, _purchase_payload(inventory_item_id=stock.id))

    assert purchase.total_cost == pytest.approx(600.0)
    assert ledger_store.quantity(stock.id) == pytest.approx(2150.0)
    movement = ledger_store.movements[0]
    assert movement.unit == "t"
    assert movement.amount_in_item_unit == pytest.approx(2000.0)
    assert movement.reason.endswith("from AgroSur")
    inventory.refresh_alerts_for.assert_awaited_once_with(owner_id, {stock.id})


@pytest.mark.asyncio
async def test_unlinked_purchase_leaves_stock_alone(
    fake_db_session: FakeAsyncSession,
    ledger_store: InMemoryLedgerStore,
    ledger: InventoryLedger,
    owner_id: uuid.UUID,
) -> None:
    inventory = SimpleNamespace(ledger=ledger, refresh_alerts_for=AsyncMock())
    service = PurchaseService(fake_db_session, inventory=inventory)  # type: ignore[arg-type]

    purchase = await service.create_purchase(owner_id, _purchase_payload())

    assert purchase.total_cost == pytest.approx(600.0)
    assert ledger_store.movements == []
    inventory.refresh_alerts_for.assert_not_awaited()


@pytest.mark.asyncio
async def test_purchase_into_foreign_item_fails(
    fake_db_session: FakeAsyncSession,
    ledger_store: InMemoryLedgerStore,
    ledger: InventoryLedger,
    owner_id: uuid.UUID,
) -> None:
    foreign = ledger_store.add_item(uuid.uuid4(), quantity=0)
    inventory = SimpleNamespace(ledger=ledger, refresh_alerts_for=AsyncMock())
    service = PurchaseService(fake_db_session, inventory=inventory)  # type: ignore[arg-type]

    with pytest.raises(NotFoundError):
        await service.create_purchase(owner_id, _purchase_payload(inventory_item_id=foreign.id))

    assert ledger_store.quantity(foreign.id) == 0


@pytest.mark.asyncio
async def test_update_purchase_recomputes_total(fake_db_session: FakeAsyncSession) -> None:
    purchase = make_purchase(quantity=40.0, price_per_unit=2.5, total_cost=100.0)
    result = MagicMock()
    result.scalar_one_or_none.return_value = purchase
    fake_db_session.execute.return_value = result
    service = PurchaseService(fake_db_session, inventory=SimpleNamespace())  # type: ignore[arg-type]

    updated = await service.update_purchase(purchase.owner_id, purchase.id, PurchaseUpdate(quantity=10))

    assert updated.quantity == 10
    assert updated.total_cost == pytest.approx(25.0)


def test_insufficient_stock_error_message() -> None:
    error = InsufficientStockError("item-1", available=98.0, requested=150.0, unit="kg")

    assert "available 98.0 kg" in str(error)
