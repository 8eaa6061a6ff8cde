from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.dialects import postgresql

from agroledger.errors import NotFoundError
from agroledger.models.enums import InventoryCategoryEnum, ProductTypeEnum, StockUnitEnum
from agroledger.schemas.inventory import InventoryItemCreate
from agroledger.schemas.products import ProductCreate, ProductUpdate
from agroledger.services.inventory_service import InventoryService
from agroledger.services.product_service import ProductService
from tests.factories import make_item, make_product
from tests.fakes import FakeAsyncSession


def _result(row: object) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    return result


def _returning(fake_db_session: FakeAsyncSession, row: object) -> None:
    fake_db_session.execute.return_value = _result(row)


# ── Routes ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_product(client: AsyncClient, owner_id: uuid.UUID, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(self: ProductService, owner: uuid.UUID, payload: ProductCreate) -> object:
        assert owner == owner_id
        assert payload.type == ProductTypeEnum.fertilizer
        return make_product(owner, name=payload.name, price_per_unit=payload.price_per_unit)

    monkeypatch.setattr(ProductService, "create_product", fake_create)

    response = await client.post(
        "/api/v1/products",
        json={"name": "Potassium nitrate", "type": "fertilizer", "price_per_unit": 1.8, "unit": "kg"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Potassium nitrate"
    assert body["type"] == "fertilizer"
    assert body["active"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "type": "fertilizer", "price_per_unit": 1, "unit": "kg"},
        {"name": "Copper", "type": "herbicide", "price_per_unit": 1, "unit": "kg"},
        {"name": "Copper", "type": "phytosanitary", "price_per_unit": -1, "unit": "kg"},
        {"name": "Copper", "type": "phytosanitary", "price_per_unit": 1},
    ],
)
async def test_create_product_validation(client: AsyncClient, payload: dict[str, object]) -> None:
    response = await client.post("/api/v1/products", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_products(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[object] = []

    async def fake_list(self: ProductService, owner_id: uuid.UUID, product_type: object = None) -> list[object]:
        seen.append(product_type)
        return [make_product(owner_id, name="Copper oxychloride", type=ProductTypeEnum.phytosanitary), make_product(owner_id)]

    monkeypatch.setattr(ProductService, "list_products", fake_list)

    response = await client.get("/api/v1/products")

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["items"]] == ["Copper oxychloride", "Potassium nitrate"]
    assert seen == [None]


@pytest.mark.asyncio
async def test_list_products_by_type(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[object] = []

    async def fake_list(self: ProductService, owner_id: uuid.UUID, product_type: object = None) -> list[object]:
        seen.append(product_type)
        return [make_product(owner_id, name="Well water", type=ProductTypeEnum.water, unit="m3")]

    monkeypatch.setattr(ProductService, "list_products", fake_list)

    response = await client.get("/api/v1/products/type/water")

    assert response.status_code == 200
    assert response.json()["items"][0]["type"] == "water"
    assert seen == [ProductTypeEnum.water]


@pytest.mark.asyncio
async def test_list_products_by_unknown_type_is_422(client: AsyncClient) -> None:
    response = await client.get("/api/v1/products/type/seed")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_missing_product_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get(self: ProductService, owner_id: uuid.UUID, product_id: uuid.UUID) -> object:
        raise NotFoundError(f"Product {product_id} not found")

    monkeypatch.setattr(ProductService, "get_product", fake_get)

    response = await client.get(f"/api/v1/products/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "not_found"


@pytest.mark.asyncio
async def test_update_product(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    product = make_product()

    async def fake_update(self: ProductService, owner_id: uuid.UUID, product_id: uuid.UUID, payload: ProductUpdate) -> object:
        assert product_id == product.id
        product.price_per_unit = payload.price_per_unit
        return product

    monkeypatch.setattr(ProductService, "update_product", fake_update)

    response = await client.put(f"/api/v1/products/{product.id}", json={"price_per_unit": 2.1})

    assert response.status_code == 200
    assert response.json()["price_per_unit"] == 2.1


@pytest.mark.asyncio
async def test_update_product_rejects_unknown_fields(client: AsyncClient) -> None:
    response = await client.put(f"/api/v1/products/{uuid.uuid4()}", json={"active": False})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_product(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    deleted: list[uuid.UUID] = []

    async def fake_delete(self: ProductService, owner_id: uuid.UUID, product_id: uuid.UUID) -> None:
        deleted.append(product_id)

    monkeypatch.setattr(ProductService, "delete_product", fake_delete)
    product_id = uuid.uuid4()

    response = await client.delete(f"/api/v1/products/{product_id}")

    assert response.status_code == 204
    assert deleted == [product_id]


@pytest.mark.asyncio
async def test_inventory_item_by_product(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    product_id = uuid.uuid4()
    item = make_item(product_id=product_id)

    async def fake_lookup(self: InventoryService, owner_id: uuid.UUID, target: uuid.UUID) -> object:
        assert target == product_id
        return item

    monkeypatch.setattr(InventoryService, "get_item_by_product", fake_lookup)

    response = await client.get(f"/api/v1/inventory/product/{product_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(item.id)
    assert body["product_id"] == str(product_id)


@pytest.mark.asyncio
async def test_inventory_item_by_unstocked_product_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_lookup(self: InventoryService, owner_id: uuid.UUID, target: uuid.UUID) -> object:
        raise NotFoundError(f"No inventory item stocks product {target}")

    monkeypatch.setattr(InventoryService, "get_item_by_product", fake_lookup)

    response = await client.get(f"/api/v1/inventory/product/{uuid.uuid4()}")

    assert response.status_code == 404


# ── Product service ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_products_filters_active_and_type(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    result = MagicMock()
    result.scalars.return_value.all.return_value = [make_product(owner_id)]
    fake_db_session.execute.return_value = result

    products = await ProductService(fake_db_session).list_products(owner_id, ProductTypeEnum.water)  # type: ignore[arg-type]

    assert len(products) == 1
    stmt = fake_db_session.execute.await_args.args[0]
    sql = str(stmt.compile(dialect=postgresql.dialect()))
    assert "product_prices.active IS true" in sql
    assert "product_prices.type = " in sql


@pytest.mark.asyncio
async def test_update_product_ignores_null_for_required_fields(fake_db_session: FakeAsyncSession) -> None:
    product = make_product(description="soluble")
    _returning(fake_db_session, product)

    payload = ProductUpdate.model_validate({"name": None, "price_per_unit": None, "unit": None, "description": None})
    updated = await ProductService(fake_db_session).update_product(product.owner_id, product.id, payload)  # type: ignore[arg-type]

    assert updated.name == "Potassium nitrate"
    assert updated.price_per_unit == 1.8
    assert updated.unit == "kg"
    assert updated.description is None


@pytest.mark.asyncio
async def test_delete_product_is_soft(fake_db_session: FakeAsyncSession) -> None:
    product = make_product()
    _returning(fake_db_session, product)

    await ProductService(fake_db_session).delete_product(product.owner_id, product.id)  # type: ignore[arg-type]

    assert product.active is False
    fake_db_session.delete.assert_not_awaited()
    fake_db_session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_missing_product_raises(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    _returning(fake_db_session, None)

    with pytest.raises(NotFoundError):
        await ProductService(fake_db_session).get_product(owner_id, uuid.uuid4())  # type: ignore[arg-type]


# ── Inventory lookup by product ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_linked_item_is_found_directly(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    product_id = uuid.uuid4()
    item = make_item(owner_id, product_id=product_id)
    _returning(fake_db_session, item)
    service = InventoryService(fake_db_session, ledger=SimpleNamespace())  # type: ignore[arg-type]

    found = await service.get_item_by_product(owner_id, product_id)

    assert found is item
    assert fake_db_session.execute.await_count == 1
    fake_db_session.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_unlinked_item_with_product_name_is_adopted(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    product = make_product(owner_id)
    item = make_item(owner_id, name="Potassium nitrate")
    fake_db_session.execute.side_effect = [_result(None), _result(product), _result(item)]
    service = InventoryService(fake_db_session, ledger=SimpleNamespace())  # type: ignore[arg-type]

    found = await service.get_item_by_product(owner_id, product.id)

    assert found is item
    assert item.product_id == product.id
    fake_db_session.flush.assert_awaited_once()
    name_lookup = fake_db_session.execute.await_args_list[2].args[0]
    sql = str(name_lookup.compile(dialect=postgresql.dialect()))
    assert "inventory_items.product_id IS NULL" in sql
    assert "inventory_items.name = " in sql


@pytest.mark.asyncio
async def test_product_without_stock_is_not_found(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    product = make_product(owner_id)
    fake_db_session.execute.side_effect = [_result(None), _result(product), _result(None)]
    service = InventoryService(fake_db_session, ledger=SimpleNamespace())  # type: ignore[arg-type]

    with pytest.raises(NotFoundError):
        await service.get_item_by_product(owner_id, product.id)

    fake_db_session.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_product_is_not_found(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    fake_db_session.execute.side_effect = [_result(None), _result(None)]
    service = InventoryService(fake_db_session, ledger=SimpleNamespace())  # type: ignore[arg-type]

    with pytest.raises(NotFoundError, match="Product"):
        await service.get_item_by_product(owner_id, uuid.uuid4())


@pytest.mark.asyncio
async def test_create_item_with_unknown_product_is_rejected(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> None:
    _returning(fake_db_session, None)
    service = InventoryService(fake_db_session, ledger=SimpleNamespace())  # type: ignore[arg-type]

    with pytest.raises(NotFoundError):
        await service.create_item(
            owner_id,
            InventoryItemCreate(
                name="Potassium nitrate",
                category=InventoryCategoryEnum.fertilizer,
                unit=StockUnitEnum.kg,
                product_id=uuid.uuid4(),
            ),
        )

    fake_db_session.add.assert_not_called()
