"""Product catalogue endpoints."""
import pytest

from utils import quantity_rules


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200


def test_add_product(client, create_product):
    product = create_product(reference="  BRK-DSC-280 ")
    assert product["id"] > 0
    assert product["reference"] == "BRK-DSC-280"
    assert product["quantity"] == 5
    assert product["low_stock"] is True

    # New category is created inline
    names = [c["name"] for c in client.get("/categories").json()]
    assert names == ["Brakes"]

    # Creation is not a quantity change
    assert client.get("/stock-movements").json() == []


def test_add_product_duplicate_reference(client, create_product):
    create_product(reference="ENG-SPK-IR7")
    response = client.post("/products", json={"name": "Other", "reference": "ENG-SPK-IR7"})
    assert response.status_code == 409


@pytest.mark.parametrize("payload", [
    {"name": "", "reference": "X-1"},
    {"name": "Spark plug", "reference": "   "},
    {"name": "Spark plug", "reference": "X-1", "quantity": -1},
    {"name": "Spark plug", "reference": "X-1", "buying_price": -0.5},
])
def test_add_product_validation(client, payload):
    assert client.post("/products", json=payload).status_code == 422


def test_get_product(client, create_product):
    product = create_product()
    assert client.get(f"/products/{product['id']}").json()["name"] == "Brake pads front"
    assert client.get("/products/9999").status_code == 404


def test_list_newest_first(client, create_product):
    first = create_product(reference="A-1")
    second = create_product(reference="A-2")
    ids = [p["id"] for p in client.get("/products").json()]
    assert ids == [second["id"], first["id"]]


class TestSearch:

    @pytest.fixture(autouse=True)
    def catalogue(self, create_product):
        create_product(name="Oil filter", description="Spin-on", reference="FLT-OIL-015", category="Filters")
        create_product(name="Air filter", description="Panel type", reference="FLT-AIR-220", category="Filters")
        create_product(name="Brake disc", description="Vented disc for oil-free hubs", reference="BRK-DSC-280", category="Brakes")

    def _refs(self, client, **params):
        return sorted(p["reference"] for p in client.get("/products", params=params).json())

    def test_search_is_case_insensitive_over_all_fields(self, client):
        assert self._refs(client, q="OIL") == ["BRK-DSC-280", "FLT-OIL-015"]
        assert self._refs(client, q="panel") == ["FLT-AIR-220"]
        assert self._refs(client, q="dsc") == ["BRK-DSC-280"]

    def test_category_and_search_both_apply(self, client):
        assert self._refs(client, q="oil", category="Filters") == ["FLT-OIL-015"]
        assert self._refs(client, category="Brakes") == ["BRK-DSC-280"]

    def test_all_category_means_no_filter(self, client):
        assert len(self._refs(client, category="all")) == 3

    def test_wildcards_are_literal(self, client):
        assert self._refs(client, q="%") == []
        assert self._refs(client, q="_") == []


def test_stats(client, create_product):
    create_product(reference="A", category="Filters", buying_price=2.5, quantity=4)
    create_product(reference="B", category="Brakes", buying_price=10, quantity=0)
    create_product(reference="C", category="Filters", buying_price=1.25, quantity=8)

    stats = client.get("/products/stats").json()
    assert stats == {"total_products": 3, "total_items": 12, "total_value": 20.0, "out_of_stock": 1}

    filtered = client.get("/products/stats", params={"category": "Brakes"}).json()
    assert filtered["total_products"] == 3
    assert filtered["total_items"] == 0
    assert filtered["total_value"] == 0.0


def test_out_of_stock_list(client, create_product):
    create_product(reference="A", quantity=0)
    create_product(reference="B", quantity=3)
    refs = [p["reference"] for p in client.get("/products/out-of-stock").json()]
    assert refs == ["A"]


class TestQuantityEdit:

    def test_same_quantity_is_a_cancelled_edit(self, client, create_product):
        product = create_product(quantity=5)
        response = client.patch(f"/products/{product['id']}/quantity", json={"quantity": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["changed"] is False
        assert body["movement"] is None
        assert client.get("/stock-movements").json() == []
        assert client.get("/restock-logs").json() == []

    def test_change_logs_movement(self, client, create_product):
        product = create_product(quantity=5)
        body = client.patch(f"/products/{product['id']}/quantity", json={"quantity": 12}).json()

        assert body["changed"] is True
        assert body["product"]["quantity"] == 12
        assert body["product"]["low_stock"] is False
        assert body["movement"]["change"] == 7
        assert body["completed_steps"] == ["movement", "restock", "product"]

        movements = client.get("/stock-movements").json()
        assert len(movements) == 1
        assert movements[0]["previous_quantity"] == 5
        assert movements[0]["new_quantity"] == 12

    def test_out_of_stock_then_restock(self, client, create_product):
        product = create_product(quantity=5)
        opened = client.patch(f"/products/{product['id']}/quantity", json={"quantity": 0}).json()
        assert opened["restock_log"]["restocked"] is False

        closed = client.patch(f"/products/{product['id']}/quantity", json={"quantity": 5}).json()
        assert closed["restock_log"]["id"] == opened["restock_log"]["id"]
        assert closed["restock_log"]["restocked"] is True
        assert closed["restock_log"]["restock_quantity"] == 5

        logs = client.get("/restock-logs").json()
        assert len(logs) == 1

    def test_negative_quantity_rejected(self, client, create_product):
        product = create_product()
        assert client.patch(f"/products/{product['id']}/quantity", json={"quantity": -3}).status_code == 422

    def test_unknown_product(self, client):
        assert client.patch("/products/404/quantity", json={"quantity": 1}).status_code == 404

    def test_failed_step_reports_partial_progress(self, client, create_product, monkeypatch):
        from sqlalchemy.exc import SQLAlchemyError

        def broken(*args, **kwargs):
            raise SQLAlchemyError("store unavailable")

        product = create_product(quantity=5)
        monkeypatch.setattr(quantity_rules, "find_open_restock", broken)
        response = client.patch(f"/products/{product['id']}/quantity", json={"quantity": 0})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["failed_step"] == "restock"
        assert detail["completed_steps"] == ["movement"]
        assert client.get(f"/products/{product['id']}").json()["quantity"] == 5

        failures = client.get("/logs", params={"status": "FAIL"}).json()["items"]
        assert failures[0]["action"] == "STOCK_UPDATE"


class TestFullEdit:

    def _payload(self, product, **changes):
        data = {k: product[k] for k in ("name", "description", "reference", "category", "buying_price", "quantity")}
        data.update(changes)
        return data

    def test_edit_without_quantity_change(self, client, create_product):
        product = create_product()
        response = client.put(f"/products/{product['id']}", json=self._payload(product, name="Brake pads front OEM"))

        assert response.status_code == 200
        assert response.json()["name"] == "Brake pads front OEM"
        assert client.get("/stock-movements").json() == []

    def test_edit_with_quantity_change_logs(self, client, create_product):
        product = create_product(quantity=3)
        client.put(f"/products/{product['id']}", json=self._payload(product, quantity=0, reference="BRK-NEW"))

        movements = client.get("/stock-movements").json()
        assert len(movements) == 1
        assert movements[0]["change"] == -3
        assert movements[0]["product_reference"] == "BRK-NEW"
        assert client.get("/restock-logs", params={"restocked": False}).json()[0]["product_id"] == product["id"]

    def test_edit_creates_new_category(self, client, create_product):
        product = create_product()
        client.put(f"/products/{product['id']}", json=self._payload(product, category="Suspension"))
        names = [c["name"] for c in client.get("/categories").json()]
        assert names == ["Brakes", "Suspension"]

    def test_edit_duplicate_reference(self, client, create_product):
        create_product(reference="A")
        other = create_product(reference="B")
        response = client.put(f"/products/{other['id']}", json=self._payload(other, reference="A"))
        assert response.status_code == 409

    def test_edit_unknown_product(self, client, create_product):
        product = create_product()
        assert client.put("/products/999", json=self._payload(product)).status_code == 404


class TestQuickRestock:

    def test_restock_out_of_stock_product(self, client, create_product):
        product = create_product(quantity=1)
        client.patch(f"/products/{product['id']}/quantity", json={"quantity": 0})

        body = client.post(f"/products/{product['id']}/restock", json={"quantity": 20}).json()
        assert body["product"]["quantity"] == 20
        assert body["movement"]["change"] == 20
        assert body["restock_log"]["restocked"] is True
        assert body["restock_log"]["restock_quantity"] == 20
        assert client.get("/products/out-of-stock").json() == []

    def test_restock_requires_out_of_stock(self, client, create_product):
        product = create_product(quantity=4)
        response = client.post(f"/products/{product['id']}/restock", json={"quantity": 10})
        assert response.status_code == 409

    def test_restock_quantity_must_be_positive(self, client, create_product):
        product = create_product(quantity=0)
        response = client.post(f"/products/{product['id']}/restock", json={"quantity": 0})
        assert response.status_code == 422
