"""HTTP surface: routing, auth and error rendering."""

import pytest

PRODUCT = {
    "name": "Linen Dress",
    "description": "Summer linen dress",
    "category": "dresses",
    "price": 40.0,
    "images": ["https://cdn.example.com/dress.jpg"],
    "sizes": [{"name": "S", "stock": 2}, {"name": "M", "stock": 6}],
    "colors": [{"name": "red", "code": "#FF0000"}],
}


def _order_body(product_id, size="M", color="red", quantity=1):
    return {
        "items": [{"product_id": product_id, "size": size, "color": color, "quantity": quantity}],
        "shipping_address": {"street": "12 Rainbow St", "city": "Amman", "country": "JO"},
        "customer_info": {
            "first_name": "Lina",
            "last_name": "Haddad",
            "email": "lina@example.com",
            "mobile": "+962791234567",
        },
        "payment_method": "cod",
        "currency": "USD",
    }


@pytest.fixture
def product(client, auth_headers):
    resp = client.post("/api/products", json=PRODUCT, headers=auth_headers)
    assert resp.status_code == 201
    return resp.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestAuth:

    def test_admin_routes_require_token(self, client):
        resp = client.get("/api/inventory")
        assert resp.status_code == 401
        assert resp.json() == {"kind": "Unauthorized", "message": "Not authenticated"}

    def test_invalid_token(self, client):
        resp = client.get("/api/inventory", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["kind"] == "Unauthorized"

    def test_token_cookie_accepted(self, client, auth_headers):
        token = auth_headers["Authorization"].split(" ", 1)[1]
        client.cookies.set("token", token)
        assert client.get("/api/inventory").status_code == 200

    def test_checkout_is_public(self, client, product):
        resp = client.post("/api/orders", json=_order_body(product["id"]))
        assert resp.status_code == 201


class TestProductsApi:

    def test_create_and_fetch_in_currency(self, client, product):
        assert product["stock"] == 8
        assert len(product["inventory"]) == 2

        resp = client.get(f"/api/products/{product['id']}", params={"currency": "AED"})
        body = resp.json()
        assert resp.status_code == 200
        assert (body["currency"], body["price"]) == ("AED", 146.9)

    def test_validation_failure_shape(self, client, auth_headers):
        resp = client.post("/api/products", json={**PRODUCT, "price": 0}, headers=auth_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["kind"] == "InvalidArgument"
        assert "Valid price is required" in body["errors"]

    def test_not_found_shape(self, client):
        resp = client.get("/api/products/missing")
        assert resp.status_code == 404
        assert resp.json()["kind"] == "NotFound"

    def test_history_after_order(self, client, auth_headers, product):
        client.post("/api/orders", json=_order_body(product["id"], quantity=2))
        history = client.get(f"/api/products/{product['id']}/history", headers=auth_headers).json()
        assert [h["reason"] for h in history][-1].startswith("Order ORD-")
        assert history[-1]["type"] == "decrease"

    def test_delete(self, client, auth_headers, product):
        resp = client.delete(f"/api/products/{product['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/products/{product['id']}").status_code == 404


class TestInventoryApi:

    def test_low_stock_and_bulk_update(self, client, auth_headers, product):
        low = client.get("/api/inventory/low-stock", headers=auth_headers).json()
        assert [(i["size"], i["status"]) for i in low] == [("S", "low_stock")]

        entry_id = low[0]["id"]
        resp = client.post("/api/inventory/bulk", headers=auth_headers, json={
            "items": [{"_id": entry_id, "quantity": 10}, {"id": "nope", "quantity": 1}],
        })
        body = resp.json()
        assert resp.status_code == 200
        assert body["success"] is False
        assert body["updated"] == [entry_id]
        assert body["failed"][0]["kind"] == "NotFound"

        refreshed = client.get(f"/api/products/{product['id']}").json()
        assert refreshed["stock"] == 16

    def test_add_duplicate_variant_conflicts(self, client, auth_headers, product):
        resp = client.post("/api/inventory", headers=auth_headers, json={
            "product_id": product["id"], "size": "S", "color": "red", "quantity": 1,
        })
        assert resp.status_code == 409
        assert resp.json()["kind"] == "Conflict"

    def test_update_negative_quantity(self, client, auth_headers, product):
        entry_id = product["inventory"][0]["id"]
        resp = client.put(f"/api/inventory/{entry_id}", headers=auth_headers, json={"quantity": -4})
        assert resp.status_code == 400

    def test_product_inventory(self, client, auth_headers, product):
        rows = client.get(f"/api/inventory/product/{product['id']}", headers=auth_headers).json()
        assert {(r["size"], r["quantity"]) for r in rows} == {("S", 2), ("M", 6)}


class TestOrdersApi:

    def test_insufficient_stock_shape(self, client, product):
        resp = client.post("/api/orders", json=_order_body(product["id"], size="S", quantity=3))
        assert resp.status_code == 409
        body = resp.json()
        assert body["kind"] == "InsufficientStock"
        assert body["product_id"] == product["id"]
        assert (body["available"], body["requested"]) == (2, 3)

    def test_malformed_body(self, client):
        resp = client.post("/api/orders", json={"items": "everything"})
        assert resp.status_code == 400
        assert resp.json()["kind"] == "InvalidArgument"

    def test_status_workflow(self, client, auth_headers, product):
        order = client.post("/api/orders", json=_order_body(product["id"], quantity=2)).json()["order"]
        assert order["status"] == "pending"

        bad = client.patch(f"/api/orders/{order['id']}/status", headers=auth_headers, json={"status": "delivered"})
        assert bad.status_code == 400

        resp = client.patch(f"/api/orders/{order['id']}/status", headers=auth_headers,
                            json={"status": "cancelled", "note": "Customer called"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"
        assert client.get(f"/api/products/{product['id']}").json()["stock"] == 8

    def test_list_filtered_by_status(self, client, auth_headers, product):
        client.post("/api/orders", json=_order_body(product["id"]))
        orders = client.get("/api/orders", params={"status": "pending"}, headers=auth_headers).json()
        assert len(orders) == 1
        assert orders[0]["customer_name"] == "Lina Haddad"
        assert client.get("/api/orders", params={"status": "shipped"}, headers=auth_headers).json() == []


class TestSettingsAndAnnouncements:

    def test_settings_defaults_and_update(self, client, auth_headers):
        assert client.get("/api/settings").json()["currency"] == "USD"
        resp = client.put("/api/settings", headers=auth_headers, json={"currency": "JOD", "phone": "+962600000"})
        assert resp.json()["currency"] == "JOD"
        bad = client.put("/api/settings", headers=auth_headers, json={"currency": "XYZ"})
        assert bad.status_code == 400

    def test_announcements_reorder_and_active(self, client, auth_headers):
        first = client.post("/api/announcements", headers=auth_headers, json={"text": "Free shipping"}).json()
        second = client.post("/api/announcements", headers=auth_headers,
                             json={"text": "Hidden", "is_active": False}).json()
        third = client.post("/api/announcements", headers=auth_headers, json={"text": "New arrivals"}).json()
        assert [a["display_order"] for a in (first, second, third)] == [0, 1, 2]

        client.put("/api/announcements/reorder", headers=auth_headers, json={"announcements": [
            {"id": third["id"], "order": 0}, {"id": first["id"], "order": 1}, {"id": second["id"], "order": 2},
        ]})
        active = client.get("/api/announcements/active").json()
        assert [a["text"] for a in active] == ["New arrivals", "Free shipping"]


class TestDeliveryApi:

    def test_credentials_not_returned(self, client, auth_headers):
        resp = client.post("/api/delivery/companies", headers=auth_headers, json={
            "name": "Aramex",
            "code": "aramex",
            "api_url": "https://partner.example.com/orders",
            "credentials": {"login": "shop", "password": "secret"},
        })
        assert resp.status_code == 201
        assert "credentials" not in resp.json()
        listed = client.get("/api/delivery/companies", headers=auth_headers).json()
        assert [c["code"] for c in listed] == ["ARAMEX"]

    def test_status_of_unsent_order(self, client, auth_headers, product):
        order = client.post("/api/orders", json=_order_body(product["id"])).json()["order"]
        company = client.post("/api/delivery/companies", headers=auth_headers, json={
            "name": "Three Minds",
            "code": "three_minds",
            "api_url": "https://partner.example.com/rpc",
        }).json()

        resp = client.get(f"/api/delivery/status/{order['id']}/{company['id']}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["kind"] == "NotFound"
