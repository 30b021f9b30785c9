"""
API tests through the Flask test client.
"""


class TestSystemRoutes:
    def test_health(self, client, cola):
        response = client.get("/api/system/health")
        assert response.status_code == 200
        assert response.json["status"] == "healthy"
        assert response.json["counts"]["products"] == 1

    def test_cors_allows_known_origin_only(self, client):
        allowed = client.get("/api/system/health", headers={"Origin": "http://localhost:5173"})
        assert allowed.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        other = client.get("/api/system/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in other.headers


class TestProductRoutes:
    def test_create_and_fetch(self, client):
        response = client.post("/api/products", json={
            "name": "Piattos", "category": "Snacks", "price": 20, "stock": 5,
        })
        assert response.status_code == 201
        body = response.json
        assert body["stock_status"] == "LOW_STOCK"

        fetched = client.get(f"/api/products/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json["name"] == "Piattos"

    def test_validation_error_shape(self, client):
        response = client.post("/api/products", json={"name": "Piattos", "category": "Snacks", "price": 0})
        assert response.status_code == 400
        assert "error" in response.json

    def test_duplicate_barcode_conflict(self, client, cola):
        response = client.post("/api/products", json={
            "name": "Copy", "category": "Beverages", "price": 1, "barcode": cola.barcode,
        })
        assert response.status_code == 409
        assert response.json["product_id"] == cola.id

    def test_not_found(self, client):
        assert client.get("/api/products/nope").status_code == 404

    def test_patch_cannot_set_stock(self, client, cola):
        response = client.patch(f"/api/products/{cola.id}", json={"stock": 999})
        assert response.status_code == 400
        assert cola.stock == 50

    def test_search_and_barcode(self, client, cola, tshirt):
        assert client.get("/api/products?q=coca").json["count"] == 1
        response = client.get("/api/products?barcode=TS-S")
        assert response.json["items"][0]["id"] == tshirt.id
        assert response.json["variant"]["size"] == "S"

    def test_alerts(self, client, cola, tshirt):
        body = client.get("/api/products/alerts").json
        assert [p["name"] for p in body["low_stock"]] == ["T-Shirt"]
        assert body["out_of_stock"] == []
        assert {a["type"] for a in body["variant_alerts"]} == {"low", "out"}

    def test_delete(self, client, cola):
        assert client.delete(f"/api/products/{cola.id}").status_code == 204
        assert client.get(f"/api/products/{cola.id}").status_code == 404


class TestCategoryRoutes:
    def test_crud(self, client, cola):
        assert client.post("/api/categories", json={"name": "Rice"}).status_code == 201
        assert client.put("/api/categories/Beverages", json={"name": "Drinks"}).status_code == 200
        assert cola.category == "Drinks"
        assert client.delete("/api/categories/Drinks").status_code == 409
        assert client.delete("/api/categories/Rice").status_code == 204
        names = [c["name"] for c in client.get("/api/categories").json["items"]]
        assert "Drinks" in names and "Rice" not in names


class TestInventoryRoutes:
    def test_adjust_clamps(self, client, cola):
        response = client.post("/api/inventory/adjust", json={
            "product_id": cola.id, "quantity": 60, "type": "remove", "reason": "expired", "user_id": "u1",
        })
        assert response.status_code == 201
        assert response.json["total_stock"] == 0
        assert response.json["adjustment"]["quantity"] == 60

        log = client.get(f"/api/inventory/adjustments?product_id={cola.id}").json
        assert log["count"] == 1

    def test_adjust_requires_variant(self, client, tshirt):
        response = client.post("/api/inventory/adjust", json={
            "product_id": tshirt.id, "quantity": 1, "type": "add", "user_id": "u1",
        })
        assert response.status_code == 400

    def test_adjust_unknown_product(self, client):
        response = client.post("/api/inventory/adjust", json={
            "product_id": "nope", "quantity": 1, "type": "add", "user_id": "u1",
        })
        assert response.status_code == 404


class TestCheckoutRoutes:
    def cart_line(self, client, product_id, quantity, variant_id=None):
        response = client.post("/api/cart/items", json={
            "product_id": product_id, "quantity": quantity, "variant_id": variant_id,
        })
        assert response.status_code == 201
        return response.json

    def test_checkout_and_receipt(self, client, cola, cashier):
        line = self.cart_line(client, cola.id, 2)
        response = client.post("/api/sales", json={
            "items": [line],
            "payment_method": "cash",
            "amount_received": 200,
            "discount": 10,
            "discount_type": "fixed",
            "cashier_id": cashier.id,
        })
        assert response.status_code == 201
        sale = response.json["sale"]
        assert sale["total"] == 190.0
        assert sale["vat_amount"] == 20.36
        assert sale["cashier_name"] == "Juan Dela Cruz"
        assert cola.stock == 48

        receipt = client.get(f"/api/sales/{sale['receipt_number']}/receipt")
        assert receipt.status_code == 200
        assert receipt.mimetype == "text/plain"
        text = receipt.get_data(as_text=True)
        assert f"Receipt #: {sale['receipt_number']}" in text
        assert "Cashier: Juan Dela Cruz" in text

        assert client.get(f"/api/sales/{sale['receipt_number']}").status_code == 200
        assert client.get("/api/sales?date=2026-10-17").json["count"] == 1

    def test_insufficient_payment(self, client, cola, cashier):
        line = self.cart_line(client, cola.id, 2)
        response = client.post("/api/sales", json={
            "items": [line], "payment_method": "cash", "amount_received": 50, "cashier_id": cashier.id,
        })
        assert response.status_code == 400
        assert response.json["total"] == 200.0
        assert cola.stock == 50

    def test_empty_cart(self, client, cashier):
        response = client.post("/api/sales", json={"items": [], "amount_received": 0, "cashier_id": cashier.id})
        assert response.status_code == 400

    def test_card_flow(self, client, tshirt, cashier):
        small = next(v for v in tshirt.variants if v.size == "S")
        line = self.cart_line(client, tshirt.id, 1, small.id)
        confirmation = client.post("/api/payments/card", json={
            "card_number": "4111 1111 1111 1111", "expiry": "12/28", "cvv": "123", "card_holder": "Juan",
        })
        assert confirmation.status_code == 200
        reference = confirmation.json["reference_number"]

        response = client.post("/api/sales", json={
            "items": [line], "payment_method": "card", "reference_number": reference, "cashier_id": cashier.id,
        })
        assert response.status_code == 201
        assert response.json["sale"]["reference_number"] == reference
        assert small.stock == 9

    def test_gcash_reference_sent_as_number(self, client, cola, cashier):
        line = self.cart_line(client, cola.id, 1)
        response = client.post("/api/sales", json={
            "items": [line],
            "payment_method": "gcash",
            "amount_received": 100,
            "reference_number": 1234567890,
            "cashier_id": cashier.id,
        })
        assert response.status_code == 201
        assert response.json["sale"]["reference_number"] == "1234567890"
        assert cola.stock == 49

    def test_held_carts(self, client, cola):
        line = self.cart_line(client, cola.id, 1)
        held = client.post("/api/sales/held", json={"items": [line], "note": "wait"})
        assert held.status_code == 201
        assert client.get("/api/sales/held").json["count"] == 1

        retrieved = client.post(f"/api/sales/held/{held.json['id']}/retrieve")
        assert retrieved.status_code == 200
        assert retrieved.json["items"][0]["quantity"] == 1
        assert client.post(f"/api/sales/held/{held.json['id']}/retrieve").status_code == 404


class TestPaymentRoutes:
    def test_invalid_card(self, client):
        response = client.post("/api/payments/card", json={
            "card_number": "1234", "expiry": "12/28", "cvv": "123", "card_holder": "Juan",
        })
        assert response.status_code == 400

    def test_gcash_generate(self, client):
        response = client.post("/api/payments/gcash", json={"generate": True})
        assert len(response.json["reference_number"]) == 10


class TestSettingsRoutes:
    def test_patch_and_preview(self, client):
        response = client.patch("/api/settings", json={"business_name": "Tindahan ni Aling Nena"})
        assert response.status_code == 200
        assert client.get("/api/settings").json["business_name"] == "Tindahan ni Aling Nena"

        previews = client.get("/api/settings/receipt-preview").json["previews"]
        assert set(previews) == {"default", "minimal", "wide"}
        assert "Tindahan ni Aling Nena" in previews["default"]

    def test_bad_patch(self, client):
        assert client.patch("/api/settings", json={"vat_rate": -1}).status_code == 400

    def test_unknown_layout(self, client):
        assert client.get("/api/settings/receipt-preview?layout=tiny").status_code == 400


class TestUserRoutes:
    def test_create_login(self, client):
        response = client.post("/api/users", json={
            "username": "maria", "name": "Maria", "role": "manager", "password": "Secret123",
        })
        assert response.status_code == 201
        assert "password_hash" not in response.json

        assert client.post("/api/users/login", json={"username": "maria", "password": "Secret123"}).status_code == 200
        assert client.post("/api/users/login", json={"username": "maria", "password": "nope"}).status_code == 401

    def test_duplicate(self, client, cashier):
        response = client.post("/api/users", json={
            "username": "cashier", "name": "X", "role": "cashier", "password": "Secret123",
        })
        assert response.status_code == 409


class TestReportRoutes:
    def test_daily_and_top(self, client, store, cola, cashier):
        line = client.post("/api/cart/items", json={"product_id": cola.id, "quantity": 3}).json
        client.post("/api/sales", json={
            "items": [line], "payment_method": "cash", "amount_received": 300, "cashier_id": cashier.id,
        })
        daily = client.get("/api/reports/daily?date=2026-10-17").json
        assert daily["total"] == 300.0
        assert client.get("/api/reports/monthly?year=2026&month=10").json["revenue"] == 300.0
        top = client.get("/api/reports/top-products").json["items"]
        assert top[0]["name"] == "Coca-Cola"

    def test_bad_date(self, client):
        assert client.get("/api/reports/daily?date=17-10-2026").status_code == 400
