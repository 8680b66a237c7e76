"""
Catalog routes — categories, products, SKU uniqueness and stock adjustment.

Run:
    pytest tests/test_catalog_routes.py -v --tb=short
"""


def _category(client, headers, name="Brake Parts", **extra):
    r = client.post("/api/catalog/categories", json={"name": name, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _product(client, headers, **fields):
    body = {"name": "Ceramic Pads", "sku": "CP-100", "price": 60}
    body.update(fields)
    r = client.post("/api/catalog/products", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


class TestCategories:
    def test_slug_derived_from_name(self, client, operator):
        assert _category(client, operator, "Brake Parts & Rotors")["slug"] == "brake-parts-rotors"

    def test_duplicate_slug_conflicts(self, client, operator):
        _category(client, operator)
        r = client.post("/api/catalog/categories", json={"name": "Brake  Parts"}, headers=operator)
        assert r.status_code == 409
        assert r.json()["code"] == "CONFLICT"

    def test_bad_slug_rejected(self, client, operator):
        r = client.post("/api/catalog/categories", json={"name": "X", "slug": "Not A Slug"}, headers=operator)
        assert r.status_code == 422

    def test_cannot_be_own_parent(self, client, operator):
        cat = _category(client, operator)
        r = client.patch(f"/api/catalog/categories/{cat['id']}", json={"parent_id": cat["id"]}, headers=operator)
        assert r.status_code == 422
        assert r.json()["errors"] == {"parent_id": "must differ from the category"}

    def test_delete_uncategorises_products(self, client, operator, admin, viewer):
        cat = _category(client, operator)
        product = _product(client, operator, category_id=cat["id"])
        assert product["category_name"] == "Brake Parts"
        assert client.delete(f"/api/catalog/categories/{cat['id']}", headers=admin).status_code == 204
        r = client.get(f"/api/catalog/products/{product['id']}", headers=viewer)
        assert r.json()["category_id"] is None


class TestProducts:
    def test_effective_price_uses_lower_sale_price(self, client, operator):
        assert _product(client, operator, sale_price=45)["effective_price"] == 45
        assert _product(client, operator, sku="CP-200", sale_price=75)["effective_price"] == 60

    def test_duplicate_sku_conflicts(self, client, operator):
        _product(client, operator)
        r = client.post("/api/catalog/products", json={"name": "Other", "sku": "CP-100"}, headers=operator)
        assert r.status_code == 409
        assert r.json() == {"detail": "SKU 'CP-100' already exists", "code": "CONFLICT",
                            "errors": {"sku": "already in use"}}

    def test_search_by_name_or_sku(self, client, operator, viewer):
        _product(client, operator)
        _product(client, operator, name="Wiper Blade", sku="WB-1")
        by_name = client.get("/api/catalog/products?search=wiper", headers=viewer).json()
        by_sku = client.get("/api/catalog/products?search=CP-", headers=viewer).json()
        assert [p["name"] for p in by_name] == ["Wiper Blade"]
        assert [p["name"] for p in by_sku] == ["Ceramic Pads"]

    def test_stock_never_negative(self, client, operator):
        product = _product(client, operator, stock_quantity=3)
        r = client.post(f"/api/catalog/products/{product['id']}/stock", json={"delta": -2}, headers=operator)
        assert r.json()["stock_quantity"] == 1
        r = client.post(f"/api/catalog/products/{product['id']}/stock", json={"delta": -5}, headers=operator)
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_product(self, client, viewer):
        r = client.get("/api/catalog/products/777", headers=viewer)
        assert r.status_code == 404
        assert r.json() == {"detail": "Product 777 not found", "code": "NOT_FOUND"}
