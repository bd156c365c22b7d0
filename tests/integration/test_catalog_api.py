def test_list_products(client, fake_stripe):
    r = client.get("/api/v1/catalog/products")
    assert r.status_code == 200
    products = r.json()["products"]
    assert [p["id"] for p in products] == ["prod_b", "prod_a"]
    assert products[0]["unit_price"] == 1500
    assert "price_id" not in products[0]

def test_list_products_cached_between_requests(client, fake_stripe):
    client.get("/api/v1/catalog/products")
    client.get("/api/v1/catalog/products")
    assert fake_stripe.product_calls == ["prod_a", "prod_b"]

def test_get_single_product(client, fake_stripe):
    r = client.get("/api/v1/catalog/products/prod_a")
    assert r.status_code == 200
    assert r.json()["product"]["name"] == "T-shirt"

def test_unknown_product_is_404(client, fake_stripe):
    r = client.get("/api/v1/catalog/products/prod_inconnu")
    assert r.status_code == 404
    assert r.json() == {"detail": "Produit introuvable"}

def test_store_state_open(client, fake_stripe):
    r = client.get("/api/v1/catalog/store")
    assert r.status_code == 200
    body = r.json()
    assert body["enabled"] is True
    assert body["max_quantity_per_item"] == 10
    assert body["shipping_rate"]["amount"] == 500

def test_store_state_closed(client, fake_stripe, use_settings):
    use_settings(stripe_disable_store=True)
    body = client.get("/api/v1/catalog/store").json()
    assert body == {"enabled": False, "message": "The store is currently closed."}

def test_cache_clear_requires_token(client, fake_stripe, monkeypatch):
    monkeypatch.setattr("stripe_checkout.catalog.views.ADMIN_API_TOKEN", "s3cret")
    assert client.post("/api/v1/catalog/cache/clear").status_code == 403
    assert client.post("/api/v1/catalog/cache/clear", headers={"X-Admin-Token": "nope"}).status_code == 403

    client.get("/api/v1/catalog/products")
    r = client.post("/api/v1/catalog/cache/clear", headers={"X-Admin-Token": "s3cret"})
    assert r.status_code == 200
    client.get("/api/v1/catalog/products")
    assert fake_stripe.product_calls.count("prod_a") == 2

def test_cache_clear_disabled_without_token(client, monkeypatch):
    monkeypatch.setattr("stripe_checkout.catalog.views.ADMIN_API_TOKEN", "")
    assert client.post("/api/v1/catalog/cache/clear").status_code == 404
