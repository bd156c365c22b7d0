import json
import stripe

def test_checkout_json_cart_string(client, fake_stripe):
    cart = json.dumps([{"id": "prod_a", "quantity": 2}])
    r = client.post("/api/v1/payments/checkout", json={"cart": cart})
    assert r.status_code == 200
    assert r.json()["url"].startswith("https://checkout.stripe.test/")
    assert r.headers["Cache-Control"].startswith("no-store")
    params = fake_stripe.created[0]
    assert params["success_url"].startswith("https://shop.test/success")

def test_checkout_json_items(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json={"items": [{"id": "prod_b", "quantity": 1}]})
    assert r.status_code == 200
    assert fake_stripe.created[0]["line_items"][0]["price"] == "price_prod_b"

def test_checkout_over_limit(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json={"items": [{"id": "prod_a", "quantity": 6}, {"id": "prod_a", "quantity": 6}]})
    assert r.status_code == 400
    assert "10" in r.json()["detail"]
    assert fake_stripe.created == []

def test_checkout_without_cart(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json={})
    assert r.status_code == 400
    assert r.json()["detail"] == "Aucun panier fourni"

def test_checkout_store_closed(client, fake_stripe, use_settings):
    use_settings(stripe_disable_store=True, stripe_store_disabled_message="Closed")
    r = client.post("/api/v1/payments/checkout", json={"items": [{"id": "prod_a", "quantity": 1}]})
    assert r.status_code == 403
    assert r.json() == {"detail": "Closed"}

def test_checkout_provider_failure_is_generic(client, fake_stripe):
    fake_stripe.errors["create"] = stripe.APIError("secret internals")
    r = client.post("/api/v1/payments/checkout", json={"items": [{"id": "prod_a", "quantity": 1}]})
    assert r.status_code == 502
    assert "secret internals" not in r.text

def test_checkout_form_redirects_to_stripe(client, fake_stripe):
    cart = json.dumps([{"id": "prod_a", "quantity": 1}])
    r = client.post("/api/v1/payments/checkout/form", data={"cart": cart}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "https://checkout.stripe.test/c/pay/cs_test_1"

def test_checkout_form_error_redirects_back_for_browsers(client, fake_stripe):
    r = client.post(
        "/api/v1/payments/checkout/form",
        data={"cart": "[]"},
        headers={"Accept": "text/html"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"].startswith("/store?checkout=cancelled&error=")

def test_checkout_rate_limited(client, fake_stripe, monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client.app.state._rl_store = {}
    body = {"items": [{"id": "prod_a", "quantity": 1}]}
    codes = [client.post("/api/v1/payments/checkout", json=body).status_code for _ in range(11)]
    client.app.state._rl_store = {}
    assert codes[:10] == [200] * 10
    assert codes[10] == 429

def test_checkout_infinite_quantity_is_client_error(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json={"cart": '[{"id": "prod_a", "quantity": Infinity}]'})
    assert r.status_code == 400
    assert fake_stripe.created == []

def test_checkout_fractional_quantity_is_rejected(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json={"items": [{"id": "prod_a", "quantity": 1.9}]})
    assert r.status_code == 400
    assert fake_stripe.created == []
