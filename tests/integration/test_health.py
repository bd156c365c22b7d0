def test_health_root(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

def test_health_details_exposes_no_secret(client):
    r = client.get("/health/details")
    assert r.status_code == 200
    body = r.json()
    assert body["stripe_configured"] is True
    assert body["webhook_configured"] is True
    assert body["settings_store"] is False
    assert body["rate_limit"]["enabled"] is False
    assert "sk_test_123" not in r.text

def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
