import json
import pytest
import stripe
from fastapi import HTTPException

from stripe_checkout.catalog import CatalogCache
from stripe_checkout.payments.checkout import GENERIC_CHECKOUT_ERROR, build_session
from stripe_checkout.utils.ttl_cache import TTLCache

BASE = "https://shop.test"

def _catalog(settings):
    return CatalogCache(cache=TTLCache(), settings_loader=lambda: settings)

def _build(cart, settings):
    return build_session(cart, base_url=BASE, settings=settings, catalog=_catalog(settings))

def test_builds_line_items_from_provider_prices(fake_stripe, store_settings):
    cart = json.dumps([{"id": "prod_a", "quantity": 2, "price": 1}, {"id": "prod_b", "quantity": 1}])
    session = _build(cart, store_settings)

    assert session == {"id": "cs_test_1", "url": "https://checkout.stripe.test/c/pay/cs_test_1"}
    params = fake_stripe.created[0]
    assert params["mode"] == "payment"
    assert params["line_items"] == [
        {"price": "price_prod_a", "quantity": 2, "adjustable_quantity": {"enabled": True, "minimum": 1, "maximum": 10}},
        {"price": "price_prod_b", "quantity": 1, "adjustable_quantity": {"enabled": True, "minimum": 1, "maximum": 10}},
    ]
    assert params["success_url"] == "https://shop.test/success?checkout=success&session_id={CHECKOUT_SESSION_ID}"
    assert params["cancel_url"] == "https://shop.test/store?checkout=cancelled"
    assert params["shipping_options"] == [{"shipping_rate": "shr_1"}]
    assert params["phone_number_collection"] == {"enabled": True}
    assert "allowed_countries" in params["shipping_address_collection"]

def test_client_price_is_ignored(fake_stripe, store_settings):
    fake_stripe.products["prod_a"]["default_price"]["unit_amount"] = 9900
    _build([{"id": "prod_a", "quantity": 1, "unit_amount": 1}], store_settings)
    # Le prix envoyé est celui de Stripe (price id), aucun montant client n'est transmis
    item = fake_stripe.created[0]["line_items"][0]
    assert item["price"] == "price_prod_a"
    assert "price_data" not in item

def test_over_limit_issues_no_provider_call(fake_stripe, store_settings):
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_a", "quantity": 11}], store_settings)
    assert exc.value.status_code == 400
    assert fake_stripe.created == []
    assert fake_stripe.product_calls == []

def test_duplicate_lines_summing_over_limit_rejected(fake_stripe, store_settings):
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_a", "quantity": 6}, {"id": "prod_a", "quantity": 6}], store_settings)
    assert exc.value.status_code == 400
    assert fake_stripe.created == []

def test_duplicate_lines_within_limit_are_merged(fake_stripe, store_settings):
    _build([{"id": "prod_a", "quantity": 4}, {"id": "prod_a", "quantity": 6}], store_settings)
    items = fake_stripe.created[0]["line_items"]
    assert len(items) == 1
    assert items[0]["quantity"] == 10

def test_max_quantity_comes_from_settings(fake_stripe, use_settings):
    settings = use_settings(max_quantity_per_item=3)
    with pytest.raises(HTTPException):
        _build([{"id": "prod_a", "quantity": 4}], settings)
    _build([{"id": "prod_a", "quantity": 3}], settings)
    assert fake_stripe.created[0]["line_items"][0]["adjustable_quantity"]["maximum"] == 3

def test_each_submission_creates_a_new_session(fake_stripe, store_settings):
    cart = [{"id": "prod_a", "quantity": 1}]
    first = _build(cart, store_settings)
    second = _build(cart, store_settings)
    assert first["id"] != second["id"]
    assert len(fake_stripe.created) == 2

def test_empty_cart_rejected(fake_stripe, store_settings):
    with pytest.raises(HTTPException) as exc:
        _build("[]", store_settings)
    assert exc.value.status_code == 400
    assert fake_stripe.created == []

def test_store_disabled_rejects_with_message(fake_stripe, use_settings):
    settings = use_settings(stripe_disable_store=True, stripe_store_disabled_message="Fermé pour inventaire")
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_a", "quantity": 1}], settings)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Fermé pour inventaire"
    assert fake_stripe.created == []

def test_product_outside_allowlist_rejected(fake_stripe, store_settings):
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_pirate", "quantity": 1}], store_settings)
    assert exc.value.status_code == 400
    assert fake_stripe.product_calls == []

def test_inactive_product_rejected(fake_stripe, store_settings):
    fake_stripe.products["prod_b"]["active"] = False
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_b", "quantity": 1}], store_settings)
    assert exc.value.status_code == 400
    assert fake_stripe.created == []

def test_provider_error_is_generic(fake_stripe, store_settings):
    fake_stripe.errors["create"] = stripe.APIError("Internal details: acct_123 broke")
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_a", "quantity": 1}], store_settings)
    assert exc.value.status_code == 502
    assert exc.value.detail == GENERIC_CHECKOUT_ERROR
    assert "acct_123" not in exc.value.detail

def test_missing_secret_key(fake_stripe, use_settings):
    with pytest.raises(HTTPException) as exc:
        _build([{"id": "prod_a", "quantity": 1}], use_settings(stripe_secret_key=""))
    assert exc.value.status_code == 503

def test_optional_session_features(fake_stripe, use_settings):
    settings = use_settings(
        stripe_enable_invoice_creation=True,
        consent_message="J'accepte",
        stripe_shipping_rate_id="",
    )
    _build([{"id": "prod_a", "quantity": 1}], settings)
    params = fake_stripe.created[0]
    assert params["invoice_creation"] == {"enabled": True}
    assert params["consent_collection"] == {"terms_of_service": "required"}
    assert "shipping_options" not in params

def test_return_urls_ignore_request_host_when_site_url_is_set(fake_stripe, use_settings):
    settings = use_settings(site_url="https://shop.example")
    build_session([{"id": "prod_a", "quantity": 1}], base_url="http://evil.test", settings=settings, catalog=_catalog(settings))
    params = fake_stripe.created[0]
    assert params["success_url"].startswith("https://shop.example/success")
    assert params["cancel_url"] == "https://shop.example/store?checkout=cancelled"

def test_return_urls_prefer_configured_base_url(fake_stripe, store_settings, monkeypatch):
    monkeypatch.setattr("stripe_checkout.config.BASE_URL", "https://pay.example/")
    _build([{"id": "prod_a", "quantity": 1}], store_settings)
    assert fake_stripe.created[0]["cancel_url"] == "https://pay.example/store?checkout=cancelled"

def test_return_urls_fall_back_to_request_host(fake_stripe, use_settings):
    settings = use_settings(site_url="")
    build_session([{"id": "prod_a", "quantity": 1}], base_url="http://testserver", settings=settings, catalog=_catalog(settings))
    assert fake_stripe.created[0]["cancel_url"] == "http://testserver/store?checkout=cancelled"
