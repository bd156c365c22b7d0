import json
import os

# Avant tout import de l'app: pas de Redis, pas de tâche de fond, pas de Supabase
os.environ["DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS"] = "1"
os.environ["DISABLE_CATALOG_REFRESH"] = "1"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""
os.environ["BASE_URL"] = ""

from typing import Any, Dict, Generator, List

import pytest
import stripe
from fastapi.testclient import TestClient

from stripe_checkout.app import app as fastapi_app
from stripe_checkout.catalog import catalog_cache
from stripe_checkout.payments import webhook as payments_webhook
from stripe_checkout.settings import StoreSettings
from stripe_checkout.settings import service as settings_service

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "stripe_secret_key": "sk_test_123",
    "stripe_webhook_secret": "whsec_test",
    "stripe_shipping_rate_id": "shr_1",
    "stripe_product_ids": "prod_a\nprod_b",
    "max_quantity_per_item": 10,
    "stripe_timezone": "America/Denver",
    "admin_email": "ops@example.com",
    "enable_groupme_notifications": True,
    "groupme_bot_id": "bot-1",
    "site_name": "Test Shop",
    "site_url": "https://shop.test",
}

def _prime_settings(**overrides) -> StoreSettings:
    settings = StoreSettings(**{**DEFAULT_SETTINGS, **overrides})
    settings_service._cache.set(settings_service._CACHE_KEY, settings, 3600)
    return settings

@pytest.fixture(autouse=True)
def store_settings() -> Generator[StoreSettings, None, None]:
    """Réglages en cache: tous les load_settings() du code les voient, sans Supabase."""
    settings = _prime_settings()
    yield settings
    settings_service.clear_settings_cache()

@pytest.fixture
def use_settings():
    """Remplace les réglages courants: use_settings(stripe_disable_store=True)."""
    return _prime_settings

@pytest.fixture(autouse=True)
def _reset_caches():
    catalog_cache.invalidate()
    payments_webhook.processed_events.clear()
    yield
    catalog_cache.invalidate()
    payments_webhook.processed_events.clear()

def stripe_product(pid: str, name: str, amount: int, active: bool = True) -> Dict[str, Any]:
    return {
        "id": pid,
        "name": name,
        "description": f"{name} description",
        "active": active,
        "images": [f"https://img.test/{pid}.png"],
        "default_price": {"id": f"price_{pid}", "unit_amount": amount, "currency": "usd", "active": True},
    }

class FakeStripe:
    """Remplace l'adaptateur stripe_checkout.infra.stripe_client; enregistre les appels."""

    def __init__(self):
        self.products: Dict[str, Any] = {
            "prod_a": stripe_product("prod_a", "T-shirt", 2500),
            "prod_b": stripe_product("prod_b", "Mug", 1500),
        }
        self.shipping_rates: Dict[str, Any] = {
            "shr_1": {"id": "shr_1", "display_name": "Standard", "fixed_amount": {"amount": 500, "currency": "usd"}},
        }
        self.sessions: Dict[str, Any] = {}
        self.line_items: Dict[str, List[Any]] = {}
        self.intents: Dict[str, Any] = {}
        self.errors: Dict[str, Exception] = {}
        self.product_calls: List[str] = []
        self.shipping_calls: List[str] = []
        self.created: List[Dict[str, Any]] = []
        self.descriptions: List[tuple] = []

    def require_stripe(self, secret_key):
        if not secret_key:
            raise RuntimeError("STRIPE_SECRET_KEY manquant")
        return stripe

    def retrieve_product(self, product_id):
        self.product_calls.append(product_id)
        if product_id in self.errors:
            raise self.errors[product_id]
        if product_id not in self.products:
            raise stripe.InvalidRequestError(f"No such product: '{product_id}'", "id")
        return self.products[product_id]

    def retrieve_shipping_rate(self, rate_id):
        self.shipping_calls.append(rate_id)
        if "shipping" in self.errors:
            raise self.errors["shipping"]
        return self.shipping_rates[rate_id]

    def create_session(self, params):
        if "create" in self.errors:
            raise self.errors["create"]
        self.created.append(params)
        n = len(self.created)
        return {"id": f"cs_test_{n}", "url": f"https://checkout.stripe.test/c/pay/cs_test_{n}"}

    def retrieve_session(self, session_id):
        if "session" in self.errors:
            raise self.errors["session"]
        return self.sessions[session_id]

    def list_line_items(self, session_id, limit=100):
        if "line_items" in self.errors:
            raise self.errors["line_items"]
        return list(self.line_items.get(session_id, []))

    def describe_payment_intent(self, payment_intent_id, description):
        self.descriptions.append((payment_intent_id, description))
        intent = dict(self.intents.get(payment_intent_id) or {"id": payment_intent_id})
        intent["description"] = description
        return intent

    def construct_event(self, payload, sig_header, secret):
        if sig_header != "t=1,v1=valid":
            raise stripe.SignatureVerificationError("No signatures found matching the expected signature", sig_header)
        return json.loads(payload)

@pytest.fixture
def fake_stripe(monkeypatch) -> FakeStripe:
    fake = FakeStripe()
    for name in (
        "require_stripe",
        "retrieve_product",
        "retrieve_shipping_rate",
        "create_session",
        "retrieve_session",
        "list_line_items",
        "describe_payment_intent",
        "construct_event",
    ):
        monkeypatch.setattr(f"stripe_checkout.infra.stripe_client.{name}", getattr(fake, name))
    return fake

@pytest.fixture
def outbox(monkeypatch) -> Dict[str, Any]:
    """Capture e-mails et messages GroupMe (aucun accès réseau)."""
    box: Dict[str, Any] = {"emails": [], "chats": [], "chat_status": 202}

    def _send_mail(to, subject, text_body, html_body):
        box["emails"].append({"to": to, "subject": subject, "text": text_body, "html": html_body})

    def _post(bot_id, text):
        box["chats"].append({"bot_id": bot_id, "text": text})
        return box["chat_status"]

    monkeypatch.setattr("stripe_checkout.config.SMTP_HOST", "smtp.test")
    monkeypatch.setattr("stripe_checkout.notifications.mailer.send_mail", _send_mail)
    monkeypatch.setattr("stripe_checkout.notifications.groupme.post_bot_message", _post)
    return box

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
