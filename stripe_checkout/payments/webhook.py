"""
Réconciliation des webhooks Stripe (checkout.session.completed).
Cycle d'une livraison: reçue -> vérifiée (signature) -> filtrée (type) -> traitée -> acquittée.
- Chaque porte rejette avant tout effet de bord (pas d'appel Stripe, pas de notification).
- Les données de commande (montant, client, lignes) sont relues chez Stripe; le corps du webhook ne sert qu'à l'id.
- Les ids d'événements déjà traités sont mémorisés (TTL) pour ne pas renotifier lors des relivraisons.
"""
from typing import Any, Iterable, Optional
import logging
import stripe

from stripe_checkout import config
from stripe_checkout.utils.stripe_objects import stripe_field
from stripe_checkout.infra import stripe_client
from stripe_checkout.notifications import service as notifications_service
from stripe_checkout.settings import StoreSettings, load_settings
from stripe_checkout.utils.logsafe import safe_log_data
from stripe_checkout.utils.ttl_cache import TTLCache
from .models import OrderDetails, WebhookEvent, WebhookResult

logger = logging.getLogger(__name__)

ALLOWED_EVENTS = frozenset({"checkout.session.completed"})
ORDER_DETAILS_UNAVAILABLE = "Order details unavailable"
MULTIPLE_ITEMS = "Multiple Items (3+)"
MAX_DESCRIBED_ITEMS = 3

# ids d'événements déjà traités (en mémoire, par processus)
processed_events = TTLCache()

def build_order_description(line_items: Iterable[Any]) -> str:
    """'{quantité}x {description}' joints par ', ' jusqu'à 3 lignes, 'Multiple Items (3+)' au-delà."""
    parts = []
    for item in line_items or []:
        parts.append(f"{stripe_field(item, 'quantity', 0)}x {str(stripe_field(item, 'description', '')).strip()}")
        if len(parts) > MAX_DESCRIBED_ITEMS:
            return MULTIPLE_ITEMS
    return ", ".join(parts)

def get_order_details(session_id: str, payment_intent_id: str) -> OrderDetails:
    """
    Décrit la commande à partir des lignes Stripe, écrit la description sur le PaymentIntent
    et récupère l'URL du reçu (latest_charge).
    Erreur Stripe => 'Order details unavailable' et reçu vide (la notification part quand même).
    """
    try:
        description = build_order_description(stripe_client.list_line_items(session_id))
        receipt_url = ""
        if payment_intent_id:
            intent = stripe_client.describe_payment_intent(payment_intent_id, description)
            charge = stripe_field(intent, "latest_charge")
            if charge and not isinstance(charge, str):
                receipt_url = str(stripe_field(charge, "receipt_url", ""))
            description = stripe_field(intent, "description") or description
        return OrderDetails(description=description, receipt_url=receipt_url)
    except stripe.StripeError as e:
        logger.error("payments.webhook order details failed session_id=%s err=%s", session_id, safe_log_data(e))
        return OrderDetails(description=ORDER_DETAILS_UNAVAILABLE, receipt_url="")

def _transport_ok(method: str, content_type: Optional[str], signature: Optional[str]) -> bool:
    if (method or "").upper() != "POST":
        return False
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return mime == "application/json" and bool((signature or "").strip())

def handle_delivery(
    method: str,
    content_type: Optional[str],
    signature: Optional[str],
    payload: bytes,
    settings: Optional[StoreSettings] = None,
    seen: Optional[TTLCache] = None,
) -> WebhookResult:
    """
    Traite une livraison webhook et retourne le statut HTTP + corps texte à renvoyer à Stripe.
    - 400: transport invalide, payload/signature invalide, type non supporté
    - 500: secret non configuré ou erreur interne (Stripe relivrera)
    - 200: traité, ou déjà traité (aucune renotification)
    """
    if not _transport_ok(method, content_type, signature):
        logger.warning("payments.webhook rejected transport method=%s content_type=%s", method, safe_log_data(content_type))
        return WebhookResult(status_code=400, message="Invalid request")

    settings = settings or load_settings()
    seen = processed_events if seen is None else seen
    secret = settings.stripe_webhook_secret
    if not secret:
        logger.error("payments.webhook secret not configured")
        return WebhookResult(status_code=500, message="Server error")

    try:
        event = stripe_client.construct_event(payload, signature, secret)
    except ValueError as e:
        logger.warning("payments.webhook invalid payload err=%s", safe_log_data(e))
        return WebhookResult(status_code=400, message="Invalid payload")
    except stripe.SignatureVerificationError as e:
        logger.warning("payments.webhook invalid signature err=%s", safe_log_data(e))
        return WebhookResult(status_code=400, message="Invalid signature")

    event_type = str(stripe_field(event, "type", ""))
    event_id = str(stripe_field(event, "id", ""))
    if event_type not in ALLOWED_EVENTS:
        logger.info("payments.webhook ignored type=%s event_id=%s", safe_log_data(event_type), event_id)
        return WebhookResult(status_code=400, message="Event type not supported")

    if event_id and not seen.add(event_id, config.WEBHOOK_DEDUP_TTL_SECONDS):
        logger.info("payments.webhook duplicate event_id=%s", event_id)
        return WebhookResult(status_code=200, message="Event already processed")

    try:
        session_ref = stripe_field(stripe_field(event, "data", {}), "object", {})
        session_id = str(stripe_field(session_ref, "id", ""))
        if not session_id:
            raise ValueError("checkout session id manquant")
        stripe_client.require_stripe(settings.stripe_secret_key)
        session = stripe_client.retrieve_session(session_id)
        order = WebhookEvent.from_session(event_id, event_type, session)
        details = get_order_details(order.session_id, order.payment_intent_id)
        notifications_service.dispatch_order_notifications(order, details, settings)
    except Exception as e:
        # Stripe relivrera: l'id est oublié pour permettre un nouveau traitement
        if event_id:
            seen.delete(event_id)
        logger.exception("payments.webhook processing failed event_id=%s err=%s", event_id, safe_log_data(e))
        return WebhookResult(status_code=500, message="Server error")

    logger.info(
        "payments.webhook processed event_id=%s session_id=%s amount=%s",
        event_id,
        order.session_id,
        order.amount_total,
    )
    return WebhookResult(status_code=200, message="Webhook processed successfully", dispatched=True)
