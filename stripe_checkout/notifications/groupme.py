# module stripe_checkout.notifications.groupme
import logging
import httpx

from stripe_checkout import config
from stripe_checkout.payments.models import NotificationRecord, OrderDetails, WebhookEvent
from stripe_checkout.settings import StoreSettings
from stripe_checkout.utils.logsafe import safe_log_data
from .formatting import format_amount, format_order_date

logger = logging.getLogger(__name__)

CHANNEL = "groupme"

def build_message(event: WebhookEvent, details: OrderDetails, tz_name: str) -> str:
    return (
        "New Stripe Charge!\n"
        f"Date: {format_order_date(event.created_at, tz_name)}\n"
        f"Description: {details.description}\n"
        f"Total Amount: ${format_amount(event.amount_total)}\n"
        f"ID: {event.payment_intent_id}"
    )

def post_bot_message(bot_id: str, text: str) -> int:
    """POST vers l'API bots GroupMe; retourne le code HTTP. Lève httpx.HTTPError (réseau, timeout)."""
    with httpx.Client(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
        resp = client.post(config.GROUPME_BOT_URL, json={"bot_id": bot_id, "text": text})
    return resp.status_code

def send_order_message(event: WebhookEvent, details: OrderDetails, settings: StoreSettings) -> NotificationRecord:
    """
    Message de chat pour une commande payée.
    Succès uniquement si GroupMe répond 202; tout autre cas est journalisé et non bloquant.
    """
    bot_id = (settings.groupme_bot_id or "").strip()
    if not bot_id:
        logger.error("notifications.groupme bot id missing session_id=%s", event.session_id)
        return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=False, detail="no bot id")

    text = build_message(event, details, settings.stripe_timezone)
    try:
        status = post_bot_message(bot_id, text)
    except httpx.HTTPError as e:
        logger.error("notifications.groupme error session_id=%s err=%s", event.session_id, safe_log_data(e))
        return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=False, detail="request failed")
    if status != 202:
        logger.error("notifications.groupme unexpected status=%s session_id=%s", status, event.session_id)
        return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=False, detail=f"status {status}")
    logger.info("notifications.groupme sent session_id=%s", event.session_id)
    return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=True, detail="sent")
