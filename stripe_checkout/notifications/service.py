"""
Répartiteur des notifications de commande: e-mail puis GroupMe, indépendamment l'un de l'autre.
Un canal en échec n'empêche pas l'autre; rien n'est persisté.
"""
import logging
from typing import List, Optional

from stripe_checkout.payments.models import NotificationRecord, OrderDetails, WebhookEvent
from stripe_checkout.settings import StoreSettings, load_settings
from . import groupme, mailer

logger = logging.getLogger(__name__)

def dispatch_order_notifications(
    event: WebhookEvent,
    details: OrderDetails,
    settings: Optional[StoreSettings] = None,
) -> List[NotificationRecord]:
    settings = settings or load_settings()
    records = [mailer.send_order_email(event, details, settings)]
    if settings.enable_groupme_notifications:
        records.append(groupme.send_order_message(event, details, settings))
    logger.info(
        "notifications.dispatch session_id=%s results=%s",
        event.session_id,
        ",".join(f"{r.channel}:{'ok' if r.ok else 'ko'}" for r in records),
    )
    return records
