"""
Notification e-mail de l'opérateur pour une commande payée.
Envoi SMTP (smtplib) avec timeout borné; un échec est journalisé et n'interrompt jamais le webhook.
"""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Tuple

from stripe_checkout import config
from stripe_checkout.payments.models import NotificationRecord, OrderDetails, WebhookEvent
from stripe_checkout.settings import StoreSettings
from stripe_checkout.utils.logsafe import safe_log_data
from .formatting import format_amount, format_order_date

logger = logging.getLogger(__name__)

CHANNEL = "email"
DASHBOARD_URL = "https://dashboard.stripe.com/payments/"

def build_email(event: WebhookEvent, details: OrderDetails, tz_name: str) -> Tuple[str, str, str]:
    """Retourne (sujet, texte brut, HTML). Toutes les valeurs insérées dans le HTML sont échappées."""
    subject = f"New Stripe Order: {format_order_date(event.created_at, tz_name, with_time=False)}"
    order_date = format_order_date(event.created_at, tz_name)
    amount = format_amount(event.amount_total)
    pi = event.payment_intent_id
    esc = html.escape

    text_body = (
        "New Stripe Charge\n"
        f"Order Date: {order_date}\n"
        f"Billed to: {event.customer.name} ({event.customer.email})\n"
        f"Total Amount: ${amount}\n"
        f"Order Details: {details.description}\n"
        f"Stripe ID: {pi}\n"
        f"Receipt: {details.receipt_url}\n"
        f"Dashboard: {DASHBOARD_URL}{pi}\n"
    )
    html_body = f"""<html>
<body>
    <h2>New Stripe Charge</h2>
    <p><strong>Order Date:</strong> {esc(order_date)}</p>
    <p><strong>Billed to:</strong> {esc(event.customer.name)} ({esc(event.customer.email)})</p>
    <p><strong>Total Amount:</strong> ${esc(amount)}</p>
    <p><strong>Order Details:</strong> {esc(details.description)}</p>
    <p><strong>Stripe ID:</strong> {esc(pi)}</p>
    <p><strong><a href="{esc(details.receipt_url, quote=True)}">Stripe Receipt</a> | <a href="{esc(DASHBOARD_URL + pi, quote=True)}">View in Dashboard</a></strong></p>
</body>
</html>"""
    return subject, text_body, html_body

def send_mail(to: str, subject: str, text_body: str, html_body: str) -> None:
    """Envoi SMTP brut. Lève smtplib.SMTPException / OSError en cas d'échec."""
    msg = MIMEMultipart("alternative")
    msg["From"] = config.SMTP_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    smtp_cls = smtplib.SMTP_SSL if config.SMTP_SSL else smtplib.SMTP
    with smtp_cls(config.SMTP_HOST, config.SMTP_PORT, timeout=config.SMTP_TIMEOUT_SECONDS) as smtp:
        if config.SMTP_STARTTLS and not config.SMTP_SSL:
            smtp.starttls()
        if config.SMTP_USERNAME:
            smtp.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
        smtp.send_message(msg)

def send_order_email(event: WebhookEvent, details: OrderDetails, settings: StoreSettings) -> NotificationRecord:
    to = (settings.admin_email or "").strip()
    if not to:
        logger.info("notifications.email skipped reason=no_recipient session_id=%s", event.session_id)
        return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=False, detail="no recipient")
    if not config.SMTP_HOST:
        logger.warning("notifications.email skipped reason=smtp_not_configured session_id=%s", event.session_id)
        return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=False, detail="smtp not configured")

    subject, text_body, html_body = build_email(event, details, settings.stripe_timezone)
    try:
        send_mail(to, subject, text_body, html_body)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("notifications.email failed session_id=%s err=%s", event.session_id, safe_log_data(e))
        return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=False, detail="send failed")
    logger.info("notifications.email sent session_id=%s", event.session_id)
    return NotificationRecord(channel=CHANNEL, session_id=event.session_id, ok=True, detail="sent")
