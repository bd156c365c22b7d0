# module stripe_checkout.notifications.formatting
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DATE_ERROR = "Date Error"

def _to_local(created: int, tz_name: str) -> datetime:
    return datetime.fromtimestamp(int(created), tz=timezone.utc).astimezone(ZoneInfo(tz_name))

def format_order_date(created: int, tz_name: str, with_time: bool = True) -> str:
    """
    Date de commande dans le fuseau de l'opérateur.
    - with_time=True: '03/05/2024 2:07pm' (corps des messages)
    - with_time=False: '03/05/2024' (sujet de l'e-mail)
    Fuseau invalide => 'Date Error' (journalisé).
    """
    try:
        local = _to_local(created, tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OverflowError, OSError) as e:
        logger.warning("notifications.date timezone error tz=%s err=%s", tz_name, e)
        return DATE_ERROR
    day = local.strftime("%m/%d/%Y")
    if not with_time:
        return day
    hour = local.hour % 12 or 12
    suffix = "am" if local.hour < 12 else "pm"
    return f"{day} {hour}:{local.minute:02d}{suffix}"

def format_amount(amount_minor) -> str:
    """Montant en unités mineures -> '12.34' (valeur absolue, deux décimales)."""
    try:
        value = abs(float(amount_minor or 0)) / 100
    except (TypeError, ValueError):
        value = 0.0
    return f"{value:,.2f}"
