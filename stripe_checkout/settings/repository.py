"""
Accès aux données pour la feature 'settings' (table clé/valeur Supabase).
"""
from typing import Dict, Optional
import logging
import stripe_checkout.infra.supabase_client as supabase_client
from stripe_checkout.config import SETTINGS_TABLE

logger = logging.getLogger(__name__)

# module stripe_checkout.settings.repository
def fetch_all_settings() -> Dict[str, str]:
    """
    Retourne toutes les lignes de réglages sous forme {key: value}.
    - Retourne {} si Supabase n'est pas configuré ou en cas d'erreur (les valeurs .env prennent le relais).
    """
    if not supabase_client.is_configured():
        return {}
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(SETTINGS_TABLE)
            .select("key, value")
            .execute()
        )
        return {str(row.get("key")): row.get("value") or "" for row in (res.data or []) if row.get("key")}
    except Exception:
        logger.exception("settings.repository.fetch_all_settings failed table=%s", SETTINGS_TABLE)
        return {}

def get_setting(key: str) -> Optional[str]:
    if not supabase_client.is_configured():
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(SETTINGS_TABLE)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0].get("value") if rows else None
    except Exception:
        logger.exception("settings.repository.get_setting failed key=%s", key)
        return None

def upsert_setting(key: str, value: str) -> bool:
    """
    Insère ou remplace une valeur (conflit sur 'key').
    Lève RuntimeError si le stockage n'est pas configuré: une écriture perdue ne doit pas passer inaperçue.
    """
    client = supabase_client.get_service_supabase()
    try:
        client.table(SETTINGS_TABLE).upsert({"key": key, "value": value}, on_conflict="key").execute()
        return True
    except Exception:
        logger.exception("settings.repository.upsert_setting failed key=%s", key)
        return False
