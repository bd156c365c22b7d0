"""
Cas d'usage 'settings': lecture/écriture des réglages, déchiffrement des secrets.
Rôles:
- load_settings: fusionne les lignes de la table 'settings' avec les valeurs .env et valide en StoreSettings.
- save_setting: chiffre les secrets puis écrit la valeur.
- get_or_create_encryption_key: clé Fernet aléatoire, générée une seule fois et stockée.
"""
from typing import Any, Dict, Optional
import logging
from pydantic import ValidationError

from stripe_checkout import config
from stripe_checkout.utils.ttl_cache import TTLCache
from . import repository
from . import crypto
from .models import StoreSettings, SECRET_KEYS

logger = logging.getLogger(__name__)

ENCRYPTION_KEY_SETTING = "encryption_key"
_CACHE_KEY = "store_settings"
_cache = TTLCache()

def _env_defaults() -> Dict[str, Any]:
    return {
        "stripe_secret_key": config.STRIPE_SECRET_KEY,
        "stripe_webhook_secret": config.STRIPE_WEBHOOK_SECRET,
        "stripe_shipping_rate_id": config.DEFAULT_SHIPPING_RATE_ID,
        "stripe_product_ids": config.DEFAULT_PRODUCT_IDS,
        "max_quantity_per_item": config.DEFAULT_MAX_QUANTITY_PER_ITEM,
        "stripe_timezone": config.DEFAULT_TIMEZONE,
        "admin_email": config.ADMIN_EMAIL,
        "site_name": config.SITE_NAME,
        "site_url": config.SITE_URL,
    }

def _stored_key(rows: Dict[str, str]) -> str:
    return config.SETTINGS_ENCRYPTION_KEY or rows.get(ENCRYPTION_KEY_SETTING) or ""

def get_or_create_encryption_key() -> str:
    """
    Retourne la clé de chiffrement:
    1) SETTINGS_ENCRYPTION_KEY (.env) si présente
    2) sinon la ligne 'encryption_key' de la table
    3) sinon une nouvelle clé aléatoire, stockée immédiatement
    """
    if config.SETTINGS_ENCRYPTION_KEY:
        return config.SETTINGS_ENCRYPTION_KEY
    stored = repository.get_setting(ENCRYPTION_KEY_SETTING)
    if stored:
        return stored
    key = crypto.generate_key()
    if not repository.upsert_setting(ENCRYPTION_KEY_SETTING, key):
        raise RuntimeError("Impossible d'enregistrer la clé de chiffrement")
    logger.info("settings.service encryption key generated")
    return key

def _merge(rows: Dict[str, str]) -> Dict[str, Any]:
    merged = _env_defaults()
    key: Optional[str] = None
    for name in StoreSettings.model_fields:
        if name not in rows or rows[name] in (None, ""):
            continue
        value = rows[name]
        if name in SECRET_KEYS:
            key = key or _stored_key(rows)
            value = crypto.decrypt(value, key) if key else ""
            if not value:
                # Secret illisible: on garde la valeur .env éventuelle
                continue
        merged[name] = value
    return merged

def load_settings(force: bool = False) -> StoreSettings:
    """
    Réglages courants, mis en cache SETTINGS_CACHE_TTL_SECONDS.
    - Table indisponible: valeurs .env.
    - Valeur invalide (ex: max_quantity_per_item hors 1..99): log, seul ce champ repasse
      à sa valeur .env (ou au défaut du modèle); les autres réglages, secrets compris, sont gardés.
    """
    if not force:
        cached = _cache.get(_CACHE_KEY)
        if cached is not None:
            return cached
    rows = repository.fetch_all_settings()
    settings = _validate(_merge(rows))
    _cache.set(_CACHE_KEY, settings, config.SETTINGS_CACHE_TTL_SECONDS)
    return settings

def _validate(values: Dict[str, Any]) -> StoreSettings:
    env = _env_defaults()
    dropped: set = set()
    while True:
        try:
            return StoreSettings(**values)
        except ValidationError as e:
            fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")} - dropped
            if not fields:
                raise
            logger.error("settings.service invalid settings fields=%s, falling back per field", sorted(fields))
            for name in fields:
                # valeur .env d'abord; si elle est aussi invalide, défaut du modèle
                if name in env and values.get(name) != env[name]:
                    values[name] = env[name]
                else:
                    values.pop(name, None)
                    dropped.add(name)

def save_setting(name: str, value: Any) -> bool:
    """
    Écrit un réglage. Les secrets sont chiffrés avant écriture.
    Lève ValueError si le nom est inconnu ou la valeur invalide.
    """
    if name not in StoreSettings.model_fields:
        raise ValueError(f"Réglage inconnu: {name}")
    if isinstance(value, (list, tuple)):
        value = "\n".join(str(v) for v in value)
    raw = "" if value is None else str(value)
    # Validation du champ seul avant écriture
    try:
        StoreSettings.model_validate({name: raw} if name in SECRET_KEYS else {name: value})
    except ValidationError as e:
        raise ValueError(f"Valeur invalide pour {name}: {e.errors()[0].get('msg')}") from e
    if name in SECRET_KEYS and raw:
        raw = crypto.encrypt(raw, get_or_create_encryption_key())
    ok = repository.upsert_setting(name, raw)
    clear_settings_cache()
    return ok

def clear_settings_cache() -> None:
    _cache.clear()
