# stripe_checkout.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose les valeurs par défaut utilisées quand le magasin de réglages (table 'settings') est vide
- Normalise les secrets/URLs (Stripe, Supabase), durées de cache et timeouts réseau
- Fournit les chemins de redirection du checkout
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

def _bool_env(name: str, default: bool = False) -> bool:
    raw = _clean_env(os.getenv(name) or "")
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")

def _list_env(name: str, default: str) -> list[str]:
    return [v.strip() for v in (os.getenv(name) or default).split(",") if v.strip()]

# Supabase: stockage clé/valeur des réglages (clé service, écritures côté serveur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")
SETTINGS_TABLE = _clean_env(os.getenv("SETTINGS_TABLE") or "settings")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Clé Fernet des secrets chiffrés; si vide, générée une fois et stockée dans 'settings'
SETTINGS_ENCRYPTION_KEY = _clean_env(os.getenv("SETTINGS_ENCRYPTION_KEY") or "")

# Stripe: valeurs de repli si les réglages chiffrés ne sont pas renseignés
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_MAX_NETWORK_RETRIES = _int_env("STRIPE_MAX_NETWORK_RETRIES", 1)

# Valeurs par défaut de la boutique
DEFAULT_PRODUCT_IDS = _clean_env(os.getenv("STRIPE_PRODUCT_IDS") or "")
DEFAULT_SHIPPING_RATE_ID = _clean_env(os.getenv("STRIPE_SHIPPING_RATE_ID") or "")
DEFAULT_MAX_QUANTITY_PER_ITEM = _int_env("MAX_QUANTITY_PER_ITEM", 10)
DEFAULT_TIMEZONE = _clean_env(os.getenv("STRIPE_TIMEZONE") or "America/Denver")
ADMIN_EMAIL = _clean_env(os.getenv("ADMIN_EMAIL") or "")
SITE_NAME = _clean_env(os.getenv("SITE_NAME") or "Boutique")
SITE_URL = _clean_env(os.getenv("SITE_URL") or "http://localhost:8000")
ALLOWED_COUNTRIES = [c.upper() for c in _list_env("ALLOWED_COUNTRIES", "US,CA")]

# Caches (secondes). Le catalogue et le tarif de livraison expirent indépendamment.
CATALOG_CACHE_TTL_SECONDS = _int_env("CATALOG_CACHE_TTL_SECONDS", 3 * 3600)
SHIPPING_RATE_CACHE_TTL_SECONDS = _int_env("SHIPPING_RATE_CACHE_TTL_SECONDS", 72 * 3600)
CATALOG_REFRESH_INTERVAL_SECONDS = _int_env("CATALOG_REFRESH_INTERVAL_SECONDS", 3600)
SETTINGS_CACHE_TTL_SECONDS = _int_env("SETTINGS_CACHE_TTL_SECONDS", 60)
WEBHOOK_DEDUP_TTL_SECONDS = _int_env("WEBHOOK_DEDUP_TTL_SECONDS", 24 * 3600)

# Timeouts réseau sortants (Stripe, GroupMe, SMTP)
HTTP_TIMEOUT_SECONDS = _int_env("HTTP_TIMEOUT_SECONDS", 15)
SMTP_TIMEOUT_SECONDS = _int_env("SMTP_TIMEOUT_SECONDS", 10)

# SMTP (notification e-mail de l'opérateur)
SMTP_HOST = _clean_env(os.getenv("SMTP_HOST") or "")
SMTP_PORT = _int_env("SMTP_PORT", 587)
SMTP_USERNAME = _clean_env(os.getenv("SMTP_USERNAME") or "")
SMTP_PASSWORD = _clean_env(os.getenv("SMTP_PASSWORD") or "")
SMTP_FROM = _clean_env(os.getenv("SMTP_FROM") or SMTP_USERNAME or "no-reply@localhost")
SMTP_STARTTLS = _bool_env("SMTP_STARTTLS", True)
SMTP_SSL = _bool_env("SMTP_SSL", False)

GROUPME_BOT_URL = _clean_env(os.getenv("GROUPME_BOT_URL") or "https://api.groupme.com/v3/bots/post")

# Pages de succès/annulation du checkout
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/success?checkout=success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/store?checkout=cancelled")

# Jeton d'administration (vidage du cache); vide => endpoint désactivé
ADMIN_API_TOKEN = _clean_env(os.getenv("ADMIN_API_TOKEN") or "")

# CORS (dev)
CORS_ORIGINS = _list_env("CORS_ORIGINS", "*")
ALLOWED_HOSTS = _list_env("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")
COOKIE_SECURE = _bool_env("COOKIE_SECURE", False)

BASE_URL = _clean_env(os.getenv("BASE_URL") or "")
