from fastapi import APIRouter, Request

from stripe_checkout.infra import supabase_client
from stripe_checkout.settings import load_settings
from stripe_checkout.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/details")
def health_details(request: Request):
    # Aucun secret exposé: uniquement des booléens de configuration
    settings = load_settings()
    return {
        "ok": True,
        "settings_store": supabase_client.is_configured(),
        "stripe_configured": bool(settings.stripe_secret_key),
        "webhook_configured": bool(settings.stripe_webhook_secret),
        "store_enabled": not settings.stripe_disable_store,
        "rate_limit": rate_limit_health_info(request),
    }
