"""
Messages personnalisés de la page de paiement hébergée (custom_text Stripe).
Les modèles acceptent les marqueurs {site_name} et {site_url}.
"""
from typing import Any, Dict

from stripe_checkout.settings import StoreSettings

# Limite Stripe par message custom_text
MAX_MESSAGE_LENGTH = 1200

def render_message(template: str, site_name: str, site_url: str) -> str:
    """
    Substitue {site_name} et {site_url}. Les autres accolades restent telles quelles
    (pas de str.format: un modèle saisi par l'opérateur ne doit pas pouvoir lever KeyError).
    """
    text = (template or "").replace("{site_name}", site_name or "").replace("{site_url}", site_url or "")
    return text.strip()[:MAX_MESSAGE_LENGTH]

def build_custom_text(settings: StoreSettings) -> Dict[str, Any]:
    """
    Construit les paramètres custom_text (+ consent_collection si un message de consentement est défini).
    Retourne {} si aucun modèle n'est configuré.
    """
    def _render(template: str) -> str:
        return render_message(template, settings.site_name, settings.site_url)

    params: Dict[str, Any] = {}
    custom_text: Dict[str, Any] = {}
    consent = _render(settings.consent_message)
    if consent:
        custom_text["terms_of_service_acceptance"] = {"message": consent}
        params["consent_collection"] = {"terms_of_service": "required"}
    shipping = _render(settings.shipping_message)
    if shipping:
        custom_text["shipping_address"] = {"message": shipping}
    submit = _render(settings.submit_message)
    if submit:
        custom_text["submit"] = {"message": submit}
    receipt = _render(settings.receipt_message)
    if receipt:
        custom_text["after_submit"] = {"message": receipt}
    if custom_text:
        params["custom_text"] = custom_text
    return params
