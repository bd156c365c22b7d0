"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Toutes les données de prix, de livraison et de paiement viennent d'ici (jamais du client).
"""
from typing import Any, Dict, List, Optional
import stripe

from stripe_checkout.config import HTTP_TIMEOUT_SECONDS, STRIPE_MAX_NETWORK_RETRIES

_http_client = None

# module stripe_checkout.infra.stripe_client
def require_stripe(secret_key: str):
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key, les retries réseau et un client HTTP à timeout borné.
    - Lève RuntimeError si la clé secrète n'est pas configurée.
    """
    global _http_client
    if not secret_key:
        raise RuntimeError("STRIPE_SECRET_KEY manquant")
    stripe.api_key = secret_key
    stripe.max_network_retries = STRIPE_MAX_NETWORK_RETRIES
    if _http_client is None:
        _http_client = stripe.RequestsClient(timeout=HTTP_TIMEOUT_SECONDS)
        stripe.default_http_client = _http_client
    return stripe

def retrieve_product(product_id: str):
    """Produit Stripe avec son prix par défaut développé (default_price)."""
    return stripe.Product.retrieve(product_id, expand=["default_price"])

def retrieve_shipping_rate(shipping_rate_id: str):
    return stripe.ShippingRate.retrieve(shipping_rate_id)

def create_session(params: Dict[str, Any]):
    """
    Crée une session Stripe Checkout.
    Retour: objet session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    return stripe.checkout.Session.create(**params)

def retrieve_session(session_id: str):
    """Session Checkout par identifiant (montants, client, payment_intent font foi)."""
    return stripe.checkout.Session.retrieve(session_id)

def list_line_items(session_id: str, limit: int = 100) -> List[Any]:
    res = stripe.checkout.Session.list_line_items(session_id, limit=limit)
    return list(res.get("data") or [])

def describe_payment_intent(payment_intent_id: str, description: Optional[str]):
    """
    Écrit la description de commande sur le PaymentIntent puis le relit avec latest_charge
    (pour l'URL du reçu).
    """
    if description:
        stripe.PaymentIntent.modify(payment_intent_id, description=description)
    return stripe.PaymentIntent.retrieve(payment_intent_id, expand=["latest_charge"])

def construct_event(payload: bytes, sig_header: str, secret: str):
    """
    Valide la signature et parse l'événement.
    Lève ValueError (payload invalide) ou stripe.SignatureVerificationError (signature invalide).
    """
    return stripe.Webhook.construct_event(payload, sig_header, secret)
