"""
Cas d'usage 'checkout': panier client -> exactement une session Stripe Checkout, ou un échec propre.
Étapes:
  1) Boutique fermée => 403 avec le message configuré
  2) Panier décodé puis agrégé; quantités vérifiées ligne par ligne puis cumulées (max serveur)
  3) Prix résolus chez Stripe pour chaque id (jamais depuis les données client)
  4) line_items + options (livraison, facture, messages) puis création de la session
Aucune écriture locale: le seul changement d'état est la session côté Stripe.
"""
from typing import Any, Dict, List, Optional
import logging
import stripe
from fastapi import HTTPException

from stripe_checkout import config
from stripe_checkout.catalog import CatalogCache, Product, get_catalog
from stripe_checkout.infra import stripe_client
from stripe_checkout.settings import StoreSettings, load_settings
from . import cart as cart_logic
from .messages import build_custom_text

logger = logging.getLogger(__name__)

GENERIC_CHECKOUT_ERROR = "Une erreur est survenue lors de la création du paiement. Veuillez réessayer."

def to_line_item(product: Product, quantity: int, max_quantity_per_item: int) -> Dict[str, Any]:
    """
    Ligne Stripe basée sur le price_id courant du produit.
    adjustable_quantity reprend les bornes [1, max] pour la page hébergée.
    """
    return {
        "price": product.price_id,
        "quantity": quantity,
        "adjustable_quantity": {
            "enabled": True,
            "minimum": 1,
            "maximum": max_quantity_per_item,
        },
    }

def checkout_urls(settings: StoreSettings, fallback_base: str = "") -> Dict[str, str]:
    """
    URLs de retour bâties sur l'adresse publique configurée (BASE_URL, puis site_url).
    L'hôte de la requête (en-tête Host) ne sert qu'en dernier recours.
    """
    base = (config.BASE_URL or settings.site_url or fallback_base or "").rstrip("/")
    sep = "&" if "?" in config.CHECKOUT_SUCCESS_PATH else "?"
    return {
        "success_url": f"{base}{config.CHECKOUT_SUCCESS_PATH}{sep}session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base}{config.CHECKOUT_CANCEL_PATH}",
    }

def session_params(line_items: List[Dict[str, Any]], settings: StoreSettings, base_url: str = "") -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": line_items,
        "phone_number_collection": {"enabled": True},
        "shipping_address_collection": {"allowed_countries": list(config.ALLOWED_COUNTRIES)},
        **checkout_urls(settings, base_url),
    }
    if settings.stripe_shipping_rate_id:
        params["shipping_options"] = [{"shipping_rate": settings.stripe_shipping_rate_id}]
    if settings.stripe_enable_invoice_creation:
        params["invoice_creation"] = {"enabled": True}
    params.update(build_custom_text(settings))
    return params

def _resolve_products(
    quantities: Dict[str, int], settings: StoreSettings, catalog: CatalogCache
) -> Dict[str, Product]:
    products: Dict[str, Product] = {}
    for product_id in quantities:
        if product_id not in settings.stripe_product_ids:
            raise HTTPException(status_code=400, detail=f"Produit indisponible: {product_id}")
        try:
            product = catalog.fetch_product(product_id, settings)
        except stripe.StripeError:
            logger.exception("payments.checkout product lookup failed product_id=%s", product_id)
            raise HTTPException(status_code=502, detail=GENERIC_CHECKOUT_ERROR)
        if product is None:
            raise HTTPException(status_code=400, detail=f"Produit indisponible: {product_id}")
        products[product_id] = product
    return products

def build_session(
    cart: Any,
    base_url: str = "",
    settings: Optional[StoreSettings] = None,
    catalog: Optional[CatalogCache] = None,
) -> Dict[str, Optional[str]]:
    """
    Convertit le panier soumis en session Stripe Checkout et retourne {"id", "url"}.
    - cart: chaîne JSON ou liste [{id, quantity}]
    - Erreurs client => HTTPException 400/403 (message lisible, aucun appel Stripe)
    - Erreurs Stripe => journalisées en détail, HTTPException 502 générique pour le client
    Chaque appel crée une nouvelle session (pas de déduplication).
    """
    settings = settings or load_settings()
    catalog = catalog or get_catalog()

    if settings.stripe_disable_store:
        raise HTTPException(status_code=403, detail=settings.stripe_store_disabled_message)

    items = cart_logic.parse_cart_payload(cart)
    quantities = cart_logic.aggregate_quantities(items, settings.max_quantity_per_item)

    try:
        stripe_client.require_stripe(settings.stripe_secret_key)
    except RuntimeError:
        logger.error("payments.checkout stripe not configured")
        raise HTTPException(status_code=503, detail=GENERIC_CHECKOUT_ERROR)

    products = _resolve_products(quantities, settings, catalog)
    line_items = [
        to_line_item(products[pid], qty, settings.max_quantity_per_item)
        for pid, qty in quantities.items()
    ]
    params = session_params(line_items, settings, base_url)

    try:
        session = stripe_client.create_session(params)
    except stripe.StripeError:
        logger.exception("payments.checkout session create failed items=%s", len(line_items))
        raise HTTPException(status_code=502, detail=GENERIC_CHECKOUT_ERROR)

    url = session.get("url") if session else None
    if not url:
        logger.error("payments.checkout session without url id=%s", (session or {}).get("id"))
        raise HTTPException(status_code=502, detail=GENERIC_CHECKOUT_ERROR)
    logger.info("payments.checkout session created id=%s items=%s", session.get("id"), len(line_items))
    return {"id": session.get("id"), "url": url}
