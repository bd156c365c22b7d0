# module stripe_checkout.catalog.views

"""Endpoints du catalogue.
- /products: liste normalisée des produits (partielle si Stripe échoue sur certains ids).
- /products/{product_id}: un produit de la liste autorisée (404 sinon).
- /store: état de la boutique pour le front (ouverte/fermée, quantité max, tarif de livraison).
- /cache/clear: vide le cache catalogue + livraison (jeton d'administration requis).
"""
import logging
import secrets
from typing import Any, Dict
from fastapi import APIRouter, Depends, Header, HTTPException

from stripe_checkout.config import ADMIN_API_TOKEN
from stripe_checkout.settings import load_settings
from .service import CatalogCache, get_catalog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/catalog", tags=["Catalog API"])

def require_admin_token(x_admin_token: str = Header(default="")) -> None:
    if not ADMIN_API_TOKEN:
        raise HTTPException(status_code=404, detail="Not Found")
    if not x_admin_token or not secrets.compare_digest(x_admin_token, ADMIN_API_TOKEN):
        raise HTTPException(status_code=403, detail="Accès interdit")

@router.get("/products")
def list_products(catalog: CatalogCache = Depends(get_catalog)) -> Dict[str, Any]:
    products = catalog.get_products()
    return {"products": [p.public_dict() for p in products]}

@router.get("/products/{product_id}")
def get_product(product_id: str, catalog: CatalogCache = Depends(get_catalog)) -> Dict[str, Any]:
    product = catalog.get_product(product_id.strip())
    if product is None:
        raise HTTPException(status_code=404, detail="Produit introuvable")
    return {"product": product.public_dict()}

@router.get("/store")
def store_state(catalog: CatalogCache = Depends(get_catalog)) -> Dict[str, Any]:
    """
    Variables exposées au front: l'affichage du panier s'appuie dessus,
    la validation serveur reste celle du checkout.
    """
    settings = load_settings()
    if settings.stripe_disable_store:
        return {"enabled": False, "message": settings.stripe_store_disabled_message}
    rate = catalog.get_shipping_rate()
    return {
        "enabled": True,
        "max_quantity_per_item": settings.max_quantity_per_item,
        "shipping_rate": rate.model_dump() if rate else None,
    }

@router.post("/cache/clear", dependencies=[Depends(require_admin_token)])
def clear_cache(catalog: CatalogCache = Depends(get_catalog)) -> Dict[str, Any]:
    catalog.invalidate()
    logger.info("catalog.cache cleared via API")
    return {"status": "ok"}
