"""
Module 'catalog': produits et tarif de livraison Stripe, mis en cache avec TTL.
"""

from .models import Product, ShippingRate
from .service import CatalogCache, catalog_cache, get_catalog

__all__ = [
    "Product",
    "ShippingRate",
    "CatalogCache",
    "catalog_cache",
    "get_catalog",
]
