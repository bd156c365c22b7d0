"""
Couche service du catalogue: vue cohérente, à péremption bornée, des produits Stripe.
Rôles:
- get_products: liste filtrée (actifs, avec prix) et triée par prix croissant, mise en cache avec TTL.
- get_product: lecture d'un produit depuis le cache, sinon depuis Stripe (et mise à jour du cache).
- get_shipping_rate: tarif de livraison configuré, mis en cache avec son propre TTL.
- invalidate / refresh: vidage synchrone et rafraîchissement périodique (tâche de fond).
Un échec sur un produit est journalisé et le produit ignoré: le catalogue reste affichable.
"""
from typing import Callable, Dict, List, Optional
import logging
import stripe
from pydantic import ValidationError

from stripe_checkout import config
from stripe_checkout.infra import stripe_client
from stripe_checkout.settings import StoreSettings, load_settings
from stripe_checkout.utils.logsafe import safe_log_data
from stripe_checkout.utils.ttl_cache import TTLCache
from .models import Product, ShippingRate

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "stripe_products_cache"
SHIPPING_KEY = "stripe_shipping_rate_info"
# Un catalogue partiel (au moins un échec) est conservé moins longtemps
PARTIAL_TTL_SECONDS = 300

class CatalogCache:
    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        ttl_seconds: int = config.CATALOG_CACHE_TTL_SECONDS,
        shipping_ttl_seconds: int = config.SHIPPING_RATE_CACHE_TTL_SECONDS,
        settings_loader: Callable[[], StoreSettings] = load_settings,
    ):
        self.cache = cache or TTLCache()
        self.ttl_seconds = ttl_seconds
        self.shipping_ttl_seconds = shipping_ttl_seconds
        self._settings_loader = settings_loader

    @staticmethod
    def _products_key(product_ids: List[str]) -> str:
        # Clé dépendante de l'ensemble d'ids configuré: un changement de liste force un rechargement
        return f"{PRODUCTS_KEY}:{','.join(sorted(product_ids))}"

    @staticmethod
    def _shipping_key(rate_id: str) -> str:
        return f"{SHIPPING_KEY}:{rate_id}"

    def fetch_product(self, product_id: str, settings: Optional[StoreSettings] = None) -> Optional[Product]:
        """
        Lecture directe (sans cache) d'un produit Stripe normalisé.
        Retourne None si inactif ou sans prix; les erreurs Stripe sont propagées.
        """
        settings = settings or self._settings_loader()
        stripe_client.require_stripe(settings.stripe_secret_key)
        return Product.from_stripe(stripe_client.retrieve_product(product_id))

    def get_products(self) -> List[Product]:
        settings = self._settings_loader()
        product_ids = settings.stripe_product_ids
        if not product_ids:
            return []
        key = self._products_key(product_ids)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        try:
            stripe_client.require_stripe(settings.stripe_secret_key)
        except RuntimeError:
            logger.error("catalog.get_products stripe not configured")
            return []

        products: List[Product] = []
        failures = 0
        for product_id in product_ids:
            try:
                product = Product.from_stripe(stripe_client.retrieve_product(product_id))
            except (stripe.StripeError, ValidationError) as e:
                failures += 1
                logger.warning("catalog.fetch_product failed product_id=%s error=%s", product_id, safe_log_data(e))
                continue
            if product is None:
                logger.info("catalog.fetch_product skipped product_id=%s (inactive or unpriced)", product_id)
                continue
            products.append(product)

        products.sort(key=lambda p: p.unit_price)
        if failures and not products:
            return []
        ttl = min(self.ttl_seconds, PARTIAL_TTL_SECONDS) if failures else self.ttl_seconds
        self.cache.set(key, products, ttl)
        logger.info("catalog.get_products fetched=%s failed=%s ttl=%s", len(products), failures, ttl)
        return list(products)

    def get_product(self, product_id: str) -> Optional[Product]:
        settings = self._settings_loader()
        if product_id not in settings.stripe_product_ids:
            return None
        key = self._products_key(settings.stripe_product_ids)
        cached = self.cache.get(key)
        if cached is not None:
            for product in cached:
                if product.id == product_id:
                    return product

        try:
            product = self.fetch_product(product_id, settings)
        except (stripe.StripeError, RuntimeError, ValidationError) as e:
            logger.warning("catalog.get_product failed product_id=%s error=%s", product_id, safe_log_data(e))
            return None

        if product is not None and cached is not None:
            remaining = self.cache.expires_in(key) or self.ttl_seconds
            updated = [p for p in cached if p.id != product_id] + [product]
            updated.sort(key=lambda p: p.unit_price)
            self.cache.set(key, updated, remaining)
        return product

    def get_shipping_rate(self) -> Optional[ShippingRate]:
        settings = self._settings_loader()
        rate_id = settings.stripe_shipping_rate_id
        if not rate_id:
            return None
        key = self._shipping_key(rate_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            stripe_client.require_stripe(settings.stripe_secret_key)
            rate = ShippingRate.from_stripe(stripe_client.retrieve_shipping_rate(rate_id))
        except (stripe.StripeError, RuntimeError, ValidationError) as e:
            logger.error("catalog.get_shipping_rate failed rate_id=%s error=%s", rate_id, safe_log_data(e))
            return None
        if rate is not None:
            self.cache.set(key, rate, self.shipping_ttl_seconds)
        return rate

    def invalidate(self) -> None:
        """Vide la liste de produits et le tarif de livraison; les prochains appels rechargent."""
        self.cache.clear()
        logger.info("catalog.invalidate done")

    def refresh(self) -> Dict[str, bool]:
        """
        Tick de fond: repeuple les entrées expirées uniquement.
        Peut chevaucher un rafraîchissement au premier plan (même clé, dernier écrivain gagnant).
        """
        settings = self._settings_loader()
        refreshed = {"products": False, "shipping_rate": False}
        if settings.stripe_product_ids and not self.cache.has(self._products_key(settings.stripe_product_ids)):
            self.get_products()
            refreshed["products"] = True
        if settings.stripe_shipping_rate_id and not self.cache.has(self._shipping_key(settings.stripe_shipping_rate_id)):
            self.get_shipping_rate()
            refreshed["shipping_rate"] = True
        return refreshed

catalog_cache = CatalogCache()

def get_catalog() -> CatalogCache:
    """Dépendance FastAPI (surchargeable en tests)."""
    return catalog_cache
