# module stripe_checkout.catalog.models
from typing import Any, Optional
from pydantic import BaseModel, Field

from stripe_checkout.utils.stripe_objects import stripe_field

class Product(BaseModel):
    """Produit normalisé, en lecture seule, issu de Stripe."""
    id: str
    name: str
    description: Optional[str] = None
    unit_price: int = Field(..., gt=0, description="Prix unitaire en centimes")
    currency: str
    image_url: Optional[str] = None
    price_id: str

    @classmethod
    def from_stripe(cls, product: Any) -> Optional["Product"]:
        """
        Normalise un produit Stripe (default_price développé).
        Retourne None si le produit est inactif ou sans prix exploitable.
        """
        if not stripe_field(product, "active", True):
            return None
        price = stripe_field(product, "default_price")
        if not price or isinstance(price, str):
            return None
        if not stripe_field(price, "active", True):
            return None
        unit_amount = stripe_field(price, "unit_amount")
        if not isinstance(unit_amount, int) or unit_amount <= 0:
            return None
        images = stripe_field(product, "images", []) or []
        return cls(
            id=str(stripe_field(product, "id", "")),
            name=str(stripe_field(product, "name", "")),
            description=stripe_field(product, "description") or None,
            unit_price=unit_amount,
            currency=str(stripe_field(price, "currency", "usd")).lower(),
            image_url=images[0] if images else None,
            price_id=str(stripe_field(price, "id", "")),
        )

    def public_dict(self) -> dict:
        # price_id reste côté serveur
        return self.model_dump(exclude={"price_id"})

class ShippingRate(BaseModel):
    id: str
    amount: int
    currency: str
    display_name: str

    @classmethod
    def from_stripe(cls, rate: Any) -> Optional["ShippingRate"]:
        fixed = stripe_field(rate, "fixed_amount")
        if not fixed:
            return None
        return cls(
            id=str(stripe_field(rate, "id", "")),
            amount=int(stripe_field(fixed, "amount", 0)),
            currency=str(stripe_field(fixed, "currency", "usd")).lower(),
            display_name=str(stripe_field(rate, "display_name", "Shipping")),
        )
