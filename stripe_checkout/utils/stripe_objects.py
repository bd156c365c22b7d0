# module stripe_checkout.utils.stripe_objects
from typing import Any

def stripe_field(obj: Any, key: str, default: Any = None) -> Any:
    """
    Lit un champ d'un objet Stripe (StripeObject, dict ou attribut).
    None est traité comme absent et remplacé par `default`.
    """
    if obj is None:
        return default
    getter = getattr(obj, "get", None)
    if callable(getter):
        value = getter(key, default)
    else:
        value = getattr(obj, key, default)
    return default if value is None else value
