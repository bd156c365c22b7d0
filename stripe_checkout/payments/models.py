"""
Modèles pydantic du module payments (entrées HTTP, événements webhook, détails de commande).
Les objets Stripe sont convertis ici, à la frontière, puis seuls ces modèles circulent.
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field

from stripe_checkout.utils.stripe_objects import stripe_field

class CheckoutRequest(BaseModel):
    """Corps JSON du checkout: {"cart": "<json>"} (formulaire historique) ou {"items": [...]}."""
    cart: Optional[Union[str, List[Dict[str, Any]]]] = None
    items: Optional[List[Dict[str, Any]]] = None

    def payload(self) -> Any:
        if self.cart not in (None, ""):
            return self.cart
        return self.items

class CustomerInfo(BaseModel):
    name: str = ""
    email: str = ""

class WebhookEvent(BaseModel):
    """
    Événement 'checkout.session.completed' réconcilié.
    Montant, devise, client et date viennent de la session relue chez Stripe, pas du corps du webhook.
    """
    id: str
    type: str
    session_id: str
    payment_intent_id: str = ""
    created_at: int = 0
    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    amount_total: int = 0
    currency: str = ""

    @classmethod
    def from_session(cls, event_id: str, event_type: str, session: Any) -> "WebhookEvent":
        pi = stripe_field(session, "payment_intent")
        if pi is not None and not isinstance(pi, str):
            pi = stripe_field(pi, "id")
        details = stripe_field(session, "customer_details") or {}
        return cls(
            id=event_id,
            type=event_type,
            session_id=str(stripe_field(session, "id") or ""),
            payment_intent_id=str(pi or ""),
            created_at=int(stripe_field(session, "created") or 0),
            customer=CustomerInfo(
                name=str(stripe_field(details, "name") or ""),
                email=str(stripe_field(details, "email") or ""),
            ),
            amount_total=int(stripe_field(session, "amount_total") or 0),
            currency=str(stripe_field(session, "currency") or ""),
        )

class OrderDetails(BaseModel):
    description: str
    receipt_url: str = ""

class WebhookResult(BaseModel):
    """Réponse HTTP du webhook (corps texte brut, sans JSON)."""
    status_code: int
    message: str = ""
    dispatched: bool = False

class NotificationRecord(BaseModel):
    """Résultat d'un canal de notification; retourné à l'appelant, jamais persisté."""
    channel: str
    session_id: str
    ok: bool
    detail: str = ""
