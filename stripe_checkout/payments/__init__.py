"""
Module 'payments' (feature-first): point d'entrée public.
Réunit logique panier, construction des sessions Checkout et réconciliation des webhooks Stripe.
"""

from .cart import Cart, CartLimitError, CartLine, aggregate_quantities, parse_cart_payload
from .checkout import build_session, session_params, to_line_item
from .messages import build_custom_text, render_message
from .models import CheckoutRequest, NotificationRecord, OrderDetails, WebhookEvent, WebhookResult
from .webhook import build_order_description, get_order_details, handle_delivery

__all__ = [
    # cart
    "Cart",
    "CartLine",
    "CartLimitError",
    "aggregate_quantities",
    "parse_cart_payload",
    # checkout
    "build_session",
    "session_params",
    "to_line_item",
    "build_custom_text",
    "render_message",
    # models
    "CheckoutRequest",
    "NotificationRecord",
    "OrderDetails",
    "WebhookEvent",
    "WebhookResult",
    # webhook
    "build_order_description",
    "get_order_details",
    "handle_delivery",
]
