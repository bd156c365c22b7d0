"""
Module 'notifications': alertes opérateur (e-mail, GroupMe) pour les commandes payées.
"""

from .formatting import format_amount, format_order_date
from .service import dispatch_order_notifications

__all__ = [
    "format_amount",
    "format_order_date",
    "dispatch_order_notifications",
]
