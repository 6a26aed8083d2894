"""
Module 'payments' (feature-first): point d'entrée public.
Réunit line_items Stripe, métadonnées, client Stripe et cas d'usage (checkout, webhook).
"""

from .line_items import to_line_items
from .metadata import make_metadata, extract_session, extract_order_id, extract_buyer_id
from .stripe_client import require_stripe, create_session, get_session, construct_event
from .service import create_checkout_session, reconcile, confirm_session

__all__ = [
    # line_items
    "to_line_items",
    # metadata
    "make_metadata",
    "extract_session",
    "extract_order_id",
    "extract_buyer_id",
    # stripe
    "require_stripe",
    "create_session",
    "get_session",
    "construct_event",
    # services
    "create_checkout_session",
    "reconcile",
    "confirm_session",
]
