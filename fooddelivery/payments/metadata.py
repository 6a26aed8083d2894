"""
Sérialisation/désérialisation des métadonnées Stripe (orderId, buyerId).
"""
from typing import Any, Dict, Mapping, Optional

# module fooddelivery.payments.metadata
def make_metadata(order: Mapping[str, Any]) -> Dict[str, str]:
    """Métadonnées de session: relient la session Stripe à la commande et à l'acheteur."""
    return {
        "orderId": str(order.get("id") or ""),
        "buyerId": str(order.get("user_id") or ""),
    }

def extract_session(event: Mapping[str, Any]) -> Mapping[str, Any]:
    """Retourne event.data.object (la session Checkout), {} si absent."""
    data = (event or {}).get("data") or {}
    return data.get("object") or {}

def extract_order_id(session: Mapping[str, Any]) -> Optional[str]:
    meta = (session or {}).get("metadata") or {}
    order_id = meta.get("orderId")
    return str(order_id) if order_id else None

def extract_buyer_id(session: Mapping[str, Any]) -> Optional[str]:
    meta = (session or {}).get("metadata") or {}
    buyer_id = meta.get("buyerId")
    return str(buyer_id) if buyer_id else None
