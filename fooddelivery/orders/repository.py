"""
Accès aux données des commandes (tables orders, order_items).
Seul orders.service écrit ici.
- L'insertion commande + lignes passe par la fonction Postgres create_order_with_items
  (une seule transaction, prix re-vérifiés sous verrou FOR SHARE).
- Le changement de statut est un UPDATE conditionné au statut lu (verrou optimiste).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import fooddelivery.infra.supabase_client as supabase_client
from fooddelivery.errors import NotFound, UpstreamFailure

logger = logging.getLogger(__name__)

ORDER_DETAIL_SELECT = (
    "id, user_id, restaurant_id, total_amount, status, stripe_session_id, created_at, updated_at, "
    "restaurants(id, owner_id, name, city, country, delivery_price), "
    "order_items(id, menu_item_id, quantity, price, menu_items(name, description)), "
    "users(id, first_name, last_name, email, address_line1, address_line2, city, country)"
)
ORDER_LIST_SELECT = (
    "id, user_id, restaurant_id, total_amount, status, created_at, "
    "restaurants(id, name), "
    "order_items(id, menu_item_id, quantity, price, menu_items(name))"
)
RESTAURANT_ORDER_LIST_SELECT = ORDER_LIST_SELECT + (
    ", users(first_name, last_name, email, address_line1, address_line2, city, country)"
)


class StalePriceError(Exception):
    """Le prix d'un article a changé entre la lecture du catalogue et l'insertion."""


# module fooddelivery.orders.repository
def insert_order_with_items(*, user_id: str, restaurant_id: str, total_amount: str, items: List[Dict[str, Any]]) -> str:
    """
    Crée la commande 'pending_payment' et ses lignes en une transaction.
    - items: [{"menu_item_id", "quantity", "price"}] avec price en chaîne décimale ("12.00")
    - Retourne l'id de la commande créée.
    - StalePriceError si un prix figé ne correspond plus au catalogue (rien n'est écrit).
    """
    params = {
        "p_user_id": user_id,
        "p_restaurant_id": restaurant_id,
        "p_total_amount": total_amount,
        "p_items": items,
    }
    try:
        res = supabase_client.get_service_supabase().rpc("create_order_with_items", params).execute()
    except APIError as e:
        message = str(getattr(e, "message", "") or e)
        if "stale_price" in message:
            raise StalePriceError(message)
        if "menu_item_missing" in message:
            raise NotFound("Article introuvable")
        logger.exception("orders.repository.insert_order_with_items failed user_id=%s restaurant_id=%s", user_id, restaurant_id)
        raise UpstreamFailure("Création de commande impossible")
    except Exception:
        logger.exception("orders.repository.insert_order_with_items failed user_id=%s restaurant_id=%s", user_id, restaurant_id)
        raise UpstreamFailure("Création de commande impossible")

    order_id = res.data
    if isinstance(order_id, list):
        order_id = order_id[0] if order_id else None
    if isinstance(order_id, dict):
        order_id = order_id.get("id") or order_id.get("create_order_with_items")
    if not order_id:
        raise UpstreamFailure("Création de commande sans identifiant")
    return str(order_id)

def find_by_id(order_id: str) -> Optional[Dict[str, Any]]:
    """
    Commande détaillée (restaurant, lignes + nom d'article, contact/adresse acheteur) ou None.
    """
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(ORDER_DETAIL_SELECT)
            .eq("id", str(order_id))
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.find_by_id failed id=%s", order_id)
        raise UpstreamFailure("Lecture de commande impossible")
    rows = res.data or []
    return rows[0] if rows else None

def update_status(order_id: str, expected_status: str, new_status: str) -> Optional[Dict[str, Any]]:
    """
    UPDATE orders SET status=new WHERE id=order_id AND status=expected_status.
    - Retourne la ligne mise à jour, ou None si le statut a changé entre-temps (aucune écriture).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .update({"status": new_status, "updated_at": datetime.now(timezone.utc).isoformat()})
            .eq("id", str(order_id))
            .eq("status", expected_status)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.update_status failed id=%s %s->%s", order_id, expected_status, new_status)
        raise UpstreamFailure("Mise à jour du statut impossible")
    rows = res.data or []
    return rows[0] if rows else None

def attach_session(order_id: str, session_id: str) -> None:
    """Mémorise l'identifiant de session Stripe sur la commande (traçabilité)."""
    try:
        (
            supabase_client.get_service_supabase()
            .table("orders")
            .update({"stripe_session_id": session_id})
            .eq("id", str(order_id))
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.attach_session failed id=%s session_id=%s", order_id, session_id)
        raise UpstreamFailure("Mise à jour de la commande impossible")

def list_by_buyer(user_id: str) -> List[Dict[str, Any]]:
    """Commandes d'un acheteur, plus récentes d'abord."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(ORDER_LIST_SELECT)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.list_by_buyer failed user_id=%s", user_id)
        raise UpstreamFailure("Lecture des commandes impossible")
    return res.data or []

def list_by_restaurant(restaurant_id: str) -> List[Dict[str, Any]]:
    """Commandes d'un restaurant (avec coordonnées de livraison), plus récentes d'abord."""
    if not restaurant_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(RESTAURANT_ORDER_LIST_SELECT)
            .eq("restaurant_id", str(restaurant_id))
            .order("created_at", desc=True)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.list_by_restaurant failed restaurant_id=%s", restaurant_id)
        raise UpstreamFailure("Lecture des commandes impossible")
    return res.data or []
