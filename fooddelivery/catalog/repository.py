"""
Accès en lecture au catalogue (tables restaurants, menu_items).
Le cœur commandes ne fait que lire ici: prix et disponibilité font foi.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

import fooddelivery.infra.supabase_client as supabase_client
from fooddelivery.errors import UpstreamFailure

logger = logging.getLogger(__name__)

RESTAURANT_COLUMNS = "id, owner_id, name, city, country, delivery_price, estimated_time, cuisines, is_available, rating"
MENU_ITEM_COLUMNS = "id, restaurant_id, name, description, price, category, is_available"

# module fooddelivery.catalog.repository
def find_restaurant(restaurant_id: str) -> Optional[Dict[str, Any]]:
    """
    Retourne le restaurant ou None s'il n'existe pas.
    Lève UpstreamFailure si la base est injoignable.
    """
    if not restaurant_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("restaurants")
            .select(RESTAURANT_COLUMNS)
            .eq("id", str(restaurant_id))
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("catalog.repository.find_restaurant failed id=%s", restaurant_id)
        raise UpstreamFailure("Catalogue indisponible")
    rows = res.data or []
    return rows[0] if rows else None

def find_menu_item(menu_item_id: str) -> Optional[Dict[str, Any]]:
    items = find_menu_items([menu_item_id])
    return items.get(str(menu_item_id))

def find_menu_items(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un dict {id: menu_item} pour les IDs demandés (les IDs inconnus sont absents).
    """
    id_list: List[str] = sorted({str(i) for i in ids if i})
    if not id_list:
        return {}
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("menu_items")
            .select(MENU_ITEM_COLUMNS)
            .in_("id", id_list)
            .execute()
        )
    except Exception:
        logger.exception("catalog.repository.find_menu_items failed ids=%s", id_list)
        raise UpstreamFailure("Catalogue indisponible")
    return {str(row.get("id")): row for row in (res.data or [])}
