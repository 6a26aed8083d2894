"""
Accès aux données pour l'éditeur de restaurant (tables restaurants, menu_items, order_items).
Les lectures de prix pour les commandes passent par catalog.repository.
"""
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import fooddelivery.infra.supabase_client as supabase_client
from fooddelivery.catalog.repository import RESTAURANT_COLUMNS, MENU_ITEM_COLUMNS
from fooddelivery.errors import Conflict, UpstreamFailure

logger = logging.getLogger(__name__)

def _first(res) -> Optional[Dict[str, Any]]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, dict):
        return rows
    return rows[0] if rows else None

# module fooddelivery.restaurants.repository
def get_by_owner(owner_id: str) -> Optional[Dict[str, Any]]:
    """Restaurant de l'utilisateur (un seul par propriétaire) avec son menu, ou None."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("restaurants")
            .select(f"{RESTAURANT_COLUMNS}, menu_items({MENU_ITEM_COLUMNS})")
            .eq("owner_id", owner_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("restaurants.repository.get_by_owner failed owner_id=%s", owner_id)
        raise UpstreamFailure("Lecture du restaurant impossible")
    return _first(res)

def get_with_menu(restaurant_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("restaurants")
            .select(f"{RESTAURANT_COLUMNS}, menu_items({MENU_ITEM_COLUMNS})")
            .eq("id", restaurant_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("restaurants.repository.get_with_menu failed id=%s", restaurant_id)
        raise UpstreamFailure("Lecture du restaurant impossible")
    return _first(res)

SEARCH_UNSAFE_CHARS = ",()*{}\"\\"

def _search_term(value: Optional[str]) -> str:
    """Nettoie un terme de recherche des caractères réservés de la syntaxe de filtre PostgREST."""
    return "".join(c for c in (value or "") if c not in SEARCH_UNSAFE_CHARS).strip()

def search_filter(q: Optional[str] = None, location: Optional[str] = None) -> Optional[str]:
    """
    Filtre PostgREST combinant les deux critères (ET):
    - q: nom (contient, insensible à la casse) OU cuisine (élément exact de cuisines)
    - location: ville OU pays (contient, insensible à la casse)
    None si aucun critère.
    """
    conditions = []
    term = _search_term(q)
    if term:
        conditions.append(f'or(name.ilike.*{term}*,cuisines.cs.{{"{term}"}})')
    place = _search_term(location)
    if place:
        conditions.append(f"or(city.ilike.*{place}*,country.ilike.*{place}*)")
    if not conditions:
        return None
    return f"and({','.join(conditions)})"

def list_restaurants(
    city: Optional[str] = None,
    q: Optional[str] = None,
    location: Optional[str] = None,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """Restaurants disponibles, mieux notés d'abord.
    - city: ville exacte (insensible à la casse)
    - q / location: recherche, voir search_filter
    """
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("restaurants")
            .select(RESTAURANT_COLUMNS)
            .eq("is_available", True)
        )
        if city:
            query = query.ilike("city", city)
        search = search_filter(q, location)
        if search:
            query = query.or_(search)
        res = query.order("rating", desc=True).limit(limit).execute()
    except Exception:
        logger.exception("restaurants.repository.list_restaurants failed city=%s q=%s location=%s", city, q, location)
        raise UpstreamFailure("Lecture des restaurants impossible")
    return res.data or []

def insert_restaurant(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Insère un restaurant. La contrainte UNIQUE(owner_id) devient Conflict."""
    try:
        res = supabase_client.get_service_supabase().table("restaurants").insert(data).execute()
    except APIError as e:
        if getattr(e, "code", None) == supabase_client.UNIQUE_VIOLATION:
            raise Conflict("Vous avez déjà un restaurant")
        logger.exception("restaurants.repository.insert_restaurant failed owner_id=%s", data.get("owner_id"))
        raise UpstreamFailure("Création du restaurant impossible")
    except Exception:
        logger.exception("restaurants.repository.insert_restaurant failed owner_id=%s", data.get("owner_id"))
        raise UpstreamFailure("Création du restaurant impossible")
    return _first(res)

def update_restaurant(restaurant_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("restaurants")
            .update(data)
            .eq("id", restaurant_id)
            .execute()
        )
    except Exception:
        logger.exception("restaurants.repository.update_restaurant failed id=%s", restaurant_id)
        raise UpstreamFailure("Mise à jour du restaurant impossible")
    return _first(res)

def delete_restaurant(restaurant_id: str) -> None:
    """Supprime un restaurant (ses articles suivent par cascade)."""
    try:
        supabase_client.get_service_supabase().table("restaurants").delete().eq("id", restaurant_id).execute()
    except Exception:
        logger.exception("restaurants.repository.delete_restaurant failed id=%s", restaurant_id)
        raise UpstreamFailure("Suppression du restaurant impossible")

def insert_menu_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not items:
        return []
    try:
        res = supabase_client.get_service_supabase().table("menu_items").insert(items).execute()
    except Exception:
        logger.exception("restaurants.repository.insert_menu_items failed count=%s", len(items))
        raise UpstreamFailure("Création des articles impossible")
    return res.data or []

def update_menu_item(menu_item_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("menu_items")
            .update(data)
            .eq("id", menu_item_id)
            .execute()
        )
    except Exception:
        logger.exception("restaurants.repository.update_menu_item failed id=%s", menu_item_id)
        raise UpstreamFailure("Mise à jour de l'article impossible")
    return _first(res)

def is_menu_item_referenced(menu_item_id: str) -> bool:
    """Vrai si au moins une ligne de commande référence l'article."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("order_items")
            .select("id")
            .eq("menu_item_id", menu_item_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("restaurants.repository.is_menu_item_referenced failed id=%s", menu_item_id)
        raise UpstreamFailure("Lecture des commandes impossible")
    return bool(res.data)

def delete_menu_item(menu_item_id: str) -> None:
    try:
        supabase_client.get_service_supabase().table("menu_items").delete().eq("id", menu_item_id).execute()
    except Exception:
        logger.exception("restaurants.repository.delete_menu_item failed id=%s", menu_item_id)
        raise UpstreamFailure("Suppression de l'article impossible")
