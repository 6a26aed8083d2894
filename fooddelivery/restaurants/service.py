"""Éditeur de restaurant minimal (propriétaire uniquement) et lectures publiques.
- Un restaurant par propriétaire.
- Les articles déjà commandés ne sont jamais supprimés: ils passent 'indisponibles'.
"""
from typing import Any, Dict, List, Optional
import logging

from fooddelivery.auth import guard
from fooddelivery.auth.context import AuthContext
from fooddelivery.catalog import repository as catalog_repository
from fooddelivery.errors import Conflict, Forbidden, NotFound, UpstreamFailure
from fooddelivery.restaurants import repository

logger = logging.getLogger(__name__)

def get_restaurant(restaurant_id: str) -> Dict[str, Any]:
    """Fiche publique: restaurant + articles disponibles."""
    restaurant = repository.get_with_menu(restaurant_id)
    if not restaurant:
        raise NotFound("Restaurant introuvable")
    restaurant["menu_items"] = [m for m in restaurant.get("menu_items") or [] if m.get("is_available") is not False]
    return restaurant

def list_restaurants(
    city: Optional[str] = None,
    q: Optional[str] = None,
    location: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Liste publique; q cherche dans le nom et les cuisines, location dans la ville et le pays."""
    return repository.list_restaurants(city=city, q=q, location=location)

def get_my_restaurant(actor: AuthContext) -> Dict[str, Any]:
    restaurant = repository.get_by_owner(actor.user_id)
    if not restaurant:
        raise NotFound("Aucun restaurant pour cet utilisateur")
    return restaurant

def create_restaurant(actor: AuthContext, data: Dict[str, Any], menu: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Crée le restaurant de l'utilisateur (Conflict s'il en a déjà un) et son menu initial.
    - Si le menu ne peut pas être inséré, le restaurant est supprimé et l'erreur remonte.
    """
    if repository.get_by_owner(actor.user_id):
        raise Conflict("Vous avez déjà un restaurant")
    restaurant = repository.insert_restaurant({**data, "owner_id": actor.user_id})
    if not restaurant:
        raise Conflict("Vous avez déjà un restaurant")
    try:
        repository.insert_menu_items([{**item, "restaurant_id": restaurant["id"]} for item in menu])
    except UpstreamFailure:
        # Pas de restaurant sans son menu initial
        logger.warning("restaurants.create menu insert failed, rolling back restaurant_id=%s", restaurant["id"])
        repository.delete_restaurant(str(restaurant["id"]))
        raise
    logger.info("restaurants.create restaurant_id=%s owner_id=%s menu=%s", restaurant["id"], actor.user_id, len(menu))
    return repository.get_with_menu(str(restaurant["id"])) or restaurant

def _owned(actor: AuthContext, restaurant_id: str) -> Dict[str, Any]:
    restaurant = catalog_repository.find_restaurant(restaurant_id)
    if not restaurant:
        raise NotFound("Restaurant introuvable")
    if not guard.can_mutate_restaurant(actor, restaurant):
        raise Forbidden("Vous n'êtes pas propriétaire de ce restaurant")
    return restaurant

def update_restaurant(
    actor: AuthContext,
    restaurant_id: str,
    data: Dict[str, Any],
    menu: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Mise à jour par le propriétaire (champs fournis seulement).
    - menu: articles avec 'id' mis à jour (doivent appartenir au restaurant), sans 'id' créés.
    """
    _owned(actor, restaurant_id)
    if data:
        repository.update_restaurant(restaurant_id, data)
    if menu:
        existing_ids = [str(item["id"]) for item in menu if item.get("id")]
        existing = catalog_repository.find_menu_items(existing_ids)
        new_items = []
        for item in menu:
            fields = {k: v for k, v in item.items() if k != "id"}
            if not item.get("id"):
                new_items.append({**fields, "restaurant_id": restaurant_id})
                continue
            current = existing.get(str(item["id"]))
            if not current or str(current.get("restaurant_id")) != str(restaurant_id):
                raise NotFound(f"Article {item['id']} introuvable")
            repository.update_menu_item(str(item["id"]), fields)
        repository.insert_menu_items(new_items)
    logger.info("restaurants.update restaurant_id=%s fields=%s menu=%s", restaurant_id, sorted(data), len(menu or []))
    return repository.get_with_menu(restaurant_id) or {}

def retire_menu_item(actor: AuthContext, restaurant_id: str, menu_item_id: str) -> Dict[str, Any]:
    """Retire un article: indisponible s'il a déjà été commandé, supprimé sinon."""
    _owned(actor, restaurant_id)
    item = catalog_repository.find_menu_item(menu_item_id)
    if not item or str(item.get("restaurant_id")) != str(restaurant_id):
        raise NotFound("Article introuvable")
    if repository.is_menu_item_referenced(menu_item_id):
        repository.update_menu_item(menu_item_id, {"is_available": False})
        return {"id": menu_item_id, "action": "disabled"}
    repository.delete_menu_item(menu_item_id)
    return {"id": menu_item_id, "action": "deleted"}
