# module fooddelivery.auth.guard
"""Règles d'autorisation centralisées (fonctions pures, aucun accès base).

- Un acheteur ne lit que ses propres commandes.
- Le propriétaire d'un restaurant lit et fait avancer (statut uniquement) les commandes
  de son restaurant, et lui seul modifie ce restaurant (nom, menu, image).
- L'admin a une supervision en lecture seule (statistiques, listings), sans écriture
  sur les commandes ni les restaurants.
- Le passage en 'paid' est réservé au SYSTEM_ACTOR (réconciliation des paiements).
"""
from typing import Any, Dict, Optional

from .context import AuthContext, ROLE_ADMIN, ROLE_SYSTEM


def is_admin(actor: Optional[AuthContext]) -> bool:
    return bool(actor) and actor.role == ROLE_ADMIN


def is_system(actor: Optional[AuthContext]) -> bool:
    return bool(actor) and actor.role == ROLE_SYSTEM


def owner_of(restaurant: Optional[Dict[str, Any]], actor_id: Optional[str]) -> bool:
    """Capacité dérivée 'propriétaire': vraie si restaurant.owner_id == actor_id."""
    if not restaurant or not actor_id:
        return False
    return str(restaurant.get("owner_id") or "") == str(actor_id)


def is_buyer(actor: Optional[AuthContext], order: Optional[Dict[str, Any]]) -> bool:
    if not actor or not order:
        return False
    return str(order.get("user_id") or "") == str(actor.user_id)


def can_access_order(actor: Optional[AuthContext], order: Dict[str, Any], restaurant: Optional[Dict[str, Any]]) -> bool:
    """Lecture du détail d'une commande: l'acheteur ou le propriétaire du restaurant."""
    if not actor or is_system(actor):
        return False
    return is_buyer(actor, order) or owner_of(restaurant, actor.user_id)


def can_transition_order(actor: Optional[AuthContext], restaurant: Optional[Dict[str, Any]]) -> bool:
    """Changement de statut par un humain: uniquement le propriétaire du restaurant."""
    if not actor or is_system(actor):
        return False
    return owner_of(restaurant, actor.user_id)


def can_mutate_restaurant(actor: Optional[AuthContext], restaurant: Optional[Dict[str, Any]]) -> bool:
    if not actor or is_system(actor):
        return False
    return owner_of(restaurant, actor.user_id)
