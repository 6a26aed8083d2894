"""Couche service du cycle de vie des commandes.
Rôles:
- Créer une commande « pending_payment » avec prix figés depuis le catalogue.
- Faire avancer le statut (propriétaire du restaurant) selon le graphe de transitions.
- Appliquer la confirmation de paiement (SYSTEM_ACTOR uniquement), de façon idempotente.
- Exposer lecture et listings avec les règles d'autorisation de auth.guard.
Tous les appels reçoivent un AuthContext explicite.
"""
from typing import Any, Dict, List, Mapping, Optional
import logging

from fooddelivery.auth import guard
from fooddelivery.auth.context import AuthContext
from fooddelivery.catalog import repository as catalog_repository
from fooddelivery.errors import Conflict, Forbidden, InvalidInput, NotFound, UpstreamFailure
from fooddelivery.orders import pricing
from fooddelivery.orders import repository
from fooddelivery.orders.models import OrderStatus, is_at_least_paid, is_reachable, parse_status
from fooddelivery.users import repository as users_repository

logger = logging.getLogger(__name__)

STALE_PRICE_RETRIES = 1
MAX_TRANSITION_ATTEMPTS = 3

def create_order(
    actor: AuthContext,
    restaurant_id: str,
    items: List[Mapping[str, Any]],
    delivery_details: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Crée une commande « pending_payment » pour l'acheteur actor.
    - NotFound si le restaurant n'existe pas, InvalidInput si panier vide ou quantité <= 0.
    - Les prix viennent du catalogue (jamais du client); total = lignes + frais de livraison.
    - Commande + lignes insérées atomiquement; si un prix change pendant l'opération,
      on relit le catalogue et on réessaie une fois.
    - Adresse de livraison: mise à jour best-effort du profil (n'annule pas la commande).
    """
    restaurant = catalog_repository.find_restaurant(restaurant_id)
    if not restaurant:
        raise NotFound("Restaurant introuvable")
    quantities = pricing.aggregate_quantities(items)

    order_id: Optional[str] = None
    for attempt in range(STALE_PRICE_RETRIES + 1):
        menu_items = catalog_repository.find_menu_items(quantities.keys())
        lines = pricing.snapshot_lines(restaurant, menu_items, quantities)
        total = pricing.compute_total(lines, restaurant.get("delivery_price"))
        try:
            order_id = repository.insert_order_with_items(
                user_id=actor.user_id,
                restaurant_id=str(restaurant["id"]),
                total_amount=str(total),
                items=[
                    {"menu_item_id": line["menu_item_id"], "quantity": line["quantity"], "price": str(line["price"])}
                    for line in lines
                ],
            )
            break
        except repository.StalePriceError:
            logger.warning("orders.create stale catalog price attempt=%s restaurant_id=%s", attempt + 1, restaurant_id)
    if not order_id:
        raise UpstreamFailure("Prix du catalogue modifiés pendant la commande, veuillez réessayer")

    logger.info("orders.create order_id=%s user_id=%s restaurant_id=%s total=%s", order_id, actor.user_id, restaurant_id, total)

    if delivery_details and delivery_details.get("address_line1"):
        try:
            users_repository.update_default_address(actor.user_id, delivery_details)
        except Exception:
            logger.exception("orders.create: default address update failed user_id=%s", actor.user_id)

    order = repository.find_by_id(order_id)
    if not order:
        raise UpstreamFailure("Commande créée mais illisible")
    return order

def _restaurant_of(order: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    restaurant = order.get("restaurants")
    if isinstance(restaurant, dict) and restaurant.get("owner_id"):
        return restaurant
    return catalog_repository.find_restaurant(str(order.get("restaurant_id") or ""))

def _load(order_id: str) -> Dict[str, Any]:
    order = repository.find_by_id(order_id)
    if not order:
        raise NotFound("Commande introuvable")
    return order

def transition(order_id: str, actor: AuthContext, new_status: Any) -> Dict[str, Any]:
    """Change le statut d'une commande.
    - NotFound si la commande n'existe pas.
    - SYSTEM_ACTOR: uniquement 'paid' (idempotent), via la réconciliation des paiements.
    - Humain: propriétaire du restaurant seulement (Forbidden sinon), jamais vers 'paid'.
    - InvalidInput si le statut est inconnu ou non atteignable depuis le statut courant.
    - UPDATE conditionné au statut lu: en cas de course, on relit et on réévalue.
    """
    order = _load(order_id)
    status = parse_status(new_status)

    if guard.is_system(actor):
        if status != OrderStatus.PAID:
            raise Forbidden("Transition réservée au propriétaire du restaurant")
        return _apply_payment(order)

    if not guard.can_transition_order(actor, _restaurant_of(order)):
        raise Forbidden("Vous n'êtes pas autorisé à modifier cette commande")
    if status is None:
        raise InvalidInput(f"Statut invalide: {new_status!r}")
    if status == OrderStatus.PAID:
        raise Forbidden("Le statut 'paid' est fixé par la confirmation de paiement")

    for _ in range(MAX_TRANSITION_ATTEMPTS):
        current = parse_status(order.get("status"))
        if current is None or not is_reachable(current, status):
            raise InvalidInput(f"Transition impossible: {order.get('status')} -> {status.value}")
        if repository.update_status(order_id, current.value, status.value):
            logger.info("orders.transition order_id=%s %s->%s actor=%s", order_id, current.value, status.value, actor.user_id)
            return _load(order_id)
        order = _load(order_id)
    raise Conflict("Commande modifiée simultanément, veuillez réessayer")

def _apply_payment(order: Dict[str, Any]) -> Dict[str, Any]:
    order_id = str(order.get("id"))
    for _ in range(MAX_TRANSITION_ATTEMPTS):
        current = parse_status(order.get("status"))
        if current is not None and is_at_least_paid(current):
            logger.info("orders.payment already applied order_id=%s status=%s", order_id, current.value)
            return order
        if current != OrderStatus.PENDING_PAYMENT:
            # Paiement reçu pour une commande annulée: aucun changement d'état
            logger.warning("orders.payment ignored order_id=%s status=%s", order_id, order.get("status"))
            return order
        if repository.update_status(order_id, OrderStatus.PENDING_PAYMENT.value, OrderStatus.PAID.value):
            logger.info("orders.payment applied order_id=%s pending_payment->paid", order_id)
            return _load(order_id)
        order = _load(order_id)
    raise Conflict("Commande modifiée simultanément, veuillez réessayer")

def get_order(order_id: str, actor: AuthContext) -> Dict[str, Any]:
    """Détail complet pour l'acheteur ou le propriétaire du restaurant (Forbidden sinon)."""
    order = _load(order_id)
    if not guard.can_access_order(actor, order, _restaurant_of(order)):
        raise Forbidden("Vous n'êtes pas autorisé à consulter cette commande")
    return order

def list_orders_for_buyer(actor: AuthContext) -> List[Dict[str, Any]]:
    return repository.list_by_buyer(actor.user_id)

def list_orders_for_restaurant(restaurant_id: str, actor: AuthContext) -> List[Dict[str, Any]]:
    restaurant = catalog_repository.find_restaurant(restaurant_id)
    if not restaurant:
        raise NotFound("Restaurant introuvable")
    if not guard.owner_of(restaurant, actor.user_id):
        raise Forbidden("Vous n'êtes pas autorisé à consulter ces commandes")
    return repository.list_by_restaurant(str(restaurant["id"]))

def record_checkout_session(order_id: str, session_id: str) -> None:
    """Trace la session Stripe créée pour la commande (aucun changement de statut)."""
    if session_id:
        repository.attach_session(order_id, session_id)
