# module fooddelivery.orders.views

"""Endpoints du cycle de vie des commandes.
- POST /api/v1/orders: crée une commande « pending_payment » (authentifié, rate-limité).
- GET /api/v1/orders?scope=mine|restaurant: listings acheteur ou restaurant (propriétaire).
- GET /api/v1/orders/{id}: détail (acheteur ou propriétaire du restaurant).
- PATCH /api/v1/orders/{id}/status: transition de statut par le propriétaire du restaurant.
Les erreurs métier (fooddelivery.errors) remontent telles quelles vers le handler JSON.
"""
from typing import Literal, Optional
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from fooddelivery.auth.context import AuthContext
from fooddelivery.errors import InvalidInput
from fooddelivery.orders import service as orders_service
from fooddelivery.orders.models import CreateOrderRequest, StatusUpdateRequest
from fooddelivery.restaurants import service as restaurants_service
from fooddelivery.utils.rate_limit import optional_rate_limit
from fooddelivery.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.post("", status_code=201, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_create_order(req: CreateOrderRequest, user: AuthContext = Depends(require_user)):
    """Crée une commande provisoire.
    - Entrée JSON: {restaurantId, items: [{menuItemId, quantity}], deliveryDetails?}
    - Aucun prix n'est accepté du client: le total est calculé depuis le catalogue.
    - Retourne la commande créée (lignes + restaurant), statut 'pending_payment'.
    """
    order = orders_service.create_order(
        user,
        req.restaurant_id,
        [item.model_dump() for item in req.items],
        req.delivery_details.model_dump() if req.delivery_details else None,
    )
    return JSONResponse(status_code=201, content=jsonable_encoder(order))


@router.get("")
def api_list_orders(
    scope: Literal["mine", "restaurant"] = "mine",
    restaurant_id: Optional[str] = Query(default=None),
    user: AuthContext = Depends(require_user),
):
    """Listing des commandes, plus récentes d'abord.
    - scope=mine: commandes de l'utilisateur courant.
    - scope=restaurant: commandes du restaurant (restaurant_id, ou celui de l'utilisateur).
    """
    if scope == "mine":
        return orders_service.list_orders_for_buyer(user)
    if not restaurant_id:
        restaurant_id = str(restaurants_service.get_my_restaurant(user)["id"])
    return orders_service.list_orders_for_restaurant(restaurant_id, user)


@router.get("/{order_id}")
def api_get_order(order_id: str, user: AuthContext = Depends(require_user)):
    return orders_service.get_order(order_id, user)


@router.patch("/{order_id}/status")
def api_update_order_status(order_id: str, req: StatusUpdateRequest, user: AuthContext = Depends(require_user)):
    """Transition de statut (propriétaire du restaurant).
    - 400 si statut inconnu ou transition impossible, 403 si non propriétaire, 404 si commande absente.
    """
    if not req.status:
        raise InvalidInput("Statut manquant")
    return orders_service.transition(order_id, user, req.status)
