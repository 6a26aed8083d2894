"""Endpoints restaurants.
- Lecture publique: liste (ville, recherche q/location) et fiche avec menu disponible.
- Éditeur propriétaire: création, mise à jour, retrait d'article.
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from fooddelivery.auth.context import AuthContext
from fooddelivery.restaurants import service as restaurants_service
from fooddelivery.restaurants.models import RestaurantCreate, RestaurantUpdate
from fooddelivery.utils.rate_limit import optional_rate_limit
from fooddelivery.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/restaurants", tags=["Restaurants API"])


def _menu_payload(items):
    return [jsonable_encoder(item.model_dump(exclude_none=True)) for item in items or []]


@router.get("")
def api_list_restaurants(
    city: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None, max_length=100),
    location: Optional[str] = Query(default=None, max_length=100),
):
    return restaurants_service.list_restaurants(city=city, q=q, location=location)


@router.get("/mine")
def api_get_my_restaurant(user: AuthContext = Depends(require_user)):
    return restaurants_service.get_my_restaurant(user)


@router.post("", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_create_restaurant(req: RestaurantCreate, user: AuthContext = Depends(require_user)):
    """Crée le restaurant de l'utilisateur; 409 s'il en possède déjà un."""
    data = jsonable_encoder(req.model_dump(exclude={"menu_items"}, exclude_none=True))
    restaurant = restaurants_service.create_restaurant(user, data, _menu_payload(req.menu_items))
    return JSONResponse(status_code=201, content=jsonable_encoder(restaurant))


@router.get("/{restaurant_id}")
def api_get_restaurant(restaurant_id: str):
    return restaurants_service.get_restaurant(restaurant_id)


@router.patch("/{restaurant_id}")
def api_update_restaurant(restaurant_id: str, req: RestaurantUpdate, user: AuthContext = Depends(require_user)):
    """Mise à jour par le propriétaire (403 sinon). Les articles sans id sont créés."""
    data = jsonable_encoder(req.model_dump(exclude={"menu_items"}, exclude_none=True))
    menu = _menu_payload(req.menu_items) if req.menu_items is not None else None
    return restaurants_service.update_restaurant(user, restaurant_id, data, menu)


@router.delete("/{restaurant_id}/menu/{menu_item_id}")
def api_retire_menu_item(restaurant_id: str, menu_item_id: str, user: AuthContext = Depends(require_user)):
    """Article déjà commandé: rendu indisponible; sinon supprimé."""
    return restaurants_service.retire_menu_item(user, restaurant_id, menu_item_id)
