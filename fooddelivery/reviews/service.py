"""
Avis clients: un avis par utilisateur et par restaurant.
La note du restaurant est la moyenne arithmétique de ses avis, recalculée en base à chaque ajout.
"""
from typing import Any, Dict, List, Optional
import logging

from fooddelivery.auth.context import AuthContext
from fooddelivery.catalog import repository as catalog_repository
from fooddelivery.errors import Conflict, InvalidInput, NotFound
from fooddelivery.reviews import repository

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

def create_review(actor: AuthContext, restaurant_id: str, rating: Any, comment: Optional[str] = None) -> Dict[str, Any]:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInput(f"La note doit être un entier entre {MIN_RATING} et {MAX_RATING}")
    if not catalog_repository.find_restaurant(restaurant_id):
        raise NotFound("Restaurant introuvable")
    if repository.find_by_user(actor.user_id, restaurant_id):
        raise Conflict("Vous avez déjà laissé un avis pour ce restaurant")

    review = repository.insert_review({
        "user_id": actor.user_id,
        "restaurant_id": restaurant_id,
        "rating": rating,
        "comment": (comment or "").strip() or None,
    })
    new_rating = repository.refresh_restaurant_rating(restaurant_id)
    logger.info("reviews.create restaurant_id=%s user_id=%s rating=%s mean=%s", restaurant_id, actor.user_id, rating, new_rating)
    return review

def list_reviews(restaurant_id: str) -> List[Dict[str, Any]]:
    return repository.list_by_restaurant(restaurant_id)
