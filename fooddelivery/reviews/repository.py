from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import fooddelivery.infra.supabase_client as supabase_client
from fooddelivery.errors import Conflict, UpstreamFailure

logger = logging.getLogger(__name__)

# module fooddelivery.reviews.repository
def find_by_user(user_id: str, restaurant_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("reviews")
            .select("id")
            .eq("user_id", user_id)
            .eq("restaurant_id", restaurant_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("reviews.repository.find_by_user failed user_id=%s restaurant_id=%s", user_id, restaurant_id)
        raise UpstreamFailure("Lecture des avis impossible")
    rows = res.data or []
    return rows[0] if rows else None

def insert_review(data: Dict[str, Any]) -> Dict[str, Any]:
    """Insère un avis. La contrainte UNIQUE(user_id, restaurant_id) devient Conflict."""
    try:
        res = supabase_client.get_service_supabase().table("reviews").insert(data).execute()
    except APIError as e:
        if getattr(e, "code", None) == supabase_client.UNIQUE_VIOLATION:
            raise Conflict("Vous avez déjà laissé un avis pour ce restaurant")
        logger.exception("reviews.repository.insert_review failed restaurant_id=%s", data.get("restaurant_id"))
        raise UpstreamFailure("Création de l'avis impossible")
    except Exception:
        logger.exception("reviews.repository.insert_review failed restaurant_id=%s", data.get("restaurant_id"))
        raise UpstreamFailure("Création de l'avis impossible")
    rows = res.data or []
    return rows[0] if rows else dict(data)

def list_by_restaurant(restaurant_id: str, limit: int = 100) -> List[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("reviews")
            .select("id, user_id, restaurant_id, rating, comment, created_at, users(first_name, last_name)")
            .eq("restaurant_id", restaurant_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("reviews.repository.list_by_restaurant failed restaurant_id=%s", restaurant_id)
        raise UpstreamFailure("Lecture des avis impossible")
    return res.data or []

def refresh_restaurant_rating(restaurant_id: str) -> float:
    """
    Recalcule restaurants.rating = moyenne de tous ses avis (fonction Postgres refresh_restaurant_rating).
    - La ligne restaurant est verrouillée pendant le calcul: deux avis simultanés ne peuvent pas
      écrire une moyenne périmée.
    - Retourne la nouvelle note (0.0 sans avis).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("refresh_restaurant_rating", {"p_restaurant_id": restaurant_id})
            .execute()
        )
    except Exception:
        logger.exception("reviews.repository.refresh_restaurant_rating failed restaurant_id=%s", restaurant_id)
        raise UpstreamFailure("Mise à jour de la note impossible")
    rating = res.data
    if isinstance(rating, list):
        rating = rating[0] if rating else None
    return float(rating or 0)
