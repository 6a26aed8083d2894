from decimal import Decimal, ROUND_HALF_UP
from typing import List
import logging

import fooddelivery.infra.supabase_client as supabase_client
from fooddelivery.errors import UpstreamFailure

logger = logging.getLogger(__name__)

# module fooddelivery.admin.repository
def fetch_admin_orders(limit: int = 100) -> List[dict]:
    """Commandes pour la supervision, avec email acheteur et nom du restaurant."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("id, user_id, restaurant_id, total_amount, status, created_at, users(email), restaurants(name)")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("admin.repository.fetch_admin_orders failed")
        raise UpstreamFailure("Lecture des commandes impossible")
    return res.data or []


def fetch_admin_restaurants(limit: int = 100) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("restaurants")
            .select("id, owner_id, name, city, country, is_available, rating, created_at")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("admin.repository.fetch_admin_restaurants failed")
        raise UpstreamFailure("Lecture des restaurants impossible")
    return res.data or []


def fetch_admin_users(limit: int = 100) -> List[dict]:
    """
    Liste basique des utilisateurs pour l'admin.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("users")
            .select("id, email, first_name, last_name, city, country, created_at")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("admin.repository.fetch_admin_users failed")
        raise UpstreamFailure("Lecture des utilisateurs impossible")
    return res.data or []


def fetch_admin_reviews(limit: int = 100) -> List[dict]:
    """Avis pour la modération, avec prénom/nom de l'auteur et nom du restaurant."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("reviews")
            .select("id, user_id, restaurant_id, rating, comment, created_at, users(first_name, last_name), restaurants(name)")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("admin.repository.fetch_admin_reviews failed")
        raise UpstreamFailure("Lecture des avis impossible")
    return res.data or []


def count_table_rows(table_name: str) -> int:
    """
    Compte les lignes d'une table via Supabase.
    Utilise count='exact' si disponible, sinon fallback sur len(data).
    """
    try:
        res = supabase_client.get_service_supabase().table(table_name).select("id", count="exact").execute()
    except Exception:
        logger.exception("admin.repository.count_table_rows failed table=%s", table_name)
        raise UpstreamFailure("Comptage impossible")
    if getattr(res, "count", None) is not None:
        return int(res.count)  # type: ignore
    return len(res.data or [])


def average_review_rating() -> float:
    """Note moyenne sur l'ensemble des avis (0.0 si aucun avis)."""
    try:
        res = supabase_client.get_service_supabase().table("reviews").select("rating").execute()
    except Exception:
        logger.exception("admin.repository.average_review_rating failed")
        raise UpstreamFailure("Lecture des notes impossible")
    ratings = [Decimal(str(r["rating"])) for r in res.data or [] if r.get("rating") is not None]
    if not ratings:
        return 0.0
    mean = sum(ratings, Decimal("0")) / len(ratings)
    return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
