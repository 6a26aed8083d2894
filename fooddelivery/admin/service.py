# module fooddelivery.admin.service

from typing import Any, Dict, List
from fooddelivery.admin import repository as admin_repository
import logging

logger = logging.getLogger(__name__)

def get_stats() -> Dict[str, Any]:
    """Compteurs du tableau de bord (lecture seule)."""
    return {
        "totalUsers": admin_repository.count_table_rows("users"),
        "totalRestaurants": admin_repository.count_table_rows("restaurants"),
        "totalOrders": admin_repository.count_table_rows("orders"),
        "averageRating": admin_repository.average_review_rating(),
    }

def list_orders(limit: int = 100) -> List[dict]:
    return admin_repository.fetch_admin_orders(limit=limit)

def list_restaurants(limit: int = 100) -> List[dict]:
    return admin_repository.fetch_admin_restaurants(limit=limit)

def list_users(limit: int = 100) -> List[dict]:
    return admin_repository.fetch_admin_users(limit=limit)

def list_reviews(limit: int = 100) -> List[dict]:
    return admin_repository.fetch_admin_reviews(limit=limit)
