from fastapi import APIRouter, Depends, Query

from fooddelivery.admin import service as admin_service
from fooddelivery.auth.context import AuthContext
from fooddelivery.utils.security import require_admin

# module fooddelivery.admin.views
# Supervision en lecture seule: aucune route d'écriture ici.
router = APIRouter(prefix="/api/v1/admin", tags=["Admin API"])

@router.get("/stats")
def admin_stats(user: AuthContext = Depends(require_admin)):
    return admin_service.get_stats()

@router.get("/orders")
def admin_orders(limit: int = Query(default=100, ge=1, le=500), user: AuthContext = Depends(require_admin)):
    return admin_service.list_orders(limit=limit)

@router.get("/restaurants")
def admin_restaurants(limit: int = Query(default=100, ge=1, le=500), user: AuthContext = Depends(require_admin)):
    return admin_service.list_restaurants(limit=limit)

@router.get("/users")
def admin_users(limit: int = Query(default=100, ge=1, le=500), user: AuthContext = Depends(require_admin)):
    return admin_service.list_users(limit=limit)

@router.get("/reviews")
def admin_reviews(limit: int = Query(default=100, ge=1, le=500), user: AuthContext = Depends(require_admin)):
    return admin_service.list_reviews(limit=limit)
