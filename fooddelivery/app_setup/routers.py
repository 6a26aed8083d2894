"""
Registre central des routers API v1.
- Commandes, paiements, restaurants, avis
- Admin (lecture seule) et health
"""
from fastapi import FastAPI
from fooddelivery.orders import views as orders_views
from fooddelivery.payments import views as payments_views
from fooddelivery.restaurants import views as restaurants_views
from fooddelivery.reviews import views as reviews_views
from fooddelivery.admin.views import router as admin_router
from fooddelivery.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    app.include_router(restaurants_views.router)
    app.include_router(reviews_views.router)
    app.include_router(admin_router)
    app.include_router(health_router)
