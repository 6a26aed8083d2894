import os

# Avant l'import de l'app: pas de Redis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from fooddelivery.app import app as fastapi_app
from fooddelivery.auth.context import AuthContext, ROLE_ADMIN
from fooddelivery.utils.security import get_current_user
from fooddelivery.catalog import repository as catalog_repository
from fooddelivery.orders import repository as orders_repository
from fooddelivery.restaurants import repository as restaurants_repository
from fooddelivery.users import repository as users_repository

BUYER = AuthContext(user_id="buyer-1", email="buyer@example.com")
OTHER_BUYER = AuthContext(user_id="buyer-2", email="other@example.com")
OWNER_A = AuthContext(user_id="owner-a", email="a@example.com")
OWNER_B = AuthContext(user_id="owner-b", email="b@example.com")
ADMIN = AuthContext(user_id="admin-1", role=ROLE_ADMIN, email="admin@example.com")

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeStore:
    """Catalogue + commandes en mémoire, branchés à la place des repositories Supabase."""

    def __init__(self):
        self.restaurants: Dict[str, Dict[str, Any]] = {}
        self.menu_items: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.insert_calls: List[Dict[str, Any]] = []
        self.addresses: Dict[str, Dict[str, Any]] = {}
        self.stale_prices_left = 0

    # --- jeu de données ---
    def add_restaurant(self, restaurant_id, owner_id, delivery_price="2.50", name="Pizza Roma"):
        self.restaurants[restaurant_id] = {
            "id": restaurant_id,
            "owner_id": owner_id,
            "name": name,
            "city": "London",
            "country": "United Kingdom",
            "delivery_price": delivery_price,
            "is_available": True,
            "rating": 0,
        }
        return self.restaurants[restaurant_id]

    def add_menu_item(self, menu_item_id, restaurant_id, price, name=None, is_available=True):
        self.menu_items[menu_item_id] = {
            "id": menu_item_id,
            "restaurant_id": restaurant_id,
            "name": name or menu_item_id,
            "price": price,
            "is_available": is_available,
        }
        return self.menu_items[menu_item_id]

    def add_order(self, order_id, user_id, restaurant_id, status="pending_payment", total_amount="26.50", lines=None):
        lines = lines if lines is not None else [("pizza-1", 2, "12.00")]
        self.orders[order_id] = {
            "id": order_id,
            "user_id": user_id,
            "restaurant_id": restaurant_id,
            "total_amount": total_amount,
            "status": status,
            "stripe_session_id": None,
            "order_items": [
                {
                    "id": f"{order_id}-{i}",
                    "menu_item_id": mid,
                    "quantity": qty,
                    "price": price,
                    "menu_items": {"name": (self.menu_items.get(mid) or {}).get("name", mid)},
                }
                for i, (mid, qty, price) in enumerate(lines)
            ],
        }
        return self.orders[order_id]

    # --- catalog.repository ---
    def find_restaurant(self, restaurant_id):
        r = self.restaurants.get(str(restaurant_id))
        return dict(r) if r else None

    def find_menu_item(self, menu_item_id):
        m = self.menu_items.get(str(menu_item_id))
        return dict(m) if m else None

    def find_menu_items(self, ids):
        return {str(i): dict(self.menu_items[str(i)]) for i in ids if str(i) in self.menu_items}

    # --- orders.repository ---
    def insert_order_with_items(self, *, user_id, restaurant_id, total_amount, items):
        self.insert_calls.append({"user_id": user_id, "restaurant_id": restaurant_id, "total_amount": total_amount, "items": items})
        if self.stale_prices_left:
            self.stale_prices_left -= 1
            raise orders_repository.StalePriceError("stale_price")
        order_id = f"order-{len(self.orders) + 1}"
        self.add_order(
            order_id,
            user_id,
            restaurant_id,
            total_amount=total_amount,
            lines=[(it["menu_item_id"], it["quantity"], it["price"]) for it in items],
        )
        return order_id

    def find_by_id(self, order_id):
        o = self.orders.get(str(order_id))
        if not o:
            return None
        out = dict(o)
        r = self.restaurants.get(o["restaurant_id"]) or {}
        out["restaurants"] = {k: r.get(k) for k in ("id", "owner_id", "name", "delivery_price")}
        return out

    def update_status(self, order_id, expected_status, new_status):
        o = self.orders.get(str(order_id))
        if not o or o["status"] != expected_status:
            return None
        o["status"] = new_status
        return dict(o)

    def attach_session(self, order_id, session_id):
        self.orders[str(order_id)]["stripe_session_id"] = session_id

    def list_by_buyer(self, user_id):
        return [dict(o) for o in self.orders.values() if o["user_id"] == user_id]

    def list_by_restaurant(self, restaurant_id):
        return [dict(o) for o in self.orders.values() if o["restaurant_id"] == restaurant_id]

    # --- restaurants.repository / users.repository ---
    def get_by_owner(self, owner_id):
        for r in self.restaurants.values():
            if r["owner_id"] == owner_id:
                return dict(r)
        return None

    def update_default_address(self, user_id, address):
        self.addresses[user_id] = dict(address)
        return True

    def install(self, monkeypatch):
        for name in ("find_restaurant", "find_menu_item", "find_menu_items"):
            monkeypatch.setattr(catalog_repository, name, getattr(self, name))
        for name in ("insert_order_with_items", "find_by_id", "update_status", "attach_session", "list_by_buyer", "list_by_restaurant"):
            monkeypatch.setattr(orders_repository, name, getattr(self, name))
        monkeypatch.setattr(restaurants_repository, "get_by_owner", self.get_by_owner)
        monkeypatch.setattr(users_repository, "update_default_address", self.update_default_address)
        return self


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    """Restaurant r1 (owner-a, livraison 2.50) avec pizza-1 à 12.00; restaurant r2 (owner-b)."""
    s = FakeStore().install(monkeypatch)
    s.add_restaurant("r1", OWNER_A.user_id, delivery_price="2.50", name="Pizza Roma")
    s.add_menu_item("pizza-1", "r1", "12.00", name="Margherita")
    s.add_menu_item("tiramisu", "r1", "4.75", name="Tiramisu")
    s.add_restaurant("r2", OWNER_B.user_id, delivery_price="1.99", name="Sushi Go")
    s.add_menu_item("maki-1", "r2", "6.00", name="Maki")
    return s


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def login(app):
    """login(ctx): les routes protégées voient ctx comme utilisateur courant."""
    def _login(ctx: Optional[AuthContext]):
        app.dependency_overrides[get_current_user] = lambda: ctx
    yield _login
    app.dependency_overrides.pop(get_current_user, None)

# Aucun test ne doit atteindre Supabase
@pytest.fixture(autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", lambda: MagicMock())
