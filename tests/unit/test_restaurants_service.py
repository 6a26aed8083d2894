import pytest

from fooddelivery.auth.context import AuthContext
from fooddelivery.errors import Conflict, Forbidden, NotFound, UpstreamFailure
from fooddelivery.restaurants import repository as restaurants_repository
from fooddelivery.restaurants import service as restaurants_service

OWNER_A = AuthContext(user_id="owner-a")
OWNER_B = AuthContext(user_id="owner-b")
NEWCOMER = AuthContext(user_id="new-owner")


@pytest.fixture
def writes(store, monkeypatch):
    calls = {"insert_restaurant": [], "update_restaurant": [], "insert_menu_items": [], "update_menu_item": [], "delete_menu_item": []}
    referenced = {"pizza-1"}

    def get_with_menu(restaurant_id):
        r = store.find_restaurant(restaurant_id)
        if not r:
            return None
        r["menu_items"] = [dict(m) for m in store.menu_items.values() if m["restaurant_id"] == restaurant_id]
        return r

    def insert_restaurant(data):
        calls["insert_restaurant"].append(data)
        return store.add_restaurant("r-new", data["owner_id"], name=data["name"])

    monkeypatch.setattr(restaurants_repository, "get_with_menu", get_with_menu)
    monkeypatch.setattr(restaurants_repository, "insert_restaurant", insert_restaurant)
    monkeypatch.setattr(restaurants_repository, "update_restaurant", lambda rid, data: calls["update_restaurant"].append((rid, data)))
    monkeypatch.setattr(restaurants_repository, "insert_menu_items", lambda items: calls["insert_menu_items"].append(items) or items)
    monkeypatch.setattr(restaurants_repository, "update_menu_item", lambda mid, data: calls["update_menu_item"].append((mid, data)))
    monkeypatch.setattr(restaurants_repository, "delete_menu_item", lambda mid: calls["delete_menu_item"].append(mid))
    monkeypatch.setattr(restaurants_repository, "is_menu_item_referenced", lambda mid: mid in referenced)
    return calls


def test_public_restaurant_hides_unavailable_items(store, writes):
    store.add_menu_item("old-dish", "r1", "9.00", is_available=False)
    restaurant = restaurants_service.get_restaurant("r1")
    assert {m["id"] for m in restaurant["menu_items"]} == {"pizza-1", "tiramisu"}

def test_get_restaurant_not_found(store, writes):
    with pytest.raises(NotFound):
        restaurants_service.get_restaurant("nope")

def test_get_my_restaurant(store, writes):
    assert restaurants_service.get_my_restaurant(OWNER_A)["id"] == "r1"
    with pytest.raises(NotFound):
        restaurants_service.get_my_restaurant(NEWCOMER)

def test_create_restaurant_one_per_owner(store, writes):
    with pytest.raises(Conflict):
        restaurants_service.create_restaurant(OWNER_A, {"name": "Second"}, [])
    assert writes["insert_restaurant"] == []

def test_create_restaurant_with_menu(store, writes):
    created = restaurants_service.create_restaurant(NEWCOMER, {"name": "Curry Club"}, [{"name": "Korma", "price": 9.5}])
    assert created["id"] == "r-new"
    assert writes["insert_restaurant"][0]["owner_id"] == "new-owner"
    assert writes["insert_menu_items"] == [[{"name": "Korma", "price": 9.5, "restaurant_id": "r-new"}]]

def test_update_restaurant_owner_only(store, writes):
    with pytest.raises(Forbidden):
        restaurants_service.update_restaurant(OWNER_B, "r1", {"name": "Hijack"})
    assert writes["update_restaurant"] == []

def test_update_restaurant_fields_and_menu(store, writes):
    restaurants_service.update_restaurant(
        OWNER_A,
        "r1",
        {"delivery_price": 3.0},
        [{"id": "pizza-1", "name": "Margherita", "price": 13.0}, {"name": "Calzone", "price": 14.0}],
    )
    assert writes["update_restaurant"] == [("r1", {"delivery_price": 3.0})]
    assert writes["update_menu_item"] == [("pizza-1", {"name": "Margherita", "price": 13.0})]
    assert writes["insert_menu_items"] == [[{"name": "Calzone", "price": 14.0, "restaurant_id": "r1"}]]

def test_update_menu_item_of_other_restaurant(store, writes):
    with pytest.raises(NotFound):
        restaurants_service.update_restaurant(OWNER_A, "r1", {}, [{"id": "maki-1", "name": "Maki", "price": 1.0}])
    assert writes["update_menu_item"] == []

def test_retire_ordered_item_is_disabled(store, writes):
    res = restaurants_service.retire_menu_item(OWNER_A, "r1", "pizza-1")
    assert res == {"id": "pizza-1", "action": "disabled"}
    assert writes["update_menu_item"] == [("pizza-1", {"is_available": False})]
    assert writes["delete_menu_item"] == []

def test_retire_never_ordered_item_is_deleted(store, writes):
    res = restaurants_service.retire_menu_item(OWNER_A, "r1", "tiramisu")
    assert res == {"id": "tiramisu", "action": "deleted"}
    assert writes["delete_menu_item"] == ["tiramisu"]

def test_retire_requires_owner(store, writes):
    with pytest.raises(Forbidden):
        restaurants_service.retire_menu_item(OWNER_B, "r1", "tiramisu")
    assert writes["delete_menu_item"] == []

def test_create_restaurant_removed_when_menu_insert_fails(store, writes, monkeypatch):
    deleted = []

    def failing_menu(items):
        raise UpstreamFailure("Création des articles impossible")

    monkeypatch.setattr(restaurants_repository, "insert_menu_items", failing_menu)
    monkeypatch.setattr(restaurants_repository, "delete_restaurant", lambda rid: deleted.append(rid))
    with pytest.raises(UpstreamFailure):
        restaurants_service.create_restaurant(NEWCOMER, {"name": "Curry Club"}, [{"name": "Korma", "price": 9.5}])
    assert deleted == ["r-new"]

def test_list_restaurants_passes_search(store, writes, monkeypatch):
    seen = {}
    monkeypatch.setattr(restaurants_repository, "list_restaurants", lambda **kwargs: seen.update(kwargs) or [])
    restaurants_service.list_restaurants(q="pizza", location="london")
    assert seen == {"city": None, "q": "pizza", "location": "london"}
