import pytest

from fooddelivery.auth.context import AuthContext
from fooddelivery.restaurants import repository as restaurants_repository
from fooddelivery.reviews import repository as reviews_repository

OWNER_A = AuthContext(user_id="owner-a")
OWNER_B = AuthContext(user_id="owner-b")
BUYER = AuthContext(user_id="buyer-1")


@pytest.fixture
def restaurant_reads(store, monkeypatch):
    def get_with_menu(restaurant_id):
        r = store.find_restaurant(restaurant_id)
        if r:
            r["menu_items"] = [dict(m) for m in store.menu_items.values() if m["restaurant_id"] == restaurant_id]
        return r

    monkeypatch.setattr(restaurants_repository, "get_with_menu", get_with_menu)
    monkeypatch.setattr(restaurants_repository, "list_restaurants", lambda city=None, q=None, location=None: [
        r for r in store.restaurants.values()
        if (not city or r["city"].lower() == city.lower())
        and (not q or q.lower() in r["name"].lower())
        and (not location or location.lower() in (r["city"] + " " + r["country"]).lower())
    ])
    return store


def test_list_restaurants_is_public(client, restaurant_reads):
    r = client.get("/api/v1/restaurants", params={"city": "london"})
    assert r.status_code == 200
    assert {x["id"] for x in r.json()} == {"r1", "r2"}

def test_search_restaurants_by_name_and_location(client, restaurant_reads):
    r = client.get("/api/v1/restaurants", params={"q": "sushi", "location": "kingdom"})
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == ["r2"]

def test_get_restaurant_with_menu(client, restaurant_reads):
    restaurant_reads.add_menu_item("old", "r1", "5.00", is_available=False)
    r = client.get("/api/v1/restaurants/r1")
    assert r.status_code == 200
    assert {m["id"] for m in r.json()["menu_items"]} == {"pizza-1", "tiramisu"}
    assert client.get("/api/v1/restaurants/nope").status_code == 404

def test_my_restaurant(client, restaurant_reads, login):
    login(OWNER_A)
    assert client.get("/api/v1/restaurants/mine").json()["id"] == "r1"
    login(BUYER)
    assert client.get("/api/v1/restaurants/mine").status_code == 404

def test_create_second_restaurant_conflicts(client, restaurant_reads, login):
    login(OWNER_A)
    body = {"name": "Again", "city": "London", "country": "UK", "deliveryPrice": "1.50"}
    assert client.post("/api/v1/restaurants", json=body).status_code == 409

def test_create_restaurant_rejects_negative_delivery(client, restaurant_reads, login):
    login(BUYER)
    body = {"name": "Cheap", "city": "London", "country": "UK", "deliveryPrice": "-1"}
    assert client.post("/api/v1/restaurants", json=body).status_code == 400

def test_update_by_non_owner_is_403(client, restaurant_reads, login, monkeypatch):
    writes = []
    monkeypatch.setattr(restaurants_repository, "update_restaurant", lambda rid, data: writes.append((rid, data)))
    login(OWNER_B)
    assert client.patch("/api/v1/restaurants/r1", json={"name": "Mine now"}).status_code == 403
    login(OWNER_A)
    assert client.patch("/api/v1/restaurants/r1", json={"name": "Pizza Roma 2"}).status_code == 200
    assert writes == [("r1", {"name": "Pizza Roma 2"})]

def test_retire_menu_item(client, restaurant_reads, login, monkeypatch):
    deleted = []
    monkeypatch.setattr(restaurants_repository, "is_menu_item_referenced", lambda mid: False)
    monkeypatch.setattr(restaurants_repository, "delete_menu_item", lambda mid: deleted.append(mid))
    login(OWNER_A)
    r = client.delete("/api/v1/restaurants/r1/menu/tiramisu")
    assert r.status_code == 200
    assert r.json() == {"id": "tiramisu", "action": "deleted"}
    assert deleted == ["tiramisu"]


@pytest.fixture
def review_rows(store, monkeypatch):
    rows = []
    monkeypatch.setattr(reviews_repository, "find_by_user", lambda uid, rid: next((r for r in rows if r["user_id"] == uid and r["restaurant_id"] == rid), None))
    monkeypatch.setattr(reviews_repository, "insert_review", lambda data: rows.append(dict(data)) or {"id": "rev-1", **data})
    def refresh_restaurant_rating(rid):
        ratings = [r["rating"] for r in rows if r["restaurant_id"] == rid]
        store.restaurants[rid]["rating"] = sum(ratings) / len(ratings) if ratings else 0.0
        return store.restaurants[rid]["rating"]

    monkeypatch.setattr(reviews_repository, "refresh_restaurant_rating", refresh_restaurant_rating)
    monkeypatch.setattr(reviews_repository, "list_by_restaurant", lambda rid: [r for r in rows if r["restaurant_id"] == rid])
    return rows

def test_reviews_flow(client, store, review_rows, login):
    login(BUYER)
    r = client.post("/api/v1/restaurants/r1/reviews", json={"rating": 4, "comment": "Très bon"})
    assert r.status_code == 201
    assert store.restaurants["r1"]["rating"] == 4.0
    assert client.post("/api/v1/restaurants/r1/reviews", json={"rating": 5}).status_code == 409
    assert client.post("/api/v1/restaurants/r1/reviews", json={"rating": 9}).status_code == 400
    assert len(client.get("/api/v1/restaurants/r1/reviews").json()) == 1
