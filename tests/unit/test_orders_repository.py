import pytest
from unittest.mock import MagicMock

from postgrest.exceptions import APIError

import fooddelivery.orders.repository as repo
from fooddelivery.errors import NotFound, UpstreamFailure

ITEMS = [{"menu_item_id": "pizza-1", "quantity": 2, "price": "12.00"}]


class _Resp:
    def __init__(self, data=None):
        self.data = data


def _api_error(message, code="P0001"):
    return APIError({"message": message, "code": code, "hint": None, "details": None})

def _rpc_client(monkeypatch, data=None, error=None):
    client = MagicMock()
    execute = client.rpc.return_value.execute
    if error is not None:
        execute.side_effect = error
    else:
        execute.return_value = _Resp(data=data)
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", lambda: client)
    return client

def _insert():
    return repo.insert_order_with_items(user_id="buyer-1", restaurant_id="r1", total_amount="26.50", items=ITEMS)


# --- insert_order_with_items (RPC create_order_with_items) ---

def test_insert_calls_rpc_with_snapshot(monkeypatch):
    client = _rpc_client(monkeypatch, data="order-uuid")
    assert _insert() == "order-uuid"
    client.rpc.assert_called_once_with("create_order_with_items", {
        "p_user_id": "buyer-1",
        "p_restaurant_id": "r1",
        "p_total_amount": "26.50",
        "p_items": ITEMS,
    })

@pytest.mark.parametrize("data", [
    ["order-uuid"],
    [{"create_order_with_items": "order-uuid"}],
    {"id": "order-uuid"},
])
def test_insert_accepts_rpc_result_shapes(monkeypatch, data):
    _rpc_client(monkeypatch, data=data)
    assert _insert() == "order-uuid"

@pytest.mark.parametrize("data", [None, [], {}])
def test_insert_without_id_is_upstream_failure(monkeypatch, data):
    _rpc_client(monkeypatch, data=data)
    with pytest.raises(UpstreamFailure):
        _insert()

def test_stale_price_is_reported_for_retry(monkeypatch):
    _rpc_client(monkeypatch, error=_api_error("stale_price: pizza-1"))
    with pytest.raises(repo.StalePriceError):
        _insert()

def test_missing_menu_item_is_not_found(monkeypatch):
    _rpc_client(monkeypatch, error=_api_error("menu_item_missing: pizza-1"))
    with pytest.raises(NotFound):
        _insert()

def test_other_db_error_is_upstream_failure(monkeypatch):
    _rpc_client(monkeypatch, error=_api_error("insert or update violates foreign key constraint", code="23503"))
    with pytest.raises(UpstreamFailure):
        _insert()

def test_connection_error_is_upstream_failure(monkeypatch):
    def down():
        raise ConnectionError("supabase down")
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", down)
    with pytest.raises(UpstreamFailure):
        _insert()


# --- update_status (verrou optimiste) ---

def _update_client(monkeypatch, data):
    client = MagicMock()
    update = client.table.return_value.update.return_value
    update.eq.return_value.eq.return_value.execute.return_value = _Resp(data=data)
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", lambda: client)
    return client, update

def test_update_status_filters_on_id_and_expected_status(monkeypatch):
    client, update = _update_client(monkeypatch, data=[{"id": "o1", "status": "paid"}])
    row = repo.update_status("o1", "pending_payment", "paid")
    assert row == {"id": "o1", "status": "paid"}
    client.table.assert_called_once_with("orders")
    written = client.table.return_value.update.call_args[0][0]
    assert written["status"] == "paid"
    assert "updated_at" in written
    update.eq.assert_called_once_with("id", "o1")
    update.eq.return_value.eq.assert_called_once_with("status", "pending_payment")

def test_update_status_lost_race_returns_none(monkeypatch):
    # Aucune ligne ne correspond au statut attendu: rien n'est écrit
    _update_client(monkeypatch, data=[])
    assert repo.update_status("o1", "pending_payment", "paid") is None

def test_update_status_db_error_is_upstream_failure(monkeypatch):
    client = MagicMock()
    client.table.return_value.update.side_effect = _api_error("timeout", code="57014")
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", lambda: client)
    with pytest.raises(UpstreamFailure):
        repo.update_status("o1", "paid", "preparing")


# --- lectures ---

def test_find_by_id_missing_returns_none(monkeypatch):
    client = MagicMock()
    client.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value = _Resp(data=[])
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", lambda: client)
    assert repo.find_by_id("o1") is None
    client.table.return_value.select.assert_called_once_with(repo.ORDER_DETAIL_SELECT)

def test_list_by_buyer_newest_first(monkeypatch):
    client = MagicMock()
    eq = client.table.return_value.select.return_value.eq
    eq.return_value.order.return_value.execute.return_value = _Resp(data=[{"id": "o2"}, {"id": "o1"}])
    monkeypatch.setattr("fooddelivery.infra.supabase_client.get_service_supabase", lambda: client)
    assert [o["id"] for o in repo.list_by_buyer("buyer-1")] == ["o2", "o1"]
    eq.assert_called_once_with("user_id", "buyer-1")
    eq.return_value.order.assert_called_once_with("created_at", desc=True)
