import threading
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from factories import (
    add_to_cart,
    create_category,
    create_product,
    create_user,
    lock_held_elsewhere,
)

from marketplace.config import settings
from marketplace.db import SessionLocal
from marketplace.exceptions import FailedPrecondition, InternalError
from marketplace.models.order import Order, OrderLine
from marketplace.models.user import User
from marketplace.repositories.order_repo import OrderRepository
from marketplace.services.cart_service import CartService
from marketplace.services.purchase_service import PurchaseService


def _purchase(client, user_id):
    return client.post("/api/orders/purchase", json={"user_id": user_id})


def _balance(client, user_id):
    return Decimal(client.get(f"/api/users/{user_id}").json()["account_balance"])


def _order_count():
    db = SessionLocal()
    try:
        return db.query(Order).count(), db.query(OrderLine).count()
    finally:
        db.close()


@pytest.fixture
def shop(client):
    cat = create_category(client, "Kitchen")
    a = create_product(client, cat["id"], name="Kettle", price="30.00")
    b = create_product(client, cat["id"], name="Toaster", price="45.00")
    user = create_user(client, "alice", balance="100.00")
    return user, a, b


def test_purchase_debits_balance_and_clears_cart(client, shop):
    user, a, b = shop
    add_to_cart(client, user["id"], a["id"])
    add_to_cart(client, user["id"], b["id"])

    res = _purchase(client, user["id"])
    assert res.status_code == 201
    body = res.json()
    assert body["product_ids"] == [a["id"], b["id"]]
    assert Decimal(body["total_price"]) == Decimal("75.00")
    assert Decimal(body["account_balance"]) == Decimal("25.00")

    assert _balance(client, user["id"]) == Decimal("25.00")
    cart = client.get("/api/cart", params={"user_id": user["id"]}).json()
    assert cart["product_ids"] == []
    assert cart["cart_id"] is not None
    assert _order_count() == (1, 2)

    order = client.get(f"/api/orders/{body['order_id']}").json()
    assert order["user_id"] == user["id"]
    assert order["product_ids"] == [a["id"], b["id"]]
    assert Decimal(order["total_price"]) == Decimal("75.00")
    assert order["created_on"]


def test_second_purchase_on_empty_cart_fails(client, shop):
    user, a, b = shop
    add_to_cart(client, user["id"], a["id"])
    add_to_cart(client, user["id"], b["id"])
    assert _purchase(client, user["id"]).status_code == 201

    res = _purchase(client, user["id"])
    assert res.status_code == 400
    assert res.json() == {"detail": "cart is empty", "kind": "FailedPrecondition"}
    assert _balance(client, user["id"]) == Decimal("25.00")
    assert _order_count() == (1, 2)


def test_purchase_without_cart_fails_without_writes(client, shop):
    user, _, _ = shop
    res = _purchase(client, user["id"])
    assert res.status_code == 400
    assert res.json()["kind"] == "FailedPrecondition"
    assert _balance(client, user["id"]) == Decimal("100.00")
    assert _order_count() == (0, 0)
    assert client.get("/api/cart", params={"user_id": user["id"]}).json()["cart_id"] is None


def test_purchase_with_insufficient_balance_writes_nothing(client):
    cat = create_category(client)
    a = create_product(client, cat["id"], price="60.00")
    b = create_product(client, cat["id"], price="40.01")
    user = create_user(client, balance="100.00")
    add_to_cart(client, user["id"], a["id"])
    add_to_cart(client, user["id"], b["id"])

    res = _purchase(client, user["id"])
    assert res.status_code == 400
    assert res.json() == {"detail": "insufficient balance", "kind": "FailedPrecondition"}
    assert _balance(client, user["id"]) == Decimal("100.00")
    assert _order_count() == (0, 0)
    cart = client.get("/api/cart", params={"user_id": user["id"]}).json()
    assert cart["product_ids"] == [a["id"], b["id"]]


def test_purchase_with_exact_balance_succeeds(client):
    cat = create_category(client)
    a = create_product(client, cat["id"], price="19.99")
    user = create_user(client, balance="19.99")
    add_to_cart(client, user["id"], a["id"])

    assert _purchase(client, user["id"]).status_code == 201
    assert _balance(client, user["id"]) == Decimal("0.00")


def test_purchase_unknown_user(client):
    res = _purchase(client, 321)
    assert res.status_code == 404
    assert res.json()["kind"] == "NotFound"


def test_products_are_priced_at_purchase_time(client, shop):
    user, a, _ = shop
    add_to_cart(client, user["id"], a["id"])
    client.put(f"/api/products/{a['id']}", json={"price": "12.34"})

    body = _purchase(client, user["id"]).json()
    assert Decimal(body["total_price"]) == Decimal("12.34")
    assert _balance(client, user["id"]) == Decimal("87.66")

    # later price changes do not rewrite the receipt
    client.put(f"/api/products/{a['id']}", json={"price": "99.00"})
    order = client.get(f"/api/orders/{body['order_id']}").json()
    assert Decimal(order["total_price"]) == Decimal("12.34")


def test_list_orders_filters(client, shop):
    user, a, b = shop
    bob = create_user(client, "bob", balance="50.00")

    add_to_cart(client, user["id"], a["id"])
    first = _purchase(client, user["id"]).json()
    add_to_cart(client, user["id"], b["id"])
    second = _purchase(client, user["id"]).json()
    add_to_cart(client, bob["id"], a["id"])
    third = _purchase(client, bob["id"]).json()

    all_orders = client.get("/api/orders").json()
    assert [o["order_id"] for o in all_orders] == [
        first["order_id"],
        second["order_id"],
        third["order_id"],
    ]

    alice_orders = client.get("/api/orders", params={"user_id": user["id"]}).json()
    assert [o["order_id"] for o in alice_orders] == [first["order_id"], second["order_id"]]

    with_a = client.get("/api/orders", params={"product_id": a["id"]}).json()
    assert [o["order_id"] for o in with_a] == [first["order_id"], third["order_id"]]
    assert all(o["product_ids"] == [a["id"]] for o in with_a)

    both = client.get(
        "/api/orders", params={"user_id": bob["id"], "product_id": b["id"]}
    ).json()
    assert both == []


def test_get_missing_order(client):
    assert client.get("/api/orders/1").status_code == 404


def test_ordered_product_cannot_be_deleted(client, shop):
    user, a, _ = shop
    add_to_cart(client, user["id"], a["id"])
    _purchase(client, user["id"])

    res = client.delete(f"/api/products/{a['id']}")
    assert res.status_code == 409


def test_no_drift_over_many_small_purchases(client):
    cat = create_category(client)
    penny = create_product(client, cat["id"], name="Penny sweet", price="0.01")
    user = create_user(client, balance="10.00")

    db = SessionLocal()
    try:
        carts = CartService(db)
        purchases = PurchaseService(db)
        for _ in range(1000):
            carts.add_to_cart(user["id"], penny["id"])
            purchases.purchase(user["id"])

        carts.add_to_cart(user["id"], penny["id"])
        with pytest.raises(FailedPrecondition, match="insufficient balance"):
            purchases.purchase(user["id"])
    finally:
        db.close()

    assert _balance(client, user["id"]) == Decimal("0.00")
    assert _order_count() == (1000, 1000)


def test_concurrent_purchases_only_one_succeeds(client):
    cat = create_category(client)
    lamp = create_product(client, cat["id"], price="30.00")
    user = create_user(client, balance="50.00")
    add_to_cart(client, user["id"], lamp["id"])

    barrier = threading.Barrier(2)
    outcomes = []

    def worker():
        db = SessionLocal()
        try:
            barrier.wait()
            PurchaseService(db).purchase(user["id"])
            outcomes.append("ok")
        except FailedPrecondition:
            outcomes.append("failed_precondition")
        finally:
            db.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["failed_precondition", "ok"]
    assert _balance(client, user["id"]) == Decimal("20.00")
    assert _order_count() == (1, 1)


def test_storage_failure_rolls_back_the_whole_purchase(client, shop, monkeypatch):
    user, a, b = shop
    add_to_cart(client, user["id"], a["id"])
    add_to_cart(client, user["id"], b["id"])

    def broken_add_lines(self, order, lines):
        raise OperationalError("INSERT INTO order_lines", {}, Exception("disk I/O error"))

    monkeypatch.setattr(OrderRepository, "add_lines", broken_add_lines)

    db = SessionLocal()
    try:
        with pytest.raises(InternalError):
            PurchaseService(db).purchase(user["id"])
    finally:
        db.close()

    assert _balance(client, user["id"]) == Decimal("100.00")
    assert _order_count() == (0, 0)
    cart = client.get("/api/cart", params={"user_id": user["id"]}).json()
    assert cart["product_ids"] == [a["id"], b["id"]]

    check = SessionLocal()
    try:
        assert check.get(User, user["id"]).account_balance == Decimal("100.00")
    finally:
        check.close()


def test_storage_failure_surfaces_as_internal_over_http(client, shop, monkeypatch):
    user, a, _ = shop
    add_to_cart(client, user["id"], a["id"])

    def broken_clear(self, cart_id):
        raise OperationalError("DELETE FROM cart_lines", {}, Exception("database is locked"))

    monkeypatch.setattr(
        "marketplace.repositories.cart_repo.CartRepository.clear", broken_clear
    )

    res = _purchase(client, user["id"])
    assert res.status_code == 500
    assert res.json()["kind"] == "Internal"
    assert _balance(client, user["id"]) == Decimal("100.00")
    assert _order_count() == (0, 0)


def test_purchase_after_a_read_on_the_same_session_is_committed(client, shop):
    user, a, _ = shop
    add_to_cart(client, user["id"], a["id"])

    db = SessionLocal()
    try:
        CartService(db).get_cart(user["id"])
        assert db.in_transaction()
        PurchaseService(db).purchase(user["id"])
        assert not db.in_transaction()
    finally:
        db.close()

    check = SessionLocal()
    try:
        assert check.get(User, user["id"]).account_balance == Decimal("70.00")
        assert check.query(Order).filter_by(user_id=user["id"]).count() == 1
    finally:
        check.close()


def test_purchase_times_out_while_user_is_busy(client, shop, monkeypatch):
    user, a, _ = shop
    add_to_cart(client, user["id"], a["id"])
    monkeypatch.setattr(settings, "LOCK_TIMEOUT_SECONDS", 0.2)

    with lock_held_elsewhere(user["id"]):
        res = _purchase(client, user["id"])
    assert res.status_code == 500
    assert res.json()["kind"] == "Internal"
    assert "busy" in res.json()["detail"]

    assert _balance(client, user["id"]) == Decimal("100.00")
    assert _order_count() == (0, 0)
    cart = client.get("/api/cart", params={"user_id": user["id"]}).json()
    assert cart["product_ids"] == [a["id"]]
