from datetime import timedelta

import pytest

from shopcart.services.cart_service import CartService
from shopcart.services.reservation_service import utcnow
from shopcart.tasks import expire


@pytest.fixture(autouse=True)
def task_sessions(monkeypatch, session_factory):
    # taski otwieraja wlasna sesje, podpinamy testowa baze
    monkeypatch.setattr(expire, "SessionLocal", session_factory)


def test_release_task_restores_expired_reservation(db, scheduler, make_product, stock_of):
    carts = CartService(db, scheduler=scheduler, ttl_seconds=0)
    cart_id = carts.create_cart(user_id=1)["cart_id"]
    product_id = make_product(stock=10)
    carts.add_item(1, cart_id, product_id, 3)
    [(reservation_id, _)] = scheduler.scheduled.values()

    result = expire.release_reservation_task(reservation_id)

    assert result == {"reservation_id": reservation_id, "restored": 3}
    assert stock_of(product_id) == 10


def test_release_task_after_removal_is_noop(db, scheduler, make_product, stock_of):
    carts = CartService(db, scheduler=scheduler, ttl_seconds=0)
    cart_id = carts.create_cart(user_id=1)["cart_id"]
    product_id = make_product(stock=10)
    carts.add_item(1, cart_id, product_id, 3)
    [(reservation_id, _)] = scheduler.scheduled.values()
    carts.remove_item(1, cart_id, product_id)

    result = expire.release_reservation_task(reservation_id)

    assert result["restored"] == 0
    assert stock_of(product_id) == 10


def test_sweep_task_releases_overdue(db, make_product, stock_of, monkeypatch):
    from shopcart.services import reservation_service

    carts = CartService(db)
    cart_id = carts.create_cart(user_id=1)["cart_id"]
    product_id = make_product(stock=10)
    carts.add_item(1, cart_id, product_id, 2)
    later = utcnow() + timedelta(hours=1)
    monkeypatch.setattr(reservation_service, "utcnow", lambda: later)

    assert expire.sweep_expired_reservations_task() == {"restored": 2}
    assert stock_of(product_id) == 10
