from datetime import timedelta

from kombu.exceptions import OperationalError

from shopcart.data.models.reservation import ACTIVE, SUPERSEDED
from shopcart.services.inventory_service import InventoryLedger
from shopcart.services.reservation_service import ReservationRegistry, utcnow


def _hold(db, product_id, cart_id, quantity, ttl=900, user_id=1):
    # jak koszyk: najpierw zdjecie z magazynu, potem rezerwacja
    InventoryLedger(db).decrement(product_id, quantity)
    reservation = ReservationRegistry(db).reserve(product_id, user_id, cart_id, quantity, ttl_seconds=ttl)
    db.commit()
    return reservation.id


def test_reserve_creates_active_row(db, make_product, make_cart, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    before = utcnow()

    _hold(db, product_id, cart_id, 4)

    [reservation] = reservations_of(cart_id)
    assert reservation.status == ACTIVE
    assert reservation.reserved_quantity == 4
    assert reservation.product_id == product_id
    assert reservation.user_id == 1
    assert reservation.task_id is None
    # sqlite gubi strefe, porownujemy bez tzinfo
    until = reservation.reserved_until.replace(tzinfo=None)
    assert before.replace(tzinfo=None) + timedelta(seconds=899) < until
    assert until <= utcnow().replace(tzinfo=None) + timedelta(seconds=900)


def test_release_expired_restores_stock_and_deletes_row(db, make_product, make_cart, stock_of, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    reservation_id = _hold(db, product_id, cart_id, 4)
    assert stock_of(product_id) == 6

    restored = ReservationRegistry(db).release_expired(reservation_id, now=utcnow() + timedelta(minutes=16))

    assert restored == 4
    assert stock_of(product_id) == 10
    assert reservations_of(cart_id) == []


def test_release_before_expiry_is_a_noop(db, make_product, make_cart, stock_of, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    reservation_id = _hold(db, product_id, cart_id, 4)

    assert ReservationRegistry(db).release_expired(reservation_id, now=utcnow()) == 0
    assert stock_of(product_id) == 6
    assert len(reservations_of(cart_id)) == 1


def test_release_twice_restores_once(db, make_product, make_cart, stock_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    reservation_id = _hold(db, product_id, cart_id, 3)
    later = utcnow() + timedelta(minutes=16)
    registry = ReservationRegistry(db)

    assert registry.release_expired(reservation_id, now=later) == 3
    assert registry.release_expired(reservation_id, now=later) == 0
    assert stock_of(product_id) == 10


def test_superseded_reservation_is_inert(db, make_product, make_cart, stock_of, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    reservation_id = _hold(db, product_id, cart_id, 3)
    registry = ReservationRegistry(db)

    registry.supersede_for_cart(cart_id)
    db.commit()

    assert registry.release_expired(reservation_id, now=utcnow() + timedelta(hours=1)) == 0
    assert stock_of(product_id) == 7
    [reservation] = reservations_of(cart_id)
    assert reservation.status == SUPERSEDED


def test_release_for_cart_product_shrinks_newest_first(db, make_product, make_cart, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    first = _hold(db, product_id, cart_id, 3)
    _hold(db, product_id, cart_id, 2)
    registry = ReservationRegistry(db)

    released, task_ids = registry.release_for_cart_product(cart_id, product_id, 4)
    db.commit()

    assert released == 4
    assert task_ids == []
    [left] = reservations_of(cart_id)
    assert left.id == first
    assert left.reserved_quantity == 1
    assert registry.held_quantity(cart_id, product_id) == 1


def test_release_for_cart_product_without_quantity_releases_all(db, make_product, make_cart, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    _hold(db, product_id, cart_id, 3)
    _hold(db, product_id, cart_id, 2)

    released, _ = ReservationRegistry(db).release_for_cart_product(cart_id, product_id)
    db.commit()

    assert released == 5
    assert reservations_of(cart_id) == []


def test_sweep_releases_only_overdue(db, make_product, make_cart, stock_of, reservations_of):
    product_id = make_product(stock=10)
    cart_id = make_cart()
    _hold(db, product_id, cart_id, 2, ttl=60)
    _hold(db, product_id, cart_id, 3, ttl=3600)

    restored = ReservationRegistry(db).sweep_expired(now=utcnow() + timedelta(minutes=5))

    assert restored == 2
    assert stock_of(product_id) == 7
    [left] = reservations_of(cart_id)
    assert left.reserved_quantity == 3


def test_arm_timer_stores_task_id(db, make_product, make_cart, scheduler, reservations_of):
    product_id = make_product()
    cart_id = make_cart()
    reservation_id = _hold(db, product_id, cart_id, 1)
    run_at = utcnow() + timedelta(minutes=15)

    task_id = ReservationRegistry(db, scheduler=scheduler).arm_timer(reservation_id, run_at)

    assert scheduler.scheduled[task_id] == (reservation_id, run_at)
    [reservation] = reservations_of(cart_id)
    assert reservation.task_id == task_id


def test_arm_timer_broker_down_leaves_row_for_sweep(db, make_product, make_cart, reservations_of):
    class BrokenScheduler:
        def schedule(self, reservation_id, run_at):
            raise OperationalError("broker unreachable")

    product_id = make_product()
    cart_id = make_cart()
    reservation_id = _hold(db, product_id, cart_id, 1)

    assert ReservationRegistry(db, scheduler=BrokenScheduler()).arm_timer(reservation_id, utcnow()) is None
    [reservation] = reservations_of(cart_id)
    assert reservation.status == ACTIVE
    assert reservation.task_id is None


def test_cancel_timers_without_scheduler_is_noop(db):
    ReservationRegistry(db).cancel_timers(["task-1"])


def test_cancel_timers(db, scheduler):
    ReservationRegistry(db, scheduler=scheduler).cancel_timers(["task-1", "task-2"])

    assert scheduler.cancelled == ["task-1", "task-2"]
