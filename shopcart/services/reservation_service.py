# shopcart/services/reservation_service.py
from datetime import datetime, timedelta, timezone

from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session

from shopcart.data.database import transaction
from shopcart.data.models.reservation import ACTIVE, ReservationModel
from shopcart.repos.reservation_repo import ReservationRepo
from shopcart.services.inventory_service import InventoryLedger
from shopcart.utils.logging import get_logger
from shopcart.utils.settings import RESERVATION_TTL_SECONDS

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReservationRegistry:
    """
    Rezerwacje towaru z czasem waznosci.

    Stan rezerwacji:
    - ACTIVE po utworzeniu (towar juz zdjety z magazynu przez wywolujacego)
    - usunieta + towar zwrocony, gdy timer wygasl a wiersz byl nadal ACTIVE
    - usunieta przez koszyk (update/remove/clear), towar zwraca koszyk
    - SUPERSEDED po checkout, wiersz zostaje, towar nie wraca

    Metody zmieniajace stan nie commituja, dzialaja w transakcji wywolujacego.
    Wyjatkiem jest release_expired/sweep_expired, ktore sa wolane z taskow.
    """

    def __init__(self, db: Session, scheduler=None, ttl_seconds: int = RESERVATION_TTL_SECONDS):
        self.db = db
        self.repo = ReservationRepo(db)
        self.ledger = InventoryLedger(db)
        self.scheduler = scheduler
        self.ttl_seconds = ttl_seconds

    def reserve(
        self,
        product_id: int,
        user_id: int,
        cart_id: int,
        quantity: int,
        ttl_seconds: float | None = None,
    ) -> ReservationModel:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        reservation = self.repo.add(
            ReservationModel(
                product_id=product_id,
                user_id=user_id,
                cart_id=cart_id,
                reserved_quantity=quantity,
                reserved_until=utcnow() + timedelta(seconds=ttl),
                status=ACTIVE,
            )
        )
        logger.info(
            f"Reservation {reservation.id}: {quantity} x product {product_id} "
            f"for user {user_id} until {reservation.reserved_until}"
        )
        return reservation

    def held_quantity(self, cart_id: int, product_id: int) -> int:
        return self.repo.held_quantity(cart_id, product_id)

    def release_for_cart_product(
        self,
        cart_id: int,
        product_id: int,
        quantity: int | None = None,
    ) -> tuple[int, list[str]]:
        """
        Zwalnia rezerwacje pod pozycja koszyka, od najnowszej.

        quantity=None zwalnia wszystkie aktywne. Zwraca ilosc faktycznie
        zwolniona (wywolujacy oddaje do magazynu dokladnie tyle) oraz id
        timerow usunietych wierszy.
        """
        released = 0
        task_ids = []

        for reservation in self.repo.list_active(cart_id, product_id):
            remaining = None if quantity is None else quantity - released
            if remaining is not None and remaining <= 0:
                break

            if remaining is None or reservation.reserved_quantity <= remaining:
                row = self.repo.delete_if_active(reservation.id)
                if row is None:
                    continue
                released += row.reserved_quantity
                if reservation.task_id:
                    task_ids.append(reservation.task_id)
            elif self.repo.shrink_if_active(reservation.id, remaining):
                released += remaining

        if released:
            logger.info(f"Released {released} x product {product_id} held by cart {cart_id}")
        return released, task_ids

    def supersede_for_cart(self, cart_id: int) -> list[str]:
        task_ids = self.repo.supersede_for_cart(cart_id)
        logger.info(f"{len(task_ids)} reservations of cart {cart_id} superseded by checkout")
        return [t for t in task_ids if t]

    def release_expired(self, reservation_id: int, now: datetime | None = None) -> int:
        """
        Cialo timera: usuwa wiersz jesli nadal ACTIVE i po terminie, potem
        oddaje jego ilosc do magazynu. Zwraca oddana ilosc (0 = nic nie zrobiono).
        """
        now = now or utcnow()
        with transaction(self.db):
            row = self.repo.delete_if_active(reservation_id, expired_before=now)
            if row is None:
                logger.info(f"Reservation {reservation_id} already gone or not expired, nothing to release")
                return 0
            self.ledger.increment(row.product_id, row.reserved_quantity)

        logger.info(
            f"Reservation {reservation_id} expired, restored {row.reserved_quantity} "
            f"x product {row.product_id}"
        )
        return row.reserved_quantity

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Zwalnia wszystkie przeterminowane aktywne rezerwacje, zapas na zgubione timery."""
        now = now or utcnow()
        with transaction(self.db):
            expired_ids = self.repo.list_expired_ids(now)

        logger.info(f"Found {len(expired_ids)} expired reservations")
        return sum(self.release_expired(reservation_id, now) for reservation_id in expired_ids)

    # timery, zawsze po commicie
    def arm_timer(self, reservation_id: int, run_at: datetime) -> str | None:
        if self.scheduler is None:
            return None
        try:
            task_id = self.scheduler.schedule(reservation_id, run_at)
        except OperationalError as e:
            # wiersz zostaje ACTIVE, zwolni go sweep
            logger.warning(f"Could not arm expiry timer for reservation {reservation_id}: {e}")
            return None

        with transaction(self.db):
            self.repo.set_task_id(reservation_id, task_id)
        return task_id

    def cancel_timers(self, task_ids: list[str]) -> None:
        if self.scheduler is None:
            return
        for task_id in task_ids:
            self.scheduler.cancel(task_id)
