# shopcart/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopcart.data.database import transaction
from shopcart.data.models.cart import CartModel
from shopcart.domain.errors import CartAlreadyExists, Forbidden, InsufficientStock, InvalidInput, NotFound
from shopcart.repos.cart_repo import CartRepo
from shopcart.services.inventory_service import InventoryLedger
from shopcart.services.reservation_service import ReservationRegistry
from shopcart.utils.logging import get_logger
from shopcart.utils.settings import RESERVATION_TTL_SECONDS

logger = get_logger(__name__)


def _validate_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInput("Quantity must be a positive integer")


class CartService:
    """
    Use case'y koszyka.

    Kazda komenda to jedna transakcja: magazyn, rezerwacje, pozycje i total
    zmieniaja sie razem albo wcale. Timery rezerwacji sa uzbrajane/odwolywane
    dopiero po commicie.

    Invariant: cart.total_amount == sum(item.item_price).
    """

    def __init__(
        self,
        db: Session,
        scheduler=None,
        ttl_seconds: int = RESERVATION_TTL_SECONDS,
    ):
        self.db = db
        self.repo = CartRepo(db)
        self.ledger = InventoryLedger(db)
        self.reservations = ReservationRegistry(db, scheduler=scheduler, ttl_seconds=ttl_seconds)

    def _load_cart(self, cart_id: int, user_id: int | None, lock: bool = True) -> CartModel:
        # komendy blokuja wiersz koszyka, rownolegle komendy i checkout ida po kolei
        cart = self.repo.get_cart(cart_id, for_update=lock)

        if not cart:
            raise NotFound("Cart not found")

        if user_id is not None and cart.user_id != user_id:
            raise Forbidden("Access denied to this cart")

        return cart

    #query
    def get_cart(self, cart_id: int, user_id: int | None = None) -> Dict[str, Any]:
        with transaction(self.db):
            cart = self._load_cart(cart_id, user_id, lock=False)
            items = self.repo.get_cart_items(cart_id)

            return {
                "cart_id": cart.id,
                "user_id": cart.user_id,
                "items": [
                    {
                        "product_id": i.product_id,
                        "name": i.product.name,
                        "quantity": i.quantity,
                        "item_price": i.item_price,
                    }
                    for i in items
                ],
                "total_amount": cart.total_amount,
            }

    #commands
    def create_cart(self, user_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            if self.repo.get_cart_by_user(user_id):
                logger.info(f"User {user_id} already has a cart")
                raise CartAlreadyExists()

            try:
                created = self.repo.create_cart(
                    CartModel(user_id=user_id, total_amount=Decimal("0.00"))
                )
            except IntegrityError as e:
                # rownolegly create wygral na unique(user_id)
                raise CartAlreadyExists() from e

            cart_id = created.id

        logger.info(f"Created cart {cart_id} for user {user_id}")
        return {
            "cart_id": cart_id,
            "user_id": user_id,
            "items": [],
            "total_amount": Decimal("0.00"),
        }

    def add_item(
        self,
        user_id: int | None,
        cart_id: int,
        product_id: int,
        quantity: int,
    ) -> Dict[str, Any]:
        if product_id is None:
            raise InvalidInput("Product ID and quantity are required")
        _validate_quantity(quantity)

        with transaction(self.db):
            cart = self._load_cart(cart_id, user_id)
            product = self.ledger.get_availability(product_id)

            if quantity > product.stock_quantity:
                raise InsufficientStock(product_id)

            line_price = product.price * quantity

            self.ledger.decrement(product_id, quantity)
            reservation = self.reservations.reserve(product_id, cart.user_id, cart.id, quantity)
            self.repo.merge_cart_item(cart.id, product_id, quantity, line_price)
            self.repo.adjust_total(cart.id, line_price)

            timer = (reservation.id, reservation.reserved_until)

        self.reservations.arm_timer(*timer)
        logger.info(f"Added {quantity} x product {product_id} to cart {cart_id} ({line_price})")

        return self.get_cart(cart_id, user_id)

    def update_item(
        self,
        user_id: int | None,
        cart_id: int,
        product_id: int,
        quantity: int,
    ) -> Dict[str, Any]:
        """
        Ustawia pozycje na bezwzgledna ilosc.

        Kazda trzymana sztuka ma za soba aktywna rezerwacje, wiec roznice
        liczymy wzgledem tego co koszyk nadal trzyma: wzrost rezerwuje
        brakujace sztuki, spadek zwalnia najnowsze rezerwacje.
        """
        if product_id is None:
            raise InvalidInput("Product ID and quantity are required")
        _validate_quantity(quantity)

        timer = None
        cancelled = []

        with transaction(self.db):
            cart = self._load_cart(cart_id, user_id)
            item = self.repo.get_cart_item(cart.id, product_id)

            if not item:
                raise NotFound("Item not found in cart")

            product = self.ledger.get_availability(product_id)
            held = self.reservations.held_quantity(cart.id, product_id)
            delta = quantity - held

            if delta > 0:
                if delta > product.stock_quantity:
                    raise InsufficientStock(product_id, "Insufficient stock for the requested update")
                self.ledger.decrement(product_id, delta)
                reservation = self.reservations.reserve(product_id, cart.user_id, cart.id, delta)
                timer = (reservation.id, reservation.reserved_until)
            elif delta < 0:
                released, cancelled = self.reservations.release_for_cart_product(cart.id, product_id, -delta)
                if released:
                    self.ledger.increment(product_id, released)

            old_price = item.item_price
            new_price = product.price * quantity

            self.repo.set_cart_item(cart.id, product_id, quantity, new_price)
            self.repo.adjust_total(cart.id, new_price - old_price)

        if timer:
            self.reservations.arm_timer(*timer)
        self.reservations.cancel_timers(cancelled)
        logger.info(f"Cart {cart_id}: product {product_id} quantity set to {quantity}")

        return self.get_cart(cart_id, user_id)

    def remove_item(self, user_id: int | None, cart_id: int, product_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            cart = self._load_cart(cart_id, user_id)
            removed = self.repo.delete_cart_item(cart.id, product_id)

            if removed is None:
                raise NotFound("Item not found in cart")

            # oddajemy tyle ile faktycznie trzymaja aktywne rezerwacje,
            # to co juz wygaslo timer zwrocil wczesniej
            released, cancelled = self.reservations.release_for_cart_product(cart.id, product_id)
            if released:
                self.ledger.increment(product_id, released)

            self.repo.adjust_total(cart.id, -removed.item_price)

        self.reservations.cancel_timers(cancelled)
        logger.info(f"Removed product {product_id} from cart {cart_id}, {released} units back in stock")

        return self.get_cart(cart_id, user_id)

    def clear_cart(self, user_id: int | None, cart_id: int) -> Dict[str, Any]:
        cancelled = []

        with transaction(self.db):
            cart = self._load_cart(cart_id, user_id)

            for item in self.repo.get_cart_items(cart.id):
                released, task_ids = self.reservations.release_for_cart_product(cart.id, item.product_id)
                if released:
                    self.ledger.increment(item.product_id, released)
                cancelled.extend(task_ids)

            self.repo.delete_cart_items(cart.id)
            self.repo.reset_total(cart.id)

        self.reservations.cancel_timers(cancelled)
        logger.info(f"Cart {cart_id} cleared")

        return self.get_cart(cart_id, user_id)
