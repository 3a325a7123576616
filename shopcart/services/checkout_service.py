# shopcart/services/checkout_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from shopcart.data.database import transaction
from shopcart.data.models.order import OrderModel
from shopcart.data.models.order_item import OrderItemModel
from shopcart.domain.errors import CartChanged, EmptyCart, NotFound, PaymentFailed
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.order_repo import OrderRepo
from shopcart.services.inventory_service import InventoryLedger
from shopcart.services.payment_client import PaymentClient, build_payment_client
from shopcart.services.reservation_service import ReservationRegistry
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Zamiana koszyka w zamowienie.

    Oddzielnie od CartService, ale na tych samych repo. Cale checkout to
    jedna transakcja, wiec nie ma czesciowych zamowien.
    """

    def __init__(self, db: Session, payment_client: PaymentClient | None = None, scheduler=None):
        self.db = db
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.ledger = InventoryLedger(db)
        self.reservations = ReservationRegistry(db, scheduler=scheduler)
        self.payment_client = payment_client or build_payment_client()

    def checkout(self, cart_id: int, user_id: int) -> Dict[str, Any]:
        """
        1. Walidacja koszyka (wlasciciel, niepusty), wiersz koszyka zablokowany
        2. Autoryzacja platnosci
        3. Przejecie pozycji koszyka (DELETE ... RETURNING), zamowienie
           powstaje z tego co faktycznie usunelismy
        4. Zamowienie z totalem koszyka
        5. Pozycje zamowienia po cenie z koszyka, dobranie towaru jesli
           rezerwacja wygasla
        6. Rezerwacje -> SUPERSEDED, total koszyka wyzerowany
        """
        with transaction(self.db):
            cart = self.carts.lock_cart_for_user(cart_id, user_id)
            if not cart:
                raise NotFound("Cart not found or is empty")

            items = self.carts.get_cart_items(cart.id)
            if not items:
                raise EmptyCart()

            total = cart.total_amount
            seen = sorted((i.product_id, i.quantity, i.item_price) for i in items)

            if not self.payment_client.authorize(user_id, total):
                raise PaymentFailed()

            claimed = sorted(tuple(row) for row in self.carts.claim_cart_items(cart.id))
            if not claimed:
                # rownolegly checkout zdazyl oproznic koszyk
                raise EmptyCart()
            if claimed != seen:
                raise CartChanged()

            order = self.orders.create_order(
                OrderModel(cart_id=cart.id, user_id=user_id, total_amount=total)
            )

            order_items = []
            for product_id, quantity, item_price in claimed:
                # towar trzymany przez aktywne rezerwacje jest juz zdjety z magazynu,
                # brakujaca czesc (wygasla rezerwacja) trzeba zdjac teraz
                shortfall = quantity - self.reservations.held_quantity(cart.id, product_id)
                if shortfall > 0:
                    self.ledger.decrement(product_id, shortfall)

                self.orders.add_order_item(
                    OrderItemModel(
                        order_id=order.id,
                        product_id=product_id,
                        quantity=quantity,
                        item_price=item_price,
                    )
                )
                order_items.append(
                    {
                        "product_id": product_id,
                        "quantity": quantity,
                        "item_price": item_price,
                    }
                )

            cancelled = self.reservations.supersede_for_cart(cart.id)
            self.carts.reset_total(cart.id)

            result = {
                "order_id": order.id,
                "user_id": order.user_id,
                "total_amount": total,
                "created_at": order.created_at,
                "items": order_items,
            }

        self.reservations.cancel_timers(cancelled)
        logger.info(f"Order {result['order_id']} created from cart {cart_id}, total {total}")

        return result
