# shopcart/repos/cart_repo.py
from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, joinedload

from shopcart.data.models.cart import CartModel
from shopcart.data.models.cart_item import CartItemModel

_NO_SYNC = {"synchronize_session": False}


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int, for_update: bool = False) -> CartModel | None:
        # for_update blokuje wiersz koszyka do konca transakcji (na sqlite no-op)
        return self.db.get(CartModel, cart_id, populate_existing=True, with_for_update=for_update or None)

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def lock_cart_for_user(self, cart_id: int, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.id == cart_id, CartModel.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .options(joinedload(CartItemModel.product))
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
                .execution_options(populate_existing=True)
            ).scalars().all()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def merge_cart_item(self, cart_id: int, product_id: int, quantity: int, item_price: Decimal) -> None:
        """Doklada do istniejacej pozycji albo tworzy ja przy pierwszym dodaniu."""
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .values(
                quantity=CartItemModel.quantity + quantity,
                item_price=CartItemModel.item_price + item_price,
            ),
            execution_options=_NO_SYNC,
        )
        if result.rowcount == 0:
            self.db.add(
                CartItemModel(
                    cart_id=cart_id,
                    product_id=product_id,
                    quantity=quantity,
                    item_price=item_price,
                )
            )
            self.db.flush()

    def set_cart_item(self, cart_id: int, product_id: int, quantity: int, item_price: Decimal) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .values(quantity=quantity, item_price=item_price),
            execution_options=_NO_SYNC,
        )
        return result.rowcount

    def delete_cart_item(self, cart_id: int, product_id: int):
        """Usuwa jedna pozycje, zwraca jej (quantity, item_price) albo None."""
        return self.db.execute(
            delete(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .returning(CartItemModel.quantity, CartItemModel.item_price),
            execution_options=_NO_SYNC,
        ).one_or_none()

    def delete_cart_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.cart_id == cart_id),
            execution_options=_NO_SYNC,
        )
        return result.rowcount

    def claim_cart_items(self, cart_id: int) -> list:
        """Usuwa wszystkie pozycje koszyka i zwraca (product_id, quantity, item_price) usunietych."""
        return list(
            self.db.execute(
                delete(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .returning(CartItemModel.product_id, CartItemModel.quantity, CartItemModel.item_price),
                execution_options=_NO_SYNC,
            ).all()
        )

    def adjust_total(self, cart_id: int, delta: Decimal) -> None:
        self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(total_amount=CartModel.total_amount + delta),
            execution_options=_NO_SYNC,
        )

    def reset_total(self, cart_id: int) -> None:
        self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(total_amount=Decimal("0.00")),
            execution_options=_NO_SYNC,
        )
