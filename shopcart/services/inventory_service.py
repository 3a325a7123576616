# shopcart/services/inventory_service.py
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from shopcart.domain.errors import InsufficientStock, InvalidInput, NotFound
from shopcart.repos.product_repo import ProductRepo


@dataclass(frozen=True)
class ProductAvailability:
    product_id: int
    name: str
    price: Decimal
    stock_quantity: int


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInput("Quantity must be a positive integer")


class InventoryLedger:
    """
    Stan magazynu per produkt.
    decrement/increment to pojedyncze warunkowe UPDATE, bez read-modify-write.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def get_availability(self, product_id: int) -> ProductAvailability:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFound("Product not found")
        return ProductAvailability(
            product_id=product.id,
            name=product.name,
            price=Decimal(product.price),
            stock_quantity=product.stock_quantity,
        )

    def decrement(self, product_id: int, quantity: int) -> None:
        _check_quantity(quantity)
        if self.repo.decrement_stock(product_id, quantity) == 0:
            # rozroznij brak produktu od braku towaru
            if not self.repo.get_product(product_id):
                raise NotFound("Product not found")
            raise InsufficientStock(product_id)

    def increment(self, product_id: int, quantity: int) -> None:
        _check_quantity(quantity)
        if self.repo.increment_stock(product_id, quantity) == 0:
            raise NotFound("Product not found")
