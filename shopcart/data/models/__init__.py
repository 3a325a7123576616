#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from shopcart.data.models.product import ProductModel
from shopcart.data.models.cart import CartModel
from shopcart.data.models.cart_item import CartItemModel
from shopcart.data.models.reservation import ReservationModel
from shopcart.data.models.order import OrderModel
from shopcart.data.models.order_item import OrderItemModel

__all__ = [
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "ReservationModel",
    "OrderModel",
    "OrderItemModel",
]
