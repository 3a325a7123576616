from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from shopcart.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    # cena jednostkowa * ilosc z chwili ostatniego zapisu
    item_price = Column(Numeric(10, 2), nullable=False)

    cart = relationship("CartModel", back_populates="items")
    product = relationship("ProductModel")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="u_cart_product"),
        CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )
