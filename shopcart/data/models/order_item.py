from sqlalchemy import Column, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from shopcart.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    item_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (UniqueConstraint("order_id", "product_id", name="u_order_product"),)
