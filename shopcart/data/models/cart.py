# shopcart/data/models/cart.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, Integer, Numeric
from sqlalchemy.orm import relationship

from shopcart.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # jeden koszyk na usera
    user_id = Column(Integer, nullable=False, unique=True, index=True)

    total_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
    )
