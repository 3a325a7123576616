# shopcart/data/models/reservation.py
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String

from shopcart.data.database import Base

ACTIVE = "ACTIVE"
SUPERSEDED = "SUPERSEDED"


class ReservationModel(Base):
    __tablename__ = "product_reservations"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)

    reserved_quantity = Column(Integer, nullable=False)
    reserved_until = Column(DateTime(timezone=True), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=ACTIVE)  # ACTIVE, SUPERSEDED
    # id taska celery ktory zwolni rezerwacje
    task_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("reserved_quantity > 0", name="ck_reservation_quantity_positive"),
    )
