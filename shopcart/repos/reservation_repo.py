# shopcart/repos/reservation_repo.py
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from shopcart.data.models.reservation import ACTIVE, SUPERSEDED, ReservationModel

_NO_SYNC = {"synchronize_session": False}


class ReservationRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, reservation: ReservationModel) -> ReservationModel:
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def get(self, reservation_id: int) -> ReservationModel | None:
        return self.db.get(ReservationModel, reservation_id, populate_existing=True)

    def list_active(self, cart_id: int, product_id: int | None = None) -> list[ReservationModel]:
        # najnowsze najpierw
        stmt = select(ReservationModel).where(
            ReservationModel.cart_id == cart_id,
            ReservationModel.status == ACTIVE,
        )
        if product_id is not None:
            stmt = stmt.where(ReservationModel.product_id == product_id)
        stmt = stmt.order_by(ReservationModel.id.desc()).execution_options(populate_existing=True)
        return list(self.db.execute(stmt).scalars().all())

    def held_quantity(self, cart_id: int, product_id: int) -> int:
        return self.db.execute(
            select(func.coalesce(func.sum(ReservationModel.reserved_quantity), 0)).where(
                ReservationModel.cart_id == cart_id,
                ReservationModel.product_id == product_id,
                ReservationModel.status == ACTIVE,
            )
        ).scalar_one()

    def list_expired_ids(self, now: datetime) -> list[int]:
        return list(
            self.db.execute(
                select(ReservationModel.id)
                .where(
                    ReservationModel.status == ACTIVE,
                    ReservationModel.reserved_until <= now,
                )
                .order_by(ReservationModel.id)
            ).scalars().all()
        )

    def delete_if_active(self, reservation_id: int, expired_before: datetime | None = None):
        """
        Usuwa wiersz tylko poki jest ACTIVE.

        Zwraca (product_id, reserved_quantity) usunietego wiersza albo None.
        Usuniety wiersz to test-and-set: tylko ten kto go faktycznie usunal
        oddaje ilosc do magazynu.
        """
        stmt = delete(ReservationModel).where(
            ReservationModel.id == reservation_id,
            ReservationModel.status == ACTIVE,
        )
        if expired_before is not None:
            stmt = stmt.where(ReservationModel.reserved_until <= expired_before)
        stmt = stmt.returning(ReservationModel.product_id, ReservationModel.reserved_quantity)
        return self.db.execute(stmt, execution_options=_NO_SYNC).one_or_none()

    def shrink_if_active(self, reservation_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ReservationModel)
            .where(
                ReservationModel.id == reservation_id,
                ReservationModel.status == ACTIVE,
                ReservationModel.reserved_quantity > quantity,
            )
            .values(reserved_quantity=ReservationModel.reserved_quantity - quantity),
            execution_options=_NO_SYNC,
        )
        return result.rowcount

    def supersede_for_cart(self, cart_id: int) -> list[str | None]:
        """Oznacza aktywne wiersze koszyka jako SUPERSEDED, zwraca ich task id."""
        return list(
            self.db.execute(
                update(ReservationModel)
                .where(
                    ReservationModel.cart_id == cart_id,
                    ReservationModel.status == ACTIVE,
                )
                .values(status=SUPERSEDED)
                .returning(ReservationModel.task_id),
                execution_options=_NO_SYNC,
            ).scalars().all()
        )

    def set_task_id(self, reservation_id: int, task_id: str) -> int:
        result = self.db.execute(
            update(ReservationModel)
            .where(ReservationModel.id == reservation_id)
            .values(task_id=task_id),
            execution_options=_NO_SYNC,
        )
        return result.rowcount
