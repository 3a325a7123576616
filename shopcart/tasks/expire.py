# shopcart/tasks/expire.py
from shopcart.celery_worker import celery_app
from shopcart.data.database import SessionLocal
from shopcart.services.reservation_service import ReservationRegistry
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="shopcart.tasks.expire.release_reservation_task")
def release_reservation_task(reservation_id: int):
    logger.info(f"Expiry timer fired for reservation {reservation_id}")

    db = SessionLocal()
    try:
        restored = ReservationRegistry(db).release_expired(reservation_id)
    finally:
        db.close()

    return {"reservation_id": reservation_id, "restored": restored}


@celery_app.task(name="shopcart.tasks.expire.sweep_expired_reservations_task")
def sweep_expired_reservations_task():
    logger.info("Expired reservations sweep started")

    db = SessionLocal()
    try:
        restored = ReservationRegistry(db).sweep_expired()
    finally:
        db.close()

    return {"restored": restored}
