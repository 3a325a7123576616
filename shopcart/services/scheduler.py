# shopcart/services/scheduler.py
from datetime import datetime

from kombu.exceptions import OperationalError

from shopcart.celery_worker import celery_app
from shopcart.utils.logging import get_logger
from shopcart.utils.retry import broker_retry

logger = get_logger(__name__)

RELEASE_TASK = "shopcart.tasks.expire.release_reservation_task"


class CeleryReservationScheduler:
    """
    Jeden opozniony task celery na rezerwacje (eta = reserved_until).
    Task sam sprawdza czy wiersz jest nadal ACTIVE, wiec revoke jest tylko
    porzadkowy.
    """

    def __init__(self, app=None):
        self.app = app or celery_app

    @broker_retry()
    def schedule(self, reservation_id: int, run_at: datetime) -> str:
        result = self.app.send_task(RELEASE_TASK, args=[reservation_id], eta=run_at)
        logger.info(f"Expiry timer {result.id} armed for reservation {reservation_id} at {run_at}")
        return result.id

    def cancel(self, task_id: str) -> None:
        try:
            self.app.control.revoke(task_id)
        except OperationalError as e:
            logger.warning(f"Failed to revoke expiry timer {task_id}: {e}")
