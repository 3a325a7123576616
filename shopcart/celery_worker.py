# shopcart/celery_worker.py
from celery import Celery

from shopcart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, RESERVATION_SWEEP_SECONDS

celery_app = Celery(
    "shopcart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# explicite import taskow, zeby celery je zarejestrowal
celery_app.conf.imports = ("shopcart.tasks.expire",)

# timery per rezerwacja to glowny mechanizm, beat tylko zbiera zgubione
celery_app.conf.beat_schedule = {
    "sweep-expired-reservations": {
        "task": "shopcart.tasks.expire.sweep_expired_reservations_task",
        "schedule": RESERVATION_SWEEP_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
