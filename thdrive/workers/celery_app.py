"""
Celery Application Configuration
"""
from celery import Celery

from thdrive.core.config import settings

celery_app = Celery(
    "thdrive",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["thdrive.workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "sweep-overdue-penalties": {
        "task": "thdrive.workers.tasks.sweep_overdue_penalties",
        "schedule": float(settings.PENALTY_SWEEP_INTERVAL_SECONDS),
    },
}
