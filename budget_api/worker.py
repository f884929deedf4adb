from celery import Celery
from celery.schedules import crontab

from budget_api.core.config import settings

celery_app = Celery(
    "budget_api",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# ─── Scheduled tasks ──────────────────────────
celery_app.conf.beat_schedule = {
    "generate-recurring-daily": {
        "task": "budget_api.services.recurring_generator.generate_due_recurring",
        "schedule": crontab(hour=settings.generate_hour, minute=settings.generate_minute),
    },
}

# Explicitly include task modules so the worker registers them on startup.
# autodiscover_tasks() only looks for a "tasks.py" file, which we don't use.
celery_app.conf.include = [
    "budget_api.services.recurring_generator",
]
