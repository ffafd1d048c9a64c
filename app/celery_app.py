from celery import Celery

from app.config import settings

# Create Celery app
celery_app = Celery(
    "placement",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks"],  # Auto-discover tasks from this module
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=1800,  # 30 minutes max for any task
    task_soft_time_limit=1740,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,  # Restart worker after 100 tasks to prevent memory leaks
)

celery_app.conf.beat_schedule = {
    "close-expired-drives": {
        "task": "app.tasks.close_expired_drives",
        "schedule": float(settings.drive_sweep_interval_seconds),
        "args": [],
    },
}
