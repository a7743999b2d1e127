"""
Celery application - background rating reconciliation over RabbitMQ.
Design: Redis as result backend; tasks are idempotent so retries are safe.
"""

from celery import Celery

from marketplace.config import get_settings

settings = get_settings()

celery_app = Celery(
    "marketplace",
    broker=settings.celery_broker_url,
    backend=settings.redis_url,
    include=["marketplace.queue.tasks"],
)

# Task settings: retries, time limits, serialization
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=60,
    worker_prefetch_multiplier=1,  # Fair distribution
)
