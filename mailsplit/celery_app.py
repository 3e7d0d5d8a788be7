from celery import Celery

from mailsplit.core.config import settings

celery_app = Celery(
    "mailsplit",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["mailsplit.tasks.split_mailbox"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)
