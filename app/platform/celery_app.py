from celery import Celery
from kombu import Queue

from app.platform.config import settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Only periodic housekeeping runs here: the expired-content sweep that
    removes stories past their 24 hours along with spent verification codes
    and sessions. Requests never wait on it.
    """
    celery_app = Celery(
        "hiddo",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer=settings.CELERY_RESULT_SERIALIZER,
        accept_content=[settings.CELERY_ACCEPT_CONTENT],
        timezone="UTC",
        enable_utc=True,
        task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
        result_expires=3600,
        task_routes={
            "app.features.stories.workers.periodic_tasks.cleanup_expired_content": {"queue": "maintenance"},
        },
        task_queues=(
            Queue("default"),
            Queue("maintenance"),
        ),
        task_default_queue="default",
        worker_prefetch_multiplier=1,
        beat_schedule={
            "cleanup-expired-content": {
                "task": "app.features.stories.workers.periodic_tasks.cleanup_expired_content",
                "schedule": settings.STORY_CLEANUP_INTERVAL_SECONDS,
            },
        },
    )

    celery_app.autodiscover_tasks(["app.features.stories.workers"], related_name="periodic_tasks")

    return celery_app


celery_app = create_celery_app()
