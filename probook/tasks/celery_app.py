# probook/tasks/celery_app.py
"""
Celery application configuration.

Sets up the Celery app with Redis as the broker, JSON serialization and the
periodic schedule for notification draining and earnings promotion.
"""

import os
from typing import Any

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from probook.core.config import settings
from probook.core.logging_config import configure_logging

BEAT_SCHEDULE = {
    "drain-queued-notifications": {
        "task": "notifications.drain_queued",
        "schedule": crontab(minute="*/1"),
        "options": {"queue": "notifications"},
    },
    "retry-failed-notifications": {
        "task": "notifications.retry_failed",
        "schedule": crontab(minute="*/15"),
        "options": {"queue": "notifications"},
    },
    "promote-payable-earnings": {
        "task": "earnings.mark_payable",
        "schedule": crontab(minute=5),
        "options": {"queue": "payments"},
    },
}


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Priority for the broker: CELERY_BROKER_URL -> REDIS_URL -> settings.redis_url
    """
    broker_url = os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL") or settings.redis_url
    result_backend = os.getenv("CELERY_RESULT_BACKEND") or broker_url

    celery_app = Celery("probook", broker=broker_url, backend=result_backend)

    celery_app.conf.update(
        {
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": settings.default_timezone,
            "enable_utc": True,
            "worker_prefetch_multiplier": 4,
            "worker_max_tasks_per_child": 1000,
            "task_soft_time_limit": 300,
            "task_time_limit": 600,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            "worker_hijack_root_logger": False,
        }
    )

    celery_app.conf.imports = ("probook.tasks.notification_tasks", "probook.tasks.earning_tasks")
    celery_app.conf.task_routes = {
        "notifications.*": {"queue": "notifications"},
        "earnings.*": {"queue": "payments"},
    }
    celery_app.conf.beat_schedule = BEAT_SCHEDULE
    return celery_app


@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Use the application's logging format instead of Celery's."""
    configure_logging()


celery_app = create_celery_app()
