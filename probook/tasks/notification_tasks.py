# probook/tasks/notification_tasks.py
"""
Celery tasks for notification deliveries.

- `notifications.drain_queued` sends QUEUED rows left behind by enqueue-only
  callers or crashed requests.
- `notifications.retry_failed` re-attempts FAILED rows with attempts left.
"""

from __future__ import annotations

from typing import Dict, Optional

from celery.utils.log import get_task_logger

from probook.container import build_notification_service
from probook.database import session_scope
from probook.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="notifications.drain_queued", max_retries=0, queue="notifications")
def drain_queued(limit: Optional[int] = None) -> Dict[str, int]:
    with session_scope() as session:
        result = build_notification_service(session).drain_queued(limit)
    if result.processed:
        logger.info(
            "Drained %s queued notifications (%s sent, %s failed)",
            result.processed,
            result.sent,
            result.failed,
        )
    return {"processed": result.processed, "sent": result.sent, "failed": result.failed}


@celery_app.task(name="notifications.retry_failed", max_retries=0, queue="notifications")
def retry_failed(limit: Optional[int] = None) -> Dict[str, int]:
    with session_scope() as session:
        result = build_notification_service(session).retry_failed(limit)
    if result.processed:
        logger.info(
            "Retried %s failed notifications (%s sent, %s failed)",
            result.processed,
            result.sent,
            result.failed,
        )
    return {"processed": result.processed, "sent": result.sent, "failed": result.failed}
