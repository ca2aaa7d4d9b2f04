"""Periodic promotion of earnings whose cooling-off window has ended."""

from celery.utils.log import get_task_logger

from probook.container import build_earning_service
from probook.database import session_scope
from probook.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="earnings.mark_payable", max_retries=0, queue="payments")
def mark_payable() -> int:
    with session_scope() as session:
        promoted = build_earning_service(session).mark_payable_if_due()
    if promoted:
        logger.info("Marked %s earnings payable", promoted)
    return promoted
