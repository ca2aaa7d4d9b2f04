# probook/repositories/push_subscription_repository.py
"""Push subscription lookups for the PUSH notification channel."""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..models.notification import PushSubscription
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PushSubscriptionRepository(BaseRepository[PushSubscription]):
    def __init__(self, db: Session):
        super().__init__(db, PushSubscription)

    def list_active_for_user(self, user_id: str) -> List[PushSubscription]:
        return (
            self.db.query(PushSubscription)
            .filter(PushSubscription.user_id == user_id, PushSubscription.is_active.is_(True))
            .order_by(PushSubscription.created_at.asc())
            .all()
        )

    def deactivate_endpoint(self, endpoint: str) -> bool:
        """Mark an expired endpoint inactive; returns False if unknown."""
        subscription = self.find_one_by(endpoint=endpoint)
        if subscription is None:
            return False
        subscription.is_active = False
        self.db.flush()
        logger.info("Deactivated push subscription %s for user %s", subscription.id, subscription.user_id)
        return True
