"""Client profile lookups and lazy creation."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.profiles import ClientProfile
from ..repositories.factory import RepositoryFactory
from ..repositories.profile_repository import ClientProfileRepository
from .base import BaseService


class ClientProfileService(BaseService):
    def __init__(self, db: Session, repository: Optional[ClientProfileRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_client_profile_repository(db)

    def get_by_user_id(self, user_id: str) -> Optional[ClientProfile]:
        return self.repository.get_by_user_id(user_id)

    @BaseService.measure_operation("ensure_client_profile")
    def ensure_exists(self, user_id: str) -> ClientProfile:
        """
        Return the client's profile, creating an empty one on first use.

        Flushes only; the caller's transaction commits it.
        """
        profile = self.repository.get_by_user_id(user_id)
        if profile is not None:
            return profile
        profile = self.repository.create(user_id=user_id)
        self.logger.info("Created client profile for user %s", user_id)
        return profile
