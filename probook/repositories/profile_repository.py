# probook/repositories/profile_repository.py
"""Provider and client profile lookups."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.profiles import ClientProfile, ProviderProfile
from .base_repository import BaseRepository


class ProviderRepository(BaseRepository[ProviderProfile]):
    """Directory of provider profiles."""

    def __init__(self, db: Session):
        super().__init__(db, ProviderProfile)

    def find_by_user_id(self, user_id: str) -> Optional[ProviderProfile]:
        return self.find_one_by(user_id=user_id)


class ClientProfileRepository(BaseRepository[ClientProfile]):
    def __init__(self, db: Session):
        super().__init__(db, ClientProfile)

    def get_by_user_id(self, user_id: str) -> Optional[ClientProfile]:
        return self.find_one_by(user_id=user_id)
