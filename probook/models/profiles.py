# probook/models/profiles.py
"""
Provider and client profile models.

Profiles hang off an authenticated user id. Providers carry the hourly rate
used for pricing; clients carry contact preferences used for notification
channel selection.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String
from sqlalchemy.sql import func
import ulid

from probook.core.enums import ContactMethod

from ..core.timezone_utils import utc_now
from ..database import Base


class ProviderStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class ProviderProfile(Base):
    __tablename__ = "provider_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    display_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    status = Column(String(20), nullable=False, default=ProviderStatus.ACTIVE)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    __table_args__ = (
        CheckConstraint("hourly_rate > 0", name="check_provider_rate_positive"),
    )

    @property
    def is_suspended(self) -> bool:
        return self.status == ProviderStatus.SUSPENDED


class ClientProfile(Base):
    __tablename__ = "client_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    first_name = Column(String(80), nullable=True)
    last_name = Column(String(80), nullable=True)
    preferred_contact_method = Column(String(20), nullable=False, default=ContactMethod.EMAIL)
    timezone = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts)

    @property
    def prefers_whatsapp(self) -> bool:
        return self.preferred_contact_method == ContactMethod.WHATSAPP
