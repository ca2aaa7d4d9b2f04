# probook/core/config.py
"""Runtime settings, read from the environment and an optional ``.env`` file."""

import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

IN_CI = bool(os.getenv("CI"))
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

if not IN_CI and ENV_FILE.exists():
    load_dotenv(ENV_FILE)
    logger.debug("Loaded environment overrides from %s", ENV_FILE)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    database_url: str = Field(
        default="sqlite+pysqlite:///./probook.db",
        description="SQLAlchemy database URL",
    )
    database_pool_size: int = Field(default=5, description="Pooled connections (postgres only)")
    database_max_overflow: int = Field(
        default=10, description="Connections allowed beyond the pool (postgres only)"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Broker/backend URL for Celery workers",
    )

    # Booking rules
    default_timezone: str = Field(
        default="America/Montevideo",
        description="IANA timezone used when a client has no timezone preference",
    )
    display_id_max_attempts: int = Field(
        default=100, description="Collision retries after the first display id probe before giving up"
    )

    # Earnings
    platform_fee_rate: float = Field(
        default=0.15, description="Platform fee taken from captured amounts (0.15 = 15%)"
    )
    earning_cooling_off_days: int = Field(
        default=7, description="Days before a pending earning becomes payable"
    )

    # Notifications
    notification_drain_batch_size: int = Field(
        default=25, description="Queued deliveries processed per drain run"
    )
    notification_max_attempts: int = Field(
        default=5, description="Attempts after which a failed delivery is no longer retried"
    )
    email_provider: Literal["console", "resend"] = Field(
        default="console", description="Email channel backend"
    )
    resend_api_key: SecretStr = Field(default=SecretStr(""), description="Resend API key")
    email_from: str = Field(
        default="Probook <bookings@probook.app>", description="From address for booking email"
    )
    twilio_account_sid: str | None = Field(default=None, description="Twilio account SID")
    twilio_auth_token: SecretStr | None = Field(default=None, description="Twilio auth token")
    twilio_whatsapp_from_number: str | None = Field(
        default=None, description="Twilio WhatsApp sender, E.164 without the whatsapp: prefix"
    )
    vapid_private_key: SecretStr = Field(
        default=SecretStr(""), description="VAPID private key for web push"
    )
    vapid_claims_email: str = Field(
        default="mailto:support@probook.app", description="VAPID subject claim"
    )

    # Payments
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )

    model_config = SettingsConfigDict(
        env_file=None if IN_CI else ENV_FILE,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("platform_fee_rate")
    @classmethod
    def _validate_fee_rate(cls, value: float) -> float:
        if not 0 <= value < 1:
            raise ValueError("platform_fee_rate must be within [0, 1)")
        return value

    @field_validator("display_id_max_attempts", "notification_drain_batch_size")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_whatsapp_from_number
        )


settings = Settings()
