"""Acting principal passed into every booking lifecycle operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from probook.core.enums import ActorRole


@dataclass(frozen=True)
class Actor:
    """
    Who is performing an operation.

    ``id`` is the authenticated user id; it is ``None`` only for the SYSTEM
    actor used by automated follow-up steps.
    """

    id: Optional[str]
    role: ActorRole

    @classmethod
    def system(cls) -> "Actor":
        return cls(id=None, role=ActorRole.SYSTEM)

    @classmethod
    def client(cls, user_id: str) -> "Actor":
        return cls(id=user_id, role=ActorRole.CLIENT)

    @classmethod
    def provider(cls, user_id: str) -> "Actor":
        return cls(id=user_id, role=ActorRole.PROVIDER)

    @classmethod
    def admin(cls, user_id: str) -> "Actor":
        return cls(id=user_id, role=ActorRole.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_system(self) -> bool:
        return self.role == ActorRole.SYSTEM

    def to_audit_dict(self) -> dict[str, Optional[str]]:
        return {"id": self.id, "role": self.role.value}
