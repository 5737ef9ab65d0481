"""Identidade de quem executa uma operação (resolvida pelo host)."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ActorRole(StrEnum):
    SUBJECT = "subject"
    PROVIDER = "provider"
    STAFF = "staff"
    SYSTEM = "system"


class Actor(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    actor_id: str = Field(..., min_length=1)
    role: ActorRole

    @property
    def is_privileged(self) -> bool:
        return self.role in (ActorRole.STAFF, ActorRole.SYSTEM)


__all__ = ["Actor", "ActorRole"]
