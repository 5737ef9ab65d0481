"""Protocolo de acesso aos registros de agenda dos providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.availability import AvailabilityException
    from app.domain.provider import ProviderSchedule


class ProviderStoreProtocol(ABC):
    """Contrato assincrono para registros de disponibilidade (host)."""

    @abstractmethod
    async def get_schedule(self, provider_id: str) -> ProviderSchedule | None: ...

    @abstractmethod
    async def save_schedule(self, schedule: ProviderSchedule) -> ProviderSchedule: ...

    @abstractmethod
    async def upsert_exception(
        self, provider_id: str, exception: AvailabilityException
    ) -> ProviderSchedule:
        """Substitui a exceção da mesma data (no máximo uma por data).

        Raises:
            NotFoundError: provider inexistente.
        """
