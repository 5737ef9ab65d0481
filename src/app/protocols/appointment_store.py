"""Protocolo de persistência de agendamentos.

Toda escrita que altera o ledger de (provider, data) é atômica no backend:
`insert_if_free` e `update` nunca deixam dois ativos sobrepostos.
"""

from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.appointment import Appointment
    from fsm.states import AppointmentStatus


@dataclass(frozen=True, slots=True)
class AppointmentQuery:
    """Filtros da listagem delegada (ordenada por data e início)."""

    provider_id: str | None = None
    subject_id: str | None = None
    status: AppointmentStatus | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    limit: int = 50
    offset: int = 0

    def matches(self, appointment: Appointment) -> bool:
        if self.provider_id is not None and appointment.provider_id != self.provider_id:
            return False
        if self.subject_id is not None and appointment.subject_id != self.subject_id:
            return False
        if self.status is not None and appointment.status != self.status:
            return False
        if self.date_from is not None and appointment.date < self.date_from:
            return False
        return not (self.date_to is not None and appointment.date > self.date_to)


def sort_key(appointment: Appointment) -> tuple[dt.date, int, str]:
    return (appointment.date, appointment.time.start, appointment.id)


class AppointmentStoreProtocol(ABC):
    """Contrato assincrono para armazenamento de agendamentos."""

    @abstractmethod
    async def insert_if_free(
        self,
        appointment: Appointment,
        max_active_per_day: int | None = None,
    ) -> Appointment:
        """Insere se nenhum ativo sobrepõe o intervalo e o limite diário permite.

        Idempotente no id: se `appointment.id` já está gravado para a mesma
        reserva, devolve o gravado sem escrever (retry após timeout).

        Raises:
            SlotConflictError: sobreposição com agendamento ativo.
            DailyLimitReachedError: limite de ativos do dia atingido.
            ValidationError: id já usado por outra reserva.
        """

    @abstractmethod
    async def get(self, appointment_id: str) -> Appointment | None: ...

    @abstractmethod
    async def list_for_day(self, provider_id: str, date: dt.date) -> list[Appointment]:
        """Todos os agendamentos (qualquer status) do provider na data."""

    @abstractmethod
    async def update(self, appointment: Appointment, expected_version: int) -> Appointment:
        """Grava nova versão se a persistida for `expected_version`.

        Retorna o agendamento com `version = expected_version + 1`.

        Raises:
            NotFoundError: agendamento inexistente.
            ConcurrentUpdateError: versão divergente.
        """

    @abstractmethod
    async def query(self, query: AppointmentQuery) -> list[Appointment]: ...

    @abstractmethod
    async def ping(self) -> bool:
        """Verifica se o backend responde (readiness)."""
