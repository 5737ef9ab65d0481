"""Ledger de reservas por (provider, data) e detecção de conflitos.

Regra única de sobreposição, usada tanto na leitura (slots livres) quanto na
escrita (insert_if_free): a.start < b.end e a.end > b.start, considerando apenas
agendamentos ativos (pending/confirmed). Cancelar libera o horário sem nenhuma
escrita extra no ledger além do novo status.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.errors import DailyLimitReachedError, SlotConflictError, ValidationError
from fsm.states import AppointmentStatus, is_active

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from app.domain.appointment import Appointment
    from app.domain.availability import Slot, TimeInterval


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def ledger_key(provider_id: str, date: dt.date) -> str:
    """Chave canônica do ledger, compartilhada pelos backends."""
    return f"{provider_id}:{date.isoformat()}"


def resolve_replay(existing: Appointment, incoming: Appointment) -> Appointment:
    """Inserção com id já gravado: reenvio do mesmo pedido devolve o existente.

    Cobre o cliente que refaz o POST após um timeout cuja escrita chegou a
    ser confirmada no backend.

    Raises:
        ValidationError: id reaproveitado para outra reserva.
    """
    if existing.same_booking(incoming):
        return existing
    raise ValidationError(
        "Id de agendamento já utilizado em outra reserva", appointment_id=incoming.id
    )


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Intervalo ocupado por um agendamento dentro do ledger do dia."""

    appointment_id: str
    start: int
    end: int
    status: AppointmentStatus

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> LedgerEntry:
        return cls(
            appointment_id=appointment.id,
            start=appointment.time.start,
            end=appointment.time.end,
            status=appointment.status,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LedgerEntry:
        return cls(
            appointment_id=str(data["appointment_id"]),
            start=int(data["start"]),
            end=int(data["end"]),
            status=AppointmentStatus(data["status"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "appointment_id": self.appointment_id,
            "start": self.start,
            "end": self.end,
            "status": self.status.value,
        }

    @property
    def is_active(self) -> bool:
        return is_active(self.status)

    def overlaps(self, start: int, end: int) -> bool:
        return intervals_overlap(self.start, self.end, start, end)


@dataclass(slots=True)
class BookingLedger:
    """Conjunto de reservas de um provider em uma data."""

    provider_id: str
    date: dt.date
    entries: list[LedgerEntry] = field(default_factory=list)

    @classmethod
    def from_appointments(
        cls, provider_id: str, date: dt.date, appointments: Iterable[Appointment]
    ) -> BookingLedger:
        return cls(
            provider_id=provider_id,
            date=date,
            entries=[LedgerEntry.from_appointment(item) for item in appointments],
        )

    def active_entries(self) -> list[LedgerEntry]:
        return [entry for entry in self.entries if entry.is_active]

    def active_count(self) -> int:
        return len(self.active_entries())

    def conflicts_with(self, interval: TimeInterval, *, ignore_id: str | None = None) -> list[LedgerEntry]:
        """Reservas ativas que sobrepõem `interval`."""
        return [
            entry
            for entry in self.active_entries()
            if entry.appointment_id != ignore_id and entry.overlaps(interval.start, interval.end)
        ]

    def free_slots(self, slots: Iterable[Slot]) -> list[Slot]:
        """Filtra os slots que não sobrepõem nenhuma reserva ativa."""
        active = self.active_entries()
        return [
            slot
            for slot in slots
            if not any(entry.overlaps(slot.start, slot.end) for entry in active)
        ]

    def ensure_can_insert(self, appointment: Appointment, max_active_per_day: int | None) -> None:
        """Verifica conflito e limite diário antes de inserir.

        Raises:
            SlotConflictError: intervalo sobrepõe reserva ativa.
            DailyLimitReachedError: limite de ativos do dia atingido.
        """
        conflicts = self.conflicts_with(appointment.time, ignore_id=appointment.id)
        if conflicts:
            raise SlotConflictError(
                "Horário já reservado para este provider",
                provider_id=self.provider_id,
                date=self.date.isoformat(),
                start=appointment.time.label(),
            )
        if max_active_per_day is not None and self.active_count() >= max_active_per_day:
            raise DailyLimitReachedError(
                "Limite diário de agendamentos atingido",
                provider_id=self.provider_id,
                date=self.date.isoformat(),
                max_appointments_per_day=max_active_per_day,
            )


__all__ = ["BookingLedger", "LedgerEntry", "intervals_overlap", "ledger_key", "resolve_replay"]
