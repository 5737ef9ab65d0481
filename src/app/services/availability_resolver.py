"""Resolução do expediente efetivo de um provider em uma data."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.availability import DaySchedule, TimeInterval
from app.domain.errors import NotFoundError

if TYPE_CHECKING:
    import datetime as dt

    from app.domain.provider import ProviderSchedule


def resolve_day(schedule: ProviderSchedule | None, date: dt.date) -> DaySchedule:
    """Aplica a exceção da data (se houver) sobre o template semanal.

    A exceção sobrescreve o dia inteiro: `is_available` substitui o flag do
    template e `alternative_slots`, quando não vazio, substitui os intervalos.

    Raises:
        NotFoundError: provider inexistente ou sem registro de disponibilidade.
    """
    if schedule is None:
        raise NotFoundError("Provider não encontrado")
    if schedule.availability is None:
        raise NotFoundError(
            "Provider sem registro de disponibilidade",
            provider_id=schedule.provider_id,
        )

    weekly = schedule.availability.for_weekday(date.weekday())
    exception = schedule.exception_for(date)
    if exception is None:
        return DaySchedule(is_available=weekly.is_available, intervals=weekly.intervals)

    intervals = exception.alternative_slots or weekly.intervals
    return DaySchedule(is_available=exception.is_available, intervals=intervals)


def covers(day: DaySchedule, interval: TimeInterval) -> bool:
    """True quando o dia está disponível e algum intervalo contém `interval`."""
    if not day.is_available:
        return False
    return any(work.contains(interval) for work in day.intervals)


__all__ = ["covers", "resolve_day"]
