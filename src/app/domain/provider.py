"""Registro de agenda de um provider (fornecido pelo host)."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.appointment import AppointmentType
from app.domain.availability import (
    DEFAULT_TIMEZONE,
    AvailabilityException,
    SessionPolicy,
    WeeklyAvailability,
)


def _all_types() -> frozenset[AppointmentType]:
    return frozenset(AppointmentType)


class ProviderSchedule(BaseModel):
    """Disponibilidade, exceções e políticas de sessão de um provider.

    `availability=None` significa que não há registro de disponibilidade,
    diferente de um template com todos os dias indisponíveis.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    provider_id: str = Field(..., min_length=1)
    is_active: bool = True
    availability: WeeklyAvailability | None = None
    exceptions: tuple[AvailabilityException, ...] = ()
    session_policy: SessionPolicy = Field(default_factory=SessionPolicy)
    offered_types: frozenset[AppointmentType] = Field(default_factory=_all_types)

    @field_validator("exceptions")
    @classmethod
    def _unique_dates(
        cls, value: tuple[AvailabilityException, ...]
    ) -> tuple[AvailabilityException, ...]:
        seen: set[dt.date] = set()
        for exception in value:
            if exception.date in seen:
                raise ValueError(f"Exceção duplicada para {exception.date.isoformat()}")
            seen.add(exception.date)
        return tuple(sorted(value, key=lambda item: item.date))

    @property
    def timezone(self) -> str:
        if self.availability is None:
            return DEFAULT_TIMEZONE
        return self.availability.timezone

    def exception_for(self, day: dt.date) -> AvailabilityException | None:
        for exception in self.exceptions:
            if exception.date == day:
                return exception
        return None

    def with_exception(self, exception: AvailabilityException) -> ProviderSchedule:
        """Retorna cópia com a exceção da data substituída (upsert)."""
        kept = tuple(item for item in self.exceptions if item.date != exception.date)
        return self.model_copy(
            update={
                "exceptions": tuple(
                    sorted((*kept, exception), key=lambda item: item.date)
                )
            }
        )

    def offers(self, appointment_type: AppointmentType) -> bool:
        return appointment_type in self.offered_types


__all__ = ["ProviderSchedule"]
