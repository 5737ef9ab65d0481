"""Schemas de request/response das rotas de agenda."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.appointment import Appointment, AppointmentType
from app.domain.availability import (
    AvailabilityException,
    SessionPolicy,
    Slot,
    WeeklyAvailability,
    WorkInterval,
)
from app.domain.provider import ProviderSchedule
from app.services.appointment_lifecycle import can_cancel
from fsm import AppointmentAction


class SlotsResponse(BaseModel):
    provider_id: str
    date: dt.date
    slots: list[Slot]


class StatusChangeBody(BaseModel):
    """Body do PATCH /appointments/{id}."""

    model_config = ConfigDict(extra="ignore")

    action: AppointmentAction
    reason: str | None = Field(default=None, max_length=500)
    expected_version: int | None = Field(default=None, ge=1)


class FeedbackBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=1000)
    expected_version: int | None = Field(default=None, ge=1)


class ScheduleBody(BaseModel):
    """Registro de agenda enviado pelo host (provider vem do path)."""

    model_config = ConfigDict(extra="ignore")

    is_active: bool = True
    availability: WeeklyAvailability | None = None
    exceptions: list[AvailabilityException] = Field(default_factory=list)
    session_policy: SessionPolicy = Field(default_factory=SessionPolicy)
    offered_types: list[AppointmentType] | None = None

    def to_schedule(self, provider_id: str, default_timezone: str) -> ProviderSchedule:
        """Monta o registro; template sem timezone explicita usa a default."""
        availability = self.availability
        if availability is not None and "timezone" not in availability.model_fields_set:
            availability = availability.model_copy(update={"timezone": default_timezone})
        data: dict[str, Any] = {
            "provider_id": provider_id,
            "is_active": self.is_active,
            "availability": availability,
            "exceptions": tuple(self.exceptions),
            "session_policy": self.session_policy,
        }
        if self.offered_types is not None:
            data["offered_types"] = frozenset(self.offered_types)
        return ProviderSchedule.model_validate(data)


class ExceptionBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    is_available: bool = False
    reason: str | None = Field(default=None, max_length=500)
    alternative_slots: list[WorkInterval] = Field(default_factory=list)

    def to_exception(self, date: dt.date) -> AvailabilityException:
        return AvailabilityException(
            date=date,
            is_available=self.is_available,
            reason=self.reason,
            alternative_slots=tuple(self.alternative_slots),
        )


def serialize_appointment(appointment: Appointment, now: dt.datetime | None = None) -> dict[str, Any]:
    """Agendamento persistido + campos derivados somente leitura."""
    payload = appointment.model_dump(mode="json")
    payload["duration_minutes"] = appointment.duration_minutes
    payload["is_active"] = appointment.is_active
    payload["can_cancel"] = can_cancel(appointment, now)
    return payload


def serialize_schedule(schedule: ProviderSchedule) -> dict[str, Any]:
    payload = schedule.model_dump(mode="json")
    payload["offered_types"] = sorted(payload["offered_types"])
    return payload
