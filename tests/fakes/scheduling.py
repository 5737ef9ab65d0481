"""Builders e relógio fixo para testes do motor de agendamento.

Referência de tempo: domingo 2026-03-01 12:00 em Asia/Ho_Chi_Minh (UTC+7).
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from app.domain.actor import Actor, ActorRole
from app.domain.appointment import Appointment, AppointmentRequest
from app.domain.availability import CancellationPolicy
from app.domain.provider import ProviderSchedule
from app.infra.stores import MemoryAppointmentStore, MemoryProviderStore
from app.services import SchedulingService

TZ = "Asia/Ho_Chi_Minh"
NOW = dt.datetime(2026, 3, 1, 5, 0, tzinfo=dt.UTC)
MONDAY = dt.date(2026, 3, 2)
WEDNESDAY = dt.date(2026, 3, 4)

PROVIDER_ID = "prov-1"
SUBJECT_ID = "subj-1"

SUBJECT = Actor(actor_id=SUBJECT_ID, role=ActorRole.SUBJECT)
OTHER_SUBJECT = Actor(actor_id="subj-2", role=ActorRole.SUBJECT)
PROVIDER = Actor(actor_id=PROVIDER_ID, role=ActorRole.PROVIDER)
OTHER_PROVIDER = Actor(actor_id="prov-2", role=ActorRole.PROVIDER)
STAFF = Actor(actor_id="staff-1", role=ActorRole.STAFF)


def weekly(intervals: tuple[tuple[str, str], ...] = (("09:00", "12:00"),)) -> dict[str, Any]:
    """Template semanal com o mesmo expediente de segunda a sexta."""
    day = {"is_available": True, "intervals": [{"start": s, "end": e} for s, e in intervals]}
    return {
        "timezone": TZ,
        "monday": day,
        "tuesday": day,
        "wednesday": day,
        "thursday": day,
        "friday": day,
    }


def make_schedule(
    provider_id: str = PROVIDER_ID,
    *,
    intervals: tuple[tuple[str, str], ...] = (("09:00", "12:00"),),
    **overrides: Any,
) -> ProviderSchedule:
    data: dict[str, Any] = {
        "provider_id": provider_id,
        "availability": weekly(intervals),
        "session_policy": {
            "default_duration_minutes": 60,
            "break_between_sessions_minutes": 15,
            "max_appointments_per_day": 8,
            "advance_booking_days": 30,
        },
    }
    data.update(overrides)
    return ProviderSchedule.model_validate(data)


def make_request(
    start: str = "09:00",
    end: str = "10:00",
    *,
    date: dt.date = MONDAY,
    provider_id: str = PROVIDER_ID,
    subject_id: str = SUBJECT_ID,
    **overrides: Any,
) -> AppointmentRequest:
    data: dict[str, Any] = {
        "provider_id": provider_id,
        "subject_id": subject_id,
        "date": date,
        "time": {"start": start, "end": end},
        "type": "online",
        "reason": "Primeira sessão",
    }
    data.update(overrides)
    return AppointmentRequest.model_validate(data)


def make_appointment(
    start: str = "09:00",
    end: str = "10:00",
    *,
    date: dt.date = MONDAY,
    status: str | None = None,
    policy: CancellationPolicy | None = None,
    **request_overrides: Any,
) -> Appointment:
    appointment = Appointment.from_request(
        make_request(start, end, date=date, **request_overrides),
        created_by=SUBJECT_ID,
        cancellation_policy=policy or CancellationPolicy(),
        timezone=TZ,
        now=NOW,
    )
    if status is not None:
        appointment = Appointment.model_validate({**appointment.model_dump(), "status": status})
    return appointment


def make_service(
    *schedules: ProviderSchedule,
    now: dt.datetime = NOW,
    **kwargs: Any,
) -> tuple[SchedulingService, MemoryAppointmentStore, MemoryProviderStore]:
    appointments = MemoryAppointmentStore()
    providers = MemoryProviderStore(list(schedules) or [make_schedule()])
    service = SchedulingService(appointments, providers, clock=lambda: now, **kwargs)
    return service, appointments, providers
