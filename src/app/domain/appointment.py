"""Modelos de domínio para agendamentos.

Esses contratos ficam no domínio para compartilhar dados entre serviços,
stores e rotas sem acoplar regras de negócio ao backend de persistência.
"""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from uuid import uuid4
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.availability import DEFAULT_TIMEZONE, CancellationPolicy, TimeInterval
from fsm.states import ACTIVE_STATES, AppointmentStatus


class AppointmentType(StrEnum):
    """Modalidade do atendimento (capacidade oferecida pelo provider)."""

    ONLINE = "online"
    IN_PERSON = "in_person"
    PHONE = "phone"


class Urgency(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class PreferredContact(StrEnum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class ContactInfo(BaseModel):
    """Canal preferido para contato sobre o agendamento."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    preferred_contact: PreferredContact = PreferredContact.EMAIL
    phone_number: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=254)


class MeetingPlatform(StrEnum):
    ZOOM = "zoom"
    GOOGLE_MEET = "google_meet"
    TEAMS = "teams"
    OTHER = "other"


class OnlineInfo(BaseModel):
    """Dados da sala virtual de um atendimento online."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    meeting_link: str | None = Field(default=None, max_length=500)
    meeting_id: str | None = Field(default=None, max_length=100)
    platform: MeetingPlatform | None = None


class LocationInfo(BaseModel):
    """Local de um atendimento presencial."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    address: str | None = Field(default=None, max_length=300)
    room: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=500)


class StatusChange(BaseModel):
    """Registro de auditoria de uma transição de status."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    status: AppointmentStatus
    changed_by: str
    changed_at: dt.datetime
    reason: str | None = None


class Feedback(BaseModel):
    """Avaliações pós-atendimento (subject e provider separadamente)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    subject_rating: int | None = Field(default=None, ge=1, le=5)
    subject_comment: str | None = Field(default=None, max_length=1000)
    provider_rating: int | None = Field(default=None, ge=1, le=5)
    provider_comment: str | None = Field(default=None, max_length=1000)


def _strip_required(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("campo obrigatório vazio")
    return text


class AppointmentRequest(BaseModel):
    """Dados de entrada para criar um agendamento."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    provider_id: str = Field(..., min_length=1)
    subject_id: str = Field(..., min_length=1)
    date: dt.date
    time: TimeInterval
    type: AppointmentType
    reason: str = Field(..., min_length=1, max_length=500)
    urgency: Urgency = Urgency.MEDIUM
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    notes: str | None = Field(default=None, max_length=2000)
    online_info: OnlineInfo | None = None
    location_info: LocationInfo | None = None
    # Id escolhido pelo cliente: reenviar o mesmo pedido não cria outra reserva
    appointment_id: str | None = Field(
        default=None, min_length=8, max_length=64, pattern=r"^[A-Za-z0-9_-]+$"
    )

    @field_validator("provider_id", "subject_id", "reason")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _strip_required(value)


def _new_appointment_id() -> str:
    return uuid4().hex


def _utcnow() -> dt.datetime:
    return dt.datetime.now(tz=dt.UTC)


class Appointment(BaseModel):
    """Agendamento persistido.

    Imutável: o ciclo de vida produz cópias via `model_copy(update=...)`.
    `timezone` é uma cópia da timezone do provider na criação, usada para
    calcular o instante de início.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(default_factory=_new_appointment_id)
    provider_id: str
    subject_id: str
    date: dt.date
    time: TimeInterval
    type: AppointmentType
    status: AppointmentStatus = AppointmentStatus.PENDING
    reason: str = Field(..., min_length=1, max_length=500)
    urgency: Urgency = Urgency.MEDIUM
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    notes: str | None = None
    online_info: OnlineInfo | None = None
    location_info: LocationInfo | None = None
    status_history: tuple[StatusChange, ...] = ()
    cancellation_policy: CancellationPolicy = Field(default_factory=CancellationPolicy)
    feedback: Feedback | None = None
    timezone: str = DEFAULT_TIMEZONE
    created_by: str = ""
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)
    version: int = Field(default=1, ge=1)

    @classmethod
    def from_request(
        cls,
        request: AppointmentRequest,
        *,
        created_by: str,
        cancellation_policy: CancellationPolicy,
        timezone: str,
        now: dt.datetime | None = None,
    ) -> Appointment:
        """Cria o agendamento em `pending` a partir de uma solicitação validada."""
        created_at = now or _utcnow()
        return cls(
            id=request.appointment_id or _new_appointment_id(),
            provider_id=request.provider_id,
            subject_id=request.subject_id,
            date=request.date,
            time=request.time,
            type=request.type,
            reason=request.reason,
            urgency=request.urgency,
            contact_info=request.contact_info,
            notes=request.notes,
            online_info=request.online_info,
            location_info=request.location_info,
            cancellation_policy=cancellation_policy,
            timezone=timezone,
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
        )

    def same_booking(self, other: Appointment) -> bool:
        """Mesmo provider, subject, dia, horário e modalidade."""
        return (
            self.provider_id == other.provider_id
            and self.subject_id == other.subject_id
            and self.date == other.date
            and self.time == other.time
            and self.type == other.type
        )

    @property
    def duration_minutes(self) -> int:
        return self.time.duration_minutes

    @property
    def is_active(self) -> bool:
        """Ativo = ocupa o horário (pending ou confirmed)."""
        return self.status in ACTIVE_STATES

    @property
    def starts_at(self) -> dt.datetime:
        """Instante de início (aware) na timezone do provider."""
        midnight = dt.datetime.combine(self.date, dt.time(0, 0), tzinfo=ZoneInfo(self.timezone))
        return midnight + dt.timedelta(minutes=self.time.start)


__all__ = [
    "Appointment",
    "AppointmentRequest",
    "AppointmentType",
    "ContactInfo",
    "Feedback",
    "LocationInfo",
    "MeetingPlatform",
    "OnlineInfo",
    "PreferredContact",
    "StatusChange",
    "Urgency",
]
