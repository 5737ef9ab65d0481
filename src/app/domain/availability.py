"""Modelos de disponibilidade de providers.

Horários do dia são minutos desde a meia-noite (inteiros), em intervalos
semiabertos [start, end). Na borda (API/persistência) viram "HH:MM".
"""

from __future__ import annotations

import datetime as dt
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

MINUTES_PER_DAY = 24 * 60
DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"

_TIME_OF_DAY_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_WEEKDAY_FIELDS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def parse_time_of_day(value: str) -> int:
    """Converte "HH:MM" em minutos desde a meia-noite.

    "24:00" é aceito apenas como fim de expediente.
    """
    text = value.strip()
    if text == "24:00":
        return MINUTES_PER_DAY
    match = _TIME_OF_DAY_RE.match(text)
    if match is None:
        raise ValueError(f"Horário inválido: {value!r} (esperado HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time_of_day(minutes: int) -> str:
    """Converte minutos desde a meia-noite em "HH:MM"."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


class TimeInterval(BaseModel):
    """Intervalo semiaberto [start, end) dentro de um dia."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    start: int = Field(..., ge=0, le=MINUTES_PER_DAY, description="Início em minutos.")
    end: int = Field(..., ge=0, le=MINUTES_PER_DAY, description="Fim em minutos.")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _coerce_time_of_day(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_time_of_day(value)
        return value

    @model_validator(mode="after")
    def _check_order(self) -> TimeInterval:
        if self.start >= self.end:
            raise ValueError("start deve ser anterior a end")
        return self

    @field_serializer("start", "end")
    def _serialize_time_of_day(self, value: int) -> str:
        return format_time_of_day(value)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    def contains(self, other: TimeInterval) -> bool:
        return self.start <= other.start and other.end <= self.end

    def label(self) -> str:
        return f"{format_time_of_day(self.start)}-{format_time_of_day(self.end)}"


class WorkInterval(TimeInterval):
    """Faixa continua do dia em que o provider aceita agendamentos."""


class Slot(TimeInterval):
    """Candidato a horário agendável. Efêmero, nunca persistido sozinho."""


def _sorted_without_overlap(intervals: tuple[WorkInterval, ...]) -> tuple[WorkInterval, ...]:
    ordered = tuple(sorted(intervals, key=lambda item: (item.start, item.end)))
    for previous, current in zip(ordered, ordered[1:], strict=False):
        if current.start < previous.end:
            raise ValueError(
                f"Intervalos sobrepostos: {previous.label()} e {current.label()}"
            )
    return ordered


class DayAvailability(BaseModel):
    """Expediente de um dia da semana no template semanal."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    is_available: bool = True
    intervals: tuple[WorkInterval, ...] = ()

    @field_validator("intervals")
    @classmethod
    def _validate_intervals(cls, value: tuple[WorkInterval, ...]) -> tuple[WorkInterval, ...]:
        return _sorted_without_overlap(value)


class DaySchedule(DayAvailability):
    """Expediente efetivo de uma data, já com exceções aplicadas."""


def _unavailable_day() -> DayAvailability:
    return DayAvailability(is_available=False)


class WeeklyAvailability(BaseModel):
    """Template semanal de expediente de um provider."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    timezone: str = Field(default=DEFAULT_TIMEZONE, description="Timezone IANA do provider.")
    monday: DayAvailability = Field(default_factory=DayAvailability)
    tuesday: DayAvailability = Field(default_factory=DayAvailability)
    wednesday: DayAvailability = Field(default_factory=DayAvailability)
    thursday: DayAvailability = Field(default_factory=DayAvailability)
    friday: DayAvailability = Field(default_factory=DayAvailability)
    saturday: DayAvailability = Field(default_factory=_unavailable_day)
    sunday: DayAvailability = Field(default_factory=_unavailable_day)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Timezone desconhecida: {value}") from exc
        return value

    def for_weekday(self, weekday: int) -> DayAvailability:
        """Retorna o expediente do dia (0 = segunda, como date.weekday())."""
        return getattr(self, _WEEKDAY_FIELDS[weekday])


class AvailabilityException(BaseModel):
    """Sobrescreve o template semanal para uma data específica."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    date: dt.date
    is_available: bool = False
    reason: str | None = Field(default=None, max_length=500)
    alternative_slots: tuple[WorkInterval, ...] = ()

    @field_validator("alternative_slots")
    @classmethod
    def _validate_slots(cls, value: tuple[WorkInterval, ...]) -> tuple[WorkInterval, ...]:
        return _sorted_without_overlap(value)


class CancellationPolicy(BaseModel):
    """Regra de cancelamento; copiada no agendamento na criação."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    allow_cancellation: bool = True
    min_notice_hours: int = Field(default=24, ge=0)


class SessionPolicy(BaseModel):
    """Parâmetros de sessão de um provider."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    default_duration_minutes: int = Field(default=60, ge=15, le=180)
    break_between_sessions_minutes: int = Field(default=15, ge=0)
    max_appointments_per_day: int = Field(default=8, ge=1)
    advance_booking_days: int = Field(default=30, ge=0)
    cancellation_policy: CancellationPolicy = Field(default_factory=CancellationPolicy)


__all__ = [
    "DEFAULT_TIMEZONE",
    "MINUTES_PER_DAY",
    "AvailabilityException",
    "CancellationPolicy",
    "DayAvailability",
    "DaySchedule",
    "SessionPolicy",
    "Slot",
    "TimeInterval",
    "WeeklyAvailability",
    "WorkInterval",
    "format_time_of_day",
    "parse_time_of_day",
]
