"""Taxonomia de erros do motor de agendamento.

Todo erro carrega um `kind` estável e uma mensagem legível, para que o host
traduza para o transporte (HTTP, fila, etc.) sem parse de string.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Identificadores estáveis de erro expostos ao host."""

    VALIDATION_ERROR = "validation_error"
    SLOT_CONFLICT = "slot_conflict"
    NOT_FOUND = "not_found"
    CANCELLATION_WINDOW_EXPIRED = "cancellation_window_expired"
    CANCELLATION_DISALLOWED = "cancellation_disallowed"
    INVALID_TRANSITION = "invalid_transition"
    BOOKING_WINDOW_VIOLATION = "booking_window_violation"
    OUTSIDE_AVAILABILITY = "outside_availability"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
    PERMISSION_DENIED = "permission_denied"
    CONCURRENT_UPDATE = "concurrent_update"

    def __str__(self) -> str:
        return self.value


class SchedulingError(Exception):
    """Base de todos os erros do motor de agendamento."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Representação estruturada para respostas e logs."""
        payload: dict[str, Any] = {"error": str(self.kind), "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(SchedulingError):
    """Entrada malformada ou incompleta. Não deve ser re-tentada."""

    kind = ErrorKind.VALIDATION_ERROR


class SlotConflictError(SchedulingError):
    """O intervalo solicitado sobrepõe um agendamento ativo.

    O chamador deve buscar os horários livres novamente e escolher outro.
    """

    kind = ErrorKind.SLOT_CONFLICT


class NotFoundError(SchedulingError):
    """Agendamento ou registro de disponibilidade inexistente."""

    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(SchedulingError):
    """Ator sem permissão para a operação (checagem delegada ao host)."""

    kind = ErrorKind.PERMISSION_DENIED


class ConcurrentUpdateError(SchedulingError):
    """Versão esperada divergiu da persistida (lost update evitado)."""

    kind = ErrorKind.CONCURRENT_UPDATE


class PolicyError(SchedulingError):
    """Base para violações de regra de negócio do ciclo de vida."""


class CancellationWindowExpiredError(PolicyError):
    kind = ErrorKind.CANCELLATION_WINDOW_EXPIRED


class CancellationDisallowedError(PolicyError):
    kind = ErrorKind.CANCELLATION_DISALLOWED


class InvalidTransitionError(PolicyError):
    kind = ErrorKind.INVALID_TRANSITION


class BookingWindowError(PolicyError):
    """Data fora da janela de antecedência permitida pelo provider."""

    kind = ErrorKind.BOOKING_WINDOW_VIOLATION


class OutsideAvailabilityError(PolicyError):
    """Intervalo não está contido no expediente resolvido para a data."""

    kind = ErrorKind.OUTSIDE_AVAILABILITY


class DailyLimitReachedError(PolicyError):
    """Provider já atingiu o máximo de agendamentos ativos no dia."""

    kind = ErrorKind.DAILY_LIMIT_REACHED


__all__ = [
    "BookingWindowError",
    "CancellationDisallowedError",
    "CancellationWindowExpiredError",
    "ConcurrentUpdateError",
    "DailyLimitReachedError",
    "ErrorKind",
    "InvalidTransitionError",
    "NotFoundError",
    "OutsideAvailabilityError",
    "PermissionDeniedError",
    "PolicyError",
    "SchedulingError",
    "SlotConflictError",
    "ValidationError",
]
