"""Ciclo de vida de agendamentos.

Funções puras: recebem um Appointment e devolvem uma cópia com o novo status
e exatamente uma entrada a mais em `status_history`. Quem persiste (e
incrementa `version`) e o SchedulingService via store.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING

from app.domain.actor import ActorRole
from app.domain.appointment import Feedback, StatusChange
from app.domain.errors import (
    CancellationDisallowedError,
    CancellationWindowExpiredError,
    InvalidTransitionError,
    PermissionDeniedError,
)
from fsm import AppointmentAction, AppointmentStatus, create_fsm, target_for

if TYPE_CHECKING:
    from app.domain.actor import Actor
    from app.domain.appointment import Appointment

logger = logging.getLogger(__name__)


def _now(now: dt.datetime | None) -> dt.datetime:
    if now is None:
        return dt.datetime.now(tz=dt.UTC)
    if now.tzinfo is None:
        raise ValueError("now deve ter timezone")
    return now


def _apply(
    appointment: Appointment,
    action: AppointmentAction,
    actor: Actor,
    *,
    reason: str | None,
    now: dt.datetime,
) -> Appointment:
    machine = create_fsm(appointment.id, initial_state=appointment.status)
    result = machine.transition(
        target_for(action),
        trigger=action.value,
        actor_id=actor.actor_id,
        reason=reason,
        metadata={"actor_role": actor.role.value},
        timestamp=now,
    )
    if not result.success or result.transition is None:
        raise InvalidTransitionError(
            result.error_reason or "Transição inválida",
            appointment_id=appointment.id,
            status=appointment.status.value,
            action=action.value,
        )

    transition = result.transition
    logger.info(
        "appointment_transition",
        extra={"appointment_id": appointment.id, **transition.to_log_dict()},
    )
    change = StatusChange(
        status=transition.to_state,
        changed_by=transition.actor_id,
        changed_at=transition.timestamp,
        reason=reason,
    )
    return appointment.model_copy(
        update={
            "status": transition.to_state,
            "status_history": (*appointment.status_history, change),
            "updated_at": now,
        }
    )


def confirm(appointment: Appointment, actor: Actor, now: dt.datetime | None = None) -> Appointment:
    """pending -> confirmed."""
    return _apply(appointment, AppointmentAction.CONFIRM, actor, reason=None, now=_now(now))


def can_cancel(appointment: Appointment, now: dt.datetime | None = None) -> bool:
    """True se o agendamento ainda pode ser cancelado neste instante."""
    try:
        _check_cancellation(appointment, _now(now))
    except (InvalidTransitionError, CancellationDisallowedError, CancellationWindowExpiredError):
        return False
    return True


def _check_cancellation(appointment: Appointment, now: dt.datetime) -> None:
    if not appointment.is_active:
        raise InvalidTransitionError(
            f"Agendamento em {appointment.status.value} não pode ser cancelado",
            appointment_id=appointment.id,
            status=appointment.status.value,
            action=AppointmentAction.CANCEL.value,
        )
    policy = appointment.cancellation_policy
    if not policy.allow_cancellation:
        raise CancellationDisallowedError(
            "Política do provider não permite cancelamento",
            appointment_id=appointment.id,
        )
    notice = appointment.starts_at - now
    # Prazo estrito: exatamente min_notice_hours antes já não cancela.
    if notice <= dt.timedelta(hours=policy.min_notice_hours):
        raise CancellationWindowExpiredError(
            f"Cancelamento exige mais de {policy.min_notice_hours}h de antecedência",
            appointment_id=appointment.id,
            min_notice_hours=policy.min_notice_hours,
        )


def cancel(
    appointment: Appointment,
    actor: Actor,
    reason: str | None = None,
    now: dt.datetime | None = None,
) -> Appointment:
    """pending|confirmed -> cancelled, respeitando a política de cancelamento.

    Raises:
        InvalidTransitionError: status não ativo.
        CancellationDisallowedError: política não permite cancelar.
        CancellationWindowExpiredError: antecedência menor ou igual ao mínimo.
    """
    current = _now(now)
    _check_cancellation(appointment, current)
    return _apply(appointment, AppointmentAction.CANCEL, actor, reason=reason, now=current)


def complete(appointment: Appointment, actor: Actor, now: dt.datetime | None = None) -> Appointment:
    """confirmed -> completed."""
    return _apply(appointment, AppointmentAction.COMPLETE, actor, reason=None, now=_now(now))


def mark_no_show(
    appointment: Appointment,
    actor: Actor,
    reason: str | None = None,
    now: dt.datetime | None = None,
) -> Appointment:
    """confirmed -> no_show."""
    return _apply(appointment, AppointmentAction.NO_SHOW, actor, reason=reason, now=_now(now))


def attach_feedback(
    appointment: Appointment,
    actor: Actor,
    rating: int,
    comment: str | None = None,
    now: dt.datetime | None = None,
) -> Appointment:
    """Registra avaliação de um atendimento concluído.

    Não altera status nem histórico. Subject preenche `subject_*`,
    provider preenche `provider_*`.
    """
    if appointment.status is not AppointmentStatus.COMPLETED:
        raise InvalidTransitionError(
            "Feedback só é aceito para agendamentos concluídos",
            appointment_id=appointment.id,
            status=appointment.status.value,
        )

    feedback = appointment.feedback or Feedback()
    if actor.role is ActorRole.SUBJECT:
        update = {"subject_rating": rating, "subject_comment": comment}
    elif actor.role is ActorRole.PROVIDER:
        update = {"provider_rating": rating, "provider_comment": comment}
    else:
        raise PermissionDeniedError(
            "Apenas subject ou provider avaliam o atendimento",
            appointment_id=appointment.id,
        )

    merged = Feedback.model_validate({**feedback.model_dump(), **update})
    return appointment.model_copy(update={"feedback": merged, "updated_at": _now(now)})


__all__ = [
    "attach_feedback",
    "can_cancel",
    "cancel",
    "complete",
    "confirm",
    "mark_no_show",
]
