"""Política de autorização padrão baseada em posse do agendamento.

- subject: agenda e cancela apenas os próprios agendamentos;
- provider: age sobre agendamentos em que é o provider e edita a própria agenda;
- staff/system: sem restrição.

O host pode trocar por outra implementação de AuthorizationPolicyProtocol.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.actor import ActorRole
from app.domain.errors import PermissionDeniedError
from fsm import AppointmentAction

if TYPE_CHECKING:
    from app.domain.actor import Actor
    from app.domain.appointment import Appointment, AppointmentRequest

_SUBJECT_ACTIONS = frozenset({AppointmentAction.CANCEL})


class OwnershipAuthorizationPolicy:
    def authorize_booking(self, actor: Actor, request: AppointmentRequest) -> None:
        if actor.is_privileged:
            return
        if actor.role is ActorRole.SUBJECT and actor.actor_id == request.subject_id:
            return
        raise PermissionDeniedError(
            "Ator não pode agendar em nome de outro subject",
            actor_role=actor.role.value,
        )

    def authorize_action(
        self, actor: Actor, appointment: Appointment, action: AppointmentAction
    ) -> None:
        if actor.is_privileged:
            return
        if actor.role is ActorRole.PROVIDER and actor.actor_id == appointment.provider_id:
            return
        if (
            actor.role is ActorRole.SUBJECT
            and actor.actor_id == appointment.subject_id
            and action in _SUBJECT_ACTIONS
        ):
            return
        raise PermissionDeniedError(
            f"Ator não pode executar {action.value} neste agendamento",
            appointment_id=appointment.id,
            actor_role=actor.role.value,
        )

    def authorize_read(self, actor: Actor, appointment: Appointment) -> None:
        if actor.is_privileged or actor.actor_id in (
            appointment.subject_id,
            appointment.provider_id,
        ):
            return
        raise PermissionDeniedError(
            "Ator sem acesso a este agendamento", appointment_id=appointment.id
        )

    def authorize_schedule_change(self, actor: Actor, provider_id: str) -> None:
        if actor.is_privileged:
            return
        if actor.role is ActorRole.PROVIDER and actor.actor_id == provider_id:
            return
        raise PermissionDeniedError(
            "Ator não pode alterar a agenda deste provider", provider_id=provider_id
        )


__all__ = ["OwnershipAuthorizationPolicy"]
