"""Contrato de autorização delegado ao host."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.actor import Actor
    from app.domain.appointment import Appointment, AppointmentRequest
    from fsm import AppointmentAction


@runtime_checkable
class AuthorizationPolicyProtocol(Protocol):
    """Decide quem pode agendar e mudar status.

    Cada método levanta PermissionDeniedError quando o ator não pode agir.
    """

    def authorize_booking(self, actor: Actor, request: AppointmentRequest) -> None: ...

    def authorize_action(
        self, actor: Actor, appointment: Appointment, action: AppointmentAction
    ) -> None: ...

    def authorize_read(self, actor: Actor, appointment: Appointment) -> None: ...

    def authorize_schedule_change(self, actor: Actor, provider_id: str) -> None: ...
