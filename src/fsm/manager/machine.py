"""
Máquina de estados (AppointmentStateMachine) do ciclo de vida de agendamentos.

A máquina valida transições contra o mapa e os guards e mantém o
histórico das transições aceitas, na ordem em que ocorreram.
"""

from datetime import datetime
from typing import Any

from fsm.rules.guards import GuardResult, evaluate_guards
from fsm.states.appointment import (
    DEFAULT_INITIAL_STATE,
    AppointmentStatus,
    is_terminal,
)
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import StateTransition, TransitionResult


class AppointmentStateMachine:
    """
    Máquina de estados de um agendamento.

    Não persiste nada: o chamador decide o que fazer com o histórico
    produzido (anexar ao status_history, logar, auditar).

    Attributes:
        current_state: Status atual da máquina
        history: Transições realizadas nesta instância
    """

    __slots__ = ("_appointment_id", "_current_state", "_history")

    def __init__(
        self,
        initial_state: AppointmentStatus | None = None,
        appointment_id: str = "",
    ) -> None:
        """
        Inicializa a máquina de estados.

        Args:
            initial_state: Status inicial (usa DEFAULT_INITIAL_STATE se None)
            appointment_id: Identificador do agendamento para logs
        """
        self._current_state = initial_state or DEFAULT_INITIAL_STATE
        self._history: list[StateTransition] = []
        self._appointment_id = appointment_id

    @property
    def current_state(self) -> AppointmentStatus:
        """Status atual da máquina."""
        return self._current_state

    @property
    def history(self) -> list[StateTransition]:
        """Histórico de transições (cópia para evitar mutação externa)."""
        return list(self._history)

    @property
    def appointment_id(self) -> str:
        return self._appointment_id

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self._current_state)

    def get_valid_targets(self) -> frozenset[AppointmentStatus]:
        """Retorna status de destino válidos a partir do status atual."""
        return get_valid_targets(self._current_state)

    def transition(
        self,
        target: AppointmentStatus,
        trigger: str,
        actor_id: str,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> TransitionResult:
        """
        Tenta realizar uma transição de status.

        Args:
            target: Status de destino
            trigger: Ação que originou a transição (ex: 'cancel')
            actor_id: Quem executou a ação
            reason: Motivo opcional informado pelo ator
            metadata: Dados adicionais para auditoria (nunca PII)
            timestamp: Momento da transição (usa agora, em UTC, se None)

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        if not is_transition_valid(self._current_state, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_state.name} → {target.name}"
                ),
            )

        guard_result: GuardResult = evaluate_guards(self._current_state, target)
        if not guard_result.allowed:
            return TransitionResult(
                success=False,
                error_reason=guard_result.reason,
            )

        extra: dict[str, Any] = {}
        if timestamp is not None:
            extra["timestamp"] = timestamp
        transition = StateTransition(
            from_state=self._current_state,
            to_state=target,
            trigger=trigger,
            actor_id=actor_id,
            reason=reason,
            metadata=metadata or {},
            **extra,
        )

        self._current_state = target
        self._history.append(transition)

        return TransitionResult(success=True, transition=transition)


def create_fsm(
    appointment_id: str,
    initial_state: AppointmentStatus | None = None,
) -> AppointmentStateMachine:
    """
    Factory function para criar uma máquina de estados.

    Args:
        appointment_id: Identificador do agendamento
        initial_state: Status atual do agendamento (opcional)

    Returns:
        AppointmentStateMachine configurada
    """
    return AppointmentStateMachine(
        initial_state=initial_state,
        appointment_id=appointment_id,
    )

