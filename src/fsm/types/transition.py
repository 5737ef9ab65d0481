"""
Tipos e estruturas de dados para transições de status.

Cada transição aceita vira um registro imutável, que alimenta o
status_history do agendamento e os logs de auditoria.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fsm.states.appointment import AppointmentStatus


@dataclass(frozen=True, slots=True)
class StateTransition:
    """
    Representa uma transição de status de um agendamento.

    Attributes:
        from_state: Status de origem da transição
        to_state: Status de destino da transição
        trigger: Ação que causou a transição (ex: 'confirm', 'cancel')
        actor_id: Identificador opaco de quem executou a ação
        reason: Motivo informado pelo ator (opcional)
        metadata: Dados adicionais para auditoria (nunca conter PII)
        timestamp: Momento da transição (UTC)
    """

    from_state: AppointmentStatus
    to_state: AppointmentStatus
    trigger: str
    actor_id: str
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(UTC)
    )

    def __post_init__(self) -> None:
        """Valida invariantes do objeto após inicialização."""
        if not self.trigger or not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")

        if not self.actor_id or not self.actor_id.strip():
            raise ValueError("actor_id não pode ser vazio")

        if self.timestamp.tzinfo is None:
            raise ValueError("timestamp deve ter timezone")

    def to_log_dict(self) -> dict[str, Any]:
        """
        Retorna representação segura para logs (sem PII).

        O texto livre de `reason` fica fora do log por poder conter PII.

        Returns:
            Dict com dados seguros para logging estruturado
        """
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "trigger": self.trigger,
            "actor_id": self.actor_id,
            "timestamp": self.timestamp.isoformat(),
            "has_reason": self.reason is not None,
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Resultado de uma tentativa de transição.

    Attributes:
        success: Se a transição foi bem-sucedida
        transition: Dados da transição (se success=True)
        error_reason: Motivo da falha (se success=False)
    """

    success: bool
    transition: StateTransition | None = None
    error_reason: str | None = None

    def __post_init__(self) -> None:
        """Valida consistência do resultado."""
        if self.success and self.transition is None:
            raise ValueError("Transição bem-sucedida deve incluir transition")
        if not self.success and self.error_reason is None:
            raise ValueError("Transição falha deve incluir error_reason")
