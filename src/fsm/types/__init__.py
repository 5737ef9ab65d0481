"""
Exports públicos do módulo fsm/types.

Registros imutáveis de transições de status de agendamento.
"""

from fsm.types.transition import StateTransition, TransitionResult

__all__ = [
    "StateTransition",
    "TransitionResult",
]
