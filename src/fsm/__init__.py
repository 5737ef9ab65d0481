"""
Módulo FSM — Máquina de Estados do ciclo de vida de agendamentos.

Este módulo implementa a FSM determinística que governa as mudanças
de status de um agendamento (pending → confirmed → completed, etc.).

Estrutura:
    - states/: Status canônicos (AppointmentStatus enum)
    - transitions/: Regras de transição (VALID_TRANSITIONS) e ações
    - rules/: Guards e invariantes
    - manager/: Máquina de estados (AppointmentStateMachine)
    - types/: Tipos de dados (StateTransition, TransitionResult)
"""

# Manager
from fsm.manager import (
    AppointmentStateMachine,
    create_fsm,
)

# Guards/Rules
from fsm.rules import (
    GuardResult,
    evaluate_guards,
)

# Estados
from fsm.states import (
    ACTIVE_STATES,
    DEFAULT_INITIAL_STATE,
    TERMINAL_STATES,
    AppointmentStatus,
    is_active,
    is_terminal,
)

# Transições
from fsm.transitions import (
    ACTION_TARGETS,
    VALID_TRANSITIONS,
    AppointmentAction,
    get_valid_targets,
    is_transition_valid,
    target_for,
    validate_transition_map,
)

# Types
from fsm.types import (
    StateTransition,
    TransitionResult,
)

__all__ = [
    "ACTION_TARGETS",
    "ACTIVE_STATES",
    "DEFAULT_INITIAL_STATE",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "AppointmentAction",
    "AppointmentStateMachine",
    "AppointmentStatus",
    "GuardResult",
    "StateTransition",
    "TransitionResult",
    "create_fsm",
    "evaluate_guards",
    "get_valid_targets",
    "is_active",
    "is_terminal",
    "is_transition_valid",
    "target_for",
    "validate_transition_map",
]
