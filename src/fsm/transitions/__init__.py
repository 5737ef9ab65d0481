"""
Exports públicos do módulo fsm/transitions.

Regras de transição válidas entre status de agendamento.
"""

from fsm.transitions.rules import (
    ACTION_TARGETS,
    VALID_TRANSITIONS,
    AppointmentAction,
    TransitionMap,
    get_valid_targets,
    is_transition_valid,
    target_for,
    validate_transition_map,
)

__all__ = [
    "ACTION_TARGETS",
    "VALID_TRANSITIONS",
    "AppointmentAction",
    "TransitionMap",
    "get_valid_targets",
    "is_transition_valid",
    "target_for",
    "validate_transition_map",
]
