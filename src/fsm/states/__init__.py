"""
Exports públicos do módulo fsm/states.

Status canônicos do ciclo de vida de agendamentos.
"""

from fsm.states.appointment import (
    ACTIVE_STATES,
    DEFAULT_INITIAL_STATE,
    TERMINAL_STATES,
    AppointmentStatus,
    is_active,
    is_terminal,
)

__all__ = [
    "ACTIVE_STATES",
    "DEFAULT_INITIAL_STATE",
    "TERMINAL_STATES",
    "AppointmentStatus",
    "is_active",
    "is_terminal",
]
