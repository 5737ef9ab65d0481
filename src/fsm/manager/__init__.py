"""
Exports públicos do módulo fsm/manager.

Máquina de estados (AppointmentStateMachine) do ciclo de vida de agendamentos.
"""

from fsm.manager.machine import (
    AppointmentStateMachine,
    create_fsm,
)

__all__ = [
    "AppointmentStateMachine",
    "create_fsm",
]
