"""
Estados canônicos do ciclo de vida de um agendamento.

Este módulo define os status que um agendamento pode assumir. Os valores
são persistidos como estão, então nunca devem ser renomeados.
"""

from enum import StrEnum


class AppointmentStatus(StrEnum):
    """
    Status de um agendamento.

    Estados ativos (ocupam o horário no ledger do provider):
        - PENDING: Criado, aguardando confirmação do provider
        - CONFIRMED: Confirmado pelo provider ou staff

    Estados terminais:
        - COMPLETED: Atendimento realizado
        - CANCELLED: Cancelado (o horário volta a ficar livre)
        - NO_SHOW: Subject não compareceu
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    def __str__(self) -> str:
        return self.value


# Status que bloqueiam o intervalo para outros agendamentos.
# "Livre" é derivado daqui; não existe flag separada de reserva.
ACTIVE_STATES: frozenset[AppointmentStatus] = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
})

# Uma vez em estado terminal, o agendamento não transita mais
TERMINAL_STATES: frozenset[AppointmentStatus] = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})

DEFAULT_INITIAL_STATE: AppointmentStatus = AppointmentStatus.PENDING


def is_terminal(state: AppointmentStatus) -> bool:
    """
    Verifica se o status é terminal.

    Args:
        state: Status a ser verificado

    Returns:
        True se o status é terminal, False caso contrário
    """
    return state in TERMINAL_STATES


def is_active(state: AppointmentStatus) -> bool:
    """Verifica se o status ocupa o horário no ledger."""
    return state in ACTIVE_STATES

