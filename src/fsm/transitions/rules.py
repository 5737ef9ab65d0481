"""
Regras de transição válidas entre status de agendamento.

Este módulo define o grafo de transições da máquina de estados e o
mapeamento das ações expostas ao host para o status de destino.
"""

from enum import StrEnum

from fsm.states.appointment import TERMINAL_STATES, AppointmentStatus

# Tipagem explícita do mapa de transições
TransitionMap = dict[AppointmentStatus, frozenset[AppointmentStatus]]

# Mapa de transições válidas
# Chave: status de origem
# Valor: conjunto de status de destino permitidos
VALID_TRANSITIONS: TransitionMap = {
    # PENDING: Provider confirma ou alguém cancela
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    }),

    # CONFIRMED: Atendimento acontece, é cancelado ou subject falta
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),

    # Estados terminais: não permitem transição para outros estados
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


class AppointmentAction(StrEnum):
    """Ações de mudança de status aceitas pela API."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"
    NO_SHOW = "no_show"

    def __str__(self) -> str:
        return self.value


ACTION_TARGETS: dict[AppointmentAction, AppointmentStatus] = {
    AppointmentAction.CONFIRM: AppointmentStatus.CONFIRMED,
    AppointmentAction.CANCEL: AppointmentStatus.CANCELLED,
    AppointmentAction.COMPLETE: AppointmentStatus.COMPLETED,
    AppointmentAction.NO_SHOW: AppointmentStatus.NO_SHOW,
}


def target_for(action: AppointmentAction) -> AppointmentStatus:
    """Retorna o status de destino de uma ação."""
    return ACTION_TARGETS[action]


def get_valid_targets(state: AppointmentStatus) -> frozenset[AppointmentStatus]:
    """
    Retorna os status de destino válidos para um status de origem.

    Args:
        state: Status de origem

    Returns:
        Conjunto de status de destino permitidos (vazio se terminal)
    """
    return VALID_TRANSITIONS.get(state, frozenset())


def is_transition_valid(from_state: AppointmentStatus, to_state: AppointmentStatus) -> bool:
    """
    Verifica se uma transição é válida segundo as regras definidas.

    Args:
        from_state: Status de origem
        to_state: Status de destino

    Returns:
        True se a transição é permitida, False caso contrário
    """
    # Estados terminais nunca permitem saída
    if from_state in TERMINAL_STATES:
        return False

    valid_targets = get_valid_targets(from_state)
    return to_state in valid_targets


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todos os status do enum estão no mapa
    - Estados terminais têm conjunto vazio
    - Toda ação aponta para um status alcançável

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in AppointmentStatus:
        if state not in VALID_TRANSITIONS:
            errors.append(f"Status {state.name} ausente em VALID_TRANSITIONS")

    for state in TERMINAL_STATES:
        targets = VALID_TRANSITIONS.get(state, frozenset())
        if targets:
            errors.append(
                f"Status terminal {state.name} não deveria ter transições: {targets}"
            )

    for from_state, targets in VALID_TRANSITIONS.items():
        for target in targets:
            if not isinstance(target, AppointmentStatus):
                errors.append(
                    f"Transição {from_state.name} → {target}: destino inválido"
                )

    reachable = frozenset().union(*VALID_TRANSITIONS.values())
    for action, target in ACTION_TARGETS.items():
        if target not in reachable:
            errors.append(f"Ação {action.name} aponta para status inalcançável: {target}")

    return errors
