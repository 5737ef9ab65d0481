"""Geração de slots candidatos a partir do expediente resolvido.

Algoritmo guloso: para cada intervalo de trabalho, em ordem, o cursor parte
do início e avança `duração + pausa` enquanto o slot inteiro couber.
Sobras finais menores que a duração são descartadas.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.availability import Slot
from app.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from app.domain.availability import DaySchedule


def _check_parameters(duration_minutes: int, break_minutes: int) -> None:
    if duration_minutes <= 0:
        raise ValidationError(
            "duration_minutes deve ser positivo", duration_minutes=duration_minutes
        )
    if break_minutes < 0:
        raise ValidationError(
            "break_minutes não pode ser negativo", break_minutes=break_minutes
        )


def iter_slots(day: DaySchedule, duration_minutes: int, break_minutes: int) -> Iterator[Slot]:
    """Versão preguiçosa de `generate_slots`; cada chamada recomeça do zero."""
    _check_parameters(duration_minutes, break_minutes)
    return _walk(day, duration_minutes, break_minutes)


def _walk(day: DaySchedule, duration_minutes: int, break_minutes: int) -> Iterator[Slot]:
    if not day.is_available:
        return
    for interval in day.intervals:
        cursor = interval.start
        while cursor + duration_minutes <= interval.end:
            yield Slot(start=cursor, end=cursor + duration_minutes)
            cursor += duration_minutes + break_minutes


def generate_slots(day: DaySchedule, duration_minutes: int, break_minutes: int) -> list[Slot]:
    """Lista finita e ordenada de slots do dia.

    Raises:
        ValidationError: duração <= 0 ou pausa negativa.
    """
    return list(iter_slots(day, duration_minutes, break_minutes))


__all__ = ["generate_slots", "iter_slots"]
