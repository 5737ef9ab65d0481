"""Correlation id por requisição do motor de agenda.

O id chega do host em `X-Correlation-Id` (ou é gerado), vive num ContextVar
durante a requisição e volta no response. O filtro de logging o injeta em
todo record; as métricas de booking o recebem explicitamente.
"""

from __future__ import annotations

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

CORRELATION_HEADER = "X-Correlation-Id"
MAX_CORRELATION_ID_LENGTH = 128

# Apenas caracteres seguros para header e log
_ALLOWED = re.compile(r"[A-Za-z0-9._:\-]+")

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Correlation id da requisição atual ("" fora de requisição)."""
    return _correlation_id.get()


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def normalize_correlation_id(raw: str | None) -> str:
    """Aceita o id do host quando seguro; caso contrário gera um novo."""
    value = (raw or "").strip()
    if not value or len(value) > MAX_CORRELATION_ID_LENGTH or not _ALLOWED.fullmatch(value):
        return generate_correlation_id()
    return value


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation id do contexto atual.

    Args:
        correlation_id: Valor vindo do host. Vazio, longo demais ou com
            caracteres fora de `[A-Za-z0-9._:-]` é substituído por um UUID.

    Returns:
        Token para `reset_correlation_id()`.
    """
    return _correlation_id.set(normalize_correlation_id(correlation_id))


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Escopo de uma requisição: define o id, entrega e restaura ao sair.

    Uso:
        with correlation_scope(request.headers.get(CORRELATION_HEADER)) as cid:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = cid
    """
    token = set_correlation_id(correlation_id)
    try:
        yield _correlation_id.get()
    finally:
        reset_correlation_id(token)
