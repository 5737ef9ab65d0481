"""Dependências FastAPI das rotas de agenda (serviço e ator)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request
from pydantic import ValidationError as PydanticValidationError

from app.domain.actor import Actor
from app.services.scheduling_service import SchedulingService


class UnauthenticatedError(Exception):
    """Requisição sem identidade de ator resolvida pelo host."""


def get_scheduling_service(request: Request) -> SchedulingService:
    """Serviço anexado ao app em create_app()."""
    return request.app.state.scheduling_service


def get_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Resolve o ator a partir de X-Actor-Id / X-Actor-Role."""
    if not x_actor_id or not x_actor_role:
        raise UnauthenticatedError("Headers X-Actor-Id e X-Actor-Role são obrigatórios")
    try:
        return Actor(actor_id=x_actor_id.strip(), role=x_actor_role.strip().lower())
    except PydanticValidationError as exc:
        raise UnauthenticatedError("Identidade de ator inválida") from exc


ServiceDep = Annotated[SchedulingService, Depends(get_scheduling_service)]
ActorDep = Annotated[Actor, Depends(get_actor)]
