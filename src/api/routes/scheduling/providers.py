"""Hooks do host para registrar a agenda semanal e exceções por data."""

from __future__ import annotations

import datetime as dt
from typing import Any

from fastapi import APIRouter

from api.routes.scheduling.dependencies import ActorDep, ServiceDep
from api.routes.scheduling.schemas import ExceptionBody, ScheduleBody, serialize_schedule
from config.settings import get_scheduling_settings

router = APIRouter()


@router.get("/providers/{provider_id}/schedule")
async def get_schedule(provider_id: str, service: ServiceDep, actor: ActorDep) -> dict[str, Any]:
    schedule = await service.get_schedule(provider_id)
    return serialize_schedule(schedule)


@router.put("/providers/{provider_id}/schedule")
async def put_schedule(
    provider_id: str,
    body: ScheduleBody,
    service: ServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    """Upsert completo do registro de agenda do provider."""
    default_timezone = get_scheduling_settings().default_timezone
    schedule = await service.save_schedule(body.to_schedule(provider_id, default_timezone), actor)
    return serialize_schedule(schedule)


@router.put("/providers/{provider_id}/exceptions/{date}")
async def put_exception(
    provider_id: str,
    date: dt.date,
    body: ExceptionBody,
    service: ServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    """Substitui a exceção da data (no máximo uma por data)."""
    schedule = await service.upsert_exception(provider_id, body.to_exception(date), actor)
    return serialize_schedule(schedule)
