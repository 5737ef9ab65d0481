"""Consulta de horários livres (consultiva, não reserva)."""

from __future__ import annotations

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, Query

from api.routes.scheduling.dependencies import ActorDep, ServiceDep
from api.routes.scheduling.schemas import SlotsResponse

router = APIRouter()


@router.get("/providers/{provider_id}/available-slots", response_model=SlotsResponse)
async def available_slots(
    provider_id: str,
    service: ServiceDep,
    actor: ActorDep,
    date: Annotated[dt.date, Query()],
    duration_minutes: Annotated[int | None, Query(ge=1, le=24 * 60)] = None,
) -> SlotsResponse:
    """Slots livres do provider na data, no formato HH:MM."""
    slots = await service.free_slots(provider_id, date, duration_minutes)
    return SlotsResponse(provider_id=provider_id, date=date, slots=slots)
