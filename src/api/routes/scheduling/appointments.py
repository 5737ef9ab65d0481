"""Endpoints de agendamentos: criação, status, feedback e consulta."""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from api.routes.scheduling.dependencies import ActorDep, ServiceDep
from api.routes.scheduling.schemas import FeedbackBody, StatusChangeBody, serialize_appointment
from app.domain.appointment import AppointmentRequest
from app.protocols.appointment_store import AppointmentQuery
from fsm import AppointmentStatus

router = APIRouter()


@router.post("/appointments", status_code=201)
async def create_appointment(
    body: AppointmentRequest,
    service: ServiceDep,
    actor: ActorDep,
) -> JSONResponse:
    """Reserva o horário; 409 se outro agendamento ativo sobrepõe."""
    appointment = await service.create_appointment(body, actor)
    return JSONResponse(status_code=201, content=serialize_appointment(appointment, service.now()))


@router.patch("/appointments/{appointment_id}")
async def change_status(
    appointment_id: str,
    body: StatusChangeBody,
    service: ServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    appointment = await service.change_status(
        appointment_id,
        body.action,
        actor,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return serialize_appointment(appointment, service.now())


@router.post("/appointments/{appointment_id}/feedback")
async def attach_feedback(
    appointment_id: str,
    body: FeedbackBody,
    service: ServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    appointment = await service.attach_feedback(
        appointment_id,
        actor,
        body.rating,
        body.comment,
        expected_version=body.expected_version,
    )
    return serialize_appointment(appointment, service.now())


@router.get("/appointments/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    service: ServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    appointment = await service.get_appointment(appointment_id, actor)
    return serialize_appointment(appointment, service.now())


@router.get("/appointments")
async def list_appointments(
    service: ServiceDep,
    actor: ActorDep,
    provider_id: str | None = None,
    subject_id: str | None = None,
    status: AppointmentStatus | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    limit: Annotated[int, Query(ge=1)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    """Listagem delegada, ordenada por data e início."""
    query = AppointmentQuery(
        provider_id=provider_id,
        subject_id=subject_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    items = await service.list_appointments(query, actor)
    now = service.now()
    return {
        "items": [serialize_appointment(item, now) for item in items],
        "count": len(items),
        "limit": limit,
        "offset": offset,
    }
