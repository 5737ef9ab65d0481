"""Agregador das rotas de agenda."""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.scheduling.appointments import router as appointments_router
from api.routes.scheduling.providers import router as providers_router
from api.routes.scheduling.slots import router as slots_router

router = APIRouter()
router.include_router(slots_router)
router.include_router(appointments_router)
router.include_router(providers_router)
