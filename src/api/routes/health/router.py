"""Endpoints de health check (liveness/readiness)."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter()

READINESS_TIMEOUT_SECONDS = 3.0


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    """Resultado de checagem de dependência."""

    status: Literal["ok", "failed"]
    latency_ms: float | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe — verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service="agenda-engine",
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe com verificação real do backend de armazenamento."""
    service = getattr(request.app.state, "scheduling_service", None)
    store_check = await _check_store(service)
    ready = store_check.status == "ok"

    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {"store": store_check.as_dict()},
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)


async def _check_store(service: Any | None) -> DependencyCheck:
    if service is None:
        return DependencyCheck(status="failed", error="not_configured")
    started_at = time.perf_counter()
    try:
        ok = await asyncio.wait_for(service.ping(), timeout=READINESS_TIMEOUT_SECONDS)
    except TimeoutError:
        return DependencyCheck(status="failed", error="timeout")
    except Exception as exc:
        logger.warning("readiness_store_check_failed", extra={"error_type": type(exc).__name__})
        return DependencyCheck(status="failed", error=type(exc).__name__)
    if not ok:
        return DependencyCheck(status="failed", error="ping_failed")
    latency_ms = (time.perf_counter() - started_at) * 1000
    return DependencyCheck(status="ok", latency_ms=round(latency_ms, 2))
