"""Entrypoint da aplicação agenda_engine.

Este módulo é o ponto de entrada principal do serviço.
Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from api.routes.scheduling import register_exception_handlers
from app.bootstrap import get_scheduling_service, initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client
from app.observability import CORRELATION_HEADER, correlation_scope
from config.logging import get_logger
from config.settings import get_base_settings, get_scheduling_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.responses import Response

    from app.services.scheduling_service import SchedulingService

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Resolve o SchedulingService (stores conforme backend)

    Shutdown:
    - Fecha conexão Redis gracefully
    """
    logger.info("app_starting", extra={"service": "agenda-engine"})
    validate_runtime_settings()
    if getattr(app.state, "scheduling_service", None) is None:
        app.state.scheduling_service = get_scheduling_service()

    yield

    logger.info("app_shutting_down", extra={"service": "agenda-engine"})
    if get_scheduling_settings().store_backend == "redis":
        redis_client = create_async_redis_client()
        await redis_client.aclose()


async def correlation_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Propaga X-Correlation-Id (gera um se ausente) e devolve no response."""
    with correlation_scope(request.headers.get(CORRELATION_HEADER)) as correlation_id:
        response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


def create_app(scheduling_service: SchedulingService | None = None) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        scheduling_service: Serviço pré-construído (testes/host embutido).
            Se None, é criado no startup conforme SCHEDULING_STORE_BACKEND.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="agenda_engine",
        description="Motor de agendamento e resolução de conflitos de horários",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    fastapi_app.state.scheduling_service = scheduling_service

    origins = list(get_base_settings().cors_origins)
    if origins:
        fastapi_app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    fastapi_app.middleware("http")(correlation_id_middleware)

    register_exception_handlers(fastapi_app)
    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "agenda-engine"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting agenda_engine in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
