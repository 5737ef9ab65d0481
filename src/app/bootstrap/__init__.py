"""Bootstrap da aplicação — inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
conecta implementações concretas aos protocolos.

Uso:
    from app.bootstrap import initialize_app, get_scheduling_service

    # Na inicialização do serviço
    initialize_app()

    # Obter serviço (singleton)
    service = get_scheduling_service()
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_firestore_settings,
    get_scheduling_settings,
)
from fsm import validate_transition_map

if TYPE_CHECKING:
    from app.services.scheduling_service import SchedulingService

# Nome do serviço para logs e métricas
SERVICE_NAME = "agenda_engine"

# Nível de log padrão (pode ser sobrescrito por env)
DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Inicializa a aplicação com todas as configurações necessárias.

    Deve ser chamada uma vez no início do serviço.
    Configura logging estruturado JSON com correlation_id.
    """
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    configure_logging(
        level=log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def collect_settings_errors() -> list[str]:
    """Agrega erros de validação das settings e do mapa de transições da FSM."""
    base = get_base_settings()
    scheduling = get_scheduling_settings()
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"scheduling: {error}" for error in scheduling.validate(base))
    errors.extend(f"fsm: {error}" for error in validate_transition_map())

    if scheduling.store_backend == "firestore":
        firestore_errors = get_firestore_settings().validate(base.gcp_project)
        errors.extend(f"firestore: {error}" for error in firestore_errors)

    return errors


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.
    """
    environment = get_base_settings().environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors = collect_settings_errors()

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


# ──────────────────────────────────────────────────────────────────────────────
# Service Getter (lazy initialization com cache)
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_scheduling_service() -> SchedulingService:
    """Obtém SchedulingService (singleton).

    Returns:
        SchedulingService com stores configurados conforme env
    """
    from app.bootstrap.dependencies import create_scheduling_service

    return create_scheduling_service()
