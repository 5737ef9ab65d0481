"""Configuração centralizada de logging.

Funções para configurar logging estruturado JSON com:
- Campos obrigatórios (correlation_id, service, level, logger, message)
- Formatação padronizada
- Níveis configuráveis por ambiente

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização do serviço (app/bootstrap/)
    configure_logging(level="INFO", service_name="agenda_engine")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("appointment_created", extra={"appointment_id": "abc"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

# Níveis de log válidos
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Nome padrão do serviço
DEFAULT_SERVICE_NAME = "agenda_engine"


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Deve ser chamada uma vez na inicialização do serviço (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função opcional que retorna o correlation_id
            do contexto atual (ex: de ContextVar).

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    formatter = create_json_formatter()

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo especificado.

    O filter injeta automaticamente service e correlation_id.
    """
    return logging.getLogger(name)


def log_infrastructure_failure(
    logger: logging.Logger,
    component: str,
    error_type: str,
    operation: str | None = None,
) -> None:
    """Log observável de falha de infraestrutura (sem PII).

    Usado quando um backend (Redis, Firestore) falha ou estoura timeout e a
    requisição é respondida como indisponível.

    Args:
        logger: Logger instance.
        component: Nome do componente (ex: "http").
        error_type: Nome da classe do erro (ex: "StorageTimeoutError").
        operation: Operação em andamento, quando conhecida.

    Exemplo:
        log_infrastructure_failure(logger, "http", "RedisConnectionError", "insert_if_free")
    """
    extra: dict[str, object] = {
        "component": component,
        "error_type": error_type,
        "retryable": True,
    }
    if operation:
        extra["operation"] = operation

    logger.error("infrastructure_failure", extra=extra)
