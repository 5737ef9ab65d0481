"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e podem ser agregadas
posteriormente por sistemas como BigQuery, CloudWatch Insights, etc.

Métricas suportadas:
- Latência: histogram de tempos de execução por componente/operação
- Outcome: counter de resultados de operações de agenda (created, slot_conflict...)

Uso:
    from app.observability.metrics import record_latency, record_outcome

    start = time.perf_counter()
    # ... operação ...
    latency_ms = (time.perf_counter() - start) * 1000
    record_latency("scheduling_service", "create_appointment", latency_ms, correlation_id)

    record_outcome("create_appointment", "slot_conflict", correlation_id)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "scheduling_service", "redis_store")
        operation: Nome da operação (ex: "free_slots", "create_appointment")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_outcome(
    operation: str,
    outcome: str,
    correlation_id: str | None = None,
    metadata: dict[str, str | float | int] | None = None,
) -> None:
    """Registra resultado de uma operação de agenda.

    Args:
        operation: Nome da operação (ex: "create_appointment", "change_status")
        outcome: Resultado (ex: "created", "slot_conflict", "daily_limit_reached")
        correlation_id: ID de correlação para rastreamento
        metadata: Metadados adicionais opcionais (nunca PII)
    """
    extra: dict[str, str | float | int | None] = {
        "metric_type": "outcome",
        "component": "scheduling",
        "operation": operation,
        "outcome": outcome,
        "correlation_id": correlation_id,
    }
    if metadata:
        extra.update(metadata)

    logger.info(
        "metric_outcome",
        extra=extra,
    )
