"""Formatters de logging estruturado.

Define formatters para logs JSON com campos obrigatórios:
- correlation_id
- service
- timestamp (asctime)
- level
- logger (name)
- message

Logs estruturados, sem PII: ids de subject/provider são opacos.
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Campos obrigatórios em todo log estruturado, na ordem de saída
LOG_FIELD_ORDER = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)
REQUIRED_LOG_FIELDS = frozenset(LOG_FIELD_ORDER)

# Mapeamento de nomes de campos para formato padrão
FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Returns:
        JsonFormatter configurado para logs estruturados.

    Exemplo de output:
        {
            "asctime": "2026-02-02T10:30:00",
            "level": "INFO",
            "logger": "app.services.scheduling_service",
            "message": "appointment_created",
            "correlation_id": "abc-123",
            "service": "agenda_engine",
            "appointment_id": "5f2c..."
        }
    """
    format_string = " ".join(f"%({field})s" for field in LOG_FIELD_ORDER)

    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
    )
