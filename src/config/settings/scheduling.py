"""Settings do motor de agendamento.

Centralizar a leitura de env aqui evita espalhar parse de configuração
pelos stores e rotas.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

StoreBackend = Literal["memory", "redis", "firestore"]
VALID_BACKENDS = ("memory", "redis", "firestore")


@dataclass(frozen=True)
class SchedulingSettings:
    """Configurações de persistência e limites do motor de agenda.

    Attributes:
        store_backend: Backend de agendamentos e agendas (memory|redis|firestore)
        default_timezone: Timezone aplicada a templates semanais sem timezone
        storage_timeout_seconds: Timeout por chamada ao store
        ledger_max_retries: Tentativas de WATCH/EXEC no ledger Redis
        list_max_limit: Máximo de itens por página na listagem
    """

    store_backend: str = "memory"
    default_timezone: str = "Asia/Ho_Chi_Minh"
    storage_timeout_seconds: float = 5.0
    ledger_max_retries: int = 5
    list_max_limit: int = 100

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de agenda.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.store_backend not in VALID_BACKENDS:
            errors.append(f"SCHEDULING_STORE_BACKEND inválido: {self.store_backend}")

        if self.store_backend == "memory" and not base.is_development:
            errors.append("SCHEDULING_STORE_BACKEND=memory proibido em staging/production")

        if self.store_backend == "redis" and not base.redis_url:
            errors.append("REDIS_URL obrigatório com SCHEDULING_STORE_BACKEND=redis")

        if self.storage_timeout_seconds <= 0:
            errors.append("SCHEDULING_STORAGE_TIMEOUT_SECONDS deve ser > 0")

        if self.ledger_max_retries < 1:
            errors.append("SCHEDULING_LEDGER_MAX_RETRIES deve ser >= 1")

        if self.list_max_limit < 1:
            errors.append("SCHEDULING_LIST_MAX_LIMIT deve ser >= 1")

        try:
            ZoneInfo(self.default_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"SCHEDULING_DEFAULT_TIMEZONE inválida: {self.default_timezone}")

        return errors


def _load_scheduling_from_env() -> SchedulingSettings:
    """Carrega SchedulingSettings de variáveis de ambiente."""
    return SchedulingSettings(
        store_backend=os.getenv("SCHEDULING_STORE_BACKEND", "memory").strip().lower(),
        default_timezone=os.getenv("SCHEDULING_DEFAULT_TIMEZONE", "Asia/Ho_Chi_Minh"),
        storage_timeout_seconds=float(os.getenv("SCHEDULING_STORAGE_TIMEOUT_SECONDS", "5.0")),
        ledger_max_retries=int(os.getenv("SCHEDULING_LEDGER_MAX_RETRIES", "5")),
        list_max_limit=int(os.getenv("SCHEDULING_LIST_MAX_LIMIT", "100")),
    )


@lru_cache(maxsize=1)
def get_scheduling_settings() -> SchedulingSettings:
    """Retorna instância cacheada de SchedulingSettings."""
    return _load_scheduling_from_env()


__all__ = ["SchedulingSettings", "StoreBackend", "get_scheduling_settings"]
