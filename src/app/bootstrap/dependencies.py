"""Factories de stores e serviço — criação de implementações concretas.

Este módulo centraliza a criação de stores baseadas nas configurações de
ambiente (SCHEDULING_STORE_BACKEND).
"""

from __future__ import annotations

import logging

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.stores import (
    FirestoreAppointmentStore,
    FirestoreProviderStore,
    MemoryAppointmentStore,
    MemoryProviderStore,
    RedisAppointmentStore,
    RedisProviderStore,
)
from app.protocols.appointment_store import AppointmentStoreProtocol
from app.protocols.provider_store import ProviderStoreProtocol
from app.services.scheduling_service import SchedulingService
from config.settings import (
    get_base_settings,
    get_firestore_settings,
    get_scheduling_settings,
)

logger = logging.getLogger(__name__)


def _checked_backend() -> str:
    backend = get_scheduling_settings().store_backend
    if backend == "memory" and not get_base_settings().is_development:
        msg = "SCHEDULING_STORE_BACKEND=memory proibido em staging/production"
        raise ValueError(msg)
    return backend


# ──────────────────────────────────────────────────────────────────────────────
# Store Factories
# ──────────────────────────────────────────────────────────────────────────────


def create_appointment_store() -> AppointmentStoreProtocol:
    """Cria store de agendamentos baseado na configuração.

    - "memory": MemoryAppointmentStore (dev only)
    - "redis": RedisAppointmentStore (ledger via WATCH/MULTI/EXEC)
    - "firestore": FirestoreAppointmentStore (ledger via transação)

    Returns:
        Implementação de AppointmentStoreProtocol
    """
    backend = _checked_backend()

    if backend == "redis":
        store: AppointmentStoreProtocol = RedisAppointmentStore(
            create_async_redis_client(),
            max_retries=get_scheduling_settings().ledger_max_retries,
        )
    elif backend == "firestore":
        fs_settings = get_firestore_settings()
        store = FirestoreAppointmentStore(
            create_firestore_client(),
            appointments_collection=fs_settings.collection_appointments,
            ledgers_collection=fs_settings.collection_ledgers,
        )
    elif backend == "memory":
        store = MemoryAppointmentStore()
    else:
        msg = f"SCHEDULING_STORE_BACKEND inválido: {backend}"
        raise ValueError(msg)

    logger.info("appointment_store_created", extra={"backend": backend})
    return store


def create_provider_store() -> ProviderStoreProtocol:
    """Cria store de agendas de providers baseado na configuração."""
    backend = _checked_backend()

    if backend == "redis":
        store: ProviderStoreProtocol = RedisProviderStore(
            create_async_redis_client(),
            max_retries=get_scheduling_settings().ledger_max_retries,
        )
    elif backend == "firestore":
        store = FirestoreProviderStore(
            create_firestore_client(),
            collection_name=get_firestore_settings().collection_providers,
        )
    elif backend == "memory":
        store = MemoryProviderStore()
    else:
        msg = f"SCHEDULING_STORE_BACKEND inválido: {backend}"
        raise ValueError(msg)

    logger.info("provider_store_created", extra={"backend": backend})
    return store


# ──────────────────────────────────────────────────────────────────────────────
# Service Factory
# ──────────────────────────────────────────────────────────────────────────────


def create_scheduling_service() -> SchedulingService:
    """Cria SchedulingService com stores e limites das settings."""
    settings = get_scheduling_settings()
    return SchedulingService(
        create_appointment_store(),
        create_provider_store(),
        storage_timeout_seconds=settings.storage_timeout_seconds,
        list_max_limit=settings.list_max_limit,
    )
