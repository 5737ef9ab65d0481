"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - memory_stores: Stores em memória para desenvolvimento/testes
    - redis_appointment_store: Agendamentos + ledger por dia usando Redis
    - redis_provider_store: Agendas de providers usando Redis
    - firestore_appointment_store: Agendamentos + ledger transacional no Firestore
    - firestore_provider_store: Agendas de providers no Firestore
"""

from __future__ import annotations

from app.infra.stores.firestore_appointment_store import FirestoreAppointmentStore
from app.infra.stores.firestore_provider_store import FirestoreProviderStore
from app.infra.stores.memory_stores import MemoryAppointmentStore, MemoryProviderStore
from app.infra.stores.redis_appointment_store import RedisAppointmentStore
from app.infra.stores.redis_provider_store import RedisProviderStore

__all__ = [
    # Firestore
    "FirestoreAppointmentStore",
    "FirestoreProviderStore",
    # Memory (dev/test)
    "MemoryAppointmentStore",
    "MemoryProviderStore",
    # Redis
    "RedisAppointmentStore",
    "RedisProviderStore",
]
