"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

import asyncio
import weakref
from collections import defaultdict
from typing import TYPE_CHECKING

from app.domain.appointment import Appointment
from app.domain.errors import ConcurrentUpdateError, NotFoundError
from app.protocols.appointment_store import AppointmentStoreProtocol, sort_key
from app.protocols.provider_store import ProviderStoreProtocol
from app.services.booking_ledger import BookingLedger, ledger_key, resolve_replay

if TYPE_CHECKING:
    import datetime as dt

    from app.domain.availability import AvailabilityException
    from app.domain.provider import ProviderSchedule
    from app.protocols.appointment_store import AppointmentQuery


class MemoryAppointmentStore(AppointmentStoreProtocol):
    """Store de agendamentos em memória — apenas para dev/test.

    Um asyncio.Lock por (provider, data) torna o check-and-insert atômico
    no event loop. Chaves distintas nunca disputam o mesmo lock.

    Os locks ficam num WeakValueDictionary: enquanto alguém segura ou aguarda
    o lock ele permanece no mapa; depois disso é coletado e o mapa não cresce
    com cada dia já visitado.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}  # appointment_id -> json
        self._day_index: dict[str, list[str]] = defaultdict(list)  # ledger_key -> ids
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _load(self, appointment_id: str) -> Appointment | None:
        data = self._store.get(appointment_id)
        if data is None:
            return None
        return Appointment.model_validate_json(data)

    def _day(self, provider_id: str, date: dt.date) -> list[Appointment]:
        ids = self._day_index.get(ledger_key(provider_id, date), [])
        return [item for item in (self._load(i) for i in ids) if item is not None]

    async def insert_if_free(
        self,
        appointment: Appointment,
        max_active_per_day: int | None = None,
    ) -> Appointment:
        key = ledger_key(appointment.provider_id, appointment.date)
        async with self._lock_for(key):
            existing = self._load(appointment.id)
            if existing is not None:
                return resolve_replay(existing, appointment)
            ledger = BookingLedger.from_appointments(
                appointment.provider_id,
                appointment.date,
                self._day(appointment.provider_id, appointment.date),
            )
            ledger.ensure_can_insert(appointment, max_active_per_day)
            self._store[appointment.id] = appointment.model_dump_json()
            self._day_index[key].append(appointment.id)
        return appointment

    async def get(self, appointment_id: str) -> Appointment | None:
        return self._load(appointment_id)

    async def list_for_day(self, provider_id: str, date: dt.date) -> list[Appointment]:
        return sorted(self._day(provider_id, date), key=sort_key)

    async def update(self, appointment: Appointment, expected_version: int) -> Appointment:
        key = ledger_key(appointment.provider_id, appointment.date)
        async with self._lock_for(key):
            current = self._load(appointment.id)
            if current is None:
                raise NotFoundError("Agendamento não encontrado", appointment_id=appointment.id)
            if current.version != expected_version:
                raise ConcurrentUpdateError(
                    "Versão divergente",
                    appointment_id=appointment.id,
                    expected_version=expected_version,
                    current_version=current.version,
                )
            saved = appointment.model_copy(update={"version": expected_version + 1})
            self._store[appointment.id] = saved.model_dump_json()
        return saved

    async def query(self, query: AppointmentQuery) -> list[Appointment]:
        items = [
            item
            for item in (self._load(i) for i in list(self._store))
            if item is not None and query.matches(item)
        ]
        items.sort(key=sort_key)
        return items[query.offset : query.offset + query.limit]

    async def ping(self) -> bool:
        return True


class MemoryProviderStore(ProviderStoreProtocol):
    """Store de agendas de providers em memória — apenas para dev/test."""

    def __init__(self, schedules: list[ProviderSchedule] | None = None) -> None:
        self._store: dict[str, ProviderSchedule] = {
            item.provider_id: item for item in schedules or []
        }

    async def get_schedule(self, provider_id: str) -> ProviderSchedule | None:
        return self._store.get(provider_id)

    async def save_schedule(self, schedule: ProviderSchedule) -> ProviderSchedule:
        self._store[schedule.provider_id] = schedule
        return schedule

    async def upsert_exception(
        self, provider_id: str, exception: AvailabilityException
    ) -> ProviderSchedule:
        current = self._store.get(provider_id)
        if current is None:
            raise NotFoundError("Provider não encontrado", provider_id=provider_id)
        updated = current.with_exception(exception)
        self._store[provider_id] = updated
        return updated
