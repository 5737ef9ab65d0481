"""Firestore Appointment Store — agendamentos com ledger transacional.

Estrutura no Firestore:
    appointments/{appointment_id}
    ledgers/{provider_id}_{date}   -> {"provider_id", "date", "entries": {id: entry}}

O ledger do dia é lido e escrito dentro da mesma transação que grava o
agendamento; em contenção o SDK re-executa a função transacional, que
refaz a verificação de conflito com os dados novos.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.domain.appointment import Appointment
from app.domain.errors import ConcurrentUpdateError, NotFoundError
from app.protocols.appointment_store import AppointmentStoreProtocol, sort_key
from app.services.booking_ledger import BookingLedger, LedgerEntry, resolve_replay
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    import datetime as dt

    from google.cloud.firestore import Client as FirestoreClient

    from app.protocols.appointment_store import AppointmentQuery

logger = logging.getLogger(__name__)

# Collections Firestore
APPOINTMENTS_COLLECTION = "appointments"
LEDGERS_COLLECTION = "ledgers"


class FirestoreAppointmentStore(AppointmentStoreProtocol):
    """Store de agendamentos usando Firestore.

    Usa asyncio.to_thread pois o Firestore SDK não tem async nativo.

    Args:
        firestore_client: Cliente Firestore
        appointments_collection: Collection de agendamentos
        ledgers_collection: Collection de ledgers por (provider, data)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        appointments_collection: str = APPOINTMENTS_COLLECTION,
        ledgers_collection: str = LEDGERS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._appointments = appointments_collection
        self._ledgers = ledgers_collection

    def _ledger_ref(self, provider_id: str, date: dt.date) -> Any:
        return self._db.collection(self._ledgers).document(f"{provider_id}_{date.isoformat()}")

    def _appointment_ref(self, appointment_id: str) -> Any:
        return self._db.collection(self._appointments).document(appointment_id)

    @staticmethod
    def _ledger_from_snapshot(provider_id: str, date: dt.date, snapshot: Any) -> BookingLedger:
        data = snapshot.to_dict() if snapshot.exists else None
        entries = (data or {}).get("entries", {})
        return BookingLedger(
            provider_id=provider_id,
            date=date,
            entries=[LedgerEntry.from_dict(item) for item in entries.values()],
        )

    async def insert_if_free(
        self,
        appointment: Appointment,
        max_active_per_day: int | None = None,
    ) -> Appointment:
        return await asyncio.to_thread(self._insert_if_free_sync, appointment, max_active_per_day)

    def _insert_if_free_sync(
        self, appointment: Appointment, max_active_per_day: int | None
    ) -> Appointment:
        ledger_ref = self._ledger_ref(appointment.provider_id, appointment.date)
        appointment_ref = self._appointment_ref(appointment.id)
        entry = LedgerEntry.from_appointment(appointment)

        @firestore.transactional
        def _run(transaction: Any) -> Appointment:
            # Todas as leituras antes das escritas, como exige a transação
            snapshot = ledger_ref.get(transaction=transaction)
            stored = appointment_ref.get(transaction=transaction)
            if stored.exists:
                return resolve_replay(Appointment.model_validate(stored.to_dict()), appointment)
            ledger = self._ledger_from_snapshot(
                appointment.provider_id, appointment.date, snapshot
            )
            ledger.ensure_can_insert(appointment, max_active_per_day)
            transaction.set(
                ledger_ref,
                {
                    "provider_id": appointment.provider_id,
                    "date": appointment.date.isoformat(),
                    "entries": {appointment.id: entry.to_dict()},
                },
                merge=True,
            )
            transaction.set(appointment_ref, appointment.model_dump(mode="json"))
            return appointment

        try:
            saved = _run(self._db.transaction())
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao reservar horário no Firestore") from exc

        logger.debug(
            "appointment_inserted",
            extra={"appointment_id": saved.id, "ledger_doc": ledger_ref.id},
        )
        return saved

    async def get(self, appointment_id: str) -> Appointment | None:
        return await asyncio.to_thread(self._get_sync, appointment_id)

    def _get_sync(self, appointment_id: str) -> Appointment | None:
        try:
            snapshot = self._appointment_ref(appointment_id).get()
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao ler agendamento no Firestore") from exc
        if not snapshot.exists:
            return None
        return Appointment.model_validate(snapshot.to_dict())

    async def list_for_day(self, provider_id: str, date: dt.date) -> list[Appointment]:
        return await asyncio.to_thread(self._list_for_day_sync, provider_id, date)

    def _list_for_day_sync(self, provider_id: str, date: dt.date) -> list[Appointment]:
        try:
            ledger = self._ledger_from_snapshot(
                provider_id, date, self._ledger_ref(provider_id, date).get()
            )
            refs = [self._appointment_ref(entry.appointment_id) for entry in ledger.entries]
            snapshots = list(self._db.get_all(refs)) if refs else []
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao ler ledger no Firestore") from exc
        appointments = [
            Appointment.model_validate(item.to_dict()) for item in snapshots if item.exists
        ]
        return sorted(appointments, key=sort_key)

    async def update(self, appointment: Appointment, expected_version: int) -> Appointment:
        return await asyncio.to_thread(self._update_sync, appointment, expected_version)

    def _update_sync(self, appointment: Appointment, expected_version: int) -> Appointment:
        appointment_ref = self._appointment_ref(appointment.id)
        ledger_ref = self._ledger_ref(appointment.provider_id, appointment.date)
        saved = appointment.model_copy(update={"version": expected_version + 1})
        entry = LedgerEntry.from_appointment(saved)

        @firestore.transactional
        def _run(transaction: Any) -> None:
            snapshot = appointment_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError("Agendamento não encontrado", appointment_id=appointment.id)
            current_version = int(snapshot.to_dict().get("version", 1))
            if current_version != expected_version:
                raise ConcurrentUpdateError(
                    "Versão divergente",
                    appointment_id=appointment.id,
                    expected_version=expected_version,
                    current_version=current_version,
                )
            transaction.set(appointment_ref, saved.model_dump(mode="json"))
            transaction.set(
                ledger_ref, {"entries": {appointment.id: entry.to_dict()}}, merge=True
            )

        try:
            _run(self._db.transaction())
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao atualizar agendamento no Firestore") from exc
        return saved

    async def query(self, query: AppointmentQuery) -> list[Appointment]:
        return await asyncio.to_thread(self._query_sync, query)

    def _query_sync(self, query: AppointmentQuery) -> list[Appointment]:
        ref: Any = self._db.collection(self._appointments)
        # Igualdades vão para o Firestore; faixa de datas e paginação em memória.
        for field, value in (
            ("provider_id", query.provider_id),
            ("subject_id", query.subject_id),
            ("status", query.status.value if query.status is not None else None),
        ):
            if value is not None:
                ref = ref.where(filter=FieldFilter(field, "==", value))
        try:
            docs = list(ref.stream())
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao listar agendamentos no Firestore") from exc
        appointments = [Appointment.model_validate(doc.to_dict()) for doc in docs]
        matched = sorted((item for item in appointments if query.matches(item)), key=sort_key)
        return matched[query.offset : query.offset + query.limit]

    async def ping(self) -> bool:
        def _ping() -> bool:
            try:
                list(self._db.collection(self._ledgers).limit(1).stream())
            except gcp_exceptions.GoogleAPICallError as exc:
                raise FirestoreUnavailableError("Firestore indisponível") from exc
            return True

        return await asyncio.to_thread(_ping)
