"""Firestore Provider Store — registros de agenda em `providers/{provider_id}`."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from app.domain.errors import NotFoundError
from app.domain.provider import ProviderSchedule
from app.protocols.provider_store import ProviderStoreProtocol
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from app.domain.availability import AvailabilityException

logger = logging.getLogger(__name__)

PROVIDERS_COLLECTION = "providers"


class FirestoreProviderStore(ProviderStoreProtocol):
    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = PROVIDERS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _ref(self, provider_id: str) -> Any:
        return self._db.collection(self._collection).document(provider_id)

    async def get_schedule(self, provider_id: str) -> ProviderSchedule | None:
        return await asyncio.to_thread(self._get_sync, provider_id)

    def _get_sync(self, provider_id: str) -> ProviderSchedule | None:
        try:
            snapshot = self._ref(provider_id).get()
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao ler agenda no Firestore") from exc
        if not snapshot.exists:
            return None
        return ProviderSchedule.model_validate(snapshot.to_dict())

    async def save_schedule(self, schedule: ProviderSchedule) -> ProviderSchedule:
        await asyncio.to_thread(self._save_sync, schedule)
        return schedule

    def _save_sync(self, schedule: ProviderSchedule) -> None:
        try:
            self._ref(schedule.provider_id).set(schedule.model_dump(mode="json"))
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao gravar agenda no Firestore") from exc

    async def upsert_exception(
        self, provider_id: str, exception: AvailabilityException
    ) -> ProviderSchedule:
        return await asyncio.to_thread(self._upsert_exception_sync, provider_id, exception)

    def _upsert_exception_sync(
        self, provider_id: str, exception: AvailabilityException
    ) -> ProviderSchedule:
        ref = self._ref(provider_id)
        result: list[ProviderSchedule] = []

        @firestore.transactional
        def _run(transaction: Any) -> None:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError("Provider não encontrado", provider_id=provider_id)
            updated = ProviderSchedule.model_validate(snapshot.to_dict()).with_exception(exception)
            transaction.set(ref, updated.model_dump(mode="json"))
            result.append(updated)

        try:
            _run(self._db.transaction())
        except gcp_exceptions.GoogleAPICallError as exc:
            raise FirestoreUnavailableError("Falha ao gravar exceção no Firestore") from exc

        logger.debug(
            "provider_exception_saved",
            extra={"provider_id": provider_id, "date": exception.date.isoformat()},
        )
        return result[-1]
