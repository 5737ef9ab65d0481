"""Redis Provider Store — registros de agenda dos providers.

Cada provider fica em `provider_schedule:{provider_id}` como JSON. O upsert
de exceção é read-modify-write protegido por WATCH na chave do provider.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError, WatchError

from app.domain.errors import ConcurrentUpdateError, NotFoundError
from app.domain.provider import ProviderSchedule
from app.protocols.provider_store import ProviderStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

    from app.domain.availability import AvailabilityException

logger = logging.getLogger(__name__)

PROVIDER_PREFIX = "provider_schedule:"


class RedisProviderStore(ProviderStoreProtocol):
    def __init__(self, async_redis_client: AsyncRedis[bytes], max_retries: int = 5) -> None:
        self._redis = async_redis_client
        self._max_retries = max_retries

    def _key(self, provider_id: str) -> str:
        """Gera chave Redis com namespace."""
        return f"{PROVIDER_PREFIX}{provider_id}"

    async def get_schedule(self, provider_id: str) -> ProviderSchedule | None:
        try:
            data = await self._redis.get(self._key(provider_id))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler agenda no Redis") from exc
        if data is None:
            return None
        return ProviderSchedule.model_validate_json(data)

    async def save_schedule(self, schedule: ProviderSchedule) -> ProviderSchedule:
        try:
            await self._redis.set(self._key(schedule.provider_id), schedule.model_dump_json())
        except RedisError as exc:
            raise RedisConnectionError("Falha ao gravar agenda no Redis") from exc
        return schedule

    async def upsert_exception(
        self, provider_id: str, exception: AvailabilityException
    ) -> ProviderSchedule:
        key = self._key(provider_id)
        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    data = await pipe.get(key)
                    if data is None:
                        raise NotFoundError("Provider não encontrado", provider_id=provider_id)
                    updated = ProviderSchedule.model_validate_json(data).with_exception(exception)
                    pipe.multi()
                    pipe.set(key, updated.model_dump_json())
                    await pipe.execute()
            except WatchError:
                logger.info(
                    "provider_watch_conflict",
                    extra={"provider_id": provider_id, "attempt": attempt},
                )
                continue
            except RedisError as exc:
                raise RedisConnectionError("Falha ao gravar exceção no Redis") from exc
            return updated

        raise ConcurrentUpdateError("Agenda alterada concorrentemente", provider_id=provider_id)
