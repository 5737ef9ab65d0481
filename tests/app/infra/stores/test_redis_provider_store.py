"""Testes do RedisProviderStore com mock."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import WatchError

from app.domain.availability import AvailabilityException
from app.domain.errors import ConcurrentUpdateError, NotFoundError
from app.infra.stores.redis_provider_store import RedisProviderStore
from tests.fakes.scheduling import MONDAY, make_schedule


def _redis_with_pipeline(current: bytes | None) -> tuple[MagicMock, MagicMock]:
    redis = MagicMock()
    pipe = MagicMock()
    pipe.watch = AsyncMock()
    pipe.get = AsyncMock(return_value=current)
    pipe.execute = AsyncMock(return_value=[True])
    redis.pipeline.return_value.__aenter__.return_value = pipe
    redis.pipeline.return_value.__aexit__.return_value = False
    return redis, pipe


class TestRedisProviderStore:
    @pytest.mark.asyncio
    async def test_save_and_get(self) -> None:
        schedule = make_schedule()
        redis = MagicMock()
        redis.set = AsyncMock()
        redis.get = AsyncMock(return_value=schedule.model_dump_json().encode())
        store = RedisProviderStore(redis)

        await store.save_schedule(schedule)
        loaded = await store.get_schedule("prov-1")

        redis.set.assert_awaited_once_with("provider_schedule:prov-1", schedule.model_dump_json())
        assert loaded == schedule

    @pytest.mark.asyncio
    async def test_upsert_exception(self) -> None:
        redis, pipe = _redis_with_pipeline(make_schedule().model_dump_json().encode())
        store = RedisProviderStore(redis)

        updated = await store.upsert_exception("prov-1", AvailabilityException(date=MONDAY))

        assert updated.exception_for(MONDAY) is not None
        pipe.watch.assert_awaited_once_with("provider_schedule:prov-1")
        pipe.set.assert_called_once_with("provider_schedule:prov-1", updated.model_dump_json())

    @pytest.mark.asyncio
    async def test_upsert_exception_unknown_provider(self) -> None:
        redis, _ = _redis_with_pipeline(None)
        with pytest.raises(NotFoundError):
            await RedisProviderStore(redis).upsert_exception(
                "ghost", AvailabilityException(date=MONDAY)
            )

    @pytest.mark.asyncio
    async def test_upsert_exception_contention(self) -> None:
        redis, pipe = _redis_with_pipeline(make_schedule().model_dump_json().encode())
        pipe.execute.side_effect = WatchError()

        with pytest.raises(ConcurrentUpdateError):
            await RedisProviderStore(redis, max_retries=2).upsert_exception(
                "prov-1", AvailabilityException(date=MONDAY)
            )
