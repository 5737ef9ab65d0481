"""Redis Appointment Store — agendamentos com ledger atômico por dia.

Layout de chaves:
    appointment:{id}               -> JSON do agendamento
    ledger:{provider_id}:{date}    -> hash appointment_id -> LedgerEntry JSON
    appointment_index              -> sorted set global (score = dia * 1440 + minuto de início)
    appointment_index:provider:{id}
    appointment_index:subject:{id} -> mesmos scores, restritos ao provider ou ao subject

A listagem lê o índice mais estreito com ZRANGEBYSCORE limitado pelas datas
pedidas e só então carrega os documentos.

Escritas que tocam o ledger usam WATCH/MULTI/EXEC: se outro cliente alterar
o ledger entre a leitura e o EXEC, a transação aborta (WatchError) e a
verificação é refeita do zero, até `max_retries` tentativas.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError, WatchError

from app.domain.appointment import Appointment
from app.domain.errors import ConcurrentUpdateError, NotFoundError
from app.protocols.appointment_store import AppointmentStoreProtocol, sort_key
from app.services.booking_ledger import BookingLedger, LedgerEntry, ledger_key, resolve_replay
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    import datetime as dt

    from redis.asyncio import Redis as AsyncRedis

    from app.protocols.appointment_store import AppointmentQuery

logger = logging.getLogger(__name__)

APPOINTMENT_PREFIX = "appointment:"
LEDGER_PREFIX = "ledger:"
APPOINTMENT_INDEX = "appointment_index"
PROVIDER_INDEX_PREFIX = "appointment_index:provider:"
SUBJECT_INDEX_PREFIX = "appointment_index:subject:"
MINUTES_PER_DAY = 1440
DEFAULT_MAX_RETRIES = 5


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _index_score(appointment: Appointment) -> int:
    return appointment.date.toordinal() * MINUTES_PER_DAY + appointment.time.start


class RedisAppointmentStore(AppointmentStoreProtocol):
    """Store de agendamentos usando redis.asyncio.

    Args:
        async_redis_client: Cliente Redis assíncrono
        max_retries: Tentativas de WATCH/EXEC antes de desistir por contenção
    """

    def __init__(
        self,
        async_redis_client: AsyncRedis[bytes],
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._redis = async_redis_client
        self._max_retries = max_retries

    def _key(self, appointment_id: str) -> str:
        """Gera chave Redis com namespace."""
        return f"{APPOINTMENT_PREFIX}{appointment_id}"

    def _ledger_key(self, provider_id: str, date: dt.date) -> str:
        return f"{LEDGER_PREFIX}{ledger_key(provider_id, date)}"

    @staticmethod
    def _ledger_from_hash(provider_id: str, date: dt.date, raw: dict[Any, Any]) -> BookingLedger:
        entries = [LedgerEntry.from_dict(json.loads(_decode(value))) for value in raw.values()]
        return BookingLedger(provider_id=provider_id, date=date, entries=entries)

    async def insert_if_free(
        self,
        appointment: Appointment,
        max_active_per_day: int | None = None,
    ) -> Appointment:
        ledger_redis_key = self._ledger_key(appointment.provider_id, appointment.date)
        key = self._key(appointment.id)
        entry = LedgerEntry.from_appointment(appointment)

        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(ledger_redis_key, key)
                    stored = await pipe.get(key)
                    if stored is not None:
                        return resolve_replay(Appointment.model_validate_json(stored), appointment)
                    raw = await pipe.hgetall(ledger_redis_key)
                    ledger = self._ledger_from_hash(
                        appointment.provider_id, appointment.date, raw
                    )
                    ledger.ensure_can_insert(appointment, max_active_per_day)
                    pipe.multi()
                    pipe.hset(ledger_redis_key, appointment.id, json.dumps(entry.to_dict()))
                    pipe.set(key, appointment.model_dump_json())
                    score = {appointment.id: _index_score(appointment)}
                    pipe.zadd(APPOINTMENT_INDEX, score)
                    pipe.zadd(f"{PROVIDER_INDEX_PREFIX}{appointment.provider_id}", score)
                    pipe.zadd(f"{SUBJECT_INDEX_PREFIX}{appointment.subject_id}", score)
                    await pipe.execute()
            except WatchError:
                logger.info(
                    "ledger_watch_conflict",
                    extra={"ledger_key": ledger_redis_key, "attempt": attempt},
                )
                continue
            except RedisError as exc:
                raise RedisConnectionError("Falha ao reservar horário no Redis") from exc
            logger.debug(
                "appointment_inserted",
                extra={"appointment_id": appointment.id, "ledger_key": ledger_redis_key},
            )
            return appointment

        raise ConcurrentUpdateError(
            "Contenção no ledger do dia, tente novamente",
            ledger_key=ledger_redis_key,
            attempts=self._max_retries,
        )

    async def get(self, appointment_id: str) -> Appointment | None:
        try:
            data = await self._redis.get(self._key(appointment_id))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler agendamento no Redis") from exc
        if data is None:
            return None
        return Appointment.model_validate_json(data)

    async def _load_many(self, ids: list[str]) -> list[Appointment]:
        if not ids:
            return []
        try:
            values = await self._redis.mget([self._key(item) for item in ids])
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler agendamentos no Redis") from exc
        return [Appointment.model_validate_json(value) for value in values if value is not None]

    async def list_for_day(self, provider_id: str, date: dt.date) -> list[Appointment]:
        try:
            raw = await self._redis.hgetall(self._ledger_key(provider_id, date))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler ledger no Redis") from exc
        appointments = await self._load_many([_decode(key) for key in raw])
        return sorted(appointments, key=sort_key)

    async def update(self, appointment: Appointment, expected_version: int) -> Appointment:
        key = self._key(appointment.id)
        ledger_redis_key = self._ledger_key(appointment.provider_id, appointment.date)
        saved = appointment.model_copy(update={"version": expected_version + 1})
        entry = LedgerEntry.from_appointment(saved)

        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(key, ledger_redis_key)
                    data = await pipe.get(key)
                    if data is None:
                        raise NotFoundError(
                            "Agendamento não encontrado", appointment_id=appointment.id
                        )
                    current = Appointment.model_validate_json(data)
                    if current.version != expected_version:
                        raise ConcurrentUpdateError(
                            "Versão divergente",
                            appointment_id=appointment.id,
                            expected_version=expected_version,
                            current_version=current.version,
                        )
                    pipe.multi()
                    pipe.set(key, saved.model_dump_json())
                    pipe.hset(ledger_redis_key, appointment.id, json.dumps(entry.to_dict()))
                    await pipe.execute()
            except WatchError:
                logger.info(
                    "appointment_watch_conflict",
                    extra={"appointment_id": appointment.id, "attempt": attempt},
                )
                continue
            except RedisError as exc:
                raise RedisConnectionError("Falha ao atualizar agendamento no Redis") from exc
            return saved

        raise ConcurrentUpdateError(
            "Agendamento alterado concorrentemente", appointment_id=appointment.id
        )

    @staticmethod
    def _index_for(query: AppointmentQuery) -> str:
        if query.provider_id is not None:
            return f"{PROVIDER_INDEX_PREFIX}{query.provider_id}"
        if query.subject_id is not None:
            return f"{SUBJECT_INDEX_PREFIX}{query.subject_id}"
        return APPOINTMENT_INDEX

    @staticmethod
    def _score_bounds(query: AppointmentQuery) -> tuple[int | str, int | str]:
        low: int | str = "-inf"
        high: int | str = "+inf"
        if query.date_from is not None:
            low = query.date_from.toordinal() * MINUTES_PER_DAY
        if query.date_to is not None:
            high = (query.date_to.toordinal() + 1) * MINUTES_PER_DAY - 1
        return low, high

    async def query(self, query: AppointmentQuery) -> list[Appointment]:
        """Listagem pelo índice mais estreito (provider, subject ou global).

        O índice já cobre provider ou subject e a faixa de datas. Quando não
        sobra filtro em memória (status ou provider+subject), a paginação vai
        direto para o ZRANGEBYSCORE e só `limit` documentos são carregados.
        """
        index = self._index_for(query)
        low, high = self._score_bounds(query)
        filtered_in_memory = query.status is not None or (
            query.provider_id is not None and query.subject_id is not None
        )
        try:
            if filtered_in_memory:
                ids = await self._redis.zrangebyscore(index, low, high)
            else:
                ids = await self._redis.zrangebyscore(
                    index, low, high, start=query.offset, num=query.limit
                )
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler índice no Redis") from exc

        appointments = await self._load_many([_decode(item) for item in ids])
        matched = sorted((item for item in appointments if query.matches(item)), key=sort_key)
        if filtered_in_memory:
            return matched[query.offset : query.offset + query.limit]
        return matched

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as exc:
            raise RedisConnectionError("Redis indisponível") from exc
