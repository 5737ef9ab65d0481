"""Orquestrador do motor de agendamento.

Compõe resolução de disponibilidade, geração de slots, ledger e ciclo de
vida sobre os stores injetados. Não faz retry de escrita: conflito volta ao
chamador, que deve consultar os horários livres de novo.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import time
from dataclasses import replace
from typing import TYPE_CHECKING, TypeVar
from zoneinfo import ZoneInfo

from app.domain.actor import ActorRole
from app.domain.appointment import Appointment
from app.domain.errors import (
    BookingWindowError,
    ConcurrentUpdateError,
    NotFoundError,
    OutsideAvailabilityError,
    PermissionDeniedError,
    PolicyError,
    SchedulingError,
    SlotConflictError,
    ValidationError,
)
from app.observability import get_correlation_id, record_latency, record_outcome
from app.protocols.appointment_store import AppointmentQuery
from app.services import appointment_lifecycle as lifecycle
from app.services.authorization import OwnershipAuthorizationPolicy
from app.services.availability_resolver import covers, resolve_day
from app.services.booking_ledger import BookingLedger
from app.services.slot_generator import generate_slots
from fsm import AppointmentAction
from utils.errors import StorageTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.domain.actor import Actor
    from app.domain.appointment import AppointmentRequest
    from app.domain.availability import AvailabilityException, Slot
    from app.domain.provider import ProviderSchedule
    from app.protocols.appointment_store import AppointmentStoreProtocol
    from app.protocols.authorization import AuthorizationPolicyProtocol
    from app.protocols.provider_store import ProviderStoreProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COMPONENT = "scheduling_service"
DEFAULT_STORAGE_TIMEOUT_SECONDS = 5.0
DEFAULT_LIST_MAX_LIMIT = 100

_ACTIONS: dict[AppointmentAction, Callable[..., Appointment]] = {
    AppointmentAction.CONFIRM: lambda appt, actor, reason, now: lifecycle.confirm(appt, actor, now),
    AppointmentAction.CANCEL: lifecycle.cancel,
    AppointmentAction.COMPLETE: lambda appt, actor, reason, now: lifecycle.complete(appt, actor, now),
    AppointmentAction.NO_SHOW: lifecycle.mark_no_show,
}


def _utcnow() -> dt.datetime:
    return dt.datetime.now(tz=dt.UTC)


class SchedulingService:
    """Fachada das operações de agenda expostas ao host."""

    def __init__(
        self,
        appointment_store: AppointmentStoreProtocol,
        provider_store: ProviderStoreProtocol,
        authorization: AuthorizationPolicyProtocol | None = None,
        *,
        storage_timeout_seconds: float = DEFAULT_STORAGE_TIMEOUT_SECONDS,
        list_max_limit: int = DEFAULT_LIST_MAX_LIMIT,
        clock: Callable[[], dt.datetime] | None = None,
    ) -> None:
        self._appointments = appointment_store
        self._providers = provider_store
        self._authorization = authorization or OwnershipAuthorizationPolicy()
        self._timeout = storage_timeout_seconds
        self._list_max_limit = list_max_limit
        self._clock = clock or _utcnow

    def now(self) -> dt.datetime:
        """Instante atual segundo o relógio injetado."""
        return self._clock()

    async def _storage(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Executa chamada ao store com timeout por requisição.

        O timeout só abandona a espera: uma escrita já enviada (ex.: thread do
        Firestore) pode ainda ser confirmada depois do 503. Por isso a criação
        aceita `appointment_id` do cliente; o retry com o mesmo id devolve a
        reserva gravada em vez de colidir com ela.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except TimeoutError as exc:
            logger.warning(
                "storage_timeout",
                extra={"operation": operation, "timeout_seconds": self._timeout},
            )
            raise StorageTimeoutError(f"Timeout em {operation}") from exc

    async def _load_schedule(self, provider_id: str) -> ProviderSchedule:
        schedule = await self._storage("get_schedule", self._providers.get_schedule(provider_id))
        if schedule is None:
            raise NotFoundError("Provider não encontrado", provider_id=provider_id)
        return schedule

    async def _load_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self._storage("get_appointment", self._appointments.get(appointment_id))
        if appointment is None:
            raise NotFoundError("Agendamento não encontrado", appointment_id=appointment_id)
        return appointment

    def _booking_window(
        self, schedule: ProviderSchedule, date: dt.date, now: dt.datetime
    ) -> tuple[bool, dt.datetime]:
        """Retorna (dentro_da_janela, agora_na_timezone_do_provider)."""
        local_now = now.astimezone(ZoneInfo(schedule.timezone))
        today = local_now.date()
        last_day = today + dt.timedelta(days=schedule.session_policy.advance_booking_days)
        return today <= date <= last_day, local_now

    async def free_slots(
        self,
        provider_id: str,
        date: dt.date,
        duration_minutes: int | None = None,
    ) -> list[Slot]:
        """Slots livres do provider na data (consulta consultiva, sem reserva).

        Vazio quando a data está fora da janela de antecedência, quando o
        limite diário já foi atingido ou quando o dia está indisponível.
        """
        started = time.perf_counter()
        schedule = await self._load_schedule(provider_id)
        policy = schedule.session_policy
        duration = policy.default_duration_minutes if duration_minutes is None else duration_minutes
        day = resolve_day(schedule, date)
        candidates = generate_slots(day, duration, policy.break_between_sessions_minutes)

        in_window, local_now = self._booking_window(schedule, date, self._clock())
        if not in_window or not schedule.is_active:
            return []

        appointments = await self._storage(
            "list_for_day", self._appointments.list_for_day(provider_id, date)
        )
        ledger = BookingLedger.from_appointments(provider_id, date, appointments)
        if ledger.active_count() >= policy.max_appointments_per_day:
            return []

        free = ledger.free_slots(candidates)
        if date == local_now.date():
            elapsed = local_now.hour * 60 + local_now.minute + (1 if local_now.second else 0)
            free = [slot for slot in free if slot.start >= elapsed]

        record_latency(
            _COMPONENT, "free_slots", (time.perf_counter() - started) * 1000, get_correlation_id()
        )
        logger.debug(
            "free_slots_resolved",
            extra={
                "provider_id": provider_id,
                "date": date.isoformat(),
                "candidates": len(candidates),
                "free": len(free),
            },
        )
        return free

    async def create_appointment(self, request: AppointmentRequest, actor: Actor) -> Appointment:
        """Reserva o intervalo solicitado e cria o agendamento em `pending`.

        Raises:
            PermissionDeniedError, NotFoundError, ValidationError,
            BookingWindowError, OutsideAvailabilityError,
            SlotConflictError, DailyLimitReachedError.
        """
        started = time.perf_counter()
        correlation_id = get_correlation_id()
        try:
            appointment = await self._create(request, actor)
        except SchedulingError as exc:
            record_outcome("create_appointment", str(exc.kind), correlation_id)
            log = logger.info if isinstance(exc, SlotConflictError | PolicyError) else logger.warning
            log(
                "appointment_create_rejected",
                extra={
                    "error_kind": str(exc.kind),
                    "provider_id": request.provider_id,
                    "date": request.date.isoformat(),
                },
            )
            raise

        record_outcome("create_appointment", "created", correlation_id)
        record_latency(
            _COMPONENT, "create_appointment", (time.perf_counter() - started) * 1000, correlation_id
        )
        logger.info(
            "appointment_created",
            extra={
                "appointment_id": appointment.id,
                "provider_id": appointment.provider_id,
                "date": appointment.date.isoformat(),
                "start": appointment.time.label(),
            },
        )
        return appointment

    async def _create(self, request: AppointmentRequest, actor: Actor) -> Appointment:
        self._authorization.authorize_booking(actor, request)

        schedule = await self._load_schedule(request.provider_id)
        if not schedule.is_active:
            raise NotFoundError("Provider inativo", provider_id=request.provider_id)
        if not schedule.offers(request.type):
            raise ValidationError(
                f"Provider não oferece atendimento {request.type.value}",
                provider_id=request.provider_id,
                type=request.type.value,
            )

        now = self._clock()
        in_window, _ = self._booking_window(schedule, request.date, now)
        if not in_window:
            raise BookingWindowError(
                "Data fora da janela de agendamento",
                date=request.date.isoformat(),
                advance_booking_days=schedule.session_policy.advance_booking_days,
            )

        day = resolve_day(schedule, request.date)
        if not covers(day, request.time):
            raise OutsideAvailabilityError(
                "Horário fora do expediente do provider",
                date=request.date.isoformat(),
                start=request.time.label(),
            )

        appointment = Appointment.from_request(
            request,
            created_by=actor.actor_id,
            cancellation_policy=schedule.session_policy.cancellation_policy,
            timezone=schedule.timezone,
            now=now,
        )
        if appointment.starts_at <= now:
            raise BookingWindowError(
                "Horário já iniciado", date=request.date.isoformat(), start=request.time.label()
            )

        return await self._storage(
            "insert_if_free",
            self._appointments.insert_if_free(
                appointment, schedule.session_policy.max_appointments_per_day
            ),
        )

    async def change_status(
        self,
        appointment_id: str,
        action: AppointmentAction,
        actor: Actor,
        *,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> Appointment:
        """Aplica confirm/cancel/complete/no_show e persiste com controle de versão."""
        started = time.perf_counter()
        correlation_id = get_correlation_id()
        appointment = await self._load_appointment(appointment_id)
        self._authorization.authorize_action(actor, appointment, action)
        self._check_version(appointment, expected_version)

        try:
            updated = _ACTIONS[action](appointment, actor, reason, self._clock())
        except PolicyError as exc:
            record_outcome("change_status", str(exc.kind), correlation_id, {"action": action.value})
            raise

        saved = await self._storage(
            "update", self._appointments.update(updated, expected_version=appointment.version)
        )
        record_outcome("change_status", saved.status.value, correlation_id, {"action": action.value})
        record_latency(
            _COMPONENT, "change_status", (time.perf_counter() - started) * 1000, correlation_id
        )
        return saved

    async def attach_feedback(
        self,
        appointment_id: str,
        actor: Actor,
        rating: int,
        comment: str | None = None,
        *,
        expected_version: int | None = None,
    ) -> Appointment:
        appointment = await self._load_appointment(appointment_id)
        self._authorization.authorize_read(actor, appointment)
        self._check_version(appointment, expected_version)
        updated = lifecycle.attach_feedback(appointment, actor, rating, comment, self._clock())
        saved = await self._storage(
            "update", self._appointments.update(updated, expected_version=appointment.version)
        )
        logger.info(
            "appointment_feedback_attached",
            extra={"appointment_id": appointment_id, "actor_role": actor.role.value},
        )
        return saved

    @staticmethod
    def _check_version(appointment: Appointment, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != appointment.version:
            raise ConcurrentUpdateError(
                "Agendamento foi alterado por outra requisição",
                appointment_id=appointment.id,
                expected_version=expected_version,
                current_version=appointment.version,
            )

    async def get_appointment(self, appointment_id: str, actor: Actor) -> Appointment:
        appointment = await self._load_appointment(appointment_id)
        self._authorization.authorize_read(actor, appointment)
        return appointment

    async def list_appointments(self, query: AppointmentQuery, actor: Actor) -> list[Appointment]:
        """Listagem delegada; subject e provider só enxergam os próprios."""
        if query.limit < 1 or query.offset < 0:
            raise ValidationError("limit deve ser >= 1 e offset >= 0")
        scoped = self._scope_query(query, actor)
        if scoped.limit > self._list_max_limit:
            scoped = replace(scoped, limit=self._list_max_limit)
        return await self._storage("query", self._appointments.query(scoped))

    @staticmethod
    def _scope_query(query: AppointmentQuery, actor: Actor) -> AppointmentQuery:
        if actor.is_privileged:
            return query
        field = "subject_id" if actor.role is ActorRole.SUBJECT else "provider_id"
        requested = getattr(query, field)
        if requested is not None and requested != actor.actor_id:
            raise PermissionDeniedError(
                "Ator só pode listar os próprios agendamentos", actor_role=actor.role.value
            )
        return replace(query, **{field: actor.actor_id})

    async def get_schedule(self, provider_id: str) -> ProviderSchedule:
        return await self._load_schedule(provider_id)

    async def save_schedule(self, schedule: ProviderSchedule, actor: Actor) -> ProviderSchedule:
        self._authorization.authorize_schedule_change(actor, schedule.provider_id)
        saved = await self._storage("save_schedule", self._providers.save_schedule(schedule))
        logger.info("provider_schedule_saved", extra={"provider_id": schedule.provider_id})
        return saved

    async def upsert_exception(
        self, provider_id: str, exception: AvailabilityException, actor: Actor
    ) -> ProviderSchedule:
        self._authorization.authorize_schedule_change(actor, provider_id)
        saved = await self._storage(
            "upsert_exception", self._providers.upsert_exception(provider_id, exception)
        )
        logger.info(
            "provider_exception_upserted",
            extra={
                "provider_id": provider_id,
                "date": exception.date.isoformat(),
                "is_available": exception.is_available,
            },
        )
        return saved

    async def ping(self) -> bool:
        return await self._storage("ping", self._appointments.ping())


__all__ = ["SchedulingService"]
