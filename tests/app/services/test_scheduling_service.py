"""Testes do SchedulingService sobre stores em memória."""

from __future__ import annotations

import asyncio
import datetime as dt
import random

import pytest

from app.domain.appointment import Appointment, AppointmentRequest, AppointmentType
from app.domain.availability import AvailabilityException, TimeInterval
from app.domain.errors import (
    BookingWindowError,
    CancellationWindowExpiredError,
    ConcurrentUpdateError,
    DailyLimitReachedError,
    NotFoundError,
    OutsideAvailabilityError,
    PermissionDeniedError,
    SlotConflictError,
    ValidationError,
)
from app.infra.stores import MemoryAppointmentStore, MemoryProviderStore
from app.protocols import AppointmentQuery
from app.services import SchedulingService
from app.services.booking_ledger import intervals_overlap
from fsm import AppointmentAction, AppointmentStatus
from tests.fakes.scheduling import (
    MONDAY,
    OTHER_SUBJECT,
    PROVIDER,
    STAFF,
    SUBJECT,
    WEDNESDAY,
    make_request,
    make_schedule,
    make_service,
)
from utils.errors import StorageTimeoutError


def _labels(slots) -> list[str]:
    return [slot.label() for slot in slots]


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _overlap(first: TimeInterval, second: TimeInterval) -> bool:
    return intervals_overlap(first.start, first.end, second.start, second.end)


def _random_requests(seed: int, count: int = 12) -> list[AppointmentRequest]:
    """Pedidos de 30 a 90 min em 08:00-18:00, um subject distinto por pedido."""
    rng = random.Random(seed)
    requests = []
    for index in range(count):
        duration = rng.choice((30, 45, 60, 90))
        start = rng.randrange(8 * 60, 18 * 60 - duration + 1, 5)
        requests.append(
            make_request(_hhmm(start), _hhmm(start + duration), subject_id=f"subj-r{index}")
        )
    return requests


class TestFreeSlots:
    @pytest.mark.asyncio
    async def test_generates_slots_for_open_day(self) -> None:
        service, _, _ = make_service()

        slots = await service.free_slots("prov-1", MONDAY)

        assert _labels(slots) == ["09:00-10:00", "10:15-11:15"]

    @pytest.mark.asyncio
    async def test_booked_slot_is_removed(self) -> None:
        service, _, _ = make_service()
        await service.create_appointment(make_request("09:00", "10:00"), SUBJECT)

        slots = await service.free_slots("prov-1", MONDAY)

        assert _labels(slots) == ["10:15-11:15"]

    @pytest.mark.asyncio
    async def test_custom_duration(self) -> None:
        service, _, _ = make_service()

        slots = await service.free_slots("prov-1", MONDAY, duration_minutes=30)

        assert _labels(slots) == ["09:00-09:30", "09:45-10:15", "10:30-11:00", "11:15-11:45"]

    @pytest.mark.asyncio
    async def test_outside_booking_window_is_empty(self) -> None:
        service, _, _ = make_service()

        assert await service.free_slots("prov-1", dt.date(2026, 2, 27)) == []
        assert await service.free_slots("prov-1", dt.date(2026, 4, 6)) == []

    @pytest.mark.asyncio
    async def test_today_drops_started_slots(self) -> None:
        # Segunda 09:30 local
        now = dt.datetime(2026, 3, 2, 2, 30, tzinfo=dt.UTC)
        service, _, _ = make_service(now=now)

        slots = await service.free_slots("prov-1", MONDAY)

        assert _labels(slots) == ["10:15-11:15"]

    @pytest.mark.asyncio
    async def test_daily_cap_reached_is_empty(self) -> None:
        schedule = make_schedule(
            session_policy={"max_appointments_per_day": 1, "break_between_sessions_minutes": 15}
        )
        service, _, _ = make_service(schedule)
        await service.create_appointment(make_request("09:00", "10:00"), SUBJECT)

        assert await service.free_slots("prov-1", MONDAY) == []

    @pytest.mark.asyncio
    async def test_inactive_provider_is_empty(self) -> None:
        service, _, _ = make_service(make_schedule(is_active=False))
        assert await service.free_slots("prov-1", MONDAY) == []

    @pytest.mark.asyncio
    async def test_exception_closes_day(self) -> None:
        service, _, _ = make_service()
        await service.upsert_exception(
            "prov-1", AvailabilityException(date=MONDAY, reason="congresso"), PROVIDER
        )

        assert await service.free_slots("prov-1", MONDAY) == []

    @pytest.mark.asyncio
    async def test_unknown_provider(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(NotFoundError):
            await service.free_slots("ghost", MONDAY)

    @pytest.mark.asyncio
    async def test_invalid_duration(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(ValidationError):
            await service.free_slots("prov-1", MONDAY, duration_minutes=0)


class TestCreateAppointment:
    @pytest.mark.asyncio
    async def test_creates_pending_with_provider_policy(self) -> None:
        schedule = make_schedule(
            session_policy={"cancellation_policy": {"min_notice_hours": 12}}
        )
        service, store, _ = make_service(schedule)

        appointment = await service.create_appointment(make_request(), SUBJECT)

        assert appointment.status is AppointmentStatus.PENDING
        assert appointment.status_history == ()
        assert appointment.version == 1
        assert appointment.cancellation_policy.min_notice_hours == 12
        assert appointment.timezone == "Asia/Ho_Chi_Minh"
        assert appointment.created_by == "subj-1"
        assert await store.get(appointment.id) == appointment

    @pytest.mark.asyncio
    async def test_concurrent_same_slot_only_one_wins(self) -> None:
        """Duas reservas simultâneas do mesmo horário: uma vence, outra conflita."""
        service, store, _ = make_service()

        results = await asyncio.gather(
            service.create_appointment(make_request("09:00", "10:00"), SUBJECT),
            service.create_appointment(
                make_request("09:00", "10:00", subject_id="subj-2"), OTHER_SUBJECT
            ),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, BaseException)]
        conflicts = [r for r in results if isinstance(r, SlotConflictError)]
        assert len(created) == 1
        assert len(conflicts) == 1
        assert len(await store.list_for_day("prov-1", MONDAY)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", [7, 21, 1234, 2026])
    async def test_concurrent_random_requests_accept_exactly_the_free_ones(
        self, seed: int
    ) -> None:
        """Reservas aleatórias simultâneas: só falha quem sobrepõe um aceito."""
        schedule = make_schedule(
            intervals=(("08:00", "18:00"),),
            session_policy={"max_appointments_per_day": 100},
        )
        service, store, _ = make_service(schedule)
        requests = _random_requests(seed)

        results = await asyncio.gather(
            *(service.create_appointment(r, STAFF) for r in requests), return_exceptions=True
        )

        accepted = [r for r in results if isinstance(r, Appointment)]
        rejected = [
            request
            for request, result in zip(requests, results, strict=True)
            if isinstance(result, SlotConflictError)
        ]
        assert len(accepted) + len(rejected) == len(requests)
        assert accepted

        for index, first in enumerate(accepted):
            for second in accepted[index + 1 :]:
                assert not _overlap(first.time, second.time)

        for request in rejected:
            assert any(_overlap(request.time, a.time) for a in accepted)

        accepted_subjects = {a.subject_id for a in accepted}
        assert accepted_subjects.isdisjoint(r.subject_id for r in rejected)

        for index, request in enumerate(requests):
            others = requests[:index] + requests[index + 1 :]
            if not any(_overlap(request.time, other.time) for other in others):
                assert request.subject_id in accepted_subjects

        stored = [a for a in await store.list_for_day("prov-1", MONDAY) if a.is_active]
        assert {a.id for a in stored} == {a.id for a in accepted}

    @pytest.mark.asyncio
    async def test_concurrent_disjoint_requests_all_succeed(self) -> None:
        """Três pedidos livres e dois que disputam 09:00: só a disputa perde."""
        service, store, _ = make_service()
        requests = [
            make_request("09:00", "10:00", subject_id="subj-a"),
            make_request("09:30", "10:30", subject_id="subj-b"),
            make_request("10:30", "11:00", subject_id="subj-c"),
            make_request("11:00", "11:30", subject_id="subj-d"),
            make_request("11:30", "12:00", subject_id="subj-e"),
        ]

        results = await asyncio.gather(
            *(service.create_appointment(r, STAFF) for r in requests), return_exceptions=True
        )

        outcomes = [isinstance(r, Appointment) for r in results]
        assert outcomes[2:] == [True, True, True]
        assert sorted(outcomes[:2]) == [False, True]
        assert len([a for a in await store.list_for_day("prov-1", MONDAY) if a.is_active]) == 4

    @pytest.mark.asyncio
    async def test_adjacent_bookings_succeed(self) -> None:
        service, _, _ = make_service()

        await service.create_appointment(make_request("09:00", "10:00"), SUBJECT)
        await service.create_appointment(make_request("10:00", "11:00"), SUBJECT)

    @pytest.mark.asyncio
    async def test_cancelled_slot_can_be_rebooked(self) -> None:
        service, _, _ = make_service()
        first = await service.create_appointment(make_request(date=WEDNESDAY), SUBJECT)
        await service.change_status(first.id, AppointmentAction.CANCEL, SUBJECT)

        again = await service.create_appointment(make_request(date=WEDNESDAY), SUBJECT)

        assert again.id != first.id
        assert "09:00-10:00" not in _labels(await service.free_slots("prov-1", WEDNESDAY))

    @pytest.mark.asyncio
    async def test_outside_working_hours(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(OutsideAvailabilityError):
            await service.create_appointment(make_request("11:30", "12:30"), SUBJECT)
        with pytest.raises(OutsideAvailabilityError):
            await service.create_appointment(
                make_request(date=dt.date(2026, 3, 7)), SUBJECT
            )

    @pytest.mark.asyncio
    async def test_booking_window(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(BookingWindowError):
            await service.create_appointment(make_request(date=dt.date(2026, 4, 6)), SUBJECT)
        with pytest.raises(BookingWindowError):
            await service.create_appointment(make_request(date=dt.date(2026, 2, 27)), SUBJECT)

    @pytest.mark.asyncio
    async def test_started_slot_today_is_rejected(self) -> None:
        now = dt.datetime(2026, 3, 2, 2, 30, tzinfo=dt.UTC)
        service, _, _ = make_service(now=now)

        with pytest.raises(BookingWindowError):
            await service.create_appointment(make_request("09:00", "10:00"), SUBJECT)

    @pytest.mark.asyncio
    async def test_daily_limit(self) -> None:
        service, _, _ = make_service(
            make_schedule(session_policy={"max_appointments_per_day": 1})
        )
        await service.create_appointment(make_request("09:00", "10:00"), SUBJECT)

        with pytest.raises(DailyLimitReachedError):
            await service.create_appointment(make_request("11:00", "12:00"), SUBJECT)

    @pytest.mark.asyncio
    async def test_unknown_and_inactive_provider(self) -> None:
        service, _, _ = make_service(make_schedule(is_active=False))
        with pytest.raises(NotFoundError):
            await service.create_appointment(make_request(), SUBJECT)
        with pytest.raises(NotFoundError):
            await service.create_appointment(make_request(provider_id="ghost"), SUBJECT)

    @pytest.mark.asyncio
    async def test_type_not_offered(self) -> None:
        service, _, _ = make_service(make_schedule(offered_types=[AppointmentType.IN_PERSON]))
        with pytest.raises(ValidationError):
            await service.create_appointment(make_request(type="online"), SUBJECT)

    @pytest.mark.asyncio
    async def test_subject_cannot_book_for_another(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(PermissionDeniedError):
            await service.create_appointment(make_request(), OTHER_SUBJECT)


class TestChangeStatus:
    @pytest.mark.asyncio
    async def test_confirm_bumps_version_and_history(self) -> None:
        service, store, _ = make_service()
        created = await service.create_appointment(make_request(), SUBJECT)

        confirmed = await service.change_status(created.id, AppointmentAction.CONFIRM, PROVIDER)

        assert confirmed.status is AppointmentStatus.CONFIRMED
        assert confirmed.version == 2
        assert len(confirmed.status_history) == 1
        assert await store.get(created.id) == confirmed

    @pytest.mark.asyncio
    async def test_full_lifecycle_then_feedback(self) -> None:
        service, _, _ = make_service()
        created = await service.create_appointment(make_request(), SUBJECT)
        await service.change_status(created.id, AppointmentAction.CONFIRM, PROVIDER)
        completed = await service.change_status(created.id, AppointmentAction.COMPLETE, PROVIDER)

        rated = await service.attach_feedback(created.id, SUBJECT, 5, "ajudou muito")

        assert completed.version == 3
        assert rated.version == 4
        assert rated.feedback is not None
        assert rated.feedback.subject_rating == 5
        assert len(rated.status_history) == 2

    @pytest.mark.asyncio
    async def test_stale_expected_version(self) -> None:
        service, _, _ = make_service()
        created = await service.create_appointment(make_request(), SUBJECT)
        await service.change_status(created.id, AppointmentAction.CONFIRM, PROVIDER)

        with pytest.raises(ConcurrentUpdateError):
            await service.change_status(
                created.id, AppointmentAction.COMPLETE, PROVIDER, expected_version=1
            )

    @pytest.mark.asyncio
    async def test_cancel_inside_notice_window(self) -> None:
        """Segunda 09:00 a partir de domingo 12:00: só 21h de antecedência."""
        service, _, _ = make_service()
        created = await service.create_appointment(make_request(), SUBJECT)

        with pytest.raises(CancellationWindowExpiredError):
            await service.change_status(created.id, AppointmentAction.CANCEL, SUBJECT)

    @pytest.mark.asyncio
    async def test_subject_cannot_confirm(self) -> None:
        service, _, _ = make_service()
        created = await service.create_appointment(make_request(), SUBJECT)

        with pytest.raises(PermissionDeniedError):
            await service.change_status(created.id, AppointmentAction.CONFIRM, SUBJECT)

    @pytest.mark.asyncio
    async def test_unknown_appointment(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(NotFoundError):
            await service.change_status("missing", AppointmentAction.CONFIRM, STAFF)


class TestReads:
    @pytest.mark.asyncio
    async def test_get_appointment_requires_participant(self) -> None:
        service, _, _ = make_service()
        created = await service.create_appointment(make_request(), SUBJECT)

        assert (await service.get_appointment(created.id, PROVIDER)).id == created.id
        with pytest.raises(PermissionDeniedError):
            await service.get_appointment(created.id, OTHER_SUBJECT)

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_subject(self) -> None:
        service, _, _ = make_service()
        await service.create_appointment(make_request("09:00", "10:00"), SUBJECT)
        await service.create_appointment(
            make_request("10:15", "11:15", subject_id="subj-2"), OTHER_SUBJECT
        )

        mine = await service.list_appointments(AppointmentQuery(), SUBJECT)
        everything = await service.list_appointments(AppointmentQuery(), STAFF)

        assert [a.subject_id for a in mine] == ["subj-1"]
        assert [a.time.label() for a in everything] == ["09:00-10:00", "10:15-11:15"]

    @pytest.mark.asyncio
    async def test_list_rejects_foreign_filter(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(PermissionDeniedError):
            await service.list_appointments(AppointmentQuery(subject_id="subj-2"), SUBJECT)

    @pytest.mark.asyncio
    async def test_list_limit_is_capped(self) -> None:
        service, _, _ = make_service(
            make_schedule(intervals=(("08:00", "18:00"),)), list_max_limit=2
        )
        for start, end in (("08:00", "09:00"), ("09:15", "10:15"), ("10:30", "11:30")):
            await service.create_appointment(make_request(start, end), SUBJECT)

        page = await service.list_appointments(AppointmentQuery(limit=50), STAFF)
        second = await service.list_appointments(AppointmentQuery(limit=2, offset=2), STAFF)

        assert len(page) == 2
        assert [a.time.label() for a in second] == ["10:30-11:30"]

    @pytest.mark.asyncio
    async def test_list_rejects_invalid_paging(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(ValidationError):
            await service.list_appointments(AppointmentQuery(limit=0), STAFF)

    @pytest.mark.asyncio
    async def test_ping(self) -> None:
        service, _, _ = make_service()
        assert await service.ping() is True


class TestScheduleManagement:
    @pytest.mark.asyncio
    async def test_provider_saves_own_schedule(self) -> None:
        service, _, providers = make_service()
        updated = make_schedule(intervals=(("13:00", "17:00"),))

        await service.save_schedule(updated, PROVIDER)

        assert await providers.get_schedule("prov-1") == updated

    @pytest.mark.asyncio
    async def test_subject_cannot_change_schedule(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(PermissionDeniedError):
            await service.save_schedule(make_schedule(), SUBJECT)
        with pytest.raises(PermissionDeniedError):
            await service.upsert_exception(
                "prov-1", AvailabilityException(date=MONDAY), SUBJECT
            )

    @pytest.mark.asyncio
    async def test_exception_for_unknown_provider(self) -> None:
        service, _, _ = make_service()
        with pytest.raises(NotFoundError):
            await service.upsert_exception("ghost", AvailabilityException(date=MONDAY), STAFF)


class _SlowAppointmentStore(MemoryAppointmentStore):
    async def list_for_day(self, provider_id: str, date: dt.date) -> list[Appointment]:
        await asyncio.sleep(1)
        return await super().list_for_day(provider_id, date)


class _LateAckAppointmentStore(MemoryAppointmentStore):
    """Grava e só depois demora a responder, uma única vez."""

    def __init__(self) -> None:
        super().__init__()
        self._slow = True

    async def insert_if_free(
        self, appointment: Appointment, max_active_per_day: int | None = None
    ) -> Appointment:
        saved = await super().insert_if_free(appointment, max_active_per_day)
        if self._slow:
            self._slow = False
            await asyncio.sleep(1)
        return saved


class TestStorageTimeout:
    @pytest.mark.asyncio
    async def test_slow_store_raises_timeout(self) -> None:
        service = SchedulingService(
            _SlowAppointmentStore(),
            MemoryProviderStore([make_schedule()]),
            storage_timeout_seconds=0.01,
            clock=lambda: dt.datetime(2026, 3, 1, 5, 0, tzinfo=dt.UTC),
        )

        with pytest.raises(StorageTimeoutError):
            await service.free_slots("prov-1", MONDAY)

    @pytest.mark.asyncio
    async def test_retry_after_timeout_returns_committed_booking(self) -> None:
        """Escrita confirmada depois do timeout: o retry com o mesmo id não colide."""
        store = _LateAckAppointmentStore()
        service = SchedulingService(
            store,
            MemoryProviderStore([make_schedule()]),
            storage_timeout_seconds=0.01,
            clock=lambda: dt.datetime(2026, 3, 1, 5, 0, tzinfo=dt.UTC),
        )
        request = make_request("09:00", "10:00", appointment_id="client-key-0001")

        with pytest.raises(StorageTimeoutError):
            await service.create_appointment(request, SUBJECT)
        retried = await service.create_appointment(request, SUBJECT)

        assert retried.id == "client-key-0001"
        assert [item.id for item in await store.list_for_day("prov-1", MONDAY)] == [
            "client-key-0001"
        ]

    @pytest.mark.asyncio
    async def test_retry_without_client_id_collides_with_itself(self) -> None:
        store = _LateAckAppointmentStore()
        service = SchedulingService(
            store,
            MemoryProviderStore([make_schedule()]),
            storage_timeout_seconds=0.01,
            clock=lambda: dt.datetime(2026, 3, 1, 5, 0, tzinfo=dt.UTC),
        )
        request = make_request("09:00", "10:00")

        with pytest.raises(StorageTimeoutError):
            await service.create_appointment(request, SUBJECT)
        with pytest.raises(SlotConflictError):
            await service.create_appointment(request, SUBJECT)
