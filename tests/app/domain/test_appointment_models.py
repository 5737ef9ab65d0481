"""Testes dos modelos de agendamento e da taxonomia de erros."""

from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from app.domain.appointment import MeetingPlatform
from app.domain.errors import (
    BookingWindowError,
    ErrorKind,
    PolicyError,
    SchedulingError,
    SlotConflictError,
)
from fsm import AppointmentStatus
from tests.fakes.scheduling import NOW, make_appointment, make_request


class TestAppointmentRequest:
    def test_blank_reason_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_request(reason="   ")

    def test_reason_length_limit(self) -> None:
        with pytest.raises(ValidationError):
            make_request(reason="x" * 501)

    def test_unknown_type_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_request(type="carrier_pigeon")

    def test_identifiers_are_trimmed(self) -> None:
        request = make_request(subject_id="  subj-1  ")
        assert request.subject_id == "subj-1"

    @pytest.mark.parametrize("appointment_id", ["short", "has space in it", "x" * 65])
    def test_client_appointment_id_format(self, appointment_id: str) -> None:
        with pytest.raises(ValidationError):
            make_request(appointment_id=appointment_id)


class TestAppointment:
    def test_from_request_starts_pending_without_history(self) -> None:
        """Criação não gera entrada em status_history."""
        appointment = make_appointment()

        assert appointment.status is AppointmentStatus.PENDING
        assert appointment.status_history == ()
        assert appointment.version == 1
        assert appointment.created_at == NOW
        assert appointment.updated_at == NOW
        assert appointment.created_by == "subj-1"
        assert appointment.is_active

    def test_ids_are_unique(self) -> None:
        assert make_appointment().id != make_appointment().id

    def test_client_id_is_kept(self) -> None:
        assert make_appointment(appointment_id="client-key-0001").id == "client-key-0001"

    def test_online_and_location_info_carried_from_request(self) -> None:
        appointment = make_appointment(
            online_info={"meeting_link": "https://zoom.example.com/j/1", "platform": "zoom"},
            location_info={"address": "Rua A, 10", "room": "3B"},
        )

        assert appointment.online_info is not None
        assert appointment.online_info.platform is MeetingPlatform.ZOOM
        assert appointment.location_info is not None
        assert appointment.location_info.room == "3B"
        assert make_appointment().online_info is None

    def test_same_booking_ignores_id_and_metadata(self) -> None:
        first = make_appointment("09:00", "10:00")

        assert first.same_booking(make_appointment("09:00", "10:00", reason="Outro motivo"))
        assert not first.same_booking(make_appointment("10:00", "11:00"))
        assert not first.same_booking(make_appointment("09:00", "10:00", subject_id="subj-2"))

    def test_starts_at_uses_provider_timezone(self) -> None:
        appointment = make_appointment("09:00", "10:00")

        # 09:00 em UTC+7 = 02:00 UTC
        assert appointment.starts_at == dt.datetime(2026, 3, 2, 2, 0, tzinfo=dt.UTC)
        assert appointment.duration_minutes == 60

    def test_terminal_status_is_not_active(self) -> None:
        assert not make_appointment(status="cancelled").is_active

    def test_json_round_trip_keeps_time_of_day(self) -> None:
        appointment = make_appointment("14:30", "15:15")

        data = appointment.model_dump(mode="json")

        assert data["time"] == {"start": "14:30", "end": "15:15"}
        assert data["status"] == "pending"
        assert type(appointment).model_validate(data) == appointment


class TestSchedulingErrors:
    def test_to_dict_includes_kind_and_details(self) -> None:
        error = SlotConflictError("Horário ocupado", start="09:00-10:00")

        assert error.to_dict() == {
            "error": "slot_conflict",
            "message": "Horário ocupado",
            "details": {"start": "09:00-10:00"},
        }

    def test_to_dict_without_details(self) -> None:
        assert "details" not in SchedulingError("falha").to_dict()

    def test_policy_errors_share_base(self) -> None:
        error = BookingWindowError("fora da janela")
        assert isinstance(error, PolicyError)
        assert error.kind is ErrorKind.BOOKING_WINDOW_VIOLATION
