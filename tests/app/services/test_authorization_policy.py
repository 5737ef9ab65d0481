"""Testes da política de autorização por posse."""

from __future__ import annotations

import pytest

from app.domain.actor import Actor, ActorRole
from app.domain.errors import PermissionDeniedError
from app.protocols import AuthorizationPolicyProtocol
from app.services import OwnershipAuthorizationPolicy
from fsm import AppointmentAction
from tests.fakes.scheduling import (
    OTHER_PROVIDER,
    OTHER_SUBJECT,
    PROVIDER,
    STAFF,
    SUBJECT,
    make_appointment,
    make_request,
)

POLICY = OwnershipAuthorizationPolicy()


class TestOwnershipAuthorizationPolicy:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(POLICY, AuthorizationPolicyProtocol)

    def test_subject_books_for_self_only(self) -> None:
        POLICY.authorize_booking(SUBJECT, make_request())
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_booking(OTHER_SUBJECT, make_request())

    def test_provider_cannot_book(self) -> None:
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_booking(PROVIDER, make_request())

    def test_privileged_actors_book_for_anyone(self) -> None:
        POLICY.authorize_booking(STAFF, make_request())
        POLICY.authorize_booking(Actor(actor_id="cron", role=ActorRole.SYSTEM), make_request())

    def test_subject_may_only_cancel(self) -> None:
        appointment = make_appointment()

        POLICY.authorize_action(SUBJECT, appointment, AppointmentAction.CANCEL)
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_action(SUBJECT, appointment, AppointmentAction.CONFIRM)
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_action(OTHER_SUBJECT, appointment, AppointmentAction.CANCEL)

    def test_provider_acts_on_own_appointments(self) -> None:
        appointment = make_appointment()

        for action in AppointmentAction:
            POLICY.authorize_action(PROVIDER, appointment, action)
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_action(OTHER_PROVIDER, appointment, AppointmentAction.CONFIRM)

    def test_read_limited_to_participants(self) -> None:
        appointment = make_appointment()

        POLICY.authorize_read(SUBJECT, appointment)
        POLICY.authorize_read(PROVIDER, appointment)
        POLICY.authorize_read(STAFF, appointment)
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_read(OTHER_SUBJECT, appointment)

    def test_schedule_change(self) -> None:
        POLICY.authorize_schedule_change(PROVIDER, "prov-1")
        POLICY.authorize_schedule_change(STAFF, "prov-1")
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_schedule_change(OTHER_PROVIDER, "prov-1")
        with pytest.raises(PermissionDeniedError):
            POLICY.authorize_schedule_change(SUBJECT, "prov-1")
