"""Unit tests for status transition rules."""

from datetime import datetime, timezone

import pytest

from modules.notifications.models import NotificationStatus
from modules.notifications.transitions import (
    RECONCILE_FROM,
    SET_ONCE_FIELDS,
    TERMINAL_STATUSES,
    check_fields,
    merge_transition,
)

S = NotificationStatus
NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestTransitionTables:
    def test_forward_only_reconciliation(self):
        assert RECONCILE_FROM[S.DELIVERED] == {S.SENT}
        assert S.OPENED not in RECONCILE_FROM[S.DELIVERED]
        assert RECONCILE_FROM[S.CLICKED] == {S.SENT, S.DELIVERED, S.OPENED}

    def test_terminal_statuses_are_never_reconciled_from(self):
        for allowed in RECONCILE_FROM.values():
            assert not allowed & TERMINAL_STATUSES

    def test_set_once_fields(self):
        assert "external_id" in SET_ONCE_FIELDS
        assert "error_message" not in SET_ONCE_FIELDS


@pytest.mark.unit
class TestCheckFields:
    def test_accepts_transition_fields(self):
        assert check_fields({"sent_at": NOW, "error_message": None}) == {
            "sent_at": NOW,
            "error_message": None,
        }

    def test_none_is_empty(self):
        assert check_fields(None) == {}

    def test_rejects_other_fields(self):
        with pytest.raises(ValueError, match="retry_count"):
            check_fields({"retry_count": 9})


@pytest.mark.unit
class TestMergeTransition:
    def test_sets_status_and_fields(self, notification_factory):
        original = notification_factory()
        updated = merge_transition(
            original, S.SENT, {"sent_at": NOW, "external_id": "m-1"}, NOW
        )

        assert updated.status == S.SENT
        assert updated.sent_at == NOW
        assert updated.external_id == "m-1"
        assert updated.updated_at == NOW
        assert original.status == S.PENDING

    def test_set_once_fields_are_kept(self, notification_factory):
        first = datetime(2025, 1, 1, tzinfo=timezone.utc)
        original = notification_factory(
            status=S.SENT, external_id="m-1", sent_at=first
        )

        updated = merge_transition(
            original, S.DELIVERED, {"external_id": "m-2", "sent_at": NOW}, NOW
        )

        assert updated.external_id == "m-1"
        assert updated.sent_at == first

    def test_error_message_is_overwritten(self, notification_factory):
        original = notification_factory(error_message="timeout")
        updated = merge_transition(original, S.FAILED, {"error_message": "cancelled"}, NOW)
        assert updated.error_message == "cancelled"
