"""Unit tests for DynamoDBNotificationStore with a mocked DynamoDBClient."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from infrastructure.operations import OperationResult
from modules.notifications.errors import (
    InvalidStateTransition,
    NotFound,
    StoreUnavailableError,
)
from modules.notifications.models import NotificationFilters, NotificationStatus
from modules.notifications.store.dynamodb import (
    DynamoDBNotificationStore,
    EXTERNAL_ID_INDEX,
    USER_CREATED_INDEX,
    format_timestamp,
    item_to_notification,
    notification_to_item,
)
from modules.notifications.transitions import RECONCILE_FROM, SENDABLE

S = NotificationStatus

CONDITION_FAILED = OperationResult.permanent_error(
    "The conditional request failed", error_code="ConditionalCheckFailedException"
)
UNREACHABLE = OperationResult.transient_error(
    "AWS connection error", error_code="CONNECTION_ERROR"
)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return DynamoDBNotificationStore(client=client, table_name="notifications")


@pytest.mark.unit
class TestItemConversion:
    def test_round_trip_keeps_record(self, notification_factory):
        original = notification_factory(
            id="n-1",
            status=S.SENT,
            external_id="m-1",
            retry_count=2,
            data={"name": "Ada", "count": 3},
            sent_at=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
        )

        restored = item_to_notification(notification_to_item(original))

        assert restored.model_dump() == original.model_dump()

    def test_none_values_are_omitted(self, notification_factory):
        item = notification_to_item(notification_factory(id="n-1"))
        assert "external_id" not in item
        assert "sent_at" not in item
        assert item["status"] == {"S": "pending"}
        assert item["retry_count"] == {"N": "0"}

    def test_timestamps_sort_lexicographically(self):
        earlier = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
        later = earlier + timedelta(microseconds=1)
        assert format_timestamp(earlier) < format_timestamp(later)
        assert format_timestamp(earlier).endswith("+00:00")


@pytest.mark.unit
class TestSave:
    def test_create_puts_item_once(self, store, client, spec_factory):
        client.put_item.return_value = OperationResult.success()

        created = store.create(spec_factory())

        args, kwargs = client.put_item.call_args
        assert args == ("notifications",)
        assert kwargs["Item"]["id"] == {"S": created.id}
        assert kwargs["ConditionExpression"] == "attribute_not_exists(#id)"

    def test_unreachable_table(self, store, client, notification_factory):
        client.put_item.return_value = UNREACHABLE
        with pytest.raises(StoreUnavailableError):
            store.save(notification_factory())


@pytest.mark.unit
class TestApplyTransition:
    def test_builds_conditional_update(self, store, client, notification_factory):
        sent_at = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        updated = notification_factory(
            id="n-1", status=S.SENT, external_id="m-1", sent_at=sent_at
        )
        client.update_item.return_value = OperationResult.success(
            data={"Attributes": notification_to_item(updated)}
        )

        result = store.apply_transition(
            "n-1",
            SENDABLE,
            S.SENT,
            {"sent_at": sent_at, "external_id": "m-1", "error_message": None},
        )

        assert result.status == S.SENT
        kwargs = client.update_item.call_args.kwargs
        expression = kwargs["UpdateExpression"]
        assert "#status = :to" in expression
        assert "external_id = if_not_exists(external_id, :external_id)" in expression
        assert "sent_at = if_not_exists(sent_at, :sent_at)" in expression
        assert expression.endswith("REMOVE error_message")
        assert kwargs["ConditionExpression"] == "attribute_exists(#id) AND #status IN (:from0)"
        assert kwargs["ExpressionAttributeValues"][":from0"] == {"S": "pending"}
        assert kwargs["ExpressionAttributeValues"][":to"] == {"S": "sent"}
        assert kwargs["ReturnValues"] == "ALL_NEW"

    def test_from_statuses_become_placeholders(self, store, client, notification_factory):
        client.update_item.return_value = OperationResult.success(
            data={"Attributes": notification_to_item(notification_factory(status=S.CLICKED))}
        )

        store.apply_transition("n-1", RECONCILE_FROM[S.CLICKED], S.CLICKED)

        condition = client.update_item.call_args.kwargs["ConditionExpression"]
        assert condition.endswith("IN (:from0, :from1, :from2)")

    def test_failed_condition_reports_current_status(
        self, store, client, notification_factory
    ):
        client.update_item.return_value = CONDITION_FAILED
        client.get_item.return_value = OperationResult.success(
            data={"Item": notification_to_item(notification_factory(id="n-1", status=S.FAILED))}
        )

        with pytest.raises(InvalidStateTransition) as exc_info:
            store.apply_transition("n-1", SENDABLE, S.SENT)

        assert exc_info.value.current == S.FAILED

    def test_failed_condition_on_missing_record(self, store, client):
        client.update_item.return_value = CONDITION_FAILED
        client.get_item.return_value = OperationResult.success(data={})

        with pytest.raises(NotFound):
            store.apply_transition("missing", SENDABLE, S.SENT)

    def test_unreachable_table(self, store, client):
        client.update_item.return_value = UNREACHABLE
        with pytest.raises(StoreUnavailableError):
            store.apply_transition("n-1", SENDABLE, S.SENT)

    def test_unknown_fields_are_rejected(self, store, client):
        with pytest.raises(ValueError):
            store.apply_transition("n-1", SENDABLE, S.SENT, {"recipient": "x"})
        client.update_item.assert_not_called()


@pytest.mark.unit
class TestReads:
    def test_get_uses_consistent_read(self, store, client, notification_factory):
        client.get_item.return_value = OperationResult.success(
            data={"Item": notification_to_item(notification_factory(id="n-1"))}
        )

        assert store.get("n-1").id == "n-1"
        assert client.get_item.call_args.kwargs["ConsistentRead"] is True

    def test_get_by_external_id_rereads_base_item(
        self, store, client, notification_factory
    ):
        record = notification_factory(id="n-1", status=S.SENT, external_id="m-1")
        client.query.return_value = OperationResult.success(
            data={"Items": [{"id": {"S": "n-1"}, "external_id": {"S": "m-1"}}]}
        )
        client.get_item.return_value = OperationResult.success(
            data={"Item": notification_to_item(record)}
        )

        assert store.get_by_external_id("m-1").status == S.SENT
        assert client.query.call_args.kwargs["IndexName"] == EXTERNAL_ID_INDEX

    def test_get_by_external_id_unknown(self, store, client):
        client.query.return_value = OperationResult.success(data={"Items": []})
        with pytest.raises(NotFound) as exc_info:
            store.get_by_external_id("m-x")
        assert exc_info.value.kind == "external_id"

    def test_query_by_user_uses_index(self, store, client, notification_factory):
        base = datetime(2025, 3, 1, tzinfo=timezone.utc)
        items = [
            notification_to_item(notification_factory(id="a", created_at=base)),
            notification_to_item(
                notification_factory(id="b", created_at=base + timedelta(hours=1))
            ),
            notification_to_item(
                notification_factory(
                    id="c", status=S.FAILED, created_at=base + timedelta(hours=2)
                )
            ),
        ]
        client.query.return_value = OperationResult.success(data={"Items": items})

        results = list(
            store.query(
                NotificationFilters(user_id="user-1", status=S.PENDING, created_from=base)
            )
        )

        assert [n.id for n in results] == ["b", "a"]
        kwargs = client.query.call_args.kwargs
        assert kwargs["IndexName"] == USER_CREATED_INDEX
        assert kwargs["KeyConditionExpression"] == (
            "user_id = :user_id AND created_at >= :created_from"
        )

    def test_query_without_user_scans(self, store, client):
        client.scan.return_value = OperationResult.success(data={"Items": []})
        assert list(store.query(NotificationFilters(status=S.PENDING))) == []
        client.scan.assert_called_once_with("notifications")

    def test_query_unreachable(self, store, client):
        client.scan.return_value = UNREACHABLE
        with pytest.raises(StoreUnavailableError):
            list(store.query(NotificationFilters()))


@pytest.mark.unit
class TestIncrementRetry:
    def test_returns_new_count(self, store, client):
        client.update_item.return_value = OperationResult.success(
            data={"Attributes": {"retry_count": {"N": "2"}, "error_message": {"S": "x"}}}
        )

        assert store.increment_retry("n-1", "timeout") == 2
        kwargs = client.update_item.call_args.kwargs
        assert kwargs["ConditionExpression"] == "attribute_exists(#id) AND #status = :pending"
        assert "error_message = :error_message" in kwargs["UpdateExpression"]

    def test_not_pending(self, store, client, notification_factory):
        client.update_item.return_value = CONDITION_FAILED
        client.get_item.return_value = OperationResult.success(
            data={"Item": notification_to_item(notification_factory(id="n-1", status=S.SENT))}
        )

        with pytest.raises(InvalidStateTransition) as exc_info:
            store.increment_retry("n-1", "late")

        assert exc_info.value.reason == "retry count only changes while pending"


@pytest.mark.unit
class TestMaintenance:
    def test_delete_older_than(self, store, client):
        client.scan.return_value = OperationResult.success(
            data={"Items": [{"id": {"S": "a"}}, {"id": {"S": "b"}}]}
        )
        client.delete_item.side_effect = [OperationResult.success(), UNREACHABLE]

        deleted = store.delete_older_than(datetime(2025, 1, 1, tzinfo=timezone.utc))

        assert deleted == 1
        assert client.scan.call_args.kwargs["FilterExpression"] == "created_at < :cutoff"

    def test_health_check(self, store, client):
        client.describe_table.return_value = OperationResult.success(data={"Table": {}})
        result = store.health_check()
        assert result.is_success
        assert result.data["backend"] == "dynamodb"

    def test_health_check_failure(self, store, client):
        client.describe_table.return_value = UNREACHABLE
        assert not store.health_check().is_success
