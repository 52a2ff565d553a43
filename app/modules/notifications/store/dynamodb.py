"""DynamoDB-backed notification store for multi-instance deployments."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import json
from typing import Any, Dict, Iterable, Iterator, List, Optional

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer  # type: ignore

from infrastructure.clients.aws import DynamoDBClient
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.notifications.errors import (
    InvalidStateTransition,
    NotFound,
    StoreUnavailableError,
)
from modules.notifications.models import (
    Notification,
    NotificationFilters,
    NotificationSpec,
    NotificationStatus,
    utc_now,
)
from modules.notifications.transitions import SET_ONCE_FIELDS, check_fields
from modules.notifications.validation import build_notification

logger = get_module_logger()

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
EXTERNAL_ID_INDEX = "external_id-index"
USER_CREATED_INDEX = "user_id-created_at-index"

_DATETIME_FIELDS = (
    "scheduled_at",
    "sent_at",
    "delivered_at",
    "opened_at",
    "clicked_at",
    "created_at",
    "updated_at",
)

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO string; sorts lexicographically in key conditions."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _to_attribute(value: Any) -> Dict[str, Any]:
    if isinstance(value, datetime):
        value = format_timestamp(value)
    elif isinstance(value, Enum):
        value = value.value
    return _serializer.serialize(value)


def notification_to_item(notification: Notification) -> Dict[str, Any]:
    """Convert a record to DynamoDB attribute format. None values are omitted."""
    raw = notification.model_dump(mode="json")
    raw["data"] = json.dumps(notification.data)
    for name in _DATETIME_FIELDS:
        value = getattr(notification, name)
        raw[name] = format_timestamp(value) if value is not None else None
    return {key: _serializer.serialize(value) for key, value in raw.items() if value is not None}


def item_to_notification(item: Dict[str, Any]) -> Notification:
    """Convert a DynamoDB item back into a Notification."""
    raw = {key: _deserializer.deserialize(value) for key, value in item.items()}
    for key, value in raw.items():
        if isinstance(value, Decimal):
            raw[key] = int(value)
    if isinstance(raw.get("data"), str):
        raw["data"] = json.loads(raw["data"])
    return Notification.model_validate(raw)


class DynamoDBNotificationStore:
    """Notification store on a DynamoDB table.

    Transitions are single ``UpdateItem`` calls with a ``ConditionExpression``
    on ``status``, so concurrent writers across instances serialize in
    DynamoDB. Set-once fields are written with ``if_not_exists``.

    Table Schema:
        PK: id (String)
        GSI: external_id-index (external_id), sparse
        GSI: user_id-created_at-index (user_id + created_at)

    Args:
        client: DynamoDBClient returning OperationResult
        table_name: DynamoDB table name
    """

    def __init__(self, client: DynamoDBClient, table_name: str):
        self.client = client
        self.table_name = table_name

        logger.info("dynamodb_notification_store_initialized", table_name=table_name)

    def _unavailable(self, operation: str, result: OperationResult) -> StoreUnavailableError:
        logger.error(
            "notification_store_unavailable",
            operation=operation,
            table_name=self.table_name,
            error=result.message,
            error_code=result.error_code,
        )
        return StoreUnavailableError(
            f"DynamoDB {operation} failed: {result.error_code or result.message}"
        )

    def create(self, spec: NotificationSpec) -> Notification:
        notification = build_notification(spec)
        self.save(notification)
        return notification

    def save(self, notification: Notification) -> None:
        result = self.client.put_item(
            self.table_name,
            Item=notification_to_item(notification),
            ConditionExpression="attribute_not_exists(#id)",
            ExpressionAttributeNames={"#id": "id"},
        )
        if not result.is_success:
            raise self._unavailable("put_item", result)

        logger.debug(
            "notification_persisted",
            notification_id=notification.id,
            type=notification.type.value,
        )

    def apply_transition(
        self,
        notification_id: str,
        from_statuses: Iterable[NotificationStatus],
        to_status: NotificationStatus,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        allowed = sorted(status.value for status in from_statuses)
        fields = check_fields(fields)
        if not allowed:
            raise InvalidStateTransition(notification_id, None, to_status)

        names = {"#id": "id", "#status": "status"}
        values: Dict[str, Any] = {
            ":to": _to_attribute(to_status),
            ":now": _to_attribute(utc_now()),
        }
        set_clauses = ["#status = :to", "updated_at = :now"]
        remove_clauses: List[str] = []

        for name, value in sorted(fields.items()):
            if value is None:
                if name not in SET_ONCE_FIELDS:
                    remove_clauses.append(name)
                continue
            values[f":{name}"] = _to_attribute(value)
            if name in SET_ONCE_FIELDS:
                set_clauses.append(f"{name} = if_not_exists({name}, :{name})")
            else:
                set_clauses.append(f"{name} = :{name}")

        placeholders = []
        for index, status in enumerate(allowed):
            values[f":from{index}"] = _to_attribute(status)
            placeholders.append(f":from{index}")

        update_expression = "SET " + ", ".join(set_clauses)
        if remove_clauses:
            update_expression += " REMOVE " + ", ".join(remove_clauses)

        result = self.client.update_item(
            self.table_name,
            Key={"id": _to_attribute(notification_id)},
            UpdateExpression=update_expression,
            ConditionExpression=(
                f"attribute_exists(#id) AND #status IN ({', '.join(placeholders)})"
            ),
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )

        if result.is_success:
            return item_to_notification(result.data["Attributes"])

        if result.error_code == CONDITIONAL_CHECK_FAILED:
            current = self.get(notification_id)
            raise InvalidStateTransition(notification_id, current.status, to_status)

        raise self._unavailable("update_item", result)

    def get(self, notification_id: str) -> Notification:
        result = self.client.get_item(
            self.table_name,
            Key={"id": _to_attribute(notification_id)},
            ConsistentRead=True,
        )
        if not result.is_success:
            raise self._unavailable("get_item", result)

        item = (result.data or {}).get("Item")
        if not item:
            raise NotFound(notification_id)
        return item_to_notification(item)

    def get_by_external_id(self, external_id: str) -> Notification:
        result = self.client.query(
            self.table_name,
            KeyConditionExpression="external_id = :external_id",
            IndexName=EXTERNAL_ID_INDEX,
            ExpressionAttributeValues={":external_id": _to_attribute(external_id)},
        )
        if not result.is_success:
            raise self._unavailable("query", result)

        items = (result.data or {}).get("Items", [])
        if not items:
            raise NotFound(external_id, kind="external_id")
        # The GSI is eventually consistent; re-read the base item.
        return self.get(_deserializer.deserialize(items[0]["id"]))

    def query(self, filters: NotificationFilters) -> Iterator[Notification]:
        if filters.user_id is not None:
            key_condition = "user_id = :user_id"
            values: Dict[str, Any] = {":user_id": _to_attribute(filters.user_id)}
            if filters.created_from is not None and filters.created_to is not None:
                key_condition += " AND created_at BETWEEN :created_from AND :created_to"
                values[":created_from"] = _to_attribute(filters.created_from)
                values[":created_to"] = _to_attribute(filters.created_to)
            elif filters.created_from is not None:
                key_condition += " AND created_at >= :created_from"
                values[":created_from"] = _to_attribute(filters.created_from)
            elif filters.created_to is not None:
                key_condition += " AND created_at <= :created_to"
                values[":created_to"] = _to_attribute(filters.created_to)

            result = self.client.query(
                self.table_name,
                KeyConditionExpression=key_condition,
                IndexName=USER_CREATED_INDEX,
                ExpressionAttributeValues=values,
            )
            operation = "query"
        else:
            result = self.client.scan(self.table_name)
            operation = "scan"

        if not result.is_success:
            raise self._unavailable(operation, result)

        records = [
            item_to_notification(item) for item in (result.data or {}).get("Items", [])
        ]
        records = [record for record in records if filters.matches(record)]
        records.sort(key=lambda n: (n.created_at, n.id), reverse=True)
        yield from records

    def increment_retry(
        self, notification_id: str, error_message: Optional[str] = None
    ) -> int:
        values: Dict[str, Any] = {
            ":one": _to_attribute(1),
            ":pending": _to_attribute(NotificationStatus.PENDING),
            ":now": _to_attribute(utc_now()),
        }
        update_expression = "SET retry_count = retry_count + :one, updated_at = :now"
        if error_message is not None:
            values[":error_message"] = _to_attribute(error_message)
            update_expression += ", error_message = :error_message"
        else:
            update_expression += " REMOVE error_message"

        result = self.client.update_item(
            self.table_name,
            Key={"id": _to_attribute(notification_id)},
            UpdateExpression=update_expression,
            ConditionExpression="attribute_exists(#id) AND #status = :pending",
            ExpressionAttributeNames={"#id": "id", "#status": "status"},
            ExpressionAttributeValues=values,
            ReturnValues="UPDATED_NEW",
        )

        if result.is_success:
            attributes = result.data["Attributes"]
            return int(_deserializer.deserialize(attributes["retry_count"]))

        if result.error_code == CONDITIONAL_CHECK_FAILED:
            current = self.get(notification_id)
            raise InvalidStateTransition(
                notification_id,
                current.status,
                current.status,
                reason="retry count only changes while pending",
            )

        raise self._unavailable("update_item", result)

    def delete_older_than(self, cutoff: datetime) -> int:
        result = self.client.scan(
            self.table_name,
            FilterExpression="created_at < :cutoff",
            ProjectionExpression="#id",
            ExpressionAttributeNames={"#id": "id"},
            ExpressionAttributeValues={":cutoff": _to_attribute(cutoff)},
        )
        if not result.is_success:
            raise self._unavailable("scan", result)

        deleted = 0
        for item in (result.data or {}).get("Items", []):
            delete_result = self.client.delete_item(self.table_name, Key={"id": item["id"]})
            if delete_result.is_success:
                deleted += 1
            else:
                logger.warning(
                    "notification_delete_failed",
                    notification_id=_deserializer.deserialize(item["id"]),
                    error=delete_result.message,
                )
        return deleted

    def health_check(self) -> OperationResult:
        result = self.client.describe_table(self.table_name)
        if result.is_success:
            return OperationResult.success(
                data={"backend": "dynamodb", "table_name": self.table_name},
                message="DynamoDB store available",
            )
        return result
