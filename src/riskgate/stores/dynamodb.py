"""DynamoDB stores for the device registry, event ledger and user features.

Table layouts:

    device registry   HASH device_token, RANGE user_id
                      GSI user_id-index (HASH user_id)
    event ledger      HASH pk = "<user_id>#<event_type>", RANGE sk = "<created_at>#<event_id>"
                      GSI event_id-index (HASH event_id)
                      GSI user_id-created_at-index (HASH user_id, RANGE created_at)
    user features     HASH user_id

Timestamps are stored as fixed-width UTC strings so lexical order is time
order, which lets velocity counts run as a single key-condition query.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from riskgate.common.constants import DataConstants
from riskgate.common.exceptions import StoreError
from riskgate.core.types import EventType
from riskgate.data.schemas import DeviceRegistration, RiskEvent, UserRiskFeatures
from riskgate.stores.base import DeviceRegistry, EventLedger, UserFeatureStore

logger = logging.getLogger(__name__)


DEFAULT_REGION = "us-east-1"


def format_timestamp(value: datetime) -> str:
    """Render a datetime as a sortable UTC string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(DataConstants.TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, DataConstants.TIMESTAMP_FORMAT).replace(
        tzinfo=timezone.utc
    )


def _dynamodb_resource(region: str, aws_profile: Optional[str]):
    if aws_profile:
        session = boto3.Session(profile_name=aws_profile)
        return session.resource("dynamodb", region_name=region)
    return boto3.resource("dynamodb", region_name=region)


def _paginate(operation, **kwargs) -> Iterator[Dict[str, Any]]:
    """Yield every page of a query/scan, following LastEvaluatedKey."""
    while True:
        response = operation(**kwargs)
        yield response
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return
        kwargs["ExclusiveStartKey"] = last_key


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class _DynamoDBTable:
    """Shared table wiring."""

    store_name = "dynamodb"

    def __init__(
        self,
        table_name: str,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
    ):
        if not table_name:
            raise ValueError(f"{self.store_name} table name required")
        self.table_name = table_name
        self.region = region or DEFAULT_REGION
        self.dynamodb = _dynamodb_resource(self.region, aws_profile)
        self.table = self.dynamodb.Table(self.table_name)
        logger.info(f"DynamoDB {self.store_name} initialized: {self.table_name} ({self.region})")

    def _fail(self, operation: str, error: ClientError) -> StoreError:
        logger.error(f"{self.store_name} {operation} failed: {error}")
        return StoreError(
            f"{operation} failed",
            store_name=self.store_name,
            details={"table": self.table_name, "error": str(error)},
        )


class DynamoDBDeviceRegistry(_DynamoDBTable, DeviceRegistry):
    """Device registry table keyed by (device_token, user_id)."""

    store_name = "device_registry"
    USER_INDEX = "user_id-index"

    def _to_registration(self, item: Dict[str, Any]) -> DeviceRegistration:
        return DeviceRegistration(
            device_token=item["device_token"],
            user_id=item["user_id"],
            last_seen_at=parse_timestamp(item["last_seen_at"]),
            ua_family=item.get("ua_family", "unknown"),
            os_family=item.get("os_family", "unknown"),
            browser_family=item.get("browser_family", "unknown"),
        )

    def upsert(
        self,
        device_token: str,
        user_id: str,
        ua_family: str,
        os_family: str,
        browser_family: str,
        now: datetime,
    ) -> DeviceRegistration:
        seen_at = format_timestamp(now)
        try:
            response = self.table.update_item(
                Key={"device_token": device_token, "user_id": user_id},
                UpdateExpression=(
                    "SET last_seen_at = :now, ua_family = :ua, "
                    "os_family = :os, browser_family = :browser"
                ),
                # Last writer wins, but never move last_seen_at backwards
                ConditionExpression="attribute_not_exists(last_seen_at) OR last_seen_at < :now",
                ExpressionAttributeValues={
                    ":now": seen_at,
                    ":ua": ua_family,
                    ":os": os_family,
                    ":browser": browser_family,
                },
                ReturnValues="ALL_NEW",
            )
            return self._to_registration(response["Attributes"])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                current = self.table.get_item(
                    Key={"device_token": device_token, "user_id": user_id}
                ).get("Item")
                if current:
                    return self._to_registration(current)
            raise self._fail("upsert", e)

    def count_distinct_users(self, device_token: str) -> int:
        try:
            return sum(
                page.get("Count", 0)
                for page in _paginate(
                    self.table.query,
                    KeyConditionExpression=Key("device_token").eq(device_token),
                    Select="COUNT",
                )
            )
        except ClientError as e:
            raise self._fail("count_distinct_users", e)

    def devices_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
    ) -> List[DeviceRegistration]:
        try:
            items = [
                item
                for page in _paginate(
                    self.table.query,
                    IndexName=self.USER_INDEX,
                    KeyConditionExpression=Key("user_id").eq(user_id),
                )
                for item in page.get("Items", [])
            ]
        except ClientError as e:
            raise self._fail("devices_for_user", e)

        registrations = [self._to_registration(item) for item in items]
        if since is not None:
            registrations = [r for r in registrations if r.last_seen_at >= since]
        return registrations


class DynamoDBEventLedger(_DynamoDBTable, EventLedger):
    """Append-only event table with a velocity-friendly key layout."""

    store_name = "event_ledger"
    EVENT_ID_INDEX = "event_id-index"
    USER_TIME_INDEX = "user_id-created_at-index"

    @staticmethod
    def partition_key(user_id: str, event_type: EventType) -> str:
        return f"{user_id}#{EventType(event_type).value}"

    def append(self, event: RiskEvent) -> str:
        created_at = format_timestamp(event.created_at)
        item = {
            "pk": self.partition_key(event.user_id, event.event_type),
            "sk": f"{created_at}#{event.event_id}",
            "event_id": event.event_id,
            "user_id": event.user_id,
            "created_at": created_at,
            "has_typing": event.typing_features is not None,
            "payload": event.model_dump_json(),
        }
        try:
            self.table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(pk)",
            )
        except ClientError as e:
            raise self._fail("append", e)
        return event.event_id

    def get(self, event_id: str) -> Optional[RiskEvent]:
        try:
            response = self.table.query(
                IndexName=self.EVENT_ID_INDEX,
                KeyConditionExpression=Key("event_id").eq(event_id),
                Limit=1,
            )
        except ClientError as e:
            raise self._fail("get", e)

        items = response.get("Items", [])
        if not items:
            return None
        return RiskEvent.model_validate_json(items[0]["payload"])

    def count_by_user_and_type(
        self,
        user_id: str,
        event_type: EventType,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> int:
        # Sort keys carry a "#<event_id>" suffix, so BETWEEN since AND until
        # includes events at `since` and excludes events at `until`.
        sort_condition = (
            Key("sk").between(format_timestamp(since), format_timestamp(until))
            if until is not None
            else Key("sk").gte(format_timestamp(since))
        )
        try:
            return sum(
                page.get("Count", 0)
                for page in _paginate(
                    self.table.query,
                    KeyConditionExpression=(
                        Key("pk").eq(self.partition_key(user_id, event_type))
                        & sort_condition
                    ),
                    Select="COUNT",
                )
            )
        except ClientError as e:
            raise self._fail("count_by_user_and_type", e)

    def events_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        with_typing: bool = False,
    ) -> List[RiskEvent]:
        key_condition = Key("user_id").eq(user_id)
        if since is not None:
            key_condition = key_condition & Key("created_at").gte(format_timestamp(since))

        query_args: Dict[str, Any] = {
            "IndexName": self.USER_TIME_INDEX,
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": False,
        }
        if with_typing:
            query_args["FilterExpression"] = Attr("has_typing").eq(True)

        events: List[RiskEvent] = []
        try:
            for page in _paginate(self.table.query, **query_args):
                for item in page.get("Items", []):
                    events.append(RiskEvent.model_validate_json(item["payload"]))
                    if limit is not None and len(events) >= limit:
                        return events
        except ClientError as e:
            raise self._fail("events_for_user", e)
        return events

    def active_users(self, since: datetime) -> List[str]:
        users = set()
        try:
            for page in _paginate(
                self.table.scan,
                FilterExpression=Attr("created_at").gte(format_timestamp(since)),
                ProjectionExpression="user_id",
            ):
                users.update(item["user_id"] for item in page.get("Items", []))
        except ClientError as e:
            raise self._fail("active_users", e)
        return sorted(users)


class DynamoDBUserFeatureStore(_DynamoDBTable, UserFeatureStore):
    """User feature rows keyed by user_id."""

    store_name = "user_features"

    def get(self, user_id: str) -> Optional[UserRiskFeatures]:
        try:
            item = self.table.get_item(Key={"user_id": user_id}).get("Item")
        except ClientError as e:
            raise self._fail("get", e)

        if not item:
            return None
        return UserRiskFeatures.model_validate(
            {key: _from_dynamo(value) for key, value in item.items()}
        )

    def put(self, features: UserRiskFeatures) -> None:
        item = {
            key: _to_dynamo(value)
            for key, value in features.model_dump(mode="json").items()
            if value is not None
        }
        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            raise self._fail("put", e)
