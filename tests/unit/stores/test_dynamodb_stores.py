"""Unit tests for the DynamoDB stores (boto3 table mocked)."""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from riskgate.common.exceptions import StoreError
from riskgate.core.types import EventType
from riskgate.data.schemas import UserRiskFeatures
from riskgate.stores.dynamodb import (
    DynamoDBDeviceRegistry,
    DynamoDBEventLedger,
    DynamoDBUserFeatureStore,
    format_timestamp,
    parse_timestamp,
)

TOKEN = "device_token_aaaaaaaaaaaaaaaa"


def _client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def mock_table():
    """Create mock DynamoDB table."""
    return MagicMock()


def _build(store_class, mock_table):
    with patch("boto3.resource") as mock_resource:
        mock_resource.return_value.Table.return_value = mock_table
        store = store_class(table_name="test-table")
    store.table = mock_table
    return store


class TestTimestamps:
    """Tests for sortable timestamp encoding."""

    def test_round_trip(self, now):
        assert parse_timestamp(format_timestamp(now)) == now

    def test_naive_is_treated_as_utc(self):
        naive = datetime(2026, 1, 28, 14, 30)

        assert format_timestamp(naive) == "2026-01-28T14:30:00.000000Z"

    def test_lexical_order_is_time_order(self, now):
        earlier = format_timestamp(now - timedelta(microseconds=1))

        assert earlier < format_timestamp(now)


class TestDynamoDBDeviceRegistry:
    """Tests for DynamoDBDeviceRegistry."""

    @pytest.fixture
    def registry(self, mock_table):
        return _build(DynamoDBDeviceRegistry, mock_table)

    def test_requires_table_name(self):
        with patch("boto3.resource"):
            with pytest.raises(ValueError):
                DynamoDBDeviceRegistry(table_name="")

    def test_upsert_is_conditional_update(self, registry, mock_table, now):
        mock_table.update_item.return_value = {
            "Attributes": {
                "device_token": TOKEN,
                "user_id": "user_a",
                "last_seen_at": format_timestamp(now),
                "ua_family": "desktop",
                "os_family": "macos",
                "browser_family": "safari",
            }
        }

        registration = registry.upsert(TOKEN, "user_a", "desktop", "macos", "safari", now)

        kwargs = mock_table.update_item.call_args[1]
        assert kwargs["Key"] == {"device_token": TOKEN, "user_id": "user_a"}
        assert "last_seen_at < :now" in kwargs["ConditionExpression"]
        assert kwargs["ExpressionAttributeValues"][":now"] == format_timestamp(now)
        assert registration.last_seen_at == now

    def test_stale_upsert_returns_current_row(self, registry, mock_table, now):
        mock_table.update_item.side_effect = _client_error("ConditionalCheckFailedException")
        mock_table.get_item.return_value = {
            "Item": {
                "device_token": TOKEN,
                "user_id": "user_a",
                "last_seen_at": format_timestamp(now),
            }
        }

        registration = registry.upsert(
            TOKEN, "user_a", "mobile", "ios", "safari", now - timedelta(hours=1)
        )

        assert registration.last_seen_at == now
        assert registration.ua_family == "unknown"

    def test_upsert_failure_raises_store_error(self, registry, mock_table, now):
        mock_table.update_item.side_effect = _client_error("ProvisionedThroughputExceededException")

        with pytest.raises(StoreError) as exc_info:
            registry.upsert(TOKEN, "user_a", "desktop", "macos", "safari", now)

        assert exc_info.value.store_name == "device_registry"

    def test_count_distinct_users_follows_pages(self, registry, mock_table):
        mock_table.query.side_effect = [
            {"Count": 3, "LastEvaluatedKey": {"device_token": TOKEN, "user_id": "c"}},
            {"Count": 2},
        ]

        assert registry.count_distinct_users(TOKEN) == 5
        second_call = mock_table.query.call_args_list[1][1]
        assert second_call["ExclusiveStartKey"] == {"device_token": TOKEN, "user_id": "c"}
        assert second_call["Select"] == "COUNT"

    def test_devices_for_user_uses_index(self, registry, mock_table, now):
        mock_table.query.return_value = {
            "Items": [{
                "device_token": TOKEN,
                "user_id": "user_a",
                "last_seen_at": format_timestamp(now),
            }]
        }

        devices = registry.devices_for_user("user_a")

        assert mock_table.query.call_args[1]["IndexName"] == "user_id-index"
        assert [d.device_token for d in devices] == [TOKEN]


class TestDynamoDBEventLedger:
    """Tests for DynamoDBEventLedger."""

    @pytest.fixture
    def ledger(self, mock_table):
        return _build(DynamoDBEventLedger, mock_table)

    def test_append_writes_keyed_item(self, ledger, mock_table, make_event, now):
        event = make_event()

        event_id = ledger.append(event)

        kwargs = mock_table.put_item.call_args[1]
        item = kwargs["Item"]
        assert event_id == event.event_id
        assert item["pk"] == "user_001#login"
        assert item["sk"] == f"{format_timestamp(now)}#{event.event_id}"
        assert item["has_typing"] is False
        assert json.loads(item["payload"])["reasons"] == ["normal_behavior"]
        assert kwargs["ConditionExpression"] == "attribute_not_exists(pk)"

    def test_append_failure_raises_store_error(self, ledger, mock_table, make_event):
        mock_table.put_item.side_effect = _client_error("InternalServerError")

        with pytest.raises(StoreError):
            ledger.append(make_event())

    def test_get_restores_event(self, ledger, mock_table, make_event):
        event = make_event()
        mock_table.query.return_value = {"Items": [{"payload": event.model_dump_json()}]}

        restored = ledger.get(event.event_id)

        assert restored == event
        assert mock_table.query.call_args[1]["IndexName"] == "event_id-index"

    def test_get_missing(self, ledger, mock_table):
        mock_table.query.return_value = {"Items": []}

        assert ledger.get("rev_missing") is None

    def test_count_queries_partition(self, ledger, mock_table, now):
        mock_table.query.return_value = {"Count": 4}

        count = ledger.count_by_user_and_type(
            "user_001", EventType.PAYMENT, since=now - timedelta(minutes=10), until=now
        )

        assert count == 4
        assert mock_table.query.call_args[1]["Select"] == "COUNT"

    def test_count_failure_raises_store_error(self, ledger, mock_table, now):
        mock_table.query.side_effect = _client_error("ThrottlingException")

        with pytest.raises(StoreError):
            ledger.count_by_user_and_type("user_001", EventType.LOGIN, since=now)

    def test_events_for_user_respects_limit(self, ledger, mock_table, make_event, now):
        events = [make_event(created_at=now - timedelta(minutes=i)) for i in range(3)]
        mock_table.query.return_value = {"Items": [{"payload": e.model_dump_json()} for e in events]}

        found = ledger.events_for_user("user_001", limit=2, with_typing=True)

        kwargs = mock_table.query.call_args[1]
        assert len(found) == 2
        assert kwargs["ScanIndexForward"] is False
        assert kwargs["IndexName"] == "user_id-created_at-index"
        assert "FilterExpression" in kwargs

    def test_active_users_deduplicates(self, ledger, mock_table, now):
        mock_table.scan.return_value = {
            "Items": [{"user_id": "b"}, {"user_id": "a"}, {"user_id": "b"}]
        }

        assert ledger.active_users(now - timedelta(days=30)) == ["a", "b"]


class TestDynamoDBUserFeatureStore:
    """Tests for DynamoDBUserFeatureStore."""

    @pytest.fixture
    def feature_store(self, mock_table):
        return _build(DynamoDBUserFeatureStore, mock_table)

    def test_put_converts_floats(self, feature_store, mock_table):
        feature_store.put(UserRiskFeatures(
            user_id="user_a",
            account_age_days=12,
            avg_typing_dwell=98.5,
        ))

        item = mock_table.put_item.call_args[1]["Item"]
        assert item["avg_typing_dwell"] == Decimal("98.5")
        assert "std_typing_dwell" not in item

    def test_get_converts_decimals(self, feature_store, mock_table):
        mock_table.get_item.return_value = {
            "Item": {
                "user_id": "user_a",
                "account_age_days": Decimal("400"),
                "device_degree": Decimal("2"),
                "std_typing_dwell": Decimal("14.5"),
                "typing_baseline_count": Decimal("37"),
                "last_computed_at": "2026-01-28T03:00:00Z",
            }
        }

        features = feature_store.get("user_a")

        assert features.account_age_days == 400
        assert features.device_degree == 2
        assert features.std_typing_dwell == 14.5
        assert features.last_computed_at == datetime(2026, 1, 28, 3, 0, tzinfo=timezone.utc)

    def test_get_missing(self, feature_store, mock_table):
        mock_table.get_item.return_value = {}

        assert feature_store.get("nobody") is None
