"""Stores - device registry, event ledger and user feature store.

Components:
- DeviceRegistry / EventLedger / UserFeatureStore: abstract interfaces
- InMemory*: thread-safe process-local backends
- DynamoDB*: boto3-backed durable backends
- create_stores: factory for the configured backend
"""

from riskgate.stores.base import DeviceRegistry, EventLedger, UserFeatureStore
from riskgate.stores.memory import (
    InMemoryDeviceRegistry,
    InMemoryEventLedger,
    InMemoryUserFeatureStore,
)
from riskgate.stores.config import Stores, create_memory_stores, create_stores

__all__ = [
    "DeviceRegistry",
    "EventLedger",
    "UserFeatureStore",
    "InMemoryDeviceRegistry",
    "InMemoryEventLedger",
    "InMemoryUserFeatureStore",
    "Stores",
    "create_memory_stores",
    "create_stores",
]
