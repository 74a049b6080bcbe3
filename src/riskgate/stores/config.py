"""Store factory - builds the three stores for the configured backend."""

import logging
from dataclasses import dataclass
from typing import Optional

from riskgate.common.config import Config, StoreBackend, get_config
from riskgate.common.exceptions import ConfigurationError
from riskgate.stores.base import DeviceRegistry, EventLedger, UserFeatureStore
from riskgate.stores.memory import (
    InMemoryDeviceRegistry,
    InMemoryEventLedger,
    InMemoryUserFeatureStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Stores:
    """The stores one engine instance reads and writes."""
    device_registry: DeviceRegistry
    event_ledger: EventLedger
    feature_store: UserFeatureStore


def create_memory_stores() -> Stores:
    """Fresh, empty in-memory stores."""
    return Stores(
        device_registry=InMemoryDeviceRegistry(),
        event_ledger=InMemoryEventLedger(),
        feature_store=InMemoryUserFeatureStore(),
    )


def create_stores(config: Optional[Config] = None) -> Stores:
    """Factory method to create stores based on configuration.

    Args:
        config: Configuration; the process configuration if not provided

    Returns:
        Configured Stores
    """
    config = config or get_config()

    if config.store_backend == StoreBackend.MEMORY:
        logger.info("Using in-memory stores")
        return create_memory_stores()

    if config.store_backend == StoreBackend.DYNAMODB:
        from riskgate.stores.dynamodb import (
            DynamoDBDeviceRegistry,
            DynamoDBEventLedger,
            DynamoDBUserFeatureStore,
        )

        return Stores(
            device_registry=DynamoDBDeviceRegistry(
                table_name=config.device_registry_table,
                region=config.aws_region,
                aws_profile=config.aws_profile,
            ),
            event_ledger=DynamoDBEventLedger(
                table_name=config.event_ledger_table,
                region=config.aws_region,
                aws_profile=config.aws_profile,
            ),
            feature_store=DynamoDBUserFeatureStore(
                table_name=config.user_features_table,
                region=config.aws_region,
                aws_profile=config.aws_profile,
            ),
        )

    raise ConfigurationError(
        f"Unknown store backend: {config.store_backend}",
        details={"store_backend": str(config.store_backend)},
    )
