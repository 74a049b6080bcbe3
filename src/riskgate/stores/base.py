"""Store interfaces - Device Registry, Event Ledger, User Risk Feature Store.

The engine depends only on these abstract shapes; any durable, queryable
store that satisfies them can back a deployment.

Design principles:
- Append/upsert only, nothing is ever deleted by the engine
- Thread-safe operations
- Time windows are half-open: [since, until)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from riskgate.core.types import EventType
from riskgate.data.schemas import DeviceRegistration, RiskEvent, UserRiskFeatures


class DeviceRegistry(ABC):
    """Many-to-many relation between device tokens and users."""

    @abstractmethod
    def upsert(
        self,
        device_token: str,
        user_id: str,
        ua_family: str,
        os_family: str,
        browser_family: str,
        now: datetime,
    ) -> DeviceRegistration:
        """Record that user_id was seen on device_token at `now`.

        Idempotent. Creates the pair on first sighting, otherwise moves
        last_seen_at forward (it never moves backwards).
        """

    @abstractmethod
    def count_distinct_users(self, device_token: str) -> int:
        """Number of distinct users ever registered against this device."""

    @abstractmethod
    def devices_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
    ) -> List[DeviceRegistration]:
        """Devices a user was seen on, optionally only since a time."""


class EventLedger(ABC):
    """Append-only history of scored events."""

    @abstractmethod
    def append(self, event: RiskEvent) -> str:
        """Append an event and return its id.

        Raises:
            StoreError: If the write fails
        """

    @abstractmethod
    def get(self, event_id: str) -> Optional[RiskEvent]:
        """Read an event back by id."""

    @abstractmethod
    def count_by_user_and_type(
        self,
        user_id: str,
        event_type: EventType,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> int:
        """Count a user's events of one type with since <= created_at < until.

        `until` defaults to unbounded.
        """

    @abstractmethod
    def events_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        with_typing: bool = False,
    ) -> List[RiskEvent]:
        """A user's events, newest first."""

    @abstractmethod
    def active_users(self, since: datetime) -> List[str]:
        """Users with at least one event at or after `since`."""


class UserFeatureStore(ABC):
    """Per-user risk aggregates, written by the offline recomputation job."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserRiskFeatures]:
        """Features for a user, or None when no row exists yet."""

    @abstractmethod
    def put(self, features: UserRiskFeatures) -> None:
        """Insert or replace a user's feature row."""
