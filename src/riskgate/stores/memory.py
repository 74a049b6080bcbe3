"""In-memory stores - thread-safe, process-local backends.

Used by tests and single-process deployments. Velocity counts are served
from a per-(user, event_type) sorted timestamp index so each count is two
binary searches.
"""

import bisect
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from riskgate.common.exceptions import StoreError
from riskgate.core.types import EventType
from riskgate.data.schemas import DeviceRegistration, RiskEvent, UserRiskFeatures
from riskgate.stores.base import DeviceRegistry, EventLedger, UserFeatureStore


class InMemoryDeviceRegistry(DeviceRegistry):
    """Device registry held in a dict of dicts."""

    def __init__(self):
        self._lock = threading.Lock()
        # device_token -> user_id -> registration
        self._devices: Dict[str, Dict[str, DeviceRegistration]] = {}

    def upsert(
        self,
        device_token: str,
        user_id: str,
        ua_family: str,
        os_family: str,
        browser_family: str,
        now: datetime,
    ) -> DeviceRegistration:
        with self._lock:
            users = self._devices.setdefault(device_token, {})
            current = users.get(user_id)
            if current is not None and current.last_seen_at >= now:
                return current

            registration = DeviceRegistration(
                device_token=device_token,
                user_id=user_id,
                last_seen_at=now,
                ua_family=ua_family,
                os_family=os_family,
                browser_family=browser_family,
            )
            users[user_id] = registration
            return registration

    def count_distinct_users(self, device_token: str) -> int:
        with self._lock:
            return len(self._devices.get(device_token, {}))

    def devices_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
    ) -> List[DeviceRegistration]:
        with self._lock:
            found = [
                users[user_id]
                for users in self._devices.values()
                if user_id in users
            ]
        if since is not None:
            found = [r for r in found if r.last_seen_at >= since]
        return found


class InMemoryEventLedger(EventLedger):
    """Append-only event list with a velocity index."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: Dict[str, RiskEvent] = {}
        self._by_user: Dict[str, List[RiskEvent]] = defaultdict(list)
        self._velocity_index: Dict[Tuple[str, str], List[datetime]] = defaultdict(list)

    def append(self, event: RiskEvent) -> str:
        with self._lock:
            if event.event_id in self._events:
                raise StoreError(
                    f"Event {event.event_id} already recorded",
                    store_name="event_ledger",
                )
            self._events[event.event_id] = event
            self._by_user[event.user_id].append(event)
            key = (event.user_id, event.event_type.value)
            bisect.insort(self._velocity_index[key], event.created_at)
        return event.event_id

    def get(self, event_id: str) -> Optional[RiskEvent]:
        with self._lock:
            return self._events.get(event_id)

    def count_by_user_and_type(
        self,
        user_id: str,
        event_type: EventType,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> int:
        key = (user_id, EventType(event_type).value)
        with self._lock:
            timestamps = self._velocity_index.get(key)
            if not timestamps:
                return 0
            start = bisect.bisect_left(timestamps, since)
            end = (
                bisect.bisect_left(timestamps, until)
                if until is not None else len(timestamps)
            )
        return max(0, end - start)

    def events_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        with_typing: bool = False,
    ) -> List[RiskEvent]:
        with self._lock:
            events = list(self._by_user.get(user_id, []))

        if since is not None:
            events = [e for e in events if e.created_at >= since]
        if with_typing:
            events = [e for e in events if e.typing_features is not None]

        events.sort(key=lambda e: e.created_at, reverse=True)
        if limit is not None:
            events = events[:limit]
        return events

    def active_users(self, since: datetime) -> List[str]:
        with self._lock:
            return sorted(
                user_id
                for user_id, events in self._by_user.items()
                if any(e.created_at >= since for e in events)
            )


class InMemoryUserFeatureStore(UserFeatureStore):
    """Feature rows keyed by user id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Dict[str, UserRiskFeatures] = {}

    def get(self, user_id: str) -> Optional[UserRiskFeatures]:
        with self._lock:
            return self._rows.get(user_id)

    def put(self, features: UserRiskFeatures) -> None:
        with self._lock:
            self._rows[features.user_id] = features
