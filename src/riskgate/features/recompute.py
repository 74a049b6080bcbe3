"""Feature Recomputer - rebuilds UserRiskFeatures from the stores.

Runs outside the request path (cron endpoint or CLI). For every user
active in the last 30 days it derives:

- device_degree: distinct devices the user was ever seen on
- ip_degree: distinct non-null IP prefixes across the user's events
- typing baseline: mean and population std of mean_dwell / mean_flight
  over the most recent typing samples, only when more than 5 exist
- account_age_days: whole days since the user's first recorded event

A failure for one user is logged and does not stop the run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np

from riskgate.common.constants import FeatureConstants
from riskgate.data.schemas import UserRiskFeatures
from riskgate.stores.base import DeviceRegistry, EventLedger, UserFeatureStore

logger = logging.getLogger(__name__)


@dataclass
class RecomputeSummary:
    """Outcome of one recomputation run."""
    users_processed: int = 0
    users_updated: int = 0
    failed_users: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class FeatureRecomputer:
    """Recomputes per-user risk aggregates."""

    def __init__(
        self,
        device_registry: DeviceRegistry,
        event_ledger: EventLedger,
        feature_store: UserFeatureStore,
        active_window_days: int = FeatureConstants.ACTIVE_USER_WINDOW_DAYS,
        typing_sample_limit: int = FeatureConstants.TYPING_SAMPLE_LIMIT,
    ):
        self.device_registry = device_registry
        self.event_ledger = event_ledger
        self.feature_store = feature_store
        self.active_window = timedelta(days=active_window_days)
        self.typing_sample_limit = typing_sample_limit

    def compute_for_user(self, user_id: str, now: datetime) -> UserRiskFeatures:
        """Derive a fresh feature row for one user."""
        devices = self.device_registry.devices_for_user(user_id)
        device_degree = len({d.device_token for d in devices})

        events = self.event_ledger.events_for_user(user_id)
        ip_degree = len({e.ip_prefix for e in events if e.ip_prefix})

        account_age_days = 0
        if events:
            first_seen = min(e.created_at for e in events)
            account_age_days = max(0, (now - first_seen).days)

        typing_events = self.event_ledger.events_for_user(
            user_id, limit=self.typing_sample_limit, with_typing=True
        )
        dwells = np.array([e.typing_features.mean_dwell for e in typing_events], dtype=float)
        flights = np.array([e.typing_features.mean_flight for e in typing_events], dtype=float)

        avg_dwell: Optional[float] = None
        std_dwell: Optional[float] = None
        avg_flight: Optional[float] = None
        std_flight: Optional[float] = None
        baseline_count = 0

        if dwells.size > FeatureConstants.TYPING_MIN_SAMPLES:
            avg_dwell = float(dwells.mean())
            std_dwell = float(dwells.std())
            avg_flight = float(flights.mean())
            std_flight = float(flights.std())
            baseline_count = int(dwells.size)

        return UserRiskFeatures(
            user_id=user_id,
            account_age_days=account_age_days,
            device_degree=device_degree,
            ip_degree=ip_degree,
            avg_typing_dwell=avg_dwell,
            std_typing_dwell=std_dwell,
            avg_typing_flight=avg_flight,
            std_typing_flight=std_flight,
            typing_baseline_count=baseline_count,
            last_computed_at=now,
        )

    def recompute_all(self, now: Optional[datetime] = None) -> RecomputeSummary:
        """Recompute and store features for every recently active user.

        Raises:
            StoreError: If the active-user listing itself fails
        """
        now = now or datetime.now(timezone.utc)
        logger.info("Starting risk feature recomputation")

        user_ids = self.event_ledger.active_users(since=now - self.active_window)
        summary = RecomputeSummary(users_processed=len(user_ids), timestamp=now)
        logger.info(f"Found {len(user_ids)} active users")

        for user_id in user_ids:
            try:
                self.feature_store.put(self.compute_for_user(user_id, now))
                summary.users_updated += 1
            except Exception as e:
                logger.error(f"Failed to recompute features for user {user_id}: {e}")
                summary.failed_users.append(user_id)

        logger.info(
            f"Recomputed features for {summary.users_updated}/{summary.users_processed} users"
        )
        return summary
