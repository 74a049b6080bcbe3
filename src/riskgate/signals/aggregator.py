"""Signal Aggregator - scatter-gather reads, then rule evaluation.

The four store reads a scoring call needs (device user count, 10-minute
and 24-hour velocity, user features) are independent and read-only, so
they run in parallel on a thread pool and are joined before any rule is
evaluated. A read that fails or misses the deadline only blanks its own
signal; scoring continues with the rest.

Velocity is counted over [now - window, now) before the current event
is appended, so a call never sees itself.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from riskgate.audit.alerts import AlertSink, LoggingAlertSink, report_signal_degraded
from riskgate.common.constants import SignalConstants
from riskgate.core.types import EventType
from riskgate.data.schemas import TypingSample, UserRiskFeatures
from riskgate.signals.rules import (
    DEFAULT_SIGNAL_GROUPS,
    SignalGroup,
    SignalHit,
    SignalInputs,
    evaluate_rules,
)
from riskgate.stores.base import DeviceRegistry, EventLedger, UserFeatureStore

logger = logging.getLogger(__name__)


SHORT_WINDOW = timedelta(seconds=SignalConstants.SHORT_VELOCITY_WINDOW_SECONDS)
DAILY_WINDOW = timedelta(seconds=SignalConstants.DAILY_VELOCITY_WINDOW_SECONDS)


@dataclass(frozen=True)
class DegradedRead:
    """A read that did not produce data."""
    read_name: str
    error_type: str
    error_message: str


@dataclass(frozen=True)
class SignalSnapshot:
    """Joined result of one scatter-gather round."""
    inputs: SignalInputs
    features: Optional[UserRiskFeatures] = None
    degraded: Tuple[DegradedRead, ...] = field(default_factory=tuple)

    @property
    def degraded_reads(self) -> List[str]:
        return [d.read_name for d in self.degraded]


def typing_z_score(
    sample: Optional[TypingSample],
    features: Optional[UserRiskFeatures],
) -> Optional[float]:
    """Dwell-time z-score of a typing sample against the user's baseline.

    Returns None (signal skipped) unless the sample has enough keystrokes
    and the baseline has enough history.
    """
    if sample is None or features is None:
        return None
    if sample.sample_size < SignalConstants.TYPING_MIN_SAMPLE_SIZE:
        return None
    if features.typing_baseline_count <= SignalConstants.TYPING_MIN_BASELINE_COUNT:
        return None
    if features.avg_typing_dwell is None:
        return None

    spread = max(features.std_typing_dwell or 0.0, SignalConstants.TYPING_STD_FLOOR)
    return abs(sample.mean_dwell - features.avg_typing_dwell) / spread


class SignalAggregator:
    """Computes every risk signal for one scoring call.

    Features:
    - Parallel, independent store reads with a shared deadline
    - Per-read degradation instead of failure
    - Injectable executor and rule groups for testing
    """

    def __init__(
        self,
        device_registry: DeviceRegistry,
        event_ledger: EventLedger,
        feature_store: UserFeatureStore,
        groups: Sequence[SignalGroup] = DEFAULT_SIGNAL_GROUPS,
        executor: Optional[ThreadPoolExecutor] = None,
        max_workers: int = SignalConstants.MAX_WORKERS,
        timeout_seconds: float = SignalConstants.READ_TIMEOUT_SECONDS,
        alerts: Optional[AlertSink] = None,
    ):
        """Initialize the aggregator.

        Args:
            device_registry: Device registry to count users per device
            event_ledger: Ledger for velocity counts
            feature_store: Per-user aggregates
            groups: Ordered signal groups
            executor: Custom executor. One is created and owned if not provided.
            max_workers: Worker count for the owned executor
            timeout_seconds: Deadline for the whole gather round
            alerts: Operator alert channel for degraded reads
        """
        self.device_registry = device_registry
        self.event_ledger = event_ledger
        self.feature_store = feature_store
        self.groups = tuple(groups)
        self.timeout_seconds = timeout_seconds
        self.alerts = alerts or LoggingAlertSink()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="SignalReader",
        )

    def shutdown(self) -> None:
        """Release the owned executor."""
        if self._owns_executor:
            self._executor.shutdown(wait=True, cancel_futures=True)

    def gather(
        self,
        user_id: str,
        device_token: str,
        event_type: EventType,
        now: datetime,
        typing_sample: Optional[TypingSample] = None,
    ) -> SignalSnapshot:
        """Fan out the store reads and join them into SignalInputs.

        Args:
            user_id: Acting user
            device_token: Device the request came from
            event_type: Event being scored (velocity is per type)
            now: Scoring time, the exclusive end of the velocity windows
            typing_sample: Optional keystroke timing summary

        Returns:
            SignalSnapshot with inputs and any degraded reads
        """
        reads: Dict[str, Callable[[], Any]] = {
            "device_users": lambda: self.device_registry.count_distinct_users(device_token),
            "short_velocity": lambda: self.event_ledger.count_by_user_and_type(
                user_id, event_type, since=now - SHORT_WINDOW, until=now
            ),
            "daily_velocity": lambda: self.event_ledger.count_by_user_and_type(
                user_id, event_type, since=now - DAILY_WINDOW, until=now
            ),
            "user_features": lambda: self.feature_store.get(user_id),
        }

        futures: Dict[Future, str] = {
            self._executor.submit(read): name for name, read in reads.items()
        }
        done, not_done = wait(futures, timeout=self.timeout_seconds)

        results: Dict[str, Any] = {}
        degraded: List[DegradedRead] = []

        for future in done:
            name = futures[future]
            try:
                results[name] = future.result()
            except Exception as e:
                degraded.append(DegradedRead(name, type(e).__name__, str(e)))

        for future in not_done:
            future.cancel()
            degraded.append(DegradedRead(
                futures[future],
                "TimeoutError",
                f"read exceeded {self.timeout_seconds:.2f}s",
            ))

        for read in degraded:
            report_signal_degraded(self.alerts, read.read_name, read.error_type, read.error_message)

        logger.debug(
            f"Gathered {len(results)}/{len(reads)} signal reads",
            extra={"user_id": user_id, "event_type": EventType(event_type).value},
        )

        features: Optional[UserRiskFeatures] = results.get("user_features")

        inputs = SignalInputs(
            account_age_days=features.account_age_days if features else None,
            device_user_count=results.get("device_users"),
            short_velocity=results.get("short_velocity"),
            daily_velocity=results.get("daily_velocity"),
            device_degree=features.device_degree if features else None,
            ip_degree=features.ip_degree if features else None,
            typing_z_score=typing_z_score(typing_sample, features),
        )

        return SignalSnapshot(
            inputs=inputs,
            features=features,
            degraded=tuple(sorted(degraded, key=lambda d: d.read_name)),
        )

    def evaluate(self, snapshot: SignalSnapshot) -> List[SignalHit]:
        """Apply the rule groups to a snapshot."""
        return evaluate_rules(snapshot.inputs, self.groups)
