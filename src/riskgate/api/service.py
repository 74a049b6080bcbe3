"""Risk Scoring Service - one scoring call from request signals to decision.

Orchestrates:
1. Device registry upsert (failure is alerted, scoring continues)
2. Scatter-gather signal reads
3. Decision
4. RiskEvent hand-off to the event writer (never blocks the response)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from riskgate.audit.alerts import (
    AlertSink,
    AlertType,
    CloudWatchAlertSink,
    LoggingAlertSink,
    report_persistence_failure,
)
from riskgate.audit.writer import EventWriter
from riskgate.common.config import AlertSinkType, Config, get_config
from riskgate.common.exceptions import ValidationError
from riskgate.core.types import EventType
from riskgate.data.schemas import Decision, RiskEvent, TypingSample
from riskgate.engine.decision import DecisionEngine
from riskgate.features.recompute import FeatureRecomputer, RecomputeSummary
from riskgate.identity.request_signals import RequestSignals
from riskgate.signals.aggregator import SignalAggregator
from riskgate.stores.config import Stores, create_stores


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ScoreOutcome:
    """What one scoring call produced."""
    decision: Decision
    event: RiskEvent
    degraded_reads: Tuple[str, ...] = ()


def create_alert_sink(config: Config) -> AlertSink:
    """Build the configured operator alert channel."""
    if config.alert_sink == AlertSinkType.CLOUDWATCH:
        return CloudWatchAlertSink(
            namespace=config.cloudwatch_namespace,
            region=config.aws_region,
            aws_profile=config.aws_profile,
        )
    return LoggingAlertSink()


class RiskScoringService:
    """Scores security-sensitive actions against the shared stores.

    Error Handling:
    - Store read failures degrade single signals, never the call
    - Registry and ledger write failures are alerted, never raised
    - The service keeps no per-user state; all history lives in the stores
    """

    def __init__(
        self,
        stores: Stores,
        aggregator: Optional[SignalAggregator] = None,
        engine: Optional[DecisionEngine] = None,
        writer: Optional[EventWriter] = None,
        alerts: Optional[AlertSink] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the service.

        Args:
            stores: Device registry, event ledger and feature store
            aggregator: Signal aggregator. Created over `stores` if not provided.
            engine: Decision engine. Created if not provided.
            writer: Event writer. An inline writer is created if not provided.
            alerts: Operator alert channel. Logging sink if not provided.
            clock: Source of the scoring time
        """
        self.stores = stores
        self.alerts = alerts or LoggingAlertSink()
        self.aggregator = aggregator or SignalAggregator(
            stores.device_registry,
            stores.event_ledger,
            stores.feature_store,
            alerts=self.alerts,
        )
        self.engine = engine or DecisionEngine()
        self.writer = writer or EventWriter(
            stores.event_ledger, alerts=self.alerts, background=False
        )
        self.clock = clock

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "RiskScoringService":
        """Wire a service from configuration."""
        config = config or get_config()
        stores = create_stores(config)
        alerts = create_alert_sink(config)
        aggregator = SignalAggregator(
            stores.device_registry,
            stores.event_ledger,
            stores.feature_store,
            max_workers=config.signal_max_workers,
            timeout_seconds=config.signal_timeout_seconds,
            alerts=alerts,
        )
        writer = EventWriter(
            stores.event_ledger,
            alerts=alerts,
            background=config.use_background_writer,
            max_queue_size=config.writer_queue_size,
        )
        return cls(stores, aggregator=aggregator, writer=writer, alerts=alerts)

    def shutdown(self) -> None:
        """Flush pending event writes and release worker threads."""
        self.writer.shutdown()
        self.aggregator.shutdown()
        logger.info("RiskScoringService shutdown complete")

    def score(
        self,
        user_id: str,
        device_token: str,
        event_type: EventType,
        request_signals: RequestSignals,
        typing_sample: Optional[TypingSample] = None,
        now: Optional[datetime] = None,
    ) -> ScoreOutcome:
        """Score one security-sensitive action.

        Args:
            user_id: Verified acting user
            device_token: First-party device token for the request
            event_type: Action being scored
            request_signals: IP prefix and User-Agent families
            typing_sample: Optional keystroke timing summary
            now: Scoring time. Taken from the clock if not provided.

        Returns:
            ScoreOutcome with the decision and the RiskEvent handed to the writer

        Raises:
            ValidationError: If the event type is unknown or user_id is empty
        """
        now = now or self.clock()
        try:
            event_type = EventType(event_type)
        except ValueError:
            raise ValidationError(
                f"Unknown event type: {event_type}",
                details={"event_type": str(event_type)},
            )
        if not user_id:
            raise ValidationError("user_id is required")

        try:
            self.stores.device_registry.upsert(
                device_token=device_token,
                user_id=user_id,
                ua_family=request_signals.ua_family,
                os_family=request_signals.os_family,
                browser_family=request_signals.browser_family,
                now=now,
            )
        except Exception as e:
            report_persistence_failure(
                self.alerts,
                AlertType.REGISTRY_UPSERT_FAILED,
                e,
                {"user_id": user_id, "event_type": event_type.value},
            )

        snapshot = self.aggregator.gather(
            user_id=user_id,
            device_token=device_token,
            event_type=event_type,
            now=now,
            typing_sample=typing_sample,
        )
        decision = self.engine.decide(self.aggregator.evaluate(snapshot))

        event = RiskEvent(
            user_id=user_id,
            device_token=device_token,
            event_type=event_type,
            ip_prefix=request_signals.ip_prefix,
            ua_family=request_signals.ua_family,
            os_family=request_signals.os_family,
            browser_family=request_signals.browser_family,
            risk_score=decision.risk_score,
            action=decision.action,
            reasons=decision.reasons,
            typing_features=typing_sample,
            created_at=now,
        )
        self.writer.submit(event)

        logger.info(
            f"Scored {event_type.value}: {decision.risk_score} -> {decision.action.value}",
            extra={
                "user_id": user_id,
                "event_id": event.event_id,
                "reasons": ",".join(decision.reason_values),
                "degraded": ",".join(snapshot.degraded_reads),
            },
        )

        return ScoreOutcome(
            decision=decision,
            event=event,
            degraded_reads=tuple(snapshot.degraded_reads),
        )

    def recompute_features(self, now: Optional[datetime] = None) -> RecomputeSummary:
        """Run the offline feature recomputation over this service's stores."""
        recomputer = FeatureRecomputer(
            self.stores.device_registry,
            self.stores.event_ledger,
            self.stores.feature_store,
        )
        return recomputer.recompute_all(now or self.clock())
