"""Shared fixtures for RiskGate tests."""

from datetime import datetime, timezone

import pytest

from riskgate.api.service import RiskScoringService
from riskgate.audit.alerts import RecordingAlertSink
from riskgate.audit.writer import EventWriter
from riskgate.common.config import Config, Environment
from riskgate.core.types import Action, EventType, ReasonCode
from riskgate.data.schemas import RiskEvent, TypingSample
from riskgate.identity.request_signals import RequestSignals
from riskgate.identity.session import SessionResolver
from riskgate.signals.aggregator import SignalAggregator
from riskgate.stores.config import create_memory_stores

TEST_SESSION_SECRET = "test-session-secret-0123456789abcdef"
TEST_CRON_SECRET = "test-cron-secret-0123456789abcdef"


@pytest.fixture
def now() -> datetime:
    """Fixed scoring time."""
    return datetime(2026, 1, 28, 14, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def stores():
    """Fresh in-memory stores."""
    return create_memory_stores()


@pytest.fixture
def alerts() -> RecordingAlertSink:
    return RecordingAlertSink()


@pytest.fixture
def request_signals() -> RequestSignals:
    return RequestSignals(
        ip_prefix="203.0.113.0/24",
        ua_family="desktop",
        os_family="macos",
        browser_family="safari",
    )


@pytest.fixture
def typing_sample() -> TypingSample:
    return TypingSample(
        mean_dwell=100.0,
        std_dwell=20.0,
        mean_flight=150.0,
        std_flight=40.0,
        backspace_ratio=0.05,
        paste_count=0,
        sample_size=20,
    )


@pytest.fixture
def make_event(now):
    """Build RiskEvents with sensible defaults."""
    def _make_event(**overrides) -> RiskEvent:
        fields = {
            "user_id": "user_001",
            "device_token": "device_token_aaaaaaaaaaaaaaaa",
            "event_type": EventType.LOGIN,
            "ip_prefix": "203.0.113.0/24",
            "risk_score": 0,
            "action": Action.ALLOW,
            "reasons": (ReasonCode.NORMAL_BEHAVIOR,),
            "created_at": now,
        }
        fields.update(overrides)
        return RiskEvent(**fields)
    return _make_event


@pytest.fixture
def service(stores, alerts, now):
    """Scoring service over memory stores with an inline writer."""
    aggregator = SignalAggregator(
        stores.device_registry,
        stores.event_ledger,
        stores.feature_store,
        alerts=alerts,
    )
    writer = EventWriter(stores.event_ledger, alerts=alerts, background=False)
    svc = RiskScoringService(
        stores,
        aggregator=aggregator,
        writer=writer,
        alerts=alerts,
        clock=lambda: now,
    )
    yield svc
    svc.shutdown()


@pytest.fixture
def test_config() -> Config:
    """Development config with known secrets."""
    return Config(
        environment=Environment.DEVELOPMENT,
        session_secret=TEST_SESSION_SECRET,
        cron_secret=TEST_CRON_SECRET,
        cors_origins=["https://app.example.com"],
    )


@pytest.fixture
def sessions() -> SessionResolver:
    """Issues tokens the test app accepts."""
    return SessionResolver(secret=TEST_SESSION_SECRET)


@pytest.fixture
def auth_headers(sessions):
    """Bearer headers for a given user."""
    def _auth_headers(user_id: str = "user_001") -> dict:
        return {"Authorization": f"Bearer {sessions.issue(user_id)}"}
    return _auth_headers
