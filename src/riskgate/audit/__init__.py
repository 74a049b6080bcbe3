"""Audit - RiskEvent persistence and operator alerts.

Components:
- EventWriter: background (or inline) ledger appends, fail-open on the response
- AlertSink: operator-visible channel for persistence failures and degraded reads
"""

from riskgate.audit.alerts import (
    AlertSink,
    AlertType,
    CloudWatchAlertSink,
    LoggingAlertSink,
    RecordingAlertSink,
    report_persistence_failure,
    report_signal_degraded,
)
from riskgate.audit.writer import EventWriter

__all__ = [
    "AlertSink",
    "AlertType",
    "CloudWatchAlertSink",
    "LoggingAlertSink",
    "RecordingAlertSink",
    "report_persistence_failure",
    "report_signal_degraded",
    "EventWriter",
]
