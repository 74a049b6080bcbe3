"""Operator alerts - the channel for failures the caller never sees.

Persistence failures (registry upsert, ledger append) and degraded
signal reads are reported here. A missing ledger record silently
weakens every later velocity check for that user, so these are never
only debug output.
"""

import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

ALERT_LOGGER_NAME = "riskgate.alerts"

logger = logging.getLogger(ALERT_LOGGER_NAME)


class AlertType:
    REGISTRY_UPSERT_FAILED = "registry_upsert_failed"
    LEDGER_APPEND_FAILED = "ledger_append_failed"
    SIGNAL_DEGRADED = "signal_degraded"


class AlertSink(ABC):
    """Operator-visible channel."""

    @abstractmethod
    def persistence_failure(
        self,
        alert_type: str,
        error: BaseException,
        context: Optional[Dict[str, str]] = None,
    ) -> None:
        """Report a write that failed after (or while) a decision was made."""

    @abstractmethod
    def signal_degraded(self, read_name: str, error_type: str, error_message: str) -> None:
        """Report a signal read that produced no data."""


class LoggingAlertSink(AlertSink):
    """Alerts as records on the dedicated alerts logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(ALERT_LOGGER_NAME)

    def persistence_failure(
        self,
        alert_type: str,
        error: BaseException,
        context: Optional[Dict[str, str]] = None,
    ) -> None:
        self.logger.error(
            f"ALERT {alert_type}: {type(error).__name__}: {error}",
            extra={"alert_type": alert_type, **(context or {})},
        )

    def signal_degraded(self, read_name: str, error_type: str, error_message: str) -> None:
        self.logger.warning(
            f"ALERT {AlertType.SIGNAL_DEGRADED}: {read_name}: {error_type}: {error_message}",
            extra={"alert_type": AlertType.SIGNAL_DEGRADED, "read_name": read_name},
        )


class CloudWatchAlertSink(LoggingAlertSink):
    """Logs every alert and publishes a count metric to CloudWatch."""

    DEFAULT_REGION = "us-east-1"
    DEFAULT_NAMESPACE = "RiskGate"

    def __init__(
        self,
        namespace: Optional[str] = None,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        self.namespace = namespace or os.environ.get(
            "RISKGATE_CLOUDWATCH_NAMESPACE", self.DEFAULT_NAMESPACE
        )
        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)

        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            self.cloudwatch = session.client("cloudwatch", region_name=self.region)
        else:
            self.cloudwatch = boto3.client("cloudwatch", region_name=self.region)

    def _publish(self, metric_name: str, dimensions: Dict[str, str]) -> None:
        metric = {
            "MetricName": metric_name,
            "Value": 1.0,
            "Unit": "Count",
            "Timestamp": datetime.now(timezone.utc),
            "Dimensions": [{"Name": k, "Value": v} for k, v in dimensions.items()],
        }
        try:
            self.cloudwatch.put_metric_data(Namespace=self.namespace, MetricData=[metric])
        except (ClientError, BotoCoreError) as e:
            # The log record above is still the alert of record
            self.logger.error(f"Failed to publish alert metric {metric_name}: {e}")

    def persistence_failure(
        self,
        alert_type: str,
        error: BaseException,
        context: Optional[Dict[str, str]] = None,
    ) -> None:
        super().persistence_failure(alert_type, error, context)
        self._publish(alert_type, {"error_type": type(error).__name__})

    def signal_degraded(self, read_name: str, error_type: str, error_message: str) -> None:
        super().signal_degraded(read_name, error_type, error_message)
        self._publish(AlertType.SIGNAL_DEGRADED, {"read": read_name, "error_type": error_type})


class RecordingAlertSink(AlertSink):
    """Keeps alerts in memory; useful for tests and health checks."""

    def __init__(self):
        self.persistence_failures: List[Dict[str, str]] = []
        self.degraded_reads: List[Dict[str, str]] = []

    def persistence_failure(
        self,
        alert_type: str,
        error: BaseException,
        context: Optional[Dict[str, str]] = None,
    ) -> None:
        self.persistence_failures.append({
            "alert_type": alert_type,
            "error_type": type(error).__name__,
            **(context or {}),
        })

    def signal_degraded(self, read_name: str, error_type: str, error_message: str) -> None:
        self.degraded_reads.append({"read_name": read_name, "error_type": error_type})


def report_persistence_failure(
    sink: AlertSink,
    alert_type: str,
    error: BaseException,
    context: Optional[Dict[str, str]] = None,
) -> None:
    """Send a persistence alert; a broken sink is logged, never raised."""
    try:
        sink.persistence_failure(alert_type, error, context)
    except Exception as e:
        logger.error(
            f"Alert sink failed while reporting {alert_type} "
            f"({type(error).__name__}: {error}): {type(e).__name__}: {e}"
        )


def report_signal_degraded(
    sink: AlertSink,
    read_name: str,
    error_type: str,
    error_message: str,
) -> None:
    """Send a degraded-read alert; a broken sink is logged, never raised."""
    try:
        sink.signal_degraded(read_name, error_type, error_message)
    except Exception as e:
        logger.error(
            f"Alert sink failed while reporting degraded read {read_name}: "
            f"{type(e).__name__}: {e}"
        )
