"""Tests for the RiskEvent writer."""

from unittest.mock import MagicMock

import pytest

from riskgate.audit.alerts import AlertSink, AlertType, RecordingAlertSink
from riskgate.audit.writer import EventWriter
from riskgate.common.exceptions import StoreError
from riskgate.stores import InMemoryEventLedger


@pytest.fixture
def ledger() -> InMemoryEventLedger:
    return InMemoryEventLedger()


class TestInlineWriter:
    """Tests for background=False."""

    def test_writes_immediately(self, ledger, make_event):
        writer = EventWriter(ledger, background=False)
        event = make_event()

        event_id = writer.submit(event)

        assert event_id == event.event_id
        assert ledger.get(event_id) == event
        assert writer.get_stats()["events_written"] == 1

    def test_failure_is_alerted_not_raised(self, make_event):
        alerts = RecordingAlertSink()
        failing = MagicMock()
        failing.append.side_effect = StoreError("down", store_name="event_ledger")
        writer = EventWriter(failing, alerts=alerts, background=False)
        event = make_event()

        event_id = writer.submit(event)

        assert event_id == event.event_id
        assert writer.get_stats()["events_failed"] == 1
        assert alerts.persistence_failures == [{
            "alert_type": AlertType.LEDGER_APPEND_FAILED,
            "error_type": "StoreError",
            "event_id": event.event_id,
            "user_id": "user_001",
            "event_type": "login",
        }]


class TestBackgroundWriter:
    """Tests for the background thread."""

    def test_flush_waits_for_queued_events(self, ledger, make_event):
        writer = EventWriter(ledger, background=True)
        events = [make_event() for _ in range(25)]

        try:
            for event in events:
                writer.submit(event)
            writer.flush()

            assert all(ledger.get(e.event_id) is not None for e in events)
        finally:
            writer.shutdown()

    def test_shutdown_drains_queue(self, ledger, make_event):
        writer = EventWriter(ledger, background=True)
        events = [make_event() for _ in range(10)]
        for event in events:
            writer.submit(event)

        writer.shutdown()

        assert not writer.is_running
        assert writer.get_stats()["events_written"] == 10

    def test_submit_after_shutdown_writes_inline(self, ledger, make_event):
        writer = EventWriter(ledger, background=True)
        writer.shutdown()
        event = make_event()

        writer.submit(event)

        assert ledger.get(event.event_id) == event

    def test_background_failure_is_alerted(self, make_event):
        alerts = RecordingAlertSink()
        failing = MagicMock()
        failing.append.side_effect = RuntimeError("disk full")
        writer = EventWriter(failing, alerts=alerts, background=True)

        try:
            writer.submit(make_event())
            writer.flush()
        finally:
            writer.shutdown()

        assert len(alerts.persistence_failures) == 1
        assert alerts.persistence_failures[0]["error_type"] == "RuntimeError"

    def test_broken_alert_sink_does_not_stop_writer(self, ledger, make_event):
        sink = MagicMock(spec=AlertSink)
        sink.persistence_failure.side_effect = RuntimeError("sink down")
        failures = [RuntimeError("disk full")]

        def append_once_failing(event):
            if failures:
                raise failures.pop()
            return ledger.append(event)

        flaky = MagicMock()
        flaky.append.side_effect = append_once_failing
        writer = EventWriter(flaky, alerts=sink, background=True)
        first, second = make_event(), make_event()

        try:
            writer.submit(first)
            writer.flush()
            writer.submit(second)
            writer.flush()

            assert writer.is_running
            assert ledger.get(second.event_id) == second
            assert ledger.get(first.event_id) is None
            assert writer.get_stats()["events_failed"] == 1
        finally:
            writer.shutdown()

    def test_unexpected_write_error_does_not_stop_writer(self, ledger, make_event):
        writer = EventWriter(ledger, background=True)
        real_write = writer._write
        calls = []

        def write_once_raising(event):
            calls.append(event.event_id)
            if len(calls) == 1:
                raise RuntimeError("unexpected")
            return real_write(event)

        writer._write = write_once_raising
        first, second = make_event(), make_event()

        try:
            writer.submit(first)
            writer.submit(second)
            writer.flush()

            assert writer.is_running
            assert ledger.get(second.event_id) == second
        finally:
            writer.shutdown()

    def test_full_queue_drops_and_alerts_without_fallback(self, ledger, make_event):
        alerts = RecordingAlertSink()
        writer = EventWriter(
            ledger, alerts=alerts, background=False, max_queue_size=1, sync_fallback=False
        )
        # Route through the queue path without a consumer thread
        writer.background = True
        writer.submit(make_event())
        writer.submit(make_event())

        stats = writer.get_stats()
        assert stats["events_dropped"] == 1
        assert alerts.persistence_failures[0]["alert_type"] == AlertType.LEDGER_APPEND_FAILED

    def test_full_queue_falls_back_to_sync(self, ledger, make_event):
        writer = EventWriter(ledger, background=False, max_queue_size=1)
        writer.background = True
        writer.submit(make_event())
        overflow = make_event()

        writer.submit(overflow)

        assert writer.get_stats()["sync_fallback_count"] == 1
        assert ledger.get(overflow.event_id) == overflow
