"""Event Writer - non-blocking RiskEvent persistence.

The decision is returned before its RiskEvent is durably written. Writes
go through a bounded queue drained by a background thread; any write
that fails is reported on the alert channel instead of the response.
"""

import atexit
import logging
import queue
import threading
from typing import Optional

from riskgate.audit.alerts import (
    AlertSink,
    AlertType,
    LoggingAlertSink,
    report_persistence_failure,
)
from riskgate.common.constants import WriterConstants
from riskgate.data.schemas import RiskEvent
from riskgate.stores.base import EventLedger

logger = logging.getLogger(__name__)


class EventWriter:
    """Appends RiskEvents to the ledger, in the background or inline."""

    DEFAULT_QUEUE_SIZE = WriterConstants.QUEUE_SIZE
    DEFAULT_FLUSH_TIMEOUT = WriterConstants.FLUSH_TIMEOUT_SECONDS

    def __init__(
        self,
        ledger: EventLedger,
        alerts: Optional[AlertSink] = None,
        background: bool = True,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        flush_timeout: float = DEFAULT_FLUSH_TIMEOUT,
        sync_fallback: bool = True,
    ):
        """Initialize the event writer.

        Args:
            ledger: Event ledger to append to
            alerts: Operator alert channel for failed writes
            background: Write on a background thread instead of inline
            max_queue_size: Maximum number of events to buffer
            flush_timeout: Timeout for draining the queue on shutdown
            sync_fallback: Write inline when the queue is full instead of dropping
        """
        self.ledger = ledger
        self.alerts = alerts or LoggingAlertSink()
        self.background = background
        self.max_queue_size = max_queue_size
        self.flush_timeout = flush_timeout
        self.sync_fallback = sync_fallback

        self._queue: "queue.Queue[Optional[RiskEvent]]" = queue.Queue(maxsize=max_queue_size)
        self._shutdown_event = threading.Event()
        self._writer_thread: Optional[threading.Thread] = None

        self._events_written = 0
        self._events_failed = 0
        self._events_dropped = 0
        self._sync_fallback_count = 0
        self._stats_lock = threading.Lock()

        if self.background:
            self._start_writer()
            atexit.register(self.shutdown)

    def _start_writer(self) -> None:
        self._writer_thread = threading.Thread(
            target=self._writer_loop,
            name="RiskEventWriter",
            daemon=True,
        )
        self._writer_thread.start()
        logger.info("Background event writer started")

    def _writer_loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                event = self._queue.get(timeout=WriterConstants.QUEUE_GET_TIMEOUT)
            except queue.Empty:
                continue

            try:
                if event is None:
                    break
                self._write(event)
            except Exception as e:
                logger.error(f"Unexpected error in event writer: {e}")
            finally:
                self._queue.task_done()

        self._drain_queue()
        logger.info("Background event writer stopped")

    def _drain_queue(self) -> None:
        drained = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                if event is not None and self._write(event):
                    drained += 1
            except Exception as e:
                logger.error(f"Unexpected error draining event writer: {e}")
            finally:
                self._queue.task_done()

        if drained > 0:
            logger.info(f"Drained {drained} risk events during shutdown")

    def _write(self, event: RiskEvent) -> bool:
        """Append one event; failures go to the alert channel."""
        try:
            self.ledger.append(event)
        except Exception as e:
            with self._stats_lock:
                self._events_failed += 1
            report_persistence_failure(
                self.alerts,
                AlertType.LEDGER_APPEND_FAILED,
                e,
                {
                    "event_id": event.event_id,
                    "user_id": event.user_id,
                    "event_type": event.event_type.value,
                },
            )
            return False

        with self._stats_lock:
            self._events_written += 1
        return True

    def submit(self, event: RiskEvent) -> str:
        """Persist an event without blocking the caller on the write.

        Never raises for write failures; they are alerted instead.

        Returns:
            The event id (assigned before the write)
        """
        if not self.background or self._shutdown_event.is_set():
            self._write(event)
            return event.event_id

        try:
            self._queue.put_nowait(event)
        except queue.Full:
            if self.sync_fallback:
                with self._stats_lock:
                    self._sync_fallback_count += 1
                logger.warning("Event queue full, writing synchronously")
                self._write(event)
            else:
                with self._stats_lock:
                    self._events_dropped += 1
                report_persistence_failure(
                    self.alerts,
                    AlertType.LEDGER_APPEND_FAILED,
                    RuntimeError("event queue full, event dropped"),
                    {"event_id": event.event_id, "user_id": event.user_id},
                )
        return event.event_id

    def flush(self) -> None:
        """Block until every queued event has been attempted."""
        if self.background:
            self._queue.join()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the writer after draining pending events."""
        if self._shutdown_event.is_set():
            return

        timeout = timeout if timeout is not None else self.flush_timeout
        self._shutdown_event.set()

        if not self.background:
            return

        logger.info("Shutting down background event writer...")
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            pass

        if self._writer_thread and self._writer_thread.is_alive():
            self._writer_thread.join(timeout=timeout)
            if self._writer_thread.is_alive():
                logger.warning("Event writer did not stop cleanly")

        logger.info(
            f"Event writer shutdown complete. "
            f"Written: {self._events_written}, "
            f"Failed: {self._events_failed}, "
            f"Dropped: {self._events_dropped}, "
            f"Sync fallbacks: {self._sync_fallback_count}"
        )

    def get_stats(self) -> dict:
        """Get writer statistics."""
        with self._stats_lock:
            return {
                "events_written": self._events_written,
                "events_failed": self._events_failed,
                "events_dropped": self._events_dropped,
                "sync_fallback_count": self._sync_fallback_count,
                "queue_size": self._queue.qsize(),
                "max_queue_size": self.max_queue_size,
            }

    @property
    def is_running(self) -> bool:
        if self._shutdown_event.is_set():
            return False
        if self.background:
            return self._writer_thread is not None and self._writer_thread.is_alive()
        return True
