"""
Sighting Ingestion Loop

Consumes SightingEvents from the transport queue on a dedicated thread and
turns qualifying ones into alerts:

    queue.Queue[SightingEvent] → matches() → DebounceGate → AlertDispatcher

Threading:
  - SightingIngestionThread (ours) is the only consumer of the queue
  - The gate is shared by reference; handle() may also be called from other
    threads, the gate lock keeps acceptance exclusive
  - An event already being handled when stop() is called finishes first
"""

import logging
import queue
import threading
import time
from datetime import timedelta
from typing import Callable, Optional

from doorbell_alert.dispatcher import AlertDispatcher, DispatchResult
from doorbell_detector.debounce import DebounceGate
from doorbell_detector.matcher import matches
from doorbell_mqtt.logging import LogEvent, StructuredLogger
from doorbell_mqtt.schemas import SightingEvent

logger = logging.getLogger(__name__)


class IngestionLoop:
    """
    Drives the detection path for one target device.

    Usage:
        loop = IngestionLoop(sightings, config.target_mac,
                             config.detection_timeout, gate, dispatcher, slog)
        loop.start()
        ...
        loop.stop()
    """

    def __init__(
        self,
        sightings: "queue.Queue[SightingEvent]",
        target: str,
        cooldown: timedelta,
        gate: DebounceGate,
        dispatcher: AlertDispatcher,
        structured_logger: StructuredLogger,
        clock: Callable[[], float] = time.monotonic,
        poll_interval: float = 0.1,
    ):
        self.sightings = sightings
        self.target = target
        self.cooldown = cooldown
        self.gate = gate
        self.dispatcher = dispatcher
        self.slog = structured_logger
        self.clock = clock
        self.poll_interval = poll_interval

        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def handle(self, event: SightingEvent) -> Optional[DispatchResult]:
        """
        Process one sighting.

        Returns:
            DispatchResult if the sighting was accepted, else None
        """
        if not matches(event.observed, self.target):
            return None

        if not self.gate.try_accept(self.clock(), self.cooldown):
            self.slog.debug(
                event=LogEvent.TARGET_SUPPRESSED,
                message="Ignoring beacon from device",
                metadata={'mac': event.observed}
            )
            return None

        self.slog.info(
            event=LogEvent.TARGET_DETECTED,
            message="Detected target device",
            metadata={'mac': event.observed, 'received_at': event.received_at.value}
        )
        return self.dispatcher.dispatch(event)

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Consume the queue until stop_event is set.

        Thread: SightingIngestionThread, or the caller's thread when invoked directly
        """
        stop_event = stop_event or self.stop_event
        logger.info("Sighting ingestion loop started")

        while not stop_event.is_set():
            try:
                event = self.sightings.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            try:
                self.handle(event)
            except Exception as e:
                logger.error(f"Error handling sighting {event.observed!r}: {e}", exc_info=True)
            finally:
                self.sightings.task_done()

        logger.info("Sighting ingestion loop stopped")

    def start(self) -> None:
        """Run the loop on a background thread."""
        if self._thread is not None:
            logger.warning("Ingestion loop already running")
            return

        self.stop_event.clear()
        self._thread = threading.Thread(
            target=self.run,
            name="SightingIngestionThread",
            daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to exit and wait for it. Safe to call multiple times."""
        self.stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"⚠️ Ingestion thread did not stop within {timeout}s")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
