"""
Doorbell Service - lifecycle of the detection path.

This module provides DoorbellService, which owns everything the detection
path needs while it runs: the MQTT subscription, the audio device, the
notification icon unpacked to a temporary directory and the ingestion
thread.

Lifecycle:
    STARTING ──start() ok──▶ RUNNING ──request_shutdown()──▶ SHUTTING_DOWN ──wait()──▶ STOPPED
        └──────────start() fails──────────────────────────────────────────────────────▶ STOPPED

Acquisition order (teardown runs in reverse):
    1. Connect and subscribe to the broker
    2. Open the audio device
    3. Unpack the notification icon into a temporary directory
    4. Start the ingestion thread

Threading Model:
- paho-mqtt network thread (transport, pushes onto the sightings queue)
- SightingIngestionThread (consumes the queue)
- Playback threads (audio channel, one per cue)
- Caller's thread blocks in wait() until a shutdown trigger arrives

Shutdown triggers (SIGINT, SIGTERM, tray Quit) all call request_shutdown();
only the first one has any effect and teardown runs exactly once.
"""

import logging
import queue
import signal
import tempfile
import threading
import time
from contextlib import ExitStack
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

from doorbell_alert.assets_store import ICON_NAME, unpack
from doorbell_alert.dispatcher import AlertDispatcher, VisualAlerter
from doorbell_config import LatestConfig, format_duration
from doorbell_detector.debounce import DebounceGate
from doorbell_detector.ingestion import IngestionLoop
from doorbell_mqtt.logging import StructuredLogger
from doorbell_mqtt.schemas import SightingEvent
from doorbell_mqtt.subscriber import TransportError

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """The service could not reach RUNNING."""
    pass


class LifecycleState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class Transport(Protocol):
    def connect(self, timeout: float = 10.0) -> bool:
        ...

    def stop(self) -> None:
        ...


class AudioDevice(Protocol):
    def play_audio_cue(self) -> None:
        ...

    def close(self) -> None:
        ...


class DoorbellService:
    """
    Owns the detection path resources and their teardown.

    Thread Safety:
    - _state_lock guards the lifecycle state
    - _teardown_lock makes teardown run once even with concurrent waiters
    - The DebounceGate is created here and handed to the ingestion loop

    Usage:
        service = DoorbellService(config, subscriber, sightings,
                                  visual=DesktopNotifier(),
                                  audio_factory=lambda: SoundPlayer().open(),
                                  structured_logger=slog)
        service.install_signal_handlers()
        service.start()   # raises StartupError
        service.wait()    # blocks until a shutdown trigger
    """

    def __init__(
        self,
        config: LatestConfig,
        transport: Transport,
        sightings: "queue.Queue[SightingEvent]",
        visual: VisualAlerter,
        audio_factory: Callable[[], AudioDevice],
        structured_logger: StructuredLogger,
        connect_timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.transport = transport
        self.sightings = sightings
        self.visual = visual
        self.audio_factory = audio_factory
        self.slog = structured_logger
        self.connect_timeout = connect_timeout
        self.clock = clock

        # Detection window state, one per process
        self.gate = DebounceGate()
        self.loop: Optional[IngestionLoop] = None
        self.icon_path: Optional[Path] = None

        self._state = LifecycleState.STARTING
        # Re-entrant: signal handlers run on the main thread
        self._state_lock = threading.RLock()
        self._started = False
        self._shutdown_reason: Optional[str] = None
        self._shutdown_event = threading.Event()
        self._stopped_event = threading.Event()

        self._resources = ExitStack()
        self._teardown_lock = threading.Lock()
        self._torn_down = False
        self.teardown_count = 0

    @property
    def state(self) -> LifecycleState:
        with self._state_lock:
            return self._state

    @property
    def shutdown_reason(self) -> Optional[str]:
        with self._state_lock:
            return self._shutdown_reason

    def start(self) -> None:
        """
        Acquire resources and start consuming sightings.

        Raises:
            StartupError: Any acquisition step failed; everything acquired so
                far has been released and the state is STOPPED
        """
        with self._state_lock:
            if self._started:
                raise RuntimeError("Service can only be started once")
            self._started = True

        logger.info(
            f"🚀 Starting doorbell for {self.config.target_mac} "
            f"(cooldown {format_duration(self.config.detection_timeout)})"
        )

        try:
            self._acquire(self._resources)
        except Exception as e:
            logger.error(f"❌ Startup failed: {e}")
            self._finish_teardown()
            raise StartupError(str(e)) from e

        with self._state_lock:
            if self._state is LifecycleState.STARTING:
                self._state = LifecycleState.RUNNING
                logger.info("✅ Doorbell running")
            else:
                logger.info("Shutdown requested during startup")

    def _acquire(self, stack: ExitStack) -> None:
        if not self.transport.connect(timeout=self.connect_timeout):
            reason = getattr(self.transport, "startup_error", None)
            raise TransportError(
                f"failed to connect to MQTT broker {self.config.broker.address}"
                + (f": {reason}" if reason else "")
            )
        stack.callback(self._release, "transport", self.transport.stop)

        audio = self.audio_factory()
        stack.callback(self._release, "audio device", audio.close)

        icon_dir = stack.enter_context(tempfile.TemporaryDirectory(prefix="cat-doorbell"))
        self.icon_path = unpack(ICON_NAME, Path(icon_dir) / ICON_NAME)

        dispatcher = AlertDispatcher(
            visual=self.visual,
            audio=audio,
            logger=self.slog,
            icon_path=self.icon_path,
        )
        self.loop = IngestionLoop(
            sightings=self.sightings,
            target=self.config.target_mac,
            cooldown=self.config.detection_timeout,
            gate=self.gate,
            dispatcher=dispatcher,
            structured_logger=self.slog,
            clock=self.clock,
        )
        self.loop.start()
        stack.callback(self._release, "ingestion loop", self.loop.stop)

    def _release(self, name: str, release: Callable[[], None]) -> None:
        try:
            release()
            logger.info(f"✅ Released {name}")
        except Exception as e:
            logger.error(f"❌ Error releasing {name}: {e}", exc_info=True)

    def request_shutdown(self, reason: str = "requested") -> bool:
        """
        Ask the service to stop. Safe from any thread and from signal handlers.

        Returns:
            True for the call that initiated shutdown, False for later ones
        """
        with self._state_lock:
            if self._state in (LifecycleState.SHUTTING_DOWN, LifecycleState.STOPPED):
                return False
            self._state = LifecycleState.SHUTTING_DOWN
            self._shutdown_reason = reason

        logger.info(f"🛑 Shutdown requested ({reason})")
        self._shutdown_event.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until a shutdown trigger arrives, then tear down.

        Returns:
            True once the service is STOPPED, False if timeout expired first
        """
        if not self._shutdown_event.wait(timeout=timeout):
            return False
        self._finish_teardown()
        return True

    def run(self) -> None:
        """start() then wait()."""
        self.start()
        self.wait()

    def _finish_teardown(self) -> None:
        with self._teardown_lock:
            if self._torn_down:
                return
            self._torn_down = True

            logger.info("🛑 Tearing down doorbell")
            try:
                self._resources.close()
            except Exception as e:
                logger.error(f"❌ Error during teardown: {e}", exc_info=True)

            self.teardown_count += 1
            with self._state_lock:
                self._state = LifecycleState.STOPPED
            self._shutdown_event.set()
            self._stopped_event.set()
            logger.info("✅ Doorbell stopped")

    def is_stopped(self) -> bool:
        return self._stopped_event.is_set()

    def install_signal_handlers(self) -> None:
        """
        Route SIGINT and SIGTERM to request_shutdown().

        Must be called from the main thread.
        """
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, signum, frame) -> None:
        signal_name = signal.Signals(signum).name
        if not self.request_shutdown(signal_name):
            logger.warning(f"⚠️ Received {signal_name}, shutdown already in progress")

    def get_stats(self) -> dict:
        stats = {
            'state': self.state.value,
            'gate': self.gate.get_stats(),
            'teardown_count': self.teardown_count,
        }
        transport_stats = getattr(self.transport, "get_stats", None)
        if transport_stats is not None:
            stats['transport'] = transport_stats()
        return stats
