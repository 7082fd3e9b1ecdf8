"""
Debounce gate, identity matcher and ingestion loop tests.

Usage:
    pytest test_detection.py
"""

import queue
import threading
import time
from datetime import timedelta

from doorbell_alert import AlertDispatcher
from doorbell_detector import DebounceGate, IngestionLoop, matches
from doorbell_mqtt import SightingEvent, create_logger

TARGET = "AA:BB:CC:DD:EE:FF"
FIVE_MINUTES = timedelta(minutes=5)


class RecordingVisual:
    def __init__(self):
        self.calls = []

    def raise_visual_alert(self, title, message, icon_path):
        self.calls.append((title, message, icon_path))


class RecordingAudio:
    def __init__(self):
        self.calls = 0

    def play_audio_cue(self):
        self.calls += 1


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def make_loop(sightings=None, clock=None):
    visual, audio = RecordingVisual(), RecordingAudio()
    logger = create_logger("test")
    gate = DebounceGate()
    loop = IngestionLoop(
        sightings=sightings if sightings is not None else queue.Queue(),
        target=TARGET,
        cooldown=FIVE_MINUTES,
        gate=gate,
        dispatcher=AlertDispatcher(visual, audio, logger),
        structured_logger=logger,
        clock=clock or FakeClock(),
        poll_interval=0.01,
    )
    return loop, gate, visual, audio


# ─── Identity Matcher ────────────────────────────────────────────────────────

def test_matches_case_insensitive():
    assert matches("AA:BB:CC:DD:EE:FF", "aa:bb:cc:dd:ee:ff")
    assert matches("aa:bb:cc:dd:ee:ff", "AA:BB:CC:DD:EE:FF")


def test_matches_rejects_different_identifiers():
    assert not matches("AA:BB:CC:DD:EE:00", TARGET)
    assert not matches("AA-BB-CC-DD-EE-FF", TARGET)
    assert not matches("", TARGET)
    assert not matches(None, TARGET)


# ─── Debounce Gate ───────────────────────────────────────────────────────────

def test_debounce_sequence():
    """Sightings at 0s, 60s, 301s, 302s with a 5m cooldown accept 0s and 301s."""
    gate = DebounceGate()

    accepted = [t for t in (0.0, 60.0, 301.0, 302.0) if gate.try_accept(t, FIVE_MINUTES)]

    assert accepted == [0.0, 301.0]
    assert gate.last_accepted_at == 301.0
    assert gate.get_stats()['suppressed'] == 2


def test_debounce_boundary_is_inclusive():
    gate = DebounceGate()
    assert gate.try_accept(10.0, 300)
    assert not gate.try_accept(309.999, 300)
    assert gate.try_accept(310.0, 300)


def test_debounce_suppression_leaves_state_unchanged():
    gate = DebounceGate()
    gate.try_accept(100.0, FIVE_MINUTES)
    gate.try_accept(200.0, FIVE_MINUTES)
    assert gate.last_accepted_at == 100.0


def test_debounce_zero_cooldown_accepts_all():
    gate = DebounceGate()
    assert all(gate.try_accept(0.0, timedelta(0)) for _ in range(5))


def test_debounce_reset():
    gate = DebounceGate()
    gate.try_accept(0.0, FIVE_MINUTES)
    gate.reset()
    assert gate.last_accepted_at is None
    assert gate.try_accept(1.0, FIVE_MINUTES)


def test_concurrent_acceptance_is_exclusive():
    """100 simultaneous sightings at t=0 yield exactly one acceptance."""
    gate = DebounceGate()
    barrier = threading.Barrier(100)
    results = []
    results_lock = threading.Lock()

    def fire():
        barrier.wait()
        accepted = gate.try_accept(0.0, FIVE_MINUTES)
        with results_lock:
            results.append(accepted)

    threads = [threading.Thread(target=fire) for _ in range(100)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 100
    assert results.count(True) == 1


# ─── Ingestion Loop ──────────────────────────────────────────────────────────

def test_handle_dispatches_matching_sighting():
    loop, gate, visual, audio = make_loop()

    result = loop.handle(SightingEvent("aa:bb:cc:dd:ee:ff"))

    assert result is not None and result.all_succeeded
    assert visual.calls == [("Doorbell", "Device aa:bb:cc:dd:ee:ff came into range", None)]
    assert audio.calls == 1
    assert gate.last_accepted_at == 0.0


def test_handle_ignores_non_matching_sighting():
    loop, gate, visual, audio = make_loop()

    assert loop.handle(SightingEvent("11:22:33:44:55:66")) is None

    assert gate.last_accepted_at is None
    assert gate.get_stats() == {'accepted': 0, 'suppressed': 0, 'last_accepted_at': None}
    assert visual.calls == [] and audio.calls == 0


def test_handle_suppresses_within_cooldown():
    clock = FakeClock()
    loop, gate, visual, audio = make_loop(clock=clock)

    loop.handle(SightingEvent(TARGET))
    clock.now = 60.0
    assert loop.handle(SightingEvent(TARGET)) is None
    clock.now = 300.0
    assert loop.handle(SightingEvent(TARGET)) is not None

    assert len(visual.calls) == 2
    assert audio.calls == 2


def test_run_consumes_queue_until_stopped():
    sightings = queue.Queue()
    loop, gate, visual, audio = make_loop(sightings)

    loop.start()
    assert loop.is_running()

    sightings.put(SightingEvent("11:22:33:44:55:66"))
    sightings.put(SightingEvent(TARGET))
    sightings.put(SightingEvent(TARGET))
    sightings.join()

    loop.stop()
    assert not loop.is_running()
    assert len(visual.calls) == 1
    assert gate.get_stats()['suppressed'] == 1


def test_run_survives_handler_errors():
    sightings = queue.Queue()
    loop, gate, visual, audio = make_loop(sightings)

    def broken_clock():
        raise RuntimeError("clock failure")

    loop.clock = broken_clock
    loop.start()
    sightings.put(SightingEvent(TARGET))
    sightings.join()

    loop.clock = FakeClock(1.0)
    sightings.put(SightingEvent(TARGET))
    sightings.join()
    loop.stop()

    assert len(visual.calls) == 1


def test_stop_is_idempotent():
    loop, *_ = make_loop()
    loop.start()
    loop.stop()
    loop.stop()

    deadline = time.monotonic() + 1.0
    while loop.is_running() and time.monotonic() < deadline:
        time.sleep(0.01)
    assert not loop.is_running()
