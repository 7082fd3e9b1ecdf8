"""
doorbell_detector - Debounced detection of the target beacon.

Architecture:
- matches: case-insensitive identifier comparison
- DebounceGate: lock-guarded cooldown window
- IngestionLoop: queue consumer driving matcher → gate → dispatcher
- DoorbellService: resource lifecycle and shutdown coordination

Threading Model:
- paho-mqtt network thread (produces SightingEvents)
- SightingIngestionThread (consumes them)
- Main thread waits in DoorbellService.wait()
"""

from doorbell_detector.debounce import DebounceGate
from doorbell_detector.ingestion import IngestionLoop
from doorbell_detector.matcher import matches
from doorbell_detector.service import DoorbellService, LifecycleState, StartupError

__all__ = [
    "DebounceGate",
    "DoorbellService",
    "IngestionLoop",
    "LifecycleState",
    "StartupError",
    "matches",
]
