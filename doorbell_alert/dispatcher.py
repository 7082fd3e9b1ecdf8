"""
Alert Dispatcher - fans an accepted detection out to the alert channels.

Channels:
  - Visual: desktop notification carrying the observed identifier
  - Audio: doorbell cue, returns as soon as playback is scheduled

Each channel is invoked on its own. A failure in one is logged and reported
in the DispatchResult; it never prevents or rolls back the other.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from doorbell_mqtt.logging import LogEvent, StructuredLogger
from doorbell_mqtt.schemas import SightingEvent

ALERT_TITLE = "Doorbell"


class VisualAlerter(Protocol):
    """Raises a desktop notification."""

    def raise_visual_alert(self, title: str, message: str, icon_path: Optional[Path]) -> None:
        ...


class AudioCue(Protocol):
    """Plays the doorbell sound without waiting for it to finish."""

    def play_audio_cue(self) -> None:
        ...


@dataclass(frozen=True)
class AlertOutcome:
    """Result of one alert channel: succeeded, or failed with a reason."""

    succeeded: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "AlertOutcome":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, reason: str) -> "AlertOutcome":
        return cls(succeeded=False, reason=reason)


@dataclass(frozen=True)
class DispatchResult:
    """Outcomes of both channels for one accepted detection."""

    visual: AlertOutcome
    audio: AlertOutcome

    @property
    def all_succeeded(self) -> bool:
        return self.visual.succeeded and self.audio.succeeded


def format_alert_message(observed: str) -> str:
    """Human-readable notification body for a detection."""
    return f"Device {observed} came into range"


class AlertDispatcher:
    """
    Invokes the visual and audio channels for a sighting.

    Thread Safety:
      - Holds no mutable state of its own; safe to call from any thread
      - Channel implementations are responsible for their own locking
    """

    def __init__(
        self,
        visual: VisualAlerter,
        audio: AudioCue,
        logger: StructuredLogger,
        icon_path: Optional[Union[str, Path]] = None,
        title: str = ALERT_TITLE,
    ):
        self.visual = visual
        self.audio = audio
        self.logger = logger
        self.icon_path = Path(icon_path) if icon_path else None
        self.title = title

    def dispatch(self, event: SightingEvent) -> DispatchResult:
        """
        Raise the notification and play the audio cue for one detection.

        Returns:
            DispatchResult with one AlertOutcome per channel
        """
        visual_outcome = self._raise_visual(event)
        audio_outcome = self._play_audio(event)

        self.logger.info(
            event=LogEvent.ALERT_DISPATCHED,
            message="Alert dispatched",
            metadata={
                'mac': event.observed,
                'visual': visual_outcome.succeeded,
                'audio': audio_outcome.succeeded,
            }
        )
        return DispatchResult(visual=visual_outcome, audio=audio_outcome)

    def _raise_visual(self, event: SightingEvent) -> AlertOutcome:
        message = format_alert_message(event.observed)
        try:
            self.visual.raise_visual_alert(self.title, message, self.icon_path)
        except Exception as e:
            self.logger.warning(
                event=LogEvent.ALERT_VISUAL_FAILED,
                message="Failed to raise notification",
                metadata={'mac': event.observed},
                exc_info=e
            )
            return AlertOutcome.failed(str(e) or type(e).__name__)
        return AlertOutcome.ok()

    def _play_audio(self, event: SightingEvent) -> AlertOutcome:
        try:
            self.audio.play_audio_cue()
        except Exception as e:
            self.logger.warning(
                event=LogEvent.ALERT_AUDIO_FAILED,
                message="Failed to play doorbell sound",
                metadata={'mac': event.observed},
                exc_info=e
            )
            return AlertOutcome.failed(str(e) or type(e).__name__)
        return AlertOutcome.ok()
