"""
doorbell_alert - Alert fan-out and desktop presentation.

Modules:
- dispatcher: AlertDispatcher, AlertOutcome, DispatchResult (no GUI deps)
- desktop: DesktopNotifier (plyer), SoundPlayer (pygame mixer)
- tray: TrayIcon (pystray)
- assets_store: bundled icon/sound access

The desktop and tray modules are imported explicitly by the entry point so
that the dispatcher stays usable without a display or audio device.
"""

from doorbell_alert.dispatcher import (
    ALERT_TITLE,
    AlertDispatcher,
    AlertOutcome,
    AudioCue,
    DispatchResult,
    VisualAlerter,
    format_alert_message,
)

__all__ = [
    "ALERT_TITLE",
    "AlertDispatcher",
    "AlertOutcome",
    "AudioCue",
    "DispatchResult",
    "VisualAlerter",
    "format_alert_message",
]
