"""
Desktop presentation adapters.

DesktopNotifier raises a native notification through plyer.
SoundPlayer owns the pygame mixer (the audio device) and plays the doorbell
cue on detached threads, one per cue. close() asks running cues to stop,
joins their threads and releases the device.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Optional, Set

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402
from plyer import notification  # noqa: E402

from doorbell_alert.assets_store import SOUND_NAME, open_asset  # noqa: E402

logger = logging.getLogger(__name__)

APP_NAME = "Cat Doorbell"


class DesktopNotifier:
    """Visual alert channel backed by plyer."""

    def __init__(self, app_name: str = APP_NAME, timeout: int = 10):
        self.app_name = app_name
        self.timeout = timeout

    def raise_visual_alert(self, title: str, message: str, icon_path: Optional[Path]) -> None:
        notification.notify(
            title=title,
            message=message,
            app_name=self.app_name,
            app_icon=str(icon_path) if icon_path else "",
            timeout=self.timeout,
        )


class SoundPlayer:
    """
    Audio alert channel backed by pygame.mixer.

    Lifecycle:
      open()  -> initialise mixer, decode the cue once
      play_audio_cue() -> start a detached playback thread, return at once
      close() -> stop playback, join threads, quit mixer (idempotent)

    Threading:
      - Playback threads only poll the channel and exit when it goes idle
        or when close() sets the stop event
      - _lock guards the thread set and the opened flag
    """

    def __init__(
        self,
        frequency: int = 44100,
        buffer: int = 4096,
        sound_name: str = SOUND_NAME,
        poll_interval: float = 0.05,
        join_timeout: float = 5.0,
    ):
        self.frequency = frequency
        self.buffer = buffer
        self.sound_name = sound_name
        self.poll_interval = poll_interval
        self.join_timeout = join_timeout

        self._sound = None
        self._opened = False
        self._stop_event = threading.Event()
        self._threads: Set[threading.Thread] = set()
        self._lock = threading.Lock()

    def open(self) -> "SoundPlayer":
        """
        Initialise the audio device and load the cue.

        Raises:
            pygame.error: No usable audio device
        """
        pygame.mixer.init(frequency=self.frequency, buffer=self.buffer)
        try:
            with open_asset(self.sound_name) as f:
                self._sound = pygame.mixer.Sound(file=f)
        except Exception:
            pygame.mixer.quit()
            raise

        with self._lock:
            self._opened = True
        logger.info(f"🔊 Audio device initialised ({self.frequency} Hz)")
        return self

    def play_audio_cue(self) -> None:
        """Schedule the doorbell sound; does not wait for it to finish."""
        with self._lock:
            if not self._opened:
                raise RuntimeError("Audio device is not open")

            channel = self._sound.play()
            if channel is None:
                raise RuntimeError("No free mixer channel for doorbell sound")

            thread = threading.Thread(
                target=self._watch_playback,
                args=(channel,),
                name="DoorbellPlaybackThread",
                daemon=True,
            )
            self._threads.add(thread)
            thread.start()

    def _watch_playback(self, channel) -> None:
        try:
            while channel.get_busy() and not self._stop_event.is_set():
                time.sleep(self.poll_interval)
            if self._stop_event.is_set():
                channel.stop()
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    def close(self) -> None:
        """Stop any cue still playing and release the audio device."""
        with self._lock:
            if not self._opened:
                return
            self._opened = False
            threads = list(self._threads)

        self._stop_event.set()
        for thread in threads:
            thread.join(timeout=self.join_timeout)
            if thread.is_alive():
                logger.warning(f"⚠️ Playback thread {thread.name} did not stop in time")

        self._sound = None
        pygame.mixer.quit()
        logger.info("✅ Audio device released")

    def active_playbacks(self) -> int:
        with self._lock:
            return len(self._threads)
