#!/usr/bin/env python3
"""
Cat Doorbell - Entry Point
==========================

Receive a notification when the cat wants to come inside.

This script starts the doorbell, which:
- Subscribes to Bluetooth beacon sightings on MQTT (bluetooth/devices)
- Watches for the configured target device
- Raises a desktop notification and plays a doorbell sound, at most once
  per detection timeout
- Shows a tray icon with a Quit item

Usage:
    python run_doorbell.py --config ~/.config/cat-doorbell/config.yaml

Lifecycle:
    1. Setup logging (console + per-run file, old files pruned)
    2. Load versioned configuration from YAML
    3. Create subscriber, alert channels and DoorbellService
    4. Start service (connect, open audio, unpack icon)
    5. Wait for stop signal (Ctrl+C, SIGTERM or tray Quit)
    6. Graceful shutdown

Exit status:
    0 after a normal shutdown, 1 if configuration or startup failed
"""

import argparse
import importlib.metadata
import logging
import os
import queue
import sys
import time
from pathlib import Path
from typing import List, Optional

from doorbell_config import ConfigError, LatestConfig, load
from doorbell_detector import DoorbellService, StartupError
from doorbell_mqtt import SightingSubscriber, TransportError, create_logger

APP_NAME = "cat-doorbell"
MAX_LOG_FILES = 10
LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def get_version() -> str:
    try:
        return importlib.metadata.version(APP_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


def default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / APP_NAME / "config.yaml"


def default_log_dir() -> Path:
    base = os.environ.get("XDG_STATE_HOME") or Path.home() / ".local" / "state"
    return Path(base) / APP_NAME / "logs"


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def remove_old_logs(log_dir: Path, keep: int = MAX_LOG_FILES) -> List[Path]:
    """
    Delete all but the newest `keep` files in log_dir.

    Log file names start with the unix timestamp, so name order is age order.

    Returns:
        Paths that were removed
    """
    entries = sorted(p for p in log_dir.iterdir() if p.is_file())
    stale = entries[:-keep] if keep > 0 else entries
    for path in stale:
        path.unlink()
    return stale


def setup_logging(log_dir: Optional[Path], level: int = logging.INFO) -> logging.Logger:
    """
    Setup logging for the doorbell.

    Args:
        log_dir: Directory for per-run log files (None: console only)
        level: Root log level

    Returns:
        Logger instance for the entry point
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        remove_old_logs(log_dir)
        log_file = log_dir / f"{int(time.time())}-{os.getpid()}-{APP_NAME}.log"
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main Application
# ─────────────────────────────────────────────────────────────────────────────

class DoorbellApp:
    """
    Main application wrapper for DoorbellService.

    Handles:
    - Configuration loading
    - Component initialization (subscriber, alert channels)
    - Signal and tray wiring
    - Exit status
    """

    def __init__(
        self,
        config_path: Path,
        log_dir: Optional[Path] = None,
        log_level: int = logging.INFO,
        tray: bool = True,
    ):
        self.config_path = config_path
        self.log_level = log_level
        self.use_tray = tray
        self.logger = setup_logging(log_dir, log_level)

        # Components (initialized in setup())
        self.config: Optional[LatestConfig] = None
        self.subscriber: Optional[SightingSubscriber] = None
        self.service: Optional[DoorbellService] = None
        self.tray = None

    def setup(self) -> None:
        """
        Steps:
        1. Load configuration
        2. Create subscriber feeding the sightings queue
        3. Create alert channels and DoorbellService
        """
        # Imported here so --help and config errors work without audio/GUI stacks
        from doorbell_alert.desktop import DesktopNotifier, SoundPlayer

        self.logger.info("=" * 80)
        self.logger.info(f"🚀 Cat Doorbell {get_version()} - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = load(self.config_path)
        self.logger.info(f"✅ Configuration loaded (target={self.config.target_mac})")

        sightings: "queue.Queue" = queue.Queue(maxsize=256)

        self.subscriber = SightingSubscriber(
            broker_address=self.config.broker.address,
            sink=sightings,
            logger=create_logger("subscriber", level=self.log_level),
            username=self.config.broker.username,
            password=self.config.broker.password,
        )

        self.service = DoorbellService(
            config=self.config,
            transport=self.subscriber,
            sightings=sightings,
            visual=DesktopNotifier(),
            audio_factory=lambda: SoundPlayer().open(),
            structured_logger=create_logger("detector", level=self.log_level),
        )

    def _start_tray(self) -> None:
        from doorbell_alert.tray import TrayIcon

        tray = TrayIcon(on_quit=lambda: self.service.request_shutdown("tray quit"))
        try:
            tray.start()
        except Exception as e:
            self.logger.warning(f"⚠️ Tray icon unavailable, continuing without it: {e}")
            return
        self.tray = tray

    def run(self) -> int:
        """
        Run the doorbell. Blocks until shutdown.

        Returns:
            Process exit status
        """
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        self.service.install_signal_handlers()

        try:
            self.service.start()
        except StartupError as e:
            self.logger.error(f"❌ Failed to start: {e}")
            return 1

        if self.use_tray:
            self._start_tray()

        self.logger.info("Press Ctrl+C to stop")
        try:
            self.service.wait()
        finally:
            if self.tray:
                self.tray.stop()

        self.logger.info(f"✅ Shutdown complete ({self.service.shutdown_reason})")
        return 0


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Receive a notification when the cat wants to come inside",
    )

    parser.add_argument(
        '-c', '--config',
        type=Path,
        default=default_config_path(),
        help='Path to the configuration file (default: %(default)s)'
    )

    parser.add_argument(
        '--log-dir',
        type=Path,
        default=default_log_dir(),
        help='Directory to store log files (default: %(default)s)'
    )

    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    parser.add_argument(
        '--log-level',
        choices=sorted(LOG_LEVELS),
        default='info',
        help='Set the log verbosity level (default: %(default)s)'
    )

    parser.add_argument(
        '--no-tray',
        action='store_true',
        help='Do not show a system tray icon'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f"%(prog)s {get_version()}"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    app = DoorbellApp(
        config_path=args.config,
        log_dir=None if args.no_log_file else args.log_dir,
        log_level=LOG_LEVELS[args.log_level],
        tray=not args.no_tray,
    )

    try:
        app.setup()
    except (ConfigError, TransportError) as e:
        app.logger.error(f"❌ Failed to load configuration: {e}")
        return 1

    return app.run()


if __name__ == '__main__':
    sys.exit(main())
