"""
System tray icon with a Quit item.

Selecting Quit calls the supplied on_quit callback; the service treats it
the same as a termination signal.
"""

import io
import logging
from typing import Callable, Optional

from PIL import Image

from doorbell_alert.assets_store import ICON_NAME, read_asset

logger = logging.getLogger(__name__)

TOOLTIP = "Doorbell"


class TrayIcon:
    """
    Wraps a pystray.Icon running on its own thread (run_detached).

    Example:
        tray = TrayIcon(on_quit=lambda: service.request_shutdown("tray"))
        tray.start()
        ...
        tray.stop()
    """

    def __init__(self, on_quit: Callable[[], None], tooltip: str = TOOLTIP):
        self.on_quit = on_quit
        self.tooltip = tooltip
        self._icon = None

    def start(self) -> None:
        # pystray selects its display backend on import
        import pystray

        image = Image.open(io.BytesIO(read_asset(ICON_NAME)))
        menu = pystray.Menu(
            pystray.MenuItem("Quit", self._handle_quit),
        )
        self._icon = pystray.Icon("cat-doorbell", image, self.tooltip, menu)
        self._icon.run_detached()
        logger.info("🐱 Tray icon started")

    def _handle_quit(self, icon, item) -> None:
        logger.info("Quit selected from tray menu")
        self.on_quit()

    def stop(self) -> None:
        icon: Optional[object] = self._icon
        self._icon = None
        if icon is not None:
            icon.stop()
