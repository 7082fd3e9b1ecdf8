"""
Access to the icon and sound files bundled with the package.
"""

import shutil
from importlib import resources
from pathlib import Path
from typing import BinaryIO, Union

ICON_NAME = "cat-icon.png"
SOUND_NAME = "doorbell.wav"

_PACKAGE = "doorbell_alert.assets"


def open_asset(name: str) -> BinaryIO:
    """Open a bundled asset for reading (binary)."""
    return resources.files(_PACKAGE).joinpath(name).open("rb")


def read_asset(name: str) -> bytes:
    """Read a bundled asset into memory."""
    return resources.files(_PACKAGE).joinpath(name).read_bytes()


def unpack(name: str, path: Union[str, Path]) -> Path:
    """
    Copy a bundled asset to a real file on disk.

    Notification backends need a filesystem path for the icon; the package
    may be installed as a zip, so the asset is always copied out.

    Returns:
        Path of the written file
    """
    path = Path(path)
    with open_asset(name) as src, open(path, "wb") as dst:
        shutil.copyfileobj(src, dst)
    return path
