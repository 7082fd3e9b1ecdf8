"""
Shared configuration types.

Every configuration document starts with a TypeMeta header that names its
schema version and kind. The loader reads the header first and uses it to
pick the decoder for the rest of the document.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class ConfigError(Exception):
    """Configuration document could not be loaded."""
    pass


class UnsupportedVersionError(ConfigError):
    """apiVersion is not one this build understands."""

    def __init__(self, api_version: Optional[str]):
        self.api_version = api_version
        super().__init__(f"unsupported api version: {api_version}")


class UnsupportedKindError(ConfigError):
    """kind is not defined for the given apiVersion."""

    def __init__(self, api_version: str, kind: Optional[str]):
        self.api_version = api_version
        self.kind = kind
        super().__init__(f"unsupported kind {kind!r} for api version {api_version}")


@dataclass(frozen=True)
class TypeMeta:
    """apiVersion/kind discriminator."""

    api_version: Optional[str] = None
    kind: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeMeta":
        return cls(
            api_version=data.get("apiVersion"),
            kind=data.get("kind"),
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"apiVersion": self.api_version, "kind": self.kind}
