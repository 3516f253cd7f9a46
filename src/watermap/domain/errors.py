"""
Typed failure values for the sync engine.

These are returned inside `Err(...)`, never raised. `kind` is the discriminator every
consumer switches on; `message` is kept for logs and diagnostics only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FetchErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    PARSE = "parse"


class LocationErrorKind(str, Enum):
    PERMISSION_DENIED = "permission-denied"
    POSITION_UNAVAILABLE = "position-unavailable"
    TIMEOUT = "timeout"
    NOT_SUPPORTED = "not-supported"


@dataclass(frozen=True)
class FetchError:
    kind: FetchErrorKind
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"type": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class LocationError:
    kind: LocationErrorKind
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"type": self.kind.value, "message": self.message}
