"""
One-shot user location detection.

`LocationDetector.detect_location()` asks the platform provider for a single position and
always resolves to exactly one `Result`:
- `Ok(GeoPoint)` on success
- `Err(LocationError)` classified as permission-denied / position-unavailable /
  timeout / not-supported

There is no automatic retry; callers re-invoke the method on an explicit user action.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from urllib.parse import urlsplit

from watermap.config.settings import Settings
from watermap.core.geo import GeoPoint
from watermap.core.result import Err, Ok, Result
from watermap.domain.errors import LocationError, LocationErrorKind
from watermap.location.providers import (
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    GeolocationProvider,
    PositionError,
)

logger = logging.getLogger(__name__)

_SECURE_HOSTS = {"localhost", "127.0.0.1"}


class LocationState(str, Enum):
    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


_STATE_BY_ERROR = {
    LocationErrorKind.PERMISSION_DENIED: LocationState.DENIED,
    LocationErrorKind.POSITION_UNAVAILABLE: LocationState.DENIED,
    LocationErrorKind.TIMEOUT: LocationState.TIMEOUT,
    LocationErrorKind.NOT_SUPPORTED: LocationState.UNSUPPORTED,
}


def is_secure_context(origin: str | None) -> bool:
    """HTTPS origins and localhost on any scheme count as secure."""
    if not origin:
        return False
    parts = urlsplit(origin)
    if parts.scheme == "https":
        return True
    return (parts.hostname or "") in _SECURE_HOSTS


def classify_position_error(exc: PositionError) -> LocationError:
    if exc.code == PERMISSION_DENIED:
        return LocationError(
            LocationErrorKind.PERMISSION_DENIED,
            "Permission to access location was denied.",
        )
    if exc.code == POSITION_UNAVAILABLE:
        return LocationError(LocationErrorKind.POSITION_UNAVAILABLE, "Location information is unavailable.")
    if exc.code == TIMEOUT:
        return LocationError(LocationErrorKind.TIMEOUT, "Location request timed out.")
    return LocationError(
        LocationErrorKind.POSITION_UNAVAILABLE,
        f"Unable to retrieve your location: {exc.message}",
    )


class LocationDetector:
    """Wraps a `GeolocationProvider` behind a single-Result async call."""

    def __init__(
        self,
        provider: GeolocationProvider | None,
        *,
        timeout_seconds: float = 10,
        high_accuracy: bool = True,
        origin: str | None = "http://localhost",
    ):
        self._provider = provider
        self._timeout_seconds = float(timeout_seconds)
        self._high_accuracy = bool(high_accuracy)
        self._origin = origin
        self.state = LocationState.PENDING

    @classmethod
    def from_settings(cls, settings: Settings, provider: GeolocationProvider | None) -> "LocationDetector":
        cfg = settings.location
        return cls(
            provider,
            timeout_seconds=cfg.timeout_seconds,
            high_accuracy=cfg.high_accuracy,
            origin=cfg.origin,
        )

    def _finish(self, outcome: Result[GeoPoint, LocationError]) -> Result[GeoPoint, LocationError]:
        if isinstance(outcome, Ok):
            self.state = LocationState.GRANTED
        else:
            self.state = _STATE_BY_ERROR[outcome.error.kind]
            logger.warning("Location detection failed (%s): %s", outcome.error.kind.value, outcome.error.message)
        return outcome

    async def detect_location(self) -> Result[GeoPoint, LocationError]:
        self.state = LocationState.PENDING

        if self._provider is None:
            return self._finish(
                Err(LocationError(LocationErrorKind.NOT_SUPPORTED, "Geolocation is not available."))
            )
        if not is_secure_context(self._origin):
            return self._finish(
                Err(
                    LocationError(
                        LocationErrorKind.NOT_SUPPORTED,
                        "Geolocation requires a secure context (HTTPS) or localhost.",
                    )
                )
            )

        try:
            point = await asyncio.wait_for(
                self._provider.current_position(
                    high_accuracy=self._high_accuracy,
                    timeout_seconds=self._timeout_seconds,
                ),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            return self._finish(
                Err(
                    LocationError(
                        LocationErrorKind.TIMEOUT,
                        f"Location request timed out after {self._timeout_seconds:g}s.",
                    )
                )
            )
        except PositionError as exc:
            return self._finish(Err(classify_position_error(exc)))
        except Exception as exc:
            return self._finish(
                Err(
                    LocationError(
                        LocationErrorKind.POSITION_UNAVAILABLE,
                        f"Unable to retrieve your location: {exc}",
                    )
                )
            )

        logger.info("Location detected: lat=%.5f lon=%.5f", point.lat, point.lon)
        return self._finish(Ok(point))
