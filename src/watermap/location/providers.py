"""
Platform geolocation capabilities.

A provider answers one question: "where is the user right now?". It either returns a
`GeoPoint` or raises `PositionError` with a W3C-style numeric code. The location
detector (`watermap.location.detector`) is the only caller and translates these codes
into `LocationError` values.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from watermap.config.settings import Settings
from watermap.core.geo import GeoPoint
from watermap.core.http import get_json

logger = logging.getLogger(__name__)

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class PositionError(Exception):
    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class GeolocationProvider(Protocol):
    async def current_position(self, *, high_accuracy: bool, timeout_seconds: float) -> GeoPoint: ...


class FixedPositionProvider:
    """Position supplied by the user (CLI flags, API query parameters)."""

    def __init__(self, point: GeoPoint):
        self._point = point

    async def current_position(self, *, high_accuracy: bool, timeout_seconds: float) -> GeoPoint:
        return self._point


class IpGeolocationProvider:
    """Approximate position from an IP geolocation endpoint (ipapi.co-style JSON).

    Accuracy is city-level at best, so `high_accuracy` cannot be honored and is ignored.
    """

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self._url = settings.location.ip_lookup_url
        self._transport = transport

    async def current_position(self, *, high_accuracy: bool, timeout_seconds: float) -> GeoPoint:
        try:
            payload = await get_json(self._url, timeout_seconds=timeout_seconds, transport=self._transport)
        except httpx.TimeoutException as exc:
            raise PositionError(TIMEOUT, f"IP lookup timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 403:
                raise PositionError(PERMISSION_DENIED, "IP lookup refused (HTTP 403).") from exc
            raise PositionError(POSITION_UNAVAILABLE, f"IP lookup failed: HTTP {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise PositionError(POSITION_UNAVAILABLE, f"IP lookup failed: {exc}") from exc

        if not isinstance(payload, dict) or payload.get("error"):
            reason = payload.get("reason") if isinstance(payload, dict) else None
            raise PositionError(POSITION_UNAVAILABLE, f"IP lookup returned no position: {reason or 'unknown'}")

        try:
            point = GeoPoint(lat=float(payload["latitude"]), lon=float(payload["longitude"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise PositionError(POSITION_UNAVAILABLE, f"IP lookup returned invalid coordinates: {exc}") from exc

        logger.info("IP geolocation resolved lat=%.4f lon=%.4f", point.lat, point.lon)
        return point
