"""
Walking-directions deep links for a facility.

Android gets a `geo:` URI (opens the default maps app), iOS an Apple Maps link and
everything else a Google Maps directions URL.
"""

from __future__ import annotations

import re
from typing import Literal
from urllib.parse import quote

from watermap.core.geo import GeoPoint

Platform = Literal["android", "ios", "desktop"]

_ANDROID_RE = re.compile(r"Android", re.IGNORECASE)
_IOS_RE = re.compile(r"iP(hone|od|ad)", re.IGNORECASE)


def detect_platform(user_agent: str | None) -> Platform:
    ua = user_agent or ""
    if _ANDROID_RE.search(ua):
        return "android"
    if _IOS_RE.search(ua):
        return "ios"
    return "desktop"


def navigation_uri(point: GeoPoint, label: str | None, platform: Platform) -> str:
    lat = f"{point.lat:.6f}"
    lon = f"{point.lon:.6f}"
    label_enc = quote(label or "Destination", safe="")

    if platform == "android":
        return f"geo:{lat},{lon}?q={lat},{lon}({label_enc})"
    if platform == "ios":
        return f"https://maps.apple.com/?daddr={lat},{lon}&q={label_enc}"
    if platform == "desktop":
        return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lon}&travelmode=walking"
    raise ValueError(f"Unknown platform '{platform}'")
