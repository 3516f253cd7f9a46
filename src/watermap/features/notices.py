"""
User-facing notice text for rendering layers (CLI, web UI).

Kept separate from the engine so wording can change without touching sync logic.
"""

from __future__ import annotations

from watermap.domain.errors import FetchError, FetchErrorKind

_LAYER_NOUNS = {"water": "water points", "toilet": "toilets"}


def _noun(layer: str) -> str:
    return _LAYER_NOUNS.get(layer, f"{layer} facilities")


def fetch_error_notice(layer: str, error: FetchError) -> str:
    noun = _noun(layer)
    if error.kind is FetchErrorKind.NETWORK:
        return f"Failed to load {noun}. Please check your internet connection and try again."
    if error.kind is FetchErrorKind.TIMEOUT:
        return f"Request timed out while loading {noun}. Please try again."
    if error.kind is FetchErrorKind.PARSE:
        return f"Failed to parse {noun} data. Please try again."
    raise ValueError(f"Unknown fetch error kind: {error.kind!r}")


def empty_area_notice(layer: str) -> str:
    return f"No {_noun(layer)} found in this area. Try zooming out or panning to a different location."


def location_fallback_notice(place: str = "Riga") -> str:
    return f"Could not detect your location. Showing {place} area."


def format_distance(meters: float) -> str:
    """`"45m"` below one kilometer, `"1.23km"` above."""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.2f}km"
