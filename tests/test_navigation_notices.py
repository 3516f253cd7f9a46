import pytest

from watermap.core.geo import GeoPoint
from watermap.domain.errors import FetchError, FetchErrorKind
from watermap.features.navigation import detect_platform, navigation_uri
from watermap.features.notices import (
    empty_area_notice,
    fetch_error_notice,
    format_distance,
    location_fallback_notice,
)

TAP = GeoPoint(lat=56.95, lon=24.105)


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        ("Mozilla/5.0 (Linux; Android 14; Pixel 8)", "android"),
        ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", "ios"),
        ("Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X)", "ios"),
        ("Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0", "desktop"),
        (None, "desktop"),
    ],
)
def test_detect_platform(user_agent, expected):
    assert detect_platform(user_agent) == expected


def test_navigation_uri_per_platform():
    assert navigation_uri(TAP, "Old Town tap", "android") == (
        "geo:56.950000,24.105000?q=56.950000,24.105000(Old%20Town%20tap)"
    )
    assert navigation_uri(TAP, None, "ios") == "https://maps.apple.com/?daddr=56.950000,24.105000&q=Destination"
    assert navigation_uri(TAP, "x", "desktop") == (
        "https://www.google.com/maps/dir/?api=1&destination=56.950000,24.105000&travelmode=walking"
    )


def test_navigation_uri_rejects_unknown_platform():
    with pytest.raises(ValueError):
        navigation_uri(TAP, None, "symbian")  # type: ignore[arg-type]


def test_fetch_error_notice_depends_on_kind():
    network = fetch_error_notice("water", FetchError(FetchErrorKind.NETWORK, "boom"))
    timeout = fetch_error_notice("toilet", FetchError(FetchErrorKind.TIMEOUT, "slow"))
    parse = fetch_error_notice("water", FetchError(FetchErrorKind.PARSE, "bad"))

    assert "internet connection" in network and "water points" in network
    assert "timed out" in timeout and "toilets" in timeout
    assert "parse" in parse


def test_empty_and_fallback_notices():
    assert empty_area_notice("toilet").startswith("No toilets found in this area.")
    assert location_fallback_notice() == "Could not detect your location. Showing Riga area."


@pytest.mark.parametrize("meters, text", [(0, "0m"), (45.4, "45m"), (999.4, "999m"), (1234, "1.23km")])
def test_format_distance(meters, text):
    assert format_distance(meters) == text
