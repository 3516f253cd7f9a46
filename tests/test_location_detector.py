import asyncio

import httpx
import pytest

from watermap.config.settings import Settings
from watermap.core.geo import GeoPoint
from watermap.core.result import Err, Ok
from watermap.domain.errors import LocationErrorKind
from watermap.location.detector import LocationDetector, LocationState, is_secure_context
from watermap.location.providers import (
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    FixedPositionProvider,
    IpGeolocationProvider,
    PositionError,
)


class _RecordingProvider:
    def __init__(self, result=None, exc=None):
        self.calls: list[dict] = []
        self._result = result
        self._exc = exc

    async def current_position(self, *, high_accuracy: bool, timeout_seconds: float) -> GeoPoint:
        self.calls.append({"high_accuracy": high_accuracy, "timeout_seconds": timeout_seconds})
        if self._exc is not None:
            raise self._exc
        return self._result


class _HangingProvider:
    async def current_position(self, *, high_accuracy: bool, timeout_seconds: float) -> GeoPoint:
        await asyncio.sleep(60)
        raise AssertionError("unreachable")


@pytest.mark.parametrize(
    ("origin", "secure"),
    [
        ("https://example.org", True),
        ("http://localhost:5173", True),
        ("http://127.0.0.1", True),
        ("https://localhost:8443", True),
        ("file://localhost/srv/index.html", True),
        ("ws://127.0.0.1:9000", True),
        ("http://localhost.example.org", False),
        ("http://example.org", False),
        ("file:///tmp/index.html", False),
        (None, False),
    ],
)
def test_is_secure_context(origin, secure):
    assert is_secure_context(origin) is secure


def test_success_returns_point_and_passes_options():
    provider = _RecordingProvider(result=GeoPoint(lat=56.95, lon=24.1))
    detector = LocationDetector(provider, timeout_seconds=5, high_accuracy=True, origin="https://x.test")

    outcome = asyncio.run(detector.detect_location())

    assert outcome == Ok(GeoPoint(lat=56.95, lon=24.1))
    assert detector.state is LocationState.GRANTED
    assert provider.calls == [{"high_accuracy": True, "timeout_seconds": 5.0}]


def test_insecure_context_is_not_supported_without_calling_provider():
    provider = _RecordingProvider(result=GeoPoint(lat=0, lon=0))
    detector = LocationDetector(provider, origin="http://example.org")

    outcome = asyncio.run(detector.detect_location())

    assert isinstance(outcome, Err)
    assert outcome.error.kind is LocationErrorKind.NOT_SUPPORTED
    assert provider.calls == []
    assert detector.state is LocationState.UNSUPPORTED


def test_missing_capability_is_not_supported():
    outcome = asyncio.run(LocationDetector(None).detect_location())
    assert isinstance(outcome, Err)
    assert outcome.error.kind is LocationErrorKind.NOT_SUPPORTED


@pytest.mark.parametrize(
    ("code", "kind", "state"),
    [
        (PERMISSION_DENIED, LocationErrorKind.PERMISSION_DENIED, LocationState.DENIED),
        (POSITION_UNAVAILABLE, LocationErrorKind.POSITION_UNAVAILABLE, LocationState.DENIED),
        (TIMEOUT, LocationErrorKind.TIMEOUT, LocationState.TIMEOUT),
    ],
)
def test_platform_codes_map_to_taxonomy(code, kind, state):
    detector = LocationDetector(_RecordingProvider(exc=PositionError(code, "platform says no")))
    outcome = asyncio.run(detector.detect_location())
    assert isinstance(outcome, Err)
    assert outcome.error.kind is kind
    assert detector.state is state


def test_unknown_code_is_position_unavailable_with_message_kept():
    detector = LocationDetector(_RecordingProvider(exc=PositionError(99, "sensor exploded")))
    outcome = asyncio.run(detector.detect_location())
    assert isinstance(outcome, Err)
    assert outcome.error.kind is LocationErrorKind.POSITION_UNAVAILABLE
    assert "sensor exploded" in outcome.error.message


def test_hanging_provider_resolves_as_timeout():
    detector = LocationDetector(_HangingProvider(), timeout_seconds=0.05)
    outcome = asyncio.run(detector.detect_location())
    assert isinstance(outcome, Err)
    assert outcome.error.kind is LocationErrorKind.TIMEOUT
    assert detector.state is LocationState.TIMEOUT


def test_from_settings_uses_location_section():
    settings = Settings.model_validate({"location": {"origin": "http://example.org"}})
    detector = LocationDetector.from_settings(settings, FixedPositionProvider(GeoPoint(lat=1, lon=1)))
    outcome = asyncio.run(detector.detect_location())
    assert isinstance(outcome, Err)
    assert outcome.error.kind is LocationErrorKind.NOT_SUPPORTED


def _ip_provider(handler) -> IpGeolocationProvider:
    return IpGeolocationProvider(Settings(), transport=httpx.MockTransport(handler))


def test_ip_provider_parses_coordinates():
    provider = _ip_provider(lambda request: httpx.Response(200, json={"latitude": 56.95, "longitude": 24.11}))
    point = asyncio.run(provider.current_position(high_accuracy=True, timeout_seconds=1))
    assert point == GeoPoint(lat=56.95, lon=24.11)


def test_ip_provider_maps_forbidden_to_permission_denied():
    provider = _ip_provider(lambda request: httpx.Response(403))
    with pytest.raises(PositionError) as info:
        asyncio.run(provider.current_position(high_accuracy=True, timeout_seconds=1))
    assert info.value.code == PERMISSION_DENIED


def test_ip_provider_maps_error_payload_to_unavailable():
    provider = _ip_provider(lambda request: httpx.Response(200, json={"error": True, "reason": "RateLimited"}))
    with pytest.raises(PositionError) as info:
        asyncio.run(provider.current_position(high_accuracy=True, timeout_seconds=1))
    assert info.value.code == POSITION_UNAVAILABLE
    assert "RateLimited" in info.value.message


def test_ip_provider_maps_transport_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(PositionError) as info:
        asyncio.run(_ip_provider(handler).current_position(high_accuracy=True, timeout_seconds=1))
    assert info.value.code == TIMEOUT
