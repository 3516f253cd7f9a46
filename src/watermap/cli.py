"""
WaterMap CLI entrypoint.

This CLI is intended for quick local demos and debugging without a web map.
It plays both outer roles around the sync engine:
- rendering layer: prints the events published by `SyncCoordinator`,
- viewport source (`watch`): reads `south,west,north,east` lines from stdin.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Callable

from watermap.config.settings import get_settings
from watermap.core.geo import BoundingBox, GeoPoint
from watermap.core.logging import configure_logging
from watermap.domain.events import (
    AreaEmpty,
    FacilitiesLoaded,
    FetchFailed,
    LayerCleared,
    LocationFailed,
    LocationResolved,
    SyncEvent,
)
from watermap.domain.models import LocationOrigin
from watermap.features.navigation import navigation_uri
from watermap.features.notices import empty_area_notice, fetch_error_notice, format_distance, location_fallback_notice
from watermap.ingestion.transformers import is_accessible
from watermap.location.providers import FixedPositionProvider, GeolocationProvider, IpGeolocationProvider
from watermap.sync.coordinator import SyncCoordinator, build_coordinator

LAYER_CHOICES = ["water", "toilet"]


def _event_to_dict(event: SyncEvent) -> dict[str, Any]:
    """JSON-friendly view of an event (`{"event": <kind>, ...}`)."""
    if isinstance(event, LocationResolved):
        point = {"lat": event.point.lat, "lon": event.point.lon} if event.point else None
        return {"event": "location", "origin": event.origin.value, "point": point}
    if isinstance(event, LocationFailed):
        return {"event": "location_failed", "error": event.error.as_dict()}
    if isinstance(event, FacilitiesLoaded):
        return {
            "event": "facilities",
            "layer": event.layer,
            "bbox": event.bounds.as_overpass(),
            "reference": {"lat": event.reference.lat, "lon": event.reference.lon},
            "nearest_id": event.nearest.facility.id if event.nearest else None,
            "facilities": [f.model_dump(mode="json") for f in event.facilities],
        }
    if isinstance(event, AreaEmpty):
        return {"event": "empty", "layer": event.layer, "bbox": event.bounds.as_overpass()}
    if isinstance(event, FetchFailed):
        return {
            "event": "error",
            "layer": event.layer,
            "bbox": event.bounds.as_overpass(),
            "error": event.error.as_dict(),
        }
    if isinstance(event, LayerCleared):
        return {"event": "cleared", "layer": event.layer}
    raise TypeError(f"Unexpected event: {event!r}")


def _render_event(event: SyncEvent, *, limit: int = 10) -> list[str]:
    """Human-readable lines for one event."""
    if isinstance(event, LocationResolved):
        if event.origin is LocationOrigin.USER and event.point is not None:
            return [f"Location: {event.point.lat:.5f}, {event.point.lon:.5f} (your location)"]
        return [location_fallback_notice()]
    if isinstance(event, LocationFailed):
        return [f"Could not update your location: {event.error.message}"]
    if isinstance(event, FacilitiesLoaded):
        lines = [f"[{event.layer}] {len(event.facilities)} found in {event.bounds.as_overpass()}"]
        if event.nearest is not None:
            f = event.nearest.facility
            lines.append(f"  nearest: {f.id} {f.name or ''} ({format_distance(event.nearest.distance_m)})".rstrip())
        ranked = sorted(event.facilities, key=lambda a: a.distance_m)[:limit]
        for item in ranked:
            marker = "*" if item.is_nearest else " "
            f = item.facility
            extra = " (wheelchair)" if is_accessible(f) else ""
            lines.append(
                f"  {marker} {format_distance(item.distance_m):>8}  {f.id}  "
                f"{f.location.lat:.5f},{f.location.lon:.5f}  {f.name or ''}{extra}".rstrip()
            )
        return lines
    if isinstance(event, AreaEmpty):
        return [f"[{event.layer}] {empty_area_notice(event.layer)}"]
    if isinstance(event, FetchFailed):
        return [f"[{event.layer}] {fetch_error_notice(event.layer, event.error)}"]
    if isinstance(event, LayerCleared):
        return [f"[{event.layer}] hidden"]
    raise TypeError(f"Unexpected event: {event!r}")


def _printer(as_json: bool, limit: int) -> Callable[[SyncEvent], None]:
    def publish(event: SyncEvent) -> None:
        if as_json:
            print(json.dumps(_event_to_dict(event), ensure_ascii=False), flush=True)
            return
        for line in _render_event(event, limit=limit):
            print(line, flush=True)

    return publish


def _provider_from_args(args: argparse.Namespace) -> GeolocationProvider | None:
    if args.lat is not None or args.lon is not None:
        if args.lat is None or args.lon is None:
            raise ValueError("--lat and --lon must be given together")
        return FixedPositionProvider(GeoPoint(lat=float(args.lat), lon=float(args.lon)))
    if args.ip_locate:
        return IpGeolocationProvider(get_settings())
    return None


async def _run_nearest(args: argparse.Namespace) -> int:
    settings = get_settings()
    publish = _printer(bool(args.json), int(args.limit))
    coordinator = build_coordinator(
        settings,
        provider=_provider_from_args(args),
        publish=publish,
        enabled_layers=list(args.layer or ["water"]),
    )
    viewport = BoundingBox.parse(args.bbox) if args.bbox else None
    try:
        await coordinator.start(viewport)
    finally:
        await coordinator.close()
    failed = any(s.last_error is not None for s in coordinator.layers.values() if s.enabled)
    return 1 if failed else 0


async def _handle_watch_line(coordinator: SyncCoordinator, line: str) -> None:
    words = line.split()
    if words[0] == "enable" and len(words) == 2:
        await coordinator.enable_layer(words[1])
    elif words[0] == "disable" and len(words) == 2:
        coordinator.disable_layer(words[1])
    elif words[0] == "locate" and len(words) == 1:
        await coordinator.relocate()
    else:
        coordinator.on_viewport_change(BoundingBox.parse(line))


async def _run_watch(args: argparse.Namespace) -> int:
    settings = get_settings()
    coordinator = build_coordinator(
        settings,
        provider=_provider_from_args(args),
        publish=_printer(bool(args.json), int(args.limit)),
        enabled_layers=list(args.layer) if args.layer else None,
    )
    loop = asyncio.get_running_loop()
    try:
        await coordinator.start()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                await _handle_watch_line(coordinator, line)
            except (KeyError, ValueError) as exc:
                print(f"Ignored input '{line}': {exc}", file=sys.stderr, flush=True)

        # Let the last debounced viewport settle before shutting down.
        await asyncio.sleep(settings.movement.debounce_seconds + 0.05)
        await coordinator.wait_idle()
    finally:
        await coordinator.close()
    return 0


def _cmd_nearest(args: argparse.Namespace) -> int:
    """Handle the `nearest` subcommand."""
    return asyncio.run(_run_nearest(args))


def _cmd_watch(args: argparse.Namespace) -> int:
    """Handle the `watch` subcommand."""
    return asyncio.run(_run_watch(args))


def _cmd_navigate(args: argparse.Namespace) -> int:
    point = GeoPoint(lat=float(args.lat), lon=float(args.lon))
    print(navigation_uri(point, args.label, args.platform))
    return 0


def _add_location_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--lat", type=float, default=None, help="Your latitude (skips detection).")
    p.add_argument("--lon", type=float, default=None, help="Your longitude (skips detection).")
    p.add_argument("--ip-locate", action="store_true", help="Approximate your location from your IP address.")
    p.add_argument("--layer", action="append", default=[], choices=LAYER_CHOICES, help="Repeatable.")
    p.add_argument("--limit", type=int, default=10, help="Max facilities listed per update.")
    p.add_argument("--json", action="store_true", help="Output machine-readable JSON lines")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the WaterMap CLI."""
    parser = argparse.ArgumentParser(prog="watermap")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearest", help="Find facilities around you (or the default center) once.")
    _add_location_args(near)
    near.add_argument("--bbox", type=str, default=None, help="south,west,north,east (default: around location)")
    near.set_defaults(func=_cmd_nearest)

    watch = sub.add_parser(
        "watch",
        help="Follow a viewport stream from stdin: 's,w,n,e' lines, 'enable LAYER', 'disable LAYER', 'locate'.",
    )
    _add_location_args(watch)
    watch.set_defaults(func=_cmd_watch)

    nav = sub.add_parser("navigate", help="Print a walking-directions link for a facility.")
    nav.add_argument("--lat", required=True, type=float)
    nav.add_argument("--lon", required=True, type=float)
    nav.add_argument("--label", type=str, default=None)
    nav.add_argument("--platform", choices=["android", "ios", "desktop"], default="desktop")
    nav.set_defaults(func=_cmd_navigate)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m watermap.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
