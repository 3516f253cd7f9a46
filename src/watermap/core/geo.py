from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt

"""
Geospatial helpers.

We keep a tiny geometry layer here so the sync engine can do distance calculations
and viewport arithmetic without pulling in heavier GIS dependencies.

Date-line wrapping of bounding boxes is not handled: a box is a plain
south/west/north/east rectangle.
"""

EARTH_RADIUS_M = 6_371_000

# Rough meters per degree of latitude; only used to size an initial viewport.
_M_PER_DEG_LAT = 111_320.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90 <= self.lat <= 90:
            raise ValueError(f"lat must be within [-90, 90], got {self.lat}")
        if not -180 <= self.lon <= 180:
            raise ValueError(f"lon must be within [-180, 180], got {self.lon}")


@dataclass(frozen=True)
class BoundingBox:
    """A lat/lon rectangle, typically the visible map viewport."""

    south: float
    west: float
    north: float
    east: float

    def __post_init__(self) -> None:
        for name in ("south", "north"):
            value = getattr(self, name)
            if not -90 <= value <= 90:
                raise ValueError(f"{name} must be within [-90, 90], got {value}")
        for name in ("west", "east"):
            value = getattr(self, name)
            if not -180 <= value <= 180:
                raise ValueError(f"{name} must be within [-180, 180], got {value}")
        if self.south > self.north:
            raise ValueError(f"south ({self.south}) must not exceed north ({self.north})")

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(lat=(self.south + self.north) / 2, lon=(self.west + self.east) / 2)

    @property
    def northeast(self) -> GeoPoint:
        return GeoPoint(lat=self.north, lon=self.east)

    @property
    def southwest(self) -> GeoPoint:
        return GeoPoint(lat=self.south, lon=self.west)

    def as_overpass(self) -> str:
        """Serialize as `south,west,north,east` (Overpass bbox order)."""
        return f"{self.south},{self.west},{self.north},{self.east}"

    @classmethod
    def parse(cls, value: str) -> "BoundingBox":
        """Parse a `south,west,north,east` string."""
        parts = [p.strip() for p in value.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Invalid bbox '{value}', expected south,west,north,east")
        south, west, north, east = (float(p) for p in parts)
        return cls(south=south, west=west, north=north, east=east)

    @classmethod
    def around(cls, center: GeoPoint, radius_m: float) -> "BoundingBox":
        """Return a box extending roughly `radius_m` from `center` in each direction."""
        dlat = radius_m / _M_PER_DEG_LAT
        dlon = radius_m / (_M_PER_DEG_LAT * max(cos(radians(center.lat)), 1e-6))
        return cls(
            south=max(-90.0, center.lat - dlat),
            west=max(-180.0, center.lon - dlon),
            north=min(90.0, center.lat + dlat),
            east=min(180.0, center.lon + dlon),
        )


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    r = EARTH_RADIUS_M
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * r * asin(min(1.0, sqrt(h)))


def diagonal_m(bounds: BoundingBox) -> float:
    """Great-circle distance between the northeast and southwest corners."""
    return haversine_m(bounds.northeast, bounds.southwest)
