"""Coordinate model: geographic points, boundary rings and bounds.

A ``BoundaryRing`` is an ordered sequence of ``GeoPoint`` outlining a
farm's perimeter.  The ring is implicitly closed: the last point connects
back to the first and is never duplicated in storage.

``parse_ring`` is the single validation boundary for coordinates coming
from the external store.  Everything downstream of it works on
``BoundaryRing`` only, never on raw nested lists.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from farm_boundaries.core.constants import MIN_RING_POINTS
from farm_boundaries.core.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class MalformedCoordinateError(ValidationError):
    """Raised when raw input cannot be parsed into numeric coordinate pairs."""

    default_stage = "coordinates"
    default_code = "MALFORMED_COORDINATE"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A (latitude, longitude) pair in decimal degrees. No altitude.

    Equality is exact numeric equality; nothing is rounded.
    """

    lat: float
    lon: float

    def to_pair(self) -> list[float]:
        """Serialise as ``[lat, lon]``, the order used by the farm store."""
        return [self.lat, self.lon]


@dataclass(frozen=True, slots=True)
class BoundaryRing:
    """An ordered, implicitly closed sequence of points.

    May be empty (a boundary being drawn from scratch) or incomplete
    (fewer than three points); use ``is_complete`` before treating it
    as a valid boundary.
    """

    points: tuple[GeoPoint, ...] = ()

    @classmethod
    def of(cls, points: Iterable[GeoPoint]) -> BoundaryRing:
        """Build a ring from any iterable of points."""
        return cls(tuple(points))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> GeoPoint:
        return self.points[index]

    def lon_lat(self) -> list[tuple[float, float]]:
        """Return ``(lon, lat)`` tuples, the x/y order geometry libraries expect."""
        return [(p.lon, p.lat) for p in self.points]


@dataclass(frozen=True, slots=True)
class GeoBounds:
    """Axis-aligned extent in degrees, inclusive on every edge."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def __post_init__(self) -> None:
        if self.min_lat > self.max_lat or self.min_lon > self.max_lon:
            msg = (
                f"Inverted bounds: lat [{self.min_lat}, {self.max_lat}], "
                f"lon [{self.min_lon}, {self.max_lon}]"
            )
            raise ValueError(msg)

    @classmethod
    def parse(cls, text: str) -> GeoBounds:
        """Parse ``"min_lat,min_lon,max_lat,max_lon"``.

        Raises:
            ValueError: If the text does not hold four numbers or the
                bounds are inverted.
        """
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            msg = f"expected 'min_lat,min_lon,max_lat,max_lon', got {len(parts)} value(s)"
            raise ValueError(msg)
        min_lat, min_lon, max_lat, max_lon = (float(p) for p in parts)
        return cls(min_lat, min_lon, max_lat, max_lon)

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.min_lat <= point.lat <= self.max_lat
            and self.min_lon <= point.lon <= self.max_lon
        )

    def to_list(self) -> list[list[float]]:
        """Serialise as ``[[south, west], [north, east]]`` corner pairs."""
        return [[self.min_lat, self.min_lon], [self.max_lat, self.max_lon]]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_ring(raw: object) -> BoundaryRing:
    """Parse a raw list of ``[lat, lon]`` pairs into a ``BoundaryRing``.

    ``None`` (an absent coordinate field) yields an empty ring.

    Raises:
        MalformedCoordinateError: If ``raw`` is not a list/tuple, or any
            element is not a two-element list/tuple of finite numbers.
    """
    if raw is None:
        return BoundaryRing()
    if not isinstance(raw, list | tuple):
        msg = f"Boundary coordinates must be a list, got {type(raw).__name__}"
        raise MalformedCoordinateError(msg)

    points: list[GeoPoint] = []
    for idx, pair in enumerate(raw):
        if not isinstance(pair, list | tuple):
            msg = (
                f"Malformed coordinate at index {idx}: expected [lat, lon], "
                f"got {type(pair).__name__}"
            )
            raise MalformedCoordinateError(msg)
        if len(pair) != 2:
            msg = f"Malformed coordinate at index {idx}: expected 2 elements, got {len(pair)}"
            raise MalformedCoordinateError(msg)
        lat, lon = pair
        if not (_is_finite_number(lat) and _is_finite_number(lon)):
            msg = (
                f"Malformed coordinate at index {idx}: not a finite number pair "
                f"(lat={lat!r}, lon={lon!r})"
            )
            raise MalformedCoordinateError(msg)
        points.append(GeoPoint(float(lat), float(lon)))
    return BoundaryRing(tuple(points))


def validate_point(point: GeoPoint, *, farm_id: str = "") -> GeoPoint:
    """Check a point built outside ``parse_ring`` against the same rules.

    Raises:
        MalformedCoordinateError: If latitude or longitude is not a finite number.
    """
    if not (_is_finite_number(point.lat) and _is_finite_number(point.lon)):
        msg = (
            "Malformed coordinate: not a finite number pair "
            f"(lat={point.lat!r}, lon={point.lon!r})"
        )
        raise MalformedCoordinateError(msg, farm_id=farm_id)
    return point


def is_complete(ring: BoundaryRing) -> bool:
    """Return whether the ring has enough points to enclose an area."""
    return len(ring) >= MIN_RING_POINTS


def serialize_ring(ring: BoundaryRing) -> list[list[float]]:
    """Serialise to the store's ``[[lat, lon], ...]`` layout (inverse of ``parse_ring``)."""
    return [p.to_pair() for p in ring]


def _is_finite_number(value: object) -> bool:
    # bool is an int subclass; True/False are never coordinates.
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)
