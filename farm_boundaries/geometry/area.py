"""Area estimation and ring geometry helpers.

``estimate_area_sq_m`` is the area figure shown and compared everywhere
in the application.  It applies the planar shoelace formula directly to
(longitude, latitude) pairs and scales square degrees by the square of
the metres-per-degree at the equator.  There is no latitude-dependent
longitude correction, so the figure overstates area away from the
equator and drifts further for very large polygons.  Historical figures
were produced the same way and must stay comparable, so the formula is
reproduced as-is.

``geodesic_area_sq_m`` computes the ellipsoidal WGS 84 area with
``pyproj.Geod`` for side-by-side reporting only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from farm_boundaries.core.constants import SQ_METRES_PER_HECTARE, SQ_METRES_PER_SQ_DEGREE
from farm_boundaries.models.ring import BoundaryRing, GeoBounds, is_complete

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Planar estimate
# ---------------------------------------------------------------------------


def estimate_area_sq_m(ring: BoundaryRing) -> float:
    """Estimate the enclosed area of a ring in square metres.

    Returns ``0.0`` for incomplete rings.  The result is non-negative and
    does not depend on the starting point or winding direction.
    """
    if not is_complete(ring):
        return 0.0

    points = ring.points
    count = len(points)
    twice_signed = 0.0
    for i in range(count):
        j = (i + 1) % count
        twice_signed += points[i].lon * points[j].lat
        twice_signed -= points[j].lon * points[i].lat
    return abs(twice_signed) / 2 * SQ_METRES_PER_SQ_DEGREE


def sq_m_to_hectares(area_sq_m: float) -> float:
    return area_sq_m / SQ_METRES_PER_HECTARE


# ---------------------------------------------------------------------------
# Geodesic reference
# ---------------------------------------------------------------------------


def geodesic_area_sq_m(ring: BoundaryRing) -> float:
    """Compute the WGS 84 geodesic area of a ring in square metres.

    Winding-order agnostic.  Returns ``0.0`` for incomplete rings.
    """
    if not is_complete(ring):
        return 0.0

    from pyproj import Geod

    geod = Geod(ellps="WGS84")
    lons = [p.lon for p in ring]
    lats = [p.lat for p in ring]
    area_m2, _perimeter = geod.polygon_area_perimeter(lons, lats)
    return abs(area_m2)


# ---------------------------------------------------------------------------
# Extent and simplicity
# ---------------------------------------------------------------------------


def compute_bounds(rings: Iterable[BoundaryRing]) -> GeoBounds | None:
    """Compute the extent covering every point of every ring.

    Returns ``None`` when there are no points at all.
    """
    lats: list[float] = []
    lons: list[float] = []
    for ring in rings:
        for point in ring:
            lats.append(point.lat)
            lons.append(point.lon)
    if not lats:
        return None
    return GeoBounds(min(lats), min(lons), max(lats), max(lons))


def is_simple_ring(ring: BoundaryRing) -> bool:
    """Return whether the closed ring is free of self-intersections.

    Incomplete rings are reported as simple: they enclose nothing.
    """
    if not is_complete(ring):
        return True

    from shapely.geometry import LinearRing

    try:
        linear = LinearRing(ring.lon_lat())
    except ValueError as exc:
        logger.debug("Cannot build linear ring for simplicity check: %s", exc)
        return False
    return bool(linear.is_simple)
