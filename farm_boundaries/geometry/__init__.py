"""Geometry helpers: planar area estimate, geodesic reference area, extents."""

from farm_boundaries.geometry.area import (
    compute_bounds,
    estimate_area_sq_m,
    geodesic_area_sq_m,
    is_simple_ring,
    sq_m_to_hectares,
)

__all__ = [
    "compute_bounds",
    "estimate_area_sq_m",
    "geodesic_area_sq_m",
    "is_simple_ring",
    "sq_m_to_hectares",
]
