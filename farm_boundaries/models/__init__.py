"""Data models and schemas.

Defines the data structures used throughout the subsystem:
- GeoPoint / BoundaryRing / GeoBounds: the coordinate model
- FarmRecord: inbound farm row from a persistence gateway
- FarmBoundary: hydrated catalog entry with derived area
- RenderItem: plain map-facing polygon
"""

from farm_boundaries.models.boundary import (
    ApprovalStatus,
    FarmBoundary,
    FarmRecord,
    RenderItem,
    describe_farm,
)
from farm_boundaries.models.ring import (
    BoundaryRing,
    GeoBounds,
    GeoPoint,
    MalformedCoordinateError,
    is_complete,
    parse_ring,
    serialize_ring,
    validate_point,
)

__all__ = [
    "ApprovalStatus",
    "BoundaryRing",
    "FarmBoundary",
    "FarmRecord",
    "GeoBounds",
    "GeoPoint",
    "MalformedCoordinateError",
    "RenderItem",
    "describe_farm",
    "is_complete",
    "parse_ring",
    "serialize_ring",
    "validate_point",
]
