"""Shared subsystem constants, kept in one place.

Centralises unit conversions, ring-size thresholds, gateway names and
the external store's column names so they are not repeated across the
catalog, editor and gateway modules.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

MIN_RING_POINTS: int = 3
"""A ring with fewer points is incomplete: never persisted, never rendered."""

METRES_PER_DEGREE_AT_EQUATOR: float = 111_320.0
"""Metres spanned by one degree of arc at the equator."""

SQ_METRES_PER_SQ_DEGREE: float = METRES_PER_DEGREE_AT_EQUATOR * METRES_PER_DEGREE_AT_EQUATOR
"""Fixed scalar converting planar square degrees to approximate square metres."""

SQ_METRES_PER_HECTARE: float = 10_000.0

# ---------------------------------------------------------------------------
# Service-area presets (min_lat, min_lon, max_lat, max_lon)
# ---------------------------------------------------------------------------

SERVICE_AREA_PRESETS: dict[str, tuple[float, float, float, float]] = {
    "ghana": (4.5, -3.5, 11.5, 1.3),
}

# ---------------------------------------------------------------------------
# Gateway names
# ---------------------------------------------------------------------------

MEMORY_GATEWAY: str = "memory"
SUPABASE_GATEWAY: str = "supabase"

# ---------------------------------------------------------------------------
# External farm-record store (PostgREST) column names
# ---------------------------------------------------------------------------

DEFAULT_FARMS_TABLE: str = "farms"
COL_ID: str = "id"
COL_COORDINATES: str = "polygon_coordinates"
COL_APPROVED: str = "is_approved"
COL_FARM_NAME: str = "farm_name"
COL_REGION: str = "region"
COL_DISTRICT: str = "district"
COL_CROP_TYPE: str = "crop_type"
COL_UPDATED_AT: str = "updated_at"
FARMER_EMBED: str = "farmer:farmers(name)"
