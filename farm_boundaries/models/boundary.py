"""Farm boundary aggregate, inbound record schema and render items.

``FarmRecord`` is the loosely-trusted row handed over by a persistence
gateway (camelCase aliases match the farm-record contract).  Its
coordinate field stays raw: only ``parse_ring`` may interpret it.

``FarmBoundary`` is the catalog's hydrated view of one farm and
``RenderItem`` is the plain, serialisable shape handed to the map layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from farm_boundaries.core.constants import SQ_METRES_PER_HECTARE
from farm_boundaries.models.ring import BoundaryRing, is_complete, serialize_ring


class ApprovalStatus(StrEnum):
    """Farm approval state, mirrored read-only from the farm record."""

    APPROVED = "approved"
    PENDING = "pending"

    @classmethod
    def from_flag(cls, approved: bool) -> ApprovalStatus:
        return cls.APPROVED if approved else cls.PENDING


class FarmRecord(BaseModel):
    """One farm row as delivered by the external store.

    Attributes:
        id: Opaque farm identifier owned by the farm record.
        boundary_coordinates: Raw ``[[lat, lon], ...]`` payload, or ``None``.
        approved: Whether the farm is approved.
        farm_name: Farm display name.
        region: Administrative region.
        district: District within the region.
        crop_type: Main crop grown on the farm.
        farmer_name: Name of the linked farmer.
        version: Optional opaque version token for conditional writes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    boundary_coordinates: Any = None
    approved: bool = False
    farm_name: str = ""
    region: str = ""
    district: str = ""
    crop_type: str = ""
    farmer_name: str = ""
    version: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _require_id(cls, value: object) -> str:
        if value is None or value == "":
            msg = "farm id must not be empty"
            raise ValueError(msg)
        return str(value)

    @field_validator("farm_name", "region", "district", "crop_type", "farmer_name", mode="before")
    @classmethod
    def _blank_when_missing(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("approved", mode="before")
    @classmethod
    def _false_when_missing(cls, value: object) -> object:
        return False if value is None else value

    @field_validator("version", mode="before")
    @classmethod
    def _stringify_version(cls, value: object) -> str | None:
        return None if value is None else str(value)

    def to_contract(self) -> dict[str, Any]:
        """Serialise with the contract's camelCase keys."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True, slots=True)
class FarmBoundary:
    """A farm and its (possibly absent) boundary, as held by the catalog.

    Attributes:
        farm_id: Identifier of the linked farm record.
        ring: Parsed boundary, or ``None`` when absent or malformed.
        approval_status: Read-only mirror of the farm's approval state.
        label: Display title (the farm name).
        descriptor: Display subtitle (``"<farmer> - <crop> (<region>)"``).
        farm_name: Farm name, searchable.
        farmer_name: Farmer name, searchable.
        region: Region, searchable and filterable.
        district: District, shown in detail panels.
        crop_type: Crop type, shown in detail panels.
        derived_area_sq_m: Estimated area; ``0.0`` without a complete ring.
            Always recomputed from ``ring``, never persisted.
    """

    farm_id: str
    ring: BoundaryRing | None = None
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    label: str = ""
    descriptor: str = ""
    farm_name: str = ""
    farmer_name: str = ""
    region: str = ""
    district: str = ""
    crop_type: str = ""
    derived_area_sq_m: float = 0.0

    @property
    def has_complete_ring(self) -> bool:
        return self.ring is not None and is_complete(self.ring)

    @property
    def point_count(self) -> int:
        return 0 if self.ring is None else len(self.ring)

    @property
    def area_hectares(self) -> float:
        return self.derived_area_sq_m / SQ_METRES_PER_HECTARE

    def to_render_item(self) -> RenderItem:
        """Project to the map-facing shape.

        Raises:
            ValueError: If the boundary has no complete ring to draw.
        """
        if self.ring is None or not is_complete(self.ring):
            msg = f"Farm {self.farm_id!r} has no complete boundary ring to render"
            raise ValueError(msg)
        return RenderItem(
            farm_id=self.farm_id,
            ring=self.ring,
            status=self.approval_status,
            title=self.label,
            description=self.descriptor,
        )


def describe_farm(farmer_name: str, crop_type: str, region: str) -> str:
    """Build the boundary descriptor shown under the farm title."""
    return f"{farmer_name} - {crop_type} ({region})"


@dataclass(frozen=True, slots=True)
class RenderItem:
    """One polygon for the map layer. Plain data, no presentation logic."""

    farm_id: str
    ring: BoundaryRing
    status: ApprovalStatus
    title: str
    description: str

    def to_dict(self) -> dict[str, object]:
        return {
            "farmId": self.farm_id,
            "ringPoints": serialize_ring(self.ring),
            "status": str(self.status),
            "title": self.title,
            "description": self.description,
        }
