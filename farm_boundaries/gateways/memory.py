"""In-memory farm-record store.

Backs local development, demos and the test suite.  Rows are held as
``FarmRecord`` values in insertion order; a replace produces a new row
with the serialised ring and a bumped integer version.

Failure injection (``fail_reads`` / ``fail_writes``) lets callers exercise
the catalog and editor recovery paths without a network.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from farm_boundaries.core.constants import MEMORY_GATEWAY
from farm_boundaries.gateways.base import (
    BoundaryGateway,
    GatewayConflictError,
    GatewayReadError,
    GatewayWriteError,
)
from farm_boundaries.models.boundary import FarmRecord
from farm_boundaries.models.ring import serialize_ring

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from farm_boundaries.models.ring import BoundaryRing

logger = logging.getLogger(__name__)


class InMemoryBoundaryGateway(BoundaryGateway):
    """Dictionary-backed gateway with optimistic versioning.

    Attributes:
        fail_reads: When true, ``list_boundaries`` raises ``GatewayReadError``.
        fail_writes: When true, ``replace_boundary`` raises a retryable
            ``GatewayWriteError`` and leaves the store untouched.
        writes: Log of successful ``(farm_id, serialised ring)`` writes.
    """

    name = MEMORY_GATEWAY
    supports_versioning = True

    def __init__(self, records: Iterable[FarmRecord | Mapping[str, object]] = ()) -> None:
        self._rows: dict[str, FarmRecord] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[tuple[str, list[list[float]]]] = []
        for record in records:
            self.add(record)

    def add(self, record: FarmRecord | Mapping[str, object]) -> FarmRecord:
        """Insert or overwrite a whole farm row (test/demo seeding)."""
        row = record if isinstance(record, FarmRecord) else FarmRecord.model_validate(record)
        if row.version is None:
            row = row.model_copy(update={"version": "1"})
        self._rows[row.id] = row
        return row

    def remove(self, farm_id: str) -> None:
        """Drop a farm row, as if deleted upstream."""
        self._rows.pop(farm_id, None)

    def get(self, farm_id: str) -> FarmRecord | None:
        return self._rows.get(farm_id)

    def list_boundaries(self) -> list[FarmRecord]:
        if self.fail_reads:
            msg = "Simulated read failure"
            raise GatewayReadError(self.name, msg, retryable=True)
        return list(self._rows.values())

    def replace_boundary(
        self,
        farm_id: str,
        ring: BoundaryRing,
        *,
        expected_version: str | None = None,
    ) -> None:
        if self.fail_writes:
            msg = "Simulated write failure"
            raise GatewayWriteError(self.name, msg, retryable=True, farm_id=farm_id)

        current = self._rows.get(farm_id)
        if current is None:
            msg = f"No farm with id {farm_id!r}"
            raise GatewayWriteError(self.name, msg, farm_id=farm_id)

        if expected_version is not None and expected_version != current.version:
            msg = (
                f"Farm {farm_id!r} is at version {current.version}, "
                f"caller expected {expected_version}"
            )
            raise GatewayConflictError(self.name, msg, farm_id=farm_id)

        coordinates = serialize_ring(ring)
        next_version = str(int(current.version or "0") + 1)
        self._rows[farm_id] = current.model_copy(
            update={"boundary_coordinates": coordinates, "version": next_version}
        )
        self.writes.append((farm_id, coordinates))
        logger.info(
            "Boundary replaced | gateway=%s | farm=%s | points=%d | version=%s",
            self.name,
            farm_id,
            len(coordinates),
            next_version,
        )
