"""Polygon catalog: the hydrated set of farm boundaries.

The catalog is a pure projection of the external store.  Its contents
change only through ``load_all()``, which replaces everything at once
(a committed edit triggers a full reload, never a partial patch), and
every reload is announced to subscribers so derived views such as the
map render set can rederive themselves.

Hydration rules:
- a farm with no coordinates loads with ``ring=None`` and zero area;
- a farm whose coordinates are malformed is logged and loads the same way,
  so it still appears in listings and search;
- an incomplete or self-intersecting ring is kept but logged.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from farm_boundaries.core.constants import SQ_METRES_PER_HECTARE
from farm_boundaries.core.exceptions import TransientError
from farm_boundaries.gateways.base import GatewayError
from farm_boundaries.geometry.area import estimate_area_sq_m, is_simple_ring
from farm_boundaries.models.boundary import (
    ApprovalStatus,
    FarmBoundary,
    describe_farm,
)
from farm_boundaries.models.ring import MalformedCoordinateError, is_complete, parse_ring

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from farm_boundaries.gateways.base import BoundaryGateway
    from farm_boundaries.models.boundary import FarmRecord
    from farm_boundaries.models.ring import BoundaryRing

logger = logging.getLogger(__name__)


class LoadFailureError(TransientError):
    """Raised when the catalog cannot list boundaries from the store.

    The catalog is left empty rather than showing stale data.
    """

    default_stage = "catalog"
    default_code = "CATALOG_LOAD_FAILED"


@dataclass(frozen=True, slots=True)
class CatalogQuery:
    """Filter over the catalog.

    Attributes:
        text: Case-insensitive substring matched against farm name,
            farmer name or region (any one match is enough).
        approval_status: Keep only this status; ``None`` keeps all.
        region: Keep only this exact region; ``None`` or empty keeps all.
    """

    text: str = ""
    approval_status: ApprovalStatus | None = None
    region: str | None = None

    def matches(self, boundary: FarmBoundary) -> bool:
        needle = self.text.strip().casefold()
        if needle and not any(
            needle in field.casefold()
            for field in (boundary.farm_name, boundary.farmer_name, boundary.region)
        ):
            return False
        if self.approval_status is not None and boundary.approval_status != self.approval_status:
            return False
        return not self.region or boundary.region == self.region


@dataclass(frozen=True, slots=True)
class CatalogSummary:
    """Headline counts for the boundary dashboard."""

    total: int = 0
    approved: int = 0
    pending: int = 0
    with_shape: int = 0
    total_area_sq_m: float = 0.0

    @property
    def total_area_hectares(self) -> float:
        return self.total_area_sq_m / SQ_METRES_PER_HECTARE


class PolygonCatalog:
    """In-memory collection of every known ``FarmBoundary``.

    Args:
        gateway: Source of farm rows.
        check_self_intersection: Log a warning for self-intersecting rings.
    """

    def __init__(
        self,
        gateway: BoundaryGateway,
        *,
        check_self_intersection: bool = True,
    ) -> None:
        self._gateway = gateway
        self._check_self_intersection = check_self_intersection
        self._boundaries: tuple[FarmBoundary, ...] = ()
        self._by_id: dict[str, FarmBoundary] = {}
        self._listeners: list[Callable[[PolygonCatalog], None]] = []
        self.last_error: LoadFailureError | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_all(self) -> list[FarmBoundary]:
        """Reload every boundary from the gateway, replacing current contents.

        Raises:
            LoadFailureError: If the gateway cannot list farms.  The catalog
                is emptied and subscribers are notified before raising.
        """
        try:
            records = self._gateway.list_boundaries()
        except GatewayError as exc:
            error = LoadFailureError(
                f"Could not load farm boundaries: {exc.message}",
                retryable=exc.retryable,
            )
            logger.error(
                "Catalog load failed | gateway=%s | code=%s | retryable=%s | error=%s",
                self._gateway.name,
                exc.code,
                exc.retryable,
                exc.message,
            )
            self._replace(())
            self.last_error = error
            self._notify()
            raise error from exc

        boundaries = tuple(self._hydrate(record) for record in records)
        self._replace(boundaries)
        self.last_error = None
        logger.info(
            "Catalog loaded | gateway=%s | total=%d | with_shape=%d",
            self._gateway.name,
            len(boundaries),
            sum(1 for b in boundaries if b.has_complete_ring),
        )
        self._notify()
        return list(boundaries)

    def _hydrate(self, record: FarmRecord) -> FarmBoundary:
        ring = self._parse_shape(record)
        return FarmBoundary(
            farm_id=record.id,
            ring=ring,
            approval_status=ApprovalStatus.from_flag(record.approved),
            label=record.farm_name,
            descriptor=describe_farm(record.farmer_name, record.crop_type, record.region),
            farm_name=record.farm_name,
            farmer_name=record.farmer_name,
            region=record.region,
            district=record.district,
            crop_type=record.crop_type,
            derived_area_sq_m=estimate_area_sq_m(ring) if ring is not None else 0.0,
        )

    def _parse_shape(self, record: FarmRecord) -> BoundaryRing | None:
        if record.boundary_coordinates is None:
            return None
        try:
            ring = parse_ring(record.boundary_coordinates)
        except MalformedCoordinateError as exc:
            logger.warning(
                "Boundary shape skipped | farm=%s | name=%s | reason=%s",
                record.id,
                record.farm_name,
                exc.message,
            )
            return None

        if not is_complete(ring):
            logger.warning(
                "Incomplete boundary ring | farm=%s | points=%d",
                record.id,
                len(ring),
            )
        elif self._check_self_intersection and not is_simple_ring(ring):
            logger.warning(
                "Self-intersecting boundary ring | farm=%s | points=%d",
                record.id,
                len(ring),
            )
        return ring

    def _replace(self, boundaries: tuple[FarmBoundary, ...]) -> None:
        self._boundaries = boundaries
        self._by_id = {b.farm_id: b for b in boundaries}

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def boundaries(self) -> list[FarmBoundary]:
        """All boundaries in load order."""
        return list(self._boundaries)

    def __len__(self) -> int:
        return len(self._boundaries)

    def __iter__(self) -> Iterator[FarmBoundary]:
        return iter(self._boundaries)

    def __contains__(self, farm_id: object) -> bool:
        return farm_id in self._by_id

    def get(self, farm_id: str) -> FarmBoundary | None:
        return self._by_id.get(farm_id)

    def filter(self, query: CatalogQuery) -> list[FarmBoundary]:
        """Return the boundaries matching every dimension of ``query``."""
        return [b for b in self._boundaries if query.matches(b)]

    def regions(self) -> list[str]:
        """Distinct non-empty regions, sorted, for the region filter."""
        return sorted({b.region for b in self._boundaries if b.region})

    def summary(self) -> CatalogSummary:
        statuses = Counter(b.approval_status for b in self._boundaries)
        return CatalogSummary(
            total=len(self._boundaries),
            approved=statuses[ApprovalStatus.APPROVED],
            pending=statuses[ApprovalStatus.PENDING],
            with_shape=sum(1 for b in self._boundaries if b.has_complete_ring),
            total_area_sq_m=sum(b.derived_area_sq_m for b in self._boundaries),
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[PolygonCatalog], None]) -> Callable[[], None]:
        """Call ``listener(catalog)`` after every reload; returns an unsubscribe function.

        Listeners run once the new contents (or the emptied catalog) are in
        place.  A listener that raises is logged and skipped, so
        ``load_all`` still returns or raises ``LoadFailureError`` as usual.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Catalog listener failed | listener=%r", listener)
