"""Boundary editor: point-by-point drawing of one farm's ring.

State machine::

    IDLE --begin/edit--> DRAWING --cancel--------------> IDLE
                         DRAWING --commit (written)----> IDLE
                         DRAWING --commit (rejected)---> DRAWING

At most one ``EditorSession`` exists at a time.  The session works on its
own copy of the ring; nothing reaches the store until ``commit()``, which
replaces the farm's whole ring through the gateway and then reloads the
catalog.

A commit that fails (too few points, or the store refusing the write)
leaves the session and its working ring untouched so the user can add
points or retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from farm_boundaries.core.constants import MIN_RING_POINTS
from farm_boundaries.core.exceptions import StateError, TransientError, ValidationError
from farm_boundaries.gateways.base import GatewayError
from farm_boundaries.geometry.area import estimate_area_sq_m
from farm_boundaries.models.ring import (
    BoundaryRing,
    is_complete,
    serialize_ring,
    validate_point,
)
from farm_boundaries.services.catalog import LoadFailureError
from farm_boundaries.services.selection import UnknownFarmError

if TYPE_CHECKING:
    from collections.abc import Callable

    from farm_boundaries.gateways.base import BoundaryGateway
    from farm_boundaries.models.ring import GeoBounds, GeoPoint
    from farm_boundaries.services.catalog import PolygonCatalog

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AlreadyEditingError(StateError):
    """A session is already open; commit or cancel it first."""

    default_stage = "editor"
    default_code = "ALREADY_EDITING"


class NotEditingError(StateError):
    """The operation needs an open session."""

    default_stage = "editor"
    default_code = "NOT_EDITING"


class EditorBusyError(StateError):
    """A commit is already in flight."""

    default_stage = "editor"
    default_code = "EDITOR_BUSY"


class InsufficientPointsError(ValidationError):
    """Commit attempted with fewer than three points."""

    default_stage = "editor"
    default_code = "INSUFFICIENT_POINTS"


class PersistenceFailureError(TransientError):
    """The store rejected or failed the boundary write; the session is kept."""

    default_stage = "editor"
    default_code = "PERSISTENCE_FAILED"


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class EditorState(StrEnum):
    IDLE = "idle"
    DRAWING = "drawing"


@dataclass(frozen=True, slots=True)
class EditorSession:
    """Read-only snapshot of the open editing session.

    Snapshots do not follow later edits; read ``BoundaryEditor.session``
    again for the current state.

    Attributes:
        farm_id: Farm whose boundary is being drawn.
        baseline: Ring the session started from (empty for a new boundary).
        points: Working points, in drawing order.
        dirty: Whether the working points changed since ``begin``.
    """

    farm_id: str
    baseline: BoundaryRing = field(default_factory=BoundaryRing)
    points: tuple[GeoPoint, ...] = ()
    dirty: bool = False

    @property
    def working_ring(self) -> BoundaryRing:
        return BoundaryRing(self.points)


@dataclass(slots=True)
class _Draft:
    """Mutable working copy owned by the editor; never handed out."""

    farm_id: str
    baseline: BoundaryRing
    points: list[GeoPoint] = field(default_factory=list)
    dirty: bool = False

    def snapshot(self) -> EditorSession:
        return EditorSession(
            farm_id=self.farm_id,
            baseline=self.baseline,
            points=tuple(self.points),
            dirty=self.dirty,
        )


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of a successful commit.

    Attributes:
        farm_id: Farm whose boundary was replaced.
        ring: The ring now stored.
        area_sq_m: Estimated area of the stored ring.
        refreshed: Whether the catalog reload after the write succeeded.
    """

    farm_id: str
    ring: BoundaryRing
    area_sq_m: float
    refreshed: bool = True


# ---------------------------------------------------------------------------
# Editor
# ---------------------------------------------------------------------------


class BoundaryEditor:
    """Interactive construction and replacement of one boundary at a time.

    Args:
        gateway: Store receiving committed rings.
        catalog: Catalog reloaded after each successful commit and used by
            ``edit()`` to seed a session from the last committed ring.
        service_area: When set, points outside it are ignored.
    """

    def __init__(
        self,
        gateway: BoundaryGateway,
        catalog: PolygonCatalog,
        *,
        service_area: GeoBounds | None = None,
    ) -> None:
        self._gateway = gateway
        self._catalog = catalog
        self._service_area = service_area
        self._draft: _Draft | None = None
        self._commit_in_flight = False
        self._listeners: list[Callable[[BoundaryRing], None]] = []

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> EditorState:
        return EditorState.IDLE if self._draft is None else EditorState.DRAWING

    @property
    def session(self) -> EditorSession | None:
        """Snapshot of the open session, or ``None`` when idle."""
        return None if self._draft is None else self._draft.snapshot()

    @property
    def working_ring(self) -> BoundaryRing:
        """The live working ring; empty when idle."""
        return BoundaryRing() if self._draft is None else BoundaryRing.of(self._draft.points)

    def working_points(self) -> list[list[float]]:
        """The live working ring as ``[[lat, lon], ...]`` for the map layer."""
        return serialize_ring(self.working_ring)

    @property
    def point_count(self) -> int:
        return 0 if self._draft is None else len(self._draft.points)

    @property
    def is_ready(self) -> bool:
        """Whether the working ring has enough points to commit."""
        return self.point_count >= MIN_RING_POINTS

    @property
    def is_dirty(self) -> bool:
        return self._draft is not None and self._draft.dirty

    @property
    def is_busy(self) -> bool:
        return self._commit_in_flight

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin(self, farm_id: str, existing_ring: BoundaryRing | None = None) -> EditorSession:
        """Open a session for ``farm_id``.

        Args:
            farm_id: Farm whose boundary will be replaced on commit.
            existing_ring: Ring to start from when editing; ``None`` starts
                a new boundary from scratch.

        Raises:
            AlreadyEditingError: If a session is already open.
        """
        if self._draft is not None:
            msg = (
                f"Already editing farm {self._draft.farm_id!r}; "
                "commit or cancel before starting another"
            )
            raise AlreadyEditingError(msg, farm_id=farm_id)

        baseline = existing_ring if existing_ring is not None else BoundaryRing()
        self._draft = _Draft(
            farm_id=farm_id,
            baseline=baseline,
            points=list(baseline.points),
        )
        logger.info(
            "Editor session opened | farm=%s | seeded_points=%d",
            farm_id,
            len(baseline),
        )
        self._notify()
        return self._draft.snapshot()

    def edit(self, farm_id: str) -> EditorSession:
        """Open a session seeded from the catalog's last committed ring.

        Raises:
            UnknownFarmError: If the catalog has no farm with that id.
            AlreadyEditingError: If a session is already open.
        """
        boundary = self._catalog.get(farm_id)
        if boundary is None:
            msg = f"Cannot edit unknown farm {farm_id!r}"
            raise UnknownFarmError(msg, farm_id=farm_id)
        return self.begin(farm_id, boundary.ring)

    def add_point(self, point: GeoPoint) -> bool:
        """Append ``point`` to the working ring.

        Consecutive duplicates are kept.  Returns ``False`` (and leaves the
        ring unchanged) when a service area is configured and the point
        falls outside it.

        Raises:
            NotEditingError: If no session is open.
            MalformedCoordinateError: If the point is not a finite
                latitude/longitude pair.  The ring is left unchanged.
        """
        draft = self._require_draft("add a point")
        validate_point(point, farm_id=draft.farm_id)
        if self._service_area is not None and not self._service_area.contains(point):
            logger.debug(
                "Point outside service area ignored | farm=%s | lat=%f | lon=%f",
                draft.farm_id,
                point.lat,
                point.lon,
            )
            return False
        draft.points.append(point)
        draft.dirty = True
        logger.debug("Point added | farm=%s | points=%d", draft.farm_id, len(draft.points))
        self._notify()
        return True

    def clear_points(self) -> None:
        """Empty the working ring without leaving the session.

        Raises:
            NotEditingError: If no session is open.
        """
        draft = self._require_draft("clear points")
        draft.points.clear()
        draft.dirty = True
        self._notify()

    def commit(self) -> CommitResult:
        """Write the working ring as the farm's new boundary.

        Raises:
            NotEditingError: If no session is open.
            EditorBusyError: If a commit is already in flight.
            InsufficientPointsError: If the ring has fewer than three points.
                The session stays open.
            PersistenceFailureError: If the gateway write fails.  The session
                and its working ring stay intact for a retry.
        """
        draft = self._require_draft("commit")
        if self._commit_in_flight:
            msg = f"A commit for farm {draft.farm_id!r} is already in progress"
            raise EditorBusyError(msg, farm_id=draft.farm_id)

        ring = BoundaryRing.of(draft.points)
        if not is_complete(ring):
            msg = (
                f"A boundary needs at least {MIN_RING_POINTS} points, "
                f"got {len(ring)}; add more points or cancel"
            )
            raise InsufficientPointsError(msg, farm_id=draft.farm_id)

        self._commit_in_flight = True
        try:
            self._gateway.replace_boundary(draft.farm_id, ring)
        except GatewayError as exc:
            logger.warning(
                "Boundary commit failed | farm=%s | code=%s | retryable=%s | error=%s",
                draft.farm_id,
                exc.code,
                exc.retryable,
                exc.message,
            )
            msg = f"Could not save boundary for farm {draft.farm_id!r}: {exc.message}"
            raise PersistenceFailureError(
                msg, retryable=exc.retryable, farm_id=draft.farm_id
            ) from exc
        finally:
            self._commit_in_flight = False

        if self._draft is draft:
            self._draft = None
        area = estimate_area_sq_m(ring)
        logger.info(
            "Boundary committed | farm=%s | points=%d | area=%.1f m2",
            draft.farm_id,
            len(ring),
            area,
        )
        self._notify()

        refreshed = True
        try:
            self._catalog.load_all()
        except LoadFailureError as exc:
            logger.error(
                "Catalog reload after commit failed | farm=%s | error=%s",
                draft.farm_id,
                exc.message,
            )
            refreshed = False

        return CommitResult(
            farm_id=draft.farm_id,
            ring=ring,
            area_sq_m=area,
            refreshed=refreshed,
        )

    def cancel(self) -> None:
        """Discard the working ring and close the session.

        Raises:
            NotEditingError: If no session is open.
        """
        draft = self._require_draft("cancel")
        self._draft = None
        logger.info(
            "Editor session cancelled | farm=%s | discarded_points=%d",
            draft.farm_id,
            len(draft.points),
        )
        self._notify()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[BoundaryRing], None]) -> Callable[[], None]:
        """Call ``listener(working_ring)`` on every change; returns an unsubscribe function.

        Listeners run after the editor state has changed.  A listener that
        raises is logged and skipped; it never undoes or masks the operation.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        ring = self.working_ring
        for listener in list(self._listeners):
            try:
                listener(ring)
            except Exception:
                logger.exception(
                    "Editor listener failed | listener=%r | points=%d", listener, len(ring)
                )

    def _require_draft(self, action: str) -> _Draft:
        if self._draft is None:
            msg = f"Cannot {action}: no boundary is being edited"
            raise NotEditingError(msg)
        return self._draft
