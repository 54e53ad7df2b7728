"""Selection and focus controller.

Tracks whether the map shows every boundary (``AllVisible``) or one
isolated farm (``Focused``), and derives the render set from the current
catalog contents and that state.

The render set is never stored: ``render_set()`` recomputes it on every
call, so a catalog reload is reflected immediately.  Subscribers receive
a freshly derived render set after every focus change and every catalog
reload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from farm_boundaries.core.exceptions import StateError
from farm_boundaries.geometry.area import compute_bounds

if TYPE_CHECKING:
    from collections.abc import Callable

    from farm_boundaries.models.boundary import FarmBoundary, RenderItem
    from farm_boundaries.models.ring import GeoBounds
    from farm_boundaries.services.catalog import PolygonCatalog

logger = logging.getLogger(__name__)


class UnknownFarmError(StateError):
    """Raised when selecting a farm the catalog does not hold."""

    default_stage = "selection"
    default_code = "UNKNOWN_FARM"


@dataclass(frozen=True, slots=True)
class AllVisible:
    """Every boundary with a complete ring is shown."""


@dataclass(frozen=True, slots=True)
class Focused:
    """Exactly one farm is isolated on the map."""

    farm_id: str


FocusState = AllVisible | Focused

ALL_VISIBLE = AllVisible()


class FocusController:
    """Derives what the map shows from (catalog contents, focus state)."""

    def __init__(self, catalog: PolygonCatalog) -> None:
        self._catalog = catalog
        self._state: FocusState = ALL_VISIBLE
        self._listeners: list[Callable[[list[RenderItem]], None]] = []
        self._unsubscribe_catalog = catalog.subscribe(self._on_catalog_reloaded)

    @property
    def state(self) -> FocusState:
        return self._state

    @property
    def focused_boundary(self) -> FarmBoundary | None:
        """Metadata of the focused farm, even when it has no drawable ring."""
        if isinstance(self._state, Focused):
            return self._catalog.get(self._state.farm_id)
        return None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select(self, farm_id: str) -> None:
        """Focus on ``farm_id``, replacing any previous focus.

        Raises:
            UnknownFarmError: If the catalog has no farm with that id.
        """
        if farm_id not in self._catalog:
            msg = f"Cannot focus unknown farm {farm_id!r}"
            raise UnknownFarmError(msg, farm_id=farm_id)
        self._state = Focused(farm_id)
        logger.debug("Focus changed | farm=%s", farm_id)
        self._notify()

    def clear_focus(self) -> None:
        """Return to showing every boundary."""
        self._state = ALL_VISIBLE
        logger.debug("Focus cleared")
        self._notify()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def render_set(self) -> list[RenderItem]:
        """Polygons to draw for the current state, in catalog order."""
        if isinstance(self._state, Focused):
            boundary = self._catalog.get(self._state.farm_id)
            if boundary is None or not boundary.has_complete_ring:
                return []
            return [boundary.to_render_item()]
        return [b.to_render_item() for b in self._catalog if b.has_complete_ring]

    def render_payload(self) -> list[dict[str, object]]:
        """The render set as plain dicts for the presentation layer."""
        return [item.to_dict() for item in self.render_set()]

    def render_bounds(self) -> GeoBounds | None:
        """Extent of the render set for centring the map, or ``None`` if empty."""
        return compute_bounds(item.ring for item in self.render_set())

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[list[RenderItem]], None]) -> Callable[[], None]:
        """Call ``listener(render_set)`` on every change; returns an unsubscribe function.

        A listener that raises is logged and skipped.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Detach from the catalog and drop all subscribers."""
        self._unsubscribe_catalog()
        self._listeners.clear()

    def _on_catalog_reloaded(self, _catalog: PolygonCatalog) -> None:
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        items = self.render_set()
        for listener in list(self._listeners):
            try:
                listener(items)
            except Exception:
                logger.exception(
                    "Focus listener failed | listener=%r | items=%d", listener, len(items)
                )
