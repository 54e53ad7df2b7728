"""Composition root wiring gateway, catalog, focus controller and editor.

Usage::

    workspace = BoundaryWorkspace.from_config(BoundaryConfig.from_env())
    workspace.focus.subscribe(map_view.redraw)
    workspace.catalog.load_all()

    workspace.editor.edit(farm_id)
    workspace.editor.add_point(GeoPoint(6.69, -1.62))
    ...
    workspace.editor.commit()   # reloads the catalog, which redraws the map
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from farm_boundaries.gateways.factory import get_gateway
from farm_boundaries.services.catalog import PolygonCatalog
from farm_boundaries.services.editor import BoundaryEditor
from farm_boundaries.services.selection import FocusController

if TYPE_CHECKING:
    from farm_boundaries.core.config import BoundaryConfig
    from farm_boundaries.gateways.base import BoundaryGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BoundaryWorkspace:
    """One client's view of the boundary subsystem."""

    gateway: BoundaryGateway
    catalog: PolygonCatalog
    focus: FocusController
    editor: BoundaryEditor

    @classmethod
    def from_config(
        cls,
        config: BoundaryConfig,
        *,
        gateway: BoundaryGateway | None = None,
    ) -> BoundaryWorkspace:
        """Build a workspace; ``gateway`` overrides the configured one."""
        gateway = gateway or get_gateway(config)
        catalog = PolygonCatalog(
            gateway,
            check_self_intersection=config.check_self_intersection,
        )
        focus = FocusController(catalog)
        editor = BoundaryEditor(
            gateway,
            catalog,
            service_area=config.service_area_bounds,
        )
        logger.info(
            "Boundary workspace ready | gateway=%s | service_area=%s",
            gateway.name,
            config.service_area or "none",
        )
        return cls(gateway=gateway, catalog=catalog, focus=focus, editor=editor)
