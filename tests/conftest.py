"""Shared pytest fixtures for the farm boundary test suite."""

from __future__ import annotations

import pytest

from farm_boundaries.gateways.memory import InMemoryBoundaryGateway
from farm_boundaries.services.catalog import PolygonCatalog
from farm_boundaries.services.editor import BoundaryEditor
from farm_boundaries.services.selection import FocusController
from tests.factories import FARM_ROWS


@pytest.fixture()
def gateway() -> InMemoryBoundaryGateway:
    """An in-memory store seeded with the reference farms."""
    return InMemoryBoundaryGateway(FARM_ROWS)


@pytest.fixture()
def catalog(gateway: InMemoryBoundaryGateway) -> PolygonCatalog:
    """A catalog already hydrated from the reference farms."""
    cat = PolygonCatalog(gateway)
    cat.load_all()
    return cat


@pytest.fixture()
def focus(catalog: PolygonCatalog) -> FocusController:
    return FocusController(catalog)


@pytest.fixture()
def editor(gateway: InMemoryBoundaryGateway, catalog: PolygonCatalog) -> BoundaryEditor:
    return BoundaryEditor(gateway, catalog)
