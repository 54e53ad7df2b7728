"""Boundary services: catalog, focus controller and editor.

- PolygonCatalog: hydrated boundaries, filters and summary
- FocusController: AllVisible / Focused state and the derived render set
- BoundaryEditor: Idle / Drawing state machine committing through a gateway
"""

from farm_boundaries.services.catalog import (
    CatalogQuery,
    CatalogSummary,
    LoadFailureError,
    PolygonCatalog,
)
from farm_boundaries.services.editor import (
    AlreadyEditingError,
    BoundaryEditor,
    CommitResult,
    EditorBusyError,
    EditorSession,
    EditorState,
    InsufficientPointsError,
    NotEditingError,
    PersistenceFailureError,
)
from farm_boundaries.services.selection import (
    ALL_VISIBLE,
    AllVisible,
    FocusController,
    Focused,
    FocusState,
    UnknownFarmError,
)

__all__ = [
    "ALL_VISIBLE",
    "AllVisible",
    "AlreadyEditingError",
    "BoundaryEditor",
    "CatalogQuery",
    "CatalogSummary",
    "CommitResult",
    "EditorBusyError",
    "EditorSession",
    "EditorState",
    "FocusController",
    "FocusState",
    "Focused",
    "InsufficientPointsError",
    "LoadFailureError",
    "NotEditingError",
    "PersistenceFailureError",
    "PolygonCatalog",
    "UnknownFarmError",
]
