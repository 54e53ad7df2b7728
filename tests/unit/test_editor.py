"""Tests for the boundary editor state machine.

Covers:
- IDLE / DRAWING transitions and their guards
- Point capture (order, duplicates, service-area filter)
- Commit validation and persistence failure recovery
- Catalog reload after a successful commit
- Non-finite points, read-only session snapshots and failing listeners
"""

from __future__ import annotations

import logging
import math

import pytest

from farm_boundaries.gateways.memory import InMemoryBoundaryGateway
from farm_boundaries.models.ring import (
    BoundaryRing,
    GeoBounds,
    GeoPoint,
    MalformedCoordinateError,
    parse_ring,
    serialize_ring,
)
from farm_boundaries.services.catalog import PolygonCatalog
from farm_boundaries.services.editor import (
    AlreadyEditingError,
    BoundaryEditor,
    EditorBusyError,
    EditorState,
    InsufficientPointsError,
    NotEditingError,
    PersistenceFailureError,
)
from farm_boundaries.services.selection import UnknownFarmError
from tests.factories import COCOA_COORDS

GHANA = GeoBounds(4.5, -3.5, 11.5, 1.3)

TRIANGLE = (GeoPoint(9.40, -0.85), GeoPoint(9.41, -0.85), GeoPoint(9.41, -0.84))


def _draw(editor: BoundaryEditor, points: tuple[GeoPoint, ...] = TRIANGLE) -> None:
    for point in points:
        editor.add_point(point)


class TestTransitions:
    def test_starts_idle(self, editor: BoundaryEditor) -> None:
        assert editor.state is EditorState.IDLE
        assert editor.session is None
        assert editor.working_ring == BoundaryRing()
        assert editor.point_count == 0
        assert editor.is_dirty is False

    def test_begin_new_boundary(self, editor: BoundaryEditor) -> None:
        session = editor.begin("farm-yam")
        assert editor.state is EditorState.DRAWING
        assert session.farm_id == "farm-yam"
        assert session.points == ()
        assert session.baseline == BoundaryRing()

    def test_begin_from_existing_ring_copies_points(self, editor: BoundaryEditor) -> None:
        existing = parse_ring(COCOA_COORDS)
        session = editor.begin("farm-cocoa", existing)
        editor.add_point(GeoPoint(6.695, -1.625))
        assert editor.point_count == 5
        assert len(session.points) == 4
        assert len(existing) == 4
        assert session.baseline == existing

    def test_begin_while_drawing_rejected(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        with pytest.raises(AlreadyEditingError) as excinfo:
            editor.begin("farm-cocoa")
        assert excinfo.value.category == "state"
        assert editor.session is not None
        assert editor.session.farm_id == "farm-yam"

    @pytest.mark.parametrize("action", ["add_point", "clear_points", "commit", "cancel"])
    def test_operations_need_a_session(self, editor: BoundaryEditor, action: str) -> None:
        args = (TRIANGLE[0],) if action == "add_point" else ()
        with pytest.raises(NotEditingError, match="no boundary is being edited"):
            getattr(editor, action)(*args)

    def test_cancel_discards_working_ring(
        self, editor: BoundaryEditor, gateway: InMemoryBoundaryGateway
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        editor.cancel()
        assert editor.state is EditorState.IDLE
        assert editor.working_ring == BoundaryRing()
        assert gateway.writes == []

    def test_edit_seeds_from_catalog_ring(self, editor: BoundaryEditor) -> None:
        session = editor.edit("farm-cocoa")
        assert session.working_ring == parse_ring(COCOA_COORDS)
        assert editor.is_dirty is False

    def test_edit_shapeless_farm_starts_empty(self, editor: BoundaryEditor) -> None:
        session = editor.edit("farm-yam")
        assert session.points == ()

    def test_edit_unknown_farm(self, editor: BoundaryEditor) -> None:
        with pytest.raises(UnknownFarmError):
            editor.edit("farm-missing")
        assert editor.state is EditorState.IDLE


class TestPoints:
    def test_points_appended_in_order(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        assert list(editor.working_ring) == list(TRIANGLE)
        assert editor.working_points() == [[9.40, -0.85], [9.41, -0.85], [9.41, -0.84]]
        assert editor.is_dirty is True

    def test_duplicates_kept(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        editor.add_point(TRIANGLE[0])
        editor.add_point(TRIANGLE[0])
        assert editor.point_count == 2

    def test_ready_after_three_points(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        editor.add_point(TRIANGLE[0])
        editor.add_point(TRIANGLE[1])
        assert editor.is_ready is False
        editor.add_point(TRIANGLE[2])
        assert editor.is_ready is True

    def test_clear_points_keeps_session(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        editor.clear_points()
        assert editor.state is EditorState.DRAWING
        assert editor.point_count == 0

    def test_service_area_filters_points(
        self, gateway: InMemoryBoundaryGateway, catalog: PolygonCatalog
    ) -> None:
        editor = BoundaryEditor(gateway, catalog, service_area=GHANA)
        editor.begin("farm-yam")
        assert editor.add_point(GeoPoint(51.5, -0.12)) is False
        assert editor.add_point(GeoPoint(9.40, -0.85)) is True
        assert editor.point_count == 1

    def test_no_service_area_accepts_anything(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        assert editor.add_point(GeoPoint(-45.0, 170.0)) is True


class TestCommit:
    def test_commit_replaces_ring_and_reloads(
        self,
        editor: BoundaryEditor,
        gateway: InMemoryBoundaryGateway,
        catalog: PolygonCatalog,
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        result = editor.commit()

        assert editor.state is EditorState.IDLE
        assert result.farm_id == "farm-yam"
        assert result.ring == BoundaryRing(TRIANGLE)
        assert result.area_sq_m > 0
        assert result.refreshed is True
        assert gateway.writes == [("farm-yam", serialize_ring(BoundaryRing(TRIANGLE)))]

        yam = catalog.get("farm-yam")
        assert yam is not None
        assert yam.ring == BoundaryRing(TRIANGLE)
        assert yam.derived_area_sq_m == pytest.approx(result.area_sq_m)

    def test_commit_overwrites_whole_ring(
        self, editor: BoundaryEditor, gateway: InMemoryBoundaryGateway
    ) -> None:
        editor.edit("farm-cocoa")
        editor.clear_points()
        _draw(editor)
        editor.commit()
        stored = gateway.get("farm-cocoa")
        assert stored is not None
        assert parse_ring(stored.boundary_coordinates) == BoundaryRing(TRIANGLE)

    def test_too_few_points_keeps_session(
        self, editor: BoundaryEditor, gateway: InMemoryBoundaryGateway
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor, TRIANGLE[:2])
        with pytest.raises(InsufficientPointsError) as excinfo:
            editor.commit()

        assert excinfo.value.category == "validation"
        assert excinfo.value.farm_id == "farm-yam"
        assert editor.state is EditorState.DRAWING
        assert editor.point_count == 2
        assert gateway.writes == []

    def test_write_failure_keeps_session_for_retry(
        self,
        editor: BoundaryEditor,
        gateway: InMemoryBoundaryGateway,
        catalog: PolygonCatalog,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        gateway.fail_writes = True

        with caplog.at_level(logging.WARNING, logger="farm_boundaries.services.editor"):
            with pytest.raises(PersistenceFailureError) as excinfo:
                editor.commit()

        assert excinfo.value.retryable is True
        assert any("Boundary commit failed" in r.getMessage() for r in caplog.records)
        assert editor.state is EditorState.DRAWING
        assert list(editor.working_ring) == list(TRIANGLE)
        assert editor.is_busy is False
        yam = catalog.get("farm-yam")
        assert yam is not None
        assert yam.ring is None

        gateway.fail_writes = False
        result = editor.commit()
        assert result.ring == BoundaryRing(TRIANGLE)
        assert editor.state is EditorState.IDLE

    def test_rejected_write_is_not_retryable(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-ghost")
        _draw(editor)
        with pytest.raises(PersistenceFailureError) as excinfo:
            editor.commit()
        assert excinfo.value.retryable is False
        assert editor.state is EditorState.DRAWING

    def test_reload_failure_after_write(
        self,
        editor: BoundaryEditor,
        gateway: InMemoryBoundaryGateway,
        catalog: PolygonCatalog,
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        gateway.fail_reads = True

        result = editor.commit()

        assert result.refreshed is False
        assert editor.state is EditorState.IDLE
        assert gateway.writes != []
        assert catalog.last_error is not None

    def test_cancel_after_commit_then_edit_starts_from_committed_ring(
        self, editor: BoundaryEditor
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        editor.commit()

        editor.edit("farm-yam")
        editor.add_point(GeoPoint(9.405, -0.86))
        editor.cancel()

        session = editor.edit("farm-yam")
        assert session.working_ring == BoundaryRing(TRIANGLE)

    def test_reentrant_commit_rejected_while_busy(self, catalog: PolygonCatalog) -> None:
        seen: list[Exception] = []

        class ReentrantGateway(InMemoryBoundaryGateway):
            editor: BoundaryEditor | None = None

            def replace_boundary(self, farm_id, ring, *, expected_version=None):  # type: ignore[override]
                assert self.editor is not None
                assert self.editor.is_busy is True
                try:
                    self.editor.commit()
                except EditorBusyError as exc:
                    seen.append(exc)
                super().replace_boundary(farm_id, ring, expected_version=expected_version)

        gateway = ReentrantGateway([{"id": "farm-yam"}])
        editor = BoundaryEditor(gateway, catalog)
        gateway.editor = editor
        editor.begin("farm-yam")
        _draw(editor)

        editor.commit()

        assert len(seen) == 1
        assert editor.is_busy is False
        assert len(gateway.writes) == 1


class TestSubscribe:
    def test_listener_receives_working_ring(self, editor: BoundaryEditor) -> None:
        seen: list[int] = []
        editor.subscribe(lambda ring: seen.append(len(ring)))
        editor.begin("farm-yam")
        _draw(editor)
        editor.commit()
        assert seen == [0, 1, 2, 3, 0]

    def test_rejected_point_not_announced(
        self, gateway: InMemoryBoundaryGateway, catalog: PolygonCatalog
    ) -> None:
        editor = BoundaryEditor(gateway, catalog, service_area=GHANA)
        seen: list[int] = []
        unsubscribe = editor.subscribe(lambda ring: seen.append(len(ring)))
        editor.begin("farm-yam")
        editor.add_point(GeoPoint(0.0, 0.0))
        unsubscribe()
        editor.add_point(GeoPoint(9.40, -0.85))
        assert seen == [0]


class TestNonFinitePoints:
    @pytest.mark.parametrize(
        "point",
        [
            GeoPoint(math.nan, 0.0),
            GeoPoint(0.0, math.nan),
            GeoPoint(math.inf, 0.0),
            GeoPoint(0.0, -math.inf),
        ],
    )
    def test_rejected_without_state_change(self, editor: BoundaryEditor, point: GeoPoint) -> None:
        seen: list[int] = []
        editor.begin("farm-yam")
        editor.add_point(TRIANGLE[0])
        editor.subscribe(lambda ring: seen.append(len(ring)))

        with pytest.raises(MalformedCoordinateError) as excinfo:
            editor.add_point(point)

        assert excinfo.value.farm_id == "farm-yam"
        assert excinfo.value.category == "validation"
        assert editor.point_count == 1
        assert seen == []

    def test_rejected_even_with_service_area(
        self, gateway: InMemoryBoundaryGateway, catalog: PolygonCatalog
    ) -> None:
        editor = BoundaryEditor(gateway, catalog, service_area=GHANA)
        editor.begin("farm-yam")
        with pytest.raises(MalformedCoordinateError):
            editor.add_point(GeoPoint(math.nan, -0.85))

    def test_committed_ring_reads_back(
        self, editor: BoundaryEditor, gateway: InMemoryBoundaryGateway, catalog: PolygonCatalog
    ) -> None:
        editor.begin("farm-yam")
        with pytest.raises(MalformedCoordinateError):
            editor.add_point(GeoPoint(math.nan, 0.0))
        _draw(editor)

        result = editor.commit()

        stored = gateway.get("farm-yam")
        assert stored is not None
        assert parse_ring(stored.boundary_coordinates) == result.ring
        assert parse_ring(serialize_ring(result.ring)) == result.ring
        yam = catalog.get("farm-yam")
        assert yam is not None
        assert yam.ring == result.ring


class TestSessionSnapshot:
    def test_snapshot_is_frozen(self, editor: BoundaryEditor) -> None:
        session = editor.begin("farm-yam")
        assert isinstance(session.points, tuple)
        with pytest.raises(AttributeError):
            session.dirty = True  # type: ignore[misc]

    def test_snapshot_does_not_follow_later_edits(self, editor: BoundaryEditor) -> None:
        session = editor.begin("farm-yam")
        _draw(editor)
        assert session.points == ()
        assert session.dirty is False
        assert editor.point_count == 3

    def test_points_cannot_be_appended_through_snapshot(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        session = editor.session
        assert session is not None
        with pytest.raises(AttributeError):
            session.points.append(GeoPoint(51.5, -0.12))  # type: ignore[attr-defined]
        assert editor.point_count == 0

    def test_session_reflects_current_state(self, editor: BoundaryEditor) -> None:
        editor.begin("farm-yam")
        _draw(editor)
        session = editor.session
        assert session is not None
        assert session.points == TRIANGLE
        assert session.dirty is True
        assert session.working_ring == editor.working_ring


class TestListenerFailures:
    def test_failing_listener_does_not_break_commit(
        self,
        editor: BoundaryEditor,
        gateway: InMemoryBoundaryGateway,
        catalog: PolygonCatalog,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        editor.begin("farm-yam")
        _draw(editor)

        def broken(ring: BoundaryRing) -> None:
            raise RuntimeError("map layer crashed")

        editor.subscribe(broken)
        with caplog.at_level(logging.ERROR, logger="farm_boundaries.services.editor"):
            result = editor.commit()

        assert result.refreshed is True
        assert editor.state is EditorState.IDLE
        assert len(gateway.writes) == 1
        yam = catalog.get("farm-yam")
        assert yam is not None
        assert yam.ring == BoundaryRing(TRIANGLE)
        assert any("Editor listener failed" in r.getMessage() for r in caplog.records)

    def test_other_listeners_still_called(self, editor: BoundaryEditor) -> None:
        seen: list[int] = []

        def broken(ring: BoundaryRing) -> None:
            raise RuntimeError("boom")

        editor.subscribe(broken)
        editor.subscribe(lambda ring: seen.append(len(ring)))
        editor.begin("farm-yam")
        editor.add_point(TRIANGLE[0])
        assert seen == [0, 1]
