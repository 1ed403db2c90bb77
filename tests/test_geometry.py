"""Tests for polyline clipping and the pattern containers."""

from __future__ import annotations

import math

import pytest

from plotgcode.geometry import Circle, Line, Pattern, Polyline, clip_polyline, clip_polylines_to_box

BOX = (0.0, 0.0, 10.0, 10.0)


class TestClipPolyline:
    def test_inside_is_unchanged(self) -> None:
        pts = [(1, 1), (5, 5), (9, 1), (9, 9)]
        assert clip_polyline(pts, BOX) == [pts]

    def test_boundary_points_count_as_inside(self) -> None:
        pts = [(0, 0), (10, 0), (10, 10)]
        assert clip_polyline(pts, BOX) == [pts]

    def test_outside_yields_nothing(self) -> None:
        assert clip_polyline([(11, 11), (20, 20), (15, 30)], BOX) == []

    def test_outside_segment_passing_corner_region(self) -> None:
        assert clip_polyline([(-5, 20), (20, 20)], BOX) == []

    def test_exit_ends_at_boundary(self) -> None:
        assert clip_polyline([(5, 5), (15, 5)], BOX) == [[(5, 5), (10, 5)]]

    def test_entry_starts_at_boundary(self) -> None:
        assert clip_polyline([(-5, 5), (5, 5), (15, 5)], BOX) == [[(0, 5), (5, 5), (10, 5)]]

    def test_diagonal_through_box(self) -> None:
        result = clip_polyline([(-5, -5), (15, 15)], BOX)
        assert len(result) == 1
        assert result[0] == [pytest.approx((0, 0)), pytest.approx((10, 10))]

    def test_reentry_splits_into_pieces(self) -> None:
        pts = [(5, 5), (15, 5), (15, 8), (5, 8)]
        assert clip_polyline(pts, BOX) == [[(5, 5), (10, 5)], [(10, 8), (5, 8)]]

    def test_order_is_preserved(self) -> None:
        pts = [(9, 9), (1, 9), (1, 1), (9, 1)]
        assert clip_polyline(pts, BOX) == [pts]

    @pytest.mark.parametrize("pts", [[], [(5, 5)]])
    def test_short_polylines_yield_nothing(self, pts) -> None:
        assert clip_polyline(pts, BOX) == []

    def test_accepts_polyline_objects(self) -> None:
        assert clip_polyline(Polyline(pts=[(2, 2), (20, 2)]), BOX) == [[(2, 2), (10, 2)]]


class TestClipPolylinesToBox:
    def test_flattens_pieces_in_input_order(self) -> None:
        polylines = [
            [(5, 5), (15, 5), (15, 8), (5, 8)],
            [(20, 20), (30, 30)],
            [(1, 1), (2, 2)],
        ]
        assert clip_polylines_to_box(polylines, BOX) == [
            [(5, 5), (10, 5)],
            [(10, 8), (5, 8)],
            [(1, 1), (2, 2)],
        ]


class TestPattern:
    def test_add_converts_primitives(self) -> None:
        pat = Pattern().add(Line((0, 0), (1, 1)), Circle(c=(0, 0), r=1, seg_len=0.5), Polyline([(2, 2), (3, 3)]))
        assert len(pat) == 3
        assert all(isinstance(it, Polyline) for it in pat)
        assert pat.items[0].pts == [(0, 0), (1, 1)]

    def test_add_rejects_unknown_objects(self) -> None:
        with pytest.raises(TypeError):
            Pattern().add("not a shape")  # type: ignore[arg-type]

    def test_circle_points_on_radius(self) -> None:
        poly = Circle(c=(5, 5), r=2, seg_len=0.1).to_polyline()
        assert poly.pts[0] == pytest.approx(poly.pts[-1])
        for x, y in poly.pts:
            assert math.hypot(x - 5, y - 5) == pytest.approx(2)
