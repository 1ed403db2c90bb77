"""Tests for toolpath emission and tool-state sequencing."""

from __future__ import annotations

import pytest

from plotgcode.config import PlotConfig
from plotgcode.mapping import CoordinateMapper, StateError
from plotgcode.toolpath import Layer, ToolpathEmitter, format_coord, format_number

TRAVEL_TO_ORIGIN = ["M03S0", "G4 P0.2", "G0 X0.000 Y0.000", "M03S20", "G4 P0.2"]


@pytest.fixture()
def emitter() -> ToolpathEmitter:
    mapper = CoordinateMapper(PlotConfig(paper_size=(10, 10), margin=0))
    mapper.set_logical_extent(10, 10)
    return ToolpathEmitter(mapper)


@pytest.fixture()
def layer() -> Layer:
    return Layer()


class TestFormatting:
    def test_coordinates_have_three_decimals(self) -> None:
        assert format_coord(0) == "0.000"
        assert format_coord(12.5) == "12.500"
        assert format_coord(1 / 3) == "0.333"

    @pytest.mark.parametrize(
        "value, text",
        [(8000, "8000"), (8000.0, "8000"), (0.2, "0.2"), (0, "0"), (1.25, "1.25"), (1e-7, "0.0000001"), (2.5e-7, "0.00000025")],
    )
    def test_numbers_drop_trailing_zeros(self, value, text) -> None:
        assert format_number(value) == text


class TestMoveAndDraw:
    def test_move_to_brackets_travel(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitter.move_to(layer, 0, 0)
        assert list(layer.lines) == TRAVEL_TO_ORIGIN
        assert layer.tool_engaged

    def test_move_to_always_disengages_first(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitter.move_to(layer, 0, 0)
        emitter.move_to(layer, 5, 5)
        lines = list(layer.lines)
        assert lines[5:] == ["M03S0", "G4 P0.2", "G0 X5.000 Y5.000", "M03S20", "G4 P0.2"]

    def test_draw_line_before_move_raises(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        with pytest.raises(StateError):
            emitter.draw_line(layer, 1, 1)
        assert len(layer) == 0

    def test_draw_line_emits_g1(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitter.move_to(layer, 0, 0)
        emitter.draw_line(layer, 3, 4)
        assert layer.lines[-1] == "G1 X3.000 Y4.000"

    def test_power_delay_from_config(self, layer: Layer) -> None:
        mapper = CoordinateMapper(PlotConfig(paper_size=(10, 10), margin=0, power_delay=1.5, on_command="M3", off_command="M5"))
        mapper.set_logical_extent(10, 10)
        ToolpathEmitter(mapper).move_to(layer, 10, 10)
        assert list(layer.lines) == ["M5", "G4 P1.5", "G0 X10.000 Y10.000", "M3", "G4 P1.5"]


class TestEmitPolylines:
    def test_single_stroke_sequence(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitted = emitter.emit_polylines(layer, [[(0, 0), (10, 0), (10, 10)]])
        assert emitted == 1
        assert list(layer.lines) == TRAVEL_TO_ORIGIN + ["G1 X10.000 Y0.000", "G1 X10.000 Y10.000"]
        assert sum(1 for line in layer.lines if line.startswith("G0")) == 1

    def test_order_follows_input(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitter.emit_polylines(layer, [[(5, 5), (6, 6)], [(1, 1), (2, 2)]])
        moves = [line for line in layer.lines if line.startswith(("G0", "G1"))]
        assert moves == ["G0 X5.000 Y5.000", "G1 X6.000 Y6.000", "G0 X1.000 Y1.000", "G1 X2.000 Y2.000"]

    def test_short_polylines_skipped(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitted = emitter.emit_polylines(layer, [[], [(1, 1)], [(1, 1), (2, 2)]])
        assert emitted == 1
        assert sum(1 for line in layer.lines if line.startswith("G0")) == 1

    def test_no_draw_before_first_travel(self, emitter: ToolpathEmitter, layer: Layer) -> None:
        emitter.emit_polylines(layer, [[(0, 0), (1, 1)], [(2, 2), (3, 3), (4, 4)]])
        lines = list(layer.lines)
        first_g0 = next(i for i, line in enumerate(lines) if line.startswith("G0"))
        first_g1 = next(i for i, line in enumerate(lines) if line.startswith("G1"))
        assert first_g0 < first_g1
