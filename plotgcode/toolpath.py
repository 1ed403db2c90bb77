"""Toolpath emission: mapped points to G-code lines.

Every travel move is bracketed by a full disengage/engage cycle with a dwell
after each state change.  The tool state is never assumed from earlier
output, so a travel always starts by switching the tool off again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Tuple, Union

from .config import PlotConfig
from .geometry import PointSeq, Polyline, as_points
from .mapping import CoordinateMapper, PRECISION, StateError

logger = logging.getLogger(__name__)


def format_coord(value: float) -> str:
    return f"{value:.{PRECISION}f}"


def format_number(value: float) -> str:
    """Rates and delays without trailing zeros or exponents (``8000``, ``0.2``)."""
    return format(Decimal(repr(float(value))).normalize(), "f")


@dataclass
class Layer:
    """Named, append-only buffer of G-code lines."""

    name: str = ""
    _lines: List[str] = field(default_factory=list, repr=False)
    tool_engaged: bool = False

    def append(self, *lines: str) -> None:
        self._lines.extend(lines)

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def __len__(self) -> int:
        return len(self._lines)


class ToolpathEmitter:
    """Write travel and draw moves for a :class:`CoordinateMapper`."""

    def __init__(self, mapper: CoordinateMapper) -> None:
        self.mapper = mapper

    @property
    def config(self) -> PlotConfig:
        return self.mapper.config

    def move_to(self, layer: Layer, x: float, y: float) -> None:
        px, py = self.mapper.map_point(x, y)
        cfg = self.config
        delay = f"G4 P{format_number(cfg.power_delay)}"
        layer.append(
            cfg.off_command,
            delay,
            f"G0 X{format_coord(px)} Y{format_coord(py)}",
            cfg.on_command,
            delay,
        )
        layer.tool_engaged = True

    def draw_line(self, layer: Layer, x: float, y: float) -> None:
        if not layer.tool_engaged:
            raise StateError("draw_line called before move_to: the tool has not been positioned and engaged")
        px, py = self.mapper.map_point(x, y)
        layer.append(f"G1 X{format_coord(px)} Y{format_coord(py)}")

    def emit_polylines(self, layer: Layer, polylines: Iterable[Union[Polyline, PointSeq]]) -> int:
        """Emit each polyline as one stroke; returns the number emitted.

        Polylines with fewer than two points are skipped.
        """

        emitted = 0
        for polyline in polylines:
            pts = as_points(polyline)
            if len(pts) < 2:
                continue
            self.move_to(layer, *pts[0])
            for x, y in pts[1:]:
                self.draw_line(layer, x, y)
            emitted += 1
        logger.debug("Emitted %d stroke(s) into layer %r", emitted, layer.name)
        return emitted


__all__ = ["Layer", "ToolpathEmitter", "format_coord", "format_number"]
