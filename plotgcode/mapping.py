"""Logical-to-physical coordinate mapping.

The logical canvas is scaled uniformly into the draw area ("contain" fit),
centred on the leftover axis and shifted by the left/top margin.  Flips
mirror about the paper, not the draw area.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import PlotConfig

logger = logging.getLogger(__name__)

XY = Tuple[float, float]

PRECISION = 3
_EPSILON = 1e-12


class StateError(RuntimeError):
    """Raised when an operation is called out of order."""


@dataclass(frozen=True)
class ContainmentFit:
    """Placement of the scaled logical canvas inside the draw area."""

    offset_x: float
    offset_y: float
    width: float
    height: float
    scale: float


def contain(parent_w: float, parent_h: float, child_w: float, child_h: float) -> ContainmentFit:
    """Largest distortion-free fit of ``child`` inside ``parent``, centred."""
    scale = min(parent_w / child_w, parent_h / child_h)
    width = child_w * scale
    height = child_h * scale
    return ContainmentFit(
        offset_x=(parent_w - width) / 2.0,
        offset_y=(parent_h - height) / 2.0,
        width=width,
        height=height,
        scale=scale,
    )


def map_range(
    value: float,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
    clamp: bool = False,
) -> float:
    if abs(in_min - in_max) < _EPSILON:
        return out_min
    out = (value - in_min) / (in_max - in_min) * (out_max - out_min) + out_min
    if clamp:
        lo, hi = (out_min, out_max) if out_min <= out_max else (out_max, out_min)
        out = min(max(out, lo), hi)
    return out


class CoordinateMapper:
    """Map points from the caller's coordinate system onto the paper."""

    def __init__(self, config: PlotConfig) -> None:
        self._config = config
        self._extent: Optional[XY] = None
        self._fit: Optional[ContainmentFit] = None

    @property
    def config(self) -> PlotConfig:
        return self._config

    @property
    def extent(self) -> Optional[XY]:
        return self._extent

    @property
    def fit(self) -> ContainmentFit:
        if self._fit is None:
            raise StateError("logical extent not set: call set_logical_extent(width, height) first")
        return self._fit

    def set_logical_extent(self, width: float, height: float) -> ContainmentFit:
        if width <= 0 or height <= 0:
            raise ValueError(f"Logical extent must be positive, got {width}x{height}")
        self._extent = (float(width), float(height))
        self._refit()
        return self._fit  # type: ignore[return-value]

    def update_config(self, config: PlotConfig) -> None:
        self._config = config
        if self._extent is not None:
            self._refit()

    def _refit(self) -> None:
        draw_w, draw_h = self._config.draw_area
        logical_w, logical_h = self._extent  # type: ignore[misc]
        self._fit = contain(draw_w, draw_h, logical_w, logical_h)
        logger.debug(
            "Fit %gx%g into %gx%g: scale=%g offset=(%g, %g)",
            logical_w, logical_h, draw_w, draw_h,
            self._fit.scale, self._fit.offset_x, self._fit.offset_y,
        )

    def map_point(self, x: float, y: float) -> XY:
        fit = self.fit
        cfg = self._config
        logical_w, logical_h = self._extent  # type: ignore[misc]
        left, top = cfg.margin[0], cfg.margin[1]

        px = left + fit.offset_x + map_range(x, 0.0, logical_w, 0.0, fit.width, clamp=True)
        py = top + fit.offset_y + map_range(y, 0.0, logical_h, 0.0, fit.height, clamp=True)

        if cfg.flip_x:
            px = cfg.paper_size[0] - px
        if cfg.flip_y:
            py = cfg.paper_size[1] - py

        # flip first, then round; "+ 0.0" folds -0.0 into 0.0
        return round(px, PRECISION) + 0.0, round(py, PRECISION) + 0.0


__all__ = ["ContainmentFit", "CoordinateMapper", "StateError", "contain", "map_range", "PRECISION"]
