"""Top-level package for plotgcode.

Turns polylines and SVG path data into per-layer G-code for pen and laser
plotters, fitting the drawing onto a sheet of paper inside its margins.
"""

from .config import ConfigError, ConfigPatch, PlotConfig, load_config
from .document import ExportedFile, GCodeDocument
from .geometry import Circle, Line, Pattern, Polyline, XY, clip_polylines_to_box
from .mapping import CoordinateMapper, StateError, contain
from .svg_loader import (
    PathCommand,
    PathDataError,
    SVGDocument,
    UnsupportedCommand,
    UnsupportedCommandError,
    flatten_path,
    parse_path_commands,
)
from .toolpath import Layer, ToolpathEmitter

__all__ = [
    "Circle",
    "ConfigError",
    "ConfigPatch",
    "CoordinateMapper",
    "ExportedFile",
    "GCodeDocument",
    "Layer",
    "Line",
    "PathCommand",
    "PathDataError",
    "Pattern",
    "PlotConfig",
    "Polyline",
    "SVGDocument",
    "StateError",
    "ToolpathEmitter",
    "UnsupportedCommand",
    "UnsupportedCommandError",
    "XY",
    "clip_polylines_to_box",
    "contain",
    "flatten_path",
    "load_config",
    "parse_path_commands",
]
