"""G-code document: configuration, layers and export.

Typical use::

    doc = GCodeDocument(paper_size=(210, 297), margin=10)
    doc.set_logical_extent(1000, 1000)
    doc.add_polylines([[(0, 0), (1000, 1000)]])
    for exported in doc.export():
        print(exported.file_name, len(exported.content))

Writing the exported strings somewhere is left to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .config import ConfigPatch, PlotConfig
from .geometry import XY, Pattern, PointSeq, Polyline, clip_polylines_to_box
from .mapping import ContainmentFit, CoordinateMapper, StateError
from .svg_loader import (
    DEFAULT_TOLERANCE,
    SVGDocument,
    UnsupportedCommand,
    flatten_svg_path,
)
from .toolpath import Layer, ToolpathEmitter, format_number

logger = logging.getLogger(__name__)

PolylineInput = Union[Polyline, PointSeq]


@dataclass(frozen=True)
class ExportedFile:
    file_name: str
    content: str


class GCodeDocument:
    """Own the layers of one drawing and turn geometry into G-code.

    Parameters
    ----------
    config : PlotConfig, optional
        Starting configuration; defaults are used when omitted.
    tolerance : float
        Longest chord, in logical units, used when flattening SVG curves.
    strict : bool
        Raise on unsupported SVG path commands instead of skipping them.
    **overrides
        Option overrides applied on top of ``config`` (``margin=5``,
        ``paperSize=[100, 100]``, ...).
    """

    def __init__(
        self,
        config: Optional[PlotConfig] = None,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        strict: bool = False,
        **overrides: Any,
    ) -> None:
        base = config or PlotConfig()
        if overrides:
            base = base.merge(ConfigPatch.from_mapping(overrides))
        self.tolerance = tolerance
        self.strict = strict
        self._mapper = CoordinateMapper(base)
        self._emitter = ToolpathEmitter(self._mapper)
        self.layers: List[Layer] = []
        self.current_layer = 0
        self.clear()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def config(self) -> PlotConfig:
        return self._mapper.config

    @property
    def draw_area(self) -> Tuple[float, float]:
        return self.config.draw_area

    @property
    def fit(self) -> ContainmentFit:
        return self._mapper.fit

    @property
    def logical_extent(self) -> Optional[XY]:
        return self._mapper.extent

    def update_config(self, patch: Union[ConfigPatch, Mapping[str, Any], None] = None, **options: Any) -> PlotConfig:
        """Overlay options onto the current configuration.

        Options may be passed as a :class:`ConfigPatch`, a mapping or keyword
        arguments.  On error the previous configuration stays in effect.
        """

        if patch is None:
            patch = ConfigPatch()
        elif not isinstance(patch, ConfigPatch):
            patch = ConfigPatch.from_mapping(patch)
        if options:
            changes = {**patch.changes(), **ConfigPatch.from_mapping(options).changes()}
            patch = ConfigPatch(**changes)
        config = self.config.merge(patch)
        self._mapper.update_config(config)
        return config

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------
    @property
    def layer(self) -> Layer:
        return self.layers[self.current_layer]

    def clear(self) -> None:
        self.layers = []
        self.add_layer()

    def add_layer(self, name: str = "") -> Layer:
        layer = Layer(name=name)
        self.layers.append(layer)
        self.current_layer = len(self.layers) - 1
        logger.debug("Added layer %d %r", self.current_layer, name)
        return layer

    def select_layer(self, key: Union[int, str]) -> Layer:
        """Make an existing layer current, by index or by name."""
        if isinstance(key, int):
            if not -len(self.layers) <= key < len(self.layers):
                raise IndexError(f"No layer at index {key}")
            self.current_layer = key % len(self.layers)
        else:
            for index, layer in enumerate(self.layers):
                if layer.name == key:
                    self.current_layer = index
                    break
            else:
                raise KeyError(f"No layer named {key!r}")
        return self.layer

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def set_logical_extent(self, width: float, height: float) -> ContainmentFit:
        return self._mapper.set_logical_extent(width, height)

    def map_point(self, x: float, y: float) -> XY:
        return self._mapper.map_point(x, y)

    def move_to(self, x: float, y: float) -> None:
        self._emitter.move_to(self.layer, x, y)

    def draw_line(self, x: float, y: float) -> None:
        self._emitter.draw_line(self.layer, x, y)

    def clip(self, polylines: Iterable[PolylineInput]) -> List[List[XY]]:
        extent = self._mapper.extent
        if extent is None:
            raise StateError("logical extent not set: call set_logical_extent(width, height) first")
        return clip_polylines_to_box(polylines, (0.0, 0.0, extent[0], extent[1]))

    def add_polylines(self, polylines: Union[Pattern, Iterable[PolylineInput]]) -> int:
        """Clip to the logical canvas, then emit into the current layer."""
        return self._emitter.emit_polylines(self.layer, self.clip(polylines))

    def add_svg_path(
        self,
        d: str,
        *,
        tolerance: Optional[float] = None,
        strict: Optional[bool] = None,
    ) -> List[UnsupportedCommand]:
        """Flatten SVG path data and emit it; returns skipped-command diagnostics."""
        result = flatten_svg_path(
            d,
            tolerance=self.tolerance if tolerance is None else tolerance,
            strict=self.strict if strict is None else strict,
        )
        self.add_polylines(result.polylines)
        return result.diagnostics

    def add_svg_document(self, svg: SVGDocument, *, layer_by_color: bool = False) -> List[UnsupportedCommand]:
        """Emit every shape of ``svg``.

        Uses the SVG's own coordinate system as logical extent when none has
        been set.  With ``layer_by_color`` each stroke colour gets its own
        layer, named after the colour.
        """

        min_x, min_y, width, height = svg.viewbox()
        if self._mapper.extent is None:
            self.set_logical_extent(width, height)

        diagnostics: List[UnsupportedCommand] = []
        if layer_by_color:
            groups = list(svg.group_by_color().items())
        else:
            groups = [(None, svg.shapes)]
        for color, shapes in groups:
            if color is not None:
                self._use_layer(color.lstrip("#"))
            for shape in shapes:
                result = flatten_svg_path(shape.d, tolerance=self.tolerance, strict=self.strict)
                shifted = [[(x - min_x, y - min_y) for x, y in pl] for pl in result.polylines]
                self.add_polylines(shifted)
                diagnostics.extend(result.diagnostics)
        return diagnostics

    def _use_layer(self, name: str) -> None:
        try:
            self.select_layer(name)
        except KeyError:
            if not self.layers[-1].name and not len(self.layers[-1]):
                # reuse the untouched default layer
                self.layers[-1].name = name
                self.current_layer = len(self.layers) - 1
            else:
                self.add_layer(name)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def begin_file(self) -> List[str]:
        cfg = self.config
        return [
            f"G0 F{format_number(cfg.seek_rate)}",
            f"G1 F{format_number(cfg.feed_rate)}",
            "G90",
            "G21",
        ]

    def close_file(self) -> List[str]:
        return [self.config.off_command, "G4 P1", "G0 X0 Y0", "G4 P1"]

    def finalize_layer(self, layer: Optional[Layer] = None) -> str:
        layer = self.layer if layer is None else layer
        return "\n".join([*self.begin_file(), *layer.lines, *self.close_file()]) + "\n"

    def layer_file_name(self, layer: Layer) -> str:
        suffix = f"-{layer.name}" if layer.name else ""
        return f"{self.config.file_name}{suffix}.gcode"

    def export(self) -> List[ExportedFile]:
        files = [ExportedFile(self.layer_file_name(layer), self.finalize_layer(layer)) for layer in self.layers]
        logger.info("Exported %d layer file(s): %s", len(files), ", ".join(f.file_name for f in files))
        return files


__all__ = ["ExportedFile", "GCodeDocument", "Layer"]
