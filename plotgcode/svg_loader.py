"""SVG path data to polylines.

Path data arrives as a list of :class:`PathCommand` objects, one per drawing
command, either from :func:`parse_path_commands` or from any other parser
that produces the same shape.  :func:`flatten_path` turns them into
polylines: every move starts a new polyline and curves are sampled into
short chords with ``svgpathtools`` segment geometry.

Whole SVG files are read with ``svgpathtools`` into an :class:`SVGDocument`
that keeps each shape's path data together with its stroke colour.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from svgpathtools import Arc, CubicBezier, Line, QuadraticBezier, parse_path, svg2paths2, svgstr2paths
from svgpathtools import Path as SVGPathObject

from .geometry import XY

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.5

# number of arguments per command letter
ARITY: Dict[str, int] = {
    "M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0,
}

# svgpathtools skips anything that is neither a command letter nor a number
_FOREIGN = re.compile(r"[^MmZzLlHhVvCcSsQqTtAaEe0-9.,+\-\s]")


@dataclass(frozen=True)
class PathCommand:
    """One SVG path command.  Upper case ``code`` is absolute, lower relative."""

    code: str
    args: Tuple[float, ...] = ()

    @property
    def relative(self) -> bool:
        return self.code.islower()


@dataclass(frozen=True)
class UnsupportedCommand:
    """Diagnostic for a path command that was skipped during flattening.

    ``index`` is the position in the command sequence, or ``-1`` when the
    parser rejected the path data as a whole.
    """

    index: int
    code: str
    reason: str

    def __str__(self) -> str:
        if self.index < 0:
            return f"data '{self.code}': {self.reason}"
        return f"command #{self.index} '{self.code}': {self.reason}"


class UnsupportedCommandError(ValueError):
    """Raised in strict mode instead of skipping an unsupported command."""

    def __init__(self, diagnostic: UnsupportedCommand) -> None:
        super().__init__(f"Unsupported path {diagnostic}")
        self.diagnostic = diagnostic


class PathDataError(ValueError):
    """Path data the parser could not read.  ``code`` is the offending letter, if known."""

    def __init__(self, reason: str, code: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = code


@dataclass
class FlattenResult:
    polylines: List[List[XY]] = field(default_factory=list)
    diagnostics: List[UnsupportedCommand] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parser adapter
# ---------------------------------------------------------------------------


def _xy(z: complex) -> Tuple[float, float]:
    return float(z.real), float(z.imag)


def _segment_command(segment) -> PathCommand:
    if isinstance(segment, Line):
        return PathCommand("L", _xy(segment.end))
    if isinstance(segment, CubicBezier):
        return PathCommand("C", _xy(segment.control1) + _xy(segment.control2) + _xy(segment.end))
    if isinstance(segment, QuadraticBezier):
        return PathCommand("Q", _xy(segment.control) + _xy(segment.end))
    if isinstance(segment, Arc):
        radius = segment.radius
        flags = (float(segment.rotation), float(segment.large_arc), float(segment.sweep))
        return PathCommand("A", _xy(radius) + flags + _xy(segment.end))
    raise TypeError(f"Unexpected path segment {segment!r}")


def parse_path_commands(d: str) -> List[PathCommand]:
    """Parse SVG path data with ``svgpathtools`` into absolute commands.

    Every subpath starts with an ``M``; relative, shorthand and smooth
    commands come back resolved as ``L``/``C``/``Q``/``A`` and a close
    becomes the line back to the subpath start.  Raises
    :class:`PathDataError` for data the parser rejects.
    """

    foreign = _FOREIGN.search(d)
    if foreign:
        letter = foreign.group()
        raise PathDataError(f"unknown command at offset {foreign.start()}", code=letter)
    try:
        path = parse_path(d)
    except (ValueError, IndexError) as exc:
        raise PathDataError(str(exc)) from exc
    except AssertionError as exc:
        # svgpathtools asserts on arcs whose end point equals their start
        raise PathDataError("degenerate arc") from exc

    commands: List[PathCommand] = []
    end: Optional[complex] = None
    for segment in path:
        if end is None or segment.start != end:
            commands.append(PathCommand("M", _xy(segment.start)))
        commands.append(_segment_command(segment))
        end = segment.end
    return commands


# ---------------------------------------------------------------------------
# Flattener
# ---------------------------------------------------------------------------


_MAX_DEPTH = 16


def _subdivide(segment, t0: float, p0: complex, t1: float, p1: complex, tolerance: float,
               out: List[XY], depth: int = 0) -> None:
    if abs(p1 - p0) > tolerance and depth < _MAX_DEPTH:
        tm = 0.5 * (t0 + t1)
        pm = segment.point(tm)
        _subdivide(segment, t0, p0, tm, pm, tolerance, out, depth + 1)
        _subdivide(segment, tm, pm, t1, p1, tolerance, out, depth + 1)
    else:
        out.append((float(p1.real), float(p1.imag)))


def _sample(segment, tolerance: float) -> List[XY]:
    """Points along ``segment`` (start excluded), chords at most ``tolerance``.

    Parameter steps are not arc-length steps, so uneven intervals are
    bisected until every chord fits.
    """
    steps = max(1, int(math.ceil(segment.length() / tolerance)))
    pts: List[XY] = []
    t0, p0 = 0.0, segment.point(0.0)
    for i in range(1, steps + 1):
        t1 = i / steps
        p1 = segment.point(t1)
        _subdivide(segment, t0, p0, t1, p1, tolerance, pts)
        t0, p0 = t1, p1
    return pts


class _Flattener:
    def __init__(self, tolerance: float, strict: bool) -> None:
        self.tolerance = tolerance
        self.strict = strict
        self.result = FlattenResult()
        self.current: Optional[List[XY]] = None
        self.pos = 0j
        self.start = 0j
        self.last_code = ""
        self.last_ctrl: Optional[complex] = None

    # -- output helpers -------------------------------------------------
    def _finish(self) -> None:
        if self.current is not None and len(self.current) >= 2:
            self.result.polylines.append(self.current)
        self.current = None

    def _ensure_open(self) -> List[XY]:
        if self.current is None:
            self.current = [(self.pos.real, self.pos.imag)]
        return self.current

    def _line_to(self, end: complex) -> None:
        self._ensure_open().append((end.real, end.imag))
        self.pos = end

    def _curve_to(self, segment, end: complex) -> None:
        self._ensure_open().extend(_sample(segment, self.tolerance))
        # sampled end may carry float noise; pin it to the exact target
        self.current[-1] = (end.real, end.imag)  # type: ignore[index]
        self.pos = end

    def _skip(self, index: int, code: str, reason: str) -> None:
        diagnostic = UnsupportedCommand(index=index, code=code, reason=reason)
        if self.strict:
            raise UnsupportedCommandError(diagnostic)
        logger.warning("Skipping unsupported path %s", diagnostic)
        self.result.diagnostics.append(diagnostic)

    # -- dispatch ---------------------------------------------------------
    def run(self, commands: Sequence[PathCommand]) -> FlattenResult:
        for index, cmd in enumerate(commands):
            upper = cmd.code.upper()
            arity = ARITY.get(upper)
            if arity is None:
                self._skip(index, cmd.code, "unknown command")
                continue
            if len(cmd.args) != arity:
                self._skip(index, cmd.code, f"expected {arity} arguments, got {len(cmd.args)}")
                continue
            self._apply(upper, cmd.relative, cmd.args)
            self.last_code = upper
        self._finish()
        return self.result

    def _point(self, relative: bool, x: float, y: float) -> complex:
        p = complex(x, y)
        return self.pos + p if relative else p

    def _apply(self, upper: str, rel: bool, a: Tuple[float, ...]) -> None:
        ctrl: Optional[complex] = None
        if upper == "M":
            self._finish()
            self.pos = self.start = self._point(rel, a[0], a[1])
            self.current = [(self.pos.real, self.pos.imag)]
        elif upper == "L":
            self._line_to(self._point(rel, a[0], a[1]))
        elif upper == "H":
            x = self.pos.real + a[0] if rel else a[0]
            self._line_to(complex(x, self.pos.imag))
        elif upper == "V":
            y = self.pos.imag + a[0] if rel else a[0]
            self._line_to(complex(self.pos.real, y))
        elif upper == "Z":
            if self.current is not None:
                self._line_to(self.start)
            self.pos = self.start
        elif upper in ("C", "S"):
            if upper == "C":
                c1 = self._point(rel, a[0], a[1])
                rest = a[2:]
            else:
                c1 = self._reflect(("C", "S"))
                rest = a
            ctrl = self._point(rel, rest[0], rest[1])
            end = self._point(rel, rest[2], rest[3])
            self._curve_to(CubicBezier(self.pos, c1, ctrl, end), end)
        elif upper in ("Q", "T"):
            if upper == "Q":
                ctrl = self._point(rel, a[0], a[1])
                end = self._point(rel, a[2], a[3])
            else:
                ctrl = self._reflect(("Q", "T"))
                end = self._point(rel, a[0], a[1])
            self._curve_to(QuadraticBezier(self.pos, ctrl, end), end)
        elif upper == "A":
            self._arc(rel, a)
        self.last_ctrl = ctrl

    def _reflect(self, family: Tuple[str, str]) -> complex:
        if self.last_code in family and self.last_ctrl is not None:
            return 2 * self.pos - self.last_ctrl
        return self.pos

    def _arc(self, rel: bool, a: Tuple[float, ...]) -> None:
        rx, ry, rotation, large_arc, sweep = abs(a[0]), abs(a[1]), a[2], a[3], a[4]
        end = self._point(rel, a[5], a[6])
        if end == self.pos:
            return
        if rx == 0 or ry == 0:
            self._line_to(end)
            return
        arc = Arc(self.pos, complex(rx, ry), rotation, bool(large_arc), bool(sweep), end)
        self._curve_to(arc, end)


def flatten_path(
    commands: Sequence[PathCommand],
    tolerance: float = DEFAULT_TOLERANCE,
    strict: bool = False,
) -> FlattenResult:
    """Convert path commands into polylines.

    ``tolerance`` is the longest chord used for curves, in the path's own
    units.  Unsupported commands are skipped and reported in
    ``FlattenResult.diagnostics`` unless ``strict`` is set, in which case
    :class:`UnsupportedCommandError` is raised.
    """

    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")
    return _Flattener(tolerance, strict).run(commands)


def flatten_svg_path(d: str, tolerance: float = DEFAULT_TOLERANCE, strict: bool = False) -> FlattenResult:
    """Parse and flatten one ``d`` attribute.

    Path data the parser rejects is skipped as a whole and reported with
    index ``-1``, or raised as :class:`UnsupportedCommandError` when
    ``strict`` is set.
    """

    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")
    try:
        commands = parse_path_commands(d)
    except PathDataError as exc:
        diagnostic = UnsupportedCommand(index=-1, code=exc.code, reason=exc.reason)
        if strict:
            raise UnsupportedCommandError(diagnostic) from exc
        logger.warning("Skipping unreadable path %s", diagnostic)
        return FlattenResult(diagnostics=[diagnostic])
    return flatten_path(commands, tolerance=tolerance, strict=strict)


# ---------------------------------------------------------------------------
# SVG documents
# ---------------------------------------------------------------------------


_LENGTH = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    m = _LENGTH.match(value)
    return float(m.group(1)) if m else None


@dataclass
class SVGShape:
    """Single drawable item extracted from the SVG."""

    path: SVGPathObject
    d: str
    color: str
    stroke_width: float = 1.0

    def bounds(self) -> Tuple[float, float, float, float]:
        xmin, xmax, ymin, ymax = self.path.bbox()
        return float(xmin), float(xmax), float(ymin), float(ymax)


@dataclass
class SVGDocument:
    """An SVG file as a list of shapes plus the root element's attributes."""

    shapes: List[SVGShape] = field(default_factory=list)
    svg_attributes: Dict[str, str] = field(default_factory=dict)
    source_path: Optional[Path] = None

    @classmethod
    def _build(cls, paths, attributes, svg_attributes, source_path=None) -> "SVGDocument":
        shapes = []
        for path_obj, attr in zip(paths, attributes):
            d = attr.get("d") or (path_obj.d() if len(path_obj) else "")
            if not d.strip():
                continue
            color = attr.get("stroke") or attr.get("fill") or "#000000"
            width = _parse_length(attr.get("stroke-width")) or 1.0
            shapes.append(SVGShape(path=path_obj, d=d, color=color, stroke_width=width))
        return cls(shapes=shapes, svg_attributes=dict(svg_attributes), source_path=source_path)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SVGDocument":
        paths, attributes, svg_attributes = svg2paths2(str(path))
        return cls._build(paths, attributes, svg_attributes, source_path=Path(path))

    @classmethod
    def from_string(cls, text: str) -> "SVGDocument":
        paths, attributes, svg_attributes = svgstr2paths(text, return_svg_attributes=True)
        return cls._build(paths, attributes, svg_attributes)

    def bounds(self) -> Tuple[float, float, float, float]:
        if not self.shapes:
            return (0.0, 0.0, 0.0, 0.0)
        xmin, xmax, ymin, ymax = self.shapes[0].bounds()
        for shape in self.shapes[1:]:
            sx0, sx1, sy0, sy1 = shape.bounds()
            xmin = min(xmin, sx0)
            xmax = max(xmax, sx1)
            ymin = min(ymin, sy0)
            ymax = max(ymax, sy1)
        return xmin, xmax, ymin, ymax

    def viewbox(self) -> Tuple[float, float, float, float]:
        """``(min_x, min_y, width, height)`` of the drawing's coordinate system.

        Taken from ``viewBox`` when present, else from the numeric part of
        ``width``/``height``, else from the shapes' bounding box.
        """

        raw = self.svg_attributes.get("viewBox")
        if raw:
            parts = [float(v) for v in re.split(r"[\s,]+", raw.strip()) if v]
            if len(parts) == 4 and parts[2] > 0 and parts[3] > 0:
                return parts[0], parts[1], parts[2], parts[3]
        width = _parse_length(self.svg_attributes.get("width"))
        height = _parse_length(self.svg_attributes.get("height"))
        if width and height and width > 0 and height > 0:
            return 0.0, 0.0, width, height
        xmin, xmax, ymin, ymax = self.bounds()
        return xmin, ymin, max(xmax - xmin, 1.0), max(ymax - ymin, 1.0)

    def logical_extent(self) -> Tuple[float, float]:
        _, _, width, height = self.viewbox()
        return width, height

    def group_by_color(self) -> Dict[str, List[SVGShape]]:
        groups: Dict[str, List[SVGShape]] = {}
        for shape in self.shapes:
            groups.setdefault(shape.color, []).append(shape)
        return groups


__all__ = [
    "ARITY",
    "DEFAULT_TOLERANCE",
    "FlattenResult",
    "PathCommand",
    "PathDataError",
    "SVGDocument",
    "SVGShape",
    "UnsupportedCommand",
    "UnsupportedCommandError",
    "flatten_path",
    "flatten_svg_path",
    "parse_path_commands",
]
