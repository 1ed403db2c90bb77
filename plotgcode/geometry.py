"""Geometry primitives and polyline clipping.

Drawings are handed to :class:`plotgcode.document.GCodeDocument` as plain
sequences of ``(x, y)`` points or as the small containers below.  Circles are
polygonised when they are added to a :class:`Pattern`, so everything
downstream only ever sees polylines.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Sequence, Tuple, Union

XY = Tuple[float, float]
BBox = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)
PointSeq = Sequence[Sequence[float]]


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


@dataclass
class Line:
    """Simple two point line segment."""

    p0: XY
    p1: XY
    name: str = "line"


@dataclass
class Polyline:
    """Ordered set of points drawn as one continuous stroke."""

    pts: List[XY]
    name: str = "polyline"

    def __len__(self) -> int:
        return len(self.pts)

    def __iter__(self) -> Iterator[XY]:
        return iter(self.pts)


@dataclass
class Circle:
    """Implicit circle (or arc) that is polygonised on insertion."""

    c: XY
    r: float
    start_deg: float = 0.0
    sweep_deg: float = 360.0
    seg_len: float = 0.5  # chord length when polygonizing, logical units
    name: str = "circle"

    def _point_at(self, ang_deg: float) -> XY:
        a = math.radians(ang_deg)
        return (self.c[0] + self.r * math.cos(a), self.c[1] + self.r * math.sin(a))

    def to_polyline(self) -> Polyline:
        arc_len = abs(math.radians(self.sweep_deg)) * self.r
        n = max(3, int(math.ceil(arc_len / max(1e-9, self.seg_len))))
        pts: List[XY] = []
        for k in range(n + 1):
            ang = self.start_deg + self.sweep_deg * k / n
            pts.append(self._point_at(ang))
        return Polyline(pts=pts, name=self.name)


Item = Union[Line, Polyline, Circle]


# ---------------------------------------------------------------------------
# Pattern container
# ---------------------------------------------------------------------------


@dataclass
class Pattern:
    """Ordered collection of polylines."""

    items: List[Polyline] = field(default_factory=list)

    def add(self, *objs: Item) -> "Pattern":
        """Add primitives, converting lines and circles to polylines.

        Returns ``self`` so calls can be chained.
        """

        for obj in objs:
            if isinstance(obj, Line):
                self.items.append(Polyline([obj.p0, obj.p1], name=obj.name))
            elif isinstance(obj, Circle):
                self.items.append(obj.to_polyline())
            elif isinstance(obj, Polyline):
                self.items.append(obj)
            else:
                raise TypeError(f"Unsupported object: {type(obj)!r}")
        return self

    def __iter__(self) -> Iterator[Polyline]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def as_points(polyline: Union[Polyline, PointSeq]) -> List[XY]:
    """Coerce a :class:`Polyline` or a sequence of pairs to a list of tuples."""
    pts = polyline.pts if isinstance(polyline, Polyline) else polyline
    return [(float(p[0]), float(p[1])) for p in pts]


# ---------------------------------------------------------------------------
# Clipping (Cohen-Sutherland, boundary counts as inside)
# ---------------------------------------------------------------------------

_LEFT, _RIGHT, _BOTTOM, _TOP = 1, 2, 4, 8


def _outcode(p: XY, bbox: BBox) -> int:
    code = 0
    if p[0] < bbox[0]:
        code |= _LEFT
    elif p[0] > bbox[2]:
        code |= _RIGHT
    if p[1] < bbox[1]:
        code |= _BOTTOM
    elif p[1] > bbox[3]:
        code |= _TOP
    return code


def _intersect(a: XY, b: XY, edge: int, bbox: BBox) -> XY:
    if edge & _TOP:
        return (a[0] + (b[0] - a[0]) * (bbox[3] - a[1]) / (b[1] - a[1]), bbox[3])
    if edge & _BOTTOM:
        return (a[0] + (b[0] - a[0]) * (bbox[1] - a[1]) / (b[1] - a[1]), bbox[1])
    if edge & _RIGHT:
        return (bbox[2], a[1] + (b[1] - a[1]) * (bbox[2] - a[0]) / (b[0] - a[0]))
    return (bbox[0], a[1] + (b[1] - a[1]) * (bbox[0] - a[0]) / (b[0] - a[0]))


def clip_polyline(points: Union[Polyline, PointSeq], bbox: BBox) -> List[List[XY]]:
    """Clip one polyline to ``bbox``.

    Returns the in-bounds pieces in their original order.  Every time the
    line leaves the box the current piece ends, and a re-entry starts a new
    one.  A polyline with fewer than two points yields nothing.
    """

    pts = as_points(points)
    result: List[List[XY]] = []
    if len(pts) < 2:
        return result

    part: List[XY] = []
    code_a = _outcode(pts[0], bbox)
    last = len(pts) - 1
    for i in range(1, len(pts)):
        a, b = pts[i - 1], pts[i]
        code_b = last_code = _outcode(b, bbox)
        while True:
            if not (code_a | code_b):
                part.append(a)
                if code_b != last_code:
                    # segment left the box; b sits on the boundary
                    part.append(b)
                    if i < last:
                        result.append(part)
                        part = []
                elif i == last:
                    part.append(b)
                break
            if code_a & code_b:
                break
            if code_a:
                a = _intersect(a, b, code_a, bbox)
                code_a = _outcode(a, bbox)
            else:
                b = _intersect(a, b, code_b, bbox)
                code_b = _outcode(b, bbox)
        code_a = last_code

    if part:
        result.append(part)
    return result


def clip_polylines_to_box(polylines: Iterable[Union[Polyline, PointSeq]], bbox: BBox) -> List[List[XY]]:
    clipped: List[List[XY]] = []
    for polyline in polylines:
        clipped.extend(clip_polyline(polyline, bbox))
    return clipped


__all__ = [
    "XY",
    "BBox",
    "Line",
    "Polyline",
    "Circle",
    "Pattern",
    "as_points",
    "clip_polyline",
    "clip_polylines_to_box",
]
