"""Example script that fits a spiral and a circle onto A4 and prints the G-code."""
from __future__ import annotations

import math

from plotgcode import Circle, GCodeDocument, Pattern, Polyline


def build_spiral(turns: int = 10, radius: float = 100.0, steps: int = 800) -> Pattern:
    pts = []
    for i in range(steps):
        t = i / (steps - 1)
        angle = turns * 2 * math.pi * t
        r = radius * t
        x = r * math.cos(angle)
        y = r * math.sin(angle)
        pts.append((x + radius, y + radius))
    pat = Pattern()
    pat.add(Polyline(pts=pts, name="spiral"))
    return pat


def main() -> None:
    doc = GCodeDocument(fileName="spiral", margin=[15, 20])
    doc.set_logical_extent(200, 200)
    doc.add_polylines(build_spiral())

    doc.add_layer("frame")
    doc.add_polylines(Pattern().add(Circle(c=(100.0, 100.0), r=100.0, seg_len=2.0)))

    for exported in doc.export():
        print(f"; ---- {exported.file_name}")
        print(exported.content)


if __name__ == "__main__":
    main()
