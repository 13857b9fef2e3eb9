"""
Plane geometry for AutoDrive.

Points are plain (x, y) tuples, segments are (point, point) pairs and
polygons are lists of points in drawing order (closed implicitly).
A two-point polygon is treated as a single segment so road borders can be
passed anywhere a polygon is accepted.
"""

import math


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def segment_intersection(a0, a1, b0, b1):
    """
    Intersect segment a0→a1 with segment b0→b1.

    Returns a dict {"x", "y", "offset"} where offset is the parameter t
    along segment a (0 at a0, 1 at a1), or None when the bounded segments
    do not cross. Parallel and collinear segments report no hit.
    """
    ax, ay = a0
    bx, by = a1
    cx, cy = b0
    dx, dy = b1

    bottom = (dy - cy) * (bx - ax) - (dx - cx) * (by - ay)
    if bottom == 0:
        return None

    t_top = (dx - cx) * (ay - cy) - (dy - cy) * (ax - cx)
    u_top = (cy - ay) * (ax - bx) - (cx - ax) * (ay - by)
    t = t_top / bottom
    u = u_top / bottom
    if 0 <= t <= 1 and 0 <= u <= 1:
        return {
            "x":      lerp(ax, bx, t),
            "y":      lerp(ay, by, t),
            "offset": t,
        }
    return None


def polygon_edges(poly):
    """Yield the edges of a polygon as (start, end) pairs."""
    n = len(poly)
    if n == 2:
        yield poly[0], poly[1]
        return
    for i in range(n):
        yield poly[i], poly[(i + 1) % n]


def polygons_intersect(poly1, poly2) -> bool:
    """True iff any edge of poly1 crosses any edge of poly2."""
    for p0, p1 in polygon_edges(poly1):
        for q0, q1 in polygon_edges(poly2):
            if segment_intersection(p0, p1, q0, q1) is not None:
                return True
    return False


def rect_polygon(cx: float, cy: float, width: float, height: float,
                 angle: float) -> list:
    """
    Corners of a width×height rectangle centred on (cx, cy) and rotated
    by angle (radians, clockwise on a y-down screen).
    Order: top-left, top-right, bottom-right, bottom-left.
    """
    hw, hh = width / 2, height / 2
    cos, sin = math.cos(angle), math.sin(angle)
    corners = [(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)]
    return [
        (cx + (px * cos - py * sin), cy + (px * sin + py * cos))
        for px, py in corners
    ]
