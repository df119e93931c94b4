"""Geometric helpers shared by the element model and the renderers."""

from __future__ import annotations

import math
from typing import Sequence

from PyQt6.QtCore import QPointF


def is_near(a: QPointF, b: QPointF, threshold: float) -> bool:
    """Return True if the distance between two points is below the threshold."""
    return math.hypot(b.x() - a.x(), b.y() - a.y()) < threshold


def naive_center(points: Sequence[QPointF]) -> QPointF:
    """Mean of the vertices, good enough for regular polygons."""
    if not points:
        return QPointF(0, 0)

    sum_x = sum(p.x() for p in points)
    sum_y = sum(p.y() for p in points)
    return QPointF(sum_x / len(points), sum_y / len(points))


def centroid(points: Sequence[QPointF]) -> QPointF:
    """
    Compute the centroid of a polygon with the shoelace formula.

    Falls back to the naive center when the signed area is zero
    (collinear or otherwise degenerate vertices).

    Args:
        points: Polygon vertices, the closing edge is implicit

    Returns:
        The area-weighted center
    """
    n = len(points)
    if n == 0:
        return QPointF(0, 0)

    area = sum_x = sum_y = 0.0
    for i in range(n):
        p, q = points[i], points[(i + 1) % n]
        cross = p.x() * q.y() - q.x() * p.y()
        area += cross
        sum_x += (p.x() + q.x()) * cross
        sum_y += (p.y() + q.y()) * cross

    if area == 0:
        return naive_center(points)
    return QPointF(sum_x / (3 * area), sum_y / (3 * area))


def curve_center(p0: QPointF, p1: QPointF, p2: QPointF, p3: QPointF) -> QPointF:
    """
    Return a visual center of a cubic Bezier curve.

    The point at t = 1/2 in general, or t = 2/3 when the first two control
    points coincide (a quadratic drawn as a cubic). It is a true center only
    when the curve has a symmetry axis.
    """
    if p0.x() == p1.x() and p0.y() == p1.y():
        # t = 2/3
        return QPointF(
            (p1.x() + 6 * p1.x() + 12 * p2.x() + 8 * p3.x()) / 27,
            (p1.y() + 6 * p1.y() + 12 * p2.y() + 8 * p3.y()) / 27,
        )

    # t = 1/2
    return QPointF(
        (p0.x() + 3 * p1.x() + 3 * p2.x() + p3.x()) / 8,
        (p0.y() + 3 * p1.y() + 3 * p2.y() + p3.y()) / 8,
    )


def signed_angle(origin: QPointF, ref: QPointF, target: QPointF) -> float:
    """
    Angle from the ray origin->ref to the ray origin->target.

    The result lies in [-pi, pi] and is positive when turning in the
    direction a QTransform rotation goes (x axis towards y axis).

    Args:
        origin: Common vertex of both rays
        ref: Point on the reference ray
        target: Point on the target ray

    Returns:
        Signed angle in radians, 0 if either ray has zero length
    """
    xo, yo = origin.x(), origin.y()
    xa, ya = ref.x(), ref.y()
    xb, yb = target.x(), target.y()

    norm = math.hypot(xa - xo, ya - yo) * math.hypot(xb - xo, yb - yo)
    if norm == 0:
        return 0.0

    cos = ((xa - xo) * (xb - xo) + (ya - yo) * (yb - yo)) / norm
    # Rounding can push cos slightly outside [-1, 1]
    cos = min(max(-1.0, cos), 1.0)
    angle = math.acos(cos)

    if xa == xo:
        # Vertical reference ray, the slope below is undefined
        if (xb > xo) == (ya > yo) and xb != xo:
            angle = -angle
    else:
        # Line through origin and ref: y = a*x + b
        a = (ya - yo) / (xa - xo)
        b = ya - a * xa
        if yb < a * xb + b:
            angle = -angle
        if xa < xo:
            angle = -angle

    return angle
