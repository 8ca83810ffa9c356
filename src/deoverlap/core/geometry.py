"""Geometric operations on line and cubic segments.

This module provides the segment primitives the pipeline is built on:
- Evaluation of position, derivative and tangent
- Bounding boxes (control hull for cubics)
- Sweep-axis extrema and monotonicity
- Splitting, sub-ranges, reversal and endpoint snapping
- Chord intersection of two straight segments

Axes are given as integers: 0 for x, 1 for y. All functions are pure and
stateless.
"""

import math

from deoverlap.core._bezier import (
    bernstein,
    bernstein_derivative,
    derivative_coefficients,
    distance_to_line,
    distance_to_segment,
    solve_quadratic,
    split_cubic,
)
from deoverlap.domain import Cubic, Line, Point, Segment, segment_area

__all__ = [
    "axis_extrema",
    "axis_value",
    "chord_intersection",
    "derivative_at",
    "distance_to_curve",
    "flatness",
    "is_degenerate_segment",
    "is_monotonic",
    "point_at",
    "reverse_segment",
    "segment_area",
    "segment_bounds",
    "segment_length_bound",
    "snap_segment",
    "split_segment",
    "sub_segment",
    "tangent_at",
]


def axis_value(point: Point, axis: int) -> float:
    """Coordinate of a point along an axis (0 = x, 1 = y)."""
    return point.y if axis else point.x


def point_at(segment: Segment, t: float) -> Point:
    """Evaluate a segment at parameter t in [0, 1].

    Examples:
        >>> point_at(Line(Point(0.0, 0.0), Point(2.0, 4.0)), 0.5)
        Point(x=1.0, y=2.0)
    """
    if isinstance(segment, Line):
        return segment.start.lerp(segment.end, t)
    p0, p1, p2, p3 = segment.points
    return Point(
        bernstein(p0.x, p1.x, p2.x, p3.x, t),
        bernstein(p0.y, p1.y, p2.y, p3.y, t),
    )


def derivative_at(segment: Segment, t: float) -> tuple[float, float]:
    """First derivative of a segment at parameter t."""
    if isinstance(segment, Line):
        return (segment.end.x - segment.start.x, segment.end.y - segment.start.y)
    p0, p1, p2, p3 = segment.points
    return (
        bernstein_derivative(p0.x, p1.x, p2.x, p3.x, t),
        bernstein_derivative(p0.y, p1.y, p2.y, p3.y, t),
    )


def _unit(dx: float, dy: float) -> tuple[float, float] | None:
    length = math.hypot(dx, dy)
    if length == 0.0:
        return None
    return (dx / length, dy / length)


def tangent_at(segment: Segment, t: float) -> tuple[float, float]:
    """Unit tangent of a segment at parameter t.

    When the derivative vanishes (a control point sitting on its endpoint)
    the direction towards the next distinct control point is used instead.

    Returns:
        Unit vector, or (0.0, 0.0) for a segment with no extent at all
    """
    dx, dy = derivative_at(segment, t)
    scale = segment_length_bound(segment)
    if math.hypot(dx, dy) > 1e-12 * max(scale, 1.0):
        return (dx / math.hypot(dx, dy), dy / math.hypot(dx, dy))

    p = segment.points
    if t < 0.5:
        candidates = [(q.x - p[0].x, q.y - p[0].y) for q in p[1:]]
    else:
        candidates = [(p[-1].x - q.x, p[-1].y - q.y) for q in reversed(p[:-1])]
    for cx, cy in candidates:
        unit = _unit(cx, cy)
        if unit is not None:
            return unit
    return (0.0, 0.0)


def segment_bounds(segment: Segment) -> tuple[float, float, float, float]:
    """Bounding box of a segment's defining points.

    Tight for lines; for cubics this is the control hull box, a safe
    over-approximation.

    Returns:
        Tuple of (min_x, min_y, max_x, max_y)
    """
    xs = [p.x for p in segment.points]
    ys = [p.y for p in segment.points]
    return (min(xs), min(ys), max(xs), max(ys))


def axis_extrema(segment: Segment, axis: int, epsilon: float, parameter_epsilon: float) -> list[float]:
    """Parameters in (0, 1) where the segment turns around along an axis.

    These are the roots of the derivative's axis component at which it
    changes sign. A double root (tangency) is not an extremum.

    Args:
        segment: Segment to inspect
        axis: 0 for x, 1 for y
        epsilon: Relative discriminant clamp for the derivative quadratic
        parameter_epsilon: Roots this close to 0 or 1 are ignored

    Returns:
        Sorted parameters, at most two
    """
    if isinstance(segment, Line):
        return []
    coords = [axis_value(p, axis) for p in segment.points]
    a, b, c = derivative_coefficients(*coords)
    roots = solve_quadratic(a, b, c, epsilon)
    if len(roots) == 2 and roots[0] == roots[1]:
        return []
    return [t for t in roots if parameter_epsilon < t < 1.0 - parameter_epsilon]


def is_monotonic(segment: Segment, axis: int, epsilon: float, parameter_epsilon: float) -> bool:
    """Check whether a segment never reverses direction along an axis."""
    return not axis_extrema(segment, axis, epsilon, parameter_epsilon)


def split_segment(segment: Segment, t: float) -> tuple[Segment, Segment]:
    """Split a segment at parameter t."""
    if isinstance(segment, Line):
        mid = segment.start.lerp(segment.end, t)
        return Line(segment.start, mid), Line(mid, segment.end)
    left, right = split_cubic(*segment.points, t)
    return Cubic(*left), Cubic(*right)


def sub_segment(segment: Segment, t0: float, t1: float) -> Segment:
    """The part of a segment between parameters t0 < t1, reparametrized to [0, 1]."""
    if t0 <= 0.0 and t1 >= 1.0:
        return segment
    if isinstance(segment, Line):
        return Line(segment.start.lerp(segment.end, t0), segment.start.lerp(segment.end, t1))
    head = segment if t1 >= 1.0 else split_segment(segment, t1)[0]
    if t0 <= 0.0:
        return head
    return split_segment(head, t0 / t1)[1]


def reverse_segment(segment: Segment) -> Segment:
    """The same segment traversed backwards."""
    if isinstance(segment, Line):
        return Line(segment.end, segment.start)
    return Cubic(segment.end, segment.c2, segment.c1, segment.start)


def snap_segment(segment: Segment, start: Point, end: Point) -> Segment:
    """Move a segment's endpoints, carrying each adjacent control point along."""
    if isinstance(segment, Line):
        return Line(start, end)
    ds = (start.x - segment.start.x, start.y - segment.start.y)
    de = (end.x - segment.end.x, end.y - segment.end.y)
    return Cubic(
        start,
        Point(segment.c1.x + ds[0], segment.c1.y + ds[1]),
        Point(segment.c2.x + de[0], segment.c2.y + de[1]),
        end,
    )


def segment_length_bound(segment: Segment) -> float:
    """Length of the control polygon, an upper bound on arc length."""
    pts = segment.points
    return sum(pts[i].distance_to(pts[i + 1]) for i in range(len(pts) - 1))


def is_degenerate_segment(segment: Segment, tolerance: float) -> bool:
    """Check whether every defining point lies within tolerance of the start."""
    return all(p.is_close(segment.start, tolerance) for p in segment.points[1:])


def flatness(segment: Segment) -> float:
    """Largest distance of a control point from the chord (0 for lines).

    Measured to the chord segment, so control points overshooting the
    endpoints count as curvature.
    """
    if isinstance(segment, Line):
        return 0.0
    return max(
        distance_to_segment(segment.c1, segment.start, segment.end),
        distance_to_segment(segment.c2, segment.start, segment.end),
    )


def closest_parameter(point: Point, segment: Segment, samples: int = 16) -> float:
    """Parameter of the point on a segment closest to the given point.

    Exact for lines. For cubics the closest of a few uniform samples is
    refined by ternary search, which is accurate for the short, monotonic
    curves the pipeline works with.
    """
    if isinstance(segment, Line):
        dx = segment.end.x - segment.start.x
        dy = segment.end.y - segment.start.y
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            return 0.0
        t = ((point.x - segment.start.x) * dx + (point.y - segment.start.y) * dy) / length_sq
        return min(max(t, 0.0), 1.0)

    best = min(range(samples + 1), key=lambda i: point_at(segment, i / samples).distance_to(point))
    lo = max(best - 1, 0) / samples
    hi = min(best + 1, samples) / samples
    for _ in range(40):
        m1 = lo + (hi - lo) / 3
        m2 = hi - (hi - lo) / 3
        if point_at(segment, m1).distance_to(point) < point_at(segment, m2).distance_to(point):
            hi = m2
        else:
            lo = m1
    return (lo + hi) * 0.5


def distance_to_curve(point: Point, segment: Segment, samples: int = 16) -> float:
    """Approximate distance from a point to a segment (exact for lines)."""
    if isinstance(segment, Line):
        return distance_to_segment(point, segment.start, segment.end)
    return point_at(segment, closest_parameter(point, segment, samples)).distance_to(point)


def chord_intersection(
    p1: Point, p2: Point, p3: Point, p4: Point, tolerance: float
) -> list[tuple[float, float]]:
    """Intersect segment p1-p2 with segment p3-p4.

    Collinear overlapping segments yield the parameters of the overlap's
    two ends; a single crossing yields one pair.

    Args:
        p1: Start of the first segment
        p2: End of the first segment
        p3: Start of the second segment
        p4: End of the second segment
        tolerance: Position tolerance for parallel and on-segment tests

    Returns:
        List of (s, r) parameter pairs on the first and second segment
    """
    d1x, d1y = p2.x - p1.x, p2.y - p1.y
    d2x, d2y = p4.x - p3.x, p4.y - p3.y
    len1 = math.hypot(d1x, d1y)
    len2 = math.hypot(d2x, d2y)
    denom = d1x * d2y - d1y * d2x

    if len1 == 0.0 or len2 == 0.0:
        return []

    if abs(denom) <= 1e-12 * len1 * len2:
        if distance_to_line(p3, p1, p2) > tolerance:
            return []
        return _collinear_overlap(p1, p2, p3, p4, tolerance)

    ex, ey = p3.x - p1.x, p3.y - p1.y
    s = (ex * d2y - ey * d2x) / denom
    r = (ex * d1y - ey * d1x) / denom
    slack1 = tolerance / len1
    slack2 = tolerance / len2
    if -slack1 <= s <= 1.0 + slack1 and -slack2 <= r <= 1.0 + slack2:
        return [(min(max(s, 0.0), 1.0), min(max(r, 0.0), 1.0))]
    return []


def _collinear_overlap(
    p1: Point, p2: Point, p3: Point, p4: Point, tolerance: float
) -> list[tuple[float, float]]:
    """Overlap ends of two collinear segments as parameter pairs."""
    dx, dy = p2.x - p1.x, p2.y - p1.y
    len_sq = dx * dx + dy * dy
    ex, ey = p4.x - p3.x, p4.y - p3.y
    len2_sq = ex * ex + ey * ey

    def project_first(q: Point) -> float:
        return ((q.x - p1.x) * dx + (q.y - p1.y) * dy) / len_sq

    def project_second(q: Point) -> float:
        return ((q.x - p3.x) * ex + (q.y - p3.y) * ey) / len2_sq

    slack1 = tolerance / math.sqrt(len_sq)
    slack2 = tolerance / math.sqrt(len2_sq)
    pairs: list[tuple[float, float]] = []
    for s in (project_first(p3), project_first(p4)):
        if -slack1 <= s <= 1.0 + slack1:
            s = min(max(s, 0.0), 1.0)
            pairs.append((s, min(max(project_second(p1.lerp(p2, s)), 0.0), 1.0)))
    for r in (project_second(p1), project_second(p2)):
        if -slack2 <= r <= 1.0 + slack2:
            r = min(max(r, 0.0), 1.0)
            pairs.append((min(max(project_first(p3.lerp(p4, r)), 0.0), 1.0), r))

    unique: list[tuple[float, float]] = []
    for pair in pairs:
        if not any(abs(pair[0] - u[0]) <= slack1 for u in unique):
            unique.append(pair)
    return unique
