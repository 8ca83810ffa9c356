"""Internal Bezier arithmetic.

This is an internal module containing the scalar helpers behind the segment
operations in geometry.py. Not intended for public use.
"""

import math
from collections.abc import Callable

from deoverlap.domain import Point


def cubic_coefficients(p0: float, p1: float, p2: float, p3: float) -> tuple[float, float, float, float]:
    """Power-basis coefficients (a, b, c, d) of one cubic Bezier coordinate.

    The coordinate is a*t^3 + b*t^2 + c*t + d.
    """
    return (
        -p0 + 3 * p1 - 3 * p2 + p3,
        3 * p0 - 6 * p1 + 3 * p2,
        -3 * p0 + 3 * p1,
        p0,
    )


def derivative_coefficients(p0: float, p1: float, p2: float, p3: float) -> tuple[float, float, float]:
    """Coefficients (a, b, c) of the derivative of one coordinate, divided by 3.

    The derivative is 3 * (a*t^2 + b*t + c); the factor does not move roots.
    """
    d0 = p1 - p0
    d1 = p2 - p1
    d2 = p3 - p2
    return (d0 - 2 * d1 + d2, 2 * (d1 - d0), d0)


def bernstein(p0: float, p1: float, p2: float, p3: float, t: float) -> float:
    """Evaluate one coordinate of a cubic Bezier in the Bernstein basis."""
    mt = 1.0 - t
    return mt * mt * mt * p0 + 3 * mt * mt * t * p1 + 3 * mt * t * t * p2 + t * t * t * p3


def bernstein_derivative(p0: float, p1: float, p2: float, p3: float, t: float) -> float:
    """Evaluate the derivative of one coordinate of a cubic Bezier."""
    mt = 1.0 - t
    return 3 * (mt * mt * (p1 - p0) + 2 * mt * t * (p2 - p1) + t * t * (p3 - p2))


def solve_quadratic(a: float, b: float, c: float, epsilon: float) -> list[float]:
    """Real roots of a*t^2 + b*t + c, sorted.

    A discriminant within epsilon (relative to the size of its terms) of zero
    is treated as exactly zero, and the double root is reported twice so
    callers can tell a tangency from a sign change.

    Args:
        a: Quadratic coefficient
        b: Linear coefficient
        c: Constant coefficient
        epsilon: Relative discriminant clamp

    Returns:
        Sorted roots; empty if none are real
    """
    scale = max(abs(a), abs(b), abs(c))
    if scale == 0.0:
        return []
    a, b, c = a / scale, b / scale, c / scale

    if abs(a) < 1e-12:
        if abs(b) < 1e-12:
            return []
        return [-c / b]

    disc = b * b - 4 * a * c
    if abs(disc) <= epsilon * max(b * b, abs(4 * a * c)):
        root = -b / (2 * a)
        return [root, root]
    if disc < 0:
        return []

    # Citardauq form avoids cancellation for the smaller root
    q = -0.5 * (b + math.copysign(math.sqrt(disc), b))
    r1 = q / a
    r2 = c / q
    return sorted((r1, r2))


def split_cubic(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> tuple[
    tuple[Point, Point, Point, Point], tuple[Point, Point, Point, Point]
]:
    """Split a cubic at t using de Casteljau's algorithm.

    Returns:
        Control points of the (left, right) halves
    """
    q0 = p0.lerp(p1, t)
    q1 = p1.lerp(p2, t)
    q2 = p2.lerp(p3, t)
    r0 = q0.lerp(q1, t)
    r1 = q1.lerp(q2, t)
    mid = r0.lerp(r1, t)
    return (p0, q0, r0, mid), (mid, r1, q2, p3)


def distance_to_line(point: Point, start: Point, end: Point) -> float:
    """Distance from a point to the infinite line through start and end.

    Falls back to the distance to start when the line has no length.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    length = math.hypot(dx, dy)
    if length == 0.0:
        return point.distance_to(start)
    return abs((point.x - start.x) * dy - (point.y - start.y) * dx) / length


def distance_to_segment(point: Point, start: Point, end: Point) -> float:
    """Distance from a point to the closed segment between start and end."""
    dx = end.x - start.x
    dy = end.y - start.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return point.distance_to(start)
    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (start.x + t * dx), point.y - (start.y + t * dy))


def bisect_root(
    f: Callable[[float], float],
    lo: float,
    hi: float,
    tolerance: float,
    max_iterations: int = 64,
) -> float:
    """Find t in [lo, hi] with f(t) == 0 for a function monotonic on the interval.

    f(lo) and f(hi) must not have the same strict sign.
    """
    f_lo = f(lo)
    if f_lo == 0.0:
        return lo
    for _ in range(max_iterations):
        mid = 0.5 * (lo + hi)
        f_mid = f(mid)
        if f_mid == 0.0 or hi - lo <= tolerance:
            return mid
        if (f_mid < 0.0) == (f_lo < 0.0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    return 0.5 * (lo + hi)
