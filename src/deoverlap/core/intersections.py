"""Intersection finder for monotonic pieces.

Candidate pairs come from a plane sweep along the sweep axis: pieces are
visited by the low end of their extent, and every piece still active whose
box also overlaps on the other axis is paired with the new one. Each pair is
then intersected exactly:

- line/line: closed form, collinear overlaps report their two ends
- coincident curves: the two ends of the shared stretch
- anything else involving a cubic: recursive bisection of the bounding boxes
  until both sub-curves are flat, then chord intersection, then Newton
  refinement on the true curves

Hits at an endpoint the two pieces share are not intersections. Hits on one
pair closer than the position tolerance are merged and counted.
"""

import math

import structlog

from deoverlap.config import GeometryConfig
from deoverlap.core.geometry import (
    chord_intersection,
    closest_parameter,
    derivative_at,
    distance_to_curve,
    flatness,
    point_at,
    segment_bounds,
    split_segment,
    tangent_at,
)
from deoverlap.domain import (
    IntersectionPoint,
    Line,
    MonotonicContours,
    MonotonicPiece,
    Point,
    Segment,
)

logger = structlog.get_logger(__name__)

Bounds = tuple[float, float, float, float]

# Interior points checked before two curves are treated as coincident
_COINCIDENCE_SAMPLES = 7


def find_intersections(
    monotonic: MonotonicContours,
    config: GeometryConfig,
    axis: int = 1,
) -> list[IntersectionPoint]:
    """Find all intersections between the pieces of a decomposition.

    Args:
        monotonic: Output of the decomposer
        config: Geometry tolerances
        axis: Sweep axis used to prune candidate pairs

    Returns:
        Intersections ordered by piece pair, then by position on the first piece
    """
    pieces = monotonic.pieces
    pairs = candidate_pairs(pieces, config.position_tolerance, axis)

    found: list[IntersectionPoint] = []
    for i, j in pairs:
        found.extend(intersect_pieces(pieces[i], pieces[j], config))

    logger.debug(
        "Intersections found",
        pieces=len(pieces),
        candidate_pairs=len(pairs),
        intersections=len(found),
        tangential=sum(1 for hit in found if hit.tangential),
    )
    return found


def candidate_pairs(pieces: list[MonotonicPiece], tolerance: float, axis: int = 1) -> list[tuple[int, int]]:
    """Pairs of pieces whose bounding boxes overlap, found with a plane sweep.

    Args:
        pieces: Pieces to pair up
        tolerance: Slack added to every box
        axis: Axis to sweep along

    Returns:
        Sorted list of (i, j) index pairs with i < j
    """
    other = 1 - axis
    order = sorted(range(len(pieces)), key=lambda k: (pieces[k].bounds[axis], k))

    pairs: list[tuple[int, int]] = []
    active: list[int] = []
    for k in order:
        box = pieces[k].bounds
        sweep_low = box[axis] - tolerance
        active = [a for a in active if pieces[a].bounds[axis + 2] >= sweep_low]
        for a in active:
            other_box = pieces[a].bounds
            if (
                other_box[other] <= box[other + 2] + tolerance
                and box[other] <= other_box[other + 2] + tolerance
            ):
                pairs.append((min(a, k), max(a, k)))
        active.append(k)

    pairs.sort()
    return pairs


def intersect_pieces(
    a: MonotonicPiece, b: MonotonicPiece, config: GeometryConfig
) -> list[IntersectionPoint]:
    """Intersect two pieces.

    Args:
        a: First piece
        b: Second piece
        config: Geometry tolerances

    Returns:
        Intersections with parameters expressed on the source segments
    """
    if a.index == b.index:
        return []

    tolerance = config.position_tolerance
    shared = [
        p for p in (a.start, a.end)
        if p.is_close(b.start, tolerance) or p.is_close(b.end, tolerance)
    ]

    raw = curve_intersections(a.curve, b.curve, config)

    hits: list[tuple[float, float, Point]] = []
    for u, v in raw:
        point_a = point_at(a.curve, u)
        point_b = point_at(b.curve, v)
        point = Point((point_a.x + point_b.x) * 0.5, (point_a.y + point_b.y) * 0.5)
        if any(point.is_close(s, tolerance) for s in shared):
            continue
        hits.append((u, v, point))

    hits.sort(key=lambda hit: hit[0])
    merged: list[list] = []
    for u, v, point in hits:
        for entry in merged:
            if entry[2].is_close(point, tolerance):
                entry[3] += 1
                break
        else:
            merged.append([u, v, point, 1])

    result: list[IntersectionPoint] = []
    for u, v, point, multiplicity in merged:
        ta = tangent_at(a.curve, u)
        tb = tangent_at(b.curve, v)
        cross = ta[0] * tb[1] - ta[1] * tb[0]
        result.append(
            IntersectionPoint(
                point=point,
                piece_a=a.index,
                t_a=a.source_parameter(u),
                piece_b=b.index,
                t_b=b.source_parameter(v),
                multiplicity=multiplicity,
                tangential=abs(cross) <= config.angle_tolerance,
            )
        )
    return result


def curve_intersections(a: Segment, b: Segment, config: GeometryConfig) -> list[tuple[float, float]]:
    """Parameter pairs (u, v) where two segments meet.

    Args:
        a: First segment
        b: Second segment
        config: Geometry tolerances

    Returns:
        Unordered list of parameter pairs, possibly with near-duplicates
    """
    tolerance = config.position_tolerance
    if isinstance(a, Line) and isinstance(b, Line):
        return chord_intersection(a.start, a.end, b.start, b.end, tolerance)

    span = coincident_span(a, b, config)
    if span is not None:
        return span

    raw: list[tuple[float, float]] = []
    _subdivide(a, 0.0, 1.0, b, 0.0, 1.0, 0, config, raw)
    return [_refine(a, b, u, v, config) for u, v in raw]


def coincident_span(a: Segment, b: Segment, config: GeometryConfig) -> list[tuple[float, float]] | None:
    """Ends of the stretch along which two segments run on top of each other.

    The overlap of two coincident monotonic curves is bounded by endpoints:
    each end is an endpoint of one curve lying on the other. Interior
    samples confirm the curves stay together between those ends.

    Returns:
        Parameter pairs (u, v) of the two ends, or None if the segments are
        not coincident over any stretch
    """
    tolerance = config.position_tolerance
    box_a = segment_bounds(a)
    box_b = segment_bounds(b)
    ends: list[tuple[float, float]] = []
    for u, point in ((0.0, a.start), (1.0, a.end)):
        if not _in_box(point, box_b, tolerance):
            continue
        v = closest_parameter(point, b)
        if point_at(b, v).distance_to(point) <= tolerance:
            ends.append((u, v))
    for v, point in ((0.0, b.start), (1.0, b.end)):
        if not _in_box(point, box_a, tolerance):
            continue
        u = closest_parameter(point, a)
        if point_at(a, u).distance_to(point) <= tolerance:
            ends.append((u, v))

    distinct: list[tuple[float, float]] = []
    for u, v in ends:
        point = point_at(a, u)
        if all(point_at(a, w).distance_to(point) > tolerance for w, _ in distinct):
            distinct.append((u, v))
    if len(distinct) != 2:
        return None

    distinct.sort()
    (u0, _), (u1, _) = distinct
    for k in range(1, _COINCIDENCE_SAMPLES + 1):
        u = u0 + (u1 - u0) * k / (_COINCIDENCE_SAMPLES + 1)
        if distance_to_curve(point_at(a, u), b) > tolerance:
            return None
    return distinct


def _in_box(point: Point, box: Bounds, tolerance: float) -> bool:
    return (
        box[0] - tolerance <= point.x <= box[2] + tolerance
        and box[1] - tolerance <= point.y <= box[3] + tolerance
    )


def _boxes_overlap(box_a: Bounds, box_b: Bounds, tolerance: float) -> bool:
    return (
        box_a[0] <= box_b[2] + tolerance
        and box_b[0] <= box_a[2] + tolerance
        and box_a[1] <= box_b[3] + tolerance
        and box_b[1] <= box_a[3] + tolerance
    )


def _diagonal(box: Bounds) -> float:
    return math.hypot(box[2] - box[0], box[3] - box[1])


def _subdivide(
    a: Segment,
    a0: float,
    a1: float,
    b: Segment,
    b0: float,
    b1: float,
    depth: int,
    config: GeometryConfig,
    out: list[tuple[float, float]],
) -> None:
    """Bisect whichever sub-curve is larger until both are flat."""
    tolerance = config.position_tolerance
    box_a = segment_bounds(a)
    box_b = segment_bounds(b)
    if not _boxes_overlap(box_a, box_b, tolerance):
        return

    flat_a = flatness(a) <= tolerance
    flat_b = flatness(b) <= tolerance
    if flat_a and flat_b:
        for s, r in chord_intersection(a.start, a.end, b.start, b.end, tolerance):
            out.append((a0 + (a1 - a0) * s, b0 + (b1 - b0) * r))
        return

    if depth >= config.max_subdivision_depth:
        out.append(((a0 + a1) * 0.5, (b0 + b1) * 0.5))
        return

    if not flat_a and (flat_b or _diagonal(box_a) >= _diagonal(box_b)):
        mid = (a0 + a1) * 0.5
        left, right = split_segment(a, 0.5)
        _subdivide(left, a0, mid, b, b0, b1, depth + 1, config, out)
        _subdivide(right, mid, a1, b, b0, b1, depth + 1, config, out)
    else:
        mid = (b0 + b1) * 0.5
        left, right = split_segment(b, 0.5)
        _subdivide(a, a0, a1, left, b0, mid, depth + 1, config, out)
        _subdivide(a, a0, a1, right, mid, b1, depth + 1, config, out)


def _refine(a: Segment, b: Segment, u: float, v: float, config: GeometryConfig) -> tuple[float, float]:
    """Polish an approximate hit with Newton steps on A(u) - B(v) = 0.

    The approximation is kept when the Jacobian is near singular (tangent
    contact) or when the iteration does not improve the distance.
    """
    def gap(uu: float, vv: float) -> tuple[float, float]:
        pa = point_at(a, uu)
        pb = point_at(b, vv)
        return (pa.x - pb.x, pa.y - pb.y)

    u0, v0 = u, v
    fx, fy = gap(u, v)
    start_error = math.hypot(fx, fy)
    best = (u, v, start_error)

    for _ in range(config.max_newton_iterations):
        if best[2] <= config.position_tolerance * 1e-6:
            break
        dax, day = derivative_at(a, u)
        dbx, dby = derivative_at(b, v)
        det = dbx * day - dax * dby
        if abs(det) <= 1e-9 * math.hypot(dax, day) * math.hypot(dbx, dby):
            break
        u = min(max(u + (fx * dby - dbx * fy) / det, 0.0), 1.0)
        v = min(max(v + (fx * day - dax * fy) / det, 0.0), 1.0)
        fx, fy = gap(u, v)
        error = math.hypot(fx, fy)
        if error < best[2]:
            best = (u, v, error)

    if best[2] >= start_error:
        return (u0, v0)
    # Newton may slide to a different root; stay near the bisection hit
    if point_at(a, best[0]).distance_to(point_at(a, u0)) > 10 * config.position_tolerance:
        return (u0, v0)
    return (best[0], best[1])
