"""Contour splitting and winding assignment.

Intersection points become vertices, and every monotonic piece is split at
the vertices that lie on it. The resulting edges meet other edges only at
their endpoints, so the winding number is constant along each side of an
edge and one ray cast per edge decides it.

Windings are counted separately per group: group 0 holds the regular
contours, group 1 the cutters of an exclude operation. Each edge records
the counts just left and just right of itself, relative to its direction.

Ray casting follows the usual point-in-polygon rule generalized to many
contours. From a sample point on the edge a ray goes towards +x and every
edge it crosses adds +1 going up and -1 going down (half-open in y).
Horizontal edges cast a ray towards +y instead, where edges going towards
-x add +1. Edges coincident with the sampled one form a bundle; the bundle
is left out of the count and its members' contributions make up the jump
between its two sides.
"""

import math
from dataclasses import replace

import structlog

from deoverlap.config import GeometryConfig
from deoverlap.core._bezier import bisect_root
from deoverlap.core.geometry import (
    axis_extrema,
    distance_to_curve,
    point_at,
    segment_bounds,
    snap_segment,
    sub_segment,
)
from deoverlap.domain import (
    IntersectionPoint,
    Line,
    MonotonicContours,
    OverlapWarning,
    Point,
    Segment,
    WarningKind,
    WindingEdge,
    WindingGraph,
)

logger = structlog.get_logger(__name__)

Winding = tuple[int, int]

# Parameters checked for coincident geometry
_COINCIDENCE_SAMPLES = (0.25, 0.5, 0.75)


class VertexIndex:
    """Spatial hash clustering points into shared vertices.

    A point within the tolerance (per axis) of an existing vertex maps to
    that vertex; the first point registered at a location wins.
    """

    def __init__(self, tolerance: float) -> None:
        self.tolerance = tolerance
        self.cell = tolerance if tolerance > 0 else 1e-12
        self.points: list[Point] = []
        self._grid: dict[tuple[int, int], list[int]] = {}

    def _key(self, point: Point) -> tuple[int, int]:
        return (int(point.x // self.cell), int(point.y // self.cell))

    def find(self, point: Point) -> int | None:
        """Index of the vertex a point clusters to, if any."""
        kx, ky = self._key(point)
        best: int | None = None
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for index in self._grid.get((kx + dx, ky + dy), ()):
                    if self.points[index].is_close(point, self.tolerance) and (best is None or index < best):
                        best = index
        return best

    def add(self, point: Point) -> int:
        """Register a point, returning the vertex it belongs to."""
        existing = self.find(point)
        if existing is not None:
            return existing
        index = len(self.points)
        self.points.append(point)
        self._grid.setdefault(self._key(point), []).append(index)
        return index


class EdgeSpans:
    """Edges bucketed into bands by their extent along one axis.

    Answers which edges a ray perpendicular to that axis can meet: the ones
    whose extent, padded by the tolerance, contains the ray's coordinate.
    The axis range is cut into about sqrt(n) bands.
    """

    def __init__(self, edges: list[WindingEdge], axis: int, tolerance: float) -> None:
        self.axis = axis
        self._spans: dict[int, tuple[float, float]] = {}
        for edge in edges:
            box = segment_bounds(edge.curve)
            self._spans[edge.index] = (box[axis] - tolerance, box[axis + 2] + tolerance)

        lows = [low for low, _ in self._spans.values()]
        highs = [high for _, high in self._spans.values()]
        self._low = min(lows, default=0.0)
        band_count = max(1, math.isqrt(len(edges)))
        self._width = (max(highs, default=0.0) - self._low) / band_count or 1.0
        self._bands: list[list[WindingEdge]] = [[] for _ in range(band_count)]
        for edge in edges:
            low, high = self._spans[edge.index]
            for band in range(self._band(low), self._band(high) + 1):
                self._bands[band].append(edge)

    def _band(self, value: float) -> int:
        band = int((value - self._low) / self._width)
        return min(max(band, 0), len(self._bands) - 1)

    def containing(self, value: float, excluded: set[int]) -> list[WindingEdge]:
        """Edges whose padded extent contains value, minus the excluded ones."""
        found = []
        for edge in self._bands[self._band(value)]:
            low, high = self._spans[edge.index]
            if low <= value <= high and edge.index not in excluded:
                found.append(edge)
        return found


def split_and_wind(
    monotonic: MonotonicContours,
    intersections: list[IntersectionPoint],
    config: GeometryConfig,
) -> WindingGraph:
    """Split pieces at intersections and assign windings to every edge.

    Args:
        monotonic: Output of the decomposer
        intersections: Output of the intersection finder
        config: Geometry tolerances and the ray retry limit

    Returns:
        WindingGraph whose edges carry left and right windings
    """
    vertices, edges = split_pieces(monotonic, intersections, config.position_tolerance)
    bundles = find_bundles(edges, config.position_tolerance)
    spans = (
        EdgeSpans(edges, 0, config.position_tolerance),
        EdgeSpans(edges, 1, config.position_tolerance),
    )

    warnings: list[OverlapWarning] = []
    wound = list(edges)
    for bundle_index, members in enumerate(bundles):
        outcome = _wind_bundle(bundle_index, members, edges, vertices, spans, config)
        for index, (left, right) in outcome.sides.items():
            wound[index] = replace(edges[index], bundle=bundle_index, left=left, right=right)
        if outcome.ambiguous:
            warnings.append(
                OverlapWarning(
                    WarningKind.NUMERIC_AMBIGUITY,
                    "No clean ray found for winding; used best effort count",
                    edges[members[0]].contour_index,
                )
            )

    logger.debug(
        "Windings assigned",
        vertices=len(vertices),
        edges=len(wound),
        bundles=len(bundles),
        ambiguous=len(warnings),
    )
    return WindingGraph(
        vertices=vertices,
        edges=wound,
        bundles=bundles,
        contours=monotonic.contours,
        warnings=warnings,
    )


def split_pieces(
    monotonic: MonotonicContours,
    intersections: list[IntersectionPoint],
    tolerance: float,
) -> tuple[list[Point], list[WindingEdge]]:
    """Cluster vertices and cut every piece at the vertices on it.

    Returns:
        Tuple of (vertex positions, edges in piece order)
    """
    index = VertexIndex(tolerance)
    for piece in monotonic.pieces:
        index.add(piece.start)
        index.add(piece.end)

    cuts: dict[int, list[tuple[float, int]]] = {}
    for hit in intersections:
        vertex = index.add(hit.point)
        for piece_index, t in ((hit.piece_a, hit.t_a), (hit.piece_b, hit.t_b)):
            piece = monotonic.pieces[piece_index]
            u = (t - piece.t0) / (piece.t1 - piece.t0)
            cuts.setdefault(piece_index, []).append((min(max(u, 0.0), 1.0), vertex))

    edges: list[WindingEdge] = []
    for piece in monotonic.pieces:
        stops = [(0.0, index.find(piece.start))]
        stops.extend(sorted(cuts.get(piece.index, ())))
        stops.append((1.0, index.find(piece.end)))

        for (ua, va), (ub, vb) in zip(stops, stops[1:]):
            if va == vb or ub <= ua:
                continue
            curve = snap_segment(sub_segment(piece.curve, ua, ub), index.points[va], index.points[vb])
            edges.append(
                WindingEdge(
                    index=len(edges),
                    start_vertex=va,
                    end_vertex=vb,
                    curve=curve,
                    contour_index=piece.contour_index,
                    segment_index=piece.segment_index,
                    t0=piece.source_parameter(ua),
                    t1=piece.source_parameter(ub),
                    source=piece.source,
                    group=piece.group,
                )
            )
    return index.points, edges


def _same_geometry(a: Segment, b: Segment, tolerance: float) -> bool:
    return all(distance_to_curve(point_at(a, t), b) <= tolerance for t in _COINCIDENCE_SAMPLES)


def find_bundles(edges: list[WindingEdge], tolerance: float) -> list[list[int]]:
    """Group edges joining the same two vertices along the same path.

    Direction does not matter. Every edge ends up in exactly one bundle;
    bundles are ordered by their lowest edge index.
    """
    by_ends: dict[tuple[int, int], list[list[int]]] = {}
    bundles: list[list[int]] = []
    slack = 4 * tolerance
    for edge in edges:
        key = (min(edge.start_vertex, edge.end_vertex), max(edge.start_vertex, edge.end_vertex))
        candidates = by_ends.setdefault(key, [])
        for bundle in candidates:
            if _same_geometry(edge.curve, edges[bundle[0]].curve, slack):
                bundle.append(edge.index)
                break
        else:
            bundle = [edge.index]
            candidates.append(bundle)
            bundles.append(bundle)
    return bundles


def sample_parameters(count: int) -> list[float]:
    """Deterministic sample parameters, starting at the middle.

    Yields 0.5, then the quarters, then the eighths closest to the middle
    first, and so on.
    """
    params = [0.5]
    level = 2
    while len(params) < count:
        denominator = 2**level
        odd = [k / denominator for k in range(1, denominator, 2)]
        odd.sort(key=lambda t: (abs(t - 0.5), t))
        params.extend(odd)
        level += 1
    return params[:count]


class _BundleWinding:
    """Left and right windings of a bundle's members."""

    __slots__ = ("sides", "ambiguous")

    def __init__(self, sides: dict[int, tuple[Winding, Winding]], ambiguous: bool) -> None:
        self.sides = sides
        self.ambiguous = ambiguous


def _add(a: Winding, b: Winding) -> Winding:
    return (a[0] + b[0], a[1] + b[1])


def _unit(group: int, value: int) -> Winding:
    return (value, 0) if group == 0 else (0, value)


def _wind_bundle(
    bundle_index: int,
    members: list[int],
    edges: list[WindingEdge],
    vertices: list[Point],
    spans: tuple[EdgeSpans, EdgeSpans],
    config: GeometryConfig,
) -> _BundleWinding:
    """Cast rays from the bundle's first edge and derive each member's sides.

    spans holds the edges indexed by x extent and by y extent; a ray only
    looks at the edges whose extent across it contains its origin.
    """
    tolerance = config.position_tolerance
    rep = edges[members[0]]
    excluded = set(members)
    flat = abs(rep.curve.end.y - rep.curve.start.y) <= tolerance

    # Axis 1: ray towards +x, axis 0: ray towards +y
    attempts: list[tuple[int, float]] = []
    primary = 0 if flat else 1
    for t in sample_parameters(config.max_ray_retries + 1):
        attempts.append((primary, t))
    if not flat:
        attempts.append((0, 0.5))

    result: tuple[int, Winding] | None = None
    fallback: tuple[int, Winding] | None = None
    for axis, t in attempts:
        origin = point_at(rep.curve, t)
        if axis == 1:
            others = spans[1].containing(origin.y, excluded)
            degenerate, count = _cast_horizontal(origin, others, vertices, tolerance)
        else:
            others = spans[0].containing(origin.x, excluded)
            degenerate, count = _cast_vertical(origin, others, vertices, config)
        if axis == primary:
            fallback = (axis, count)
        if not degenerate:
            result = (axis, count)
            break

    ambiguous = result is None
    if result is None:
        result = fallback
        logger.debug("Degenerate ray accepted", bundle=bundle_index, edge=rep.index)

    axis, far = result
    contributions = {index: _contribution(edges[index], axis) for index in members}
    jump: Winding = (0, 0)
    for index, value in contributions.items():
        jump = _add(jump, _unit(edges[index].group, value))
    near = _add(far, jump)

    # A member contributing +1 has the far side of the ray on its right
    sides: dict[int, tuple[Winding, Winding]] = {}
    for index, value in contributions.items():
        sides[index] = (near, far) if value > 0 else (far, near)
    return _BundleWinding(sides, ambiguous)


def _contribution(edge: WindingEdge, axis: int) -> int:
    """Signed crossing value of an edge for a ray along the given axis."""
    if axis == 1:
        return 1 if edge.curve.end.y > edge.curve.start.y else -1
    return 1 if edge.curve.end.x < edge.curve.start.x else -1


def _starts_on(origin: Point, edge: WindingEdge, tolerance: float) -> bool:
    min_x, min_y, max_x, max_y = segment_bounds(edge.curve)
    if not (min_x - tolerance <= origin.x <= max_x + tolerance and min_y - tolerance <= origin.y <= max_y + tolerance):
        return False
    return distance_to_curve(origin, edge.curve) <= tolerance


def _cast_horizontal(
    origin: Point,
    others: list[WindingEdge],
    vertices: list[Point],
    tolerance: float,
) -> tuple[bool, Winding]:
    """Count crossings of the ray from origin towards +x.

    Returns:
        Tuple of (degenerate, winding per group)
    """
    x0, y0 = origin.x, origin.y
    degenerate = False
    count: Winding = (0, 0)
    touched: set[int] = set()
    for edge in others:
        for vertex in (edge.start_vertex, edge.end_vertex):
            if vertex in touched:
                continue
            touched.add(vertex)
            v = vertices[vertex]
            if abs(v.y - y0) <= tolerance and v.x >= x0 - tolerance:
                degenerate = True
        if not degenerate and _starts_on(origin, edge, tolerance):
            degenerate = True

        curve = edge.curve
        ya, yb = curve.start.y, curve.end.y
        if (ya <= y0) == (yb <= y0):
            continue
        if isinstance(curve, Line):
            x = curve.start.x + (curve.end.x - curve.start.x) * (y0 - ya) / (yb - ya)
        else:
            t = bisect_root(lambda s: point_at(curve, s).y - y0, 0.0, 1.0, 1e-12)
            x = point_at(curve, t).x
        if x > x0:
            count = _add(count, _unit(edge.group, 1 if yb > ya else -1))
    return degenerate, count


def _cast_vertical(
    origin: Point,
    others: list[WindingEdge],
    vertices: list[Point],
    config: GeometryConfig,
) -> tuple[bool, Winding]:
    """Count crossings of the ray from origin towards +y.

    Edges are only monotonic in y, so cubics are cut at their x extrema
    first and each part is tested on its own.

    Returns:
        Tuple of (degenerate, winding per group)
    """
    tolerance = config.position_tolerance
    x0, y0 = origin.x, origin.y
    degenerate = False
    count: Winding = (0, 0)
    touched: set[int] = set()
    for edge in others:
        for vertex in (edge.start_vertex, edge.end_vertex):
            if vertex in touched:
                continue
            touched.add(vertex)
            v = vertices[vertex]
            if abs(v.x - x0) <= tolerance and v.y >= y0 - tolerance:
                degenerate = True
        if not degenerate and _starts_on(origin, edge, tolerance):
            degenerate = True

        curve = edge.curve
        min_x, _, max_x, max_y = segment_bounds(curve)
        if max_x < x0 or min_x > x0 or max_y <= y0:
            continue

        params = [0.0]
        params.extend(axis_extrema(curve, 0, config.discriminant_epsilon, config.parameter_epsilon))
        params.append(1.0)
        for ta, tb in zip(params, params[1:]):
            xa = point_at(curve, ta).x
            xb = point_at(curve, tb).x
            if (xa <= x0) == (xb <= x0):
                continue
            t = bisect_root(lambda s: point_at(curve, s).x - x0, ta, tb, 1e-12)
            if point_at(curve, t).y > y0:
                count = _add(count, _unit(edge.group, 1 if xb < xa else -1))
    return degenerate, count
