"""Reconstruction of output contours from a wound edge graph.

An edge bundle survives when the fill predicate differs on its two sides
and is turned so the filled side lies on its left. Surviving edges are
stitched into closed cycles, always taking the sharpest left turn where
several continue from one vertex, so regions touching at a point come out
as separate contours. Pieces of one source segment that end up adjacent
are rejoined into a single segment, and zero-area retraces are stripped
before a contour is emitted.

With the filled side on the left, outer contours run counter-clockwise
and holes clockwise; the requested outer direction is applied last.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from deoverlap.config import FillRule, GeometryConfig, OverlapConfig, OverlapMode
from deoverlap.core._bezier import distance_to_line
from deoverlap.core.geometry import (
    distance_to_curve,
    is_degenerate_segment,
    point_at,
    reverse_segment,
    snap_segment,
    sub_segment,
    tangent_at,
)
from deoverlap.domain import (
    Contour,
    ContourSet,
    Line,
    OverlapWarning,
    Point,
    Segment,
    WarningKind,
    WindingDirection,
    WindingEdge,
    WindingGraph,
)

logger = structlog.get_logger(__name__)

Winding = tuple[int, int]
FillPredicate = Callable[[Winding], bool]

_RETRACE_SAMPLES = (0.25, 0.5, 0.75)


@dataclass
class ReconstructionResult:
    """Output of the reconstructor.

    Attributes:
        contours: Closed output contours
        warnings: Conditions recovered from while stitching
    """

    contours: list[Contour]
    warnings: list[OverlapWarning] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _KeptEdge:
    start: int
    end: int
    curve: Segment
    contour_index: int
    segment_index: int
    t0: float
    t1: float
    source: Segment
    flipped: bool


def fill_predicate(mode: OverlapMode, fill_rule: FillRule) -> FillPredicate:
    """Decide from the per-group winding whether a point is filled.

    INTERSECT keeps points covered by at least two contours, so it counts
    coverage (|winding| >= 2) under either fill rule. Under even-odd a
    doubly covered point would read as unfilled and nothing would be kept.

    Args:
        mode: Overlap operation
        fill_rule: Fill rule applied to the regular contours

    Returns:
        Function of (regular winding, cutter winding) -> filled
    """
    if mode is OverlapMode.INTERSECT:
        return lambda w: abs(w[0] + w[1]) >= 2
    if mode is OverlapMode.EXCLUDE:
        return lambda w: fill_rule.is_filled(w[0]) and w[1] == 0
    return lambda w: fill_rule.is_filled(w[0] + w[1])


def reconstruct(
    graph: WindingGraph,
    overlap_config: OverlapConfig,
    geometry_config: GeometryConfig,
    mirrored: bool = False,
) -> ReconstructionResult:
    """Rebuild closed contours from the edges the fill rule keeps.

    Args:
        graph: Output of the splitter and winding assigner
        overlap_config: Mode, fill rule and output options
        geometry_config: Geometry tolerances
        mirrored: True when the graph's coordinates are mirrored (x and y
            swapped), which flips every orientation

    Returns:
        ReconstructionResult with the output contours and warnings
    """
    if overlap_config.mode is OverlapMode.FIND_INTERSECTIONS:
        return ReconstructionResult(contours=split_contours(graph))

    predicate = fill_predicate(overlap_config.mode, overlap_config.fill_rule)
    kept = retained_edges(graph, predicate)
    chains, warnings = stitch(kept, graph, geometry_config)

    tolerance = geometry_config.position_tolerance
    contours: list[Contour] = []
    for chain in chains:
        if overlap_config.rejoin_segments:
            chain = rejoin(chain, graph.vertices)
        segments = [edge.curve for edge in chain]
        if overlap_config.clean_backtracks:
            segments = clean_backtracks(segments, tolerance)
        if not _is_closed_shape(segments, tolerance):
            continue
        selected = any(graph.contours[edge.contour_index].selected for edge in chain)
        contours.append(Contour(segments=tuple(segments), selected=selected))

    reverse = (overlap_config.outer_direction is WindingDirection.CLOCKWISE) != mirrored
    if reverse:
        contours = [contour.reversed() for contour in contours]

    logger.debug(
        "Contours reconstructed",
        retained_edges=len(kept),
        contours=len(contours),
        dead_ends=len(warnings),
    )
    return ReconstructionResult(contours=contours, warnings=warnings)


def split_contours(graph: WindingGraph) -> list[Contour]:
    """The input contours with every intersection inserted as a vertex."""
    by_contour: dict[int, list[Segment]] = {}
    for edge in graph.edges:
        by_contour.setdefault(edge.contour_index, []).append(edge.curve)
    return [
        Contour(segments=tuple(segments), selected=graph.contours[index].selected)
        for index, segments in by_contour.items()
    ]


def _keep(edge: WindingEdge, flipped: bool) -> _KeptEdge:
    if flipped:
        return _KeptEdge(
            start=edge.end_vertex,
            end=edge.start_vertex,
            curve=reverse_segment(edge.curve),
            contour_index=edge.contour_index,
            segment_index=edge.segment_index,
            t0=edge.t0,
            t1=edge.t1,
            source=edge.source,
            flipped=True,
        )
    return _KeptEdge(
        start=edge.start_vertex,
        end=edge.end_vertex,
        curve=edge.curve,
        contour_index=edge.contour_index,
        segment_index=edge.segment_index,
        t0=edge.t0,
        t1=edge.t1,
        source=edge.source,
        flipped=False,
    )


def retained_edges(graph: WindingGraph, predicate: FillPredicate) -> list[_KeptEdge]:
    """Edges on the boundary of the filled region, filled side on the left.

    A bundle whose two sides differ yields one edge. A bundle filled on both
    sides is normally interior and dropped, except where distinct contours
    merely touch along it: each member that alone separates its filled
    side from the outside is then kept in its own direction, so the
    touching regions stay separate contours.
    """
    kept: list[_KeptEdge] = []
    for members in graph.bundles:
        rep = graph.edges[members[0]]
        left = predicate(rep.left)
        right = predicate(rep.right)
        if left != right:
            kept.append(_keep(rep, flipped=right))
            continue
        if not left:
            continue
        if len({graph.edges[index].contour_index for index in members}) < 2:
            continue
        for index in members:
            edge = graph.edges[index]
            own = (1, 0) if edge.group == 0 else (0, 1)
            without = (edge.left[0] - own[0], edge.left[1] - own[1])
            if predicate(edge.left) and not predicate(without):
                kept.append(_keep(edge, flipped=False))
    return kept


def _angle(dx: float, dy: float) -> float:
    return math.atan2(dy, dx)


def _clockwise_turn(reference: float, direction: float, tolerance: float) -> float:
    """Clockwise angle from reference to direction, with 0 counted as a full turn."""
    turn = (reference - direction) % (2 * math.pi)
    if turn <= tolerance or turn >= 2 * math.pi - tolerance:
        return 2 * math.pi
    return turn


def _choose(
    current: _KeptEdge,
    candidates: list[int],
    kept: list[_KeptEdge],
    vertices: list[Point],
    angle_tolerance: float,
) -> int:
    """Pick the outgoing edge making the sharpest left turn."""
    tx, ty = tangent_at(current.curve, 1.0)
    back = _angle(-tx, -ty)
    chord_start = vertices[current.end]
    chord_back = vertices[current.start]
    back_chord = _angle(chord_back.x - chord_start.x, chord_back.y - chord_start.y)

    def key(index: int) -> tuple[float, float, int]:
        edge = kept[index]
        ox, oy = tangent_at(edge.curve, 0.0)
        end = vertices[edge.end]
        return (
            _clockwise_turn(back, _angle(ox, oy), angle_tolerance),
            _clockwise_turn(back_chord, _angle(end.x - chord_start.x, end.y - chord_start.y), 0.0),
            index,
        )

    return min(candidates, key=key)


def stitch(
    kept: list[_KeptEdge],
    graph: WindingGraph,
    config: GeometryConfig,
) -> tuple[list[list[_KeptEdge]], list[OverlapWarning]]:
    """Link retained edges into closed chains.

    A chain that cannot continue before returning to its first vertex is
    closed with a straight line and reported as inconsistent winding.

    Returns:
        Tuple of (chains, warnings)
    """
    outgoing: dict[int, list[int]] = {}
    for index, edge in enumerate(kept):
        outgoing.setdefault(edge.start, []).append(index)

    used: set[int] = set()
    chains: list[list[_KeptEdge]] = []
    warnings: list[OverlapWarning] = []
    for first in range(len(kept)):
        if first in used:
            continue
        used.add(first)
        chain = [kept[first]]
        origin = kept[first].start
        while chain[-1].end != origin:
            candidates = [c for c in outgoing.get(chain[-1].end, ()) if c not in used]
            if not candidates:
                break
            nxt = candidates[0]
            if len(candidates) > 1:
                nxt = _choose(chain[-1], candidates, kept, graph.vertices, config.angle_tolerance)
            used.add(nxt)
            chain.append(kept[nxt])

        if chain[-1].end != origin:
            gap_start = graph.vertices[chain[-1].end]
            gap_end = graph.vertices[origin]
            warnings.append(
                OverlapWarning(
                    WarningKind.INCONSISTENT_WINDING,
                    f"Open chain of {len(chain)} edge(s) closed with a line",
                    chain[0].contour_index,
                )
            )
            logger.debug(
                "Dead end while stitching",
                edges=len(chain),
                gap=gap_start.distance_to(gap_end),
            )
            chain.append(
                _KeptEdge(
                    start=chain[-1].end,
                    end=origin,
                    curve=Line(gap_start, gap_end),
                    contour_index=chain[-1].contour_index,
                    segment_index=-1,
                    t0=0.0,
                    t1=1.0,
                    source=Line(gap_start, gap_end),
                    flipped=False,
                )
            )
        chains.append(chain)
    return chains, warnings


def _contiguous(a: _KeptEdge, b: _KeptEdge) -> bool:
    if a.segment_index < 0 or (a.contour_index, a.segment_index, a.flipped) != (
        b.contour_index,
        b.segment_index,
        b.flipped,
    ):
        return False
    if a.flipped:
        return abs(a.t0 - b.t1) <= 1e-9
    return abs(a.t1 - b.t0) <= 1e-9


def _merge(a: _KeptEdge, b: _KeptEdge, vertices: list[Point]) -> _KeptEdge:
    t0 = min(a.t0, b.t0)
    t1 = max(a.t1, b.t1)
    curve = sub_segment(a.source, t0, t1)
    if a.flipped:
        curve = reverse_segment(curve)
    return _KeptEdge(
        start=a.start,
        end=b.end,
        curve=snap_segment(curve, vertices[a.start], vertices[b.end]),
        contour_index=a.contour_index,
        segment_index=a.segment_index,
        t0=t0,
        t1=t1,
        source=a.source,
        flipped=a.flipped,
    )


def rejoin(chain: list[_KeptEdge], vertices: list[Point]) -> list[_KeptEdge]:
    """Merge neighbouring edges cut from one stretch of a source segment."""
    merged: list[_KeptEdge] = []
    for edge in chain:
        if merged and _contiguous(merged[-1], edge):
            merged[-1] = _merge(merged[-1], edge, vertices)
        else:
            merged.append(edge)
    if len(merged) > 1 and _contiguous(merged[-1], merged[0]):
        head = _merge(merged.pop(), merged[0], vertices)
        merged[0] = head
    return merged


def _retraces(a: Segment, b: Segment, tolerance: float) -> bool:
    """Check whether b runs back along a from a's end to a's start."""
    if not (b.start.is_close(a.end, tolerance) and b.end.is_close(a.start, tolerance)):
        return False
    if isinstance(a, Line) and isinstance(b, Line):
        return True
    return all(distance_to_curve(point_at(b, t), a) <= tolerance for t in _RETRACE_SAMPLES)


def _folded_line(a: Segment, b: Segment, tolerance: float) -> Line | None:
    """Replace A->B->C by A->C when both are lines and C lies back on AB."""
    if not (isinstance(a, Line) and isinstance(b, Line)):
        return None
    dx1, dy1 = a.end.x - a.start.x, a.end.y - a.start.y
    dx2, dy2 = b.end.x - b.start.x, b.end.y - b.start.y
    if dx1 * dx2 + dy1 * dy2 >= 0:
        return None
    if distance_to_line(b.end, a.start, a.end) > tolerance:
        return None
    return Line(a.start, b.end)


def _push(stack: list[Segment], segment: Segment, tolerance: float) -> None:
    while stack:
        top = stack[-1]
        if _retraces(top, segment, tolerance):
            stack.pop()
            return
        folded = _folded_line(top, segment, tolerance)
        if folded is None:
            break
        stack.pop()
        if is_degenerate_segment(folded, tolerance):
            return
        segment = folded
    stack.append(segment)


def clean_backtracks(segments: list[Segment], tolerance: float) -> list[Segment]:
    """Strip zero-length segments and zero-area retraces from a closed contour.

    Adjacent segments that run back over each other are removed in pairs,
    and a line folding back onto the previous line is merged with it. The
    contour is treated as cyclic, so retraces across its start are removed
    too.
    """
    stack: list[Segment] = []
    for segment in segments:
        if is_degenerate_segment(segment, tolerance):
            continue
        _push(stack, segment, tolerance)

    changed = True
    while changed and len(stack) > 1:
        changed = False
        last, first = stack[-1], stack[0]
        if _retraces(last, first, tolerance):
            stack.pop()
            stack.pop(0)
            changed = True
            continue
        folded = _folded_line(last, first, tolerance)
        if folded is not None:
            stack.pop()
            stack.pop(0)
            if not is_degenerate_segment(folded, tolerance):
                rest = stack
                stack = []
                for segment in [folded, *rest]:
                    _push(stack, segment, tolerance)
            changed = True
    return stack


def _is_closed_shape(segments: list[Segment], tolerance: float) -> bool:
    """Whether cleaned segments still describe a contour worth emitting."""
    if not segments:
        return False
    if len(segments) == 1:
        only = segments[0]
        return not isinstance(only, Line) and only.start.is_close(only.end, tolerance)
    return True


def remove_backtracks(contour_set: ContourSet, config: GeometryConfig | None = None) -> ContourSet:
    """Cheap cleanup removing zero-area retraces without resolving overlaps.

    Args:
        contour_set: Closed contours to clean
        config: Geometry tolerances (defaults used when omitted)

    Returns:
        New ContourSet; contours that collapse entirely are dropped
    """
    tolerance = (config or GeometryConfig()).position_tolerance
    contours: list[Contour] = []
    for contour in contour_set:
        segments = clean_backtracks(list(contour.segments), tolerance)
        if _is_closed_shape(segments, tolerance):
            contours.append(Contour(segments=tuple(segments), selected=contour.selected))
    logger.debug(
        "Backtracks removed",
        glyph=contour_set.name,
        contours_in=len(contour_set),
        contours_out=len(contours),
    )
    return ContourSet(contours=contours, name=contour_set.name)
