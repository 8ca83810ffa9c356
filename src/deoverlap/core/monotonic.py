"""Monotonic decomposition of contours.

Every segment is cut at its interior extrema along the sweep axis, so each
resulting piece moves in one direction only along that axis. The pieces of
a contour are linked into a cycle through prev_index/next_index in one flat
list shared by all contours.

Degenerate input (zero-length segments, contours with no area at all) is
removed here and reported as warnings, never raised.
"""

import structlog

from deoverlap.config import GeometryConfig
from deoverlap.core._bezier import distance_to_line
from deoverlap.core.geometry import (
    axis_extrema,
    axis_value,
    is_degenerate_segment,
    point_at,
    segment_bounds,
    snap_segment,
    sub_segment,
)
from deoverlap.domain import (
    Contour,
    MonotonicContours,
    MonotonicPiece,
    OverlapWarning,
    Point,
    Segment,
    WarningKind,
)

logger = structlog.get_logger(__name__)


def decompose(
    contours: list[Contour],
    config: GeometryConfig,
    axis: int = 1,
    groups: list[int] | None = None,
) -> MonotonicContours:
    """Split closed contours into linked monotonic pieces.

    Args:
        contours: Closed contours (closure already checked)
        config: Geometry tolerances
        axis: Sweep axis, 0 for x or 1 for y
        groups: Winding group per contour (defaults to 0 for all)

    Returns:
        MonotonicContours holding the piece arena, the ring heads and the
        normalized contours the pieces refer to
    """
    tolerance = config.position_tolerance
    pieces: list[MonotonicPiece] = []
    heads: dict[int, int] = {}
    normalized: list[Contour] = []
    dropped: list[int] = []
    warnings: list[OverlapWarning] = []

    for contour_index, contour in enumerate(contours):
        segments = _drop_degenerate_segments(list(contour.segments), tolerance)
        removed = len(contour.segments) - len(segments)
        if removed:
            warnings.append(
                OverlapWarning(
                    WarningKind.DEGENERATE_GEOMETRY,
                    f"Dropped {removed} zero-length segment(s)",
                    contour_index,
                )
            )

        if not segments or _is_flat(segments, tolerance):
            dropped.append(contour_index)
            normalized.append(Contour(segments=(), selected=contour.selected))
            warnings.append(
                OverlapWarning(
                    WarningKind.DEGENERATE_GEOMETRY,
                    "Dropped contour with no area",
                    contour_index,
                )
            )
            logger.debug("Degenerate contour dropped", contour=contour_index)
            continue

        normalized.append(Contour(segments=tuple(segments), selected=contour.selected))
        group = groups[contour_index] if groups else 0

        raw: list[tuple[int, float, float, Segment, Segment]] = []
        for segment_index, segment in enumerate(segments):
            for t0, t1, curve in _monotonic_ranges(segment, axis, config):
                raw.append((segment_index, t0, t1, curve, segment))

        first = len(pieces)
        count = len(raw)
        heads[contour_index] = first
        for offset, (segment_index, t0, t1, curve, source) in enumerate(raw):
            delta = axis_value(curve.end, axis) - axis_value(curve.start, axis)
            direction = 0 if abs(delta) <= tolerance else (1 if delta > 0 else -1)
            pieces.append(
                MonotonicPiece(
                    index=first + offset,
                    contour_index=contour_index,
                    segment_index=segment_index,
                    t0=t0,
                    t1=t1,
                    curve=curve,
                    source=source,
                    direction=direction,
                    bounds=segment_bounds(curve),
                    prev_index=first + (offset - 1) % count,
                    next_index=first + (offset + 1) % count,
                    group=group,
                )
            )

    logger.debug(
        "Decomposed contours",
        contours=len(contours),
        pieces=len(pieces),
        dropped=len(dropped),
    )
    return MonotonicContours(
        pieces=pieces,
        heads=heads,
        contours=normalized,
        dropped_contours=dropped,
        warnings=warnings,
    )


def _drop_degenerate_segments(segments: list[Segment], tolerance: float) -> list[Segment]:
    """Remove zero-length segments and splice their neighbours together."""
    kept = [s for s in segments if not is_degenerate_segment(s, tolerance)]
    if not kept:
        return kept

    spliced: list[Segment] = []
    n = len(kept)
    for i, segment in enumerate(kept):
        start = kept[i - 1].end if i > 0 else kept[n - 1].end
        spliced.append(snap_segment(segment, start, segment.end))
    return spliced


def _is_flat(segments: list[Segment], tolerance: float) -> bool:
    """Check whether all points of a contour lie on one line.

    Such a contour encloses no area anywhere, unlike a figure eight whose
    signed area merely cancels out.
    """
    points = [p for s in segments for p in s.points]
    origin = points[0]
    far = max(points, key=lambda p: p.distance_to(origin))
    if far.distance_to(origin) <= tolerance:
        return True
    return all(distance_to_line(p, origin, far) <= tolerance for p in points)


def _monotonic_ranges(
    segment: Segment, axis: int, config: GeometryConfig
) -> list[tuple[float, float, Segment]]:
    """Cut a segment at its axis extrema.

    Returns:
        (t0, t1, curve) for each piece, curves joined end to start exactly
    """
    tolerance = config.position_tolerance
    cuts = axis_extrema(segment, axis, config.discriminant_epsilon, config.parameter_epsilon)

    params = [0.0]
    points: list[Point] = [segment.start]
    for t in cuts:
        point = point_at(segment, t)
        if point.is_close(points[-1], tolerance) or point.is_close(segment.end, tolerance):
            continue
        params.append(t)
        points.append(point)
    params.append(1.0)
    points.append(segment.end)

    ranges: list[tuple[float, float, Segment]] = []
    for i in range(len(params) - 1):
        curve = snap_segment(sub_segment(segment, params[i], params[i + 1]), points[i], points[i + 1])
        ranges.append((params[i], params[i + 1], curve))
    return ranges
