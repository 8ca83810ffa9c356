"""Overlap removal entry point.

This module runs the whole pipeline on one glyph:

1. Validate closure and pick the contours taking part
2. Decompose into monotonic pieces
3. Find intersections
4. Split and assign windings
5. Reconstruct the output contours

Malformed input raises MalformedInputError before any work is done. All
other trouble (degenerate segments, ambiguous rays, graphs that do not
close) is absorbed and reported through OverlapResult.warnings.
"""

from dataclasses import dataclass, field, replace
from typing import Any

import structlog

from deoverlap.config import (
    DeoverlapSettings,
    FillRule,
    OverlapMode,
    OverlapScope,
    SweepAxis,
    get_default_settings,
)
from deoverlap.core.intersections import find_intersections
from deoverlap.core.monotonic import decompose
from deoverlap.core.reconstruct import reconstruct, remove_backtracks
from deoverlap.core.winding import split_and_wind
from deoverlap.domain import Contour, ContourSet, Cubic, Line, OverlapWarning, Point, Segment
from deoverlap.exceptions import OpenContourError


@dataclass
class OverlapResult:
    """Outcome of an overlap operation on one glyph.

    Attributes:
        contours: The output outline
        warnings: Non-fatal conditions recovered from
        dropped_contours: Indices of input contours removed as degenerate
        intersection_count: Number of intersections found
    """

    contours: ContourSet
    warnings: list[OverlapWarning] = field(default_factory=list)
    dropped_contours: list[int] = field(default_factory=list)
    intersection_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "contours": self.contours.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
            "dropped_contours": list(self.dropped_contours),
            "intersection_count": self.intersection_count,
        }


def _swap_point(point: Point) -> Point:
    return Point(point.y, point.x)


def _swap_segment(segment: Segment) -> Segment:
    if isinstance(segment, Line):
        return Line(_swap_point(segment.start), _swap_point(segment.end))
    return Cubic(*(_swap_point(p) for p in segment.points))


def _swap_axes(contour: Contour) -> Contour:
    """Mirror a contour across the diagonal (x and y exchanged)."""
    return Contour(segments=tuple(_swap_segment(s) for s in contour.segments), selected=contour.selected)


class OverlapRemover:
    """Removes overlaps from glyph outlines.

    Holds the settings for a run so many glyphs can be processed with the
    same configuration.

    Example:
        remover = OverlapRemover()
        result = remover.remove(contour_set)
        clean = result.contours
    """

    def __init__(self, settings: DeoverlapSettings | None = None) -> None:
        """Initialize with settings (defaults when omitted)."""
        self.settings = settings if settings is not None else get_default_settings()
        self.logger = structlog.get_logger(__name__)

    def validate(self, contour_set: ContourSet) -> None:
        """Check that every contour is closed.

        Raises:
            OpenContourError: If a segment does not end where the next starts
        """
        tolerance = self.settings.geometry.position_tolerance
        for index, contour in enumerate(contour_set):
            if not contour.segments:
                continue
            gap = max(contour.closure_gaps())
            if gap > tolerance:
                raise OpenContourError(index, gap)

    def remove(self, contour_set: ContourSet) -> OverlapResult:
        """Apply the configured overlap operation to one glyph.

        Args:
            contour_set: Closed input contours

        Returns:
            OverlapResult with the new outline and any warnings

        Raises:
            MalformedInputError: If the input cannot be processed
        """
        self.validate(contour_set)

        overlap = self.settings.overlap
        geometry = self.settings.geometry
        log = self.logger.bind(glyph=contour_set.name, mode=overlap.mode.value)

        contours = list(contour_set.contours)
        if overlap.mode is OverlapMode.EXCLUDE:
            active = list(range(len(contours)))
            groups = [1 if contour.selected else 0 for contour in contours]
        elif overlap.scope is OverlapScope.SELECTED:
            active = [i for i, contour in enumerate(contours) if contour.selected]
            groups = [0] * len(active)
        else:
            active = list(range(len(contours)))
            groups = [0] * len(active)
        taking_part = set(active)
        passthrough = [c for i, c in enumerate(contours) if i not in taking_part]

        if not active:
            log.debug("No contours take part", contours=len(contours))
            return OverlapResult(contours=ContourSet(contours=passthrough, name=contour_set.name))

        mirrored = overlap.sweep_axis is SweepAxis.X
        participants = [contours[i] for i in active]
        if mirrored:
            participants = [_swap_axes(c) for c in participants]

        monotonic = decompose(participants, geometry, axis=1, groups=groups)
        hits = find_intersections(monotonic, geometry, axis=1)
        graph = split_and_wind(monotonic, hits, geometry)
        rebuilt = reconstruct(graph, overlap, geometry, mirrored=mirrored)

        output = rebuilt.contours
        if mirrored:
            output = [_swap_axes(c) for c in output]

        warnings = [
            replace(w, contour_index=None if w.contour_index is None else active[w.contour_index])
            for w in (*monotonic.warnings, *graph.warnings, *rebuilt.warnings)
        ]
        dropped = [active[i] for i in monotonic.dropped_contours]

        for warning in warnings:
            log.warning(
                "Recovered from bad geometry",
                kind=warning.kind.value,
                detail=warning.message,
                contour=warning.contour_index,
            )
        log.debug(
            "Overlap operation complete",
            contours_in=len(active),
            contours_out=len(output),
            intersections=len(hits),
            edges=len(graph.edges),
        )

        return OverlapResult(
            contours=ContourSet(contours=output + passthrough, name=contour_set.name),
            warnings=warnings,
            dropped_contours=dropped,
            intersection_count=len(hits),
        )

    def remove_backtracks(self, contour_set: ContourSet) -> ContourSet:
        """Strip zero-area retraces without resolving overlaps."""
        self.validate(contour_set)
        return remove_backtracks(contour_set, self.settings.geometry)


def remove_overlap(
    contour_set: ContourSet,
    config: DeoverlapSettings | None = None,
    fill_rule: FillRule | None = None,
    mode: OverlapMode | None = None,
) -> OverlapResult:
    """Remove overlaps from one glyph outline.

    Args:
        contour_set: Closed input contours
        config: Settings (defaults when omitted)
        fill_rule: Overrides config.overlap.fill_rule
        mode: Overrides config.overlap.mode

    Returns:
        OverlapResult with the new outline and any warnings

    Raises:
        MalformedInputError: If a contour is not closed

    Example:
        >>> square = Contour.from_points([(0, 0), (1, 0), (1, 1), (0, 1)])
        >>> result = remove_overlap(ContourSet([square]))
        >>> len(result.contours)
        1
    """
    settings = config if config is not None else get_default_settings()
    updates: dict[str, Any] = {}
    if fill_rule is not None:
        updates["fill_rule"] = fill_rule
    if mode is not None:
        updates["mode"] = mode
    if updates:
        settings = settings.model_copy(update={"overlap": settings.overlap.model_copy(update=updates)})
    return OverlapRemover(settings).remove(contour_set)
