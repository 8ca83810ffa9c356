"""Converters between fontTools pens and domain models.

This module handles the conversion between the fontTools pen protocol and
our domain models (ContourSet, Contour, Line, Cubic).
"""

from typing import Any

from fontTools.pens.basePen import BasePen

from deoverlap.domain import Contour, ContourSet, Cubic, Line, Point, Segment
from deoverlap.exceptions import EmptyPathError, OpenContourError


class ContourSetPen(BasePen):
    """Pen that records an outline as a ContourSet.

    Quadratic curves are converted to cubics by BasePen. Every path must be
    closed with closePath; an open path (endPath, or a new moveTo before
    the previous path was closed) is rejected, since overlap removal only
    works on closed contours.

    Example:
        pen = ContourSetPen()
        glyph_set["A"].draw(pen)
        outline = pen.contour_set("A")
    """

    def __init__(self, glyphSet: Any = None, selected: bool = False) -> None:
        """Initialize an empty pen.

        Args:
            glyphSet: Glyph set used to resolve components
            selected: Value of the selected flag on recorded contours
        """
        super().__init__(glyphSet)
        self.selected = selected
        self.contours: list[Contour] = []
        self._start: Point | None = None
        self._current: Point | None = None
        self._segments: list[Segment] = []

    def _require_path(self, command: str) -> tuple[Point, Point]:
        """Start and current point of the open path."""
        if self._start is None or self._current is None:
            raise EmptyPathError(f"{command} before moveTo")
        return self._start, self._current

    def _moveTo(self, pt: tuple[float, float]) -> None:
        if self._start is not None and self._segments:
            raise OpenContourError(len(self.contours), self._current.distance_to(self._start))
        self._start = Point(float(pt[0]), float(pt[1]))
        self._current = self._start
        self._segments = []

    def _lineTo(self, pt: tuple[float, float]) -> None:
        _, current = self._require_path("lineTo")
        end = Point(float(pt[0]), float(pt[1]))
        self._segments.append(Line(current, end))
        self._current = end

    def _curveToOne(
        self,
        pt1: tuple[float, float],
        pt2: tuple[float, float],
        pt3: tuple[float, float],
    ) -> None:
        _, current = self._require_path("curveTo")
        end = Point(float(pt3[0]), float(pt3[1]))
        self._segments.append(
            Cubic(current, Point(float(pt1[0]), float(pt1[1])), Point(float(pt2[0]), float(pt2[1])), end)
        )
        self._current = end

    def _closePath(self) -> None:
        start, current = self._require_path("closePath")
        if self._segments:
            if current != start:
                self._segments.append(Line(current, start))
            self.contours.append(Contour(segments=tuple(self._segments), selected=self.selected))
        self._start = None
        self._current = None
        self._segments = []

    def _endPath(self) -> None:
        start, current = self._require_path("endPath")
        if self._segments and current != start:
            raise OpenContourError(len(self.contours), current.distance_to(start))
        # A lone moveTo (an anchor) or a path ending on its start is accepted
        if self._segments:
            self.contours.append(Contour(segments=tuple(self._segments), selected=self.selected))
        self._start = None
        self._current = None
        self._segments = []

    def contour_set(self, name: str | None = None) -> ContourSet:
        """The recorded outline.

        Raises:
            OpenContourError: If the last path was never closed
        """
        if self._start is not None and self._segments:
            raise OpenContourError(len(self.contours), self._current.distance_to(self._start))
        return ContourSet(contours=list(self.contours), name=name)


def draw_contour_set(contour_set: ContourSet, pen: Any) -> None:
    """Replay a ContourSet into a fontTools pen.

    A final line back to the start point is left to closePath.

    Args:
        contour_set: Outline to draw
        pen: Any object implementing the fontTools pen protocol
    """
    for contour in contour_set:
        if not contour.segments:
            continue
        segments = list(contour.segments)
        start = segments[0].start
        if len(segments) > 1 and isinstance(segments[-1], Line) and segments[-1].end == start:
            segments.pop()

        pen.moveTo(start.to_tuple())
        for segment in segments:
            if isinstance(segment, Line):
                pen.lineTo(segment.end.to_tuple())
            else:
                pen.curveTo(segment.c1.to_tuple(), segment.c2.to_tuple(), segment.end.to_tuple())
        pen.closePath()
