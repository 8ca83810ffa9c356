"""Core geometric types for outline representation.

This module defines the fundamental geometric types used throughout deoverlap:
- Point: A 2D point
- Line, Cubic: The two segment kinds (Segment is their union)
- Contour: A closed cyclic sequence of segments
- WindingDirection: Enum for contour winding direction
"""

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, TypeAlias


class WindingDirection(Enum):
    """Contour winding direction.

    In a y-up coordinate system a counter-clockwise contour has positive
    signed area. TrueType outlines wind outer contours clockwise, PostScript
    and CFF outlines wind them counter-clockwise.
    """

    CLOCKWISE = auto()
    COUNTER_CLOCKWISE = auto()

    def opposite(self) -> "WindingDirection":
        """Return the other direction."""
        if self is WindingDirection.CLOCKWISE:
            return WindingDirection.COUNTER_CLOCKWISE
        return WindingDirection.CLOCKWISE


@dataclass(frozen=True, slots=True)
class Point:
    """A point in 2D space.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate in font units
        y: Y coordinate in font units
    """

    x: float
    y: float

    def to_tuple(self) -> tuple[float, float]:
        """Convert to simple (x, y) tuple."""
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_close(self, other: "Point", tolerance: float) -> bool:
        """Check whether two points coincide within a tolerance."""
        return abs(self.x - other.x) <= tolerance and abs(self.y - other.y) <= tolerance

    def lerp(self, other: "Point", t: float) -> "Point":
        """Linear interpolation towards another point."""
        return Point(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point":
        """Deserialize from dictionary."""
        return cls(x=data["x"], y=data["y"])


@dataclass(frozen=True, slots=True)
class Line:
    """A straight segment.

    Attributes:
        start: Start point
        end: End point
    """

    start: Point
    end: Point

    @property
    def points(self) -> tuple[Point, ...]:
        """All defining points in order."""
        return (self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {"type": "line", "points": [p.to_dict() for p in self.points]}


@dataclass(frozen=True, slots=True)
class Cubic:
    """A cubic Bezier segment.

    Attributes:
        start: Start point (on curve)
        c1: First control point
        c2: Second control point
        end: End point (on curve)
    """

    start: Point
    c1: Point
    c2: Point
    end: Point

    @property
    def points(self) -> tuple[Point, ...]:
        """All defining points in order."""
        return (self.start, self.c1, self.c2, self.end)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {"type": "cubic", "points": [p.to_dict() for p in self.points]}


Segment: TypeAlias = Line | Cubic


def segment_from_dict(data: dict[str, Any]) -> Segment:
    """Deserialize a segment of either kind.

    Raises:
        ValueError: If the segment type is unknown or has the wrong point count
    """
    points = [Point.from_dict(p) for p in data["points"]]
    if data["type"] == "line" and len(points) == 2:
        return Line(points[0], points[1])
    if data["type"] == "cubic" and len(points) == 4:
        return Cubic(points[0], points[1], points[2], points[3])
    raise ValueError(f"Invalid segment: type={data['type']!r}, {len(points)} points")


def segment_area(segment: Segment) -> float:
    """Signed area swept between the segment and the x axis.

    Summed over a closed contour this gives the contour's signed area,
    positive for counter-clockwise winding. Same closed form as fontTools'
    AreaPen.
    """
    x0, y0 = segment.start.x, segment.start.y
    x3, y3 = segment.end.x, segment.end.y
    area = -(x3 - x0) * (y3 + y0) * 0.5
    if isinstance(segment, Cubic):
        x1, y1 = segment.c1.x - x0, segment.c1.y - y0
        x2, y2 = segment.c2.x - x0, segment.c2.y - y0
        dx3, dy3 = x3 - x0, y3 - y0
        area -= (x1 * (-y2 - dy3) + x2 * (y1 - 2 * dy3) + dx3 * (y1 + 2 * y2)) * 0.15
    return area


@dataclass
class Contour:
    """A closed contour representing a shape boundary.

    A contour is a cyclic sequence of segments where each segment starts
    where the previous one ends. Closure is checked at the pipeline boundary,
    not on construction.

    Attributes:
        segments: Segments in drawing order
        selected: Whether the contour is part of the user's selection
    """

    segments: tuple[Segment, ...]
    selected: bool = False
    _cached_area: float | None = field(default=None, repr=False, init=False, compare=False)

    def __post_init__(self) -> None:
        self.segments = tuple(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    @classmethod
    def from_points(cls, points: Sequence[Point | tuple[float, float]], selected: bool = False) -> "Contour":
        """Build a polygon contour from its vertices.

        The closing edge back to the first vertex is added automatically; a
        repeated first vertex at the end is ignored.
        """
        pts = [p if isinstance(p, Point) else Point(float(p[0]), float(p[1])) for p in points]
        if len(pts) > 1 and pts[-1] == pts[0]:
            pts = pts[:-1]
        n = len(pts)
        segments = tuple(Line(pts[i], pts[(i + 1) % n]) for i in range(n)) if n > 1 else ()
        return cls(segments=segments, selected=selected)

    def signed_area(self) -> float:
        """Exact signed area, including curved segments.

        Positive area means counter-clockwise winding. Result is cached.
        """
        if self._cached_area is None:
            self._cached_area = sum(segment_area(s) for s in self.segments)
        return self._cached_area

    @property
    def direction(self) -> WindingDirection | None:
        """Winding direction derived from the signed area (None if zero)."""
        area = self.signed_area()
        if area > 0:
            return WindingDirection.COUNTER_CLOCKWISE
        if area < 0:
            return WindingDirection.CLOCKWISE
        return None

    def closure_gaps(self) -> list[float]:
        """Distance between each segment's end and the next segment's start.

        Entry i is the gap after segment i (the last entry is the closing gap).
        """
        n = len(self.segments)
        return [
            self.segments[i].end.distance_to(self.segments[(i + 1) % n].start)
            for i in range(n)
        ]

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Bounding box of all defining points (control points included).

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        if not self.segments:
            return (0.0, 0.0, 0.0, 0.0)
        xs = [p.x for s in self.segments for p in s.points]
        ys = [p.y for s in self.segments for p in s.points]
        return (min(xs), min(ys), max(xs), max(ys))

    def reversed(self) -> "Contour":
        """Return the same contour traversed in the opposite direction."""
        segments: list[Segment] = []
        for segment in reversed(self.segments):
            if isinstance(segment, Cubic):
                segments.append(Cubic(segment.end, segment.c2, segment.c1, segment.start))
            else:
                segments.append(Line(segment.end, segment.start))
        return Contour(segments=tuple(segments), selected=self.selected)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "segments": [s.to_dict() for s in self.segments],
            "selected": self.selected,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contour":
        """Deserialize from dictionary."""
        return cls(
            segments=tuple(segment_from_dict(s) for s in data["segments"]),
            selected=data.get("selected", False),
        )
