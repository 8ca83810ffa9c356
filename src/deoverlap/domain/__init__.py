"""Domain models for deoverlap.

This module contains the domain models representing outlines and the
intermediate structures of the overlap pipeline. All models are designed to be:

- Immutable where possible (using frozen dataclasses)
- Serializable for inter-process communication (parallel processing)
- Independent of fontTools implementation details

Key classes:
- Point: A 2D point
- Line, Cubic: Segment kinds
- Contour: A closed sequence of segments
- ContourSet: The contours of one glyph
- MonotonicPiece, IntersectionPoint, WindingEdge: Pipeline stage outputs
"""

from deoverlap.domain.contour import (
    Contour,
    Cubic,
    Line,
    Point,
    Segment,
    WindingDirection,
    segment_area,
    segment_from_dict,
)
from deoverlap.domain.glyph import ContourSet
from deoverlap.domain.pipeline import (
    IntersectionPoint,
    MonotonicContours,
    MonotonicPiece,
    OverlapWarning,
    WarningKind,
    WindingEdge,
    WindingGraph,
)

__all__: list[str] = [
    # Enums
    "WarningKind",
    "WindingDirection",
    # Core types
    "Contour",
    "ContourSet",
    "Cubic",
    "Line",
    "Point",
    "Segment",
    # Pipeline types
    "IntersectionPoint",
    "MonotonicContours",
    "MonotonicPiece",
    "OverlapWarning",
    "WindingEdge",
    "WindingGraph",
    # Helpers
    "segment_area",
    "segment_from_dict",
]
