"""Intermediate structures passed between pipeline stages.

Each stage builds these fresh and hands them to the next stage, which only
reads them:

- MonotonicPiece / MonotonicContours: output of the decomposer
- IntersectionPoint: output of the intersection finder
- WindingEdge / WindingGraph: output of the splitter and winding assigner
- OverlapWarning: non-fatal conditions recorded along the way
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from deoverlap.domain.contour import Contour, Point, Segment


class WarningKind(str, Enum):
    """Category of a recovered, non-fatal condition."""

    DEGENERATE_GEOMETRY = "degenerate_geometry"
    NUMERIC_AMBIGUITY = "numeric_ambiguity"
    INCONSISTENT_WINDING = "inconsistent_winding"


@dataclass(frozen=True)
class OverlapWarning:
    """A condition the pipeline absorbed instead of failing.

    Attributes:
        kind: Warning category
        message: Human readable description
        contour_index: Input contour concerned, when known
    """

    kind: WarningKind
    message: str
    contour_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "contour_index": self.contour_index,
        }


@dataclass(frozen=True, slots=True)
class MonotonicPiece:
    """A maximal sub-range of a segment that is monotonic in the sweep axis.

    Pieces live in one flat list; prev_index and next_index link the pieces
    of a contour into a cycle.

    Attributes:
        index: Position in the flat piece list
        contour_index: Index of the source contour
        segment_index: Index of the source segment within its contour
        t0: Start parameter on the source segment
        t1: End parameter on the source segment (t0 < t1)
        curve: Geometry of the piece, reparametrized to [0, 1]
        source: The source segment
        direction: +1 if the sweep coordinate increases, -1 if it decreases, 0 if flat
        bounds: Control-hull bounding box (min_x, min_y, max_x, max_y)
        prev_index: Previous piece in the same contour
        next_index: Next piece in the same contour
        group: Winding group (0 for regular contours, 1 for cutters)
    """

    index: int
    contour_index: int
    segment_index: int
    t0: float
    t1: float
    curve: Segment
    source: Segment
    direction: int
    bounds: tuple[float, float, float, float]
    prev_index: int
    next_index: int
    group: int = 0

    @property
    def start(self) -> Point:
        return self.curve.start

    @property
    def end(self) -> Point:
        return self.curve.end

    def source_parameter(self, u: float) -> float:
        """Map a parameter on the piece curve to the source segment."""
        return self.t0 + (self.t1 - self.t0) * u


@dataclass
class MonotonicContours:
    """All monotonic pieces of a contour set.

    Attributes:
        pieces: Flat list of pieces across all contours
        heads: Maps contour index to the index of its first piece
        contours: The closed input contours the pieces refer to
        dropped_contours: Indices of contours removed as degenerate
        warnings: Degenerate input found while decomposing
    """

    pieces: list[MonotonicPiece]
    heads: dict[int, int]
    contours: list[Contour]
    dropped_contours: list[int] = field(default_factory=list)
    warnings: list[OverlapWarning] = field(default_factory=list)

    def ring(self, contour_index: int) -> Iterator[MonotonicPiece]:
        """Iterate the cyclic piece list of one contour, starting at its head."""
        head = self.heads.get(contour_index)
        if head is None:
            return
        index = head
        while True:
            piece = self.pieces[index]
            yield piece
            index = piece.next_index
            if index == head:
                break


@dataclass(frozen=True)
class IntersectionPoint:
    """A location where two pieces meet.

    Attributes:
        point: Location of the intersection
        piece_a: Index of the first piece
        t_a: Parameter on the first piece's source segment
        piece_b: Index of the second piece
        t_b: Parameter on the second piece's source segment
        multiplicity: Number of raw hits merged into this one
        tangential: True if the pieces touch without crossing
    """

    point: Point
    piece_a: int
    t_a: float
    piece_b: int
    t_b: float
    multiplicity: int = 1
    tangential: bool = False


@dataclass(frozen=True, slots=True)
class WindingEdge:
    """A piece of outline between two consecutive split vertices.

    Attributes:
        index: Position in the graph's edge list
        start_vertex: Index of the start vertex
        end_vertex: Index of the end vertex
        curve: Geometry of the edge, endpoints snapped to its vertices
        contour_index: Index of the source contour
        segment_index: Index of the source segment
        t0: Start parameter on the source segment
        t1: End parameter on the source segment
        source: The source segment
        group: Winding group of the source contour
        bundle: Index of the coincidence bundle the edge belongs to
        left: Winding per group just left of the edge
        right: Winding per group just right of the edge
    """

    index: int
    start_vertex: int
    end_vertex: int
    curve: Segment
    contour_index: int
    segment_index: int
    t0: float
    t1: float
    source: Segment
    group: int = 0
    bundle: int = -1
    left: tuple[int, int] = (0, 0)
    right: tuple[int, int] = (0, 0)

    @property
    def winding(self) -> int:
        """Total winding count on the edge's left side."""
        return sum(self.left)


@dataclass
class WindingGraph:
    """Split edges with their windings.

    Attributes:
        vertices: Vertex positions
        edges: All edges in input contour order
        bundles: Groups of coincident edge indices
        contours: The closed input contours the edges refer to
        warnings: Conditions recovered from while splitting or winding
    """

    vertices: list[Point]
    edges: list[WindingEdge]
    bundles: list[list[int]]
    contours: list[Contour]
    warnings: list[OverlapWarning] = field(default_factory=list)
