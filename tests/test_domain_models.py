"""Tests for domain models to verify they work correctly."""

import pytest
from fontTools.pens.areaPen import AreaPen

from deoverlap.domain import (
    Contour,
    ContourSet,
    Cubic,
    IntersectionPoint,
    Line,
    MonotonicContours,
    MonotonicPiece,
    OverlapWarning,
    Point,
    WarningKind,
    WindingDirection,
    WindingEdge,
    segment_area,
    segment_from_dict,
)
from deoverlap.io import draw_contour_set

KAPPA = 0.5522847498


def circle(cx: float, cy: float, r: float) -> Contour:
    """Counter-clockwise circle made of four cubics."""
    k = KAPPA * r
    return Contour(
        segments=(
            Cubic(Point(cx + r, cy), Point(cx + r, cy + k), Point(cx + k, cy + r), Point(cx, cy + r)),
            Cubic(Point(cx, cy + r), Point(cx - k, cy + r), Point(cx - r, cy + k), Point(cx - r, cy)),
            Cubic(Point(cx - r, cy), Point(cx - r, cy - k), Point(cx - k, cy - r), Point(cx, cy - r)),
            Cubic(Point(cx, cy - r), Point(cx + k, cy - r), Point(cx + r, cy - k), Point(cx + r, cy)),
        )
    )


class TestPoint:
    """Tests for Point class."""

    def test_point_creation(self) -> None:
        """Test basic point creation."""
        p = Point(100.0, 200.0)
        assert p.x == 100.0
        assert p.y == 200.0

    def test_point_to_tuple(self) -> None:
        """Test point to tuple conversion."""
        p = Point(100.0, 200.0)
        assert p.to_tuple() == (100.0, 200.0)

    def test_point_serialization(self) -> None:
        """Test point serialization and deserialization."""
        p1 = Point(100.5, -200.25)
        p2 = Point.from_dict(p1.to_dict())
        assert p2 == p1

    def test_point_immutable(self) -> None:
        """Test that point is immutable."""
        p = Point(100.0, 200.0)
        with pytest.raises(AttributeError):
            p.x = 300.0  # type: ignore

    def test_point_hashable(self) -> None:
        """Equal points collapse in a set."""
        assert len({Point(1.0, 2.0), Point(1.0, 2.0), Point(2.0, 1.0)}) == 2

    def test_is_close_per_axis(self) -> None:
        """Closeness is checked on each axis separately."""
        p = Point(0.0, 0.0)
        assert p.is_close(Point(1e-5, -1e-5), 1e-4)
        assert not p.is_close(Point(2e-4, 0.0), 1e-4)

    def test_lerp(self) -> None:
        """Test linear interpolation."""
        assert Point(0.0, 0.0).lerp(Point(2.0, 4.0), 0.25) == Point(0.5, 1.0)


class TestSegments:
    """Tests for Line, Cubic and their helpers."""

    def test_points(self) -> None:
        """Segments expose their defining points in order."""
        line = Line(Point(0, 0), Point(1, 1))
        cubic = Cubic(Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1))
        assert line.points == (Point(0, 0), Point(1, 1))
        assert len(cubic.points) == 4

    def test_segment_serialization(self) -> None:
        """Test both segment kinds survive a dict round trip."""
        line = Line(Point(0, 0), Point(1, 1))
        cubic = Cubic(Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1))
        assert segment_from_dict(line.to_dict()) == line
        assert segment_from_dict(cubic.to_dict()) == cubic

    def test_invalid_segment_dict(self) -> None:
        """Unknown segment types are rejected."""
        with pytest.raises(ValueError, match="Invalid segment"):
            segment_from_dict({"type": "quad", "points": [{"x": 0, "y": 0}] * 3})

    def test_segment_area_matches_area_pen(self) -> None:
        """Summed segment areas agree with fontTools' AreaPen."""
        contour = circle(0.0, 0.0, 10.0)
        pen = AreaPen()
        draw_contour_set(ContourSet([contour]), pen)
        total = sum(segment_area(s) for s in contour.segments)
        assert total == pytest.approx(pen.value)


class TestContour:
    """Tests for Contour class."""

    def test_from_points_closes(self) -> None:
        """The closing edge is added automatically."""
        contour = Contour.from_points([(0, 0), (1, 0), (1, 1), (0, 1)])
        assert len(contour) == 4
        assert contour.segments[-1] == Line(Point(0, 1), Point(0, 0))

    def test_from_points_ignores_repeated_start(self) -> None:
        """A repeated first vertex at the end does not add a segment."""
        contour = Contour.from_points([(0, 0), (1, 0), (1, 1), (0, 0)])
        assert len(contour) == 3

    def test_signed_area_and_direction(self) -> None:
        """Counter-clockwise contours have positive area."""
        ccw = Contour.from_points([(0, 0), (2, 0), (2, 2), (0, 2)])
        cw = ccw.reversed()
        assert ccw.signed_area() == pytest.approx(4.0)
        assert cw.signed_area() == pytest.approx(-4.0)
        assert ccw.direction == WindingDirection.COUNTER_CLOCKWISE
        assert cw.direction == WindingDirection.CLOCKWISE

    def test_zero_area_direction(self) -> None:
        """A contour with no area has no direction."""
        flat = Contour.from_points([(0, 0), (1, 0), (2, 0)])
        assert flat.direction is None

    def test_circle_area(self) -> None:
        """Cubic area is exact, not a polygon approximation."""
        assert circle(0.0, 0.0, 1.0).signed_area() == pytest.approx(3.14159, abs=1e-3)

    def test_closure_gaps(self) -> None:
        """Entry i measures the gap after segment i."""
        contour = Contour(
            segments=(
                Line(Point(0, 0), Point(1, 0)),
                Line(Point(1, 0), Point(1, 1)),
            )
        )
        gaps = contour.closure_gaps()
        assert gaps[0] == 0.0
        assert gaps[1] == pytest.approx(2**0.5)

    def test_bounding_box_includes_controls(self) -> None:
        """Control points count towards the bounding box."""
        contour = Contour(
            segments=(
                Cubic(Point(0, 0), Point(0, 5), Point(1, 5), Point(1, 0)),
                Line(Point(1, 0), Point(0, 0)),
            )
        )
        assert contour.bounding_box() == (0, 0, 1, 5)

    def test_reversed_preserves_selection(self) -> None:
        """Reversing keeps the selected flag and flips cubic controls."""
        contour = Contour(
            segments=(
                Cubic(Point(0, 0), Point(0, 1), Point(1, 1), Point(1, 0)),
                Line(Point(1, 0), Point(0, 0)),
            ),
            selected=True,
        )
        reversed_contour = contour.reversed()
        assert reversed_contour.selected
        assert reversed_contour.segments[1] == Cubic(Point(1, 0), Point(1, 1), Point(0, 1), Point(0, 0))

    def test_contour_serialization(self) -> None:
        """Test contour serialization and deserialization."""
        contour = circle(5.0, 5.0, 2.0)
        contour.selected = True
        restored = Contour.from_dict(contour.to_dict())
        assert restored.segments == contour.segments
        assert restored.selected


class TestContourSet:
    """Tests for ContourSet class."""

    def test_empty(self) -> None:
        """Test empty contour set."""
        assert ContourSet().is_empty()

    def test_area_with_hole(self) -> None:
        """A clockwise hole subtracts from a counter-clockwise outer contour."""
        outer = Contour.from_points([(0, 0), (4, 0), (4, 4), (0, 4)])
        hole = Contour.from_points([(1, 1), (1, 2), (2, 2), (2, 1)])
        contour_set = ContourSet([outer, hole], name="o")
        assert contour_set.area() == pytest.approx(15.0)
        assert contour_set.orientations() == [
            WindingDirection.COUNTER_CLOCKWISE,
            WindingDirection.CLOCKWISE,
        ]

    def test_selected(self) -> None:
        """Only flagged contours are returned by selected()."""
        a = Contour.from_points([(0, 0), (1, 0), (1, 1)], selected=True)
        b = Contour.from_points([(0, 0), (1, 0), (1, 1)])
        assert ContourSet([a, b]).selected() == [a]

    def test_segment_count(self) -> None:
        """Test counting segments across contours."""
        contour_set = ContourSet([circle(0, 0, 1), Contour.from_points([(0, 0), (1, 0), (1, 1)])])
        assert contour_set.segment_count() == 7

    def test_serialization(self) -> None:
        """Test contour set serialization and deserialization."""
        contour_set = ContourSet([circle(0, 0, 1)], name="O")
        restored = ContourSet.from_dict(contour_set.to_dict())
        assert restored.name == "O"
        assert restored.contours[0].segments == contour_set.contours[0].segments


class TestPipelineTypes:
    """Tests for the intermediate pipeline structures."""

    def test_warning_to_dict(self) -> None:
        """Warnings serialize their kind by value."""
        warning = OverlapWarning(WarningKind.NUMERIC_AMBIGUITY, "ray", 3)
        assert warning.to_dict() == {
            "kind": "numeric_ambiguity",
            "message": "ray",
            "contour_index": 3,
        }

    def test_piece_source_parameter(self) -> None:
        """Piece parameters map linearly onto the source segment."""
        line = Line(Point(0, 0), Point(0, 4))
        piece = MonotonicPiece(
            index=0,
            contour_index=0,
            segment_index=0,
            t0=0.5,
            t1=1.0,
            curve=Line(Point(0, 2), Point(0, 4)),
            source=line,
            direction=1,
            bounds=(0, 2, 0, 4),
            prev_index=0,
            next_index=0,
        )
        assert piece.source_parameter(0.5) == pytest.approx(0.75)
        assert piece.start == Point(0, 2)

    def test_ring_walks_one_contour(self) -> None:
        """ring() follows next_index until it returns to the head."""
        pieces = []
        for i in range(3):
            pieces.append(
                MonotonicPiece(
                    index=i,
                    contour_index=0,
                    segment_index=i,
                    t0=0.0,
                    t1=1.0,
                    curve=Line(Point(i, 0), Point(i + 1, 0)),
                    source=Line(Point(i, 0), Point(i + 1, 0)),
                    direction=0,
                    bounds=(i, 0, i + 1, 0),
                    prev_index=(i - 1) % 3,
                    next_index=(i + 1) % 3,
                )
            )
        monotonic = MonotonicContours(pieces=pieces, heads={0: 0}, contours=[])
        assert [p.index for p in monotonic.ring(0)] == [0, 1, 2]
        assert list(monotonic.ring(5)) == []

    def test_intersection_defaults(self) -> None:
        """Intersections default to a single transversal hit."""
        hit = IntersectionPoint(point=Point(1, 1), piece_a=0, t_a=0.5, piece_b=1, t_b=0.5)
        assert hit.multiplicity == 1
        assert not hit.tangential

    def test_edge_winding_is_left_total(self) -> None:
        """The edge winding sums the groups on its left."""
        edge = WindingEdge(
            index=0,
            start_vertex=0,
            end_vertex=1,
            curve=Line(Point(0, 0), Point(1, 0)),
            contour_index=0,
            segment_index=0,
            t0=0.0,
            t1=1.0,
            source=Line(Point(0, 0), Point(1, 0)),
            left=(2, 1),
            right=(1, 1),
        )
        assert edge.winding == 3
