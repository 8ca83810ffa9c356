"""Tests for the fontTools pen adapters."""

import pytest
from fontTools.pens.recordingPen import RecordingPen

from deoverlap.domain import Contour, ContourSet, Cubic, Line, Point
from deoverlap.exceptions import EmptyPathError, MalformedInputError, OpenContourError
from deoverlap.io import ContourSetPen, draw_contour_set


@pytest.fixture
def square() -> Contour:
    """Counter-clockwise unit square."""
    return Contour.from_points([(0, 0), (1, 0), (1, 1), (0, 1)])


class TestContourSetPen:
    """Tests for ContourSetPen."""

    def test_records_closed_polygon(self):
        """Test closePath adds the closing line."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.lineTo((1, 0))
        pen.lineTo((1, 1))
        pen.closePath()

        outline = pen.contour_set("tri")
        assert outline.name == "tri"
        assert len(outline) == 1
        assert outline.contours[0].segments == (
            Line(Point(0, 0), Point(1, 0)),
            Line(Point(1, 0), Point(1, 1)),
            Line(Point(1, 1), Point(0, 0)),
        )

    def test_no_closing_line_when_already_closed(self):
        """Test a path ending on its start gets no zero-length segment."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.lineTo((1, 0))
        pen.lineTo((1, 1))
        pen.lineTo((0, 0))
        pen.closePath()
        assert len(pen.contours[0]) == 3

    def test_records_cubic(self):
        """Test curveTo records a cubic segment."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.curveTo((0, 1), (1, 1), (1, 0))
        pen.closePath()
        segments = pen.contours[0].segments
        assert segments[0] == Cubic(Point(0, 0), Point(0, 1), Point(1, 1), Point(1, 0))
        assert segments[1] == Line(Point(1, 0), Point(0, 0))

    def test_quadratic_elevated_to_cubic(self):
        """Test qCurveTo is converted to an equivalent cubic."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.qCurveTo((1, 2), (2, 0))
        pen.closePath()
        cubic = pen.contours[0].segments[0]
        assert isinstance(cubic, Cubic)
        assert cubic.c1.x == pytest.approx(2 / 3)
        assert cubic.c1.y == pytest.approx(4 / 3)
        assert cubic.c2.x == pytest.approx(4 / 3)
        assert cubic.c2.y == pytest.approx(4 / 3)
        assert cubic.end == Point(2, 0)

    def test_selected_flag(self):
        """Test the pen marks recorded contours as selected on request."""
        pen = ContourSetPen(selected=True)
        pen.moveTo((0, 0))
        pen.lineTo((1, 0))
        pen.lineTo((1, 1))
        pen.closePath()
        assert pen.contours[0].selected

    def test_open_path_rejected(self):
        """Test endPath on an open path raises."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.lineTo((3, 4))
        with pytest.raises(OpenContourError) as exc_info:
            pen.endPath()
        assert exc_info.value.gap == pytest.approx(5.0)
        assert exc_info.value.contour_index == 0

    def test_each_path_closes_to_its_own_start(self):
        """Test closePath joins the last point of every path back to that path's moveTo."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.curveTo((0, 1), (1, 1), (1, 0))
        pen.lineTo((1, -1))
        pen.closePath()
        pen.moveTo((5, 5))
        pen.lineTo((6, 5))
        pen.lineTo((6, 6))
        pen.closePath()

        first, second = pen.contour_set().contours
        assert first.segments[-1] == Line(Point(1, -1), Point(0, 0))
        assert second.segments[-1] == Line(Point(6, 6), Point(5, 5))
        for contour in (first, second):
            assert max(contour.closure_gaps()) == 0.0

    def test_open_path_ending_elsewhere_rejected(self):
        """Test endPath measures the gap back to the path's first point."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.lineTo((1, 0))
        pen.lineTo((1, 1))
        with pytest.raises(OpenContourError) as exc_info:
            pen.endPath()
        assert exc_info.value.gap == pytest.approx(2**0.5)

    def test_move_without_close_rejected(self):
        """Test starting a new path before closing the last one raises."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.lineTo((1, 0))
        with pytest.raises(OpenContourError):
            pen.moveTo((5, 5))

    def test_unclosed_at_end_rejected(self):
        """Test asking for the outline with a path still open raises."""
        pen = ContourSetPen()
        pen.moveTo((0, 0))
        pen.lineTo((1, 0))
        with pytest.raises(MalformedInputError):
            pen.contour_set()

    def test_line_before_move_rejected(self):
        """Test drawing without a current point raises."""
        pen = ContourSetPen()
        with pytest.raises(EmptyPathError):
            pen.lineTo((1, 1))

    def test_lone_move_is_ignored(self):
        """Test an anchor-like moveTo/endPath records nothing."""
        pen = ContourSetPen()
        pen.moveTo((10, 10))
        pen.endPath()
        assert pen.contour_set().is_empty()


class TestDrawContourSet:
    """Tests for draw_contour_set."""

    def test_closing_line_left_to_close_path(self, square: Contour):
        """Test the final line back to the start is not drawn explicitly."""
        pen = RecordingPen()
        draw_contour_set(ContourSet([square]), pen)
        assert pen.value == [
            ("moveTo", ((0.0, 0.0),)),
            ("lineTo", ((1.0, 0.0),)),
            ("lineTo", ((1.0, 1.0),)),
            ("lineTo", ((0.0, 1.0),)),
            ("closePath", ()),
        ]

    def test_draws_cubics(self):
        """Test cubic segments become curveTo calls."""
        contour = Contour(
            segments=(
                Cubic(Point(0, 0), Point(0, 1), Point(1, 1), Point(1, 0)),
                Line(Point(1, 0), Point(0, 0)),
            )
        )
        pen = RecordingPen()
        draw_contour_set(ContourSet([contour]), pen)
        assert pen.value[1] == ("curveTo", ((0, 1), (1, 1), (1, 0)))

    def test_skips_empty_contours(self, square: Contour):
        """Test contours without segments are not drawn."""
        pen = RecordingPen()
        draw_contour_set(ContourSet([Contour(segments=()), square]), pen)
        assert [op for op, _ in pen.value].count("moveTo") == 1

    def test_pen_round_trip(self, square: Contour):
        """Test drawing into ContourSetPen reproduces the outline."""
        pen = ContourSetPen()
        draw_contour_set(ContourSet([square]), pen)
        assert pen.contour_set().contours[0].segments == square.segments
