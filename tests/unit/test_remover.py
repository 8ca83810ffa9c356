"""Tests for the OverlapRemover entry point."""

from unittest.mock import patch

import pytest

from deoverlap.config import DeoverlapSettings, OverlapConfig, OverlapMode, OverlapScope
from deoverlap.core.remover import OverlapRemover, remove_overlap
from deoverlap.domain import Contour, ContourSet, Line, Point
from deoverlap.exceptions import OpenContourError


def square(x0: float, y0: float, x1: float, y1: float, selected: bool = False) -> Contour:
    return Contour.from_points([(x0, y0), (x1, y0), (x1, y1), (x0, y1)], selected=selected)


class TestValidate:
    """Tests for OverlapRemover.validate."""

    def test_closed_contours_pass(self):
        """Test closed contours validate silently."""
        OverlapRemover().validate(ContourSet([square(0, 0, 1, 1), Contour(segments=())]))

    def test_gap_reported(self):
        """Test the open contour and its gap are named."""
        open_contour = Contour(
            segments=(
                Line(Point(0, 0), Point(1, 0)),
                Line(Point(1, 0), Point(1, 1)),
                Line(Point(1, 1), Point(0, 0.5)),
            )
        )
        with pytest.raises(OpenContourError) as exc_info:
            OverlapRemover().validate(ContourSet([open_contour]))
        assert exc_info.value.contour_index == 0
        assert exc_info.value.gap == pytest.approx(0.5)

    def test_gap_within_tolerance(self):
        """Test gaps below the position tolerance are accepted."""
        nearly = Contour(
            segments=(
                Line(Point(0, 0), Point(1, 0)),
                Line(Point(1, 0), Point(1, 1)),
                Line(Point(1, 1), Point(0, 1e-6)),
            )
        )
        OverlapRemover().validate(ContourSet([nearly]))


class TestRemove:
    """Tests for OverlapRemover.remove."""

    def test_warning_indices_refer_to_input(self):
        """Test warnings name input contours, not the subset taking part."""
        settings = DeoverlapSettings(overlap=OverlapConfig(scope=OverlapScope.SELECTED))
        outline = ContourSet(
            [
                square(0, 0, 1, 1),
                square(2, 0, 3, 1, selected=True),
                Contour.from_points([(5, 5), (6, 5), (7, 5)], selected=True),
            ]
        )
        result = OverlapRemover(settings).remove(outline)

        assert result.dropped_contours == [2]
        assert [w.contour_index for w in result.warnings] == [2]
        assert len(result.contours) == 2

    def test_nothing_selected(self):
        """Test an empty selection passes everything through."""
        settings = DeoverlapSettings(overlap=OverlapConfig(scope=OverlapScope.SELECTED))
        outline = ContourSet([square(0, 0, 1, 1), square(0.5, 0.5, 1.5, 1.5)])
        result = OverlapRemover(settings).remove(outline)
        assert result.contours.contours == outline.contours
        assert result.intersection_count == 0

    def test_exclude_uses_every_contour(self):
        """Test exclude ignores the scope and cuts with the selection."""
        settings = DeoverlapSettings(
            overlap=OverlapConfig(mode=OverlapMode.EXCLUDE, scope=OverlapScope.SELECTED)
        )
        outline = ContourSet([square(0, 0, 2, 2), square(1, -1, 3, 3, selected=True)])
        result = OverlapRemover(settings).remove(outline)
        assert len(result.contours) == 1
        assert result.contours.area() == pytest.approx(2.0)

    def test_validation_runs_first(self):
        """Test malformed input never reaches the pipeline."""
        open_contour = Contour(segments=(Line(Point(0, 0), Point(1, 0)),))
        with patch("deoverlap.core.remover.decompose") as mock_decompose:
            with pytest.raises(OpenContourError):
                OverlapRemover().remove(ContourSet([open_contour]))
            mock_decompose.assert_not_called()


class TestRemoveOverlap:
    """Tests for the remove_overlap convenience function."""

    def test_overrides_do_not_touch_config(self):
        """Test keyword overrides leave the caller's settings alone."""
        settings = DeoverlapSettings()
        outline = ContourSet([square(0, 0, 1, 1), square(0.5, 0.5, 1.5, 1.5)])
        result = remove_overlap(outline, config=settings, mode=OverlapMode.INTERSECT)

        assert result.contours.area() == pytest.approx(0.25)
        assert settings.overlap.mode is OverlapMode.REMOVE
