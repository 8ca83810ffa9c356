"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from deoverlap.config import (
    DeoverlapSettings,
    FillRule,
    GeometryConfig,
    OverlapConfig,
    OverlapMode,
    SweepAxis,
    get_default_settings,
)
from deoverlap.domain import WindingDirection


class TestFillRule:
    """Tests for FillRule.is_filled."""

    @pytest.mark.parametrize("winding, filled", [(0, False), (1, True), (-1, True), (2, True)])
    def test_nonzero(self, winding: int, filled: bool):
        """Test nonzero fills everything but zero."""
        assert FillRule.NONZERO.is_filled(winding) is filled

    @pytest.mark.parametrize("winding, filled", [(0, False), (1, True), (-1, True), (2, False), (-3, True)])
    def test_even_odd(self, winding: int, filled: bool):
        """Test even-odd fills odd windings of either sign."""
        assert FillRule.EVEN_ODD.is_filled(winding) is filled


class TestGeometryConfig:
    """Tests for GeometryConfig."""

    def test_defaults(self):
        """Test the default tolerances."""
        config = GeometryConfig()
        assert config.position_tolerance == 1e-4
        assert config.max_ray_retries == 8

    def test_tolerance_must_be_positive(self):
        """Test a zero position tolerance is rejected."""
        with pytest.raises(ValidationError):
            GeometryConfig(position_tolerance=0.0)

    def test_retry_limit_bounds(self):
        """Test the ray retry limit is bounded."""
        with pytest.raises(ValidationError):
            GeometryConfig(max_ray_retries=0)

    def test_for_upm(self):
        """Test tolerances scale with the units per em."""
        config = GeometryConfig().for_upm(2048)
        assert config.position_tolerance == pytest.approx(1e-4 * 2.048)
        assert config.angle_tolerance == GeometryConfig().angle_tolerance


class TestSettings:
    """Tests for DeoverlapSettings."""

    def test_default_overlap_options(self):
        """Test the defaults describe a plain nonzero union."""
        overlap = get_default_settings().overlap
        assert overlap.mode is OverlapMode.REMOVE
        assert overlap.fill_rule is FillRule.NONZERO
        assert overlap.outer_direction is WindingDirection.CLOCKWISE
        assert overlap.sweep_axis is SweepAxis.Y
        assert overlap.clean_backtracks
        assert overlap.rejoin_segments

    def test_enum_values_accepted(self):
        """Test options can be given by their string values."""
        overlap = OverlapConfig(mode="exclude", fill_rule="even_odd", sweep_axis="x")
        assert overlap.mode is OverlapMode.EXCLUDE
        assert overlap.fill_rule is FillRule.EVEN_ODD
        assert overlap.sweep_axis is SweepAxis.X

    def test_dump_and_restore(self):
        """Test settings survive the dictionary form used between processes."""
        settings = DeoverlapSettings(overlap=OverlapConfig(mode=OverlapMode.INTERSECT))
        restored = DeoverlapSettings(**settings.model_dump())
        assert restored == settings
