"""
Tests for threshold scoring of physical and mental times.
"""

import pytest

from scorebot.data_models.scoring_config import ThresholdConfig
from scorebot.utils.thresholds import ThresholdScorer, round_half_up


# =============================================================================
# Rounding
# =============================================================================

class TestRoundHalfUp:
    """Tests for round_half_up."""

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(64.5) == 65

    def test_negative_halves_round_towards_positive(self):
        assert round_half_up(-2.5) == -2

    def test_regular_values(self):
        assert round_half_up(64.49) == 64
        assert round_half_up(64.51) == 65


# =============================================================================
# ThresholdScorer
# =============================================================================

class TestThresholdScorer:
    """Tests for ThresholdScorer.score."""

    def test_at_t1_gives_max(self):
        assert ThresholdScorer.score(220, 220, 360, 100, 30) == 100

    def test_below_t1_gives_max(self):
        assert ThresholdScorer.score(0, 220, 360, 100, 30) == 100

    def test_at_t2_gives_min(self):
        assert ThresholdScorer.score(360, 220, 360, 100, 30) == 30

    def test_beyond_t2_stays_at_min(self):
        assert ThresholdScorer.score(10_000, 220, 360, 100, 30) == 30

    def test_midpoint_interpolates(self):
        """ratio 0.5 -> 100 - 0.5 * 70 = 65"""
        assert ThresholdScorer.score(290, 220, 360, 100, 30) == 65

    def test_interpolation_rounds_half_up(self):
        # 100 - 0.25 * 90 = 77.5
        assert ThresholdScorer.score(15, 10, 30, 100, 10) == 78

    def test_monotonically_non_increasing(self):
        previous = None
        for time in range(200, 380, 3):
            points = ThresholdScorer.score(time, 220, 360, 100, 30)
            if previous is not None:
                assert points <= previous, f"Score rose at time {time}"
            previous = points

    def test_result_stays_between_min_and_max(self):
        for time in [0, 221, 250, 300, 359.9, 400]:
            assert 30 <= ThresholdScorer.score(time, 220, 360, 100, 30) <= 100

    def test_equal_thresholds_never_divide_by_zero(self):
        assert ThresholdScorer.score(15, 15, 15, 100, 20) == 100
        assert ThresholdScorer.score(15.01, 15, 15, 100, 20) == 20

    def test_score_with_config(self):
        config = ThresholdConfig(t1=15, t2=30, max_points=100, min_points=20)
        assert ThresholdScorer.score_with(22.5, config) == pytest.approx(60)
