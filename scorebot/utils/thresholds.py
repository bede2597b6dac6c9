import math
from scorebot.data_models.scoring_config import ThresholdConfig


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


class ThresholdScorer:
    """Converts elapsed challenge times into points for the physical and mental categories"""

    @staticmethod
    def score(time: float, t1: float, t2: float, max_points: float, min_points: float) -> float:
        """
        Calculate points for an elapsed time

        Args:
            time: Elapsed time in minutes
            t1: Time at or below which max_points are awarded
            t2: Time at or above which min_points are awarded
            max_points: Points for the best performance
            min_points: Points floor for slow times

        Returns:
            max_points, min_points, or the linear interpolation between them
            rounded to an integer
        """
        if time <= t1:
            return max_points
        if time >= t2:
            return min_points

        # t1 < time < t2 here, so t2 - t1 > 0
        ratio = (time - t1) / (t2 - t1)
        return round_half_up(max_points - ratio * (max_points - min_points))

    @staticmethod
    def score_with(time: float, config: ThresholdConfig) -> float:
        """Calculate points using a category's threshold configuration"""
        return ThresholdScorer.score(time, config.t1, config.t2, config.max_points, config.min_points)

