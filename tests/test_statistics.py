"""
Tests for leaderboard statistics.
"""

import pytest

from conftest import make_record
from scorebot.data_models.competition import ExtraStatus, Participant
from scorebot.utils.leaderboard_builder import LeaderboardBuilder
from scorebot.utils.statistics import category_distribution, participant_trend, summarize, top_by_category


@pytest.fixture
def entries(participants, challenges, example_config):
    records = [
        make_record("s1", "p1", physical=220, mental=10, statuses={"o1": ExtraStatus.EXCELLENT}),
        make_record("s2", "p2", physical=290, mental=25),
    ]
    # p1: 100 + 100 + 15, p2: 65 + 20 + 0, p3: no records
    return LeaderboardBuilder.build(participants, records, challenges, example_config)


class TestSummary:

    def test_summarize(self, entries):
        summary = summarize(entries)
        assert summary.total_participants == 3
        assert summary.scored_participants == 2
        assert summary.avg_physical == pytest.approx(55)
        assert summary.avg_mental == pytest.approx(40)
        assert summary.avg_extra == pytest.approx(5)
        assert summary.max_total == 215

    def test_summarize_empty(self):
        summary = summarize([])
        assert summary.total_participants == 0
        assert summary.max_total == 0

    def test_distribution(self, entries):
        assert category_distribution(entries) == {"physical": 165, "mental": 120, "extras": 15}


class TestTopByCategory:

    def test_orders_by_points(self, entries):
        assert top_by_category(entries, "physical") == [("Ana", 100), ("bruno", 65), ("Carla", 0)]

    def test_limit(self, entries):
        assert top_by_category(entries, "total", limit=1) == [("Ana", 215)]

    def test_unknown_category(self, entries):
        with pytest.raises(ValueError):
            top_by_category(entries, "speed")


class TestParticipantTrend:

    def test_one_point_per_record_oldest_first(self, challenges, example_config):
        participant = Participant(id="p1", name="Ana", year=1)
        records = [
            make_record("late", "p1", physical=220, mental=10, recorded_at="2024-05-03T10:00:00Z"),
            make_record("early", "p1", physical=360, mental=25, recorded_at="2024-05-01T10:00:00Z"),
            make_record("other", "p2", physical=220, mental=10, recorded_at="2024-05-02T10:00:00Z"),
        ]
        trend = participant_trend(participant, records, challenges, example_config)
        assert [point.score_id for point in trend] == ["early", "late"]
        assert [point.total_score for point in trend] == [50, 200]

    def test_uses_current_rules(self, challenges, example_config):
        participant = Participant(id="p1", name="Ana", year=1)
        records = [make_record("s1", "p1", physical=290, mental=10)]
        stricter = example_config.with_value("physical.t2", 290)
        assert participant_trend(participant, records, challenges, stricter)[0].total_score == 30 + 100
