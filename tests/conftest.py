"""
Shared fixtures for the scoreboard tests.
"""

from datetime import datetime, timezone

import pytest

from scorebot.data_models.competition import (
    Challenge, ChallengeCategory, ExtraKind, ExtraStatus, Participant, ScoreRecord
)
from scorebot.data_models.scoring_config import (
    ExtraPointValues, ExtraPointsTable, ExtraScoringConfig, ScoringConfig, ThresholdConfig
)


def make_record(record_id, participant_id, physical=0.0, mental=0.0,
                recorded_at="2024-05-01T10:00:00Z", statuses=None, game_times=None):
    return ScoreRecord(
        id=record_id,
        participant_id=participant_id,
        physical_time=physical,
        mental_time=mental,
        recorded_at=recorded_at,
        extra_statuses=statuses or {},
        game_times=game_times or {},
    )


@pytest.fixture
def example_config():
    """Rules from the worked example: physical 220/360/100/30, extras capped -10..30."""
    return ScoringConfig(
        physical=ThresholdConfig(t1=220, t2=360, max_points=100, min_points=30),
        mental=ThresholdConfig(t1=10, t2=25, max_points=100, min_points=20),
        extras=ExtraScoringConfig(
            cap_min=-10,
            cap_max=30,
            points=ExtraPointsTable(
                optional=ExtraPointValues(excellent=15, fair=8, not_done=0),
                mandatory=ExtraPointValues(excellent=20, fair=10, not_done=-10),
            ),
        ),
    )


@pytest.fixture
def participants():
    return [
        Participant(id="p1", name="Ana", year=1),
        Participant(id="p2", name="bruno", year=2),
        Participant(id="p3", name="Carla", year=3),
    ]


@pytest.fixture
def challenges():
    return [
        Challenge(id="run", name="Relay", category=ChallengeCategory.PHYSICAL),
        Challenge(id="quiz", name="Quiz", category=ChallengeCategory.MENTAL),
        Challenge(id="m1", name="Cleanup", category=ChallengeCategory.EXTRA, extra_kind=ExtraKind.MANDATORY),
        Challenge(id="m2", name="Poster", category=ChallengeCategory.EXTRA, extra_kind=ExtraKind.MANDATORY),
        Challenge(id="m3", name="Report", category=ChallengeCategory.EXTRA, extra_kind=ExtraKind.MANDATORY),
        Challenge(id="o1", name="Photo", category=ChallengeCategory.EXTRA, extra_kind=ExtraKind.OPTIONAL),
    ]


@pytest.fixture
def all_not_done():
    return {"m1": ExtraStatus.NOT_DONE, "m2": ExtraStatus.NOT_DONE, "m3": ExtraStatus.NOT_DONE}


@pytest.fixture
def utc():
    return lambda *args: datetime(*args, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep log files out of the working tree."""
    from scorebot.config import Config
    monkeypatch.setattr(Config, "LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'competition.db'}"
