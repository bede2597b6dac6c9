"""
Tests for the database layer, scoring settings and the leaderboard service.

Each test drives its coroutine with asyncio.run against a fresh SQLite file.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from scorebot.config import Config
from scorebot.data_models.competition import ChallengeCategory, ExtraKind, ExtraStatus
from scorebot.data_models.scoring_config import DEFAULT_SCORING_CONFIG
from scorebot.database.database import Database
from scorebot.services.leaderboard import LeaderboardService
from scorebot.services.scoring_settings import ScoringSettingsService
from scorebot.utils.leaderboard_exceptions import (
    ChallengeNotFoundError, ParticipantNotFoundError, ScoreNotFoundError,
    ScoreValidationError, ScoringConfigError
)


def run_with_db(database_url, scenario):
    """Initialize a database, run scenario(db), always close."""
    async def runner():
        db = Database(database_url)
        await db.initialize()
        try:
            return await scenario(db)
        finally:
            await db.close()

    return asyncio.run(runner())


# =============================================================================
# Database CRUD
# =============================================================================

class TestParticipants:

    def test_add_get_update_delete(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("  Ana ", 2)
            assert participant.name == "Ana"

            fetched = await db.get_participant(participant.id)
            assert fetched.to_domain().id == str(participant.id)

            updated = await db.update_participant(participant.id, year=3, photo_url="http://x/ana.png")
            assert updated.year == 3
            assert updated.photo_url == "http://x/ana.png"

            assert (await db.get_participant_by_name("ANA")).id == participant.id
            assert await db.delete_participant(participant.id) is True
            assert await db.get_participant(participant.id) is None
            assert await db.delete_participant(participant.id) is False

        run_with_db(database_url, scenario)

    def test_year_out_of_range(self, database_url):
        async def scenario(db):
            with pytest.raises(ValueError):
                await db.add_participant("Ana", 4)
            with pytest.raises(ValueError):
                await db.add_participant("", 1)

        run_with_db(database_url, scenario)

    def test_update_missing_participant(self, database_url):
        async def scenario(db):
            with pytest.raises(ParticipantNotFoundError):
                await db.update_participant(999, year=1)
            with pytest.raises(ValueError):
                await db.update_participant(999, nickname="x")

        run_with_db(database_url, scenario)

    def test_delete_removes_scores(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            await db.add_score(participant.id, 20, 12)
            await db.delete_participant(participant.id)
            assert await db.get_all_scores() == []

        run_with_db(database_url, scenario)


class TestGames:

    def test_add_and_convert(self, database_url):
        async def scenario(db):
            game = await db.add_game("Cleanup", "Extra", extra_kind="obligatoria")
            challenge = game.to_domain()
            assert challenge.category is ChallengeCategory.EXTRA
            assert challenge.extra_kind is ExtraKind.MANDATORY
            assert (await db.get_game_by_name("cleanup")).id == game.id

            relay = await db.add_game("Relay", "physical", extra_kind="optional")
            assert relay.extra_kind is None
            assert [g.name for g in await db.get_all_games("extra")] == ["Cleanup"]

        run_with_db(database_url, scenario)

    def test_extra_game_needs_kind(self, database_url):
        async def scenario(db):
            with pytest.raises(ValueError):
                await db.add_game("Poster", "extra")
            with pytest.raises(ValueError):
                await db.add_game("Poster", "cooking")

        run_with_db(database_url, scenario)

    def test_update_and_delete(self, database_url):
        async def scenario(db):
            game = await db.add_game("Quiz", "mental")
            updated = await db.update_game(game.id, category="extra", extra_kind="optional")
            assert updated.category == "extra"
            assert updated.extra_kind == "optional"

            with pytest.raises(ChallengeNotFoundError):
                await db.update_game(999, name="x")
            assert await db.delete_game(game.id) is True
            assert await db.get_game(game.id) is None

        run_with_db(database_url, scenario)


class TestScores:

    def test_newest_first_and_utc(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            base = datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
            await db.add_score(participant.id, 20, 12, recorded_at=base)
            await db.add_score(participant.id, 18, 11, recorded_at=base + timedelta(days=1))

            scores = await db.get_all_scores()
            records = [score.to_domain() for score in scores]
            assert [record.physical_time for record in records] == [18, 20]
            assert records[0].recorded_at == base + timedelta(days=1)
            assert records[0].recorded_at.tzinfo is not None

        run_with_db(database_url, scenario)

    def test_recorded_at_defaults_to_now(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            before = datetime.now(timezone.utc) - timedelta(seconds=5)
            score = await db.add_score(participant.id, 20, 12)
            assert score.to_domain().recorded_at >= before

        run_with_db(database_url, scenario)

    def test_statuses_are_normalized(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            score = await db.add_score(participant.id, 20, 12, extra_statuses={7: "muy_bien", "8": ExtraStatus.NOT_DONE})
            assert score.extra_statuses == {"7": "excellent", "8": "not-done"}
            assert score.to_domain().extra_statuses == {"7": ExtraStatus.EXCELLENT, "8": ExtraStatus.NOT_DONE}

        run_with_db(database_url, scenario)

    def test_validation(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            with pytest.raises(ScoreValidationError):
                await db.add_score(participant.id, -1, 12)
            with pytest.raises(ScoreValidationError):
                await db.add_score(participant.id, 10, 12, extra_statuses={"1": "great"})
            with pytest.raises(ParticipantNotFoundError):
                await db.add_score(999, 10, 12)

        run_with_db(database_url, scenario)

    def test_update_and_delete(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            score = await db.add_score(participant.id, 20, 12)
            updated = await db.update_score(score.id, mental_time=9.5)
            assert updated.mental_time == 9.5
            with pytest.raises(ScoreNotFoundError):
                await db.update_score(999, mental_time=1)
            assert await db.delete_score(score.id) is True
            assert await db.get_score(score.id) is None

        run_with_db(database_url, scenario)


class TestSettings:

    def test_defaults_seeded_on_initialize(self, database_url):
        async def scenario(db):
            return await db.get_setting(Config.SCORING_SETTINGS_KEY)

        assert run_with_db(database_url, scenario) == DEFAULT_SCORING_CONFIG.to_dict()

    def test_round_trip(self, database_url):
        async def scenario(db):
            await db.set_setting("motd", {"text": "hola"})
            await db.set_setting("motd", {"text": "adios"})
            return await db.get_setting("motd")

        assert run_with_db(database_url, scenario) == {"text": "adios"}


# =============================================================================
# ScoringSettingsService
# =============================================================================

class TestScoringSettingsService:

    def test_get_before_load_is_default(self, database_url):
        async def scenario(db):
            return ScoringSettingsService(db.session_factory).get()

        assert run_with_db(database_url, scenario) == DEFAULT_SCORING_CONFIG

    def test_partial_document_merges_with_defaults(self, database_url):
        async def scenario(db):
            await db.set_setting(Config.SCORING_SETTINGS_KEY, {"physical": {"threshold1": 12}})
            service = ScoringSettingsService(db.session_factory)
            return await service.load()

        config = run_with_db(database_url, scenario)
        assert config.physical.t1 == 12
        assert config.physical.t2 == DEFAULT_SCORING_CONFIG.physical.t2
        assert config.extras == DEFAULT_SCORING_CONFIG.extras

    def test_unusable_document_falls_back_to_defaults(self, database_url):
        async def scenario(db):
            await db.set_setting(Config.SCORING_SETTINGS_KEY, {"physical": {"t1": 50}})
            return await ScoringSettingsService(db.session_factory).load()

        assert run_with_db(database_url, scenario) == DEFAULT_SCORING_CONFIG

    def test_set_value_persists(self, database_url):
        async def scenario(db):
            service = ScoringSettingsService(db.session_factory)
            await service.load()
            await service.set_value("mental.t1", 8, user_id=1)
            reloaded = await ScoringSettingsService(db.session_factory).load()
            return service.get(), reloaded

        current, reloaded = run_with_db(database_url, scenario)
        assert current.mental.t1 == 8
        assert reloaded == current

    def test_invalid_update_keeps_previous_rules(self, database_url):
        async def scenario(db):
            service = ScoringSettingsService(db.session_factory)
            await service.load()
            with pytest.raises(ScoringConfigError):
                await service.set_value("extras.cap_min", 100)
            with pytest.raises(ScoringConfigError):
                await service.update({"physical": {"t1": 1}})
            return service.get()

        assert run_with_db(database_url, scenario) == DEFAULT_SCORING_CONFIG

    def test_reset(self, database_url):
        async def scenario(db):
            service = ScoringSettingsService(db.session_factory)
            await service.set_value("physical.t1", 5)
            await service.reset()
            return await ScoringSettingsService(db.session_factory).load()

        assert run_with_db(database_url, scenario) == DEFAULT_SCORING_CONFIG


# =============================================================================
# LeaderboardService
# =============================================================================

async def _seed_competition(db):
    ana = await db.add_participant("Ana", 1)
    bruno = await db.add_participant("Bruno", 2)
    carla = await db.add_participant("Carla", 3)
    cleanup = await db.add_game("Cleanup", "extra", extra_kind="mandatory")
    photo = await db.add_game("Photo", "extra", extra_kind="optional")

    base = datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    # Defaults: physical 15/30/100/20, mental 10/25/100/20
    await db.add_score(ana.id, 40, 40, recorded_at=base)
    await db.add_score(ana.id, 15, 10, extra_statuses={cleanup.id: "excellent", photo.id: "fair"},
                       recorded_at=base + timedelta(hours=1))
    await db.add_score(bruno.id, 22.5, 17.5, extra_statuses={cleanup.id: "not-done"}, recorded_at=base)
    return ana, bruno, carla


class TestLeaderboardService:

    def _service(self, db):
        return LeaderboardService(db.session_factory, ScoringSettingsService(db.session_factory))

    def test_get_leaderboard(self, database_url):
        async def scenario(db):
            await _seed_competition(db)
            return await self._service(db).get_leaderboard()

        entries = run_with_db(database_url, scenario)
        assert [(entry.name, entry.rank, entry.total_score) for entry in entries] == [
            ("Ana", 1, 228),
            ("Bruno", 2, 110),
            ("Carla", 3, 0),
        ]

    def test_get_page_sorting_keeps_ranks(self, database_url):
        async def scenario(db):
            await _seed_competition(db)
            service = self._service(db)
            first = await service.get_page(page=1, page_size=2, sort_by="name", descending=True)
            second = await service.get_page(page=2, page_size=2, sort_by="name", descending=True)
            return first, second

        first, second = run_with_db(database_url, scenario)
        assert first.total_pages == 2
        assert first.total_participants == 3
        assert [(entry.name, entry.rank) for entry in first.entries] == [("Carla", 3), ("Bruno", 2)]
        assert [(entry.name, entry.rank) for entry in second.entries] == [("Ana", 1)]

    def test_get_page_validation(self, database_url):
        async def scenario(db):
            service = self._service(db)
            for kwargs in ({"page": 0}, {"page_size": 51}, {"sort_by": "elo"}):
                with pytest.raises(ValueError):
                    await service.get_page(**kwargs)
            return await service.get_page()

        empty = run_with_db(database_url, scenario)
        assert empty.entries == []
        assert empty.total_pages == 1

    def test_participant_entry_and_trend(self, database_url):
        async def scenario(db):
            ana, _, _ = await _seed_competition(db)
            service = self._service(db)
            entry = await service.get_participant_entry(ana.id)
            trend = await service.get_participant_trend(ana.id)
            with pytest.raises(ParticipantNotFoundError):
                await service.get_participant_entry(999)
            return entry, trend

        entry, trend = run_with_db(database_url, scenario)
        assert entry.rank == 1
        assert entry.extra_score_final == 28
        assert [point.total_score for point in trend] == [40, 228]

    def test_statistics(self, database_url):
        async def scenario(db):
            await _seed_competition(db)
            return await self._service(db).get_statistics(top_limit=2)

        statistics = run_with_db(database_url, scenario)
        assert statistics.summary.scored_participants == 2
        assert statistics.summary.max_total == 228
        assert statistics.top["extras"] == [("Ana", 28), ("Carla", 0)]

    def test_deleted_game_stops_scoring(self, database_url):
        async def scenario(db):
            await _seed_competition(db)
            cleanup = await db.get_game_by_name("Cleanup")
            await db.delete_game(cleanup.id)
            return await self._service(db).get_participant_entry((await db.get_participant_by_name("Bruno")).id)

        bruno = run_with_db(database_url, scenario)
        assert bruno.extra_score_final == 0
        assert bruno.total_score == 120

    def test_same_timestamp_latest_submission_counts(self, database_url):
        async def scenario(db):
            participant = await db.add_participant("Ana", 1)
            at = datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
            await db.add_score(participant.id, 40, 40, recorded_at=at)
            second = await db.add_score(participant.id, 15, 10, recorded_at=at)

            newest = (await db.get_all_scores(participant.id))[0]
            entry = await self._service(db).get_participant_entry(participant.id)
            return second.id, newest.id, entry

        second_id, newest_id, entry = run_with_db(database_url, scenario)
        assert newest_id == second_id
        assert entry.score_id == str(second_id)
        assert entry.total_score == 200

    def test_correcting_and_deleting_latest_score(self, database_url):
        async def scenario(db):
            ana, _, _ = await _seed_competition(db)
            service = self._service(db)
            latest = (await db.get_all_scores(ana.id))[0]

            await db.update_score(latest.id, physical_time=40, game_times={"1": 4.5})
            corrected = await service.get_participant_entry(ana.id)

            await db.delete_score(latest.id)
            previous = await service.get_participant_entry(ana.id)
            return corrected, previous

        corrected, previous = run_with_db(database_url, scenario)
        assert corrected.physical_score == 20
        assert corrected.game_times == {"1": 4.5}
        assert corrected.total_score == 148
        assert previous.total_score == 40
