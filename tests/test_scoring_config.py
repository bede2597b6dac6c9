"""
Tests for scoring configuration parsing and validation.
"""

import pytest

from scorebot.data_models.competition import ExtraKind, ExtraStatus
from scorebot.data_models.scoring_config import DEFAULT_SCORING_CONFIG, ScoringConfig
from scorebot.utils.leaderboard_exceptions import ScoringConfigError


LEGACY_DOCUMENT = {
    "physical": {"threshold1": 15, "threshold2": 30, "maxPoints": 100, "minPoints": 20},
    "mental": {"threshold1": 10, "threshold2": 25, "maxPoints": 100, "minPoints": 20},
    "extras": {
        "capMin": -20,
        "capMax": 50,
        "points": {
            "opcional": {"muy_bien": 15, "regular": 8, "no_hecho": 0},
            "obligatoria": {"muy_bien": 20, "regular": 10, "no_hecho": -10},
        },
    },
}


# =============================================================================
# Parsing
# =============================================================================

class TestFromDict:

    def test_legacy_field_names(self):
        assert ScoringConfig.from_dict(LEGACY_DOCUMENT) == DEFAULT_SCORING_CONFIG

    def test_canonical_document_round_trip(self):
        assert ScoringConfig.from_dict(DEFAULT_SCORING_CONFIG.to_dict()) == DEFAULT_SCORING_CONFIG

    def test_missing_field_is_rejected(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        del document["extras"]["points"]["mandatory"]["fair"]
        with pytest.raises(ScoringConfigError) as excinfo:
            ScoringConfig.from_dict(document)
        assert excinfo.value.field == "extras.points.mandatory.fair"

    def test_missing_section_is_rejected(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        del document["physical"]
        with pytest.raises(ScoringConfigError) as excinfo:
            ScoringConfig.from_dict(document)
        assert excinfo.value.field == "physical"

    def test_non_numeric_values(self):
        for bad in ("15", True, None, [1]):
            document = DEFAULT_SCORING_CONFIG.to_dict()
            document["physical"]["t1"] = bad
            with pytest.raises(ScoringConfigError):
                ScoringConfig.from_dict(document)

    def test_non_finite_values(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        document["mental"]["max_points"] = float("nan")
        with pytest.raises(ScoringConfigError):
            ScoringConfig.from_dict(document)

    def test_t1_above_t2(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        document["mental"]["t1"] = 30
        with pytest.raises(ScoringConfigError) as excinfo:
            ScoringConfig.from_dict(document)
        assert excinfo.value.field == "mental.t2"

    def test_equal_thresholds_allowed(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        document["physical"]["t1"] = 30
        assert ScoringConfig.from_dict(document).physical.t1 == 30

    def test_cap_min_above_cap_max(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        document["extras"]["cap_min"] = 60
        with pytest.raises(ScoringConfigError) as excinfo:
            ScoringConfig.from_dict(document)
        assert excinfo.value.field == "extras.cap_max"

    def test_negative_threshold(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        document["physical"]["t1"] = -1
        with pytest.raises(ScoringConfigError):
            ScoringConfig.from_dict(document)

    def test_negative_extra_points_allowed(self):
        document = DEFAULT_SCORING_CONFIG.to_dict()
        document["extras"]["points"]["optional"]["not_done"] = -5
        config = ScoringConfig.from_dict(document)
        assert config.extras.points.lookup(ExtraKind.OPTIONAL, ExtraStatus.NOT_DONE) == -5

    def test_not_an_object(self):
        with pytest.raises(ScoringConfigError):
            ScoringConfig.from_dict([1, 2, 3])


class TestMergeWithDefaults:

    def test_partial_document_fills_from_defaults(self):
        config = ScoringConfig.from_dict({"physical": {"t1": 12}}, defaults=DEFAULT_SCORING_CONFIG)
        assert config.physical.t1 == 12
        assert config.physical.t2 == DEFAULT_SCORING_CONFIG.physical.t2
        assert config.mental == DEFAULT_SCORING_CONFIG.mental
        assert config.extras == DEFAULT_SCORING_CONFIG.extras

    def test_empty_document_is_defaults(self):
        assert ScoringConfig.from_dict({}, defaults=DEFAULT_SCORING_CONFIG) == DEFAULT_SCORING_CONFIG

    def test_merged_result_is_still_validated(self):
        with pytest.raises(ScoringConfigError):
            ScoringConfig.from_dict({"physical": {"t1": 45}}, defaults=DEFAULT_SCORING_CONFIG)


# =============================================================================
# Editing
# =============================================================================

class TestWithValue:

    def test_updates_one_field(self):
        config = DEFAULT_SCORING_CONFIG.with_value("extras.points.mandatory.not_done", -15)
        assert config.extras.points.mandatory.not_done == -15
        assert DEFAULT_SCORING_CONFIG.extras.points.mandatory.not_done == -10

    def test_unknown_path(self):
        for path in ("physical.t3", "nothing", "physical", "extras.points.optional.excellent.deep"):
            with pytest.raises(ScoringConfigError):
                DEFAULT_SCORING_CONFIG.with_value(path, 1)

    def test_change_breaking_an_invariant(self):
        with pytest.raises(ScoringConfigError):
            DEFAULT_SCORING_CONFIG.with_value("physical.t2", 5)

    def test_flatten_lists_every_setting(self):
        flat = DEFAULT_SCORING_CONFIG.flatten()
        assert flat["physical.t1"] == 15
        assert flat["extras.cap_min"] == -20
        assert flat["extras.points.optional.fair"] == 8
        assert len(flat) == 8 + 2 + 6
