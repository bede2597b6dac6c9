"""
Scoring configuration models

The scoring rules are runtime data: the threshold quadruples for the physical
and mental categories and the capped point table for extra games. A config is
validated once, when it is accepted (`ScoringConfig.from_dict`); the scorers
trust what they receive.

Stored documents may use either the snake_case field names emitted by
`to_dict()` or the camelCase/Spanish names of the legacy settings document
(`threshold1`, `maxPoints`, `capMin`, `obligatoria`, `no_hecho`, ...).
"""

import copy
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from scorebot.data_models.competition import ExtraKind, ExtraStatus
from scorebot.utils.leaderboard_exceptions import ScoringConfigError


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Two-point time → points mapping.

    Attributes:
        t1: Time (minutes) at or below which max_points are awarded.
        t2: Time (minutes) at or above which min_points are awarded.
        max_points: Points for the fastest times.
        min_points: Points for the slowest scored times.
    """
    t1: float
    t2: float
    max_points: float
    min_points: float


@dataclass(frozen=True)
class ExtraPointValues:
    """Points per status for one kind of extra game."""
    excellent: float
    fair: float
    not_done: float

    def for_status(self, status: ExtraStatus) -> float:
        if status is ExtraStatus.EXCELLENT:
            return self.excellent
        if status is ExtraStatus.FAIR:
            return self.fair
        if status is ExtraStatus.NOT_DONE:
            return self.not_done
        raise ValueError(f"Unhandled extra status: {status!r}")


@dataclass(frozen=True)
class ExtraPointsTable:
    """{optional, mandatory} × {excellent, fair, not-done} → points."""
    optional: ExtraPointValues
    mandatory: ExtraPointValues

    def lookup(self, kind: ExtraKind, status: ExtraStatus) -> float:
        if kind is ExtraKind.OPTIONAL:
            return self.optional.for_status(status)
        if kind is ExtraKind.MANDATORY:
            return self.mandatory.for_status(status)
        raise ValueError(f"Unhandled extra kind: {kind!r}")


@dataclass(frozen=True)
class ExtraScoringConfig:
    """Point table plus the [cap_min, cap_max] range applied to the summed extras."""
    cap_min: float
    cap_max: float
    points: ExtraPointsTable


# Accepted spellings per canonical field, first one is canonical
_THRESHOLD_FIELDS = {
    't1': ('t1', 'threshold1'),
    't2': ('t2', 'threshold2'),
    'max_points': ('max_points', 'maxPoints'),
    'min_points': ('min_points', 'minPoints'),
}
_KIND_FIELDS = {
    'optional': ('optional', 'opcional'),
    'mandatory': ('mandatory', 'obligatoria'),
}
_STATUS_FIELDS = {
    'excellent': ('excellent', 'muy_bien'),
    'fair': ('fair', 'regular'),
    'not_done': ('not_done', 'not-done', 'no_hecho'),
}
_CAP_FIELDS = {
    'cap_min': ('cap_min', 'capMin'),
    'cap_max': ('cap_max', 'capMax'),
}

_MISSING = object()


def _lookup(data: Optional[Mapping], names: Sequence[str]):
    if not isinstance(data, Mapping):
        return _MISSING
    for name in names:
        if name in data:
            return data[name]
    return _MISSING


def _section(data: Optional[Mapping], names: Sequence[str], path: str, required: bool):
    value = _lookup(data, names)
    if value is _MISSING or value is None:
        if required:
            raise ScoringConfigError(path, "is required")
        return None
    if not isinstance(value, Mapping):
        raise ScoringConfigError(path, "must be an object")
    return value


def _number(data: Optional[Mapping], names: Sequence[str], path: str, default=_MISSING) -> float:
    value = _lookup(data, names)
    if value is _MISSING or value is None:
        if default is _MISSING:
            raise ScoringConfigError(path, "is required")
        return default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScoringConfigError(path, "must be a number")
    if math.isnan(value) or math.isinf(value):
        raise ScoringConfigError(path, "must be a finite number")
    return value


@dataclass(frozen=True)
class ScoringConfig:
    """Complete, validated scoring rules."""
    physical: ThresholdConfig
    mental: ThresholdConfig
    extras: ExtraScoringConfig

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], defaults: Optional["ScoringConfig"] = None) -> "ScoringConfig":
        """
        Build and validate a config from a plain document.

        Args:
            data: Settings document (e.g. decoded JSON).
            defaults: When given, any missing field is taken from it
                      field-by-field; otherwise missing fields are errors.

        Raises:
            ScoringConfigError: missing or non-numeric fields, t1 > t2,
                                cap_min > cap_max, negative thresholds.
        """
        if not isinstance(data, Mapping):
            raise ScoringConfigError("<root>", "must be an object")

        physical = cls._parse_threshold(data, 'physical', defaults.physical if defaults else None)
        mental = cls._parse_threshold(data, 'mental', defaults.mental if defaults else None)
        extras = cls._parse_extras(data, defaults.extras if defaults else None)
        return cls(physical=physical, mental=mental, extras=extras)

    @staticmethod
    def _parse_threshold(data: Mapping, name: str, default: Optional[ThresholdConfig]) -> ThresholdConfig:
        section = _section(data, (name,), name, required=default is None)
        values = {}
        for field_name, aliases in _THRESHOLD_FIELDS.items():
            fallback = getattr(default, field_name) if default else _MISSING
            values[field_name] = _number(section, aliases, f"{name}.{field_name}", fallback)

        # Same non-negative bounds the settings form enforced
        for field_name, value in values.items():
            if value < 0:
                raise ScoringConfigError(f"{name}.{field_name}", "must not be negative")
        if values['t1'] > values['t2']:
            raise ScoringConfigError(f"{name}.t2", "must be greater than or equal to t1")
        return ThresholdConfig(**values)

    @staticmethod
    def _parse_extras(data: Mapping, default: Optional[ExtraScoringConfig]) -> ExtraScoringConfig:
        section = _section(data, ('extras',), 'extras', required=default is None)
        caps = {}
        for field_name, aliases in _CAP_FIELDS.items():
            fallback = getattr(default, field_name) if default else _MISSING
            caps[field_name] = _number(section, aliases, f"extras.{field_name}", fallback)
        if caps['cap_min'] > caps['cap_max']:
            raise ScoringConfigError("extras.cap_max", "must be greater than or equal to cap_min")

        points_section = _section(section, ('points',), 'extras.points', required=default is None)
        kinds = {}
        for kind_name, kind_aliases in _KIND_FIELDS.items():
            kind_default = getattr(default.points, kind_name) if default else None
            kind_section = _section(
                points_section, kind_aliases, f"extras.points.{kind_name}", required=kind_default is None
            )
            statuses = {}
            for status_name, status_aliases in _STATUS_FIELDS.items():
                fallback = getattr(kind_default, status_name) if kind_default else _MISSING
                statuses[status_name] = _number(
                    kind_section, status_aliases, f"extras.points.{kind_name}.{status_name}", fallback
                )
            kinds[kind_name] = ExtraPointValues(**statuses)

        return ExtraScoringConfig(points=ExtraPointsTable(**kinds), **caps)

    def to_dict(self) -> Dict[str, Any]:
        """Canonical snake_case document; `from_dict(to_dict())` reproduces the config."""
        def threshold(t: ThresholdConfig) -> Dict[str, float]:
            return {'t1': t.t1, 't2': t.t2, 'max_points': t.max_points, 'min_points': t.min_points}

        def values(v: ExtraPointValues) -> Dict[str, float]:
            return {'excellent': v.excellent, 'fair': v.fair, 'not_done': v.not_done}

        return {
            'physical': threshold(self.physical),
            'mental': threshold(self.mental),
            'extras': {
                'cap_min': self.extras.cap_min,
                'cap_max': self.extras.cap_max,
                'points': {
                    'optional': values(self.extras.points.optional),
                    'mandatory': values(self.extras.points.mandatory),
                },
            },
        }

    def with_value(self, path: str, value: Any) -> "ScoringConfig":
        """
        Return a new config with one dotted field replaced (e.g. 'physical.t1').

        The result is validated as a whole, so a change that breaks an
        invariant (t1 > t2, cap_min > cap_max) is rejected.
        """
        document = copy.deepcopy(self.to_dict())
        parts = path.split('.')
        node = document
        for part in parts[:-1]:
            if not isinstance(node, dict) or not isinstance(node.get(part), dict):
                raise ScoringConfigError(path, "is not a recognized setting")
            node = node[part]
        leaf = parts[-1]
        if leaf not in node or isinstance(node[leaf], dict):
            raise ScoringConfigError(path, "is not a recognized setting")
        node[leaf] = value
        return ScoringConfig.from_dict(document)

    def flatten(self) -> Dict[str, float]:
        """All settings as dotted paths, for listing."""
        flat = {}

        def walk(prefix: str, node: Mapping):
            for key, value in node.items():
                path = f"{prefix}.{key}" if prefix else key
                if isinstance(value, Mapping):
                    walk(path, value)
                else:
                    flat[path] = value

        walk("", self.to_dict())
        return flat


DEFAULT_SCORING_CONFIG = ScoringConfig(
    physical=ThresholdConfig(t1=15, t2=30, max_points=100, min_points=20),
    mental=ThresholdConfig(t1=10, t2=25, max_points=100, min_points=20),
    extras=ExtraScoringConfig(
        cap_min=-20,
        cap_max=50,
        points=ExtraPointsTable(
            optional=ExtraPointValues(excellent=15, fair=8, not_done=0),
            mandatory=ExtraPointValues(excellent=20, fair=10, not_done=-10),
        ),
    ),
)
"""Rules used when no scoring document has been stored yet."""
