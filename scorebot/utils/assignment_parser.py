"""
Organiser assignment parsers

Turn the free-text `game=value` lists typed into slash commands into
per-game extra statuses or per-game times.
"""

from typing import Collection, Dict, Iterable, Iterator, Tuple, TypeVar

from scorebot.data_models.competition import Challenge, ChallengeCategory, ExtraStatus
from scorebot.utils.leaderboard_exceptions import ChallengeNotFoundError
from scorebot.utils.time_parser import parse_time_to_minutes

V = TypeVar('V')


def _split_pairs(text: str, expected: str) -> Iterator[Tuple[str, str]]:
    """Yield stripped (name, value) pairs from "a=x, b=y"."""
    if not text or not text.strip():
        return

    for chunk in text.split(','):
        chunk = chunk.strip()
        if not chunk:
            continue
        if '=' not in chunk:
            raise ValueError(f"Expected {expected}, got '{chunk}'")

        name, value = (part.strip() for part in chunk.split('=', 1))
        if not name:
            raise ValueError(f"Missing game name in '{chunk}'")
        yield name, value


def parse_status_assignments(text: str) -> Dict[str, ExtraStatus]:
    """
    Parse a comma-separated list of `game=status` pairs.

    Args:
        text: e.g. "Quiz=excellent, Relay=not-done"

    Returns:
        Game name to decoded status, in input order. A game named twice
        keeps its last status.

    Raises:
        ValueError: for a pair without '=', an empty game name or an
                    unknown status

    Examples:
        "Quiz=excellent" -> {"Quiz": ExtraStatus.EXCELLENT}
        "Quiz = muy_bien, Relay=regular" -> {"Quiz": EXCELLENT, "Relay": FAIR}
        "" -> {}
    """
    assignments = {}
    for name, raw_status in _split_pairs(text, "game=status"):
        status = ExtraStatus.from_raw(raw_status)
        if status is None:
            allowed = ", ".join(s.value for s in ExtraStatus)
            raise ValueError(f"Unknown status '{raw_status}' for {name} (use {allowed})")
        assignments[name] = status
    return assignments


def parse_game_times(text: str) -> Dict[str, float]:
    """
    Parse a comma-separated list of `game=time` pairs into minutes.

    Times use any format parse_time_to_minutes accepts, so
    "Sprint=4:30, Puzzle=12" gives {"Sprint": 4.5, "Puzzle": 12.0}.
    A game named twice keeps its last time.
    """
    times = {}
    for name, raw_time in _split_pairs(text, "game=time"):
        try:
            times[name] = parse_time_to_minutes(raw_time)
        except ValueError as e:
            raise ValueError(f"Invalid time for {name}: {e}") from e
    return times


def match_games(
    assignments: Dict[str, V],
    challenges: Iterable[Challenge],
    categories: Collection[ChallengeCategory],
) -> Dict[str, V]:
    """
    Re-key name assignments by game id.

    Names match case-insensitively. Raises ChallengeNotFoundError for an
    unknown name and ValueError for a game outside `categories`.
    """
    by_name = {challenge.name.lower(): challenge for challenge in challenges}
    matched = {}
    for name, value in assignments.items():
        challenge = by_name.get(name.strip().lower())
        if challenge is None:
            raise ChallengeNotFoundError(name)
        if challenge.category not in categories:
            allowed = " or ".join(category.value for category in categories)
            raise ValueError(f"**{challenge.name}** is a {challenge.category.value} game, expected {allowed}.")
        matched[challenge.id] = value
    return matched
