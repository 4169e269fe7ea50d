"""
Score extraction.

Derives period-scoped scores and per-player counts from a MatchResult.
All functions are pure; missing or inconsistent data raises
InvalidMatchDataError instead of being defaulted or clamped.
"""

import re
import unicodedata
from typing import Iterable, Optional

from src.constants import CardColor, PeriodScope
from src.settlement.errors import InvalidMatchDataError
from src.settlement.models import MatchResult


def extract(match_result: MatchResult, period_scope: PeriodScope) -> tuple[int, int]:
    """
    Return (home, away) goals for a period of the match.

    Args:
        match_result: Finished match snapshot
        period_scope: FULL_TIME, FIRST_HALF or SECOND_HALF

    Returns:
        Tuple of (home_score, away_score)

    Raises:
        InvalidMatchDataError: If half-time data is missing for a half-scoped
            request, or if half-time exceeds full-time for either side.
    """
    if period_scope == PeriodScope.FULL_TIME:
        return match_result.ft_home, match_result.ft_away

    if not match_result.has_half_time:
        raise InvalidMatchDataError(
            f"Half-time score required for {period_scope.value} market",
            field="half_time",
        )

    second_home = match_result.ft_home - match_result.ht_home
    second_away = match_result.ft_away - match_result.ht_away
    if second_home < 0 or second_away < 0:
        raise InvalidMatchDataError(
            f"Half-time score {match_result.ht_home}-{match_result.ht_away} exceeds "
            f"full-time score {match_result.ft_home}-{match_result.ft_away}",
            field="half_time",
        )

    if period_scope == PeriodScope.FIRST_HALF:
        return match_result.ht_home, match_result.ht_away
    return second_home, second_away


def goals_in_window(
    match_result: MatchResult,
    start_minute: int,
    end_minute: int,
) -> tuple[int, int]:
    """
    Count (home, away) goals scored between two minutes, both inclusive.

    Raises:
        InvalidMatchDataError: If the match had goals but no goal events.
    """
    _require_goal_events(match_result)

    home = away = 0
    for goal in match_result.goals:
        if start_minute <= goal.minute <= end_minute:
            if goal.is_home:
                home += 1
            else:
                away += 1
    return home, away


def corners(match_result: MatchResult) -> tuple[int, int]:
    """Return (home, away) corner counts."""
    if match_result.corners_home is None or match_result.corners_away is None:
        raise InvalidMatchDataError("Corner counts missing", field="corners")
    return match_result.corners_home, match_result.corners_away


def player_goals(match_result: MatchResult, player: str) -> int:
    """Goals scored by a player, own goals excluded."""
    _require_goal_events(match_result)
    name = resolve_player_name((goal.player for goal in match_result.goals), player)
    if name is None:
        return 0
    return sum(
        1
        for goal in match_result.goals
        if not goal.own_goal and normalize_name(goal.player) == name
    )


def player_cards(match_result: MatchResult, player: str) -> tuple[int, int]:
    """Return (yellow, red) cards shown to a player."""
    name = resolve_player_name((card.player for card in match_result.cards), player)
    yellow = red = 0
    if name is None:
        return yellow, red
    for card in match_result.cards:
        if normalize_name(card.player) != name:
            continue
        if card.card == CardColor.RED:
            red += 1
        else:
            yellow += 1
    return yellow, red


def player_shots_on_target(match_result: MatchResult, player: str) -> int:
    """Shots on target recorded for a player."""
    stats = match_result.player_shots_on_target
    name = resolve_player_name(stats, player)
    for recorded, count in stats.items():
        if name is not None and normalize_name(recorded) == name:
            return count
    raise InvalidMatchDataError(
        f"No shots-on-target statistic for player {player!r}",
        field="player_shots_on_target",
    )


# =============================================================================
# Name Matching
# =============================================================================

def normalize_name(name: Optional[str]) -> str:
    """Lower-case, strip accents and collapse punctuation/whitespace."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    cleaned = re.sub(r"[^a-z0-9\s]", " ", stripped.lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def contains_words(text: str, phrase: str) -> bool:
    """True if normalized ``phrase`` occurs in ``text`` as whole words."""
    if not text or not phrase:
        return False
    return f" {phrase} " in f" {text} "


def resolve_player_name(recorded: Iterable[Optional[str]], player: str) -> Optional[str]:
    """
    Pick the single recorded name that refers to ``player``.

    An exact normalized match wins. Otherwise one recorded name sharing a
    whole-word run with the target is accepted ("Kane" and "Harry Kane");
    letters inside a longer word never count.

    Args:
        recorded: Player names as they appear in events or statistics
        player: Name from the bet

    Returns:
        Normalized recorded name, or None if no name refers to the player

    Raises:
        InvalidMatchDataError: If several recorded names match loosely.
    """
    target = normalize_name(player)
    if not target:
        return None

    names = {normalize_name(name) for name in recorded} - {""}
    if target in names:
        return target

    loose = sorted(
        name for name in names
        if contains_words(name, target) or contains_words(target, name)
    )
    if len(loose) > 1:
        raise InvalidMatchDataError(
            f"Player {player!r} is ambiguous between {', '.join(loose)}",
            field="player",
        )
    return loose[0] if loose else None


def _require_goal_events(match_result: MatchResult) -> None:
    if match_result.ft_total > 0 and not match_result.goals:
        raise InvalidMatchDataError(
            "Goal events required but missing for a match with goals",
            field="goals",
        )
