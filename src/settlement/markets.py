"""
Market classification.

Odds providers only describe a market with free text (market name,
criterion, outcome label), so every bet is mapped to one canonical
MarketCode through a priority-ordered rule table:

- Each rule is a (code, priority, predicate) triple
- Every rule whose predicate matches is a candidate
- The candidate with the strictly highest priority wins
- A catch-all rule at priority 0 yields UNKNOWN

All string heuristics live in this module. Priorities encode precedence
between overlapping wordings; changing them changes settlement outcomes.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from src.constants import MarketCode, ParticipantType, PeriodScope, SIMPLE_SELECTIONS
from src.settlement.errors import ClassifierConfigurationError
from src.settlement.models import Bet
from src.utils import get_logger

logger = get_logger("settlement.markets")


# =============================================================================
# Time Windows
# =============================================================================

_FIRST_HALF_RE = re.compile(r"\b(1st|first) half\b|\bhalf[- ]?time\b")
_SECOND_HALF_RE = re.compile(r"\b(2nd|second) half\b")
# Provider clock ranges, e.g. "00:00-29:59"
_CLOCK_RANGE_RE = re.compile(r"\b(\d{1,3}):(\d{2})\s*-\s*(\d{1,3}):(\d{2})\b")
# "between minutes 1 and 15", "minutes 16-30"
_MINUTE_RANGE_RE = re.compile(r"\bminutes?\s+(\d{1,3})\s*(?:-|to|and)\s*(\d{1,3})\b")


@dataclass(frozen=True)
class TimeWindow:
    """Either a half of the match or an inclusive range of match minutes."""
    period_scope: Optional[PeriodScope] = None
    start_minute: Optional[int] = None
    end_minute: Optional[int] = None

    @property
    def is_minute_range(self) -> bool:
        return self.start_minute is not None and self.end_minute is not None


def parse_time_window(text: str) -> Optional[TimeWindow]:
    """
    Find a time window in lower-cased market text.

    Clock ranges are converted to displayed minutes: "00:00-29:59" covers
    goals shown as minutes 1 to 30.
    """
    clock = _CLOCK_RANGE_RE.search(text)
    if clock:
        start = int(clock.group(1)) + 1
        end = int(clock.group(3)) + 1
        return TimeWindow(start_minute=start, end_minute=end)

    minutes = _MINUTE_RANGE_RE.search(text)
    if minutes:
        return TimeWindow(start_minute=int(minutes.group(1)), end_minute=int(minutes.group(2)))

    if _SECOND_HALF_RE.search(text):
        return TimeWindow(period_scope=PeriodScope.SECOND_HALF)
    if _FIRST_HALF_RE.search(text):
        return TimeWindow(period_scope=PeriodScope.FIRST_HALF)
    return None


# =============================================================================
# Normalized View
# =============================================================================

_OCCURRENCE_RE = re.compile(r"\bat least \d+\b|\b\d+\+|\b\d+ or more\b")


@dataclass(frozen=True)
class MarketHints:
    """Derived booleans the rule predicates share."""
    has_time_window: bool
    is_player_occurrence_line: bool
    has_explicit_player: bool
    maybe_player_total_goals: bool
    is_player_market: bool
    looks_like_player_selection: bool


@dataclass(frozen=True)
class NormalizedBet:
    """Lower-cased market text of a bet plus derived hints."""
    market_name: str
    criterion: str
    selection: str
    has_handicap: bool
    time_window: Optional[TimeWindow]
    hints: MarketHints


def looks_like_player_selection(selection: str) -> bool:
    """
    Guess whether an outcome label is a player's name.

    Labels outside the over/under, yes/no and 1/X/2 vocabulary that
    contain letters and a space are usually names. "Over 2.5" is not.
    """
    if not selection.strip() or selection.split()[0] in SIMPLE_SELECTIONS:
        return False
    return bool(re.search(r"[a-z]", selection)) and " " in selection


def normalize(bet: Bet) -> NormalizedBet:
    """Build the normalized view the rule predicates operate on."""
    name = bet.market_name.strip().lower()
    crit = bet.market_criterion.strip().lower()
    selection = bet.selection_label.strip().lower()

    time_window = parse_time_window(name) or parse_time_window(crit)
    has_explicit_player = bet.participant_type == ParticipantType.PLAYER
    player_like = looks_like_player_selection(selection)
    mentions_scoring = "to score" in name or "to score" in crit

    hints = MarketHints(
        has_time_window=time_window is not None,
        is_player_occurrence_line=(
            mentions_scoring
            and "team" not in name
            and bool(_OCCURRENCE_RE.search(name) or _OCCURRENCE_RE.search(crit))
        ),
        has_explicit_player=has_explicit_player,
        maybe_player_total_goals=(
            "total goals" in name
            and ("player" in name or "'s total" in name or player_like)
        ),
        is_player_market="player" in name or "player" in crit or has_explicit_player,
        looks_like_player_selection=player_like,
    )

    return NormalizedBet(
        market_name=name,
        criterion=crit,
        selection=selection,
        has_handicap=bet.handicap_line is not None,
        time_window=time_window,
        hints=hints,
    )


# =============================================================================
# Rule Predicates
# =============================================================================

MATCH_RESULT_NAMES = frozenset({
    "match (regular time)",
    "match result",
    "full time result",
    "1x2",
})


def _is_scorer_market(n: NormalizedBet) -> bool:
    scoring = "to score" in n.market_name or "to score" in n.criterion
    return scoring and "team" not in n.market_name


def _is_player_to_score_2plus(n: NormalizedBet) -> bool:
    name = n.market_name
    multi = "at least 2" in name or "2+" in name or "2 or more" in name
    return multi and _is_scorer_market(n)


def _is_player_to_score(n: NormalizedBet) -> bool:
    h = n.hints
    return _is_scorer_market(n) and (
        h.is_player_occurrence_line or h.has_explicit_player or h.looks_like_player_selection
    )


def _is_player_shots_on_target(n: NormalizedBet) -> bool:
    return "player's shots on target" in n.market_name or "shots on target" in n.criterion


def _is_player_red_card(n: NormalizedBet) -> bool:
    return "to get a red card" in n.market_name


def _is_player_any_card(n: NormalizedBet) -> bool:
    return "to get a card" in n.market_name or "to get a card" in n.criterion


def _is_match_result(n: NormalizedBet) -> bool:
    return n.market_name in MATCH_RESULT_NAMES


def _is_asian_handicap(n: NormalizedBet) -> bool:
    name = n.market_name
    return "handicap" in name and "corner" not in name and "3-way" not in name


def _is_first_half_handicap(n: NormalizedBet) -> bool:
    return _is_asian_handicap(n) and _window_scope(n) == PeriodScope.FIRST_HALF


def _is_second_half_handicap(n: NormalizedBet) -> bool:
    return _is_asian_handicap(n) and _window_scope(n) == PeriodScope.SECOND_HALF


def _is_full_match_handicap(n: NormalizedBet) -> bool:
    return _is_asian_handicap(n) and not n.hints.has_time_window


def _is_team_total_goals(n: NormalizedBet) -> bool:
    name = n.market_name
    team_wording = "total goals by" in name or "team total goals" in name
    return team_wording and not n.hints.has_time_window


def _is_interval_total_goals(n: NormalizedBet) -> bool:
    name = n.market_name
    return ("total goals" in name or "goals in" in name) and n.hints.has_time_window


def _is_match_total_goals(n: NormalizedBet) -> bool:
    if n.hints.is_player_market or n.hints.maybe_player_total_goals:
        return False
    return "total goals" in n.market_name


def _is_corners_team_total(n: NormalizedBet) -> bool:
    return "team total corners" in n.market_name or "corners by" in n.market_name


def _is_corners_total(n: NormalizedBet) -> bool:
    return "total corners" in n.market_name and not n.hints.has_time_window


def _is_corners_most(n: NormalizedBet) -> bool:
    return "most corners" in n.market_name


def _is_corners_handicap_3way(n: NormalizedBet) -> bool:
    name = n.market_name
    return "3-way" in name and "corner" in name and "handicap" in name


def _is_corners_first_to_x(n: NormalizedBet) -> bool:
    return "first to" in n.market_name and "corners" in n.market_name


def _always(n: NormalizedBet) -> bool:
    return True


def _window_scope(n: NormalizedBet) -> Optional[PeriodScope]:
    if n.time_window is None:
        return None
    return n.time_window.period_scope


# =============================================================================
# Registry
# =============================================================================

@dataclass(frozen=True)
class MarketRule:
    """One classification rule."""
    code: MarketCode
    priority: int
    predicate: Callable[[NormalizedBet], bool]

    def matches(self, normalized: NormalizedBet) -> bool:
        return self.predicate(normalized)


# Highest priority first. Priorities must stay unique.
MARKET_REGISTRY: tuple[MarketRule, ...] = (
    # Player props
    MarketRule(MarketCode.PLAYER_TO_SCORE_2PLUS, 100, _is_player_to_score_2plus),
    MarketRule(MarketCode.PLAYER_TO_SCORE, 97, _is_player_to_score),
    MarketRule(MarketCode.PLAYER_SOT_OU, 96, _is_player_shots_on_target),
    MarketRule(MarketCode.PLAYER_CARD_RED, 95, _is_player_red_card),
    MarketRule(MarketCode.PLAYER_CARD_ANY, 92, _is_player_any_card),
    # Match result
    MarketRule(MarketCode.MATCH_RESULT, 85, _is_match_result),
    # Asian handicaps, half-scoped before full match
    MarketRule(MarketCode.FIRST_HALF_ASIAN_HANDICAP, 84, _is_first_half_handicap),
    MarketRule(MarketCode.SECOND_HALF_ASIAN_HANDICAP, 83, _is_second_half_handicap),
    MarketRule(MarketCode.ASIAN_HANDICAP, 82, _is_full_match_handicap),
    # Goal totals: team before interval before generic
    MarketRule(MarketCode.TEAM_TOTAL_GOALS_OU, 80, _is_team_total_goals),
    MarketRule(MarketCode.MATCH_TOTAL_GOALS_INTERVAL_OU, 75, _is_interval_total_goals),
    MarketRule(MarketCode.MATCH_TOTAL_GOALS_OU, 70, _is_match_total_goals),
    # Corners
    MarketRule(MarketCode.CORNERS_TEAM_TOTAL_OU, 60, _is_corners_team_total),
    MarketRule(MarketCode.CORNERS_TOTAL_OU, 57, _is_corners_total),
    MarketRule(MarketCode.CORNERS_MOST, 56, _is_corners_most),
    MarketRule(MarketCode.CORNERS_HANDICAP_3WAY, 55, _is_corners_handicap_3way),
    MarketRule(MarketCode.CORNERS_FIRST_TO_X, 50, _is_corners_first_to_x),
    # Catch-all
    MarketRule(MarketCode.UNKNOWN, 0, _always),
)


def validate_registry(registry: Iterable[MarketRule]) -> None:
    """
    Check a registry is well formed.

    Raises:
        ClassifierConfigurationError: On duplicate priorities or codes, or
            when the UNKNOWN catch-all is not the single priority-0 rule.
    """
    rules = list(registry)
    seen_priorities: dict[int, MarketCode] = {}
    seen_codes: set[MarketCode] = set()

    for rule in rules:
        if rule.priority in seen_priorities:
            raise ClassifierConfigurationError(
                f"Priority {rule.priority} shared by {seen_priorities[rule.priority].value} "
                f"and {rule.code.value}"
            )
        if rule.code in seen_codes:
            raise ClassifierConfigurationError(f"Duplicate rule for {rule.code.value}")
        seen_priorities[rule.priority] = rule.code
        seen_codes.add(rule.code)

    if seen_priorities.get(0) != MarketCode.UNKNOWN:
        raise ClassifierConfigurationError("Registry needs an UNKNOWN catch-all at priority 0")
    if min(seen_priorities) < 0:
        raise ClassifierConfigurationError("Priorities must be non-negative")


validate_registry(MARKET_REGISTRY)


# =============================================================================
# Classification
# =============================================================================

@dataclass(frozen=True)
class Classification:
    """Market code of a bet and the period its scores come from."""
    code: MarketCode
    period_scope: PeriodScope
    normalized: NormalizedBet

    @property
    def time_window(self) -> Optional[TimeWindow]:
        return self.normalized.time_window


def matching_rules(
    normalized: NormalizedBet,
    registry: Iterable[MarketRule] = MARKET_REGISTRY,
) -> list[MarketRule]:
    """All rules whose predicate matches, in registry order."""
    return [rule for rule in registry if rule.matches(normalized)]


def classify_normalized(
    normalized: NormalizedBet,
    registry: Iterable[MarketRule] = MARKET_REGISTRY,
) -> MarketCode:
    """
    Pick the highest-priority matching rule.

    Raises:
        ClassifierConfigurationError: If two matching rules share the top priority.
    """
    candidates = matching_rules(normalized, registry)
    if not candidates:
        return MarketCode.UNKNOWN

    best = max(candidates, key=lambda rule: rule.priority)
    tied = [rule.code.value for rule in candidates if rule.priority == best.priority]
    if len(tied) > 1:
        raise ClassifierConfigurationError(
            f"Rules {', '.join(tied)} tie at priority {best.priority}"
        )
    return best.code


def classify(bet: Bet, registry: Iterable[MarketRule] = MARKET_REGISTRY) -> MarketCode:
    """Classify a bet into exactly one MarketCode."""
    return classify_normalized(normalize(bet), registry)


def period_scope_for(code: MarketCode, normalized: NormalizedBet) -> PeriodScope:
    """Period of the match whose scores settle a market."""
    if code == MarketCode.FIRST_HALF_ASIAN_HANDICAP:
        return PeriodScope.FIRST_HALF
    if code == MarketCode.SECOND_HALF_ASIAN_HANDICAP:
        return PeriodScope.SECOND_HALF
    if code == MarketCode.MATCH_TOTAL_GOALS_INTERVAL_OU:
        scope = _window_scope(normalized)
        if scope is not None:
            return scope
    return PeriodScope.FULL_TIME


def describe(bet: Bet, registry: Iterable[MarketRule] = MARKET_REGISTRY) -> Classification:
    """Classify a bet and resolve its period scope."""
    normalized = normalize(bet)
    code = classify_normalized(normalized, registry)
    scope = period_scope_for(code, normalized)
    logger.debug(f"Bet {bet.id} '{bet.market_name}' classified as {code.value} ({scope.value})")
    return Classification(code=code, period_scope=scope, normalized=normalized)
