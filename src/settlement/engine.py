"""
Settlement orchestrator.

Runs, per bet:
    classify market → resolve period scope → market-specific rule

Every rule follows the same WON / LOST / PUSH and payout contract as
the handicap calculator. Any classification or calculation error is
propagated unchanged; the engine never retries and never guesses.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional

from src.constants import (
    AWAY_SELECTIONS,
    DRAW_SELECTIONS,
    HOME_SELECTIONS,
    NO_SELECTIONS,
    OVER_SELECTIONS,
    UNDER_SELECTIONS,
    YES_SELECTIONS,
    BetResult,
    MarketCode,
    ParticipantType,
    Side,
)
from src.settlement import handicap, scores
from src.settlement.errors import InvalidHandicapError, InvalidSelectionError, UnsupportedMarketError
from src.settlement.markets import MARKET_REGISTRY, Classification, MarketRule, describe, validate_registry
from src.settlement.models import Bet, MatchResult, SettlementOutcome
from src.utils import LogContext, get_logger

logger = get_logger("settlement.engine")

Rule = Callable[[Bet, MatchResult, Classification], SettlementOutcome]


class SettlementEngine:
    """
    Settles bets against finished matches.

    Stateless apart from its immutable rule tables, so one engine can be
    shared by any number of worker threads.
    """

    def __init__(self, registry: Iterable[MarketRule] = MARKET_REGISTRY):
        """
        Initialize the engine.

        Args:
            registry: Market classification rules
        """
        self.registry = tuple(registry)
        validate_registry(self.registry)

        self._rules: dict[MarketCode, Rule] = {
            MarketCode.MATCH_RESULT: self._settle_match_result,
            MarketCode.ASIAN_HANDICAP: self._settle_asian_handicap,
            MarketCode.FIRST_HALF_ASIAN_HANDICAP: self._settle_asian_handicap,
            MarketCode.SECOND_HALF_ASIAN_HANDICAP: self._settle_asian_handicap,
            MarketCode.MATCH_TOTAL_GOALS_OU: self._settle_match_total_goals,
            MarketCode.TEAM_TOTAL_GOALS_OU: self._settle_team_total_goals,
            MarketCode.MATCH_TOTAL_GOALS_INTERVAL_OU: self._settle_interval_total_goals,
            MarketCode.CORNERS_TOTAL_OU: self._settle_corners_total,
            MarketCode.CORNERS_TEAM_TOTAL_OU: self._settle_corners_team_total,
            MarketCode.CORNERS_MOST: self._settle_corners_most,
            MarketCode.CORNERS_HANDICAP_3WAY: self._settle_corners_handicap_3way,
            MarketCode.PLAYER_TO_SCORE: self._settle_player_to_score,
            MarketCode.PLAYER_TO_SCORE_2PLUS: self._settle_player_to_score,
            MarketCode.PLAYER_CARD_ANY: self._settle_player_card,
            MarketCode.PLAYER_CARD_RED: self._settle_player_card,
            MarketCode.PLAYER_SOT_OU: self._settle_player_shots_on_target,
        }

    @property
    def supported_codes(self) -> frozenset[MarketCode]:
        """Market codes this engine has a settlement rule for."""
        return frozenset(self._rules)

    def settle(self, bet: Bet, match_result: MatchResult) -> SettlementOutcome:
        """
        Settle one bet.

        Args:
            bet: Placed bet
            match_result: Finished match

        Returns:
            SettlementOutcome for the pair

        Raises:
            UnsupportedMarketError: UNKNOWN or a code without a rule
            InvalidHandicapError: Line missing or unparseable
            InvalidSelectionError: Selection cannot be interpreted
            InvalidMatchDataError: Scores inconsistent or missing
            ClassifierConfigurationError: Ambiguous classification
        """
        with LogContext(bet_id=bet.id):
            classification = describe(bet, self.registry)

            rule = self._rules.get(classification.code)
            if rule is None:
                raise UnsupportedMarketError(classification.code)

            outcome = rule(bet, match_result, classification)
            logger.debug(
                f"Settled {classification.code.value}: {outcome.result.value}, payout {outcome.payout}"
            )
            return outcome.model_copy(update={"bet_id": bet.id})

    # =========================================================================
    # Goals
    # =========================================================================

    def _settle_match_result(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        home, away = scores.extract(match_result, classification.period_scope)
        pick = resolve_three_way(bet.selection_label, match_result)
        return _binary(bet, classification, _three_way_won(pick, home, away))

    def _settle_asian_handicap(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        side = resolve_side(bet.selection_label, match_result)
        return handicap.settle(
            market_code=classification.code,
            period_scope=classification.period_scope,
            selected_side=side,
            handicap_line=bet.handicap_line,
            stake=bet.stake,
            odds=bet.odds,
            match_result=match_result,
        )

    def _settle_match_total_goals(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        home, away = scores.extract(match_result, classification.period_scope)
        return _over_under(bet, classification, home + away)

    def _settle_team_total_goals(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        side = resolve_team(bet, classification, match_result)
        if side is None:
            raise InvalidSelectionError(f"Cannot tell which team '{bet.market_name}' refers to")
        home, away = scores.extract(match_result, classification.period_scope)
        return _over_under(bet, classification, home if side == Side.HOME else away)

    def _settle_interval_total_goals(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        window = classification.time_window
        if window is not None and window.is_minute_range:
            home, away = scores.goals_in_window(match_result, window.start_minute, window.end_minute)
        else:
            home, away = scores.extract(match_result, classification.period_scope)

        side = resolve_team(bet, classification, match_result)
        if side is None:
            count = home + away
        else:
            count = home if side == Side.HOME else away
        return _over_under(bet, classification, count)

    # =========================================================================
    # Corners
    # =========================================================================

    def _settle_corners_total(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        home, away = scores.corners(match_result)
        return _over_under(bet, classification, home + away)

    def _settle_corners_team_total(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        side = resolve_team(bet, classification, match_result)
        if side is None:
            raise InvalidSelectionError(f"Cannot tell which team '{bet.market_name}' refers to")
        home, away = scores.corners(match_result)
        return _over_under(bet, classification, home if side == Side.HOME else away)

    def _settle_corners_most(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        home, away = scores.corners(match_result)
        pick = resolve_three_way(bet.selection_label, match_result)
        return _binary(bet, classification, _three_way_won(pick, home, away))

    def _settle_corners_handicap_3way(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        line = handicap.parse_line(bet.handicap_line)
        if line is None:
            raise InvalidHandicapError("Handicap line required for 3-way corners handicap")
        home, away = scores.corners(match_result)
        pick = resolve_three_way(bet.selection_label, match_result)
        # The published line is relative to the home side
        adjusted_home = Decimal(home) + line
        adjusted_away = Decimal(away)
        return _binary(bet, classification, _three_way_won(pick, adjusted_home, adjusted_away))

    # =========================================================================
    # Players
    # =========================================================================

    def _settle_player_to_score(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        player, expect_yes = resolve_player(bet)
        needed = 2 if classification.code == MarketCode.PLAYER_TO_SCORE_2PLUS else 1
        happened = scores.player_goals(match_result, player) >= needed
        return _binary(bet, classification, happened == expect_yes)

    def _settle_player_card(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        player, expect_yes = resolve_player(bet)
        yellow, red = scores.player_cards(match_result, player)
        if classification.code == MarketCode.PLAYER_CARD_RED:
            happened = red > 0
        else:
            happened = yellow + red > 0
        return _binary(bet, classification, happened == expect_yes)

    def _settle_player_shots_on_target(
        self, bet: Bet, match_result: MatchResult, classification: Classification
    ) -> SettlementOutcome:
        if not bet.participant:
            raise InvalidSelectionError("Shots-on-target bet has no player participant")
        shots = scores.player_shots_on_target(match_result, bet.participant)
        return _over_under(bet, classification, shots)


# =============================================================================
# Selection Resolution
# =============================================================================

def resolve_three_way(label: str, match_result: MatchResult) -> Optional[Side]:
    """
    Map a 1/X/2 selection to a side; None means the draw.

    Raises:
        InvalidSelectionError: If the label matches no outcome.
    """
    text = scores.normalize_name(label)
    if text in DRAW_SELECTIONS:
        return None
    side = _side_from_label(text, match_result)
    if side is None:
        raise InvalidSelectionError(f"Unrecognized 1X2 selection: {label!r}")
    return side


def resolve_side(label: str, match_result: MatchResult) -> Side:
    """
    Map a two-way team selection to a side.

    Raises:
        InvalidSelectionError: If the label is not a team.
    """
    side = _side_from_label(scores.normalize_name(label), match_result)
    if side is None:
        raise InvalidSelectionError(f"Unrecognized team selection: {label!r}")
    return side


def resolve_team(
    bet: Bet, classification: Classification, match_result: MatchResult
) -> Optional[Side]:
    """
    Find the team a team-scoped market refers to.

    Looks at the participant first, then at team names or "home"/"away"
    wording in the market name. Team names must appear as whole words and
    the longest one wins, so "Inter Milan" is not read as "Milan".
    Returns None when nothing names a team.
    """
    if bet.participant and bet.participant_type != ParticipantType.PLAYER:
        side = _side_from_label(scores.normalize_name(bet.participant), match_result)
        if side is not None:
            return side

    name = classification.normalized.market_name
    text = scores.normalize_name(name)
    named = [
        (len(team_name), side)
        for side, team_name in (
            (Side.HOME, scores.normalize_name(match_result.home_team)),
            (Side.AWAY, scores.normalize_name(match_result.away_team)),
        )
        if scores.contains_words(text, team_name)
    ]
    if named:
        return max(named, key=lambda item: item[0])[1]

    if "home team" in name:
        return Side.HOME
    if "away team" in name:
        return Side.AWAY
    return None


def resolve_player(bet: Bet) -> tuple[str, bool]:
    """
    Return the player a prop is about and whether it backs "yes".

    The selection is either the player's name or Yes/No with the player
    given as participant.

    Raises:
        InvalidSelectionError: If no player can be found.
    """
    label = bet.selection_label.strip().lower()
    if label in YES_SELECTIONS or label in NO_SELECTIONS:
        if not bet.participant:
            raise InvalidSelectionError(f"Player prop '{bet.market_name}' has no player")
        return bet.participant, label in YES_SELECTIONS
    return bet.participant or bet.selection_label, True


def _side_from_label(text: str, match_result: MatchResult) -> Optional[Side]:
    if text in HOME_SELECTIONS:
        return Side.HOME
    if text in AWAY_SELECTIONS:
        return Side.AWAY
    if text and text == scores.normalize_name(match_result.home_team):
        return Side.HOME
    if text and text == scores.normalize_name(match_result.away_team):
        return Side.AWAY
    return None


# =============================================================================
# Outcome Builders
# =============================================================================

def _three_way_won(pick: Optional[Side], home: Decimal | int, away: Decimal | int) -> bool:
    if pick is None:
        return home == away
    if pick == Side.HOME:
        return home > away
    return away > home


def _binary(bet: Bet, classification: Classification, won: bool) -> SettlementOutcome:
    """Outcome of a market without lines: win or lose, never push."""
    return SettlementOutcome(
        market_code=classification.code,
        period_scope=classification.period_scope,
        result=BetResult.WON if won else BetResult.LOST,
        payout=bet.stake * bet.odds if won else Decimal(0),
        stake=bet.stake,
        odds=bet.odds,
    )


def _over_under(bet: Bet, classification: Classification, count: int) -> SettlementOutcome:
    """Settle an over/under selection on ``count``, splitting quarter lines."""
    parts = bet.selection_label.strip().lower().split()
    direction = parts[0] if parts else ""
    if direction in OVER_SELECTIONS:
        is_over = True
    elif direction in UNDER_SELECTIONS:
        is_over = False
    else:
        raise InvalidSelectionError(f"Expected Over/Under selection, got {bet.selection_label!r}")

    line = bet.handicap_line
    if line is None and len(parts) > 1:
        line = handicap.parse_line(parts[1])
    if line is None:
        raise InvalidHandicapError(f"Line required for {classification.code.value}")

    value = Decimal(count)

    def compare(sub_line: Decimal) -> tuple[Decimal, Decimal]:
        if is_over:
            return value, sub_line
        return sub_line, value

    settlement = handicap.settle_line(line, bet.stake, bet.odds, compare)
    return SettlementOutcome(
        market_code=classification.code,
        period_scope=classification.period_scope,
        result=settlement.result,
        payout=settlement.payout,
        stake=bet.stake,
        odds=bet.odds,
        legs=settlement.legs,
    )


# =============================================================================
# Module API
# =============================================================================

_default_engine = SettlementEngine()


def get_settlement_engine(registry: Optional[Iterable[MarketRule]] = None) -> SettlementEngine:
    """Get the shared engine, or a new one for a custom registry."""
    if registry is None:
        return _default_engine
    return SettlementEngine(registry=registry)


def settle_bet(bet: Bet, match_result: MatchResult) -> SettlementOutcome:
    """Settle one bet against one finished match."""
    return get_settlement_engine().settle(bet, match_result)
