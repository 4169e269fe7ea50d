"""
Asian handicap settlement.

Implements:
- Quarter-line detection (.25 / .75)
- Quarter-line split into two adjacent whole/half lines
- Direct settlement of a single line
- Half-stake split settlement and recombination

The line helpers are market-agnostic: callers pass a ``compare`` function
mapping a line to the (selected, other) pair it adjusts, which lets
over/under totals reuse the same split rules as handicaps.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

from src.constants import HALF, QUARTER_FRACTIONS, BetResult, MarketCode, PeriodScope, Side
from src.settlement.errors import InvalidHandicapError, UnsupportedMarketError
from src.settlement.models import MatchResult, SettlementLeg, SettlementOutcome
from src.settlement.scores import extract
from src.utils import get_logger, to_decimal

logger = get_logger("settlement.handicap")

# Maps a line to the adjusted (selected, other) values it is judged on
Compare = Callable[[Decimal], tuple[Decimal, Decimal]]

HANDICAP_PERIODS: dict[MarketCode, PeriodScope] = {
    MarketCode.ASIAN_HANDICAP: PeriodScope.FULL_TIME,
    MarketCode.FIRST_HALF_ASIAN_HANDICAP: PeriodScope.FIRST_HALF,
    MarketCode.SECOND_HALF_ASIAN_HANDICAP: PeriodScope.SECOND_HALF,
}


@dataclass(frozen=True)
class LineSettlement:
    """Combined result of settling a bet on one line."""
    result: BetResult
    payout: Decimal
    legs: tuple[SettlementLeg, ...]


# =============================================================================
# Line Arithmetic
# =============================================================================

def is_quarter_line(line: Decimal) -> bool:
    """True if the fractional part of the line is exactly .25 or .75."""
    return abs(line) % 1 in QUARTER_FRACTIONS


def split_quarter_line(line: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split a quarter line into its two adjacent sub-lines.

    Examples:
        +1.25 -> (+1.0, +1.5)     -1.25 -> (-1.0, -1.5)
        +1.75 -> (+1.5, +2.0)     -1.75 -> (-1.5, -2.0)

    Raises:
        InvalidHandicapError: If the line is not a quarter line.
    """
    fraction = abs(line) % 1
    if fraction not in QUARTER_FRACTIONS:
        raise InvalidHandicapError(f"{line} is not a quarter line")

    floor = Decimal(math.floor(line))
    ceil = Decimal(math.ceil(line))

    if fraction == Decimal("0.25"):
        if line > 0:
            return floor, floor + HALF
        return ceil, ceil - HALF

    if line > 0:
        return floor + HALF, ceil
    return ceil - HALF, floor


# =============================================================================
# Settlement
# =============================================================================

def settle_direct(line: Decimal, stake: Decimal, odds: Decimal, compare: Compare) -> SettlementLeg:
    """Settle a whole or half line: win, lose or push on the adjusted pair."""
    selected, other = compare(line)

    if selected > other:
        return SettlementLeg(line=line, stake=stake, result=BetResult.WON, payout=stake * odds)
    if selected < other:
        return SettlementLeg(line=line, stake=stake, result=BetResult.LOST, payout=Decimal(0))
    return SettlementLeg(line=line, stake=stake, result=BetResult.PUSH, payout=stake)


def combine_legs(legs: tuple[SettlementLeg, ...], stake: Decimal) -> BetResult:
    """
    Reduce leg results to one coarse label.

    Identical leg results are kept. Mixed results are judged on the summed
    payout against the original stake, so a half win is WON and a half
    loss is LOST.
    """
    results = {leg.result for leg in legs}
    if len(results) == 1:
        return results.pop()

    total = sum((leg.payout for leg in legs), Decimal(0))
    if total > stake:
        return BetResult.WON
    if total == stake:
        return BetResult.PUSH
    return BetResult.LOST


def settle_line(line: Decimal, stake: Decimal, odds: Decimal, compare: Compare) -> LineSettlement:
    """
    Settle a bet on a line, splitting quarter lines into two half-stake legs.

    Args:
        line: Handicap or total line
        stake: Full stake
        odds: Decimal odds
        compare: Maps a line to the adjusted (selected, other) pair

    Returns:
        LineSettlement with one leg (direct) or two legs (split)
    """
    if not is_quarter_line(line):
        leg = settle_direct(line, stake, odds, compare)
        return LineSettlement(result=leg.result, payout=leg.payout, legs=(leg,))

    half_stake = stake / 2
    legs = tuple(
        settle_direct(sub_line, half_stake, odds, compare)
        for sub_line in split_quarter_line(line)
    )
    payout = sum((leg.payout for leg in legs), Decimal(0))
    result = combine_legs(legs, stake)

    logger.debug(
        f"Quarter line {line} split into {legs[0].line} ({legs[0].result.value}) "
        f"and {legs[1].line} ({legs[1].result.value}): {result.value}, payout {payout}"
    )
    return LineSettlement(result=result, payout=payout, legs=legs)


def handicap_compare(side: Side, home: int, away: int) -> Compare:
    """Compare function adding the line to the selected side's score."""
    def compare(line: Decimal) -> tuple[Decimal, Decimal]:
        if side == Side.HOME:
            return Decimal(home) + line, Decimal(away)
        return Decimal(away) + line, Decimal(home)

    return compare


def parse_line(value: Any) -> Optional[Decimal]:
    """
    Parse a handicap/total line.

    Raises:
        InvalidHandicapError: If the value is not a number.
    """
    try:
        return to_decimal(value)
    except ValueError as e:
        raise InvalidHandicapError(f"Unparseable line: {value!r}") from e


def settle(
    market_code: MarketCode,
    period_scope: Optional[PeriodScope],
    selected_side: Side,
    handicap_line: Optional[Decimal | str | float],
    stake: Decimal | float,
    odds: Decimal | float,
    match_result: MatchResult,
) -> SettlementOutcome:
    """
    Settle an Asian handicap bet.

    Args:
        market_code: One of the Asian handicap codes
        period_scope: Period to read scores from; None uses the period the
            market code implies
        selected_side: Team the bet backs
        handicap_line: Signed line applied to the selected side
        stake: Stake
        odds: Decimal odds
        match_result: Finished match

    Returns:
        SettlementOutcome with one or two legs

    Raises:
        UnsupportedMarketError: If the code is not a handicap code
        InvalidHandicapError: If the line is absent or unparseable
        InvalidMatchDataError: Propagated from score extraction
    """
    if market_code not in HANDICAP_PERIODS:
        raise UnsupportedMarketError(market_code, f"{market_code.value} is not an Asian handicap market")

    line = parse_line(handicap_line)
    if line is None:
        raise InvalidHandicapError(f"Handicap line required for {market_code.value}")

    scope = period_scope or HANDICAP_PERIODS[market_code]
    stake = to_decimal(stake)
    odds = to_decimal(odds)

    home, away = extract(match_result, scope)
    settlement = settle_line(line, stake, odds, handicap_compare(selected_side, home, away))

    return SettlementOutcome(
        market_code=market_code,
        period_scope=scope,
        result=settlement.result,
        payout=settlement.payout,
        stake=stake,
        odds=odds,
        legs=settlement.legs,
    )
