"""
Tests for the settlement engine.

Critical tests for:
- Half separation on FT 2-1 / HT 1-0
- Totals and corners with quarter lines
- Player props
- Unsupported markets never producing an outcome
"""

from decimal import Decimal

import pytest

from src.constants import BetResult, MarketCode, ParticipantType, PeriodScope, Side
from src.settlement.engine import (
    SettlementEngine,
    get_settlement_engine,
    resolve_player,
    resolve_side,
    resolve_three_way,
    settle_bet,
)
from src.settlement.errors import (
    InvalidHandicapError,
    InvalidMatchDataError,
    InvalidSelectionError,
    UnsupportedMarketError,
)
from src.settlement.markets import MARKET_REGISTRY
from src.settlement.models import MatchResult


class TestHalfSeparation:
    """FT 2-1, HT 1-0: first and second half settle differently."""

    def test_first_half_away_plus_half_loses(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Asian Handicap - 1st Half", selection_label="2", handicap_line="0.5")
        outcome = settle_bet(bet, leverkusen_pisa)

        assert outcome.market_code == MarketCode.FIRST_HALF_ASIAN_HANDICAP
        assert outcome.period_scope == PeriodScope.FIRST_HALF
        assert outcome.result == BetResult.LOST
        assert outcome.payout == 0

    def test_second_half_away_plus_half_wins(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Asian Handicap - 2nd Half", selection_label="2", handicap_line="0.5")
        outcome = settle_bet(bet, leverkusen_pisa)

        assert outcome.market_code == MarketCode.SECOND_HALF_ASIAN_HANDICAP
        assert outcome.result == BetResult.WON
        assert outcome.payout == Decimal("195")

    def test_team_name_selection(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Asian Handicap - 2nd Half", selection_label="Pisa", handicap_line="0.5")
        assert settle_bet(bet, leverkusen_pisa).result == BetResult.WON

    def test_half_market_without_half_time(self, bet_factory):
        bet = bet_factory(market_name="Asian Handicap - 1st Half", selection_label="1", handicap_line="0")
        with pytest.raises(InvalidMatchDataError):
            settle_bet(bet, MatchResult(ft_home=1, ft_away=0))

    def test_outcome_carries_bet_id(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(id="abc-123", selection_label="1", handicap_line="-0.5")
        assert settle_bet(bet, leverkusen_pisa).bet_id == "abc-123"

    def test_deterministic(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(selection_label="2", handicap_line="+1.25")
        outcomes = [settle_bet(bet, leverkusen_pisa) for _ in range(10)]

        assert all(outcome == outcomes[0] for outcome in outcomes)


class TestMatchResult:
    """Test 1X2 settlement."""

    @pytest.mark.parametrize("selection,expected", [
        ("1", BetResult.WON),
        ("X", BetResult.LOST),
        ("2", BetResult.LOST),
        ("Bayer 04 Leverkusen", BetResult.WON),
    ])
    def test_full_time(self, bet_factory, leverkusen_pisa, selection, expected):
        bet = bet_factory(market_name="Match (Regular Time)", selection_label=selection, odds="2.10")
        assert settle_bet(bet, leverkusen_pisa).result == expected

    def test_win_pays_stake_times_odds(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Match Result", selection_label="1", odds="2.10")
        assert settle_bet(bet, leverkusen_pisa).payout == Decimal("210")

    def test_unknown_selection(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Match Result", selection_label="Bayern")
        with pytest.raises(InvalidSelectionError):
            settle_bet(bet, leverkusen_pisa)


class TestGoalTotals:
    """Test match, team and interval goal totals."""

    def test_over_quarter_line_full_win(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Goals", selection_label="Over", handicap_line="2.25")
        outcome = settle_bet(bet, leverkusen_pisa)

        assert outcome.result == BetResult.WON
        assert outcome.payout == Decimal("195")
        assert outcome.is_split

    def test_over_quarter_line_half_loss(self, bet_factory, leverkusen_pisa):
        """Over 3.25 with 3 goals: 3.0 pushes, 3.5 loses."""
        bet = bet_factory(market_name="Total Goals", selection_label="Over", handicap_line="3.25")
        outcome = settle_bet(bet, leverkusen_pisa)

        assert outcome.result == BetResult.LOST
        assert outcome.payout == Decimal("50")

    def test_line_from_selection_label(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Goals", selection_label="Under 2.5")
        assert settle_bet(bet, leverkusen_pisa).result == BetResult.LOST

    def test_whole_line_push(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Goals", selection_label="Under", handicap_line="3")
        outcome = settle_bet(bet, leverkusen_pisa)

        assert outcome.result == BetResult.PUSH
        assert outcome.payout == Decimal("100")

    def test_missing_line(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Goals", selection_label="Over")
        with pytest.raises(InvalidHandicapError):
            settle_bet(bet, leverkusen_pisa)

    def test_bad_direction(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Goals", selection_label="Maybe", handicap_line="2.5")
        with pytest.raises(InvalidSelectionError):
            settle_bet(bet, leverkusen_pisa)

    def test_team_total_by_name(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(
            market_name="Total Goals by Bayer 04 Leverkusen", selection_label="Under", handicap_line="2.5"
        )
        outcome = settle_bet(bet, leverkusen_pisa)

        assert outcome.market_code == MarketCode.TEAM_TOTAL_GOALS_OU
        assert outcome.result == BetResult.WON

    def test_team_total_by_participant(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(
            market_name="Team Total Goals",
            selection_label="Over",
            handicap_line="0.5",
            participant="Pisa",
            participant_type=ParticipantType.TEAM,
        )
        assert settle_bet(bet, leverkusen_pisa).result == BetResult.WON

    def test_team_total_unknown_team(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Goals by Juventus", selection_label="Over", handicap_line="0.5")
        with pytest.raises(InvalidSelectionError):
            settle_bet(bet, leverkusen_pisa)

    @pytest.mark.parametrize("market_name,selection,expected", [
        ("Total Goals by Inter Milan", "Over", BetResult.WON),
        ("Total Goals by Milan", "Under", BetResult.WON),
    ])
    def test_team_name_inside_other_team_name(self, bet_factory, market_name, selection, expected):
        """The longest whole-word team name in the market wins."""
        result = MatchResult(ft_home=0, ft_away=3, home_team="Milan", away_team="Inter Milan")
        bet = bet_factory(market_name=market_name, selection_label=selection, handicap_line="2.5")

        assert settle_bet(bet, result).result == expected

    def test_first_half_total(self, bet_factory, full_match):
        bet = bet_factory(market_name="Total Goals - 1st Half", selection_label="Over", handicap_line="1.5")
        outcome = settle_bet(bet, full_match)

        assert outcome.market_code == MarketCode.MATCH_TOTAL_GOALS_INTERVAL_OU
        assert outcome.period_scope == PeriodScope.FIRST_HALF
        assert outcome.result == BetResult.WON

    def test_minute_window_total(self, bet_factory, full_match):
        """One goal (12') falls inside minutes 1-15."""
        bet = bet_factory(market_name="Total Goals - Minutes 1-15", selection_label="Over", handicap_line="0.5")
        assert settle_bet(bet, full_match).result == BetResult.WON

    def test_clock_window_total(self, bet_factory, full_match):
        bet = bet_factory(market_name="Total Goals 30:00-59:59", selection_label="Under", handicap_line="1.5")
        # Goals at 40' and 55'
        assert settle_bet(bet, full_match).result == BetResult.LOST


class TestCorners:
    """Test corner markets against 7-4 corners."""

    def test_total(self, bet_factory, full_match):
        bet = bet_factory(market_name="Total Corners", selection_label="Over", handicap_line="10.5")
        assert settle_bet(bet, full_match).result == BetResult.WON

    def test_team_total(self, bet_factory, full_match):
        bet = bet_factory(market_name="Team Total Corners - Chelsea", selection_label="Under", handicap_line="4.5")
        outcome = settle_bet(bet, full_match)

        assert outcome.market_code == MarketCode.CORNERS_TEAM_TOTAL_OU
        assert outcome.result == BetResult.WON

    @pytest.mark.parametrize("selection,expected", [
        ("1", BetResult.WON),
        ("X", BetResult.LOST),
        ("Chelsea", BetResult.LOST),
    ])
    def test_most_corners(self, bet_factory, full_match, selection, expected):
        bet = bet_factory(market_name="Most Corners", selection_label=selection)
        assert settle_bet(bet, full_match).result == expected

    @pytest.mark.parametrize("line,selection,expected", [
        ("-2", "1", BetResult.WON),
        ("-3", "X", BetResult.WON),
        ("-3", "1", BetResult.LOST),
        ("-4", "2", BetResult.WON),
    ])
    def test_three_way_handicap(self, bet_factory, full_match, line, selection, expected):
        bet = bet_factory(market_name="3-Way Handicap - Corners", selection_label=selection, handicap_line=line)
        outcome = settle_bet(bet, full_match)

        assert outcome.market_code == MarketCode.CORNERS_HANDICAP_3WAY
        assert outcome.result == expected

    def test_missing_corner_data(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Total Corners", selection_label="Over", handicap_line="9.5")
        with pytest.raises(InvalidMatchDataError):
            settle_bet(bet, leverkusen_pisa)

    def test_first_to_x_unsupported(self, bet_factory, full_match):
        bet = bet_factory(market_name="First to 5 Corners", selection_label="1")
        with pytest.raises(UnsupportedMarketError) as exc_info:
            settle_bet(bet, full_match)
        assert exc_info.value.market_code == MarketCode.CORNERS_FIRST_TO_X


class TestPlayerProps:
    """Test player markets against the event fixture."""

    @pytest.mark.parametrize("market_name,selection,expected", [
        ("To Score", "Bukayo Saka", BetResult.WON),
        ("To Score", "Levi Colwill", BetResult.LOST),
        ("To Score At Least 2 Goals", "Bukayo Saka", BetResult.WON),
        ("To Score At Least 2 Goals", "Cole Palmer", BetResult.LOST),
        ("To Get a Card", "Moises Caicedo", BetResult.WON),
        ("To Get a Card", "Declan Rice", BetResult.WON),
        ("To Get a Red Card", "Declan Rice", BetResult.WON),
        ("To Get a Red Card", "Moises Caicedo", BetResult.LOST),
    ])
    def test_name_selections(self, bet_factory, full_match, market_name, selection, expected):
        bet = bet_factory(market_name=market_name, selection_label=selection, odds="3.5")
        assert settle_bet(bet, full_match).result == expected

    def test_no_selection_inverts(self, bet_factory, full_match):
        bet = bet_factory(
            market_name="Player To Score",
            selection_label="No",
            participant="Cole Palmer",
            participant_type=ParticipantType.PLAYER,
        )
        assert settle_bet(bet, full_match).result == BetResult.LOST

    @pytest.mark.parametrize("market_name,goals,expected", [
        (
            "To Score At Least 2 Goals",
            [("Son Heung-min", True), ("Nicolas Jackson", False)],
            BetResult.LOST,
        ),
        ("Player To Score", [("Nicolas Jackson", False)], BetResult.LOST),
        ("Player To Score", [("Son Heung-min", True)], BetResult.WON),
    ])
    def test_short_name_not_matched_inside_other_name(self, bet_factory, market_name, goals, expected):
        """A short name is never matched inside a longer word."""
        result = MatchResult(
            ft_home=sum(1 for _, is_home in goals if is_home),
            ft_away=sum(1 for _, is_home in goals if not is_home),
            goals=[
                {"minute": 10 * (i + 1), "isHome": is_home, "player": player}
                for i, (player, is_home) in enumerate(goals)
            ],
        )
        bet = bet_factory(
            market_name=market_name,
            selection_label="Yes",
            participant="Son",
            participant_type=ParticipantType.PLAYER,
        )

        assert settle_bet(bet, result).result == expected

    def test_shots_on_target(self, bet_factory, full_match):
        bet = bet_factory(
            market_name="Player's Shots on Target",
            selection_label="Over",
            handicap_line="2.5",
            participant="Bukayo Saka",
            participant_type=ParticipantType.PLAYER,
        )
        outcome = settle_bet(bet, full_match)

        assert outcome.market_code == MarketCode.PLAYER_SOT_OU
        assert outcome.result == BetResult.WON

    def test_shots_on_target_needs_participant(self, bet_factory, full_match):
        bet = bet_factory(market_name="Player's Shots on Target", selection_label="Over", handicap_line="2.5")
        with pytest.raises(InvalidSelectionError):
            settle_bet(bet, full_match)

    def test_scorer_needs_goal_events(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="To Score", selection_label="Patrik Schick")
        with pytest.raises(InvalidMatchDataError):
            settle_bet(bet, leverkusen_pisa)


class TestUnsupported:
    """Test markets without a settlement rule."""

    def test_unknown_market(self, bet_factory, leverkusen_pisa):
        bet = bet_factory(market_name="Double Chance", selection_label="1X")
        with pytest.raises(UnsupportedMarketError) as exc_info:
            settle_bet(bet, leverkusen_pisa)
        assert exc_info.value.market_code == MarketCode.UNKNOWN

    def test_supported_codes(self):
        engine = SettlementEngine()

        assert MarketCode.UNKNOWN not in engine.supported_codes
        assert MarketCode.CORNERS_FIRST_TO_X not in engine.supported_codes
        assert MarketCode.handicap_codes() <= engine.supported_codes
        assert MarketCode.player_codes() <= engine.supported_codes

    def test_shared_engine(self):
        assert get_settlement_engine() is get_settlement_engine()
        assert get_settlement_engine(MARKET_REGISTRY) is not get_settlement_engine()


class TestSelectionResolution:
    """Test selection label helpers."""

    def test_three_way(self, leverkusen_pisa):
        assert resolve_three_way("1", leverkusen_pisa) == Side.HOME
        assert resolve_three_way("Draw", leverkusen_pisa) is None
        assert resolve_three_way("pisa", leverkusen_pisa) == Side.AWAY

    def test_side_rejects_draw(self, leverkusen_pisa):
        with pytest.raises(InvalidSelectionError):
            resolve_side("X", leverkusen_pisa)

    def test_player_yes_no(self, bet_factory):
        bet = bet_factory(market_name="Player To Score", selection_label="Yes", participant="Harry Kane")
        assert resolve_player(bet) == ("Harry Kane", True)

    def test_player_yes_without_participant(self, bet_factory):
        bet = bet_factory(market_name="Player To Score", selection_label="Yes")
        with pytest.raises(InvalidSelectionError):
            resolve_player(bet)
