"""
Shared fixtures for settlement tests.
"""

from decimal import Decimal

import pytest

from src.settlement.models import Bet, MatchResult


def make_bet(
    market_name: str = "Asian Handicap",
    selection_label: str = "2",
    handicap_line=None,
    stake="100",
    odds="1.95",
    **kwargs,
) -> Bet:
    """Build a bet with sensible defaults."""
    return Bet(
        id=kwargs.pop("id", "bet-1"),
        market_name=market_name,
        selection_label=selection_label,
        handicap_line=handicap_line,
        stake=stake,
        odds=odds,
        **kwargs,
    )


@pytest.fixture
def bet_factory():
    return make_bet


@pytest.fixture
def leverkusen_pisa() -> MatchResult:
    """FT 2-1, HT 1-0, so the second half finished 1-1."""
    return MatchResult(
        ft_home=2,
        ft_away=1,
        ht_home=1,
        ht_away=0,
        home_team="Bayer 04 Leverkusen",
        away_team="Pisa",
    )


@pytest.fixture
def full_match() -> MatchResult:
    """Match with events, corners and player statistics."""
    return MatchResult(
        ft_home=3,
        ft_away=1,
        ht_home=1,
        ht_away=1,
        home_team="Arsenal",
        away_team="Chelsea",
        corners_home=7,
        corners_away=4,
        goals=[
            {"minute": 12, "isHome": True, "player": "Bukayo Saka"},
            {"minute": 40, "isHome": False, "player": "Cole Palmer"},
            {"minute": 55, "isHome": True, "player": "Bukayo Saka"},
            {"minute": 88, "isHome": True, "player": "Levi Colwill", "ownGoal": True},
        ],
        cards=[
            {"minute": 30, "isHome": False, "player": "Moisés Caicedo", "card": "Yellow"},
            {"minute": 70, "isHome": True, "player": "Declan Rice", "card": "Red"},
        ],
        player_shots_on_target={"Bukayo Saka": 4, "Cole Palmer": 1},
    )


@pytest.fixture
def stake() -> Decimal:
    return Decimal("100")
