"""
Constants and enums for bet settlement.

Centralizes market codes, outcome labels and the selection vocabulary
so that provider wording changes only touch this module and the
classifier predicates.
"""

from decimal import Decimal
from enum import Enum
from typing import FrozenSet


# =============================================================================
# Market Codes
# =============================================================================

class MarketCode(str, Enum):
    """
    Canonical market classification.

    Exactly one code is assigned to every bet by the market classifier.
    """
    PLAYER_TO_SCORE = "PLAYER_TO_SCORE"
    PLAYER_TO_SCORE_2PLUS = "PLAYER_TO_SCORE_2PLUS"
    PLAYER_SOT_OU = "PLAYER_SOT_OU"
    PLAYER_CARD_ANY = "PLAYER_CARD_ANY"
    PLAYER_CARD_RED = "PLAYER_CARD_RED"

    MATCH_RESULT = "MATCH_RESULT"

    ASIAN_HANDICAP = "ASIAN_HANDICAP"
    FIRST_HALF_ASIAN_HANDICAP = "FIRST_HALF_ASIAN_HANDICAP"
    SECOND_HALF_ASIAN_HANDICAP = "SECOND_HALF_ASIAN_HANDICAP"

    TEAM_TOTAL_GOALS_OU = "TEAM_TOTAL_GOALS_OU"
    MATCH_TOTAL_GOALS_OU = "MATCH_TOTAL_GOALS_OU"
    MATCH_TOTAL_GOALS_INTERVAL_OU = "MATCH_TOTAL_GOALS_INTERVAL_OU"

    CORNERS_TOTAL_OU = "CORNERS_TOTAL_OU"
    CORNERS_TEAM_TOTAL_OU = "CORNERS_TEAM_TOTAL_OU"
    CORNERS_MOST = "CORNERS_MOST"
    CORNERS_HANDICAP_3WAY = "CORNERS_HANDICAP_3WAY"
    CORNERS_FIRST_TO_X = "CORNERS_FIRST_TO_X"

    UNKNOWN = "UNKNOWN"

    @classmethod
    def handicap_codes(cls) -> set["MarketCode"]:
        """Codes settled by the Asian handicap calculator."""
        return {
            cls.ASIAN_HANDICAP,
            cls.FIRST_HALF_ASIAN_HANDICAP,
            cls.SECOND_HALF_ASIAN_HANDICAP,
        }

    @classmethod
    def player_codes(cls) -> set["MarketCode"]:
        """Codes about a single player's match events."""
        return {
            cls.PLAYER_TO_SCORE,
            cls.PLAYER_TO_SCORE_2PLUS,
            cls.PLAYER_SOT_OU,
            cls.PLAYER_CARD_ANY,
            cls.PLAYER_CARD_RED,
        }


class PeriodScope(str, Enum):
    """Portion of the match a market's scores are drawn from."""
    FULL_TIME = "FULL_TIME"
    FIRST_HALF = "FIRST_HALF"
    SECOND_HALF = "SECOND_HALF"


class BetResult(str, Enum):
    """Coarse settlement label. The payout carries partial win/loss economics."""
    WON = "WON"
    LOST = "LOST"
    PUSH = "PUSH"


class Side(str, Enum):
    """Which team a selection backs."""
    HOME = "home"
    AWAY = "away"


class ParticipantType(str, Enum):
    """Kind of participant an odds outcome refers to."""
    PLAYER = "player"
    TEAM = "team"


class CardColor(str, Enum):
    YELLOW = "yellow"
    RED = "red"


# =============================================================================
# Selection Vocabulary
# =============================================================================

HOME_SELECTIONS: FrozenSet[str] = frozenset({"1", "home"})
AWAY_SELECTIONS: FrozenSet[str] = frozenset({"2", "away"})
DRAW_SELECTIONS: FrozenSet[str] = frozenset({"x", "draw"})
OVER_SELECTIONS: FrozenSet[str] = frozenset({"over", "o"})
UNDER_SELECTIONS: FrozenSet[str] = frozenset({"under", "u"})
YES_SELECTIONS: FrozenSet[str] = frozenset({"yes", "y"})
NO_SELECTIONS: FrozenSet[str] = frozenset({"no", "n"})

# Selections that are never a player's name
SIMPLE_SELECTIONS: FrozenSet[str] = frozenset({
    "over", "under", "yes", "no", "1", "2", "x", "home", "away", "draw",
})


# =============================================================================
# Numeric Constants
# =============================================================================

HALF = Decimal("0.5")
QUARTER_FRACTIONS: FrozenSet[Decimal] = frozenset({Decimal("0.25"), Decimal("0.75")})
