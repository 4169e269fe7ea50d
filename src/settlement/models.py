"""
Pydantic models for bet settlement.

These models define the two inputs of settlement (a placed bet and a
finished match) and the outcome record it produces. All of them are
frozen: settlement reads bets and match results and never mutates them.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from src.constants import BetResult, CardColor, MarketCode, ParticipantType, PeriodScope
from src.settlement.errors import InvalidHandicapError, InvalidMatchDataError
from src.utils import to_decimal


# =============================================================================
# Bet
# =============================================================================

class Bet(BaseModel):
    """A placed bet. Immutable once placed."""
    id: str
    market_name: str = Field(alias="marketName")
    market_criterion: str = Field("", alias="marketCriterion")
    selection_label: str = Field(alias="selectionLabel")
    handicap_line: Optional[Decimal] = Field(None, alias="handicapLine")
    stake: Decimal = Field(gt=0)
    odds: Decimal = Field(ge=1)
    participant: Optional[str] = None
    participant_type: Optional[ParticipantType] = Field(None, alias="participantType")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Provider ids may be numeric."""
        return str(v)

    @field_validator("market_criterion", mode="before")
    @classmethod
    def default_criterion(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("handicap_line", mode="before")
    @classmethod
    def parse_handicap(cls, v: Any) -> Optional[Decimal]:
        """Parse signed lines such as "+1.25"."""
        try:
            return to_decimal(v)
        except ValueError as e:
            raise InvalidHandicapError(f"Unparseable handicap line: {v!r}") from e

    @field_validator("stake", "odds", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> Any:
        """Floats become exact decimals of their printed value."""
        try:
            return to_decimal(v)
        except ValueError:
            return v


# =============================================================================
# Match Result
# =============================================================================

class GoalEvent(BaseModel):
    """A goal with the absolute match minute it was scored in."""
    minute: int = Field(ge=0)
    is_home: bool = Field(alias="isHome")
    player: Optional[str] = None
    own_goal: bool = Field(False, alias="ownGoal")

    model_config = {"populate_by_name": True, "frozen": True}


class CardEvent(BaseModel):
    """A booking."""
    minute: Optional[int] = Field(None, ge=0)
    is_home: bool = Field(alias="isHome")
    player: Optional[str] = None
    card: CardColor

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("card", mode="before")
    @classmethod
    def normalize_card(cls, v: Any) -> Any:
        """Feeds send "Yellow", "YellowRed", "Red"..."""
        if isinstance(v, str):
            text = v.lower()
            if "red" in text:
                return CardColor.RED
            if "yellow" in text:
                return CardColor.YELLOW
        return v


class MatchResult(BaseModel):
    """
    Read-only snapshot of a finished match.

    Half-time scores, corners, events and player statistics are optional;
    extractors raise InvalidMatchDataError when a market needs data that
    is absent.
    """
    ft_home: int = Field(ge=0, alias="fullTimeHomeScore")
    ft_away: int = Field(ge=0, alias="fullTimeAwayScore")
    ht_home: Optional[int] = Field(None, ge=0, alias="halfTimeHomeScore")
    ht_away: Optional[int] = Field(None, ge=0, alias="halfTimeAwayScore")
    home_team: Optional[str] = Field(None, alias="homeTeam")
    away_team: Optional[str] = Field(None, alias="awayTeam")
    corners_home: Optional[int] = Field(None, ge=0, alias="cornersHome")
    corners_away: Optional[int] = Field(None, ge=0, alias="cornersAway")
    goals: tuple[GoalEvent, ...] = ()
    cards: tuple[CardEvent, ...] = ()
    player_shots_on_target: dict[str, int] = Field(
        default_factory=dict, alias="playerShotsOnTarget"
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def has_half_time(self) -> bool:
        return self.ht_home is not None and self.ht_away is not None

    @property
    def ft_total(self) -> int:
        return self.ft_home + self.ft_away

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MatchResult":
        """
        Build a MatchResult from a provider payload.

        Accepts the football-data.org shape (``score.fullTime`` /
        ``score.halfTime``) and the odds-feed shape (``scores.current`` /
        ``scores.halftime``).

        Raises:
            InvalidMatchDataError: If the full-time score is missing.
        """
        score = ApiFullScore.model_validate(payload.get("score") or {})
        scores = payload.get("scores") or {}

        full = score.full_time or _api_score(scores.get("current") or scores.get("fulltime"))
        half = score.half_time or _api_score(scores.get("halftime"))

        if full is None or full.home is None or full.away is None:
            raise InvalidMatchDataError("Full-time score missing from payload", field="fullTime")

        corners = _api_score(payload.get("corners")) or ApiScore()

        return cls(
            ft_home=full.home,
            ft_away=full.away,
            ht_home=half.home if half else None,
            ht_away=half.away if half else None,
            home_team=_team_name(payload.get("homeTeam")),
            away_team=_team_name(payload.get("awayTeam")),
            corners_home=corners.home,
            corners_away=corners.away,
            goals=payload.get("goals") or (),
            cards=payload.get("cards") or (),
            player_shots_on_target=payload.get("playerShotsOnTarget") or {},
        )


# =============================================================================
# Provider Payload Models
# =============================================================================

class ApiScore(BaseModel):
    """Score pair from a provider payload."""
    home: Optional[int] = None
    away: Optional[int] = None


class ApiFullScore(BaseModel):
    """football-data.org score object."""
    full_time: Optional[ApiScore] = Field(None, alias="fullTime")
    half_time: Optional[ApiScore] = Field(None, alias="halfTime")

    model_config = {"populate_by_name": True}


def _api_score(data: Optional[dict[str, Any]]) -> Optional[ApiScore]:
    if not data:
        return None
    return ApiScore.model_validate(data)


def _team_name(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        return data.get("name")
    return data


# =============================================================================
# Settlement Outcome
# =============================================================================

class SettlementLeg(BaseModel):
    """One sub-settlement on a single whole or half line."""
    line: Decimal
    stake: Decimal
    result: BetResult
    payout: Decimal

    model_config = {"frozen": True}


class SettlementOutcome(BaseModel):
    """Result of settling one bet against one match result."""
    bet_id: Optional[str] = None
    market_code: MarketCode
    period_scope: PeriodScope = PeriodScope.FULL_TIME
    result: BetResult
    payout: Decimal = Field(ge=0)
    stake: Decimal
    odds: Decimal
    legs: tuple[SettlementLeg, ...] = ()

    model_config = {"frozen": True}

    @property
    def is_split(self) -> bool:
        """True for quarter-line settlements (two half-stake legs)."""
        return len(self.legs) == 2

    @property
    def profit(self) -> Decimal:
        return self.payout - self.stake

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/logging."""
        return {
            "bet_id": self.bet_id,
            "market_code": self.market_code.value,
            "period_scope": self.period_scope.value,
            "result": self.result.value,
            "payout": str(self.payout),
            "stake": str(self.stake),
            "odds": str(self.odds),
            "legs": [
                {
                    "line": str(leg.line),
                    "stake": str(leg.stake),
                    "result": leg.result.value,
                    "payout": str(leg.payout),
                }
                for leg in self.legs
            ],
        }
