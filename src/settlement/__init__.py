"""
Settlement module.

Provides:
- Score extraction by period
- Market classification rule registry
- Asian handicap and quarter-line settlement
- Per-bet orchestration and batch settlement
"""

from src.settlement.errors import (
    SettlementError,
    InvalidMatchDataError,
    InvalidHandicapError,
    InvalidSelectionError,
    UnsupportedMarketError,
    ClassifierConfigurationError,
)
from src.settlement.models import (
    Bet,
    GoalEvent,
    CardEvent,
    MatchResult,
    SettlementLeg,
    SettlementOutcome,
)
from src.settlement.scores import extract
from src.settlement.markets import (
    MARKET_REGISTRY,
    MarketRule,
    Classification,
    classify,
    describe,
    normalize,
    validate_registry,
)
from src.settlement.handicap import (
    is_quarter_line,
    split_quarter_line,
    settle,
    settle_line,
)
from src.settlement.engine import (
    SettlementEngine,
    get_settlement_engine,
    settle_bet,
)
from src.settlement.batch import (
    BatchEntry,
    BatchSettlementResult,
    settle_batch,
)

__all__ = [
    # Errors
    "SettlementError",
    "InvalidMatchDataError",
    "InvalidHandicapError",
    "InvalidSelectionError",
    "UnsupportedMarketError",
    "ClassifierConfigurationError",
    # Models
    "Bet",
    "GoalEvent",
    "CardEvent",
    "MatchResult",
    "SettlementLeg",
    "SettlementOutcome",
    # Scores
    "extract",
    # Markets
    "MARKET_REGISTRY",
    "MarketRule",
    "Classification",
    "classify",
    "describe",
    "normalize",
    "validate_registry",
    # Handicap
    "is_quarter_line",
    "split_quarter_line",
    "settle",
    "settle_line",
    # Engine
    "SettlementEngine",
    "get_settlement_engine",
    "settle_bet",
    # Batch
    "BatchEntry",
    "BatchSettlementResult",
    "settle_batch",
]
