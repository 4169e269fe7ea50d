"""
Settlement error kinds.

Every error is terminal for a single settlement call: re-running with the
same inputs reproduces it, so callers decide whether to skip the bet,
alert an operator or wait for corrected upstream data.
"""

from typing import Optional

from src.constants import MarketCode


class SettlementError(Exception):
    """Base exception for settlement errors."""
    pass


class InvalidMatchDataError(SettlementError):
    """Match result is inconsistent or lacks data for the requested scope."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidHandicapError(SettlementError):
    """Handicap/line required but absent, or unparseable."""
    pass


class InvalidSelectionError(SettlementError):
    """Selection label cannot be mapped to a side or direction."""
    pass


class UnsupportedMarketError(SettlementError):
    """No settlement rule exists for the classified market."""
    def __init__(self, market_code: MarketCode, message: Optional[str] = None):
        self.market_code = market_code
        super().__init__(message or f"Market {market_code.value} cannot be settled")


class ClassifierConfigurationError(SettlementError):
    """Market registry is misconfigured (duplicate or tied priorities)."""
    pass
