"""
Batch settlement.

Settles every pending bet of a finished match:
    fan out settle_bet over a thread pool → fan in entries in input order

Per-bet errors are recorded next to the bet they belong to. They are
never turned into outcomes; the caller decides what to do with them.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from src.config import settings
from src.settlement.engine import SettlementEngine, get_settlement_engine
from src.settlement.errors import SettlementError
from src.settlement.models import Bet, MatchResult, SettlementOutcome
from src.utils import LogContext, get_logger

logger = get_logger("settlement.batch")


@dataclass(frozen=True)
class BatchEntry:
    """Settlement of one bet within a batch."""
    bet: Bet
    outcome: Optional[SettlementOutcome] = None
    error: Optional[SettlementError] = None

    @property
    def success(self) -> bool:
        return self.outcome is not None

    @property
    def error_kind(self) -> Optional[str]:
        return type(self.error).__name__ if self.error is not None else None


@dataclass
class BatchSettlementResult:
    """Result from settling a batch of bets."""
    started_at: datetime
    completed_at: Optional[datetime] = None
    entries: list[BatchEntry] = field(default_factory=list)

    @property
    def outcomes(self) -> list[SettlementOutcome]:
        return [e.outcome for e in self.entries if e.outcome is not None]

    @property
    def failures(self) -> list[BatchEntry]:
        return [e for e in self.entries if not e.success]

    @property
    def settled_count(self) -> int:
        return len(self.outcomes)

    @property
    def error_count(self) -> int:
        return len(self.failures)

    @property
    def success(self) -> bool:
        return self.error_count == 0

    @property
    def total_stake(self) -> Decimal:
        return sum((o.stake for o in self.outcomes), Decimal(0))

    @property
    def total_payout(self) -> Decimal:
        return sum((o.payout for o in self.outcomes), Decimal(0))

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "settled": self.settled_count,
            "errors": self.error_count,
            "total_stake": str(self.total_stake),
            "total_payout": str(self.total_payout),
            "duration_seconds": self.duration_seconds,
            "failures": [
                {
                    "bet_id": e.bet.id,
                    "error": e.error_kind,
                    "message": str(e.error),
                }
                for e in self.failures
            ],
        }


def _settle_one(engine: SettlementEngine, bet: Bet, match_result: MatchResult) -> BatchEntry:
    try:
        return BatchEntry(bet=bet, outcome=engine.settle(bet, match_result))
    except SettlementError as e:
        with LogContext(bet_id=bet.id):
            logger.warning(f"Could not settle bet {bet.id}: {type(e).__name__}: {e}")
        return BatchEntry(bet=bet, error=e)


def settle_batch(
    bets: Iterable[Bet],
    match_result: MatchResult,
    max_workers: Optional[int] = None,
    engine: Optional[SettlementEngine] = None,
) -> BatchSettlementResult:
    """
    Settle many bets against one finished match.

    Args:
        bets: Bets to settle
        match_result: Finished match shared by all bets
        max_workers: Thread pool size (defaults to config)
        engine: Engine to use (defaults to the shared engine)

    Returns:
        BatchSettlementResult with one entry per bet, in input order

    Only SettlementError is captured per bet; anything else is a bug and
    propagates.
    """
    engine = engine or get_settlement_engine()
    max_workers = max_workers or settings.settlement_max_workers
    bets = list(bets)

    result = BatchSettlementResult(started_at=datetime.now())
    logger.info(f"Settling {len(bets)} bets with {max_workers} workers")

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(_settle_one, engine, bet, match_result) for bet in bets]
        result.entries = [future.result() for future in futures]

    result.completed_at = datetime.now()
    logger.info(
        f"Settled {result.settled_count}/{len(bets)} bets "
        f"({result.error_count} errors), total payout {result.total_payout}"
    )
    return result
