#!/usr/bin/env python
"""
Settle a file of bets against a finished match.

Reads a JSON list of bets and a JSON match-result payload, settles every
bet and prints the outcomes.

Usage:
    python scripts/settle_bets.py bets.json result.json
    python scripts/settle_bets.py bets.json result.json --workers 8
    python scripts/settle_bets.py bets.json result.json --json
    python scripts/settle_bets.py bets.json result.json --quality
"""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.constants import BetResult
from src.data.quality import QualityReport, check_match_result
from src.settlement import Bet, BatchSettlementResult, MatchResult, SettlementError, settle_batch
from src.utils import quantize_money, setup_logging

console = Console()

RESULT_STYLES = {
    BetResult.WON: "green",
    BetResult.LOST: "red",
    BetResult.PUSH: "yellow",
}


def load_bets(path: Path) -> list[Bet]:
    """Load and validate bets from a JSON list."""
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("bets", [])
    return [Bet.model_validate(item) for item in data]


def load_match_result(path: Path) -> MatchResult:
    """Load a match result from a provider payload."""
    with open(path, "r") as f:
        return MatchResult.from_payload(json.load(f))


def display_batch(result: BatchSettlementResult) -> None:
    """Display settlement outcomes in a table."""
    places = settings.payout_places

    table = Table(title="Settlement Results")
    table.add_column("Bet", style="cyan")
    table.add_column("Market")
    table.add_column("Selection")
    table.add_column("Line", justify="right")
    table.add_column("Stake", justify="right")
    table.add_column("Odds", justify="right")
    table.add_column("Result", justify="center")
    table.add_column("Payout", justify="right")

    for entry in result.entries:
        bet = entry.bet
        line = str(bet.handicap_line) if bet.handicap_line is not None else "-"
        if entry.outcome is None:
            table.add_row(
                bet.id, bet.market_name, bet.selection_label, line,
                str(bet.stake), str(bet.odds),
                f"[red]{entry.error_kind}[/red]", "-",
            )
            continue

        outcome = entry.outcome
        style = RESULT_STYLES[outcome.result]
        label = outcome.result.value + (" (split)" if outcome.is_split else "")
        table.add_row(
            bet.id, outcome.market_code.value, bet.selection_label, line,
            str(bet.stake), str(bet.odds),
            f"[{style}]{label}[/{style}]",
            str(quantize_money(outcome.payout, places)),
        )

    console.print(table)

    status = "[green]ALL SETTLED[/green]" if result.success else "[red]FAILURES[/red]"
    console.print(Panel(
        f"Status: {status}\n"
        f"Settled: {result.settled_count}\n"
        f"Errors: {result.error_count}\n"
        f"Total stake: {quantize_money(result.total_stake, places)}\n"
        f"Total payout: {quantize_money(result.total_payout, places)}",
        title="Batch Summary",
    ))

    for entry in result.failures:
        console.print(f"[red]{entry.bet.id}: {entry.error_kind}: {entry.error}[/red]")


def display_quality_report(report: QualityReport) -> None:
    """Display match data quality issues."""
    status = "[green]HEALTHY[/green]" if report.is_healthy else "[red]ISSUES FOUND[/red]"
    console.print(Panel(
        f"Status: {status}\n"
        f"Errors: {report.error_count}\n"
        f"Warnings: {report.warning_count}",
        title="Match Data Quality",
    ))

    if report.issues:
        table = Table(title="Issues")
        table.add_column("Type", style="cyan")
        table.add_column("Severity")
        table.add_column("Description")

        for issue in report.issues:
            sev_style = {"error": "red", "warning": "yellow"}.get(issue.severity, "dim")
            table.add_row(
                issue.issue_type,
                f"[{sev_style}]{issue.severity}[/{sev_style}]",
                issue.description,
            )

        console.print(table)


def main() -> int:
    parser = argparse.ArgumentParser(description="Settle bets against a finished match")
    parser.add_argument("bets", type=Path, help="JSON file with a list of bets")
    parser.add_argument("result", type=Path, help="JSON file with the match-result payload")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads (default: SETTLEMENT_MAX_WORKERS)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the batch summary and outcomes as JSON",
    )
    parser.add_argument(
        "--quality",
        action="store_true",
        help="Run match data quality checks before settling",
    )

    args = parser.parse_args()
    setup_logging()

    try:
        bets = load_bets(args.bets)
        match_result = load_match_result(args.result)
    except (OSError, json.JSONDecodeError, ValidationError, SettlementError) as e:
        console.print(f"[red]Error loading input: {e}[/red]")
        return 1

    if args.quality:
        display_quality_report(check_match_result(match_result, match_id=args.result.stem))

    result = settle_batch(bets, match_result, max_workers=args.workers)

    if args.json:
        print(json.dumps({
            "summary": result.summary(),
            "outcomes": [o.to_dict() for o in result.outcomes],
        }, indent=2))
    else:
        display_batch(result)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
