"""
Data quality checks for match results.

Validates:
- Score consistency (HT <= FT)
- Missing half-time data
- Goal events agreeing with the final score
- Missing corner counts

Checks only report. Settlement itself raises InvalidMatchDataError when a
market needs data that fails these checks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.settlement.models import MatchResult
from src.utils import get_logger

logger = get_logger("data.quality")


@dataclass
class QualityIssue:
    """Represents a data quality issue."""
    issue_type: str
    severity: str  # "error", "warning", "info"
    match_id: Optional[str]
    description: str
    details: Optional[dict] = None


@dataclass
class QualityReport:
    """Summary of data quality check results."""
    checked_at: datetime
    match_id: Optional[str]
    issues: list[QualityIssue] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == "warning")

    @property
    def is_healthy(self) -> bool:
        return self.error_count == 0


class MatchResultQualityChecker:
    """
    Runs data quality checks on one match result.
    """

    def __init__(self, match_result: MatchResult, match_id: Optional[str] = None):
        self.match_result = match_result
        self.match_id = match_id

    def check_score_consistency(self) -> list[QualityIssue]:
        """Check that HT scores don't exceed FT scores."""
        r = self.match_result
        if not r.has_half_time:
            return []
        if r.ht_home <= r.ft_home and r.ht_away <= r.ft_away:
            return []
        return [QualityIssue(
            issue_type="score_consistency",
            severity="error",
            match_id=self.match_id,
            description="HT score exceeds FT score",
            details={
                "ht_home": r.ht_home,
                "ht_away": r.ht_away,
                "ft_home": r.ft_home,
                "ft_away": r.ft_away,
            },
        )]

    def check_missing_ht_score(self) -> list[QualityIssue]:
        """Half-time markets cannot settle without HT scores."""
        if self.match_result.has_half_time:
            return []
        return [QualityIssue(
            issue_type="missing_ht_score",
            severity="warning",
            match_id=self.match_id,
            description="Missing HT score",
        )]

    def check_goal_events(self) -> list[QualityIssue]:
        """Check goal events add up to the full-time score."""
        r = self.match_result
        if not r.goals:
            return []
        home = sum(1 for g in r.goals if g.is_home)
        away = len(r.goals) - home
        if (home, away) == (r.ft_home, r.ft_away):
            return []
        return [QualityIssue(
            issue_type="goal_events_mismatch",
            severity="warning",
            match_id=self.match_id,
            description="Goal events do not match FT score",
            details={
                "events_home": home,
                "events_away": away,
                "ft_home": r.ft_home,
                "ft_away": r.ft_away,
            },
        )]

    def check_corners(self) -> list[QualityIssue]:
        """Corner markets cannot settle without corner counts."""
        r = self.match_result
        if r.corners_home is not None and r.corners_away is not None:
            return []
        return [QualityIssue(
            issue_type="missing_corners",
            severity="info",
            match_id=self.match_id,
            description="Missing corner counts",
        )]

    def run_all_checks(self) -> QualityReport:
        """Run all quality checks and return report."""
        issues: list[QualityIssue] = []
        issues.extend(self.check_score_consistency())
        issues.extend(self.check_missing_ht_score())
        issues.extend(self.check_goal_events())
        issues.extend(self.check_corners())

        report = QualityReport(
            checked_at=datetime.now(),
            match_id=self.match_id,
            issues=issues,
        )
        if not report.is_healthy:
            logger.warning(f"Match {self.match_id}: {report.error_count} data quality errors")
        return report


def check_match_result(match_result: MatchResult, match_id: Optional[str] = None) -> QualityReport:
    """Convenience function to run all quality checks."""
    return MatchResultQualityChecker(match_result, match_id).run_all_checks()
