"""Validation for candidate leaderboard entries"""
from typing import List

from src.base import (
    BaseValidator,
    LeaderboardEntry,
    ValidationIssue,
    RUN_TYPES,
    LEADERBOARD_TYPES,
)
from src.utils.time_codec import validate_time_format, validate_date_format

CRITICAL = 'critical'
WARNING = 'warning'

# Placeholder accepted for an unknown co-op partner
UNKNOWN_PLAYER = "Unknown"


class RunValidator(BaseValidator):
    """Validate a mapped entry before it is written.

    Critical issues block the write; warnings are logged by the caller and the
    entry is still imported (the external names are kept for display).
    """

    def validate(self, data: LeaderboardEntry) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []

        # Required fields
        if not (data.player_name or "").strip():
            issues.append(ValidationIssue(CRITICAL, "Missing player name"))

        if not data.time:
            issues.append(ValidationIssue(CRITICAL, "Missing time"))
        elif not validate_time_format(data.time):
            issues.append(ValidationIssue(CRITICAL, f"Invalid time format: {data.time} (expected HH:MM:SS)"))

        if not data.date:
            issues.append(ValidationIssue(CRITICAL, "Missing date"))
        elif not validate_date_format(data.date):
            issues.append(ValidationIssue(CRITICAL, f"Invalid date format: {data.date} (expected YYYY-MM-DD)"))

        if data.run_type == 'co-op':
            player2 = (data.player2_name or "").strip()
            if not player2:
                issues.append(ValidationIssue(CRITICAL, "Co-op run missing player 2 name"))

        # Taxonomy
        if not data.category:
            issues.append(ValidationIssue(
                WARNING, f"Category not mapped (external: {data.external_category_name or 'unknown'})"
            ))
        if not data.platform:
            issues.append(ValidationIssue(
                WARNING, f"Platform not mapped (external: {data.external_platform_name or 'unknown'})"
            ))
        if data.leaderboard_type in ('individual-level', 'community-golds') and not data.level:
            issues.append(ValidationIssue(
                WARNING, f"Level not mapped (external: {data.external_level_name or 'unknown'})"
            ))

        # Enums
        if data.run_type not in RUN_TYPES:
            issues.append(ValidationIssue(WARNING, f"Invalid run type: {data.run_type}"))
        if data.leaderboard_type not in LEADERBOARD_TYPES:
            issues.append(ValidationIssue(WARNING, f"Invalid leaderboard type: {data.leaderboard_type}"))

        return issues


def critical_issues(issues: List[ValidationIssue]) -> List[ValidationIssue]:
    return [issue for issue in issues if issue.is_critical]


def warning_issues(issues: List[ValidationIssue]) -> List[ValidationIssue]:
    return [issue for issue in issues if not issue.is_critical]
