"""
Session Report - End-of-session statistics

Summarises the ratings given during a session and checks the pass rate
against the configured forgetting index.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from drill.constants import MAX_QUALITY, MIN_QUALITY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionReport:
    """
    Outcome of one session (finished, aborted or suspended).

    quality_counts has one entry per rating 0-5.
    """
    status: str
    quality_counts: dict[int, int]
    failure_quality: int
    forgetting_index: float
    elapsed_seconds: float = 0.0
    done: int = 0
    remaining: int = 0
    dormant: int = 0
    due_tomorrow: int = 0
    overdue_at_start: int = 0
    message: Optional[str] = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def reviewed(self) -> int:
        return sum(self.quality_counts.values())

    @property
    def passed(self) -> int:
        return sum(
            n for quality, n in self.quality_counts.items()
            if quality > self.failure_quality
        )

    @property
    def pass_percentage(self) -> Optional[float]:
        """Share of ratings above the failure threshold, None if nothing was rated."""
        if self.reviewed == 0:
            return None
        return 100.0 * self.passed / self.reviewed

    @property
    def forgetting_index_breached(self) -> bool:
        pass_pct = self.pass_percentage
        return pass_pct is not None and pass_pct < 100 - self.forgetting_index

    def summary_lines(self) -> list[str]:
        """Plain-text summary for the presenter."""
        if self.message:
            lines = [self.message]
        else:
            lines = [f"Session {self.status}: {self.reviewed} reviews, {self.done} items done."]
        if self.reviewed:
            counts = ", ".join(
                f"{quality}: {self.quality_counts.get(quality, 0)}"
                for quality in range(MIN_QUALITY, MAX_QUALITY + 1)
            )
            lines.append(f"Ratings - {counts}")
            lines.append(f"Recall: {self.pass_percentage:.1f}%")
        if self.remaining:
            lines.append(f"{self.remaining} items still pending.")
        if self.overdue_at_start:
            lines.append(f"{self.overdue_at_start} items were overdue at the start of the session.")
        lines.append(f"{self.dormant} items are not yet due ({self.due_tomorrow} due tomorrow).")
        if self.forgetting_index_breached:
            lines.append(
                f"Warning: recall below {100 - self.forgetting_index:.0f}%. "
                "Consider shorter sessions or a lower learn fraction."
            )
        lines.extend(f"Error: {error}" for error in self.errors)
        return lines


def tally_qualities(qualities: list[int]) -> dict[int, int]:
    counts = {quality: 0 for quality in range(MIN_QUALITY, MAX_QUALITY + 1)}
    for quality in qualities:
        counts[quality] += 1
    return counts


def build_report(
    status: str,
    qualities: list[int],
    failure_quality: int,
    forgetting_index: float,
    **details
) -> SessionReport:
    """
    Build the report and log a warning if the forgetting index is breached.

    Args:
        status: Terminal state name
        qualities: Every rating given this session, in order
        failure_quality: Ratings at or below this count as failures
        forgetting_index: Acceptable forgetting percentage
        **details: Remaining SessionReport fields

    Returns:
        SessionReport
    """
    report = SessionReport(
        status=status,
        quality_counts=tally_qualities(qualities),
        failure_quality=failure_quality,
        forgetting_index=forgetting_index,
        **details,
    )
    if report.forgetting_index_breached:
        logger.warning(
            "Recall %.1f%% is below the %.0f%% target",
            report.pass_percentage,
            100 - forgetting_index,
        )
    return report
