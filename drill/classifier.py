"""
Due Classifier - Bucket assignment for a scan

Decides, for one item and one day, whether the item takes part in a
session and with which urgency.

Normal mode precedence (first match wins):
1. Never scheduled            -> NEW
2. Failed on its last review  -> FAILED
3. Well past its due date     -> OVERDUE
4. Short last interval        -> YOUNG
5. Otherwise                  -> OLD

Items scheduled in the future are DORMANT; non-reviewable items and
skipped leeches are EXCLUDED. Cram mode ignores due dates and puts every
item not reviewed within cram_hours into the single due-now bucket.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from drill.config import DrillConfig
from drill.constants import LeechMethod
from drill.item_record import ItemRecord


class Bucket(str, Enum):
    NEW = "new"
    FAILED = "failed"
    OVERDUE = "overdue"
    YOUNG = "young"
    OLD = "old"
    DORMANT = "dormant"
    EXCLUDED = "excluded"


QUEUED_BUCKETS = (Bucket.NEW, Bucket.FAILED, Bucket.OVERDUE, Bucket.YOUNG, Bucket.OLD)

# Cram mode has one due-now bucket; it is queued with the young items
CRAM_BUCKET = Bucket.YOUNG


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one item."""
    bucket: Bucket
    days_overdue: Optional[int] = None

    @property
    def is_due(self) -> bool:
        return self.bucket in QUEUED_BUCKETS

    @property
    def due_tomorrow(self) -> bool:
        return self.bucket == Bucket.DORMANT and self.days_overdue == -1


def days_overdue(scheduled: Optional[date], today: date) -> int:
    """Whole days between the due date and today; 0 if unscheduled."""
    if scheduled is None:
        return 0
    return today.toordinal() - scheduled.toordinal()


def is_overdue(days_late: int, last_interval: float, overdue_interval_factor: float) -> bool:
    """
    True if an item is late enough to be treated as overdue.

    Formula:
        d > 1 and (d + I + 1) / I > overdue_interval_factor
    with I floored at 1 day. One day late is never overdue.
    """
    if days_late <= 1:
        return False
    interval = max(last_interval, 1.0)
    return (days_late + interval + 1) / interval > overdue_interval_factor


def classify(
    record: ItemRecord,
    today: date,
    config: DrillConfig,
    reviewable: bool = True,
    cram: bool = False,
    now: Optional[datetime] = None
) -> Classification:
    """
    Classify a single item for today's session.

    Args:
        record: Item statistics (scheduled_date and is_leech included)
        today: Session day
        config: Drill options (thresholds, leech method, cram hours)
        reviewable: Whether the document store considers the item drillable
        cram: Use cram-mode due policy
        now: Current time for cram mode (defaults to midnight of today)

    Returns:
        Classification with its bucket and days overdue
    """
    if not reviewable:
        return Classification(Bucket.EXCLUDED)
    if record.is_leech and config.leech_method == LeechMethod.SKIP:
        return Classification(Bucket.EXCLUDED)

    if cram:
        if now is None:
            now = datetime.combine(today, datetime.min.time())
        hours = record.hours_since_review(now)
        if hours is None or hours >= config.cram_hours:
            return Classification(CRAM_BUCKET, days_overdue=0)
        return Classification(Bucket.DORMANT)

    days_late = days_overdue(record.scheduled_date, today)
    if days_late < 0:
        return Classification(Bucket.DORMANT, days_overdue=days_late)

    if record.scheduled_date is None:
        bucket = Bucket.NEW
    elif record.last_quality is not None and record.last_quality <= config.failure_quality:
        bucket = Bucket.FAILED
    elif is_overdue(days_late, record.last_interval, config.overdue_interval_factor):
        bucket = Bucket.OVERDUE
    elif record.last_interval <= config.days_before_old:
        bucket = Bucket.YOUNG
    else:
        bucket = Bucket.OLD
    return Classification(bucket, days_overdue=days_late)


@dataclass
class ScanTally:
    """
    Counters accumulated while scanning.

    Every scanned, non-excluded item lands in exactly one of the queued
    buckets or dormant, so the counts always add up to `scanned`.
    """
    counts: dict[Bucket, int] = field(default_factory=lambda: {b: 0 for b in Bucket})
    due_tomorrow: int = 0

    def add(self, classification: Classification) -> None:
        self.counts[classification.bucket] += 1
        if classification.due_tomorrow:
            self.due_tomorrow += 1

    @property
    def scanned(self) -> int:
        return sum(n for bucket, n in self.counts.items() if bucket != Bucket.EXCLUDED)

    @property
    def dormant(self) -> int:
        return self.counts[Bucket.DORMANT]

    @property
    def overdue(self) -> int:
        return self.counts[Bucket.OVERDUE]

    @property
    def excluded(self) -> int:
        return self.counts[Bucket.EXCLUDED]

    @property
    def due(self) -> int:
        return sum(self.counts[b] for b in QUEUED_BUCKETS)

    def to_dict(self) -> dict:
        return {
            "counts": {bucket.value: n for bucket, n in self.counts.items()},
            "due_tomorrow": self.due_tomorrow,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScanTally":
        tally = cls(due_tomorrow=int(data.get("due_tomorrow", 0)))
        for name, n in data.get("counts", {}).items():
            tally.counts[Bucket(name)] = int(n)
        return tally
