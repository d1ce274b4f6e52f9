"""
Item Record - Persisted per-item review statistics

Defines the statistics kept for every reviewable item and their stable
property names in the document store.

Key concepts:
- Interval: days between the last review and the next due date
- Repeats since fail: successful repetitions since the last failure
- Ease: algorithm-specific growth factor (EF for SM2/SM5, AF for Simple8)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Mapping, Optional

from drill.constants import MAX_QUALITY, MIN_QUALITY
from drill.errors import InvalidInput


# ---- Persisted property names ----

PROP_LAST_INTERVAL = "DRILL_LAST_INTERVAL"
PROP_REPEATS_SINCE_FAIL = "DRILL_REPEATS_SINCE_FAIL"
PROP_TOTAL_REPEATS = "DRILL_TOTAL_REPEATS"
PROP_FAILURE_COUNT = "DRILL_FAILURE_COUNT"
PROP_AVERAGE_QUALITY = "DRILL_AVERAGE_QUALITY"
PROP_EASE = "DRILL_EASE"
PROP_LAST_QUALITY = "DRILL_LAST_QUALITY"
PROP_LAST_REVIEWED = "DRILL_LAST_REVIEWED"

STAT_PROPERTIES = (
    PROP_LAST_INTERVAL,
    PROP_REPEATS_SINCE_FAIL,
    PROP_TOTAL_REPEATS,
    PROP_FAILURE_COUNT,
    PROP_AVERAGE_QUALITY,
    PROP_EASE,
    PROP_LAST_QUALITY,
    PROP_LAST_REVIEWED,
)


@dataclass
class ItemRecord:
    """
    Review statistics for a single item.

    A virgin item has all counters at 0 and no ease or average quality.
    scheduled_date of None means the item has never been scheduled.
    """
    last_interval: float = 0.0
    repeats_since_fail: int = 0
    total_repeats: int = 0
    failure_count: int = 0
    average_quality: Optional[float] = None
    ease: Optional[float] = None
    last_quality: Optional[int] = None
    last_reviewed: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    is_leech: bool = field(default=False)

    @property
    def is_new(self) -> bool:
        """True if the item was never scheduled nor reviewed."""
        return (
            self.scheduled_date is None
            and self.last_reviewed is None
            and self.total_repeats == 0
        )

    def validate(self) -> "ItemRecord":
        """Raise InvalidInput if any counter is out of range."""
        if self.repeats_since_fail < 0:
            raise InvalidInput(f"repeats_since_fail must be >= 0, got {self.repeats_since_fail}")
        if self.total_repeats < 0:
            raise InvalidInput(f"total_repeats must be >= 0, got {self.total_repeats}")
        if self.failure_count < 0:
            raise InvalidInput(f"failure_count must be >= 0, got {self.failure_count}")
        if self.last_interval < 0:
            raise InvalidInput(f"last_interval must be >= 0, got {self.last_interval}")
        if self.last_quality is not None and not MIN_QUALITY <= self.last_quality <= MAX_QUALITY:
            raise InvalidInput(f"last_quality must be in 0-5, got {self.last_quality}")
        return self

    def hours_since_review(self, now: datetime) -> Optional[float]:
        """Hours elapsed since the last review, or None if never reviewed."""
        if self.last_reviewed is None:
            return None
        return (now - self.last_reviewed).total_seconds() / 3600.0

    def copy(self, **changes) -> "ItemRecord":
        return replace(self, **changes)

    # ---- Property serialization ----

    def to_properties(self) -> dict[str, str]:
        """
        Render the statistics as document-store properties.

        Absent values are omitted rather than written as empty strings.
        """
        props = {
            PROP_LAST_INTERVAL: f"{self.last_interval:.4f}",
            PROP_REPEATS_SINCE_FAIL: str(self.repeats_since_fail),
            PROP_TOTAL_REPEATS: str(self.total_repeats),
            PROP_FAILURE_COUNT: str(self.failure_count),
        }
        if self.average_quality is not None:
            props[PROP_AVERAGE_QUALITY] = f"{self.average_quality:.3f}"
        if self.ease is not None:
            props[PROP_EASE] = f"{self.ease:.3f}"
        if self.last_quality is not None:
            props[PROP_LAST_QUALITY] = str(self.last_quality)
        if self.last_reviewed is not None:
            props[PROP_LAST_REVIEWED] = self.last_reviewed.isoformat()
        return props

    @classmethod
    def from_properties(
        cls,
        props: Mapping[str, str],
        scheduled_date: Optional[date] = None,
        is_leech: bool = False
    ) -> "ItemRecord":
        """
        Parse document-store properties back into a record.

        Missing counters default to 0 so an item without statistics reads
        as a virgin record.
        """
        def _get(name: str) -> Optional[str]:
            value = props.get(name)
            if value is None or str(value).strip() == "":
                return None
            return str(value).strip()

        def _float(name: str) -> Optional[float]:
            raw = _get(name)
            return float(raw) if raw is not None else None

        def _int(name: str) -> Optional[int]:
            raw = _get(name)
            return int(float(raw)) if raw is not None else None

        last_reviewed_raw = _get(PROP_LAST_REVIEWED)
        record = cls(
            last_interval=_float(PROP_LAST_INTERVAL) or 0.0,
            repeats_since_fail=_int(PROP_REPEATS_SINCE_FAIL) or 0,
            total_repeats=_int(PROP_TOTAL_REPEATS) or 0,
            failure_count=_int(PROP_FAILURE_COUNT) or 0,
            average_quality=_float(PROP_AVERAGE_QUALITY),
            ease=_float(PROP_EASE),
            last_quality=_int(PROP_LAST_QUALITY),
            last_reviewed=(
                datetime.fromisoformat(last_reviewed_raw) if last_reviewed_raw else None
            ),
            scheduled_date=scheduled_date,
            is_leech=is_leech,
        )
        return record.validate()


def new_item_record() -> ItemRecord:
    """Initialize statistics for an item scanned for the first time."""
    return ItemRecord()
