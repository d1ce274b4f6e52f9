"""
Ports (interfaces) for item, matrix and checkpoint storage.

The scheduling engine only talks to these abstractions. Implementations:
    - InMemoryItemStore: dict-backed, used by tests and demos
    - SqlItemStore: SQLAlchemy tables (items, review events, OF matrix)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.item_record import ItemRecord


@dataclass(frozen=True)
class ItemContent:
    """What the presenter shows for an item."""
    item_ref: str
    question: str
    answer: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReviewLogEntry:
    """One rated review, as appended to the review log."""
    item_ref: str
    timestamp: datetime
    quality: int
    algorithm: str
    failed: bool
    interval_before: float
    interval_after: float
    ease_before: Optional[float]
    ease_after: Optional[float]
    session_id: Optional[str] = None
    session_position: Optional[int] = None


class ItemStore(ABC):
    """
    Port for reading and writing reviewable items.

    read_stats returns the full record, including scheduled_date and the
    leech flag; write_stats persists only the statistics fields. The due
    date and tags are changed through schedule() and tag().
    """

    @abstractmethod
    def item_refs(self) -> list[str]:
        """All candidate item references, in document order."""

    @abstractmethod
    def is_reviewable(self, item_ref: str) -> bool:
        pass

    @abstractmethod
    def get_scheduled_date(self, item_ref: str) -> Optional[date]:
        pass

    @abstractmethod
    def read_stats(self, item_ref: str) -> ItemRecord:
        """Raises ItemStoreError when the stored statistics cannot be parsed."""

    @abstractmethod
    def write_stats(self, item_ref: str, record: ItemRecord) -> None:
        pass

    @abstractmethod
    def schedule(self, item_ref: str, when: Optional[date]) -> None:
        """Set the due date, or clear it with None."""

    @abstractmethod
    def tag(self, item_ref: str, tag: str, on: bool) -> None:
        pass

    @abstractmethod
    def get_content(self, item_ref: str) -> ItemContent:
        pass

    def log_review(self, entry: ReviewLogEntry) -> None:
        """Append to the review log; stores without a log ignore it."""
        return None

    def get_review_events(self, since: Optional[datetime] = None) -> list[dict]:
        """Logged reviews as dicts, oldest first; empty for stores without a log."""
        return []


class MatrixStore(ABC):
    """Port for persisting the SM5 optimal-factor matrix between sessions."""

    @abstractmethod
    def load_matrix(self) -> OptimalFactorMatrix:
        pass

    @abstractmethod
    def save_matrix(self, matrix: OptimalFactorMatrix) -> None:
        pass


class CheckpointStore(ABC):
    """Port for keeping a suspended session's checkpoint across restarts."""

    @abstractmethod
    def save_checkpoint(self, payload: dict) -> None:
        pass

    @abstractmethod
    def load_checkpoint(self) -> Optional[dict]:
        pass

    @abstractmethod
    def clear_checkpoint(self) -> None:
        pass
