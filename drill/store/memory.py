"""
In-memory item store.

Keeps items as property dicts, the same shape an outline or card file
would hold, so every write goes through ItemRecord.to_properties().
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Optional

from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.constants import LEECH_TAG
from drill.errors import ItemStoreError
from drill.item_record import ItemRecord
from drill.store.ports import (
    CheckpointStore,
    ItemContent,
    ItemStore,
    MatrixStore,
    ReviewLogEntry,
)


@dataclass
class StoredItem:
    question: str
    answer: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    scheduled: Optional[date] = None
    tags: set[str] = field(default_factory=set)
    reviewable: bool = True


class InMemoryItemStore(ItemStore, MatrixStore, CheckpointStore):
    """Dict-backed store implementing all three ports."""

    def __init__(self):
        self.items: dict[str, StoredItem] = {}
        self.matrix_rows: list[tuple[int, float, float]] = []
        self.review_log: list[ReviewLogEntry] = []
        self.matrix_saves = 0
        self.checkpoint: Optional[dict] = None

    def add_item(
        self,
        item_ref: str,
        question: str,
        answer: str = "",
        record: Optional[ItemRecord] = None,
        reviewable: bool = True,
        tags: Optional[set[str]] = None
    ) -> None:
        """Add an item, optionally with existing statistics."""
        item = StoredItem(question=question, answer=answer, reviewable=reviewable)
        item.tags = set(tags or ())
        if record is not None:
            item.properties = record.to_properties()
            item.scheduled = record.scheduled_date
            if record.is_leech:
                item.tags.add(LEECH_TAG)
        self.items[item_ref] = item

    def _get(self, item_ref: str) -> StoredItem:
        try:
            return self.items[item_ref]
        except KeyError:
            raise ItemStoreError(item_ref, "unknown item") from None

    # ---- ItemStore ----

    def item_refs(self) -> list[str]:
        return list(self.items)

    def is_reviewable(self, item_ref: str) -> bool:
        return self._get(item_ref).reviewable

    def get_scheduled_date(self, item_ref: str) -> Optional[date]:
        return self._get(item_ref).scheduled

    def read_stats(self, item_ref: str) -> ItemRecord:
        item = self._get(item_ref)
        try:
            return ItemRecord.from_properties(
                item.properties,
                scheduled_date=item.scheduled,
                is_leech=LEECH_TAG in item.tags,
            )
        except ValueError as exc:
            raise ItemStoreError(item_ref, f"corrupt statistics: {exc}") from exc

    def write_stats(self, item_ref: str, record: ItemRecord) -> None:
        self._get(item_ref).properties = record.to_properties()

    def schedule(self, item_ref: str, when: Optional[date]) -> None:
        self._get(item_ref).scheduled = when

    def tag(self, item_ref: str, tag: str, on: bool) -> None:
        tags = self._get(item_ref).tags
        if on:
            tags.add(tag)
        else:
            tags.discard(tag)

    def get_content(self, item_ref: str) -> ItemContent:
        item = self._get(item_ref)
        return ItemContent(
            item_ref=item_ref,
            question=item.question,
            answer=item.answer,
            tags=tuple(sorted(item.tags)),
        )

    def log_review(self, entry: ReviewLogEntry) -> None:
        self.review_log.append(entry)

    def get_review_events(self, since: Optional[datetime] = None) -> list[dict]:
        events = [
            asdict(entry) for entry in self.review_log
            if since is None or entry.timestamp >= since
        ]
        for event in events:
            event["item_id"] = event.pop("item_ref")
        return sorted(events, key=lambda event: event["timestamp"])

    # ---- MatrixStore ----

    def load_matrix(self) -> OptimalFactorMatrix:
        return OptimalFactorMatrix.from_rows(self.matrix_rows)

    def save_matrix(self, matrix: OptimalFactorMatrix) -> None:
        self.matrix_rows = matrix.to_rows()
        self.matrix_saves += 1

    # ---- CheckpointStore ----

    def save_checkpoint(self, payload: dict) -> None:
        self.checkpoint = dict(payload)

    def load_checkpoint(self) -> Optional[dict]:
        return self.checkpoint

    def clear_checkpoint(self) -> None:
        self.checkpoint = None
