"""
Session Queue - Six-bucket priority queue for one drill session

Pop order (strict precedence):
1. failed_prior        - items failed in an earlier session
2. overdue             - items well past their due date
3. young_mature        - items with short intervals
4. new + old_mature    - pooled; new picked with probability |new| / (|new| + |old|)
5. failed_this_session - drained last, and even after session limits are hit

Buckets 1-4 are frozen once a session limit is reached. Every pick within
a bucket is uniform over its current contents.
"""

from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Optional, TypeVar

from drill.classifier import Bucket
from drill.errors import EmptyQueue


T = TypeVar("T")

BUCKET_TO_QUEUE = {
    Bucket.FAILED: "failed_prior",
    Bucket.OVERDUE: "overdue",
    Bucket.YOUNG: "young_mature",
    Bucket.NEW: "new",
    Bucket.OLD: "old_mature",
}

QUEUE_NAMES = (
    "failed_prior",
    "overdue",
    "young_mature",
    "new",
    "old_mature",
    "failed_this_session",
)


def pop_random(items: list[T], rng: random.Random) -> T:
    """
    Remove and return a uniformly chosen element.

    Swap-remove: the last element takes the chosen slot, so order inside
    the list is not preserved.
    """
    if not items:
        raise EmptyQueue("pop from an empty bucket")
    index = rng.randrange(len(items))
    items[index], items[-1] = items[-1], items[index]
    return items.pop()


@dataclass
class SessionQueue:
    """
    Launch-scoped queue state for a session.

    Holds item references (document-store ids), never item records.
    """
    failed_prior: list[str] = field(default_factory=list)
    overdue: list[str] = field(default_factory=list)
    young_mature: list[str] = field(default_factory=list)
    new: list[str] = field(default_factory=list)
    old_mature: list[str] = field(default_factory=list)
    failed_this_session: list[str] = field(default_factory=list)
    done: int = 0

    def add(self, item_ref: str, bucket: Bucket) -> None:
        """Place a classified item in its queue; dormant/excluded are ignored."""
        name = BUCKET_TO_QUEUE.get(bucket)
        if name is not None:
            getattr(self, name).append(item_ref)

    def push_failed(self, item_ref: str) -> None:
        self.failed_this_session.append(item_ref)

    def discard(self, item_ref: str) -> None:
        """Remove every occurrence of an item from all queues."""
        for name in QUEUE_NAMES:
            bucket = getattr(self, name)
            bucket[:] = [ref for ref in bucket if ref != item_ref]

    # ---- Queries ----

    def regular_pending(self) -> bool:
        """True while any of buckets 1-4 has items."""
        return bool(
            self.failed_prior or self.overdue or self.young_mature
            or self.new or self.old_mature
        )

    def pending(self, limits_reached: bool = False) -> bool:
        """
        True while something may still be popped.

        Failed-this-session items are always poppable; the others only
        while no session limit has been reached.
        """
        if self.failed_this_session:
            return True
        return self.regular_pending() and not limits_reached

    def counts(self) -> dict[str, int]:
        return {name: len(getattr(self, name)) for name in QUEUE_NAMES}

    def total(self) -> int:
        return sum(self.counts().values())

    # ---- Popping ----

    def pop(self, rng: random.Random, limits_reached: bool = False) -> str:
        """
        Pop the next item according to the bucket precedence.

        Raises:
            EmptyQueue: nothing may be popped (pending() was False)
        """
        if not limits_reached:
            for bucket in (self.failed_prior, self.overdue, self.young_mature):
                if bucket:
                    return pop_random(bucket, rng)

            pooled = len(self.new) + len(self.old_mature)
            if pooled:
                if rng.random() < len(self.new) / pooled:
                    return pop_random(self.new, rng)
                return pop_random(self.old_mature, rng)

        if self.failed_this_session:
            return pop_random(self.failed_this_session, rng)

        raise EmptyQueue("no poppable items left in the session queue")

    def pop_next(self, rng: random.Random, limits_reached: bool = False) -> Optional[str]:
        """Like pop(), but returns None instead of raising when exhausted."""
        if not self.pending(limits_reached):
            return None
        return self.pop(rng, limits_reached)

    # ---- Serialization ----

    def to_dict(self) -> dict:
        data = {name: list(getattr(self, name)) for name in QUEUE_NAMES}
        data["done"] = self.done
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SessionQueue":
        return cls(
            **{name: list(data.get(name, [])) for name in QUEUE_NAMES},
            done=int(data.get("done", 0)),
        )
