"""
Session Controller - Drill session lifecycle

State machine:
    IDLE -> SCANNING -> REVIEWING -> FINISHED | SUSPENDED | ABORTED

Main workflow:
1. start(): resolve the algorithm, classify every item into the queue
2. next_item(): pop the next item (or return the in-flight one on resume)
3. submit(response): reschedule on a quality, or quit / edit / skip
4. The session finishes when nothing is pending; SM5 saves its matrix

Event-driven UIs call next_item()/submit() themselves; blocking UIs pass
a Presenter to run().
"""

from __future__ import annotations
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Protocol, Union

from drill.algorithms import (
    OptimalFactorMatrix,
    ReviewContext,
    SchedulingAlgorithm,
    apply_result,
    get_algorithm,
)
from drill.classifier import ScanTally, classify, days_overdue
from drill.config import DrillConfig
from drill.constants import LEECH_TAG, LeechMethod, MAX_QUALITY, MIN_QUALITY
from drill.errors import InvalidInput, ItemStoreError, SessionStateError
from drill.item_record import ItemRecord, new_item_record
from drill.report import SessionReport, build_report
from drill.session_queue import QUEUE_NAMES, SessionQueue
from drill.store.ports import (
    CheckpointStore,
    ItemContent,
    ItemStore,
    MatrixStore,
    ReviewLogEntry,
)

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    REVIEWING = "reviewing"
    FINISHED = "finished"
    SUSPENDED = "suspended"
    ABORTED = "aborted"


class Action(str, Enum):
    """Non-rating responses from the presenter."""
    QUIT = "quit"
    EDIT = "edit"
    SKIP = "skip"


Response = Union[int, Action]


def parse_response(raw: Union[int, str, Action]) -> Response:
    """
    Normalise presenter input to a quality or an Action.

    Accepts ints, digit strings and action names ("q"/"e"/"s" too).
    """
    if isinstance(raw, Action):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        for action in Action:
            if text in (action.value, action.value[0]):
                return action
        if text.isdigit():
            raw = int(text)
        else:
            raise InvalidInput(f"Unrecognised response: {raw!r}")
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidInput(f"Unrecognised response: {raw!r}")
    if not MIN_QUALITY <= raw <= MAX_QUALITY:
        raise InvalidInput(f"quality must be in {MIN_QUALITY}-{MAX_QUALITY}, got {raw}")
    return raw


def is_leech(failure_count: int, threshold: Optional[int]) -> bool:
    """An item becomes a leech once its failures exceed the threshold."""
    return threshold is not None and failure_count > threshold


@dataclass
class SessionState:
    """
    Everything a live session owns.

    Serializable so a suspended session can be resumed later.
    """
    queue: SessionQueue
    started_at: datetime
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    cram: bool = False
    current: Optional[str] = None
    qualities: list[int] = field(default_factory=list)
    tally: ScanTally = field(default_factory=ScanTally)
    errors: list[str] = field(default_factory=list)
    elapsed_before_resume: float = 0.0

    def to_dict(self) -> dict:
        return {
            "queue": self.queue.to_dict(),
            "started_at": self.started_at.isoformat(),
            "session_id": self.session_id,
            "cram": self.cram,
            "current": self.current,
            "qualities": list(self.qualities),
            "tally": self.tally.to_dict(),
            "errors": list(self.errors),
            "elapsed_before_resume": self.elapsed_before_resume,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        return cls(
            queue=SessionQueue.from_dict(data["queue"]),
            started_at=datetime.fromisoformat(data["started_at"]),
            session_id=data["session_id"],
            cram=bool(data.get("cram", False)),
            current=data.get("current"),
            qualities=[int(q) for q in data.get("qualities", [])],
            tally=ScanTally.from_dict(data.get("tally", {})),
            errors=list(data.get("errors", [])),
            elapsed_before_resume=float(data.get("elapsed_before_resume", 0.0)),
        )


@dataclass(frozen=True)
class SessionCheckpoint:
    """A suspended session: the item being edited plus the session state."""
    in_flight: Optional[str]
    state: SessionState
    matrix: Optional[OptimalFactorMatrix] = None

    def to_dict(self) -> dict:
        return {
            "in_flight": self.in_flight,
            "state": self.state.to_dict(),
            "matrix": self.matrix.to_dict() if self.matrix is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionCheckpoint":
        matrix = data.get("matrix")
        return cls(
            in_flight=data.get("in_flight"),
            state=SessionState.from_dict(data["state"]),
            matrix=OptimalFactorMatrix.from_dict(matrix) if matrix is not None else None,
        )


@dataclass(frozen=True)
class SessionCounters:
    """Live progress counters for display."""
    done: int
    failed: int
    reviewed: int
    pending: dict[str, int]
    elapsed_seconds: float
    limits_reached: bool

    @property
    def remaining(self) -> int:
        return sum(self.pending.values())


@dataclass(frozen=True)
class ItemView:
    """What the presenter receives for one item."""
    item_ref: str
    content: ItemContent
    record: ItemRecord
    leech_warning: bool
    counters: SessionCounters


class Presenter(Protocol):
    """Protocol for blocking UIs driven by SessionController.run()."""

    def present_item(self, view: ItemView) -> Response:
        """Show the item and return a quality 0-5 or an Action."""
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    """
    Runs one drill session at a time over an item store.

    Args:
        store: Document store (may also implement MatrixStore / CheckpointStore)
        config: Drill options (defaults if omitted)
        rng: Random source for queue picks and interval noise
        clock: Callable returning the current datetime
    """

    def __init__(
        self,
        store: ItemStore,
        config: Optional[DrillConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.config = (config or DrillConfig()).validate()
        self.rng = rng or random.Random()
        self._clock = clock or _utc_now
        self.status = SessionStatus.IDLE
        self.state: Optional[SessionState] = None
        self.algorithm: Optional[SchedulingAlgorithm] = None
        self.matrix: Optional[OptimalFactorMatrix] = None
        self.checkpoint: Optional[SessionCheckpoint] = None
        self.report: Optional[SessionReport] = None
        self.resuming = False

    # ---- Lifecycle ----

    def start(self, cram: bool = False) -> SessionStatus:
        """
        Scan the store and begin reviewing.

        Raises:
            UnknownAlgorithm: configured algorithm cannot be resolved
            SessionStateError: a session is live or a suspended one exists
        """
        self._ensure_not_live()
        algorithm = get_algorithm(self.config.algorithm)
        if self.suspended_checkpoint() is not None:
            raise SessionStateError(
                "A suspended session exists; resume() it or discard_suspended() first"
            )

        self.algorithm = algorithm
        self.report = None
        self.resuming = False
        self.status = SessionStatus.SCANNING
        now = self._clock()
        self.state = SessionState(queue=SessionQueue(), started_at=now, cram=cram)
        self._scan(now)
        self.matrix = self._load_matrix() if algorithm.uses_matrix else None

        counts = self.state.queue.counts()
        logger.info(
            "Scanned %d items: %s, %d dormant, %d due tomorrow",
            self.state.tally.scanned,
            ", ".join(f"{n} {name}" for name, n in counts.items() if n),
            self.state.tally.dormant,
            self.state.tally.due_tomorrow,
        )

        if self.state.queue.total() == 0:
            self._finish(SessionStatus.FINISHED, message="Nothing to review.")
        else:
            self.status = SessionStatus.REVIEWING
        return self.status

    def resume(self, checkpoint: Optional[SessionCheckpoint] = None) -> SessionStatus:
        """
        Re-enter REVIEWING from a checkpoint, presenting the in-flight item first.

        Uses, in order: the given checkpoint, the one held in memory, the
        one saved in the store.
        """
        self._ensure_not_live()
        algorithm = get_algorithm(self.config.algorithm)
        checkpoint = checkpoint or self.suspended_checkpoint()
        if checkpoint is None:
            raise SessionStateError("No suspended session to resume")

        self.algorithm = algorithm
        self.report = None
        self.state = checkpoint.state
        self.state.current = checkpoint.in_flight
        self.state.started_at = self._clock()
        if algorithm.uses_matrix:
            self.matrix = checkpoint.matrix.copy() if checkpoint.matrix is not None else self._load_matrix()
        else:
            self.matrix = None
        self._drop_checkpoint()
        self.resuming = True
        self.status = SessionStatus.REVIEWING
        logger.info("Resumed session %s at %s", self.state.session_id, checkpoint.in_flight)
        return self.status

    def suspended_checkpoint(self) -> Optional[SessionCheckpoint]:
        if self.checkpoint is not None:
            return self.checkpoint
        if isinstance(self.store, CheckpointStore):
            payload = self.store.load_checkpoint()
            if payload is not None:
                return SessionCheckpoint.from_dict(payload)
        return None

    def discard_suspended(self) -> None:
        """Forget a suspended session so a new one can start."""
        if self.status == SessionStatus.SUSPENDED:
            self.status = SessionStatus.IDLE
        self._drop_checkpoint()

    def run(self, presenter: Presenter) -> SessionReport:
        """
        Blocking loop: present items until the session leaves REVIEWING.

        Starts a normal session first if the controller is idle; otherwise
        call start() or resume() beforehand.
        """
        if self.status == SessionStatus.IDLE:
            self.start()
        while self.status == SessionStatus.REVIEWING:
            view = self.next_item()
            if view is None:
                break
            self.submit(presenter.present_item(view))
        return self.report

    # ---- Reviewing ----

    def limits_reached(self) -> bool:
        """True once the item count or the duration limit is hit."""
        state = self._require_state()
        max_items = self.config.max_items_per_session
        if max_items is not None and state.queue.done >= max_items:
            return True
        max_minutes = self.config.max_duration_minutes
        if max_minutes is not None and self.elapsed_seconds() >= max_minutes * 60:
            return True
        return False

    def pending(self) -> bool:
        return self._require_state().queue.pending(self.limits_reached())

    def elapsed_seconds(self) -> float:
        state = self._require_state()
        return state.elapsed_before_resume + (self._clock() - state.started_at).total_seconds()

    def next_item(self) -> Optional[ItemView]:
        """
        Return the item to present next, or None once the session is over.

        Items whose content or statistics cannot be read are dropped and
        the next one is tried.
        """
        self._require_status(SessionStatus.REVIEWING)
        state = self._require_state()

        while True:
            if state.current is None:
                limits = self.limits_reached()
                if not state.queue.pending(limits):
                    self._finish(SessionStatus.FINISHED)
                    return None
                state.current = state.queue.pop(self.rng, limits)

            item_ref = state.current
            try:
                content = self.store.get_content(item_ref)
                record = self.store.read_stats(item_ref)
            except ItemStoreError as exc:
                self._drop_item(item_ref, exc)
                continue

            return ItemView(
                item_ref=item_ref,
                content=content,
                record=record,
                leech_warning=record.is_leech and self.config.leech_method == LeechMethod.WARN,
                counters=self.counters,
            )

    def submit(self, response: Union[int, str, Action]) -> SessionStatus:
        """
        Apply the presenter's response to the current item.

        Raises:
            InvalidInput: response is neither a quality 0-5 nor an Action
            SessionStateError: no item is awaiting a response
        """
        self._require_status(SessionStatus.REVIEWING)
        state = self._require_state()
        if state.current is None:
            raise SessionStateError("No item is awaiting a response; call next_item() first")
        response = parse_response(response)
        item_ref = state.current

        if response == Action.QUIT:
            state.current = None
            self._finish(SessionStatus.ABORTED)
            return self.status

        if response == Action.EDIT:
            self._suspend(item_ref)
            return self.status

        if response == Action.SKIP:
            state.current = None
        else:
            try:
                self._record_quality(item_ref, response)
            except ItemStoreError as exc:
                self._drop_item(item_ref, exc)
            state.current = None

        self.resuming = False
        if not self.pending():
            self._finish(SessionStatus.FINISHED)
        return self.status

    @property
    def counters(self) -> SessionCounters:
        state = self._require_state()
        pending = state.queue.counts()
        return SessionCounters(
            done=state.queue.done,
            failed=pending["failed_this_session"],
            reviewed=len(state.qualities),
            pending=pending,
            elapsed_seconds=self.elapsed_seconds(),
            limits_reached=self.limits_reached(),
        )

    # ---- Internals ----

    def _scan(self, now: datetime) -> None:
        state = self._require_state()
        today = now.date()
        for item_ref in self.store.item_refs():
            try:
                reviewable = self.store.is_reviewable(item_ref)
                record = self.store.read_stats(item_ref) if reviewable else new_item_record()
            except ItemStoreError as exc:
                logger.error("Skipping item during scan: %s", exc)
                state.errors.append(str(exc))
                continue
            classification = classify(
                record,
                today,
                self.config,
                reviewable=reviewable,
                cram=state.cram,
                now=now,
            )
            state.tally.add(classification)
            state.queue.add(item_ref, classification.bucket)

    def _record_quality(self, item_ref: str, quality: int) -> None:
        state = self._require_state()
        now = self._clock()
        today = now.date()

        record = self.store.read_stats(item_ref)
        scheduled = self.store.get_scheduled_date(item_ref)
        context = ReviewContext(
            failure_quality=self.config.failure_quality,
            learn_fraction=self.config.learn_fraction,
            add_random_noise=self.config.add_random_noise,
            adjust_for_early_late=self.config.adjust_for_early_late,
            days_ahead=days_overdue(scheduled, today) if scheduled is not None else None,
            rng=self.rng,
        )
        result = self.algorithm.next_schedule(record, quality, context, self.matrix)
        updated = apply_result(record, result).copy(last_reviewed=now, last_quality=quality)

        if result.failed:
            next_date = today
        else:
            next_date = today + timedelta(days=max(1, round(result.interval)))
        self._write_back(item_ref, updated, next_date, scheduled)

        if self.algorithm.uses_matrix:
            self.matrix = result.matrix
        state.qualities.append(quality)

        if result.failed:
            state.queue.push_failed(item_ref)
            if not record.is_leech and is_leech(updated.failure_count, self.config.leech_failure_threshold):
                try:
                    self.store.tag(item_ref, LEECH_TAG, True)
                except ItemStoreError as exc:
                    logger.error("Leech tag not set on %s: %s", item_ref, exc)
                    state.errors.append(str(exc))
                else:
                    logger.warning("%s is now a leech (%d failures)", item_ref, updated.failure_count)
        else:
            state.queue.done += 1

        entry = ReviewLogEntry(
            item_ref=item_ref,
            timestamp=now,
            quality=quality,
            algorithm=self.algorithm.name.value,
            failed=result.failed,
            interval_before=record.last_interval,
            interval_after=updated.last_interval,
            ease_before=record.ease,
            ease_after=updated.ease,
            session_id=state.session_id,
            session_position=len(state.qualities),
        )
        try:
            self.store.log_review(entry)
        except ItemStoreError as exc:
            logger.error("Review of %s not logged: %s", item_ref, exc)
            state.errors.append(str(exc))

    def _write_back(
        self,
        item_ref: str,
        record: ItemRecord,
        next_date: date,
        previous_date: Optional[date]
    ) -> None:
        """
        Store the new due date and statistics as one unit.

        The due date goes first. If the statistics write then fails the old
        date is put back, so the item reads exactly as before the review.
        """
        self.store.schedule(item_ref, next_date)
        try:
            self.store.write_stats(item_ref, record)
        except ItemStoreError:
            try:
                self.store.schedule(item_ref, previous_date)
            except ItemStoreError as exc:
                logger.error("Could not restore due date of %s: %s", item_ref, exc)
            raise

    def _drop_item(self, item_ref: str, exc: ItemStoreError) -> None:
        state = self._require_state()
        logger.error("Dropping item from session: %s", exc)
        state.errors.append(str(exc))
        state.queue.discard(item_ref)
        if state.current == item_ref:
            state.current = None

    def _suspend(self, item_ref: str) -> None:
        state = self._require_state()
        state.elapsed_before_resume = self.elapsed_seconds()
        state.current = None
        self.checkpoint = SessionCheckpoint(
            in_flight=item_ref,
            state=state,
            matrix=self.matrix.copy() if self.matrix is not None else None,
        )
        if isinstance(self.store, CheckpointStore):
            self.store.save_checkpoint(self.checkpoint.to_dict())
        self.status = SessionStatus.SUSPENDED
        self.report = self._build_report()
        logger.info("Suspended session %s at %s", state.session_id, item_ref)

    def _finish(self, status: SessionStatus, message: Optional[str] = None) -> None:
        self.status = status
        if self.matrix is not None and isinstance(self.store, MatrixStore):
            self.store.save_matrix(self.matrix)
        self.report = self._build_report(message)
        logger.info("Session %s %s", self._require_state().session_id, status.value)

    def _build_report(self, message: Optional[str] = None) -> SessionReport:
        state = self._require_state()
        return build_report(
            status=self.status.value,
            qualities=state.qualities,
            failure_quality=self.config.failure_quality,
            forgetting_index=self.config.forgetting_index,
            elapsed_seconds=self.elapsed_seconds(),
            done=state.queue.done,
            remaining=state.queue.total(),
            dormant=state.tally.dormant,
            due_tomorrow=state.tally.due_tomorrow,
            overdue_at_start=state.tally.overdue,
            message=message,
            errors=tuple(state.errors),
        )

    def _load_matrix(self) -> OptimalFactorMatrix:
        if isinstance(self.store, MatrixStore):
            return self.store.load_matrix()
        return OptimalFactorMatrix()

    def _drop_checkpoint(self) -> None:
        self.checkpoint = None
        if isinstance(self.store, CheckpointStore):
            self.store.clear_checkpoint()

    def _ensure_not_live(self) -> None:
        if self.status in (SessionStatus.SCANNING, SessionStatus.REVIEWING):
            raise SessionStateError(f"A session is already {self.status.value}")

    def _require_status(self, status: SessionStatus) -> None:
        if self.status != status:
            raise SessionStateError(f"Session is {self.status.value}, expected {status.value}")

    def _require_state(self) -> SessionState:
        if self.state is None:
            raise SessionStateError("No session has been started")
        return self.state


__all__ = [
    "Action",
    "ItemView",
    "Presenter",
    "QUEUE_NAMES",
    "SessionCheckpoint",
    "SessionController",
    "SessionCounters",
    "SessionState",
    "SessionStatus",
    "is_leech",
    "parse_response",
]
