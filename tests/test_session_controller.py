import json
from datetime import timedelta

import pytest

from drill.config import DrillConfig
from drill.constants import LEECH_TAG, AlgorithmName, LeechMethod
from drill.errors import InvalidInput, ItemStoreError, SessionStateError, UnknownAlgorithm
from drill.item_record import new_item_record
from drill.session_controller import (
    Action,
    SessionCheckpoint,
    SessionController,
    SessionStatus,
    is_leech,
    parse_response,
)
from drill.store import InMemoryItemStore


class ScriptedPresenter:
    """Answers with a fixed list of responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.seen = []

    def present_item(self, view):
        self.seen.append(view.item_ref)
        return self.responses.pop(0)


class FailingWriteStore(InMemoryItemStore):
    def __init__(self, bad_ref):
        super().__init__()
        self.bad_ref = bad_ref

    def write_stats(self, item_ref, record):
        if item_ref == self.bad_ref:
            raise ItemStoreError(item_ref, "disk full")
        super().write_stats(item_ref, record)


class FailingScheduleStore(InMemoryItemStore):
    def schedule(self, item_ref, when):
        raise ItemStoreError(item_ref, "locked")


class FailingTagStore(InMemoryItemStore):
    def tag(self, item_ref, tag, on):
        raise ItemStoreError(item_ref, "read only")


def make_controller(store, clock, rng, **options):
    config = DrillConfig(algorithm=options.pop("algorithm", AlgorithmName.SM2), **options)
    return SessionController(store, config, rng=rng, clock=clock)


def add_new_items(store, *refs):
    for ref in refs:
        store.add_item(ref, f"question {ref}", f"answer {ref}")


# ---- Response parsing ----

def test_parse_response():
    assert parse_response("q") == Action.QUIT
    assert parse_response("edit") == Action.EDIT
    assert parse_response(" 3 ") == 3
    assert parse_response(0) == 0
    for bad in ("x", 6, -1, True, 2.5):
        with pytest.raises(InvalidInput):
            parse_response(bad)


def test_is_leech():
    assert is_leech(16, 15)
    assert not is_leech(15, 15)
    assert not is_leech(100, None)


# ---- Starting ----

def test_unknown_algorithm_fails_before_scan(store, clock, rng):
    add_new_items(store, "a")
    controller = make_controller(store, clock, rng, algorithm="sm17")

    with pytest.raises(UnknownAlgorithm):
        controller.start()
    assert controller.status == SessionStatus.IDLE
    assert controller.state is None


def test_nothing_to_review(store, clock, rng, make_record, today):
    store.add_item("later", "q", record=make_record(scheduled_date=today + timedelta(days=3)))
    controller = make_controller(store, clock, rng)

    assert controller.start() == SessionStatus.FINISHED
    assert controller.report.message == "Nothing to review."
    assert controller.report.dormant == 1


def test_cannot_start_twice(store, clock, rng):
    add_new_items(store, "a")
    controller = make_controller(store, clock, rng)
    controller.start()
    with pytest.raises(SessionStateError):
        controller.start()


# ---- Reviewing ----

def test_item_limit_presents_failed_prior_first(store, clock, rng, make_record, today):
    store.add_item("failed", "q1", record=make_record(last_quality=1, last_interval=0, repeats_since_fail=1))
    store.add_item("young", "q2", record=make_record(last_interval=3))
    controller = make_controller(store, clock, rng, max_items_per_session=1)

    controller.start()
    view = controller.next_item()
    assert view.item_ref == "failed"

    assert controller.submit(4) == SessionStatus.FINISHED
    assert controller.report.reviewed == 1
    assert controller.report.remaining == 1
    assert store.get_scheduled_date("failed") == today + timedelta(days=6)
    assert store.get_scheduled_date("young") == today


def test_failure_requeues_item_in_same_session(store, clock, rng, today):
    add_new_items(store, "a")
    controller = make_controller(store, clock, rng)
    controller.start()

    assert controller.next_item().item_ref == "a"
    controller.submit(1)
    assert store.get_scheduled_date("a") == today
    assert controller.counters.failed == 1

    assert controller.next_item().item_ref == "a"
    assert controller.submit(4) == SessionStatus.FINISHED

    record = store.read_stats("a")
    assert record.failure_count == 1
    assert record.last_quality == 4
    assert record.last_interval == 6.0
    assert controller.report.reviewed == 2
    assert controller.report.done == 1


def test_leech_tagged_when_failures_exceed_threshold(store, clock, rng, make_record):
    store.add_item("hard", "q", record=make_record(failure_count=14))
    controller = make_controller(store, clock, rng, leech_failure_threshold=15)
    controller.start()

    controller.next_item()
    controller.submit(1)

    assert store.read_stats("hard").failure_count == 15
    assert LEECH_TAG not in store.items["hard"].tags

    controller.next_item()
    controller.submit(1)

    assert store.read_stats("hard").failure_count == 16
    assert LEECH_TAG in store.items["hard"].tags

    controller.next_item()
    assert controller.submit(Action.SKIP) == SessionStatus.FINISHED


def test_leech_warning_in_view(store, clock, rng, make_record):
    store.add_item("leechy", "q", record=make_record(is_leech=True))
    controller = make_controller(store, clock, rng, leech_method=LeechMethod.WARN)
    controller.start()
    assert controller.next_item().leech_warning


def test_skip_leaves_item_untouched(store, clock, rng):
    add_new_items(store, "a", "b")
    controller = make_controller(store, clock, rng)
    controller.start()

    first = controller.next_item().item_ref
    controller.submit("s")
    second = controller.next_item().item_ref
    assert second != first
    assert controller.submit(5) == SessionStatus.FINISHED

    assert store.items[first].properties == {}
    assert store.get_scheduled_date(first) is None
    assert store.get_scheduled_date(second) is not None


def test_quit_aborts_without_touching_current_item(store, clock, rng):
    add_new_items(store, "a", "b")
    controller = make_controller(store, clock, rng)
    controller.start()

    first = controller.next_item().item_ref
    controller.submit(4)
    second = controller.next_item().item_ref
    assert controller.submit(Action.QUIT) == SessionStatus.ABORTED

    assert controller.report.status == "aborted"
    assert controller.report.reviewed == 1
    assert store.get_scheduled_date(first) is not None
    assert store.items[second].properties == {}


def test_invalid_quality_keeps_item_current(store, clock, rng):
    add_new_items(store, "a")
    controller = make_controller(store, clock, rng)
    controller.start()

    with pytest.raises(SessionStateError):
        controller.submit(4)

    view = controller.next_item()
    with pytest.raises(InvalidInput):
        controller.submit(9)
    assert controller.next_item().item_ref == view.item_ref


def test_duration_limit_stops_regular_buckets(store, clock, rng):
    add_new_items(store, "a", "b", "c")
    controller = make_controller(
        store, clock, rng, max_items_per_session=None, max_duration_minutes=1
    )
    controller.start()

    controller.next_item()
    clock.advance(minutes=2)
    assert controller.submit(4) == SessionStatus.FINISHED
    assert controller.report.remaining == 2
    assert controller.report.elapsed_seconds == 120


def test_review_log_entries(store, clock, rng):
    add_new_items(store, "a", "b")
    controller = make_controller(store, clock, rng)
    controller.start()
    for _ in range(2):
        controller.next_item()
        controller.submit(4)

    assert [entry.session_position for entry in store.review_log] == [1, 2]
    assert {entry.session_id for entry in store.review_log} == {controller.state.session_id}
    assert all(entry.algorithm == "sm2" for entry in store.review_log)


def test_store_error_drops_only_that_item(clock, rng):
    store = FailingWriteStore("bad")
    add_new_items(store, "bad", "good")
    controller = make_controller(store, clock, rng)
    controller.start()

    while controller.status == SessionStatus.REVIEWING:
        if controller.next_item() is None:
            break
        controller.submit(4)

    assert controller.status == SessionStatus.FINISHED
    assert controller.report.reviewed == 1
    assert len(controller.report.errors) == 1
    assert "bad" in controller.report.errors[0]
    assert store.get_scheduled_date("good") is not None
    assert store.get_scheduled_date("bad") is None


def test_corrupt_statistics_skip_only_that_item(store, clock, rng):
    add_new_items(store, "bad", "good")
    store.items["bad"].properties = {"DRILL_FAILURE_COUNT": "-1"}
    controller = make_controller(store, clock, rng)

    assert controller.start() == SessionStatus.REVIEWING
    assert controller.counters.remaining == 1
    assert len(controller.state.errors) == 1
    assert "bad" in controller.state.errors[0]

    assert controller.next_item().item_ref == "good"
    assert controller.submit(4) == SessionStatus.FINISHED
    assert "bad" in controller.report.errors[0]


def test_failed_reschedule_leaves_record_unchanged(clock, rng):
    store = FailingScheduleStore()
    add_new_items(store, "a")
    controller = make_controller(store, clock, rng)
    controller.start()

    controller.next_item()
    assert controller.submit(4) == SessionStatus.FINISHED

    assert store.items["a"].properties == {}
    assert store.read_stats("a") == new_item_record()
    assert controller.report.reviewed == 0
    assert len(controller.report.errors) == 1


def test_failed_stats_write_restores_due_date(clock, rng, make_record, today):
    store = FailingWriteStore("a")
    original = make_record()
    store.add_item("a", "q", record=original)
    controller = make_controller(store, clock, rng)
    controller.start()

    controller.next_item()
    controller.submit(4)

    assert store.get_scheduled_date("a") == today
    assert store.read_stats("a") == original


def test_failed_leech_tag_keeps_review(clock, rng, make_record):
    store = FailingTagStore()
    store.add_item("hard", "q", record=make_record(failure_count=15))
    controller = make_controller(store, clock, rng, leech_failure_threshold=15)
    controller.start()

    controller.next_item()
    controller.submit(1)

    assert store.read_stats("hard").failure_count == 16
    assert LEECH_TAG not in store.items["hard"].tags
    assert controller.counters.failed == 1
    assert len(controller.state.errors) == 1


def test_sm5_matrix_saved_at_finish(store, clock, rng):
    add_new_items(store, "a")
    controller = make_controller(store, clock, rng, algorithm=AlgorithmName.SM5)
    controller.start()

    controller.next_item()
    controller.submit(5)

    assert controller.status == SessionStatus.FINISHED
    assert store.matrix_saves == 1
    assert store.load_matrix().lookup(2, 2.6) == pytest.approx(2.5875, abs=1e-3)


def test_run_with_presenter(store, clock, rng):
    add_new_items(store, "a", "b", "c")
    controller = make_controller(store, clock, rng)
    presenter = ScriptedPresenter([4, 5, 3])

    report = controller.run(presenter)

    assert sorted(presenter.seen) == ["a", "b", "c"]
    assert report.status == "finished"
    assert report.quality_counts[3] == 1
    assert report.pass_percentage == 100.0


# ---- Suspend and resume ----

def test_edit_suspends_and_resume_presents_same_item(store, clock, rng):
    add_new_items(store, "a", "b", "c")
    controller = make_controller(store, clock, rng)
    controller.start()
    controller.next_item()
    controller.submit(4)
    in_flight = controller.next_item().item_ref

    assert controller.submit(Action.EDIT) == SessionStatus.SUSPENDED
    assert store.checkpoint["in_flight"] == in_flight

    later = make_controller(store, clock, rng)
    with pytest.raises(SessionStateError):
        later.start()

    assert later.resume() == SessionStatus.REVIEWING
    assert later.resuming
    assert later.next_item().item_ref == in_flight
    assert store.checkpoint is None
    assert later.counters.done == 1


def test_checkpoint_survives_json(store, clock, rng):
    add_new_items(store, "a", "b")
    controller = make_controller(store, clock, rng, algorithm=AlgorithmName.SM5)
    controller.start()
    controller.next_item()
    controller.submit(4)
    controller.next_item()
    controller.submit(Action.EDIT)

    checkpoint = controller.checkpoint
    restored = SessionCheckpoint.from_dict(json.loads(json.dumps(checkpoint.to_dict())))
    assert restored.to_dict() == checkpoint.to_dict()
    assert restored.matrix == checkpoint.matrix


def test_discard_suspended_allows_new_session(store, clock, rng):
    add_new_items(store, "a", "b")
    controller = make_controller(store, clock, rng)
    controller.start()
    controller.next_item()
    controller.submit(Action.EDIT)

    controller.discard_suspended()
    assert controller.status == SessionStatus.IDLE
    assert store.checkpoint is None
    assert controller.start() == SessionStatus.REVIEWING


def test_resume_without_checkpoint(store, clock, rng):
    controller = make_controller(store, clock, rng)
    with pytest.raises(SessionStateError):
        controller.resume()


def test_cram_session_reviews_scheduled_items(store, clock, rng, make_record, today):
    store.add_item("later", "q", record=make_record(scheduled_date=today + timedelta(days=5)))
    controller = make_controller(store, clock, rng)

    assert controller.start(cram=True) == SessionStatus.REVIEWING
    assert controller.next_item().item_ref == "later"
