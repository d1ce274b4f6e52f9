import logging

from drill.report import build_report, tally_qualities


def test_tally_qualities_has_every_rating():
    assert tally_qualities([5, 5, 2]) == {0: 0, 1: 0, 2: 1, 3: 0, 4: 0, 5: 2}


def test_pass_percentage():
    report = build_report("finished", [5, 4, 3, 2], failure_quality=2, forgetting_index=10)
    assert report.reviewed == 4
    assert report.passed == 3
    assert report.pass_percentage == 75.0
    assert report.forgetting_index_breached


def test_failure_quality_one():
    report = build_report("finished", [2, 2, 1], failure_quality=1, forgetting_index=50)
    assert report.pass_percentage == 100 * 2 / 3
    assert not report.forgetting_index_breached


def test_empty_session():
    report = build_report("finished", [], failure_quality=2, forgetting_index=10, message="Nothing to review.")
    assert report.pass_percentage is None
    assert not report.forgetting_index_breached
    assert report.summary_lines()[0] == "Nothing to review."


def test_breach_is_logged_not_raised(caplog):
    with caplog.at_level(logging.WARNING, logger="drill.report"):
        build_report("finished", [0, 1, 5], failure_quality=2, forgetting_index=10)
    assert "below the 90% target" in caplog.text


def test_summary_lines():
    report = build_report(
        "aborted", [4, 1], failure_quality=2, forgetting_index=10,
        done=1, remaining=3, dormant=7, due_tomorrow=2, errors=("x: unknown item",),
    )
    lines = report.summary_lines()
    assert lines[0] == "Session aborted: 2 reviews, 1 items done."
    assert "Recall: 50.0%" in lines
    assert "3 items still pending." in lines
    assert "7 items are not yet due (2 due tomorrow)." in lines
    assert lines[-1] == "Error: x: unknown item"
    assert any(line.startswith("Warning:") for line in lines)
