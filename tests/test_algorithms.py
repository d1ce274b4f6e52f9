import math
import random

import pytest

from drill.algorithms import (
    ReviewContext,
    apply_result,
    determine_next_interval_simple8,
    determine_next_interval_sm2,
    determine_next_interval_sm5,
    get_algorithm,
    modify_e_factor,
    random_dispersal_factor,
    running_mean,
)
from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.algorithms.simple8 import first_interval, quality_to_ease
from drill.algorithms.sm5 import early_interval_factor, modify_optimal_factor
from drill.constants import AlgorithmName, REVIEW_NOW
from drill.errors import InvalidInput, UnknownAlgorithm
from drill.item_record import ItemRecord


def sm2(context, **overrides):
    args = dict(
        last_interval=0.0, repeats=0, ease=None, quality=4,
        failures=0, average_quality=None, total_repeats=0, context=context,
    )
    args.update(overrides)
    return determine_next_interval_sm2(**args)


def sm5(context, matrix=None, **overrides):
    args = dict(
        last_interval=0.0, repeats=0, ease=None, quality=4,
        failures=0, average_quality=None, total_repeats=0,
        matrix=matrix if matrix is not None else OptimalFactorMatrix(),
        context=context,
    )
    args.update(overrides)
    return determine_next_interval_sm5(**args)


def simple8(context, **overrides):
    args = dict(
        last_interval=0.0, repeats=0, quality=4,
        failures=0, average_quality=None, total_repeats=0, context=context,
    )
    args.update(overrides)
    return determine_next_interval_simple8(**args)


# ---- Shared formulas ----

def test_modify_e_factor_quality_four_keeps_ease():
    assert modify_e_factor(2.5, 4) == pytest.approx(2.5)
    assert modify_e_factor(2.5, 5) == pytest.approx(2.6)


def test_modify_e_factor_floor():
    assert modify_e_factor(1.3, 0) == pytest.approx(1.3)


def test_running_mean():
    assert running_mean(None, 4, 0) == 4.0
    assert running_mean(4.0, 2, 1) == pytest.approx(3.0)
    assert running_mean(3.0, 5, 3) == pytest.approx(3.5)


def test_random_dispersal_factor_bounded():
    rng = random.Random(7)
    factors = [random_dispersal_factor(rng) for _ in range(2000)]
    assert all(0.5 < f < 1.5 for f in factors)
    assert sum(factors) / len(factors) == pytest.approx(1.0, abs=0.02)


# ---- SM2 ----

def test_sm2_third_repetition(context):
    result = sm2(context, last_interval=6, repeats=2, ease=2.5, quality=4)

    assert result.interval == pytest.approx(15.0)
    assert result.ease == pytest.approx(2.5)
    assert result.repeats == 3
    assert not result.failed


def test_sm2_first_and_second_interval(context):
    first = sm2(context, quality=5)
    assert first.interval == 1.0
    assert first.repeats == 1
    assert first.ease == pytest.approx(2.6)

    second = sm2(context, last_interval=1, repeats=1, ease=first.ease, quality=4, total_repeats=1)
    assert second.interval == 6.0
    assert second.repeats == 2


def test_sm2_noisy_second_interval_comes_from_table():
    context = ReviewContext(add_random_noise=True, rng=random.Random(3))
    result = sm2(context, last_interval=1, repeats=1, ease=2.5, quality=3, total_repeats=1)
    # Table value 3 days, dispersed around the 2-day change from last_interval
    assert 1.0 < result.interval < 5.0


def test_sm2_failure(context):
    result = sm2(context, last_interval=15, repeats=3, ease=2.5, quality=2, failures=1, total_repeats=4)

    assert result.interval == REVIEW_NOW
    assert result.failed
    assert result.repeats == 1
    assert result.failures == 2
    assert result.total_repeats == 5
    assert result.ease == 2.5


def test_sm2_failure_quality_one_treats_two_as_pass(rng):
    context = ReviewContext(failure_quality=1, rng=rng)
    result = sm2(context, quality=2)
    assert not result.failed


@pytest.mark.parametrize("overrides", [
    {"quality": 6},
    {"quality": -1},
    {"repeats": -1},
    {"failures": -2},
])
def test_sm2_rejects_invalid_input(context, overrides):
    with pytest.raises(InvalidInput):
        sm2(context, **overrides)


# ---- SM5 ----

def test_sm5_first_repetition_writes_matrix(context):
    matrix = OptimalFactorMatrix()
    result = sm5(context, matrix=matrix, quality=5)

    assert result.interval == pytest.approx(2.5)
    assert result.repeats == 2
    assert result.ease == pytest.approx(2.6)
    assert result.average_quality == 5.0
    assert result.matrix.lookup(2, 2.6) == pytest.approx(2.5875, abs=1e-3)
    assert len(matrix) == 0  # input matrix untouched


def test_sm5_uses_learned_factor(context):
    matrix = OptimalFactorMatrix([(2, 2.6, 2.588)])
    result = sm5(
        context, matrix=matrix,
        last_interval=2.5, repeats=2, ease=2.6, quality=4,
        average_quality=5.0, total_repeats=1,
    )
    assert result.interval == pytest.approx(2.5 * 2.588)
    assert result.repeats == 3
    assert result.average_quality == pytest.approx(4.5)


def test_sm5_failure_still_learns(context):
    result = sm5(context, last_interval=6, repeats=3, ease=2.5, quality=1, total_repeats=3, average_quality=4.0)

    assert result.failed
    assert result.interval == REVIEW_NOW
    assert result.repeats == 1
    assert result.failures == 1
    assert result.ease < 2.5
    assert (4, result.ease) in result.matrix


def test_modify_optimal_factor_blend():
    assert modify_optimal_factor(2.0, 4, 0.5) == pytest.approx(2.0)
    assert modify_optimal_factor(2.0, 0, 0.5) == pytest.approx(1.72)


def test_early_interval_factor_lowers_but_not_below_one():
    assert early_interval_factor(2.0, 10, 0) == 2.0
    lowered = early_interval_factor(2.0, 10, 5)
    assert 1.0 <= lowered < 2.0
    assert early_interval_factor(2.0, 10, 5) < early_interval_factor(2.0, 10, 1)


def test_sm5_early_review_lowers_stored_factor(rng):
    on_time = sm5(ReviewContext(rng=rng), last_interval=10, repeats=3, ease=2.5, quality=4, total_repeats=3, average_quality=4.0)
    early = sm5(
        ReviewContext(adjust_for_early_late=True, days_ahead=-5, rng=rng),
        last_interval=10, repeats=3, ease=2.5, quality=4, total_repeats=3, average_quality=4.0,
    )
    assert early.matrix.lookup(4, 2.5) < on_time.matrix.lookup(4, 2.5)


# ---- Simple8 ----

def test_simple8_first_interval(context):
    assert simple8(context).interval == pytest.approx(2.4849)
    assert simple8(context, failures=2).interval == pytest.approx(2.4849 * math.exp(-0.114))
    assert first_interval(2) == pytest.approx(2.2172, abs=1e-3)


def test_simple8_second_interval_uses_mean_quality(context):
    result = simple8(context, last_interval=2.4849, repeats=1, quality=4, average_quality=4.0, total_repeats=1)
    assert result.interval == pytest.approx(2.4849 * quality_to_ease(4.0))
    assert result.ease == pytest.approx(quality_to_ease(4.0))
    assert result.repeats == 2


def test_simple8_failure_resets_repeats(context):
    result = simple8(context, last_interval=10, repeats=4, quality=0, average_quality=4.0, total_repeats=5)
    assert result.failed
    assert result.interval == REVIEW_NOW
    assert result.repeats == 0
    assert result.failures == 1
    assert result.total_repeats == 6


def test_simple8_ease_never_below_floor():
    assert min(quality_to_ease(q / 10) for q in range(0, 51)) >= 1.2


def test_simple8_late_review_grows_more(rng):
    base = dict(last_interval=10, repeats=3, quality=4, average_quality=4.0, total_repeats=3)
    on_time = simple8(ReviewContext(rng=rng), **base)
    late = simple8(ReviewContext(adjust_for_early_late=True, days_ahead=5, rng=rng), **base)
    early = simple8(ReviewContext(adjust_for_early_late=True, days_ahead=-5, rng=rng), **base)
    assert early.interval < on_time.interval
    assert late.interval != on_time.interval
    assert early.interval >= 10


# ---- Registry ----

def test_get_algorithm():
    assert get_algorithm("SM2").name == AlgorithmName.SM2
    assert get_algorithm(AlgorithmName.SIMPLE8).name == AlgorithmName.SIMPLE8
    assert get_algorithm("sm5").uses_matrix


def test_get_algorithm_unknown():
    with pytest.raises(UnknownAlgorithm):
        get_algorithm("sm17")


def test_apply_result_stores_zero_interval_on_failure(context):
    record = ItemRecord(last_interval=6, repeats_since_fail=2, total_repeats=2, ease=2.5, last_quality=4)
    result = get_algorithm("sm2").next_schedule(record, 1, context)
    updated = apply_result(record, result)
    assert updated.last_interval == 0.0
    assert updated.failure_count == 1
    assert updated.repeats_since_fail == 1


@pytest.mark.parametrize("name", ["sm2", "sm5", "simple8"])
def test_counters_never_negative(name):
    rng = random.Random(99)
    context = ReviewContext(rng=rng)
    algorithm = get_algorithm(name)
    record = ItemRecord()
    matrix = OptimalFactorMatrix()

    for _ in range(200):
        quality = rng.randint(0, 5)
        result = algorithm.next_schedule(record, quality, context, matrix)
        if algorithm.uses_matrix:
            matrix = result.matrix
        record = apply_result(record, result)

        assert record.repeats_since_fail >= 0
        assert record.total_repeats >= 0
        assert record.failure_count >= 0
        assert record.last_interval >= 0
        assert result.failed or result.interval > 0
