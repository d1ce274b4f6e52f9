"""
SM2 Interval Algorithm

The original SuperMemo 2 schedule:
- Repetition 1 -> 1 day, repetition 2 -> 6 days
- Later repetitions multiply the last interval by the easiness factor
- The easiness factor moves with every successful rating

Repetitions are counted from the value stored in repeats_since_fail, so
an item with repeats=2 is receiving its third repetition.
"""

from __future__ import annotations
from typing import Optional

from drill.algorithms.common import (
    AlgorithmResult,
    ReviewContext,
    disperse_interval,
    modify_e_factor,
    validate_inputs,
)
from drill.constants import (
    INITIAL_EASE,
    REVIEW_NOW,
    SM2_FIRST_INTERVAL,
    SM2_NOISY_SECOND_INTERVAL,
    SM2_SECOND_INTERVAL,
)


def determine_next_interval_sm2(
    last_interval: float,
    repeats: int,
    ease: Optional[float],
    quality: int,
    failures: int,
    average_quality: Optional[float],
    total_repeats: int,
    context: ReviewContext
) -> AlgorithmResult:
    """
    Compute the next SM2 interval.

    Formula:
        EF' = max(1.3, EF + 0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        I(1) = 1, I(2) = 6, I(n) = I(n-1) * EF'

    With random noise enabled the second interval comes from a
    quality table instead of the fixed 6 days, and every interval change
    is dispersed.

    Args:
        last_interval: Interval that produced the current due date
        repeats: Successful repetitions since the last failure
        ease: Easiness factor (None for a virgin item)
        quality: Rating 0-5
        failures: Lifetime failure count
        average_quality: Passed through unchanged (SM2 does not track it)
        total_repeats: All repetitions so far
        context: Review options

    Returns:
        AlgorithmResult; interval is REVIEW_NOW on failure
    """
    validate_inputs(quality, repeats, failures, total_repeats)
    if ease is None:
        ease = INITIAL_EASE

    if context.is_failure(quality):
        # The failed review counts as repetition 1, so the next pass lands on
        # the 6-day step rather than restarting at 1 day.
        return AlgorithmResult(
            interval=REVIEW_NOW,
            repeats=1,
            ease=ease,
            failures=failures + 1,
            average_quality=average_quality,
            total_repeats=total_repeats + 1,
            failed=True,
        )

    next_ease = modify_e_factor(ease, quality)

    if repeats < 1:
        interval = float(SM2_FIRST_INTERVAL)
    elif repeats == 1:
        if context.add_random_noise:
            interval = float(SM2_NOISY_SECOND_INTERVAL.get(quality, SM2_FIRST_INTERVAL))
        else:
            interval = float(SM2_SECOND_INTERVAL)
    else:
        interval = last_interval * next_ease

    if context.add_random_noise:
        interval = disperse_interval(interval, last_interval, context.rng)

    return AlgorithmResult(
        interval=interval,
        repeats=repeats + 1,
        ease=next_ease,
        failures=failures,
        average_quality=average_quality,
        total_repeats=total_repeats + 1,
    )
