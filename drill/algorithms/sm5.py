"""
SM5 Interval Algorithm

SuperMemo 5 replaces SM2's fixed multiplier with an optimal factor (OF)
learned per (repetition number, easiness factor):
- The OF for the current repetition drives the interval
- After each rating the OF is nudged towards what the rating suggests
- The nudged OF is stored for the next repetition at the updated EF

The matrix is never modified in place; the result carries a copy.
"""

from __future__ import annotations
from typing import Optional

from drill.algorithms.common import (
    AlgorithmResult,
    ReviewContext,
    disperse_interval,
    modify_e_factor,
    running_mean,
    validate_inputs,
)
from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.constants import (
    EARLY_REVIEW_DAMPING,
    INITIAL_EASE,
    OF_DECIMALS,
    OF_QUALITY_BASE,
    OF_QUALITY_STEP,
    REVIEW_NOW,
    SM5_INITIAL_OPTIMAL_FACTOR,
)


def initial_optimal_factor(n: int, ease: float) -> float:
    """OF before anything was learned: the first interval at n=1, else EF."""
    if n == 1:
        return SM5_INITIAL_OPTIMAL_FACTOR
    return ease


def get_optimal_factor(n: int, ease: float, matrix: OptimalFactorMatrix) -> float:
    return matrix.lookup(n, ease, default=initial_optimal_factor(n, ease))


def inter_repetition_interval(
    last_interval: float,
    n: int,
    ease: float,
    matrix: OptimalFactorMatrix
) -> float:
    """I(1) = OF(1, EF); I(n) = I(n-1) * OF(n, EF)."""
    factor = get_optimal_factor(n, ease, matrix)
    if n == 1:
        return factor
    return last_interval * factor


def modify_optimal_factor(factor: float, quality: int, learn_fraction: float) -> float:
    """
    Blend the current OF with the OF implied by the rating.

    Formula:
        OF_q = OF * (0.72 + 0.07 * q)
        OF'  = (1 - f) * OF + f * OF_q
    """
    target = factor * (OF_QUALITY_BASE + quality * OF_QUALITY_STEP)
    return (1 - learn_fraction) * factor + learn_fraction * target


def early_interval_factor(factor: float, optimal_interval: float, days_early: float) -> float:
    """
    Lower an OF for a review that happened days_early before its due date.

    The reduction approaches its maximum as the review moves towards the
    previous repetition and fades for long intervals. Never below 1.0.

    Args:
        factor: OF that would apply to an on-time review
        optimal_interval: Interval the item was scheduled with
        days_early: Positive number of days before the due date

    Returns:
        Adjusted OF
    """
    if days_early <= 0 or optimal_interval <= 1:
        return factor
    damping = EARLY_REVIEW_DAMPING * optimal_interval
    max_delta = (factor - 1) * ((optimal_interval + damping - 1) / (optimal_interval - 1))
    adjusted = factor - max_delta * (days_early / (days_early + damping))
    return max(1.0, adjusted)


def determine_next_interval_sm5(
    last_interval: float,
    repeats: int,
    ease: Optional[float],
    quality: int,
    failures: int,
    average_quality: Optional[float],
    total_repeats: int,
    matrix: OptimalFactorMatrix,
    context: ReviewContext
) -> AlgorithmResult:
    """
    Compute the next SM5 interval and the updated OF matrix.

    Workflow:
    1. Look up OF(n, EF) (n = repeats, at least 1)
    2. Update EF with the SM2 formula
    3. Blend OF towards the rating (learn fraction), lower it further for
       early reviews when early/late adjustment is on
    4. Store the rounded OF at (n + 1, EF')
    5. Interval = OF on the first repetition, else last_interval * OF

    Args:
        last_interval: Interval that produced the current due date
        repeats: Successful repetitions since the last failure
        ease: Easiness factor (None for a virgin item)
        quality: Rating 0-5
        failures: Lifetime failure count
        average_quality: Running mean of all ratings
        total_repeats: All repetitions so far
        matrix: OF matrix to read (not modified)
        context: Review options

    Returns:
        AlgorithmResult with result.matrix set to the updated copy
    """
    validate_inputs(quality, repeats, failures, total_repeats, average_quality)
    n = max(repeats, 1)
    if ease is None:
        ease = INITIAL_EASE

    matrix = matrix.copy()
    average = running_mean(average_quality, quality, total_repeats)
    next_ease = modify_e_factor(ease, quality)

    factor = get_optimal_factor(n, ease, matrix)
    new_factor = modify_optimal_factor(factor, quality, context.learn_fraction)

    days_ahead = context.days_ahead
    if context.adjust_for_early_late and days_ahead is not None and days_ahead < 0:
        optimal_interval = inter_repetition_interval(last_interval, n, ease, matrix)
        new_factor = early_interval_factor(new_factor, optimal_interval, -days_ahead)

    matrix.set(n + 1, next_ease, round(new_factor, OF_DECIMALS))

    if context.is_failure(quality):
        return AlgorithmResult(
            interval=REVIEW_NOW,
            repeats=1,
            ease=next_ease,
            failures=failures + 1,
            average_quality=average,
            total_repeats=total_repeats + 1,
            failed=True,
            matrix=matrix,
        )

    interval = factor if n == 1 else last_interval * factor
    if context.add_random_noise:
        interval = disperse_interval(interval, last_interval, context.rng)

    return AlgorithmResult(
        interval=interval,
        repeats=n + 1,
        ease=next_ease,
        failures=failures,
        average_quality=average,
        total_repeats=total_repeats + 1,
        matrix=matrix,
    )
