"""
Simple8 Interval Algorithm

A fitted schedule that needs no per-item easiness history:
- The first interval depends only on lifetime failures
- Later intervals grow by a factor derived from the mean quality (AF)
- Growth decays towards 1.2 as the repetition count rises
"""

from __future__ import annotations
import math
from typing import Optional

from drill.algorithms.common import (
    AlgorithmResult,
    ReviewContext,
    disperse_interval,
    running_mean,
    validate_inputs,
)
from drill.constants import (
    REVIEW_NOW,
    SIMPLE8_EASE_COEFFICIENTS,
    SIMPLE8_FAILURE_DECAY,
    SIMPLE8_FIRST_INTERVAL,
    SIMPLE8_MIN_FACTOR,
)


def first_interval(failures: int) -> float:
    """I(1) = 2.4849 * exp(-0.057 * failures)."""
    return SIMPLE8_FIRST_INTERVAL * math.exp(SIMPLE8_FAILURE_DECAY * failures)


def quality_to_ease(quality: float) -> float:
    """
    Absolute factor (AF) for a mean quality.

    Formula: 0.0542q^4 - 0.4848q^3 + 1.4916q^2 - 1.2403q + 1.4515,
    floored at 1.2.
    """
    ease = sum(coefficient * quality ** power for power, coefficient in SIMPLE8_EASE_COEFFICIENTS)
    return max(SIMPLE8_MIN_FACTOR, ease)


def interval_factor(ease: float, repetition: float, learn_fraction: float) -> float:
    """factor(AF, n) = 1.2 + (AF - 1.2) * f^(log2 n)."""
    return SIMPLE8_MIN_FACTOR + (ease - SIMPLE8_MIN_FACTOR) * learn_fraction ** math.log2(repetition)


def determine_next_interval_simple8(
    last_interval: float,
    repeats: int,
    quality: int,
    failures: int,
    average_quality: Optional[float],
    total_repeats: int,
    context: ReviewContext
) -> AlgorithmResult:
    """
    Compute the next Simple8 interval.

    Early/late adjustment (when enabled):
    - Late review: the repetition number grows by up to one extra step,
      in proportion to days late over the last interval
    - Early review: the growth over last_interval shrinks in proportion
      to days early over the last interval

    Args:
        last_interval: Interval that produced the current due date
        repeats: Successful repetitions since the last failure
        quality: Rating 0-5
        failures: Lifetime failure count
        average_quality: Running mean of all ratings
        total_repeats: All repetitions so far
        context: Review options

    Returns:
        AlgorithmResult; ease is the AF of the updated mean quality
    """
    validate_inputs(quality, repeats, failures, total_repeats, average_quality)
    average = running_mean(average_quality, quality, total_repeats)
    ease = quality_to_ease(average)

    if context.is_failure(quality):
        return AlgorithmResult(
            interval=REVIEW_NOW,
            repeats=0,
            ease=ease,
            failures=failures + 1,
            average_quality=average,
            total_repeats=total_repeats + 1,
            failed=True,
        )

    days_ahead = context.days_ahead
    adjust = context.adjust_for_early_late and days_ahead is not None

    if repeats == 0 or last_interval <= 0:
        interval = first_interval(failures)
    else:
        n = float(repeats)
        if adjust and days_ahead > 0:
            n += min(1.0, days_ahead / last_interval)
        interval = last_interval * interval_factor(ease, n, context.learn_fraction)
        if adjust and days_ahead < 0:
            earliness = min(1.0, -days_ahead / last_interval)
            interval -= (interval - last_interval) * earliness

    if context.add_random_noise:
        interval = disperse_interval(interval, last_interval, context.rng)

    return AlgorithmResult(
        interval=interval,
        repeats=repeats + 1,
        ease=ease,
        failures=failures,
        average_quality=average,
        total_repeats=total_repeats + 1,
    )
