"""
Shared pieces of the interval algorithms.

Every strategy takes the same review context and returns an
AlgorithmResult; the helpers here hold the formulas more than one
strategy uses (validation, running mean, easiness update, dispersal).
"""

from __future__ import annotations
import math
import random
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from drill.constants import (
    DEFAULT_FAILURE_QUALITY,
    DEFAULT_LEARN_FRACTION,
    DISPERSAL_A,
    DISPERSAL_B,
    MAX_QUALITY,
    MIN_EASE,
    MIN_QUALITY,
)
from drill.errors import InvalidInput

if TYPE_CHECKING:
    from drill.algorithms.of_matrix import OptimalFactorMatrix


@dataclass(frozen=True)
class ReviewContext:
    """
    Options and timing that accompany one review.

    days_ahead is today minus the scheduled date: positive when the
    review is late, negative when it is early, None if unknown.
    """
    failure_quality: int = DEFAULT_FAILURE_QUALITY
    learn_fraction: float = DEFAULT_LEARN_FRACTION
    add_random_noise: bool = False
    adjust_for_early_late: bool = False
    days_ahead: Optional[float] = None
    rng: random.Random = field(default_factory=random.Random, compare=False)

    def is_failure(self, quality: int) -> bool:
        return quality <= self.failure_quality


@dataclass(frozen=True)
class AlgorithmResult:
    """Updated statistics returned by every strategy."""
    interval: float
    repeats: int
    ease: Optional[float]
    failures: int
    average_quality: Optional[float]
    total_repeats: int
    failed: bool = False
    matrix: Optional["OptimalFactorMatrix"] = None


def validate_inputs(
    quality: int,
    repeats: int,
    failures: int = 0,
    total_repeats: int = 0,
    average_quality: Optional[float] = None
) -> None:
    """
    Reject malformed strategy input before anything is computed.

    Raises:
        InvalidInput: quality outside 0-5 or a negative counter
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInput(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInput(f"quality must be in {MIN_QUALITY}-{MAX_QUALITY}, got {quality}")
    if repeats < 0:
        raise InvalidInput(f"repeats must be >= 0, got {repeats}")
    if failures < 0:
        raise InvalidInput(f"failures must be >= 0, got {failures}")
    if total_repeats < 0:
        raise InvalidInput(f"total_repeats must be >= 0, got {total_repeats}")
    if average_quality is not None and not MIN_QUALITY <= average_quality <= MAX_QUALITY:
        raise InvalidInput(f"average_quality must be in 0-5, got {average_quality}")


def running_mean(average: Optional[float], quality: int, count: int) -> float:
    """
    Fold one more quality into a running mean over `count` earlier ratings.

    Formula: avg' = (q + avg * n) / (n + 1)
    """
    if average is None or count <= 0:
        return float(quality)
    return (quality + average * count) / (count + 1)


def modify_e_factor(ease: float, quality: int) -> float:
    """
    SM2 easiness update.

    Formula:
        EF' = EF + 0.1 - (5 - q) * (0.08 + (5 - q) * 0.02), floored at 1.3
    """
    miss = MAX_QUALITY - quality
    return max(MIN_EASE, ease + 0.1 - miss * (0.08 + miss * 0.02))


def random_dispersal_factor(rng: random.Random) -> float:
    """
    Noise multiplier centred on 1.0 with a skewed, bounded spread.

    p is drawn uniformly from [-0.5, 0.5); the result lies roughly in
    [0.58, 1.42], most of the mass within a few percent of 1.
    """
    p = rng.random() - 0.5
    if p == 0:
        return 1.0
    sign = 1.0 if p > 0 else -1.0
    spread = (-1.0 / DISPERSAL_B) * math.log(1.0 - (DISPERSAL_B / DISPERSAL_A) * abs(p))
    return (100.0 + sign * spread) / 100.0


def disperse_interval(interval: float, last_interval: float, rng: random.Random) -> float:
    """Scale the change from last_interval to interval by a noise factor."""
    return last_interval + (interval - last_interval) * random_dispersal_factor(rng)
