"""
Algorithm registry.

Wraps the three interval functions behind one interface so a session
resolves its algorithm once, at configuration time, and then calls
next_schedule() per item without further dispatch.
"""

from __future__ import annotations
from typing import Optional, Protocol, Union

from drill.algorithms.common import AlgorithmResult, ReviewContext
from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.algorithms.simple8 import determine_next_interval_simple8
from drill.algorithms.sm2 import determine_next_interval_sm2
from drill.algorithms.sm5 import determine_next_interval_sm5
from drill.constants import AlgorithmName
from drill.errors import UnknownAlgorithm
from drill.item_record import ItemRecord


class SchedulingAlgorithm(Protocol):
    """Protocol for interval algorithms."""

    name: AlgorithmName
    uses_matrix: bool

    def next_schedule(
        self,
        record: ItemRecord,
        quality: int,
        context: ReviewContext,
        matrix: Optional[OptimalFactorMatrix] = None
    ) -> AlgorithmResult:
        """Calculate updated statistics for one rating."""
        ...


class SM2Algorithm:
    name = AlgorithmName.SM2
    uses_matrix = False

    def next_schedule(self, record, quality, context, matrix=None):
        return determine_next_interval_sm2(
            last_interval=record.last_interval,
            repeats=record.repeats_since_fail,
            ease=record.ease,
            quality=quality,
            failures=record.failure_count,
            average_quality=record.average_quality,
            total_repeats=record.total_repeats,
            context=context,
        )


class SM5Algorithm:
    name = AlgorithmName.SM5
    uses_matrix = True

    def next_schedule(self, record, quality, context, matrix=None):
        return determine_next_interval_sm5(
            last_interval=record.last_interval,
            repeats=record.repeats_since_fail,
            ease=record.ease,
            quality=quality,
            failures=record.failure_count,
            average_quality=record.average_quality,
            total_repeats=record.total_repeats,
            matrix=matrix if matrix is not None else OptimalFactorMatrix(),
            context=context,
        )


class Simple8Algorithm:
    name = AlgorithmName.SIMPLE8
    uses_matrix = False

    def next_schedule(self, record, quality, context, matrix=None):
        return determine_next_interval_simple8(
            last_interval=record.last_interval,
            repeats=record.repeats_since_fail,
            quality=quality,
            failures=record.failure_count,
            average_quality=record.average_quality,
            total_repeats=record.total_repeats,
            context=context,
        )


ALGORITHMS: dict[AlgorithmName, SchedulingAlgorithm] = {
    AlgorithmName.SM2: SM2Algorithm(),
    AlgorithmName.SM5: SM5Algorithm(),
    AlgorithmName.SIMPLE8: Simple8Algorithm(),
}


def get_algorithm(name: Union[AlgorithmName, str]) -> SchedulingAlgorithm:
    """
    Resolve an algorithm selector.

    Raises:
        UnknownAlgorithm: selector is not sm2, sm5 or simple8
    """
    try:
        key = AlgorithmName(name.lower() if isinstance(name, str) else name)
    except (ValueError, AttributeError):
        raise UnknownAlgorithm(f"Unknown algorithm: {name!r}") from None
    return ALGORITHMS[key]


def apply_result(record: ItemRecord, result: AlgorithmResult) -> ItemRecord:
    """
    Copy algorithm output into a new record.

    A REVIEW_NOW interval is stored as 0 so the persisted interval stays
    non-negative.
    """
    return record.copy(
        last_interval=0.0 if result.failed else result.interval,
        repeats_since_fail=result.repeats,
        total_repeats=result.total_repeats,
        failure_count=result.failures,
        average_quality=result.average_quality,
        ease=result.ease,
    )
