"""
Interval algorithms - SM2, SM5 and Simple8

Quick start:
    from drill import algorithms

    algorithm = algorithms.get_algorithm("sm5")
    result = algorithm.next_schedule(record, quality, context, matrix)
    record = algorithms.apply_result(record, result)
"""

from drill.algorithms.common import (
    AlgorithmResult,
    ReviewContext,
    disperse_interval,
    modify_e_factor,
    random_dispersal_factor,
    running_mean,
)
from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.algorithms.registry import (
    ALGORITHMS,
    SchedulingAlgorithm,
    apply_result,
    get_algorithm,
)
from drill.algorithms.simple8 import determine_next_interval_simple8
from drill.algorithms.sm2 import determine_next_interval_sm2
from drill.algorithms.sm5 import determine_next_interval_sm5


__all__ = [
    # Strategy interface
    "ALGORITHMS",
    "SchedulingAlgorithm",
    "get_algorithm",
    "apply_result",

    # Inputs / outputs
    "AlgorithmResult",
    "ReviewContext",
    "OptimalFactorMatrix",

    # Interval functions
    "determine_next_interval_sm2",
    "determine_next_interval_sm5",
    "determine_next_interval_simple8",

    # Shared formulas
    "disperse_interval",
    "modify_e_factor",
    "random_dispersal_factor",
    "running_mean",
]
