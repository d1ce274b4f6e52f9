"""
Drill Constants and Parameters

All scheduling parameters and option defaults in one place.
Values follow the published SuperMemo SM2/SM5 descriptions and the
Simple8 fit; options can be overridden through drill.config.
"""

from enum import Enum, IntEnum


# ---- Quality Ratings ----

class Quality(IntEnum):
    """Recall quality reported after one review."""
    BLACKOUT = 0     # Complete failure to recall
    WRONG = 1        # Wrong, but recognised the answer
    WRONG_EASY = 2   # Wrong, but the answer seemed easy once shown
    HARD = 3         # Correct with serious difficulty
    GOOD = 4         # Correct after hesitation
    PERFECT = 5      # Perfect recall


MIN_QUALITY = 0
MAX_QUALITY = 5


# ---- Algorithm Selection ----

class AlgorithmName(str, Enum):
    SM2 = "sm2"
    SM5 = "sm5"
    SIMPLE8 = "simple8"


class LeechMethod(str, Enum):
    IGNORE = "ignore"  # Leeches are reviewed like any other item
    SKIP = "skip"      # Leeches are excluded from sessions
    WARN = "warn"      # Leeches are reviewed, the presenter is warned


# ---- Sentinels ----

REVIEW_NOW = -1.0  # Interval meaning "schedule for today"
LEECH_TAG = "leech"


# ---- Easiness Factor (SM2 / SM5) ----

INITIAL_EASE = 2.5
MIN_EASE = 1.3


# ---- SM5 ----

SM5_INITIAL_OPTIMAL_FACTOR = 2.5  # OF used for the first repetition
OF_DECIMALS = 3
# Empirical OF target: OF * (OF_QUALITY_BASE + q * OF_QUALITY_STEP)
OF_QUALITY_BASE = 0.72
OF_QUALITY_STEP = 0.07
# Early review adjustment: fraction of the interval used as damping window
EARLY_REVIEW_DAMPING = 0.6


# ---- Simple8 ----

SIMPLE8_FIRST_INTERVAL = 2.4849
SIMPLE8_FAILURE_DECAY = -0.057
SIMPLE8_MIN_FACTOR = 1.2
# ease(q) = sum(c * q**power)
SIMPLE8_EASE_COEFFICIENTS = (
    (4, 0.0542),
    (3, -0.4848),
    (2, 1.4916),
    (1, -1.2403),
    (0, 1.4515),
)


# ---- SM2 noise table ----
# Second interval by quality when random noise is enabled
SM2_NOISY_SECOND_INTERVAL = {5: 6, 4: 4, 3: 3, 2: 1}
SM2_FIRST_INTERVAL = 1
SM2_SECOND_INTERVAL = 6


# ---- Random Dispersal ----
# Skew envelope of the dispersal distribution
DISPERSAL_A = 0.047
DISPERSAL_B = 0.092


# ---- Option Defaults ----

DEFAULT_FAILURE_QUALITY = 2
DEFAULT_FORGETTING_INDEX = 10
DEFAULT_LEECH_FAILURE_THRESHOLD = 15
DEFAULT_LEECH_METHOD = LeechMethod.SKIP
DEFAULT_ALGORITHM = AlgorithmName.SM5
DEFAULT_CRAM_HOURS = 12
DEFAULT_DAYS_BEFORE_OLD = 10
DEFAULT_OVERDUE_INTERVAL_FACTOR = 1.2
DEFAULT_LEARN_FRACTION = 0.5
DEFAULT_MAX_ITEMS_PER_SESSION = 30
DEFAULT_MAX_DURATION_MINUTES = 20
