"""
Configuration - Drill options and environment loading

Options are read from DRILL_* environment variables. A .env file in the
working directory is loaded first so local settings do not need exporting.

Example .env:
    DRILL_ALGORITHM=simple8
    DRILL_MAX_ITEMS_PER_SESSION=none
    DRILL_DATABASE_URL=sqlite:///drill.db
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, replace
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from drill.constants import (
    AlgorithmName,
    LeechMethod,
    DEFAULT_ALGORITHM,
    DEFAULT_CRAM_HOURS,
    DEFAULT_DAYS_BEFORE_OLD,
    DEFAULT_FAILURE_QUALITY,
    DEFAULT_FORGETTING_INDEX,
    DEFAULT_LEARN_FRACTION,
    DEFAULT_LEECH_FAILURE_THRESHOLD,
    DEFAULT_LEECH_METHOD,
    DEFAULT_MAX_DURATION_MINUTES,
    DEFAULT_MAX_ITEMS_PER_SESSION,
    DEFAULT_OVERDUE_INTERVAL_FACTOR,
)
from drill.errors import UnknownAlgorithm


ENV_PREFIX = "DRILL_"
DEFAULT_DATABASE_URL = "sqlite:///drill.db"
DEFAULT_TEST_DATABASE_URL = "sqlite:///test_drill.db"

T = TypeVar("T")


@dataclass(frozen=True)
class DrillConfig:
    """
    Persisted drill options.

    Optional limits use None for "disabled" / "unlimited".
    """
    failure_quality: int = DEFAULT_FAILURE_QUALITY
    forgetting_index: float = DEFAULT_FORGETTING_INDEX
    leech_failure_threshold: Optional[int] = DEFAULT_LEECH_FAILURE_THRESHOLD
    leech_method: LeechMethod = DEFAULT_LEECH_METHOD
    algorithm: AlgorithmName = DEFAULT_ALGORITHM
    add_random_noise: bool = False
    adjust_for_early_late: bool = False
    cram_hours: float = DEFAULT_CRAM_HOURS
    days_before_old: float = DEFAULT_DAYS_BEFORE_OLD
    overdue_interval_factor: float = DEFAULT_OVERDUE_INTERVAL_FACTOR
    learn_fraction: float = DEFAULT_LEARN_FRACTION
    max_items_per_session: Optional[int] = DEFAULT_MAX_ITEMS_PER_SESSION
    max_duration_minutes: Optional[float] = DEFAULT_MAX_DURATION_MINUTES

    def validate(self) -> "DrillConfig":
        """Check option ranges, returning self so calls can be chained."""
        if self.failure_quality not in (1, 2):
            raise ValueError(f"failure_quality must be 1 or 2, got {self.failure_quality}")
        if not 0 <= self.forgetting_index <= 100:
            raise ValueError(f"forgetting_index must be a percentage, got {self.forgetting_index}")
        if self.leech_failure_threshold is not None and self.leech_failure_threshold < 0:
            raise ValueError("leech_failure_threshold must be >= 0")
        if self.overdue_interval_factor < 1.0:
            raise ValueError(
                f"overdue_interval_factor must be >= 1.0, got {self.overdue_interval_factor}"
            )
        if not 0 < self.learn_fraction < 1:
            raise ValueError(f"learn_fraction must be in (0, 1), got {self.learn_fraction}")
        if self.cram_hours < 0:
            raise ValueError("cram_hours must be >= 0")
        if self.days_before_old < 0:
            raise ValueError("days_before_old must be >= 0")
        if self.max_items_per_session is not None and self.max_items_per_session < 1:
            raise ValueError("max_items_per_session must be >= 1 or unlimited")
        if self.max_duration_minutes is not None and self.max_duration_minutes <= 0:
            raise ValueError("max_duration_minutes must be > 0 or unlimited")
        return self

    def with_options(self, **changes) -> "DrillConfig":
        """Copy with some options replaced (validated)."""
        return replace(self, **changes).validate()


# ---- Environment parsing ----

def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _parse_algorithm(raw: str) -> AlgorithmName:
    try:
        return AlgorithmName(raw.strip().lower())
    except ValueError:
        raise UnknownAlgorithm(f"Unknown algorithm: {raw!r}") from None


def _optional(parse: Callable[[str], T]) -> Callable[[str], Optional[T]]:
    def _parse(raw: str) -> Optional[T]:
        if raw.strip().lower() in ("", "none", "unlimited", "disabled", "off"):
            return None
        return parse(raw)
    return _parse


_FIELD_PARSERS: dict[str, Callable[[str], object]] = {
    "failure_quality": int,
    "forgetting_index": float,
    "leech_failure_threshold": _optional(int),
    "leech_method": lambda raw: LeechMethod(raw.strip().lower()),
    "algorithm": _parse_algorithm,
    "add_random_noise": _parse_bool,
    "adjust_for_early_late": _parse_bool,
    "cram_hours": float,
    "days_before_old": float,
    "overdue_interval_factor": float,
    "learn_fraction": float,
    "max_items_per_session": _optional(int),
    "max_duration_minutes": _optional(float),
}


def load_config(environ: Optional[dict[str, str]] = None) -> DrillConfig:
    """
    Build a DrillConfig from DRILL_* environment variables.

    Args:
        environ: Mapping to read instead of os.environ (the .env file is
            only loaded when reading the real environment)

    Returns:
        Validated DrillConfig; unset variables keep their defaults

    Raises:
        ValueError: naming the offending variable
        UnknownAlgorithm: DRILL_ALGORITHM is not sm2, sm5 or simple8
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    options = {}
    for field_name, parse in _FIELD_PARSERS.items():
        var = ENV_PREFIX + field_name.upper()
        raw = environ.get(var)
        if raw is None:
            continue
        try:
            options[field_name] = parse(raw)
        except UnknownAlgorithm as exc:
            raise UnknownAlgorithm(f"Invalid value for {var}: {exc}") from exc
        except ValueError as exc:
            raise ValueError(f"Invalid value for {var}: {exc}") from exc

    return DrillConfig(**options).validate()


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    TEST_MODE=true switches to DRILL_TEST_DATABASE_URL so experiments never
    touch the real review history.
    """
    load_dotenv()
    if is_test_mode():
        return os.getenv("DRILL_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)
    return os.getenv("DRILL_DATABASE_URL", DEFAULT_DATABASE_URL)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from DRILL_LOG_LEVEL (default INFO)."""
    level_name = (level or os.getenv("DRILL_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
