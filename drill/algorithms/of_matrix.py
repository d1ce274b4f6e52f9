"""
Optimal-Factor Matrix for SM5.

Maps (repetition number, easiness factor) to the optimal factor learned
so far. Entries are only ever added or overwritten, never removed, and
the whole table round-trips verbatim through rows or a plain dict.
"""

from __future__ import annotations
from typing import Iterable, Iterator, Optional

from drill.constants import OF_DECIMALS


MatrixRow = tuple[int, float, float]


def _ease_key(ease: float) -> float:
    return round(float(ease), OF_DECIMALS)


class OptimalFactorMatrix:
    """Sparse (n, EF) -> OF table."""

    def __init__(self, rows: Optional[Iterable[MatrixRow]] = None):
        self._entries: dict[int, dict[float, float]] = {}
        for n, ease, factor in rows or ():
            self.set(n, ease, factor)

    def lookup(self, n: int, ease: float, default: Optional[float] = None) -> Optional[float]:
        """Return the OF stored for (n, ease), or default."""
        return self._entries.get(n, {}).get(_ease_key(ease), default)

    def set(self, n: int, ease: float, factor: float) -> None:
        if n < 1:
            raise ValueError(f"repetition number must be >= 1, got {n}")
        self._entries.setdefault(n, {})[_ease_key(ease)] = float(factor)

    def copy(self) -> "OptimalFactorMatrix":
        return OptimalFactorMatrix(self.to_rows())

    def to_rows(self) -> list[MatrixRow]:
        """All entries as (n, ease, of) sorted by n then ease."""
        return [
            (n, ease, factor)
            for n in sorted(self._entries)
            for ease, factor in sorted(self._entries[n].items())
        ]

    @classmethod
    def from_rows(cls, rows: Iterable[MatrixRow]) -> "OptimalFactorMatrix":
        return cls(rows)

    def to_dict(self) -> dict[str, dict[str, float]]:
        """JSON-friendly form: {"n": {"ease": of}}."""
        return {
            str(n): {f"{ease:.{OF_DECIMALS}f}": factor for ease, factor in sorted(row.items())}
            for n, row in sorted(self._entries.items())
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OptimalFactorMatrix":
        matrix = cls()
        for n, row in data.items():
            for ease, factor in row.items():
                matrix.set(int(n), float(ease), float(factor))
        return matrix

    def __len__(self) -> int:
        return sum(len(row) for row in self._entries.values())

    def __iter__(self) -> Iterator[MatrixRow]:
        return iter(self.to_rows())

    def __contains__(self, key: tuple[int, float]) -> bool:
        n, ease = key
        return _ease_key(ease) in self._entries.get(n, {})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptimalFactorMatrix):
            return NotImplemented
        return self.to_rows() == other.to_rows()

    def __repr__(self) -> str:
        return f"<OptimalFactorMatrix({len(self)} entries)>"
