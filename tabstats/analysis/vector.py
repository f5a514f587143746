"""Coercion of raw column cells into clean float vectors.

Every statistic starts here, so the rules for what counts as a number live in
one place:

- ``int``, ``float``, ``Decimal`` and numpy numeric scalars are numbers.
- ``bool`` is not a number, even though it subclasses ``int``.
- ``None``, NaN, +/-inf and ints too large for a float are missing.
- Anything else (strings, dates, ...) is invalid.
"""

import math
import numbers
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import numpy as np

_NUMERIC_TYPES = (numbers.Real, Decimal)


@dataclass(frozen=True)
class NumericVector:
    values: np.ndarray
    indices: np.ndarray
    total: int
    missing_count: int = 0
    invalid_count: int = 0

    @property
    def count(self) -> int:
        return int(self.values.size)

    @property
    def null_count(self) -> int:
        return self.total - self.count

    def __len__(self) -> int:
        return self.count


def _to_float(cell: Any) -> float:
    """``float(cell)``, with ints beyond float range mapped to +/-inf."""
    try:
        return float(cell)
    except OverflowError:
        return math.inf if cell > 0 else -math.inf


def as_number(cell: Any) -> float | None:
    """Return ``cell`` as a finite float, or None when it is not one."""
    if isinstance(cell, (bool, np.bool_)):
        return None
    if not isinstance(cell, _NUMERIC_TYPES):
        return None
    value = _to_float(cell)
    if not math.isfinite(value):
        return None
    return value


def _is_missing(cell: Any) -> bool:
    if cell is None:
        return True
    if isinstance(cell, (bool, np.bool_)):
        return False
    return isinstance(cell, _NUMERIC_TYPES) and not math.isfinite(_to_float(cell))


def extract_numeric(cells: Sequence[Any]) -> NumericVector:
    values: list[float] = []
    indices: list[int] = []
    missing = 0
    invalid = 0
    for i, cell in enumerate(cells):
        value = as_number(cell)
        if value is not None:
            values.append(value)
            indices.append(i)
        elif _is_missing(cell):
            missing += 1
        else:
            invalid += 1
    return NumericVector(
        values=np.asarray(values, dtype=float),
        indices=np.asarray(indices, dtype=int),
        total=len(cells),
        missing_count=missing,
        invalid_count=invalid,
    )


def has_numeric(cells: Sequence[Any]) -> bool:
    return any(as_number(cell) is not None for cell in cells)


def extract_pairs(x: Sequence[Any], y: Sequence[Any]) -> tuple[np.ndarray, np.ndarray]:
    """Index-aligned values where both sides are numbers."""
    xs: list[float] = []
    ys: list[float] = []
    for a, b in zip(x, y):
        va = as_number(a)
        vb = as_number(b)
        if va is None or vb is None:
            continue
        xs.append(va)
        ys.append(vb)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)
