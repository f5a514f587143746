"""Aggregation primitives shared by descriptive statistics and group-by.

All functions take a 1-D float array that has already been through
``extract_numeric``. Standard deviation is the population form (divide by n)
everywhere in the engine.
"""

import numpy as np

from tabstats.analysis.models import AggregationOperation

NAN = float("nan")


def mean(values: np.ndarray) -> float:
    if values.size == 0:
        return NAN
    return float(np.mean(values))


def population_std(values: np.ndarray) -> float:
    if values.size == 0:
        return NAN
    return float(np.std(values, ddof=0))


def median(values: np.ndarray) -> float:
    if values.size == 0:
        return NAN
    return float(np.median(values))


def quantile(sorted_values: np.ndarray, p: float) -> float:
    """R-7 (linear interpolation) quantile of an ascending array."""
    if sorted_values.size == 0:
        return NAN
    if not 0 <= p <= 1:
        raise ValueError(f"Quantile fraction must be within [0, 1], got {p}")
    return float(np.quantile(sorted_values, p, method="linear"))


def mad(values: np.ndarray) -> float:
    """Median absolute deviation from the median, unscaled."""
    if values.size == 0:
        return NAN
    return float(np.median(np.abs(values - np.median(values))))


def aggregate(values: np.ndarray, operation: AggregationOperation | str) -> float:
    try:
        op = AggregationOperation(operation)
    except ValueError:
        valid = ", ".join(o.value for o in AggregationOperation)
        raise ValueError(f"Unknown aggregation operation: {operation}. Available: {valid}") from None

    if op is AggregationOperation.SUM:
        return float(np.sum(values)) if values.size else 0.0
    if op is AggregationOperation.COUNT:
        return int(values.size)
    if op is AggregationOperation.MEAN:
        return mean(values)
    if op is AggregationOperation.MEDIAN:
        return median(values)
    if op is AggregationOperation.MIN:
        return float(np.min(values)) if values.size else NAN
    if op is AggregationOperation.MAX:
        return float(np.max(values)) if values.size else NAN
    return population_std(values)
