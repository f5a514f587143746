"""Descriptive statistics for numeric columns."""

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np

from tabstats.analysis import register
from tabstats.analysis.calculations import NAN, mean, median, population_std, quantile
from tabstats.analysis.models import AnalysisResult, DescriptiveStats, Histogram, json_safe
from tabstats.analysis.vector import extract_numeric, has_numeric
from tabstats.frame import DataFrame

log = logging.getLogger(__name__)

DEFAULT_PERCENTILES = (10, 25, 50, 75, 90)

STAT_FIELDS = ("mean", "median", "std", "min", "max", "q1", "q3", "iqr", "skewness", "kurtosis")


def empty_stats(column: str = "", total: int = 0) -> DescriptiveStats:
    """Stats record for a column with no valid numbers."""
    return DescriptiveStats(
        column=column,
        count=0,
        mean=NAN,
        median=NAN,
        std=NAN,
        min=NAN,
        max=NAN,
        q1=NAN,
        q3=NAN,
        iqr=NAN,
        skewness=NAN,
        kurtosis=NAN,
        null_count=total,
        null_percent=100.0 if total else 0.0,
        insufficient=list(STAT_FIELDS),
    )


def skewness(values: np.ndarray, mu: float, std: float) -> float | None:
    """Bias-corrected Fisher-Pearson skewness, or None below 3 points or at zero spread."""
    n = values.size
    if n < 3 or std == 0:
        return None
    total = float(np.sum(((values - mu) / std) ** 3))
    return (n / ((n - 1) * (n - 2))) * total


def kurtosis(values: np.ndarray, mu: float, std: float) -> float | None:
    """Bias-corrected excess kurtosis, or None below 4 points or at zero spread."""
    n = values.size
    if n < 4 or std == 0:
        return None
    total = float(np.sum(((values - mu) / std) ** 4))
    k = (n * (n + 1) / ((n - 1) * (n - 2) * (n - 3))) * total
    correction = 3 * (n - 1) ** 2 / ((n - 2) * (n - 3))
    return k - correction


def describe(cells: Sequence[Any], column: str = "") -> DescriptiveStats:
    vec = extract_numeric(cells)
    if vec.count == 0:
        return empty_stats(column, vec.total)

    values = vec.values
    ordered = np.sort(values)
    mu = mean(values)
    std = population_std(values)
    q1 = quantile(ordered, 0.25)
    q3 = quantile(ordered, 0.75)

    insufficient = []
    skew = skewness(values, mu, std)
    if skew is None:
        insufficient.append("skewness")
        skew = 0.0
    kurt = kurtosis(values, mu, std)
    if kurt is None:
        insufficient.append("kurtosis")
        kurt = 0.0

    return DescriptiveStats(
        column=column,
        count=vec.count,
        mean=mu,
        median=median(ordered),
        std=std,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
        skewness=skew,
        kurtosis=kurt,
        null_count=vec.null_count,
        null_percent=vec.null_count / vec.total * 100,
        insufficient=insufficient,
    )


def describe_column(frame: DataFrame, column: str) -> DescriptiveStats:
    return describe(frame.column(column), column=column)


def describe_all(frame: DataFrame) -> list[DescriptiveStats]:
    """Stats for every column holding at least one number, in column order."""
    results = []
    for column in frame.columns:
        cells = frame.data[column]
        if not has_numeric(cells):
            continue
        try:
            results.append(describe(cells, column=column))
        except (ValueError, ArithmeticError) as exc:
            log.warning("Statistics failed for column %r, using empty stats: %s", column, exc)
            results.append(empty_stats(column, len(cells)))
    return results


def percentiles(
    cells: Sequence[Any], percentile_list: Sequence[float] = DEFAULT_PERCENTILES
) -> dict[float, float]:
    ordered = np.sort(extract_numeric(cells).values)
    result = {}
    for p in percentile_list:
        if not 0 <= p <= 100:
            raise ValueError(f"Percentile must be within [0, 100], got {p}")
        result[p] = quantile(ordered, p / 100)
    return result


def histogram(cells: Sequence[Any], bins: int = 10) -> Histogram:
    """Equal-width histogram between min and max; the max lands in the last bin."""
    if bins <= 0:
        raise ValueError(f"bins must be positive, got {bins}")
    values = extract_numeric(cells).values
    if values.size == 0:
        return Histogram()

    lo = float(values.min())
    hi = float(values.max())
    width = (hi - lo) / bins
    edges = [lo + i * width for i in range(bins + 1)]
    if width == 0:
        # constant column
        idx = np.zeros(values.size, dtype=int)
    else:
        idx = np.minimum(np.floor((values - lo) / width).astype(int), bins - 1)
    counts = np.bincount(idx, minlength=bins)
    return Histogram(bin_edges=edges, counts=[int(c) for c in counts])


@register("describe")
def describe_analysis(frame: DataFrame, params: dict) -> AnalysisResult:
    warnings: list[str] = []
    results = describe_all(frame)

    if not results:
        warnings.append("No numeric columns found for analysis.")

    for stats in results:
        if stats.null_count:
            warnings.append(
                f"{stats.column}: {stats.null_count} of {stats.count + stats.null_count} "
                f"values are missing or non-numeric ({stats.null_percent:.1f}%)."
            )

    summary = {
        "numeric_columns": len(results),
        "row_count": frame.row_count,
    }

    detail_columns = ["Column", "Count", "Mean", "Median", "Std", "Min", "Max", "Q1", "Q3"]
    detail_rows = [
        [s.column, s.count, s.mean, s.median, s.std, s.min, s.max, s.q1, s.q3]
        for s in results
    ]

    return AnalysisResult(
        analysis_type="describe",
        summary=summary,
        detail_columns=detail_columns,
        detail_rows=json_safe(detail_rows),
        records=[s.to_record() for s in results],
        warnings=warnings,
    )
