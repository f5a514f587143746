"""Pairwise correlation between numeric columns."""

import logging
import math
from collections.abc import Sequence
from typing import Any

import numpy as np
from scipy import stats

from tabstats.analysis import register
from tabstats.analysis.models import (
    AnalysisResult,
    CorrelationMatrix,
    CorrelationMethod,
    CorrelationResult,
    CorrelationStrength,
    json_safe,
)
from tabstats.analysis.vector import extract_pairs, has_numeric
from tabstats.config import settings
from tabstats.frame import DataFrame

log = logging.getLogger(__name__)

MIN_PAIRS = 3

# Upper limits on |r| for each label; anything above the last is very strong.
_STRENGTH_BREAKPOINTS = [
    (0.1, CorrelationStrength.NEGLIGIBLE),
    (0.3, CorrelationStrength.WEAK),
    (0.5, CorrelationStrength.MODERATE),
    (0.7, CorrelationStrength.STRONG),
]


def _method(method: CorrelationMethod | str) -> CorrelationMethod:
    try:
        return CorrelationMethod(method)
    except ValueError:
        valid = ", ".join(m.value for m in CorrelationMethod)
        raise ValueError(f"Unknown correlation method: {method}. Available: {valid}") from None


def rank(values: Sequence[float]) -> np.ndarray:
    """1-based ranks; tied values share the mean of the ranks they span."""
    return stats.rankdata(values, method="average")


def _constant(values: np.ndarray) -> bool:
    return float(np.ptp(values)) == 0


def _pearson(x: np.ndarray, y: np.ndarray) -> float:
    if _constant(x) or _constant(y):
        return float("nan")
    r, _ = stats.pearsonr(x, y)
    return max(-1.0, min(1.0, float(r)))


def _spearman(x: np.ndarray, y: np.ndarray) -> float:
    if _constant(x) or _constant(y):
        return float("nan")
    rho, _ = stats.spearmanr(x, y)
    return max(-1.0, min(1.0, float(rho)))


def _kendall_tau_a(x: np.ndarray, y: np.ndarray) -> float:
    # tau-a: tied pairs count as neither concordant nor discordant
    n = x.size
    balance = 0
    for i in range(n - 1):
        balance += int(np.sum(np.sign(x[i + 1:] - x[i]) * np.sign(y[i + 1:] - y[i])))
    total_pairs = n * (n - 1) / 2
    return balance / total_pairs


def _coefficient(x: np.ndarray, y: np.ndarray, method: CorrelationMethod) -> float:
    if x.size < MIN_PAIRS:
        return float("nan")
    if method is CorrelationMethod.SPEARMAN:
        return _spearman(x, y)
    if method is CorrelationMethod.KENDALL:
        return _kendall_tau_a(x, y)
    return _pearson(x, y)


def correlation(
    x: Sequence[Any], y: Sequence[Any], method: CorrelationMethod | str = CorrelationMethod.PEARSON
) -> float:
    """Correlation over index-aligned valid pairs; NaN with fewer than 3 pairs."""
    xs, ys = extract_pairs(x, y)
    return _coefficient(xs, ys, _method(method))


def correlation_strength(r: float) -> CorrelationStrength:
    abs_r = abs(r)
    for limit, label in _STRENGTH_BREAKPOINTS:
        if abs_r < limit:
            return label
    return CorrelationStrength.VERY_STRONG


def correlation_p_value(r: float, n: int) -> float | None:
    """Two-sided p-value for H0: rho = 0 from a coefficient over n pairs.

    Uses the null distribution of r that ``scipy.stats.pearsonr`` tests
    against, for callers that only have the coefficient.
    """
    if n < MIN_PAIRS or math.isnan(r):
        return None
    dist = stats.beta(n / 2 - 1, n / 2 - 1, loc=-1, scale=2)
    return float(2 * dist.cdf(-min(abs(r), 1.0)))


def _test_p_value(x: np.ndarray, y: np.ndarray, method: CorrelationMethod) -> float:
    test = stats.spearmanr if method is CorrelationMethod.SPEARMAN else stats.pearsonr
    _, p = test(x, y)
    return float(p)


def numeric_columns(frame: DataFrame) -> list[str]:
    return [c for c in frame.columns if has_numeric(frame.data[c])]


def correlation_matrix(
    frame: DataFrame,
    method: CorrelationMethod | str = CorrelationMethod.PEARSON,
    columns: Sequence[str] | None = None,
) -> CorrelationMatrix:
    method = _method(method)
    if columns is None:
        names = numeric_columns(frame)
    else:
        names = [c for c in columns if has_numeric(frame.column(c))]

    n = len(names)
    values = [[1.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            r = correlation(frame.data[names[i]], frame.data[names[j]], method)
            values[i][j] = r
            values[j][i] = r

    log.debug("Correlation matrix (%s) over %d columns", method.value, n)
    return CorrelationMatrix(columns=names, values=values, method=method)


def find_significant_correlations(
    frame: DataFrame,
    threshold: float = 0.5,
    method: CorrelationMethod | str = CorrelationMethod.PEARSON,
    with_p_values: bool = False,
) -> list[CorrelationResult]:
    """Upper-triangle pairs with |r| >= threshold, strongest first."""
    matrix = correlation_matrix(frame, method)
    return significant_from_matrix(frame, matrix, threshold, with_p_values)


def significant_from_matrix(
    frame: DataFrame,
    matrix: CorrelationMatrix,
    threshold: float = 0.5,
    with_p_values: bool = False,
) -> list[CorrelationResult]:
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    method = matrix.method

    results = []
    names = matrix.columns
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            r = matrix.values[i][j]
            if math.isnan(r) or abs(r) < threshold:
                continue
            xs, ys = extract_pairs(frame.data[names[i]], frame.data[names[j]])
            n_pairs = xs.size
            p_value = None
            if with_p_values and method is not CorrelationMethod.KENDALL:
                p_value = _test_p_value(xs, ys, method)
            results.append(
                CorrelationResult(
                    column1=names[i],
                    column2=names[j],
                    coefficient=r,
                    strength=correlation_strength(r),
                    p_value=p_value,
                    n_pairs=n_pairs,
                )
            )

    # sorted() is stable, so equal |r| keep scan order
    return sorted(results, key=lambda res: abs(res.coefficient), reverse=True)


@register("correlations")
def correlation_analysis(frame: DataFrame, params: dict) -> AnalysisResult:
    threshold = float(params.get("threshold", settings.defaults.correlation_threshold))
    method = _method(params.get("method", settings.defaults.correlation_method))
    with_p_values = bool(params.get("p_values", False))
    warnings: list[str] = []

    matrix = correlation_matrix(frame, method)
    if len(matrix.columns) < 2:
        warnings.append(
            f"Only {len(matrix.columns)} numeric column(s) found. Need at least 2 for correlation."
        )
    if len(matrix.columns) > settings.max_matrix_columns:
        warnings.append(
            f"{len(matrix.columns)} numeric columns exceed the configured matrix limit "
            f"of {settings.max_matrix_columns}."
        )

    significant = significant_from_matrix(frame, matrix, threshold, with_p_values)

    summary = {
        "method": method.value,
        "threshold": threshold,
        "numeric_columns": len(matrix.columns),
        "significant_pairs": len(significant),
        "matrix": matrix.to_record(),
    }

    detail_columns = ["Column 1", "Column 2", "Correlation", "Strength"]
    if with_p_values:
        detail_columns.append("p-value")
    detail_rows = []
    for res in significant:
        row = [res.column1, res.column2, round(res.coefficient, 4), res.strength.value]
        if with_p_values:
            row.append(res.p_value)
        detail_rows.append(row)

    return AnalysisResult(
        analysis_type="correlations",
        summary=summary,
        detail_columns=detail_columns,
        detail_rows=json_safe(detail_rows),
        records=[res.to_record() for res in significant],
        warnings=warnings,
    )
