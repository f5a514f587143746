"""Per-value outlier detection: IQR fences, Z-score and modified Z-score (MAD)."""

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np

from tabstats.analysis import register
from tabstats.analysis.calculations import NAN, mad, mean, median, population_std, quantile
from tabstats.analysis.models import (
    AnalysisResult,
    OutlierMethod,
    OutlierPoint,
    OutlierResult,
    json_safe,
)
from tabstats.analysis.vector import extract_numeric, has_numeric
from tabstats.config import settings
from tabstats.frame import DataFrame

log = logging.getLogger(__name__)

# Scales the MAD to the standard deviation of a normal distribution (Iglewicz & Hoaglin).
MAD_CONSTANT = 0.6745


def _points(indices: np.ndarray, values: np.ndarray, scores: np.ndarray, mask: np.ndarray) -> list[OutlierPoint]:
    return [
        OutlierPoint(index=int(i), value=float(v), score=float(s))
        for i, v, s in zip(indices[mask], values[mask], scores[mask])
    ]


def detect_outliers_iqr(cells: Sequence[Any], multiplier: float = 1.5, column: str = "") -> OutlierResult:
    if multiplier < 0:
        raise ValueError(f"multiplier must be non-negative, got {multiplier}")
    vec = extract_numeric(cells)
    if vec.count == 0:
        return OutlierResult(column=column, method=OutlierMethod.IQR, lower_bound=NAN, upper_bound=NAN)

    ordered = np.sort(vec.values)
    q1 = quantile(ordered, 0.25)
    q3 = quantile(ordered, 0.75)
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr

    values = vec.values
    below = values < lower
    above = values > upper
    distance = np.where(below, lower - values, values - upper)
    # zero IQR: keep the raw distance so scores stay finite
    scores = distance / iqr if iqr > 0 else distance

    if iqr == 0:
        log.debug("Zero IQR in column %r, scoring outliers by raw distance", column)

    return OutlierResult(
        column=column,
        method=OutlierMethod.IQR,
        outliers=_points(vec.indices, values, scores, below | above),
        lower_bound=lower,
        upper_bound=upper,
        degenerate=iqr == 0,
    )


def detect_outliers_zscore(cells: Sequence[Any], threshold: float = 3.0, column: str = "") -> OutlierResult:
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    vec = extract_numeric(cells)
    if vec.count == 0:
        return OutlierResult(column=column, method=OutlierMethod.ZSCORE, lower_bound=NAN, upper_bound=NAN)

    mu = mean(vec.values)
    std = population_std(vec.values)
    if std == 0:
        log.warning("Zero standard deviation in column %r; reporting no Z-score outliers", column)
        return OutlierResult(
            column=column,
            method=OutlierMethod.ZSCORE,
            lower_bound=mu,
            upper_bound=mu,
            degenerate=True,
        )

    scores = np.abs(vec.values - mu) / std
    return OutlierResult(
        column=column,
        method=OutlierMethod.ZSCORE,
        outliers=_points(vec.indices, vec.values, scores, scores > threshold),
        lower_bound=mu - threshold * std,
        upper_bound=mu + threshold * std,
    )


def detect_outliers_modified_zscore(
    cells: Sequence[Any], threshold: float = 3.5, column: str = ""
) -> OutlierResult:
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    vec = extract_numeric(cells)
    if vec.count == 0:
        return OutlierResult(
            column=column, method=OutlierMethod.MODIFIED_ZSCORE, lower_bound=NAN, upper_bound=NAN
        )

    med = median(vec.values)
    spread = mad(vec.values)
    if spread == 0:
        log.warning("Zero MAD in column %r; reporting no modified Z-score outliers", column)
        return OutlierResult(
            column=column,
            method=OutlierMethod.MODIFIED_ZSCORE,
            lower_bound=med,
            upper_bound=med,
            degenerate=True,
        )

    scores = np.abs(MAD_CONSTANT * (vec.values - med) / spread)
    return OutlierResult(
        column=column,
        method=OutlierMethod.MODIFIED_ZSCORE,
        outliers=_points(vec.indices, vec.values, scores, scores > threshold),
        lower_bound=med - threshold * spread / MAD_CONSTANT,
        upper_bound=med + threshold * spread / MAD_CONSTANT,
    )


def detect_outliers(
    cells: Sequence[Any],
    method: OutlierMethod | str = OutlierMethod.IQR,
    column: str = "",
    **options: float,
) -> OutlierResult:
    """Dispatch to one detector; ``options`` are its multiplier/threshold."""
    try:
        method = OutlierMethod(method)
    except ValueError:
        valid = ", ".join(m.value for m in OutlierMethod)
        raise ValueError(f"Unknown outlier method: {method}. Available: {valid}") from None

    if method is OutlierMethod.ZSCORE:
        return detect_outliers_zscore(cells, column=column, **options)
    if method is OutlierMethod.MODIFIED_ZSCORE:
        return detect_outliers_modified_zscore(cells, column=column, **options)
    return detect_outliers_iqr(cells, column=column, **options)


def detect_column_outliers(
    frame: DataFrame, column: str, method: OutlierMethod | str = OutlierMethod.IQR, **options: float
) -> OutlierResult:
    return detect_outliers(frame.column(column), method, column=column, **options)


def default_options(method: OutlierMethod) -> dict[str, float]:
    defaults = settings.defaults
    if method is OutlierMethod.ZSCORE:
        return {"threshold": defaults.zscore_threshold}
    if method is OutlierMethod.MODIFIED_ZSCORE:
        return {"threshold": defaults.modified_zscore_threshold}
    return {"multiplier": defaults.iqr_multiplier}


@register("anomalies")
def anomaly_analysis(frame: DataFrame, params: dict) -> AnalysisResult:
    method = OutlierMethod(params.get("method", OutlierMethod.IQR))
    options = default_options(method)
    for key in options:
        if key in params:
            options[key] = float(params[key])

    if params.get("column"):
        columns = [params["column"]]
        frame.column(params["column"])
    else:
        columns = [c for c in frame.columns if has_numeric(frame.data[c])]

    warnings: list[str] = []
    flagged: list[OutlierResult] = []
    for col in columns:
        result = detect_outliers(frame.data[col], method, column=col, **options)
        if result.degenerate:
            warnings.append(f"{col}: zero spread, outlier scores are not meaningful.")
        if result.outliers:
            log.debug("%s: %d outliers", col, len(result.outliers))
            flagged.append(result)

    total = sum(len(r.outliers) for r in flagged)
    summary = {
        "method": method.value,
        "columns_checked": len(columns),
        "columns_with_outliers": len(flagged),
        "total_outliers": total,
        **options,
    }

    detail_columns = ["Column", "Outliers", "Lower Bound", "Upper Bound", "Sample Values"]
    detail_rows = [
        [
            r.column,
            len(r.outliers),
            r.lower_bound,
            r.upper_bound,
            ", ".join(f"{o.value:.2f}" for o in r.outliers[:5]) + ("..." if len(r.outliers) > 5 else ""),
        ]
        for r in flagged
    ]

    return AnalysisResult(
        analysis_type="anomalies",
        summary=summary,
        detail_columns=detail_columns,
        detail_rows=json_safe(detail_rows),
        records=[r.to_record() for r in flagged],
        warnings=warnings,
    )
