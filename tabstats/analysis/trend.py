"""Trend classification of a numeric sequence against its position."""

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
from scipy import stats

from tabstats.analysis import register
from tabstats.analysis.models import (
    AnalysisResult,
    GrowthRate,
    Seasonality,
    Trend,
    TrendAnalysis,
    json_safe,
)
from tabstats.analysis.vector import extract_numeric, has_numeric
from tabstats.config import settings
from tabstats.frame import DataFrame

log = logging.getLogger(__name__)

MIN_POINTS = 3
FLAT_SLOPE_RATIO = 0.01
MIN_R_SQUARED = 0.3

_ICONS = {
    Trend.INCREASING: "↗",
    Trend.DECREASING: "↘",
    Trend.VOLATILE: "↕",
    Trend.STABLE: "→",
}


def _fit(values: np.ndarray) -> tuple[float, float, float]:
    """OLS of value on 0-based position: (slope, intercept, r_squared)."""
    x = np.arange(values.size, dtype=float)
    fit = stats.linregress(x, values)
    residuals = values - (fit.intercept + fit.slope * x)
    ss_tot = float(np.sum((values - values.mean()) ** 2))
    if ss_tot == 0:
        return float(fit.slope), float(fit.intercept), 0.0
    r_squared = 1 - float(np.sum(residuals ** 2)) / ss_tot
    return float(fit.slope), float(fit.intercept), min(1.0, max(0.0, r_squared))


def classify(slope: float, r_squared: float, mean: float) -> Trend:
    # order matters: a steep but noisy series is volatile, not rising/falling.
    # flatness is relative to the signed mean; an exactly flat slope is always stable
    if slope == 0 or abs(slope) < FLAT_SLOPE_RATIO * mean:
        return Trend.STABLE
    if r_squared < MIN_R_SQUARED:
        return Trend.VOLATILE
    return Trend.INCREASING if slope > 0 else Trend.DECREASING


def growth_rate(cells: Sequence[Any]) -> GrowthRate:
    values = extract_numeric(cells).values
    if values.size < 2:
        return GrowthRate(absolute=0.0, relative=0.0)

    first = float(values[0])
    last = float(values[-1])
    relative = (last - first) / first if first != 0 else 0.0

    cagr = None
    if values.size > 2 and first > 0 and last > 0:
        periods = values.size - 1
        cagr = (last / first) ** (1 / periods) - 1

    return GrowthRate(absolute=last - first, relative=relative, cagr=cagr)


def detect_seasonality(
    values: np.ndarray,
    min_period: int = 2,
    max_period: int | None = None,
    threshold: float = 0.5,
) -> Seasonality:
    """Strongest autocorrelation lag of the detrended series.

    Only lags that fit at least two full cycles are considered. The
    autocorrelation at the chosen lag, clipped to [0, 1], is the strength.
    """
    if min_period < 1:
        raise ValueError(f"min_period must be positive, got {min_period}")
    values = np.asarray(values, dtype=float)
    n = values.size
    longest = n // 2 if max_period is None else min(max_period, n // 2)
    if n < 2 * min_period or longest < min_period:
        return Seasonality(detected=False)

    slope, intercept, _ = _fit(values)
    residuals = values - (intercept + slope * np.arange(n))
    ss_res = float(np.sum(residuals ** 2))
    ss_tot = float(np.sum((values - values.mean()) ** 2))
    if ss_res <= 1e-10 * max(ss_tot, 1.0):
        return Seasonality(detected=False)

    lags = range(min_period, longest + 1)
    acf = [float(np.sum(residuals[:-lag] * residuals[lag:])) / ss_res for lag in lags]
    best = int(np.argmax(acf))
    strength = min(1.0, max(0.0, acf[best]))
    if strength < threshold:
        return Seasonality(detected=False, strength=strength)
    return Seasonality(detected=True, period=lags[best], strength=strength)


def analyze_trend(
    cells: Sequence[Any],
    column: str = "",
    seasonality: bool = False,
    seasonality_threshold: float = 0.5,
) -> TrendAnalysis:
    values = extract_numeric(cells).values
    growth = growth_rate(values)

    if values.size < MIN_POINTS:
        return TrendAnalysis(
            column=column,
            trend=Trend.STABLE,
            slope=0.0,
            r_squared=0.0,
            insufficient=True,
            growth=growth,
        )

    slope, intercept, r_squared = _fit(values)
    season = None
    if seasonality:
        season = detect_seasonality(values, threshold=seasonality_threshold)

    return TrendAnalysis(
        column=column,
        trend=classify(slope, r_squared, float(values.mean())),
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        seasonality=season,
        growth=growth,
    )


def analyze_column_trend(frame: DataFrame, column: str, **kwargs) -> TrendAnalysis:
    return analyze_trend(frame.column(column), column=column, **kwargs)


@register("trend")
def trend_analysis(frame: DataFrame, params: dict) -> AnalysisResult:
    with_seasonality = bool(params.get("seasonality", False))
    threshold = float(params.get("seasonality_threshold", settings.defaults.seasonality_threshold))

    if params.get("column"):
        columns = [params["column"]]
        frame.column(params["column"])
    else:
        columns = [c for c in frame.columns if has_numeric(frame.data[c])]

    warnings: list[str] = []
    trends: list[TrendAnalysis] = []
    for col in columns:
        count = extract_numeric(frame.data[col]).count
        if count < MIN_POINTS:
            warnings.append(f"{col}: only {count} numeric values, need at least {MIN_POINTS} for a trend.")
            continue
        result = analyze_trend(
            frame.data[col], column=col, seasonality=with_seasonality, seasonality_threshold=threshold
        )
        log.debug("%s: %s slope=%.4f r2=%.3f", col, result.trend.value, result.slope, result.r_squared)
        trends.append(result)

    summary = {t.value: sum(1 for r in trends if r.trend is t) for t in Trend}
    summary["columns_analyzed"] = len(trends)

    detail_columns = ["Column", "Trend", "Slope", "R²", "Absolute Growth", "Relative Growth", "CAGR"]
    detail_rows = [
        [
            r.column,
            f"{_ICONS[r.trend]} {r.trend.value}",
            round(r.slope, 4),
            round(r.r_squared, 3),
            r.growth.absolute,
            r.growth.relative,
            r.growth.cagr,
        ]
        for r in trends
    ]
    if with_seasonality:
        detail_columns.append("Period")
        for row, r in zip(detail_rows, trends):
            row.append(r.seasonality.period if r.seasonality and r.seasonality.detected else None)

    return AnalysisResult(
        analysis_type="trend",
        summary=summary,
        detail_columns=detail_columns,
        detail_rows=json_safe(detail_rows),
        records=[r.to_record() for r in trends],
        warnings=warnings,
    )
