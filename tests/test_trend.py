import math

import numpy as np
import pytest

from tabstats.analysis.models import Trend
from tabstats.analysis.trend import (
    analyze_column_trend,
    analyze_trend,
    classify,
    detect_seasonality,
    growth_rate,
)
from tabstats.frame import MissingColumnError


def test_linear_increase():
    result = analyze_trend(list(range(1, 101)))

    assert result.trend == Trend.INCREASING
    assert result.slope == pytest.approx(1.0)
    assert result.intercept == pytest.approx(1.0)
    assert result.r_squared == pytest.approx(1.0)
    assert not result.insufficient


def test_linear_decrease():
    result = analyze_trend([50 - 2 * i for i in range(20)])
    assert result.trend == Trend.DECREASING
    assert result.slope == pytest.approx(-2.0)


def test_fewer_than_three_points_is_stable():
    result = analyze_trend([1, None, 5])

    assert result.trend == Trend.STABLE
    assert result.slope == 0
    assert result.r_squared == 0
    assert result.insufficient


def test_small_slope_relative_to_mean_is_stable():
    result = analyze_trend([100, 101, 100, 101, 102])
    assert result.slope == pytest.approx(0.4)
    assert result.trend == Trend.STABLE


def test_constant_series_is_stable():
    result = analyze_trend([7, 7, 7, 7])
    assert result.trend == Trend.STABLE
    assert result.r_squared == 0


def test_large_slope_with_poor_fit_is_volatile():
    result = analyze_trend([0, 100] * 5)

    assert result.slope == pytest.approx(250 / 82.5)
    assert result.r_squared < 0.3
    assert result.trend == Trend.VOLATILE


def test_classification_order():
    assert classify(slope=0.001, r_squared=0.0, mean=10) == Trend.STABLE
    assert classify(slope=5, r_squared=0.1, mean=10) == Trend.VOLATILE
    assert classify(slope=-5, r_squared=0.9, mean=10) == Trend.DECREASING


def test_invalid_cells_are_skipped():
    result = analyze_trend([1, "x", 2, None, 3, 4])
    assert result.slope == pytest.approx(1.0)


def test_growth_rate():
    growth = growth_rate([100, 110, 121])
    assert growth.absolute == pytest.approx(21)
    assert growth.relative == pytest.approx(0.21)
    assert growth.cagr == pytest.approx(0.1)


def test_growth_rate_edge_cases():
    assert growth_rate([5]).absolute == 0
    assert growth_rate([0, 5, 10]).relative == 0
    assert growth_rate([0, 5, 10]).cagr is None
    assert growth_rate([2, 4]).cagr is None


def test_trend_carries_growth():
    result = analyze_trend([100, 110, 121])
    assert result.growth.cagr == pytest.approx(0.1)


def test_seasonality_detects_period():
    values = np.sin(2 * np.pi * np.arange(48) / 12)
    season = detect_seasonality(values)

    assert season.detected
    assert season.period == 12
    assert 0.5 <= season.strength <= 1


def test_seasonality_on_top_of_trend():
    pattern = [0, 10, 0, -10]
    values = [i + pattern[i % 4] for i in range(40)]
    result = analyze_trend(values, seasonality=True)

    assert result.trend == Trend.INCREASING
    assert result.seasonality.detected
    assert result.seasonality.period == 4


def test_no_seasonality_in_straight_line():
    assert not detect_seasonality(np.arange(30, dtype=float)).detected
    assert not detect_seasonality(np.array([1.0, 2.0, 3.0])).detected


def test_seasonality_off_by_default():
    assert analyze_trend(list(range(10))).seasonality is None


def test_column_lookup(sales_frame):
    result = analyze_column_trend(sales_frame, "returns")
    assert result.column == "returns"
    assert result.trend == Trend.DECREASING
    with pytest.raises(MissingColumnError):
        analyze_column_trend(sales_frame, "nope")


def test_record_uses_camel_case():
    record = analyze_trend(list(range(10))).to_record()
    assert record["rSquared"] == pytest.approx(1.0)
    assert record["trend"] == "increasing"
    assert not math.isnan(record["slope"])


def test_negative_mean_series_is_not_flattened():
    result = analyze_trend([-1000 - 5 * i for i in range(10)])

    assert result.slope == pytest.approx(-5.0)
    assert result.r_squared == pytest.approx(1.0)
    assert result.trend == Trend.DECREASING


def test_flatness_uses_signed_mean():
    assert classify(slope=0.001, r_squared=0.9, mean=-10) == Trend.INCREASING
    assert classify(slope=0.0, r_squared=0.0, mean=-10) == Trend.STABLE
