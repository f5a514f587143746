import math

import pytest

from tabstats.analysis.correlation import (
    correlation,
    correlation_matrix,
    correlation_p_value,
    correlation_strength,
    find_significant_correlations,
    rank,
)
from tabstats.analysis.models import CorrelationMethod, CorrelationStrength
from tabstats.frame import DataFrame, MissingColumnError


@pytest.fixture
def frame() -> DataFrame:
    return DataFrame.from_columns(
        {
            "a": [1, 2, 3, 4, 5],
            "b": [2, 4, 6, 8, 10],
            "name": ["v", "w", "x", "y", "z"],
            "c": [5, 3, 4, 1, 2],
        }
    )


def test_perfect_positive_pearson():
    assert correlation([1, 2, 3, 4, 5], [2, 4, 6, 8, 10], "pearson") == pytest.approx(1.0)


def test_perfect_negative_pearson():
    assert correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)


def test_pairs_with_missing_side_are_dropped():
    r = correlation([1, "a", 3, 4, 5, None], [2, 4, 6, 8, 10, 12])
    assert r == pytest.approx(1.0)


def test_fewer_than_three_pairs_is_nan():
    assert math.isnan(correlation([1, 2, None], [1, None, 3]))
    assert math.isnan(correlation([1, 2], [3, 4], "kendall"))


def test_zero_variance_is_nan():
    assert math.isnan(correlation([1, 1, 1, 1], [1, 2, 3, 4]))


def test_rank_averages_ties():
    assert rank([10, 20, 20, 30]).tolist() == [1, 2.5, 2.5, 4]
    assert rank([3, 1, 2]).tolist() == [3, 1, 2]


def test_spearman_uses_average_ranks():
    r = correlation([1, 2, 2, 3], [1, 2, 3, 4], CorrelationMethod.SPEARMAN)
    assert r == pytest.approx(4.5 / math.sqrt(22.5))


def test_spearman_is_rank_based():
    # monotone but non-linear
    assert correlation([1, 2, 3, 4, 5], [1, 8, 27, 64, 125], "spearman") == pytest.approx(1.0)


def test_kendall_tau_a():
    assert correlation([1, 2, 3, 4], [1, 3, 2, 4], "kendall") == pytest.approx(4 / 6)


def test_kendall_ignores_ties_without_correction():
    assert correlation([1, 2, 2, 3], [1, 2, 3, 4], "kendall") == pytest.approx(5 / 6)


@pytest.mark.parametrize("method", ["pearson", "spearman", "kendall"])
def test_correlation_is_symmetric(method):
    x = [3.1, 1.2, 5.5, 2.0, 4.4, 9.0, 0.5]
    y = [2.0, 1.0, 7.5, 3.3, 3.9, 6.1, 1.1]
    assert correlation(x, y, method) == pytest.approx(correlation(y, x, method))


def test_unknown_method_raises():
    with pytest.raises(ValueError, match="Unknown correlation method"):
        correlation([1, 2, 3], [1, 2, 3], "cosine")


@pytest.mark.parametrize(
    "r, expected",
    [
        (0.05, CorrelationStrength.NEGLIGIBLE),
        (0.1, CorrelationStrength.WEAK),
        (-0.29, CorrelationStrength.WEAK),
        (0.3, CorrelationStrength.MODERATE),
        (0.5, CorrelationStrength.STRONG),
        (-0.7, CorrelationStrength.VERY_STRONG),
        (1.0, CorrelationStrength.VERY_STRONG),
    ],
)
def test_correlation_strength(r, expected):
    assert correlation_strength(r) == expected


def test_matrix_is_symmetric_with_unit_diagonal(frame):
    matrix = correlation_matrix(frame, "spearman")

    assert matrix.columns == ["a", "b", "c"]
    assert matrix.method == CorrelationMethod.SPEARMAN
    n = len(matrix.columns)
    for i in range(n):
        assert matrix.values[i][i] == 1
        for j in range(n):
            assert matrix.values[i][j] == matrix.values[j][i]


def test_matrix_holds_nan_for_sparse_pairs():
    frame = DataFrame.from_columns({"x": [1, 2, 3, 4], "y": [1, None, None, 4]})
    matrix = correlation_matrix(frame)
    assert math.isnan(matrix.values[0][1])
    assert matrix.to_record()["values"][0][1] is None


def test_matrix_column_subset(frame):
    matrix = correlation_matrix(frame, columns=["c", "name", "a"])
    assert matrix.columns == ["c", "a"]
    with pytest.raises(MissingColumnError):
        correlation_matrix(frame, columns=["nope"])


def test_significant_correlations_sorted_by_magnitude(frame):
    results = find_significant_correlations(frame, threshold=0.5)

    assert [(r.column1, r.column2) for r in results] == [("a", "b"), ("a", "c"), ("b", "c")]
    assert results[0].coefficient == pytest.approx(1.0)
    assert results[1].coefficient == pytest.approx(-0.8)
    assert all(r.strength == CorrelationStrength.VERY_STRONG for r in results)
    assert all(r.n_pairs == 5 for r in results)
    assert all(r.p_value is None for r in results)


def test_significant_correlations_threshold(frame):
    results = find_significant_correlations(frame, threshold=0.9)
    assert len(results) == 1
    assert results[0].to_record()["column1"] == "a"


def test_p_values_for_pearson_only(frame):
    pearson = find_significant_correlations(frame, 0.5, "pearson", with_p_values=True)
    assert pearson[0].p_value == pytest.approx(0.0, abs=1e-12)
    assert pearson[1].p_value == pytest.approx(0.104, abs=1e-3)

    kendall = find_significant_correlations(frame, 0.5, "kendall", with_p_values=True)
    assert all(r.p_value is None for r in kendall)


def test_p_value_edge_cases():
    assert correlation_p_value(float("nan"), 10) is None
    assert correlation_p_value(0.5, 2) is None
    assert correlation_p_value(0.0, 10) == pytest.approx(1.0)


def test_p_value_from_coefficient_matches_pearson_test():
    assert correlation_p_value(-0.8, 5) == pytest.approx(0.104, abs=1e-3)
    assert correlation_p_value(1.0, 5) == pytest.approx(0.0, abs=1e-12)


def test_spearman_pairs_get_p_values(frame):
    results = find_significant_correlations(frame, 0.5, "spearman", with_p_values=True)

    assert results[0].coefficient == pytest.approx(1.0)
    assert all(r.p_value is not None and 0 <= r.p_value <= 1 for r in results)
