import datetime
import math
from decimal import Decimal

import numpy as np

from tabstats.analysis.vector import as_number, extract_numeric, extract_pairs, has_numeric


def test_extract_numeric_tracks_positions_and_rejections():
    cells = [1, None, "2", 3.5, float("nan"), True, datetime.date(2024, 1, 1), np.int64(7), math.inf]
    vec = extract_numeric(cells)

    assert vec.values.tolist() == [1.0, 3.5, 7.0]
    assert vec.indices.tolist() == [0, 3, 7]
    assert vec.total == 9
    assert vec.missing_count == 3  # None, NaN, inf
    assert vec.invalid_count == 3  # "2", True, date
    assert vec.null_count == 6
    assert len(vec) == 3


def test_booleans_are_not_numbers():
    assert as_number(True) is None
    assert as_number(np.bool_(False)) is None
    assert as_number(0) == 0.0


def test_decimal_is_a_number():
    assert as_number(Decimal("2.5")) == 2.5


def test_has_numeric():
    assert has_numeric(["a", None, 4])
    assert not has_numeric(["a", None, float("nan"), False])
    assert not has_numeric([])


def test_extract_pairs_drops_rows_missing_on_either_side():
    xs, ys = extract_pairs([1, 2, None, 4, "x"], [10, None, 30, 40, 50, 60])
    assert xs.tolist() == [1.0, 4.0]
    assert ys.tolist() == [10.0, 40.0]


def test_ints_beyond_float_range_are_missing():
    vec = extract_numeric([1, 10**400, -(10**400), 2])

    assert vec.values.tolist() == [1.0, 2.0]
    assert vec.missing_count == 2
    assert vec.invalid_count == 0
    assert as_number(10**400) is None
