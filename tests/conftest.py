import pytest

from tabstats.frame import DataFrame


@pytest.fixture
def sales_frame() -> DataFrame:
    return DataFrame.from_columns(
        {
            "region": ["A", "B", "A", "C", "B", "A"],
            "units": [1, 2, 3, 4, 5, 6],
            "revenue": [2.0, 4.0, 6.0, 8.0, 10.0, 12.0],
            "returns": [6, 5, 4, 3, 2, 1],
            "note": ["ok", None, "late", "ok", "ok", "?"],
        }
    )


@pytest.fixture
def messy_frame() -> DataFrame:
    return DataFrame.from_columns(
        {
            "value": [10, None, 12, "n/a", 11, 13, 9, 100],
            "flag": [True, False, True, True, False, None, True, False],
            "label": ["a", "b", "c", "d", "e", "f", "g", "h"],
        }
    )
