import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CorrelationMethod(str, Enum):
    PEARSON = "pearson"
    SPEARMAN = "spearman"
    KENDALL = "kendall"


class CorrelationStrength(str, Enum):
    NEGLIGIBLE = "negligible"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


class OutlierMethod(str, Enum):
    IQR = "iqr"
    ZSCORE = "zscore"
    MODIFIED_ZSCORE = "modified_zscore"


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    VOLATILE = "volatile"


class AggregationOperation(str, Enum):
    SUM = "sum"
    MEAN = "mean"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"
    COUNT = "count"
    STD = "std"


def json_safe(value: Any) -> Any:
    """Replace NaN/inf with None, recursing into lists, tuples and dicts."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


class Record(BaseModel):
    """Result record; serializes with camelCase keys and null for NaN."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_inf_nan="null",
    )

    def to_record(self) -> dict[str, Any]:
        return json.loads(self.model_dump_json(by_alias=True))


class DescriptiveStats(Record):
    column: str = ""
    count: int = 0
    mean: float
    median: float
    std: float
    min: float
    max: float
    q1: float
    q3: float
    iqr: float
    skewness: float
    kurtosis: float
    null_count: int = 0
    null_percent: float = 0.0
    insufficient: list[str] = []  # statistics that fell back to a fixed value


class CorrelationMatrix(Record):
    columns: list[str]
    values: list[list[float]]
    method: CorrelationMethod


class CorrelationResult(Record):
    column1: str
    column2: str
    coefficient: float
    strength: CorrelationStrength
    p_value: float | None = None
    n_pairs: int | None = None


class OutlierPoint(Record):
    index: int
    value: float
    score: float


class OutlierResult(Record):
    column: str = ""
    method: OutlierMethod
    outliers: list[OutlierPoint] = []
    lower_bound: float
    upper_bound: float
    degenerate: bool = False


class Seasonality(Record):
    detected: bool
    period: int | None = None
    strength: float | None = None


class GrowthRate(Record):
    absolute: float
    relative: float
    cagr: float | None = None


class TrendAnalysis(Record):
    column: str = ""
    trend: Trend
    slope: float
    intercept: float = 0.0
    r_squared: float
    insufficient: bool = False
    seasonality: Seasonality | None = None
    growth: GrowthRate | None = None


class Aggregation(Record):
    column: str
    operation: AggregationOperation


class AggregationResult(Record):
    column: str
    operation: AggregationOperation
    value: float | int


class GroupStats(Record):
    group_value: Any = None
    count: int
    aggregations: dict[str, AggregationResult] = {}


class GroupByResult(Record):
    group_column: str
    groups: list[GroupStats] = []


class Histogram(Record):
    bin_edges: list[float] = []
    counts: list[int] = []


class AnalysisResult(BaseModel):
    analysis_type: str
    summary: dict  # headline numbers (e.g., {"numeric_columns": 4})
    detail_columns: list[str]  # column headers for detail table
    detail_rows: list[list]  # tabular detail data
    records: list[dict] = []  # typed results, already JSON-safe
    warnings: list[str] = []  # data quality notes
