from pydantic import BaseModel

from tabstats.analysis.models import Aggregation, CorrelationMethod, OutlierMethod
from tabstats.frame import DataFrame


class AnalyzeRequest(BaseModel):
    analysis_type: str
    params: dict = {}
    data: DataFrame


class DescribeRequest(BaseModel):
    data: DataFrame
    column: str | None = None  # all numeric columns when omitted
    percentiles: list[float] = []
    histogram_bins: int | None = None


class CorrelationRequest(BaseModel):
    data: DataFrame
    method: CorrelationMethod | None = None
    threshold: float | None = None
    columns: list[str] | None = None
    p_values: bool = False


class OutlierRequest(BaseModel):
    data: DataFrame
    column: str
    method: OutlierMethod = OutlierMethod.IQR
    multiplier: float | None = None  # IQR fence multiplier
    threshold: float | None = None  # Z-score / modified Z-score cutoff


class TrendRequest(BaseModel):
    data: DataFrame
    column: str
    seasonality: bool = False


class GroupByRequest(BaseModel):
    data: DataFrame
    group_column: str
    aggregations: list[Aggregation] = []
