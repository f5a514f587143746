"""Group rows by a column's raw values and aggregate numeric columns per group."""

import logging
import math
import numbers
from collections.abc import Hashable, Iterable, Mapping
from decimal import Decimal
from typing import Any

import numpy as np

from tabstats.analysis import register
from tabstats.analysis.calculations import aggregate
from tabstats.analysis.models import (
    Aggregation,
    AggregationOperation,
    AggregationResult,
    AnalysisResult,
    GroupByResult,
    GroupStats,
    json_safe,
)
from tabstats.analysis.vector import extract_numeric, has_numeric
from tabstats.frame import DataFrame

log = logging.getLogger(__name__)


def _group_key(value: Any) -> Hashable:
    """Tag keys by kind so True, 1 and "1" stay apart while 1 and 1.0 merge."""
    if value is None:
        return ("null", None)
    if isinstance(value, (bool, np.bool_)):
        return ("boolean", bool(value))
    if isinstance(value, (numbers.Real, Decimal)):
        if math.isnan(float(value)):
            return ("number", "nan")
        return ("number", value)
    if isinstance(value, str):
        return ("string", value)
    try:
        hash(value)
    except TypeError:
        return (type(value).__name__, repr(value))
    return (type(value).__name__, value)


def _normalize(aggregations: Iterable[Aggregation | Mapping | tuple]) -> list[Aggregation]:
    result = []
    for agg in aggregations:
        if isinstance(agg, Aggregation):
            result.append(agg)
        elif isinstance(agg, Mapping):
            result.append(Aggregation(column=agg["column"], operation=_operation(agg["operation"])))
        else:
            column, operation = agg
            result.append(Aggregation(column=column, operation=_operation(operation)))
    return result


def _operation(operation: AggregationOperation | str) -> AggregationOperation:
    try:
        return AggregationOperation(operation)
    except ValueError:
        valid = ", ".join(o.value for o in AggregationOperation)
        raise ValueError(f"Unknown aggregation operation: {operation}. Available: {valid}") from None


def partition(cells: list[Any]) -> list[tuple[Any, list[int]]]:
    """(first raw value, row indices) per distinct value, in first-seen order."""
    groups: dict[Hashable, tuple[Any, list[int]]] = {}
    for i, value in enumerate(cells):
        key = _group_key(value)
        if key not in groups:
            groups[key] = (value, [])
        groups[key][1].append(i)
    return list(groups.values())


def group_by(
    frame: DataFrame,
    group_column: str,
    aggregations: Iterable[Aggregation | Mapping | tuple] = (),
) -> GroupByResult:
    group_values = frame.column(group_column)
    requested = _normalize(aggregations)

    present = [a for a in requested if frame.has_column(a.column)]
    for agg in requested:
        if not frame.has_column(agg.column):
            log.debug("Skipping aggregation %s_%s: column not found", agg.column, agg.operation.value)

    groups = []
    for value, indices in partition(group_values):
        results: dict[str, AggregationResult] = {}
        for agg in present:
            cells = frame.data[agg.column]
            numeric = extract_numeric([cells[i] for i in indices]).values
            results[f"{agg.column}_{agg.operation.value}"] = AggregationResult(
                column=agg.column,
                operation=agg.operation,
                value=aggregate(numeric, agg.operation),
            )
        groups.append(GroupStats(group_value=value, count=len(indices), aggregations=results))

    log.debug("Grouped %d rows on %r into %d groups", frame.row_count, group_column, len(groups))
    return GroupByResult(group_column=group_column, groups=groups)


@register("group_by")
def group_by_analysis(frame: DataFrame, params: dict) -> AnalysisResult:
    group_column = params.get("group_column")
    if not group_column:
        raise ValueError("group_column is required")
    frame.column(group_column)

    operations = [_operation(op) for op in params.get("operations", ["mean", "count"])]
    if params.get("columns"):
        columns = list(params["columns"])
    else:
        columns = [c for c in frame.columns if c != group_column and has_numeric(frame.data[c])]

    warnings: list[str] = []
    missing = [c for c in columns if not frame.has_column(c)]
    if missing:
        warnings.append(f"Columns not found and skipped: {', '.join(missing)}")
    if not columns:
        warnings.append("No numeric columns to aggregate.")

    aggregations = [Aggregation(column=c, operation=op) for c in columns for op in operations]
    result = group_by(frame, group_column, aggregations)

    keys = [f"{a.column}_{a.operation.value}" for a in aggregations if frame.has_column(a.column)]
    detail_columns = ["Group", "Count", *keys]
    detail_rows = []
    for group in result.groups:
        row = [str(group.group_value), group.count]
        for key in keys:
            agg = group.aggregations.get(key)
            row.append(agg.value if agg else None)
        detail_rows.append(row)

    summary = {
        "group_column": group_column,
        "groups": len(result.groups),
        "operations": [op.value for op in operations],
        "columns": [c for c in columns if frame.has_column(c)],
    }

    return AnalysisResult(
        analysis_type="group_by",
        summary=summary,
        detail_columns=detail_columns,
        detail_rows=json_safe(detail_rows),
        records=[result.to_record()],
        warnings=warnings,
    )
