import logging
import time

from fastapi import FastAPI, HTTPException

from tabstats.analysis import available_analyses, run_analysis
from tabstats.analysis.correlation import (
    correlation_matrix,
    numeric_columns,
    significant_from_matrix,
)
from tabstats.analysis.descriptive import describe_all, describe_column, histogram, percentiles
from tabstats.analysis.groupby import group_by
from tabstats.analysis.models import AnalysisResult, OutlierMethod, json_safe
from tabstats.analysis.outliers import default_options, detect_column_outliers
from tabstats.analysis.trend import analyze_column_trend
from tabstats.config import settings
from tabstats.frame import DataFrame
from tabstats.models import (
    AnalyzeRequest,
    CorrelationRequest,
    DescribeRequest,
    GroupByRequest,
    OutlierRequest,
    TrendRequest,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

VERSION = "0.1.0"


def _check_size(frame: DataFrame) -> None:
    if frame.row_count > settings.max_rows:
        raise HTTPException(
            status_code=413,
            detail=f"Dataset has {frame.row_count} rows; the limit is {settings.max_rows}",
        )


def _bad_request(exc: Exception) -> HTTPException:
    log.info("Rejected analysis request: %s", exc)
    return HTTPException(status_code=400, detail=str(exc))


app = FastAPI(title="tabstats", version=VERSION)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}


@app.get("/api/analyses")
async def analyses():
    return {"analyses": available_analyses()}


@app.post("/api/analyze", response_model=AnalysisResult)
def analyze(req: AnalyzeRequest):
    _check_size(req.data)
    t0 = time.monotonic()
    try:
        result = run_analysis(req.analysis_type, req.data, req.params)
    except (ValueError, KeyError) as exc:
        raise _bad_request(exc) from exc
    log.info("Analysis %s finished in %.2fs", req.analysis_type, time.monotonic() - t0)
    return result


@app.post("/api/describe")
def describe(req: DescribeRequest):
    _check_size(req.data)
    try:
        if req.column:
            stats = [describe_column(req.data, req.column)]
        else:
            stats = describe_all(req.data)
        body: dict = {"stats": [s.to_record() for s in stats]}
        if req.percentiles:
            body["percentiles"] = {
                s.column: {str(p): v for p, v in percentiles(req.data.data[s.column], req.percentiles).items()}
                for s in stats
            }
        if req.histogram_bins is not None:
            body["histograms"] = {
                s.column: histogram(req.data.data[s.column], req.histogram_bins).to_record()
                for s in stats
            }
    except (ValueError, KeyError) as exc:
        raise _bad_request(exc) from exc
    return json_safe(body)


@app.post("/api/correlations")
def correlations(req: CorrelationRequest):
    _check_size(req.data)
    method = req.method or settings.defaults.correlation_method
    threshold = settings.defaults.correlation_threshold if req.threshold is None else req.threshold
    try:
        wanted = req.columns if req.columns is not None else numeric_columns(req.data)
        if len(wanted) > settings.max_matrix_columns:
            raise HTTPException(
                status_code=413,
                detail=f"{len(wanted)} columns requested; the matrix limit is {settings.max_matrix_columns}",
            )
        matrix = correlation_matrix(req.data, method, columns=wanted)
        significant = significant_from_matrix(req.data, matrix, threshold, req.p_values)
    except (ValueError, KeyError) as exc:
        raise _bad_request(exc) from exc
    return {
        "matrix": matrix.to_record(),
        "significant": [c.to_record() for c in significant],
    }


@app.post("/api/outliers")
def outliers(req: OutlierRequest):
    _check_size(req.data)
    options = default_options(req.method)
    if req.method is OutlierMethod.IQR and req.multiplier is not None:
        options["multiplier"] = req.multiplier
    if req.method is not OutlierMethod.IQR and req.threshold is not None:
        options["threshold"] = req.threshold
    try:
        result = detect_column_outliers(req.data, req.column, req.method, **options)
    except (ValueError, KeyError) as exc:
        raise _bad_request(exc) from exc
    return result.to_record()


@app.post("/api/trend")
def trend(req: TrendRequest):
    _check_size(req.data)
    try:
        result = analyze_column_trend(
            req.data,
            req.column,
            seasonality=req.seasonality,
            seasonality_threshold=settings.defaults.seasonality_threshold,
        )
    except (ValueError, KeyError) as exc:
        raise _bad_request(exc) from exc
    return result.to_record()


@app.post("/api/group-by")
def group_by_endpoint(req: GroupByRequest):
    _check_size(req.data)
    try:
        result = group_by(req.data, req.group_column, req.aggregations)
    except (ValueError, KeyError) as exc:
        raise _bad_request(exc) from exc
    return result.to_record()
