import importlib
import logging
from collections.abc import Callable

from tabstats.analysis.models import AnalysisResult
from tabstats.frame import DataFrame

log = logging.getLogger(__name__)

_REGISTRY: dict[str, Callable[[DataFrame, dict], AnalysisResult]] = {}

# Analysis modules, imported at the bottom so they self-register
_MODULES = [
    "tabstats.analysis.descriptive",
    "tabstats.analysis.correlation",
    "tabstats.analysis.outliers",
    "tabstats.analysis.trend",
    "tabstats.analysis.groupby",
]


def register(name: str):
    """Decorator to register an analysis function."""

    def decorator(fn):
        _REGISTRY[name] = fn
        return fn

    return decorator


def available_analyses() -> list[str]:
    return sorted(_REGISTRY)


def run_analysis(analysis_type: str, frame: DataFrame, params: dict | None = None) -> AnalysisResult:
    """Dispatch to the registered analysis function."""
    fn = _REGISTRY.get(analysis_type)
    if not fn:
        raise ValueError(
            f"Unknown analysis type: {analysis_type}. "
            f"Available: {', '.join(sorted(_REGISTRY))}"
        )
    params = params or {}
    log.info(
        "Running analysis: %s on %d rows x %d columns with params %s",
        analysis_type, frame.row_count, len(frame.columns), params,
    )
    return fn(frame, params)


# Auto-import modules to trigger @register decorators
for _mod in _MODULES:
    importlib.import_module(_mod)
