from .aggregation import collect_metrics, excluded_candidates, select_best, select_by_one_std_err, show_best
from .grid import (
    grid_from_records,
    grid_latin_hypercube,
    grid_random,
    grid_regular,
    grid_to_frame,
    grid_values,
)
from .schemas import CandidateFailure, MetricRecord, TuningConfig, TuningResult
from .tuner import tune_grid

__all__ = [
    "CandidateFailure",
    "MetricRecord",
    "TuningConfig",
    "TuningResult",
    "collect_metrics",
    "excluded_candidates",
    "grid_from_records",
    "grid_latin_hypercube",
    "grid_random",
    "grid_regular",
    "grid_to_frame",
    "grid_values",
    "select_best",
    "select_by_one_std_err",
    "show_best",
    "tune_grid",
]
