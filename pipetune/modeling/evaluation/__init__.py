from .classification import build_classification_split_report, confusion_matrix_at, roc_curve_points
from .metrics import (
    DEFAULT_METRICS,
    METRIC_REGISTRY,
    Metric,
    calculate_classification_metrics,
    get_metric,
    metric_set,
    resolve_metrics,
)
from .schemas import BinaryConfusionMatrix, EvaluationSplitPayload, RocCurve

__all__ = [
    "BinaryConfusionMatrix",
    "DEFAULT_METRICS",
    "EvaluationSplitPayload",
    "METRIC_REGISTRY",
    "Metric",
    "RocCurve",
    "build_classification_split_report",
    "calculate_classification_metrics",
    "confusion_matrix_at",
    "get_metric",
    "metric_set",
    "resolve_metrics",
    "roc_curve_points",
]
