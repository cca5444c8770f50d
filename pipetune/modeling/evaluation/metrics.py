"""Classification metrics and metric sets."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    brier_score_loss,
    cohen_kappa_score,
    f1_score,
    log_loss,
    precision_score,
    recall_score,
    roc_auc_score,
)

from ...exceptions import UnknownComponentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionBundle:
    """Everything a metric may need from one assessment set."""
    y_true: np.ndarray
    y_pred: np.ndarray
    proba: Optional[pd.DataFrame]
    positive: Any

    @property
    def positive_proba(self) -> np.ndarray:
        if self.proba is None:
            raise ValueError("Metric requires class probabilities")
        return self.proba[self.positive].to_numpy()


@dataclass(frozen=True)
class Metric:
    name: str
    fn: Callable[[PredictionBundle], float]
    direction: str = "maximize"  # or "minimize"
    needs_proba: bool = False

    def __call__(self, bundle: PredictionBundle) -> float:
        return float(self.fn(bundle))


def _binary_labels(b: PredictionBundle) -> Tuple[np.ndarray, np.ndarray]:
    return (b.y_true == b.positive).astype(int), (b.y_pred == b.positive).astype(int)


def _roc_auc(b: PredictionBundle) -> float:
    if b.proba is not None and b.proba.shape[1] > 2:
        return roc_auc_score(b.y_true, b.proba.to_numpy(), multi_class="ovr", labels=list(b.proba.columns))
    return roc_auc_score((b.y_true == b.positive).astype(int), b.positive_proba)


def _specificity(b: PredictionBundle) -> float:
    truth, pred = _binary_labels(b)
    negatives = truth == 0
    if not negatives.any():
        return float("nan")
    return float(np.mean(pred[negatives] == 0))


def _log_loss(b: PredictionBundle) -> float:
    if b.proba is None:
        raise ValueError("Metric requires class probabilities")
    return log_loss(b.y_true, b.proba.to_numpy(), labels=list(b.proba.columns))


METRIC_REGISTRY: Dict[str, Metric] = {
    "accuracy": Metric("accuracy", lambda b: accuracy_score(b.y_true, b.y_pred)),
    "kap": Metric("kap", lambda b: cohen_kappa_score(b.y_true, b.y_pred)),
    "sensitivity": Metric("sensitivity", lambda b: recall_score(*_binary_labels(b), zero_division=0)),
    "specificity": Metric("specificity", _specificity),
    "precision": Metric("precision", lambda b: precision_score(*_binary_labels(b), zero_division=0)),
    "f_meas": Metric("f_meas", lambda b: f1_score(*_binary_labels(b), zero_division=0)),
    "roc_auc": Metric("roc_auc", _roc_auc, needs_proba=True),
    "mn_log_loss": Metric("mn_log_loss", _log_loss, direction="minimize", needs_proba=True),
    "brier_class": Metric(
        "brier_class",
        lambda b: brier_score_loss((b.y_true == b.positive).astype(int), b.positive_proba),
        direction="minimize",
        needs_proba=True,
    ),
}

DEFAULT_METRICS = ("accuracy", "roc_auc")


def get_metric(name: str) -> Metric:
    if name not in METRIC_REGISTRY:
        raise UnknownComponentError("metric", name, METRIC_REGISTRY.keys())
    return METRIC_REGISTRY[name]


def metric_set(*names: str) -> Tuple[Metric, ...]:
    """Resolve metric names into a tuple of metrics, keeping order and dropping repeats."""
    names = names or DEFAULT_METRICS
    return tuple(get_metric(n) for n in dict.fromkeys(names))


def resolve_metrics(metrics: Optional[Iterable[Any]]) -> Tuple[Metric, ...]:
    if metrics is None:
        return metric_set()
    resolved = []
    for m in metrics:
        resolved.append(m if isinstance(m, Metric) else get_metric(m))
    return tuple(resolved)


def calculate_classification_metrics(
    y_true: Sequence[Any],
    y_pred: Sequence[Any],
    proba: Optional[pd.DataFrame],
    positive: Any,
    metrics: Optional[Iterable[Any]] = None,
) -> Dict[str, float]:
    """Compute every metric of the set on one assessment set."""
    bundle = PredictionBundle(
        y_true=np.asarray(y_true),
        y_pred=np.asarray(y_pred),
        proba=proba,
        positive=positive,
    )
    return {m.name: m(bundle) for m in resolve_metrics(metrics)}
