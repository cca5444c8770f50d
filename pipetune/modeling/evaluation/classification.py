"""Classification split evaluation helpers."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score, roc_curve

from .metrics import calculate_classification_metrics
from .schemas import BinaryConfusionMatrix, EvaluationSplitPayload, RocCurve

logger = logging.getLogger(__name__)

_MAX_CURVE_POINTS = 500


def _clamp_non_finite_thresholds(values: np.ndarray, *, split_name: str) -> Tuple[np.ndarray, Optional[str]]:
    if not values.size:
        return values, None

    sanitized = values.astype(float, copy=True)
    finite_mask = np.isfinite(sanitized)
    if np.all(finite_mask):
        return sanitized, None

    finite_values = sanitized[finite_mask]
    fallback_high = float(np.max(finite_values)) if finite_values.size else 1.0
    fallback_low = float(np.min(finite_values)) if finite_values.size else 0.0

    nan_mask = np.isnan(sanitized)
    sanitized[np.isposinf(sanitized)] = fallback_high
    sanitized[np.isneginf(sanitized)] = fallback_low
    sanitized[nan_mask] = fallback_low

    note = None
    if nan_mask.any():
        note = f"Clamped {int(nan_mask.sum())} undefined ROC threshold(s) while evaluating {split_name}."
    return sanitized, note


def _downsample_indices(length: int, limit: int = _MAX_CURVE_POINTS) -> np.ndarray:
    if length <= limit:
        return np.arange(length)
    idx = np.linspace(0, length - 1, num=limit).round().astype(int)
    return np.unique(idx)


def confusion_matrix_at(
    y_true: Sequence[Any],
    positive_proba: Sequence[float],
    threshold: float = 0.5,
    positive: Any = 1,
    negative: Any = None,
) -> BinaryConfusionMatrix:
    """
    Binary confusion matrix at a probability threshold.

    A row is predicted positive when its positive-class probability is
    greater than or equal to the threshold.
    """
    truth = np.asarray(y_true) == positive
    predicted = np.asarray(positive_proba, dtype=float) >= threshold

    if negative is None:
        others = [v for v in pd.unique(np.asarray(y_true)) if v != positive]
        negative = others[0] if others else "other"

    return BinaryConfusionMatrix(
        positive_label=str(positive),
        negative_label=str(negative),
        threshold=float(threshold),
        tp=int(np.sum(truth & predicted)),
        fp=int(np.sum(~truth & predicted)),
        fn=int(np.sum(truth & ~predicted)),
        tn=int(np.sum(~truth & ~predicted)),
    )


def roc_curve_points(
    y_true: Sequence[Any],
    positive_proba: Sequence[float],
    positive: Any = 1,
    split_name: str = "test",
) -> Tuple[Optional[RocCurve], List[str]]:
    """ROC curve for the positive class, or None with a note when it is undefined."""
    truth = (np.asarray(y_true) == positive).astype(int)
    scores = np.asarray(positive_proba, dtype=float)
    if np.unique(truth).size < 2:
        return None, [f"ROC curve unavailable for {split_name}: only one class present."]

    fpr, tpr, thresholds = roc_curve(truth, scores)
    thresholds, note = _clamp_non_finite_thresholds(thresholds, split_name=split_name)
    keep = _downsample_indices(len(fpr))
    curve = RocCurve(
        label=str(positive),
        fpr=fpr[keep].tolist(),
        tpr=tpr[keep].tolist(),
        thresholds=thresholds[keep].tolist(),
        auc=float(roc_auc_score(truth, scores)),
    )
    return curve, [note] if note else []


def build_classification_split_report(
    split_name: str,
    y_true: pd.Series,
    y_pred: Sequence[Any],
    proba: Optional[pd.DataFrame],
    positive: Any,
    metrics: Optional[Iterable[Any]] = None,
    threshold: float = 0.5,
) -> EvaluationSplitPayload:
    """Metrics, confusion matrix and ROC curve for one evaluated split."""
    if y_true is None or len(y_true) == 0:
        return EvaluationSplitPayload(
            split=split_name, row_count=0, notes=["Split has no rows available for evaluation."]
        )

    values = calculate_classification_metrics(y_true, y_pred, proba, positive, metrics)
    notes: List[str] = []
    confusion = None
    curve = None
    if proba is not None and positive in proba.columns:
        scores = proba[positive].to_numpy()
        confusion = confusion_matrix_at(y_true, scores, threshold=threshold, positive=positive)
        curve, curve_notes = roc_curve_points(y_true, scores, positive=positive, split_name=split_name)
        notes.extend(curve_notes)

    logger.debug(f"Evaluated {split_name} split ({len(y_true)} rows): {values}")
    return EvaluationSplitPayload(
        split=split_name,
        row_count=int(len(y_true)),
        metrics=values,
        confusion_matrix=confusion,
        roc_curve=curve,
        notes=notes,
    )
