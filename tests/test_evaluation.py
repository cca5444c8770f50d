import numpy as np
import pandas as pd
import pytest

from pipetune.exceptions import UnknownComponentError
from pipetune.modeling.evaluation import (
    build_classification_split_report,
    calculate_classification_metrics,
    confusion_matrix_at,
    get_metric,
    metric_set,
    roc_curve_points,
)
from pipetune.modeling.evaluation.classification import _clamp_non_finite_thresholds, _downsample_indices


def test_confusion_matrix_counts():
    cm = confusion_matrix_at([1, 0, 1, 0], [0.9, 0.3, 0.6, 0.1], 0.5, positive=1)
    assert cm.counts() == {"TP": 2, "FP": 0, "FN": 0, "TN": 2}
    assert cm.total == 4
    assert cm.accuracy == 1.0
    assert cm.negative_label == "0"


def test_confusion_matrix_threshold_is_inclusive():
    cm = confusion_matrix_at([1, 0, 0], [0.5, 0.5, 0.49], 0.5, positive=1)
    assert cm.counts() == {"TP": 1, "FP": 1, "FN": 0, "TN": 1}
    assert cm.as_matrix() == [[1, 0], [1, 1]]


def test_confusion_matrix_string_labels():
    cm = confusion_matrix_at(["yes", "no", "yes"], [0.2, 0.8, 0.9], 0.5, positive="yes")
    assert cm.counts() == {"TP": 1, "FP": 1, "FN": 1, "TN": 0}
    assert (cm.positive_label, cm.negative_label) == ("yes", "no")


def test_roc_curve_points():
    curve, notes = roc_curve_points([0, 0, 1, 1], [0.1, 0.4, 0.35, 0.8], positive=1)
    assert curve.auc == pytest.approx(0.75)
    assert curve.fpr[0] == 0.0 and curve.fpr[-1] == 1.0
    assert all(np.isfinite(curve.thresholds))
    assert notes == []


def test_roc_curve_with_single_class():
    curve, notes = roc_curve_points([1, 1, 1], [0.2, 0.5, 0.9], positive=1, split_name="holdout")
    assert curve is None
    assert "holdout" in notes[0]


def test_clamp_non_finite_thresholds():
    values, note = _clamp_non_finite_thresholds(np.array([np.inf, 0.8, 0.2, np.nan]), split_name="test")
    assert values.tolist() == [0.8, 0.8, 0.2, 0.2]
    assert "1 undefined" in note


def test_downsample_indices():
    assert _downsample_indices(10, limit=20).tolist() == list(range(10))
    idx = _downsample_indices(2000, limit=500)
    assert idx[0] == 0 and idx[-1] == 1999
    assert len(idx) <= 500


def test_metric_directions():
    assert get_metric("accuracy").direction == "maximize"
    assert get_metric("mn_log_loss").direction == "minimize"
    assert get_metric("roc_auc").needs_proba
    with pytest.raises(UnknownComponentError):
        get_metric("gini")


def test_metric_set_keeps_order_and_drops_repeats():
    assert [m.name for m in metric_set("roc_auc", "accuracy", "roc_auc")] == ["roc_auc", "accuracy"]
    assert [m.name for m in metric_set()] == ["accuracy", "roc_auc"]


def test_calculate_classification_metrics():
    y_true = [1, 0, 1, 0]
    y_pred = [1, 0, 0, 0]
    proba = pd.DataFrame({0: [0.1, 0.7, 0.6, 0.9], 1: [0.9, 0.3, 0.4, 0.1]})
    values = calculate_classification_metrics(
        y_true, y_pred, proba, 1,
        ["accuracy", "sensitivity", "specificity", "precision", "roc_auc"],
    )
    assert values["accuracy"] == pytest.approx(0.75)
    assert values["sensitivity"] == pytest.approx(0.5)
    assert values["specificity"] == pytest.approx(1.0)
    assert values["precision"] == pytest.approx(1.0)
    assert values["roc_auc"] == pytest.approx(1.0)


def test_probability_metric_without_probabilities():
    with pytest.raises(ValueError):
        calculate_classification_metrics([1, 0], [1, 0], None, 1, ["roc_auc"])


def test_split_report():
    y_true = pd.Series([1, 0, 1, 0])
    proba = pd.DataFrame({0: [0.1, 0.7, 0.4, 0.9], 1: [0.9, 0.3, 0.6, 0.1]})
    report = build_classification_split_report("test", y_true, [1, 0, 1, 0], proba, 1)

    assert report.row_count == 4
    assert report.metrics["accuracy"] == pytest.approx(1.0)
    assert report.confusion_matrix.counts() == {"TP": 2, "FP": 0, "FN": 0, "TN": 2}
    assert report.roc_curve.auc == pytest.approx(1.0)


def test_split_report_for_empty_split():
    report = build_classification_split_report("test", pd.Series([], dtype=int), [], None, 1)
    assert report.row_count == 0
    assert report.notes
