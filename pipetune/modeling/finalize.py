"""Commit to one candidate, fit on the full training set and evaluate once on test."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import pandas as pd

from ..config import get_settings
from ..data.dataset import SplitDataset
from ..exceptions import HeldOutReuseError
from .evaluation.classification import build_classification_split_report
from .evaluation.schemas import EvaluationSplitPayload
from .hyperparameters import Candidate
from .workflow import ConcreteWorkflow, FitResult, Workflow

logger = logging.getLogger(__name__)


def finalize_workflow(workflow: Workflow, candidate: Union[Candidate, Mapping[str, Any]]) -> ConcreteWorkflow:
    """Bind the chosen candidate into the workflow. Nothing is fit."""
    return workflow.materialize(candidate)


@dataclass(frozen=True)
class LastFitResult:
    fit_result: FitResult
    report: EvaluationSplitPayload
    predictions: pd.DataFrame
    positive: Any

    @property
    def metrics(self) -> Dict[str, float]:
        return dict(self.report.metrics)

    @property
    def confusion_matrix(self):
        return self.report.confusion_matrix

    @property
    def roc_curve(self):
        return self.report.roc_curve

    def collect_metrics(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"metric": name, "estimate": value} for name, value in self.report.metrics.items()]
        )


def last_fit(
    concrete: ConcreteWorkflow,
    split: SplitDataset,
    metrics: Optional[Sequence[Any]] = None,
    positive: Any = None,
    threshold: Optional[float] = None,
    check_convergence: Optional[bool] = None,
) -> LastFitResult:
    """
    Fit on the whole training subset and evaluate on the test subset.

    The test subset of a split may be evaluated only once; a second call
    with the same split raises HeldOutReuseError.
    """
    if split.test_evaluated:
        raise HeldOutReuseError()
    settings = get_settings()
    threshold = settings.PROBABILITY_THRESHOLD if threshold is None else threshold

    fit_result = concrete.fit(split.train, check_convergence=check_convergence)
    positive = fit_result.default_positive() if positive is None else positive

    test = split.test
    y_pred, proba = fit_result.raw_predictions(test)
    report = build_classification_split_report(
        "test",
        test[fit_result.outcome],
        y_pred,
        proba,
        positive,
        metrics=metrics,
        threshold=threshold,
    )
    split.test_evaluated = True
    logger.info(f"Final fit on {len(split.train)} rows, evaluated on {len(test)} test rows: {report.metrics}")
    return LastFitResult(
        fit_result=fit_result,
        report=report,
        predictions=fit_result.predict_frame(test),
        positive=positive,
    )
