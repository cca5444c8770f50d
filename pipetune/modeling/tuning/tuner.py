"""Resampled grid search over a workflow's candidates."""

import logging
import threading
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import pandas as pd
from joblib import Parallel, delayed

from ...exceptions import CandidateFitFailure
from ..evaluation.metrics import Metric, calculate_classification_metrics, resolve_metrics
from ..hyperparameters import Candidate
from ..resampling import Fold, ResamplingPlan
from ..workflow import Workflow
from .grid import grid_from_records, grid_latin_hypercube, grid_values
from .schemas import CandidateFailure, MetricRecord, TuningConfig, TuningResult

logger = logging.getLogger(__name__)

Grid = Union[Sequence[Candidate], pd.DataFrame, int, None]

# Work item outcomes
_SKIPPED = "skipped"


def _resolve_grid(grid: Grid, space: dict, config: TuningConfig) -> List[Candidate]:
    if not space:
        return grid_values()
    if grid is None:
        grid = config.grid_size
    if isinstance(grid, int):
        return grid_latin_hypercube(space, size=grid, seed=config.random_state)
    if isinstance(grid, pd.DataFrame):
        return grid_from_records(grid)
    return list(grid)


def _positive_label(data: pd.DataFrame, outcome: str, config: TuningConfig) -> Any:
    if config.positive is not None:
        return config.positive
    return sorted(pd.unique(data[outcome].dropna()))[-1]


def _assess_candidate(
    workflow: Workflow,
    candidate: Candidate,
    fold: Fold,
    data: pd.DataFrame,
    metrics: Tuple[Metric, ...],
    positive: Any,
    check_convergence: bool,
) -> List[MetricRecord]:
    """Fit one candidate on a fold's analysis rows and score its assessment rows."""
    analysis = fold.analysis_frame(data)
    assessment = fold.assessment_frame(data)
    try:
        fitted = workflow.materialize(candidate).fit(analysis, check_convergence=check_convergence)
        y_pred, proba = fitted.raw_predictions(assessment)
        values = calculate_classification_metrics(
            assessment[fitted.outcome], y_pred, proba, positive, metrics
        )
    except Exception as exc:
        raise CandidateFitFailure(candidate.id, fold.id, exc) from exc
    return [MetricRecord(candidate=candidate, metric=m.name, fold_id=fold.id, value=values[m.name]) for m in metrics]


def _work_item(
    workflow: Workflow,
    candidate: Candidate,
    fold: Fold,
    data: pd.DataFrame,
    metrics: Tuple[Metric, ...],
    positive: Any,
    check_convergence: bool,
    cancel_event: Optional[threading.Event],
    progress: Callable[[], None],
) -> Union[str, List[MetricRecord], CandidateFailure]:
    if cancel_event is not None and cancel_event.is_set():
        return _SKIPPED
    try:
        return _assess_candidate(workflow, candidate, fold, data, metrics, positive, check_convergence)
    except CandidateFitFailure as failure:
        logger.warning(str(failure))
        return CandidateFailure(
            candidate=candidate,
            fold_id=fold.id,
            error_type=type(failure.cause).__name__,
            reason=failure.reason,
        )
    finally:
        progress()


def tune_grid(
    workflow: Workflow,
    resamples: ResamplingPlan,
    grid: Grid = None,
    metrics: Optional[Sequence[Any]] = None,
    config: Optional[TuningConfig] = None,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> TuningResult:
    """
    Evaluate every candidate on every resampling fold.

    Args:
        workflow: The declared workflow; it is never mutated.
        resamples: Folds over the training data.
        grid: Candidates, a DataFrame of parameter rows, or a number of
            latin hypercube points. None uses ``config.grid_size`` points.
        metrics: Metric names or Metric objects; the first one is the
            default for ranking. Defaults to ``config.metrics`` and then to
            accuracy and roc_auc.
        config: Run options (parallelism, tie-break, positive class).
        cancel_event: When set, work items that have not started are skipped
            and the partial result is returned with ``cancelled=True``.
        progress_callback: Called with (completed, total) after each work item.

    Per-candidate errors never abort the run: they are returned as
    ``CandidateFailure`` records.
    """
    config = config or TuningConfig()
    data = resamples.data
    outcome = workflow.recipe.outcome

    metric_set = resolve_metrics(metrics if metrics is not None else config.metrics)
    parameters = workflow.tunable(data)
    candidates = _resolve_grid(grid, parameters, config)
    # Structural problems (missing tunable values) are the caller's to fix
    for candidate in candidates:
        workflow.materialize(candidate)
    positive = _positive_label(data, outcome, config)

    total = len(candidates) * len(resamples)
    logger.info(
        f"Tuning {len(candidates)} candidates over {len(resamples)} resamples "
        f"({total} fits, n_jobs={config.n_jobs}, metrics={[m.name for m in metric_set]})"
    )

    lock = threading.Lock()
    completed = [0]

    def progress() -> None:
        # Counts reach the callback in increasing order
        with lock:
            completed[0] += 1
            if progress_callback is not None:
                progress_callback(completed[0], total)

    outcomes = Parallel(n_jobs=config.n_jobs, backend="threading")(
        delayed(_work_item)(
            workflow,
            candidate,
            fold,
            data,
            metric_set,
            positive,
            config.check_convergence,
            cancel_event,
            progress,
        )
        for fold in resamples
        for candidate in candidates
    )

    records: List[MetricRecord] = []
    failures: List[CandidateFailure] = []
    skipped = 0
    for outcome_item in outcomes:
        if isinstance(outcome_item, CandidateFailure):
            failures.append(outcome_item)
        elif isinstance(outcome_item, str):
            skipped += 1
        else:
            records.extend(outcome_item)

    cancelled = cancel_event is not None and cancel_event.is_set()
    if cancelled:
        logger.info(f"Tuning cancelled: {skipped} of {total} work items skipped")
    logger.info(
        f"Tuning finished: {len(records)} metric records, {len(failures)} failed fits"
    )

    return TuningResult(
        records=tuple(records),
        failures=tuple(failures),
        candidates=tuple(candidates),
        parameters=parameters,
        metrics=tuple(m.name for m in metric_set),
        fold_ids=resamples.ids,
        tie_break=config.tie_break,
        cancelled=cancelled,
    )
