"""Scoring unlabeled records with a fitted workflow."""

import logging
from typing import Any, Optional

import pandas as pd

from .config import get_settings
from .modeling.workflow import PRED_CLASS, FitResult, prob_column

logger = logging.getLogger(__name__)


def score_new_data(
    fit_result: FitResult,
    frame: pd.DataFrame,
    threshold: Optional[float] = None,
    positive: Any = None,
) -> pd.DataFrame:
    """
    Positive-class probabilities for every row of frame, highest first.

    Returns identifier columns, the positive-class probability column
    (``.pred_<positive>``) and ``.pred_class``. Passing ``threshold`` keeps
    only rows whose probability is at least that value; without it every row
    is returned and ``.pred_class`` uses the configured probability threshold.
    """
    cutoff = get_settings().PROBABILITY_THRESHOLD if threshold is None else float(threshold)
    if not 0.0 <= cutoff <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {cutoff}")
    positive = fit_result.default_positive() if positive is None else positive
    negatives = [c for c in fit_result.classes if c != positive]
    negative = negatives[0] if negatives else None

    scored = fit_result.predict(frame, mode="prob")
    prob_col = prob_column(positive)
    ids = [c for c in fit_result.fitted_recipe.recipe.identifiers if c in scored.columns]
    out = scored[ids + [prob_col]].copy()
    above = out[prob_col] >= cutoff
    out[PRED_CLASS] = [positive if flag else negative for flag in above]

    out = out.sort_values(prob_col, ascending=False, kind="mergesort")
    if threshold is not None:
        out = out[out[prob_col] >= cutoff]
    logger.info(f"Scored {len(frame)} rows; {int(above.sum())} at or above {cutoff}")
    return out
