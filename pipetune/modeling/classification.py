"""Model engines: each family is a registry entry over the same sklearn adapter."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import logging

import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression

from ..exceptions import UnknownComponentError
from .base import BaseModelApplier, BaseModelCalculator
from .sklearn_wrapper import ParamTranslator, SklearnApplier, SklearnCalculator

logger = logging.getLogger(__name__)


# --- Logistic Regression ---
def _translate_logistic(params: Dict[str, Any], X: pd.DataFrame) -> Dict[str, Any]:
    """
    penalty is the per-observation regularization amount (glmnet lambda),
    so C = 1 / (n * penalty). mixture selects ridge (0), lasso (1) or
    elastic net in between.
    """
    params = dict(params)
    penalty = params.pop("penalty", None)
    mixture = params.pop("mixture", None)

    if penalty is not None:
        if penalty <= 0:
            raise ValueError(f"penalty must be positive, got {penalty}")
        params["C"] = 1.0 / (max(len(X), 1) * float(penalty))

    if mixture is not None:
        mixture = float(mixture)
        if not 0.0 <= mixture <= 1.0:
            raise ValueError(f"mixture must be within [0, 1], got {mixture}")
        if mixture == 1.0:
            params["penalty"] = "l1"
            params["solver"] = "liblinear"
        elif mixture > 0.0:
            params["penalty"] = "elasticnet"
            params["solver"] = "saga"
            params["l1_ratio"] = mixture
    return params


# --- Random Forest Classifier ---
def _translate_random_forest(params: Dict[str, Any], X: pd.DataFrame) -> Dict[str, Any]:
    params = dict(params)
    mtry = params.pop("mtry", None)
    trees = params.pop("trees", None)
    min_n = params.pop("min_n", None)

    if mtry is not None:
        params["max_features"] = int(min(max(int(mtry), 1), X.shape[1]))
    if trees is not None:
        params["n_estimators"] = int(trees)
    if min_n is not None:
        params["min_samples_split"] = max(int(min_n), 2)
    return params


@dataclass(frozen=True)
class ModelEngine:
    """How one model family is trained and used for prediction."""
    family: str
    model_class: Any
    default_params: Dict[str, Any] = field(default_factory=dict)
    translate: Optional[ParamTranslator] = None
    check_convergence: bool = False
    mode: str = "classification"

    def components(self, check_convergence: Optional[bool] = None) -> Tuple[BaseModelCalculator, BaseModelApplier]:
        calculator = SklearnCalculator(
            model_class=self.model_class,
            default_params=dict(self.default_params),
            mode=self.mode,
            translate=self.translate,
            check_convergence=self.check_convergence if check_convergence is None else check_convergence,
        )
        return calculator, SklearnApplier()


ENGINE_REGISTRY: Dict[str, ModelEngine] = {
    "logistic_regression": ModelEngine(
        family="logistic_regression",
        model_class=LogisticRegression,
        default_params={
            "max_iter": 1000,
            "solver": "lbfgs",
            "random_state": 42,
        },
        translate=_translate_logistic,
        check_convergence=True,
    ),
    "random_forest": ModelEngine(
        family="random_forest",
        model_class=RandomForestClassifier,
        default_params={
            "n_estimators": 500,
            "min_samples_leaf": 1,
            "n_jobs": 1,
            "random_state": 42,
        },
        translate=_translate_random_forest,
    ),
}


def get_engine(family: str) -> ModelEngine:
    if family not in ENGINE_REGISTRY:
        raise UnknownComponentError("model engine", family, ENGINE_REGISTRY.keys())
    return ENGINE_REGISTRY[family]
