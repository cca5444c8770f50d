from typing import Any, Callable, Dict, Optional, Type
import logging

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator

from ..exceptions import ConvergenceError
from .base import BaseModelCalculator, BaseModelApplier

logger = logging.getLogger(__name__)

# (merged params, X) -> estimator kwargs
ParamTranslator = Callable[[Dict[str, Any], pd.DataFrame], Dict[str, Any]]


class SklearnCalculator(BaseModelCalculator):
    def __init__(
        self,
        model_class: Type[BaseEstimator],
        default_params: Dict[str, Any],
        mode: str,
        translate: Optional[ParamTranslator] = None,
        check_convergence: bool = False,
    ):
        self.model_class = model_class
        self.default_params = default_params
        self._mode = mode
        self.translate = translate
        self.check_convergence = check_convergence

    @property
    def mode(self) -> str:
        return self._mode

    def resolve_params(self, X: pd.DataFrame, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        # 1. Merge Config with Defaults
        params = self.default_params.copy()
        if config:
            # Nested {'params': {...}} is preferred; a flat dict is accepted
            # once reserved pipeline keys are filtered out.
            overrides = config.get('params', {})
            if not overrides:
                reserved_keys = {'type', 'target_column', 'node_id'}
                overrides = {k: v for k, v in config.items() if k not in reserved_keys}
            params.update({k: v for k, v in overrides.items() if v is not None})

        # 2. Map model-level argument names onto estimator arguments
        if self.translate is not None:
            params = self.translate(params, X)
        return params

    def fit(self, X: pd.DataFrame, y: pd.Series, config: Dict[str, Any]) -> Any:
        params = self.resolve_params(X, config)

        model = self.model_class(**params)
        model.fit(X, y)

        if self.check_convergence:
            _check_convergence(model, params)

        return model


def _check_convergence(model: Any, params: Dict[str, Any]) -> None:
    max_iter = params.get("max_iter")
    n_iter = getattr(model, "n_iter_", None)
    if max_iter is None or n_iter is None:
        return
    used = int(np.max(np.asarray(n_iter)))
    if used >= int(max_iter):
        raise ConvergenceError(
            f"{type(model).__name__} did not converge within max_iter={max_iter}",
            {"max_iter": max_iter, "n_iter": used},
        )


class SklearnApplier(BaseModelApplier):
    def predict(self, df: pd.DataFrame, model_artifact: Any) -> pd.Series:
        # model_artifact is the fitted sklearn estimator
        return pd.Series(model_artifact.predict(df), index=df.index)

    def predict_proba(self, df: pd.DataFrame, model_artifact: Any) -> Optional[pd.DataFrame]:
        if not hasattr(model_artifact, "predict_proba"):
            return None
        probas = model_artifact.predict_proba(df)
        return pd.DataFrame(probas, columns=model_artifact.classes_, index=df.index)
