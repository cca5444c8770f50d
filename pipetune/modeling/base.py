from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import pandas as pd


class BaseModelCalculator(ABC):
    """Trains an estimator from baked predictors and the outcome."""

    @property
    @abstractmethod
    def mode(self) -> str:
        """Prediction mode of the trained model, e.g. 'classification'."""

    @abstractmethod
    def fit(self, X: pd.DataFrame, y: pd.Series, config: Dict[str, Any]) -> Any:
        """Returns the fitted estimator. X and y are never modified."""


class BaseModelApplier(ABC):
    @abstractmethod
    def predict(self, df: pd.DataFrame, model_artifact: Any) -> pd.Series:
        """Class labels, indexed like df."""

    def predict_proba(self, df: pd.DataFrame, model_artifact: Any) -> Optional[pd.DataFrame]:
        """
        Class probabilities with one column per class label, or None when
        the engine cannot produce them.
        """
        return None
