from abc import ABC, abstractmethod
from typing import Any, Dict

import pandas as pd


class BaseCalculator(ABC):
    """Learns a step's parameters from the predictor columns of a training frame."""

    @abstractmethod
    def fit(self, df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        """Returns plain, picklable parameters; the frame is left untouched."""


class BaseApplier(ABC):
    """Replays a fitted step on any frame with the training-time columns."""

    @abstractmethod
    def apply(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.DataFrame:
        """
        Transforms a copy of df with previously fitted params.
        Never learns from df.
        """
