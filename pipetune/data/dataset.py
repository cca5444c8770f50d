from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import pandas as pd


class Role(str, Enum):
    """Role of a column inside a recipe."""

    PREDICTOR = "predictor"
    OUTCOME = "outcome"
    IDENTIFIER = "identifier"


@dataclass
class SplitDataset:
    train: pd.DataFrame
    test: pd.DataFrame
    validation: Optional[pd.DataFrame] = None
    # Set by last_fit once the test subset has been used for the final evaluation
    test_evaluated: bool = field(default=False, compare=False, repr=False)

    def copy(self) -> "SplitDataset":
        return SplitDataset(
            train=self.train.copy(),
            test=self.test.copy(),
            validation=self.validation.copy() if self.validation is not None else None,
        )


def _dtype_kind(series: pd.Series) -> str:
    if pd.api.types.is_bool_dtype(series):
        return "boolean"
    if pd.api.types.is_numeric_dtype(series):
        return "numeric"
    return "categorical"


def frame_schema(df: pd.DataFrame, columns: Optional[List[str]] = None) -> Tuple[Tuple[str, str], ...]:
    """Ordered (column, kind) pairs where kind is numeric, boolean or categorical."""
    cols = list(df.columns) if columns is None else columns
    return tuple((str(c), _dtype_kind(df[c])) for c in cols)
