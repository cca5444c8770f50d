from typing import Any, Dict
import logging

import pandas as pd

from .base import BaseCalculator, BaseApplier

logger = logging.getLogger(__name__)


# --- Drop Columns ---
class DropColumnsCalculator(BaseCalculator):
    def fit(self, df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        # Config: {'columns': [...], 'missing_threshold': 50.0 (percent)}
        # Explicit columns are always dropped; the threshold additionally drops
        # columns whose share of missing values in training is >= threshold.
        threshold = config.get('missing_threshold')
        explicit_cols = config.get('columns') or []

        cols_to_drop = [c for c in explicit_cols if c in df.columns]

        if threshold is not None:
            threshold_val = float(threshold)
            if threshold_val > 0:
                missing_pct = df.isna().mean() * 100
                for c in missing_pct[missing_pct >= threshold_val].index:
                    if c not in cols_to_drop:
                        cols_to_drop.append(c)

        return {
            'type': 'drop_columns',
            'columns_to_drop': cols_to_drop,
            'threshold': threshold
        }


class DropColumnsApplier(BaseApplier):
    def apply(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.DataFrame:
        cols_to_drop = [c for c in params.get('columns_to_drop', []) if c in df.columns]

        if cols_to_drop:
            df = df.drop(columns=cols_to_drop)

        return df
