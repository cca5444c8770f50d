from typing import Any, Dict, List, Optional
import logging

import numpy as np
import pandas as pd
from sklearn.feature_selection import VarianceThreshold

from .base import BaseCalculator, BaseApplier
from ..utils import numeric_columns, resolve_columns

logger = logging.getLogger(__name__)


def _frequency_flags(series: pd.Series, freq_cut: float, unique_cut: float) -> bool:
    """
    Frequency rule for near-zero variance: the most common value dominates
    the second most common one and few distinct values are present.
    """
    counts = series.dropna().value_counts()
    if len(counts) <= 1:
        return True
    freq_ratio = counts.iloc[0] / counts.iloc[1]
    pct_unique = 100.0 * len(counts) / max(len(series), 1)
    return bool(freq_ratio > freq_cut and pct_unique <= unique_cut)


# --- Near-zero Variance ---
class NearZeroVarianceCalculator(BaseCalculator):
    def fit(self, df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        # Config: {"threshold": 0.0, "freq_cut": None, "unique_cut": None, "columns": [...]}
        threshold = float(config.get("threshold", 0.0))
        freq_cut: Optional[float] = config.get("freq_cut")
        unique_cut: Optional[float] = config.get("unique_cut")

        cols = resolve_columns(df, config, numeric_columns)

        if not cols:
            return {"type": "near_zero_variance", "columns_to_drop": [], "variances": {}}

        X = df[cols].astype(float)
        variances = np.nanvar(X.to_numpy(), axis=0)
        if (variances <= threshold).all():
            # VarianceThreshold refuses to fit when nothing survives
            to_drop: List[str] = list(cols)
        else:
            selector = VarianceThreshold(threshold=threshold)
            selector.fit(X)
            variances = np.asarray(selector.variances_)
            # VarianceThreshold keeps variance > threshold, so a zero threshold drops constant columns.
            to_drop = [c for c, keep in zip(cols, selector.get_support()) if not keep]

        if freq_cut is not None and unique_cut is not None:
            for c in cols:
                if c not in to_drop and _frequency_flags(df[c], float(freq_cut), float(unique_cut)):
                    to_drop.append(c)

        if to_drop:
            logger.debug(f"Near-zero variance columns marked for removal: {to_drop}")

        return {
            "type": "near_zero_variance",
            "columns_to_drop": to_drop,
            "variances": {c: float(v) for c, v in zip(cols, variances)},
            "threshold": threshold,
        }


class NearZeroVarianceApplier(BaseApplier):
    def apply(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.DataFrame:
        to_drop = [c for c in params.get("columns_to_drop", []) if c in df.columns]
        if not to_drop:
            return df
        return df.drop(columns=to_drop)
