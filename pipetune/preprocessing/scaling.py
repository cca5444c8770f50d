from typing import Any, Dict
import logging

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from .base import BaseCalculator, BaseApplier
from ..utils import numeric_columns, resolve_columns

logger = logging.getLogger(__name__)


# --- Standard Scaler (center / scale / normalize) ---
class StandardScalerCalculator(BaseCalculator):
    def fit(self, df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
        # Config: {'with_mean': True, 'with_std': True, 'columns': [...]}
        with_mean = config.get('with_mean', True)
        with_std = config.get('with_std', True)

        cols = resolve_columns(df, config, numeric_columns)

        if not cols:
            return {'type': 'standard_scaler', 'columns': []}

        # Statistics are always learned; with_mean/with_std only decide what gets applied.
        scaler = StandardScaler()
        scaler.fit(df[cols].astype(float))

        return {
            'type': 'standard_scaler',
            'mean': scaler.mean_.tolist(),
            'scale': scaler.scale_.tolist(),
            'var': scaler.var_.tolist(),
            'with_mean': with_mean,
            'with_std': with_std,
            'columns': cols
        }


class StandardScalerApplier(BaseApplier):
    def apply(self, df: pd.DataFrame, params: Dict[str, Any]) -> pd.DataFrame:
        cols = params.get('columns', [])
        mean = params.get('mean')
        scale = params.get('scale')

        valid_cols = [c for c in cols if c in df.columns]
        if not valid_cols or mean is None or scale is None:
            return df

        df_out = df.copy()

        mean_arr = np.array(mean, dtype=float)
        scale_arr = np.array(scale, dtype=float)

        # The params['columns'] order matches mean/scale order.
        col_indices = [cols.index(c) for c in valid_cols]

        X = df_out[valid_cols].to_numpy(dtype=float)

        if params.get('with_mean', True):
            X = X - mean_arr[col_indices]

        if params.get('with_std', True):
            # StandardScaler already maps zero variance to scale 1.0; keep the guard for hand-built params
            safe_scale = scale_arr[col_indices]
            safe_scale[safe_scale == 0] = 1.0
            X = X / safe_scale

        df_out[valid_cols] = X
        return df_out
