from typing import Any, Callable, Dict, List, Optional

import pandas as pd


def numeric_columns(frame: pd.DataFrame) -> List[str]:
    """All numeric, non-boolean columns, in frame order."""
    return [
        c for c in frame.columns
        if pd.api.types.is_numeric_dtype(frame[c]) and not pd.api.types.is_bool_dtype(frame[c])
    ]


def resolve_columns(
    df: pd.DataFrame,
    config: Dict[str, Any],
    default_selection_func: Optional[Callable[[pd.DataFrame], List[str]]] = None,
) -> List[str]:
    """
    Resolves the list of columns a step operates on.

    1. If 'columns' is explicitly provided in config, use it (filtering for existence in df).
    2. Otherwise auto-detect with default_selection_func.
    Frames handed to steps contain predictors only, so no role filtering is needed here.
    """
    cols = config.get("columns")

    if cols:
        return [c for c in cols if c in df.columns]

    if default_selection_func:
        return [c for c in default_selection_func(df) if c in df.columns]

    return []
