import logging
import os
from typing import Optional, Sequence

import pandas as pd

from ..exceptions import SchemaMismatchError

logger = logging.getLogger(__name__)


class DataLoader:
    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def load_full(self, source_path: str) -> pd.DataFrame:
        if not os.path.exists(source_path):
            raise FileNotFoundError(f"File not found: {source_path}")

        if source_path.endswith((".csv", ".txt", ".tsv")):
            sep = "\t" if source_path.endswith(".tsv") else self.delimiter
            return pd.read_csv(source_path, sep=sep)
        elif source_path.endswith(".parquet"):
            return pd.read_parquet(source_path)
        else:
            raise ValueError(f"Unsupported file format: {source_path}")


def load_table(
    source_path: str,
    id_column: Optional[str] = None,
    label_column: Optional[str] = None,
    required_columns: Optional[Sequence[str]] = None,
    delimiter: str = ",",
) -> pd.DataFrame:
    """
    Load a historical (labeled) or eligible (unlabeled) table.

    Checks that the identifier, label and any other required columns exist.
    """
    df = DataLoader(delimiter=delimiter).load_full(source_path)

    expected = list(required_columns or [])
    if id_column:
        expected.append(id_column)
    if label_column:
        expected.append(label_column)
    missing = [c for c in expected if c not in df.columns]
    if missing:
        raise SchemaMismatchError(f"Columns not found in {source_path}: {missing}", missing=missing)

    if label_column and df[label_column].isna().any():
        raise ValueError(f"Label column '{label_column}' contains missing values")

    logger.info(f"Loaded {len(df)} rows x {len(df.columns)} columns from {source_path}")
    return df
