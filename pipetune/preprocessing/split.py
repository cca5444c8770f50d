import logging
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ..data.dataset import SplitDataset
from ..exceptions import InsufficientDataError, InvalidFractionError, SchemaMismatchError

logger = logging.getLogger(__name__)


def _check_fraction(fraction: Any) -> float:
    try:
        value = float(fraction)
    except (TypeError, ValueError):
        raise InvalidFractionError(fraction)
    if not 0.0 < value < 1.0 or not np.isfinite(value):
        raise InvalidFractionError(fraction)
    return value


def _n_train(n: int, fraction: float) -> int:
    # Round half up, then keep at least one row on each side of the split.
    return int(min(max(np.floor(n * fraction + 0.5), 1), n - 1))


def stratified_positions(
    strata: Optional[pd.Series],
    n_rows: int,
    fraction: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Positions (0..n_rows-1) of the rows drawn into the first subset.

    Each stratum is sampled independently; strata are visited in sorted order
    so the draw only depends on the generator state.
    """
    if strata is None:
        if n_rows < 2:
            raise InsufficientDataError("At least 2 rows are required to split", size=n_rows)
        chosen = rng.permutation(n_rows)[: _n_train(n_rows, fraction)]
        return np.sort(chosen)

    codes, uniques = pd.factorize(strata, sort=True)
    if (codes < 0).any():
        raise InsufficientDataError("Strata column contains missing values")

    selected = []
    for code, value in enumerate(uniques):
        positions = np.flatnonzero(codes == code)
        if len(positions) < 2:
            raise InsufficientDataError(
                f"Stratum {value!r} has {len(positions)} record(s); at least 2 are required",
                stratum=value,
                size=len(positions),
            )
        take = _n_train(len(positions), fraction)
        selected.append(rng.permutation(positions)[:take])

    return np.sort(np.concatenate(selected))


def split(
    dataset: pd.DataFrame,
    train_fraction: float = 0.75,
    strata_field: Optional[str] = None,
    seed: int = 42,
) -> SplitDataset:
    """
    Split a labeled frame into train and test subsets.

    Row order and index labels are preserved within each subset, so the two
    subsets are disjoint and together reproduce the input index.
    """
    fraction = _check_fraction(train_fraction)
    if dataset.empty:
        raise InsufficientDataError("Cannot split empty DataFrame", size=0)

    strata = None
    if strata_field is not None:
        if strata_field not in dataset.columns:
            raise SchemaMismatchError(
                f"Stratification column '{strata_field}' not found in DataFrame",
                missing=[strata_field],
            )
        strata = dataset[strata_field]

    rng = np.random.default_rng(seed)
    train_pos = stratified_positions(strata, len(dataset), fraction, rng)
    mask = np.zeros(len(dataset), dtype=bool)
    mask[train_pos] = True

    train = dataset.iloc[mask]
    test = dataset.iloc[~mask]
    logger.debug(
        f"Split {len(dataset)} rows into train={len(train)} / test={len(test)} "
        f"(fraction={fraction}, strata={strata_field}, seed={seed})"
    )
    return SplitDataset(train=train, test=test)


def initial_validation_split(
    dataset: pd.DataFrame,
    prop: Sequence[float] = (0.6, 0.2),
    strata_field: Optional[str] = None,
    seed: int = 42,
) -> SplitDataset:
    """
    Three-way split into train, validation and test.

    ``prop`` holds the train and validation shares of the whole dataset; the
    remainder goes to test.
    """
    if len(prop) != 2:
        raise ValueError("prop must contain the train and validation proportions")
    train_share, val_share = (_check_fraction(p) for p in prop)
    if train_share + val_share >= 1.0:
        raise InvalidFractionError(train_share + val_share)

    first = split(dataset, train_share + val_share, strata_field, seed)
    second = split(first.train, train_share / (train_share + val_share), strata_field, seed + 1)
    return SplitDataset(train=second.train, test=first.test, validation=second.test)


class DataSplitter:
    """
    Config-driven splitter: Train/Test, and optionally Validation.
    """
    def __init__(self,
                 test_size: float = 0.25,
                 validation_size: float = 0.0,
                 random_state: int = 42,
                 stratify_col: Optional[str] = None):
        self.test_size = test_size
        self.validation_size = validation_size
        self.random_state = random_state
        self.stratify_col = stratify_col

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DataSplitter":
        stratify = config.get("stratify", True)
        return cls(
            test_size=config.get("test_size", 0.25),
            validation_size=config.get("validation_size", 0.0),
            random_state=config.get("random_state", 42),
            stratify_col=config.get("target_column") if stratify else None,
        )

    def split(self, df: pd.DataFrame) -> SplitDataset:
        if self.validation_size > 0:
            train_share = 1.0 - self.test_size - self.validation_size
            return initial_validation_split(
                df, (train_share, self.validation_size), self.stratify_col, self.random_state
            )
        return split(df, 1.0 - self.test_size, self.stratify_col, self.random_state)
