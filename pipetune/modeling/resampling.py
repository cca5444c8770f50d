"""Resampling plans (V-fold cross-validation, validation sets)."""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
import logging

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, StratifiedKFold

from ..data.dataset import SplitDataset
from ..exceptions import InsufficientDataError, SchemaMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fold:
    """One analysis/assessment partition, stored as row positions."""
    id: str
    analysis: np.ndarray
    assessment: np.ndarray

    def analysis_frame(self, data: pd.DataFrame) -> pd.DataFrame:
        return data.iloc[self.analysis]

    def assessment_frame(self, data: pd.DataFrame) -> pd.DataFrame:
        return data.iloc[self.assessment]


@dataclass(frozen=True)
class ResamplingPlan:
    """The data being resampled and its folds."""
    data: pd.DataFrame
    folds: Tuple[Fold, ...]
    strata: Optional[str] = None

    def __iter__(self) -> Iterator[Fold]:
        return iter(self.folds)

    def __len__(self) -> int:
        return len(self.folds)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(f.id for f in self.folds)


def vfold_cv(
    data: pd.DataFrame,
    v: int = 10,
    repeats: int = 1,
    strata: Optional[str] = None,
    seed: int = 42,
) -> ResamplingPlan:
    """
    V-fold cross-validation, stratified on ``strata`` when given.

    Repeats reshuffle with ``seed + repeat`` so each repeat is reproducible.
    """
    if v < 2:
        raise ValueError("v must be at least 2")
    if repeats < 1:
        raise ValueError("repeats must be at least 1")
    if len(data) < v:
        raise InsufficientDataError(f"{len(data)} rows cannot be split into {v} folds", size=len(data))

    y = None
    if strata is not None:
        if strata not in data.columns:
            raise SchemaMismatchError(f"Strata column '{strata}' not found", missing=[strata])
        y = data[strata].to_numpy()
        smallest = int(pd.Series(y).value_counts().min())
        if smallest < v:
            raise InsufficientDataError(
                f"Smallest stratum has {smallest} rows; stratified {v}-fold CV needs at least {v}",
                size=smallest,
            )

    folds = []
    positions = np.arange(len(data))
    for r in range(repeats):
        if y is not None:
            splitter = StratifiedKFold(n_splits=v, shuffle=True, random_state=seed + r)
            split_iter = splitter.split(positions, y)
        else:
            splitter = KFold(n_splits=v, shuffle=True, random_state=seed + r)
            split_iter = splitter.split(positions)

        for i, (analysis, assessment) in enumerate(split_iter):
            fold_id = f"Fold{i + 1:02d}" if repeats == 1 else f"Repeat{r + 1}_Fold{i + 1:02d}"
            folds.append(Fold(id=fold_id, analysis=analysis, assessment=assessment))

    logger.debug(f"Created {len(folds)} resamples (v={v}, repeats={repeats}, strata={strata})")
    return ResamplingPlan(data=data, folds=tuple(folds), strata=strata)


def validation_set(split: SplitDataset) -> ResamplingPlan:
    """A single resample: fit on the training subset, assess on the validation subset."""
    if split.validation is None:
        raise ValueError("Split has no validation subset")
    data = pd.concat([split.train, split.validation], axis=0)
    n_train = len(split.train)
    fold = Fold(
        id="validation",
        analysis=np.arange(n_train),
        assessment=np.arange(n_train, len(data)),
    )
    return ResamplingPlan(data=data, folds=(fold,))
