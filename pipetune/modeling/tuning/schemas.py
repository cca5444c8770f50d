"""Tuning configuration and result schemas."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ...config import get_settings
from ..hyperparameters import Candidate, TunableParameter


@dataclass
class TuningConfig:
    """Options for one tune_grid run. Unset options fall back to Settings."""
    metrics: Optional[Sequence[Any]] = None
    n_jobs: int = field(default_factory=lambda: get_settings().N_JOBS)
    tie_break: str = field(default_factory=lambda: get_settings().TIE_BREAK)
    check_convergence: bool = field(default_factory=lambda: get_settings().CHECK_CONVERGENCE)
    # Label treated as the event class; defaults to the last sorted outcome label
    positive: Any = None
    grid_size: int = 10
    random_state: int = field(default_factory=lambda: get_settings().RANDOM_STATE)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "TuningConfig":
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in valid_keys})


@dataclass(frozen=True)
class MetricRecord:
    """One metric value for one candidate on one resampling fold."""
    candidate: Candidate
    metric: str
    fold_id: str
    value: float

    @property
    def candidate_id(self) -> str:
        return self.candidate.id

    @property
    def params(self) -> Mapping[str, Any]:
        return self.candidate.params


@dataclass(frozen=True)
class CandidateFailure:
    """Marker for a candidate that could not be fit or assessed on a fold."""
    candidate: Candidate
    fold_id: str
    error_type: str
    reason: str

    @property
    def candidate_id(self) -> str:
        return self.candidate.id

    @property
    def params(self) -> Mapping[str, Any]:
        return self.candidate.params


@dataclass(frozen=True)
class TuningResult:
    """Everything a tune_grid run produced, including failures and partial work."""
    records: Tuple[MetricRecord, ...]
    failures: Tuple[CandidateFailure, ...]
    candidates: Tuple[Candidate, ...]
    parameters: Dict[str, TunableParameter] = field(default_factory=dict)
    metrics: Tuple[str, ...] = ()
    fold_ids: Tuple[str, ...] = ()
    tie_break: str = "parsimony"
    cancelled: bool = False

    @property
    def primary_metric(self) -> str:
        return self.metrics[0]

    def collect_metrics(self, summarize: bool = True) -> pd.DataFrame:
        from .aggregation import collect_metrics

        return collect_metrics(self.records, summarize=summarize)

    def show_best(self, metric: Optional[str] = None, n: int = 5, tie_break: Optional[str] = None) -> pd.DataFrame:
        from .aggregation import show_best

        return show_best(
            self.records,
            metric or self.primary_metric,
            n=n,
            tie_break=tie_break or self.tie_break,
            parameters=self.parameters,
            failures=self.failures,
        )

    def select_best(self, metric: Optional[str] = None, tie_break: Optional[str] = None) -> Candidate:
        from .aggregation import select_best

        return select_best(
            self.records,
            metric or self.primary_metric,
            tie_break=tie_break or self.tie_break,
            parameters=self.parameters,
            failures=self.failures,
        )

    def select_by_one_std_err(self, metric: Optional[str] = None) -> Candidate:
        from .aggregation import select_by_one_std_err

        return select_by_one_std_err(
            self.records,
            metric or self.primary_metric,
            parameters=self.parameters,
            failures=self.failures,
        )

    def excluded_candidates(self) -> pd.DataFrame:
        from .aggregation import excluded_candidates

        return excluded_candidates(self.failures)

    def records_frame(self) -> pd.DataFrame:
        return self.collect_metrics(summarize=False)

    def failures_frame(self) -> pd.DataFrame:
        rows = [
            {
                "candidate_id": f.candidate_id,
                **dict(f.params),
                "fold_id": f.fold_id,
                "error_type": f.error_type,
                "reason": f.reason,
            }
            for f in self.failures
        ]
        columns = ["candidate_id", *self.parameters.keys(), "fold_id", "error_type", "reason"]
        return pd.DataFrame(rows, columns=list(dict.fromkeys(columns + [c for r in rows for c in r])))
