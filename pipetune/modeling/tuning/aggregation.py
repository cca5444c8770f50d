"""Summaries and rankings of tuning metric records."""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..evaluation.metrics import METRIC_REGISTRY
from ..hyperparameters import Candidate, TunableParameter, infer_parameters
from .schemas import CandidateFailure, MetricRecord

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["metric", "mean", "variance", "std_err", "n"]


def _param_names(records: Sequence[MetricRecord]) -> List[str]:
    return list(dict.fromkeys(k for r in records for k in r.params))


def collect_metrics(records: Iterable[MetricRecord], summarize: bool = True) -> pd.DataFrame:
    """
    Per-candidate metric summaries, or the raw per-fold records.

    Summaries hold one row per (candidate, metric) with the mean over folds,
    the sample variance (ddof=1, NaN for a single fold), its standard error
    and the number of folds.
    """
    records = list(records)
    params = _param_names(records)
    raw = pd.DataFrame(
        [
            {
                "candidate_id": r.candidate_id,
                **dict(r.params),
                "metric": r.metric,
                "fold_id": r.fold_id,
                "value": r.value,
            }
            for r in records
        ],
        columns=["candidate_id", *params, "metric", "fold_id", "value"],
    )
    if not summarize:
        return raw

    rows = []
    for (candidate_id, metric), group in raw.groupby(["candidate_id", "metric"], sort=True):
        values = group["value"].to_numpy(dtype=float)
        n = int(np.sum(~np.isnan(values)))
        mean = float(np.nanmean(values)) if n else float("nan")
        variance = float(np.nanvar(values, ddof=1)) if n > 1 else float("nan")
        std_err = math.sqrt(variance / n) if n > 1 else float("nan")
        first = group.iloc[0]
        rows.append(
            {
                "candidate_id": candidate_id,
                **{p: first[p] for p in params},
                "metric": metric,
                "mean": mean,
                "variance": variance,
                "std_err": std_err,
                "n": n,
            }
        )
    return pd.DataFrame(rows, columns=["candidate_id", *params, *SUMMARY_COLUMNS])


def _direction(metric: str) -> str:
    spec = METRIC_REGISTRY.get(metric)
    return spec.direction if spec is not None else "maximize"


def _oriented(value: float, metric: str) -> float:
    """Smaller is better after orientation; NaN sorts last."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return math.inf
    return -value if _direction(metric) == "maximize" else value


def _secondary_metric(tie_break: str) -> Optional[str]:
    if tie_break == "parsimony":
        return None
    if tie_break.startswith("metric:") and tie_break[len("metric:"):]:
        return tie_break[len("metric:"):]
    raise ValueError(f"tie_break must be 'parsimony' or 'metric:<name>', got {tie_break!r}")


def _parsimony_key(params: Mapping[str, Any], parameters: Mapping[str, TunableParameter]) -> Tuple[float, ...]:
    """Simplest model first, following each parameter's declared direction."""
    key = []
    for name, p in parameters.items():
        value = params.get(name)
        if p.simpler not in ("higher", "lower") or not isinstance(value, (int, float)):
            continue
        key.append(-float(value) if p.simpler == "higher" else float(value))
    return tuple(key)


def _resolve_parameters(
    records: Sequence[MetricRecord], parameters: Optional[Mapping[str, TunableParameter]]
) -> Mapping[str, TunableParameter]:
    """Declared tunables, or the family defaults for the parameter names in the records."""
    if parameters:
        return parameters
    return infer_parameters(_param_names(records))


def _failed_ids(failures: Iterable[CandidateFailure]) -> set:
    return {f.candidate_id for f in failures}


def _ranked(
    records: Sequence[MetricRecord],
    metric: str,
    tie_break: str,
    parameters: Optional[Mapping[str, TunableParameter]],
    failures: Iterable[CandidateFailure],
) -> pd.DataFrame:
    secondary = _secondary_metric(tie_break)
    summary = collect_metrics(records)
    failed = _failed_ids(failures)
    if failed:
        logger.info(f"Excluding {len(failed)} failed candidate(s) from ranking: {sorted(failed)}")

    primary = summary[(summary["metric"] == metric) & ~summary["candidate_id"].isin(failed)]
    if primary.empty:
        available = sorted(summary["metric"].unique())
        raise ValueError(f"No successful results for metric '{metric}'. Metrics available: {available}")

    secondary_means: Dict[str, float] = {}
    if secondary is not None:
        rows = summary[summary["metric"] == secondary]
        if rows.empty:
            raise ValueError(f"Tie-break metric '{secondary}' was not computed")
        secondary_means = dict(zip(rows["candidate_id"], rows["mean"]))

    candidates = {r.candidate_id: r.candidate for r in records}
    parameters = _resolve_parameters(records, parameters)

    def sort_key(row) -> tuple:
        cid = row["candidate_id"]
        key = [_oriented(row["mean"], metric)]
        if secondary is not None:
            key.append(_oriented(secondary_means.get(cid, float("nan")), secondary))
        key.append(_parsimony_key(candidates[cid].params, parameters))
        key.append(cid)
        return tuple(key)

    order = sorted(range(len(primary)), key=lambda i: sort_key(primary.iloc[i]))
    return primary.iloc[order].reset_index(drop=True)


def show_best(
    records: Sequence[MetricRecord],
    metric: str,
    n: int = 5,
    tie_break: str = "parsimony",
    parameters: Optional[Mapping[str, TunableParameter]] = None,
    failures: Iterable[CandidateFailure] = (),
) -> pd.DataFrame:
    """Top ``n`` candidates for ``metric``, best first."""
    return _ranked(list(records), metric, tie_break, parameters, failures).head(n)


def select_best(
    records: Sequence[MetricRecord],
    metric: str,
    tie_break: str = "parsimony",
    parameters: Optional[Mapping[str, TunableParameter]] = None,
    failures: Iterable[CandidateFailure] = (),
) -> Candidate:
    records = list(records)
    best_id = _ranked(records, metric, tie_break, parameters, failures).iloc[0]["candidate_id"]
    best = next(r.candidate for r in records if r.candidate_id == best_id)
    logger.info(f"Selected {best.id} by {metric}: {dict(best.params)}")
    return best


def select_by_one_std_err(
    records: Sequence[MetricRecord],
    metric: str,
    parameters: Optional[Mapping[str, TunableParameter]] = None,
    failures: Iterable[CandidateFailure] = (),
) -> Candidate:
    """The simplest candidate whose mean is within one standard error of the best."""
    records = list(records)
    ranked = _ranked(records, metric, "parsimony", parameters, failures)
    best = ranked.iloc[0]
    std_err = 0.0 if math.isnan(best["std_err"]) else float(best["std_err"])
    if _direction(metric) == "maximize":
        within = ranked[ranked["mean"] >= best["mean"] - std_err]
    else:
        within = ranked[ranked["mean"] <= best["mean"] + std_err]

    candidates = {r.candidate_id: r.candidate for r in records}
    parameters = _resolve_parameters(records, parameters)
    simplest = min(
        within["candidate_id"],
        key=lambda cid: (_parsimony_key(candidates[cid].params, parameters), cid),
    )
    return candidates[simplest]


def excluded_candidates(failures: Iterable[CandidateFailure]) -> pd.DataFrame:
    """One row per failed candidate with the folds it failed on and why."""
    grouped: Dict[str, Dict[str, Any]] = {}
    for f in failures:
        entry = grouped.setdefault(
            f.candidate_id,
            {"candidate_id": f.candidate_id, **dict(f.params), "folds": [], "reasons": []},
        )
        entry["folds"].append(f.fold_id)
        if f.reason not in entry["reasons"]:
            entry["reasons"].append(f.reason)
    rows = []
    for entry in grouped.values():
        reasons = entry.pop("reasons")
        rows.append({**entry, "n_failed": len(entry["folds"]), "reason": "; ".join(reasons)})
    return pd.DataFrame(rows)
