"""
Search grids: the concrete candidates a tuning run evaluates.

Factorial grids enumerate every combination of explicit or evenly spaced
values. Sampled grids (latin hypercube, random) draw ``size`` points inside
each parameter's range from a seeded generator, so the same seed always
yields the same candidates.
"""

import itertools
import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from ..hyperparameters import Candidate, TunableParameter

logger = logging.getLogger(__name__)

Space = Union[Mapping[str, TunableParameter], Any]


def _resolve_space(space: Space) -> Dict[str, TunableParameter]:
    """Accept a parameter mapping or anything exposing ``tunable()`` (ModelSpec, Workflow)."""
    if hasattr(space, "tunable"):
        space = space.tunable()
    return dict(space)


def _candidate_id(i: int, total: int) -> str:
    width = max(2, len(str(total)))
    return f"Model{i:0{width}d}"


def _to_candidates(assignments: Iterable[Mapping[str, Any]]) -> List[Candidate]:
    """Number assignments Model01.. in order, dropping exact duplicates."""
    unique: Dict[tuple, Dict[str, Any]] = {}
    for params in assignments:
        params = {k: _plain(v) for k, v in params.items()}
        unique.setdefault(tuple(sorted(params.items())), params)
    total = len(unique)
    return [Candidate(id=_candidate_id(i + 1, total), params=p) for i, p in enumerate(unique.values())]


def _plain(value: Any) -> Any:
    # numpy scalars become Python scalars so candidates hash and print cleanly
    return value.item() if isinstance(value, np.generic) else value


def grid_values(**values: Sequence[Any]) -> List[Candidate]:
    """Cartesian product of explicit value lists, e.g. ``grid_values(penalty=[1e-4, 1e-3])``."""
    if not values:
        return [Candidate(id=_candidate_id(1, 1), params={})]
    names = list(values)
    combos = itertools.product(*(list(values[n]) for n in names))
    return _to_candidates(dict(zip(names, combo)) for combo in combos)


def grid_from_records(records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]]) -> List[Candidate]:
    """Pre-enumerated candidates, one per record (or DataFrame row)."""
    if isinstance(records, pd.DataFrame):
        records = records.to_dict(orient="records")
    return _to_candidates(records)


def grid_regular(space: Space, levels: Union[int, Mapping[str, int]] = 3) -> List[Candidate]:
    """Full factorial over evenly spaced levels of every tunable parameter."""
    params = _resolve_space(space)
    per_param = {
        name: p.levels(levels.get(name, 3) if isinstance(levels, Mapping) else levels, name)
        for name, p in params.items()
    }
    candidates = grid_values(**per_param)
    logger.debug(f"Regular grid: {len(candidates)} candidates over {list(params)}")
    return candidates


def grid_latin_hypercube(space: Space, size: int = 10, seed: int = 42) -> List[Candidate]:
    """
    Latin hypercube sample of ``size`` candidates.

    Each dimension's unit interval is cut into ``size`` equal strata and one
    point is drawn inside every stratum; the strata are shuffled
    independently per dimension, so no two candidates share a stratum in
    any dimension.
    """
    if size < 1:
        raise ValueError("size must be >= 1")
    params = _resolve_space(space)
    rng = np.random.default_rng(seed)

    columns = {}
    for name, p in params.items():
        strata = rng.permutation(size)
        u = (strata + rng.uniform(size=size)) / size
        columns[name] = [p.from_unit(x, name) for x in u]

    assignments = [{name: columns[name][i] for name in params} for i in range(size)]
    candidates = _to_candidates(assignments)
    if len(candidates) < size:
        logger.debug(f"Latin hypercube: {size - len(candidates)} duplicate candidates dropped")
    return candidates


def grid_random(space: Space, size: int = 10, seed: int = 42) -> List[Candidate]:
    """Independent uniform draws inside each parameter's range."""
    if size < 1:
        raise ValueError("size must be >= 1")
    params = _resolve_space(space)
    rng = np.random.default_rng(seed)
    draws = {name: rng.uniform(size=size) for name in params}
    assignments = [
        {name: p.from_unit(draws[name][i], name) for name, p in params.items()} for i in range(size)
    ]
    return _to_candidates(assignments)


def grid_to_frame(candidates: Sequence[Candidate]) -> pd.DataFrame:
    return pd.DataFrame([c.to_dict() for c in candidates])
