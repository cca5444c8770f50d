import math

import numpy as np
import pandas as pd
import pytest

from pipetune.modeling import logistic_reg, rand_forest, tune
from pipetune.modeling.tuning.grid import (
    grid_from_records,
    grid_latin_hypercube,
    grid_random,
    grid_regular,
    grid_to_frame,
    grid_values,
)


@pytest.fixture
def space():
    return logistic_reg(penalty=tune(), mixture=tune()).tunable()


def test_grid_values_is_cartesian():
    grid = grid_values(penalty=[0.1, 0.01], mixture=[0.0, 0.5, 1.0])
    assert len(grid) == 6
    assert [c.id for c in grid] == [f"Model0{i}" for i in range(1, 7)]
    assert grid[0].params == {"penalty": 0.1, "mixture": 0.0}
    assert grid[-1].params == {"penalty": 0.01, "mixture": 1.0}


def test_log_spaced_sequence_over_one_parameter():
    penalties = np.logspace(-4, -1, 5)
    grid = grid_values(penalty=penalties)
    assert [c.params["penalty"] for c in grid] == pytest.approx(list(penalties))
    # numpy scalars are converted to plain floats
    assert all(type(c.params["penalty"]) is float for c in grid)


def test_duplicates_are_dropped():
    grid = grid_from_records([{"penalty": 0.1}, {"penalty": 0.2}, {"penalty": 0.1}])
    assert [c.params["penalty"] for c in grid] == [0.1, 0.2]
    assert [c.id for c in grid] == ["Model01", "Model02"]


def test_grid_from_dataframe():
    grid = grid_from_records(pd.DataFrame({"penalty": [0.1, 0.2], "mixture": [0, 1]}))
    assert grid[1].params == {"penalty": 0.2, "mixture": 1}


def test_ids_widen_for_large_grids():
    grid = grid_values(penalty=list(range(1, 101)))
    assert grid[0].id == "Model001"
    assert grid[-1].id == "Model100"


def test_grid_regular_levels(space):
    grid = grid_regular(space, levels=3)
    assert len(grid) == 9
    penalties = sorted({c.params["penalty"] for c in grid})
    assert penalties == pytest.approx([1e-10, 1e-5, 1.0])
    mixtures = sorted({c.params["mixture"] for c in grid})
    assert mixtures == pytest.approx([0.0, 0.5, 1.0])


def test_grid_regular_per_parameter_levels(space):
    grid = grid_regular(space, levels={"penalty": 5, "mixture": 2})
    assert len(grid) == 10


def test_grid_regular_accepts_a_spec():
    grid = grid_regular(logistic_reg(penalty=tune(min=1e-3, max=1e-1)), levels=3)
    assert [c.params["penalty"] for c in grid] == pytest.approx([1e-3, 1e-2, 1e-1])


def test_grid_regular_integer_levels_are_deduplicated():
    grid = grid_regular(rand_forest(min_n=tune(min=2, max=4)), levels=5)
    assert [c.params["min_n"] for c in grid] == [2, 3, 4]


def test_unbounded_parameter_is_rejected():
    with pytest.raises(ValueError):
        grid_regular(rand_forest(mtry=tune()), levels=3)


@pytest.mark.parametrize("strategy", [grid_latin_hypercube, grid_random])
def test_sampled_grids_are_deterministic(space, strategy):
    first = strategy(space, size=8, seed=11)
    second = strategy(space, size=8, seed=11)
    other = strategy(space, size=8, seed=12)
    assert first == second
    assert [c.params for c in first] != [c.params for c in other]


def test_factorial_grid_is_deterministic(space):
    assert grid_regular(space, levels=4) == grid_regular(space, levels=4)


def test_latin_hypercube_occupies_every_stratum(space):
    size = 10
    grid = grid_latin_hypercube(space, size=size, seed=3)
    assert len(grid) == size

    mixture_strata = sorted(int(c.params["mixture"] * size) for c in grid)
    assert mixture_strata == list(range(size))

    lo, hi = math.log10(1e-10), math.log10(1.0)
    penalty_strata = sorted(
        int((math.log10(c.params["penalty"]) - lo) / (hi - lo) * size) for c in grid
    )
    assert penalty_strata == list(range(size))


def test_values_stay_within_bounds():
    space = rand_forest(trees=tune(min=10, max=50), min_n=tune()).tunable()
    for c in grid_random(space, size=25, seed=0):
        assert 10 <= c.params["trees"] <= 50
        assert 2 <= c.params["min_n"] <= 40
        assert isinstance(c.params["trees"], int)


def test_categorical_parameter():
    space = {"kind": tune(options=["a", "b"])}
    grid = grid_regular(space)
    assert [c.params["kind"] for c in grid] == ["a", "b"]


def test_grid_to_frame(space):
    frame = grid_to_frame(grid_values(penalty=[0.1], mixture=[1.0]))
    assert list(frame.columns) == ["id", "penalty", "mixture"]
