"""Pytest fixtures for pipetune tests."""

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_classification

from pipetune.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests that patch the environment need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def hall_of_fame_data() -> pd.DataFrame:
    """300 players, 30 inducted, with overlapping career statistics."""
    rng = np.random.default_rng(42)
    n, n_positive = 300, 30
    label = np.array([1] * n_positive + [0] * (n - n_positive))
    df = pd.DataFrame(
        {
            "player_id": [f"p{i:03d}" for i in range(n)],
            "hits": rng.normal(1500, 300, n) + label * 300,
            "home_runs": rng.normal(150, 60, n) + label * 60,
            "walks": rng.normal(600, 150, n) + label * 80,
            "all_star": rng.poisson(2, n) + label * 2,
            "inducted": label,
        }
    )
    return df.sample(frac=1.0, random_state=7).reset_index(drop=True)


@pytest.fixture
def classification_frame() -> pd.DataFrame:
    """Binary classification frame with an identifier column."""
    X, y = make_classification(
        n_samples=200, n_features=5, n_informative=3,
        n_redundant=1, flip_y=0.1, random_state=42,
    )
    df = pd.DataFrame(X, columns=[f"f{i}" for i in range(5)])
    df.insert(0, "row_id", np.arange(len(df)))
    df["target"] = y
    return df
