"""
pipetune Quickstart Example.

This script demonstrates how to:
1. Split a labeled table with stratification.
2. Tune a penalized logistic regression over 3-fold cross-validation.
3. Fit the best candidate on the full training set and evaluate it once.
4. Score unlabeled records.
"""

import numpy as np
import pandas as pd

from pipetune import TuningPipeline
from pipetune.config import setup_logging


def create_dummy_data(n=300, n_positive=30, seed=42):
    """Career-statistics style table with a rare positive label."""
    rng = np.random.default_rng(seed)
    label = np.array([1] * n_positive + [0] * (n - n_positive))
    df = pd.DataFrame(
        {
            "player_id": [f"p{i:04d}" for i in range(n)],
            "hits": rng.normal(1500, 300, n) + label * 500,
            "home_runs": rng.normal(150, 60, n) + label * 120,
            "walks": rng.normal(600, 150, n) + label * 150,
            "all_star": rng.poisson(2, n) + label * 4,
            "league": 1,  # constant column, removed by the nzv step
            "inducted": label,
        }
    )
    return df.sample(frac=1.0, random_state=seed).reset_index(drop=True)


def main():
    setup_logging(log_level="INFO")

    print("1. Creating dummy data...")
    historical = create_dummy_data()
    eligible = create_dummy_data(n=50, n_positive=5, seed=7).drop(columns=["inducted"])

    config = {
        "target_column": "inducted",
        "id_column": "player_id",
        "split": {"test_size": 1 / 3, "stratify": True},
        "recipe": {"steps": [{"step": "nzv"}, {"step": "normalize"}]},
        "resampling": {"v": 3, "strata": True},
        "model": {"type": "logistic_regression", "args": {"mixture": 1.0}, "tune": {"penalty": {}}},
        "grid": {"type": "values", "values": {"penalty": list(np.logspace(-4, -1, 5))}},
        "tuning": {"metrics": ["accuracy", "roc_auc"], "select": "best"},
        "scoring": {"threshold": 0.5},
    }

    print("2. Running pipeline...")
    result = TuningPipeline(config).run(historical, eligible)

    print("\n3. Best candidates by accuracy:")
    print(result.tuning.show_best("accuracy"))

    print("\n4. Test set evaluation:")
    print(result.final.collect_metrics())
    print(result.final.confusion_matrix.counts())

    print("\n5. Eligible players at or above 0.5:")
    print(result.scored)


if __name__ == "__main__":
    main()
