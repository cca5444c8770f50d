import threading

import pytest

from pipetune.exceptions import UnknownComponentError
from pipetune.pipeline import TuningPipeline


def _config(**overrides):
    config = {
        "target_column": "inducted",
        "id_column": "player_id",
        "split": {"test_size": 1 / 3, "stratify": True, "random_state": 42},
        "recipe": {"steps": [{"step": "nzv"}, {"step": "normalize"}]},
        "resampling": {"v": 3, "strata": True, "seed": 42},
        "model": {"type": "logistic_regression", "tune": {"penalty": {}}},
        "grid": {"type": "values", "values": {"penalty": [1e-4, 1e-3, 1e-2, 1e-1]}},
        "tuning": {"metrics": ["accuracy", "roc_auc"], "check_convergence": False, "n_jobs": 2},
    }
    config.update(overrides)
    return config


def test_full_run(hall_of_fame_data):
    historical = hall_of_fame_data.iloc[:240]
    eligible = hall_of_fame_data.iloc[240:].drop(columns=["inducted"])
    messages = []

    result = TuningPipeline(_config(), log_callback=messages.append).run(historical, eligible)

    assert len(result.split.train) + len(result.split.test) == len(historical)
    assert len(result.tuning.records) == 4 * 3 * 2
    assert result.best in result.tuning.candidates
    assert set(result.final.metrics) == {"accuracy", "roc_auc"}
    assert result.split.test_evaluated
    assert list(result.scored.columns) == ["player_id", ".pred_1", ".pred_class"]
    assert len(result.scored) == len(eligible)
    assert {"split", "tuning", "last_fit"} <= set(result.timings)
    assert any(m.startswith("Best candidate") for m in messages)


def test_scoring_threshold_from_config(hall_of_fame_data):
    eligible = hall_of_fame_data.drop(columns=["inducted"])
    config = _config(scoring={"threshold": 0.6})
    result = TuningPipeline(config).run(hall_of_fame_data, eligible)
    assert (result.scored[".pred_1"] >= 0.6).all()


def test_one_std_err_selection(hall_of_fame_data):
    config = _config(tuning={"metrics": ["roc_auc"], "select": "one_std_err", "check_convergence": False})
    result = TuningPipeline(config).run(hall_of_fame_data)
    best_by_mean = result.tuning.select_best("roc_auc")
    # Never less regularized than the numerically best candidate
    assert result.best.params["penalty"] >= best_by_mean.params["penalty"]
    assert result.scored is None


def test_latin_hypercube_grid(hall_of_fame_data):
    config = _config(grid={"type": "latin_hypercube", "size": 3, "seed": 1})
    result = TuningPipeline(config).run(hall_of_fame_data)
    assert len(result.tuning.candidates) == 3


def test_validation_resampling(hall_of_fame_data):
    config = _config(
        split={"test_size": 0.2, "validation_size": 0.2},
        resampling={"type": "validation"},
    )
    result = TuningPipeline(config).run(hall_of_fame_data)
    assert result.tuning.fold_ids == ("validation",)
    assert len(result.tuning.records) == 4 * 2


def test_unknown_grid_type(hall_of_fame_data):
    with pytest.raises(UnknownComponentError):
        TuningPipeline(_config(grid={"type": "bayesian"})).run(hall_of_fame_data)


def test_unknown_selection_rule(hall_of_fame_data):
    config = _config(tuning={"select": "median"})
    with pytest.raises(UnknownComponentError):
        TuningPipeline(config).run(hall_of_fame_data)


def test_cancelled_run_skips_final_fit(hall_of_fame_data):
    cancel = threading.Event()
    cancel.set()
    result = TuningPipeline(_config()).run(hall_of_fame_data, cancel_event=cancel)
    assert result.tuning.cancelled
    assert result.best is None
    assert result.final is None
    assert not result.split.test_evaluated
