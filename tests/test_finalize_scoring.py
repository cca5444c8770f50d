import pytest

from pipetune import score_new_data
from pipetune.exceptions import HeldOutReuseError, SchemaMismatchError
from pipetune.modeling import Candidate, Workflow, logistic_reg, tune
from pipetune.modeling.finalize import finalize_workflow, last_fit
from pipetune.modeling.workflow import PRED_CLASS
from pipetune.preprocessing import Recipe, split


@pytest.fixture
def workflow():
    recipe = Recipe(outcome="target", identifiers=["row_id"]).step_normalize()
    return Workflow.bind(recipe, logistic_reg(penalty=tune()))


@pytest.fixture
def data(classification_frame):
    return split(classification_frame, 0.75, strata_field="target", seed=3)


def test_finalize_binds_candidate_without_fitting(workflow):
    concrete = finalize_workflow(workflow, Candidate("Model04", {"penalty": 0.01}))
    assert concrete.model_spec.is_concrete
    assert concrete.candidate.id == "Model04"
    assert not workflow.model_spec.is_concrete


def test_last_fit_evaluates_test_once(workflow, data):
    concrete = finalize_workflow(workflow, {"penalty": 0.001})
    result = last_fit(concrete, data, metrics=["accuracy", "roc_auc"])

    assert set(result.metrics) == {"accuracy", "roc_auc"}
    assert 0.5 < result.metrics["roc_auc"] <= 1.0
    assert result.positive == 1
    assert result.confusion_matrix.total == len(data.test)
    assert result.roc_curve is not None
    assert list(result.collect_metrics().columns) == ["metric", "estimate"]
    assert len(result.predictions) == len(data.test)
    assert data.test_evaluated

    with pytest.raises(HeldOutReuseError):
        last_fit(concrete, data)


def test_last_fit_is_trained_on_full_training_subset(workflow, data):
    result = last_fit(finalize_workflow(workflow, {"penalty": 0.001}), data)
    assert result.fit_result.fitted_recipe.fitted_steps[0].params["columns"] == ["f0", "f1", "f2", "f3", "f4"]
    scaler = result.fit_result.fitted_recipe.fitted_steps[0].params
    assert scaler["mean"][0] == pytest.approx(data.train["f0"].mean())


def test_confusion_matrix_threshold(workflow, data):
    loose = last_fit(finalize_workflow(workflow, {"penalty": 0.001}), data.copy(), threshold=0.0)
    cm = loose.confusion_matrix
    assert cm.fn == 0 and cm.tn == 0
    assert cm.tp + cm.fp == len(data.test)


@pytest.fixture
def fitted(workflow, classification_frame):
    return workflow.materialize({"penalty": 0.001}).fit(classification_frame)


def test_score_new_data_sorted_descending(fitted, classification_frame):
    eligible = classification_frame.drop(columns=["target"]).iloc[:40]
    scored = score_new_data(fitted, eligible)

    assert list(scored.columns) == ["row_id", ".pred_1", PRED_CLASS]
    assert len(scored) == 40
    probs = scored[".pred_1"].to_list()
    assert probs == sorted(probs, reverse=True)
    assert set(scored.loc[scored[".pred_1"] >= 0.5, PRED_CLASS]) <= {1}
    assert set(scored.loc[scored[".pred_1"] < 0.5, PRED_CLASS]) <= {0}


def test_score_new_data_threshold_filters(fitted, classification_frame):
    eligible = classification_frame.drop(columns=["target"])
    everything = score_new_data(fitted, eligible)
    above = score_new_data(fitted, eligible, threshold=0.7)

    assert (above[".pred_1"] >= 0.7).all()
    assert len(above) == int((everything[".pred_1"] >= 0.7).sum())
    assert list(above["row_id"]) == list(everything["row_id"][: len(above)])


def test_score_new_data_other_positive_class(fitted, classification_frame):
    scored = score_new_data(fitted, classification_frame.drop(columns=["target"]), positive=0)
    assert ".pred_0" in scored.columns
    assert scored[".pred_0"].is_monotonic_decreasing


def test_score_new_data_invalid_threshold(fitted, classification_frame):
    with pytest.raises(ValueError):
        score_new_data(fitted, classification_frame, threshold=1.5)


def test_failed_last_fit_leaves_test_subset_unused(workflow, data):
    concrete = finalize_workflow(workflow, {"penalty": 0.001})
    intact_test = data.test
    data.test = intact_test.drop(columns=["f1"])
    with pytest.raises(SchemaMismatchError):
        last_fit(concrete, data)
    assert not data.test_evaluated

    data.test = intact_test
    assert len(last_fit(concrete, data).predictions) == len(intact_test)
    assert data.test_evaluated
