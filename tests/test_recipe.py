import numpy as np
import pandas as pd
import pytest

from pipetune.data.dataset import Role
from pipetune.exceptions import SchemaMismatchError, UnfitRecipeError, UnknownComponentError
from pipetune.preprocessing import Recipe, split
from pipetune.preprocessing.drop_columns import DropColumnsApplier, DropColumnsCalculator
from pipetune.preprocessing.feature_selection import NearZeroVarianceApplier, NearZeroVarianceCalculator
from pipetune.preprocessing.scaling import StandardScalerApplier, StandardScalerCalculator

PREDICTORS = ["hits", "home_runs", "walks", "all_star"]


@pytest.fixture
def recipe():
    return Recipe(outcome="inducted", identifiers=["player_id"]).step_nzv().step_normalize()


def test_normalize_round_trip_on_training(hall_of_fame_data, recipe):
    train = split(hall_of_fame_data, 0.75, strata_field="inducted").train
    baked = recipe.fit(train).apply(train)

    for col in PREDICTORS:
        assert baked[col].mean() == pytest.approx(0.0, abs=1e-10)
        assert np.var(baked[col].to_numpy()) == pytest.approx(1.0, rel=1e-10)


def test_apply_uses_training_statistics(hall_of_fame_data, recipe):
    data = split(hall_of_fame_data, 0.75, strata_field="inducted")
    fitted = recipe.fit(data.train)

    shifted = data.test.copy()
    shifted["hits"] = shifted["hits"] + 10_000
    baked = fitted.apply(shifted)

    params = fitted.fitted_steps[1].params
    idx = params["columns"].index("hits")
    expected = (shifted["hits"] - params["mean"][idx]) / params["scale"][idx]
    np.testing.assert_allclose(baked["hits"].to_numpy(), expected.to_numpy())
    # Held-out statistics were not used
    assert baked["hits"].mean() > 10


def test_apply_before_fit_raises(hall_of_fame_data, recipe):
    with pytest.raises(UnfitRecipeError):
        recipe.apply(hall_of_fame_data)
    with pytest.raises(UnfitRecipeError):
        recipe.bake(hall_of_fame_data)


def test_steps_run_in_declared_order():
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0, 4.0], "y": [0, 1, 0, 1]})
    fitted = Recipe(outcome="y").step_center().step_scale().fit(df)

    center, scale = fitted.fitted_steps
    assert center.params["mean"] == [2.5]
    # The scale step was fit on centered values
    assert scale.params["mean"] == pytest.approx([0.0])
    out = fitted.apply(df)
    assert out["x"].mean() == pytest.approx(0.0)
    assert np.var(out["x"].to_numpy()) == pytest.approx(1.0)


def test_step_declaration_returns_new_recipe():
    base = Recipe(outcome="y")
    extended = base.step_center()
    assert base.steps == ()
    assert len(extended.steps) == 1
    assert extended.steps[0].name == "center_1"


def test_duplicate_step_name_rejected():
    with pytest.raises(ValueError):
        Recipe(outcome="y").step_center(name="s").step_scale(name="s")


def test_unknown_step_type():
    with pytest.raises(UnknownComponentError):
        Recipe(outcome="y").add_step("pca")


def test_identifiers_and_outcome_bypass_steps(hall_of_fame_data, recipe):
    fitted = recipe.fit(hall_of_fame_data)
    baked = fitted.apply(hall_of_fame_data)

    assert list(baked.columns[:1]) == ["player_id"]
    assert baked.columns[-1] == "inducted"
    assert list(baked["player_id"]) == list(hall_of_fame_data["player_id"])
    assert list(baked["inducted"]) == list(hall_of_fame_data["inducted"])
    assert fitted.roles["player_id"] == Role.IDENTIFIER
    assert fitted.roles["inducted"] == Role.OUTCOME
    assert fitted.roles["hits"] == Role.PREDICTOR


def test_outcome_is_optional_when_applying(hall_of_fame_data, recipe):
    fitted = recipe.fit(hall_of_fame_data)
    unlabeled = hall_of_fame_data.drop(columns=["inducted"])
    baked = fitted.apply(unlabeled)
    assert "inducted" not in baked.columns
    assert set(PREDICTORS) <= set(baked.columns)


def test_index_is_preserved(hall_of_fame_data, recipe):
    fitted = recipe.fit(hall_of_fame_data)
    subset = hall_of_fame_data.iloc[::3]
    assert list(fitted.apply(subset).index) == list(subset.index)


def test_nzv_drops_columns_everywhere(hall_of_fame_data, recipe):
    df = hall_of_fame_data.assign(league=1)
    data = split(df, 0.75, strata_field="inducted")
    fitted = recipe.fit(data.train)

    assert "league" not in fitted.predictor_names
    assert "league" not in fitted.apply(data.train).columns
    assert "league" not in fitted.apply(data.test).columns


def test_missing_predictor_at_apply(hall_of_fame_data, recipe):
    fitted = recipe.fit(hall_of_fame_data)
    with pytest.raises(SchemaMismatchError) as exc:
        fitted.apply(hall_of_fame_data.drop(columns=["walks"]))
    assert exc.value.detail["missing"] == ["walks"]


def test_changed_predictor_type_at_apply(hall_of_fame_data, recipe):
    fitted = recipe.fit(hall_of_fame_data)
    broken = hall_of_fame_data.assign(walks=hall_of_fame_data["walks"].astype(str))
    with pytest.raises(SchemaMismatchError):
        fitted.apply(broken)


def test_missing_role_column_at_fit(hall_of_fame_data, recipe):
    with pytest.raises(SchemaMismatchError):
        recipe.fit(hall_of_fame_data.drop(columns=["player_id"]))


def test_explicit_predictor_list(hall_of_fame_data):
    recipe = Recipe(outcome="inducted", identifiers=["player_id"], predictors=["hits", "walks"])
    fitted = recipe.step_normalize().fit(hall_of_fame_data)
    assert fitted.predictor_names == ["hits", "walks"]


def test_step_rm_removes_named_column(hall_of_fame_data):
    fitted = Recipe(outcome="inducted", identifiers=["player_id"]).step_rm("all_star").fit(hall_of_fame_data)
    assert "all_star" not in fitted.apply(hall_of_fame_data).columns


def test_from_config(hall_of_fame_data):
    recipe = Recipe.from_config(
        {
            "outcome": "inducted",
            "identifiers": ["player_id"],
            "steps": [{"step": "nzv", "name": "filter"}, {"step": "normalize"}],
        }
    )
    assert [s.name for s in recipe.steps] == ["filter", "normalize_2"]
    summary = recipe.fit(hall_of_fame_data).steps_summary()
    assert [s["type"] for s in summary] == ["nzv", "normalize"]


def test_scaler_applier_never_refits():
    train = pd.DataFrame({"a": [0.0, 2.0, 4.0]})
    params = StandardScalerCalculator().fit(train, {"with_mean": True, "with_std": True})
    out = StandardScalerApplier().apply(pd.DataFrame({"a": [2.0, 2.0]}), params)
    np.testing.assert_allclose(out["a"].to_numpy(), [0.0, 0.0])


def test_scaler_applier_is_idempotent_given_params():
    df = pd.DataFrame({"a": [1.0, 5.0, 9.0]})
    params = StandardScalerCalculator().fit(df, {})
    applier = StandardScalerApplier()
    pd.testing.assert_frame_equal(applier.apply(df, params), applier.apply(df, params))
    # Input is not modified
    assert list(df["a"]) == [1.0, 5.0, 9.0]


def test_nzv_threshold_and_frequency_rule():
    df = pd.DataFrame(
        {
            "constant": [3.0] * 20,
            "rare": [0.0] * 19 + [1.0],
            "spread": np.arange(20, dtype=float),
        }
    )
    params = NearZeroVarianceCalculator().fit(df, {"threshold": 0.0})
    assert params["columns_to_drop"] == ["constant"]

    params = NearZeroVarianceCalculator().fit(df, {"threshold": 0.0, "freq_cut": 10, "unique_cut": 10})
    assert params["columns_to_drop"] == ["constant", "rare"]
    assert list(NearZeroVarianceApplier().apply(df, params).columns) == ["spread"]


def test_nzv_all_constant_columns():
    df = pd.DataFrame({"a": [1.0] * 5, "b": [2.0] * 5})
    params = NearZeroVarianceCalculator().fit(df, {})
    assert params["columns_to_drop"] == ["a", "b"]


def test_drop_columns_by_missing_share():
    df = pd.DataFrame({"a": [1, None, None, None], "b": [1, 2, 3, 4]})
    params = DropColumnsCalculator().fit(df, {"missing_threshold": 50})
    assert params["columns_to_drop"] == ["a"]
    assert list(DropColumnsApplier().apply(df, params).columns) == ["b"]


def test_nzv_threshold_boundary_is_inclusive():
    df = pd.DataFrame({"at_threshold": [0.0, 2.0], "above": [0.0, 4.0]})
    params = NearZeroVarianceCalculator().fit(df, {"threshold": 1.0})
    assert params["variances"]["at_threshold"] == pytest.approx(1.0)
    assert params["columns_to_drop"] == ["at_threshold"]
