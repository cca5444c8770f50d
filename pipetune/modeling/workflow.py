"""Workflows: one recipe bound to one model spec."""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import pandas as pd

from ..data.dataset import frame_schema
from ..exceptions import SchemaMismatchError
from ..preprocessing.recipe import FittedRecipe, Recipe
from .base import BaseModelApplier
from .hyperparameters import Candidate, TunableParameter
from .spec import ModelSpec, engine_for

logger = logging.getLogger(__name__)

PRED_CLASS = ".pred_class"


def prob_column(label: Any) -> str:
    return f".pred_{label}"


@dataclass(frozen=True)
class Workflow:
    """
    Binds a Recipe and a ModelSpec into a single fit/predict unit.

    A Workflow is immutable: tuning materializes a fresh ConcreteWorkflow for
    every candidate instead of mutating the shared workflow.
    """
    recipe: Recipe
    model_spec: ModelSpec

    @classmethod
    def bind(cls, recipe: Recipe, model_spec: ModelSpec) -> "Workflow":
        if recipe.outcome is None:
            raise ValueError("A workflow needs a recipe with an outcome column")
        return cls(recipe=recipe, model_spec=model_spec)

    def update_model(self, model_spec: ModelSpec) -> "Workflow":
        return replace(self, model_spec=model_spec)

    def update_recipe(self, recipe: Recipe) -> "Workflow":
        return replace(self, recipe=recipe)

    def tunable(self, training: Optional[pd.DataFrame] = None) -> Dict[str, TunableParameter]:
        """
        Tunable parameters with complete ranges.

        Ranges that depend on the data (the number of predictors for mtry)
        are resolved by fitting the recipe on ``training``.
        """
        space = self.model_spec.tunable()
        pending = [k for k, p in space.items() if p.max is None and p.max_from_data]
        if not pending:
            return space
        if training is None:
            return space

        n_predictors = len(self.recipe.fit(training).predictor_names)
        for key in pending:
            if space[key].max_from_data == "n_predictors":
                space[key] = replace(space[key], max=n_predictors)
        logger.debug(f"Finalized data-dependent ranges for {pending} (n_predictors={n_predictors})")
        return space

    def materialize(self, candidate: Union[Candidate, Mapping[str, Any], None] = None) -> "ConcreteWorkflow":
        """Substitute a candidate's values for every tunable placeholder."""
        if isinstance(candidate, Candidate):
            values, bound = candidate.params, candidate
        else:
            values, bound = dict(candidate or {}), None
        spec = self.model_spec.with_values(values)
        return ConcreteWorkflow(recipe=self.recipe, model_spec=spec, candidate=bound)


@dataclass(frozen=True)
class ConcreteWorkflow:
    """A workflow whose model spec has no placeholders left."""
    recipe: Recipe
    model_spec: ModelSpec
    candidate: Optional[Candidate] = None

    def fit(self, training: pd.DataFrame, check_convergence: Optional[bool] = None) -> "FitResult":
        """Fit the recipe, bake the training data and train the engine."""
        fitted_recipe = self.recipe.fit(training)
        baked = fitted_recipe.apply(training)

        outcome = fitted_recipe.outcome
        X = baked[fitted_recipe.predictor_names]
        y = baked[outcome]

        calculator, applier = engine_for(self.model_spec, check_convergence=check_convergence)
        model = calculator.fit(X, y, self.model_spec.fit_config())

        classes = tuple(getattr(model, "classes_", sorted(pd.unique(y))))
        return FitResult(
            fitted_recipe=fitted_recipe,
            model=model,
            applier=applier,
            candidate=self.candidate,
            model_spec=self.model_spec,
            classes=classes,
        )


@dataclass(frozen=True)
class FitResult:
    """A trained recipe and model, tied to one candidate and one training set."""
    fitted_recipe: FittedRecipe
    model: Any
    applier: BaseModelApplier
    candidate: Optional[Candidate]
    model_spec: ModelSpec
    classes: Tuple[Any, ...]

    @property
    def outcome(self) -> str:
        return self.fitted_recipe.outcome

    @property
    def predictor_schema(self) -> Tuple[Tuple[str, str], ...]:
        return self.fitted_recipe.predictor_schema

    def default_positive(self) -> Any:
        """Positive class for binary outcomes: the last class in sorted order (1, 'yes', True)."""
        return self.classes[-1]

    def _baked_predictors(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
        baked = self.fitted_recipe.apply(df)
        names = self.fitted_recipe.predictor_names
        missing = [c for c in names if c not in baked.columns]
        if missing:
            raise SchemaMismatchError("Baked frame is missing predictors", missing=missing)
        X = baked[names]
        schema = frame_schema(X)
        if schema != self.predictor_schema:
            changed = [
                name for (name, kind), (_, expected) in zip(schema, self.predictor_schema)
                if kind != expected
            ]
            raise SchemaMismatchError(
                f"Predictor types differ from those seen at fit time: {changed}", unexpected=changed
            )
        return baked, X

    def raw_predictions(self, df: pd.DataFrame) -> Tuple[pd.Series, Optional[pd.DataFrame]]:
        """Class labels and label-keyed probabilities, as metrics consume them."""
        _, X = self._baked_predictors(df)
        return self.applier.predict(X, self.model), self.applier.predict_proba(X, self.model)

    def predict(self, df: pd.DataFrame, mode: str = "class") -> pd.DataFrame:
        """
        Predict class labels (mode="class") or class probabilities (mode="prob").

        Returns a frame indexed like df, with identifier columns first.
        """
        if mode not in ("class", "prob"):
            raise ValueError(f"mode must be 'class' or 'prob', got {mode!r}")
        baked, X = self._baked_predictors(df)
        ids = [c for c in self.fitted_recipe.recipe.identifiers if c in baked.columns]
        out = baked[ids].copy()

        if mode == "class":
            out[PRED_CLASS] = self.applier.predict(X, self.model).to_numpy()
            return out

        proba = self.applier.predict_proba(X, self.model)
        if proba is None:
            raise ValueError(f"Engine {self.model_spec.family} does not provide class probabilities")
        for label in proba.columns:
            out[prob_column(label)] = proba[label].to_numpy()
        return out

    def predict_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """Class and probability predictions side by side, plus the outcome when present."""
        out = self.predict(df, mode="class")
        probs = self.predict(df, mode="prob")
        for col in probs.columns:
            if col.startswith(".pred_"):
                out[col] = probs[col].to_numpy()
        if self.outcome in df.columns:
            out[self.outcome] = df[self.outcome].to_numpy()
        return out

    def positive_probability(self, df: pd.DataFrame, positive: Any = None) -> pd.Series:
        positive = self.default_positive() if positive is None else positive
        probs = self.predict(df, mode="prob")
        return probs[prob_column(positive)]

    def describe(self) -> Dict[str, Any]:
        return {
            "family": self.model_spec.family,
            "candidate": self.candidate.to_dict() if self.candidate else None,
            "predictors": list(self.fitted_recipe.predictor_names),
            "classes": list(self.classes),
            "steps": self.fitted_recipe.steps_summary(),
        }
