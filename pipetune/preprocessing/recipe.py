"""Recipe: an ordered, fit-once sequence of preprocessing steps."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

import pandas as pd

from ..data.dataset import Role, frame_schema
from ..exceptions import SchemaMismatchError, UnfitRecipeError, UnknownComponentError
from .base import BaseApplier, BaseCalculator
from .drop_columns import DropColumnsApplier, DropColumnsCalculator
from .feature_selection import NearZeroVarianceApplier, NearZeroVarianceCalculator
from .scaling import StandardScalerApplier, StandardScalerCalculator

logger = logging.getLogger(__name__)

# step type -> (calculator, applier, fixed config)
STEP_REGISTRY: Dict[str, Tuple[Type[BaseCalculator], Type[BaseApplier], Dict[str, Any]]] = {
    "center": (StandardScalerCalculator, StandardScalerApplier, {"with_mean": True, "with_std": False}),
    "scale": (StandardScalerCalculator, StandardScalerApplier, {"with_mean": False, "with_std": True}),
    "normalize": (StandardScalerCalculator, StandardScalerApplier, {"with_mean": True, "with_std": True}),
    "nzv": (NearZeroVarianceCalculator, NearZeroVarianceApplier, {}),
    "rm": (DropColumnsCalculator, DropColumnsApplier, {}),
}


def _get_step_components(step_type: str) -> Tuple[BaseCalculator, BaseApplier, Dict[str, Any]]:
    if step_type not in STEP_REGISTRY:
        raise UnknownComponentError("recipe step", step_type, STEP_REGISTRY.keys())
    calculator_cls, applier_cls, fixed = STEP_REGISTRY[step_type]
    return calculator_cls(), applier_cls(), fixed


@dataclass(frozen=True)
class RecipeStep:
    """A declared (unfit) step."""
    name: str
    step_type: str
    config: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FittedStep:
    """A step together with the parameters learned on training data."""
    name: str
    step_type: str
    params: Mapping[str, Any]


class Recipe:
    """
    Declarative preprocessing pipeline with explicit column roles.

    Roles are fixed at construction: the outcome column and identifier columns
    are named by the caller, every other column (or the explicit ``predictors``
    list) is a predictor. Only predictors go through the steps; outcome and
    identifiers are carried through untouched.

    Adding a step returns a new Recipe, so a declared recipe can be shared
    freely between workflows and worker threads.
    """

    def __init__(
        self,
        outcome: Optional[str] = None,
        identifiers: Sequence[str] = (),
        predictors: Optional[Sequence[str]] = None,
        steps: Sequence[RecipeStep] = (),
    ):
        self.outcome = outcome
        self.identifiers: Tuple[str, ...] = tuple(identifiers)
        self.predictors: Optional[Tuple[str, ...]] = tuple(predictors) if predictors is not None else None
        self.steps: Tuple[RecipeStep, ...] = tuple(steps)

        if outcome is not None and outcome in self.identifiers:
            raise ValueError(f"Column '{outcome}' cannot be both outcome and identifier")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Recipe":
        """
        Build a recipe from a configuration dict::

            {"outcome": "inducted", "identifiers": ["player_id"],
             "steps": [{"name": "nzv", "step": "nzv", "params": {}},
                       {"step": "normalize"}]}
        """
        recipe = cls(
            outcome=config.get("outcome"),
            identifiers=config.get("identifiers", ()),
            predictors=config.get("predictors"),
        )
        for step in config.get("steps", []):
            recipe = recipe.add_step(step["step"], name=step.get("name"), **step.get("params", {}))
        return recipe

    def __repr__(self) -> str:
        steps = ", ".join(s.name for s in self.steps)
        return f"Recipe(outcome={self.outcome!r}, identifiers={list(self.identifiers)}, steps=[{steps}])"

    # --- Declaration ---
    def add_step(self, step_type: str, name: Optional[str] = None, **config: Any) -> "Recipe":
        if step_type not in STEP_REGISTRY:
            raise UnknownComponentError("recipe step", step_type, STEP_REGISTRY.keys())
        step_name = name or f"{step_type}_{len(self.steps) + 1}"
        if any(s.name == step_name for s in self.steps):
            raise ValueError(f"Duplicate step name: {step_name}")
        step = RecipeStep(name=step_name, step_type=step_type, config=dict(config))
        return Recipe(self.outcome, self.identifiers, self.predictors, self.steps + (step,))

    def step_center(self, *columns: str, name: Optional[str] = None) -> "Recipe":
        return self.add_step("center", name=name, columns=list(columns))

    def step_scale(self, *columns: str, name: Optional[str] = None) -> "Recipe":
        return self.add_step("scale", name=name, columns=list(columns))

    def step_normalize(self, *columns: str, name: Optional[str] = None) -> "Recipe":
        return self.add_step("normalize", name=name, columns=list(columns))

    def step_nzv(
        self,
        *columns: str,
        threshold: float = 0.0,
        freq_cut: Optional[float] = None,
        unique_cut: Optional[float] = None,
        name: Optional[str] = None,
    ) -> "Recipe":
        """
        Remove near-zero-variance predictors.

        A column is dropped when its training variance is at or below
        ``threshold`` (the boundary is inclusive, so the default 0.0 drops
        constant columns). With both ``freq_cut`` and ``unique_cut`` set, a
        column is also dropped when its most common value outnumbers the
        second by more than ``freq_cut`` and at most ``unique_cut`` percent of
        its values are distinct.
        """
        return self.add_step(
            "nzv", name=name, columns=list(columns),
            threshold=threshold, freq_cut=freq_cut, unique_cut=unique_cut,
        )

    def step_rm(self, *columns: str, missing_threshold: Optional[float] = None, name: Optional[str] = None) -> "Recipe":
        return self.add_step("rm", name=name, columns=list(columns), missing_threshold=missing_threshold)

    # --- Roles ---
    def roles(self, df: pd.DataFrame) -> Dict[str, Role]:
        """Role of every column of df that the recipe uses."""
        missing = [c for c in self.identifiers if c not in df.columns]
        if self.outcome is not None and self.outcome not in df.columns:
            missing.append(self.outcome)
        if self.predictors is not None:
            missing.extend(c for c in self.predictors if c not in df.columns)
        if missing:
            raise SchemaMismatchError(f"Columns required by the recipe are missing: {missing}", missing=missing)

        roles: Dict[str, Role] = {}
        for col in df.columns:
            if col == self.outcome:
                roles[col] = Role.OUTCOME
            elif col in self.identifiers:
                roles[col] = Role.IDENTIFIER
            elif self.predictors is None or col in self.predictors:
                roles[col] = Role.PREDICTOR
        return roles

    # --- Lifecycle ---
    def fit(self, training: pd.DataFrame) -> "FittedRecipe":
        """
        Learn every step's parameters on training data.

        Step i is fit on the output of steps 0..i-1 applied to the training
        data, in the declared order.
        """
        roles = self.roles(training)
        predictors = [c for c, r in roles.items() if r == Role.PREDICTOR]
        current = training[predictors]

        fitted: List[FittedStep] = []
        for i, step in enumerate(self.steps):
            calculator, applier, fixed = _get_step_components(step.step_type)
            config = {**step.config, **fixed}
            logger.debug(f"Fitting step {i}: {step.name} ({step.step_type})")
            params = calculator.fit(current, config)
            current = applier.apply(current, params)
            fitted.append(FittedStep(name=step.name, step_type=step.step_type, params=params))

        return FittedRecipe(
            recipe=self,
            roles=roles,
            input_predictors=tuple(predictors),
            input_schema=frame_schema(training, predictors),
            fitted_steps=tuple(fitted),
            predictor_schema=frame_schema(current),
        )

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        raise UnfitRecipeError()

    bake = apply


@dataclass(frozen=True)
class FittedRecipe:
    """A recipe whose step parameters are frozen."""
    recipe: Recipe
    roles: Mapping[str, Role]
    input_predictors: Tuple[str, ...]
    input_schema: Tuple[Tuple[str, str], ...]
    fitted_steps: Tuple[FittedStep, ...]
    predictor_schema: Tuple[Tuple[str, str], ...]

    @property
    def outcome(self) -> Optional[str]:
        return self.recipe.outcome

    @property
    def predictor_names(self) -> List[str]:
        return [name for name, _ in self.predictor_schema]

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply the frozen steps to any frame with the training predictors.

        Identifier columns (and the outcome, when present) are returned
        unchanged ahead of/after the transformed predictors. Columns without
        a role are dropped.
        """
        missing = [c for c in self.input_predictors if c not in df.columns]
        if missing:
            raise SchemaMismatchError(
                f"Frame is missing predictor column(s) seen at fit time: {missing}", missing=missing
            )
        current_schema = frame_schema(df, list(self.input_predictors))
        changed = [
            name for (name, expected), (_, kind) in zip(self.input_schema, current_schema)
            if kind != expected
        ]
        if changed:
            raise SchemaMismatchError(
                f"Predictor type(s) differ from those seen at fit time: {changed}", unexpected=changed
            )

        current = df[list(self.input_predictors)]
        for step in self.fitted_steps:
            _, applier, _ = _get_step_components(step.step_type)
            current = applier.apply(current, dict(step.params))

        out = current.copy()
        ids = [c for c in self.recipe.identifiers if c in df.columns]
        for pos, col in enumerate(ids):
            out.insert(pos, col, df[col].to_numpy())
        if self.outcome is not None and self.outcome in df.columns:
            out[self.outcome] = df[self.outcome].to_numpy()
        return out

    bake = apply

    def steps_summary(self) -> List[Dict[str, Any]]:
        return [
            {"name": s.name, "type": s.step_type, "params": dict(s.params)}
            for s in self.fitted_steps
        ]
