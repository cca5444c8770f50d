"""Tunable hyperparameter placeholders, default ranges and candidates."""

import math
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

ParameterSpace = Dict[str, Any]


@dataclass(frozen=True)
class TunableParameter:
    """
    Placeholder for a hyperparameter whose value is chosen by tuning.

    ``simpler`` gives the parsimony direction: "higher" when larger values
    produce a simpler model (e.g. a regularization penalty), "lower" when
    smaller values do (e.g. number of trees), None when there is no order.
    """
    id: Optional[str] = None
    type: str = "float"  # "float", "int", "categorical"
    min: Optional[float] = None
    max: Optional[float] = None
    log_scale: Optional[bool] = None
    options: Optional[Tuple[Any, ...]] = None
    simpler: Optional[str] = None
    label: str = ""
    description: str = ""
    # Upper bound resolved from training data, e.g. "n_predictors" for mtry
    max_from_data: Optional[str] = None

    def with_defaults(self, default: Optional["TunableParameter"]) -> "TunableParameter":
        """Fill every unset attribute from the engine default."""
        if default is None:
            return self
        updates = {}
        for name in ("min", "max", "log_scale", "options", "simpler", "max_from_data"):
            if getattr(self, name) is None and getattr(default, name) is not None:
                updates[name] = getattr(default, name)
        if self.type == "float" and default.type != "float":
            updates["type"] = default.type
        if not self.label:
            updates["label"] = default.label
        if not self.description:
            updates["description"] = default.description
        return replace(self, **updates)

    @property
    def is_bounded(self) -> bool:
        if self.type == "categorical":
            return bool(self.options)
        return self.min is not None and self.max is not None

    def _check_bounded(self, name: str) -> None:
        if not self.is_bounded:
            raise ValueError(
                f"Tunable parameter '{name}' has no complete range; pass tune(min=..., max=...) "
                "or finalize it against training data"
            )

    def from_unit(self, u: float, name: str = "") -> Any:
        """Map u in [0, 1) onto the parameter range."""
        self._check_bounded(name)
        if self.type == "categorical":
            idx = min(int(u * len(self.options)), len(self.options) - 1)
            return self.options[idx]
        lo, hi = float(self.min), float(self.max)
        if self.type == "int" and not self.log_scale:
            # Each integer in [lo, hi] owns an equal share of the unit interval
            width = int(hi - lo) + 1
            return int(lo) + min(int(u * width), width - 1)
        if self.log_scale:
            value = 10 ** (math.log10(lo) + u * (math.log10(hi) - math.log10(lo)))
        else:
            value = lo + u * (hi - lo)
        if self.type == "int":
            return int(min(max(math.floor(value), lo), hi))
        return float(value)

    def levels(self, n: int, name: str = "") -> List[Any]:
        """n evenly spaced values (on the log scale for log parameters)."""
        self._check_bounded(name)
        if self.type == "categorical":
            return list(self.options)
        if n < 1:
            raise ValueError("levels must be >= 1")
        lo, hi = float(self.min), float(self.max)
        if n == 1:
            steps = [0.5]
        else:
            steps = [i / (n - 1) for i in range(n)]
        if self.log_scale:
            values = [10 ** (math.log10(lo) + s * (math.log10(hi) - math.log10(lo))) for s in steps]
        else:
            values = [lo + s * (hi - lo) for s in steps]
        if self.type == "int":
            # Dedupe after rounding while keeping order
            return list(dict.fromkeys(int(round(v)) for v in values))
        return [float(v) for v in values]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def tune(id: Optional[str] = None, **kwargs: Any) -> TunableParameter:
    """Mark a model argument for tuning."""
    if "options" in kwargs and kwargs["options"] is not None:
        kwargs["options"] = tuple(kwargs["options"])
        kwargs.setdefault("type", "categorical")
    return TunableParameter(id=id, **kwargs)


def is_tunable(value: Any) -> bool:
    return isinstance(value, TunableParameter)


@dataclass(frozen=True)
class Candidate:
    """One concrete assignment of every tunable parameter."""
    id: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def key(self) -> Tuple[Tuple[str, Any], ...]:
        return tuple(sorted(self.params.items()))

    def __hash__(self) -> int:
        return hash((self.id, self.key()))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **dict(self.params)}


# --- Logistic Regression ---
LOGISTIC_REGRESSION_PARAMS = {
    "penalty": TunableParameter(
        type="float",
        min=1e-10,
        max=1.0,
        log_scale=True,
        simpler="higher",
        label="Amount of Regularization",
        description="Total regularization strength; larger values shrink coefficients harder.",
    ),
    "mixture": TunableParameter(
        type="float",
        min=0.0,
        max=1.0,
        simpler="higher",
        label="Proportion of Lasso Penalty",
        description="0 is a pure ridge penalty, 1 a pure lasso penalty.",
    ),
}

# --- Random Forest ---
RANDOM_FOREST_PARAMS = {
    "mtry": TunableParameter(
        type="int",
        min=1,
        simpler="lower",
        max_from_data="n_predictors",
        label="# Randomly Selected Predictors",
        description="Number of predictors sampled at each split.",
    ),
    "trees": TunableParameter(
        type="int",
        min=1,
        max=2000,
        simpler="lower",
        label="# Trees",
        description="The number of trees in the forest.",
    ),
    "min_n": TunableParameter(
        type="int",
        min=2,
        max=40,
        simpler="higher",
        label="Minimal Node Size",
        description="The minimum number of samples required to split an internal node.",
    ),
}

MODEL_HYPERPARAMETERS = {
    "logistic_regression": LOGISTIC_REGRESSION_PARAMS,
    "random_forest": RANDOM_FOREST_PARAMS,
}


def get_hyperparameters(model_key: str) -> List[Dict[str, Any]]:
    params = MODEL_HYPERPARAMETERS.get(model_key, {})
    return [{"name": name, **p.to_dict()} for name, p in params.items()]


def default_parameter(model_key: str, name: str) -> Optional[TunableParameter]:
    return MODEL_HYPERPARAMETERS.get(model_key, {}).get(name)


def infer_parameters(names: Iterable[str]) -> Dict[str, TunableParameter]:
    """Family defaults looked up by parameter name alone; unknown names are skipped."""
    found: Dict[str, TunableParameter] = {}
    for name in names:
        for params in MODEL_HYPERPARAMETERS.values():
            if name in params:
                found[name] = params[name]
                break
    return found
