"""Declarative model specifications."""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from ..exceptions import MissingParameterError
from .classification import get_engine
from .hyperparameters import ParameterSpace, TunableParameter, default_parameter, is_tunable, tune

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    """
    A model family, its fixed arguments and its tunable placeholders.

    ``args`` holds the family's main arguments (penalty, mtry, ...);
    ``engine_args`` are passed straight to the estimator. Either may contain
    ``tune()`` placeholders. A spec never holds fitted state.
    """
    family: str
    mode: str = "classification"
    args: Mapping[str, Any] = field(default_factory=dict)
    engine_args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        get_engine(self.family)
        if self.mode != "classification":
            raise ValueError(f"Unsupported mode: {self.mode}")

    def parameters(self) -> ParameterSpace:
        """Every declared argument, fixed or tunable, keyed by name."""
        return {**dict(self.engine_args), **dict(self.args)}

    def tunable(self) -> Dict[str, TunableParameter]:
        """
        Tunable placeholders keyed by their tuning name (the ``tune(id)``
        when given, otherwise the argument name), with missing ranges filled
        from the family defaults.
        """
        out: Dict[str, TunableParameter] = {}
        for name, value in self.parameters().items():
            if is_tunable(value):
                key = value.id or name
                out[key] = value.with_defaults(default_parameter(self.family, name))
        return out

    @property
    def is_concrete(self) -> bool:
        return not self.tunable()

    def set_args(self, **args: Any) -> "ModelSpec":
        return replace(self, args={**dict(self.args), **args})

    def set_engine_args(self, **engine_args: Any) -> "ModelSpec":
        return replace(self, engine_args={**dict(self.engine_args), **engine_args})

    def with_values(self, values: Mapping[str, Any]) -> "ModelSpec":
        """Return a concrete spec with every placeholder replaced from values."""
        missing = [k for k in self.tunable() if k not in values]
        if missing:
            raise MissingParameterError(missing)

        def substitute(mapping: Mapping[str, Any]) -> Dict[str, Any]:
            return {
                name: values[value.id or name] if is_tunable(value) else value
                for name, value in mapping.items()
            }

        unused = set(values) - set(self.tunable())
        if unused:
            logger.debug(f"Ignoring values for non-tunable parameters: {sorted(unused)}")

        return replace(self, args=substitute(self.args), engine_args=substitute(self.engine_args))

    def fit_config(self) -> Dict[str, Any]:
        """Estimator configuration for a concrete spec."""
        if not self.is_concrete:
            raise MissingParameterError(self.tunable().keys())
        return {"params": self.parameters()}


def logistic_reg(penalty: Any = None, mixture: Any = None, **engine_args: Any) -> ModelSpec:
    args = {k: v for k, v in {"penalty": penalty, "mixture": mixture}.items() if v is not None}
    return ModelSpec(family="logistic_regression", args=args, engine_args=engine_args)


def rand_forest(mtry: Any = None, trees: Any = None, min_n: Any = None, **engine_args: Any) -> ModelSpec:
    args = {k: v for k, v in {"mtry": mtry, "trees": trees, "min_n": min_n}.items() if v is not None}
    return ModelSpec(family="random_forest", args=args, engine_args=engine_args)


def model_spec_from_config(config: Mapping[str, Any]) -> ModelSpec:
    """
    Build a spec from ``{"type": "logistic_regression", "args": {...},
    "engine_args": {...}, "tune": {"penalty": {"min": 1e-4, "max": 1e-1}}}``.

    Every entry of ``tune`` becomes a placeholder; an empty dict uses the
    family's default range.
    """
    args = dict(config.get("args", {}))
    for name, tune_config in (config.get("tune") or {}).items():
        args[name] = tune(**dict(tune_config or {}))
    return ModelSpec(
        family=config["type"],
        mode=config.get("mode", "classification"),
        args=args,
        engine_args=dict(config.get("engine_args", {})),
    )


def engine_for(spec: ModelSpec, check_convergence: Optional[bool] = None):
    """Calculator/applier pair training this spec's family."""
    return get_engine(spec.family).components(check_convergence=check_convergence)
