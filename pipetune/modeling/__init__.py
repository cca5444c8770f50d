from .base import BaseModelCalculator, BaseModelApplier
from .classification import ENGINE_REGISTRY, ModelEngine, get_engine
from .finalize import LastFitResult, finalize_workflow, last_fit
from .hyperparameters import Candidate, TunableParameter, tune
from .resampling import Fold, ResamplingPlan, validation_set, vfold_cv
from .sklearn_wrapper import SklearnCalculator, SklearnApplier
from .spec import ModelSpec, logistic_reg, model_spec_from_config, rand_forest
from .workflow import ConcreteWorkflow, FitResult, Workflow
