"""End-to-end tuning runs driven by a configuration dict."""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import pandas as pd

from .config import get_settings
from .data.dataset import SplitDataset
from .exceptions import UnknownComponentError
from .modeling.finalize import LastFitResult, finalize_workflow, last_fit
from .modeling.hyperparameters import Candidate
from .modeling.resampling import validation_set, vfold_cv
from .modeling.spec import model_spec_from_config
from .modeling.tuning.grid import grid_latin_hypercube, grid_random, grid_regular, grid_values
from .modeling.tuning.schemas import TuningConfig, TuningResult
from .modeling.tuning.tuner import tune_grid
from .modeling.workflow import Workflow
from .preprocessing.recipe import Recipe
from .preprocessing.split import DataSplitter
from .scoring import score_new_data

logger = logging.getLogger(__name__)

GRID_TYPES = ("values", "regular", "latin_hypercube", "random")
SELECTION_RULES = ("best", "one_std_err")


@dataclass
class PipelineResult:
    split: SplitDataset
    workflow: Workflow
    tuning: TuningResult
    best: Optional[Candidate] = None
    final: Optional[LastFitResult] = None
    scored: Optional[pd.DataFrame] = None
    timings: Dict[str, float] = field(default_factory=dict)


class TuningPipeline:
    """
    Runs split -> recipe -> tune -> finalize -> last fit -> score from one config.

    Example config::

        {
            "target_column": "inducted",
            "id_column": "player_id",
            "split": {"test_size": 0.33, "stratify": True},
            "recipe": {"steps": [{"step": "nzv"}, {"step": "normalize"}]},
            "resampling": {"v": 3, "strata": True},
            "model": {"type": "logistic_regression", "tune": {"penalty": {}}},
            "grid": {"type": "values", "values": {"penalty": [1e-4, 1e-3, 1e-2]}},
            "tuning": {"metrics": ["accuracy", "roc_auc"], "select": "best"},
            "scoring": {"threshold": 0.5},
        }
    """

    def __init__(self, config: Dict[str, Any], log_callback: Optional[Callable[[str], None]] = None):
        self.config = config
        self.log_callback = log_callback
        self.target = config["target_column"]
        self.id_column = config.get("id_column")

    def log(self, message: str):
        logger.info(message)
        if self.log_callback:
            self.log_callback(message)

    # --- Builders ---
    def build_recipe(self) -> Recipe:
        recipe_config = dict(self.config.get("recipe", {}))
        recipe_config.setdefault("outcome", self.target)
        if self.id_column:
            recipe_config.setdefault("identifiers", [self.id_column])
        return Recipe.from_config(recipe_config)

    def build_workflow(self) -> Workflow:
        return Workflow.bind(self.build_recipe(), model_spec_from_config(self.config["model"]))

    def build_split(self, historical: pd.DataFrame) -> SplitDataset:
        split_config = {"target_column": self.target, **self.config.get("split", {})}
        split_config.setdefault("random_state", get_settings().RANDOM_STATE)
        return DataSplitter.from_config(split_config).split(historical)

    def build_resamples(self, split: SplitDataset):
        resampling = dict(self.config.get("resampling", {}))
        if resampling.get("type") == "validation":
            return validation_set(split)
        settings = get_settings()
        return vfold_cv(
            split.train,
            v=resampling.get("v", settings.CV_FOLDS),
            repeats=resampling.get("repeats", 1),
            strata=self.target if resampling.get("strata", True) else None,
            seed=resampling.get("seed", settings.RANDOM_STATE),
        )

    def build_grid(self, workflow: Workflow, training: pd.DataFrame):
        grid_config = dict(self.config.get("grid", {}))
        grid_type = grid_config.get("type", "latin_hypercube")
        if grid_type not in GRID_TYPES:
            raise UnknownComponentError("grid type", grid_type, GRID_TYPES)
        if grid_type == "values":
            return grid_values(**grid_config.get("values", {}))

        space = workflow.tunable(training)
        seed = grid_config.get("seed", get_settings().RANDOM_STATE)
        if grid_type == "regular":
            return grid_regular(space, levels=grid_config.get("levels", 3))
        if grid_type == "random":
            return grid_random(space, size=grid_config.get("size", 10), seed=seed)
        return grid_latin_hypercube(space, size=grid_config.get("size", 10), seed=seed)

    # --- Run ---
    def run(
        self,
        historical: pd.DataFrame,
        eligible: Optional[pd.DataFrame] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> PipelineResult:
        timings: Dict[str, float] = {}
        tuning_options = dict(self.config.get("tuning", {}))
        rule = tuning_options.get("select", "best")
        if rule not in SELECTION_RULES:
            raise UnknownComponentError("selection rule", rule, SELECTION_RULES)

        start = time.time()
        split = self.build_split(historical)
        timings["split"] = time.time() - start
        self.log(f"Split {len(historical)} rows into train={len(split.train)} / test={len(split.test)}")

        workflow = self.build_workflow()
        resamples = self.build_resamples(split)
        grid = self.build_grid(workflow, split.train)

        start = time.time()
        tuning_config = TuningConfig.from_dict(tuning_options)
        tuning = tune_grid(workflow, resamples, grid, config=tuning_config, cancel_event=cancel_event)
        timings["tuning"] = time.time() - start

        result = PipelineResult(split=split, workflow=workflow, tuning=tuning, timings=timings)
        if tuning.cancelled:
            self.log(f"Tuning was cancelled after {len(tuning.records)} metric records; skipping the final fit")
            return result

        metric = tuning_options.get("metric")
        if rule == "one_std_err":
            best = tuning.select_by_one_std_err(metric)
        else:
            best = tuning.select_best(metric)
        result.best = best
        self.log(f"Best candidate {best.id}: {dict(best.params)}")

        start = time.time()
        result.final = last_fit(
            finalize_workflow(workflow, best),
            split,
            metrics=tuning.metrics,
            positive=tuning_config.positive,
            check_convergence=tuning_config.check_convergence,
        )
        timings["last_fit"] = time.time() - start
        self.log(f"Test metrics: {result.final.metrics}")

        if eligible is not None:
            threshold = self.config.get("scoring", {}).get("threshold")
            result.scored = score_new_data(
                result.final.fit_result, eligible, threshold=threshold, positive=tuning_config.positive
            )
            self.log(f"Scored {len(eligible)} eligible rows, {len(result.scored)} returned")
        return result
