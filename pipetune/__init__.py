"""pipetune: declare a recipe and a model, tune it over resamples, finalize and score."""

__version__ = "0.1.0"

from .data import Role, SplitDataset, load_table
from .exceptions import (
    CandidateFitFailure,
    ConvergenceError,
    HeldOutReuseError,
    InsufficientDataError,
    InvalidFractionError,
    MissingParameterError,
    PipetuneError,
    SchemaMismatchError,
    UnfitRecipeError,
    UnknownComponentError,
)
from .modeling import (
    Candidate,
    FitResult,
    ModelSpec,
    Workflow,
    finalize_workflow,
    last_fit,
    logistic_reg,
    rand_forest,
    tune,
    validation_set,
    vfold_cv,
)
from .modeling.evaluation import confusion_matrix_at, metric_set, roc_curve_points
from .modeling.tuning import (
    TuningConfig,
    grid_latin_hypercube,
    grid_random,
    grid_regular,
    grid_values,
    select_best,
    show_best,
    tune_grid,
)
from .pipeline import TuningPipeline
from .preprocessing import Recipe, initial_validation_split, split
from .scoring import score_new_data
