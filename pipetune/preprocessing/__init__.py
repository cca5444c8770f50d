from .base import BaseCalculator, BaseApplier
from .recipe import Recipe, FittedRecipe, RecipeStep, FittedStep, STEP_REGISTRY
from .split import split, initial_validation_split, DataSplitter
