"""Exceptions raised by the tuning pipeline."""

from typing import Any, Dict, Optional


class PipetuneError(Exception):
    """Base exception for pipeline configuration and execution errors."""

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class InvalidFractionError(PipetuneError):
    """Raised when a split fraction is not strictly between 0 and 1."""

    def __init__(self, fraction: Any):
        super().__init__(
            f"Split fraction must be strictly between 0 and 1, got {fraction!r}",
            {"fraction": fraction},
        )


class InsufficientDataError(PipetuneError):
    """Raised when a dataset or stratum is too small to be split."""

    def __init__(self, message: str, stratum: Any = None, size: Optional[int] = None):
        detail: Dict[str, Any] = {}
        if stratum is not None:
            detail["stratum"] = stratum
        if size is not None:
            detail["size"] = size
        super().__init__(message, detail)


class UnfitRecipeError(PipetuneError):
    """Raised when a recipe is applied before it has been fit."""

    def __init__(self, message: str = "Recipe must be fit on training data before it can be applied"):
        super().__init__(message)


class MissingParameterError(PipetuneError):
    """Raised when a candidate does not assign every tunable parameter."""

    def __init__(self, missing: Any):
        missing = sorted(missing)
        super().__init__(
            f"Candidate is missing values for tunable parameter(s): {missing}",
            {"missing": missing},
        )


class SchemaMismatchError(PipetuneError):
    """Raised when a frame does not match the schema a component expects."""

    def __init__(self, message: str, missing: Any = None, unexpected: Any = None):
        detail: Dict[str, Any] = {}
        if missing:
            detail["missing"] = list(missing)
        if unexpected:
            detail["unexpected"] = list(unexpected)
        super().__init__(message, detail)


class ConvergenceError(PipetuneError):
    """Raised when an iterative engine stops before converging."""


class HeldOutReuseError(PipetuneError):
    """Raised when a held-out test subset is evaluated more than once."""

    def __init__(self):
        super().__init__(
            "The test subset of this split has already been used for a final evaluation"
        )


class UnknownComponentError(PipetuneError):
    """Raised when a configuration names an unregistered step, engine or metric."""

    def __init__(self, kind: str, key: str, available: Any = None):
        available = sorted(available or [])
        super().__init__(
            f"Unknown {kind}: {key!r}. Available: {available}",
            {"kind": kind, "key": key, "available": available},
        )


class CandidateFitFailure(PipetuneError):
    """Non-fatal failure of one candidate on one resampling fold.

    Raised inside a tuning work item and converted by the tuning engine into a
    ``CandidateFailure`` record; it never escapes ``tune_grid``.
    """

    def __init__(self, candidate_id: str, fold_id: str, cause: BaseException):
        super().__init__(
            f"Candidate {candidate_id} failed on {fold_id}: {type(cause).__name__}: {cause}",
            {"candidate_id": candidate_id, "fold_id": fold_id},
        )
        self.candidate_id = candidate_id
        self.fold_id = fold_id
        self.cause = cause

    @property
    def reason(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}"
