"""Schemas for model evaluation artifacts."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BinaryConfusionMatrix(BaseModel):
    """2x2 confusion matrix at a fixed probability threshold."""

    positive_label: str
    negative_label: str
    threshold: float = 0.5
    tp: int = 0
    fp: int = 0
    fn: int = 0
    tn: int = 0

    @property
    def total(self) -> int:
        return self.tp + self.fp + self.fn + self.tn

    @property
    def accuracy(self) -> Optional[float]:
        return (self.tp + self.tn) / self.total if self.total else None

    def as_matrix(self) -> List[List[int]]:
        """Rows are truth (positive, negative), columns are predictions."""
        return [[self.tp, self.fn], [self.fp, self.tn]]

    def counts(self) -> Dict[str, int]:
        return {"TP": self.tp, "FP": self.fp, "FN": self.fn, "TN": self.tn}


class RocCurve(BaseModel):
    """Receiver operating characteristic curve payload."""

    label: str
    fpr: List[float] = Field(default_factory=list)
    tpr: List[float] = Field(default_factory=list)
    thresholds: List[float] = Field(default_factory=list)
    auc: Optional[float] = None


class EvaluationSplitPayload(BaseModel):
    """Evaluation artefacts for a single dataset split."""

    split: str
    row_count: int
    metrics: Dict[str, Any] = Field(default_factory=dict)
    confusion_matrix: Optional[BinaryConfusionMatrix] = None
    roc_curve: Optional[RocCurve] = None
    notes: List[str] = Field(default_factory=list)
