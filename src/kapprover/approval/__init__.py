"""Decision evaluation: inspectors first, then the approver."""
from __future__ import annotations

from kapprover.approval.evaluator import (
    Decision,
    DecisionEvaluator,
    InspectionError,
    Verdict,
)

__all__ = ["Decision", "DecisionEvaluator", "InspectionError", "Verdict"]
