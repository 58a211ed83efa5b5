"""Request and result models — evaluator input/output contracts."""

from evz_charging.models.request import EvaluationRequest
from evz_charging.models.results import (
    Alternative,
    ApprovalRequest,
    ChargingReceipt,
    CheckoutEvaluation,
    CoachTip,
    CorporateAvailability,
    CostEstimate,
    EvaluationResult,
    OffPeakSuggestion,
    Patch,
    PolicyReason,
)

__all__ = [
    "EvaluationRequest",
    "Alternative",
    "ApprovalRequest",
    "ChargingReceipt",
    "CheckoutEvaluation",
    "CoachTip",
    "CorporateAvailability",
    "CostEstimate",
    "EvaluationResult",
    "OffPeakSuggestion",
    "Patch",
    "PolicyReason",
]
