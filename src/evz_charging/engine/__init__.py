"""Engine — policy evaluation plus the pricing and checkout logic around it."""

from evz_charging.engine.evaluator import evaluate
from evz_charging.engine.rules import RULES, dedupe_alternatives
from evz_charging.engine.schedule import is_off_peak, next_off_peak_start
from evz_charging.engine.pricing import estimate_session_cost, off_peak_suggestion
from evz_charging.engine.corporate import corporate_availability
from evz_charging.engine.checkout import apply_patch, build_request, evaluate_draft
from evz_charging.engine.receipt import ReceiptNotAllowedError, build_credits_receipt, build_receipt
from evz_charging.engine.approval import ApprovalNotRequiredError, build_approval_request

__all__ = [
    "evaluate",
    "RULES",
    "dedupe_alternatives",
    "is_off_peak",
    "next_off_peak_start",
    "estimate_session_cost",
    "off_peak_suggestion",
    "corporate_availability",
    "build_request",
    "apply_patch",
    "evaluate_draft",
    # Receipts
    "build_receipt",
    "build_credits_receipt",
    "ReceiptNotAllowedError",
    # Approvals
    "build_approval_request",
    "ApprovalNotRequiredError",
]
