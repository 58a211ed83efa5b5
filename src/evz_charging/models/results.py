"""Result types — the contract between engine, checkout, receipts and API.

Decision shapes (``PolicyReason``, ``Alternative``, ``CoachTip``,
``EvaluationResult``) are plain data. Icons, colours and tone are left to the
presentation layer.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from evz_charging.models.request import EvaluationRequest
from evz_charging.models.types import (
    CorporateState,
    Outcome,
    PaymentMethod,
    ReasonCode,
    ScheduleMode,
)


# ═══════════════════════════════════════════════════════════════════════════
# Policy decision
# ═══════════════════════════════════════════════════════════════════════════

class Patch(BaseModel):
    """Partial checkout update carried by alternatives and coaching tips.

    ``None`` means "leave unchanged". Applying a patch is the caller's job
    (see ``engine.checkout.apply_patch``).
    """

    model_config = ConfigDict(frozen=True)

    station_id: str | None = None
    zone: str | None = None
    """Switch to the first approved station in this zone."""
    schedule_mode: ScheduleMode | None = None
    schedule_time: str | None = None
    kwh_target: float | None = None
    payment_method: PaymentMethod | None = None
    cost_center: str | None = None
    purpose: str | None = None
    vehicle_id: str | None = None

    def key(self) -> str:
        """Canonical text form, used to compare patches by content."""
        return self.model_dump_json(exclude_none=True)


class PolicyReason(BaseModel):
    """One coded explanation of the decision."""

    model_config = ConfigDict(frozen=True)

    code: ReasonCode
    title: str
    detail: str


class Alternative(BaseModel):
    """A corrective action and the outcome it is expected to produce."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    expected: Outcome
    patch: Patch


class CoachTip(BaseModel):
    """Non-blocking suggestion, optionally with a patch to apply."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    patch: Patch | None = None


class EvaluationResult(BaseModel):
    """Decision bundle returned by ``engine.evaluator.evaluate``."""

    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    reasons: tuple[PolicyReason, ...] = ()
    """Evaluation order; never pruned."""
    alternatives: tuple[Alternative, ...] = ()
    """Deduplicated on (title, patch), at most 6, first-seen order."""
    coach: tuple[CoachTip, ...] = ()

    def codes(self) -> list[ReasonCode]:
        return [r.code for r in self.reasons]


# ═══════════════════════════════════════════════════════════════════════════
# Pricing & availability
# ═══════════════════════════════════════════════════════════════════════════

class CostEstimate(BaseModel):
    """Up-front session price breakdown (UGX)."""

    price_per_kwh_ugx: float
    kwh: float
    multiplier: float
    multiplier_label: str
    """'Off-peak' or 'Peak'."""
    energy_cost_ugx: float
    discount_ugx: int
    """Corporate sustainability discount (off-peak CorporatePay only)."""
    total_ugx: int


class OffPeakSuggestion(BaseModel):
    """Savings hint shown when the session would start in peak hours."""

    next_start: str
    savings_pct: float
    saved_ugx: int


class CorporateAvailability(BaseModel):
    """Badge next to the CorporatePay option in the payment picker."""

    state: CorporateState
    reason: str = ""


# ═══════════════════════════════════════════════════════════════════════════
# Receipt
# ═══════════════════════════════════════════════════════════════════════════

class ChargingReceipt(BaseModel):
    """Receipt data for a finalized, allowed charging session."""

    id: str
    org_name: str
    module: str = "EVs & Charging"
    kind: str = "Charging session"
    station_name: str
    station_zone: str
    station_address: str
    vehicle_label: str | None = None
    kwh: float
    minutes: int
    started_at: datetime
    ended_at: datetime
    price_per_kwh_ugx: float
    multiplier_label: str
    multiplier: float
    energy_cost_ugx: int
    idle_fee_ugx: int = 0
    discount_ugx: int = 0
    total_ugx: int
    payment_method: PaymentMethod
    corporate: bool
    cost_center: str | None = None
    purpose: str | None = None
    notes: list[str] = Field(default_factory=list)


class ApprovalRequest(BaseModel):
    """Pending approval for a corporate session above the approval threshold."""

    id: str
    org_name: str
    status: str = "Pending"
    submitted_at: datetime
    station_name: str
    station_zone: str
    kwh: float
    schedule_time: str
    estimate_ugx: float
    approval_threshold_ugx: float
    cost_center: str
    purpose: str
    vehicle_label: str | None = None
    reasons: list[str] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# Checkout snapshot
# ═══════════════════════════════════════════════════════════════════════════

class CheckoutEvaluation(BaseModel):
    """Everything the checkout screen shows for one draft."""

    request: EvaluationRequest
    estimate: CostEstimate
    availability: CorporateAvailability
    off_peak: OffPeakSuggestion | None = None
    result: EvaluationResult
