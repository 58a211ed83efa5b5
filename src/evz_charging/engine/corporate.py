"""CorporatePay availability badge — state and short reason label."""

from __future__ import annotations

from datetime import timedelta

from evz_charging.engine.schedule import format_duration
from evz_charging.models.results import CorporateAvailability
from evz_charging.models.types import (
    CORPORATE_METHOD,
    CorporateProgramStatus,
    CorporateState,
    PaymentMethod,
)

_STATUS_LABELS: dict[str, str] = {
    "Not linked": "Not linked",
    "Not eligible": "Not eligible",
    "Deposit depleted": "Deposit depleted",
    "Credit limit exceeded": "Credit exceeded",
}


def corporate_state(
    payment_method: PaymentMethod,
    status: CorporateProgramStatus,
    grace_active: bool,
    estimate_ugx: float,
    approval_threshold_ugx: float,
) -> CorporateState:
    if payment_method != CORPORATE_METHOD:
        return "Available"
    usable = status == "Eligible" or (status == "Billing delinquency" and grace_active)
    if not usable:
        return "Not available"
    return "Requires approval" if estimate_ugx > approval_threshold_ugx else "Available"


def corporate_reason(
    status: CorporateProgramStatus,
    grace_active: bool,
    grace_remaining: timedelta | None = None,
) -> str:
    if status == "Billing delinquency":
        if not grace_active:
            return "Suspended"
        return f"Grace {format_duration(grace_remaining or timedelta(0))}"
    return _STATUS_LABELS.get(status, "")


def corporate_availability(
    payment_method: PaymentMethod,
    status: CorporateProgramStatus,
    grace_active: bool,
    estimate_ugx: float,
    approval_threshold_ugx: float,
    grace_remaining: timedelta | None = None,
) -> CorporateAvailability:
    return CorporateAvailability(
        state=corporate_state(payment_method, status, grace_active, estimate_ugx, approval_threshold_ugx),
        reason=corporate_reason(status, grace_active, grace_remaining),
    )
