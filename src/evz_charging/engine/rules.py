"""Charging policy rules — one function per check, run in a fixed order.

Each rule reads the request, appends reasons / alternatives / coaching tips to
the shared ``Evaluation`` and returns either ``None`` (continue) or a terminal
``Outcome`` (stop). ``RULES`` is the evaluation order:

  1. payment method gate      — non-corporate payments stop here as Allowed
  2. corporate program standing — unavailable programs stop as Blocked
  3. station presence / approval / zone
  4. required metadata (cost center, purpose)
  5. fleet vehicle allocation
  6. spending limits (per-session limit, approval threshold)
  7. coaching tips and the personal-payment fallback
  8. outcome classification

Reasons are only ever appended. A later rule never removes what an earlier
one reported.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field

from evz_charging.engine.corporate import corporate_state
from evz_charging.engine.pricing import corporate_discount, format_ugx
from evz_charging.engine.schedule import OFF_PEAK_START, is_off_peak
from evz_charging.models.request import EvaluationRequest
from evz_charging.models.results import (
    Alternative,
    CoachTip,
    EvaluationResult,
    Patch,
    PolicyReason,
)
from evz_charging.models.types import CORPORATE_METHOD, Outcome, PaymentMethod, ReasonCode

MAX_ALTERNATIVES = 6

DEFAULT_ZONE = "Kampala CBD"
DEFAULT_COST_CENTER = "OPS-01"
DEFAULT_PURPOSE = "Charging"

LIMIT_REDUCTION_FACTOR = 0.6
THRESHOLD_REDUCTION_FACTOR = 0.8
MIN_REDUCED_KWH = 5

SITE_BLOCK_CODES: frozenset[ReasonCode] = frozenset({"STATION", "ZONE", "VEHICLE"})
HARD_BLOCK_CODES: frozenset[ReasonCode] = SITE_BLOCK_CODES | {"LIMIT"}


# ═══════════════════════════════════════════════════════════════════════════
# Accumulator
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Evaluation:
    """Per-call scratch state. Created fresh by every ``evaluate`` call."""

    reasons: list[PolicyReason] = field(default_factory=list)
    alternatives: list[Alternative] = field(default_factory=list)
    coach: list[CoachTip] = field(default_factory=list)

    def reason(self, code: ReasonCode, title: str, detail: str) -> None:
        self.reasons.append(PolicyReason(code=code, title=title, detail=detail))

    def alternative(self, alt_id: str, title: str, description: str, expected: Outcome, **patch) -> None:
        self.alternatives.append(Alternative(
            id=alt_id, title=title, description=description, expected=expected, patch=Patch(**patch),
        ))

    def tip(self, tip_id: str, title: str, description: str, **patch) -> None:
        self.coach.append(CoachTip(
            id=tip_id, title=title, description=description, patch=Patch(**patch) if patch else None,
        ))

    def has(self, codes: frozenset[ReasonCode] | set[ReasonCode]) -> bool:
        return any(r.code in codes for r in self.reasons)

    def finish(self, outcome: Outcome) -> EvaluationResult:
        return EvaluationResult(
            outcome=outcome,
            reasons=tuple(self.reasons),
            alternatives=tuple(dedupe_alternatives(self.alternatives)),
            coach=tuple(self.coach),
        )


def dedupe_alternatives(alternatives: list[Alternative], limit: int = MAX_ALTERNATIVES) -> list[Alternative]:
    """Drop repeated (title, patch) pairs, keep first-seen order, cap at ``limit``."""
    seen: set[tuple[str, str]] = set()
    out: list[Alternative] = []
    for alt in alternatives:
        key = (alt.title, alt.patch.key())
        if key in seen:
            continue
        seen.add(key)
        out.append(alt)
    return out[:limit]


def _is_blank(value: str) -> bool:
    return not (value or "").strip()


def _reduced_kwh(kwh: float, factor: float) -> int:
    return max(MIN_REDUCED_KWH, math.floor(kwh * factor))


def _spend_outcome(req: EvaluationRequest, estimate_ugx: float) -> Outcome:
    """Outcome the spending rule alone would give for ``estimate_ugx``."""
    if estimate_ugx > req.per_session_limit_ugx:
        return "Blocked"
    if estimate_ugx > req.approval_threshold_ugx:
        return "Approval required"
    return "Allowed"


def _expected_after_reduction(req: EvaluationRequest, ev: Evaluation, kwh: int) -> Outcome:
    """Projected outcome once the kWh target is lowered to ``kwh``.

    Cost scales linearly with energy. Site and fleet blocks already reported
    are not touched by a kWh change.
    """
    if ev.has(SITE_BLOCK_CODES):
        return "Blocked"
    if req.kwh_target <= 0:
        return _spend_outcome(req, req.estimate_ugx)
    return _spend_outcome(req, req.estimate_ugx * kwh / req.kwh_target)


def _expected_on_corporate(req: EvaluationRequest) -> Outcome:
    """Projected outcome of switching a personal payment to CorporatePay."""
    standing = corporate_state(
        CORPORATE_METHOD, req.corporate_status, req.grace_active, req.estimate_ugx, req.approval_threshold_ugx,
    )
    station = req.station
    if (
        standing == "Not available"
        or station is None
        or not station.approved_for_corporate
        or station.zone not in req.allowed_zones
    ):
        return "Blocked"
    # personal estimates carry no corporate off-peak discount
    discount = corporate_discount(req.estimate_ugx, CORPORATE_METHOD, is_off_peak(req.schedule_time))
    return _spend_outcome(req, req.estimate_ugx - discount)


# ═══════════════════════════════════════════════════════════════════════════
# Rules
# ═══════════════════════════════════════════════════════════════════════════

Rule = Callable[[EvaluationRequest, Evaluation], "Outcome | None"]


def check_payment_method(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    """Corporate policy does not apply to personal payments."""
    if req.payment_method == CORPORATE_METHOD:
        return None
    ev.reason("OK", "Personal payment selected", "Corporate policy checks do not block personal payments.")
    ev.tip(
        "coach-personal",
        "Use CorporatePay for business charging",
        "CorporatePay produces corporate receipts with purpose and cost center for audit.",
    )
    ev.alternative(
        "alt-corp",
        "Switch back to CorporatePay",
        "Use CorporatePay for business charging when eligible.",
        _expected_on_corporate(req),
        payment_method=CORPORATE_METHOD,
    )
    return "Allowed"


# status -> (title, detail, personal method offered)
_PROGRAM_BLOCKS: dict[str, tuple[str, str, PaymentMethod]] = {
    "Not linked": (
        "Not linked to an organization",
        "CorporatePay is only available when you are linked to an organization.",
        "Personal Wallet",
    ),
    "Not eligible": (
        "Not eligible under policy",
        "Your role or group is not eligible for CorporatePay in charging.",
        "Card",
    ),
    "Deposit depleted": (
        "Deposit depleted",
        "Prepaid deposit is depleted. CorporatePay stops until your admin tops up.",
        "Personal Wallet",
    ),
    "Credit limit exceeded": (
        "Credit limit exceeded",
        "Corporate credit limit is exceeded. CorporatePay is paused until repayment or admin adjustment.",
        "Card",
    ),
    "Billing delinquency": (
        "Billing delinquency",
        "CorporatePay is suspended due to billing delinquency. Ask admin to resolve invoices.",
        "Personal Wallet",
    ),
}


def check_program_standing(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    status = req.corporate_status
    if status == "Billing delinquency" and req.grace_active:
        ev.reason("PROGRAM", "Grace window active", "Billing is past due but grace is active. CorporatePay may proceed.")
        ev.tip(
            "coach-grace",
            "Use CorporatePay while grace is active",
            "Grace windows can end when billing agreements require enforcement.",
        )
        return None

    block = _PROGRAM_BLOCKS.get(status)
    if block is None:
        return None
    title, detail, method = block
    ev.reason("PROGRAM", title, detail)
    ev.alternative("alt-personal", "Pay personally", "Proceed with personal payment.", "Allowed", payment_method=method)
    return "Blocked"


def check_station(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    station = req.station
    if station is None:
        ev.reason("STATION", "Station required", "Select a charging station to proceed.")
        return "Blocked"

    first_zone = req.allowed_zones[0] if req.allowed_zones else DEFAULT_ZONE

    if not station.approved_for_corporate:
        ev.reason("STATION", "Station not approved", "This station is not approved for corporate charging.")
        ev.alternative(
            "alt-zone",
            "Choose an approved site",
            f"Switch to an approved zone like {first_zone}.",
            "Allowed",
            zone=first_zone,
        )

    if station.zone not in req.allowed_zones:
        ev.reason(
            "ZONE",
            "Zone restriction",
            f"Corporate charging is restricted to: {', '.join(req.allowed_zones)}.",
        )
        ev.alternative(
            "alt-zone2",
            "Switch to allowed zone",
            "Select a station in an allowed zone.",
            "Allowed",
            zone=first_zone,
        )
    return None


def check_required_metadata(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    """Untagged spend can be neither allocated nor routed for approval."""
    if req.cost_center_required and _is_blank(req.cost_center):
        ev.reason("COSTCENTER", "Cost center required", "Cost center is required for corporate billing allocation.")
        ev.alternative(
            "alt-cc", "Select cost center", "Choose your cost center to proceed.", "Allowed",
            cost_center=DEFAULT_COST_CENTER,
        )
        return "Blocked"

    if req.purpose_required and _is_blank(req.purpose):
        ev.reason("PURPOSE", "Purpose required", "Purpose tag is required for corporate charging.")
        ev.alternative(
            "alt-purpose",
            "Add purpose",
            "Choose a purpose like Charging, Fleet operations, or Project.",
            "Allowed",
            purpose=DEFAULT_PURPOSE,
        )
        return "Blocked"
    return None


def check_fleet_allocation(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    if not req.fleet_enabled:
        return None

    vehicle = req.vehicle
    if req.vehicle_required and vehicle is None:
        ev.reason(
            "VEHICLE",
            "Fleet vehicle required",
            "Your organization requires a vehicle selection for corporate charging.",
        )
        return "Blocked"

    allowed = vehicle.allowed_cost_centers if vehicle else None
    if allowed and not _is_blank(req.cost_center) and req.cost_center not in allowed:
        ev.reason("VEHICLE", "Vehicle allocation rule", f"Selected vehicle requires one of: {', '.join(allowed)}.")
        ev.alternative(
            "alt-cc-vehicle",
            "Switch to allowed cost center",
            "Choose a cost center that matches this vehicle rule.",
            "Allowed",
            cost_center=allowed[0],
        )
    return None


def check_spending_limits(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    if req.estimate_ugx > req.per_session_limit_ugx:
        ev.reason(
            "LIMIT",
            "Per-session limit exceeded",
            f"This session exceeds the corporate limit ({format_ugx(req.per_session_limit_ugx)}).",
        )
        reduced = _reduced_kwh(req.kwh_target, LIMIT_REDUCTION_FACTOR)
        ev.alternative(
            "alt-reduce",
            "Reduce kWh",
            "Lower the kWh target to stay within limits.",
            _expected_after_reduction(req, ev, reduced),
            kwh_target=reduced,
        )
        ev.alternative(
            "alt-personal", "Pay personally", "Proceed immediately using personal payment.", "Allowed",
            payment_method="Card",
        )
    elif req.estimate_ugx > req.approval_threshold_ugx:
        ev.reason(
            "THRESHOLD",
            "Approval required",
            f"Charging sessions above {format_ugx(req.approval_threshold_ugx)} require approval.",
        )
        reduced = _reduced_kwh(req.kwh_target, THRESHOLD_REDUCTION_FACTOR)
        ev.alternative(
            "alt-reduce2",
            "Reduce to avoid approval",
            "Lower kWh target or schedule off-peak to reduce cost.",
            _expected_after_reduction(req, ev, reduced),
            kwh_target=reduced,
        )
    return None


def add_coaching(req: EvaluationRequest, ev: Evaluation) -> Outcome | None:
    if not is_off_peak(req.schedule_time):
        ev.tip(
            "coach-offpeak",
            "Save money off-peak",
            f"Schedule after {OFF_PEAK_START} to get off-peak pricing.",
            schedule_mode="Schedule",
            schedule_time=OFF_PEAK_START,
        )
    ev.tip("coach-station", "Prefer approved sites", "Approved stations reduce declines and approval friction.")

    ev.alternative(
        "alt-pay-personal", "Pay personally", "Proceed using personal payment method.", "Allowed",
        payment_method="Personal Wallet",
    )
    return None


def classify_outcome(req: EvaluationRequest, ev: Evaluation) -> Outcome:
    if ev.has(HARD_BLOCK_CODES):
        return "Blocked"
    if ev.has({"THRESHOLD"}):
        return "Approval required"
    ev.reason("OK", "Within policy", "Charging request is within station, zone, and funding rules.")
    return "Allowed"


RULES: tuple[Rule, ...] = (
    check_payment_method,
    check_program_standing,
    check_station,
    check_required_metadata,
    check_fleet_allocation,
    check_spending_limits,
    add_coaching,
    classify_outcome,
)
