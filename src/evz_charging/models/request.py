"""Evaluation request — the fully-resolved input of one policy evaluation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from evz_charging.config.station import Station
from evz_charging.config.vehicle import Vehicle
from evz_charging.models.types import CorporateProgramStatus, PaymentMethod


class EvaluationRequest(BaseModel):
    """Immutable input bundle for ``engine.evaluator.evaluate``.

    Built by the caller on every relevant input change. All lookups (station,
    vehicle) and derived values (cost estimate, grace state) are already
    resolved; the evaluator only reads these fields.

    Threshold consistency (approval threshold <= per-session limit) is the
    caller's contract and is not checked here; ``config.PolicyThresholds``
    enforces it for configured policies.
    """

    model_config = ConfigDict(frozen=True)

    payment_method: PaymentMethod
    corporate_status: CorporateProgramStatus = "Eligible"
    grace_active: bool = False
    """Billing delinquency grace window is currently open."""

    station: Station | None = None
    allowed_zones: tuple[str, ...] = ()
    schedule_time: str = "12:00"
    """Effective local start time, 'HH:MM'."""

    kwh_target: float = Field(default=18.0, ge=0)
    estimate_ugx: float = Field(default=0.0, ge=0)
    approval_threshold_ugx: float = 150_000.0
    per_session_limit_ugx: float = 300_000.0

    cost_center_required: bool = False
    purpose_required: bool = False
    cost_center: str = ""
    purpose: str = ""

    fleet_enabled: bool = False
    vehicle_required: bool = False
    vehicle: Vehicle | None = None
