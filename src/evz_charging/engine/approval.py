"""Approval requests — what gets submitted when a session needs sign-off."""

from __future__ import annotations

import uuid
from datetime import datetime

from evz_charging.config.catalog import Catalog
from evz_charging.config.draft import CheckoutDraft
from evz_charging.engine.checkout import build_request
from evz_charging.models.results import ApprovalRequest, EvaluationResult


class ApprovalNotRequiredError(ValueError):
    """Approval requested for a session whose outcome is not 'Approval required'."""


def build_approval_request(
    draft: CheckoutDraft,
    catalog: Catalog,
    result: EvaluationResult,
    submitted_at: datetime,
    request_id: str | None = None,
) -> ApprovalRequest:
    """Approval request for a session held at the approval threshold.

    Allowed sessions start directly and blocked ones cannot be approved, so
    both are refused with ``ApprovalNotRequiredError``.
    """
    if result.outcome != "Approval required":
        raise ApprovalNotRequiredError(f"session outcome is {result.outcome!r}, not 'Approval required'")

    req = build_request(draft, catalog, submitted_at)
    station = req.station
    if station is None:
        raise ApprovalNotRequiredError("no station selected")

    vehicle_label = None
    if req.vehicle is not None:
        vehicle_label = f"{req.vehicle.label} ({req.vehicle.plate})"

    return ApprovalRequest(
        id=request_id or f"REQ-CH-{uuid.uuid4().hex[:4].upper()}",
        org_name=catalog.policy.org_name,
        submitted_at=submitted_at,
        station_name=station.name,
        station_zone=station.zone,
        kwh=draft.kwh_target,
        schedule_time=draft.schedule_time,
        estimate_ugx=req.estimate_ugx,
        approval_threshold_ugx=req.approval_threshold_ugx,
        cost_center=draft.cost_center,
        purpose=draft.purpose,
        vehicle_label=vehicle_label,
        reasons=[r.title for r in result.reasons],
    )
