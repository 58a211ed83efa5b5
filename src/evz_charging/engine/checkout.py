"""Checkout orchestration — draft → request → decision, and patch application.

This is the caller side of the evaluator: it resolves catalog lookups, prices
the session and derives grace state, so that ``evaluate`` receives a fully
resolved ``EvaluationRequest``. ``apply_patch`` is how the "Apply" buttons on
alternatives and coaching tips turn into a new draft.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from evz_charging.config.catalog import Catalog
from evz_charging.config.draft import CheckoutDraft
from evz_charging.engine.corporate import corporate_availability
from evz_charging.engine.evaluator import evaluate
from evz_charging.engine.pricing import estimate_session_cost, off_peak_suggestion
from evz_charging.models.request import EvaluationRequest
from evz_charging.models.results import CheckoutEvaluation, Patch
from evz_charging.models.types import CORPORATE_METHOD

MIN_KWH = 2.0
MAX_KWH = 120.0


def _as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def grace_remaining(draft: CheckoutDraft, now: datetime) -> timedelta | None:
    if draft.grace_ends_at is None:
        return None
    return _as_utc(draft.grace_ends_at) - _as_utc(now)


def grace_is_active(draft: CheckoutDraft, now: datetime) -> bool:
    """Delinquent program with an enabled grace window that has not ended."""
    if draft.corporate_status != "Billing delinquency" or not draft.grace_enabled:
        return False
    remaining = grace_remaining(draft, now)
    return remaining is not None and remaining > timedelta(0)


def build_request(draft: CheckoutDraft, catalog: Catalog, now: datetime) -> EvaluationRequest:
    """Resolve a draft against the catalog into an evaluator request."""
    policy = catalog.policy
    corporate = draft.payment_method == CORPORATE_METHOD
    station = catalog.station(draft.station_id)
    estimate = estimate_session_cost(station, draft.kwh_target, draft.schedule_time, draft.payment_method)

    return EvaluationRequest(
        payment_method=draft.payment_method,
        corporate_status=draft.corporate_status,
        grace_active=grace_is_active(draft, now),
        station=station,
        allowed_zones=tuple(policy.allowed_zones),
        schedule_time=draft.schedule_time,
        kwh_target=draft.kwh_target,
        estimate_ugx=estimate.total_ugx,
        approval_threshold_ugx=policy.thresholds.approval_threshold_ugx,
        per_session_limit_ugx=policy.thresholds.per_session_limit_ugx,
        cost_center_required=corporate and policy.cost_center_required,
        purpose_required=corporate and policy.purpose_required,
        cost_center=draft.cost_center,
        purpose=draft.purpose,
        fleet_enabled=policy.fleet_enabled,
        vehicle_required=policy.fleet_enabled and policy.fleet_vehicle_required and corporate,
        vehicle=catalog.vehicle(draft.vehicle_id) if policy.fleet_enabled else None,
    )


def apply_patch(draft: CheckoutDraft, patch: Patch, catalog: Catalog) -> CheckoutDraft:
    """Return a new draft with ``patch`` applied; ``draft`` is left untouched.

    - ``zone`` selects the first approved station in that zone (else any
      station there; no station in the zone leaves the selection as is).
    - ``kwh_target`` is clamped to the 2–120 kWh slider range.
    - Selecting a vehicle with fleet mode on adopts its default cost center,
      unless the same patch sets ``cost_center`` explicitly.
    """
    updates: dict = {}

    if patch.zone:
        station = catalog.first_station_in_zone(patch.zone)
        if station is not None:
            updates["station_id"] = station.id
    if patch.station_id:
        updates["station_id"] = patch.station_id
    if patch.schedule_mode:
        updates["schedule_mode"] = patch.schedule_mode
    if patch.schedule_time:
        updates["schedule_time"] = patch.schedule_time
    if patch.kwh_target is not None:
        updates["kwh_target"] = min(MAX_KWH, max(MIN_KWH, patch.kwh_target))
    if patch.payment_method:
        updates["payment_method"] = patch.payment_method
    if patch.vehicle_id:
        updates["vehicle_id"] = patch.vehicle_id
        vehicle = catalog.vehicle(patch.vehicle_id)
        if catalog.policy.fleet_enabled and vehicle is not None and vehicle.default_cost_center:
            updates["cost_center"] = vehicle.default_cost_center
    if patch.cost_center is not None:
        updates["cost_center"] = patch.cost_center
    if patch.purpose is not None:
        updates["purpose"] = patch.purpose

    return draft.model_copy(update=updates)


def evaluate_draft(draft: CheckoutDraft, catalog: Catalog, now: datetime) -> CheckoutEvaluation:
    """Price, summarise and evaluate one draft."""
    request = build_request(draft, catalog, now)
    estimate = estimate_session_cost(
        request.station, draft.kwh_target, draft.schedule_time, draft.payment_method,
    )
    availability = corporate_availability(
        draft.payment_method,
        draft.corporate_status,
        request.grace_active,
        request.estimate_ugx,
        request.approval_threshold_ugx,
        grace_remaining(draft, now),
    )
    return CheckoutEvaluation(
        request=request,
        estimate=estimate,
        availability=availability,
        off_peak=off_peak_suggestion(draft.schedule_time, request.estimate_ugx),
        result=evaluate(request),
    )
