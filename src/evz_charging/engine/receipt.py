"""Receipt builder — data for finalized charging sessions and credit purchases.

Produces ``ChargingReceipt`` records only. Export (CSV, print, PDF) belongs to
the presentation layer.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from evz_charging.config.catalog import Catalog
from evz_charging.config.draft import CheckoutDraft
from evz_charging.engine.checkout import grace_is_active
from evz_charging.engine.corporate import corporate_state
from evz_charging.engine.pricing import (
    MAX_ESTIMATE_UGX,
    corporate_discount,
    price_multiplier,
    round_ugx,
)
from evz_charging.models.results import ChargingReceipt, EvaluationResult
from evz_charging.models.types import CORPORATE_METHOD

MIN_SESSION_MINUTES = 5
MAX_SESSION_MINUTES = 240


class ReceiptNotAllowedError(ValueError):
    """Receipt requested for a session that may not proceed."""


def _receipt_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:4].upper()}"


def session_minutes(kwh: float, vehicle_type: str | None) -> int:
    """Rough session length: 6 min/kWh for e-bikes, 3 min/kWh otherwise."""
    per_kwh = 6 if vehicle_type == "E-Bike" else 3
    return max(MIN_SESSION_MINUTES, min(MAX_SESSION_MINUTES, round_ugx(kwh * per_kwh)))


def build_receipt(
    draft: CheckoutDraft,
    catalog: Catalog,
    result: EvaluationResult,
    started_at: datetime,
    receipt_id: str | None = None,
) -> ChargingReceipt:
    """Receipt for a charging session that the policy allowed.

    Raises:
        ReceiptNotAllowedError: the decision is not ``Allowed`` or no station
            is selected.
    """
    if result.outcome != "Allowed":
        raise ReceiptNotAllowedError(f"session outcome is {result.outcome!r}, not 'Allowed'")
    station = catalog.station(draft.station_id)
    if station is None:
        raise ReceiptNotAllowedError("no station selected")

    vehicle = catalog.vehicle(draft.vehicle_id)
    minutes = session_minutes(draft.kwh_target, vehicle.type if vehicle else None)

    multiplier, label = price_multiplier(draft.schedule_time)
    energy_cost = round_ugx(station.price_per_kwh_ugx * draft.kwh_target * multiplier)
    idle_fee = 0
    discount = corporate_discount(energy_cost, draft.payment_method, label == "Off-peak")
    total = max(0, energy_cost + idle_fee - discount)

    corporate = draft.payment_method == CORPORATE_METHOD
    vehicle_label = None
    if catalog.policy.fleet_enabled and vehicle is not None:
        vehicle_label = f"{vehicle.label} ({vehicle.plate})"

    return ChargingReceipt(
        id=receipt_id or _receipt_id("RCPT-CH"),
        org_name=catalog.policy.org_name,
        kind="Charging session",
        station_name=station.name,
        station_zone=station.zone,
        station_address=station.address,
        vehicle_label=vehicle_label,
        kwh=draft.kwh_target,
        minutes=minutes,
        started_at=started_at,
        ended_at=started_at + timedelta(minutes=minutes),
        price_per_kwh_ugx=station.price_per_kwh_ugx,
        multiplier_label=label,
        multiplier=multiplier,
        energy_cost_ugx=energy_cost,
        idle_fee_ugx=idle_fee,
        discount_ugx=discount,
        total_ugx=total,
        payment_method=draft.payment_method,
        corporate=corporate,
        cost_center=draft.cost_center if corporate else None,
        purpose=draft.purpose if corporate else None,
        notes=[r.title for r in result.reasons],
    )


def build_credits_receipt(
    draft: CheckoutDraft,
    catalog: Catalog,
    amount_ugx: float,
    purchased_at: datetime,
    receipt_id: str | None = None,
) -> ChargingReceipt:
    """Receipt for prepaid charging credits bought at the selected station.

    Raises:
        ReceiptNotAllowedError: no station is selected, or CorporatePay is
            chosen while the program is unavailable or the purchase is
            untagged.
    """
    station = catalog.station(draft.station_id)
    if station is None:
        raise ReceiptNotAllowedError("no station selected")

    if draft.payment_method == CORPORATE_METHOD:
        state = corporate_state(
            draft.payment_method,
            draft.corporate_status,
            grace_is_active(draft, purchased_at),
            amount_ugx,
            catalog.policy.thresholds.approval_threshold_ugx,
        )
        if state == "Not available":
            raise ReceiptNotAllowedError(f"CorporatePay is not available ({draft.corporate_status})")
        if not draft.cost_center.strip() or not draft.purpose.strip():
            raise ReceiptNotAllowedError("corporate credits need a cost center and a purpose")

    total = max(0, min(MAX_ESTIMATE_UGX, round_ugx(amount_ugx)))
    corporate = draft.payment_method == CORPORATE_METHOD

    return ChargingReceipt(
        id=receipt_id or _receipt_id("RCPT-CR"),
        org_name=catalog.policy.org_name,
        kind="Charging credits",
        station_name=station.name,
        station_zone=station.zone,
        station_address=station.address,
        kwh=0,
        minutes=0,
        started_at=purchased_at,
        ended_at=purchased_at,
        price_per_kwh_ugx=station.price_per_kwh_ugx,
        multiplier_label="N/A",
        multiplier=1.0,
        energy_cost_ugx=total,
        total_ugx=total,
        payment_method=draft.payment_method,
        corporate=corporate,
        cost_center=draft.cost_center if corporate else None,
        purpose=draft.purpose if corporate else None,
    )
