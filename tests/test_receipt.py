"""Tests for engine/receipt.py — charging-session and credits receipts."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from evz_charging.config import Catalog, CheckoutDraft, OrgPolicy
from evz_charging.engine.checkout import evaluate_draft
from evz_charging.engine.receipt import (
    MAX_SESSION_MINUTES,
    ReceiptNotAllowedError,
    build_credits_receipt,
    build_receipt,
    session_minutes,
)
from evz_charging.models.results import EvaluationResult


def _allowed(draft: CheckoutDraft, catalog: Catalog, now: datetime) -> EvaluationResult:
    result = evaluate_draft(draft, catalog, now).result
    assert result.outcome == "Allowed"
    return result


class TestSessionMinutes:

    def test_car_three_minutes_per_kwh(self):
        assert session_minutes(18, "EV Car") == 54

    def test_bike_six_minutes_per_kwh(self):
        assert session_minutes(10, "E-Bike") == 60

    def test_clamped(self):
        assert session_minutes(1, None) == 5
        assert session_minutes(120, "E-Bike") == MAX_SESSION_MINUTES


class TestChargingReceipt:

    def test_peak_corporate_receipt(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        receipt = build_receipt(draft, catalog, _allowed(draft, catalog, now), now, "RCPT-CH-TEST")
        assert receipt.id == "RCPT-CH-TEST"
        assert receipt.org_name == "Acme Group Ltd"
        assert receipt.kind == "Charging session"
        assert receipt.station_name == "EVzone Charging Hub"
        assert receipt.energy_cost_ugx == 50_400
        assert receipt.discount_ugx == 0
        assert receipt.total_ugx == 50_400
        assert receipt.minutes == 54
        assert receipt.ended_at - receipt.started_at == timedelta(minutes=54)
        assert receipt.corporate is True
        assert receipt.cost_center == "OPS-01"
        assert receipt.purpose == "Charging"
        assert receipt.vehicle_label == "My EV (-)"
        assert receipt.notes == ["Within policy"]

    def test_off_peak_discount(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        d = draft.model_copy(update={"schedule_time": "23:00"})
        receipt = build_receipt(d, catalog, _allowed(d, catalog, now), now)
        assert receipt.multiplier_label == "Off-peak"
        assert receipt.energy_cost_ugx == 44_352
        assert receipt.discount_ugx == 887
        assert receipt.total_ugx == 43_465
        assert receipt.id.startswith("RCPT-CH-")

    def test_personal_receipt_has_no_tags(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        d = draft.model_copy(update={"payment_method": "Mobile Money"})
        receipt = build_receipt(d, catalog, _allowed(d, catalog, now), now)
        assert receipt.corporate is False
        assert receipt.cost_center is None
        assert receipt.purpose is None
        assert receipt.notes == ["Personal payment selected"]

    def test_e_bike_session_length(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        d = draft.model_copy(update={"vehicle_id": "veh_bike", "cost_center": "OPS-02", "kwh_target": 10})
        receipt = build_receipt(d, catalog, _allowed(d, catalog, now), now)
        assert receipt.minutes == 60
        assert receipt.vehicle_label == "E-Bike Swap-02 (EB-02)"

    def test_no_vehicle_label_without_fleet(self, draft: CheckoutDraft, now: datetime):
        catalog = Catalog(policy=OrgPolicy(fleet_enabled=False))
        receipt = build_receipt(draft, catalog, _allowed(draft, catalog, now), now)
        assert receipt.vehicle_label is None

    @pytest.mark.parametrize("changes", [
        {"station_id": "st_jin"},
        {"kwh_target": 60},
        {"cost_center": ""},
    ])
    def test_refused_unless_allowed(self, changes: dict, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        d = draft.model_copy(update=changes)
        result = evaluate_draft(d, catalog, now).result
        with pytest.raises(ReceiptNotAllowedError):
            build_receipt(d, catalog, result, now)

    def test_refused_without_station(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        # Personal payment with no station is Allowed by policy but cannot be receipted
        d = draft.model_copy(update={"payment_method": "Card", "station_id": None})
        result = evaluate_draft(d, catalog, now).result
        assert result.outcome == "Allowed"
        with pytest.raises(ReceiptNotAllowedError, match="no station"):
            build_receipt(d, catalog, result, now)


class TestCreditsReceipt:

    def test_credits(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        receipt = build_credits_receipt(draft, catalog, 75_000.4, now)
        assert receipt.id.startswith("RCPT-CR-")
        assert receipt.kind == "Charging credits"
        assert receipt.total_ugx == 75_000
        assert receipt.kwh == 0
        assert receipt.started_at == receipt.ended_at

    def test_amount_is_capped(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        receipt = build_credits_receipt(draft, catalog, 12_345_678, now)
        assert receipt.total_ugx == 9_999_999

    def test_personal_credits_need_no_program(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        d = draft.model_copy(update={"payment_method": "Card", "corporate_status": "Not linked", "cost_center": ""})
        receipt = build_credits_receipt(d, catalog, 20_000, now)
        assert receipt.corporate is False
        assert receipt.cost_center is None

    @pytest.mark.parametrize("changes, message", [
        ({"corporate_status": "Not linked"}, "not available"),
        ({"corporate_status": "Billing delinquency", "grace_enabled": False}, "not available"),
        ({"cost_center": ""}, "cost center"),
        ({"purpose": "  "}, "purpose"),
    ])
    def test_corporate_credits_refused(self, changes: dict, message: str, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        with pytest.raises(ReceiptNotAllowedError, match=message):
            build_credits_receipt(draft.model_copy(update=changes), catalog, 75_000, now)

    def test_corporate_credits_during_grace(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        d = draft.model_copy(update={
            "corporate_status": "Billing delinquency",
            "grace_ends_at": now + timedelta(hours=2),
        })
        assert build_credits_receipt(d, catalog, 75_000, now).corporate is True

    def test_corporate_credits_above_threshold(self, draft: CheckoutDraft, catalog: Catalog, now: datetime):
        # Requires approval on the badge, but credits are still purchasable
        assert build_credits_receipt(draft, catalog, 200_000, now).total_ugx == 200_000
