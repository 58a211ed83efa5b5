"""Shared test fixtures — demo catalog matching default_catalog.yaml."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from evz_charging.config import Catalog, CheckoutDraft, Station, Vehicle
from evz_charging.models.request import EvaluationRequest


@pytest.fixture
def kampala_station() -> Station:
    return Station(
        id="st_kla",
        name="EVzone Charging Hub",
        zone="Kampala CBD",
        address="Kampala Rd 12, Kampala",
        approved_for_corporate=True,
        price_per_kwh_ugx=2_800,
        idle_fee_per_min_ugx=250,
        connector_types=["CCS2", "Type2"],
    )


@pytest.fixture
def jinja_station() -> Station:
    """Unapproved station outside the allowed zones."""
    return Station(
        id="st_jin",
        name="Partner Station Jinja",
        zone="Jinja",
        address="Main St, Jinja",
        approved_for_corporate=False,
        price_per_kwh_ugx=3_200,
        idle_fee_per_min_ugx=350,
        connector_types=["CCS2"],
    )


@pytest.fixture
def fleet_van() -> Vehicle:
    return Vehicle(
        id="veh_fleet_2",
        label="Fleet Van EV-02",
        plate="UAY 448B",
        type="EV Van",
        is_fleet=True,
        battery_kwh=88,
        default_cost_center="FLEET-01",
        allowed_cost_centers=["FLEET-01"],
    )


@pytest.fixture
def base_request(kampala_station: Station) -> EvaluationRequest:
    """Corporate request that passes every check (off-peak, under threshold)."""
    return EvaluationRequest(
        payment_method="CorporatePay",
        corporate_status="Eligible",
        grace_active=False,
        station=kampala_station,
        allowed_zones=("Kampala CBD", "Entebbe"),
        schedule_time="23:00",
        kwh_target=18,
        estimate_ugx=100_000,
        approval_threshold_ugx=150_000,
        per_session_limit_ugx=300_000,
        cost_center_required=True,
        purpose_required=True,
        cost_center="OPS-01",
        purpose="Charging",
        fleet_enabled=False,
        vehicle_required=False,
        vehicle=None,
    )


@pytest.fixture
def catalog() -> Catalog:
    return Catalog()


@pytest.fixture
def draft() -> CheckoutDraft:
    """Default checkout at 12:00 (peak): st_kla, 18 kWh, CorporatePay → 50,400 UGX."""
    return CheckoutDraft(schedule_time="12:00")


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
