"""Organisation catalog — stations, vehicles, tag lists and policy in one bundle.

The defaults reproduce the demo organisation used by the charging checkout.
``load_catalog`` reads the same structure from YAML (see
``scenarios/default_catalog.yaml``).
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from evz_charging.config.policy import OrgPolicy
from evz_charging.config.station import Station
from evz_charging.config.vehicle import Vehicle


def _default_stations() -> list[Station]:
    return [
        Station(
            id="st_kla",
            name="EVzone Charging Hub",
            zone="Kampala CBD",
            address="Kampala Rd 12, Kampala",
            approved_for_corporate=True,
            price_per_kwh_ugx=2_800,
            idle_fee_per_min_ugx=250,
            connector_types=["CCS2", "Type2"],
            notes="Fast chargers available",
        ),
        Station(
            id="st_ent",
            name="Entebbe Airport Site",
            zone="Entebbe",
            address="Airport Rd, Entebbe",
            approved_for_corporate=True,
            price_per_kwh_ugx=3_000,
            idle_fee_per_min_ugx=300,
            connector_types=["CCS2", "Type2"],
            notes="Ideal for airport trips",
        ),
        Station(
            id="st_jin",
            name="Partner Station Jinja",
            zone="Jinja",
            address="Main St, Jinja",
            approved_for_corporate=False,
            price_per_kwh_ugx=3_200,
            idle_fee_per_min_ugx=350,
            connector_types=["CCS2"],
            notes="Not approved for CorporatePay",
        ),
        Station(
            id="st_oth",
            name="Unknown Station",
            zone="Other",
            address="Unknown address",
            approved_for_corporate=False,
            price_per_kwh_ugx=3_400,
            idle_fee_per_min_ugx=400,
            connector_types=["Type2"],
            notes="Requires approval / not supported",
        ),
    ]


def _default_vehicles() -> list[Vehicle]:
    return [
        Vehicle(id="veh_my", label="My EV", plate="-", type="EV Car", is_fleet=False, battery_kwh=60),
        Vehicle(
            id="veh_fleet_1",
            label="Fleet EV-01 Toyota bZ4X",
            plate="UAX 123A",
            type="EV Car",
            is_fleet=True,
            battery_kwh=71,
            default_cost_center="FLEET-01",
            allowed_cost_centers=["FLEET-01", "OPS-01"],
        ),
        Vehicle(
            id="veh_fleet_2",
            label="Fleet Van EV-02",
            plate="UAY 448B",
            type="EV Van",
            is_fleet=True,
            battery_kwh=88,
            default_cost_center="FLEET-01",
            allowed_cost_centers=["FLEET-01"],
        ),
        Vehicle(
            id="veh_bike",
            label="E-Bike Swap-02",
            plate="EB-02",
            type="E-Bike",
            is_fleet=True,
            battery_kwh=2,
            default_cost_center="OPS-02",
            allowed_cost_centers=["OPS-02"],
        ),
    ]


class Catalog(BaseModel):
    """Everything the checkout needs to resolve a draft into a request."""

    stations: list[Station] = Field(default_factory=_default_stations)
    vehicles: list[Vehicle] = Field(default_factory=_default_vehicles)
    cost_centers: list[str] = Field(default_factory=lambda: ["OPS-01", "OPS-02", "SAL-03", "FLEET-01"])
    purpose_tags: list[str] = Field(
        default_factory=lambda: ["Charging", "Fleet operations", "Project", "Delivery", "Operations", "Other"],
    )
    policy: OrgPolicy = Field(default_factory=OrgPolicy)

    def station(self, station_id: str | None) -> Station | None:
        """Look up a station by id; unknown or empty ids yield ``None``."""
        if not station_id:
            return None
        return next((s for s in self.stations if s.id == station_id), None)

    def vehicle(self, vehicle_id: str | None) -> Vehicle | None:
        if not vehicle_id:
            return None
        return next((v for v in self.vehicles if v.id == vehicle_id), None)

    def first_station_in_zone(self, zone: str) -> Station | None:
        """First corporate-approved station in ``zone``, else any station there."""
        in_zone = [s for s in self.stations if s.zone == zone]
        approved = [s for s in in_zone if s.approved_for_corporate]
        if approved:
            return approved[0]
        return in_zone[0] if in_zone else None


def load_catalog(path: str | Path) -> Catalog:
    """Load a YAML catalog file. Missing sections fall back to defaults."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return Catalog.model_validate(data)
