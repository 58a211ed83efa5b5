"""Configuration models — catalog, org policy and checkout draft."""

from evz_charging.config.station import Station
from evz_charging.config.vehicle import Vehicle
from evz_charging.config.policy import OrgPolicy, PolicyThresholds
from evz_charging.config.catalog import Catalog, load_catalog
from evz_charging.config.draft import CheckoutDraft

__all__ = [
    "Station",
    "Vehicle",
    "PolicyThresholds",
    "OrgPolicy",
    "Catalog",
    "load_catalog",
    "CheckoutDraft",
]
