"""Charging station catalog entry."""

from typing import Literal

from pydantic import BaseModel, Field

ConnectorType = Literal["CCS2", "Type2", "GB/T", "Swap"]


class Station(BaseModel):
    """One charging site as offered in the checkout station picker."""

    id: str = Field(description="Stable station identifier, e.g. 'st_kla'")
    name: str = Field(description="Display name")
    zone: str = Field(description="Zone the site belongs to, e.g. 'Kampala CBD'")
    address: str = Field(default="", description="Street address shown on receipts")
    approved_for_corporate: bool = Field(default=False, description="Site is approved for CorporatePay charging")
    price_per_kwh_ugx: float = Field(gt=0, description="Unit energy price (UGX/kWh)")
    idle_fee_per_min_ugx: float = Field(default=0.0, ge=0, description="Idle fee after the session ends (UGX/min)")
    connector_types: list[ConnectorType] = Field(default_factory=list, description="Supported connectors")
    notes: str = Field(default="", description="Free-text hint for the picker")
