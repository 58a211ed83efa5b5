"""Checkout draft — the caller-side form state a request is built from."""

from datetime import datetime

from pydantic import BaseModel, Field

from evz_charging.models.types import CorporateProgramStatus, PaymentMethod, ScheduleMode


class CheckoutDraft(BaseModel):
    """Current selections of one charging checkout.

    A new draft is produced for every input change (station pick, payment
    method, kWh slider, schedule, ...). Drafts are never mutated in place;
    ``engine.checkout.apply_patch`` returns a copy.
    """

    station_id: str | None = Field(default="st_kla", description="Selected station id (None = nothing picked)")
    schedule_mode: ScheduleMode = Field(default="Now", description="Start now or at a scheduled time")
    schedule_time: str = Field(
        default="12:00",
        pattern=r"^\d{1,2}:\d{2}$",
        description="Effective local start time 'HH:MM'. For 'Now' the caller fills in the current time.",
    )
    kwh_target: float = Field(default=18.0, ge=2, le=120, description="Requested energy (kWh)")
    payment_method: PaymentMethod = Field(default="CorporatePay")
    cost_center: str = Field(default="OPS-01", description="Cost center tag ('' = not set)")
    purpose: str = Field(default="Charging", description="Purpose tag ('' = not set)")
    vehicle_id: str | None = Field(default="veh_my", description="Selected vehicle id")

    # --- Corporate program standing (supplied by the wallet backend) --------
    corporate_status: CorporateProgramStatus = Field(default="Eligible")
    grace_enabled: bool = Field(
        default=True,
        description="Billing agreement grants a grace window on delinquency",
    )
    grace_ends_at: datetime | None = Field(
        default=None,
        description="End of the grace window; None = no window",
    )
