"""Organisation charging policy — thresholds, zones, tagging and fleet rules."""

from pydantic import BaseModel, Field, model_validator


class PolicyThresholds(BaseModel):
    """Spend thresholds for one corporate charging session (UGX)."""

    approval_threshold_ugx: float = Field(
        default=150_000.0, ge=0,
        description="Estimated cost above which a session needs approval",
    )
    per_session_limit_ugx: float = Field(
        default=300_000.0, ge=0,
        description="Absolute cap; sessions above it cannot proceed even with approval",
    )

    @model_validator(mode="after")
    def _threshold_within_limit(self) -> "PolicyThresholds":
        if self.approval_threshold_ugx > self.per_session_limit_ugx:
            raise ValueError(
                f"approval_threshold_ugx ({self.approval_threshold_ugx:,.0f}) must not exceed "
                f"per_session_limit_ugx ({self.per_session_limit_ugx:,.0f})"
            )
        return self


class OrgPolicy(BaseModel):
    """Corporate charging rules configured by the organisation admin."""

    org_name: str = Field(default="Acme Group Ltd", description="Organisation shown on receipts")
    allowed_zones: list[str] = Field(
        default_factory=lambda: ["Kampala CBD", "Entebbe"],
        description="Zones where CorporatePay charging is permitted (first = preferred)",
    )
    thresholds: PolicyThresholds = Field(default_factory=PolicyThresholds)
    cost_center_required: bool = Field(default=True, description="Cost center is mandatory for CorporatePay")
    purpose_required: bool = Field(default=True, description="Purpose tag is mandatory for CorporatePay")
    fleet_enabled: bool = Field(default=True, description="Fleet vehicle allocation is switched on for the org")
    fleet_vehicle_required: bool = Field(
        default=True,
        description="With fleet on, CorporatePay sessions must name a vehicle",
    )
