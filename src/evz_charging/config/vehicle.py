"""Vehicle catalog entry — personal or fleet."""

from typing import Literal

from pydantic import BaseModel, Field

VehicleType = Literal["EV Car", "EV Van", "E-Bike"]


class Vehicle(BaseModel):
    """One selectable vehicle."""

    id: str = Field(description="Stable vehicle identifier")
    label: str = Field(description="Human label, e.g. 'Fleet Van EV-02'")
    plate: str = Field(default="-", description="Registration plate")
    type: VehicleType = Field(default="EV Car", description="Vehicle class")
    is_fleet: bool = Field(default=False, description="Vehicle belongs to the organisation fleet")
    battery_kwh: float = Field(default=60.0, gt=0, description="Battery capacity (kWh)")
    default_cost_center: str | None = Field(
        default=None,
        description="Cost center adopted when this vehicle is selected with fleet mode on",
    )
    allowed_cost_centers: list[str] | None = Field(
        default=None,
        description="If set and non-empty, corporate charging for this vehicle must "
                    "use one of these cost centers.",
    )
