"""Session pricing — up-front cost estimate and off-peak savings hint.

Pure arithmetic: station price × kWh × time-of-day multiplier, minus the
corporate sustainability discount for off-peak CorporatePay sessions.
All UGX amounts are whole shillings, rounded half-up.
"""

from __future__ import annotations

import math

from evz_charging.config.station import Station
from evz_charging.engine.schedule import is_off_peak, next_off_peak_start
from evz_charging.models.results import CostEstimate, OffPeakSuggestion
from evz_charging.models.types import CORPORATE_METHOD, PaymentMethod

OFF_PEAK_MULTIPLIER = 0.88
PEAK_MULTIPLIER = 1.0
CORPORATE_OFF_PEAK_DISCOUNT_PCT = 0.02
OFF_PEAK_SAVINGS_PCT = 12.0
MAX_ESTIMATE_UGX = 9_999_999


def round_ugx(amount: float) -> int:
    """Round half-up to whole UGX."""
    return int(math.floor(amount + 0.5))


def price_multiplier(schedule_time: str) -> tuple[float, str]:
    """(multiplier, label) for a start time."""
    if is_off_peak(schedule_time):
        return OFF_PEAK_MULTIPLIER, "Off-peak"
    return PEAK_MULTIPLIER, "Peak"


def corporate_discount(energy_cost_ugx: float, payment_method: PaymentMethod, off_peak: bool) -> int:
    if payment_method == CORPORATE_METHOD and off_peak:
        return round_ugx(energy_cost_ugx * CORPORATE_OFF_PEAK_DISCOUNT_PCT)
    return 0


def estimate_session_cost(
    station: Station | None,
    kwh: float,
    schedule_time: str,
    payment_method: PaymentMethod,
) -> CostEstimate:
    """Estimate the cost of a charging session before it starts.

    Idle fees are unknown up front and estimated as zero. With no station
    selected the estimate is zero.
    """
    multiplier, label = price_multiplier(schedule_time)
    if station is None:
        return CostEstimate(
            price_per_kwh_ugx=0.0,
            kwh=kwh,
            multiplier=multiplier,
            multiplier_label=label,
            energy_cost_ugx=0.0,
            discount_ugx=0,
            total_ugx=0,
        )

    energy = station.price_per_kwh_ugx * kwh * multiplier
    discount = corporate_discount(energy, payment_method, label == "Off-peak")
    total = round_ugx(energy - discount)
    total = max(0, min(MAX_ESTIMATE_UGX, total))

    return CostEstimate(
        price_per_kwh_ugx=station.price_per_kwh_ugx,
        kwh=kwh,
        multiplier=multiplier,
        multiplier_label=label,
        energy_cost_ugx=round(energy, 2),
        discount_ugx=discount,
        total_ugx=total,
    )


def off_peak_suggestion(schedule_time: str, estimate_ugx: float) -> OffPeakSuggestion | None:
    """Savings hint for peak-hour sessions; ``None`` when already off-peak."""
    if is_off_peak(schedule_time):
        return None
    return OffPeakSuggestion(
        next_start=next_off_peak_start(),
        savings_pct=OFF_PEAK_SAVINGS_PCT,
        saved_ugx=round_ugx(estimate_ugx * OFF_PEAK_SAVINGS_PCT / 100),
    )


def format_ugx(amount: float) -> str:
    """'UGX 1,234' — whole shillings with thousands separators."""
    return f"UGX {round_ugx(amount or 0):,}"
