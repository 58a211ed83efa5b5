"""Narrative generator — plain-English explanation of a policy decision.

Turns an ``EvaluationResult`` (and optionally the request it came from) into
sectioned text for support agents, approvers and LLM tools.
"""

from __future__ import annotations

from evz_charging.engine.pricing import format_ugx
from evz_charging.engine.schedule import is_off_peak
from evz_charging.models.request import EvaluationRequest
from evz_charging.models.results import EvaluationResult

_VERDICTS = {
    "Allowed": "The session can start now.",
    "Approval required": "The session needs approval before it can start.",
    "Blocked": "The session cannot start with the current selections.",
}


def _heading(title: str) -> list[str]:
    return ["=" * 60, title, "=" * 60]


def generate_decision_narrative(result: EvaluationResult, request: EvaluationRequest | None = None) -> str:
    """Generate a plain-English narrative for one decision.

    Sections:
      1. Decision (outcome + verdict)
      2. Pricing (only when the request is given)
      3. Reasons, in evaluation order
      4. Alternatives
      5. Coaching
    """
    sections: list[str] = []

    sections.extend(_heading("DECISION"))
    sections.append(f"Outcome: {result.outcome}\n{_VERDICTS[result.outcome]}")

    if request is not None:
        sections.append("")
        sections.extend(_heading("PRICING"))
        station = request.station.name if request.station else "none selected"
        window = "off-peak" if is_off_peak(request.schedule_time) else "peak"
        sections.append(
            f"Payment method: {request.payment_method}\n"
            f"Station: {station}\n"
            f"Start: {request.schedule_time} ({window})\n"
            f"Energy: {request.kwh_target:g} kWh\n"
            f"Estimate: {format_ugx(request.estimate_ugx)}\n"
            f"Approval threshold: {format_ugx(request.approval_threshold_ugx)}\n"
            f"Per-session limit: {format_ugx(request.per_session_limit_ugx)}"
        )

    sections.append("")
    sections.extend(_heading("REASONS"))
    for i, reason in enumerate(result.reasons, 1):
        sections.append(f"  {i}. [{reason.code}] {reason.title} — {reason.detail}")

    sections.append("")
    sections.extend(_heading("ALTERNATIVES"))
    if result.alternatives:
        for alt in result.alternatives:
            sections.append(f"  - {alt.title} (expected: {alt.expected}): {alt.description}")
    else:
        sections.append("  None.")

    sections.append("")
    sections.extend(_heading("COACHING"))
    if result.coach:
        for tip in result.coach:
            sections.append(f"  - {tip.title}: {tip.description}")
    else:
        sections.append("  None.")

    return "\n".join(sections)
