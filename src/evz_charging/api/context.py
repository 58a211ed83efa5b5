"""Context manifest generator — makes the policy API self-describing.

Two detail levels:
  - ``compact``: input schemas + reason codes
  - ``full``:    adds the rule order, outcome guide and example queries
"""

from __future__ import annotations

import re
from typing import Any, Literal, get_args, get_origin

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo

from evz_charging.config import CheckoutDraft, OrgPolicy, PolicyThresholds, Station, Vehicle
from evz_charging.models.request import EvaluationRequest


# ═══════════════════════════════════════════════════════════════════════════
# Public response models
# ═══════════════════════════════════════════════════════════════════════════

class ParameterInfo(BaseModel):
    """One input field, machine-readable."""
    name: str
    type: str
    default: Any
    description: str
    constraints: dict[str, Any] = Field(default_factory=dict)


class SectionSchema(BaseModel):
    """Schema for one input model (e.g. draft, station)."""
    section: str
    description: str
    parameters: list[ParameterInfo]


class ReasonCodeInfo(BaseModel):
    code: str
    meaning: str
    blocks: bool


class EndpointInfo(BaseModel):
    """Description of one API endpoint."""
    method: str
    path: str
    description: str


class PolicyContext(BaseModel):
    """Self-describing manifest of the charging policy API."""
    service_name: str
    version: str
    description: str
    rule_order: list[str]
    outcome_guide: str
    input_sections: list[SectionSchema]
    reason_codes: list[ReasonCodeInfo]
    endpoints: list[EndpointInfo]
    example_queries: list[dict[str, str]]


# ═══════════════════════════════════════════════════════════════════════════
# Schema extraction from Pydantic models
# ═══════════════════════════════════════════════════════════════════════════

_BOUNDS = ("ge", "gt", "le", "lt", "min_length", "max_length", "pattern")
_SCALARS = (str, int, float, bool)


def _extract_params(model_cls: type[BaseModel]) -> list[ParameterInfo]:
    """One ``ParameterInfo`` per model field, in declaration order."""
    return [
        ParameterInfo(
            name=name,
            type=_type_label(field_info.annotation),
            default=_json_default(field_info),
            description=field_info.description or "",
            constraints=_bounds(field_info),
        )
        for name, field_info in model_cls.model_fields.items()
    ]


def _bounds(field_info: FieldInfo) -> dict[str, Any]:
    found: dict[str, Any] = {}
    for meta in field_info.metadata:
        for attr in _BOUNDS:
            value = getattr(meta, attr, None)
            if value is not None:
                found[attr] = value
    return found


def _type_label(annotation: Any) -> str:
    """'CorporatePay' | 'Card' for Literals, bare class names otherwise."""
    if annotation is None:
        return "Any"
    if get_origin(annotation) is Literal:
        return " | ".join(repr(choice) for choice in get_args(annotation))
    if isinstance(annotation, type):
        return annotation.__name__
    return re.sub(r"\b(?:\w+\.)+(\w+)", r"\1", str(annotation))


def _json_default(field_info: FieldInfo) -> Any:
    """Default value when it is plain JSON (factories are called), else None."""
    if field_info.is_required():
        return None
    value = field_info.get_default(call_default_factory=True)
    if isinstance(value, (list, tuple)):
        return list(value) if all(isinstance(v, _SCALARS) for v in value) else None
    return value if isinstance(value, _SCALARS) else None


# ═══════════════════════════════════════════════════════════════════════════
# Static content
# ═══════════════════════════════════════════════════════════════════════════

_DESCRIPTION = (
    "Decides whether an EV charging session paid with CorporatePay is Allowed, "
    "needs approval, or is Blocked, and explains why, with corrective "
    "alternatives and coaching tips."
)

_RULE_ORDER = [
    "1. Payment method: non-CorporatePay payments are Allowed immediately.",
    "2. Program standing: Not linked / Not eligible / Deposit depleted / Credit limit exceeded / "
    "Billing delinquency without grace → Blocked. Delinquency with grace continues.",
    "3. Station: none selected → Blocked. Unapproved station or disallowed zone is recorded.",
    "4. Metadata: missing cost center, then missing purpose → Blocked.",
    "5. Fleet: required vehicle missing → Blocked. Vehicle cost-center restriction is recorded.",
    "6. Spend: above per-session limit is recorded (LIMIT); otherwise above approval threshold (THRESHOLD).",
    "7. Coaching: off-peak tip when starting 06:00–22:00, approved-sites tip, personal-payment fallback.",
    "8. Outcome: STATION/ZONE/VEHICLE/LIMIT → Blocked; THRESHOLD → Approval required; else Allowed.",
]

_OUTCOME_GUIDE = """
HOW TO READ A DECISION:

1. OUTCOME:
   Allowed           → start the session.
   Approval required → submit with POST /checkout/approval; the estimate is above the threshold.
   Blocked           → fix at least one reason (or pay personally).

2. REASONS:
   Listed in evaluation order. Earlier reasons are never removed by later checks,
   so a Blocked decision can show several independent problems at once.

3. ALTERNATIVES:
   Each carries a patch and the outcome it is expected to produce. Apply one with
   POST /checkout/apply and the session is re-evaluated. "Pay personally" always
   leads to Allowed.

4. COACHING:
   Non-blocking. Off-peak (22:00–06:00) sessions are priced at 0.88× and, with
   CorporatePay, get a further 2% discount.
"""

_REASON_CODES = [
    ReasonCodeInfo(code="PROGRAM", meaning="Corporate program standing (unavailable or grace window)", blocks=True),
    ReasonCodeInfo(code="STATION", meaning="No station, or station not approved for corporate use", blocks=True),
    ReasonCodeInfo(code="ZONE", meaning="Station outside the allowed zones", blocks=True),
    ReasonCodeInfo(code="COSTCENTER", meaning="Cost center required but missing", blocks=True),
    ReasonCodeInfo(code="PURPOSE", meaning="Purpose tag required but missing", blocks=True),
    ReasonCodeInfo(code="VEHICLE", meaning="Fleet vehicle missing or cost center not allowed for it", blocks=True),
    ReasonCodeInfo(code="LIMIT", meaning="Estimate above the per-session limit", blocks=True),
    ReasonCodeInfo(code="THRESHOLD", meaning="Estimate above the approval threshold", blocks=False),
    ReasonCodeInfo(code="OK", meaning="Informational: within policy, or personal payment", blocks=False),
]

_ENDPOINTS = [
    EndpointInfo(method="GET", path="/context", description="This manifest"),
    EndpointInfo(method="GET", path="/schema", description="JSON Schemas for EvaluationRequest and CheckoutDraft"),
    EndpointInfo(method="GET", path="/catalog", description="Active stations, vehicles, tags and org policy"),
    EndpointInfo(method="POST", path="/evaluate", description="Evaluate a fully-resolved EvaluationRequest"),
    EndpointInfo(method="POST", path="/checkout/evaluate", description="Partial draft → estimate, availability, decision"),
    EndpointInfo(method="POST", path="/checkout/apply", description="Apply an alternative/coach patch and re-evaluate"),
    EndpointInfo(method="POST", path="/checkout/receipt", description="Receipt for an Allowed session (409 otherwise)"),
    EndpointInfo(method="POST", path="/checkout/credits", description="Receipt for prepaid credits (409 for unusable or untagged CorporatePay)"),
    EndpointInfo(method="POST", path="/checkout/approval", description="Approval request for a session over the threshold (409 otherwise)"),
]

_EXAMPLE_QUERIES = [
    {
        "query": "Can I charge 18 kWh at the Kampala hub right now on CorporatePay?",
        "action": "POST /checkout/evaluate with {'draft': {'station_id': 'st_kla', 'kwh_target': 18}}",
    },
    {
        "query": "Why is the Jinja station blocked?",
        "action": "POST /checkout/evaluate with {'draft': {'station_id': 'st_jin'}} and read result.reasons",
    },
    {
        "query": "Fix it for me",
        "action": "POST /checkout/apply with the draft and the first alternative's patch",
    },
    {
        "query": "My session needs approval, send it to my admin",
        "action": "POST /checkout/approval with the same draft and read approval.id",
    },
    {
        "query": "How much would I save charging tonight?",
        "action": "POST /checkout/evaluate and read off_peak.saved_ugx",
    },
]


# ═══════════════════════════════════════════════════════════════════════════
# Context builders
# ═══════════════════════════════════════════════════════════════════════════

_SECTIONS: list[tuple[str, str, type[BaseModel]]] = [
    ("draft", "Checkout selections (partial drafts are merged onto defaults)", CheckoutDraft),
    ("request", "Fully-resolved evaluator input", EvaluationRequest),
    ("policy", "Organisation charging policy", OrgPolicy),
    ("thresholds", "Spend thresholds (approval threshold ≤ per-session limit)", PolicyThresholds),
    ("station", "Catalog station entry", Station),
    ("vehicle", "Catalog vehicle entry", Vehicle),
]


def build_context(detail_level: Literal["compact", "full"] = "full") -> PolicyContext:
    """Build the manifest at the requested detail level."""
    full = detail_level == "full"
    return PolicyContext(
        service_name="EVZ Corporate Charging Policy",
        version="1.0",
        description=_DESCRIPTION,
        rule_order=_RULE_ORDER if full else [],
        outcome_guide=_OUTCOME_GUIDE.strip() if full else "",
        input_sections=[
            SectionSchema(section=name, description=desc, parameters=_extract_params(cls))
            for name, desc, cls in _SECTIONS
        ],
        reason_codes=_REASON_CODES,
        endpoints=_ENDPOINTS,
        example_queries=_EXAMPLE_QUERIES if full else [],
    )


def get_input_schemas() -> dict[str, Any]:
    return {
        "EvaluationRequest": EvaluationRequest.model_json_schema(),
        "CheckoutDraft": CheckoutDraft.model_json_schema(),
    }


def get_default_draft() -> dict[str, Any]:
    return CheckoutDraft().model_dump(mode="json")
