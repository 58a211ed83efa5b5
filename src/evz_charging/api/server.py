"""FastAPI server — HTTP access to the charging policy evaluator.

Run with:
    uvicorn evz_charging.api.server:app --reload --port 8000

Or:
    evz-policy-api

Endpoints:
    GET  /context            — self-describing manifest (rules + schemas)
    GET  /schema             — JSON Schemas for EvaluationRequest / CheckoutDraft
    GET  /catalog            — active stations, vehicles, tags and org policy
    POST /evaluate           — evaluate a fully-resolved EvaluationRequest
    POST /checkout/evaluate  — partial draft → estimate, availability, decision
    POST /checkout/apply     — apply an alternative/coach patch and re-evaluate
    POST /checkout/receipt   — receipt for an Allowed session
    POST /checkout/credits   — receipt for prepaid charging credits
    POST /checkout/approval  — approval request for a session over the threshold

Set ``EVZ_POLICY_CATALOG`` to a YAML file to replace the built-in catalog.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from functools import lru_cache
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from evz_charging.api.context import build_context, get_default_draft, get_input_schemas
from evz_charging.api.narrative import generate_decision_narrative
from evz_charging.config.catalog import Catalog, load_catalog
from evz_charging.config.draft import CheckoutDraft
from evz_charging.engine.approval import ApprovalNotRequiredError, build_approval_request
from evz_charging.engine.checkout import apply_patch, evaluate_draft
from evz_charging.engine.evaluator import evaluate
from evz_charging.engine.receipt import ReceiptNotAllowedError, build_credits_receipt, build_receipt
from evz_charging.models.request import EvaluationRequest
from evz_charging.models.results import Patch

logger = logging.getLogger(__name__)

CATALOG_ENV = "EVZ_POLICY_CATALOG"


# ═══════════════════════════════════════════════════════════════════════════
# App setup
# ═══════════════════════════════════════════════════════════════════════════

app = FastAPI(
    title="EVZ Corporate Charging Policy API",
    version="1.0",
    description=(
        "Evaluates EV charging sessions against corporate charging policy: "
        "Allowed, Approval required or Blocked, with reasons, corrective "
        "alternatives and coaching tips. Start with GET /context."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ═══════════════════════════════════════════════════════════════════════════
# Request / response models
# ═══════════════════════════════════════════════════════════════════════════

class CheckoutRequest(BaseModel):
    """Request body for /checkout/evaluate. All fields optional — defaults used for missing."""
    draft: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial or full CheckoutDraft JSON. Missing fields use defaults. "
                    "Example: {'station_id': 'st_jin', 'kwh_target': 40}",
    )
    now: datetime | None = Field(
        default=None,
        description="Evaluation time (grace window, 'Now' schedule). Defaults to the server clock.",
    )


class ApplyRequest(CheckoutRequest):
    """Request body for /checkout/apply."""
    patch: Patch


class ReceiptRequest(CheckoutRequest):
    """Request body for /checkout/receipt."""
    receipt_id: str | None = Field(default=None, description="Optional receipt id (generated if missing)")


class CreditsRequest(ReceiptRequest):
    """Request body for /checkout/credits."""
    amount_ugx: float = Field(gt=0, description="Credit amount to buy (UGX)")


class ApprovalSubmitRequest(CheckoutRequest):
    """Request body for /checkout/approval."""
    request_id: str | None = Field(default=None, description="Optional request id (generated if missing)")


class EvaluateResponse(BaseModel):
    """Response from /evaluate."""
    result: dict[str, Any]
    narrative: str = ""


class CheckoutResponse(BaseModel):
    """Response from /checkout/evaluate and /checkout/apply."""
    draft: dict[str, Any]
    evaluation: dict[str, Any]
    narrative: str = ""


class ReceiptResponse(BaseModel):
    """Response from /checkout/receipt and /checkout/credits."""
    receipt: dict[str, Any]


class ApprovalResponse(BaseModel):
    """Response from /checkout/approval."""
    approval: dict[str, Any]


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    """Catalog from ``$EVZ_POLICY_CATALOG`` if set, else the built-in one."""
    path = os.environ.get(CATALOG_ENV)
    if path:
        logger.info("Loading policy catalog from %s", path)
        return load_catalog(path)
    return Catalog()


def _now(value: datetime | None) -> datetime:
    return value if value is not None else datetime.now().astimezone()


def _deep_merge(base: dict, overrides: dict) -> dict:
    """Recursively merge overrides into base dict."""
    for key, val in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(val, dict):
            _deep_merge(base[key], val)
        else:
            base[key] = val
    return base


def _build_draft(overrides: dict[str, Any], now: datetime) -> CheckoutDraft:
    """Build a CheckoutDraft from partial overrides merged onto defaults.

    A draft that starts 'Now' without an explicit time gets the current
    clock time.
    """
    defaults = get_default_draft()
    defaults["schedule_time"] = now.strftime("%H:%M")
    _deep_merge(defaults, overrides)
    try:
        return CheckoutDraft(**defaults)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=json.loads(exc.json())) from exc


def _checkout_response(draft: CheckoutDraft, now: datetime) -> CheckoutResponse:
    snapshot = evaluate_draft(draft, get_catalog(), now)
    logger.info(
        "Checkout decision %s (station=%s, estimate=%s)",
        snapshot.result.outcome, draft.station_id, snapshot.request.estimate_ugx,
    )
    return CheckoutResponse(
        draft=draft.model_dump(mode="json"),
        evaluation=snapshot.model_dump(mode="json"),
        narrative=generate_decision_narrative(snapshot.result, snapshot.request),
    )


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health")
def health_check():
    """Health check for deployment platforms."""
    return {"status": "ok"}


@app.get("/")
def root():
    """API root — returns a welcome message and pointer to /context."""
    return {
        "name": "EVZ Corporate Charging Policy API",
        "version": "1.0",
        "start_here": "GET /context?detail_level=full",
        "docs": "GET /docs (interactive Swagger UI)",
    }


@app.get("/context")
def get_context(
    detail_level: Literal["compact", "full"] = Query(
        default="full",
        description="'compact' for schemas and reason codes, 'full' adds rule order and guides",
    ),
):
    """Self-describing manifest: rule order, inputs, reason codes, endpoints."""
    return build_context(detail_level)


@app.get("/schema")
def get_schema():
    """JSON Schemas for the evaluator request and the checkout draft."""
    return get_input_schemas()


@app.get("/catalog")
def get_catalog_json():
    """Active catalog as JSON."""
    return get_catalog().model_dump(mode="json")


@app.post("/evaluate", response_model=EvaluateResponse)
def evaluate_request(req: EvaluationRequest):
    """Evaluate a fully-resolved request (station, estimate and thresholds supplied)."""
    result = evaluate(req)
    logger.info("Decision %s (%d reasons)", result.outcome, len(result.reasons))
    return EvaluateResponse(
        result=result.model_dump(mode="json"),
        narrative=generate_decision_narrative(result, req),
    )


@app.post("/checkout/evaluate", response_model=CheckoutResponse)
def checkout_evaluate(req: CheckoutRequest):
    """Resolve a partial draft against the catalog and evaluate it.

    Example minimal request:
    ```json
    {"draft": {"station_id": "st_jin", "kwh_target": 40}}
    ```
    """
    now = _now(req.now)
    return _checkout_response(_build_draft(req.draft, now), now)


@app.post("/checkout/apply", response_model=CheckoutResponse)
def checkout_apply(req: ApplyRequest):
    """Apply an alternative's or coaching tip's patch, then re-evaluate."""
    now = _now(req.now)
    draft = apply_patch(_build_draft(req.draft, now), req.patch, get_catalog())
    return _checkout_response(draft, now)


@app.post("/checkout/receipt", response_model=ReceiptResponse)
def checkout_receipt(req: ReceiptRequest):
    """Build the receipt for an Allowed session. Other outcomes return 409."""
    now = _now(req.now)
    catalog = get_catalog()
    draft = _build_draft(req.draft, now)
    snapshot = evaluate_draft(draft, catalog, now)
    try:
        receipt = build_receipt(draft, catalog, snapshot.result, now, req.receipt_id)
    except ReceiptNotAllowedError as exc:
        logger.warning("Receipt refused: %s", exc)
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "outcome": snapshot.result.outcome},
        ) from exc
    return ReceiptResponse(receipt=receipt.model_dump(mode="json"))


@app.post("/checkout/credits", response_model=ReceiptResponse)
def checkout_credits(req: CreditsRequest):
    """Receipt for prepaid credits. Unusable or untagged CorporatePay returns 409."""
    now = _now(req.now)
    draft = _build_draft(req.draft, now)
    try:
        receipt = build_credits_receipt(draft, get_catalog(), req.amount_ugx, now, req.receipt_id)
    except ReceiptNotAllowedError as exc:
        logger.warning("Credits refused: %s", exc)
        raise HTTPException(status_code=409, detail={"message": str(exc)}) from exc
    return ReceiptResponse(receipt=receipt.model_dump(mode="json"))


@app.post("/checkout/approval", response_model=ApprovalResponse)
def checkout_approval(req: ApprovalSubmitRequest):
    """Submit a session held at the approval threshold. Other outcomes return 409."""
    now = _now(req.now)
    catalog = get_catalog()
    draft = _build_draft(req.draft, now)
    snapshot = evaluate_draft(draft, catalog, now)
    try:
        approval = build_approval_request(draft, catalog, snapshot.result, now, req.request_id)
    except ApprovalNotRequiredError as exc:
        logger.warning("Approval request refused: %s", exc)
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "outcome": snapshot.result.outcome},
        ) from exc
    logger.info("Approval request %s submitted", approval.id)
    return ApprovalResponse(approval=approval.model_dump(mode="json"))


# ═══════════════════════════════════════════════════════════════════════════
# CLI entry point
# ═══════════════════════════════════════════════════════════════════════════

def main():
    """Run the API server."""
    import uvicorn
    uvicorn.run(
        "evz_charging.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
