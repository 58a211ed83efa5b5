"""Tests for the HTTP API layer.

Covers:
  - Context manifest (compact + full)
  - Schema / catalog endpoints
  - Evaluation endpoints (/evaluate, /checkout/evaluate, /checkout/apply)
  - Receipt, credits and approval endpoints (409 refusals)
  - Deep merge utility and draft building
  - Narrative generation
  - Catalog loading from $EVZ_POLICY_CATALOG
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from evz_charging.api import server
from evz_charging.api.context import _extract_params, build_context, get_default_draft, get_input_schemas
from evz_charging.api.narrative import generate_decision_narrative
from evz_charging.api.server import _build_draft, _deep_merge, app
from evz_charging.config import CheckoutDraft, OrgPolicy, PolicyThresholds
from evz_charging.engine.evaluator import evaluate
from evz_charging.models.request import EvaluationRequest

NOW = "2026-10-17T12:00:00+00:00"
SCENARIOS = Path(__file__).resolve().parent.parent / "scenarios"

client = TestClient(app)


@pytest.fixture(autouse=True)
def _fresh_catalog():
    server.get_catalog.cache_clear()
    yield
    server.get_catalog.cache_clear()


# ═══════════════════════════════════════════════════════════════════════════
# Context manifest tests
# ═══════════════════════════════════════════════════════════════════════════

class TestContext:

    def test_build_context_full(self):
        ctx = build_context("full")
        assert ctx.service_name == "EVZ Corporate Charging Policy"
        assert len(ctx.rule_order) == 8
        assert len(ctx.outcome_guide) > 100
        assert len(ctx.example_queries) >= 3
        assert len(ctx.input_sections) == 6
        assert len(ctx.endpoints) == 9

    def test_build_context_compact(self):
        ctx = build_context("compact")
        assert ctx.rule_order == []
        assert ctx.outcome_guide == ""
        assert ctx.example_queries == []
        assert len(ctx.input_sections) == 6

    def test_reason_codes_listed(self):
        codes = {rc.code: rc.blocks for rc in build_context("compact").reason_codes}
        assert set(codes) == {
            "PROGRAM", "STATION", "ZONE", "COSTCENTER", "PURPOSE", "VEHICLE", "LIMIT", "THRESHOLD", "OK",
        }
        assert codes["LIMIT"] is True
        assert codes["THRESHOLD"] is False

    def test_extract_params_from_model(self):
        params = {p.name: p for p in _extract_params(PolicyThresholds)}
        assert params["approval_threshold_ugx"].default == 150_000
        assert params["approval_threshold_ugx"].constraints == {"ge": 0}
        assert params["per_session_limit_ugx"].description
        assert params["approval_threshold_ugx"].type == "float"

    def test_extract_params_literal_and_factory_defaults(self):
        draft = {p.name: p for p in _extract_params(CheckoutDraft)}
        assert "'CorporatePay'" in draft["payment_method"].type
        assert "'Card'" in draft["payment_method"].type
        assert draft["station_id"].type == "str | None"
        assert draft["kwh_target"].constraints == {"ge": 2, "le": 120}

        policy = {p.name: p for p in _extract_params(OrgPolicy)}
        assert policy["allowed_zones"].default == ["Kampala CBD", "Entebbe"]
        assert policy["thresholds"].default is None
        assert policy["thresholds"].type == "PolicyThresholds"

    def test_schemas_and_defaults(self):
        schemas = get_input_schemas()
        assert set(schemas) == {"EvaluationRequest", "CheckoutDraft"}
        assert "kwh_target" in schemas["CheckoutDraft"]["properties"]
        assert get_default_draft()["payment_method"] == "CorporatePay"


# ═══════════════════════════════════════════════════════════════════════════
# Utility tests
# ═══════════════════════════════════════════════════════════════════════════

class TestUtilities:

    def test_deep_merge_simple(self):
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_deep_merge_nested(self):
        base = {"policy": {"thresholds": {"approval": 1, "limit": 2}, "zones": ["A"]}}
        merged = _deep_merge(base, {"policy": {"thresholds": {"limit": 5}}})
        assert merged == {"policy": {"thresholds": {"approval": 1, "limit": 5}, "zones": ["A"]}}

    def test_build_draft_fills_clock_time(self):
        draft = _build_draft({}, datetime(2026, 10, 17, 7, 5, tzinfo=timezone.utc))
        assert draft.schedule_time == "07:05"
        assert draft.station_id == "st_kla"

    def test_build_draft_explicit_time_wins(self):
        draft = _build_draft({"schedule_time": "23:00"}, datetime(2026, 10, 17, 7, 5, tzinfo=timezone.utc))
        assert draft.schedule_time == "23:00"

    def test_build_draft_invalid_is_422(self):
        with pytest.raises(HTTPException) as exc_info:
            _build_draft({"kwh_target": 500}, datetime(2026, 10, 17, 7, 5, tzinfo=timezone.utc))
        assert exc_info.value.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# Endpoint tests
# ═══════════════════════════════════════════════════════════════════════════

class TestEndpoints:

    def test_health(self):
        assert client.get("/health").json() == {"status": "ok"}

    def test_root(self):
        data = client.get("/").json()
        assert data["start_here"].startswith("GET /context")

    def test_context_default_is_full(self):
        data = client.get("/context").json()
        assert len(data["rule_order"]) == 8

    def test_context_compact(self):
        data = client.get("/context", params={"detail_level": "compact"}).json()
        assert data["rule_order"] == []

    def test_schema(self):
        data = client.get("/schema").json()
        assert "EvaluationRequest" in data

    def test_catalog(self):
        data = client.get("/catalog").json()
        assert [s["id"] for s in data["stations"]] == ["st_kla", "st_ent", "st_jin", "st_oth"]
        assert data["policy"]["thresholds"]["per_session_limit_ugx"] == 300_000

    def test_evaluate(self, base_request: EvaluationRequest):
        body = base_request.model_copy(update={"estimate_ugx": 225_000}).model_dump(mode="json")
        resp = client.post("/evaluate", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["result"]["outcome"] == "Approval required"
        assert [r["code"] for r in data["result"]["reasons"]] == ["THRESHOLD"]
        assert "Outcome: Approval required" in data["narrative"]

    def test_evaluate_rejects_bad_body(self):
        resp = client.post("/evaluate", json={"payment_method": "Bitcoin"})
        assert resp.status_code == 422

    def test_checkout_empty_body(self):
        resp = client.post("/checkout/evaluate", json={"now": NOW})
        assert resp.status_code == 200
        data = resp.json()
        assert data["draft"]["schedule_time"] == "12:00"
        assert data["evaluation"]["estimate"]["total_ugx"] == 50_400
        assert data["evaluation"]["result"]["outcome"] == "Allowed"
        assert data["evaluation"]["off_peak"]["saved_ugx"] == 6_048

    def test_checkout_with_overrides(self):
        resp = client.post("/checkout/evaluate", json={"draft": {"station_id": "st_jin"}, "now": NOW})
        result = resp.json()["evaluation"]["result"]
        assert result["outcome"] == "Blocked"
        assert [r["code"] for r in result["reasons"]] == ["STATION", "ZONE"]

    def test_checkout_invalid_draft(self):
        resp = client.post("/checkout/evaluate", json={"draft": {"kwh_target": 0}, "now": NOW})
        assert resp.status_code == 422

    def test_apply_alternative(self):
        first = client.post("/checkout/evaluate", json={"draft": {"station_id": "st_jin"}, "now": NOW}).json()
        alt = first["evaluation"]["result"]["alternatives"][0]
        resp = client.post("/checkout/apply", json={"draft": first["draft"], "patch": alt["patch"], "now": NOW})
        assert resp.status_code == 200
        data = resp.json()
        assert data["draft"]["station_id"] == "st_kla"
        assert data["evaluation"]["result"]["outcome"] == alt["expected"]

    def test_receipt_allowed(self):
        resp = client.post("/checkout/receipt", json={"now": NOW, "receipt_id": "RCPT-CH-0001"})
        assert resp.status_code == 200
        receipt = resp.json()["receipt"]
        assert receipt["id"] == "RCPT-CH-0001"
        assert receipt["total_ugx"] == 50_400
        assert receipt["cost_center"] == "OPS-01"

    def test_receipt_refused(self):
        resp = client.post("/checkout/receipt", json={"draft": {"kwh_target": 120}, "now": NOW})
        assert resp.status_code == 409
        assert resp.json()["detail"]["outcome"] == "Blocked"

    def test_credits(self):
        resp = client.post("/checkout/credits", json={"amount_ugx": 75_000, "now": NOW})
        assert resp.status_code == 200
        receipt = resp.json()["receipt"]
        assert receipt["kind"] == "Charging credits"
        assert receipt["total_ugx"] == 75_000
        assert receipt["cost_center"] == "OPS-01"

    def test_credits_refused_when_corporate_unavailable(self):
        body = {"draft": {"corporate_status": "Deposit depleted"}, "amount_ugx": 75_000, "now": NOW}
        resp = client.post("/checkout/credits", json=body)
        assert resp.status_code == 409
        assert "Deposit depleted" in resp.json()["detail"]["message"]

    def test_credits_need_amount(self):
        assert client.post("/checkout/credits", json={"now": NOW}).status_code == 422
        assert client.post("/checkout/credits", json={"amount_ugx": 0, "now": NOW}).status_code == 422

    def test_approval_submitted(self):
        body = {"draft": {"kwh_target": 60}, "now": NOW, "request_id": "REQ-CH-00AB"}
        resp = client.post("/checkout/approval", json=body)
        assert resp.status_code == 200
        approval = resp.json()["approval"]
        assert approval["id"] == "REQ-CH-00AB"
        assert approval["status"] == "Pending"
        assert approval["estimate_ugx"] == 168_000
        assert approval["reasons"] == ["Approval required"]

    @pytest.mark.parametrize("draft, outcome", [
        ({}, "Allowed"),
        ({"kwh_target": 120}, "Blocked"),
    ])
    def test_approval_refused(self, draft: dict, outcome: str):
        resp = client.post("/checkout/approval", json={"draft": draft, "now": NOW})
        assert resp.status_code == 409
        assert resp.json()["detail"]["outcome"] == outcome

    def test_catalog_from_env(self, monkeypatch, tmp_path: Path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            (SCENARIOS / "default_catalog.yaml").read_text(encoding="utf-8").replace(
                "org_name: Acme Group Ltd", "org_name: Globex Uganda",
            ),
            encoding="utf-8",
        )
        monkeypatch.setenv(server.CATALOG_ENV, str(path))
        server.get_catalog.cache_clear()
        assert client.get("/catalog").json()["policy"]["org_name"] == "Globex Uganda"


# ═══════════════════════════════════════════════════════════════════════════
# Narrative tests
# ═══════════════════════════════════════════════════════════════════════════

class TestNarrative:

    def test_sections_present(self, base_request: EvaluationRequest):
        text = generate_decision_narrative(evaluate(base_request), base_request)
        for heading in ("DECISION", "PRICING", "REASONS", "ALTERNATIVES", "COACHING"):
            assert heading in text
        assert "Estimate: UGX 100,000" in text
        assert "(off-peak)" in text

    def test_without_request_skips_pricing(self, base_request: EvaluationRequest):
        text = generate_decision_narrative(evaluate(base_request))
        assert "PRICING" not in text
        assert "[OK] Within policy" in text

    def test_blocked_program_has_no_coaching(self, base_request: EvaluationRequest):
        req = base_request.model_copy(update={"corporate_status": "Not linked"})
        text = generate_decision_narrative(evaluate(req), req)
        assert "The session cannot start" in text
        assert "COACHING\n" + "=" * 60 + "\n  None." in text
