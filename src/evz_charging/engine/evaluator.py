"""Charging policy evaluator — request in, decision bundle out.

Pure and synchronous: reads only its argument, touches no shared state and
performs no I/O, so identical requests always yield identical results. All
"failures" (missing station, untagged spend, over-limit cost) come back as
``Blocked`` / ``Approval required`` outcomes with reasons, never as
exceptions.
"""

from __future__ import annotations

from evz_charging.engine.rules import RULES, Evaluation
from evz_charging.models.request import EvaluationRequest
from evz_charging.models.results import EvaluationResult


def evaluate(request: EvaluationRequest) -> EvaluationResult:
    """Run the policy rules in order and classify the outcome.

    The first rule that returns an outcome ends the evaluation; the last
    rule (outcome classification) always returns one.
    """
    ev = Evaluation()
    for rule in RULES:
        outcome = rule(request, ev)
        if outcome is not None:
            return ev.finish(outcome)
    raise AssertionError("rule chain ended without an outcome")
