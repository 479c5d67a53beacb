# PURPOSE: End-to-end planner run: validate the request, evaluate cash flow, profile risk,
#          compute capacity, fetch narratives, build the compliant target, bind the
#          collaborator's schemes, resolve overlap and validate the response.
# CONTEXT: Engine stages are deterministic; only the content generator touches the network.
#          Narrative calls run concurrently with a timeout and fall back to engine values.

from __future__ import annotations
import json
import os
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Tuple

import structlog
from jsonschema import ValidationError

from fundplanner.allocation import bind_schemes, compute_target_allocation, plan_violations
from fundplanner.capacity import capacity_drift
from fundplanner.model_interface.loader import load_generator
from fundplanner.model_interface.types import FinancialSnapshot, InvestmentChoice, PersonalProfile
from fundplanner.observability import xray_segment
from fundplanner.overlap import is_settled, resolve_overlap
from fundplanner.plan_io import (
    error_to_string,
    issue_messages,
    make_ok_message,
    validate_plan_request,
    validate_planner_output,
)
from fundplanner.results import ContentGenerationError, Issue, IssueKind
from fundplanner.session import PlannerSession

log = structlog.get_logger(__name__)


def _content_timeout() -> float:
    return float(os.getenv("FUNDPLANNER_CONTENT_TIMEOUT_S", "20"))


def _run_id() -> str:
    """Short random prefix plus UTC timestamp, e.g. 'a1b2c3d4-20260302091407'."""
    return uuid.uuid4().hex[:8] + "-" + datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


def _issues_view(errors: List[Issue], notices: List[Issue]) -> Dict[str, Any]:
    return {"errors": [e.to_dict() for e in errors], "notices": [n.to_dict() for n in notices]}


def _error_output(errors: List[Issue], notices: List[Issue], **partial) -> Dict[str, Any]:
    out = {
        "status": "error",
        "messages": issue_messages(errors),
        "issues": _issues_view(errors, notices),
    }
    out.update({k: v for k, v in partial.items() if v is not None})
    return out


def fetch_narratives(generator, session: PlannerSession) -> Tuple[Dict[str, Any], List[Issue], bool]:
    """
    Ask the generator for the risk description and the capacity summary concurrently.

    returns:
    - (narrative, notices, timed_out) – narrative holds whatever arrived in time; the risk
      profile on the session is updated in place with a generated description. Anything
      late, malformed or drifting from the engine's figures becomes a ContentGenerationError
      notice and the engine's own value stands.
    """
    narrative: Dict[str, Any] = {}
    notices: List[Issue] = []
    timed_out = False
    deadline = time.monotonic() + _content_timeout()

    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="content")
    results: Dict[str, Any] = {}
    try:
        futures = {
            "describe_risk": pool.submit(generator.describe_risk, session.risk_profile.category),
            "summarize_capacity": pool.submit(generator.summarize_capacity, session.personal,
                                              session.financial, session.capacity),
        }
        for need, fut in futures.items():
            try:
                results[need] = fut.result(timeout=max(0.0, deadline - time.monotonic()))
            except FutureTimeout:
                timed_out = True
                fut.cancel()
                log.warning("content.timeout", need=need, timeout_s=_content_timeout())
                notices.append(Issue(IssueKind.CONTENT_GENERATION,
                                     f"{need} timed out; using computed values.", details={"need": need}))
            except ContentGenerationError as e:
                log.warning("content.rejected", need=need, error=str(e))
                notices.append(e.to_issue())
    finally:
        # Late workers are abandoned, never waited on.
        pool.shutdown(wait=False, cancel_futures=True)

    desc = results.get("describe_risk")
    if desc is not None:
        session.risk_profile = session.risk_profile.with_description(desc)
    narrative["riskDescription"] = session.risk_profile.description.as_text()

    payload = results.get("summarize_capacity")
    if payload is not None:
        drift = capacity_drift(payload.flat_figures(), session.capacity)
        if drift:
            log.info("content.capacity_drift", fields=drift)
            notices.append(Issue(IssueKind.CONTENT_GENERATION,
                                 "Generated capacity figures differed from the computed ones and were replaced.",
                                 details={"fields": drift}))
        narrative.update({
            "reasoning": payload.reasoning,
            "suitabilityNarrative": payload.suitabilityNarrative,
            "investableFromSalaryWords": ("" if "investableFromSalary" in drift
                                          else payload.investableFromSalaryWords),
            "investableFromCorpusWords": ("" if "investableFromCorpus" in drift
                                          else payload.investableFromCorpusWords),
        })
    return narrative, notices, timed_out


def build_plan(payload: Dict[str, Any], generator=None) -> Tuple[Dict[str, Any], PlannerSession]:
    """
    Run every stage and return (output, session).

    parameters:
    - payload: dict – a plan_request document.
    - generator: ContentGenerator|None – defaults to load_generator().

    returns:
    - (dict, PlannerSession) – output has status "ok" with the bound plan, or status
      "error" with typed issues and whatever stages completed. The session reflects how
      far the run got, for draft persistence.

    raises:
    - jsonschema.ValidationError – request or output schema violation.
    """
    t0 = time.time()
    session = PlannerSession()
    notices: List[Issue] = []

    with xray_segment("validate_request"):
        validate_plan_request(payload)
    generator = generator or load_generator()
    with xray_segment("intake"):
        try:
            today = date.fromisoformat(payload["today"]) if payload.get("today") else None
            personal = PersonalProfile.from_dict(payload["personal"], today=today)
            snapshot = FinancialSnapshot.from_dict(payload["financial"])
        except ValueError as e:
            return _error_output([Issue(IssueKind.VALIDATION_ERROR, str(e))], notices), session
        out = session.submit_personal(personal, today)
        if not out.ok:
            return _error_output(out.errors, notices), session

    log.info("pipeline.stage", stage="cash_flow")
    with xray_segment("cash_flow"):
        out = session.submit_financial(snapshot)
        cash_flow = session.cash_flow.to_dict()
        notices.extend(out.notices)
        if not out.ok:
            return _error_output(out.errors, notices, cashFlow=cash_flow), session

    log.info("pipeline.stage", stage="risk_and_capacity")
    with xray_segment("risk_and_capacity"):
        out = session.submit_risk(payload["riskAnswers"])
        if not out.ok:
            return _error_output(out.errors, notices, cashFlow=cash_flow), session
        if payload.get("investment"):
            session.choose_investment(InvestmentChoice.from_dict(payload["investment"]))

    log.info("pipeline.stage", stage="narratives", generator=getattr(generator, "name", "?"))
    with xray_segment("narratives") as seg:
        seg.annotate("generator", getattr(generator, "name", "?"))
        narrative, content_notices, timed_out = fetch_narratives(generator, session)
        notices.extend(content_notices)
        session.summary = narrative

    log.info("pipeline.stage", stage="allocation")
    with xray_segment("allocation") as seg:
        try:
            target = compute_target_allocation(session.capacity, session.risk_profile,
                                               personal.age, session.investment)
        except ValueError as e:
            return _error_output([Issue(IssueKind.VALIDATION_ERROR, str(e))], notices,
                                 cashFlow=cash_flow, narrative=narrative), session
        seg.annotate("risk_category", target.category.label)
    partial = dict(cashFlow=cash_flow, riskProfile=session.risk_profile.to_dict(),
                   capacity=session.capacity.to_dict(), target=target.to_dict(), narrative=narrative,
                   content_timed_out=timed_out)

    log.info("pipeline.stage", stage="schemes")
    with xray_segment("schemes"):
        try:
            slots = generator.recommend_schemes(session.risk_profile, personal.age, target)
        except ContentGenerationError as e:
            log.warning("content.rejected", need="recommend_schemes", error=str(e))
            return _error_output([e.to_issue()], notices, **partial), session
        bound = bind_schemes(target, slots)
        notices.extend(bound.notices)
        if not bound.ok:
            return _error_output(bound.errors, notices, **partial), session

    log.info("pipeline.stage", stage="overlap")
    with xray_segment("overlap"):
        plan = bound.value
        resolved = resolve_overlap(plan, session.risk_profile, generator)
        if resolved.ok:
            plan = resolved.value
        else:
            # The plan is still usable; the client settles the duplicate by substitution.
            notices.extend(resolved.errors)
        violations = plan_violations(plan, personal.age, session.risk_profile.short_horizon)
        if violations:
            return _error_output([Issue(IssueKind.CONTENT_GENERATION, "Bound plan breaks allocation rules.",
                                        details={"violations": violations})], notices, **partial), session
        session.set_plan(plan)

    result = {
        "status": "ok",
        "messages": [make_ok_message(
            f"{session.risk_profile.category.label} risk portfolio across {len(plan.slots)} schemes."
        )] + issue_messages(notices),
        **partial,
        "plan": plan.to_dict(),
        "issues": _issues_view([], notices),
        "settled": is_settled(plan),
        "run_id": _run_id(),
        "latency_ms": int((time.time() - t0) * 1000),
    }
    with xray_segment("validate_output"):
        validate_planner_output(result)
    return result, session


def run_pipeline(payload: Dict[str, Any], generator=None) -> Dict[str, Any]:
    """
    Convenience wrapper returning only the output document.

    A request that fails schema validation comes back as an error document rather than raising.
    """
    try:
        out, _ = build_plan(payload, generator)
        return out
    except ValidationError as e:
        return {"status": "error", "messages": [make_ok_message(error_to_string(e))]}


if __name__ == "__main__":
    demo = {
        "personal": {"name": "Asha Rao", "dob": "1991-04-12", "mobile": "9876543210", "email": ""},
        "financial": {"incomeStatus": "Earning", "hasCorpus": True, "totalCorpusToInvest": 500000,
                      "monthlyIncome": 120000, "monthlyExpenses": 55000, "yearlyExpenses": 60000,
                      "insurance": {"termPlan": 15000, "healthInsurance": 20000, "personalAccident": 1000},
                      "taxSlab": "Above ₹15,00,000"},
        "riskAnswers": {"1": 3, "2": 3, "3": 4, "4": 3},
    }
    print(json.dumps(run_pipeline(demo), indent=2, ensure_ascii=False))
