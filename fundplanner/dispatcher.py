"""
Planner agent: routes a request to the pipeline or to one plan-editing action.

PURPOSE: Single controller behind the CLI and the Lambda handler. Picks the action,
         loads the plan it acts on (from the request or a saved draft), runs the engine
         operation, persists the draft and records a short trace.
CONTEXT: Actions are plan (default), substitute, override, resolve and readiness.
         Storage problems are logged and never fail the request.
"""

import os
import traceback
from typing import Any, Dict, Optional

import structlog

from fundplanner import state_manager as sm
from fundplanner.model_interface.loader import load_generator
from fundplanner.model_interface.types import AllocationPlan, RiskProfile
from fundplanner.overlap import is_settled, override_weight, resolve_overlap, substitute
from fundplanner.pipeline import build_plan
from fundplanner.plan_io import error_to_string, issue_messages, make_ok_message, make_system_message
from fundplanner.results import Outcome
from fundplanner.session import PlannerSession, report_readiness

log = structlog.get_logger(__name__)

ACTIONS = ("plan", "substitute", "override", "resolve", "readiness")


class PlannerAgent:
    """High-level controller for the fund planner."""

    def __init__(self, generator=None):
        self.generator = generator
        self.trace = []

    def _generator(self):
        if self.generator is None:
            self.generator = load_generator()
        return self.generator

    def handle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Main entry point.

        parameters:
        - payload: dict – a plan_request, or {"action": ..., ...} for an editing action.
          Editing actions take the plan from payload["plan"] or from the draft named by
          draft_id/session_id.

        returns:
        - dict – planner_output document; always includes 'trace'.
        """
        draft_id = None
        try:
            step = self._plan(payload)
            self.trace.append(step)
            draft_id = step.get("draft_id")
            self._record(draft_id, {"event": "plan", "data": step})

            if step["action"] == "plan":
                out, session = build_plan(payload, self._generator())
                self._save(draft_id, session)
            else:
                out = self._edit(step["action"], payload, draft_id)

            out["trace"] = self.trace
            self._record(draft_id, {"event": "result", "data": {"action": step["action"],
                                                                 "status": out.get("status")}})
            return out

        except Exception as e:
            log.error("agent.error", error=error_to_string(e))
            tb = traceback.format_exc(limit=2)
            return {
                "status": "error",
                "messages": [make_ok_message(error_to_string(e)), make_system_message(tb)],
                "trace": self.trace,
            }

    def _plan(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Rule-based routing.

        returns:
        - dict – {"action": str, "draft_id": str|None}

        raises:
        - ValueError – unknown action.
        """
        if not isinstance(payload, dict):
            raise ValueError("Request body must be a JSON object")
        action = payload.get("action") or "plan"
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        draft_id = payload.get("draft_id") or payload.get("session_id") or os.getenv("DRAFT_ID")
        return {"action": action, "draft_id": draft_id}

    # ---------------- editing actions ---------------- #

    def _load(self, payload: Dict[str, Any], draft_id: Optional[str]) -> PlannerSession:
        """Session to act on: the request's own plan wins over a saved draft."""
        if payload.get("plan"):
            session = PlannerSession(plan=AllocationPlan.from_dict(payload["plan"]))
            if payload.get("riskProfile"):
                session.risk_profile = RiskProfile.from_dict(payload["riskProfile"])
            return session
        if draft_id:
            session = sm.load_draft(draft_id)
            if session is not None:
                return session
        raise ValueError("No plan supplied and no saved draft found")

    def _edit(self, action: str, payload: Dict[str, Any], draft_id: Optional[str]) -> Dict[str, Any]:
        session = self._load(payload, draft_id)
        if session.plan is None:
            raise ValueError("The saved draft has no portfolio yet")
        plan = session.plan
        extra: Dict[str, Any] = {}

        if action == "substitute":
            res = substitute(plan, payload.get("slot_index"), str(payload.get("name") or ""))
            out = Outcome(value=res.value.plan if res.ok else None, errors=res.errors, notices=res.notices)
            if res.ok:
                extra["overlapIntroduced"] = res.value.overlap_introduced
        elif action == "override":
            out = override_weight(plan, payload.get("slot_index"), payload.get("track"), payload.get("value"))
        elif action == "resolve":
            out = resolve_overlap(plan, session.risk_profile, self._generator())
        else:
            out = report_readiness(session)

        if out.ok and out.value is not None and out.value is not plan:
            session.set_plan(out.value)
            self._save(draft_id, session)

        result = {
            "status": "ok" if out.ok else "error",
            "messages": issue_messages(out.errors + out.notices) or [make_ok_message(f"{action} applied.")],
            "plan": session.plan.to_dict(),
            "issues": {"errors": [e.to_dict() for e in out.errors],
                       "notices": [n.to_dict() for n in out.notices]},
            "settled": is_settled(session.plan),
        }
        result.update(extra)
        log.info("agent.action", action=action, ok=out.ok, settled=result["settled"])
        return result

    # ---------------- persistence ---------------- #

    def _save(self, draft_id: Optional[str], session: PlannerSession) -> None:
        if not draft_id:
            return
        try:
            sm.save_draft(session, draft_id)
        except Exception as e:
            log.warning("draft.save_failed", draft_id=draft_id, error=str(e))

    def _record(self, draft_id: Optional[str], record: Dict[str, Any]) -> None:
        if not draft_id:
            return
        try:
            sm.append_trace(draft_id, record)
        except Exception as e:
            log.warning("draft.trace_failed", draft_id=draft_id, error=str(e))
