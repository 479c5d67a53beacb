"""
Draft persistence for planner sessions.

PURPOSE:
- Save and resume a PlannerSession as a draft document in DynamoDB.
- Keep a short trace of agent actions next to the draft.
- Every record carries a TTL so abandoned drafts expire on their own.

CONTEXT:
- A single-user deployment uses the fixed DEFAULT_DRAFT_ID; multi-user callers pass their own id.
- Callers treat storage errors as non-fatal; this module lets them propagate as RuntimeError.
"""

from __future__ import annotations
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fundplanner.plan_io import validate_draft
from fundplanner.session import PlannerSession
from fundplanner.tools import dynamodb_tool as ddb

DEFAULT_DRAFT_ID = "fundplanner_draft_v2"
DEFAULT_TTL_DAYS = int(os.getenv("DRAFT_TTL_DAYS", "30"))
MAX_TRACE = 50


def _ttl_epoch(days: int = DEFAULT_TTL_DAYS) -> int:
    """Unix seconds `days` from now, for the DynamoDB TTL attribute."""
    return int((datetime.now(timezone.utc) + timedelta(days=days)).timestamp())


def save_draft(session: PlannerSession, draft_id: str = DEFAULT_DRAFT_ID) -> Dict[str, Any]:
    """
    Persist the session, replacing any previous draft under the same id.

    returns:
    - dict – {"ok": True, "draft_id": ...}.

    raises:
    - jsonschema.ValidationError – the serialised session doesn't match the draft schema.
    - RuntimeError – DynamoDB failure.
    """
    draft = session.to_draft()
    validate_draft(draft)
    existing = ddb.get_item(draft_id) or {}
    item = {
        "draft_id": draft_id,
        "draft": draft,
        "trace": existing.get("trace", []),
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "ttl_epoch": _ttl_epoch(),
    }
    ddb.put_item(item)
    return {"ok": True, "draft_id": draft_id}


def has_draft(draft_id: str = DEFAULT_DRAFT_ID) -> bool:
    item = ddb.get_item(draft_id)
    return bool(item and item.get("draft"))


def load_draft(draft_id: str = DEFAULT_DRAFT_ID) -> Optional[PlannerSession]:
    """Resume a session, or None when no draft exists under the id."""
    item = ddb.get_item(draft_id)
    if not item or not item.get("draft"):
        return None
    return PlannerSession.from_draft(item["draft"])


def clear_draft(draft_id: str = DEFAULT_DRAFT_ID) -> Dict[str, Any]:
    return ddb.delete_item(draft_id)


def append_trace(draft_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Append an event to the draft's trace, keeping only the newest MAX_TRACE entries.

    notes:
    - Read-modify-write; concurrent writers to the same draft can drop entries.
    """
    item = ddb.get_item(draft_id)
    if item is None:
        ddb.put_item({"draft_id": draft_id, "draft": None, "trace": [record], "ttl_epoch": _ttl_epoch()})
        return {"ok": True}
    trace: List[Dict[str, Any]] = item.get("trace") or []
    trace.append(record)
    return ddb.update_json(draft_id, "trace", trace[-MAX_TRACE:])
