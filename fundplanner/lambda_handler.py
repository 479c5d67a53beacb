"""
AWS Lambda handler: normalises the event, calls the planner agent, returns a schema-valid body.

PURPOSE:
- Entry point behind API Gateway.
- Every log line carries request_id and correlation_id so one request can be followed
  through CloudWatch.

CONTEXT:
- Always HTTP 200 with a planner_output body, including on errors, so API Gateway does not retry.
"""

from __future__ import annotations
import json
import time
import traceback
import uuid
from typing import Any, Dict

from jsonschema import ValidationError

from fundplanner.dispatcher import PlannerAgent
from fundplanner.logging_setup import configure_logging
from fundplanner.observability import init_observability
from fundplanner.plan_io import make_ok_message, validate_planner_output

log = configure_logging()
init_observability()


def _response(body: Dict[str, Any], status_code: int = 200) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False),
    }


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Lambda entry point.

    flow:
    1) Bind request/correlation ids.
    2) Unwrap an API Gateway proxy body when present.
    3) PlannerAgent().handle(body).
    4) Validate against planner_output; a violation becomes an error body.
    """
    t0 = time.time()
    request_id = getattr(context, "aws_request_id", None) or str(uuid.uuid4())
    correlation_id = (event.get("headers", {}) or {}).get("x-correlation-id") or str(uuid.uuid4())
    rlog = log.bind(request_id=request_id, correlation_id=correlation_id)
    rlog.info("request.received", event_type=type(event).__name__)

    body = event
    if isinstance(event, dict) and "body" in event:
        try:
            body = json.loads(event["body"]) if isinstance(event["body"], str) else (event["body"] or {})
        except json.JSONDecodeError:
            body = {}
            rlog.warning("request.body_parse_failed")

    try:
        result = PlannerAgent().handle(body)
        try:
            validate_planner_output(result)
        except ValidationError as e:
            latency_ms = round((time.time() - t0) * 1000, 1)
            rlog.error("response.schema_invalid", error=str(e), latency_ms=latency_ms)
            return _response({
                "status": "error",
                "messages": [make_ok_message(f"Planner output schema violation: {e.message}")],
                "latency_ms": latency_ms,
                "trace": result.get("trace", []),
            })

        latency_ms = round((time.time() - t0) * 1000, 1)
        rlog.info("response.success", status=result.get("status"), latency_ms=latency_ms)
        return _response(result)

    except Exception as e:
        latency_ms = round((time.time() - t0) * 1000, 1)
        rlog.error("response.error", error=str(e), traceback=traceback.format_exc(limit=2),
                   latency_ms=latency_ms)
        return _response({
            "status": "error",
            "messages": [make_ok_message(f"{type(e).__name__}: {e}")],
            "latency_ms": latency_ms,
        })
