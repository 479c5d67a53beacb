"""
Optional AWS X-Ray tracing.

PURPOSE:
- Turn on X-Ray when USE_XRAY=1 and wrap each planner stage in a subsegment.
- Without the flag, or without an active recorder, everything here is a no-op.
"""
from __future__ import annotations
import os

import structlog

log = structlog.get_logger(__name__)


def init_observability():
    """
    Configure the X-Ray recorder and patch boto3.

    returns:
    - xray_recorder when enabled and configured, else None.
    """
    if os.getenv("USE_XRAY", "0") != "1":
        return None
    try:
        from aws_xray_sdk.core import patch, xray_recorder
        xray_recorder.configure(service=os.getenv("XRAY_SERVICE_NAME", "FundPlanner"),
                                context_missing="LOG_ERROR")
        patch(["boto3", "botocore"])
        return xray_recorder
    except Exception as e:
        # Tracing must never block a plan request.
        log.warning("xray.init_failed", error=str(e))
        return None


class xray_segment:
    """
    Context manager for a named subsegment around one pipeline stage.

    >>> with xray_segment("capacity"):
    ...     capacity = compute_capacity(snapshot)

    Errors raised inside the block propagate; tracing errors do not.
    """

    def __init__(self, name: str):
        self.name = name
        self.sub = None

    def __enter__(self):
        if os.getenv("USE_XRAY", "0") != "1":
            return self
        try:
            from aws_xray_sdk.core import xray_recorder
            self.sub = xray_recorder.begin_subsegment(self.name)
        except Exception:
            self.sub = None
        return self

    def annotate(self, key: str, value):
        if self.sub is not None:
            try:
                self.sub.put_annotation(key, value)
            except Exception:
                pass
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.sub is None:
            return False
        try:
            from aws_xray_sdk.core import xray_recorder
            if exc is not None:
                self.sub.add_exception(exc, [])
            xray_recorder.end_subsegment()
        except Exception:
            pass
        return False
