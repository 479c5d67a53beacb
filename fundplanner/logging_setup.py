"""
Structured logging for the planner.

PURPOSE:
- One JSON log line per event on stdout, for Lambda (CloudWatch Insights) and local runs alike.
- Engine modules log through `structlog.get_logger(__name__)`; entry points call
  `configure_logging()` once and keep the returned bound logger.

CONTEXT:
- Event names are dotted: request.received, pipeline.stage, content.timeout, overlap.resolved.
"""

from __future__ import annotations
import logging
import os
import sys

import structlog

SERVICE_NAME = "FundPlanner"


def configure_logging(level: str | None = None):
    """
    Configure structlog with a JSON renderer.

    parameters:
    - level: str|None – overrides LOG_LEVEL (default INFO).

    returns:
    - structlog.BoundLogger – bound with service and env.

    example log entry:
    {
      "event": "pipeline.stage",
      "stage": "capacity",
      "level": "info",
      "timestamp": "2026-03-02T09:14:07.512Z",
      "service": "FundPlanner",
      "env": "dev"
    }
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger().bind(service=SERVICE_NAME, env=os.getenv("ENV", "dev"))
