#!/usr/bin/env python3
# PURPOSE: Run a plan request (or an editing action) through the planner agent from a terminal.
# CONTEXT: Same code path as the Lambda handler, without API Gateway.
#
#   python scripts/plan_cli.py request.json
#   python scripts/plan_cli.py --action substitute --draft-id local --slot 2 --name "HDFC Flexi Cap Fund"

import argparse
import json
import sys

from fundplanner.dispatcher import PlannerAgent
from fundplanner.logging_setup import configure_logging


def build_payload(args) -> dict:
    payload = {}
    if args.request:
        with open(args.request, "r", encoding="utf-8") as f:
            payload = json.load(f)
    if args.action:
        payload["action"] = args.action
    if args.draft_id:
        payload["draft_id"] = args.draft_id
    if args.slot is not None:
        payload["slot_index"] = args.slot
    if args.name:
        payload["name"] = args.name
    if args.track:
        payload["track"] = args.track
    if args.value is not None:
        payload["value"] = args.value
    return payload


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Fund planner CLI")
    p.add_argument("request", nargs="?", help="JSON request file (plan_request, or an action payload)")
    p.add_argument("--action", choices=["plan", "substitute", "override", "resolve", "readiness"])
    p.add_argument("--draft-id", help="draft to load and save")
    p.add_argument("--slot", type=int, help="0-based slot index for substitute/override")
    p.add_argument("--name", help="alternative scheme name for substitute")
    p.add_argument("--track", choices=["sip", "lumpsum"], help="track for override")
    p.add_argument("--value", type=float, help="percentage for override")
    p.add_argument("--log-level", default=None)
    args = p.parse_args(argv)

    configure_logging(args.log_level)
    out = PlannerAgent().handle(build_payload(args))
    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0 if out.get("status") == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
