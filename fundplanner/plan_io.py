"""
Schema validation and message helpers for planner requests, responses and drafts.

PURPOSE: Check every payload crossing the package boundary against a Draft 7 JSON schema
         and format failures with the JSON path of the offending field.
CONTEXT: Schemas ship inside the package (fundplanner/schemas) and are read once per process.
"""

from __future__ import annotations

import json
import pathlib
from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft7Validator, ValidationError

SCHEMA_DIR = pathlib.Path(__file__).resolve().parent / "schemas"


# -------------------- Schema loading -------------------- #

@lru_cache(maxsize=16)
def load_schema(name: str) -> Dict[str, Any]:
    """
    Load a bundled schema by short name ("plan_request") or by file path.

    raises:
    - FileNotFoundError – no such schema.
    """
    p = pathlib.Path(name)
    if not p.suffix:
        p = SCHEMA_DIR / f"{name}.schema.json"
    if not p.exists():
        raise FileNotFoundError(f"Schema not found at: {p}")
    return json.loads(p.read_text(encoding="utf-8"))


# -------------------- Validation -------------------- #

def validate_with_schema(instance: Any, schema: Dict[str, Any]) -> None:
    """Raise the first jsonschema.ValidationError found (best match)."""
    Draft7Validator(schema).validate(instance)


def schema_errors(instance: Any, name: str) -> List[str]:
    """Every violation against a bundled schema, formatted with its JSON path."""
    validator = Draft7Validator(load_schema(name))
    errs = sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path))
    return [error_to_string(e) for e in errs]


def validate_plan_request(payload: Dict[str, Any]) -> None:
    validate_with_schema(payload, load_schema("plan_request"))


def validate_planner_output(output: Dict[str, Any]) -> None:
    validate_with_schema(output, load_schema("planner_output"))


def validate_draft(draft: Dict[str, Any]) -> None:
    validate_with_schema(draft, load_schema("draft"))


# -------------------- Messages -------------------- #

def make_ok_message(content: str) -> Dict[str, str]:
    return {"role": "assistant", "content": str(content)}


def make_system_message(content: str) -> Dict[str, str]:
    return {"role": "system", "content": str(content)}


def issue_messages(issues) -> List[Dict[str, str]]:
    """One system message per Issue, suggestion appended when present."""
    out = []
    for i in issues:
        text = f"[{i.kind.value}] {i.message}"
        if i.suggestion:
            text += f" Suggestion: {i.suggestion}"
        out.append(make_system_message(text))
    return out


def error_to_string(err: Exception) -> str:
    """
    Readable one-line error; ValidationErrors carry the JSON path, e.g.
    "-5 is less than the minimum of 0 at $.financial.monthlyIncome".
    """
    if isinstance(err, ValidationError):
        path = "$" + "".join(f"[{p!r}]" if isinstance(p, int) else f".{p}" for p in err.absolute_path)
        return f"{err.message} at {path}"
    return f"{type(err).__name__}: {err}"


__all__ = [
    "load_schema",
    "validate_with_schema",
    "schema_errors",
    "validate_plan_request",
    "validate_planner_output",
    "validate_draft",
    "make_ok_message",
    "make_system_message",
    "issue_messages",
    "error_to_string",
]
