# PURPOSE: Thin DynamoDB helpers for planner drafts, keyed by draft_id.
# CONTEXT: DynamoDB rejects Python floats, so documents go in with Decimals and come back
#          out as plain ints/floats. Table and region are read per call so tests can point
#          them elsewhere.

from __future__ import annotations
import json
import os
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError


def _table():
    name = os.getenv("DDB_DRAFT_TABLE", "fundplanner_drafts")
    region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "eu-west-2"
    return boto3.resource("dynamodb", region_name=region).Table(name)


def to_ddb(value: Any) -> Any:
    """JSON-compatible value -> DynamoDB-safe value (floats become Decimal)."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_ddb(value: Any) -> Any:
    """Undo to_ddb: Decimals become int when integral, else float."""
    if isinstance(value, list):
        return [from_ddb(v) for v in value]
    if isinstance(value, dict):
        return {k: from_ddb(v) for k, v in value.items()}
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def get_item(draft_id: str) -> Optional[Dict[str, Any]]:
    """
    Fetch one draft record.

    returns:
    - dict or None – the record with numbers converted back, or None if absent.

    raises:
    - RuntimeError – wraps ClientError.
    """
    try:
        res = _table().get_item(Key={"draft_id": draft_id})
    except ClientError as e:
        raise RuntimeError(f"DDB get_item failed: {e.response['Error']['Message']}") from e
    item = res.get("Item")
    return from_ddb(item) if item is not None else None


def put_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Insert or replace a full record (must include 'draft_id')."""
    try:
        _table().put_item(Item=to_ddb(item))
        return {"ok": True}
    except ClientError as e:
        raise RuntimeError(f"DDB put_item failed: {e.response['Error']['Message']}") from e


def update_json(draft_id: str, path: str, value: Any) -> Dict[str, Any]:
    """Set one top-level attribute of a record."""
    try:
        _table().update_item(
            Key={"draft_id": draft_id},
            UpdateExpression="SET #k = :v",
            ExpressionAttributeNames={"#k": path},
            ExpressionAttributeValues={":v": to_ddb(value)},
        )
        return {"ok": True}
    except ClientError as e:
        raise RuntimeError(f"DDB update_item failed: {e.response['Error']['Message']}") from e


def delete_item(draft_id: str) -> Dict[str, Any]:
    try:
        _table().delete_item(Key={"draft_id": draft_id})
        return {"ok": True}
    except ClientError as e:
        raise RuntimeError(f"DDB delete_item failed: {e.response['Error']['Message']}") from e
