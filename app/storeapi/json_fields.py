"""
Field-selection JSON serializer shared by the API endpoints.

Root objects look like {"customers": [...]}: one collection property whose
items can be narrowed with ?fields=id,email,first_name. Field names are
comma separated and case-insensitive; unknown names are ignored.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any

from flask import Response


def _default(o: Any) -> Any:
    if isinstance(o, datetime):
        return o.isoformat()
    if isinstance(o, date):
        return o.isoformat()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def parse_fields(fields: str | None) -> list[str]:
    return [f.strip().lower() for f in (fields or "").split(",") if f.strip()]


def filter_item(item: dict[str, Any], wanted: list[str]) -> dict[str, Any]:
    keep = set(wanted)
    return {k: v for k, v in item.items() if k.lower() in keep}


def primary_property_name(root: dict[str, Any]) -> str | None:
    for k, v in root.items():
        if isinstance(v, list):
            return k
    return None


def serialize(root: dict[str, Any], fields: str | None = "") -> str:
    if not isinstance(root, dict):
        raise TypeError("root must be a dict")

    wanted = parse_fields(fields)
    if not wanted:
        return json.dumps(root, default=_default)

    prop = primary_property_name(root)
    if prop is None:
        return json.dumps(root, default=_default)

    filtered = dict(root)
    filtered[prop] = [filter_item(item, wanted) if isinstance(item, dict) else item for item in root[prop]]
    return json.dumps(filtered, default=_default)


def raw_json_response(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="application/json")
