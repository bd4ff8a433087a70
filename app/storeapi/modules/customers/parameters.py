"""
Query-string binding for the GET endpoints.

Binding failures (non-numeric limit, unparseable dates, ...) are collected and
raised together as a 400, before any range checks run.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from werkzeug.datastructures import MultiDict

from app.storeapi.constants import DEFAULT_LIMIT, DEFAULT_ORDER, DEFAULT_PAGE_VALUE, DEFAULT_SINCE_ID, MAX_INT
from app.storeapi.delta import parse_datetime
from app.storeapi.errors import ApiError


@dataclass(frozen=True)
class CustomersParameters:
    limit: int = DEFAULT_LIMIT
    page: int = DEFAULT_PAGE_VALUE
    since_id: int = DEFAULT_SINCE_ID
    created_at_min: datetime | None = None
    created_at_max: datetime | None = None
    fields: str = ""


@dataclass(frozen=True)
class CustomersSearchParameters:
    query: str = ""
    order: str = DEFAULT_ORDER
    page: int = DEFAULT_PAGE_VALUE
    limit: int = DEFAULT_LIMIT
    fields: str = ""


class _Binder:
    def __init__(self, args: MultiDict):
        self.args = args
        self.error = ApiError(400)

    def int_arg(self, name: str, default: int) -> int:
        raw = (self.args.get(name) or "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            self.error.add(name, f"Invalid {name} parameter")
            return default
        if abs(value) > MAX_INT:
            self.error.add(name, f"Invalid {name} parameter")
            return default
        return value

    def datetime_arg(self, name: str) -> datetime | None:
        raw = (self.args.get(name) or "").strip()
        if not raw:
            return None
        try:
            return parse_datetime(raw)
        except ValueError:
            self.error.add(name, f"Invalid {name} parameter")
            return None

    def str_arg(self, name: str, default: str = "") -> str:
        return (self.args.get(name) or default).strip()

    def raise_if_invalid(self) -> None:
        if self.error.errors:
            raise self.error


def bind_customers_parameters(args: MultiDict) -> CustomersParameters:
    b = _Binder(args)
    params = CustomersParameters(
        limit=b.int_arg("limit", DEFAULT_LIMIT),
        page=b.int_arg("page", DEFAULT_PAGE_VALUE),
        since_id=b.int_arg("since_id", DEFAULT_SINCE_ID),
        created_at_min=b.datetime_arg("created_at_min"),
        created_at_max=b.datetime_arg("created_at_max"),
        fields=b.str_arg("fields"),
    )
    b.raise_if_invalid()
    return params


def bind_search_parameters(args: MultiDict) -> CustomersSearchParameters:
    b = _Binder(args)
    params = CustomersSearchParameters(
        query=b.str_arg("query"),
        order=b.str_arg("order", DEFAULT_ORDER) or DEFAULT_ORDER,
        page=b.int_arg("page", DEFAULT_PAGE_VALUE),
        limit=b.int_arg("limit", DEFAULT_LIMIT),
        fields=b.str_arg("fields"),
    )
    b.raise_if_invalid()
    return params
