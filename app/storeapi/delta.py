"""
Partial-update payloads ("deltas").

A delta remembers which keys the client actually sent, coerces them to the
declared field types and merges only those onto an entity. Keys that were not
sent leave the entity untouched; keys sent as null clear the attribute.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar

from app.storeapi.constants import MAX_INT
from app.storeapi.models import Address


@dataclass(frozen=True)
class Field:
    attr: str
    kind: str  # "str" | "bool" | "int" | "datetime"
    nullable: bool = True


def parse_datetime(raw: str) -> datetime:
    v = raw.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    dt = datetime.fromisoformat(v)
    if dt.tzinfo is not None:
        # Stored as naive UTC.
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def coerce(kind: str, value: Any) -> Any:
    if value is None:
        return None
    if kind == "str":
        if isinstance(value, (dict, list)):
            raise ValueError("must be a string")
        return str(value)
    if kind == "bool":
        if isinstance(value, bool):
            return value
        raise ValueError("must be a boolean")
    if kind == "int":
        if isinstance(value, bool):
            raise ValueError("must be an integer")
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value.strip())
        if not isinstance(value, int):
            raise ValueError("must be an integer")
        if abs(value) > MAX_INT:
            raise ValueError("is out of range")
        return value
    if kind == "datetime":
        if isinstance(value, str):
            try:
                return parse_datetime(value)
            except ValueError:
                raise ValueError("must be an ISO-8601 date time") from None
        raise ValueError("must be an ISO-8601 date time")
    raise ValueError(f"unknown field kind {kind}")


class Delta:
    fields: ClassVar[dict[str, Field]] = {}

    def __init__(self, payload: dict[str, Any], *, prefix: str = ""):
        self.payload = payload
        self.values: dict[str, Any] = {}
        self.errors: dict[str, list[str]] = {}
        for key, field in self.fields.items():
            if key not in payload:
                continue
            try:
                v = coerce(field.kind, payload[key])
            except ValueError as e:
                self.add_error(f"{prefix}{key}", f"{key} {e}")
                continue
            if v is None and not field.nullable:
                self.add_error(f"{prefix}{key}", f"{key} cannot be null")
                continue
            self.values[key] = v

    def add_error(self, key: str, message: str) -> None:
        self.errors.setdefault(key, []).append(message)

    def has(self, key: str) -> bool:
        return key in self.values

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    @property
    def changed_fields(self) -> list[str]:
        return list(self.values.keys())

    def merge(self, entity: Any) -> Any:
        for key in self.changed_fields:
            setattr(entity, self.fields[key].attr, self.values[key])
        return entity


class AddressDelta(Delta):
    fields = {
        "first_name": Field("first_name", "str"),
        "last_name": Field("last_name", "str"),
        "email": Field("email", "str"),
        "company": Field("company", "str"),
        "country_id": Field("country_id", "int"),
        "state_province": Field("state_province", "str"),
        "county": Field("county", "str"),
        "city": Field("city", "str"),
        "address1": Field("address1", "str"),
        "address2": Field("address2", "str"),
        "zip_postal_code": Field("zip_postal_code", "str"),
        "phone_number": Field("phone_number", "str"),
        "fax_number": Field("fax_number", "str"),
        "created_on_utc": Field("created_on_utc", "datetime"),
    }

    def __init__(self, payload: dict[str, Any], *, prefix: str = ""):
        super().__init__(payload, prefix=prefix)
        self.id = 0
        raw_id = payload.get("id")
        if raw_id is not None:
            try:
                self.id = coerce("int", raw_id)
            except ValueError as e:
                self.add_error(f"{prefix}id", f"id {e}")

    @property
    def created_on_utc(self) -> datetime | None:
        return self.values.get("created_on_utc")

    def to_entity(self) -> Address:
        a = Address()
        self.merge(a)
        return a
