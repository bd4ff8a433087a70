"""
Binding and validation of {"customer": {...}} request bodies.

bind_customer_delta() turns the raw body into a CustomerDelta (type errors
included); validate_customer_delta() adds the rules that need the database
(roles, countries). Both raise ApiError(422) with every problem found.
"""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy.orm import Session

from app.storeapi.addresses import get_address_by_id, get_country_by_id
from app.storeapi.constants import MAX_INT, ROLE_GUESTS, ROLE_REGISTERED
from app.storeapi.delta import AddressDelta, Delta, Field
from app.storeapi.errors import ApiError
from app.storeapi.modules.customers.models import CustomerAddressMapping, CustomerRole

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ROOT_PROPERTY = "customer"

REQUIRED_NEW_ADDRESS_FIELDS = ("first_name", "last_name", "email", "address1", "city", "country_id")


class CustomerDelta(Delta):
    fields = {
        "username": Field("username", "str"),
        "email": Field("email", "str"),
        "admin_comment": Field("admin_comment", "str"),
        "is_tax_exempt": Field("is_tax_exempt", "bool", nullable=False),
        "has_shopping_cart_items": Field("has_shopping_cart_items", "bool", nullable=False),
        "active": Field("active", "bool", nullable=False),
        "requires_re_login": Field("requires_re_login", "bool", nullable=False),
        "registered_in_store_id": Field("registered_in_store_id", "int", nullable=False),
        "last_ip_address": Field("last_ip_address", "str"),
    }

    def __init__(self, payload: dict[str, Any]):
        super().__init__(payload)
        self.id = 0
        self.first_name: str | None = None
        self.last_name: str | None = None
        self.language_id: str | None = None
        self.password: str | None = None
        self.role_ids: list[int] = []
        self.addresses: list[AddressDelta] = []
        self.billing_address: AddressDelta | None = None
        self.shipping_address: AddressDelta | None = None

        for name in ("first_name", "last_name", "password"):
            v = payload.get(name)
            if v is not None and not isinstance(v, str):
                self.add_error(name, f"{name} must be a string")
                continue
            setattr(self, name, v)

        lang = payload.get("language_id")
        if lang is not None:
            if isinstance(lang, (dict, list, bool)):
                self.add_error("language_id", "language_id must be a string")
            else:
                self.language_id = str(lang)

        raw_roles = payload.get("role_ids")
        if raw_roles is not None:
            if not isinstance(raw_roles, list) or any(isinstance(r, bool) or not isinstance(r, int) or abs(r) > MAX_INT for r in raw_roles):
                self.add_error("role_ids", "role_ids must be a list of integers")
            else:
                self.role_ids = list(raw_roles)

        raw_addresses = payload.get("addresses")
        if raw_addresses is not None:
            if not isinstance(raw_addresses, list):
                self.add_error("addresses", "addresses must be a list")
            else:
                for i, a in enumerate(raw_addresses):
                    d = self._address(a, f"addresses[{i}].")
                    if d is not None:
                        self.addresses.append(d)

        for name in ("billing_address", "shipping_address"):
            raw = payload.get(name)
            if raw is not None:
                setattr(self, name, self._address(raw, f"{name}."))

    def _address(self, raw: Any, prefix: str) -> AddressDelta | None:
        if not isinstance(raw, dict):
            self.add_error(prefix.rstrip("."), "address must be an object")
            return None
        d = AddressDelta(raw, prefix=prefix)
        for k, msgs in d.errors.items():
            for m in msgs:
                self.add_error(k, m)
        return d


def bind_customer_delta(body: Any, *, route_id: int | None = None) -> CustomerDelta:
    if not isinstance(body, dict):
        raise ApiError.single(422, "json", "Invalid JSON body")
    payload = body.get(ROOT_PROPERTY)
    if not isinstance(payload, dict):
        raise ApiError.single(422, ROOT_PROPERTY, f"Root property '{ROOT_PROPERTY}' is required and must be an object")

    delta = CustomerDelta(payload)
    if route_id is not None:
        delta.id = route_id
    if delta.errors:
        raise ApiError(422, delta.errors)
    return delta


def _mapped_to_other_customer(s: Session, address_id: int, customer_id: int) -> bool:
    return (
        s.query(CustomerAddressMapping)
        .filter(CustomerAddressMapping.address_id == address_id)
        .filter(CustomerAddressMapping.customer_id != customer_id)
        .first()
        is not None
    )


def _validate_address(s: Session, d: AddressDelta, prefix: str, err: ApiError, customer_id: int) -> None:
    if d.id < 0:
        err.add(f"{prefix}id", "invalid id")
    elif d.id > 0 and get_address_by_id(s, d.id) is None:
        err.add(f"{prefix}id", "address not found")
    elif d.id > 0 and customer_id > 0 and _mapped_to_other_customer(s, d.id, customer_id):
        err.add(f"{prefix}id", "address belongs to another customer")
    if d.id == 0:
        for f in REQUIRED_NEW_ADDRESS_FIELDS:
            v = d.get(f)
            if v is None or (isinstance(v, str) and not v.strip()):
                err.add(f"{prefix}{f}", f"{f} is required")
    country_id = d.get("country_id")
    if country_id is not None and get_country_by_id(s, country_id) is None:
        err.add(f"{prefix}country_id", "country not found")
    email = d.get("email")
    if email and not EMAIL_RE.match(email.strip()):
        err.add(f"{prefix}email", "email is not valid")


def validate_customer_delta(s: Session, delta: CustomerDelta, *, creating: bool) -> None:
    err = ApiError(422)

    if creating or delta.has("email"):
        email = (delta.get("email") or "").strip()
        if not email:
            err.add("email", "email is required")
        elif not EMAIL_RE.match(email):
            err.add("email", "email is not valid")

    if creating and not delta.role_ids:
        err.add("role_ids", "role_ids are required")
    if delta.role_ids:
        roles = s.query(CustomerRole).filter(CustomerRole.id.in_(delta.role_ids)).all()
        found = {r.id for r in roles}
        missing = [rid for rid in delta.role_ids if rid not in found]
        if missing:
            err.add("role_ids", f"invalid role ids: {', '.join(str(m) for m in missing)}")
        system_names = {r.system_name for r in roles}
        if ROLE_GUESTS in system_names and ROLE_REGISTERED in system_names:
            err.add("role_ids", "The customer cannot be in both 'Guests' and 'Registered' customer roles")

    for i, a in enumerate(delta.addresses):
        _validate_address(s, a, f"addresses[{i}].", err, delta.id)
    if delta.billing_address is not None:
        _validate_address(s, delta.billing_address, "billing_address.", err, delta.id)
    if delta.shipping_address is not None:
        _validate_address(s, delta.shipping_address, "shipping_address.", err, delta.id)

    if err.errors:
        raise err
