"""
CUSTOMER SERVICES
=================

Two layers live here:

Layer                 | Used by            | Notes
----------------------|--------------------|------------------------------------------
customer api service  | GET endpoints      | Paged/filtered queries returning DTO dicts
customer service      | write endpoints    | Insert/update/soft-delete, role + address
                      |                    | mappings, password rows, generic attributes

The listing/count/search base query excludes deleted customers and system
accounts (built-in search engine / background task accounts).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Query, Session

from app.storeapi.attributes import save_attribute
from app.storeapi.constants import (
    CUSTOMER_KEY_GROUP,
    DEFAULT_ORDER,
    DELETED_SUFFIX,
    FIRST_NAME_ATTRIBUTE,
    LANGUAGE_ID_ATTRIBUTE,
    LAST_NAME_ATTRIBUTE,
    MAX_OFFSET,
    PASSWORD_FORMAT_CLEAR,
    PASSWORD_FORMAT_ENCRYPTED,
    PASSWORD_FORMAT_HASHED,
)
from app.storeapi.encryption import create_password_hash, create_salt_key, encrypt_text
from app.storeapi.localization import get_language_by_id
from app.storeapi.models import Address, GenericAttribute
from app.storeapi.modules.customers.models import (
    Customer,
    CustomerAddressMapping,
    CustomerPassword,
    CustomerRole,
    CustomerRoleMapping,
)

# ============================================================================
# Customer API service (read side)
# ============================================================================

SEARCHABLE_COLUMNS = {
    "email": Customer.email,
    "username": Customer.username,
    "admin_comment": Customer.admin_comment,
    "system_name": Customer.system_name,
    "last_ip_address": Customer.last_ip_address,
}

SEARCHABLE_ATTRIBUTES = {
    "first_name": FIRST_NAME_ATTRIBUTE,
    "last_name": LAST_NAME_ATTRIBUTE,
}

ORDERABLE_COLUMNS = {
    "id": Customer.id,
    "email": Customer.email,
    "username": Customer.username,
    "created_on_utc": Customer.created_on_utc,
    "last_activity_date_utc": Customer.last_activity_date_utc,
    "last_login_date_utc": Customer.last_login_date_utc,
}

# Only known keys start a new term, so values may contain "word:" (urls, times).
_SEARCH_KEY_RE = re.compile(
    r"(?:^|\s)(" + "|".join(sorted({*SEARCHABLE_COLUMNS, *SEARCHABLE_ATTRIBUTES}, key=len, reverse=True)) + r"):",
    re.IGNORECASE,
)


def _customers_query(s: Session) -> Query:
    return (
        s.query(Customer)
        .filter(Customer.deleted.is_(False))
        .filter(Customer.is_system_account.is_(False))
    )


def _page(q: Query, page: int, limit: int) -> Query:
    offset = min((page - 1) * limit, MAX_OFFSET)
    return q.offset(offset).limit(limit)


def get_customers(
    s: Session,
    *,
    created_at_min: datetime | None = None,
    created_at_max: datetime | None = None,
    limit: int,
    page: int,
    since_id: int = 0,
) -> list[Customer]:
    q = _customers_query(s)
    if created_at_min is not None:
        q = q.filter(Customer.created_on_utc > created_at_min)
    if created_at_max is not None:
        q = q.filter(Customer.created_on_utc < created_at_max)
    if since_id > 0:
        q = q.filter(Customer.id > since_id)
    return _page(q.order_by(Customer.id.asc()), page, limit).all()


def get_customers_dtos(
    s: Session,
    created_at_min: datetime | None,
    created_at_max: datetime | None,
    limit: int,
    page: int,
    since_id: int,
) -> list[dict[str, Any]]:
    from app.storeapi.modules.customers.dto import prepare_customer_dto

    customers = get_customers(
        s,
        created_at_min=created_at_min,
        created_at_max=created_at_max,
        limit=limit,
        page=page,
        since_id=since_id,
    )
    return [prepare_customer_dto(s, c) for c in customers]


def get_customers_count(s: Session) -> int:
    return _customers_query(s).count()


def get_customer_entity_by_id(s: Session, customer_id: int) -> Customer | None:
    if customer_id <= 0:
        return None
    return s.query(Customer).filter(Customer.id == customer_id, Customer.deleted.is_(False)).one_or_none()


def get_customer_by_id(s: Session, customer_id: int) -> dict[str, Any] | None:
    from app.storeapi.modules.customers.dto import prepare_customer_dto

    c = get_customer_entity_by_id(s, customer_id)
    return prepare_customer_dto(s, c) if c else None


def parse_search_query(query: str | None) -> dict[str, str]:
    """
    Parse "first_name:John last_name:Van Dyke email:acme" into
    {"first_name": "John", "last_name": "Van Dyke", "email": "acme"}.
    Values run until the next searchable "key:"; keys are lower-cased; empty values are dropped.
    """
    text = (query or "").strip()
    if not text:
        return {}
    parts = _SEARCH_KEY_RE.split(text)
    # parts = [prefix, key1, value1, key2, value2, ...]
    result: dict[str, str] = {}
    for i in range(1, len(parts) - 1, 2):
        key = parts[i].strip().lower()
        value = parts[i + 1].strip()
        if key and value:
            result[key] = value
    return result


def _order_by(q: Query, order: str | None) -> Query:
    tokens = (order or DEFAULT_ORDER).strip().split()
    column = ORDERABLE_COLUMNS.get(tokens[0].lower() if tokens else DEFAULT_ORDER, Customer.id)
    descending = len(tokens) > 1 and tokens[1].lower() == "desc"
    if descending:
        return q.order_by(column.desc(), Customer.id.desc())
    return q.order_by(column.asc(), Customer.id.asc())


def search(s: Session, query: str = "", order: str = DEFAULT_ORDER, page: int = 1, limit: int = 50) -> list[dict[str, Any]]:
    from app.storeapi.modules.customers.dto import prepare_customer_dto

    params = parse_search_query(query)
    q = _customers_query(s)
    for key, value in params.items():
        needle = value.lower()
        if key in SEARCHABLE_COLUMNS:
            col = SEARCHABLE_COLUMNS[key]
            q = q.filter((func.lower(col) == needle) | func.lower(col).contains(needle, autoescape=True))
        elif key in SEARCHABLE_ATTRIBUTES:
            sub = (
                select(GenericAttribute.entity_id)
                .where(GenericAttribute.key_group == CUSTOMER_KEY_GROUP)
                .where(GenericAttribute.key == SEARCHABLE_ATTRIBUTES[key])
                .where(func.lower(GenericAttribute.value).contains(needle, autoescape=True))
            )
            q = q.filter(Customer.id.in_(sub))
        # Unknown keys are ignored.
    customers = _page(_order_by(q, order), page, limit).all()
    return [prepare_customer_dto(s, c) for c in customers]


# ============================================================================
# Customer service (write side)
# ============================================================================


def get_customer_by_email(s: Session, email: str | None) -> Customer | None:
    """Non-deleted customer registered with `email` (case-insensitive)."""
    e = (email or "").strip().lower()
    if not e:
        return None
    return (
        s.query(Customer)
        .filter(func.lower(Customer.email) == e)
        .filter(Customer.deleted.is_(False))
        .order_by(Customer.id.asc())
        .first()
    )


def insert_customer(s: Session, customer: Customer) -> Customer:
    s.add(customer)
    s.flush()
    return customer


def update_customer(s: Session, customer: Customer) -> Customer:
    s.flush()
    return customer


def delete_customer(s: Session, customer: Customer, *, suffix_deleted: bool = False) -> None:
    """
    Soft delete. Rows stay for order history; with suffix_deleted the email and
    username are freed up by appending "-DELETED".
    """
    if customer.is_system_account:
        raise ValueError(f"System customer account ({customer.system_name}) could not be deleted")
    customer.deleted = True
    if suffix_deleted:
        if customer.email:
            customer.email += DELETED_SUFFIX
        if customer.username:
            customer.username += DELETED_SUFFIX
    s.flush()


# ---------- Roles ----------


def get_all_customer_roles(s: Session, show_hidden: bool = False) -> list[CustomerRole]:
    q = s.query(CustomerRole)
    if not show_hidden:
        q = q.filter(CustomerRole.active.is_(True))
    return q.order_by(CustomerRole.name.asc(), CustomerRole.id.asc()).all()


def get_customer_role_ids(s: Session, customer: Customer) -> list[int]:
    rows = (
        s.query(CustomerRoleMapping.customer_role_id)
        .filter(CustomerRoleMapping.customer_id == customer.id)
        .order_by(CustomerRoleMapping.customer_role_id.asc())
        .all()
    )
    return [r[0] for r in rows]


def is_in_customer_role(s: Session, customer: Customer, system_name: str) -> bool:
    if not system_name:
        return False
    return (
        s.query(CustomerRoleMapping)
        .join(CustomerRole, CustomerRole.id == CustomerRoleMapping.customer_role_id)
        .filter(CustomerRoleMapping.customer_id == customer.id)
        .filter(CustomerRole.system_name == system_name)
        .first()
        is not None
    )


def add_customer_role_mapping(s: Session, customer: Customer, role: CustomerRole) -> None:
    s.add(CustomerRoleMapping(customer_id=customer.id, customer_role_id=role.id))
    s.flush()


def remove_customer_role_mapping(s: Session, customer: Customer, role: CustomerRole) -> None:
    (
        s.query(CustomerRoleMapping)
        .filter(CustomerRoleMapping.customer_id == customer.id)
        .filter(CustomerRoleMapping.customer_role_id == role.id)
        .delete(synchronize_session=False)
    )


def add_valid_roles(s: Session, customer: Customer, role_ids: list[int]) -> None:
    """
    Sync the customer's roles with `role_ids`: map sent roles the customer is not
    in yet, unmap roles that were not sent. Roles without a system name are skipped.
    """
    wanted = set(role_ids)
    for role in get_all_customer_roles(s, show_hidden=True):
        if not role.system_name:
            continue
        if role.id in wanted:
            if not is_in_customer_role(s, customer, role.system_name):
                add_customer_role_mapping(s, customer, role)
        elif is_in_customer_role(s, customer, role.system_name):
            remove_customer_role_mapping(s, customer, role)


# ---------- Addresses ----------


def get_addresses_by_customer_id(s: Session, customer_id: int) -> list[Address]:
    return (
        s.query(Address)
        .join(CustomerAddressMapping, CustomerAddressMapping.address_id == Address.id)
        .filter(CustomerAddressMapping.customer_id == customer_id)
        .order_by(Address.id.asc())
        .all()
    )


def get_customer_address(s: Session, customer_id: int, address_id: int | None) -> Address | None:
    """The address, only when it is mapped to the customer."""
    if not address_id:
        return None
    return (
        s.query(Address)
        .join(CustomerAddressMapping, CustomerAddressMapping.address_id == Address.id)
        .filter(CustomerAddressMapping.customer_id == customer_id)
        .filter(Address.id == address_id)
        .one_or_none()
    )


def get_customer_billing_address(s: Session, customer: Customer) -> Address | None:
    return get_customer_address(s, customer.id, customer.billing_address_id)


def get_customer_shipping_address(s: Session, customer: Customer) -> Address | None:
    return get_customer_address(s, customer.id, customer.shipping_address_id)


def insert_customer_address(s: Session, customer: Customer, address: Address | None) -> None:
    if address is None:
        return
    exists = (
        s.query(CustomerAddressMapping)
        .filter(CustomerAddressMapping.customer_id == customer.id)
        .filter(CustomerAddressMapping.address_id == address.id)
        .first()
    )
    if exists is None:
        s.add(CustomerAddressMapping(customer_id=customer.id, address_id=address.id))
        s.flush()


# ---------- Passwords ----------


def insert_customer_password(s: Session, password: CustomerPassword) -> CustomerPassword:
    s.add(password)
    s.flush()
    return password


def get_current_password(s: Session, customer_id: int) -> CustomerPassword | None:
    return (
        s.query(CustomerPassword)
        .filter(CustomerPassword.customer_id == customer_id)
        .order_by(CustomerPassword.created_on_utc.desc(), CustomerPassword.id.desc())
        .first()
    )


def add_password(
    s: Session,
    customer: Customer,
    new_password: str,
    *,
    password_format: str,
    hashed_password_format: str = "SHA512",
    encryption_key: str = "",
) -> CustomerPassword:
    cp = CustomerPassword(
        customer_id=customer.id,
        password_format=password_format,
        created_on_utc=datetime.utcnow(),
    )
    if password_format == PASSWORD_FORMAT_CLEAR:
        cp.password = new_password
    elif password_format == PASSWORD_FORMAT_ENCRYPTED:
        cp.password = encrypt_text(new_password, encryption_key)
    elif password_format == PASSWORD_FORMAT_HASHED:
        salt = create_salt_key(5)
        cp.password_salt = salt
        cp.password = create_password_hash(new_password, salt, hashed_password_format)
    else:
        raise ValueError(f"Unsupported password format: {password_format}")

    insert_customer_password(s, cp)
    update_customer(s, customer)
    return cp


# ---------- Generic attributes ----------


def save_first_and_last_name(s: Session, customer: Customer, first_name: str | None, last_name: str | None) -> None:
    # None means "not sent": leave the stored value alone.
    if first_name is not None:
        save_attribute(s, customer.id, CUSTOMER_KEY_GROUP, FIRST_NAME_ATTRIBUTE, first_name)
    if last_name is not None:
        save_attribute(s, customer.id, CUSTOMER_KEY_GROUP, LAST_NAME_ATTRIBUTE, last_name)


def save_language(s: Session, customer: Customer, language_id: str | None) -> bool:
    """Store LanguageId only when it is an integer naming an existing language."""
    raw = (language_id or "").strip()
    if not raw:
        return False
    try:
        lid = int(raw)
    except ValueError:
        return False
    if get_language_by_id(s, lid) is None:
        return False
    save_attribute(s, customer.id, CUSTOMER_KEY_GROUP, LANGUAGE_ID_ATTRIBUTE, lid)
    return True
