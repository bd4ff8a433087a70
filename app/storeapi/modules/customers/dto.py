from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.storeapi.addresses import get_address_by_id, get_country_by_id
from app.storeapi.attributes import get_attributes_for_entity
from app.storeapi.constants import CUSTOMER_KEY_GROUP, FIRST_NAME_ATTRIBUTE, LANGUAGE_ID_ATTRIBUTE, LAST_NAME_ATTRIBUTE
from app.storeapi.models import Address
from app.storeapi.modules.customers.models import Customer
from app.storeapi.modules.customers.service import get_addresses_by_customer_id, get_customer_role_ids


def address_to_dto(a: Address) -> dict[str, Any]:
    return {
        "id": a.id,
        "first_name": a.first_name,
        "last_name": a.last_name,
        "email": a.email,
        "company": a.company,
        "country_id": a.country_id,
        "country": a.country.name if a.country is not None else None,
        "state_province": a.state_province,
        "county": a.county,
        "city": a.city,
        "address1": a.address1,
        "address2": a.address2,
        "zip_postal_code": a.zip_postal_code,
        "phone_number": a.phone_number,
        "fax_number": a.fax_number,
        "created_on_utc": a.created_on_utc,
    }


def prepare_customer_dto(s: Session, c: Customer) -> dict[str, Any]:
    """
    Customer entity -> JSON-ready dict. First/last name and language come from
    generic attributes; shopping cart items have their own endpoint and are not included.
    """
    attrs = {a.key: a.value for a in get_attributes_for_entity(s, c.id, CUSTOMER_KEY_GROUP) if a.store_id == 0}
    billing = get_address_by_id(s, c.billing_address_id)
    shipping = get_address_by_id(s, c.shipping_address_id)
    return {
        "id": c.id,
        "customer_guid": c.customer_guid,
        "username": c.username,
        "email": c.email,
        "first_name": attrs.get(FIRST_NAME_ATTRIBUTE),
        "last_name": attrs.get(LAST_NAME_ATTRIBUTE),
        "language_id": attrs.get(LANGUAGE_ID_ATTRIBUTE),
        "admin_comment": c.admin_comment,
        "is_tax_exempt": c.is_tax_exempt,
        "has_shopping_cart_items": c.has_shopping_cart_items,
        "requires_re_login": c.requires_re_login,
        "active": c.active,
        "deleted": c.deleted,
        "is_system_account": c.is_system_account,
        "system_name": c.system_name,
        "last_ip_address": c.last_ip_address,
        "created_on_utc": c.created_on_utc,
        "last_login_date_utc": c.last_login_date_utc,
        "last_activity_date_utc": c.last_activity_date_utc,
        "registered_in_store_id": c.registered_in_store_id,
        "role_ids": get_customer_role_ids(s, c),
        "billing_address": address_to_dto(billing) if billing else None,
        "shipping_address": address_to_dto(shipping) if shipping else None,
        "addresses": [address_to_dto(a) for a in get_addresses_by_customer_id(s, c.id)],
    }


def _set_country_name(s: Session, address: dict[str, Any]) -> None:
    if not address.get("country") and address.get("country_id"):
        country = get_country_by_id(s, address["country_id"])
        if country is not None:
            address["country"] = country.name


def populate_address_country_names(s: Session, dto: dict[str, Any]) -> None:
    """Fill "country" on every address dict that only carries a country_id."""
    for a in dto.get("addresses") or []:
        _set_country_name(s, a)
    if dto.get("billing_address"):
        _set_country_name(s, dto["billing_address"])
    if dto.get("shipping_address"):
        _set_country_name(s, dto["shipping_address"])
