from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from app.storeapi.delta import AddressDelta
from app.storeapi.models import Address, Country


def get_address_by_id(s: Session, address_id: int | None) -> Address | None:
    if not address_id or address_id <= 0:
        return None
    return s.get(Address, address_id)


def insert_address(s: Session, address: Address) -> Address:
    if address.created_on_utc is None:
        address.created_on_utc = datetime.utcnow()
    s.add(address)
    s.flush()
    return address


def update_address(s: Session, address: Address) -> Address:
    s.flush()
    return address


def merge_address(s: Session, delta: AddressDelta, address: Address) -> Address:
    """Apply the sent fields of an address payload onto an existing address."""
    delta.merge(address)
    return update_address(s, address)


def get_country_by_id(s: Session, country_id: int | None) -> Country | None:
    if not country_id or country_id <= 0:
        return None
    return s.get(Country, country_id)


def clone_address(address: Address) -> Address:
    """Detached copy of an address without id, ready to insert for another owner."""
    copy = Address()
    for column in Address.__table__.columns:
        if column.key != "id":
            setattr(copy, column.key, getattr(address, column.key))
    return copy
