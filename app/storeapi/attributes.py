from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from app.storeapi.models import GenericAttribute


def get_attributes_for_entity(s: Session, entity_id: int, key_group: str) -> list[GenericAttribute]:
    return (
        s.query(GenericAttribute)
        .filter(GenericAttribute.entity_id == entity_id)
        .filter(GenericAttribute.key_group == key_group)
        .order_by(GenericAttribute.id.asc())
        .all()
    )


def get_attribute(s: Session, entity_id: int, key_group: str, key: str, *, store_id: int = 0) -> str | None:
    attr = (
        s.query(GenericAttribute)
        .filter(GenericAttribute.entity_id == entity_id)
        .filter(GenericAttribute.key_group == key_group)
        .filter(GenericAttribute.key == key)
        .filter(GenericAttribute.store_id == store_id)
        .first()
    )
    return attr.value if attr else None


def save_attribute(s: Session, entity_id: int, key_group: str, key: str, value: object, *, store_id: int = 0) -> None:
    """
    Insert, update or delete (empty value) a generic attribute.
    """
    v = "" if value is None else str(value)
    existing = (
        s.query(GenericAttribute)
        .filter(GenericAttribute.entity_id == entity_id)
        .filter(GenericAttribute.key_group == key_group)
        .filter(GenericAttribute.key == key)
        .filter(GenericAttribute.store_id == store_id)
        .first()
    )
    now = datetime.utcnow()
    if existing is not None:
        if not v:
            s.delete(existing)
        else:
            existing.value = v
            existing.created_or_updated_date_utc = now
        s.flush()
        return

    if not v:
        return
    s.add(
        GenericAttribute(
            entity_id=entity_id,
            key_group=key_group,
            key=key,
            value=v,
            store_id=store_id,
            created_or_updated_date_utc=now,
        )
    )
    s.flush()
