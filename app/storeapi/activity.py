from __future__ import annotations

import logging

from flask import g, has_request_context, request
from sqlalchemy.orm import Session

from app.storeapi.localization import get_resource
from app.storeapi.models import ActivityLog

logger = logging.getLogger(__name__)


def insert_activity(
    s: Session,
    system_keyword: str,
    comment: str,
    *,
    entity_id: int | None = None,
    entity_name: str | None = None,
    client_id: str | None = None,
    request_id: str | None = None,
) -> ActivityLog:
    """
    Append-only activity log helper.
    """
    in_request = has_request_context()
    if in_request:
        rid = request_id or getattr(g, "request_id", None)
        claims = getattr(g, "api_claims", None) or {}
        client_id = client_id or claims.get("client_id")
        ip = request.remote_addr
    else:
        rid = request_id
        ip = None

    entry = ActivityLog(
        system_keyword=system_keyword,
        comment=comment,
        entity_id=entity_id,
        entity_name=entity_name,
        client_id=client_id,
        ip_address=ip,
        request_id=rid,
    )
    s.add(entry)
    logger.info("activity %s entity=%s:%s client=%s", system_keyword, entity_name, entity_id, client_id)
    return entry


def insert_customer_activity(s: Session, system_keyword: str, customer) -> ActivityLog:
    """Log a customer activity with the localized "ActivityLog.<keyword>" comment."""
    template = get_resource(s, f"ActivityLog.{system_keyword}")
    comment = template.replace("{0}", str(customer.id))
    return insert_activity(
        s,
        system_keyword,
        comment,
        entity_id=customer.id,
        entity_name="Customer",
    )
