from __future__ import annotations

import uuid
from datetime import datetime

from app.storeapi.modules.customers.models import Customer


def initialize_customer() -> Customer:
    now = datetime.utcnow()
    return Customer(
        customer_guid=str(uuid.uuid4()),
        created_on_utc=now,
        last_activity_date_utc=now,
        active=True,
        deleted=False,
        is_system_account=False,
        is_tax_exempt=False,
        has_shopping_cart_items=False,
        requires_re_login=False,
        failed_login_attempts=0,
        registered_in_store_id=0,
    )
