from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.storeapi.models import Store
from app.storeapi.modules.customers.models import NewsLetterSubscription


def get_all_stores(s: Session) -> list[Store]:
    return s.query(Store).order_by(Store.id.asc()).all()


def get_subscription_by_email_and_store_id(s: Session, email: str | None, store_id: int) -> NewsLetterSubscription | None:
    e = (email or "").strip().lower()
    if not e:
        return None
    return (
        s.query(NewsLetterSubscription)
        .filter(func.lower(NewsLetterSubscription.email) == e)
        .filter(NewsLetterSubscription.store_id == store_id)
        .first()
    )


def delete_subscription(s: Session, subscription: NewsLetterSubscription) -> None:
    s.delete(subscription)


def remove_subscriptions_for_email(s: Session, email: str | None) -> int:
    """Remove the subscription for `email` in every store. Returns how many were removed."""
    removed = 0
    for store in get_all_stores(s):
        sub = get_subscription_by_email_and_store_id(s, email, store.id)
        if sub is not None:
            delete_subscription(s, sub)
            removed += 1
    return removed
