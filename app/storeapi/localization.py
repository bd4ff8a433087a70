from __future__ import annotations

from sqlalchemy.orm import Session

from app.storeapi.models import Language, LocaleStringResource

# Fallback values used until resources are seeded for a language.
DEFAULT_RESOURCES: dict[str, str] = {
    "ActivityLog.AddNewCustomer": "Added a new customer (ID = {0})",
    "ActivityLog.UpdateCustomer": "Edited a customer (ID = {0})",
    "ActivityLog.DeleteCustomer": "Deleted a customer (ID = {0})",
}


def get_language_by_id(s: Session, language_id: int) -> Language | None:
    if language_id <= 0:
        return None
    return s.get(Language, language_id)


def get_default_language(s: Session) -> Language | None:
    return (
        s.query(Language)
        .filter(Language.published.is_(True))
        .order_by(Language.display_order.asc(), Language.id.asc())
        .first()
    )


def get_resource(s: Session, resource_name: str, language_id: int | None = None) -> str:
    """
    Resolve a string resource for a language (default language when omitted).
    Falls back to the built-in default, then to the resource name itself.
    """
    if language_id is None:
        lang = get_default_language(s)
        language_id = lang.id if lang else None

    if language_id is not None:
        row = (
            s.query(LocaleStringResource)
            .filter(LocaleStringResource.language_id == language_id)
            .filter(LocaleStringResource.resource_name == resource_name)
            .one_or_none()
        )
        if row is not None:
            return row.resource_value

    return DEFAULT_RESOURCES.get(resource_name, resource_name)
