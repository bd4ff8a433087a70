import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.storeapi.clients import ClientService
from app.storeapi.constants import (
    ROLE_ADMINISTRATORS,
    ROLE_FORUM_MODERATORS,
    ROLE_GUESTS,
    ROLE_REGISTERED,
    ROLE_VENDORS,
)
from app.storeapi.factories import initialize_customer
from app.storeapi.localization import DEFAULT_RESOURCES
from app.storeapi.models import Country, Language, LocaleStringResource, Store
from app.storeapi.modules.customers.models import Customer, CustomerRole, CustomerRoleMapping
from scripts._db_utils import resolve_database_url, script_session

COUNTRIES = (
    ("United States", "US", "USA"),
    ("Canada", "CA", "CAN"),
    ("United Kingdom", "GB", "GBR"),
    ("Germany", "DE", "DEU"),
)

ROLES = (
    ("Administrators", ROLE_ADMINISTRATORS),
    ("Forum Moderators", ROLE_FORUM_MODERATORS),
    ("Registered", ROLE_REGISTERED),
    ("Guests", ROLE_GUESTS),
    ("Vendors", ROLE_VENDORS),
)

# Built-in accounts; the API never lists or deletes them.
SYSTEM_ACCOUNTS = (
    ("SearchEngine", "Used by search engines (crawlers)"),
    ("BackgroundTask", "Used by background tasks"),
)


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed store, countries, languages, roles, system accounts and string resources
    in an idempotent way. An API client is created from API_CLIENT_ID/API_CLIENT_SECRET
    when both are set; an existing client's secret is NOT overwritten.
    """
    db_url = resolve_database_url(database_url)
    bootstrap_client_id = (os.environ.get("API_CLIENT_ID") or "").strip()
    bootstrap_client_secret = os.environ.get("API_CLIENT_SECRET") or ""

    with script_session(db_url) as s:
        if s.query(Store).first() is None:
            s.add(Store(name="Default store", url=os.environ.get("STORE_URL") or None))

        for name, two, three in COUNTRIES:
            if s.query(Country).filter(Country.two_letter_iso_code == two).one_or_none() is None:
                s.add(Country(name=name, two_letter_iso_code=two, three_letter_iso_code=three, published=True))

        english = s.query(Language).filter(Language.language_culture == "en-US").one_or_none()
        if english is None:
            english = Language(name="English", language_culture="en-US", published=True, display_order=1)
            s.add(english)
        s.flush()

        for lang in s.query(Language).all():
            for resource_name, value in DEFAULT_RESOURCES.items():
                exists = (
                    s.query(LocaleStringResource)
                    .filter(LocaleStringResource.language_id == lang.id)
                    .filter(LocaleStringResource.resource_name == resource_name)
                    .one_or_none()
                )
                if exists is None:
                    s.add(LocaleStringResource(language_id=lang.id, resource_name=resource_name, resource_value=value))

        roles: dict[str, CustomerRole] = {}
        for name, system_name in ROLES:
            role = s.query(CustomerRole).filter(CustomerRole.system_name == system_name).one_or_none()
            if role is None:
                role = CustomerRole(name=name, system_name=system_name, active=True, is_system_role=True)
                s.add(role)
            roles[system_name] = role
        s.flush()

        for system_name, comment in SYSTEM_ACCOUNTS:
            account = (
                s.query(Customer)
                .filter(Customer.is_system_account.is_(True))
                .filter(Customer.system_name == system_name)
                .one_or_none()
            )
            if account is None:
                account = initialize_customer()
                account.is_system_account = True
                account.system_name = system_name
                account.admin_comment = comment
                s.add(account)
                s.flush()
                s.add(CustomerRoleMapping(customer_id=account.id, customer_role_id=roles[ROLE_GUESTS].id))

        if bootstrap_client_id and bootstrap_client_secret:
            clients = ClientService(s)
            if clients.find_client_by_client_id(bootstrap_client_id) is None:
                clients.insert_client(
                    client_id=bootstrap_client_id,
                    client_secret=bootstrap_client_secret,
                    name=os.environ.get("API_CLIENT_NAME") or bootstrap_client_id,
                )
                print(f"API client created: {bootstrap_client_id}")

    print("Initialized database (seed_only).")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
