import pytest

from app.storeapi import create_app
from app.storeapi import auth as auth_module
from app.storeapi.clients import ClientService
from app.storeapi.db import session_scope
from app.storeapi.models import Base, Country, Language, Store
from app.storeapi.modules.customers.models import CustomerRole

CLIENT_ID = "test-client"
CLIENT_SECRET = "test-secret-value"
RESTRICTED_CLIENT_ID = "restricted-client"
RESTRICTED_CLIENT_SECRET = "restricted-secret-value"


def _seed(s):
    s.add(Store(id=1, name="Main store", url="http://localhost/"))
    s.add_all(
        [
            Country(id=1, name="United States", two_letter_iso_code="US", three_letter_iso_code="USA"),
            Country(id=2, name="Canada", two_letter_iso_code="CA", three_letter_iso_code="CAN"),
        ]
    )
    s.add_all(
        [
            Language(id=1, name="English", language_culture="en-US", display_order=1),
            Language(id=2, name="Deutsch", language_culture="de-DE", display_order=2),
        ]
    )
    s.add_all(
        [
            CustomerRole(id=1, name="Administrators", system_name="Administrators", is_system_role=True),
            CustomerRole(id=2, name="Forum Moderators", system_name="ForumModerators", is_system_role=True),
            CustomerRole(id=3, name="Registered", system_name="Registered", is_system_role=True),
            CustomerRole(id=4, name="Guests", system_name="Guests", is_system_role=True),
        ]
    )
    clients = ClientService(s)
    clients.insert_client(client_id=CLIENT_ID, client_secret=CLIENT_SECRET, name="Test client")
    clients.insert_client(client_id=RESTRICTED_CLIENT_ID, client_secret=RESTRICTED_CLIENT_SECRET, name="Restricted client")


@pytest.fixture(autouse=True)
def _reset_token_rate_limit():
    auth_module._token_attempts.clear()
    yield
    auth_module._token_attempts.clear()


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("API_RESTRICTED_CLIENT_IDS", RESTRICTED_CLIENT_ID)
    monkeypatch.setenv("CUSTOMER_PASSWORD_FORMAT", "hashed")
    for k in (
        "API_ENABLED",
        "API_ENABLE_LOGGING",
        "ENCRYPTION_KEY",
        "HASHED_PASSWORD_FORMAT",
        "CUSTOMER_SUFFIX_DELETED",
        "API_TOKEN_LIFETIME",
    ):
        monkeypatch.delenv(k, raising=False)

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        _seed(s)

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def get_token(client, client_id=CLIENT_ID, client_secret=CLIENT_SECRET):
    r = client.post(
        "/api/token",
        data={"grant_type": "client_credentials", "client_id": client_id, "client_secret": client_secret},
    )
    assert r.status_code == 200, r.data
    return r.json["access_token"]


@pytest.fixture()
def auth_headers(client):
    return {"Authorization": f"Bearer {get_token(client)}"}
