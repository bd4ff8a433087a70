"""Tests for the customers REST endpoints."""
from datetime import datetime

from conftest import RESTRICTED_CLIENT_ID, RESTRICTED_CLIENT_SECRET, get_token

from app.storeapi.attributes import get_attribute
from app.storeapi.db import session_scope
from app.storeapi.factories import initialize_customer
from app.storeapi.models import ActivityLog
from app.storeapi.modules.customers.models import (
    Customer,
    CustomerAddressMapping,
    CustomerPassword,
    NewsLetterSubscription,
)


def _address(**overrides):
    a = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "address1": "1 Main St",
        "city": "Springfield",
        "zip_postal_code": "12345",
        "country_id": 1,
    }
    a.update(overrides)
    return a


def _payload(**overrides):
    c = {
        "email": "jane@example.com",
        "username": "jane",
        "first_name": "Jane",
        "last_name": "Doe",
        "language_id": "1",
        "password": "s3cret!",
        "role_ids": [3],
        "billing_address": _address(),
    }
    c.update(overrides)
    return {"customer": c}


def _create(client, headers, **overrides):
    r = client.post("/api/customers", json=_payload(**overrides), headers=headers)
    assert r.status_code == 200, r.data
    return r.json["customers"][0]


# ---------- Authorization ----------


def test_customers_requires_token(client):
    r = client.get("/api/customers")
    assert r.status_code == 401
    assert r.json["errors"]["authorization"] == ["Unauthorized"]


def test_customers_rejects_unknown_token(client):
    r = client.get("/api/customers", headers={"Authorization": "Bearer not-a-real-token"})
    assert r.status_code == 401


def test_restricted_client_is_forbidden(client):
    token = get_token(client, RESTRICTED_CLIENT_ID, RESTRICTED_CLIENT_SECRET)
    r = client.get("/api/customers", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
    assert r.json["errors"]["authorization"] == ["Forbidden"]


def test_api_disabled_is_forbidden(app, client, auth_headers):
    app.config["API_ENABLED"] = False
    r = client.get("/api/customers/count", headers=auth_headers)
    assert r.status_code == 403
    assert "api" in r.json["errors"]


# ---------- List / count ----------


def test_list_empty(client, auth_headers):
    r = client.get("/api/customers", headers=auth_headers)
    assert r.status_code == 200
    assert r.json == {"customers": []}


def test_list_rejects_bad_limit_and_page(client, auth_headers):
    r = client.get("/api/customers?limit=0", headers=auth_headers)
    assert r.status_code == 400
    assert "limit" in r.json["errors"]

    r = client.get("/api/customers?limit=251", headers=auth_headers)
    assert r.status_code == 400

    r = client.get("/api/customers?page=0", headers=auth_headers)
    assert r.status_code == 400
    assert r.json["errors"]["page"] == ["Invalid request parameters"]

    r = client.get("/api/customers?limit=abc", headers=auth_headers)
    assert r.status_code == 400
    assert r.json["errors"]["limit"] == ["Invalid limit parameter"]


def test_list_paging_since_id_and_fields(client, auth_headers):
    ids = [
        _create(client, auth_headers, email=f"c{i}@example.com", username=f"c{i}", billing_address=None)["id"]
        for i in range(3)
    ]

    r = client.get("/api/customers?limit=2&page=1", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == ids[:2]

    r = client.get("/api/customers?limit=2&page=2", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == ids[2:]

    r = client.get(f"/api/customers?since_id={ids[0]}", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == ids[1:]

    r = client.get("/api/customers?fields=id,EMAIL", headers=auth_headers)
    assert r.json["customers"][0] == {"id": ids[0], "email": "c0@example.com"}


def test_count(client, auth_headers):
    assert client.get("/api/customers/count", headers=auth_headers).json == {"count": 0}
    _create(client, auth_headers)
    _create(client, auth_headers, email="john@example.com", username="john")
    assert client.get("/api/customers/count", headers=auth_headers).json == {"count": 2}


# ---------- Get by id ----------


def test_get_by_id(client, auth_headers):
    created = _create(client, auth_headers)
    r = client.get(f"/api/customers/{created['id']}", headers=auth_headers)
    assert r.status_code == 200
    c = r.json["customers"][0]
    assert c["email"] == "jane@example.com"
    assert c["first_name"] == "Jane"
    assert c["last_name"] == "Doe"
    assert c["language_id"] == "1"
    assert c["role_ids"] == [3]
    assert c["billing_address"]["country"] == "United States"
    assert len(c["addresses"]) == 1


def test_get_by_id_fields(client, auth_headers):
    created = _create(client, auth_headers)
    r = client.get(f"/api/customers/{created['id']}?fields=first_name", headers=auth_headers)
    assert r.json == {"customers": [{"first_name": "Jane"}]}


def test_get_by_id_invalid_and_missing(client, auth_headers):
    assert client.get("/api/customers/0", headers=auth_headers).status_code == 400
    assert client.get("/api/customers/-5", headers=auth_headers).status_code == 400
    r = client.get("/api/customers/999", headers=auth_headers)
    assert r.status_code == 404
    assert r.json["errors"]["customer"] == ["not found"]


# ---------- Search ----------


def test_search(client, auth_headers):
    jane = _create(client, auth_headers)
    john = _create(
        client,
        auth_headers,
        email="john@acme.test",
        username="john",
        first_name="John",
        last_name="Van Dyke",
        billing_address=None,
    )

    r = client.get("/api/customers/search?query=email:acme", headers=auth_headers)
    assert r.status_code == 200
    assert [c["id"] for c in r.json["customers"]] == [john["id"]]

    r = client.get("/api/customers/search", query_string={"query": "last_name:Van Dyke"}, headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == [john["id"]]

    r = client.get("/api/customers/search?query=first_name:jane", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == [jane["id"]]

    r = client.get("/api/customers/search", query_string={"order": "id desc"}, headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == [john["id"], jane["id"]]

    r = client.get("/api/customers/search?query=email:nobody", headers=auth_headers)
    assert r.json == {"customers": []}


def test_search_rejects_bad_page(client, auth_headers):
    r = client.get("/api/customers/search?page=0", headers=auth_headers)
    assert r.status_code == 400
    assert r.json["errors"]["page"] == ["Invalid page parameter"]


# ---------- Create ----------


def test_create_customer(app, client, auth_headers):
    c = _create(client, auth_headers)
    assert c["id"] > 0
    assert c["email"] == "jane@example.com"
    assert c["first_name"] == "Jane"
    assert c["language_id"] == "1"
    assert c["role_ids"] == [3]
    assert c["active"] is True
    assert c["billing_address"]["id"] == c["addresses"][0]["id"]
    assert c["billing_address"]["country"] == "United States"
    assert "password" not in c

    with session_scope(app) as s:
        pw = s.query(CustomerPassword).filter(CustomerPassword.customer_id == c["id"]).one()
        assert pw.password_format == "hashed"
        assert pw.password != "s3cret!"
        assert pw.password_salt
        assert get_attribute(s, c["id"], "Customer", "FirstName") == "Jane"
        log = s.query(ActivityLog).filter(ActivityLog.entity_id == c["id"]).one()
        assert log.system_keyword == "AddNewCustomer"
        assert log.comment == f"Added a new customer (ID = {c['id']})"
        assert log.client_id == "test-client"


def test_create_duplicate_email_conflict(client, auth_headers):
    _create(client, auth_headers)
    r = client.post("/api/customers", json=_payload(username="other"), headers=auth_headers)
    assert r.status_code == 409
    assert "email" in r.json["errors"]


def test_create_validation_errors(client, auth_headers):
    r = client.post("/api/customers", json=_payload(email=None, role_ids=[]), headers=auth_headers)
    assert r.status_code == 422
    assert "email" in r.json["errors"]
    assert "role_ids" in r.json["errors"]

    r = client.post("/api/customers", json=_payload(role_ids=[3, 4]), headers=auth_headers)
    assert r.status_code == 422
    assert "role_ids" in r.json["errors"]

    r = client.post("/api/customers", json=_payload(role_ids=[99]), headers=auth_headers)
    assert r.status_code == 422

    r = client.post("/api/customers", json=_payload(billing_address=_address(country_id=77)), headers=auth_headers)
    assert r.status_code == 422
    assert "billing_address.country_id" in r.json["errors"]

    r = client.post("/api/customers", json=_payload(active="yes"), headers=auth_headers)
    assert r.status_code == 422
    assert "active" in r.json["errors"]


def test_create_requires_root_object(client, auth_headers):
    r = client.post("/api/customers", json={"email": "x@example.com"}, headers=auth_headers)
    assert r.status_code == 422
    assert "customer" in r.json["errors"]

    r = client.post(
        "/api/customers",
        data="{not json",
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert r.status_code == 422


def test_create_ignores_unknown_language(client, auth_headers):
    c = _create(client, auth_headers, language_id="42")
    r = client.get(f"/api/customers/{c['id']}", headers=auth_headers)
    assert r.json["customers"][0]["language_id"] is None


# ---------- Update ----------


def test_update_partial(client, auth_headers):
    c = _create(client, auth_headers)
    r = client.put(
        f"/api/customers/{c['id']}",
        json={"customer": {"first_name": "Janet", "active": False}},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.data
    updated = r.json["customers"][0]
    assert updated["first_name"] == "Janet"
    assert updated["last_name"] == "Doe"
    assert updated["active"] is False
    assert updated["email"] == "jane@example.com"
    assert updated["role_ids"] == [3]


def test_update_roles_and_addresses(app, client, auth_headers):
    c = _create(client, auth_headers, billing_address=None)
    r = client.put(
        f"/api/customers/{c['id']}",
        json={
            "customer": {
                "role_ids": [1, 3],
                "addresses": [_address(city="Shelbyville"), _address(city="Ogdenville", country_id=2)],
            }
        },
        headers=auth_headers,
    )
    assert r.status_code == 200, r.data
    u = r.json["customers"][0]
    assert u["role_ids"] == [1, 3]
    assert [a["city"] for a in u["addresses"]] == ["Shelbyville", "Ogdenville"]
    assert u["billing_address"]["city"] == "Shelbyville"
    assert u["shipping_address"]["city"] == "Ogdenville"
    assert u["shipping_address"]["country"] == "Canada"

    # Editing an existing address in place.
    first_id = u["addresses"][0]["id"]
    r = client.put(
        f"/api/customers/{c['id']}",
        json={"customer": {"addresses": [{"id": first_id, "city": "Capital City"}]}},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.data
    cities = {a["id"]: a["city"] for a in r.json["customers"][0]["addresses"]}
    assert cities[first_id] == "Capital City"

    with session_scope(app) as s:
        keywords = [a.system_keyword for a in s.query(ActivityLog).order_by(ActivityLog.id.asc()).all()]
        assert keywords == ["AddNewCustomer", "UpdateCustomer", "UpdateCustomer"]


def test_update_email_conflict(client, auth_headers):
    _create(client, auth_headers)
    other = _create(client, auth_headers, email="john@example.com", username="john")
    r = client.put(
        f"/api/customers/{other['id']}",
        json={"customer": {"email": "JANE@example.com"}},
        headers=auth_headers,
    )
    assert r.status_code == 409


def test_update_missing_and_invalid(client, auth_headers):
    r = client.put("/api/customers/999", json={"customer": {"first_name": "X"}}, headers=auth_headers)
    assert r.status_code == 404
    r = client.put("/api/customers/0", json={"customer": {"first_name": "X"}}, headers=auth_headers)
    assert r.status_code == 400
    c = _create(client, auth_headers)
    r = client.put(f"/api/customers/{c['id']}", json={"customer": {"email": "not-an-email"}}, headers=auth_headers)
    assert r.status_code == 422


def test_update_password_adds_new_row(app, client, auth_headers):
    c = _create(client, auth_headers)
    r = client.put(f"/api/customers/{c['id']}", json={"customer": {"password": "n3w"}}, headers=auth_headers)
    assert r.status_code == 200
    with session_scope(app) as s:
        assert s.query(CustomerPassword).filter(CustomerPassword.customer_id == c["id"]).count() == 2


# ---------- Delete ----------


def test_delete_customer(app, client, auth_headers):
    c = _create(client, auth_headers)
    with session_scope(app) as s:
        s.add(NewsLetterSubscription(newsletter_subscription_guid="g-1", email="jane@example.com", store_id=1))

    r = client.delete(f"/api/customers/{c['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json == {}

    assert client.get(f"/api/customers/{c['id']}", headers=auth_headers).status_code == 404
    assert client.get("/api/customers/count", headers=auth_headers).json == {"count": 0}

    with session_scope(app) as s:
        row = s.get(Customer, c["id"])
        assert row.deleted is True
        assert row.email == "jane@example.com"
        assert s.query(NewsLetterSubscription).count() == 0
        assert s.query(ActivityLog).filter(ActivityLog.system_keyword == "DeleteCustomer").count() == 1


def test_delete_with_deleted_suffix(app, client, auth_headers):
    app.config["CUSTOMER_SUFFIX_DELETED"] = True
    c = _create(client, auth_headers)
    assert client.delete(f"/api/customers/{c['id']}", headers=auth_headers).status_code == 200
    with session_scope(app) as s:
        row = s.get(Customer, c["id"])
        assert row.email == "jane@example.com-DELETED"
        assert row.username == "jane-DELETED"

    # The email is free again.
    _create(client, auth_headers)


def test_delete_missing_and_invalid(client, auth_headers):
    assert client.delete("/api/customers/0", headers=auth_headers).status_code == 400
    assert client.delete("/api/customers/999", headers=auth_headers).status_code == 404


def test_delete_system_account_rejected(app, client, auth_headers):
    with session_scope(app) as s:
        system = initialize_customer()
        system.is_system_account = True
        system.system_name = "SearchEngine"
        s.add(system)
        s.flush()
        system_id = system.id

    r = client.delete(f"/api/customers/{system_id}", headers=auth_headers)
    assert r.status_code == 400
    assert "customer" in r.json["errors"]


# ---------- Parameter ranges ----------

HUGE = 10**20


def test_oversized_integers_are_rejected(client, auth_headers):
    r = client.get(f"/api/customers?page={HUGE}", headers=auth_headers)
    assert r.status_code == 400
    assert r.json["errors"]["page"] == ["Invalid page parameter"]

    r = client.get(f"/api/customers?since_id={HUGE}", headers=auth_headers)
    assert r.status_code == 400
    assert r.json["errors"]["since_id"] == ["Invalid since_id parameter"]

    r = client.get(f"/api/customers/search?limit={HUGE}", headers=auth_headers)
    assert r.status_code == 400
    assert "limit" in r.json["errors"]

    for method in (client.get, client.delete):
        r = method(f"/api/customers/{HUGE}", headers=auth_headers)
        assert r.status_code == 400
        assert r.json["errors"]["id"] == ["invalid id"]

    r = client.put(f"/api/customers/{HUGE}", json={"customer": {"first_name": "X"}}, headers=auth_headers)
    assert r.status_code == 400


def test_oversized_integers_in_body_are_rejected(client, auth_headers):
    r = client.post("/api/customers", json=_payload(registered_in_store_id=HUGE), headers=auth_headers)
    assert r.status_code == 422
    assert "registered_in_store_id" in r.json["errors"]

    r = client.post("/api/customers", json=_payload(role_ids=[HUGE]), headers=auth_headers)
    assert r.status_code == 422
    assert "role_ids" in r.json["errors"]


def test_last_page_is_empty_not_an_error(client, auth_headers):
    _create(client, auth_headers)
    r = client.get("/api/customers?page=2147483647&limit=250", headers=auth_headers)
    assert r.status_code == 200
    assert r.json == {"customers": []}


# ---------- Created date filters ----------


def test_list_created_at_filters(app, client, auth_headers):
    ids = [
        _create(client, auth_headers, email=f"d{i}@example.com", username=f"d{i}", billing_address=None)["id"]
        for i in range(3)
    ]
    with session_scope(app) as s:
        s.get(Customer, ids[0]).created_on_utc = datetime(2020, 1, 1)

    r = client.get("/api/customers?created_at_min=2021-01-01T00:00:00Z", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == ids[1:]

    r = client.get("/api/customers?created_at_max=2021-01-01", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == [ids[0]]

    r = client.get("/api/customers?created_at_min=2019-01-01&created_at_max=2021-01-01", headers=auth_headers)
    assert [c["id"] for c in r.json["customers"]] == [ids[0]]


def test_list_rejects_unparseable_dates(client, auth_headers):
    r = client.get("/api/customers?created_at_min=yesterday", headers=auth_headers)
    assert r.status_code == 400
    assert r.json["errors"]["created_at_min"] == ["Invalid created_at_min parameter"]

    r = client.get("/api/customers?created_at_max=2021-13-45", headers=auth_headers)
    assert r.status_code == 400
    assert "created_at_max" in r.json["errors"]


# ---------- Search limits and ordering ----------


def test_search_rejects_bad_limit(client, auth_headers):
    for limit in (0, 251):
        r = client.get(f"/api/customers/search?limit={limit}", headers=auth_headers)
        assert r.status_code == 400
        assert r.json["errors"]["limit"] == ["Invalid limit parameter"]


def test_search_ordering(client, auth_headers):
    b = _create(client, auth_headers, email="b@example.com", username="b", billing_address=None)["id"]
    a = _create(client, auth_headers, email="a@example.com", username="a", billing_address=None)["id"]
    c = _create(client, auth_headers, email="c@example.com", username="c", billing_address=None)["id"]

    def ids(order):
        r = client.get("/api/customers/search", query_string={"order": order}, headers=auth_headers)
        assert r.status_code == 200
        return [x["id"] for x in r.json["customers"]]

    assert ids("email asc") == [a, b, c]
    assert ids("email") == [a, b, c]
    assert ids("email desc") == [c, b, a]
    assert ids("favourite_colour") == [b, a, c]


def test_search_value_with_colon(client, auth_headers):
    _create(client, auth_headers, admin_comment="imported from http://old.test")
    _create(client, auth_headers, email="john@example.com", username="john", billing_address=None)
    r = client.get("/api/customers/search", query_string={"query": "admin_comment:http://old.test"}, headers=auth_headers)
    assert [c["email"] for c in r.json["customers"]] == ["jane@example.com"]


# ---------- Update: billing / shipping mapping ----------


def test_update_remaps_unmapped_billing_address(app, client, auth_headers):
    c = _create(client, auth_headers)
    billing_id = c["billing_address"]["id"]
    with session_scope(app) as s:
        s.query(CustomerAddressMapping).filter(CustomerAddressMapping.customer_id == c["id"]).delete()

    r = client.get(f"/api/customers/{c['id']}", headers=auth_headers)
    assert r.json["customers"][0]["addresses"] == []

    r = client.put(f"/api/customers/{c['id']}", json={"customer": {"admin_comment": "vip"}}, headers=auth_headers)
    assert r.status_code == 200, r.data
    u = r.json["customers"][0]
    assert [a["id"] for a in u["addresses"]] == [billing_id]
    assert u["billing_address"]["id"] == billing_id


def test_update_inserts_billing_and_shipping_when_none_mapped(client, auth_headers):
    c = _create(client, auth_headers, billing_address=None)
    r = client.put(
        f"/api/customers/{c['id']}",
        json={
            "customer": {
                "billing_address": _address(city="Billtown"),
                "shipping_address": _address(city="Shipville", country_id=2),
            }
        },
        headers=auth_headers,
    )
    assert r.status_code == 200, r.data
    u = r.json["customers"][0]
    assert u["billing_address"]["city"] == "Billtown"
    assert u["shipping_address"]["city"] == "Shipville"
    assert u["shipping_address"]["country"] == "Canada"
    assert sorted(a["city"] for a in u["addresses"]) == ["Billtown", "Shipville"]


def test_update_explicit_address_ids_override(client, auth_headers):
    c = _create(client, auth_headers)
    first = c["billing_address"]["id"]
    r = client.put(
        f"/api/customers/{c['id']}",
        json={"customer": {"shipping_address": _address(city="Shipville")}},
        headers=auth_headers,
    )
    second = r.json["customers"][0]["shipping_address"]["id"]
    assert second != first

    r = client.put(
        f"/api/customers/{c['id']}",
        json={"customer": {"billing_address": {"id": second}, "shipping_address": {"id": first}}},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.data
    u = r.json["customers"][0]
    assert u["billing_address"]["id"] == second
    assert u["shipping_address"]["id"] == first
    assert len(u["addresses"]) == 2


# ---------- Address ownership ----------


def test_create_copies_address_passed_by_id(client, auth_headers):
    jane = _create(client, auth_headers)
    jane_address = jane["billing_address"]["id"]

    john = _create(
        client,
        auth_headers,
        email="john@example.com",
        username="john",
        billing_address={"id": jane_address, "city": "Elsewhere"},
    )
    assert john["billing_address"]["id"] != jane_address
    assert john["billing_address"]["city"] == "Elsewhere"
    assert john["billing_address"]["first_name"] == "Jane"

    r = client.get(f"/api/customers/{jane['id']}", headers=auth_headers)
    assert r.json["customers"][0]["billing_address"]["city"] == "Springfield"


def test_update_rejects_address_of_another_customer(client, auth_headers):
    jane = _create(client, auth_headers)
    john = _create(client, auth_headers, email="john@example.com", username="john", billing_address=None)

    r = client.put(
        f"/api/customers/{john['id']}",
        json={"customer": {"addresses": [{"id": jane["billing_address"]["id"], "city": "Hijacked"}]}},
        headers=auth_headers,
    )
    assert r.status_code == 422
    assert "addresses[0].id" in r.json["errors"]

    r = client.get(f"/api/customers/{jane['id']}", headers=auth_headers)
    assert r.json["customers"][0]["billing_address"]["city"] == "Springfield"
