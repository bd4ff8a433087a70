from datetime import datetime

import pytest

from app.storeapi.delta import AddressDelta, coerce, parse_datetime
from app.storeapi.errors import ApiError
from app.storeapi.models import Address
from app.storeapi.modules.customers.models import Customer
from app.storeapi.modules.customers.validators import bind_customer_delta


def test_parse_datetime_normalizes_to_naive_utc():
    assert parse_datetime("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10, 0, 0)
    assert parse_datetime("2024-05-01T12:00:00+02:00") == datetime(2024, 5, 1, 10, 0, 0)
    assert parse_datetime("2024-05-01") == datetime(2024, 5, 1)


def test_coerce():
    assert coerce("int", "42") == 42
    assert coerce("int", -3) == -3
    assert coerce("str", 5) == "5"
    assert coerce("bool", None) is None
    with pytest.raises(ValueError):
        coerce("int", True)
    with pytest.raises(ValueError):
        coerce("bool", "true")
    with pytest.raises(ValueError):
        coerce("str", {"a": 1})


def test_merge_only_touches_sent_fields():
    c = Customer(email="old@example.com", username="old", admin_comment="keep", active=True)
    delta = bind_customer_delta({"customer": {"email": "new@example.com", "admin_comment": None}})
    delta.merge(c)
    assert c.email == "new@example.com"
    assert c.username == "old"
    assert c.admin_comment is None
    assert c.active is True
    assert sorted(delta.changed_fields) == ["admin_comment", "email"]


def test_non_nullable_field_rejects_null():
    with pytest.raises(ApiError) as e:
        bind_customer_delta({"customer": {"active": None}})
    assert e.value.status_code == 422
    assert e.value.errors["active"] == ["active cannot be null"]


def test_nested_address_errors_are_prefixed():
    with pytest.raises(ApiError) as e:
        bind_customer_delta({"customer": {"addresses": [{"country_id": "abc"}], "billing_address": "nope"}})
    assert "addresses[0].country_id" in e.value.errors
    assert "billing_address" in e.value.errors


def test_route_id_wins_over_payload():
    delta = bind_customer_delta({"customer": {"id": 7}}, route_id=3)
    assert delta.id == 3


def test_address_delta_to_entity():
    d = AddressDelta({"id": "0", "city": "Springfield", "country_id": "1", "created_on_utc": "2024-01-01T00:00:00Z"})
    assert d.id == 0
    a = d.to_entity()
    assert isinstance(a, Address)
    assert a.city == "Springfield"
    assert a.country_id == 1
    assert a.created_on_utc == datetime(2024, 1, 1)
    assert d.created_on_utc == datetime(2024, 1, 1)
