from __future__ import annotations

from flask import Blueprint, current_app, request

from app.storeapi.activity import insert_customer_activity
from app.storeapi.addresses import clone_address, get_address_by_id, insert_address, merge_address
from app.storeapi.attributes import get_attributes_for_entity
from app.storeapi.authorization import require_api_client
from app.storeapi.constants import (
    ACTIVITY_ADD_NEW_CUSTOMER,
    ACTIVITY_DELETE_CUSTOMER,
    ACTIVITY_UPDATE_CUSTOMER,
    CUSTOMER_KEY_GROUP,
    DEFAULT_PAGE_VALUE,
    FIRST_NAME_ATTRIBUTE,
    LANGUAGE_ID_ATTRIBUTE,
    LAST_NAME_ATTRIBUTE,
    MAX_INT,
    MAX_LIMIT,
    MIN_LIMIT,
)
from app.storeapi.db import db_session
from app.storeapi.delta import AddressDelta
from app.storeapi.errors import ApiError
from app.storeapi.factories import initialize_customer
from app.storeapi.json_fields import raw_json_response, serialize
from app.storeapi.models import Address
from app.storeapi.modules.customers.dto import populate_address_country_names, prepare_customer_dto
from app.storeapi.modules.customers.models import Customer
from app.storeapi.modules.customers.parameters import bind_customers_parameters, bind_search_parameters
from app.storeapi.modules.customers.service import (
    add_password,
    add_valid_roles,
    delete_customer,
    get_addresses_by_customer_id,
    get_customer_billing_address,
    get_customer_by_email,
    get_customer_by_id,
    get_customer_entity_by_id,
    get_customer_shipping_address,
    get_customers_count,
    get_customers_dtos,
    insert_customer,
    insert_customer_address,
    save_first_and_last_name,
    save_language,
    search,
    update_customer,
)
from app.storeapi.modules.customers.validators import bind_customer_delta, validate_customer_delta
from app.storeapi.newsletter import remove_subscriptions_for_email

bp = Blueprint("customers_api", __name__)


def _check_limit_and_page(limit: int, page: int, page_message: str) -> None:
    if limit < MIN_LIMIT or limit > MAX_LIMIT:
        raise ApiError.single(400, "limit", "Invalid limit parameter")
    if page < DEFAULT_PAGE_VALUE:
        raise ApiError.single(400, "page", page_message)


def _check_id(customer_id: int) -> None:
    if customer_id <= 0 or customer_id > MAX_INT:
        raise ApiError.single(400, "id", "invalid id")


def _not_found() -> ApiError:
    return ApiError.single(404, "customer", "not found")


def _add_password_from_settings(s, customer: Customer, password: str) -> None:
    cfg = current_app.config
    add_password(
        s,
        customer,
        password,
        password_format=cfg.get("CUSTOMER_PASSWORD_FORMAT", "hashed"),
        hashed_password_format=cfg.get("HASHED_PASSWORD_FORMAT", "SHA512"),
        encryption_key=cfg.get("ENCRYPTION_KEY", ""),
    )


def _insert_new_address(s, d: AddressDelta) -> Address:
    """Insert an address from a payload; an explicit id reuses the existing row."""
    if d.id > 0:
        existing = get_address_by_id(s, d.id)
        if existing is not None:
            return existing
    return insert_address(s, d.to_entity())


def _insert_address_copy(s, d: AddressDelta) -> Address:
    """Always a fresh row; an explicit id only seeds it with that address's values."""
    existing = get_address_by_id(s, d.id) if d.id > 0 else None
    if existing is None:
        return insert_address(s, d.to_entity())
    return insert_address(s, d.merge(clone_address(existing)))


# ---------- List ----------
@bp.get("/customers")
@require_api_client
def get_customers():
    params = bind_customers_parameters(request.args)
    _check_limit_and_page(params.limit, params.page, "Invalid request parameters")

    s = db_session()
    customers = get_customers_dtos(
        s,
        params.created_at_min,
        params.created_at_max,
        params.limit,
        params.page,
        params.since_id,
    )
    return raw_json_response(serialize({"customers": customers}, params.fields))


# ---------- Count ----------
@bp.get("/customers/count")
@require_api_client
def get_customers_count_endpoint():
    s = db_session()
    return raw_json_response(serialize({"count": get_customers_count(s)}))


# ---------- Search ----------
@bp.get("/customers/search")
@require_api_client
def search_customers():
    params = bind_search_parameters(request.args)
    _check_limit_and_page(params.limit, params.page, "Invalid page parameter")

    s = db_session()
    customers = search(s, params.query, params.order, params.page, params.limit)
    return raw_json_response(serialize({"customers": customers}, params.fields))


# ---------- Detail ----------
@bp.get("/customers/<int(signed=True):customer_id>")
@require_api_client
def get_customer(customer_id: int):
    _check_id(customer_id)
    fields = (request.args.get("fields") or "").strip()

    s = db_session()
    customer = get_customer_by_id(s, customer_id)
    if customer is None:
        raise _not_found()
    return raw_json_response(serialize({"customers": [customer]}, fields))


# ---------- Create ----------
@bp.post("/customers")
@require_api_client
def create_customer():
    s = db_session()
    delta = bind_customer_delta(request.get_json(silent=True))
    validate_customer_delta(s, delta, creating=True)

    existing = get_customer_by_email(s, delta.get("email"))
    if existing is not None:
        raise ApiError.single(409, "email", "Email is already registered")

    customer = initialize_customer()
    delta.merge(customer)
    # Insert first: addresses and mappings need the customer id.
    insert_customer(s, customer)

    if delta.billing_address is not None:
        billing = _insert_address_copy(s, delta.billing_address)
        customer.billing_address_id = billing.id
        insert_customer_address(s, customer, billing)

    if delta.shipping_address is not None:
        shipping = _insert_address_copy(s, delta.shipping_address)
        customer.shipping_address_id = shipping.id
        insert_customer_address(s, customer, shipping)

    update_customer(s, customer)

    save_first_and_last_name(s, customer, delta.first_name, delta.last_name)
    save_language(s, customer, delta.language_id)

    if delta.password and delta.password.strip():
        _add_password_from_settings(s, customer, delta.password)

    if delta.role_ids:
        add_valid_roles(s, customer, delta.role_ids)

    dto = prepare_customer_dto(s, customer)
    populate_address_country_names(s, dto)
    dto["first_name"] = delta.first_name
    dto["last_name"] = delta.last_name
    dto["language_id"] = delta.language_id

    insert_customer_activity(s, ACTIVITY_ADD_NEW_CUSTOMER, customer)
    s.commit()
    current_app.logger.info("Customer created (id=%s)", customer.id)

    return raw_json_response(serialize({"customers": [dto]}, ""))


# ---------- Update ----------
@bp.put("/customers/<int(signed=True):customer_id>")
@require_api_client
def update_customer_endpoint(customer_id: int):
    _check_id(customer_id)
    s = db_session()
    delta = bind_customer_delta(request.get_json(silent=True), route_id=customer_id)
    validate_customer_delta(s, delta, creating=False)

    customer = get_customer_entity_by_id(s, delta.id)
    if customer is None:
        raise _not_found()

    if delta.has("email"):
        other = get_customer_by_email(s, delta.get("email"))
        if other is not None and other.id != customer.id:
            raise ApiError.single(409, "email", "Email is already registered")

    delta.merge(customer)

    if delta.role_ids:
        add_valid_roles(s, customer, delta.role_ids)

    billing_id: int | None = None
    shipping_id: int | None = None
    if delta.addresses:
        current = {a.id: a for a in get_addresses_by_customer_id(s, customer.id)}
        ids: list[int] = []
        for passed in delta.addresses:
            if passed.id == 0:
                entity = _insert_new_address(s, passed)
                passed.id = entity.id
                insert_customer_address(s, customer, entity)
            elif passed.id in current:
                merge_address(s, passed, current[passed.id])
            else:
                insert_customer_address(s, customer, get_address_by_id(s, passed.id))
            ids.append(passed.id)
        # First sent address becomes billing, last becomes shipping.
        billing_id, shipping_id = ids[0], ids[-1]

    # Orders read billing/shipping from the customer's mapped addresses, so make sure they are mapped.
    if get_customer_billing_address(s, customer) is None:
        if customer.billing_address_id and customer.billing_address_id > 0:
            insert_customer_address(s, customer, get_address_by_id(s, customer.billing_address_id))
        elif delta.billing_address is not None:
            billing = _insert_new_address(s, delta.billing_address)
            customer.billing_address_id = billing.id
            insert_customer_address(s, customer, billing)

    if get_customer_shipping_address(s, customer) is None:
        if customer.shipping_address_id and customer.shipping_address_id > 0:
            insert_customer_address(s, customer, get_address_by_id(s, customer.shipping_address_id))
        elif delta.shipping_address is not None:
            shipping = _insert_new_address(s, delta.shipping_address)
            customer.shipping_address_id = shipping.id
            insert_customer_address(s, customer, shipping)

    if billing_id is None and delta.billing_address is not None and delta.billing_address.id > 0:
        billing_id = delta.billing_address.id
    if shipping_id is None and delta.shipping_address is not None and delta.shipping_address.id > 0:
        shipping_id = delta.shipping_address.id
    for address_id, attr in ((billing_id, "billing_address_id"), (shipping_id, "shipping_address_id")):
        if address_id:
            insert_customer_address(s, customer, get_address_by_id(s, address_id))
            setattr(customer, attr, address_id)

    update_customer(s, customer)

    save_first_and_last_name(s, customer, delta.first_name, delta.last_name)
    save_language(s, customer, delta.language_id)

    if delta.password and delta.password.strip():
        _add_password_from_settings(s, customer, delta.password)

    dto = prepare_customer_dto(s, customer)
    populate_address_country_names(s, dto)
    attrs = {a.key: a.value for a in get_attributes_for_entity(s, customer.id, CUSTOMER_KEY_GROUP)}
    for key, attr_key in (
        ("first_name", FIRST_NAME_ATTRIBUTE),
        ("last_name", LAST_NAME_ATTRIBUTE),
        ("language_id", LANGUAGE_ID_ATTRIBUTE),
    ):
        if attr_key in attrs:
            dto[key] = attrs[attr_key]

    insert_customer_activity(s, ACTIVITY_UPDATE_CUSTOMER, customer)
    s.commit()
    current_app.logger.info("Customer updated (id=%s fields=%s)", customer.id, ",".join(delta.changed_fields))

    return raw_json_response(serialize({"customers": [dto]}, ""))


# ---------- Delete ----------
@bp.delete("/customers/<int(signed=True):customer_id>")
@require_api_client
def delete_customer_endpoint(customer_id: int):
    _check_id(customer_id)
    s = db_session()
    customer = get_customer_entity_by_id(s, customer_id)
    if customer is None:
        raise _not_found()

    email = customer.email
    try:
        delete_customer(s, customer, suffix_deleted=bool(current_app.config.get("CUSTOMER_SUFFIX_DELETED")))
    except ValueError as e:
        raise ApiError.single(400, "customer", str(e)) from None

    removed = remove_subscriptions_for_email(s, email)

    insert_customer_activity(s, ACTIVITY_DELETE_CUSTOMER, customer)
    s.commit()
    current_app.logger.info("Customer deleted (id=%s newsletter_subscriptions_removed=%s)", customer.id, removed)

    return raw_json_response("{}")
