"""initial store api schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _now_column(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=False), nullable=nullable, server_default=sa.func.current_timestamp())


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    def _has_index(table: str, name: str) -> bool:
        try:
            return any(ix.get("name") == name for ix in inspect(op.get_bind()).get_indexes(table))
        except Exception:
            return False

    def _ensure_index(table: str, name: str, cols: list[str]) -> None:
        if table in existing_tables and not _has_index(table, name):
            op.create_index(name, table, cols)

    if "stores" not in existing_tables:
        op.create_table(
            "stores",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=400), nullable=False),
            sa.Column("url", sa.String(length=400), nullable=True),
            _now_column("created_at"),
        )
        existing_tables.add("stores")

    if "countries" not in existing_tables:
        op.create_table(
            "countries",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("two_letter_iso_code", sa.String(length=2), nullable=True),
            sa.Column("three_letter_iso_code", sa.String(length=3), nullable=True),
            sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
        )
        existing_tables.add("countries")

    if "languages" not in existing_tables:
        op.create_table(
            "languages",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("language_culture", sa.String(length=20), nullable=False),
            sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        )
        existing_tables.add("languages")

    if "locale_string_resources" not in existing_tables:
        op.create_table(
            "locale_string_resources",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("language_id", sa.Integer(), nullable=False),
            sa.Column("resource_name", sa.String(length=200), nullable=False),
            sa.Column("resource_value", sa.Text(), nullable=False),
            sa.ForeignKeyConstraint(["language_id"], ["languages.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("language_id", "resource_name", name="uq_locale_resource_language_name"),
        )
        existing_tables.add("locale_string_resources")

    if "addresses" not in existing_tables:
        op.create_table(
            "addresses",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("first_name", sa.Text(), nullable=True),
            sa.Column("last_name", sa.Text(), nullable=True),
            sa.Column("email", sa.Text(), nullable=True),
            sa.Column("company", sa.Text(), nullable=True),
            sa.Column("country_id", sa.Integer(), nullable=True),
            sa.Column("state_province", sa.Text(), nullable=True),
            sa.Column("county", sa.Text(), nullable=True),
            sa.Column("city", sa.Text(), nullable=True),
            sa.Column("address1", sa.Text(), nullable=True),
            sa.Column("address2", sa.Text(), nullable=True),
            sa.Column("zip_postal_code", sa.Text(), nullable=True),
            sa.Column("phone_number", sa.Text(), nullable=True),
            sa.Column("fax_number", sa.Text(), nullable=True),
            sa.Column("created_on_utc", sa.DateTime(timezone=False), nullable=True),
            sa.ForeignKeyConstraint(["country_id"], ["countries.id"], ondelete="SET NULL"),
        )
        existing_tables.add("addresses")

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("customer_guid", sa.String(length=36), nullable=False),
            sa.Column("username", sa.String(length=1000), nullable=True),
            sa.Column("email", sa.String(length=1000), nullable=True),
            sa.Column("admin_comment", sa.Text(), nullable=True),
            sa.Column("is_tax_exempt", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("has_shopping_cart_items", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("requires_re_login", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("failed_login_attempts", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("is_system_account", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("system_name", sa.String(length=400), nullable=True),
            sa.Column("last_ip_address", sa.String(length=100), nullable=True),
            _now_column("created_on_utc"),
            sa.Column("last_login_date_utc", sa.DateTime(timezone=False), nullable=True),
            _now_column("last_activity_date_utc"),
            sa.Column("registered_in_store_id", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("billing_address_id", sa.Integer(), nullable=True),
            sa.Column("shipping_address_id", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["billing_address_id"], ["addresses.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["shipping_address_id"], ["addresses.id"], ondelete="SET NULL"),
        )
        existing_tables.add("customers")

    _ensure_index("customers", "idx_customers_email", ["email"])
    _ensure_index("customers", "idx_customers_username", ["username"])
    _ensure_index("customers", "idx_customers_created_on_utc", ["created_on_utc"])

    if "customer_roles" not in existing_tables:
        op.create_table(
            "customer_roles",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("system_name", sa.String(length=255), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_system_role", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("free_shipping", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("tax_exempt", sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        existing_tables.add("customer_roles")

    if "customer_role_mappings" not in existing_tables:
        op.create_table(
            "customer_role_mappings",
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("customer_role_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["customer_role_id"], ["customer_roles.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("customer_id", "customer_role_id"),
        )
        existing_tables.add("customer_role_mappings")

    if "customer_address_mappings" not in existing_tables:
        op.create_table(
            "customer_address_mappings",
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("address_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["address_id"], ["addresses.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("customer_id", "address_id"),
        )
        existing_tables.add("customer_address_mappings")

    if "customer_passwords" not in existing_tables:
        op.create_table(
            "customer_passwords",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("password", sa.Text(), nullable=False),
            sa.Column("password_format", sa.String(length=16), nullable=False),
            sa.Column("password_salt", sa.String(length=64), nullable=True),
            _now_column("created_on_utc"),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        )
        existing_tables.add("customer_passwords")

    _ensure_index("customer_passwords", "idx_customer_passwords_customer_id", ["customer_id", "created_on_utc"])

    if "generic_attributes" not in existing_tables:
        op.create_table(
            "generic_attributes",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("entity_id", sa.Integer(), nullable=False),
            sa.Column("key_group", sa.String(length=400), nullable=False),
            sa.Column("key", sa.String(length=400), nullable=False),
            sa.Column("value", sa.Text(), nullable=False),
            sa.Column("store_id", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_or_updated_date_utc", sa.DateTime(timezone=False), nullable=True),
        )
        existing_tables.add("generic_attributes")

    _ensure_index("generic_attributes", "idx_generic_attributes_entity", ["key_group", "entity_id"])

    if "newsletter_subscriptions" not in existing_tables:
        op.create_table(
            "newsletter_subscriptions",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("newsletter_subscription_guid", sa.String(length=36), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("store_id", sa.Integer(), nullable=False),
            _now_column("created_on_utc"),
            sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        )
        existing_tables.add("newsletter_subscriptions")

    _ensure_index("newsletter_subscriptions", "idx_newsletter_subscriptions_email_store", ["email", "store_id"])

    if "activity_log" not in existing_tables:
        op.create_table(
            "activity_log",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            _now_column("created_on_utc"),
            sa.Column("request_id", sa.String(length=64), nullable=True),
            sa.Column("system_keyword", sa.String(length=100), nullable=False),
            sa.Column("comment", sa.Text(), nullable=False),
            sa.Column("entity_id", sa.Integer(), nullable=True),
            sa.Column("entity_name", sa.String(length=400), nullable=True),
            sa.Column("client_id", sa.String(length=200), nullable=True),
            sa.Column("ip_address", sa.String(length=100), nullable=True),
        )
        existing_tables.add("activity_log")

    _ensure_index("activity_log", "idx_activity_log_keyword", ["system_keyword"])
    _ensure_index("activity_log", "idx_activity_log_entity", ["entity_name", "entity_id"])

    if "api_clients" not in existing_tables:
        op.create_table(
            "api_clients",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("client_id", sa.String(length=200), nullable=False),
            sa.Column("client_secret_hash", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("access_token_lifetime", sa.Integer(), nullable=True),
            _now_column("created_at"),
            sa.UniqueConstraint("client_id", name="uq_api_clients_client_id"),
        )
        existing_tables.add("api_clients")

    if "api_access_tokens" not in existing_tables:
        op.create_table(
            "api_access_tokens",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("api_client_id", sa.Integer(), nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=False), nullable=False),
            _now_column("created_at"),
            sa.ForeignKeyConstraint(["api_client_id"], ["api_clients.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("token_hash", name="uq_api_access_tokens_token_hash"),
        )
        existing_tables.add("api_access_tokens")

    _ensure_index("api_access_tokens", "idx_api_access_tokens_client", ["api_client_id"])


def downgrade() -> None:
    op.drop_index("idx_api_access_tokens_client", table_name="api_access_tokens")
    op.drop_table("api_access_tokens")
    op.drop_table("api_clients")

    op.drop_index("idx_activity_log_entity", table_name="activity_log")
    op.drop_index("idx_activity_log_keyword", table_name="activity_log")
    op.drop_table("activity_log")

    op.drop_index("idx_newsletter_subscriptions_email_store", table_name="newsletter_subscriptions")
    op.drop_table("newsletter_subscriptions")

    op.drop_index("idx_generic_attributes_entity", table_name="generic_attributes")
    op.drop_table("generic_attributes")

    op.drop_index("idx_customer_passwords_customer_id", table_name="customer_passwords")
    op.drop_table("customer_passwords")
    op.drop_table("customer_address_mappings")
    op.drop_table("customer_role_mappings")
    op.drop_table("customer_roles")

    op.drop_index("idx_customers_created_on_utc", table_name="customers")
    op.drop_index("idx_customers_username", table_name="customers")
    op.drop_index("idx_customers_email", table_name="customers")
    op.drop_table("customers")

    op.drop_table("addresses")
    op.drop_table("locale_string_resources")
    op.drop_table("languages")
    op.drop_table("countries")
    op.drop_table("stores")
