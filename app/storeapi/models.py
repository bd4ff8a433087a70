from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(400), nullable=False)
    url: Mapped[str | None] = mapped_column(String(400), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class Country(Base):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    two_letter_iso_code: Mapped[str | None] = mapped_column(String(2), nullable=True)
    three_letter_iso_code: Mapped[str | None] = mapped_column(String(3), nullable=True)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Language(Base):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    language_culture: Mapped[str] = mapped_column(String(20), nullable=False)  # e.g. "en-US"
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LocaleStringResource(Base):
    __tablename__ = "locale_string_resources"
    __table_args__ = (
        UniqueConstraint("language_id", "resource_name", name="uq_locale_resource_language_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    language_id: Mapped[int] = mapped_column(ForeignKey("languages.id", ondelete="CASCADE"), nullable=False)
    resource_name: Mapped[str] = mapped_column(String(200), nullable=False)  # e.g. "ActivityLog.AddNewCustomer"
    resource_value: Mapped[str] = mapped_column(Text, nullable=False)


class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    company: Mapped[str | None] = mapped_column(Text, nullable=True)
    country_id: Mapped[int | None] = mapped_column(ForeignKey("countries.id", ondelete="SET NULL"), nullable=True)
    state_province: Mapped[str | None] = mapped_column(Text, nullable=True)
    county: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(Text, nullable=True)
    address1: Mapped[str | None] = mapped_column(Text, nullable=True)
    address2: Mapped[str | None] = mapped_column(Text, nullable=True)
    zip_postal_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    fax_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_on_utc: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    country: Mapped[Country | None] = relationship("Country", lazy="selectin")


class GenericAttribute(Base):
    """
    Key-value extension rows for fields that are not columns on the entity itself
    (customer first/last name, preferred language).
    """

    __tablename__ = "generic_attributes"
    __table_args__ = (
        Index("idx_generic_attributes_entity", "key_group", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    key_group: Mapped[str] = mapped_column(String(400), nullable=False)  # e.g. "Customer"
    key: Mapped[str] = mapped_column(String(400), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    store_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_or_updated_date_utc: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)


class ActivityLog(Base):
    """
    Append-only activity log entry.
    Generic on purpose: entity_name + entity_id point at whatever the activity touched.
    """

    __tablename__ = "activity_log"
    __table_args__ = (
        Index("idx_activity_log_keyword", "system_keyword"),
        Index("idx_activity_log_entity", "entity_name", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_on_utc: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    system_keyword: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "AddNewCustomer"
    comment: Mapped[str] = mapped_column(Text, nullable=False)

    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    entity_name: Mapped[str | None] = mapped_column(String(400), nullable=True)  # e.g. "Customer"

    client_id: Mapped[str | None] = mapped_column(String(200), nullable=True)  # api client that performed it
    ip_address: Mapped[str | None] = mapped_column(String(100), nullable=True)


class ApiClient(Base):
    __tablename__ = "api_clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    client_secret_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    access_token_lifetime: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds; None -> API_TOKEN_LIFETIME
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    tokens: Mapped[list["ApiAccessToken"]] = relationship(
        "ApiAccessToken",
        back_populates="client",
        cascade="all, delete-orphan",
        lazy="select",
    )


class ApiAccessToken(Base):
    __tablename__ = "api_access_tokens"
    __table_args__ = (
        Index("idx_api_access_tokens_client", "api_client_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    api_client_id: Mapped[int] = mapped_column(ForeignKey("api_clients.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)  # sha256 hex
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    client: Mapped[ApiClient] = relationship("ApiClient", back_populates="tokens", lazy="selectin")


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.storeapi.modules.customers.models import (  # noqa: E402,F401
    Customer,
    CustomerAddressMapping,
    CustomerPassword,
    CustomerRole,
    CustomerRoleMapping,
    NewsLetterSubscription,
)
