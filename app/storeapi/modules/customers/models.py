from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.storeapi.models import Base


class CustomerRole(Base):
    __tablename__ = "customer_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    system_name: Mapped[str | None] = mapped_column(String(255), nullable=True)  # e.g. "Registered"
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_system_role: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    free_shipping: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tax_exempt: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class CustomerRoleMapping(Base):
    __tablename__ = "customer_role_mappings"

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    customer_role_id: Mapped[int] = mapped_column(ForeignKey("customer_roles.id", ondelete="CASCADE"), primary_key=True)


class CustomerAddressMapping(Base):
    __tablename__ = "customer_address_mappings"

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    address_id: Mapped[int] = mapped_column(ForeignKey("addresses.id", ondelete="CASCADE"), primary_key=True)


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("idx_customers_email", "email"),
        Index("idx_customers_username", "username"),
        Index("idx_customers_created_on_utc", "created_on_utc"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_guid: Mapped[str] = mapped_column(String(36), nullable=False)

    username: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    email: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    admin_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_tax_exempt: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_shopping_cart_items: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    requires_re_login: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_system_account: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    system_name: Mapped[str | None] = mapped_column(String(400), nullable=True)
    last_ip_address: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_on_utc: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    last_login_date_utc: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    last_activity_date_utc: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    registered_in_store_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    billing_address_id: Mapped[int | None] = mapped_column(ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    shipping_address_id: Mapped[int | None] = mapped_column(ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)


class CustomerPassword(Base):
    __tablename__ = "customer_passwords"
    __table_args__ = (
        Index("idx_customer_passwords_customer_id", "customer_id", "created_on_utc"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    password_format: Mapped[str] = mapped_column(String(16), nullable=False)  # clear | encrypted | hashed
    password_salt: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_on_utc: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class NewsLetterSubscription(Base):
    __tablename__ = "newsletter_subscriptions"
    __table_args__ = (
        Index("idx_newsletter_subscriptions_email_store", "email", "store_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    newsletter_subscription_guid: Mapped[str] = mapped_column(String(36), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    created_on_utc: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
