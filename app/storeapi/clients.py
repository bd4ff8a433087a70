"""
API client management and the restricted-client claim check.

Clients authenticate with client_id/client_secret and receive bearer tokens.
A client listed in API_RESTRICTED_CLIENT_IDS still authenticates, but its
claims are refused by the customer endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from app.storeapi.models import ApiClient


@dataclass(frozen=True)
class ClientApiModel:
    id: int
    client_id: str
    name: str
    is_active: bool
    access_token_lifetime: int | None


def _to_model(c: ApiClient) -> ClientApiModel:
    return ClientApiModel(
        id=c.id,
        client_id=c.client_id,
        name=c.name,
        is_active=c.is_active,
        access_token_lifetime=c.access_token_lifetime,
    )


def parse_restricted_client_ids(raw: str | None) -> set[str]:
    return {p.strip().lower() for p in (raw or "").split(",") if p.strip()}


class ClientService:
    def __init__(self, s: Session, restricted_client_ids: str = ""):
        self.s = s
        self.restricted = parse_restricted_client_ids(restricted_client_ids)

    def get_all_clients(self) -> list[ClientApiModel]:
        return [_to_model(c) for c in self.s.query(ApiClient).order_by(ApiClient.id.asc()).all()]

    def find_client_by_id(self, id: int) -> ClientApiModel | None:
        c = self.s.get(ApiClient, id)
        return _to_model(c) if c else None

    def find_client_by_client_id(self, client_id: str) -> ClientApiModel | None:
        c = self.s.query(ApiClient).filter(ApiClient.client_id == client_id).one_or_none()
        return _to_model(c) if c else None

    def insert_client(
        self,
        *,
        client_id: str,
        client_secret: str,
        name: str,
        access_token_lifetime: int | None = None,
        is_active: bool = True,
    ) -> int:
        client_id = (client_id or "").strip()
        if not client_id:
            raise ValueError("client_id is required")
        if not client_secret:
            raise ValueError("client_secret is required")
        if self.find_client_by_client_id(client_id) is not None:
            raise ValueError(f"client_id already exists: {client_id}")
        c = ApiClient(
            client_id=client_id,
            client_secret_hash=generate_password_hash(client_secret),
            name=(name or "").strip() or client_id,
            is_active=is_active,
            access_token_lifetime=access_token_lifetime,
        )
        self.s.add(c)
        self.s.flush()
        return c.id

    def update_client(
        self,
        id: int,
        *,
        name: str | None = None,
        client_secret: str | None = None,
        is_active: bool | None = None,
        access_token_lifetime: int | None = None,
    ) -> ClientApiModel:
        c = self.s.get(ApiClient, id)
        if c is None:
            raise LookupError(f"api client {id} not found")
        if name is not None and name.strip():
            c.name = name.strip()
        if client_secret:
            c.client_secret_hash = generate_password_hash(client_secret)
        if is_active is not None:
            c.is_active = is_active
            if not is_active:
                c.tokens.clear()
        if access_token_lifetime is not None:
            c.access_token_lifetime = access_token_lifetime
        self.s.flush()
        return _to_model(c)

    def delete_client(self, id: int) -> None:
        c = self.s.get(ApiClient, id)
        if c is None:
            raise LookupError(f"api client {id} not found")
        self.s.delete(c)
        self.s.flush()

    def user_has_restricted_access(self, claims: dict[str, Any] | None) -> bool:
        if not claims:
            return False
        client_id = str(claims.get("client_id") or "").strip().lower()
        return bool(client_id) and client_id in self.restricted
