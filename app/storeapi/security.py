import hashlib
import secrets

from flask import Request


def generate_access_token() -> str:
    """Opaque bearer token handed to API clients."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Tokens are stored hashed; only the client ever sees the raw value."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def bearer_token(req: Request) -> str | None:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    header = (req.headers.get("Authorization") or "").strip()
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
