from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g

from app.storeapi.clients import ClientService
from app.storeapi.db import db_session
from app.storeapi.errors import ApiError


def require_api_client(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Bearer-token guard for API endpoints.
    No valid token -> 401; API disabled or restricted client -> 403.
    """

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if not current_app.config.get("API_ENABLED", True):
            raise ApiError.single(403, "api", "API is disabled")
        claims = getattr(g, "api_claims", None)
        if not claims:
            raise ApiError.single(401, "authorization", "Unauthorized")
        clients = ClientService(db_session(), current_app.config.get("API_RESTRICTED_CLIENT_IDS") or "")
        if clients.user_has_restricted_access(claims):
            g.missing_permission = "unrestricted client"
            raise ApiError.single(403, "authorization", "Forbidden")
        return fn(*args, **kwargs)

    return wrapped
