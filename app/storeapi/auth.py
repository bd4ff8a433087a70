from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request
from werkzeug.security import check_password_hash

from app.storeapi.db import db_session
from app.storeapi.models import ApiAccessToken, ApiClient
from app.storeapi.security import bearer_token, generate_access_token, hash_token

bp = Blueprint("auth", __name__)
_token_attempts: dict[str, list[datetime]] = defaultdict(list)
_TOKEN_RATE_LIMIT = 10
_TOKEN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_TOKEN_RATE_WINDOW)
    _token_attempts[ip] = [t for t in _token_attempts[ip] if t > cutoff]
    return len(_token_attempts[ip]) >= _TOKEN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _token_attempts[ip].append(datetime.utcnow())


def load_current_client() -> None:
    """
    Resolves g.api_claims from the bearer token (None when absent/invalid/expired).
    Also assigns a simple per-request request_id (for activity/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.api_claims = None
    g.api_client = None
    if request.path.startswith(("/health", "/healthz")):
        return

    token = bearer_token(request)
    if not token:
        return

    try:
        s = db_session()
        row = s.query(ApiAccessToken).filter(ApiAccessToken.token_hash == hash_token(token)).one_or_none()
        if row is None or row.expires_at <= datetime.utcnow():
            return
        client: ApiClient = row.client
        if not client.is_active:
            return
        g.api_client = client
        g.api_claims = {"client_id": client.client_id, "name": client.name, "exp": row.expires_at.isoformat()}
    except Exception as e:
        current_app.logger.error("load_current_client DB error (treating as anonymous): %s", e)
        g.api_claims = None
        g.api_client = None


def _token_params() -> dict[str, str]:
    if request.is_json:
        data = request.get_json(silent=True) or {}
        return {k: str(v) for k, v in data.items() if v is not None}
    return {k: v for k, v in request.form.items()}


@bp.post("/token")
def token_post():
    params = _token_params()
    grant_type = (params.get("grant_type") or "").strip()
    client_id = (params.get("client_id") or "").strip()
    client_secret = params.get("client_secret") or ""
    ip = request.remote_addr or "unknown"

    if grant_type != "client_credentials":
        return jsonify({"error": "unsupported_grant_type"}), 400

    if _check_rate_limit(ip):
        return jsonify({"error": "slow_down", "error_description": "Too many token requests. Please wait 5 minutes."}), 429

    s = db_session()
    client = s.query(ApiClient).filter(ApiClient.client_id == client_id).one_or_none()
    if not client or not client.is_active or not check_password_hash(client.client_secret_hash, client_secret):
        _record_attempt(ip)
        current_app.logger.warning("Token request rejected (client_id=%s request_id=%s)", client_id, getattr(g, "request_id", None))
        return jsonify({"error": "invalid_client"}), 401

    lifetime = client.access_token_lifetime or int(current_app.config.get("API_TOKEN_LIFETIME") or 3600)
    token = generate_access_token()
    now = datetime.utcnow()
    # Drop this client's expired tokens while we are here.
    s.query(ApiAccessToken).filter(
        ApiAccessToken.api_client_id == client.id,
        ApiAccessToken.expires_at <= now,
    ).delete(synchronize_session=False)
    s.add(ApiAccessToken(api_client_id=client.id, token_hash=hash_token(token), expires_at=now + timedelta(seconds=lifetime)))
    s.commit()
    _token_attempts[ip].clear()
    current_app.logger.info("Issued access token (client_id=%s expires_in=%s)", client.client_id, lifetime)
    return jsonify({"access_token": token, "token_type": "Bearer", "expires_in": lifetime})
