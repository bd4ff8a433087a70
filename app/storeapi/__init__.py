import logging

from cryptography.fernet import Fernet
from flask import Flask, g, request
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.storeapi.config import load_config
from app.storeapi.constants import PASSWORD_FORMAT_ENCRYPTED, PASSWORD_FORMATS
from app.storeapi.db import init_db, teardown_db_session
from app.storeapi.encryption import SUPPORTED_HASH_FORMATS
from app.storeapi.errors import ApiError, error_response
from app.storeapi.routes import bp as routes_bp
from app.storeapi.auth import bp as auth_bp, load_current_client
from app.storeapi.modules.customers.api import bp as customers_api_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config.setdefault("MAX_CONTENT_LENGTH", 1 * 1024 * 1024)  # 1MB JSON bodies

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    password_format = app.config.get("CUSTOMER_PASSWORD_FORMAT")
    if password_format not in PASSWORD_FORMATS:
        raise RuntimeError(f"CUSTOMER_PASSWORD_FORMAT must be one of {sorted(PASSWORD_FORMATS)} (got {password_format!r}).")
    hashed_format = app.config.get("HASHED_PASSWORD_FORMAT")
    if hashed_format not in SUPPORTED_HASH_FORMATS:
        raise RuntimeError(f"HASHED_PASSWORD_FORMAT must be one of {sorted(SUPPORTED_HASH_FORMATS)} (got {hashed_format!r}).")
    if password_format == PASSWORD_FORMAT_ENCRYPTED:
        if not app.config.get("ENCRYPTION_KEY"):
            raise RuntimeError("ENCRYPTION_KEY is required when CUSTOMER_PASSWORD_FORMAT=encrypted.")
        try:
            Fernet(app.config["ENCRYPTION_KEY"])
        except (ValueError, TypeError) as e:
            raise RuntimeError(f"ENCRYPTION_KEY is not a valid Fernet key: {e}") from None

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(customers_api_bp, url_prefix="/api")

    app.before_request(load_current_client)
    app.teardown_appcontext(teardown_db_session)

    @app.after_request
    def _log_api_request(response):  # type: ignore[no-redef]
        if app.config.get("API_ENABLE_LOGGING") and request.path.startswith("/api/"):
            claims = getattr(g, "api_claims", None) or {}
            app.logger.info(
                "API %s %s -> %s (client_id=%s request_id=%s)",
                request.method,
                request.path,
                response.status_code,
                claims.get("client_id"),
                getattr(g, "request_id", None),
            )
        return response

    @app.errorhandler(ApiError)
    def _err_api(e: ApiError):  # type: ignore[no-redef]
        if e.status_code == 403:
            app.logger.warning(
                "Forbidden: %s request_id=%s",
                getattr(g, "missing_permission", None) or e.errors,
                getattr(g, "request_id", None),
            )
        return error_response(e.status_code, e.errors)

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        key = (e.name or "error").lower().replace(" ", "_")
        return error_response(e.code or 500, {key: [e.description or e.name]})

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return error_response(500, {"server": ["Internal server error"]})

    # Startup logging
    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
