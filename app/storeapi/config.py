import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    api_enabled: bool
    api_enable_logging: bool
    api_restricted_client_ids: str
    api_token_lifetime: int

    customer_password_format: str
    hashed_password_format: str
    encryption_key: str
    customer_suffix_deleted: bool


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getflag(name: str, default: str = "0") -> bool:
    return _getenv(name, default).lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///storeapi.db"),
        api_enabled=_getflag("API_ENABLED", "1"),
        api_enable_logging=_getflag("API_ENABLE_LOGGING", "0"),
        api_restricted_client_ids=_getenv("API_RESTRICTED_CLIENT_IDS", ""),
        api_token_lifetime=int(_getenv("API_TOKEN_LIFETIME", "3600")),
        customer_password_format=_getenv("CUSTOMER_PASSWORD_FORMAT", "hashed").lower(),
        hashed_password_format=_getenv("HASHED_PASSWORD_FORMAT", "SHA512").upper(),
        encryption_key=_getenv("ENCRYPTION_KEY", ""),
        customer_suffix_deleted=_getflag("CUSTOMER_SUFFIX_DELETED", "0"),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        # api plugin settings
        "API_ENABLED": s.api_enabled,
        "API_ENABLE_LOGGING": s.api_enable_logging,
        "API_RESTRICTED_CLIENT_IDS": s.api_restricted_client_ids,
        "API_TOKEN_LIFETIME": s.api_token_lifetime,
        # customer settings
        "CUSTOMER_PASSWORD_FORMAT": s.customer_password_format,
        "HASHED_PASSWORD_FORMAT": s.hashed_password_format,
        "ENCRYPTION_KEY": s.encryption_key,
        "CUSTOMER_SUFFIX_DELETED": s.customer_suffix_deleted,
        "JSON_SORT_KEYS": False,
    }
