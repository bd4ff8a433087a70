"""
Password storage formats for customer passwords.

- clear:     stored as given
- encrypted: Fernet token keyed by ENCRYPTION_KEY
- hashed:    upper-case hex digest of (password + salt) with HASHED_PASSWORD_FORMAT
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from cryptography.fernet import Fernet

SUPPORTED_HASH_FORMATS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA384": hashlib.sha384,
    "SHA512": hashlib.sha512,
}


def create_salt_key(size: int) -> str:
    return base64.b64encode(secrets.token_bytes(size)).decode("ascii")


def create_password_hash(password: str, salt_key: str, password_format: str = "SHA512") -> str:
    algo = SUPPORTED_HASH_FORMATS.get((password_format or "").upper())
    if algo is None:
        raise ValueError(f"Unsupported hash algorithm: {password_format}")
    return algo(f"{password}{salt_key}".encode("utf-8")).hexdigest().upper()


def encrypt_text(plain_text: str, encryption_key: str) -> str:
    if not encryption_key:
        raise ValueError("ENCRYPTION_KEY is required to encrypt text")
    return Fernet(encryption_key).encrypt(plain_text.encode("utf-8")).decode("utf-8")


def decrypt_text(cipher_text: str, encryption_key: str) -> str:
    if not encryption_key:
        raise ValueError("ENCRYPTION_KEY is required to decrypt text")
    return Fernet(encryption_key).decrypt(cipher_text.encode("utf-8")).decode("utf-8")
