"""Field-level encryption for sensitive linked-account data"""

import base64
import hashlib
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from cayden_gateway.config import settings


@lru_cache
def _cipher(secret: str) -> Fernet:
    # Fernet needs 32 url-safe base64 bytes; derive them from the configured secret
    key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode()).digest())
    return Fernet(key)


def get_cipher() -> Fernet:
    return _cipher(settings.encryption_key)


def encrypt(plaintext: str) -> str:
    return get_cipher().encrypt(plaintext.encode()).decode()


def decrypt(token: str) -> str:
    return get_cipher().decrypt(token.encode()).decode()


def decrypt_field(value: str) -> str:
    """Decrypt a stored field, passing through legacy plaintext values"""
    try:
        return decrypt(value)
    except InvalidToken:
        logging.debug("Stored field is not a Fernet token, returning as-is")
        return value
