"""
Encryption utilities

Symmetric encryption (Fernet) for secrets stored alongside rental data,
such as the door codes of storage locations.
"""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet
from django.conf import settings


def _derive_key(raw: str) -> bytes:
    """Turn an arbitrary configured secret into a valid Fernet key."""
    try:
        Fernet(raw.encode())
        return raw.encode()
    except ValueError:
        return base64.urlsafe_b64encode(hashlib.sha256(raw.encode()).digest())


@lru_cache(maxsize=4)
def _fernet_for(raw_key: str) -> Fernet:
    return Fernet(_derive_key(raw_key))


def get_fernet() -> Fernet:
    key = getattr(settings, 'ENCRYPTION_KEY', None)
    if not key:
        raise ValueError(
            "ENCRYPTION_KEY not configured in settings. "
            "Generate one with: python -c 'from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())'"
        )
    if isinstance(key, bytes):
        key = key.decode()
    return _fernet_for(key)


def encrypt_string(plaintext: str) -> str:
    if not plaintext:
        return ''
    return get_fernet().encrypt(plaintext.encode()).decode()


def decrypt_string(token: str) -> str:
    """Raises cryptography.fernet.InvalidToken for tampered or foreign data."""
    if not token:
        return ''
    return get_fernet().decrypt(token.encode()).decode()
