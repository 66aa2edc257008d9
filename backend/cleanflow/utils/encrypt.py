"""Encryption of secrets stored in the database (the external database password)."""

from functools import lru_cache

from cryptography.fernet import Fernet, MultiFernet

from cleanflow.config import settings


@lru_cache(maxsize=1)
def get_fernet() -> MultiFernet:
    """
    Fernet built from ``ENCRYPTION_KEY``.

    The setting may hold several comma-separated keys: the first one encrypts,
    all of them are tried for decryption, so keys can be rotated without
    re-entering stored passwords.
    """
    keys = [key.strip() for key in settings.encryption_key.split(",") if key.strip()]
    return MultiFernet([Fernet(key.encode('utf-8')) for key in keys])


def encrypt_data(data: str) -> str:
    return get_fernet().encrypt(data.encode('utf-8')).decode('utf-8')


def decrypt_data(encrypted_data: str) -> str:
    """Raises ``cryptography.fernet.InvalidToken`` when no configured key fits."""
    return get_fernet().decrypt(encrypted_data.encode('utf-8')).decode('utf-8')


def rotate_encryption(encrypted_data: str) -> str:
    """Re-encrypt a stored value under the primary key."""
    return get_fernet().rotate(encrypted_data.encode('utf-8')).decode('utf-8')
