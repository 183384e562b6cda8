import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from confseal.core.models import DEFAULT_ITERATIONS, KEY_SIZE, MAX_ITERATIONS, NONCE_SIZE, SALT_SIZE


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def generate_nonce(length: int = NONCE_SIZE) -> bytes:
    """Return a fresh random AES-GCM nonce."""
    return os.urandom(length)


def derive_key(
    password: str | bytes,
    salt: bytes,
    iterations: int = DEFAULT_ITERATIONS,
    key_len: int = KEY_SIZE,
) -> bytes:
    """
    Derive a single-use AES-256 key from a password using PBKDF2-HMAC-SHA256.
    Returns raw derived key bytes.
    """
    if not salt:
        raise ValueError("salt must not be empty")
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise ValueError(f"iterations must be a positive integer, got {iterations!r}")
    if iterations > MAX_ITERATIONS:
        raise ValueError(f"iterations must not exceed {MAX_ITERATIONS}, got {iterations}")

    if isinstance(password, str):
        password = password.encode("utf-8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_len,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)

