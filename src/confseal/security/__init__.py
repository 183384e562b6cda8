"""Security helpers: the password envelope core of confseal.

This package provides:
- PBKDF2-HMAC-SHA256 key derivation with per-envelope salt and cost
- AES-256-GCM envelope encryption/decryption of JSON payloads
- Packaging of envelopes into a single base64 line
- Advisory password strength scoring
- Optional keyring storage for the publishing token
"""

from .kdf import generate_salt, generate_nonce, derive_key
from .envelope import (
    encrypt,
    decrypt,
    encrypt_async,
    decrypt_async,
    needs_rehash,
    reseal,
    serialize_payload,
)
from .packaging import (
    pack,
    unpack,
    envelope_to_dict,
    envelope_from_dict,
    envelope_to_json,
    envelope_from_json,
    load_envelope,
)
from .strength import score_password
from .keystore import save_token, load_token, delete_token, assess_keyring_backend

__all__ = [
    "generate_salt",
    "generate_nonce",
    "derive_key",
    "encrypt",
    "decrypt",
    "encrypt_async",
    "decrypt_async",
    "needs_rehash",
    "reseal",
    "serialize_payload",
    "pack",
    "unpack",
    "envelope_to_dict",
    "envelope_from_dict",
    "envelope_to_json",
    "envelope_from_json",
    "load_envelope",
    "score_password",
    "save_token",
    "load_token",
    "delete_token",
    "assess_keyring_backend",
]
