"""
confseal - password-protected, tamper-evident configuration exports.

The security package holds the envelope core (key derivation, AES-256-GCM
sealing, packaging and password scoring); transport and frontend are thin
collaborators around it.
"""

from confseal.core.exceptions import (
    ConfsealError,
    DecryptionError,
    EncryptionError,
    MalformedPackageError,
    UnsupportedFormatError,
)
from confseal.core.models import Envelope, PasswordStrength
from confseal.security.envelope import decrypt, decrypt_async, encrypt, encrypt_async
from confseal.security.packaging import pack, unpack
from confseal.security.strength import score_password

__version__ = "0.3.0"

__all__ = [
    "ConfsealError",
    "DecryptionError",
    "EncryptionError",
    "MalformedPackageError",
    "UnsupportedFormatError",
    "Envelope",
    "PasswordStrength",
    "encrypt",
    "decrypt",
    "encrypt_async",
    "decrypt_async",
    "pack",
    "unpack",
    "score_password",
]
