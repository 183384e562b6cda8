"""
Base data models for envelopes and password scores
"""

from dataclasses import dataclass


# Format revision 2 of the envelope
FORMAT_VERSION = "2.0"
ALGORITHM = "aes-256-gcm"
KDF = "pbkdf2"

SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32

DEFAULT_ITERATIONS = 100_000
# PBKDF2 cost ceiling (unsigned 32-bit, as in WebCrypto)
MAX_ITERATIONS = 2**32 - 1

# Wire order of the envelope fields
ENVELOPE_FIELDS = (
    "version",
    "algorithm",
    "kdf",
    "salt",
    "iv",
    "iterations",
    "data",
    "tag",
)


@dataclass(frozen=True)
class Envelope:
    """Result of one encryption: every parameter needed to decrypt, plus the output."""

    version: str
    algorithm: str
    kdf: str
    salt: bytes  # 16 bytes
    iv: bytes  # 12 bytes
    iterations: int
    data: bytes  # ciphertext without tag
    tag: bytes  # 16 bytes

    @property
    def major_version(self) -> str:
        return self.version.split(".", 1)[0]

    def __repr__(self):
        return (
            f"Envelope(version={self.version!r}, algorithm={self.algorithm!r}, "
            f"kdf={self.kdf!r}, iterations={self.iterations}, data_len={len(self.data)})"
        )


@dataclass(frozen=True)
class PasswordStrength:
    """Advisory password score, 0 (very weak) to 4 (very strong)."""

    score: int
    message: str
    color: str

    def to_dict(self):
        return {"score": self.score, "message": self.message, "color": self.color}
