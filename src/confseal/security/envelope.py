"""
Password-based envelope encryption for configuration exports.

An envelope is produced in one pass:

- serialize the payload as compact UTF-8 JSON
- draw a fresh 16-byte salt and 12-byte nonce
- derive an AES-256 key with PBKDF2-HMAC-SHA256 (:mod:`confseal.security.kdf`)
- encrypt with AES-256-GCM and split the 16-byte tag off the ciphertext

Decryption re-derives the key from the salt and iteration count stored in the
envelope, never from the caller's defaults, so older envelopes stay readable
when the default cost goes up. Every authentication failure is reported with
the same :class:`DecryptionError`, whether the password was wrong or the
envelope was altered.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from confseal.core.exceptions import (
    DecryptionError,
    EncryptionError,
    MalformedPackageError,
    UnsupportedFormatError,
)
from confseal.core.models import (
    ALGORITHM,
    DEFAULT_ITERATIONS,
    FORMAT_VERSION,
    KDF,
    TAG_SIZE,
    Envelope,
)
from confseal.core.payload import ExportPayload
from .kdf import derive_key, generate_nonce, generate_salt

logger = logging.getLogger(__name__)

DECRYPTION_FAILED = "decryption failed: wrong password or corrupted data"

SUPPORTED_MAJOR_VERSIONS = (FORMAT_VERSION.split(".", 1)[0],)


def _check_round_trip(value: Any) -> None:
    # refuse what json.dumps would coerce: non-string keys, tuples
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncryptionError(f"payload keys must be strings, got {key!r}")
            _check_round_trip(item)
    elif isinstance(value, tuple):
        raise EncryptionError("payload must use lists, not tuples")
    elif isinstance(value, list):
        for item in value:
            _check_round_trip(item)


def serialize_payload(payload: Any) -> bytes:
    """
    Return the canonical byte form of ``payload``.

    Compact separators, key order preserved and non-ASCII kept as-is, so the
    same value always yields the same bytes. Only values that decode back to
    an equal value are accepted: object keys must be strings and arrays must
    be lists.
    """
    if isinstance(payload, ExportPayload):
        payload = payload.to_dict()
    try:
        _check_round_trip(payload)
    except RecursionError:
        raise EncryptionError("payload is nested too deeply or circular") from None
    try:
        text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncryptionError(f"payload is not JSON-serializable: {e}") from e
    return text.encode("utf-8")


def encrypt(payload: Any, password: str, iterations: int = DEFAULT_ITERATIONS) -> Envelope:
    """
    Encrypt ``payload`` under ``password`` and return a new :class:`Envelope`.

    Args:
        payload: any JSON-serializable value, or an :class:`ExportPayload`
        password: non-empty password; strength is the caller's concern
        iterations: PBKDF2 cost for this envelope

    Raises:
        EncryptionError: payload cannot be serialized or the cipher failed
    """
    if not password:
        raise EncryptionError("password must not be empty")

    plaintext = serialize_payload(payload)
    salt = generate_salt()
    nonce = generate_nonce()

    try:
        key = derive_key(password, salt, iterations)
        sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    except ValueError as e:
        raise EncryptionError(f"encryption failed: {e}") from e

    # AESGCM appends the tag to the ciphertext
    envelope = Envelope(
        version=FORMAT_VERSION,
        algorithm=ALGORITHM,
        kdf=KDF,
        salt=salt,
        iv=nonce,
        iterations=iterations,
        data=sealed[:-TAG_SIZE],
        tag=sealed[-TAG_SIZE:],
    )
    logger.debug("sealed %d bytes with %d iterations", len(plaintext), iterations)
    return envelope


def check_format(envelope: Envelope) -> None:
    """Raise :class:`UnsupportedFormatError` unless the envelope uses a known format."""
    if envelope.major_version not in SUPPORTED_MAJOR_VERSIONS:
        raise UnsupportedFormatError(f"Unsupported envelope version: {envelope.version}")
    if envelope.algorithm != ALGORITHM:
        raise UnsupportedFormatError(f"Unsupported algorithm: {envelope.algorithm}")
    if envelope.kdf != KDF:
        raise UnsupportedFormatError(f"Unsupported key derivation function: {envelope.kdf}")


def decrypt(envelope: Envelope, password: str) -> Any:
    """
    Decrypt an envelope produced by :func:`encrypt` and return the payload.

    Raises:
        UnsupportedFormatError: unknown version, algorithm or kdf
        DecryptionError: wrong password or any corruption of the envelope
        MalformedPackageError: authenticated plaintext is not JSON
    """
    check_format(envelope)

    try:
        key = derive_key(password, envelope.salt, envelope.iterations)
        plaintext = AESGCM(key).decrypt(envelope.iv, envelope.data + envelope.tag, None)
    except (InvalidTag, ValueError, OverflowError) as e:
        # ValueError and OverflowError cover bad salt/iteration/nonce values from a hand-built envelope
        logger.debug("envelope failed authentication (%s)", type(e).__name__)
        raise DecryptionError(DECRYPTION_FAILED) from None

    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPackageError("decrypted payload is not valid JSON") from e


def needs_rehash(envelope: Envelope, iterations: int = DEFAULT_ITERATIONS) -> bool:
    """Return True when the envelope was sealed with fewer iterations than ``iterations``."""
    return envelope.iterations < iterations


def reseal(envelope: Envelope, password: str, iterations: int = DEFAULT_ITERATIONS) -> Envelope:
    """
    Re-encrypt an envelope at a higher cost.

    The payload is recovered with the envelope's own parameters and sealed
    again with a fresh salt and nonce. Envelopes that already meet the cost
    are returned unchanged.
    """
    payload = decrypt(envelope, password)
    if not needs_rehash(envelope, iterations):
        return envelope
    logger.info("upgrading envelope from %d to %d iterations", envelope.iterations, iterations)
    return encrypt(payload, password, iterations)


async def encrypt_async(
    payload: Any, password: str, iterations: int = DEFAULT_ITERATIONS
) -> Envelope:
    """Run :func:`encrypt` on a worker thread."""
    return await asyncio.to_thread(encrypt, payload, password, iterations)


async def decrypt_async(envelope: Envelope, password: str) -> Any:
    """Run :func:`decrypt` on a worker thread."""
    return await asyncio.to_thread(decrypt, envelope, password)
