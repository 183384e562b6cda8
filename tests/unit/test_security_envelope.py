"""
Unit tests for envelope encryption/decryption.
"""

import asyncio
import dataclasses
import json
from unittest.mock import patch

import pytest

from confseal.core.exceptions import (
    DecryptionError,
    EncryptionError,
    MalformedPackageError,
    UnsupportedFormatError,
)
from confseal.core.models import DEFAULT_ITERATIONS, Envelope
from confseal.core.payload import ExportKind, ExportPayload
from confseal.security import envelope as envelope_mod
from confseal.security.envelope import (
    DECRYPTION_FAILED,
    decrypt,
    decrypt_async,
    encrypt,
    encrypt_async,
    needs_rehash,
    reseal,
    serialize_payload,
)
from confseal.security.kdf import derive_key

# Low cost keeps the tamper grids fast; default-cost behaviour has its own tests.
FAST = 1000

VOD_PAYLOAD = {"type": "vod", "vodSources": [{"key": "k1", "name": "N", "api": "https://x"}]}


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def sealed():
    """An envelope of VOD_PAYLOAD under a known password."""
    return encrypt(VOD_PAYLOAD, "correct-password", iterations=FAST)


def _flip(raw: bytes, index: int, bit: int = 0) -> bytes:
    out = bytearray(raw)
    out[index] ^= 1 << bit
    return bytes(out)


# ==============================================================================
# Tests: Encryption shape
# ==============================================================================

def test_encrypt_populates_all_fields():
    env = encrypt(VOD_PAYLOAD, "pw")

    assert env.version == "2.0"
    assert env.algorithm == "aes-256-gcm"
    assert env.kdf == "pbkdf2"
    assert len(env.salt) == 16
    assert len(env.iv) == 12
    assert len(env.tag) == 16
    assert env.iterations == DEFAULT_ITERATIONS == 100_000
    # GCM ciphertext has the plaintext's length once the tag is split off
    assert len(env.data) == len(serialize_payload(VOD_PAYLOAD))


def test_envelope_is_immutable(sealed):
    with pytest.raises(dataclasses.FrozenInstanceError):
        sealed.iterations = 1


def test_serialize_payload_is_compact_and_ordered():
    raw = serialize_payload({"b": 1, "a": "é"})
    assert raw == '{"b":1,"a":"é"}'.encode("utf-8")


def test_serialize_payload_accepts_export_payload():
    payload = ExportPayload(kind=ExportKind.VOD, vod_sources=[{"key": "k"}], timestamp=5)
    assert json.loads(serialize_payload(payload)) == {
        "timestamp": 5,
        "type": "vod",
        "vodSources": [{"key": "k"}],
    }


def test_encrypt_rejects_unserializable_payload():
    with pytest.raises(EncryptionError, match="not JSON-serializable"):
        encrypt({"when": object()}, "pw", iterations=FAST)


def test_encrypt_rejects_nan():
    with pytest.raises(EncryptionError):
        encrypt({"x": float("nan")}, "pw", iterations=FAST)


def test_encrypt_rejects_empty_password():
    with pytest.raises(EncryptionError, match="password"):
        encrypt(VOD_PAYLOAD, "", iterations=FAST)


def test_encrypt_rejects_bad_iterations():
    with pytest.raises(EncryptionError):
        encrypt(VOD_PAYLOAD, "pw", iterations=0)


# ==============================================================================
# Tests: Round trip
# ==============================================================================

@pytest.mark.parametrize(
    "payload",
    [
        VOD_PAYLOAD,
        [],
        "plain string",
        42,
        None,
        {"unicode": "🔒 配置", "nested": {"list": [1, 2.5, True, None]}},
    ],
)
def test_round_trip(payload):
    env = encrypt(payload, "s3cret", iterations=FAST)
    assert decrypt(env, "s3cret") == payload


def test_round_trip_preserves_bytes():
    """Decrypted payload re-serializes to the exact bytes that were sealed."""
    payload = {"z": 1, "a": [3, 2, 1], "m": "ü"}
    env = encrypt(payload, "pw", iterations=FAST)
    assert serialize_payload(decrypt(env, "pw")) == serialize_payload(payload)


def test_concrete_vod_scenario():
    env = encrypt(VOD_PAYLOAD, "Sup3r$ecret!")
    assert decrypt(env, "Sup3r$ecret!") == VOD_PAYLOAD


def test_decrypt_does_not_mutate_envelope(sealed):
    before = dataclasses.astuple(sealed)
    decrypt(sealed, "correct-password")
    assert dataclasses.astuple(sealed) == before


# ==============================================================================
# Tests: Randomness
# ==============================================================================

def test_same_input_gives_different_envelopes():
    a = encrypt(VOD_PAYLOAD, "pw", iterations=FAST)
    b = encrypt(VOD_PAYLOAD, "pw", iterations=FAST)

    assert a.salt != b.salt
    assert a.iv != b.iv
    assert a.data != b.data


# ==============================================================================
# Tests: Authentication failures
# ==============================================================================

def test_wrong_password_raises(sealed):
    with pytest.raises(DecryptionError) as excinfo:
        decrypt(sealed, "wrong-password")
    assert str(excinfo.value) == DECRYPTION_FAILED


@pytest.mark.parametrize("field", ["data", "tag"])
def test_every_bit_flip_is_detected(sealed, field):
    raw = getattr(sealed, field)
    for index in range(len(raw)):
        for bit in (0, 7):
            tampered = dataclasses.replace(sealed, **{field: _flip(raw, index, bit)})
            with pytest.raises(DecryptionError):
                decrypt(tampered, "correct-password")


@pytest.mark.parametrize("field", ["salt", "iv"])
def test_parameter_corruption_is_detected(sealed, field):
    tampered = dataclasses.replace(sealed, **{field: _flip(getattr(sealed, field), 3)})
    with pytest.raises(DecryptionError):
        decrypt(tampered, "correct-password")


def test_wrong_password_and_corruption_are_indistinguishable(sealed):
    with pytest.raises(DecryptionError) as wrong:
        decrypt(sealed, "nope")
    with pytest.raises(DecryptionError) as corrupt:
        decrypt(dataclasses.replace(sealed, tag=_flip(sealed.tag, 0)), "correct-password")

    assert type(wrong.value) is type(corrupt.value)
    assert str(wrong.value) == str(corrupt.value)
    # the underlying cipher exception is not chained onto the error
    assert wrong.value.__cause__ is None and corrupt.value.__cause__ is None


def test_changed_iteration_count_fails(sealed):
    for iterations in (FAST - 1, FAST + 1, FAST * 2):
        with pytest.raises(DecryptionError):
            decrypt(dataclasses.replace(sealed, iterations=iterations), "correct-password")


def test_decrypt_uses_envelope_iterations_not_default(sealed):
    with patch("confseal.security.envelope.derive_key", wraps=derive_key) as spy:
        decrypt(sealed, "correct-password")
    assert spy.call_args[0][2] == FAST


def test_truncated_nonce_is_a_decryption_error(sealed):
    with pytest.raises(DecryptionError):
        decrypt(dataclasses.replace(sealed, iv=b""), "correct-password")


def test_invalid_iterations_in_envelope_is_a_decryption_error(sealed):
    with pytest.raises(DecryptionError):
        decrypt(dataclasses.replace(sealed, iterations=0), "correct-password")


# ==============================================================================
# Tests: Format checks
# ==============================================================================

@pytest.mark.parametrize(
    "changes",
    [
        {"version": "3.0"},
        {"version": "1.0"},
        {"algorithm": "aes-128-cbc"},
        {"kdf": "argon2id"},
    ],
)
def test_unsupported_format(sealed, changes):
    with pytest.raises(UnsupportedFormatError):
        decrypt(dataclasses.replace(sealed, **changes), "correct-password")


def test_minor_version_bump_is_accepted(sealed):
    assert decrypt(dataclasses.replace(sealed, version="2.1"), "correct-password") == VOD_PAYLOAD


def test_non_json_plaintext_is_malformed():
    """Authenticated plaintext that is not JSON means a broken producer."""
    with patch.object(envelope_mod, "serialize_payload", return_value=b"\xff not json"):
        env = encrypt("ignored", "pw", iterations=FAST)
    with pytest.raises(MalformedPackageError):
        decrypt(env, "pw")


# ==============================================================================
# Tests: Iteration upgrade
# ==============================================================================

def test_needs_rehash():
    env = Envelope("2.0", "aes-256-gcm", "pbkdf2", b"s" * 16, b"i" * 12, 50_000, b"", b"t" * 16)
    assert needs_rehash(env) is True
    assert needs_rehash(env, 50_000) is False
    assert needs_rehash(env, 10_000) is False


def test_reseal_upgrades_cost(sealed):
    upgraded = reseal(sealed, "correct-password", iterations=FAST * 2)

    assert upgraded.iterations == FAST * 2
    assert upgraded.salt != sealed.salt
    assert upgraded.iv != sealed.iv
    assert decrypt(upgraded, "correct-password") == VOD_PAYLOAD


def test_reseal_keeps_envelope_that_meets_cost(sealed):
    assert reseal(sealed, "correct-password", iterations=FAST) is sealed


def test_reseal_requires_correct_password(sealed):
    with pytest.raises(DecryptionError):
        reseal(sealed, "wrong", iterations=FAST * 2)


# ==============================================================================
# Tests: Async wrappers
# ==============================================================================

@pytest.mark.asyncio
async def test_async_round_trip():
    env = await encrypt_async(VOD_PAYLOAD, "pw", FAST)
    assert await decrypt_async(env, "pw") == VOD_PAYLOAD


@pytest.mark.asyncio
async def test_async_calls_run_concurrently():
    envelopes = await asyncio.gather(*(encrypt_async({"n": n}, f"pw{n}", FAST) for n in range(4)))
    payloads = await asyncio.gather(
        *(decrypt_async(env, f"pw{n}") for n, env in enumerate(envelopes))
    )

    assert payloads == [{"n": n} for n in range(4)]
    assert len({env.salt for env in envelopes}) == 4


@pytest.mark.asyncio
async def test_async_decrypt_propagates_errors():
    env = await encrypt_async(VOD_PAYLOAD, "pw", FAST)
    with pytest.raises(DecryptionError):
        await decrypt_async(env, "other")


# ==============================================================================
# Tests: Hand-edited envelopes
# ==============================================================================

@pytest.mark.parametrize("iterations", [2**32, 2**64])
def test_oversized_iterations_is_a_decryption_error(sealed, iterations):
    with pytest.raises(DecryptionError) as excinfo:
        decrypt(dataclasses.replace(sealed, iterations=iterations), "correct-password")
    assert str(excinfo.value) == DECRYPTION_FAILED


def test_kdf_overflow_is_a_decryption_error(sealed):
    with patch("confseal.security.envelope.derive_key", side_effect=OverflowError("int too big")):
        with pytest.raises(DecryptionError):
            decrypt(sealed, "correct-password")


# ==============================================================================
# Tests: Payload fidelity
# ==============================================================================

@pytest.mark.parametrize(
    "payload",
    [
        {1: "a"},
        {"outer": {None: 1}},
        [{"ok": 1}, {2.5: "x"}],
        {"list": (1, 2)},
        (1, 2),
    ],
)
def test_payload_that_would_not_round_trip_is_rejected(payload):
    with pytest.raises(EncryptionError):
        encrypt(payload, "pw", iterations=FAST)


def test_circular_payload_is_rejected():
    loop = []
    loop.append(loop)
    with pytest.raises(EncryptionError):
        serialize_payload(loop)
