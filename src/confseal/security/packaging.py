"""
Envelope packaging: structured envelope <-> one opaque line of text.

Wire form is the JSON object below with every byte field in standard base64;
the packaged form is base64 of that JSON's compact UTF-8 text so it can be
pasted into a single text field. No cryptography happens here.

    {"version": "2.0", "algorithm": "aes-256-gcm", "kdf": "pbkdf2",
     "salt": "<16 bytes>", "iv": "<12 bytes>", "iterations": 100000,
     "data": "<ciphertext>", "tag": "<16 bytes>"}
"""

import base64
import binascii
import json
from typing import Any, Dict

from confseal.core.exceptions import MalformedPackageError
from confseal.core.models import ENVELOPE_FIELDS, MAX_ITERATIONS, NONCE_SIZE, SALT_SIZE, TAG_SIZE, Envelope

_STRING_FIELDS = ("version", "algorithm", "kdf")
# byte field -> exact decoded length (None: any length)
_BYTE_FIELDS = {"salt": SALT_SIZE, "iv": NONCE_SIZE, "data": None, "tag": TAG_SIZE}


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str) -> bytes:
    # whitespace is tolerated, any other non-alphabet character is not
    compact = "".join(text.split())
    return base64.b64decode(compact, validate=True)


def envelope_to_dict(envelope: Envelope) -> Dict[str, Any]:
    """Return the wire mapping of an envelope, fields in wire order."""
    return {
        "version": envelope.version,
        "algorithm": envelope.algorithm,
        "kdf": envelope.kdf,
        "salt": _b64encode(envelope.salt),
        "iv": _b64encode(envelope.iv),
        "iterations": envelope.iterations,
        "data": _b64encode(envelope.data),
        "tag": _b64encode(envelope.tag),
    }


def envelope_from_dict(obj: Any) -> Envelope:
    """
    Validate a wire mapping and build an :class:`Envelope`.

    Raises:
        MalformedPackageError: missing fields, wrong types, bad base64 or wrong byte lengths
    """
    if not isinstance(obj, dict):
        raise MalformedPackageError("envelope must be a JSON object")

    missing = [name for name in ENVELOPE_FIELDS if name not in obj]
    if missing:
        raise MalformedPackageError(f"envelope is missing fields: {', '.join(missing)}")

    for name in _STRING_FIELDS:
        if not isinstance(obj[name], str):
            raise MalformedPackageError(f"envelope field {name!r} must be a string")

    iterations = obj["iterations"]
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise MalformedPackageError("envelope field 'iterations' must be a positive integer")
    if iterations > MAX_ITERATIONS:
        raise MalformedPackageError(f"envelope field 'iterations' must not exceed {MAX_ITERATIONS}")

    raw: Dict[str, bytes] = {}
    for name, size in _BYTE_FIELDS.items():
        value = obj[name]
        if not isinstance(value, str):
            raise MalformedPackageError(f"envelope field {name!r} must be a base64 string")
        try:
            raw[name] = _b64decode(value)
        except (binascii.Error, ValueError) as e:
            raise MalformedPackageError(f"envelope field {name!r} is not valid base64") from e
        if size is not None and len(raw[name]) != size:
            raise MalformedPackageError(
                f"envelope field {name!r} must decode to {size} bytes, got {len(raw[name])}"
            )

    return Envelope(
        version=obj["version"],
        algorithm=obj["algorithm"],
        kdf=obj["kdf"],
        salt=raw["salt"],
        iv=raw["iv"],
        iterations=iterations,
        data=raw["data"],
        tag=raw["tag"],
    )


def envelope_to_json(envelope: Envelope, indent: int | None = 2) -> str:
    """Envelope as JSON text; pretty by default for downloadable files."""
    if indent is None:
        return json.dumps(envelope_to_dict(envelope), separators=(",", ":"))
    return json.dumps(envelope_to_dict(envelope), indent=indent)


def envelope_from_json(text: str) -> Envelope:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedPackageError(f"envelope is not valid JSON: {e}") from e
    return envelope_from_dict(obj)


def pack(envelope: Envelope) -> str:
    """Return the envelope as one base64 line."""
    text = envelope_to_json(envelope, indent=None)
    return _b64encode(text.encode("utf-8"))


def unpack(packaged: str) -> Envelope:
    """
    Reverse :func:`pack`.

    Raises:
        MalformedPackageError: not base64, not UTF-8 JSON, or not an envelope
    """
    if not isinstance(packaged, str) or not packaged.strip():
        raise MalformedPackageError("packaged envelope is empty")
    try:
        raw = _b64decode(packaged)
    except (binascii.Error, ValueError) as e:
        raise MalformedPackageError("packaged envelope is not valid base64") from e
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPackageError("packaged envelope is not UTF-8 text") from e
    return envelope_from_json(text)


def load_envelope(text: str) -> Envelope:
    """Accept either a packaged string or raw envelope JSON (as saved to a file)."""
    if text.lstrip().startswith("{"):
        return envelope_from_json(text)
    return unpack(text)
