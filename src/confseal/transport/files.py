"""Envelope files and data URLs."""

from __future__ import annotations

import base64
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Optional

from confseal.core.exceptions import MalformedPackageError
from confseal.core.models import Envelope
from confseal.core.payload import ExportKind
from confseal.security.packaging import envelope_to_json, load_envelope

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".enc.json"


def export_filename(kind: ExportKind | str, timestamp: Optional[int] = None) -> str:
    """Name used for downloaded exports, e.g. ``config-vod-1700000000000.enc.json``."""
    if isinstance(kind, ExportKind):
        kind = kind.value
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return f"config-{kind}-{timestamp}{FILE_SUFFIX}"


def write_envelope_file(envelope: Envelope, path: str | Path) -> Path:
    """
    Write the pretty envelope JSON to ``path``.

    The file is written to a temporary sibling and renamed into place, so a
    reader never sees a partially written envelope.
    """
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    text = envelope_to_json(envelope) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("wrote envelope to %s", path)
    return path


def read_envelope_file(path: str | Path) -> Envelope:
    """Read an envelope file; either raw envelope JSON or a packaged string."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPackageError(f"{path} is not a text file") from e
    return load_envelope(text)


def data_url(envelope: Envelope) -> str:
    """Self-contained ``data:`` URL carrying the pretty envelope JSON."""
    encoded = base64.b64encode(envelope_to_json(envelope).encode("utf-8")).decode("ascii")
    return f"data:application/json;base64,{encoded}"
