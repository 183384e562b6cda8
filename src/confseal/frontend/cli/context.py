"""Small helper to build a confseal app context for the CLI and TUI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import getpass

from confseal.core.config import Settings, load_settings
from confseal.core.exceptions import ConfsealError
from confseal.core.payload import load_records


@dataclass
class AppContext:
    """Container for runtime objects the UI needs."""

    settings: Settings
    records: Dict[str, Any] = field(default_factory=dict)
    records_path: Optional[Path] = None


def build_context(
    records_path: Optional[str | Path] = None,
    env: Optional[Mapping[str, str]] = None,
    use_keyring: bool = True,
) -> AppContext:
    """
    Load settings and, when given, the record file to export from.

    Settings come from ``CONFSEAL_*`` environment variables (see
    :mod:`confseal.core.config`). Without a record file the context carries
    no records; the TUI then only offers importing.
    """
    settings = load_settings(env, use_keyring=use_keyring)
    records: Dict[str, Any] = {}
    path = None
    if records_path is not None:
        path = Path(records_path).expanduser()
        records = load_records(path)
    return AppContext(settings=settings, records=records, records_path=path)


def read_password(ctx: AppContext, confirm: bool = False, prompt: str = "Password: ") -> str:
    """Return the password from ``CONFSEAL_PASSWORD`` or prompt for it."""
    if ctx.settings.password:
        return ctx.settings.password
    password = getpass.getpass(prompt)
    if confirm and getpass.getpass("Repeat password: ") != password:
        raise ConfsealError("passwords do not match")
    return password
