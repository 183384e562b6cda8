"""Clipboard utilities for the CLI frontend.

Uses pyperclip for cross-platform clipboard access.
"""

from __future__ import annotations

import pyperclip

from confseal.core.exceptions import ConfsealError


class ClipboardError(ConfsealError):
    # no usable clipboard mechanism on this system
    pass


def copy_to_clipboard(text: str) -> None:
    """Copy text to the system clipboard.

    Args:
        text: The text to copy.

    Raises:
        ClipboardError: If clipboard access fails.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f"clipboard unavailable: {e}") from e
