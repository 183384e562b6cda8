"""Unit tests for clipboard access."""

import pyperclip
import pytest
from unittest.mock import patch

from confseal.core.exceptions import ConfsealError
from confseal.frontend.cli.clipboard import ClipboardError, copy_to_clipboard


def test_copy_to_clipboard():
    with patch("confseal.frontend.cli.clipboard.pyperclip.copy") as copy:
        copy_to_clipboard("packaged")
    copy.assert_called_once_with("packaged")


def test_copy_failure_is_clipboard_error():
    with patch(
        "confseal.frontend.cli.clipboard.pyperclip.copy",
        side_effect=pyperclip.PyperclipException("no clipboard"),
    ):
        with pytest.raises(ClipboardError, match="clipboard unavailable"):
            copy_to_clipboard("packaged")
    assert issubclass(ClipboardError, ConfsealError)
