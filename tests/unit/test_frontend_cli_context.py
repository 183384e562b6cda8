"""Unit tests for the CLI/TUI context helpers."""

import json

import pytest
from unittest.mock import patch

from confseal.core.config import Settings
from confseal.core.exceptions import ConfsealError, PayloadError
from confseal.frontend.cli.context import AppContext, build_context, read_password


def test_build_context_without_records():
    ctx = build_context(env={}, use_keyring=False)

    assert ctx.records == {}
    assert ctx.records_path is None
    assert ctx.settings.iterations == 100_000


def test_build_context_loads_records(tmp_path):
    path = tmp_path / "records.json"
    path.write_text(json.dumps({"vodSources": [{"key": "a"}]}), encoding="utf-8")

    ctx = build_context(path, env={"CONFSEAL_ITERATIONS": "1000"}, use_keyring=False)

    assert ctx.records["vodSources"] == [{"key": "a"}]
    assert ctx.records_path == path
    assert ctx.settings.iterations == 1000


def test_build_context_bad_record_file(tmp_path):
    path = tmp_path / "records.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(PayloadError):
        build_context(path, env={}, use_keyring=False)


def test_read_password_prefers_settings():
    ctx = AppContext(settings=Settings(password="from-env"))
    with patch("confseal.frontend.cli.context.getpass.getpass") as prompt:
        assert read_password(ctx, confirm=True) == "from-env"
    prompt.assert_not_called()


def test_read_password_prompts():
    ctx = AppContext(settings=Settings())
    with patch("confseal.frontend.cli.context.getpass.getpass", return_value="typed"):
        assert read_password(ctx) == "typed"


def test_read_password_confirmation():
    ctx = AppContext(settings=Settings())
    with patch("confseal.frontend.cli.context.getpass.getpass", side_effect=["one", "one"]):
        assert read_password(ctx, confirm=True) == "one"
    with patch("confseal.frontend.cli.context.getpass.getpass", side_effect=["one", "two"]):
        with pytest.raises(ConfsealError, match="do not match"):
            read_password(ctx, confirm=True)
