"""Textual exporter/importer for confseal.

Start with `confseal tui records.json` or `python main.py records.json`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Input, Select, Static

from confseal.core.exceptions import ConfsealError
from confseal.core.models import PasswordStrength
from confseal.core.payload import ExportKind, build_export_payload, validate_export_payload
from confseal.frontend.cli.clipboard import copy_to_clipboard
from confseal.frontend.cli.context import AppContext, build_context
from confseal.security.envelope import decrypt, encrypt
from confseal.security.packaging import load_envelope, pack
from confseal.security.strength import score_password
from confseal.transport.files import export_filename, write_envelope_file


class ErrorModal(ModalScreen[None]):
    """Modal for displaying error messages prominently."""

    def __init__(self, title: str, message: str):
        super().__init__()
        self.error_title = title
        self.error_message = message

    def compose(self) -> ComposeResult:  # pragma: no cover
        with Vertical(classes="dialog"):
            yield Static(self.error_title, classes="title")
            yield Static(self.error_message, markup=False)
            yield Static("")
            yield Button("OK", id="ok", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        self.dismiss(None)

    def on_key(self, event) -> None:  # pragma: no cover
        if event.key in ("escape", "enter"):
            self.dismiss(None)


class ConfsealApp(App):
    """Seal the loaded records with a password, or open a pasted envelope."""

    TITLE = "confseal"

    CSS = """
    #export, #import { border: heavy $surface; height: auto; padding: 0 1; }
    .title { padding: 1 1 0 1; text-style: bold; }
    #strength { padding: 0 1; height: 1; }
    #output { padding: 1; height: auto; max-height: 12; }
    #status { padding: 0 1; height: 1; color: $text-muted; }
    ModalScreen { align: center middle; background: rgba(0,0,0,0.45); }
    .dialog { width: 75%; height: auto; padding: 1; border: heavy $surface; background: $boost; }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("ctrl+y", "copy_packaged", "Copy"),
        ("ctrl+s", "save_file", "Save"),
        ("ctrl+o", "decrypt_blob", "Decrypt"),
    ]

    def __init__(self, ctx: AppContext | None = None):
        self.ctx = ctx or build_context()
        super().__init__()

        self.last_strength: PasswordStrength = score_password("")
        self.last_packaged: Optional[str] = None
        self.last_saved: Optional[Path] = None
        self.last_payload: Any = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="export"):
            yield Static("Export", classes="title")
            yield Select(
                [(kind.value, kind.value) for kind in ExportKind],
                value=ExportKind.ALL.value,
                allow_blank=False,
                id="kind",
            )
            yield Input(placeholder="Password", password=True, id="password")
            yield Static(self.last_strength.message, id="strength")
            with Horizontal():
                yield Button("Copy packaged string", id="copy", variant="primary")
                yield Button("Save .enc.json", id="save")
        with Vertical(id="import"):
            yield Static("Import", classes="title")
            yield Input(placeholder="Paste a packaged envelope", id="blob")
            yield Button("Decrypt", id="decrypt")
        yield Static("", id="output", markup=False)
        yield Static("", id="status", markup=False)
        yield Footer()

    def on_mount(self) -> None:
        count = sum(
            len(self.ctx.records.get(key) or [])
            for key in ("vodSources", "shortsSources", "dailymotionChannels")
        )
        if self.ctx.records_path is not None:
            self._set_status(f"{count} records loaded from {self.ctx.records_path}")
        else:
            self._set_status("no record file loaded; import only")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_status(self, text: str) -> None:
        self.query_one("#status", Static).update(text)

    def _show_error(self, title: str, message: str) -> None:
        self._set_status(f"{title}: {message}")
        self.push_screen(ErrorModal(title, message))

    def _password(self) -> str:
        return self.query_one("#password", Input).value

    def _kind(self) -> str:
        return str(self.query_one("#kind", Select).value)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @on(Input.Changed, "#password")
    def on_password_changed(self, event: Input.Changed) -> None:
        self.last_strength = score_password(event.value)
        label = self.query_one("#strength", Static)
        label.update(f"{self.last_strength.score}/4 {self.last_strength.message}")
        label.styles.color = self.last_strength.color

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover
        if event.button.id == "copy":
            self.action_copy_packaged()
        elif event.button.id == "save":
            self.action_save_file()
        elif event.button.id == "decrypt":
            self.action_decrypt_blob()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_copy_packaged(self) -> None:
        self._start_seal("copy")

    def action_save_file(self) -> None:
        self._start_seal("save")

    def _start_seal(self, target: str) -> None:
        password = self._password()
        if not password:
            self.notify("Password cannot be empty", severity="error")
            return
        if self.last_strength.score < 2:
            self.notify(f"Password is {self.last_strength.message}", severity="warning")
        kind = self._kind()
        self._set_status("Encrypting...")
        self.run_worker(
            lambda: self._seal_worker(password, kind, target),
            name="seal_worker",
            exclusive=True,
            thread=True,
        )

    def _seal_worker(self, password: str, kind: str, target: str) -> dict:
        """Worker that encrypts the records (runs in thread)."""
        try:
            payload = build_export_payload(self.ctx.records, kind)
            validate_export_payload(payload)
            envelope = encrypt(payload, password, self.ctx.settings.iterations)
            packaged = pack(envelope)
            path = None
            if target == "copy":
                copy_to_clipboard(packaged)
            else:
                folder = self.ctx.records_path.parent if self.ctx.records_path else Path.cwd()
                path = write_envelope_file(envelope, folder / export_filename(payload.kind, payload.timestamp))
            return {"success": True, "target": target, "packaged": packaged, "path": path}
        except (ConfsealError, OSError) as exc:
            return {"success": False, "error": str(exc)}

    def action_decrypt_blob(self) -> None:
        blob = self.query_one("#blob", Input).value.strip()
        password = self._password()
        if not blob:
            self.notify("Paste a packaged envelope first", severity="error")
            return
        self._set_status("Decrypting...")
        self.run_worker(
            lambda: self._open_worker(blob, password),
            name="open_worker",
            exclusive=True,
            thread=True,
        )

    def _open_worker(self, blob: str, password: str) -> dict:
        """Worker that unpacks and decrypts a pasted envelope (runs in thread)."""
        try:
            payload = decrypt(load_envelope(blob), password)
            return {"success": True, "payload": payload}
        except ConfsealError as exc:
            return {"success": False, "error": str(exc)}

    def on_worker_state_changed(self, event) -> None:
        """Handle worker completion to update UI."""
        if not event.worker.is_finished:
            return
        result = event.worker.result
        if not result:
            return

        if event.worker.name == "seal_worker":
            if not result["success"]:
                self._show_error("Encryption failed", result["error"])
                return
            self.last_packaged = result["packaged"]
            self.query_one("#output", Static).update(result["packaged"])
            if result["target"] == "copy":
                self._set_status("Packaged envelope copied to clipboard")
            else:
                self.last_saved = result["path"]
                self._set_status(f"Saved {result['path']}")

        elif event.worker.name == "open_worker":
            if not result["success"]:
                self._show_error("Import failed", result["error"])
                return
            self.last_payload = result["payload"]
            preview = json.dumps(result["payload"], ensure_ascii=False, indent=2)
            self.query_one("#output", Static).update(preview)
            self._set_status("Envelope decrypted")


if __name__ == "__main__":  # pragma: no cover
    ConfsealApp().run()
