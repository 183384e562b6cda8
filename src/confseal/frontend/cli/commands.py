"""
Command line entry point for confseal.

    confseal encrypt records.json --kind vod --copy
    confseal decrypt config-vod-1700000000000.enc.json
    confseal strength
    confseal reseal exported.enc.json --iterations 300000
    confseal publish records.json --kind all --filename config.enc.json
    confseal github test
    confseal token set
    confseal tui records.json

The password is read from ``CONFSEAL_PASSWORD`` when set, otherwise prompted.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from confseal.core.exceptions import ConfigurationError, ConfsealError, PayloadError
from confseal.core.models import MAX_ITERATIONS, Envelope
from confseal.core.payload import ExportKind, ExportPayload, build_export_payload, validate_export_payload
from confseal.security.envelope import decrypt, encrypt, needs_rehash, reseal
from confseal.security.keystore import delete_token, save_token
from confseal.security.packaging import envelope_to_json, load_envelope, pack
from confseal.security.strength import score_password
from confseal.transport.files import data_url, export_filename, read_envelope_file, write_envelope_file
from confseal.transport.github import GitHubPublisher

from .clipboard import copy_to_clipboard
from .context import AppContext, build_context, read_password
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

WEAK_SCORE = 2


def _warn_if_weak(password: str) -> None:
    # advisory only
    strength = score_password(password)
    if strength.score < WEAK_SCORE:
        logger.warning("password strength is %s (%d/4)", strength.message, strength.score)


def _read_source(source: str) -> Envelope:
    if source == "-":
        return load_envelope(sys.stdin.read())
    return read_envelope_file(source)


def _describe_export(payload) -> Optional[str]:
    # plain JSON payloads are valid too; only exports get a summary
    if not isinstance(payload, dict) or "type" not in payload:
        return None
    try:
        export = ExportPayload.from_dict(payload)
    except PayloadError as e:
        logger.debug("payload is not an export: %s", e)
        return None
    counts = ", ".join(f"{count} {key}" for key, count in export.counts().items())
    return f"{export.kind.value} export: {counts}"


def _publisher(ctx: AppContext) -> GitHubPublisher:
    if not ctx.settings.github.is_configured:
        raise ConfigurationError(
            "set CONFSEAL_GITHUB_OWNER, CONFSEAL_GITHUB_REPO and a token "
            "(CONFSEAL_GITHUB_TOKEN or `confseal token set`)"
        )
    return GitHubPublisher(ctx.settings.github)


def _seal_records(ctx: AppContext, kind: str, iterations: Optional[int]):
    payload = build_export_payload(ctx.records, kind)
    validate_export_payload(payload)
    password = read_password(ctx, confirm=True)
    if not password:
        raise ConfsealError("password must not be empty")
    _warn_if_weak(password)
    return payload, encrypt(payload, password, iterations or ctx.settings.iterations)


# ----------------------------------------------------------------------
# Subcommands
# ----------------------------------------------------------------------


def cmd_encrypt(args, ctx: AppContext) -> int:
    payload, envelope = _seal_records(ctx, args.kind, args.iterations)
    packaged = pack(envelope)
    if args.out:
        out = Path(args.out)
        if out.is_dir():
            out = out / export_filename(payload.kind, payload.timestamp)
        write_envelope_file(envelope, out)
        print(f"saved {out}", file=sys.stderr)
    if args.copy:
        copy_to_clipboard(packaged)
        print("packaged envelope copied to clipboard", file=sys.stderr)
    print(packaged)
    if args.data_url:
        print(data_url(envelope))
    return 0


def cmd_decrypt(args, ctx: AppContext) -> int:
    envelope = _read_source(args.source)
    payload = decrypt(envelope, read_password(ctx))
    summary = _describe_export(payload)
    if summary:
        print(summary, file=sys.stderr)
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.out:
        Path(args.out).write_text(text + "\n", encoding="utf-8")
        print(f"saved {args.out}", file=sys.stderr)
    else:
        print(text)
    return 0


def cmd_strength(args, ctx: AppContext) -> int:
    strength = score_password(read_password(ctx))
    if args.json:
        print(json.dumps(strength.to_dict()))
    else:
        print(f"{strength.score}/4 {strength.message}")
    return 0


def cmd_reseal(args, ctx: AppContext) -> int:
    envelope = _read_source(args.source)
    target = args.iterations or ctx.settings.iterations
    if not needs_rehash(envelope, target):
        # still authenticate so a wrong password is reported
        decrypt(envelope, read_password(ctx))
        print(f"envelope already uses {envelope.iterations} iterations", file=sys.stderr)
        print(pack(envelope))
        return 0
    upgraded = reseal(envelope, read_password(ctx), target)
    if args.source != "-" and args.in_place:
        write_envelope_file(upgraded, args.source)
    print(pack(upgraded))
    return 0


def cmd_publish(args, ctx: AppContext) -> int:
    publisher = _publisher(ctx)
    payload, envelope = _seal_records(ctx, args.kind, args.iterations)
    filename = args.filename or export_filename(payload.kind, payload.timestamp)
    result = asyncio.run(publisher.upload_file(filename, envelope_to_json(envelope), args.message))
    print(result.url or result.path)
    print(publisher.pages_url(filename))
    print(publisher.raw_url(filename))
    return 0


def cmd_github(args, ctx: AppContext) -> int:
    info = asyncio.run(_publisher(ctx).test_connection())
    visibility = "private" if info.private else "public"
    print(f"{info.full_name} ({visibility}, default branch {info.default_branch or 'unknown'})")
    return 0


def cmd_token(args, ctx: AppContext) -> int:
    if args.action == "set":
        token = getpass.getpass("GitHub token: ")
        save_token(token, force=args.force)
        print("token stored", file=sys.stderr)
    elif delete_token():
        print("token deleted", file=sys.stderr)
    else:
        print("no token stored", file=sys.stderr)
    return 0


def cmd_tui(args, ctx: AppContext) -> int:
    # textual is only imported when the TUI is requested
    from .app import ConfsealApp

    ConfsealApp(ctx=ctx).run()
    return 0


# ----------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confseal",
        description="Seal configuration exports with a password.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    kinds = [k.value for k in ExportKind]

    p = sub.add_parser("encrypt", help="encrypt a record file into a packaged envelope")
    p.add_argument("records", help="record file (JSON)")
    p.add_argument("--kind", choices=kinds, default=ExportKind.ALL.value)
    p.add_argument("--iterations", type=int, default=None, help="PBKDF2 iterations")
    p.add_argument("--out", default=None, help="also write the envelope JSON to this file or directory")
    p.add_argument("--copy", action="store_true", help="copy the packaged envelope to the clipboard")
    p.add_argument("--data-url", action="store_true", help="also print a data: URL carrying the envelope JSON")
    p.set_defaults(func=cmd_encrypt, needs_records=True)

    p = sub.add_parser("decrypt", help="decrypt a packaged string or envelope file")
    p.add_argument("source", help="envelope file, or - for stdin")
    p.add_argument("--out", default=None, help="write the payload JSON here")
    p.set_defaults(func=cmd_decrypt)

    p = sub.add_parser("strength", help="score a password")
    p.add_argument("--json", action="store_true", help="print score, message and color as JSON")
    p.set_defaults(func=cmd_strength)

    p = sub.add_parser("reseal", help="re-encrypt an envelope at a higher iteration count")
    p.add_argument("source", help="envelope file, or - for stdin")
    p.add_argument("--iterations", type=int, default=None)
    p.add_argument("--in-place", action="store_true", help="overwrite the source file")
    p.set_defaults(func=cmd_reseal)

    p = sub.add_parser("publish", help="encrypt and upload to the configured GitHub repository")
    p.add_argument("records", help="record file (JSON)")
    p.add_argument("--kind", choices=kinds, default=ExportKind.ALL.value)
    p.add_argument("--iterations", type=int, default=None)
    p.add_argument("--filename", default=None)
    p.add_argument("--message", default=None, help="commit message")
    p.set_defaults(func=cmd_publish, needs_records=True)

    p = sub.add_parser("github", help="check the configured GitHub repository")
    p.add_argument("action", choices=["test"])
    p.set_defaults(func=cmd_github)

    p = sub.add_parser("token", help="manage the publishing token in the OS keyring")
    p.add_argument("action", choices=["set", "delete"])
    p.add_argument("--force", action="store_true", help="store even on an insecure keyring backend")
    p.set_defaults(func=cmd_token)

    p = sub.add_parser("tui", help="start the interactive exporter")
    p.add_argument("records", nargs="?", default=None)
    p.set_defaults(func=cmd_tui, needs_records=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    iterations = getattr(args, "iterations", None)
    if iterations is not None and not 1 <= iterations <= MAX_ITERATIONS:
        parser.error(f"--iterations must be between 1 and {MAX_ITERATIONS}")

    try:
        records = args.records if getattr(args, "needs_records", False) else None
        ctx = build_context(records, use_keyring=args.command in ("publish", "github", "tui"))
        return args.func(args, ctx)
    except ConfsealError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
