"""Command-line interface for otptray.

Lists the current codes, edits the entry list kept in the YAML config file,
copies a code to the clipboard, or keeps printing codes as they refresh.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import threading
import time
from pathlib import Path
from typing import FrozenSet, Optional

from .app import OtpTrayApp, menu_label
from .config import Settings, configure_logging
from .errors import OtpTrayError
from .io.clipboard_utils import PyperclipClipboard
from .io.config_utils import YamlConfigFile
from .otp.secret_codec import SecretEncoding
from .otp.totp_utils import HashKind
from .ports import ClipboardPort
from .scheduler.refresh_scheduler import RefreshScheduler
from .store.entry_store import EntryDraft, EntryStore


def _add_entry_options(parser: argparse.ArgumentParser, defaults: bool) -> None:
    parser.add_argument("--step", type=int, default=30 if defaults else None, help="Time step in seconds (default 30).")
    parser.add_argument(
        "--hash-fn",
        choices=[kind.value for kind in HashKind],
        default=HashKind.SHA1.value if defaults else None,
        help="HMAC hash function (default sha1).",
    )
    parser.add_argument("--digits", type=int, default=6 if defaults else None, help="Number of code digits (default 6).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="otptray", description="Simple 2FA / OTP code generator.")
    parser.add_argument("--config", help="Path to the YAML entry list (defaults to the user config directory).")
    parser.add_argument(
        "--secret-encoding",
        choices=[encoding.value for encoding in SecretEncoding],
        help="How secrets are encoded (default base32).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="Print the current code of every entry.")

    add_parser = subparsers.add_parser("add", help="Add an entry.")
    add_parser.add_argument("name", help="Label shown next to the code.")
    _add_entry_options(add_parser, defaults=True)

    edit_parser = subparsers.add_parser("edit", help="Change an existing entry.")
    edit_parser.add_argument("name", help="Entry to change.")
    edit_parser.add_argument("--rename", help="New label for the entry.")
    edit_parser.add_argument("--new-secret", action="store_true", help="Prompt for a replacement secret.")
    _add_entry_options(edit_parser, defaults=False)

    remove_parser = subparsers.add_parser("remove", help="Delete an entry.")
    remove_parser.add_argument("name", help="Entry to delete.")

    copy_parser = subparsers.add_parser("copy", help="Copy the current code of an entry to the clipboard.")
    copy_parser.add_argument("name", help="Entry whose code to copy.")

    subparsers.add_parser("watch", help="Print codes whenever they refresh until interrupted.")
    return parser


def _prompt_secret() -> str:
    secret = getpass.getpass("Enter secret: ").strip()
    if not secret:
        raise ValueError("Secret may not be empty.")
    return secret


def build_app(settings: Settings, clipboard: Optional[ClipboardPort] = None) -> OtpTrayApp:
    store = EntryStore(encoding=settings.secret_encoding)
    return OtpTrayApp(
        store=store,
        scheduler=RefreshScheduler(store),
        persistence=YamlConfigFile(settings.config_path),
        clipboard=clipboard if clipboard is not None else PyperclipClipboard(),
    )


def handle_list(app: OtpTrayApp) -> None:
    entries = app.entries()
    if not entries:
        print("No entries configured. Add one with 'otptray add <name>'.")
        return
    now = time.time()
    for info in entries:
        state = app.current_code(info.id)
        print(f"{menu_label(info, state)} ({int(state.seconds_remaining(now))}s)")


def handle_add(app: OtpTrayApp, args: argparse.Namespace) -> None:
    draft = EntryDraft(
        name=args.name,
        step=args.step,
        secret_hash=_prompt_secret(),
        hash_fn=args.hash_fn,
        digit_count=args.digits,
    )
    app.add_entry(draft)
    print(f"Added {args.name}.")


def handle_edit(app: OtpTrayApp, args: argparse.Namespace) -> None:
    info = app.store.find(args.name)
    draft = app.store.get_draft(info.id)
    if args.rename is not None:
        draft.name = args.rename
    if args.step is not None:
        draft.step = args.step
    if args.hash_fn is not None:
        draft.hash_fn = args.hash_fn
    if args.digits is not None:
        draft.digit_count = args.digits
    if args.new_secret:
        draft.secret_hash = _prompt_secret()
    app.update_entry(info.id, draft)
    print(f"Updated {draft.name}.")


def handle_remove(app: OtpTrayApp, name: str) -> None:
    app.remove_entry(app.store.find(name).id)
    print(f"Removed {name}.")


def handle_copy(app: OtpTrayApp, name: str) -> None:
    app.copy_code(app.store.find(name).id)
    print(f"Copied code for {name} to the clipboard.")


def handle_watch(app: OtpTrayApp, stop_event: Optional[threading.Event] = None) -> None:
    stop_event = stop_event or threading.Event()

    def print_changed(entry_ids: FrozenSet[int]) -> None:
        for info in app.entries():
            if info.id in entry_ids:
                print(menu_label(info, app.current_code(info.id)), flush=True)

    app.subscribe(print_changed)
    app.start()
    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        app.stop()


def main(argv: Optional[list[str]] = None, clipboard: Optional[ClipboardPort] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        if args.config:
            settings.config_path = Path(args.config).expanduser()
        if args.secret_encoding:
            settings.secret_encoding = SecretEncoding(args.secret_encoding)
        configure_logging(logging.DEBUG if args.verbose else settings.log_level)

        app = build_app(settings, clipboard)
        app.load()
        if args.command == "list":
            handle_list(app)
            return 0
        if args.command == "add":
            handle_add(app, args)
            return 0
        if args.command == "edit":
            handle_edit(app, args)
            return 0
        if args.command == "remove":
            handle_remove(app, args.name)
            return 0
        if args.command == "copy":
            handle_copy(app, args.name)
            return 0
        if args.command == "watch":
            handle_watch(app)
            return 0
    except (OtpTrayError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    parser.error("Unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
