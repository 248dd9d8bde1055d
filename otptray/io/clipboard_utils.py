"""Clipboard access through pyperclip."""

from __future__ import annotations

import pyperclip

from ..errors import ClipboardError


class PyperclipClipboard:
    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(f"Could not copy to the clipboard: {exc}") from exc
