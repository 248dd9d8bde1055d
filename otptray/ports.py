"""Contracts between the otptray core and the world around it."""

from __future__ import annotations

from typing import Callable, FrozenSet, Protocol, Sequence

from .store.entry_store import EntryDraft, EntryId


class PersistencePort(Protocol):
    def load_entries(self) -> Sequence[EntryDraft]:
        """Return the saved drafts or raise ``LoadError``."""

    def save_entries(self, drafts: Sequence[EntryDraft]) -> None:
        """Persist ``drafts`` or raise ``SaveError``."""


class ClipboardPort(Protocol):
    def copy(self, text: str) -> None:
        """Put ``text`` on the clipboard or raise ``ClipboardError``."""


# Receives the ids of entries whose code changed, once per scheduler wake.
PresentationPort = Callable[[FrozenSet[EntryId]], None]
