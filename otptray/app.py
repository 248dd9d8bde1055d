"""Application facade tying the entry store, scheduler, config file and clipboard together.

Front ends talk to ``OtpTrayApp`` only. Every mutation is saved right away;
when saving fails the in-memory entries stay authoritative and the
``SaveError`` is passed on for the user to see.
"""

from __future__ import annotations

import logging
from typing import List

from .errors import LoadError, ValidationError
from .ports import ClipboardPort, PersistencePort, PresentationPort
from .scheduler.refresh_scheduler import CodeState, RefreshScheduler
from .store.entry_store import EntryDraft, EntryId, EntryInfo, EntryStore

logger = logging.getLogger(__name__)


def menu_label(info: EntryInfo, state: CodeState) -> str:
    return f"{info.name}: {state.code}"


class OtpTrayApp:
    def __init__(self, store: EntryStore, scheduler: RefreshScheduler, persistence: PersistencePort, clipboard: ClipboardPort) -> None:
        self.store = store
        self.scheduler = scheduler
        self.persistence = persistence
        self.clipboard = clipboard

    def load(self) -> List[EntryId]:
        drafts = self.persistence.load_entries()
        try:
            return self.store.load(drafts)
        except ValidationError as exc:
            raise LoadError(f"Invalid entry in config: {exc}") from exc

    def save(self) -> None:
        self.persistence.save_entries(self.store.drafts())

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def subscribe(self, listener: PresentationPort) -> None:
        self.scheduler.subscribe(listener)

    def entries(self) -> List[EntryInfo]:
        return self.store.list()

    def add_entry(self, draft: EntryDraft) -> EntryId:
        entry_id = self.store.add(draft)
        self.save()
        return entry_id

    def update_entry(self, entry_id: EntryId, draft: EntryDraft) -> None:
        self.store.update(entry_id, draft)
        self.save()

    def remove_entry(self, entry_id: EntryId) -> None:
        self.store.remove(entry_id)
        self.save()

    def current_code(self, entry_id: EntryId) -> CodeState:
        return self.scheduler.current_code(entry_id)

    def copy_code(self, entry_id: EntryId) -> str:
        """Copy the current code of ``entry_id`` to the clipboard and return it."""

        code = self.scheduler.current_code(entry_id).code
        self.clipboard.copy(code)
        logger.info("Copied code for entry %d", entry_id)
        return code
