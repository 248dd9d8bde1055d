"""YAML persistence of the entry list.

The file holds a single mapping with an ``entries`` list; each item carries
the keys of ``EntryDraft``. Unknown keys are ignored, anything else that does
not fit that shape is a ``LoadError``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Sequence

import yaml

from ..errors import LoadError, SaveError
from ..store.entry_store import EntryDraft

logger = logging.getLogger(__name__)

CONFIG_FILE_MODE: int = 0o600


class YamlConfigFile:
    """Entry list stored in a YAML file such as ``~/.config/otptray.yaml``."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load_entries(self) -> List[EntryDraft]:
        """Read drafts from disk; a missing file means no entries yet."""

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No config file at %s; starting empty", self.path)
            return []
        except OSError as exc:
            raise LoadError(f"Cannot read {self.path}: {exc}") from exc

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise LoadError(f"{self.path} is not valid YAML: {exc}") from exc

        if data is None:
            return []
        if not isinstance(data, dict):
            raise LoadError(f"{self.path} must contain a mapping with an 'entries' list.")
        entries = data.get("entries")
        if entries is None:
            raise LoadError(f"{self.path} is missing the 'entries' key.")
        if not isinstance(entries, list):
            raise LoadError(f"'entries' in {self.path} must be a list.")

        drafts = [EntryDraft.from_dict(item) for item in entries]
        logger.debug("Loaded %d entries from %s", len(drafts), self.path)
        return drafts

    def save_entries(self, drafts: Sequence[EntryDraft]) -> None:
        """Write drafts to disk, readable by the owner only on POSIX."""

        document = {"entries": [draft.to_dict() for draft in drafts]}
        text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONFIG_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as config_file:
                config_file.write(text)
        except OSError as exc:
            raise SaveError(f"Cannot write {self.path}: {exc}") from exc
        logger.debug("Saved %d entries to %s", len(drafts), self.path)
