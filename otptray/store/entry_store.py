"""In-memory collection of configured OTP entries.

Mutations are serialized on a lock and publish a fresh, never-mutated mapping.
Readers only ever dereference the current mapping, so they do not wait for a
writer and cannot see an entry halfway through an edit.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Sequence

from ..errors import EntryNotFound, LoadError, ValidationError
from ..otp import secret_codec
from ..otp.secret_codec import SecretEncoding
from ..otp.totp_utils import MAX_DIGITS, MIN_DIGITS, HashKind

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH: int = 255
DRAFT_KEYS = ("name", "step", "secret_hash", "hash_fn", "digit_count")

EntryId = int


@dataclass
class EntryDraft:
    """Unvalidated entry fields, as typed by a user or read from the config file.

    Defaults match Google Authenticator.
    """

    name: str = ""
    step: Any = 30
    secret_hash: str = ""
    hash_fn: str = HashKind.SHA1.value
    digit_count: Any = 6

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EntryDraft":
        if not isinstance(data, Mapping):
            raise LoadError(f"Entry must be a mapping, got {type(data).__name__}.")
        missing = [key for key in DRAFT_KEYS if key not in data]
        if missing:
            raise LoadError(f"Entry is missing required keys: {', '.join(missing)}.")
        return cls(**{key: data[key] for key in DRAFT_KEYS})


@dataclass(frozen=True)
class Entry:
    name: str
    secret: bytes = field(repr=False)
    step_seconds: int
    hash_fn: HashKind
    digit_count: int

    @classmethod
    def from_draft(cls, draft: EntryDraft, encoding: SecretEncoding = SecretEncoding.BASE32) -> "Entry":
        """Validate ``draft`` and build an entry, or raise ``ValidationError``."""

        if not isinstance(draft.name, str):
            raise ValidationError("Name must be text.", field="name")
        name = draft.name.strip()
        if not name:
            raise ValidationError("Name may not be empty.", field="name")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Name may be at most {MAX_NAME_LENGTH} characters long (got {len(name)}).",
                field="name",
            )

        step = _parse_int(draft.step, "step")
        if step <= 0:
            raise ValidationError("Step must be a positive number of seconds.", field="step")

        try:
            hash_fn = HashKind(str(draft.hash_fn).strip().lower())
        except ValueError:
            choices = ", ".join(kind.value for kind in HashKind)
            raise ValidationError(
                f"Unknown hash function {draft.hash_fn!r} (expected one of {choices}).",
                field="hash_fn",
            ) from None

        digit_count = _parse_int(draft.digit_count, "digit_count")
        if not MIN_DIGITS <= digit_count <= MAX_DIGITS:
            raise ValidationError(
                f"Digit count must be between {MIN_DIGITS} and {MAX_DIGITS}.",
                field="digit_count",
            )

        if not isinstance(draft.secret_hash, str):
            raise ValidationError("Secret must be text.", field="secret")
        secret = secret_codec.decode(draft.secret_hash, encoding)
        return cls(
            name=name,
            secret=secret,
            step_seconds=step,
            hash_fn=hash_fn,
            digit_count=digit_count,
        )


@dataclass(frozen=True)
class EntryInfo:
    """What presentation code may see of an entry: everything but the secret."""

    id: EntryId
    name: str
    step_seconds: int
    hash_fn: HashKind
    digit_count: int
    revision: int


@dataclass(frozen=True)
class _Record:
    entry: Entry
    draft: EntryDraft
    revision: int


def _parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number.", field=field_name)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number, got {value!r}.", field=field_name) from None


class EntryStore:
    """Thread-safe owner of all configured entries."""

    def __init__(self, encoding: SecretEncoding = SecretEncoding.BASE32) -> None:
        self.encoding = encoding
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._revisions = itertools.count(1)
        self._records: Mapping[EntryId, _Record] = {}
        self._listeners: List[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._records)

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` with no arguments after every completed mutation."""

        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _validate(self, draft: EntryDraft) -> _Record:
        entry = Entry.from_draft(draft, self.encoding)
        return _Record(entry=entry, draft=EntryDraft(**draft.to_dict()), revision=next(self._revisions))

    @staticmethod
    def _check_unique(records: Mapping[EntryId, _Record], name: str, skip: EntryId = 0) -> None:
        for entry_id, record in records.items():
            if entry_id != skip and record.entry.name == name:
                raise ValidationError(f"An entry named {name!r} already exists.", field="name")

    def add(self, draft: EntryDraft) -> EntryId:
        with self._lock:
            record = self._validate(draft)
            self._check_unique(self._records, record.entry.name)
            entry_id = next(self._ids)
            records = dict(self._records)
            records[entry_id] = record
            self._records = records
        logger.info("Added entry %d (%s)", entry_id, record.entry.name)
        self._notify()
        return entry_id

    def update(self, entry_id: EntryId, draft: EntryDraft) -> None:
        with self._lock:
            if entry_id not in self._records:
                raise EntryNotFound(f"No entry with id {entry_id}.")
            record = self._validate(draft)
            self._check_unique(self._records, record.entry.name, skip=entry_id)
            records = dict(self._records)
            records[entry_id] = record
            self._records = records
        logger.info("Updated entry %d (%s)", entry_id, record.entry.name)
        self._notify()

    def remove(self, entry_id: EntryId) -> None:
        with self._lock:
            if entry_id not in self._records:
                raise EntryNotFound(f"No entry with id {entry_id}.")
            records = dict(self._records)
            del records[entry_id]
            self._records = records
        logger.info("Removed entry %d", entry_id)
        self._notify()

    def load(self, drafts: Iterable[EntryDraft]) -> List[EntryId]:
        """Replace all entries with ``drafts``; nothing changes if any is invalid."""

        with self._lock:
            records = {}
            for index, draft in enumerate(drafts):
                try:
                    record = self._validate(draft)
                    self._check_unique(records, record.entry.name)
                except ValidationError as exc:
                    raise ValidationError(f"Entry #{index + 1}: {exc}", field=exc.field) from exc
                records[next(self._ids)] = record
            self._records = records
        logger.info("Loaded %d entries", len(records))
        self._notify()
        return list(records)

    def list(self) -> List[EntryInfo]:
        records = self._records
        return [self._info(entry_id, record) for entry_id, record in records.items()]

    def get(self, entry_id: EntryId) -> EntryInfo:
        record = self._records.get(entry_id)
        if record is None:
            raise EntryNotFound(f"No entry with id {entry_id}.")
        return self._info(entry_id, record)

    def find(self, name: str) -> EntryInfo:
        for info in self.list():
            if info.name == name:
                return info
        raise EntryNotFound(f"No entry named {name!r}.")

    def drafts(self) -> Sequence[EntryDraft]:
        """Copies of the drafts behind every entry, in display order, for saving."""

        return [EntryDraft(**record.draft.to_dict()) for record in self._records.values()]

    def get_draft(self, entry_id: EntryId) -> EntryDraft:
        record = self._records.get(entry_id)
        if record is None:
            raise EntryNotFound(f"No entry with id {entry_id}.")
        return EntryDraft(**record.draft.to_dict())

    def get_secret_for_generation(self, entry_id: EntryId) -> bytes:
        record = self._records.get(entry_id)
        if record is None:
            raise EntryNotFound(f"No entry with id {entry_id}.")
        return record.entry.secret

    @staticmethod
    def _info(entry_id: EntryId, record: _Record) -> EntryInfo:
        entry = record.entry
        return EntryInfo(
            id=entry_id,
            name=entry.name,
            step_seconds=entry.step_seconds,
            hash_fn=entry.hash_fn,
            digit_count=entry.digit_count,
            revision=record.revision,
        )
