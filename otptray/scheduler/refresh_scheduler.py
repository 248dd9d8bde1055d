"""Background loop keeping every entry's code current.

The scheduler is the only writer of ``CodeState``. Each wake it reads the
wall clock once, regenerates the codes whose window no longer contains that
instant, tells listeners which entries changed, and sleeps until the nearest
step boundary across all entries. Store mutations and ``stop`` cut the sleep
short.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from ..errors import EntryNotFound
from ..otp import totp_utils
from ..ports import PresentationPort
from ..store.entry_store import EntryId, EntryInfo, EntryStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

RETRY_SECONDS: float = 1.0


@dataclass(frozen=True)
class CodeState:
    """A code and the half-open ``[valid_from, valid_until)`` window it is valid in."""

    code: str
    valid_from: int
    valid_until: int
    revision: int = 0

    def is_valid_at(self, now: float) -> bool:
        return self.valid_from <= now < self.valid_until

    def seconds_remaining(self, now: float) -> float:
        return max(0.0, self.valid_until - now)


def compute_state(store: EntryStore, info: EntryInfo, now: float) -> CodeState:
    secret = store.get_secret_for_generation(info.id)
    valid_from, valid_until = totp_utils.window_at(now, info.step_seconds)
    code = totp_utils.generate(secret, now, info.step_seconds, info.hash_fn, info.digit_count)
    return CodeState(code=code, valid_from=valid_from, valid_until=valid_until, revision=info.revision)


class RefreshScheduler:
    """Owns the code of every entry in ``store`` and refreshes it on time."""

    def __init__(self, store: EntryStore, clock: Clock = time.time) -> None:
        self._store = store
        self._clock = clock
        self._states: Mapping[EntryId, CodeState] = {}
        self._listeners: List[PresentationPort] = []
        self._condition = threading.Condition()
        self._entries_changed = False
        self._stopping = False
        self._thread: Optional[threading.Thread] = None
        store.subscribe(self._on_entries_changed)

    def subscribe(self, listener: PresentationPort) -> None:
        """Receive the ids whose code changed, once per scheduler wake."""

        self._listeners.append(listener)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop, first waiting out a previous loop that is still stopping."""

        previous = self._thread
        if previous is not None and previous.is_alive():
            with self._condition:
                if not self._stopping:
                    return
            previous.join()
        with self._condition:
            self._stopping = False
            self._entries_changed = False
        self._thread = threading.Thread(target=self._run, name="otptray-refresh", daemon=True)
        self._thread.start()
        logger.debug("Refresh scheduler started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the loop; the last published codes stay readable."""

        with self._condition:
            self._stopping = True
            self._condition.notify_all()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Refresh scheduler still finishing after %s seconds", timeout)
            return
        self._thread = None
        logger.debug("Refresh scheduler stopped")

    def _on_entries_changed(self) -> None:
        with self._condition:
            self._entries_changed = True
            self._condition.notify_all()

    def _compute(self, now: float) -> Tuple[Dict[EntryId, CodeState], FrozenSet[EntryId]]:
        previous = self._states
        states: Dict[EntryId, CodeState] = {}
        changed = set()
        for info in self._store.list():
            state = previous.get(info.id)
            if state is None or state.revision != info.revision or not state.is_valid_at(now):
                try:
                    state = compute_state(self._store, info, now)
                except EntryNotFound:
                    # removed between list() and the secret lookup
                    changed.add(info.id)
                    continue
                changed.add(info.id)
            states[info.id] = state
        changed.update(set(previous) - set(states))
        return states, frozenset(changed)

    def refresh(self, now: Optional[float] = None) -> FrozenSet[EntryId]:
        """Bring every code up to date for ``now`` and return the changed ids.

        Entries that are new, were edited, or whose window does not contain
        ``now`` get a fresh code. States of removed entries are dropped and
        their ids reported as changed too.
        """

        if now is None:
            now = self._clock()
        states, changed = self._compute(now)
        self._states = states
        return changed

    def next_boundary(self) -> Optional[int]:
        """Earliest instant at which any published code expires."""

        states = self._states
        if not states:
            return None
        return min(state.valid_until for state in states.values())

    def current_code(self, entry_id: EntryId) -> CodeState:
        """Most recently published code for ``entry_id``.

        When nothing valid has been published yet (the entry was added or
        edited a moment ago) the code is computed on the spot but not
        published; the loop stays the only writer.
        """

        now = self._clock()
        info = self._store.get(entry_id)
        state = self._states.get(entry_id)
        if state is not None and state.revision == info.revision and state.is_valid_at(now):
            return state
        return compute_state(self._store, info, now)

    def _publish(self, changed: FrozenSet[EntryId]) -> None:
        for listener in list(self._listeners):
            try:
                listener(changed)
            except Exception:
                logger.exception("Code change listener failed")

    def _run(self) -> None:
        while True:
            with self._condition:
                if self._stopping:
                    return
                self._entries_changed = False

            timeout: Optional[float] = None
            try:
                states, changed = self._compute(self._clock())
            except Exception:
                logger.exception("Refreshing codes failed; retrying in %s seconds", RETRY_SECONDS)
                timeout = RETRY_SECONDS
            else:
                with self._condition:
                    if self._stopping:
                        return
                    self._states = states
                if changed:
                    logger.debug("Refreshed codes for %d entries", len(changed))
                    self._publish(changed)

            with self._condition:
                if self._stopping:
                    return
                if self._entries_changed:
                    continue
                boundary = self.next_boundary()
                if timeout is None and boundary is not None:
                    try:
                        timeout = max(0.0, boundary - self._clock())
                    except Exception:
                        logger.exception("Reading the clock failed; retrying in %s seconds", RETRY_SECONDS)
                        timeout = RETRY_SECONDS
                self._condition.wait(timeout)
