import pytest

from otptray.store.entry_store import EntryDraft, EntryStore

# "Hello!\xde\xad\xbe\xef" in base32
HELLO_SECRET = "JBSWY3DPEHPK3PXP"


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeClipboard:
    def __init__(self) -> None:
        self.copied = []

    def copy(self, text: str) -> None:
        self.copied.append(text)


def make_draft(name="github", secret=HELLO_SECRET, step=30, hash_fn="sha1", digits=6):
    return EntryDraft(name=name, step=step, secret_hash=secret, hash_fn=hash_fn, digit_count=digits)


@pytest.fixture
def store():
    return EntryStore()


@pytest.fixture
def clock():
    return FakeClock(1_000_000_000.0)


@pytest.fixture
def clipboard():
    return FakeClipboard()
