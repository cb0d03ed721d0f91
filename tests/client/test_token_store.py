from datetime import datetime, timedelta, timezone

import pytest

from researchx.client import Credential, FileStorage, MemoryStorage, TokenStore
from researchx.client.credentials import TOKEN_EXPIRY_KEY, TOKEN_KEY

pytestmark = pytest.mark.client

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


def test_stored_token_expires_after_seven_days():
    clock = Clock()
    tokens = TokenStore(MemoryStorage(), clock=clock)

    credential = tokens.store("jwt.token")

    assert credential.expires_at == NOW + timedelta(days=7)
    assert tokens.get() == "jwt.token"

    clock.now = NOW + timedelta(days=7, seconds=1)
    assert tokens.get() is None


def test_token_is_expired_at_its_expiry_instant():
    """The stored token and the credential agree on the expiry boundary"""
    clock = Clock()
    tokens = TokenStore(MemoryStorage(), clock=clock)
    credential = tokens.store("jwt.token")

    clock.now = credential.expires_at - timedelta(microseconds=1)
    assert tokens.get() == "jwt.token"

    clock.now = credential.expires_at
    assert credential.is_expired(clock.now)
    assert tokens.get() is None


def test_expired_token_is_cleared_from_storage():
    storage = MemoryStorage()
    clock = Clock()
    tokens = TokenStore(storage, clock=clock)
    tokens.store("jwt.token")

    clock.now = NOW + timedelta(days=8)
    tokens.get()

    assert storage.get_item(TOKEN_KEY) is None
    assert storage.get_item(TOKEN_EXPIRY_KEY) is None


@pytest.mark.parametrize("expiry", [None, "not a date"])
def test_token_without_valid_expiry_is_discarded(expiry):
    storage = MemoryStorage()
    storage.set_item(TOKEN_KEY, "jwt.token")
    if expiry is not None:
        storage.set_item(TOKEN_EXPIRY_KEY, expiry)

    assert TokenStore(storage, clock=Clock()).get() is None
    assert storage.get_item(TOKEN_KEY) is None


def test_legacy_expiry_without_offset_is_read_as_utc():
    storage = MemoryStorage()
    storage.set_item(TOKEN_KEY, "jwt.token")
    storage.set_item(TOKEN_EXPIRY_KEY, "2026-10-20T12:00:00.000Z")

    credential = TokenStore(storage, clock=Clock()).load()

    assert credential.expires_at == datetime(2026, 10, 20, 12, 0, tzinfo=timezone.utc)
    assert credential.issued_at == credential.expires_at - timedelta(days=7)


def test_credential_is_expired():
    credential = Credential.issue("t", lifetime=timedelta(hours=1), now=NOW)

    assert not credential.is_expired(NOW + timedelta(minutes=59))
    assert credential.is_expired(NOW + timedelta(hours=1))


def test_clear_removes_token():
    tokens = TokenStore(MemoryStorage(), clock=Clock())
    tokens.store("jwt.token")

    tokens.clear()

    assert tokens.load() is None


def test_file_storage_persists_between_instances(tmp_path):
    path = tmp_path / "researchx" / "credentials.json"

    TokenStore(FileStorage(str(path)), clock=Clock()).store("jwt.token")

    assert TokenStore(FileStorage(str(path)), clock=Clock()).get() == "jwt.token"


def test_file_storage_treats_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text("{not json")

    storage = FileStorage(str(path))

    assert storage.get_item(TOKEN_KEY) is None
    storage.set_item(TOKEN_KEY, "fresh")
    assert storage.get_item(TOKEN_KEY) == "fresh"
