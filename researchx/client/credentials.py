from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

TOKEN_KEY = "researchx_token"
TOKEN_EXPIRY_KEY = "researchx_token_expiry"
TOKEN_ISSUED_KEY = "researchx_token_issued"
TOKEN_EXPIRY_DAYS = 7


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Credential:
    """A bearer token with an explicit lifetime."""

    token: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    @classmethod
    def issue(cls, token, lifetime=timedelta(days=TOKEN_EXPIRY_DAYS), now=None):
        issued_at = now or utcnow()
        return cls(token=token, issued_at=issued_at, expires_at=issued_at + lifetime)


class TokenStore:
    """
    Reads and writes the current credential in a key-value storage.

    An expired or half-written credential is cleared on read.
    """

    def __init__(self, storage, clock=utcnow):
        self.storage = storage
        self.clock = clock

    def store(self, token, lifetime=timedelta(days=TOKEN_EXPIRY_DAYS)) -> Credential:
        credential = Credential.issue(token, lifetime=lifetime, now=self.clock())
        self.save(credential)
        return credential

    def save(self, credential: Credential) -> None:
        self.storage.set_item(TOKEN_KEY, credential.token)
        self.storage.set_item(TOKEN_ISSUED_KEY, credential.issued_at.isoformat())
        self.storage.set_item(TOKEN_EXPIRY_KEY, credential.expires_at.isoformat())

    def load(self) -> Optional[Credential]:
        token = self.storage.get_item(TOKEN_KEY)
        expires_at = _parse(self.storage.get_item(TOKEN_EXPIRY_KEY))

        if not token or expires_at is None:
            self.clear()
            return None

        issued_at = _parse(self.storage.get_item(TOKEN_ISSUED_KEY)) or expires_at - timedelta(days=TOKEN_EXPIRY_DAYS)
        credential = Credential(token=token, issued_at=issued_at, expires_at=expires_at)
        if credential.is_expired(self.clock()):
            self.clear()
            return None
        return credential

    def get(self) -> Optional[str]:
        credential = self.load()
        return credential.token if credential else None

    def clear(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(TOKEN_ISSUED_KEY)
        self.storage.remove_item(TOKEN_EXPIRY_KEY)
