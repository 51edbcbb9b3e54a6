"""
In-memory store for authorization codes: keyed, expiring, single-use.
Expiry is checked on lookup; sweep_expired only reclaims memory.
"""
import secrets
import threading
from base64 import urlsafe_b64encode
from dataclasses import dataclass

from oidc_provider.errors import DuplicateCodeError, InternalError

# 32 raw bytes -> 44 chars URL-safe base64 (with padding)
TOKEN_BYTES = 32


def generate_token(nbytes: int = TOKEN_BYTES) -> str:
    """Secure random token, URL-safe base64. Raises InternalError if the random source fails."""
    try:
        raw = secrets.token_bytes(nbytes)
    except (OSError, NotImplementedError) as e:
        raise InternalError("random source unavailable") from e
    return urlsafe_b64encode(raw).decode("ascii")


@dataclass(frozen=True)
class AuthorizationCodeRecord:
    code: str
    client_id: str
    redirect_uri: str
    subject: str
    issued_at: int
    expires_at: int

    def expired(self, now: int) -> bool:
        return now >= self.expires_at


class CodeStore:
    """All access goes through put/take_if_valid; both hold the same lock."""

    def __init__(self):
        self._records: dict[str, AuthorizationCodeRecord] = {}
        self._lock = threading.Lock()

    def put(self, record: AuthorizationCodeRecord) -> None:
        with self._lock:
            if record.code in self._records:
                raise DuplicateCodeError()
            self._records[record.code] = record

    def take_if_valid(self, code: str, now: int) -> AuthorizationCodeRecord | None:
        """
        Remove and return the record if it exists and has not expired.
        Unknown, expired and already-consumed codes all return None.
        """
        with self._lock:
            record = self._records.pop(code, None)
        if record is None or record.expired(now):
            return None
        return record

    def sweep_expired(self, now: int) -> int:
        """Drop expired records; returns how many were removed."""
        with self._lock:
            expired = [c for c, r in self._records.items() if r.expired(now)]
            for c in expired:
                del self._records[c]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
