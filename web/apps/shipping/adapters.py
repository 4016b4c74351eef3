"""In-process adapters for the shipping ports.

``InMemorySessionStore`` implements ``SessionStore`` with a dict and the same
expiry rules as the database store. It is used by unit tests and by local
runs that do not want session rows in the database.
"""

import time
from typing import Callable, Dict, Iterable, Optional, Tuple

from .sessions import SessionStore


class InMemorySessionStore(SessionStore):
    """Dict-backed TTL store driven by an injectable clock."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._data: Dict[str, Tuple[dict, float]] = {}

    def get(self, token: str) -> Optional[dict]:
        entry = self._data.get(token)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at <= self.clock():
            del self._data[token]
            return None
        return dict(data)

    def put(self, token: str, data: dict, ttl_seconds: int) -> None:
        self._data[token] = (dict(data), self.clock() + int(ttl_seconds))

    def delete(self, token: str) -> bool:
        return self._data.pop(token, None) is not None

    def items(self) -> Iterable[Tuple[str, dict]]:
        now = self.clock()
        return [(token, dict(data)) for token, (data, exp) in self._data.items() if exp > now]

    def ttl(self, token: str) -> Optional[int]:
        """Seconds until ``token`` expires, or None when it is absent."""
        entry = self._data.get(token)
        if entry is None:
            return None
        return max(0, int(entry[1] - self.clock()))

    def purge_expired(self) -> int:
        now = self.clock()
        expired = [token for token, (_, exp) in self._data.items() if exp <= now]
        for token in expired:
            del self._data[token]
        return len(expired)
