"""Persistence for shipping options and session records.

Both repositories keep a thin interface that returns plain Python values, so
the domain code (``config``, ``sessions``, ``catalog``) never sees ORM types.
"""

import time
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, Callable, Iterable, Optional, Tuple

from .models import StoreOption, ShippingSessionRecord


class OptionsRepository:
    """Key/value option store backed by the ``store_options`` table."""

    def get(self, key: str, default: Any = None) -> Any:
        row = StoreOption.objects.filter(key=key).first()
        if row is None:
            return default
        return row.value

    def set(self, key: str, value: Any) -> None:
        StoreOption.objects.update_or_create(key=key, defaults={"value": value})

    def delete(self, key: str) -> None:
        StoreOption.objects.filter(key=key).delete()


class DatabaseSessionStore:
    """``SessionStore`` keeping one row per token with an explicit expiry.

    Expired rows are never returned. ``get`` removes an expired row it runs
    into, and ``purge_expired`` clears the rest.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=dt_timezone.utc)

    def get(self, token: str) -> Optional[dict]:
        row = ShippingSessionRecord.objects.filter(token=token).first()
        if row is None:
            return None
        if row.expires_at <= self._now():
            row.delete()
            return None
        return dict(row.data)

    def put(self, token: str, data: dict, ttl_seconds: int) -> None:
        ShippingSessionRecord.objects.update_or_create(
            token=token,
            defaults={"data": data, "expires_at": self._now() + timedelta(seconds=int(ttl_seconds))},
        )

    def delete(self, token: str) -> bool:
        deleted, _ = ShippingSessionRecord.objects.filter(token=token).delete()
        return deleted > 0

    def items(self) -> Iterable[Tuple[str, dict]]:
        rows = ShippingSessionRecord.objects.filter(expires_at__gt=self._now())
        return [(row.token, dict(row.data)) for row in rows]

    def ttl(self, token: str) -> Optional[int]:
        """Seconds until the record expires, or None when it is gone."""
        row = ShippingSessionRecord.objects.filter(token=token).first()
        if row is None:
            return None
        return max(0, int((row.expires_at - self._now()).total_seconds()))

    def purge_expired(self) -> int:
        deleted, _ = ShippingSessionRecord.objects.filter(expires_at__lte=self._now()).delete()
        return deleted
