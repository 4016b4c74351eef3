"""Free shipping session state machine.

A session opens when a customer places an order with a shipping method and no
valid session token. While it is open, every later order carrying the same
token gets the pickup rates for free. States and transitions:

- NO_SESSION -> ACTIVE: ``start`` stores a new record with TTL = duration.
- ACTIVE -> ACTIVE: ``add_order`` bumps ``order_count`` and rewrites the
  record with TTL ``start_time + duration - now``. The window is fixed and
  anchored to the original start time. It never slides.
- ACTIVE -> EXPIRED: ``lookup`` sees ``elapsed >= duration``, deletes the
  record and reports no session.
- ACTIVE -> ENDED: ``end`` deletes the record (admin delete, customer clear).

Records are read-modify-written without any lock. Two simultaneous orders on
one token can lose an ``order_count`` increment.
"""

import secrets
import time
from dataclasses import dataclass, asdict
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from django.utils.translation import gettext as _

TOKEN_PREFIX = "sess_"
HOUR_IN_SECONDS = 3600


@dataclass
class ShippingSession:
    """Stored state of one shipping session.

    Attributes:
        session_id: Opaque token shared with the browser cookie.
        start_time: Unix timestamp (seconds) of the first order.
        first_order_id: Id of the order that opened the session.
        customer_identifier: Billing email, or ``user_<id>``.
        order_count: Orders placed in the session so far.
        total_saved_cents: Sum of the shipping prices waived.
        last_order_id: Id of the latest order added.
        last_order_time: Unix timestamp of the latest order added.
    """

    session_id: str
    start_time: int
    first_order_id: str
    customer_identifier: str
    order_count: int = 1
    total_saved_cents: int = 0
    last_order_id: Optional[str] = None
    last_order_time: Optional[int] = None

    def to_record(self) -> dict:
        data = asdict(self)
        data.pop("session_id")
        return data

    @classmethod
    def from_record(cls, session_id: str, data: dict) -> "ShippingSession":
        return cls(
            session_id=session_id,
            start_time=int(data["start_time"]),
            first_order_id=str(data.get("first_order_id", "")),
            customer_identifier=str(data["customer_identifier"]),
            order_count=int(data.get("order_count", 1)),
            total_saved_cents=int(data.get("total_saved_cents", 0)),
            last_order_id=data.get("last_order_id"),
            last_order_time=data.get("last_order_time"),
        )


@dataclass(frozen=True)
class ActiveSession:
    """A session seen through a lookup, with its remaining window."""

    session: ShippingSession
    remaining_seconds: int

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def remaining_formatted(self) -> str:
        return format_remaining(self.remaining_seconds)


def format_remaining(seconds: int) -> str:
    """Render a duration as ``"H hours M minutes"`` or ``"M minutes"``."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return _("%(hours)d hours %(minutes)d minutes") % {"hours": hours, "minutes": minutes}
    return _("%(minutes)d minutes") % {"minutes": minutes}


def new_session_token() -> str:
    return TOKEN_PREFIX + secrets.token_hex(16)


# ---- Ports (DIP) ----
class SessionStore(Protocol):
    """Key/value store whose entries expire after a TTL."""

    def get(self, token: str) -> Optional[dict]:
        """Return the stored record, or None when missing or expired."""
        raise NotImplementedError()

    def put(self, token: str, data: dict, ttl_seconds: int) -> None:
        """Create or overwrite a record that expires ``ttl_seconds`` from now."""
        raise NotImplementedError()

    def delete(self, token: str) -> bool:
        """Remove a record. Returns True if something was deleted."""
        raise NotImplementedError()

    def items(self) -> Iterable[Tuple[str, dict]]:
        """Yield ``(token, record)`` for every unexpired record."""
        raise NotImplementedError()

    def purge_expired(self) -> int:
        """Drop every expired record. Returns how many were removed."""
        raise NotImplementedError()


# ---- Domain service ----
class ShippingSessionManager:
    """Run the session state machine against a ``SessionStore``.

    The manager only knows a duration and a clock. Whether the feature is
    enabled is decided by the caller from ``ShippingConfig``.
    """

    def __init__(self, store: SessionStore, duration_seconds: int, clock: Callable[[], float] = time.time):
        """Initialize the manager.

        Args:
            store: Backing TTL store.
            duration_seconds: Length of the free shipping window.
            clock: Returns the current Unix time; injectable for tests.
        """
        self.store = store
        self.duration = int(duration_seconds)
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock())

    def lookup(self, token: Optional[str]) -> Optional[ActiveSession]:
        """Resolve a cookie token to an active session.

        A session whose window has elapsed (``elapsed >= duration``) is deleted
        on the spot and reported as absent. Reading never changes
        ``order_count``.

        Args:
            token: Token read from the cookie, possibly empty.

        Returns:
            ActiveSession | None: The live session with its remaining time.
        """
        if not token:
            return None
        data = self.store.get(token)
        if not data:
            return None
        if "start_time" not in data or "customer_identifier" not in data:
            return None

        session = ShippingSession.from_record(token, data)
        elapsed = self._now() - session.start_time
        if elapsed >= self.duration:
            self.end(token)
            return None
        return ActiveSession(session=session, remaining_seconds=self.duration - elapsed)

    def start(self, first_order_id: str, customer_identifier: str) -> ShippingSession:
        """Open a new session after the first qualifying order.

        Expired records left behind by customers who never came back are
        purged at the same time.

        Returns:
            ShippingSession: The stored session. Its ``session_id`` must be
            sent back to the client in the session cookie.
        """
        session = ShippingSession(
            session_id=new_session_token(),
            start_time=self._now(),
            first_order_id=str(first_order_id),
            customer_identifier=customer_identifier,
        )
        self.store.purge_expired()
        self.store.put(session.session_id, session.to_record(), self.duration)
        return session

    def add_order(self, token: str, order_id: str, shipping_saved_cents: int = 0) -> Optional[ShippingSession]:
        """Count one more order in an existing session.

        The record TTL is recomputed from the original start time, so adding
        orders never extends the window.

        Args:
            token: Session token.
            order_id: Id of the order being added.
            shipping_saved_cents: Original price of the rate that was zeroed
                for this order (0 when nothing was waived).

        Returns:
            ShippingSession | None: Updated session, or None if the record
            disappeared or its window is already over.
        """
        data = self.store.get(token)
        if not data:
            return None

        session = ShippingSession.from_record(token, data)
        now = self._now()
        session.order_count += 1
        session.total_saved_cents += int(shipping_saved_cents or 0)
        session.last_order_id = str(order_id)
        session.last_order_time = now

        remaining = session.start_time + self.duration - now
        if remaining <= 0:
            self.store.delete(token)
            return None
        self.store.put(token, session.to_record(), remaining)
        return session

    def end(self, token: str) -> bool:
        """Delete a session. Returns False when there was nothing to delete."""
        return self.store.delete(token)

    def remaining_seconds(self, session: ShippingSession) -> int:
        """Seconds left in the window, floored at zero."""
        return max(0, self.duration - (self._now() - session.start_time))

    def all_sessions(self) -> List[ActiveSession]:
        """Every live session with its remaining time (newest first).

        Expired records are purged first. A record whose window is over under
        the current duration (shortened since it started) is ended, as
        ``lookup`` would.
        """
        self.store.purge_expired()
        out = []
        now = self._now()
        for token, data in self.store.items():
            if not isinstance(data, dict) or "start_time" not in data or "customer_identifier" not in data:
                continue
            session = ShippingSession.from_record(token, data)
            if now - session.start_time >= self.duration:
                self.end(token)
                continue
            out.append(ActiveSession(session=session, remaining_seconds=self.remaining_seconds(session)))
        out.sort(key=lambda a: a.session.start_time, reverse=True)
        return out
