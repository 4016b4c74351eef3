"""Session cookie helpers.

The cookie only carries the session token. Everything else lives in the
server-side session store.
"""

from typing import Optional

from django.conf import settings

from . import providers


def cookie_name() -> str:
    return getattr(settings, "SHIPPING_SESSION_COOKIE", "checkout_shipping_session")


def read_session_token(request) -> Optional[str]:
    token = request.COOKIES.get(cookie_name())
    return token or None


def set_session_cookie(response, token: str, max_age: int, secure: bool) -> None:
    response.set_cookie(
        cookie_name(),
        token,
        max_age=int(max_age),
        path="/",
        secure=secure,
        httponly=True,
        samesite="Lax",
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(cookie_name(), path="/", samesite="Lax")


def session_from_request(request, config):
    """Resolve the session named by the request cookie.

    Returns:
        tuple: ``(manager, active, stale)``. ``manager`` is None when the
        session feature is disabled. ``active`` is the ``ActiveSession`` or
        None. ``stale`` is True when the cookie named a session that no longer
        exists, so the caller should clear the cookie.
    """
    token = read_session_token(request)
    if not config.session_enabled:
        return None, None, False
    manager = providers.get_session_manager(config)
    active = manager.lookup(token)
    return manager, active, bool(token) and active is None
