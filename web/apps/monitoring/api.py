import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.shipping.providers import get_session_store

logger = logging.getLogger(__name__)


def _check_db() -> bool:
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        return True
    except DatabaseError:
        logger.exception("health check: database unavailable")
        return False


def _check_session_store() -> bool:
    # session rows live in the database, a read is enough
    try:
        list(get_session_store().items())
        return True
    except DatabaseError:
        logger.exception("health check: session store unavailable")
        return False


def health_view(_request):
    db_ok = _check_db()
    sessions_ok = db_ok and _check_session_store()

    ok = db_ok and sessions_ok
    code = 200 if ok else 503
    return JsonResponse(
        {"ok": ok, "components": {"db": {"ok": db_ok}, "session_store": {"ok": sessions_ok}}},
        status=code,
    )
