"""Logging filter that stamps records with the current request id.

Configured in ``settings.LOGGING`` next to the JSON formatter so that
``%(request_id)s`` is always resolvable, including for records emitted
outside a request (management commands, gunicorn startup).
"""

from logging import Filter, LogRecord

from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach ``record.request_id`` from ``REQUEST_ID_CTX`` ("-" when unset)."""

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True
