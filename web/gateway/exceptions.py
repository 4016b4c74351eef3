"""DRF exception handler that keeps every API error JSON-shaped.

DRF already renders its own exceptions (validation, permission, throttling,
404). Anything else escaping a view is logged with its traceback and turned
into a 500 ``{"detail": "INTERNAL_ERROR"}`` instead of Django's HTML error
page.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .middleware import REQUEST_ID_CTX

logger = logging.getLogger(__name__)


def json_exception_handler(exc, context):
    """Render ``exc`` as a JSON response.

    Args:
        exc: The exception raised by the view.
        context: DRF handler context (holds ``view`` and ``request``).

    Returns:
        Response: DRF's own response for API exceptions, otherwise a 500
        response with code ``INTERNAL_ERROR``.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        "unhandled error in %s",
        view.__class__.__name__ if view is not None else "view",
        extra={"request_id": REQUEST_ID_CTX.get()},
    )
    return Response({"detail": "INTERNAL_ERROR"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
