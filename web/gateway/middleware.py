"""Request-scoped middleware for the checkout API.

``RequestIdMiddleware`` gives every HTTP request an identifier. The id comes
from the incoming ``X-Request-Id`` header or is generated server-side. It is
stored on the request and in a context variable so log records and outbound
HTTP calls (payment provider, translation index) can carry it without passing
it around.

``ApiSizeLimitMiddleware`` rejects oversized bodies on ``/api/`` before they
reach DRF parsing.
"""

import uuid
import contextvars

from django.conf import settings
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")


class RequestIdMiddleware(MiddlewareMixin):
    """Set ``request.request_id`` and echo it on the response.

    Attributes:
        HEADER (str): Incoming header as found in ``request.META``.
        RESPONSE_HEADER (str): Header added to every response.
    """

    HEADER = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        """Reuse the client-provided id or generate a UUIDv4 string."""
        rid = request.META.get(self.HEADER)
        if not rid:
            rid = str(uuid.uuid4())
        request.request_id = rid
        REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        """Attach the request id header.

        Falls back to the ContextVar when the request object did not go
        through ``process_request`` (for example in some error handlers).
        """
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    """Answer 413 ``PAYLOAD_TOO_LARGE`` when an API body exceeds ``API_MAX_BYTES``."""

    def process_request(self, request):
        if request.path.startswith("/api/"):
            clen = request.META.get("CONTENT_LENGTH")
            limit = getattr(settings, "API_MAX_BYTES", 1024 * 1024)
            if clen and clen.isdigit() and int(clen) > limit:
                return JsonResponse({"detail": "PAYLOAD_TOO_LARGE"}, status=413)
