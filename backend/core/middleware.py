import logging
import uuid
from contextvars import ContextVar

# Context var for correlation_id so logging filter can access it (Gunicorn logs
# don't have record.request; they run in the same request context).
_correlation_id_ctx: ContextVar[str | None] = ContextVar(
    "correlation_id", default=None
)


def get_current_correlation_id() -> str | None:
    """Return the current correlation_id from context, for logging."""
    return _correlation_id_ctx.get()


class CorrelationIdFilter(logging.Filter):
    """Injects correlation_id into log records for structured logging."""

    def filter(self, record):
        # Django logs may pass extra={"request": request}; Gunicorn logs use contextvar
        if getattr(record, "correlation_id", None):
            return True
        request = getattr(record, "request", None)
        record.correlation_id = (
            getattr(request, "correlation_id", None) or get_current_correlation_id()
        )
        return True


class CorrelationIdMiddleware:
    """
    Injects X-Correlation-ID into:
    - request object
    - response header
    - logging context (via contextvar)
    """

    HEADER_NAME = "HTTP_X_CORRELATION_ID"
    RESPONSE_HEADER = "X-Correlation-ID"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        correlation_id = request.META.get(self.HEADER_NAME)

        if not correlation_id:
            correlation_id = str(uuid.uuid4())

        request.correlation_id = correlation_id
        token = _correlation_id_ctx.set(correlation_id)

        try:
            response = self.get_response(request)
        finally:
            _correlation_id_ctx.reset(token)

        response[self.RESPONSE_HEADER] = correlation_id
        return response
