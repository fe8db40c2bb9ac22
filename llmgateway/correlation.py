"""Request correlation: a generated request id plus an optional client id."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"
MAX_CORRELATION_ID_LENGTH = 256

_RAW_CORRELATION_HEADER = CORRELATION_HEADER.lower().encode("ascii")


@dataclass(frozen=True)
class RequestContext:
    """Correlation identifiers attached to a single request."""

    request_id: str
    client_correlation_id: str | None = None


def _is_visible_header_text(text: str) -> bool:
    return all(ch == "\t" or " " <= ch <= "~" for ch in text)


def extract_correlation_id(value: str | bytes | None) -> str | None:
    """Return a usable client correlation id, or None if it must be ignored."""
    if value is None:
        return None
    if isinstance(value, bytes):
        try:
            text = value.decode("ascii")
        except UnicodeDecodeError:
            logger.warning("Invalid encoding in %s header, ignoring", CORRELATION_HEADER)
            return None
    else:
        text = value
    if not _is_visible_header_text(text):
        logger.warning("Invalid characters in %s header, ignoring", CORRELATION_HEADER)
        return None
    if not text:
        logger.debug("Empty %s header, ignoring", CORRELATION_HEADER)
        return None
    if len(text) > MAX_CORRELATION_ID_LENGTH:
        logger.warning(
            "%s exceeds max length (%d), rejecting (length=%d)",
            CORRELATION_HEADER,
            MAX_CORRELATION_ID_LENGTH,
            len(text),
        )
        return None
    return text


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, keeps a valid client id, and echoes both back.

    The context is stored as ``request.state.request_context``. The
    middleware never rejects a request.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(uuid.uuid4())
        raw_value = next(
            (value for key, value in request.headers.raw if key == _RAW_CORRELATION_HEADER),
            None,
        )
        client_id = extract_correlation_id(raw_value)

        context = RequestContext(request_id=request_id, client_correlation_id=client_id)
        logger.debug(
            "Correlation IDs assigned: request_id=%s client_correlation_id=%r",
            context.request_id,
            context.client_correlation_id,
        )
        request.state.request_context = context

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        if client_id is not None:
            response.headers[CORRELATION_HEADER] = client_id
        return response