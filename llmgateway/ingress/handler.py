"""HTTP handler for the AI routing ingress endpoint.

The handler expects ``request.state.request_context`` (set by the correlation
middleware), ``request.state.auth_context`` with a ``client_id`` (set by the
authentication middleware) and ``request.app.state.app_state.ingress_service``.
"""

from __future__ import annotations

import json
import logging

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from .constants import MAX_METADATA_SIZE, MAX_PROMPT_LENGTH, MIN_PROMPT_LENGTH
from .errors import IngressError, IngressErrorKind
from .service import IngressRequest

logger = logging.getLogger(__name__)


class _BodyRejected(Exception):
    def __init__(self, response: Response) -> None:
        super().__init__(response.status_code)
        self.response = response


def _metadata_size(metadata: object) -> int:
    try:
        encoded = json.dumps(metadata, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return MAX_METADATA_SIZE + 1
    return len(encoded.encode("utf-8"))


def validate_ingress_request(ingress_request: IngressRequest) -> None:
    """Raise IngressError if the prompt or metadata break the request limits."""
    prompt_len = len(ingress_request.prompt.strip())
    if prompt_len < MIN_PROMPT_LENGTH:
        logger.warning("Request validation failed: empty prompt")
        raise IngressError.invalid_request("Prompt cannot be empty")
    if prompt_len > MAX_PROMPT_LENGTH:
        logger.warning("Request validation failed: prompt too long (%d)", prompt_len)
        raise IngressError.invalid_request(
            f"Prompt exceeds maximum length of {MAX_PROMPT_LENGTH} characters"
        )
    metadata_size = _metadata_size(ingress_request.metadata)
    if metadata_size > MAX_METADATA_SIZE:
        logger.warning("Request validation failed: metadata too large (%d)", metadata_size)
        raise IngressError.invalid_request(
            f"Metadata exceeds maximum size of {MAX_METADATA_SIZE} bytes"
        )


def _is_json_content_type(content_type: str) -> bool:
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime == "application/json" or (
        mime.startswith("application/") and mime.endswith("+json")
    )


async def _read_ingress_request(request: Request) -> IngressRequest:
    if not _is_json_content_type(request.headers.get("content-type", "")):
        raise _BodyRejected(
            PlainTextResponse(
                "Expected request with `Content-Type: application/json`", status_code=415
            )
        )
    body = await request.body()
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise _BodyRejected(
            PlainTextResponse(f"Failed to parse the request body as JSON: {exc}", status_code=400)
        ) from exc
    try:
        return IngressRequest.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise _BodyRejected(
            PlainTextResponse(
                f"Failed to deserialize the JSON body into the target type: {exc}",
                status_code=422,
            )
        ) from exc


async def ingress_handler(request: Request) -> Response:
    """Validate the request, run it through the ingress service and return JSON."""
    request_context = getattr(request.state, "request_context", None)
    if request_context is None:
        return PlainTextResponse("Missing request extension: request context", status_code=500)
    auth_context = getattr(request.state, "auth_context", None)
    if auth_context is None:
        return IngressError(IngressErrorKind.AUTHENTICATION_REQUIRED).to_response()

    try:
        ingress_request = await _read_ingress_request(request)
    except _BodyRejected as rejection:
        return rejection.response

    logger.info(
        "Incoming AI routing request: request_id=%s user_id=%s",
        request_context.request_id,
        auth_context.client_id,
    )

    try:
        validate_ingress_request(ingress_request)
    except IngressError as error:
        return error.to_response()

    service = request.app.state.app_state.ingress_service
    try:
        response = await service.process_request(
            ingress_request, auth_context.client_id, request_context
        )
    except IngressError as error:
        logger.error("Request processing failed: %r", error)
        return error.to_response()

    logger.info(
        "Request processing completed successfully: model=%s cost=%s processing_time_ms=%d",
        response.model_used,
        response.cost,
        response.processing_time_ms,
    )
    return JSONResponse(response.to_dict())