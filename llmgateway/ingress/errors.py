"""Errors raised while processing ingress routing requests."""

from __future__ import annotations

from enum import Enum

from starlette.responses import JSONResponse, Response

INTERNAL_ERROR_MESSAGE = "An internal error occurred while processing your request."
AUTHENTICATION_REQUIRED_MESSAGE = "Authentication is required to access this resource."
AUTHORIZATION_FAILED_MESSAGE = "You do not have permission to perform this operation."


class IngressErrorKind(Enum):
    """The ingress operation that failed."""

    INVALID_REQUEST = "invalid_request"
    AUTHENTICATION_REQUIRED = "authentication_required"
    AUTHORIZATION_FAILED = "authorization_failed"
    CONTEXT_RETRIEVAL_FAILED = "context_retrieval_failed"
    REQUEST_ORCHESTRATION_FAILED = "request_orchestration_failed"
    RESPONSE_AGGREGATION_FAILED = "response_aggregation_failed"
    CONTEXT_UPDATE_FAILED = "context_update_failed"
    EXECUTION_FAILED = "execution_failed"


_DESCRIPTIONS = {
    IngressErrorKind.AUTHENTICATION_REQUIRED: "Missing required authentication",
    IngressErrorKind.AUTHORIZATION_FAILED: "Insufficient permissions for this operation",
    IngressErrorKind.CONTEXT_RETRIEVAL_FAILED: "Failed to retrieve conversation context",
    IngressErrorKind.REQUEST_ORCHESTRATION_FAILED: "Request orchestration failed",
    IngressErrorKind.RESPONSE_AGGREGATION_FAILED: "Response aggregation failed",
    IngressErrorKind.CONTEXT_UPDATE_FAILED: "Failed to update conversation context",
}

_SERVER_ERRORS = frozenset(
    {
        IngressErrorKind.CONTEXT_RETRIEVAL_FAILED,
        IngressErrorKind.REQUEST_ORCHESTRATION_FAILED,
        IngressErrorKind.RESPONSE_AGGREGATION_FAILED,
        IngressErrorKind.CONTEXT_UPDATE_FAILED,
    }
)


class IngressError(Exception):
    """A failed ingress operation, renderable as a JSON HTTP response."""

    def __init__(
        self,
        kind: IngressErrorKind,
        detail: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.cause = cause
        if kind is IngressErrorKind.INVALID_REQUEST:
            message = f"Invalid request format: {detail}"
        elif kind is IngressErrorKind.EXECUTION_FAILED:
            message = str(cause)
        else:
            message = _DESCRIPTIONS[kind]
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def invalid_request(cls, message: str) -> IngressError:
        """A client request that failed validation."""
        return cls(IngressErrorKind.INVALID_REQUEST, detail=message)

    @classmethod
    def execution_failed(cls, error: BaseException) -> IngressError:
        """Wrap an error raised while executing the LLM call."""
        return cls(IngressErrorKind.EXECUTION_FAILED, cause=error)

    def to_response(self) -> Response:
        """Render the error; executor failures use the wrapped error's own response."""
        if self.kind is IngressErrorKind.EXECUTION_FAILED:
            render = getattr(self.cause, "to_response", None)
            if callable(render):
                return render()
            return JSONResponse({"error": INTERNAL_ERROR_MESSAGE}, status_code=500)

        if self.kind is IngressErrorKind.INVALID_REQUEST:
            status, message = 400, self.detail or ""
        elif self.kind is IngressErrorKind.AUTHENTICATION_REQUIRED:
            status, message = 401, AUTHENTICATION_REQUIRED_MESSAGE
        elif self.kind is IngressErrorKind.AUTHORIZATION_FAILED:
            status, message = 403, AUTHORIZATION_FAILED_MESSAGE
        else:
            assert self.kind in _SERVER_ERRORS
            status, message = 500, INTERNAL_ERROR_MESSAGE
        return JSONResponse({"error": message}, status_code=status)