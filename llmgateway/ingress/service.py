"""Orchestration of an ingress request: context, routing, execution, update."""

from __future__ import annotations

import logging
import os
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..correlation import RequestContext
from .constants import AI_RESPONSE_ROLE, SLOW_REQUEST_THRESHOLD_MS
from .errors import IngressError, IngressErrorKind
from .repository import ExecutorLike, IngressRepository

logger = logging.getLogger(__name__)

SLOW_REQUEST_ENV = "INGRESS_SLOW_REQUEST_THRESHOLD_MS"

_UNSIGNED = re.compile(r"\+?[0-9]+")


def _slow_threshold_from_env() -> int:
    raw = os.environ.get(SLOW_REQUEST_ENV)
    if raw is None or not _UNSIGNED.fullmatch(raw):
        return SLOW_REQUEST_THRESHOLD_MS
    return int(raw)


@dataclass
class IngressRequest:
    """An AI routing request: the user's prompt and free-form metadata."""

    prompt: str
    metadata: Any

    @classmethod
    def from_dict(cls, data: Any) -> IngressRequest:
        """Build a request from decoded JSON; raises TypeError or ValueError if malformed."""
        if not isinstance(data, Mapping):
            raise TypeError("request body must be a JSON object")
        if "prompt" not in data:
            raise ValueError("missing field `prompt`")
        prompt = data["prompt"]
        if not isinstance(prompt, str):
            raise TypeError("invalid type for `prompt`: expected a string")
        if "metadata" not in data:
            raise ValueError("missing field `metadata`")
        return cls(prompt=prompt, metadata=data["metadata"])


@dataclass
class AIResponse:
    """The assistant's reply."""

    content: str
    role: str
    finish_reason: str | None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return {
            "content": self.content,
            "role": self.role,
            "finish_reason": self.finish_reason,
        }


@dataclass
class IngressResponse:
    """The reply together with the model used, its cost and the time taken."""

    response: AIResponse
    model_used: str
    cost: float
    processing_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return {
            "response": self.response.to_dict(),
            "model_used": self.model_used,
            "cost": self.cost,
            "processing_time_ms": self.processing_time_ms,
        }


class IngressService:
    """Runs an ingress request through the whole AI pipeline."""

    def __init__(self, executor_service: ExecutorLike) -> None:
        self.repository = IngressRepository(executor_service)
        self.slow_request_threshold_ms = _slow_threshold_from_env()

    async def process_request(
        self,
        request: IngressRequest,
        user_id: str,
        request_context: RequestContext,
    ) -> IngressResponse:
        """Process the request; any failing step raises IngressError."""
        logger.debug(
            "Starting request processing: user_id=%s prompt_length=%d",
            user_id,
            len(request.prompt.encode("utf-8")),
        )
        start = time.monotonic()

        try:
            context = await self.repository.get_context(user_id, request_context)
        except Exception as exc:
            raise IngressError(IngressErrorKind.CONTEXT_RETRIEVAL_FAILED) from exc

        payload = {
            "messages": [{"role": "user", "content": request.prompt}],
            "metadata": request.metadata,
        }

        try:
            router_response = await self.repository.optimize_route(
                payload, context, request_context
            )
        except Exception as exc:
            raise IngressError(IngressErrorKind.REQUEST_ORCHESTRATION_FAILED) from exc
        plan = router_response.optimized_plan
        logger.debug(
            "Route optimization completed: vendor=%s model=%s", plan.vendor_id, plan.model_id
        )

        llm_result = await self.repository.execute_llm_call(plan, payload)
        logger.debug(
            "LLM execution completed: tokens=%s cost=%s",
            llm_result.prompt_tokens + llm_result.completion_tokens,
            llm_result.total_cost,
        )

        try:
            await self.repository.update_context(
                user_id, request.prompt, llm_result.content, request_context
            )
        except Exception as exc:
            raise IngressError(IngressErrorKind.CONTEXT_UPDATE_FAILED) from exc

        processing_time_ms = int((time.monotonic() - start) * 1000)
        if processing_time_ms >= self.slow_request_threshold_ms:
            logger.warning(
                "Slow ingress request detected: processing_time_ms=%d threshold_ms=%d user_id=%s",
                processing_time_ms,
                self.slow_request_threshold_ms,
                user_id,
            )
        logger.debug("Request processing completed: processing_time_ms=%d", processing_time_ms)

        return IngressResponse(
            response=AIResponse(
                content=llm_result.content,
                role=AI_RESPONSE_ROLE,
                finish_reason=llm_result.finish_reason,
            ),
            model_used=llm_result.model_used,
            cost=llm_result.total_cost,
            processing_time_ms=processing_time_ms,
        )