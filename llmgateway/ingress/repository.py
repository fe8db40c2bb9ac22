"""Access to the memory, router and executor services for ingress requests."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

from ..correlation import RequestContext
from .constants import CONTEXT_CACHE_MAX_ENTRIES, CONTEXT_CACHE_TTL_SECS
from .errors import IngressError
from .mockdata import ContextData, RoutePlan, RouterServiceResponse, mock_context, mock_router_response

logger = logging.getLogger(__name__)


class ExecutorLike(Protocol):
    """What the repository needs from an LLM executor."""

    async def execute(self, plan: RoutePlan, payload: Any) -> Any: ...


@dataclass(frozen=True)
class _CachedContext:
    data: ContextData
    cached_at: float


class IngressRepository:
    """Fetches context, plans routes and runs LLM calls, caching context per user."""

    def __init__(
        self,
        executor_service: ExecutorLike,
        context_cache_ttl: float = CONTEXT_CACHE_TTL_SECS,
        context_cache_max_entries: int = CONTEXT_CACHE_MAX_ENTRIES,
    ) -> None:
        self.executor_service = executor_service
        self.context_cache_ttl = context_cache_ttl
        self.context_cache_max_entries = context_cache_max_entries
        self._context_cache: dict[str, _CachedContext] = {}

    def _is_fresh(self, entry: _CachedContext, now: float) -> bool:
        return now - entry.cached_at < self.context_cache_ttl

    async def get_context(
        self, user_id: str, request_context: RequestContext
    ) -> ContextData:
        """Return the user's conversation context, from cache while it is fresh."""
        now = time.monotonic()
        cached = self._context_cache.get(user_id)
        if cached is not None and self._is_fresh(cached, now):
            logger.debug(
                "Context cache hit: user_id=%s ttl_secs=%s", user_id, self.context_cache_ttl
            )
            return cached.data

        context = mock_context()

        now = time.monotonic()
        self._context_cache = {
            key: entry
            for key, entry in self._context_cache.items()
            if self._is_fresh(entry, now)
        }
        if self._context_cache and len(self._context_cache) >= self.context_cache_max_entries:
            oldest = min(self._context_cache, key=lambda key: self._context_cache[key].cached_at)
            del self._context_cache[oldest]
        self._context_cache[user_id] = _CachedContext(data=context, cached_at=time.monotonic())

        logger.debug("Context cache miss: user_id=%s", user_id)
        return context

    async def optimize_route(
        self, payload: Any, context: ContextData, request_context: RequestContext
    ) -> RouterServiceResponse:
        """Choose a routing plan for the payload; does not run the LLM call."""
        logger.debug("Calling Router Service for route optimization")
        response = mock_router_response()
        logger.debug(
            "Router Service returned optimization plan: vendor=%s model=%s reason=%s",
            response.optimized_plan.vendor_id,
            response.optimized_plan.model_id,
            response.optimization_reason,
        )
        return response

    async def execute_llm_call(self, plan: RoutePlan, payload: Any) -> Any:
        """Run the plan through the executor; failures raise IngressError."""
        logger.debug(
            "Executing LLM call via ExecutorService: vendor_id=%s model_id=%s",
            plan.vendor_id,
            plan.model_id,
        )
        try:
            result = await self.executor_service.execute(plan, payload)
        except IngressError:
            raise
        except Exception as exc:
            raise IngressError.execution_failed(exc) from exc
        logger.debug(
            "LLM call completed successfully: prompt_tokens=%s completion_tokens=%s total_cost=%s",
            getattr(result, "prompt_tokens", None),
            getattr(result, "completion_tokens", None),
            getattr(result, "total_cost", None),
        )
        return result

    async def update_context(
        self,
        user_id: str,
        new_message: str,
        response: str,
        request_context: RequestContext,
    ) -> None:
        """Record a new exchange; the user's cached context is dropped."""
        self._context_cache.pop(user_id, None)

    def cached_user_ids(self) -> frozenset[str]:
        """User ids that currently have a cache entry."""
        return frozenset(self._context_cache)