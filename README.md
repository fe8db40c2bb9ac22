# llmgateway

Building blocks, on Starlette, for a gateway that sits in front of LLM
vendors: a correlation-ID middleware, liveness and readiness checks, and the
validation and orchestration of AI routing requests.

## Correlation IDs

`llmgateway.correlation.CorrelationIdMiddleware` is a Starlette
`BaseHTTPMiddleware`. On every request it:

- generates a fresh UUID v4 request id and adds it to the response as
  `X-Request-ID`;
- reads an optional client `X-Correlation-ID` header and echoes it back,
  ignoring it when it is empty, longer than 256 characters, or holds
  characters that are not visible ASCII;
- stores a `RequestContext(request_id, client_correlation_id)` as
  `request.state.request_context`.

It never rejects a request. The header check is available on its own:

```python
from llmgateway.correlation import extract_correlation_id

extract_correlation_id("client-abc-123")  # "client-abc-123"
extract_correlation_id("")                # None
extract_correlation_id("a" * 300)         # None
```

## Health and readiness

`llmgateway.health.service.HealthService` answers two questions:

- `await service.check_health()` returns a `HealthResponse` with
  `status` (`"healthy"`), an RFC 3339 `timestamp`, `version` (`"0.1.0"`) and
  `uptime_seconds`;
- `await service.check_readiness()` returns a `ReadinessResponse` with
  `status` (`"ready"` or `"not_ready"`), `timestamp` and a `DependencyStatus`
  (`status`, `vendor_count`, `latency_ms`, `error`).

Each response has `to_dict()`, which leaves out optional fields that are
`None`.

Without an executor (`HealthService()`) the service is always ready. With one
(`HealthService.with_executor(executor)`) readiness calls
`await executor.check_all_vendors_health(timeout)` and `executor.vendor_count()`.
If the check raises, the result is `"not_ready"` with the generic error
`"Service dependencies unavailable"`. Successful checks are cached for
`cache_ttl_secs`; failures are never cached, so the service recovers as soon as
a vendor does.

## Ingress requests

`llmgateway.ingress.service.IngressService(executor)` processes an
`IngressRequest(prompt, metadata)` for a user:

1. fetches the user's conversation context (cached per user, 10 s TTL, at most
   1000 entries, oldest evicted first);
2. builds the payload `{"messages": [{"role": "user", "content": prompt}], "metadata": metadata}`;
3. picks a routing plan (vendor `openai`, model `gpt-4`);
4. runs it with `await executor.execute(plan, payload)`;
5. drops the user's cached context.

The executor's result must carry `content`, `model_used`, `prompt_tokens`,
`completion_tokens`, `total_cost` and `finish_reason`. The call returns an
`IngressResponse` whose `to_dict()` gives:

```json
{
  "response": {"content": "...", "role": "assistant", "finish_reason": "stop"},
  "model_used": "gpt-4",
  "cost": 0.001,
  "processing_time_ms": 12
}
```

Requests at or above the slow threshold are logged as warnings. Failures raise
`llmgateway.ingress.errors.IngressError`, whose `kind` is an
`IngressErrorKind` and whose `to_response()` renders a JSON
`{"error": "..."}` response: 400 for invalid requests, 401 and 403 for
authentication and authorisation, 500 with a generic message for internal
failures. An exception raised by the executor is wrapped with
`IngressError.execution_failed`; if it has its own `to_response()`, that
response is used, otherwise a 500.

### The HTTP handler

`llmgateway.ingress.handler.ingress_handler` is a Starlette endpoint. It
expects:

- `request.state.request_context`, set by `CorrelationIdMiddleware`
  (missing: plain-text 500);
- `request.state.auth_context`, any object with a `client_id`, set by your
  authentication middleware (missing: 401);
- `request.app.state.app_state.ingress_service`, an `IngressService`.

A body that is not `application/json` answers 415, JSON that does not parse
answers 400, and a body without a string `prompt` and a `metadata` field
answers 422. `validate_ingress_request` then checks that the trimmed prompt
holds between 1 and 4000 characters and that the compact JSON encoding of
`metadata` is at most 1000 bytes, answering 400 otherwise.

```python
from types import SimpleNamespace

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Route

from llmgateway.correlation import CorrelationIdMiddleware
from llmgateway.ingress.handler import ingress_handler
from llmgateway.ingress.service import IngressService


class TrustEveryone(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        request.state.auth_context = SimpleNamespace(client_id="dev-client")
        return await call_next(request)


app = Starlette(
    routes=[Route("/api/v1/route", ingress_handler, methods=["POST"])],
    middleware=[Middleware(CorrelationIdMiddleware), Middleware(TrustEveryone)],
)
app.state.app_state = SimpleNamespace(ingress_service=IngressService(my_executor))
```

## Configuration

Settings are read from the environment:

| Variable                            | Default | Meaning                                          |
|-------------------------------------|---------|--------------------------------------------------|
| `HEALTH_CHECK_TIMEOUT`              | `2`     | Timeout passed to the vendor health check, seconds |
| `HEALTH_CHECK_CACHE_TTL_SECS`       | `5`     | How long a successful readiness result is reused |
| `INGRESS_SLOW_REQUEST_THRESHOLD_MS` | `1000`  | Ingress requests at or above this are logged as slow |

Values that are not whole non-negative numbers fall back to the default.

```python
from llmgateway.health.service import HealthConfig

config = HealthConfig.from_env()
print(config.timeout, config.cache_ttl_secs)
```

## What this package does not do

- It has no ready-made application, server or command: you assemble the
  Starlette app and host it with an ASGI server yourself.
- It has no HTTP endpoints for health or readiness; call `HealthService` and
  serialise its results yourself.
- It has no authentication middleware and no LLM executor or vendor clients;
  supply objects with the methods described above.
- Conversation context and routing plans are fixed stand-in values from
  `llmgateway.ingress.mockdata`, not calls to real memory or router services.

## Tests

The test suite uses pytest, pytest-asyncio and httpx, which are listed in the
`test` extra.