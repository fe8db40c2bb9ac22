"""Fixed values used by the ingress feature."""

AI_RESPONSE_ROLE = "assistant"

FINISH_REASON_STOP = "stop"
FINISH_REASON_LENGTH = "length"
FINISH_REASON_CONTENT_FILTER = "content_filter"

REWRITE_PREFIX = "[Rewritten]"

DEFAULT_MODEL = "gpt-4"
PREMIUM_MODEL = "gpt-4-turbo"

# Request costs in USD.
DEFAULT_COST = 0.002
CACHE_MISS_COST = 0.005
PREMIUM_COST = 0.010

# Service timeouts in milliseconds.
MEMORY_SERVICE_TIMEOUT_MS = 5000
ROUTER_SERVICE_TIMEOUT_MS = 10000
REWRITE_SERVICE_TIMEOUT_MS = 3000

CONTEXT_CACHE_TTL_SECS = 10
CONTEXT_CACHE_MAX_ENTRIES = 1000
SLOW_REQUEST_THRESHOLD_MS = 1000

# Request validation limits.
MIN_PROMPT_LENGTH = 1
MAX_PROMPT_LENGTH = 4000
MAX_METADATA_SIZE = 1000