import os


# Closed set of top-level domains the navigator can classify within.
ALLOWED_DOMAINS: frozenset[str] = frozenset({"physical-products", "services", "entertainment"})

# -------- Option counts ----------------------------------------------------
DEFAULT_MAX_OPTIONS = 10
MAX_OPTIONS_LIMIT = 60
# Lower bound for the prompt target and the low-count warning threshold.
MIN_OPTIONS_FLOOR = 6
STUB_OPTION_COUNT = 10

# -------- Path sanitation --------------------------------------------------
PATH_FIELD_MAX_CHARS = 80
PATH_MAX_DEPTH = 16

# Cache TTL / capacity defaults (settings may override via env)
CACHE_TTL_SEC = 600        # 10 minutes
STUB_CACHE_TTL_SEC = 60    # degraded answers expire sooner
CACHE_MAX_ENTRIES = 500

# HTTP retry/backoff controls
HTTP_RETRY_BASE_MS = int(os.getenv("HTTP_RETRY_BASE_MS", "50"))
HTTP_RETRY_JITTER_MS = int(os.getenv("HTTP_RETRY_JITTER_MS", "200"))

# Stage timeouts (ms), env-overridable
TIMEOUT_LLM_MS = int(os.getenv("TIMEOUT_LLM_MS", "20000"))

HEALTH_PORT = int(os.getenv("NAVIGATOR_PORT", "8080"))
SERVICE_VERSION = "0.3.0"

_STAGE_TIMEOUTS_MS = {
    "llm": TIMEOUT_LLM_MS,
}

def timeout_for_stage(stage: str) -> float:
    return _STAGE_TIMEOUTS_MS.get(stage, TIMEOUT_LLM_MS) / 1000.0
