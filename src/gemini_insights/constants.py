"""
Project-wide constants for the insights pipeline
"""  # noqa: D200, D212, D415

# ==============================================================================
# Generation
# ==============================================================================

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_OUTPUT_TOKENS = 4096
RESPONSE_MIME_TYPE = "application/json"

# Retry settings: one retry per failure class, fixed delays
MAX_ATTEMPTS = 2
RATE_LIMIT_RETRY_DELAY = 2.0  # seconds
NETWORK_RETRY_DELAY = 1.0  # seconds
RATE_LIMIT_STATUS = 429

# Diagnostics
ERROR_BODY_PREVIEW = 200
RAW_TEXT_PREVIEW = 300

# ==============================================================================
# Result cache
# ==============================================================================

DEFAULT_CACHE_TTL = 24 * 3600  # 24 hours in seconds
CACHE_COLLECTION = "ai_cache"
CACHE_KEY_SEPARATOR = "|"

# ==============================================================================
# Normalization
# ==============================================================================

SCORE_MIN = 0.0
SCORE_MAX = 100.0
SALVAGE_MAX_CHARS = 500
