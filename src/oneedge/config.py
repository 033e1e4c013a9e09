"""Configuration constants.

Centralizes defaults and magic strings shared by the client, the chat
session and the CLI.
"""

# Endpoints
DEFAULT_BASE_URL = "http://localhost:4000"
CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
MODELS_PATH = "/v1/models"
HEALTH_PATH = "/health"

# Authentication
DEFAULT_AUTH_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"

# HTTP
DEFAULT_TIMEOUT_SECONDS = 60.0
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"
JSON_CONTENT_TYPE = "application/json"

# SSE framing
SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# Sampling defaults
DEFAULT_MODEL = "default"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TOP_P = 0.9

# Chat session text
NO_RESPONSE_PLACEHOLDER = "No response generated"
STREAM_FALLBACK_NOTICE = "Streaming unavailable, falling back to a standard response"
UNKNOWN_ERROR_MESSAGE = "An error occurred"

# Thinking markers emitted by reasoning models
THINKING_OPEN_TAG = "<thinking>"
THINKING_CLOSE_TAG = "</thinking>"

# Environment variables read by the CLI
ENV_PREFIX = "ONEEDGE"
ENV_API_KEY = f"{ENV_PREFIX}_API_KEY"
ENV_BASE_URL = f"{ENV_PREFIX}_BASE_URL"
ENV_AUTH_HEADER = f"{ENV_PREFIX}_AUTH_HEADER"
ENV_CREDENTIALS_FILE = f"{ENV_PREFIX}_CREDENTIALS_FILE"
ENV_BACKEND = f"{ENV_PREFIX}_BACKEND"
ENV_MODEL = f"{ENV_PREFIX}_MODEL"
ENV_LOG_LEVEL = f"{ENV_PREFIX}_LOG_LEVEL"
