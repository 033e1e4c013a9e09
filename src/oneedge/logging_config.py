"""Logging setup with secret redaction.

Console output goes through Rich; every record passes a redaction filter
so bearer tokens and API keys never reach the terminal or log files.
"""

import logging
import logging.config
import re

_BEARER_RE = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9\-._~+/]+=*")
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*")
_API_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9\-_]{16,}")
_SECRET_JSON_RE = re.compile(
    r'(?i)("(?:api_key|apikey|token|access_token|refresh_token|secret|password)"\s*:\s*")[^"]*(")'
)
_SECRET_KV_RE = re.compile(
    r"(?i)\b(api_key|apikey|token|secret|password)\b\s*=\s*([^\s,;]+)"
)
_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")


def redact_text(text: str) -> str:
    """Mask credentials and personal data in a log message."""
    text = _BEARER_RE.sub("Bearer [redacted]", text)
    text = _JWT_RE.sub("[redacted_jwt]", text)
    text = _API_KEY_RE.sub("[redacted_key]", text)
    text = _SECRET_JSON_RE.sub(r"\1[redacted]\2", text)
    text = _SECRET_KV_RE.sub(r"\1=[redacted]", text)
    text = _EMAIL_RE.sub(r"[redacted_email]@\1", text)
    return text


class RedactionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        record.msg = redact_text(message)
        record.args = ()
        return True


def configure_logging(log_level: str = "WARNING") -> None:
    """Install console logging for the oneedge package.

    Args:
        log_level: Level name for the oneedge logger and the console handler
    """
    level = log_level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "redact": {"()": "oneedge.logging_config.RedactionFilter"},
            },
            "formatters": {
                "standard": {"format": "%(name)s %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "rich.logging.RichHandler",
                    "formatter": "standard",
                    "filters": ["redact"],
                    "level": level,
                    "show_path": False,
                    "rich_tracebacks": True,
                }
            },
            "loggers": {
                "oneedge": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                },
                "httpx": {
                    "handlers": ["console"],
                    "level": "WARNING",
                    "propagate": False,
                },
            },
        }
    )
