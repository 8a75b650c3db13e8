"""
tarclone logging utilities.

Provides configurable logging for HTTP requests/responses, redirects and
archive extraction. Ensures no credentials (tokens, Authorization headers)
are logged.
"""

import logging
import re
from typing import Any

# Create package-specific loggers
_sdk_logger = logging.getLogger("tarclone")
_http_logger = logging.getLogger("tarclone.http")
_extract_logger = logging.getLogger("tarclone.extract")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Authorization header values
    (re.compile(r"(Authorization['\"]?\s*[:=]\s*['\"]?)(token|bearer|basic)\s+[^\s'\",}]+", re.IGNORECASE), r"\1[REDACTED]"),
    # GitHub personal access tokens
    (re.compile(r"\b(ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{20,}\b"), "[TOKEN_REDACTED]"),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"), "[TOKEN_REDACTED]"),
    # Secret/token patterns
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = {"authorization", "secret", "token", "password", "api_key", "cookie"}


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    extract_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure tarclone logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        extract_level: Log level for archive extraction (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from tarclone.logging import configure_logging

        # Show every request and redirect hop
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _extract_logger.setLevel(extract_level if extract_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a tarclone logger.

    Args:
        name: Logger name suffix (e.g., "http", "extract"). If None, returns main logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"tarclone.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask credentials in a string.

    Args:
        text: Text that may contain tokens or Authorization values

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values (headers, config)
        sensitive_keys: Set of keys to mask (default: authorization, token, secret, ...)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
) -> None:
    """
    Log an HTTP request at DEBUG level with credentials masked.

    Args:
        method: HTTP method
        url: Request URL
        headers: Request headers (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {mask_sensitive_data(url)}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(dict(headers))}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log an HTTP response status at DEBUG level.

    Args:
        status_code: HTTP status code
        url: Request URL
        elapsed_ms: Time to response headers in milliseconds (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {mask_sensitive_data(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    _http_logger.debug(" | ".join(log_parts))


def log_redirect(hop: int, status_code: int, source: str, target: str) -> None:
    """Log one followed redirect hop at DEBUG level."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    _http_logger.debug(
        f"Redirect #{hop} ({status_code}): {mask_sensitive_data(source)} -> {mask_sensitive_data(target)}"
    )


def log_extraction(
    destination: str,
    entries_written: int,
    bytes_read: int,
    strip_components: int,
) -> None:
    """Log a finished extraction at DEBUG level."""
    if not _extract_logger.isEnabledFor(logging.DEBUG):
        return

    _extract_logger.debug(
        f"Extracted {entries_written} entries ({bytes_read} bytes read) "
        f"into {destination} | strip={strip_components}"
    )


# Export public API
__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_redirect",
    "log_extraction",
]
