"""Validation and sanitization helpers for configuration and provider data."""

from __future__ import annotations

from urllib.parse import urlparse


def validate_url(url: str) -> bool:
    """Validate that a URL is properly formatted."""
    try:
        parsed = urlparse(url.strip())
        return bool(parsed.scheme in ("http", "https") and parsed.netloc)
    except (ValueError, TypeError, AttributeError):
        return False


def validate_endpoint(endpoint: str) -> bool:
    """Validate an endpoint that is either an absolute URL or an absolute path."""
    try:
        if validate_url(endpoint):
            return True
        parsed = urlparse(endpoint.strip())
        return bool(not parsed.scheme and not parsed.netloc and parsed.path.startswith("/"))
    except (ValueError, TypeError, AttributeError):
        return False


def host_from_url(url: str) -> str | None:
    """Returns the lowercase host of a URL, if any."""
    try:
        return urlparse(url.strip()).hostname
    except (ValueError, TypeError, AttributeError):
        return None
