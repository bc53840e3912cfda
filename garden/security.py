import re
from typing import Iterable, Optional
from urllib.parse import urlsplit


def redact_secrets(text: str) -> str:
    """Redact common secret patterns from logs and error strings."""
    if not isinstance(text, str):
        return text

    redacted = text

    # Query params like apiKey=, api_key=, key=, token=, secret=
    redacted = re.sub(r"(?i)(api[_-]?key|key|token|secret)=([^&\s]+)", r"\1=***REDACTED***", redacted)

    # Bearer tokens, with or without the Authorization header prefix
    redacted = re.sub(r"(?i)Bearer\s+[A-Za-z0-9._\-]+", "Bearer ***REDACTED***", redacted)

    # Document store integration secrets that leak into upstream error bodies
    redacted = re.sub(r"\b(secret_|ntn_)[A-Za-z0-9]{8,}", r"\1***REDACTED***", redacted)

    return redacted


def is_configured_key(value: Optional[str]) -> bool:
    """Return True if an env var-like key is configured (not empty or placeholder)."""
    if not value:
        return False
    s = value.strip()
    if not s:
        return False
    return ('YOUR_' not in s) and ('your_' not in s)


def host_is_allowed(url: str, allowed_hosts: Iterable[str]) -> bool:
    """True when the URL's host equals, or is a subdomain of, one of the allowed hosts."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    host = (parts.hostname or "").lower()
    if not host:
        return False
    for allowed in allowed_hosts:
        allowed = allowed.strip().lower()
        if allowed and (host == allowed or host.endswith("." + allowed)):
            return True
    return False
