"""Redaction and truncation applied before payloads leave for the AI service."""

import hashlib
import json
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

MAX_BODY_SIZE = 64 * 1024
REDACTED = "[REDACTED]"

SENSITIVE_KEY_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"authorization", r"api[-_]?key", r"token", r"cookie", r"session", r"secret", r"password")
]
SIGNED_QUERY_PARAMS = {"signature", "sig", "token", "key", "apikey"}


def is_sensitive(key: str) -> bool:
    return any(p.search(key) for p in SENSITIVE_KEY_PATTERNS)


def sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    return {key: REDACTED if is_sensitive(key) else value for key, value in headers.items()}


def sanitize_url(url: str) -> str:
    """Drop signing and credential query parameters from ``url``."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in SIGNED_QUERY_PARAMS]
    return urlunsplit(parts._replace(query=urlencode(query)))


def truncate_body(body: Any, limit: int = MAX_BODY_SIZE) -> Any:
    """Cap a body at ``limit`` bytes of its serialized form."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        return {"type": "binary", "size": len(body)}

    text = body if isinstance(body, str) else json.dumps(body, default=str)
    size = len(text.encode("utf-8"))
    if size <= limit:
        return body
    truncated = text.encode("utf-8")[:limit].decode("utf-8", errors="ignore")
    return f"{truncated}\n\n[TRUNCATED - Original size: {size} bytes]"


def sanitize_for_type_generation(body: Any, sample_size: int = 3) -> Any:
    """Redact sensitive values but keep their JSON types so shapes survive."""
    if isinstance(body, list):
        return [sanitize_for_type_generation(item, sample_size) for item in body[:sample_size]]
    if isinstance(body, dict):
        sanitized = {}
        for key, value in body.items():
            if not is_sensitive(str(key)):
                sanitized[key] = sanitize_for_type_generation(value, sample_size)
            elif isinstance(value, bool):
                sanitized[key] = False
            elif isinstance(value, (int, float)):
                sanitized[key] = 0
            elif isinstance(value, str):
                sanitized[key] = "[REDACTED_STRING]"
            else:
                sanitized[key] = REDACTED
        return sanitized
    return body


def payload_hash(payload: Any) -> str:
    """SHA-256 of the canonical JSON form of ``payload``."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
