"""Best-effort endpoint extraction from HTML or any other plain text.

This is a fallback for documents that are not structured specs. It makes no
promise of precision or completeness: prose mentions are missed and
path-like tokens that are not endpoints are picked up. It never raises;
the worst case is an empty endpoint list.
"""

import html
import logging
import re
from typing import Any

from .base import (
    PLACEHOLDER_BASE_URL,
    ApiEndpoint,
    DocumentMetadata,
    ParsedDocument,
    parse_absolute_url,
    url_origin,
)

logger = logging.getLogger(__name__)

MAX_HTML_ENDPOINTS = 50

ABSOLUTE_URL = re.compile(r"https?://[\w\-.]+(?::\d+)?(?:/[^\s\"'<>]*)?")
METHOD_AND_PATH = re.compile(r"\b(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\s+(/[\w\-{}/]*)", re.IGNORECASE)
# /users, /api/users, /api/v1/users, /users/{id}; closing tags are not paths.
REST_PATH = re.compile(r"(?<!<)/(?:api/)?(?:v\d+/)?[\w\-]+(?:/\{[\w\-]+\})?")
TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def parse_html(text: Any) -> ParsedDocument:
    """Extract whatever endpoints can be spotted in ``text``."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="replace")
    elif not isinstance(text, str):
        text = str(text)

    endpoints: list[ApiEndpoint] = []
    seen: set[str] = set()

    for match in METHOD_AND_PATH.finditer(text):
        method, path = match.group(1).upper(), match.group(2).strip()
        endpoints.append(ApiEndpoint(method=method, path=path, summary=f"{method} {path}"))
        seen.add(path)

    for match in REST_PATH.finditer(text):
        if len(endpoints) >= MAX_HTML_ENDPOINTS:
            break
        path = match.group(0)
        if path in seen or not 2 < len(path) < 100:
            continue
        seen.add(path)
        endpoints.append(ApiEndpoint(method="GET", path=path, summary=f"GET {path}"))

    endpoints = endpoints[:MAX_HTML_ENDPOINTS]
    logger.debug("HTML heuristics found %d endpoints", len(endpoints))

    return ParsedDocument(
        base_url=_base_url(text),
        endpoints=endpoints,
        metadata=DocumentMetadata(title=_title(text), source_type="html"),
    )


def _base_url(text: str) -> str:
    match = ABSOLUTE_URL.search(text)
    if match:
        parts = parse_absolute_url(match.group(0))
        if parts is not None:
            return url_origin(parts)
    return PLACEHOLDER_BASE_URL


def _title(text: str) -> str | None:
    match = TITLE.search(text)
    if not match:
        return None
    title = " ".join(html.unescape(match.group(1)).split())
    return title or None
