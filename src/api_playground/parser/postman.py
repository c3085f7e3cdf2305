"""Postman Collection extractor.

Walks the collection's item tree depth-first, in declared order, and
turns every request leaf into an ApiEndpoint.
"""

import logging
from typing import Any

from .base import (
    PLACEHOLDER_BASE_URL,
    ApiEndpoint,
    DocumentMetadata,
    Param,
    ParsedDocument,
    ParserOptions,
    parse_absolute_url,
    text_or_none,
    url_origin,
)

logger = logging.getLogger(__name__)

BASE_URL_VARIABLES = ("baseUrl", "base_url", "url")

# (endpoint, origin of its URL if the URL was absolute)
_Leaf = tuple[ApiEndpoint, str | None]


def parse_postman(collection: dict, options: ParserOptions | None = None) -> ParsedDocument:
    """Parse a decoded Postman collection into a ParsedDocument."""
    options = options or ParserOptions()
    collection_auth = _has_auth_block(collection.get("auth"))

    leaves = _walk(collection.get("item"), None, options.max_endpoints, collection_auth)
    if len(leaves) >= options.max_endpoints:
        logger.warning("Reached max_endpoints=%d; further requests are skipped", options.max_endpoints)

    base_url = _variable_base_url(collection.get("variable"))
    if base_url == PLACEHOLDER_BASE_URL:
        # First absolute request URL wins; later origins are ignored.
        base_url = next((origin for _, origin in leaves if origin), base_url)

    info = collection.get("info") if isinstance(collection.get("info"), dict) else {}
    return ParsedDocument(
        base_url=base_url,
        endpoints=[endpoint for endpoint, _ in leaves],
        metadata=DocumentMetadata(
            title=text_or_none(info.get("name")),
            version=text_or_none(info.get("version")),
            description=text_or_none(info.get("description")),
            source_type="postman",
        ),
    )


def _walk(items: Any, folder: str | None, budget: int, collection_auth: bool) -> list[_Leaf]:
    """Recursively collect request leaves, never more than ``budget``."""
    collected: list[_Leaf] = []
    if not isinstance(items, list):
        return collected

    for item in items:
        if len(collected) >= budget:
            break
        if not isinstance(item, dict):
            continue
        if item.get("request"):
            collected.append(_parse_request(item, folder, collection_auth))
        if isinstance(item.get("item"), list):
            child_folder = text_or_none(item.get("name")) or folder
            collected += _walk(item["item"], child_folder, budget - len(collected), collection_auth)

    return collected


def _parse_request(item: dict, folder: str | None, collection_auth: bool) -> _Leaf:
    req = item["request"]
    if not isinstance(req, dict):
        # A bare string request is just a URL.
        req = {"url": req}

    method = text_or_none(req.get("method")) or "GET"
    url = req.get("url")
    raw = _raw_url(url)

    parts = parse_absolute_url(raw)
    if parts is not None:
        path = parts.path or "/"
        origin = url_origin(parts)
    else:
        path = raw
        origin = None

    headers = req.get("header") if isinstance(req.get("header"), list) else []
    params = _parse_entries(headers, "header")
    if isinstance(url, dict):
        params += _parse_entries(url.get("query"), "query")

    endpoint = ApiEndpoint(
        method=method,
        path=path,
        summary=text_or_none(item.get("name")),
        description=text_or_none(req.get("description")) or text_or_none(item.get("description")),
        parameters=params,
        request_body=req.get("body") if isinstance(req.get("body"), dict) else None,
        tags=[folder] if folder else [],
        auth_required=_requires_auth(req, headers, collection_auth),
    )
    return endpoint, origin


def _raw_url(url: Any) -> str:
    if isinstance(url, str):
        return url
    if not isinstance(url, dict):
        return ""
    if isinstance(url.get("raw"), str):
        return url["raw"]
    segments = url.get("path")
    if isinstance(segments, list):
        return "/" + "/".join(str(s) for s in segments)
    return ""


def _parse_entries(entries: Any, location: str) -> list[Param]:
    if not isinstance(entries, list):
        return []
    return [
        Param(
            name=e["key"],
            location=location,
            required=False,
            param_type="string",
            description=text_or_none(e.get("description")),
        )
        for e in entries
        if isinstance(e, dict) and isinstance(e.get("key"), str) and not e.get("disabled")
    ]


def _variable_base_url(variables: Any) -> str:
    if not isinstance(variables, list):
        return PLACEHOLDER_BASE_URL
    for var in variables:
        if isinstance(var, dict) and var.get("key") in BASE_URL_VARIABLES:
            value = var.get("value")
            if isinstance(value, str) and value:
                return value
    return PLACEHOLDER_BASE_URL


def _has_auth_block(auth: Any) -> bool:
    return isinstance(auth, dict) and auth.get("type") not in (None, "noauth")


def _requires_auth(req: dict, headers: list, collection_auth: bool) -> bool:
    if "auth" in req and isinstance(req["auth"], dict):
        # Request-level auth overrides the collection, including "noauth".
        return _has_auth_block(req["auth"])
    if collection_auth:
        return True
    return any(
        isinstance(h, dict) and str(h.get("key", "")).lower() == "authorization" and not h.get("disabled")
        for h in headers
    )
