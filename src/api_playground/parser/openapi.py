"""OpenAPI 3.x document extractor."""

import logging

from .base import PLACEHOLDER_BASE_URL, DocumentMetadata, ParsedDocument, ParserOptions, text_or_none
from .operations import extract_operations

logger = logging.getLogger(__name__)


def parse_openapi(doc: dict, options: ParserOptions | None = None) -> ParsedDocument:
    """Parse a decoded OpenAPI 3.x document into a ParsedDocument."""
    options = options or ParserOptions()
    endpoints = extract_operations(doc, options, _param_type)
    logger.debug("OpenAPI document yielded %d endpoints", len(endpoints))

    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}
    return ParsedDocument(
        base_url=_base_url(doc),
        endpoints=endpoints,
        metadata=DocumentMetadata(
            title=text_or_none(info.get("title")),
            version=text_or_none(info.get("version")),
            description=text_or_none(info.get("description")),
            source_type="openapi",
        ),
    )


def _base_url(doc: dict) -> str:
    servers = doc.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        url = servers[0].get("url")
        if isinstance(url, str) and url:
            return url
    return PLACEHOLDER_BASE_URL


def _param_type(param: dict) -> str | None:
    schema = param.get("schema")
    if isinstance(schema, dict):
        return text_or_none(schema.get("type"))
    return None
