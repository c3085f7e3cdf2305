"""Swagger 2.0 document extractor."""

import logging

from .base import PLACEHOLDER_HOST, DocumentMetadata, ParsedDocument, ParserOptions, text_or_none
from .operations import extract_operations

logger = logging.getLogger(__name__)


def parse_swagger(doc: dict, options: ParserOptions | None = None) -> ParsedDocument:
    """Parse a decoded Swagger 2.0 document into a ParsedDocument."""
    options = options or ParserOptions()
    endpoints = extract_operations(doc, options, _param_type)
    logger.debug("Swagger document yielded %d endpoints", len(endpoints))

    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}
    return ParsedDocument(
        base_url=_base_url(doc),
        endpoints=endpoints,
        metadata=DocumentMetadata(
            title=text_or_none(info.get("title")),
            version=text_or_none(info.get("version")),
            description=text_or_none(info.get("description")),
            source_type="swagger",
        ),
    )


def _base_url(doc: dict) -> str:
    schemes = doc.get("schemes")
    scheme = schemes[0] if isinstance(schemes, list) and schemes and isinstance(schemes[0], str) else "https"
    host = doc.get("host") if isinstance(doc.get("host"), str) and doc.get("host") else PLACEHOLDER_HOST
    base_path = doc.get("basePath") if isinstance(doc.get("basePath"), str) else ""
    return f"{scheme}://{host}{base_path}"


def _param_type(param: dict) -> str | None:
    # Body parameters carry their type on the nested schema.
    declared = text_or_none(param.get("type"))
    if declared:
        return declared
    schema = param.get("schema")
    if isinstance(schema, dict):
        return text_or_none(schema.get("type"))
    return None
