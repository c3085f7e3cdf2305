"""Entry point that routes raw documentation to the matching extractor."""

import logging
from collections.abc import Callable
from typing import Any

from api_playground.errors import InvalidDocument, UnsupportedFormat

from .base import ParsedDocument, ParserOptions
from .detect import OPENAPI, POSTMAN, SWAGGER, classify, decode_content
from .heuristic import parse_html
from .openapi import parse_openapi
from .postman import parse_postman
from .swagger import parse_swagger
from .validate import validate_document

logger = logging.getLogger(__name__)

Extractor = Callable[[dict, ParserOptions], ParsedDocument]

EXTRACTORS: dict[str, Extractor] = {
    OPENAPI: parse_openapi,
    SWAGGER: parse_swagger,
    POSTMAN: parse_postman,
}


def parse_document(content: Any, options: ParserOptions | None = None) -> ParsedDocument:
    """Detect the format of ``content`` and extract a ParsedDocument.

    Text that is not structured data goes straight to the HTML heuristics.
    Structured data of an unknown shape raises UnsupportedFormat.
    """
    options = options or ParserOptions()
    doc, decoded = decode_content(content)
    if not decoded:
        logger.debug("Content is not structured; using HTML heuristics")
        return parse_html(doc)

    fmt = classify(doc)
    extractor = EXTRACTORS.get(fmt)
    if extractor is None:
        raise UnsupportedFormat(fmt)
    logger.debug("Detected %s document", fmt)
    return extractor(doc, options)


def parse_and_validate(content: Any, options: ParserOptions | None = None) -> ParsedDocument:
    """Parse ``content`` and raise InvalidDocument if the result is not usable."""
    parsed = parse_document(content, options)
    report = validate_document(parsed)
    if not report.valid:
        raise InvalidDocument(report.errors)
    return parsed
