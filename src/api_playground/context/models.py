"""Persisted API context: a parsed document plus identity and provenance."""

import secrets
import string
import time
from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from api_playground.parser.base import ApiEndpoint, ParsedDocument

ContextSourceType = Literal["openapi", "swagger", "postman", "html", "manual"]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_context_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"ctx_{now_ms()}_{suffix}"


class ApiContext(BaseModel):
    id: str = Field(default_factory=generate_context_id)
    name: str
    base_url: str
    source_url: str | None = None
    source_type: ContextSourceType | None = None
    version: str | None = None
    description: str | None = None
    endpoints: list[ApiEndpoint]
    created_at: int = Field(default_factory=now_ms)
    last_updated: int = Field(default_factory=now_ms)


def build_context(
    doc: ParsedDocument,
    source_url: str | None = None,
    filename: str | None = None,
) -> ApiContext:
    """Promote a validated document to a named context."""
    name = doc.metadata.title
    if not name and source_url:
        host = urlsplit(source_url).hostname
        name = f"API from {host}" if host else None
    if not name:
        name = filename or "Uploaded API"

    return ApiContext(
        name=name,
        base_url=doc.base_url,
        source_url=source_url,
        source_type=doc.metadata.source_type,
        version=doc.metadata.version,
        description=doc.metadata.description,
        endpoints=list(doc.endpoints),
    )
