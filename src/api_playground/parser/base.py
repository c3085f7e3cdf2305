"""Unified data models for parsed API documentation.

All extractors (OpenAPI, Swagger, Postman, HTML) convert their input
into these standard models for downstream processing.
"""

from typing import Any, Literal
from urllib.parse import SplitResult, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Reserved documentation domain, used when a source names no server.
PLACEHOLDER_HOST = "api.example.com"
PLACEHOLDER_BASE_URL = f"https://{PLACEHOLDER_HOST}"

DEFAULT_MAX_ENDPOINTS = 200

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

SourceType = Literal["openapi", "swagger", "postman", "html"]


class Param(BaseModel):
    """A single API parameter (query, path, header, body, or cookie)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str  # the source's "in": query / path / header / body / cookie
    required: bool = False
    param_type: str | None = None
    description: str | None = None
    schema_: Any = Field(default=None, alias="schema")


class ApiEndpoint(BaseModel):
    """A single API operation with all its metadata."""

    method: str  # GET / POST / PUT / PATCH / DELETE / HEAD / OPTIONS
    path: str  # /api/users/{id}, never joined with the base URL
    summary: str | None = None
    description: str | None = None
    parameters: list[Param] = []
    request_body: Any = None
    responses: Any = None
    operation_id: str | None = None
    tags: list[str] = []
    auth_required: bool = False

    @field_validator("method")
    @classmethod
    def _uppercase_method(cls, value: str) -> str:
        return value.upper()


class DocumentMetadata(BaseModel):
    title: str | None = None
    version: str | None = None
    description: str | None = None
    source_type: SourceType


class ParsedDocument(BaseModel):
    """Format-independent result of any extractor."""

    base_url: str
    endpoints: list[ApiEndpoint]
    metadata: DocumentMetadata


class ParserOptions(BaseModel):
    """Filters applied by the structured extractors."""

    max_endpoints: int = Field(default=DEFAULT_MAX_ENDPOINTS, ge=1)
    include_deprecated: bool = False
    include_tags: list[str] = []
    exclude_tags: list[str] = []


def parse_absolute_url(value: Any) -> SplitResult | None:
    """Split ``value`` if it is an absolute URL with a scheme and host."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parts = urlsplit(value.strip())
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc or not parts.hostname:
        return None
    return parts


def url_origin(parts: SplitResult) -> str:
    return f"{parts.scheme}://{parts.netloc.rpartition('@')[2]}"


def text_or_none(value: Any) -> str | None:
    """Return ``value`` if it is a string; sources sometimes nest text in objects."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("content"), str):
        return value["content"]
    return None
