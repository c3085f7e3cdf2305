"""Format an API context as a compact fragment for AI prompts.

Token counts here are estimates at a fixed 4 characters per token, not the
output of a real tokenizer. Use them for budgeting, not exact accounting.
"""

import math
from typing import TypeVar

from api_playground.context.models import ApiContext
from api_playground.parser.base import ApiEndpoint, ParsedDocument

MAX_ENDPOINTS_TO_INJECT = 50
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TRIM_LIMIT = 30
CHARS_PER_TOKEN = 4
UNTAGGED_GROUP = "Other"

Source = TypeVar("Source", ApiContext, ParsedDocument)


def _describe(source: ApiContext | ParsedDocument) -> tuple[str, str, str | None]:
    if isinstance(source, ApiContext):
        return source.name, source.base_url, source.description
    return source.metadata.title or "Untitled API", source.base_url, source.metadata.description


def format_endpoint(endpoint: ApiEndpoint) -> str:
    """One line: ``METHOD path[ - summary][ (requires: a, b)]``."""
    line = f"{endpoint.method} {endpoint.path}"
    if endpoint.summary:
        line += f" - {endpoint.summary}"
    required = [p.name for p in endpoint.parameters if p.required]
    if required:
        line += f" (requires: {', '.join(required)})"
    return line


def format_for_prompt_injection(
    source: ApiContext | ParsedDocument,
    max_endpoints: int = MAX_ENDPOINTS_TO_INJECT,
) -> str:
    """Render name, base URL and endpoints grouped by first tag."""
    name, base_url, description = _describe(source)
    endpoints = source.endpoints[:max_endpoints]

    lines = ["", "", "API CONTEXT LOADED:", f"API Name: {name}", f"Base URL: {base_url}"]
    if description:
        lines.append(f"Description: {description}")
    lines.append("")
    lines.append(f"Available Endpoints ({len(endpoints)} of {len(source.endpoints)}):")

    groups: dict[str, list[ApiEndpoint]] = {}
    for endpoint in endpoints:
        groups.setdefault(endpoint.tags[0] if endpoint.tags else UNTAGGED_GROUP, []).append(endpoint)

    for tag, tag_endpoints in groups.items():
        lines.append("")
        lines.append(f"[{tag}]")
        lines.extend(f"  • {format_endpoint(e)}" for e in tag_endpoints)

    lines.append("")
    lines.append(
        "IMPORTANT: When generating API requests, you MUST use only the endpoints listed above. "
        "Always construct full URLs by combining the base URL with the endpoint path. "
        "If a required parameter is mentioned, include it in the request."
    )
    return "\n".join(lines) + "\n"


def format_context_summary(source: ApiContext | ParsedDocument, limit: int = 20) -> str:
    """Shorter variant for conversation prompts."""
    name, base_url, _ = _describe(source)
    top = source.endpoints[:limit]
    summary = f"\nAPI: {name} ({base_url})\n"
    summary += "Endpoints: " + ", ".join(f"{e.method} {e.path}" for e in top)
    remaining = len(source.endpoints) - len(top)
    if remaining > 0:
        summary += f" ... and {remaining} more"
    return summary


def find_matching_endpoint(source: ApiContext | ParsedDocument, query: str) -> ApiEndpoint | None:
    """Pick the endpoint that best matches a free-text query, if any scores."""
    needle = query.lower()

    def score(endpoint: ApiEndpoint) -> int:
        total = 0
        if needle in endpoint.path.lower():
            total += 10
        if endpoint.method.lower() in needle:
            total += 5
        if endpoint.summary and needle in endpoint.summary.lower():
            total += 8
        if endpoint.description and needle in endpoint.description.lower():
            total += 5
        if any(tag.lower() in needle for tag in endpoint.tags):
            total += 3
        return total

    best, best_score = None, 0
    for endpoint in source.endpoints:
        s = score(endpoint)
        if s > best_score:
            best, best_score = endpoint, s
    return best


def estimate_tokens(text: str) -> int:
    """Approximate token count: ``ceil(len(text) / 4)``."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_context_tokens(source: ApiContext | ParsedDocument) -> int:
    return estimate_tokens(format_for_prompt_injection(source))


def is_too_large_for_injection(source: ApiContext | ParsedDocument, max_tokens: int = DEFAULT_MAX_TOKENS) -> bool:
    return estimate_context_tokens(source) > max_tokens


def trim_to_endpoint_limit(source: Source, max_endpoints: int = DEFAULT_TRIM_LIMIT) -> Source:
    """Return a copy keeping only the first ``max_endpoints`` endpoints, in order."""
    return source.model_copy(update={"endpoints": source.endpoints[:max_endpoints]})
