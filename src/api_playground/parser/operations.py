"""Path/operation traversal shared by the OpenAPI and Swagger extractors."""

import logging
from collections.abc import Callable
from typing import Any

from .base import HTTP_METHODS, ApiEndpoint, Param, ParserOptions, text_or_none

logger = logging.getLogger(__name__)

TypeResolver = Callable[[dict], str | None]


def extract_operations(doc: dict, options: ParserOptions, param_type: TypeResolver) -> list[ApiEndpoint]:
    """Walk ``doc["paths"]`` in document order and emit filtered endpoints.

    Stops quietly once ``options.max_endpoints`` have been emitted.
    """
    endpoints: list[ApiEndpoint] = []
    paths = doc.get("paths")
    if not isinstance(paths, dict):
        return endpoints

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method.lower())
            if not isinstance(operation, dict):
                continue
            if not _passes_filters(operation, options):
                continue

            endpoints.append(
                ApiEndpoint(
                    method=method,
                    path=str(path),
                    summary=text_or_none(operation.get("summary")),
                    description=text_or_none(operation.get("description")),
                    parameters=_parse_parameters(doc, operation.get("parameters"), param_type),
                    request_body=operation.get("requestBody"),
                    responses=operation.get("responses"),
                    operation_id=text_or_none(operation.get("operationId")),
                    tags=_tags(operation),
                    auth_required=requires_auth(doc, operation),
                )
            )
            if len(endpoints) >= options.max_endpoints:
                logger.warning("Reached max_endpoints=%d; further operations are skipped", options.max_endpoints)
                return endpoints

    return endpoints


def requires_auth(doc: dict, operation: dict) -> bool:
    """Operation-level security wins; an empty list opts out of the document default."""
    if "security" in operation and isinstance(operation["security"], list):
        return len(operation["security"]) > 0
    security = doc.get("security")
    return isinstance(security, list) and len(security) > 0


def _passes_filters(operation: dict, options: ParserOptions) -> bool:
    if operation.get("deprecated") and not options.include_deprecated:
        return False
    tags = _tags(operation)
    if options.include_tags and not set(tags) & set(options.include_tags):
        return False
    if options.exclude_tags and set(tags) & set(options.exclude_tags):
        return False
    return True


def _tags(operation: dict) -> list[str]:
    tags = operation.get("tags")
    if not isinstance(tags, list):
        return []
    return [t for t in tags if isinstance(t, str)]


def _parse_parameters(doc: dict, params: Any, param_type: TypeResolver) -> list[Param]:
    result = []
    if not isinstance(params, list):
        return result
    for p in params:
        p = _resolve_ref(doc, p)
        if not isinstance(p, dict) or not isinstance(p.get("name"), str):
            continue
        result.append(
            Param(
                name=p["name"],
                location=str(p.get("in", "query")),
                required=bool(p.get("required", False)),
                param_type=param_type(p),
                description=text_or_none(p.get("description")),
                schema_=p.get("schema"),
            )
        )
    return result


def _resolve_ref(doc: dict, node: Any) -> Any:
    """Follow a local ``#/...`` JSON reference; anything else is returned as-is."""
    if not isinstance(node, dict):
        return node
    ref = node.get("$ref")
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return node
    target: Any = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(target, dict) or part not in target:
            return node
        target = target[part]
    return target
