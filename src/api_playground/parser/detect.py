"""Auto-detect API documentation format."""

import json
import logging
from typing import Any

import yaml

logger = logging.getLogger(__name__)

OPENAPI = "openapi"
SWAGGER = "swagger"
POSTMAN = "postman"
HTML = "html"
UNKNOWN = "unknown"

STRUCTURED_FORMATS = (OPENAPI, SWAGGER, POSTMAN)


def classify(data: Any) -> str:
    """Classify an already-decoded document.

    Returns: 'openapi', 'swagger', 'postman', or 'unknown'.
    """
    if not isinstance(data, dict):
        return UNKNOWN

    openapi = _version(data.get("openapi"))
    if openapi is not None and openapi.startswith("3"):
        return OPENAPI

    if _version(data.get("swagger")) == "2.0":
        return SWAGGER

    info = data.get("info")
    if isinstance(info, dict) and isinstance(data.get("item"), list):
        schema = info.get("schema")
        if "_postman_id" in info or (isinstance(schema, str) and "getpostman.com" in schema):
            return POSTMAN

    return UNKNOWN


def _version(value: Any) -> str | None:
    # Unquoted YAML versions such as `swagger: 2.0` load as floats.
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def decode_content(content: Any) -> tuple[Any, bool]:
    """Decode raw text into a structured document.

    Returns ``(document, decoded)``. Non-string content is returned as-is
    with ``decoded=True``. Text that is not JSON is tried as YAML, but the
    YAML result only counts when it looks like a known format; anything else
    comes back as the original text with ``decoded=False``.
    """
    if isinstance(content, (bytes, bytearray)):
        content = bytes(content).decode("utf-8", errors="replace")
    if not isinstance(content, str):
        return content, True

    try:
        return json.loads(content), True
    except (ValueError, RecursionError):
        pass

    try:
        data = yaml.safe_load(content)
    except (yaml.YAMLError, ValueError, RecursionError):
        return content, False
    if classify(data) in STRUCTURED_FORMATS:
        logger.debug("Decoded YAML document")
        return data, True
    return content, False


def detect_format(content: Any) -> str:
    """Detect the format of an API documentation document.

    Returns: 'openapi', 'swagger', 'postman', 'html', or 'unknown'.
    Text that cannot be decoded as structured data is 'html'.
    """
    data, decoded = decode_content(content)
    if not decoded:
        return HTML
    return classify(data)
