"""Network side of the playground: documentation fetcher and request proxy.

Both refuse to talk to local or private networks. The fetcher also
enforces the documentation size cap before anything reaches the parser.
"""

import ipaddress
import json
import logging
import time
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel

from api_playground.config import get_settings
from api_playground.context.models import ApiContext, build_context
from api_playground.errors import BlockedHost, DocumentTooLarge, FetchError, MalformedInput
from api_playground.parser.base import ParserOptions, parse_absolute_url
from api_playground.parser.dispatch import parse_and_validate

logger = logging.getLogger(__name__)

USER_AGENT = "API-Playground/1.0"
DOC_ACCEPT = "application/json, application/yaml, text/html, text/plain, */*"
BLOCKED_HOSTNAMES = {"localhost", "localhost.localdomain"}
BODYLESS_METHODS = {"GET", "HEAD"}
MAX_REDIRECTS = 5


class ProxyResponse(BaseModel):
    status: int
    status_text: str
    headers: dict[str, str]
    data: Any
    response_time_ms: float
    size: int


def check_target_url(url: str) -> httpx.URL:
    """Reject anything that is not an absolute URL to a public host."""
    parts = parse_absolute_url(url)
    if parts is None or parts.scheme not in ("http", "https"):
        raise MalformedInput(f"Invalid URL format: {url}")

    hostname = parts.hostname.lower().strip("[]")
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        raise BlockedHost("Requests to local/private networks are not allowed")
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return httpx.URL(url)
    if address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified:
        logger.warning("Blocked request to private address %s", hostname)
        raise BlockedHost("Requests to local/private networks are not allowed")
    return httpx.URL(url)


def _client(client: httpx.Client | None, timeout: float) -> httpx.Client:
    return client or httpx.Client(timeout=timeout)


def _open(http: httpx.Client, method: str, target: httpx.URL, **kwargs) -> httpx.Response:
    """Send a streamed request, following redirects only to allowed hosts.

    The caller must close the returned response.
    """
    for _ in range(MAX_REDIRECTS + 1):
        request = http.build_request(method, target, **kwargs)
        response = http.send(request, stream=True, follow_redirects=False)
        if not response.has_redirect_location:
            return response
        response.close()
        target = check_target_url(str(response.url.join(response.headers["location"])))
        if response.status_code == 303 or (response.status_code in (301, 302) and method == "POST"):
            method = "GET"
            kwargs.pop("content", None)
    raise httpx.TooManyRedirects(f"Exceeded {MAX_REDIRECTS} redirects", request=request)


def fetch_document(url: str, client: httpx.Client | None = None) -> Any:
    """Download documentation; JSON is decoded, anything else is returned as text."""
    settings = get_settings()
    target = check_target_url(url)
    limit = settings.max_document_bytes
    owned = client is None
    http = _client(client, settings.fetch_timeout_sec)
    try:
        response = _open(http, "GET", target, headers={"Accept": DOC_ACCEPT, "User-Agent": USER_AGENT})
        try:
            if response.is_error:
                raise FetchError(url, response.status_code, response.reason_phrase)
            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > limit:
                raise DocumentTooLarge(int(declared), limit)
            body = bytearray()
            for chunk in response.iter_bytes():
                body += chunk
                if len(body) > limit:
                    raise DocumentTooLarge(len(body), limit)
        finally:
            response.close()
    except httpx.HTTPError as e:
        raise FetchError(url, 0, str(e) or type(e).__name__) from e
    finally:
        if owned:
            http.close()

    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return json.loads(body)
        except ValueError as e:
            raise MalformedInput(f"Server declared JSON but sent invalid JSON: {e}") from e
    return bytes(body).decode(response.encoding or "utf-8", errors="replace")


def load_context_from_url(
    url: str,
    options: ParserOptions | None = None,
    client: httpx.Client | None = None,
) -> ApiContext:
    started = time.monotonic()
    content = fetch_document(url, client=client)
    parsed = parse_and_validate(content, options)
    logger.info(
        "Loaded %d endpoints from %s in %.0f ms",
        len(parsed.endpoints), url, (time.monotonic() - started) * 1000,
    )
    return build_context(parsed, source_url=url)


def load_context_from_file(path: Path, options: ParserOptions | None = None) -> ApiContext:
    settings = get_settings()
    raw = path.read_bytes()
    if len(raw) > settings.max_document_bytes:
        raise DocumentTooLarge(len(raw), settings.max_document_bytes)
    parsed = parse_and_validate(raw.decode("utf-8", errors="replace"), options)
    return build_context(parsed, filename=path.name)


def send_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: str | None = None,
    client: httpx.Client | None = None,
) -> ProxyResponse:
    """Forward a request and describe the response.

    Transport failures come back as a status-0 response rather than raising.
    """
    method = (method or "GET").upper()
    target = check_target_url(url)
    owned = client is None
    http = _client(client, get_settings().request_timeout_sec)

    started = time.monotonic()
    try:
        response = _open(
            http,
            method,
            target,
            headers=headers or {},
            content=body if body and method not in BODYLESS_METHODS else None,
        )
        try:
            response.read()
        finally:
            response.close()
    except httpx.HTTPError as e:
        logger.warning("Proxy request %s %s failed: %s", method, url, e)
        return ProxyResponse(
            status=0,
            status_text="Request Failed",
            headers={},
            data={"error": str(e) or "Failed to complete request", "type": type(e).__name__},
            response_time_ms=0,
            size=0,
        )
    finally:
        if owned:
            http.close()
    elapsed = (time.monotonic() - started) * 1000

    data: Any = response.text
    if "application/json" in response.headers.get("content-type", ""):
        try:
            data = response.json()
        except ValueError:
            pass

    serialized = data if isinstance(data, str) else json.dumps(data)
    return ProxyResponse(
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=dict(response.headers),
        data=data,
        response_time_ms=elapsed,
        size=len(serialized.encode("utf-8")),
    )
