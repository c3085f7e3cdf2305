"""AI assistance: response explanation, type generation and natural-language requests.

Every payload is sanitized before it is sent, and results are cached by the
hash of the sanitized payload.
"""

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from api_playground.cache import ResponseCache
from api_playground.config import get_settings
from api_playground.context.injection import (
    DEFAULT_TRIM_LIMIT,
    format_for_prompt_injection,
    is_too_large_for_injection,
    trim_to_endpoint_limit,
)
from api_playground.context.models import ApiContext
from api_playground.errors import AiResponseError
from api_playground.llm import LlmClient
from api_playground.parser.base import HTTP_METHODS
from api_playground.sanitize import (
    payload_hash,
    sanitize_for_type_generation,
    sanitize_headers,
    sanitize_url,
    truncate_body,
)

logger = logging.getLogger(__name__)

Confidence = Literal["low", "medium", "high"]

MAX_MESSAGE_LENGTH = 1000
MAX_SCHEMA_CHARS = 2000
RECENT_REQUESTS = 3


class ExchangeRequest(BaseModel):
    method: str
    url: str
    headers: dict[str, str] = {}
    body: Any = None


class ExchangeResponse(BaseModel):
    status: int
    duration_ms: float
    headers: dict[str, str] = {}
    body: Any = None
    size_bytes: int = 0


class InterpreterInput(BaseModel):
    request: ExchangeRequest
    response: ExchangeResponse
    api_label: str | None = None
    user_locale: str | None = None


class KeyFact(BaseModel):
    label: str
    value: str


class ErrorInsight(BaseModel):
    probable_cause: str
    suggested_fix: str


class SuggestedCall(BaseModel):
    method: str
    path: str
    description: str


class InterpreterResult(BaseModel):
    summary: str
    key_facts: list[KeyFact] = []
    error_insight: ErrorInsight | None = None
    suggestions: list[SuggestedCall] = []
    confidence: Confidence


class AutoTypeResult(BaseModel):
    language: Literal["typescript", "python"]
    style: Literal["interface", "zod", "dataclass"]
    code: str
    notes: list[str] = []
    confidence: Confidence


class ConversationRequest(BaseModel):
    method: str
    url: str
    headers: dict[str, str] = {}
    body: Any = None


class SessionContext(BaseModel):
    previous_requests: list[ConversationRequest] = []
    variables: dict[str, str] = {}
    base_url: str | None = None


class ConversationResult(BaseModel):
    intent: str
    request: ConversationRequest
    explanation: str
    confidence: Confidence
    clarification_needed: bool = False
    clarification_question: str | None = None


EXPLAIN_PROMPT = """You explain HTTP API responses to developers.
Reply with a single JSON object with keys: summary (string), key_facts (list of {label, value}),
error_insight ({probable_cause, suggested_fix} or null), suggestions (list of {method, path, description}),
confidence ("low" | "medium" | "high"). Only state facts present in the payload."""

TYPES_PROMPT = """You infer type definitions from a JSON response body.
Reply with a single JSON object with keys: language, style, code (string), notes (list of strings),
confidence ("low" | "medium" | "high"). Mark fields optional when a sample omits them."""

CONVERSE_PROMPT = """You translate natural language into executable HTTP requests.
Reply with a single JSON object with keys: intent, request ({method, url, headers, body}), explanation,
confidence ("low" | "medium" | "high"), clarification_needed (bool), clarification_question.
Never invent endpoints; ask for clarification when the message is ambiguous."""

CONTEXT_RULE = "\n\nAn API context is loaded. Use only the endpoints it lists."


class AiAssistant:
    """Runs the three AI operations against one LLM client and cache."""

    def __init__(self, model: str | None = None, cache: ResponseCache | None = None):
        settings = get_settings()
        self.client = LlmClient(model=model)
        self.cache = cache or ResponseCache(max_age=settings.cache_ttl_sec, max_size=settings.cache_max_size)

    def explain(self, exchange: InterpreterInput) -> InterpreterResult:
        """Summarize a request/response pair."""
        payload = _safe_exchange(exchange)
        user = "Explain this API exchange:\n" + json.dumps(payload, indent=2, default=str)
        return self._cached("explain", payload, EXPLAIN_PROMPT, user, InterpreterResult)

    def generate_types(
        self,
        response_body: Any,
        language: Literal["typescript", "python"] = "typescript",
        style: Literal["interface", "zod", "dataclass"] = "interface",
    ) -> AutoTypeResult:
        """Infer type definitions for a response body."""
        if response_body is None:
            raise ValueError("response_body is required")
        payload = {
            "response_body": sanitize_for_type_generation(response_body),
            "language": language,
            "style": style,
        }
        user = (
            f"Generate {language} types in {style} style for this response body:\n"
            + json.dumps(payload["response_body"], indent=2, default=str)
        )
        return self._cached("types", payload, TYPES_PROMPT, user, AutoTypeResult)

    def converse(
        self,
        message: str,
        session: SessionContext | None = None,
        context: ApiContext | None = None,
        api_schema: str | None = None,
    ) -> ConversationResult:
        """Turn a natural-language message into a request, using ``context`` when loaded."""
        message = message.strip()
        if not message:
            raise ValueError("Message is required")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message too long (max {MAX_MESSAGE_LENGTH} characters)")
        session = session or SessionContext()

        user = f'Message: "{message}"\n\n'
        if session.base_url:
            user += f"Base URL: {session.base_url}\n"
        recent = session.previous_requests[-RECENT_REQUESTS:]
        if recent:
            user += "Recent requests:\n" + "\n".join(f"{r.method} {sanitize_url(r.url)}" for r in recent) + "\n"
        if session.variables:
            user += "Available variables: " + ", ".join(session.variables) + "\n"
        if api_schema:
            clipped = api_schema[:MAX_SCHEMA_CHARS]
            suffix = "...[truncated]" if len(api_schema) > MAX_SCHEMA_CHARS else ""
            user += f"\nAPI Schema:\n{clipped}{suffix}\n"

        system = CONVERSE_PROMPT
        if context is not None:
            if is_too_large_for_injection(context, get_settings().max_injected_tokens):
                logger.info("Context %s too large; trimming to %d endpoints", context.id, DEFAULT_TRIM_LIMIT)
                context = trim_to_endpoint_limit(context, DEFAULT_TRIM_LIMIT)
            user += format_for_prompt_injection(context)
            system += CONTEXT_RULE
        user += "\nGenerate an appropriate HTTP request for this message."

        result = self._call(system, user, ConversationResult)
        if result.request.method.upper() not in HTTP_METHODS:
            raise AiResponseError(f"AI proposed unsupported method {result.request.method}")
        return result

    def _cached(self, kind: str, payload: Any, system: str, user: str, model: type[BaseModel]) -> Any:
        key = f"{kind}:{payload_hash(payload)}"
        hit = self.cache.get(key)
        if hit is not None:
            logger.debug("AI cache hit for %s", kind)
            return hit
        result = self._call(system, user, model)
        self.cache.set(key, result)
        return result

    def _call(self, system: str, user: str, model: type[BaseModel]) -> Any:
        data = self.client.call_json(system=system, user=user)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise AiResponseError(f"AI response did not match {model.__name__}: {e}") from e


def _safe_exchange(exchange: InterpreterInput) -> dict:
    return {
        "request": {
            "method": exchange.request.method,
            "url": sanitize_url(exchange.request.url),
            "headers": sanitize_headers(exchange.request.headers),
            "body": truncate_body(exchange.request.body),
        },
        "response": {
            "status": exchange.response.status,
            "duration_ms": exchange.response.duration_ms,
            "headers": sanitize_headers(exchange.response.headers),
            "body": truncate_body(exchange.response.body),
            "size_bytes": exchange.response.size_bytes,
        },
        "context": {"api_label": exchange.api_label, "user_locale": exchange.user_locale},
    }
