from api_playground.context.injection import (
    estimate_context_tokens,
    estimate_tokens,
    find_matching_endpoint,
    format_context_summary,
    format_endpoint,
    format_for_prompt_injection,
    is_too_large_for_injection,
    trim_to_endpoint_limit,
)
from api_playground.context.models import ApiContext
from api_playground.parser.base import ApiEndpoint, DocumentMetadata, Param, ParsedDocument


def _ep(method, path, summary=None, tags=(), required=()):
    return ApiEndpoint(
        method=method,
        path=path,
        summary=summary,
        tags=list(tags),
        parameters=[Param(name=n, location="query", required=True) for n in required]
        + [Param(name="optional", location="query")],
    )


def _context(endpoints, description=None):
    return ApiContext(name="Pets", base_url="https://api.pets.io", description=description, endpoints=endpoints)


class TestFormatEndpoint:
    def test_plain(self):
        assert format_endpoint(ApiEndpoint(method="GET", path="/pets")) == "GET /pets"

    def test_summary_and_required(self):
        ep = _ep("POST", "/pets", "Create pet", required=["name", "kind"])
        assert format_endpoint(ep) == "POST /pets - Create pet (requires: name, kind)"


class TestFormatForPromptInjection:
    def test_header_and_groups(self):
        text = format_for_prompt_injection(
            _context([_ep("GET", "/pets", tags=["pets"]), _ep("GET", "/health"), _ep("POST", "/pets", tags=["pets"])],
                     description="Pet API")
        )
        assert "API Name: Pets" in text
        assert "Base URL: https://api.pets.io" in text
        assert "Description: Pet API" in text
        assert "Available Endpoints (3 of 3):" in text
        assert text.index("[pets]") < text.index("[Other]")
        pets_block = text[text.index("[pets]"):text.index("[Other]")]
        assert "GET /pets" in pets_block and "POST /pets" in pets_block

    def test_no_description_line_when_absent(self):
        assert "Description:" not in format_for_prompt_injection(_context([_ep("GET", "/a")]))

    def test_endpoint_cap(self):
        endpoints = [_ep("GET", f"/r{i}") for i in range(60)]
        text = format_for_prompt_injection(_context(endpoints))
        assert "Available Endpoints (50 of 60):" in text
        assert "/r49" in text and "/r50" not in text

    def test_accepts_parsed_document(self):
        doc = ParsedDocument(
            base_url="https://x.io",
            endpoints=[_ep("GET", "/a")],
            metadata=DocumentMetadata(title="X", source_type="openapi"),
        )
        assert "API Name: X" in format_for_prompt_injection(doc)


class TestTokens:
    def test_four_characters_per_token(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("x" * 1000) == 250

    def test_context_estimate_matches_text(self):
        ctx = _context([_ep("GET", "/a")])
        assert estimate_context_tokens(ctx) == estimate_tokens(format_for_prompt_injection(ctx))

    def test_too_large(self):
        ctx = _context([_ep("GET", f"/resource/{i}", "Fetch a resource by index") for i in range(30)])
        assert len(format_for_prompt_injection(ctx)) >= 1000
        assert is_too_large_for_injection(ctx, max_tokens=10) is True
        assert is_too_large_for_injection(ctx) is False


class TestTrim:
    def test_keeps_order_and_type(self):
        ctx = _context([_ep("GET", f"/r{i}") for i in range(40)])
        trimmed = trim_to_endpoint_limit(ctx)
        assert isinstance(trimmed, ApiContext)
        assert [e.path for e in trimmed.endpoints] == [f"/r{i}" for i in range(30)]
        assert len(ctx.endpoints) == 40

    def test_custom_limit_on_document(self):
        doc = ParsedDocument(
            base_url="https://x.io",
            endpoints=[_ep("GET", f"/r{i}") for i in range(5)],
            metadata=DocumentMetadata(source_type="html"),
        )
        assert [e.path for e in trim_to_endpoint_limit(doc, 2).endpoints] == ["/r0", "/r1"]


class TestSummaryAndMatching:
    def test_summary_mentions_remaining(self):
        ctx = _context([_ep("GET", f"/r{i}") for i in range(25)])
        summary = format_context_summary(ctx)
        assert summary.startswith("\nAPI: Pets (https://api.pets.io)")
        assert summary.endswith(" ... and 5 more")

    def test_find_matching_endpoint(self):
        ctx = _context([_ep("GET", "/users", "List users"), _ep("GET", "/pets", "List pets", tags=["pets"])])
        assert find_matching_endpoint(ctx, "pets").path == "/pets"
        assert find_matching_endpoint(ctx, "zzz") is None
