from api_playground.parser.base import ApiEndpoint, DocumentMetadata, ParsedDocument
from api_playground.parser.validate import validate_document


def _doc(base_url, endpoints=()):
    return ParsedDocument(
        base_url=base_url,
        endpoints=list(endpoints),
        metadata=DocumentMetadata(source_type="openapi"),
    )


class TestValidateDocument:
    def test_valid(self):
        report = validate_document(_doc("https://api.x.com", [ApiEndpoint(method="GET", path="/")]))
        assert report.valid is True
        assert report.errors == []

    def test_all_errors_collected(self):
        report = validate_document(_doc("not a url"))
        assert report.valid is False
        assert report.errors == ["Invalid base URL format", "No endpoints found"]

    def test_empty_base_url(self):
        report = validate_document(_doc("", [ApiEndpoint(method="GET", path="/")]))
        assert report.valid is False
        assert "Missing base URL" in report.errors
        assert "Invalid base URL format" in report.errors

    def test_no_endpoints_only(self):
        report = validate_document(_doc("https://api.x.com"))
        assert report.errors == ["No endpoints found"]
