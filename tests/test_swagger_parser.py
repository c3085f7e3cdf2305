import json
from pathlib import Path

from api_playground.parser.base import ParserOptions
from api_playground.parser.swagger import parse_swagger

FIXTURES = Path(__file__).parent / "fixtures"


def _bookshop() -> dict:
    return json.loads((FIXTURES / "swagger.json").read_text())


class TestSwaggerParser:
    def test_base_url_from_scheme_host_base_path(self):
        assert parse_swagger(_bookshop()).base_url == "http://books.example.org/api"

    def test_base_url_defaults(self):
        doc = parse_swagger({"swagger": "2.0", "paths": {}})
        assert doc.base_url == "https://api.example.com"

    def test_endpoints_in_fixed_method_order(self):
        doc = parse_swagger(_bookshop())
        assert [(e.method, e.path) for e in doc.endpoints] == [
            ("GET", "/books"),
            ("POST", "/books"),
            ("GET", "/books/{bookId}"),
        ]
        assert doc.metadata.source_type == "swagger"
        assert doc.metadata.version == "2.1"

    def test_param_type_falls_back_to_schema(self):
        post = parse_swagger(_bookshop()).endpoints[1]
        assert post.parameters[0].location == "body"
        assert post.parameters[0].param_type == "object"

    def test_direct_param_type(self):
        get = parse_swagger(_bookshop()).endpoints[0]
        assert get.parameters[0].param_type == "string"

    def test_parameter_ref_resolved(self):
        get_book = parse_swagger(_bookshop()).endpoints[2]
        assert get_book.parameters[0].name == "bookId"
        assert get_book.parameters[0].param_type == "integer"
        assert get_book.parameters[0].required is True

    def test_auth_follows_document_security(self):
        endpoints = parse_swagger(_bookshop()).endpoints
        assert [e.auth_required for e in endpoints] == [False, True, True]

    def test_deprecated_and_max_endpoints(self):
        doc = parse_swagger(_bookshop(), ParserOptions(include_deprecated=True))
        assert ("PUT", "/books/{bookId}") in [(e.method, e.path) for e in doc.endpoints]
        assert len(parse_swagger(_bookshop(), ParserOptions(max_endpoints=1)).endpoints) == 1
