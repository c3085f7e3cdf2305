import json
from pathlib import Path

import httpx
import pytest

from api_playground.errors import BlockedHost, DocumentTooLarge, FetchError, InvalidDocument, MalformedInput
from api_playground.http_client import (
    check_target_url,
    fetch_document,
    load_context_from_file,
    load_context_from_url,
    send_request,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestCheckTargetUrl:
    @pytest.mark.parametrize("url", [
        "http://localhost:8080/x",
        "http://api.localhost/x",
        "http://127.0.0.1/",
        "http://10.1.2.3/",
        "http://192.168.0.10/",
        "http://169.254.169.254/latest/meta-data",
        "http://[::1]/",
        "http://0.0.0.0/",
    ])
    def test_private_targets_blocked(self, url):
        with pytest.raises(BlockedHost):
            check_target_url(url)

    @pytest.mark.parametrize("url", ["not a url", "/relative/path", "ftp://files.example.com/x"])
    def test_malformed_targets_rejected(self, url):
        with pytest.raises(MalformedInput):
            check_target_url(url)

    def test_public_target_allowed(self):
        assert check_target_url("https://api.example.com/v1?x=1").host == "api.example.com"


class TestFetchDocument:
    def test_json_is_decoded(self):
        def handler(request):
            assert request.headers["user-agent"].startswith("API-Playground")
            return httpx.Response(200, json={"swagger": "2.0"})

        assert fetch_document("https://docs.example.com/openapi.json", client=_client(handler)) == {"swagger": "2.0"}

    def test_other_content_is_text(self):
        handler = lambda request: httpx.Response(200, text="<h1>Docs</h1>", headers={"content-type": "text/html"})
        assert fetch_document("https://docs.example.com/", client=_client(handler)) == "<h1>Docs</h1>"

    def test_invalid_json_body(self):
        handler = lambda request: httpx.Response(
            200, content=b"{nope", headers={"content-type": "application/json"},
        )
        with pytest.raises(MalformedInput):
            fetch_document("https://docs.example.com/openapi.json", client=_client(handler))

    def test_error_status(self):
        handler = lambda request: httpx.Response(404)
        with pytest.raises(FetchError) as exc:
            fetch_document("https://docs.example.com/missing", client=_client(handler))
        assert exc.value.status_code == 404

    def test_size_cap(self, monkeypatch):
        monkeypatch.setenv("API_PLAYGROUND_MAX_DOCUMENT_BYTES", "1024")
        handler = lambda request: httpx.Response(200, text="x" * 2000)
        with pytest.raises(DocumentTooLarge):
            fetch_document("https://docs.example.com/big", client=_client(handler))

    def test_private_url_never_requested(self):
        def handler(request):
            raise AssertionError("should not be called")

        with pytest.raises(BlockedHost):
            fetch_document("http://127.0.0.1/openapi.json", client=_client(handler))

    def test_size_cap_without_content_length(self, monkeypatch):
        monkeypatch.setenv("API_PLAYGROUND_MAX_DOCUMENT_BYTES", "1024")
        chunks = []

        def body():
            for _ in range(100):
                chunks.append(1)
                yield b"x" * 600

        handler = lambda request: httpx.Response(200, content=body())
        with pytest.raises(DocumentTooLarge):
            fetch_document("https://docs.example.com/big", client=_client(handler))
        assert len(chunks) < 100

    def test_redirect_to_private_host_blocked(self):
        def handler(request):
            if request.url.host == "docs.example.com":
                return httpx.Response(302, headers={"location": "http://169.254.169.254/latest"})
            return httpx.Response(200, text="secret")

        with pytest.raises(BlockedHost):
            fetch_document("https://docs.example.com/openapi.json", client=_client(handler))

    def test_redirect_to_public_host_followed(self):
        def handler(request):
            if request.url.host == "docs.example.com":
                return httpx.Response(301, headers={"location": "https://cdn.example.com/openapi.json"})
            return httpx.Response(200, json={"openapi": "3.0.0"})

        assert fetch_document("https://docs.example.com/openapi.json", client=_client(handler)) == {"openapi": "3.0.0"}

    def test_redirect_loop_is_a_fetch_error(self):
        handler = lambda request: httpx.Response(302, headers={"location": "https://docs.example.com/again"})
        with pytest.raises(FetchError) as exc:
            fetch_document("https://docs.example.com/", client=_client(handler))
        assert exc.value.status_code == 0


class TestLoadContext:
    def test_from_url(self):
        document = (FIXTURES / "petstore.yaml").read_text()
        handler = lambda request: httpx.Response(200, text=document, headers={"content-type": "application/yaml"})
        ctx = load_context_from_url("https://docs.example.com/petstore.yaml", client=_client(handler))
        assert ctx.name == "Swagger Petstore"
        assert ctx.source_url == "https://docs.example.com/petstore.yaml"
        assert ctx.source_type == "openapi"
        assert len(ctx.endpoints) == 4

    def test_from_url_invalid_document(self):
        handler = lambda request: httpx.Response(200, text="<p>nothing useful</p>")
        with pytest.raises(InvalidDocument) as exc:
            load_context_from_url("https://docs.example.com/", client=_client(handler))
        assert "No endpoints found" in exc.value.errors

    def test_from_file(self):
        ctx = load_context_from_file(FIXTURES / "swagger.json")
        assert ctx.name == "Bookshop"
        assert ctx.base_url == "http://books.example.org/api"
        assert ctx.source_url is None

    def test_file_size_cap(self, tmp_path, monkeypatch):
        monkeypatch.setenv("API_PLAYGROUND_MAX_DOCUMENT_BYTES", "1024")
        big = tmp_path / "big.json"
        big.write_text(json.dumps({"padding": "x" * 2000}))
        with pytest.raises(DocumentTooLarge):
            load_context_from_file(big)


class TestSendRequest:
    def test_json_response(self):
        def handler(request):
            assert request.method == "POST"
            assert request.content == b'{"name": "Rex"}'
            assert request.headers["x-trace"] == "1"
            return httpx.Response(201, json={"id": 7})

        resp = send_request(
            "post", "https://api.example.com/pets",
            headers={"X-Trace": "1"}, body='{"name": "Rex"}', client=_client(handler),
        )
        assert resp.status == 201
        assert resp.status_text == "Created"
        assert resp.data == {"id": 7}
        assert resp.size == len(json.dumps({"id": 7}))

    def test_get_drops_body(self):
        def handler(request):
            assert request.content == b""
            return httpx.Response(200, text="ok")

        resp = send_request("GET", "https://api.example.com/pets", body="ignored", client=_client(handler))
        assert resp.data == "ok"
        assert resp.size == 2

    def test_transport_failure_is_status_zero(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        resp = send_request("GET", "https://api.example.com/pets", client=_client(handler))
        assert resp.status == 0
        assert resp.status_text == "Request Failed"
        assert resp.data["type"] == "ConnectError"

    def test_blocked_host_raises(self):
        with pytest.raises(BlockedHost):
            send_request("GET", "http://192.168.1.1/admin")

    def test_redirect_to_private_host_blocked(self):
        def handler(request):
            if request.url.host == "api.example.com":
                return httpx.Response(307, headers={"location": "http://127.0.0.1/admin"})
            return httpx.Response(200, text="internal")

        with pytest.raises(BlockedHost):
            send_request("GET", "https://api.example.com/pets", client=_client(handler))

    def test_see_other_switches_to_get(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.content))
            if request.url.path == "/pets":
                return httpx.Response(303, headers={"location": "/pets/7"})
            return httpx.Response(200, json={"id": 7})

        resp = send_request("POST", "https://api.example.com/pets", body="{}", client=_client(handler))
        assert resp.data == {"id": 7}
        assert seen == [("POST", b"{}"), ("GET", b"")]
