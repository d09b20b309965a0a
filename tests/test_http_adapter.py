import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from beemflow.base import AdapterError, ToolManifest
from beemflow.http_adapter import HTTPAdapter, expand_env_value


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, *args):
        pass

    def _send(self, status, payload, content_type="application/json"):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _respond(self):
        length = int(self.headers.get("Content-Length") or 0)
        raw = self.rfile.read(length) if length else b""
        if self.path == "/json":
            payload = {
                "message": "success",
                "method": self.command,
                "headers": {k.lower(): v for k, v in self.headers.items()},
                "body": raw.decode(),
            }
            self._send(200, json.dumps(payload).encode())
        elif self.path == "/echoed":
            self._send(200, b'{"echoed": true}')
        elif self.path == "/text":
            self._send(200, b"Hello from test server", "text/plain")
        elif self.path == "/list":
            self._send(200, b"[1, 2, 3]")
        elif self.path == "/empty":
            self._send(200, b"", "text/plain")
        elif self.path == "/error":
            self._send(500, b"Internal Server Error", "text/plain")
        else:
            self._send(404, b"", "text/plain")

    do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _respond


@pytest.fixture(scope="module")
def server_url():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def test_get_json_endpoint_returns_object(server_url):
    result = HTTPAdapter().execute({"__use": "http.request", "url": server_url + "/json", "method": "GET"})
    assert result["message"] == "success"
    assert result["method"] == "GET"


def test_get_text_endpoint_is_wrapped(server_url):
    result = HTTPAdapter().execute({"__use": "http.request", "url": server_url + "/text", "method": "GET"})
    assert result == {"body": "Hello from test server"}


def test_post_with_body(server_url):
    result = HTTPAdapter().execute(
        {
            "__use": "http.request",
            "url": server_url + "/json",
            "method": "POST",
            "body": '{"test": "data"}',
            "headers": {"Content-Type": "application/json"},
        }
    )
    assert result["method"] == "POST"
    assert json.loads(result["body"]) == '{"test": "data"}'
    assert result["headers"]["content-type"] == "application/json"


def test_http_error_status_raises(server_url):
    with pytest.raises(AdapterError, match="status 500: Internal Server Error"):
        HTTPAdapter().execute({"url": server_url + "/error", "method": "GET"})


def test_invalid_url_raises():
    with pytest.raises(AdapterError):
        HTTPAdapter().execute({"__use": "http.request", "url": "not-a-valid-url", "method": "GET"})


@pytest.mark.parametrize("inputs", [{"method": "GET"}, {"url": ""}, {"url": 5}])
def test_missing_url_raises(inputs):
    with pytest.raises(AdapterError, match="missing or invalid url"):
        HTTPAdapter().execute(inputs)


def test_method_defaults_to_get_and_is_uppercased(server_url):
    assert HTTPAdapter().execute({"url": server_url + "/json"})["method"] == "GET"
    assert HTTPAdapter().execute({"url": server_url + "/json", "method": "put"})["method"] == "PUT"


def test_get_ignores_body(server_url):
    result = HTTPAdapter().execute({"url": server_url + "/json", "body": {"a": 1}})
    assert result["body"] == ""


def test_accept_header_is_always_json(server_url):
    result = HTTPAdapter().execute(
        {"url": server_url + "/json", "headers": {"Accept": "text/html", "X-Tenant": "acme", "X-Num": 3}}
    )
    assert result["headers"]["accept"] == "application/json"
    assert result["headers"]["x-tenant"] == "acme"
    assert "x-num" not in result["headers"]


def test_get_keeps_user_content_type(server_url):
    result = HTTPAdapter().execute({"url": server_url + "/json", "headers": {"Content-Type": "text/plain"}})
    assert result["headers"]["content-type"] == "text/plain"


def test_non_get_without_body_gets_json_content_type(server_url):
    result = HTTPAdapter().execute({"url": server_url + "/json", "method": "DELETE"})
    assert result["headers"]["content-type"] == "application/json"


def test_json_array_is_wrapped(server_url):
    assert HTTPAdapter().execute({"url": server_url + "/list"}) == {"body": [1, 2, 3]}


def test_empty_response_is_empty_body(server_url):
    assert HTTPAdapter().execute({"url": server_url + "/empty"}) == {"body": ""}


def test_manifest_request(server_url):
    manifest = ToolManifest(name="http", endpoint=server_url + "/echoed")
    adapter = HTTPAdapter("http", manifest)
    assert adapter.id() == "http"
    assert adapter.manifest() is manifest
    assert adapter.execute({"x": 1}) == {"echoed": True}


def test_manifest_request_posts_inputs_with_defaults(server_url, monkeypatch):
    monkeypatch.setenv("BF_NAME", "world")
    manifest = ToolManifest(
        name="greet",
        endpoint=server_url + "/json",
        parameters={
            "properties": {
                "greeting": {"default": "hi $env:BF_NAME"},
                "count": {"default": 3},
                "given": {"default": "no"},
                "nodefault": {"type": "string"},
                "broken": "not a map",
            }
        },
    )
    inputs = {"given": "yes"}
    result = HTTPAdapter("greet", manifest).execute(inputs)
    assert result["method"] == "POST"
    assert json.loads(result["body"]) == {"given": "yes", "greeting": "hi world", "count": 3}
    assert inputs == {"given": "yes"}


def test_manifest_headers_expand_env_and_inputs_override(server_url, monkeypatch):
    monkeypatch.setenv("BF_TENANT", "acme")
    manifest = ToolManifest(
        endpoint=server_url + "/json",
        headers={"X-Tenant": "$env:BF_TENANT", "X-Region": "eu"},
    )
    adapter = HTTPAdapter("t", manifest)
    result = adapter.execute({})
    assert result["headers"]["x-tenant"] == "acme"
    assert result["headers"]["x-region"] == "eu"
    result = adapter.execute({"headers": {"X-Region": "us"}})
    assert result["headers"]["x-region"] == "us"


def test_manifest_without_endpoint_uses_generic_request():
    adapter = HTTPAdapter("t", ToolManifest(name="t"))
    with pytest.raises(AdapterError, match="missing or invalid url"):
        adapter.execute({})


def test_expand_env_value(monkeypatch):
    monkeypatch.setenv("BF_ONE", "1")
    monkeypatch.setenv("BF_EMPTY", "")
    monkeypatch.delenv("BF_MISSING", raising=False)
    assert expand_env_value("a $env:BF_ONE b") == "a 1 b"
    assert expand_env_value("$env:BF_MISSING") == "$env:BF_MISSING"
    assert expand_env_value("$env:BF_EMPTY") == "$env:BF_EMPTY"
    assert expand_env_value("$env:1BAD") == "$env:1BAD"
    assert expand_env_value("plain") == "plain"