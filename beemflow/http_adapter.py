"""Adapter that performs HTTP requests, either to a manifest endpoint or to any URL."""

from __future__ import annotations

import http.client
import json
import os
import re
import urllib.error
import urllib.request
from typing import Any

from beemflow.base import Adapter, AdapterError, ToolManifest

DEFAULT_TIMEOUT = 30.0
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_ACCEPT = "Accept"
CONTENT_TYPE_JSON = "application/json"
DEFAULT_JSON_ACCEPT = "application/json"

_ENV_VAR_PATTERN = re.compile(r"\$env:([A-Za-z_][A-Za-z0-9_]*)")


def expand_env_value(value: str) -> str:
    """Replace each ``$env:NAME`` with the variable's value; unset or empty ones stay as written."""
    return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1)) or m.group(0), value)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _decode_body(data: bytes) -> dict[str, Any]:
    text = data.decode("utf-8", errors="replace")
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return {"body": text}
    if isinstance(parsed, dict):
        return parsed
    return {"body": parsed}


def _string_headers(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {k: v for k, v in value.items() if isinstance(v, str)}


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


def _has_header(headers: dict[str, str], name: str) -> bool:
    return any(k.lower() == name.lower() and v for k, v in headers.items())


def _encode_json(value: Any) -> bytes:
    try:
        return json.dumps(value).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise AdapterError(f"failed to marshal request body: {exc}") from exc


class HTTPAdapter(Adapter):
    """Calls a manifest's endpoint, or makes a generic request from ``url``/``method``/``body``."""

    timeout = DEFAULT_TIMEOUT

    def __init__(self, adapter_id: str = "", tool_manifest: ToolManifest | None = None):
        self.adapter_id = adapter_id
        self.tool_manifest = tool_manifest

    def id(self) -> str:
        return self.adapter_id

    def manifest(self) -> ToolManifest | None:
        return self.tool_manifest

    def execute(self, inputs: dict[str, Any]) -> dict[str, Any]:
        if self.tool_manifest is not None and self.tool_manifest.endpoint:
            return self._execute_manifest_request(inputs)
        return self._execute_generic_request(inputs)

    def _execute_manifest_request(self, inputs: dict[str, Any]) -> dict[str, Any]:
        enriched = self._with_defaults(inputs)
        headers = {k: expand_env_value(v) for k, v in (self.tool_manifest.headers or {}).items()}
        headers.update(_string_headers(enriched.get("headers")))
        body = _encode_json(enriched)
        return self._send("POST", self.tool_manifest.endpoint, headers, body)

    def _execute_generic_request(self, inputs: dict[str, Any]) -> dict[str, Any]:
        url = inputs.get("url")
        if not isinstance(url, str) or not url:
            raise AdapterError("missing or invalid url")
        method = inputs.get("method")
        method = method.upper() if isinstance(method, str) and method else "GET"
        headers = _string_headers(inputs.get("headers"))
        body = None
        if method != "GET" and inputs.get("body") is not None:
            body = _encode_json(inputs["body"])
        return self._send(method, url, headers, body)

    def _with_defaults(self, inputs: dict[str, Any]) -> dict[str, Any]:
        enriched = dict(inputs)
        parameters = self.tool_manifest.parameters
        properties = parameters.get("properties") if parameters else None
        if not isinstance(properties, dict):
            return enriched
        for key, prop in properties.items():
            if not isinstance(prop, dict) or key in enriched or "default" not in prop:
                continue
            default = prop["default"]
            enriched[key] = expand_env_value(default) if isinstance(default, str) else default
        return enriched

    def _send(self, method: str, url: str, headers: dict[str, str], body: bytes | None) -> dict[str, Any]:
        final = dict(headers)
        if body or (method != "GET" and not _has_header(final, HEADER_CONTENT_TYPE)):
            _set_header(final, HEADER_CONTENT_TYPE, CONTENT_TYPE_JSON)
        _set_header(final, HEADER_ACCEPT, DEFAULT_JSON_ACCEPT)

        try:
            request = urllib.request.Request(url, data=body or None, headers=final, method=method)
        except ValueError as exc:
            raise AdapterError(f"failed to create HTTP request: {exc}") from exc

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                status = response.status
                data = response.read()
        except urllib.error.HTTPError as exc:
            with exc:
                status = exc.code
                data = exc.read()
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            raise AdapterError(f"HTTP request failed: {exc}") from exc

        if not 200 <= status < 300:
            text = data.decode("utf-8", errors="replace")
            raise AdapterError(f"HTTP {method} {url}: status {status}: {text}")
        return _decode_body(data)