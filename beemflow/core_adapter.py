"""Built-in tools: ``core.echo`` and ``core.convert_openapi``."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

from beemflow.base import Adapter, AdapterError

logger = logging.getLogger(__name__)

ADAPTER_ID = "core"
CORE_ECHO = "core.echo"
CORE_CONVERT_OPENAPI = "core.convert_openapi"
ENV_DEBUG = "BEEMFLOW_DEBUG"
DEFAULT_API_NAME = "api"
DEFAULT_BASE_URL = "https://api.example.com"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"

_VALID_METHODS = frozenset({"get", "post", "put", "patch", "delete"})
_PATH_PARAM = re.compile(r"\{[^}]+\}")
_NOT_NAME_CHAR = re.compile(r"[^A-Za-z0-9_]")
_UNDERSCORE_RUN = re.compile(r"_{2,}")


def is_valid_http_method(method: str) -> bool:
    """True for get, post, put, patch and delete, in any case."""
    return method.lower() in _VALID_METHODS


def generate_tool_name(api_name: str, path: str, method: str) -> str:
    """Build a tool name such as ``api.users_by_id_get`` from a path and method."""
    clean = path[1:] if path.startswith("/") else path
    clean = clean.replace("/", "_")
    clean = _PATH_PARAM.sub("_by_id", clean)
    clean = _NOT_NAME_CHAR.sub("_", clean)
    clean = _UNDERSCORE_RUN.sub("_", clean.strip("_"))
    suffix = method.lower()
    if not clean:
        return f"{api_name}.{suffix}"
    return f"{api_name}.{clean}_{suffix}"


def extract_description(operation: dict[str, Any], path: str) -> str:
    """Use the summary, then the description, then a generic text naming the path."""
    for key in ("summary", "description"):
        value = operation.get(key)
        if isinstance(value, str) and value:
            return value
    return "API endpoint: " + path


def _body_schema(operation: dict[str, Any]) -> dict[str, Any] | None:
    request_body = operation.get("requestBody")
    if not isinstance(request_body, dict):
        return None
    content = request_body.get("content")
    if not isinstance(content, dict):
        return None
    for content_type in (CONTENT_TYPE_JSON, CONTENT_TYPE_FORM):
        media = content.get(content_type)
        if isinstance(media, dict) and isinstance(media.get("schema"), dict):
            return media["schema"]
    return None


def extract_parameters(operation: dict[str, Any], method: str) -> dict[str, Any]:
    """Derive a JSON schema for the operation's inputs."""
    if method.upper() != "GET":
        schema = _body_schema(operation)
        if schema is not None:
            return schema

    params = operation.get("parameters")
    if isinstance(params, list) and params:
        properties: dict[str, Any] = {}
        required: list[str] = []
        for param in params:
            if not isinstance(param, dict) or not isinstance(param.get("name"), str):
                continue
            name = param["name"]
            prop: dict[str, Any] = {"type": "string"}
            if isinstance(param.get("description"), str):
                prop["description"] = param["description"]
            schema = param.get("schema")
            if isinstance(schema, dict):
                if isinstance(schema.get("type"), str):
                    prop["type"] = schema["type"]
                if isinstance(schema.get("enum"), list):
                    prop["enum"] = schema["enum"]
            properties[name] = prop
            if param.get("required") is True:
                required.append(name)
        return {"type": "object", "properties": properties, "required": required}

    return {"type": "object", "properties": {}}


def determine_content_type(operation: dict[str, Any], method: str) -> str:
    """Form encoding when a non-GET request body offers it, JSON otherwise."""
    if method.upper() == "GET":
        return CONTENT_TYPE_JSON
    request_body = operation.get("requestBody")
    if isinstance(request_body, dict):
        content = request_body.get("content")
        if isinstance(content, dict) and CONTENT_TYPE_FORM in content:
            return CONTENT_TYPE_FORM
    return CONTENT_TYPE_JSON


def convert_openapi_to_manifests(spec: dict[str, Any], api_name: str, base_url: str) -> list[dict[str, Any]]:
    """Turn each supported operation of an OpenAPI spec into a tool manifest."""
    paths = spec.get("paths")
    if not isinstance(paths, dict):
        raise AdapterError("no paths found in OpenAPI spec")

    manifests: list[dict[str, Any]] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if not is_valid_http_method(method) or not isinstance(operation, dict):
                continue
            manifests.append(
                {
                    "name": generate_tool_name(api_name, path, method),
                    "description": extract_description(operation, path),
                    "kind": "task",
                    "parameters": extract_parameters(operation, method),
                    "endpoint": base_url + path,
                    "method": method.upper(),
                    "headers": {
                        "Content-Type": determine_content_type(operation, method),
                        "Authorization": "Bearer $env:" + api_name.upper() + "_API_KEY",
                    },
                }
            )
    return manifests


class CoreAdapter(Adapter):
    """Dispatches built-in tools by the ``__use`` input."""

    def id(self) -> str:
        return ADAPTER_ID

    def manifest(self) -> None:
        return None

    def execute(self, inputs: dict[str, Any]) -> dict[str, Any]:
        use = inputs.get("__use")
        if not isinstance(use, str):
            raise AdapterError("missing __use for CoreAdapter")
        if use == CORE_ECHO:
            return self._echo(inputs)
        if use == CORE_CONVERT_OPENAPI:
            return self._convert_openapi(inputs)
        raise AdapterError(f"unknown core tool: {use}")

    @staticmethod
    def _echo(inputs: dict[str, Any]) -> dict[str, Any]:
        text = inputs.get("text")
        if isinstance(text, str) and os.environ.get(ENV_DEBUG):
            logger.info("%s", text)
        return {k: v for k, v in inputs.items() if k != "__use"}

    @staticmethod
    def _convert_openapi(inputs: dict[str, Any]) -> dict[str, Any]:
        source = inputs.get("openapi")
        if isinstance(source, str):
            try:
                spec = json.loads(source)
            except ValueError as exc:
                raise AdapterError(f"invalid OpenAPI JSON: {exc}") from exc
            if not isinstance(spec, dict):
                raise AdapterError("invalid OpenAPI JSON: top level must be an object")
        elif isinstance(source, dict):
            spec = source
        else:
            raise AdapterError("missing required field: openapi (must be JSON string or object)")

        api_name = inputs.get("api_name")
        if not isinstance(api_name, str) or not api_name:
            api_name = DEFAULT_API_NAME

        base_url = inputs.get("base_url")
        if not isinstance(base_url, str) or not base_url:
            base_url = ""
            servers = spec.get("servers")
            if isinstance(servers, list) and servers and isinstance(servers[0], dict):
                url = servers[0].get("url")
                if isinstance(url, str):
                    base_url = url
            base_url = base_url or DEFAULT_BASE_URL

        try:
            manifests = convert_openapi_to_manifests(spec, api_name, base_url)
        except AdapterError as exc:
            raise AdapterError(f"conversion failed: {exc}") from exc

        return {
            "manifests": manifests,
            "count": len(manifests),
            "api_name": api_name,
            "base_url": base_url,
        }