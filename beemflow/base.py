"""The adapter interface and the manifest records that describe tools."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Mapping


class AdapterError(Exception):
    """Raised when an adapter cannot carry out a request."""


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise AdapterError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _string_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise AdapterError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _object_field(data: Mapping[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise AdapterError(f"field {key!r} must be an object, got {type(value).__name__}")
    return dict(value)


def _headers_field(data: Mapping[str, Any], key: str) -> dict[str, str] | None:
    headers = _object_field(data, key)
    if headers is None:
        return None
    for name, value in headers.items():
        if not isinstance(value, str):
            raise AdapterError(f"header {name!r} must be a string, got {type(value).__name__}")
    return headers


@dataclass
class ToolManifest:
    """Description of a tool: its parameters schema and where to call it."""

    name: str = ""
    description: str = ""
    kind: str = ""
    parameters: dict[str, Any] | None = None
    endpoint: str = ""
    method: str = ""
    headers: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ToolManifest:
        data = _require_mapping(data, "tool manifest")
        return cls(
            name=_string_field(data, "name"),
            description=_string_field(data, "description"),
            kind=_string_field(data, "kind"),
            parameters=_object_field(data, "parameters"),
            endpoint=_string_field(data, "endpoint"),
            method=_string_field(data, "method"),
            headers=_headers_field(data, "headers"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "kind": self.kind,
        }
        if self.parameters is not None:
            out["parameters"] = dict(self.parameters)
        if self.endpoint:
            out["endpoint"] = self.endpoint
        if self.method:
            out["method"] = self.method
        if self.headers is not None:
            out["headers"] = dict(self.headers)
        return out


@dataclass
class RegistryEntry:
    """One tool entry as stored in a registry file."""

    name: str = ""
    registry: str = ""
    type: str = ""
    description: str = ""
    kind: str = ""
    version: str = ""
    endpoint: str = ""
    method: str = ""
    headers: dict[str, str] | None = None
    parameters: dict[str, Any] | None = None

    _STRING_FIELDS = ("registry", "type", "description", "kind", "version", "endpoint", "method")

    @classmethod
    def from_dict(cls, data: Any) -> RegistryEntry:
        data = _require_mapping(data, "registry entry")
        return cls(
            name=_string_field(data, "name"),
            registry=_string_field(data, "registry"),
            type=_string_field(data, "type"),
            description=_string_field(data, "description"),
            kind=_string_field(data, "kind"),
            version=_string_field(data, "version"),
            endpoint=_string_field(data, "endpoint"),
            method=_string_field(data, "method"),
            headers=_headers_field(data, "headers"),
            parameters=_object_field(data, "parameters"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name}
        for key in self._STRING_FIELDS:
            value = getattr(self, key)
            if value:
                out[key] = value
        if self.headers is not None:
            out["headers"] = dict(self.headers)
        if self.parameters is not None:
            out["parameters"] = dict(self.parameters)
        return out


class Adapter(abc.ABC):
    """A tool integration that takes a dict of inputs and returns a dict of outputs."""

    @abc.abstractmethod
    def id(self) -> str:
        """Return the identifier the adapter is registered under."""

    @abc.abstractmethod
    def execute(self, inputs: dict[str, Any]) -> dict[str, Any]:
        """Run the tool with the given inputs."""

    def manifest(self) -> ToolManifest | None:
        """Return the adapter's manifest, if it has one."""
        return None