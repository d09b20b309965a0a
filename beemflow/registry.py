"""Lookup table of adapters, and the user-writable local registry file."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from beemflow.base import Adapter, AdapterError, RegistryEntry, ToolManifest
from beemflow.http_adapter import HTTPAdapter

logger = logging.getLogger(__name__)


def _read_entries(path: Path) -> list[RegistryEntry]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return []
    try:
        raw = json.loads(text)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise AdapterError("registry file must hold a JSON array")
        return [RegistryEntry.from_dict(item) for item in raw]
    except (ValueError, AdapterError) as exc:
        logger.warning("corrupted registry file %s, starting fresh: %s", path, exc)
        return []


def append_to_local_registry(entry: RegistryEntry, path: str | os.PathLike[str]) -> None:
    """Write ``entry`` to the registry file at ``path``, replacing any entry of the same name.

    A missing or corrupted file is started afresh. Filesystem failures raise ``OSError``.
    """
    target = Path(path)
    entries = [e for e in _read_entries(target) if e.name != entry.name]
    entries.append(entry)
    payload = json.dumps([e.to_dict() for e in entries], indent=2)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(payload, encoding="utf-8")

    try:
        json.loads(target.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise AdapterError(f"failed to unmarshal registry entries after write: {exc}") from exc


class AdapterRegistry:
    """Holds adapters by their identifier."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Add ``adapter``, replacing any adapter with the same identifier."""
        self._adapters[adapter.id()] = adapter

    def get(self, adapter_id: str) -> Adapter | None:
        """Return the adapter registered under ``adapter_id``, or None."""
        return self._adapters.get(adapter_id)

    def load_and_register_tool(self, name: str, manifest_path: str | os.PathLike[str]) -> None:
        """Read a tool manifest from a JSON file and register an HTTP adapter for it.

        Does nothing if an adapter named ``name`` is already registered.
        """
        if name in self._adapters:
            return
        try:
            text = Path(manifest_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise AdapterError(f"cannot read manifest {manifest_path}: {exc}") from exc
        try:
            data: Any = json.loads(text)
        except ValueError as exc:
            raise AdapterError(f"invalid manifest {manifest_path}: {exc}") from exc
        manifest = ToolManifest.from_dict(data)
        self.register(HTTPAdapter(adapter_id=name, tool_manifest=manifest))

    def close_all(self) -> None:
        """Close every adapter that has a ``close`` method.

        All adapters are closed even if some fail; the first failure is then raised.
        """
        first_error: Exception | None = None
        for adapter in self._adapters.values():
            close = getattr(adapter, "close", None)
            if not callable(close):
                continue
            try:
                close()
            except Exception as exc:  # noqa: BLE001 - collected and re-raised below
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def all(self) -> list[Adapter]:
        """Return every registered adapter."""
        return list(self._adapters.values())