"""Tool adapters: built-in core tools, HTTP tools and an adapter registry."""

__version__ = "0.1.0"

__all__ = ["base", "core_adapter", "http_adapter", "registry"]