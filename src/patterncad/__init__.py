"""Command-line tooling for batch pattern operations."""

from .app import build_cli, load_document, write_document

__all__ = ["build_cli", "load_document", "write_document"]
