"""Local key-value file area."""

from threadchat.boundary.storage.json_store import JsonFileStore

__all__ = ["JsonFileStore"]
