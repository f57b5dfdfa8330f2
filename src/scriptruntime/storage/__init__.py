"""Stores for persistent script variables and the shared UI-value map."""

from .base import ScriptStateStore, UIValueStore
from .in_memory import InMemoryScriptStateStore, InMemoryUIValueStore
from .json_files import JsonFileScriptStateStore

__all__ = [
    "ScriptStateStore",
    "UIValueStore",
    "InMemoryScriptStateStore",
    "InMemoryUIValueStore",
    "JsonFileScriptStateStore",
]
