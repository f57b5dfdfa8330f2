"""scriptruntime.storage.in_memory

In-memory stores (the default for a single-process host, and for tests).
"""

from __future__ import annotations

import asyncio
from typing import Dict, Mapping, Optional

from .base import ScriptStateStore, UIValueStore
from ..core.value import Value
from ..script.models import Script


class InMemoryScriptStateStore(ScriptStateStore):
    def __init__(self):
        self._states: Dict[str, Dict[str, Value]] = {}
        self._lock = asyncio.Lock()

    async def load_or_init(self, script: Script) -> Dict[str, Value]:
        async with self._lock:
            state = self._states.get(script.id)
            if state is None:
                state = script.initial_variables()
                self._states[script.id] = state
            # Values are immutable, so a shallow copy isolates the caller.
            return dict(state)

    async def commit(self, script_id: str, variables: Mapping[str, Value]) -> None:
        async with self._lock:
            self._states[script_id] = dict(variables)

    async def get(self, script_id: str) -> Optional[Dict[str, Value]]:
        async with self._lock:
            state = self._states.get(script_id)
            return dict(state) if state is not None else None

    async def clear(self, script_id: str) -> bool:
        async with self._lock:
            return self._states.pop(script_id, None) is not None

    async def clear_all(self) -> None:
        async with self._lock:
            self._states.clear()


class InMemoryUIValueStore(UIValueStore):
    def __init__(self, initial: Optional[Mapping[str, Value]] = None):
        self._values: Dict[str, Value] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, component_id: str) -> Optional[Value]:
        async with self._lock:
            return self._values.get(component_id)

    async def set(self, component_id: str, value: Value) -> None:
        async with self._lock:
            self._values[component_id] = value

    async def set_many(self, values: Mapping[str, Value]) -> None:
        async with self._lock:
            self._values.update(values)

    async def snapshot(self) -> Dict[str, Value]:
        async with self._lock:
            return dict(self._values)

    async def remove(self, component_id: str) -> Optional[Value]:
        async with self._lock:
            return self._values.pop(component_id, None)

    async def clear(self) -> None:
        async with self._lock:
            self._values.clear()
