"""scriptruntime.storage.base

Store interfaces for state that outlives a single invocation.

- `ScriptStateStore`: per-script persistent variables (script_id -> name -> Value).
- `UIValueStore`: the component-value map shared with the UI layer.

Every operation is a coroutine and individually atomic; there are no
cross-operation transactions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

from ..core.value import Value
from ..script.models import Script


class ScriptStateStore(ABC):
    """Per-script persistent variables."""

    @abstractmethod
    async def load_or_init(self, script: Script) -> Dict[str, Value]:
        """Return a private copy of the script's variables, seeding them from declarations on first sight."""

    @abstractmethod
    async def commit(self, script_id: str, variables: Mapping[str, Value]) -> None:
        """Replace the script's variables wholesale."""

    @abstractmethod
    async def get(self, script_id: str) -> Optional[Dict[str, Value]]: ...

    @abstractmethod
    async def clear(self, script_id: str) -> bool:
        """Drop one script's state. Returns True when something was removed."""

    @abstractmethod
    async def clear_all(self) -> None: ...


class UIValueStore(ABC):
    """component_id -> Value, shared between the engine and the UI layer. Last write wins."""

    @abstractmethod
    async def get(self, component_id: str) -> Optional[Value]: ...

    @abstractmethod
    async def set(self, component_id: str, value: Value) -> None: ...

    @abstractmethod
    async def set_many(self, values: Mapping[str, Value]) -> None: ...

    @abstractmethod
    async def snapshot(self) -> Dict[str, Value]: ...

    @abstractmethod
    async def remove(self, component_id: str) -> Optional[Value]: ...

    @abstractmethod
    async def clear(self) -> None: ...

    async def peek(self, component_id: str) -> Value:
        """Like `get`, but Null when the component has no value."""
        value = await self.get(component_id)
        return Value.null() if value is None else value
