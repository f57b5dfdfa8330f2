"""scriptruntime.storage.json_files

File-based persistent script state: one JSON file per script id.

Values use the wire mapping (`Value.to_json`) except addresses, which are stored
tagged as `{"$address": "0x..."}` so they load back as addresses rather than
strings, and floats, which keep their JSON float form (`1.0`) so they load back
as floats.

Map keys starting with `$` are written with one extra leading `$`, so a user map
never reads back as a tag.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from .base import ScriptStateStore
from ..core.value import Value, ValueKind
from ..logging import get_logger
from ..script.models import Script

logger = get_logger(__name__)

ADDRESS_TAG = "$address"
_TAG_PREFIX = "$"
_PREFIX = "script_state_"


def _escape_key(key: str) -> str:
    return _TAG_PREFIX + key if key.startswith(_TAG_PREFIX) else key


def _unescape_key(key: str) -> str:
    return key[1:] if key.startswith(_TAG_PREFIX * 2) else key


def encode_value(value: Value) -> Any:
    k = value.kind
    if k is ValueKind.ADDRESS:
        return {ADDRESS_TAG: f"0x{value.data:x}"}
    if k is ValueKind.SEQUENCE:
        return [encode_value(v) for v in value.data]
    if k is ValueKind.MAPPING:
        return {_escape_key(key): encode_value(v) for key, v in value.data.items()}
    return value.data


def decode_value(raw: Any) -> Value:
    if isinstance(raw, dict):
        if len(raw) == 1 and isinstance(raw.get(ADDRESS_TAG), str):
            addr = Value.from_hex(raw[ADDRESS_TAG])
            if addr is not None:
                return addr
        return Value.mapping({_unescape_key(str(k)): decode_value(v) for k, v in raw.items()})
    if isinstance(raw, list):
        return Value.sequence(decode_value(v) for v in raw)
    return Value.from_json(raw)


class JsonFileScriptStateStore(ScriptStateStore):
    def __init__(self, base_dir: str | Path):
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    def _path(self, script_id: str) -> Path:
        return self._base / f"{_PREFIX}{quote(script_id, safe='')}.json"

    def _read(self, script_id: str) -> Optional[Dict[str, Value]]:
        p = self._path(script_id)
        if not p.exists():
            return None
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
        variables = data.get("variables") if isinstance(data, dict) else None
        if not isinstance(variables, dict):
            raise ValueError(f"Persisted script state for '{script_id}' is missing 'variables'")
        return {str(name): decode_value(raw) for name, raw in variables.items()}

    def _write(self, script_id: str, variables: Mapping[str, Value]) -> None:
        p = self._path(script_id)
        payload = {
            "script_id": script_id,
            "variables": {name: encode_value(v) for name, v in variables.items()},
        }
        tmp = p.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        tmp.replace(p)

    async def load_or_init(self, script: Script) -> Dict[str, Value]:
        async with self._lock:
            state = self._read(script.id)
            if state is None:
                state = script.initial_variables()
                self._write(script.id, state)
            return state

    async def commit(self, script_id: str, variables: Mapping[str, Value]) -> None:
        async with self._lock:
            self._write(script_id, variables)

    async def get(self, script_id: str) -> Optional[Dict[str, Value]]:
        async with self._lock:
            return self._read(script_id)

    async def clear(self, script_id: str) -> bool:
        async with self._lock:
            p = self._path(script_id)
            if not p.exists():
                return False
            p.unlink()
            return True

    async def clear_all(self) -> None:
        async with self._lock:
            removed = 0
            for p in self._base.glob(f"{_PREFIX}*.json"):
                p.unlink()
                removed += 1
            logger.debug("script_state_files_cleared", base_dir=str(self._base), removed=removed)
