from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_script
from scriptruntime.core.value import Value
from scriptruntime.storage.in_memory import InMemoryScriptStateStore, InMemoryUIValueStore
from scriptruntime.storage.json_files import JsonFileScriptStateStore, decode_value, encode_value


def _script(script_id: str = "s1"):
    return make_script(
        [],
        [],
        script_id=script_id,
        variables=[
            {"id": "v1", "name": "count", "type": "int32", "defaultValue": 1},
            {"id": "v2", "name": "base", "type": "pointer"},
        ],
    )


@pytest.mark.asyncio
async def test_in_memory_state_store_lifecycle() -> None:
    store = InMemoryScriptStateStore()
    script = _script()
    assert await store.get(script.id) is None

    state = await store.load_or_init(script)
    assert state == {"count": Value.integer(1), "base": Value.address(0)}

    # Callers get copies.
    state["count"] = Value.integer(99)
    assert (await store.get(script.id))["count"] == Value.integer(1)

    await store.commit(script.id, {"count": Value.integer(5)})
    assert await store.load_or_init(script) == {"count": Value.integer(5)}

    assert await store.clear(script.id) is True
    assert await store.clear(script.id) is False
    await store.load_or_init(_script("other"))
    await store.clear_all()
    assert await store.get("other") is None


@pytest.mark.asyncio
async def test_in_memory_ui_store_operations() -> None:
    store = InMemoryUIValueStore({"a": Value.integer(1)})
    await store.set("b", Value.string("x"))
    await store.set_many({"c": Value.boolean(True), "a": Value.integer(2)})

    assert await store.get("a") == Value.integer(2)
    assert await store.get("missing") is None
    assert await store.peek("missing") == Value.null()
    assert set((await store.snapshot()).keys()) == {"a", "b", "c"}

    assert await store.remove("b") == Value.string("x")
    await store.clear()
    assert await store.snapshot() == {}


def test_tagged_encoding_keeps_addresses() -> None:
    value = Value.mapping({"ptr": Value.address(0x7FF0), "xs": Value.sequence([Value.floating(1.0)])})
    encoded = encode_value(value)
    assert encoded == {"ptr": {"$address": "0x7ff0"}, "xs": [1.0]}
    assert decode_value(json.loads(json.dumps(encoded))) == value


@pytest.mark.asyncio
async def test_user_maps_shaped_like_the_address_tag_keep_their_type(tmp_path: Path) -> None:
    value = Value.mapping({"$address": Value.string("0x10"), "$$x": Value.integer(1), "plain": Value.null()})
    encoded = encode_value(value)
    assert encoded == {"$$address": "0x10", "$$$x": 1, "plain": None}

    store = JsonFileScriptStateStore(tmp_path)
    await store.commit("s", {"m": value, "p": Value.address(16)})
    assert await JsonFileScriptStateStore(tmp_path).get("s") == {"m": value, "p": Value.address(16)}


@pytest.mark.asyncio
async def test_json_file_store_persists_across_instances(tmp_path: Path) -> None:
    script = _script("scripts/with slash")
    store = JsonFileScriptStateStore(tmp_path)
    await store.load_or_init(script)
    await store.commit(script.id, {"count": Value.integer(7), "base": Value.address(0x1000)})

    files = list(tmp_path.glob("script_state_*.json"))
    assert len(files) == 1
    payload = json.loads(files[0].read_text(encoding="utf-8"))
    assert payload["script_id"] == script.id

    reopened = JsonFileScriptStateStore(tmp_path)
    assert await reopened.get(script.id) == {"count": Value.integer(7), "base": Value.address(0x1000)}
    assert await reopened.load_or_init(script) == {"count": Value.integer(7), "base": Value.address(0x1000)}

    assert await reopened.clear(script.id) is True
    assert await reopened.get(script.id) is None


@pytest.mark.asyncio
async def test_json_file_store_clear_all(tmp_path: Path) -> None:
    store = JsonFileScriptStateStore(tmp_path)
    await store.load_or_init(_script("a"))
    await store.load_or_init(_script("b"))
    (tmp_path / "unrelated.json").write_text("{}", encoding="utf-8")

    await store.clear_all()

    assert [p.name for p in tmp_path.iterdir()] == ["unrelated.json"]
