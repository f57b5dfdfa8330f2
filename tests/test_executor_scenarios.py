"""End-to-end invocations of small scripts through `ScriptExecutor`."""

from __future__ import annotations

import asyncio
from typing import Any, List

import pytest

from conftest import binary_op, const_number, event_ui, link, log_node, make_node, make_script, text_for
from scriptruntime import EngineConfig, ScriptExecutor, Value


def _counter_script():
    return make_script(
        [
            event_ui(),
            make_node(
                "set",
                "set_variable",
                flow_in=["exec"],
                value_in=["value"],
                flow_out=["exec"],
                value_out=["value"],
                config={"variableId": "var-n"},
            ),
            make_node("get", "get_variable", value_out=["value"], config={"variableId": "var-n"}),
            binary_op("add", "math", "add"),
            const_number("one", 1),
        ],
        [
            link("event", "exec", "set", "exec"),
            link("get", "value", "add", "a"),
            link("one", "value", "add", "b"),
            link("add", "result", "set", "value"),
        ],
        script_id="counter",
        variables=[{"id": "var-n", "name": "n", "type": "int32", "defaultValue": 0}],
    )


@pytest.mark.asyncio
async def test_constant_driven_log() -> None:
    text, text_link = text_for("log", "hi")
    script = make_script([event_ui(), log_node("log"), text], [link("event", "exec", "log", "exec"), text_link])

    result = await ScriptExecutor().execute_from_event(script, "event", Value.boolean(True), "btn")

    assert result.success, result.error
    assert result.logs == ["hi"]
    assert result.error is None


@pytest.mark.asyncio
async def test_accumulator_persists_across_invocations() -> None:
    executor = ScriptExecutor()
    script = _counter_script()

    for _ in range(3):
        result = await executor.execute_from_event(script, "event", Value.boolean(True))
        assert result.success, result.error

    assert result.variables == {"n": Value.integer(3)}
    assert await executor.state_store.get(script.id) == {"n": Value.integer(3)}


@pytest.mark.asyncio
async def test_if_else_split() -> None:
    t_text, t_link = text_for("log_t", "T")
    f_text, f_link = text_for("log_f", "F")
    script = make_script(
        [
            event_ui(),
            make_node("if", "if", flow_in=["exec"], value_in=["condition"], flow_out=["true", "false"]),
            binary_op("cmp", "compare", ">"),
            const_number("ten", 10),
            const_number("five", 5),
            log_node("log_t"),
            log_node("log_f"),
            t_text,
            f_text,
        ],
        [
            link("event", "exec", "if", "exec"),
            link("ten", "value", "cmp", "a"),
            link("five", "value", "cmp", "b"),
            link("cmp", "result", "if", "condition"),
            link("if", "true", "log_t", "exec"),
            link("if", "false", "log_f", "exec"),
            t_link,
            f_link,
        ],
    )

    result = await ScriptExecutor().execute_from_event(script, "event")

    assert result.success, result.error
    assert result.logs == ["T"]


@pytest.mark.asyncio
async def test_for_range_with_break() -> None:
    done_text, done_link = text_for("log_done", "done")
    script = make_script(
        [
            event_ui(),
            make_node(
                "range",
                "for_range",
                flow_in=["exec"],
                value_in=["start", "end", "step"],
                flow_out=["body", "done"],
                value_out=["index"],
                config={"start": 0, "end": 100, "step": 1},
            ),
            log_node("log_index"),
            make_node("if", "if", flow_in=["exec"], value_in=["condition"], flow_out=["true", "false"]),
            binary_op("is_five", "compare", "=="),
            const_number("five", 5),
            make_node("break", "break", flow_in=["exec"]),
            log_node("log_done"),
            done_text,
        ],
        [
            link("event", "exec", "range", "exec"),
            link("range", "body", "log_index", "exec"),
            link("range", "index", "log_index", "message"),
            link("log_index", "exec", "if", "exec"),
            link("range", "index", "is_five", "a"),
            link("five", "value", "is_five", "b"),
            link("is_five", "result", "if", "condition"),
            link("if", "true", "break", "exec"),
            link("range", "done", "log_done", "exec"),
            done_link,
        ],
    )

    result = await ScriptExecutor().execute_from_event(script, "event")

    assert result.success, result.error
    assert result.logs == ["0", "1", "2", "3", "4", "5", "done"]


@pytest.mark.asyncio
async def test_divide_by_zero_fails_without_touching_state() -> None:
    executor = ScriptExecutor()
    script = make_script(
        [
            event_ui(),
            log_node("log"),
            binary_op("div", "math", "div"),
            const_number("one", 1),
            const_number("zero", 0),
        ],
        [
            link("event", "exec", "log", "exec"),
            link("one", "value", "div", "a"),
            link("zero", "value", "div", "b"),
            link("div", "result", "log", "message"),
        ],
        variables=[{"id": "v", "name": "keep", "type": "int32", "defaultValue": 7}],
    )
    before = await executor.state_store.load_or_init(script)

    result = await executor.execute_from_event(script, "event")

    assert not result.success
    assert "DivisionByZero" in result.error
    assert result.logs == []
    assert result.variables == {}
    assert await executor.state_store.get(script.id) == before


class HangingCaller:
    async def call(self, method: str, args: List[Any]) -> Any:
        await asyncio.Event().wait()


def _memory_read_script():
    return make_script(
        [
            event_ui(),
            make_node(
                "read",
                "memory_read",
                flow_in=["exec"],
                value_in=["address"],
                flow_out=["exec"],
                value_out=["value"],
                config={"valueType": "int32"},
            ),
            make_node("addr", "const_pointer", value_out=["value"], config={"value": "0x1000"}),
            log_node("log"),
        ],
        [
            link("event", "exec", "read", "exec"),
            link("addr", "value", "read", "address"),
            link("read", "exec", "log", "exec"),
            link("read", "value", "log", "message"),
        ],
    )


@pytest.mark.asyncio
async def test_rpc_timeout() -> None:
    executor = ScriptExecutor(config=EngineConfig(rpc_timeout_ms=50))
    executor.set_session("session-1")
    executor.set_rpc_caller(HangingCaller())

    result = await executor.execute_from_event(_memory_read_script(), "event")

    assert not result.success
    assert "RpcTimeout(50)" in result.error


class EchoCaller:
    def __init__(self) -> None:
        self.requests: List[dict] = []

    async def call(self, method: str, args: List[Any]) -> Any:
        request = args[0]
        self.requests.append(request)
        return {"id": request["id"], "success": True, "outputs": {"value": 1337}}


@pytest.mark.asyncio
async def test_target_node_runs_through_the_bridge() -> None:
    caller = EchoCaller()
    executor = ScriptExecutor()
    executor.set_session("session-1")
    executor.set_rpc_caller(caller)

    result = await executor.execute_from_event(_memory_read_script(), "event")

    assert result.success, result.error
    assert result.logs == ["1337"]
    assert caller.requests == [
        {"id": 1, "node_type": "memory_read", "config": {"valueType": "int32"}, "inputs": {"address": "0x1000"}}
    ]


@pytest.mark.asyncio
async def test_target_node_without_session_is_not_attached() -> None:
    executor = ScriptExecutor()
    executor.set_rpc_caller(EchoCaller())

    result = await executor.execute_from_event(_memory_read_script(), "event")

    assert not result.success
    assert result.error.startswith("NotAttached")


@pytest.mark.asyncio
async def test_clear_session_detaches() -> None:
    executor = ScriptExecutor()
    executor.set_session("session-1")
    executor.set_rpc_caller(EchoCaller())
    executor.clear_session()

    result = await executor.execute_from_event(_memory_read_script(), "event")

    assert result.error.startswith("NotAttached")
