from __future__ import annotations

from typing import Any, Dict

import pytest

from scriptruntime.core.errors import DivisionByZero, IndexOutOfBounds, InvalidOperation, ValueTypeError
from scriptruntime.core.value import I64_MAX, I64_MIN, Value, ValueKind
from scriptruntime.executor.builtins import BUILTIN_HANDLERS, get_builtin_handler
from scriptruntime.executor.context import ExecutionContext
from scriptruntime.script.models import Script, ScriptNode
from scriptruntime.storage.in_memory import InMemoryUIValueStore


def _run(node_type: str, inputs: Dict[str, Value] | None = None, **config: Any):
    handler = get_builtin_handler(node_type)
    assert handler is not None, node_type
    ctx = ExecutionContext(Script(id="s"), InMemoryUIValueStore())
    return handler(ScriptNode(id="n", node_type=node_type, config=config), dict(inputs or {}), ctx)


def _i(n: int) -> Value:
    return Value.integer(n)


def _f(x: float) -> Value:
    return Value.floating(x)


def test_constants() -> None:
    assert _run("const_string", value="hi").values["value"] == Value.string("hi")
    assert _run("const_number", value=7).values["value"] == _i(7)
    assert _run("const_number", value=7.9).values["value"] == _i(7)
    assert _run("const_number", value=7, isFloat=True).values["value"] == _f(7.0)
    assert _run("const_boolean").values["value"] == Value.boolean(True)
    assert _run("const_boolean", value=False).values["value"] == Value.boolean(False)
    assert _run("const_pointer", value="0x1000").values["value"] == Value.address(0x1000)
    assert _run("const_pointer").values["value"] == Value.address(0)


@pytest.mark.parametrize(
    "operation,a,b,expected",
    [
        ("add", 2, 3, 5),
        ("sub", 2, 3, -1),
        ("multiply", 4, 5, 20),
        ("div", 7, 2, 3),
        ("div", -7, 2, -3),
        ("mod", -7, 2, -1),
        ("pow", 2, 10, 1024),
        ("min", 2, 3, 2),
        ("max", 2, 3, 3),
        ("bit_and", 0b1100, 0b1010, 0b1000),
        ("bit_xor", 0b1100, 0b1010, 0b0110),
        ("shift_left", 1, 4, 16),
        ("shr", 256, 4, 16),
    ],
)
def test_integer_math(operation: str, a: int, b: int, expected: int) -> None:
    out = _run("math", {"a": _i(a), "b": _i(b)}, operation=operation)
    assert out.values["result"] == _i(expected)


def test_integer_math_wraps() -> None:
    out = _run("math", {"a": _i(I64_MAX), "b": _i(1)}, operation="add")
    assert out.values["result"] == _i(I64_MIN)


def test_float_math_when_either_operand_is_float() -> None:
    out = _run("math", {"a": _i(1), "b": _f(0.5)}, operation="add")
    assert out.values["result"] == _f(1.5)
    assert _run("math", {"a": _f(2.5)}, operation="round").values["result"] == _f(3.0)
    assert _run("math", {"a": _f(-2.5)}, operation="round").values["result"] == _f(-3.0)
    assert _run("math", {"a": _f(9.0)}, operation="sqrt").values["result"] == _f(3.0)


def test_math_failures() -> None:
    with pytest.raises(DivisionByZero):
        _run("math", {"a": _i(1), "b": _i(0)}, operation="div")
    with pytest.raises(DivisionByZero):
        _run("math", {"a": _f(1.0), "b": _f(0.0)}, operation="mod")
    with pytest.raises(InvalidOperation):
        _run("math", {"a": _i(2), "b": _i(-1)}, operation="pow")
    with pytest.raises(ValueTypeError):
        _run("math", {"a": _f(1.0), "b": _i(1)}, operation="bit_or")
    with pytest.raises(InvalidOperation):
        _run("math", {"a": _i(1), "b": _i(1)}, operation="hypot")


def test_compare_and_logic() -> None:
    assert _run("compare", {"a": _i(10), "b": _i(5)}, operation=">").values["result"] == Value.boolean(True)
    assert _run("compare", {"a": _i(2), "b": _f(2.0)}, operation="equals").values["result"] == Value.boolean(True)
    assert _run("compare", {"a": Value.null(), "b": _i(0)}, operation="lt").values["result"] == Value.boolean(True)
    with pytest.raises(InvalidOperation):
        _run("compare", {}, operation="<>")

    t, f = Value.boolean(True), Value.boolean(False)
    assert _run("logic", {"a": t, "b": f}, operation="and").values["result"] == f
    assert _run("logic", {"a": t, "b": f}, operation="||").values["result"] == t
    assert _run("logic", {"a": _i(0)}, operation="not").values["result"] == t
    assert _run("logic", {"a": t, "b": t}, operation="xor").values["result"] == f
    assert _run("logic", {"a": t, "b": t}, operation="nand").values["result"] == f
    assert _run("logic", {"a": f, "b": f}, operation="nor").values["result"] == t


def test_string_nodes() -> None:
    out = _run("string_format", {"arg0": Value.string("hp"), "arg1": _i(100)}, template="{0} = {1}")
    assert out.values["result"] == Value.string("hp = 100")

    out = _run("string_concat", {"a": Value.string("x"), "b": _i(1)})
    assert out.values["result"] == Value.string("x1")

    assert _run("to_string", {"value": _i(255)}, format="hex").values["result"] == Value.string("0xff")
    assert _run("to_string", {"value": _i(-1)}, format="hex").values["result"] == Value.string("0xffffffffffffffff")
    assert _run("to_string", {"value": _i(5)}, format="binary").values["result"] == Value.string("0b101")
    json_out = _run("to_string", {"value": Value.sequence([_i(1), Value.address(16)])}, format="json")
    assert json_out.values["result"] == Value.string('[1,"0x10"]')


@pytest.mark.parametrize(
    "text,expected",
    [("42", 42), ("-7", -7), ("0x1F", 31), ("0b101", 5), ("0o17", 15)],
)
def test_parse_int_detects_prefixes(text: str, expected: int) -> None:
    out = _run("parse_int", {"string": Value.string(text)})
    assert out.values == {"value": _i(expected), "success": Value.boolean(True)}


def test_parse_failures_report_success_false() -> None:
    out = _run("parse_int", {"string": Value.string("12abc")})
    assert out.values["success"] == Value.boolean(False)
    assert _run("parse_int", {"string": Value.string("ff")}, radix=16).values["value"] == _i(255)
    assert _run("parse_float", {"string": Value.string("2.5")}).values["value"] == _f(2.5)
    assert _run("parse_float", {"string": Value.string("nope")}).values["success"] == Value.boolean(False)


def test_to_pointer() -> None:
    assert _run("to_pointer", {"value": Value.string("0x1000")}).values["pointer"] == Value.address(0x1000)
    assert _run("to_pointer", {"value": _i(4096)}).values["pointer"] == Value.address(4096)
    assert _run("to_pointer", {"value": Value.string("garbage")}).values["pointer"] == Value.address(0)


def test_array_nodes() -> None:
    arr = _run("array_create", {"elem1": _i(2), "elem0": _i(1), "elem2": Value.null()}).values["array"]
    assert arr == Value.sequence([_i(1), _i(2)])

    assert _run("array_get", {"array": arr, "index": _i(1)}).values["element"] == _i(2)
    with pytest.raises(IndexOutOfBounds):
        _run("array_get", {"array": arr, "index": _i(2)})
    with pytest.raises(ValueTypeError):
        _run("array_get", {"array": _i(1), "index": _i(0)})

    out = _run("array_set", {"array": arr, "index": _i(0), "value": _i(9)})
    assert out.flow_output == "exec"
    assert out.values["array"] == Value.sequence([_i(9), _i(2)])
    # The input container is untouched.
    assert arr == Value.sequence([_i(1), _i(2)])

    out = _run("array_push", {"array": arr, "value": _i(3)})
    assert out.values["length"] == _i(3)

    assert _run("array_length", {"array": arr}).values["length"] == _i(2)
    assert _run("array_length", {"array": Value.string("abcd")}).values["length"] == _i(4)

    found = _run("array_find", {"array": arr, "value": _f(2.0)}).values
    assert found == {"index": _i(1), "found": Value.boolean(True)}
    missing = _run("array_find", {"array": arr, "value": _i(5)}).values
    assert missing == {"index": _i(-1), "found": Value.boolean(False)}


def test_object_nodes() -> None:
    obj = Value.mapping({"hp": _i(100)})
    assert _run("object_get", {"object": obj, "key": Value.string("hp")}).values["value"] == _i(100)
    assert _run("object_get", {"object": obj}, propertyName="hp").values["value"] == _i(100)
    assert _run("object_get", {"object": obj, "key": Value.string("mp")}).values["value"] == Value.null()

    out = _run("object_set", {"object": obj, "key": Value.string("mp"), "value": _i(5)})
    assert out.flow_output == "exec"
    assert out.values["object"].as_mapping() == {"hp": _i(100), "mp": _i(5)}

    fresh = _run("object_set", {"object": Value.null(), "key": Value.string("k"), "value": _i(1)})
    assert fresh.values["object"] == Value.mapping({"k": _i(1)})

    seq = Value.sequence([_i(1), _i(2)])
    assert _run("object_set", {"object": seq, "key": Value.string("1"), "value": _i(7)}).values["object"] == Value.sequence(
        [_i(1), _i(7)]
    )
    with pytest.raises(IndexOutOfBounds):
        _run("object_set", {"object": seq, "key": Value.string("5"), "value": _i(7)})

    keys = _run("object_keys", {"object": Value.mapping({"b": _i(1), "a": _i(2)})}).values["keys"]
    assert keys == Value.sequence([Value.string("b"), Value.string("a")])
    assert _run("object_keys", {"object": seq}).values["keys"].kind is ValueKind.SEQUENCE


def test_registry_is_flat_mapping() -> None:
    assert get_builtin_handler("math") is BUILTIN_HANDLERS["math"]
    assert get_builtin_handler("memory_read") is None
