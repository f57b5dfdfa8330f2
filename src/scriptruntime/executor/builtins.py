"""Built-in handlers for Host nodes that only transform their inputs.

Every handler has the shape `(node, inputs, ctx) -> NodeOutput`: `inputs` maps
input port names to Values (absent ports are simply missing), configuration is
read from `node.config`. Nothing here touches variables, the UI store or the
loop stack; those handlers live in `adapters/`.

Data-structure writers (`array_set`, `array_push`, `object_set`) return a new
container and advance `exec`; Values are never mutated in place.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Callable, Dict, List, Optional

from ..core.errors import DivisionByZero, IndexOutOfBounds, InvalidOperation, ValueTypeError
from ..core.value import U64_MASK, Value, ValueKind, compare_values, format_float, wrap_i64
from ..script.models import ScriptNode
from .context import ExecutionContext, NodeOutput

Handler = Callable[[ScriptNode, Dict[str, Value], ExecutionContext], Any]


def get_builtin_handler(node_type: str) -> Optional[Handler]:
    """Get a built-in handler function for a node type."""
    return BUILTIN_HANDLERS.get(node_type)


def _indexed_inputs(inputs: Dict[str, Value], prefix: str) -> List[Value]:
    """`prefix0`, `prefix1`, ... in index order (gaps allowed)."""
    pat = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    indexed = []
    for name, value in inputs.items():
        m = pat.match(name)
        if m:
            indexed.append((int(m.group(1)), value))
    return [v for _, v in sorted(indexed, key=lambda kv: kv[0])]


# Constants
def const_string(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    return NodeOutput.single("value", Value.string(node.config_str("value") or ""))


def const_number(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Integer unless the `isFloat` hint is set."""
    if node.config_bool("isFloat"):
        return NodeOutput.single("value", Value.floating(node.config_float("value") or 0.0))
    raw = node.config.get("value")
    if isinstance(raw, float) and not raw.is_integer():
        # A fractional literal without the hint truncates toward zero.
        return NodeOutput.single("value", Value.integer(int(raw)))
    return NodeOutput.single("value", Value.integer(node.config_int("value") or 0))


def const_boolean(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    b = node.config_bool("value")
    return NodeOutput.single("value", Value.boolean(True if b is None else b))


def const_pointer(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    text = node.config_str("value") or "0x0"
    return NodeOutput.single("value", Value.from_hex(text) or Value.address(0))


# Math
_MATH_ALIASES = {
    "subtract": "sub",
    "multiply": "mul",
    "divide": "div",
    "modulo": "mod",
    "power": "pow",
    "shift_left": "shl",
    "shift_right": "shr",
}

_INT_ONLY_OPS = frozenset({"bit_and", "bit_or", "bit_xor", "bit_not", "shl", "shr"})


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _trunc_mod(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _round_half_away(f: float) -> float:
    if math.isnan(f) or math.isinf(f):
        return f
    return float(math.floor(f + 0.5)) if f >= 0 else float(math.ceil(f - 0.5))


def _float_math(op: str, a: float, b: float) -> float:
    if op == "add":
        return a + b
    if op == "sub":
        return a - b
    if op == "mul":
        return a * b
    if op == "div":
        if b == 0.0:
            raise DivisionByZero()
        return a / b
    if op == "mod":
        if b == 0.0:
            raise DivisionByZero()
        return math.fmod(a, b)
    if op == "pow":
        try:
            return math.pow(a, b)
        except (OverflowError, ValueError):
            return math.inf if a > 0 else math.nan
    if op == "min":
        return b if math.isnan(a) else (a if math.isnan(b) else min(a, b))
    if op == "max":
        return b if math.isnan(a) else (a if math.isnan(b) else max(a, b))
    if op == "abs":
        return abs(a)
    if op == "floor":
        return float(math.floor(a)) if math.isfinite(a) else a
    if op == "ceil":
        return float(math.ceil(a)) if math.isfinite(a) else a
    if op == "round":
        return _round_half_away(a)
    if op == "sqrt":
        return math.sqrt(a) if a >= 0 else math.nan
    raise InvalidOperation(f"Unknown math operation: {op}")


def _int_math(op: str, a: int, b: int) -> int:
    if op == "add":
        return wrap_i64(a + b)
    if op == "sub":
        return wrap_i64(a - b)
    if op == "mul":
        return wrap_i64(a * b)
    if op == "div":
        if b == 0:
            raise DivisionByZero()
        return wrap_i64(_trunc_div(a, b))
    if op == "mod":
        if b == 0:
            raise DivisionByZero()
        return _trunc_mod(a, b)
    if op == "pow":
        if b < 0:
            raise InvalidOperation("integer pow with negative exponent")
        return wrap_i64(pow(a, b, 1 << 64))
    if op == "min":
        return min(a, b)
    if op == "max":
        return max(a, b)
    if op == "abs":
        return wrap_i64(abs(a))
    if op in ("floor", "ceil", "round"):
        return a
    if op == "sqrt":
        return int(math.sqrt(a)) if a >= 0 else 0
    if op == "bit_and":
        return a & b
    if op == "bit_or":
        return a | b
    if op == "bit_xor":
        return a ^ b
    if op == "bit_not":
        return ~a
    if op == "shl":
        return wrap_i64(a << (b & 63))
    if op == "shr":
        return a >> (b & 63)
    raise InvalidOperation(f"Unknown math operation: {op}")


def math_op(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Arithmetic on `a` and `b`; floating point when either operand is a Float."""
    raw_op = node.config_str("operation") or "add"
    op = _MATH_ALIASES.get(raw_op, raw_op)
    a = inputs.get("a", Value.integer(0))
    b = inputs.get("b", Value.integer(0))

    use_float = a.kind is ValueKind.FLOAT or b.kind is ValueKind.FLOAT
    if use_float and op in _INT_ONLY_OPS:
        raise ValueTypeError("integer", "float")
    if use_float:
        fa = a.as_float()
        fb = b.as_float()
        result = _float_math(op, 0.0 if fa is None else fa, 0.0 if fb is None else fb)
        return NodeOutput.single("result", Value.floating(result))

    ia = a.as_int()
    ib = b.as_int()
    result_i = _int_math(op, 0 if ia is None else ia, 0 if ib is None else ib)
    return NodeOutput.single("result", Value.integer(result_i))


# Comparison / logic
_COMPARE_OPS: Dict[str, Callable[[int], bool]] = {
    "==": lambda c: c == 0,
    "!=": lambda c: c != 0,
    "<": lambda c: c < 0,
    "<=": lambda c: c <= 0,
    ">": lambda c: c > 0,
    ">=": lambda c: c >= 0,
}

_COMPARE_ALIASES = {
    "equals": "==",
    "eq": "==",
    "not_equals": "!=",
    "neq": "!=",
    "less_than": "<",
    "lt": "<",
    "less_than_equals": "<=",
    "lte": "<=",
    "greater_than": ">",
    "gt": ">",
    "greater_than_equals": ">=",
    "gte": ">=",
}


def compare_op(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    raw_op = node.config_str("operation") or "=="
    op = _COMPARE_ALIASES.get(raw_op, raw_op)
    test = _COMPARE_OPS.get(op)
    if test is None:
        raise InvalidOperation(f"Unknown compare operation: {raw_op}")
    c = compare_values(inputs.get("a", Value.null()), inputs.get("b", Value.null()))
    return NodeOutput.single("result", Value.boolean(test(c)))


_LOGIC_OPS: Dict[str, Callable[[bool, bool], bool]] = {
    "and": lambda a, b: a and b,
    "or": lambda a, b: a or b,
    "not": lambda a, b: not a,
    "xor": lambda a, b: a != b,
    "nand": lambda a, b: not (a and b),
    "nor": lambda a, b: not (a or b),
}

_LOGIC_ALIASES = {"&&": "and", "||": "or", "!": "not", "^": "xor"}


def logic_op(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    raw_op = node.config_str("operation") or "and"
    fn = _LOGIC_OPS.get(_LOGIC_ALIASES.get(raw_op, raw_op))
    if fn is None:
        raise InvalidOperation(f"Unknown logic operation: {raw_op}")
    a = inputs["a"].is_truthy() if "a" in inputs else False
    b = inputs["b"].is_truthy() if "b" in inputs else False
    return NodeOutput.single("result", Value.boolean(fn(a, b)))


# Strings
def string_format(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Replace `{0}..{N}` in the `template` config with the display form of `arg0..argN`."""
    result = node.config_str("template") or ""
    pat = re.compile(r"^arg(\d+)$")
    for name, value in inputs.items():
        m = pat.match(name)
        if m:
            result = result.replace("{" + m.group(1) + "}", ctx.display(value))
    return NodeOutput.single("result", Value.string(result))


def string_concat(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    a = ctx.display(inputs["a"]) if "a" in inputs else ""
    b = ctx.display(inputs["b"]) if "b" in inputs else ""
    return NodeOutput.single("result", Value.string(a + b))


def to_string(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Render `value` as `auto` (display form), `hex`, `decimal`, `binary` or `json`."""
    value = inputs.get("value", Value.null())
    fmt = node.config_str("format") or "auto"
    k = value.kind
    text: Optional[str] = None
    if fmt == "hex" and k in (ValueKind.INTEGER, ValueKind.ADDRESS):
        text = f"0x{value.data & U64_MASK:x}"
    elif fmt == "binary" and k in (ValueKind.INTEGER, ValueKind.ADDRESS):
        text = f"0b{value.data & U64_MASK:b}"
    elif fmt == "decimal" and k in (ValueKind.INTEGER, ValueKind.ADDRESS):
        text = str(value.data)
    elif fmt == "decimal" and k is ValueKind.FLOAT:
        text = format_float(value.data)
    elif fmt == "json":
        text = json.dumps(value.to_json(), ensure_ascii=False, separators=(",", ":"))
    if text is None:
        text = ctx.display(value)
    return NodeOutput.single("result", Value.string(text))


def _parse_int_text(text: str, radix: int) -> Optional[int]:
    s = text
    if s[:2] in ("0x", "0X"):
        s, radix = s[2:], 16
    elif s[:2] in ("0b", "0B"):
        s, radix = s[2:], 2
    elif s[:2] in ("0o", "0O"):
        s, radix = s[2:], 8
    if not s or not (2 <= radix <= 36):
        return None
    # Sign, then digits only (no whitespace or underscores).
    body = s[1:] if s[0] in "+-" else s
    if not body or not (body.isascii() and body.isalnum()):
        return None
    try:
        n = int(s, radix)
    except ValueError:
        return None
    if n < -(1 << 63) or n > (1 << 63) - 1:
        return None
    return n


def parse_int(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Parse `string` (auto-detecting `0x`/`0b`/`0o`); outputs `value` and `success`."""
    text = inputs["string"].as_str() if "string" in inputs else None
    radix = node.config_int("radix") or 10
    n = _parse_int_text(text or "", radix)
    return NodeOutput(
        values={
            "value": Value.integer(0 if n is None else n),
            "success": Value.boolean(n is not None),
        }
    )


def parse_float(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    text = inputs["string"].as_str() if "string" in inputs else None
    f = Value.string(text).as_float() if text else None
    return NodeOutput(
        values={
            "value": Value.floating(0.0 if f is None else f),
            "success": Value.boolean(f is not None),
        }
    )


def to_pointer(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Address from an address, number or numeric/hex string (0 when unparseable)."""
    value = inputs.get("value", Value.null())
    if value.kind is ValueKind.STRING:
        value = Value.string(value.data.strip())
    addr = value.as_address()
    return NodeOutput.single("pointer", Value.address(addr or 0))


# Sequences
def _require_sequence(value: Value) -> tuple:
    items = value.as_sequence()
    if items is None:
        raise ValueTypeError("array", value.type_name)
    return items


def _values_equal(a: Value, b: Value) -> bool:
    numeric = (ValueKind.INTEGER, ValueKind.FLOAT)
    if a.kind in numeric and b.kind in numeric and (ValueKind.FLOAT in (a.kind, b.kind)):
        return abs(float(a.data) - float(b.data)) < 2.220446049250313e-16
    return a == b


def array_create(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Collect `elem0..elemN` (nulls skipped)."""
    items = [v for v in _indexed_inputs(inputs, "elem") if not v.is_null]
    return NodeOutput.single("array", Value.sequence(items))


def array_get(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    items = _require_sequence(inputs.get("array", Value.sequence()))
    index = inputs["index"].as_int() if "index" in inputs else None
    index = 0 if index is None else index
    if index < 0 or index >= len(items):
        raise IndexOutOfBounds(index, len(items))
    return NodeOutput.single("element", items[index])


def array_set(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    items = list(_require_sequence(inputs.get("array", Value.sequence())))
    index = inputs["index"].as_int() if "index" in inputs else None
    index = 0 if index is None else index
    if index < 0 or index >= len(items):
        raise IndexOutOfBounds(index, len(items))
    items[index] = inputs.get("value", Value.null())
    return NodeOutput.flow("exec", {"array": Value.sequence(items)})


def array_push(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    items = list(_require_sequence(inputs.get("array", Value.sequence())))
    items.append(inputs.get("value", Value.null()))
    return NodeOutput.flow(
        "exec",
        {"array": Value.sequence(items), "length": Value.integer(len(items))},
    )


def array_length(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    value = inputs.get("array", Value.sequence())
    if value.kind in (ValueKind.SEQUENCE, ValueKind.STRING):
        length = len(value.data)
    else:
        length = 0
    return NodeOutput.single("length", Value.integer(length))


def array_find(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Linear scan for `value`; outputs `index` (-1 when absent) and `found`."""
    items = _require_sequence(inputs.get("array", Value.sequence()))
    needle = inputs.get("value", Value.null())
    found = next((i for i, item in enumerate(items) if _values_equal(item, needle)), -1)
    return NodeOutput(values={"index": Value.integer(found), "found": Value.boolean(found >= 0)})


# Maps
def _key_input(node: ScriptNode, inputs: Dict[str, Value], fallback_config: Optional[str] = None) -> str:
    key = inputs["key"].as_str() if "key" in inputs else None
    if key is None and fallback_config:
        key = node.config_str(fallback_config)
    return key or ""


def _as_index(key: str) -> Optional[int]:
    return int(key) if key.isdigit() else None


def object_get(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Property by `key` input (or `propertyName` config); Null when missing."""
    obj = inputs.get("object", Value.null())
    key = _key_input(node, inputs, "propertyName")
    value = Value.null()
    if obj.kind is ValueKind.MAPPING:
        value = obj.data.get(key, Value.null())
    elif obj.kind is ValueKind.SEQUENCE:
        idx = _as_index(key)
        if idx is not None and idx < len(obj.data):
            value = obj.data[idx]
    return NodeOutput.single("value", value)


def object_set(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    obj = inputs.get("object", Value.mapping())
    key = _key_input(node, inputs)
    value = inputs.get("value", Value.null())
    if obj.kind is ValueKind.MAPPING:
        entries = dict(obj.data)
        entries[key] = value
        result = Value.mapping(entries)
    elif obj.kind is ValueKind.SEQUENCE:
        idx = _as_index(key)
        if idx is None:
            raise ValueTypeError("numeric index", key)
        items = list(obj.data)
        if idx >= len(items):
            raise IndexOutOfBounds(idx, len(items))
        items[idx] = value
        result = Value.sequence(items)
    else:
        result = Value.mapping({key: value})
    return NodeOutput.flow("exec", {"object": result})


def object_keys(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    obj = inputs.get("object", Value.null())
    if obj.kind is ValueKind.MAPPING:
        keys = [Value.string(k) for k in obj.data]
    elif obj.kind is ValueKind.SEQUENCE:
        keys = [Value.integer(i) for i in range(len(obj.data))]
    else:
        keys = []
    return NodeOutput.single("keys", Value.sequence(keys))


# Handler registry
BUILTIN_HANDLERS: Dict[str, Handler] = {
    # Constants
    "const_string": const_string,
    "const_number": const_number,
    "const_boolean": const_boolean,
    "const_pointer": const_pointer,
    # Math / logic
    "math": math_op,
    "compare": compare_op,
    "logic": logic_op,
    # Strings / conversion
    "string_format": string_format,
    "string_concat": string_concat,
    "to_string": to_string,
    "parse_int": parse_int,
    "parse_float": parse_float,
    "to_pointer": to_pointer,
    # Sequences
    "array_create": array_create,
    "array_get": array_get,
    "array_set": array_set,
    "array_push": array_push,
    "array_length": array_length,
    "array_find": array_find,
    # Maps
    "object_get": object_get,
    "object_set": object_set,
    "object_keys": object_keys,
}
