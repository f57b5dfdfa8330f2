"""scriptruntime.core.value

Runtime value passed between script nodes.

`Value` is a tagged datum: the `kind` decides how `data` is interpreted.

- NULL: `None`
- BOOLEAN: `bool`
- INTEGER: `int` wrapped to signed 64-bit
- FLOAT: `float`
- STRING: `str`
- ADDRESS: `int` in unsigned 64-bit range (kept apart from INTEGER so pointer
  semantics survive the JSON wire, where it travels as `"0x..."`)
- SEQUENCE: `tuple[Value, ...]`
- MAPPING: `dict[str, Value]` (never mutated in place; operations build a new dict)

Conversions between kinds are explicit (`as_int`, `as_float`, `as_address`, ...);
nothing is coerced implicitly.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1
U64_MASK = (1 << 64) - 1

DEFAULT_DISPLAY_DEPTH = 3
DEFAULT_DISPLAY_WIDTH = 5

_INT_RE = re.compile(r"^[+-]?\d+$")
_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")


def wrap_i64(n: int) -> int:
    """Two's complement wrap into the signed 64-bit range."""
    n &= U64_MASK
    return n - (1 << 64) if n > I64_MAX else n


def saturate_i64(f: float) -> int:
    if math.isnan(f):
        return 0
    if f >= 9.223372036854775807e18:
        return I64_MAX
    if f <= -9.223372036854775808e18:
        return I64_MIN
    return int(f)


def format_float(f: float) -> str:
    """Shortest round-trip text; integral values print without a fraction."""
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "inf" if f > 0 else "-inf"
    if f.is_integer():
        if f == 0 and math.copysign(1.0, f) < 0:
            return "-0"
        return str(int(f))
    return repr(f)


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ADDRESS = "address"
    SEQUENCE = "array"
    MAPPING = "object"


@dataclass(frozen=True, eq=False)
class Value:
    kind: ValueKind = ValueKind.NULL
    data: Any = None

    # ------------------------------------------------------------------
    # Constructors

    @classmethod
    def null(cls) -> "Value":
        return _NULL

    @classmethod
    def boolean(cls, b: bool) -> "Value":
        return _TRUE if b else _FALSE

    @classmethod
    def integer(cls, i: int) -> "Value":
        return cls(ValueKind.INTEGER, wrap_i64(int(i)))

    @classmethod
    def floating(cls, f: float) -> "Value":
        return cls(ValueKind.FLOAT, float(f))

    @classmethod
    def string(cls, s: str) -> "Value":
        return cls(ValueKind.STRING, str(s))

    @classmethod
    def address(cls, a: int) -> "Value":
        return cls(ValueKind.ADDRESS, int(a) & U64_MASK)

    @classmethod
    def sequence(cls, items: Iterable["Value"] = ()) -> "Value":
        return cls(ValueKind.SEQUENCE, tuple(items))

    @classmethod
    def mapping(cls, entries: Optional[Mapping[str, "Value"]] = None) -> "Value":
        return cls(ValueKind.MAPPING, dict(entries or {}))

    @classmethod
    def from_hex(cls, text: str) -> Optional["Value"]:
        """Parse `0x1234`, `0X1234` or bare `1234` as a hex address."""
        s = str(text).strip()
        if s[:2] in ("0x", "0X"):
            s = s[2:]
        if not s or not _HEX_RE.match(s):
            return None
        n = int(s, 16)
        if n > U64_MASK:
            return None
        return cls.address(n)

    @classmethod
    def from_python(cls, obj: Any) -> "Value":
        """Build a Value from plain Python data (None/bool/int/float/str/list/tuple/dict)."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return _NULL
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            if obj > I64_MAX and obj <= U64_MASK:
                return cls.address(obj)
            return cls.integer(obj)
        if isinstance(obj, float):
            return cls.floating(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, (list, tuple)):
            return cls.sequence(cls.from_python(x) for x in obj)
        if isinstance(obj, dict):
            return cls.mapping({str(k): cls.from_python(v) for k, v in obj.items()})
        raise TypeError(f"cannot build a Value from {type(obj).__name__}")

    @classmethod
    def from_json(cls, obj: Any) -> "Value":
        """Decode parsed JSON (as produced by `json.loads`).

        Integral numbers decode to INTEGER (FLOAT when outside the signed 64-bit
        range); strings are never auto-coerced to ADDRESS.
        """
        if obj is None:
            return _NULL
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            if I64_MIN <= obj <= I64_MAX:
                return cls(ValueKind.INTEGER, obj)
            return cls.floating(float(obj))
        if isinstance(obj, float):
            return cls.floating(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, (list, tuple)):
            return cls.sequence(cls.from_json(x) for x in obj)
        if isinstance(obj, dict):
            return cls.mapping({str(k): cls.from_json(v) for k, v in obj.items()})
        return _NULL

    # ------------------------------------------------------------------
    # Interchange

    def to_json(self) -> Any:
        k = self.kind
        if k is ValueKind.FLOAT:
            return None if (math.isnan(self.data) or math.isinf(self.data)) else self.data
        if k is ValueKind.ADDRESS:
            return f"0x{self.data:x}"
        if k is ValueKind.SEQUENCE:
            return [v.to_json() for v in self.data]
        if k is ValueKind.MAPPING:
            return {key: v.to_json() for key, v in self.data.items()}
        return self.data

    # ------------------------------------------------------------------
    # Introspection

    @property
    def type_name(self) -> str:
        return self.kind.value

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def is_truthy(self) -> bool:
        k = self.kind
        if k is ValueKind.NULL:
            return False
        if k is ValueKind.FLOAT:
            return self.data != 0.0 and not math.isnan(self.data)
        if k is ValueKind.BOOLEAN:
            return self.data
        return bool(self.data)

    # ------------------------------------------------------------------
    # Explicit conversions (None when the kind does not convert)

    def as_bool(self) -> Optional[bool]:
        if self.kind is ValueKind.BOOLEAN:
            return self.data
        if self.kind is ValueKind.INTEGER:
            return self.data != 0
        return None

    def as_int(self) -> Optional[int]:
        k = self.kind
        if k is ValueKind.INTEGER:
            return self.data
        if k is ValueKind.FLOAT:
            return saturate_i64(self.data)
        if k is ValueKind.ADDRESS:
            return wrap_i64(self.data)
        if k is ValueKind.BOOLEAN:
            return 1 if self.data else 0
        if k is ValueKind.STRING and _INT_RE.match(self.data):
            n = int(self.data)
            return n if I64_MIN <= n <= I64_MAX else None
        return None

    def as_float(self) -> Optional[float]:
        k = self.kind
        if k is ValueKind.FLOAT:
            return self.data
        if k is ValueKind.INTEGER:
            return float(self.data)
        if k is ValueKind.STRING:
            s = self.data
            if not s or s != s.strip() or "_" in s:
                return None
            try:
                return float(s)
            except ValueError:
                return None
        return None

    def as_address(self) -> Optional[int]:
        k = self.kind
        if k is ValueKind.ADDRESS:
            return self.data
        if k is ValueKind.INTEGER:
            return self.data & U64_MASK
        if k is ValueKind.FLOAT:
            f = self.data
            if math.isnan(f) or f <= 0:
                return 0
            return min(int(f), U64_MASK)
        if k is ValueKind.STRING:
            s = self.data
            if s[:2] in ("0x", "0X"):
                hex_part = s[2:]
                if hex_part and _HEX_RE.match(hex_part) and int(hex_part, 16) <= U64_MASK:
                    return int(hex_part, 16)
                return None
            if s.isdigit() and int(s) <= U64_MASK:
                return int(s)
        return None

    def as_str(self) -> Optional[str]:
        return self.data if self.kind is ValueKind.STRING else None

    def as_sequence(self) -> Optional[Tuple["Value", ...]]:
        return self.data if self.kind is ValueKind.SEQUENCE else None

    def as_mapping(self) -> Optional[Dict[str, "Value"]]:
        return self.data if self.kind is ValueKind.MAPPING else None

    # ------------------------------------------------------------------
    # Display

    def to_display(self, max_depth: int = DEFAULT_DISPLAY_DEPTH, max_width: int = DEFAULT_DISPLAY_WIDTH) -> str:
        """Compact one-line rendering with bounded nesting depth and width."""
        return self._display(0, max_depth, max_width)

    def _display(self, depth: int, max_depth: int, max_width: int) -> str:
        k = self.kind
        if k is ValueKind.NULL:
            return "null"
        if k is ValueKind.BOOLEAN:
            return "true" if self.data else "false"
        if k is ValueKind.INTEGER:
            return str(self.data)
        if k is ValueKind.FLOAT:
            return format_float(self.data)
        if k is ValueKind.STRING:
            return self.data
        if k is ValueKind.ADDRESS:
            return f"0x{self.data:x}"
        if k is ValueKind.SEQUENCE:
            items = self.data
            if depth >= max_depth:
                return f"[Array({len(items)})]"
            if not items:
                return "[]"
            if len(items) <= max_width:
                return "[" + ", ".join(v._display(depth + 1, max_depth, max_width) for v in items) + "]"
            head = max(1, max_width - 2)
            shown = ", ".join(v._display(depth + 1, max_depth, max_width) for v in items[:head])
            return f"[{shown}, ... ({len(items) - head} more)]"
        entries = self.data
        if depth >= max_depth:
            return f"{{Object({len(entries)})}}"
        if not entries:
            return "{}"
        pairs = [
            f"{key}: {v._display(depth + 1, max_depth, max_width)}"
            for key, v in list(entries.items())[:max_width]
        ]
        if len(entries) > max_width:
            pairs.append(f"... ({len(entries) - max_width} more)")
        return "{" + ", ".join(pairs) + "}"

    def __str__(self) -> str:
        return self.to_display()

    def __repr__(self) -> str:
        return f"Value.{self.kind.name.lower()}({self.data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        return self.data == other.data


_NULL = Value(ValueKind.NULL, None)
_TRUE = Value(ValueKind.BOOLEAN, True)
_FALSE = Value(ValueKind.BOOLEAN, False)


def compare_values(a: Value, b: Value) -> int:
    """Total comparison returning -1, 0 or 1.

    INTEGER and FLOAT cross-compare as floats; NULL sorts before every other kind;
    any other pair of different kinds compares by type name.
    """
    ka, kb = a.kind, b.kind
    numeric = (ValueKind.INTEGER, ValueKind.FLOAT)
    if ka in numeric and kb in numeric:
        if ka is ValueKind.INTEGER and kb is ValueKind.INTEGER:
            return _cmp(a.data, b.data)
        x, y = float(a.data), float(b.data)
        return -1 if x < y else (1 if x > y else 0)
    if ka is ValueKind.NULL or kb is ValueKind.NULL:
        if ka is kb:
            return 0
        return -1 if ka is ValueKind.NULL else 1
    if ka is not kb:
        return _cmp(a.type_name, b.type_name)
    if ka is ValueKind.SEQUENCE:
        for x, y in zip(a.data, b.data):
            c = compare_values(x, y)
            if c:
                return c
        return _cmp(len(a.data), len(b.data))
    if ka is ValueKind.MAPPING:
        left = sorted(a.data.items(), key=lambda kv: kv[0])
        right = sorted(b.data.items(), key=lambda kv: kv[0])
        for (k1, v1), (k2, v2) in zip(left, right):
            c = _cmp(k1, k2) or compare_values(v1, v2)
            if c:
                return c
        return _cmp(len(left), len(right))
    return _cmp(a.data, b.data)


def _cmp(x: Any, y: Any) -> int:
    return -1 if x < y else (1 if x > y else 0)


def zero_value_for(value_type: Optional[str]) -> Value:
    """Type-appropriate zero for a declared variable type."""
    t = str(value_type or "").strip().lower()
    if t in ("int8", "int16", "int32", "int64", "uint8", "uint16", "uint32", "uint64", "integer", "int"):
        return Value.integer(0)
    if t in ("float", "double", "float32", "float64"):
        return Value.floating(0.0)
    if t in ("pointer", "address"):
        return Value.address(0)
    if t == "string":
        return Value.string("")
    if t in ("boolean", "bool"):
        return Value.boolean(False)
    if t in ("array", "sequence"):
        return Value.sequence()
    if t in ("object", "map", "mapping"):
        return Value.mapping()
    return Value.null()
