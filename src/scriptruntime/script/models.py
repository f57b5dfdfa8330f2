"""Dataclasses for loaded visual scripts.

Loading is lenient: unknown fields are dropped and node `type` stays a plain
string that the classifier and executor interpret. The persisted shape (`type`
on nodes and ports) and the editor shape (`nodeType`/`portType`/`valueType`)
load into the same dataclasses.

The models are immutable once loaded; lookups are indexed at construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.value import Value, ValueKind, zero_value_for


class PortKind(str, Enum):
    FLOW = "flow"
    VALUE = "value"


class PortDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


# Entry-point node kinds. The executor primes their outputs from the trigger payload.
EVENT_NODE_TYPES = frozenset(
    {
        "event_ui",
        "event_attach",
        "event_detach",
        "event_hotkey",
        "event_interval",
        "event_hook",
        "event_memory_watch",
    }
)

LOOP_NODE_TYPES = frozenset({"for_each", "for_range", "loop"})


def is_event_type(node_type: str) -> bool:
    return node_type in EVENT_NODE_TYPES


def is_loop_type(node_type: str) -> bool:
    return node_type in LOOP_NODE_TYPES


@dataclass(frozen=True)
class Port:
    id: str
    name: str
    kind: PortKind = PortKind.VALUE
    direction: PortDirection = PortDirection.INPUT
    value_type: Optional[str] = None

    @property
    def is_flow(self) -> bool:
        return self.kind is PortKind.FLOW

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "direction": self.direction.value,
        }
        if self.value_type is not None:
            out["valueType"] = self.value_type
        return out


@dataclass(frozen=True)
class Connection:
    id: str
    from_node_id: str
    from_port_id: str
    to_node_id: str
    to_port_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fromNodeId": self.from_node_id,
            "fromPortId": self.from_port_id,
            "toNodeId": self.to_node_id,
            "toPortId": self.to_port_id,
        }


@dataclass(frozen=True)
class ScriptNode:
    id: str
    node_type: str
    label: str = ""
    x: float = 0.0
    y: float = 0.0
    config: Dict[str, Any] = field(default_factory=dict)
    inputs: List[Port] = field(default_factory=list)
    outputs: List[Port] = field(default_factory=list)

    # Configuration accessors (None when absent or of the wrong JSON type)

    def config_str(self, key: str) -> Optional[str]:
        v = self.config.get(key)
        return v if isinstance(v, str) else None

    def config_int(self, key: str) -> Optional[int]:
        v = self.config.get(key)
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return None

    def config_float(self, key: str) -> Optional[float]:
        v = self.config.get(key)
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return float(v)
        return None

    def config_bool(self, key: str) -> Optional[bool]:
        v = self.config.get(key)
        return v if isinstance(v, bool) else None

    # Port lookup

    def input_by_name(self, name: str) -> Optional[Port]:
        return next((p for p in self.inputs if p.name == name), None)

    def output_by_name(self, name: str) -> Optional[Port]:
        return next((p for p in self.outputs if p.name == name), None)

    def input_by_id(self, port_id: str) -> Optional[Port]:
        return next((p for p in self.inputs if p.id == port_id), None)

    def output_by_id(self, port_id: str) -> Optional[Port]:
        return next((p for p in self.outputs if p.id == port_id), None)

    def flow_outputs(self) -> List[Port]:
        return [p for p in self.outputs if p.kind is PortKind.FLOW]

    def value_outputs(self) -> List[Port]:
        return [p for p in self.outputs if p.kind is PortKind.VALUE]

    def value_inputs(self) -> List[Port]:
        return [p for p in self.inputs if p.kind is PortKind.VALUE]

    def has_flow_inputs(self) -> bool:
        return any(p.kind is PortKind.FLOW for p in self.inputs)

    @property
    def is_event(self) -> bool:
        return is_event_type(self.node_type)

    @property
    def is_loop(self) -> bool:
        return is_loop_type(self.node_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.node_type,
            "label": self.label,
            "x": self.x,
            "y": self.y,
            "config": dict(self.config),
            "inputs": [p.to_dict() for p in self.inputs],
            "outputs": [p.to_dict() for p in self.outputs],
        }


@dataclass(frozen=True)
class ScriptVariable:
    id: str
    name: str
    value_type: str = "any"
    default_value: Any = None
    description: Optional[str] = None

    def initial_value(self) -> Value:
        """Declared default (decoded from JSON) or the zero of the declared type."""
        if self.default_value is None:
            return zero_value_for(self.value_type)
        if self.value_type == "pointer" and isinstance(self.default_value, str):
            addr = Value.from_hex(self.default_value)
            if addr is not None:
                return addr
        value = Value.from_json(self.default_value)
        if self.value_type in ("float", "double") and value.kind is ValueKind.INTEGER:
            return Value.floating(float(value.data))
        return value

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "name": self.name, "type": self.value_type}
        if self.default_value is not None:
            out["defaultValue"] = self.default_value
        if self.description is not None:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class Script:
    id: str
    name: str = ""
    description: Optional[str] = None
    variables: List[ScriptVariable] = field(default_factory=list)
    nodes: List[ScriptNode] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    _node_index: Dict[str, ScriptNode] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, ScriptNode] = {}
        for n in self.nodes:
            index.setdefault(n.id, n)
        object.__setattr__(self, "_node_index", index)

    def find_node(self, node_id: str) -> Optional[ScriptNode]:
        return self._node_index.get(node_id)

    def find_event_nodes(self) -> List[ScriptNode]:
        return [n for n in self.nodes if n.is_event]

    def connections_from_port(self, node_id: str, port_id: str) -> List[Connection]:
        """Connections leaving a port, in declaration order."""
        return [c for c in self.connections if c.from_node_id == node_id and c.from_port_id == port_id]

    def connection_to_port(self, node_id: str, port_id: str) -> Optional[Connection]:
        return next(
            (c for c in self.connections if c.to_node_id == node_id and c.to_port_id == port_id),
            None,
        )

    def find_variable(self, variable_id: str) -> Optional[ScriptVariable]:
        return next((v for v in self.variables if v.id == variable_id), None)

    def find_variable_by_name(self, name: str) -> Optional[ScriptVariable]:
        return next((v for v in self.variables if v.name == name), None)

    def initial_variables(self) -> Dict[str, Value]:
        return {v.name: v.initial_value() for v in self.variables}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description is not None:
            out["description"] = self.description
        out["variables"] = [v.to_dict() for v in self.variables]
        out["nodes"] = [n.to_dict() for n in self.nodes]
        out["connections"] = [c.to_dict() for c in self.connections]
        return out


def _coerce_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, dict):
        # Enum-like objects serialized as {"value": "..."}.
        v = value.get("value")
        if isinstance(v, str):
            return v
    return str(value) if value is not None else ""


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return None


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def _load_port(raw: Any, default_direction: PortDirection) -> Optional[Port]:
    if not isinstance(raw, dict):
        return None
    pid = _coerce_str(raw.get("id"))
    name = _coerce_str(raw.get("name")) or pid
    if not pid:
        pid = name
    if not pid:
        return None

    kind_raw = _coerce_str(_first(raw, "type", "portType", "kind")).lower()
    kind = PortKind.FLOW if kind_raw == "flow" else PortKind.VALUE

    dir_raw = _coerce_str(raw.get("direction")).lower()
    if dir_raw == "input":
        direction = PortDirection.INPUT
    elif dir_raw == "output":
        direction = PortDirection.OUTPUT
    else:
        direction = default_direction

    vt = _first(raw, "valueType", "value_type")
    return Port(id=pid, name=name, kind=kind, direction=direction, value_type=_coerce_str(vt) if vt is not None else None)


def _load_ports(raw: Any, direction: PortDirection) -> List[Port]:
    out: List[Port] = []
    if isinstance(raw, list):
        for p in raw:
            port = _load_port(p, direction)
            if port is not None:
                out.append(port)
    return out


def _load_connection(raw: Any) -> Optional[Connection]:
    if not isinstance(raw, dict):
        return None
    src = raw.get("from") if isinstance(raw.get("from"), dict) else {}
    dst = raw.get("to") if isinstance(raw.get("to"), dict) else {}
    from_node = _coerce_str(_first(raw, "fromNodeId", "from_node_id") or src.get("node") or src.get("nodeId"))
    from_port = _coerce_str(_first(raw, "fromPortId", "from_port_id") or src.get("port") or src.get("portId"))
    to_node = _coerce_str(_first(raw, "toNodeId", "to_node_id") or dst.get("node") or dst.get("nodeId"))
    to_port = _coerce_str(_first(raw, "toPortId", "to_port_id") or dst.get("port") or dst.get("portId"))
    # Connections are defined by both endpoints; skip malformed ones.
    if not (from_node and from_port and to_node and to_port):
        return None
    cid = _coerce_str(raw.get("id")) or f"{from_node}.{from_port}->{to_node}.{to_port}"
    return Connection(
        id=cid,
        from_node_id=from_node,
        from_port_id=from_port,
        to_node_id=to_node,
        to_port_id=to_port,
    )


def load_script_json(raw: Any) -> Script:
    """Parse a script JSON object (dict) into stdlib dataclasses.

    Also accepts Pydantic-like models by calling `model_dump()` or `dict()`.
    """
    if hasattr(raw, "model_dump"):
        try:
            raw = raw.model_dump(mode="json", by_alias=True)  # type: ignore[assignment]
        except TypeError:
            raw = raw.model_dump()  # type: ignore[assignment]
    elif hasattr(raw, "dict") and not isinstance(raw, dict):
        raw = raw.dict()  # type: ignore[assignment]

    if not isinstance(raw, dict):
        raise TypeError("Script must be a JSON object (dict)")

    sid = _coerce_str(_first(raw, "id", "script_id", "scriptId"))
    if not sid:
        raise ValueError("Script missing required 'id'")

    name = _coerce_str(raw.get("name"))
    desc_raw = raw.get("description")
    description = str(desc_raw) if isinstance(desc_raw, str) else None

    variables: List[ScriptVariable] = []
    vars_raw = raw.get("variables")
    if isinstance(vars_raw, list):
        for v in vars_raw:
            if not isinstance(v, dict):
                continue
            vname = _coerce_str(v.get("name"))
            vid = _coerce_str(v.get("id")) or vname
            if not vname:
                continue
            vtype = _coerce_str(_first(v, "type", "valueType", "value_type")).lower() or "any"
            vdesc = v.get("description")
            variables.append(
                ScriptVariable(
                    id=vid,
                    name=vname,
                    value_type=vtype,
                    default_value=_first(v, "defaultValue", "default_value", "default"),
                    description=vdesc if isinstance(vdesc, str) else None,
                )
            )

    nodes: List[ScriptNode] = []
    nodes_raw = raw.get("nodes")
    if isinstance(nodes_raw, list):
        for n in nodes_raw:
            if not isinstance(n, dict):
                continue
            nid = _coerce_str(n.get("id"))
            if not nid:
                continue
            ntype = _coerce_str(_first(n, "type", "nodeType", "node_type"))
            position = n.get("position") if isinstance(n.get("position"), dict) else {}
            cfg = _first(n, "config", "configuration")
            nodes.append(
                ScriptNode(
                    id=nid,
                    node_type=ntype,
                    label=_coerce_str(n.get("label")),
                    x=_coerce_float(n.get("x", position.get("x"))),
                    y=_coerce_float(n.get("y", position.get("y"))),
                    config=dict(cfg) if isinstance(cfg, dict) else {},
                    inputs=_load_ports(n.get("inputs"), PortDirection.INPUT),
                    outputs=_load_ports(n.get("outputs"), PortDirection.OUTPUT),
                )
            )

    connections: List[Connection] = []
    conns_raw = raw.get("connections")
    if isinstance(conns_raw, list):
        for c in conns_raw:
            conn = _load_connection(c)
            if conn is not None:
                connections.append(conn)

    return Script(
        id=sid,
        name=name,
        description=description,
        variables=variables,
        nodes=nodes,
        connections=connections,
    )


def validate_script(script: Script) -> List[str]:
    """Return human-readable structural problems (empty list when the graph is well-formed).

    Checks: connection endpoints resolve, flow/value kinds match, a value input has a
    single producer, port names are unique per node and direction. The executor does
    not require a validated script; it raises at the point of use instead.
    """
    problems: List[str] = []

    seen_ids: set[str] = set()
    for node in script.nodes:
        if node.id in seen_ids:
            problems.append(f"duplicate node id '{node.id}'")
        seen_ids.add(node.id)
        for direction, ports in (("input", node.inputs), ("output", node.outputs)):
            names: set[str] = set()
            for p in ports:
                if p.name in names:
                    problems.append(f"node '{node.id}' has duplicate {direction} port name '{p.name}'")
                names.add(p.name)

    producers: Dict[tuple[str, str], str] = {}
    for conn in script.connections:
        src = script.find_node(conn.from_node_id)
        dst = script.find_node(conn.to_node_id)
        if src is None:
            problems.append(f"connection '{conn.id}' starts at unknown node '{conn.from_node_id}'")
        if dst is None:
            problems.append(f"connection '{conn.id}' ends at unknown node '{conn.to_node_id}'")
        if src is None or dst is None:
            continue

        out_port = src.output_by_id(conn.from_port_id)
        in_port = dst.input_by_id(conn.to_port_id)
        if out_port is None:
            problems.append(f"connection '{conn.id}' starts at unknown port '{conn.from_node_id}.{conn.from_port_id}'")
        if in_port is None:
            problems.append(f"connection '{conn.id}' ends at unknown port '{conn.to_node_id}.{conn.to_port_id}'")
        if out_port is None or in_port is None:
            continue

        if out_port.kind is not in_port.kind:
            problems.append(
                f"connection '{conn.id}' links a {out_port.kind.value} output to a {in_port.kind.value} input"
            )
            continue
        if in_port.kind is PortKind.VALUE:
            key = (conn.to_node_id, conn.to_port_id)
            if key in producers:
                problems.append(
                    f"value input '{conn.to_node_id}.{conn.to_port_id}' has more than one producer "
                    f"('{producers[key]}', '{conn.id}')"
                )
            else:
                producers[key] = conn.id

    return problems
