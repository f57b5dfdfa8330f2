from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from scriptruntime import Script, load_script_json


def flow_port(name: str) -> Dict[str, Any]:
    return {"id": name, "name": name, "type": "flow"}


def value_port(name: str) -> Dict[str, Any]:
    return {"id": name, "name": name, "type": "value"}


def make_node(
    node_id: str,
    node_type: str,
    *,
    flow_in: Iterable[str] = (),
    value_in: Iterable[str] = (),
    flow_out: Iterable[str] = (),
    value_out: Iterable[str] = (),
    config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "id": node_id,
        "nodeType": node_type,
        "label": node_id,
        "x": 0,
        "y": 0,
        "config": dict(config or {}),
        "inputs": [flow_port(p) for p in flow_in] + [value_port(p) for p in value_in],
        "outputs": [flow_port(p) for p in flow_out] + [value_port(p) for p in value_out],
    }


def link(src: str, src_port: str, dst: str, dst_port: str) -> Dict[str, Any]:
    return {
        "id": f"{src}.{src_port}->{dst}.{dst_port}",
        "fromNodeId": src,
        "fromPortId": src_port,
        "toNodeId": dst,
        "toPortId": dst_port,
    }


def make_script(
    nodes: List[Dict[str, Any]],
    connections: List[Dict[str, Any]],
    *,
    script_id: str = "script-1",
    variables: Optional[List[Dict[str, Any]]] = None,
) -> Script:
    return load_script_json(
        {
            "id": script_id,
            "name": script_id,
            "variables": list(variables or []),
            "nodes": nodes,
            "connections": connections,
        }
    )


# Common node shapes


def event_ui(node_id: str = "event", **config: Any) -> Dict[str, Any]:
    return make_node(node_id, "event_ui", flow_out=["exec"], value_out=["value", "componentId"], config=config)


def log_node(node_id: str) -> Dict[str, Any]:
    return make_node(node_id, "log", flow_in=["exec"], value_in=["message"], flow_out=["exec"])


def const_string(node_id: str, value: str) -> Dict[str, Any]:
    return make_node(node_id, "const_string", value_out=["value"], config={"value": value})


def const_number(node_id: str, value: Any, *, is_float: bool = False) -> Dict[str, Any]:
    config: Dict[str, Any] = {"value": value}
    if is_float:
        config["isFloat"] = True
    return make_node(node_id, "const_number", value_out=["value"], config=config)


def binary_op(node_id: str, node_type: str, operation: str) -> Dict[str, Any]:
    return make_node(node_id, node_type, value_in=["a", "b"], value_out=["result"], config={"operation": operation})


def text_for(log_id: str, message: str) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """A const_string node feeding the `message` input of `log_id`, and its link."""
    node_id = f"{log_id}_text"
    return const_string(node_id, message), link(node_id, "value", log_id, "message")
