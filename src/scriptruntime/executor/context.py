"""Per-invocation execution state.

An `ExecutionContext` lives for exactly one `execute_from_event` call. It owns the
variable bindings (seeded from the script's persistent state), the node-output
cache, the visited set used for cycle detection, the loop stack, the trigger
payload and the log buffer. The shared UI-value store is the only thing it
reaches outside of itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from ..core.config import EngineConfig
from ..core.errors import CycleDetected, LoopLimitExceeded, NodeNotFound, UIComponentNotFound, VariableNotFound
from ..core.value import Value
from ..script.models import Script, ScriptNode
from ..storage.base import UIValueStore


@dataclass
class NodeOutput:
    """What a node evaluation produced.

    `values` are the node's value outputs keyed by port name; `flow_output` names the
    Flow output port to follow next (None: the node does not advance flow).
    """

    values: Dict[str, Value] = field(default_factory=dict)
    flow_output: Optional[str] = None

    @classmethod
    def single(cls, port_name: str, value: Value) -> "NodeOutput":
        return cls(values={port_name: value})

    @classmethod
    def flow(cls, port_name: str = "exec", values: Optional[Dict[str, Value]] = None) -> "NodeOutput":
        return cls(values=dict(values or {}), flow_output=port_name)

    def with_flow(self, port_name: str = "exec") -> "NodeOutput":
        self.flow_output = port_name
        return self


@dataclass
class LoopFrame:
    iteration: int = 0
    max_iterations: int = 0


class ExecutionContext:
    def __init__(
        self,
        script: Script,
        ui_state: UIValueStore,
        *,
        variables: Optional[Mapping[str, Value]] = None,
        session_id: Optional[str] = None,
        event_value: Optional[Value] = None,
        event_component_id: Optional[str] = None,
        config: Optional[EngineConfig] = None,
        notifications: Any = None,
    ):
        self.script = script
        self.session_id = session_id
        self.config = config or EngineConfig()
        # NotificationStream, or None when the host does not listen.
        self.notifications = notifications
        self._ui_state = ui_state
        self._variables: Dict[str, Value] = (
            dict(variables) if variables is not None else script.initial_variables()
        )
        self._node_outputs: Dict[str, Dict[str, Value]] = {}
        self._visited: Set[str] = set()
        self._loop_stack: List[LoopFrame] = []
        self._event_value = event_value if event_value is not None else Value.null()
        self._event_component_id = event_component_id
        self._logs: List[str] = []
        # Nodes with no Flow input are evaluated on demand; their cached outputs are
        # dropped at loop-iteration boundaries so loop bodies observe fresh values.
        self._pure_node_ids: Set[str] = {
            n.id for n in script.nodes if not n.is_event and not n.has_flow_inputs()
        }

    # Trigger payload

    @property
    def event_value(self) -> Value:
        return self._event_value

    @property
    def event_component_id(self) -> Optional[str]:
        return self._event_component_id

    # Variables

    @property
    def variables(self) -> Dict[str, Value]:
        return dict(self._variables)

    def declare_variable(self, name: str, value: Value) -> None:
        self._variables[name] = value

    def set_variable(self, name: str, value: Value) -> None:
        # Writing an undeclared name creates it.
        self._variables[name] = value

    def get_variable(self, name: str) -> Value:
        try:
            return self._variables[name]
        except KeyError:
            raise VariableNotFound(name) from None

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    def resolve_variable_name(self, variable_id: str) -> str:
        """Declared name for a variable id; the id itself when nothing is declared under it."""
        decl = self.script.find_variable(variable_id)
        return decl.name if decl is not None else variable_id

    # Node output cache

    def set_node_outputs(self, node_id: str, outputs: Mapping[str, Value]) -> None:
        self._node_outputs[node_id] = dict(outputs)

    def merge_node_outputs(self, node_id: str, outputs: Mapping[str, Value]) -> None:
        self._node_outputs.setdefault(node_id, {}).update(outputs)

    def get_node_output(self, node_id: str, port_name: str) -> Optional[Value]:
        outputs = self._node_outputs.get(node_id)
        if outputs is None:
            return None
        return outputs.get(port_name)

    def has_node_outputs(self, node_id: str) -> bool:
        return node_id in self._node_outputs

    def invalidate_pure_outputs(self) -> None:
        for node_id in self._pure_node_ids:
            self._node_outputs.pop(node_id, None)

    # Cycle detection

    def visit(self, node_id: str) -> None:
        if node_id in self._visited:
            raise CycleDetected(node_id)
        self._visited.add(node_id)

    def unvisit(self, node_id: str) -> None:
        self._visited.discard(node_id)

    def is_visited(self, node_id: str) -> bool:
        return node_id in self._visited

    # Loop stack

    def enter_loop(self, max_iterations: int) -> LoopFrame:
        frame = LoopFrame(iteration=0, max_iterations=int(max_iterations))
        self._loop_stack.append(frame)
        return frame

    def exit_loop(self) -> None:
        if self._loop_stack:
            self._loop_stack.pop()

    def next_iteration(self) -> int:
        """Advance the innermost loop; raises LoopLimitExceeded past its ceiling."""
        if not self._loop_stack:
            return 0
        frame = self._loop_stack[-1]
        frame.iteration += 1
        if frame.iteration > frame.max_iterations:
            raise LoopLimitExceeded(frame.max_iterations)
        return frame.iteration

    def loop_iteration(self) -> Optional[int]:
        return self._loop_stack[-1].iteration if self._loop_stack else None

    @property
    def in_loop(self) -> bool:
        return bool(self._loop_stack)

    @property
    def loop_depth(self) -> int:
        return len(self._loop_stack)

    # UI store

    @property
    def ui_state(self) -> UIValueStore:
        return self._ui_state

    async def get_ui_value(self, component_id: str) -> Value:
        value = await self._ui_state.get(component_id)
        if value is None:
            raise UIComponentNotFound(component_id)
        return value

    async def set_ui_value(self, component_id: str, value: Value) -> None:
        await self._ui_state.set(component_id, value)

    # Script access

    def find_node(self, node_id: str) -> ScriptNode:
        node = self.script.find_node(node_id)
        if node is None:
            raise NodeNotFound(node_id)
        return node

    # Logs

    def add_log(self, message: str) -> None:
        self._logs.append(message)

    @property
    def logs(self) -> List[str]:
        return list(self._logs)

    def take_logs(self) -> List[str]:
        logs, self._logs = self._logs, []
        return logs

    def display(self, value: Value) -> str:
        return value.to_display(self.config.display_max_depth, self.config.display_max_width)
