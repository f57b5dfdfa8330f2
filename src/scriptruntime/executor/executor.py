"""scriptruntime.executor.executor

`ScriptExecutor` runs a script from one of its event nodes.

Evaluation mixes two traversal modes over a single output cache:
- Flow edges are pushed: a node runs when control reaches it, caches its value
  outputs, then control follows the Flow output it selected.
- Value edges are pulled: when a node needs an input whose producer has no Flow
  input, the producer is evaluated on demand and cached.

Host nodes run in-process through the handler registry; Target nodes go through
the RPC bridge. Persistent variables are loaded at the start of an invocation and
committed only when it succeeds.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.config import EngineConfig
from ..core.errors import (
    BreakSignal,
    ContinueSignal,
    ControlFlowSignal,
    InvalidOperation,
    NodeNotFound,
    PortNotFound,
    ValueTypeError,
    describe_error,
)
from ..core.value import Value
from ..logging import get_logger
from ..rpc.bridge import RpcBridge, RpcCaller
from ..script.classify import is_host_node
from ..script.models import Script, ScriptNode
from ..storage.base import ScriptStateStore, UIValueStore
from ..storage.in_memory import InMemoryScriptStateStore, InMemoryUIValueStore
from .context import ExecutionContext, NodeOutput
from .notifications import NotificationStream
from .registry import get_host_handler

logger = get_logger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of one `execute_from_event` call.

    On failure `variables` is empty and `error` holds the error string; `logs`
    still carries whatever the invocation logged before failing.
    """

    success: bool
    variables: Dict[str, Value] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "variables": {k: v.to_json() for k, v in self.variables.items()},
            "logs": list(self.logs),
            "error": self.error,
        }


class ScriptExecutor:
    def __init__(
        self,
        ui_state: Optional[UIValueStore] = None,
        *,
        state_store: Optional[ScriptStateStore] = None,
        config: Optional[EngineConfig] = None,
        notifications: Optional[NotificationStream] = None,
    ):
        self._config = config or EngineConfig()
        self._ui_state = ui_state if ui_state is not None else InMemoryUIValueStore()
        self._state_store = state_store if state_store is not None else InMemoryScriptStateStore()
        self._notifications = notifications
        self._bridge = RpcBridge(timeout_ms=self._config.rpc_timeout_ms, method=self._config.rpc_method)
        self._script_locks: Dict[str, asyncio.Lock] = {}

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def ui_state(self) -> UIValueStore:
        return self._ui_state

    @property
    def state_store(self) -> ScriptStateStore:
        return self._state_store

    @property
    def notifications(self) -> Optional[NotificationStream]:
        return self._notifications

    @property
    def bridge(self) -> RpcBridge:
        return self._bridge

    # ---------------------------------------------------------------------
    # Session / state management
    # ---------------------------------------------------------------------

    def set_session(self, session_id: str) -> None:
        self._bridge.set_session(session_id)
        logger.info("session_set", session_id=session_id)

    def clear_session(self) -> None:
        self._bridge.clear_session()
        logger.info("session_cleared")

    def set_rpc_caller(self, caller: RpcCaller) -> None:
        self._bridge.set_rpc_caller(caller)

    async def clear_script_state(self, script_id: str) -> bool:
        removed = await self._state_store.clear(script_id)
        self._drop_idle_locks([script_id])
        logger.info("script_state_cleared", script_id=script_id, removed=removed)
        return removed

    async def clear_all_states(self) -> None:
        await self._state_store.clear_all()
        self._drop_idle_locks(list(self._script_locks))
        logger.info("script_states_cleared")

    def _drop_idle_locks(self, script_ids: List[str]) -> None:
        # Locks held by a running invocation are kept.
        for script_id in script_ids:
            lock = self._script_locks.get(script_id)
            if lock is not None and not lock.locked():
                del self._script_locks[script_id]

    def _lock_for(self, script_id: str) -> asyncio.Lock:
        lock = self._script_locks.get(script_id)
        if lock is None:
            lock = asyncio.Lock()
            self._script_locks[script_id] = lock
        return lock

    # ---------------------------------------------------------------------
    # Entry point
    # ---------------------------------------------------------------------

    async def execute_from_event(
        self,
        script: Script,
        event_node_id: str,
        event_value: Optional[Value] = None,
        component_id: Optional[str] = None,
    ) -> ExecutionResult:
        """Run `script` starting at the event node `event_node_id`.

        Engine errors never escape: they are reported as `success=False`.
        Cancellation of the calling task propagates.
        """
        if self._config.serialize_script_invocations:
            async with self._lock_for(script.id):
                return await self._execute_invocation(script, event_node_id, event_value, component_id)
        return await self._execute_invocation(script, event_node_id, event_value, component_id)

    async def _execute_invocation(
        self,
        script: Script,
        event_node_id: str,
        event_value: Optional[Value],
        component_id: Optional[str],
    ) -> ExecutionResult:
        logger.info("invocation_started", script_id=script.id, event_node_id=event_node_id)

        try:
            variables = await self._state_store.load_or_init(script)
        except Exception as e:
            return self._failed(script, event_node_id, e, [])

        ctx = ExecutionContext(
            script,
            self._ui_state,
            variables=variables,
            session_id=self._bridge.session_id,
            event_value=event_value,
            event_component_id=component_id,
            config=self._config,
            notifications=self._notifications,
        )

        try:
            event_node = ctx.find_node(event_node_id)
            if not event_node.is_event:
                raise InvalidOperation(f"node {event_node_id} is not an event node (type: {event_node.node_type})")

            self._prime_event_outputs(ctx, event_node)
            for conn in self._flow_connections(script, event_node, "exec"):
                try:
                    await self.execute_flow(ctx, conn.to_node_id)
                except ControlFlowSignal:
                    # A signal escaping every loop ends its path only.
                    continue
        except Exception as e:
            return self._failed(script, event_node_id, e, ctx.take_logs())

        final = ctx.variables
        try:
            await self._state_store.commit(script.id, final)
        except Exception as e:
            # The run completed but its variables were not persisted.
            return self._failed(script, event_node_id, e, ctx.take_logs())

        logger.info(
            "invocation_finished",
            script_id=script.id,
            event_node_id=event_node_id,
            success=True,
            log_lines=len(ctx.logs),
        )
        return ExecutionResult(success=True, variables=final, logs=ctx.take_logs())

    @staticmethod
    def _failed(script: Script, event_node_id: str, error: Exception, logs: List[str]) -> ExecutionResult:
        text = describe_error(error)
        logger.warning(
            "invocation_failed",
            script_id=script.id,
            event_node_id=event_node_id,
            error=text,
        )
        return ExecutionResult(success=False, variables={}, logs=logs, error=text)

    def _prime_event_outputs(self, ctx: ExecutionContext, node: ScriptNode) -> None:
        value = ctx.event_value
        outputs: Dict[str, Value] = {"value": value}
        if ctx.event_component_id is not None:
            outputs["componentId"] = Value.string(ctx.event_component_id)

        if node.node_type == "event_interval":
            outputs["tick"] = value
        elif node.node_type == "event_hotkey":
            hotkey = node.config_str("hotkey")
            outputs["key"] = Value.string(hotkey) if hotkey else value
        elif node.node_type in ("event_attach", "event_detach"):
            outputs["session"] = Value.string(ctx.session_id) if ctx.session_id else value

        ctx.set_node_outputs(node.id, outputs)

    # ---------------------------------------------------------------------
    # Flow traversal
    # ---------------------------------------------------------------------

    def _flow_connections(self, script: Script, node: ScriptNode, port_name: str):
        port = node.output_by_name(port_name)
        if port is None:
            return []
        return script.connections_from_port(node.id, port.id)

    async def _follow(self, ctx: ExecutionContext, node: ScriptNode, port_name: str) -> None:
        for conn in self._flow_connections(ctx.script, node, port_name):
            await self.execute_flow(ctx, conn.to_node_id)

    async def execute_flow(self, ctx: ExecutionContext, node_id: str) -> None:
        """Execute the node reached by flow, then whatever its chosen Flow output leads to."""
        node = ctx.find_node(node_id)
        ctx.visit(node.id)
        try:
            if node.is_loop:
                await self._execute_loop(ctx, node)
                return

            inputs = await self._collect_inputs(ctx, node)
            output = await self._run_node(ctx, node, inputs)
            ctx.set_node_outputs(node.id, output.values)
            if output.flow_output is not None:
                await self._follow(ctx, node, output.flow_output)
        finally:
            ctx.unvisit(node.id)

    async def _run_node(self, ctx: ExecutionContext, node: ScriptNode, inputs: Dict[str, Value]) -> NodeOutput:
        if not is_host_node(node.node_type):
            values = await self._bridge.execute_target_node(node, inputs)
            return NodeOutput.flow("exec", values)

        handler = get_host_handler(node.node_type)
        if handler is None:
            raise InvalidOperation(f"no executor for host node type: {node.node_type}")
        result = handler(node, inputs, ctx)
        if inspect.isawaitable(result):
            result = await result
        return result

    # ---------------------------------------------------------------------
    # Value pulls
    # ---------------------------------------------------------------------

    async def _collect_inputs(self, ctx: ExecutionContext, node: ScriptNode) -> Dict[str, Value]:
        script = ctx.script
        pin_defaults = node.config.get("pinDefaults")
        if not isinstance(pin_defaults, dict):
            pin_defaults = {}

        inputs: Dict[str, Value] = {}
        for port in node.value_inputs():
            conn = script.connection_to_port(node.id, port.id)
            if conn is None:
                if port.name in pin_defaults:
                    inputs[port.name] = Value.from_json(pin_defaults[port.name])
                continue

            source = script.find_node(conn.from_node_id)
            if source is None:
                raise NodeNotFound(conn.from_node_id)
            source_port = source.output_by_id(conn.from_port_id)
            if source_port is None:
                raise PortNotFound(source.id, conn.from_port_id)

            value = ctx.get_node_output(source.id, source_port.name)
            if value is None:
                # Events that have not fired and flow-driven nodes that have not run
                # yet have nothing to offer.
                if source.is_event or source.has_flow_inputs():
                    continue
                await self._evaluate_pure(ctx, source)
                value = ctx.get_node_output(source.id, source_port.name)

            if value is not None:
                inputs[port.name] = value
        return inputs

    async def _evaluate_pure(self, ctx: ExecutionContext, node: ScriptNode) -> None:
        # A value node that (transitively) feeds itself is a cycle.
        ctx.visit(node.id)
        try:
            inputs = await self._collect_inputs(ctx, node)
            output = await self._run_node(ctx, node, inputs)
            ctx.set_node_outputs(node.id, output.values)
        finally:
            ctx.unvisit(node.id)

    # ---------------------------------------------------------------------
    # Loops
    # ---------------------------------------------------------------------

    async def _run_body(self, ctx: ExecutionContext, node: ScriptNode) -> bool:
        """Run one iteration of the body; False when the body broke out of the loop."""
        try:
            await self._follow(ctx, node, "body")
        except BreakSignal:
            return False
        except ContinueSignal:
            pass
        return True

    async def _execute_loop(self, ctx: ExecutionContext, node: ScriptNode) -> None:
        """Run a for_each, for_range or loop node, then follow its `done` output.

        Every iteration counts against `maxIterations`. For `loop` the count is taken
        before the condition is read, so the check that ends the loop is counted too:
        a body that must run exactly N times needs a ceiling of at least N + 1.
        """
        max_iterations = node.config_int("maxIterations")
        if max_iterations is None:
            max_iterations = self._config.max_iterations_for(node.node_type)

        if node.node_type == "for_each":
            inputs = await self._collect_inputs(ctx, node)
            array = inputs.get("array", Value.sequence([]))
            items = array.as_sequence()
            if items is None:
                raise ValueTypeError("array", array.type_name)

            ctx.enter_loop(max_iterations)
            try:
                for index, element in enumerate(items):
                    ctx.invalidate_pure_outputs()
                    ctx.next_iteration()
                    ctx.merge_node_outputs(node.id, {"element": element, "index": Value.integer(index)})
                    if not await self._run_body(ctx, node):
                        break
            finally:
                ctx.exit_loop()

        elif node.node_type == "for_range":
            inputs = await self._collect_inputs(ctx, node)
            start = self._range_bound(node, inputs, "start", 0)
            end = self._range_bound(node, inputs, "end", 10)
            step = self._range_bound(node, inputs, "step", 1)
            if step == 0:
                raise InvalidOperation("for_range step cannot be zero")

            ctx.enter_loop(max_iterations)
            try:
                current = start
                while (current < end) if step > 0 else (current > end):
                    ctx.invalidate_pure_outputs()
                    ctx.next_iteration()
                    ctx.merge_node_outputs(node.id, {"index": Value.integer(current)})
                    if not await self._run_body(ctx, node):
                        break
                    current += step
            finally:
                ctx.exit_loop()

        elif node.node_type == "loop":
            ctx.enter_loop(max_iterations)
            try:
                while True:
                    iteration = ctx.next_iteration()
                    # The condition may read variables the body just changed.
                    ctx.invalidate_pure_outputs()
                    inputs = await self._collect_inputs(ctx, node)
                    condition = inputs.get("condition")
                    if condition is None or not condition.is_truthy():
                        break
                    ctx.merge_node_outputs(node.id, {"index": Value.integer(iteration - 1)})
                    if not await self._run_body(ctx, node):
                        break
            finally:
                ctx.exit_loop()

        else:
            raise InvalidOperation(f"unknown loop type: {node.node_type}")

        await self._follow(ctx, node, "done")

    @staticmethod
    def _range_bound(node: ScriptNode, inputs: Dict[str, Value], name: str, default: int) -> int:
        value = inputs.get(name)
        if value is not None:
            n = value.as_int()
            if n is not None:
                return n
        configured = node.config_int(name)
        return configured if configured is not None else default
