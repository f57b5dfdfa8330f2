"""scriptruntime.core.config

Engine configuration (timeouts, loop ceilings, display bounds).

`EngineConfig` is immutable; use `with_overrides()` to derive a variant.
Node-level configuration (e.g. a loop node's `maxIterations`) always takes
precedence over these defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict

DEFAULT_RPC_METHOD = "executeTargetNode"
DEFAULT_RPC_TIMEOUT_MS = 5000


@dataclass(frozen=True)
class EngineConfig:
    """Defaults the executor applies when a script does not say otherwise.

    Attributes:
        rpc_timeout_ms: How long a Target node may wait for its RPC response (default: 5000)
        rpc_method: Method name used for every Target node dispatch
        for_each_max_iterations: Ceiling for `for_each` when the node sets none (default: 10000)
        for_range_max_iterations: Ceiling for `for_range` when the node sets none (default: 10000)
        loop_max_iterations: Ceiling for `loop` when the node sets none (default: 1000)
        delay_default_ms: Duration for `delay` nodes without `ms` (default: 100)
        display_max_depth: Nesting depth of the compact value rendering (default: 3)
        display_max_width: Elements shown per container before eliding (default: 5)
        serialize_script_invocations: Hold a per-script lock from state load to commit

    Example:
        >>> config = EngineConfig().with_overrides(rpc_timeout_ms=50)
        >>> config.rpc_timeout_ms
        50
    """

    # RPC
    rpc_timeout_ms: int = DEFAULT_RPC_TIMEOUT_MS
    rpc_method: str = DEFAULT_RPC_METHOD

    # Loop ceilings
    for_each_max_iterations: int = 10000
    for_range_max_iterations: int = 10000
    loop_max_iterations: int = 1000

    # Flow
    delay_default_ms: int = 100

    # Value rendering (log messages, to_string)
    display_max_depth: int = 3
    display_max_width: int = 5

    # Persistent variables: last committer wins unless this is set
    serialize_script_invocations: bool = False

    def with_overrides(self, **changes: Any) -> "EngineConfig":
        """Create a new EngineConfig with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown EngineConfig field(s): {', '.join(unknown)}")
        return replace(self, **changes)

    def max_iterations_for(self, node_type: str) -> int:
        if node_type == "for_each":
            return self.for_each_max_iterations
        if node_type == "for_range":
            return self.for_range_max_iterations
        return self.loop_max_iterations

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
