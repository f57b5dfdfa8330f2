from __future__ import annotations

import dataclasses

import pytest

from scriptruntime.core.config import EngineConfig


def test_defaults() -> None:
    config = EngineConfig()
    assert config.rpc_timeout_ms == 5000
    assert config.rpc_method == "executeTargetNode"
    assert config.max_iterations_for("for_each") == 10000
    assert config.max_iterations_for("for_range") == 10000
    assert config.max_iterations_for("loop") == 1000
    assert config.to_dict()["delay_default_ms"] == 100


def test_with_overrides_returns_a_copy() -> None:
    base = EngineConfig()
    tuned = base.with_overrides(rpc_timeout_ms=50, loop_max_iterations=3)
    assert tuned.rpc_timeout_ms == 50 and tuned.max_iterations_for("loop") == 3
    assert base.rpc_timeout_ms == 5000

    with pytest.raises(ValueError):
        base.with_overrides(no_such_field=1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        base.rpc_timeout_ms = 1  # type: ignore[misc]
