from __future__ import annotations

import logging

import pytest
import structlog
from structlog.testing import capture_logs

from conftest import event_ui, link, log_node, make_script, text_for
from scriptruntime import ScriptExecutor
from scriptruntime import logging as runtime_logging
from scriptruntime.logging import configure_logging


@pytest.mark.asyncio
async def test_log_nodes_emit_on_the_script_logger() -> None:
    text, text_link = text_for("log", "hello")
    script = make_script([event_ui(), log_node("log"), text], [link("event", "exec", "log", "exec"), text_link])

    with capture_logs() as logs:
        result = await ScriptExecutor().execute_from_event(script, "event")

    assert result.success
    emitted = [entry for entry in logs if entry["event"] == "hello"]
    assert emitted and emitted[0]["script_id"] == script.id and emitted[0]["node_id"] == "log"
    assert any(entry["event"] == "invocation_finished" for entry in logs)


def test_configure_logging_sets_package_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(runtime_logging, "_configured", False)
    try:
        configure_logging("WARNING")
        assert runtime_logging._configured
        # A second call without force is a no-op.
        configure_logging("DEBUG")
        assert logging.getLogger("scriptruntime").level == logging.WARNING
    finally:
        structlog.reset_defaults()
        logging.getLogger("scriptruntime").setLevel(logging.NOTSET)
