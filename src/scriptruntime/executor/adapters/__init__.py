"""Host node handlers that touch the execution context (variables, UI, output, flow)."""
