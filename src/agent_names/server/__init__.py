"""HTTP server for agent-names.

Exposes every registry entry point over JSON. The calling principal is
read from the ``X-Principal`` request header.
"""
from __future__ import annotations

from agent_names.server.app import AgentNamesHandler, create_server, run_server

__all__ = ["AgentNamesHandler", "create_server", "run_server"]
