"""
Shared server state for the Hajjefy tools.

Every tools_*.py module imports ``mcp`` (to register its tools) and, where
it needs limits such as the worklog fetch size, ``settings``. Importing
this module has side effects, in this order:

  1. .env is loaded from the project directory
  2. settings are read and validated (a missing HAJJEFY_API_TOKEN fails here)
  3. structlog is configured to write JSON to stderr and the log file
  4. the FastMCP instance is created

Depends only on config.py and logging_config.py.
"""
from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_PROJECT_DIR = Path(__file__).parent

# Claude Desktop launches the server from an arbitrary working directory
load_dotenv(_PROJECT_DIR / ".env")

import structlog
from mcp.server.fastmcp import FastMCP

from config import get_settings
from logging_config import configure_logging

_INSTRUCTIONS = (
    "Access Hajjefy time tracking analytics (Tempo.io worklogs). "
    "Use these tools to answer questions about logged hours, billable "
    "ratios, team capacity, customer allocation, and TAM activity. "
    "Every tool returns a formatted text report."
)


def _resolve_log_file(configured: str) -> str:
    """Relative LOG_FILE values are anchored at the project directory."""
    path = Path(configured)
    if not path.is_absolute():
        path = _PROJECT_DIR / path
    return str(path)


settings = get_settings()
configure_logging(settings.log_level, _resolve_log_file(settings.log_file))

log = structlog.get_logger(__name__)
log.debug("server_config.ready", base_url=settings.hajjefy_base_url)

mcp = FastMCP("hajjefy-mcp-server", instructions=_INSTRUCTIONS)
