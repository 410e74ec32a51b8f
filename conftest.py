"""Root conftest — ensures project root is on sys.path for pytest.

Also injects a dummy Hajjefy token so pydantic-settings doesn't raise a
ValidationError when tool modules are imported during collection. The
value is never used for real API calls — tests pass a fake client or an
httpx.MockTransport.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

# Must happen before any local imports so tool modules can be collected.
sys.path.insert(0, str(Path(__file__).parent))

os.environ.setdefault("HAJJEFY_API_TOKEN", "hjf_test_token")
os.environ.setdefault("HAJJEFY_BASE_URL", "https://hajjefy.test")
os.environ.setdefault("LOG_FILE", "logs/test_mcp_server.log")
