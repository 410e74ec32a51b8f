"""
Tool outcomes and dispatch errors.

A tool handler returns one of Success / Degraded / Failed; the dispatcher
renders it into the single text block the MCP client receives. Failures
that should reach the transport as typed errors are raised instead, as
one of the ToolDispatchError subclasses below.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    NO_DATA = "no_data"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Success:
    report: str

    def render(self) -> str:
        return self.report


@dataclass(frozen=True)
class Degraded:
    """A simpler report built from a fallback source after the primary failed."""

    report: str
    reason: str

    def render(self) -> str:
        return f"Note: {self.reason}\n\n{self.report}"


@dataclass(frozen=True)
class Failed:
    """An expected miss (unknown user, no data) rendered as readable text."""

    kind: FailureKind
    message: str

    def render(self) -> str:
        return self.message


ToolOutcome = Union[Success, Degraded, Failed]


# ---------------------------------------------------------------------------
# Dispatch errors
# ---------------------------------------------------------------------------


class ToolDispatchError(McpError):
    """Base for errors surfaced to the MCP transport. Carries the tool name."""

    code: ClassVar[int] = INTERNAL_ERROR

    def __init__(self, tool: str, message: str) -> None:
        super().__init__(ErrorData(code=self.code, message=message))
        self.tool = tool


class ToolNotFoundError(ToolDispatchError):
    code = METHOD_NOT_FOUND


class InvalidParamsError(ToolDispatchError):
    code = INVALID_PARAMS


class InternalToolError(ToolDispatchError):
    code = INTERNAL_ERROR
