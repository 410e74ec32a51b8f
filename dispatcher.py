"""
Tool dispatcher — the single entry point from a tool name to a text report.

Tool modules register a handler per ToolName with @tool_handler; each
handler receives an open HajjefyClient and its validated argument model
and returns a ToolOutcome. dispatch() owns everything around that:

  unknown name        → ToolNotFoundError   (no remote call)
  invalid arguments   → InvalidParamsError  (no remote call)
  handler exception   → InternalToolError   (tool name + original message)
  Success / Degraded / Failed → rendered text
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from hajjefy_client import HajjefyClient
from server_config import settings
from shared_helpers import describe_error, describe_validation_error
from tool_results import (
    Degraded,
    Failed,
    InternalToolError,
    InvalidParamsError,
    ToolNotFoundError,
    ToolOutcome,
)

log = structlog.get_logger(__name__)


class ToolName(str, Enum):
    GET_TIME_SUMMARY = "get_time_summary"
    GET_USER_ANALYTICS = "get_user_analytics"
    GET_CAPACITY_ANALYSIS = "get_capacity_analysis"
    GET_TEAM_OVERVIEW = "get_team_overview"
    GET_BILLABLE_ANALYSIS = "get_billable_analysis"
    EXPORT_DATA = "export_data"
    GET_HAJJEFY_OVERVIEW = "get_hajjefy_overview"
    GET_DAILY_HOURS = "get_daily_hours"
    GET_CUSTOMER_ANALYSIS = "get_customer_analysis"
    GET_USER_CUSTOMER_ALLOCATION = "get_user_customer_allocation"
    GET_TAM_INSIGHTS = "get_tam_insights"
    GET_SYNC_STATUS = "get_sync_status"


Handler = Callable[[HajjefyClient, Any], Awaitable[ToolOutcome]]


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    args_model: type[BaseModel]
    handler: Handler
    remote: bool = True


_REGISTRY: dict[str, ToolSpec] = {}


def tool_handler(
    name: ToolName, args_model: type[BaseModel], *, remote: bool = True
) -> Callable[[Handler], Handler]:
    """
    Register `handler` as the implementation of tool `name`.

    Handlers registered with remote=False never touch the API and are
    called with client=None.
    """

    def decorator(handler: Handler) -> Handler:
        _REGISTRY[name.value] = ToolSpec(
            name=name, args_model=args_model, handler=handler, remote=remote
        )
        return handler

    return decorator


def registered_tools() -> list[str]:
    return sorted(_REGISTRY)


async def dispatch(
    name: str,
    arguments: Mapping[str, Any] | None = None,
    *,
    client: HajjefyClient | None = None,
) -> str:
    """
    Validate arguments, run the tool, and return its text report.

    A caller-supplied client is used as-is (and not closed); otherwise a
    fresh HajjefyClient is opened for the duration of this one call, unless
    the tool was registered with remote=False.
    """
    registered = _REGISTRY.get(name)
    if registered is None:
        log.warning("tool.dispatch.not_found", tool=name)
        raise ToolNotFoundError(name, f"Tool '{name}' not found")

    try:
        args = registered.args_model.model_validate(dict(arguments or {}))
    except ValidationError as exc:
        log.info("tool.dispatch.invalid_params", tool=name, error_count=exc.error_count())
        raise InvalidParamsError(
            name, f"Invalid arguments for '{name}': {describe_validation_error(exc)}"
        ) from exc

    log.info("tool.dispatch", tool=name, **args.model_dump(mode="json"))

    try:
        if client is not None or not registered.remote:
            outcome = await registered.handler(client, args)
        else:
            async with HajjefyClient(settings) as owned:
                outcome = await registered.handler(owned, args)
    except Exception as exc:
        log.error("tool.dispatch.error", tool=name, error_type=type(exc).__name__)
        raise InternalToolError(
            name, f"Failed to execute tool '{name}': {describe_error(exc)}"
        ) from exc

    if isinstance(outcome, Degraded):
        log.warning(f"tool.{name}.degraded", reason=outcome.reason)
    elif isinstance(outcome, Failed):
        log.info(f"tool.{name}.failed", kind=outcome.kind.value)

    return outcome.render()
