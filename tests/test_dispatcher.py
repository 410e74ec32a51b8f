import pytest
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND

import hajjefy_mcp_server  # noqa: F401  (registers every tool)
from dispatcher import ToolName, dispatch, registered_tools
from hajjefy_client import HajjefyAPIError, HajjefyAuthError
from tool_results import (
    Degraded,
    Failed,
    FailureKind,
    InternalToolError,
    InvalidParamsError,
    Success,
    ToolNotFoundError,
)

from fake_client import FakeClient


def test_every_tool_has_a_handler():
    assert registered_tools() == sorted(t.value for t in ToolName)


@pytest.mark.asyncio
async def test_unknown_tool_raises_not_found_without_remote_calls():
    client = FakeClient()
    with pytest.raises(ToolNotFoundError) as excinfo:
        await dispatch("get_weather", {}, client=client)
    assert excinfo.value.error.code == METHOD_NOT_FOUND
    assert "get_weather" in excinfo.value.error.message
    assert client.calls == []


@pytest.mark.asyncio
async def test_invalid_params_raise_before_remote_calls():
    client = FakeClient()
    with pytest.raises(InvalidParamsError) as excinfo:
        await dispatch(ToolName.GET_TIME_SUMMARY.value, {"days": 400}, client=client)
    assert excinfo.value.error.code == INVALID_PARAMS
    assert "days" in excinfo.value.error.message
    assert client.calls == []


@pytest.mark.asyncio
async def test_date_range_over_a_year_is_invalid_params():
    client = FakeClient()
    with pytest.raises(InvalidParamsError):
        await dispatch(
            ToolName.GET_DAILY_HOURS.value,
            {"from_date": "2023-01-01", "to_date": "2025-01-01"},
            client=client,
        )
    assert client.calls == []


@pytest.mark.asyncio
async def test_missing_required_argument_is_invalid_params():
    with pytest.raises(InvalidParamsError):
        await dispatch(ToolName.GET_CUSTOMER_ANALYSIS.value, {"days": 30}, client=FakeClient())


@pytest.mark.asyncio
async def test_auth_failure_surfaces_message_verbatim():
    client = FakeClient(
        get_dashboard_overview=HajjefyAuthError(
            "Authentication failed. Please check your HAJJEFY_API_TOKEN."
        )
    )
    with pytest.raises(InternalToolError) as excinfo:
        await dispatch(ToolName.GET_TIME_SUMMARY.value, {}, client=client)
    assert excinfo.value.error.code == INTERNAL_ERROR
    assert excinfo.value.tool == "get_time_summary"
    assert excinfo.value.error.message == (
        "Failed to execute tool 'get_time_summary': "
        "Authentication failed. Please check your HAJJEFY_API_TOKEN."
    )


@pytest.mark.asyncio
async def test_api_failure_without_fallback_is_internal_error():
    client = FakeClient(get_dashboard_overview=HajjefyAPIError("boom", status_code=502))
    with pytest.raises(InternalToolError, match="get_time_summary"):
        await dispatch(ToolName.GET_TIME_SUMMARY.value, {"days": 7}, client=client)


def test_outcome_rendering():
    assert Success("report").render() == "report"
    assert Degraded("report", "fell back").render() == "Note: fell back\n\nreport"
    assert Failed(FailureKind.NO_DATA, "nothing").render() == "nothing"


@pytest.mark.asyncio
async def test_local_tool_opens_no_http_client(monkeypatch):
    import dispatcher

    def no_client(*args, **kwargs):
        raise AssertionError("HajjefyClient should not be created")

    monkeypatch.setattr(dispatcher, "HajjefyClient", no_client)
    out = await dispatch(ToolName.GET_HAJJEFY_OVERVIEW.value, {})
    assert out.startswith("Hajjefy: Time Tracking Analytics for Tempo.io")
