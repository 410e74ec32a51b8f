import pytest

import hajjefy_mcp_server  # noqa: F401  (registers every tool)
from dispatcher import ToolName, dispatch
from schemas import AccountsResponse, SalesforceAccount

from fake_client import FakeClient

ACCOUNTS = AccountsResponse.model_validate(
    {
        "accounts": [
            {"account": "RELATECAREBILL", "category": "Billable", "hours": 110.0, "entries": 60, "percentage": 5.0},
            {"account": "CENTENEBILL", "category": "Centene", "hours": 400.0, "entries": 150, "percentage": 18.0},
            {"account": "RELATECARENONBILL", "category": "Non-Billable", "hours": 95.5, "entries": 40, "percentage": 4.0},
            {"account": "RELATECARE-CSM", "category": "Internal", "hours": 12.0, "entries": 6, "percentage": 0.5},
            {"account": "INTERNAL", "category": "Internal", "hours": 250.0, "entries": 300, "percentage": 11.0},
        ]
    }
)


@pytest.mark.asyncio
async def test_relatecare_hours_are_summed_across_account_codes():
    salesforce = SalesforceAccount.model_validate(
        {"name": "RelateCare Inc.", "industry": "Healthcare", "type": "Customer", "owner": "Dana", "annualRevenue": 12500000}
    )
    client = FakeClient(get_accounts_breakdown=ACCOUNTS, get_salesforce_account=salesforce)
    out = await dispatch(
        ToolName.GET_CUSTOMER_ANALYSIS.value, {"customer": "RelateCare", "days": 60}, client=client
    )

    assert out.startswith("Customer Analysis: RelateCare  |")
    assert "Total hours:         217.5h" in out
    assert "Billable hours:      110.0h (50.6%)" in out
    assert "Non-billable hours:  107.5h" in out
    assert "Total entries:       106 worklogs" in out
    assert "Primary account:     RELATECAREBILL (110.0h)" in out
    assert "Accounts (3)" in out
    assert "1. RELATECAREBILL [Billable]: 110.0h (50.6% of customer) | 60 entries" in out
    assert "3. RELATECARE-CSM [Internal]: 12.0h" in out
    assert "CENTENEBILL" not in out

    assert "Industry:  Healthcare" in out
    assert "Type:      Customer" in out
    assert "Revenue:   $12,500,000" in out
    assert ("get_salesforce_account", ("RelateCare",), {}) in client.calls


@pytest.mark.asyncio
async def test_account_code_input_finds_the_whole_customer():
    client = FakeClient(get_accounts_breakdown=ACCOUNTS, get_salesforce_account=None)
    out = await dispatch(
        ToolName.GET_CUSTOMER_ANALYSIS.value, {"customer": "relatecare"}, client=client
    )
    assert "Accounts (3)" in out
    assert "No Salesforce account data available." in out


@pytest.mark.asyncio
async def test_unknown_customer_suggests_similar_names():
    client = FakeClient(get_accounts_breakdown=ACCOUNTS, get_salesforce_account=None)
    out = await dispatch(
        ToolName.GET_CUSTOMER_ANALYSIS.value, {"customer": "Relativity"}, client=client
    )
    assert 'No accounts found matching "Relativity".' in out
    assert "Did you mean" in out
    assert "  - RelateCare" in out


@pytest.mark.asyncio
async def test_unknown_customer_without_suggestions():
    client = FakeClient(get_accounts_breakdown=ACCOUNTS, get_salesforce_account=None)
    out = await dispatch(ToolName.GET_CUSTOMER_ANALYSIS.value, {"customer": "Globex"}, client=client)
    assert 'No accounts found matching "Globex".' in out
    assert "Did you mean" not in out
    assert "Tip:" in out
