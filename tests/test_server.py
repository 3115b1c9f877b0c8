"""
Tests for the MCP tool layer, driven through an in-memory MCP client.
"""

import json

import httpx
import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from apptics_mcp.server import create_server

TOOL_NAMES = {
    "get_portals_and_projects_list",
    "get_crash_list",
    "get_crash_count_summary",
    "get_active_devices",
    "get_crash_count_by_date",
    "get_crash_detail",
    "get_device_specific_crash_distribution",
}


@pytest.fixture
def server(client):
    return create_server(client)


class TestToolRegistration:

    @pytest.mark.asyncio
    async def test_all_tools_registered(self, server):
        async with Client(server) as mcp_client:
            tools = await mcp_client.list_tools()

        assert {tool.name for tool in tools} == TOOL_NAMES

    @pytest.mark.asyncio
    async def test_crash_list_schema(self, server):
        async with Client(server) as mcp_client:
            tools = {tool.name: tool for tool in await mcp_client.list_tools()}

        schema = tools["get_crash_list"].inputSchema
        assert set(schema["required"]) == {"portalId", "projectId"}
        assert "mode" in schema["properties"]


class TestToolCalls:

    @pytest.mark.asyncio
    async def test_portals_tool_returns_unwrapped_json(self, server, zoho):
        zoho.api_responses["userprojects"] = {"result": [{"name": "P1"}]}

        async with Client(server) as mcp_client:
            result = await mcp_client.call_tool("get_portals_and_projects_list", {})

        assert json.loads(result.content[0].text) == [{"name": "P1"}]

    @pytest.mark.asyncio
    async def test_crash_list_tool_returns_structured_data(self, server, zoho):
        zoho.api_responses["crash/list"] = {
            "data": [{"UniqueMessageID": "u1", "CrashCount": "3"}],
            "total": 1,
        }

        async with Client(server) as mcp_client:
            result = await mcp_client.call_tool(
                "get_crash_list",
                {"portalId": "zsoid-1", "projectId": "proj-1", "platform": "iOS"},
            )

        assert json.loads(result.content[0].text)["total"] == 1
        assert result.structured_content["data"][0]["UniqueMessageID"] == "u1"

        request = zoho.api_requests[0]
        assert request.headers["zsoid"] == "zsoid-1"
        assert request.headers["projectid"] == "proj-1"
        assert request.url.params["platform"] == "iOS"

    @pytest.mark.asyncio
    async def test_device_distribution_tool_maps_arguments(self, server, zoho):
        async with Client(server) as mcp_client:
            await mcp_client.call_tool(
                "get_device_specific_crash_distribution",
                {
                    "portalId": "zsoid-1",
                    "projectId": "proj-1",
                    "uniqueId": "abc123",
                    "limit": "5",
                    "offset": "10",
                },
            )

        params = dict(zoho.api_requests[0].url.params)
        assert params["uniqueid"] == "abc123"
        assert params["limit"] == "5"
        assert params["offset"] == "10"

    @pytest.mark.asyncio
    async def test_active_devices_rejects_unknown_group(self, server, zoho):
        async with Client(server) as mcp_client:
            with pytest.raises(ToolError):
                await mcp_client.call_tool(
                    "get_active_devices",
                    {"portalId": "zsoid-1", "projectId": "proj-1", "group": "country"},
                )

        assert zoho.api_requests == []

    @pytest.mark.asyncio
    async def test_api_error_becomes_tool_error(self, server, zoho):
        zoho.api_responses["crash/abc123/summarywithtrace"] = httpx.Response(
            404, text="crash not found"
        )

        async with Client(server) as mcp_client:
            with pytest.raises(ToolError) as exc_info:
                await mcp_client.call_tool(
                    "get_crash_detail",
                    {"portalId": "zsoid-1", "projectId": "proj-1", "uniqueId": "abc123"},
                )

        assert "404" in str(exc_info.value)
        assert "crash not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_auth_error_becomes_tool_error(self, server, zoho):
        zoho.queue_token(status_code=400, text="invalid_grant")

        async with Client(server) as mcp_client:
            with pytest.raises(ToolError) as exc_info:
                await mcp_client.call_tool(
                    "get_crash_count_by_date",
                    {"portalId": "zsoid-1", "projectId": "proj-1"},
                )

        assert "400" in str(exc_info.value)
        assert "invalid_grant" in str(exc_info.value)
