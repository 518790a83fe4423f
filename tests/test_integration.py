"""Integration and end-to-end tests."""

import pytest
import asyncio
import os
from unittest.mock import patch

from mcp import types

from mcp_forwarded_for.server import MCPForwardedForServer

ORIGINATING_IP = "58.163.175.187"


@pytest.fixture
def server():
    """Server built from a clean environment."""
    with patch.dict(os.environ, {"XFF_LOOKUP_TIMEOUT": "0.5"}, clear=True):
        return MCPForwardedForServer()


class TestAddressWorkflows:
    """End-to-end address selection through the server."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header,expected", [
        ("10.208.4.38, 58.163.175.187", "58.163.175.187"),
        ("10.208.4.38, 58.163.175.187, 58.163.1.4", "58.163.175.187"),
        ("10.208.4.38, 10.10.300.23, 58.163.175.187", "58.163.175.187"),
        ("192.168.4.38", ORIGINATING_IP),
        ("", ORIGINATING_IP),
        ("127.0.0.1", ORIGINATING_IP),
    ])
    async def test_select_address_scenarios(self, server, header, expected):
        _, structured = await server.call_tool("select_address", {
            "forwarded_for": header,
            "fallback_address": ORIGINATING_IP,
        })

        assert structured["address"] == expected

    @pytest.mark.asyncio
    async def test_hostname_workflow(self, server, reverse_dns):
        _, structured = await server.call_tool("select_hostname", {
            "forwarded_for": "10.208.4.38, 8.8.8.8",
            "fallback_address": "10.0.0.5",
        })

        assert structured["hostname"] == "dns.google"
        assert structured["resolved"] is True

    @pytest.mark.asyncio
    async def test_hostname_workflow_never_fails(self, server):
        with patch("mcp_forwarded_for.resolver.socket.gethostbyaddr", side_effect=Exception("resolver down")):
            _, structured = await server.call_tool("select_hostname", {
                "forwarded_for": "203.0.113.9",
                "fallback_address": "10.0.0.5",
            })

        assert structured["hostname"] == "203.0.113.9"
        assert structured["resolved"] is False

    @pytest.mark.asyncio
    async def test_access_log_workflow(self, server, reverse_dns):
        _, structured = await server.call_tool("format_access_log", {
            "request": {
                "remote_addr": "10.0.0.5",
                "headers": {"X-Forwarded-For": "10.208.4.38, 58.163.175.187"},
                "path": "/index.html",
                "status": 304,
                "timestamp": "2024-01-10T10:00:00+00:00",
            },
            "pattern": '%f (%F) %t "%r" %s %b',
        })

        assert structured["line"] == (
            '58.163.175.187 (cpe-58-163-175-187.example.net) '
            '[10/Jan/2024:10:00:00 +0000] "GET /index.html HTTP/1.1" 304 -'
        )

    @pytest.mark.asyncio
    async def test_concurrent_tool_execution(self, server, reverse_dns):
        calls = [
            server.call_tool("select_address", {"forwarded_for": f"10.0.0.{i}, 8.8.8.8", "fallback_address": "10.0.0.5"})
            for i in range(10)
        ] + [
            server.call_tool("select_hostname", {"forwarded_for": "8.8.8.8", "fallback_address": "10.0.0.5"})
            for _ in range(10)
        ]

        results = await asyncio.gather(*calls)

        assert all(structured["address"] == "8.8.8.8" for _, structured in results)
        assert all(structured["hostname"] == "dns.google" for _, structured in results[10:])


class TestMCPHandlers:
    """Handlers registered on the low-level MCP server."""

    @pytest.mark.asyncio
    async def test_list_tools_handler(self, server):
        handler = server.server.request_handlers[types.ListToolsRequest]
        result = await handler(types.ListToolsRequest(method="tools/list"))

        names = {tool.name for tool in result.root.tools}
        assert names == {"select_address", "select_hostname", "format_access_log"}

    @pytest.mark.asyncio
    async def test_list_resources_handler(self, server):
        handler = server.server.request_handlers[types.ListResourcesRequest]
        result = await handler(types.ListResourcesRequest(method="resources/list"))

        uris = {str(resource.uri) for resource in result.root.resources}
        assert uris == {"config://settings", "doc://usage"}
