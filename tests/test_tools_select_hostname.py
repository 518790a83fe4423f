"""Tests for select_hostname tool."""

import os
from unittest.mock import patch

import pytest

from mcp_forwarded_for.tools.select_hostname import SelectHostnameTool
from mcp_forwarded_for.settings import Settings


@pytest.fixture
def select_hostname_tool(settings, resolver):
    """Create SelectHostnameTool instance for testing."""
    return SelectHostnameTool(settings, resolver)


class TestSelectHostnameTool:
    """Test cases for SelectHostnameTool."""

    @pytest.mark.asyncio
    async def test_get_tool_definition(self, select_hostname_tool):
        definition = await select_hostname_tool.get_tool_definition()

        assert definition.name == "select_hostname"
        assert "hostname" in definition.description.lower()
        assert definition.inputSchema["required"] == ["fallback_address"]

    @pytest.mark.asyncio
    async def test_execute_resolved(self, select_hostname_tool, reverse_dns):
        result = await select_hostname_tool.execute({
            "forwarded_for": "10.208.4.38, 58.163.175.187",
            "fallback_address": "10.0.0.5",
        })

        assert not result.isError
        assert "Hostname: cpe-58-163-175-187.example.net" in result.content[0].text
        assert result.structuredContent["resolved"] is True
        assert result.structuredContent["address"] == "58.163.175.187"

    @pytest.mark.asyncio
    async def test_execute_unresolvable(self, select_hostname_tool, reverse_dns):
        result = await select_hostname_tool.execute({
            "forwarded_for": "203.0.113.9",
            "fallback_address": "10.0.0.5",
        })

        assert not result.isError
        assert result.structuredContent["hostname"] == "203.0.113.9"
        assert result.structuredContent["resolved"] is False
        assert "Lookup:" in result.content[0].text

    @pytest.mark.asyncio
    async def test_execute_lookups_disabled(self, resolver, reverse_dns):
        with patch.dict(os.environ, {"XFF_HOSTNAME_LOOKUPS": "false"}, clear=True):
            tool = SelectHostnameTool(Settings(), resolver)

        result = await tool.execute({"forwarded_for": "8.8.8.8", "fallback_address": "10.0.0.5"})

        assert not result.isError
        assert result.structuredContent["hostname"] == "8.8.8.8"
        assert result.structuredContent["error"] == "hostname lookups disabled"
        reverse_dns.assert_not_called()

    @pytest.mark.asyncio
    async def test_execute_validation_error(self, select_hostname_tool):
        result = await select_hostname_tool.execute({"forwarded_for": 12})

        assert result.isError
        assert "Validation Error" in result.content[0].text
