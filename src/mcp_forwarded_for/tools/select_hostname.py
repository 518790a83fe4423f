"""Tool for resolving the originating client of a request to a hostname."""

import logging
from typing import Any, Dict

from mcp.types import Tool, TextContent, CallToolResult

from ..settings import Settings
from ..resolver import AddressResolver
from ..models import HostnameResolution
from .select_address import CHAIN_INPUT_SCHEMA, read_chain_arguments

logger = logging.getLogger(__name__)


class SelectHostnameTool:
    """Tool for reverse-resolving the selected client address."""

    def __init__(self, settings: Settings, resolver: AddressResolver):
        self.settings = settings
        self.resolver = resolver

    async def get_tool_definition(self) -> Tool:
        """Get the tool definition for MCP."""
        return Tool(
            name="select_hostname",
            description=(
                "Select the originating client address from an X-Forwarded-For chain and "
                "reverse-resolve it to a hostname, falling back to the address"
            ),
            inputSchema=CHAIN_INPUT_SCHEMA,
        )

    async def execute(self, arguments: Dict[str, Any]) -> CallToolResult:
        """Execute the select_hostname tool."""
        try:
            forwarded_for, fallback_address = read_chain_arguments(arguments)

            address = self.resolver.select_address(forwarded_for, fallback_address)
            if self.settings.hostname_lookups:
                resolution = await self.resolver.aresolve(address)
            else:
                resolution = HostnameResolution(
                    address=address, hostname=address, resolved=False, error="hostname lookups disabled"
                )

            summary_lines = [
                f"Hostname: {resolution.hostname}",
                f"Address: {resolution.address}",
                f"Resolved: {'yes' if resolution.resolved else 'no'}",
            ]
            if resolution.error:
                summary_lines.append(f"Lookup: {resolution.error}")

            return CallToolResult(
                content=[
                    TextContent(
                        type="text",
                        text="\n".join(summary_lines)
                    )
                ],
                structuredContent=resolution.model_dump(),
            )

        except ValueError as e:
            logger.error(f"Validation error in select_hostname: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Validation Error: {e}")],
                isError=True,
            )
        except Exception as e:
            logger.error(f"Unexpected error in select_hostname: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Unexpected Error: {e}")],
                isError=True,
            )
