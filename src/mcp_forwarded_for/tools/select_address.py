"""Tool for selecting the originating client address of a request."""

import logging
from typing import Any, Dict

from mcp.types import Tool, TextContent, CallToolResult

from ..settings import Settings
from ..resolver import AddressResolver

logger = logging.getLogger(__name__)


def read_chain_arguments(arguments: Dict[str, Any]) -> tuple[str | None, str]:
    """Validate the shared ``forwarded_for`` / ``fallback_address`` arguments."""
    fallback_address = arguments.get("fallback_address")
    if not isinstance(fallback_address, str) or not fallback_address.strip():
        raise ValueError("fallback_address is required")

    forwarded_for = arguments.get("forwarded_for")
    if forwarded_for is not None and not isinstance(forwarded_for, str):
        raise ValueError("forwarded_for must be a string")

    return forwarded_for, fallback_address.strip()


CHAIN_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "forwarded_for": {
            "type": "string",
            "description": "Raw X-Forwarded-For header value, may be empty or omitted",
        },
        "fallback_address": {
            "type": "string",
            "description": "Peer address of the direct connection",
        },
    },
    "required": ["fallback_address"],
}


class SelectAddressTool:
    """Tool for picking the leftmost non-private forwarded address."""

    def __init__(self, settings: Settings, resolver: AddressResolver):
        self.settings = settings
        self.resolver = resolver

    async def get_tool_definition(self) -> Tool:
        """Get the tool definition for MCP."""
        return Tool(
            name="select_address",
            description=(
                "Select the originating client address from an X-Forwarded-For chain "
                "(for logging only, never for security decisions)"
            ),
            inputSchema=CHAIN_INPUT_SCHEMA,
        )

    async def execute(self, arguments: Dict[str, Any]) -> CallToolResult:
        """Execute the select_address tool."""
        try:
            forwarded_for, fallback_address = read_chain_arguments(arguments)

            selection = self.resolver.explain(forwarded_for, fallback_address)
            logger.debug(f"Selected {selection.address} from {selection.source}")

            summary_lines = [
                f"Address: {selection.address}",
                f"Source: {selection.source}",
                f"Candidates: {', '.join(selection.candidates) or 'none'}",
            ]

            return CallToolResult(
                content=[
                    TextContent(
                        type="text",
                        text="\n".join(summary_lines)
                    )
                ],
                structuredContent=selection.model_dump(),
            )

        except ValueError as e:
            logger.error(f"Validation error in select_address: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Validation Error: {e}")],
                isError=True,
            )
        except Exception as e:
            logger.error(f"Unexpected error in select_address: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Unexpected Error: {e}")],
                isError=True,
            )
