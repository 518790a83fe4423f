"""Tool for rendering access log lines with forwarded-for elements."""

import logging
from typing import Any, Dict

from mcp.types import Tool, TextContent, CallToolResult

from ..settings import Settings
from ..access_log import AccessLogFormatter, PATTERN_ALIASES
from ..models import AccessLogRequest

logger = logging.getLogger(__name__)


class FormatAccessLogTool:
    """Tool for formatting a request into an access log line."""

    def __init__(self, settings: Settings, formatter: AccessLogFormatter):
        self.settings = settings
        self.formatter = formatter

    async def get_tool_definition(self) -> Tool:
        """Get the tool definition for MCP."""
        return Tool(
            name="format_access_log",
            description=(
                "Format a request into an access log line; %f and %F render the "
                "X-Forwarded-For client address and hostname"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "request": {
                        "type": "object",
                        "description": "Request data (remote_addr, headers, method, path, status, ...)",
                        "properties": {
                            "remote_addr": {"type": "string"},
                            "headers": {
                                "type": "object",
                                "additionalProperties": {"type": "string"},
                            },
                            "method": {"type": "string"},
                            "path": {"type": "string"},
                            "query": {"type": "string"},
                            "protocol": {"type": "string"},
                            "status": {"type": "integer"},
                            "bytes_sent": {"type": "integer"},
                            "timestamp": {"type": "string", "format": "date-time"},
                            "elapsed_ms": {"type": "integer"},
                            "remote_user": {"type": "string"},
                        },
                        "required": ["remote_addr"],
                    },
                    "pattern": {
                        "type": "string",
                        "description": "Log pattern or alias ('common', 'combined'); defaults to the configured pattern",
                    },
                },
                "required": ["request"],
            },
        )

    def _formatter_for(self, pattern: str | None) -> AccessLogFormatter:
        if not pattern or PATTERN_ALIASES.get(pattern, pattern) == self.formatter.pattern:
            return self.formatter
        return AccessLogFormatter(
            pattern,
            resolver=self.formatter.resolver,
            header_name=self.formatter.header_name,
            hostname_lookups=self.formatter.hostname_lookups,
        )

    async def execute(self, arguments: Dict[str, Any]) -> CallToolResult:
        """Execute the format_access_log tool."""
        try:
            payload = arguments.get("request")
            if not isinstance(payload, dict):
                raise ValueError("request is required")

            pattern = arguments.get("pattern")
            if pattern is not None and not isinstance(pattern, str):
                raise ValueError("pattern must be a string")

            request = AccessLogRequest.model_validate(payload)
            formatter = self._formatter_for(pattern)
            line = await formatter.aformat(request)

            return CallToolResult(
                content=[TextContent(type="text", text=line)],
                structuredContent={"line": line, "pattern": formatter.pattern},
            )

        except ValueError as e:
            logger.error(f"Validation error in format_access_log: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Validation Error: {e}")],
                isError=True,
            )
        except Exception as e:
            logger.error(f"Unexpected error in format_access_log: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Unexpected Error: {e}")],
                isError=True,
            )
