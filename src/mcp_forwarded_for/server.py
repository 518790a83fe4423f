"""MCP Server for X-Forwarded-For client address selection."""

import asyncio
import json
import logging
import sys
from typing import Any

from mcp.server import Server, NotificationOptions
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import (
    Resource,
    Tool,
    TextContent,
    TextResourceContents,
    CallToolResult,
)
from pydantic import AnyUrl

from .settings import Settings
from .resolver import AddressResolver
from .access_log import AccessLogFormatter

from .tools.select_address import SelectAddressTool
from .tools.select_hostname import SelectHostnameTool
from .tools.format_access_log import FormatAccessLogTool

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-forwarded-for"
SERVER_VERSION = "0.1.0"


class MCPForwardedForServer:
    """MCP Server exposing forwarded-for address selection."""

    def __init__(self):
        print("[MCP Forwarded-For] Initializing settings...", file=sys.stderr)
        self.settings = Settings()
        print("[MCP Forwarded-For] Settings loaded successfully", file=sys.stderr)

        # Shared by every tool; holds no per-request state
        self.resolver = AddressResolver(lookup_timeout=self.settings.lookup_timeout)
        self.formatter = AccessLogFormatter(
            self.settings.access_log_pattern,
            resolver=self.resolver,
            header_name=self.settings.forwarded_header,
            hostname_lookups=self.settings.hostname_lookups,
        )

        self.server = Server(SERVER_NAME)

        self.tools = {
            "select_address": SelectAddressTool(self.settings, self.resolver),
            "select_hostname": SelectHostnameTool(self.settings, self.resolver),
            "format_access_log": FormatAccessLogTool(self.settings, self.formatter),
        }

        self._register_handlers()

        print("[MCP Forwarded-For] Server initialized successfully", file=sys.stderr)

    async def call_tool(self, name: str, arguments: dict) -> Any:
        """Dispatch a tool call, raising on unknown tools and tool errors."""
        if name not in self.tools:
            raise ValueError(f"Unknown tool: {name}")

        tool = self.tools[name]
        result = await tool.execute(arguments or {})

        if isinstance(result, CallToolResult):
            if result.isError:
                message = 'Tool execution failed.'
                for block in result.content:
                    if isinstance(block, TextContent):
                        message = block.text
                        break
                raise RuntimeError(message)

            content = list(result.content) if result.content else []
            if result.structuredContent is not None:
                return content, result.structuredContent
            return content

        return result

    def read_resource(self, uri: AnyUrl) -> list[TextResourceContents]:
        """Return the contents of a known resource."""
        uri_str = str(uri)

        if uri_str == "config://settings":
            payload = json.dumps(self.settings.model_dump(), indent=2)
            return [
                TextResourceContents(
                    uri=uri,
                    text=payload,
                    mimeType="application/json",
                )
            ]

        elif uri_str == "doc://usage":
            return [
                TextResourceContents(
                    uri=uri,
                    text=self._get_usage_documentation(),
                    mimeType="text/markdown",
                )
            ]

        else:
            raise ValueError(f"Unknown resource: {uri}")

    def _register_handlers(self):
        """Register MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List available tools."""
            tools: list[Tool] = []
            for tool in self.tools.values():
                tools.append(await tool.get_tool_definition())
            return tools

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> Any:
            """Handle tool calls."""
            return await self.call_tool(name, arguments)

        @self.server.list_resources()
        async def handle_list_resources() -> list[Resource]:
            """List available resources."""
            return [
                Resource(
                    uri=AnyUrl("config://settings"),
                    name="Active Settings",
                    description="Configuration the server is running with",
                    mimeType="application/json",
                ),
                Resource(
                    uri=AnyUrl("doc://usage"),
                    name="Usage Documentation",
                    description="Tool usage documentation and examples",
                    mimeType="text/markdown",
                ),
            ]

        @self.server.read_resource()
        async def handle_read_resource(uri: AnyUrl) -> list[TextResourceContents]:
            """Handle resource reads."""
            return self.read_resource(uri)

    def _get_usage_documentation(self) -> str:
        """Generate usage documentation."""
        return f"""# MCP Forwarded-For Usage Documentation

The address picked from `{self.settings.forwarded_header}` is supplied by the
client and can be forged. Use it for logging and customisation only, never
for authentication or authorization.

## Available Tools

### select_address
Pick the leftmost non-private address of the forwarding chain.
- **fallback_address** (required): peer address of the direct connection
- **forwarded_for** (optional): raw `{self.settings.forwarded_header}` header value

Private prefixes: `127.0.0.1`, `10.`, `172.16.` to `172.31.`, `192.168.`.
When no address qualifies the fallback address is returned.

### select_hostname
Same arguments as `select_address`; the chosen address is reverse-resolved.
Any lookup failure (or a lookup slower than {self.settings.lookup_timeout}s)
returns the address itself.

### format_access_log
Render a request as an access log line.
- **request** (required): `remote_addr`, `headers`, `method`, `path`, `status`, ...
- **pattern** (optional): log pattern or alias (`common`, `combined`)

`%f` renders the selected address and `%F` its hostname.

## Available Resources

### config://settings
Active configuration.

### doc://usage
This usage documentation.

## Examples

```json
{{
  "tool": "select_address",
  "arguments": {{
    "forwarded_for": "10.208.4.38, 58.163.175.187",
    "fallback_address": "10.0.0.5"
  }}
}}
```

```json
{{
  "tool": "format_access_log",
  "arguments": {{
    "request": {{
      "remote_addr": "10.0.0.5",
      "headers": {{"X-Forwarded-For": "10.208.4.38, 58.163.175.187"}},
      "path": "/index.html"
    }},
    "pattern": "%f %F %t \\"%r\\" %s %b"
  }}
}}
```
"""

    async def run(self):
        """Run the MCP server."""
        logging.basicConfig(
            level=getattr(logging, self.settings.log_level.upper()),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        logger.info("Starting MCP Forwarded-For server")

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=SERVER_VERSION,
                    capabilities=self.server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )


def main():
    """Main entry point."""
    server = MCPForwardedForServer()
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Shutting down server")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
